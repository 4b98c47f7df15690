#!/usr/bin/env python3
"""Entry point for the docstorefs CLI when run as python -m docstorefs.cli."""

if __name__ == "__main__":
    from docstorefs.cli.main import main

    main()
