"""Kernel: domain models, ports, paths, caching, errors, logging and config."""
