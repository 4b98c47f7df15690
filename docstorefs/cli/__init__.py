"""Command line interface for docstorefs."""
