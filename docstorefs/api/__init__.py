"""Listing-level API consumed by user interfaces.

- category_filter: hide categorized/dismissed documents, bulk category and
  dismiss patches
"""

from docstorefs.api import category_filter
from docstorefs.api.category_filter import CategoryFilterCoordinator, FolderListing

__all__ = ["CategoryFilterCoordinator", "FolderListing", "category_filter"]
