"""Reference data - categories and beverages."""

from nomilog.catalog.manager import CatalogManager

__all__ = ["CatalogManager"]
