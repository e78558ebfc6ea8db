"""nomilog - personal drink log with monthly alcohol-intake statistics."""

from nomilog.catalog import CatalogManager
from nomilog.intake import IntakeAggregator
from nomilog.posts import PostManager
from nomilog.storage import DatabaseManager

__version__ = "0.1.0"

__all__ = ["CatalogManager", "DatabaseManager", "IntakeAggregator", "PostManager"]
