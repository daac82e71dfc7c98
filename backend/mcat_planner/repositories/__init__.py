"""Database repositories for the catalog and the usage ledger."""

from .catalog import CatalogRepository, catalog
from .used_resources import UsedResourceRepository, used_resources

__all__ = ["CatalogRepository", "UsedResourceRepository", "catalog", "used_resources"]
