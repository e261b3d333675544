"""Document-store access for tokenscope."""

from .catalog_store import CatalogStore, CatalogStoreError

__all__ = ["CatalogStore", "CatalogStoreError"]
