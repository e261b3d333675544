"""Collection API router.

Endpoints:
- GET /collections
- GET /collections/{address}
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from tokenscope.api.deps import get_app_settings, get_catalog_store, require_collection
from tokenscope.api.errors import unexpected_errors
from tokenscope.services.presenters import present_collection
from tokenscope.settings import Settings
from tokenscope.store import CatalogStore

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("")
def list_collections(
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """List visible collections, most recently updated first."""

    with unexpected_errors("collection listing"):
        data = [present_collection(collection, settings) for collection in store.list_visible_collections()]
    return {"total": len(data), "data": data}


@router.get("/{address}")
def get_collection(
    address: str,
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Return a visible collection with its attribute catalogue."""

    with unexpected_errors("collection lookup"):
        collection = require_collection(store, address, visible_only=True)
        attributes = store.list_attributes_by_trait(collection)
        data = present_collection(collection, settings, attributes=attributes)
    return {"data": data}


__all__ = ["router"]
