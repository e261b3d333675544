"""FastAPI dependency providers shared by the routers."""

from __future__ import annotations

from functools import lru_cache, partial
from typing import Callable

from fastapi import Depends, status

from tokenscope.api.errors import ENTITY_NOT_FOUND, INVALID_ADDRESS, ApiError
from tokenscope.models import Collection
from tokenscope.observability import Observability, get_observability
from tokenscope.services.addresses import is_valid_address, lookup_address
from tokenscope.services.chain import ChainReader
from tokenscope.services.factories import build_catalog_store, build_chain_reader
from tokenscope.settings import Settings, get_settings
from tokenscope.store import CatalogStore

ChainReaderFactory = Callable[[], ChainReader]


def get_app_settings() -> Settings:
    """Return the cached process settings."""

    return get_settings()


@lru_cache(maxsize=1)
def _shared_catalog_store() -> CatalogStore:
    return build_catalog_store()


def get_catalog_store() -> CatalogStore:
    """Dependency provider for the process-wide :class:`CatalogStore`."""

    return _shared_catalog_store()


def get_chain_reader_factory(settings: Settings = Depends(get_app_settings)) -> ChainReaderFactory:
    """Return a callable that opens a :class:`ChainReader` only when a live read is needed."""

    return partial(build_chain_reader, settings=settings)


def get_indexed_collection_address(settings: Settings = Depends(get_app_settings)) -> str | None:
    """Address of the collection whose distribution is counted per attribute."""

    return settings.indexed_collection_address


def get_api_observability(settings: Settings = Depends(get_app_settings)) -> Observability:
    return get_observability(component="api", settings=settings)


def require_valid_address(address: str | None) -> str:
    """Return the storage key for ``address`` or reject the request with 400."""

    if not is_valid_address(address):
        raise ApiError(status.HTTP_400_BAD_REQUEST, INVALID_ADDRESS)
    return lookup_address(address)


def require_collection(store: CatalogStore, address: str | None, *, visible_only: bool = False) -> Collection:
    """Resolve ``address`` to a stored collection, raising 400/404 envelopes."""

    key = require_valid_address(address)
    collection = store.find_collection(key, visible_only=visible_only)
    if collection is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, ENTITY_NOT_FOUND)
    return collection


__all__ = [
    "ChainReaderFactory",
    "get_api_observability",
    "get_app_settings",
    "get_catalog_store",
    "get_chain_reader_factory",
    "get_indexed_collection_address",
    "require_collection",
    "require_valid_address",
]
