"""Factory helpers that instantiate data-access services from configuration.

These helpers centralize how the settings declared in :mod:`tokenscope.settings`
are turned into concrete Firestore and JSON-RPC clients, so the API layer can
depend on them (and tests can override them) without touching environment
variables directly.
"""

from __future__ import annotations

from tokenscope.services.chain import ChainReader
from tokenscope.settings import Settings, get_settings
from tokenscope.store import CatalogStore


def build_catalog_store(*, settings: Settings | None = None) -> CatalogStore:
    """Return a :class:`CatalogStore` bound to the configured Firestore project."""

    resolved = settings or get_settings()
    storage = resolved.storage
    return CatalogStore(
        project=storage.firestore_project,
        database=storage.firestore_database,
        collections_collection=storage.collections_collection,
        tokens_collection=storage.tokens_collection,
        metadata_collection=storage.metadata_collection,
        attributes_collection=storage.attributes_collection,
    )


def build_chain_reader(*, settings: Settings | None = None) -> ChainReader:
    """Return a :class:`ChainReader` for live token metadata reads.

    Raises:
        RuntimeError: If no JSON-RPC endpoint is configured.
    """

    resolved = settings or get_settings()
    chain = resolved.chain
    if not chain.rpc_url:
        raise RuntimeError("Live token reads require chain.rpc_url; set TOKENSCOPE_CHAIN__RPC_URL.")
    return ChainReader(
        rpc_url=chain.rpc_url,
        ipfs_gateway=chain.ipfs_gateway,
        timeout=chain.request_timeout_seconds,
    )


__all__ = ["build_catalog_store", "build_chain_reader"]
