"""Token API router.

Endpoints:
- GET /tokens/distribution/{address}
- GET /tokens/filtered/{address}?<trait_type>=<value>&page=&size=
- GET /tokens/{address}?page=&size=
- GET /tokens/{address}/{token_id}

The fixed-prefix routes are registered first so they win over
``/{address}/{token_id}``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends, Query, Request, status

from tokenscope.api.deps import (
    ChainReaderFactory,
    get_api_observability,
    get_app_settings,
    get_catalog_store,
    get_chain_reader_factory,
    get_indexed_collection_address,
    require_collection,
    require_valid_address,
)
from tokenscope.api.errors import ENTITY_NOT_FOUND, MISSING_PARAMETERS, ApiError, unexpected_errors
from tokenscope.models import Collection, Token
from tokenscope.observability import Observability
from tokenscope.services.distribution import compute_distribution, count_attribute_values, select_strategy
from tokenscope.services.presenters import present_live_token, present_token
from tokenscope.settings import Settings
from tokenscope.store import CatalogStore

router = APIRouter(prefix="/tokens", tags=["tokens"])
LOGGER = logging.getLogger(__name__)

_RESERVED_FILTER_KEYS = frozenset({"address", "page", "size"})


def _tokens_by_id(tokens: List[Token], collection: Collection, settings: Settings) -> Dict[str, Dict[str, Any]]:
    return {token.token_id: present_token(token, collection, settings) for token in tokens}


def _trait_filters(request: Request) -> List[Tuple[str, str]]:
    return [(key, value) for key, value in request.query_params.multi_items() if key not in _RESERVED_FILTER_KEYS]


@router.get("/distribution/{address}")
async def get_distribution(
    address: str,
    store: CatalogStore = Depends(get_catalog_store),
    indexed_collection_address: str | None = Depends(get_indexed_collection_address),
    observability: Observability = Depends(get_api_observability),
) -> Dict[str, Any]:
    """Return how often each attribute value occurs in a collection."""

    key = require_valid_address(address)
    with unexpected_errors("attribute distribution"):
        collection = await asyncio.to_thread(store.find_collection, key)
        if collection is None:
            raise ApiError(status.HTTP_404_NOT_FOUND, ENTITY_NOT_FOUND)

        strategy = select_strategy(key, indexed_collection_address)
        with observability.timed("distribution.duration_ms", strategy=strategy.value) as timing:
            result = await compute_distribution(store, collection, strategy)

    observability.emit_event(
        "distribution.computed",
        address=key,
        strategy=strategy.value,
        entries=result.total,
        duration_ms=round(timing["elapsed_ms"], 2),
    )
    return {"total": result.total, "data": result.data}


@router.get("/filtered/{address}")
def get_filtered_tokens(
    address: str,
    request: Request,
    page: int = Query(1, ge=1),
    size: int | None = Query(None, ge=1),
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Return tokens carrying every attribute named in the query string."""

    with unexpected_errors("filtered token listing"):
        collection = require_collection(store, address)
        filters = _trait_filters(request)
        if not filters:
            raise ApiError(status.HTTP_400_BAD_REQUEST, MISSING_PARAMETERS)

        attributes = store.find_attributes(collection, filters)
        token_page = store.paginate_tokens(
            collection,
            page=page,
            size=size or settings.pagination.default_filtered_page_size,
            attribute_ids=[attribute.id for attribute in attributes],
        )
        data = _tokens_by_id(token_page.tokens, collection, settings)
    return {"total": token_page.total, "data": data}


@router.get("/{address}")
def get_tokens(
    address: str,
    page: int = Query(1, ge=1),
    size: int | None = Query(None, ge=1),
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Return a page of tokens plus the attribute distribution of that page."""

    with unexpected_errors("token listing"):
        collection = require_collection(store, address)
        token_page = store.paginate_tokens(
            collection,
            page=page,
            size=size or settings.pagination.default_token_page_size,
        )
        data = _tokens_by_id(token_page.tokens, collection, settings)
        distribution = count_attribute_values(token_page.tokens)
    return {"attributesDistribution": distribution, "total": len(data), "data": data}


@router.get("/{address}/{token_id}")
def get_token(
    address: str,
    token_id: str,
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_app_settings),
    chain_reader_factory: ChainReaderFactory = Depends(get_chain_reader_factory),
) -> Dict[str, Any]:
    """Return one token, reading its metadata on-chain when it is not indexed."""

    with unexpected_errors("token lookup"):
        collection = require_collection(store, address)
        token = store.find_token(collection, token_id)
        if token is not None:
            return {"data": present_token(token, collection, settings, include_timestamps=True)}

        LOGGER.info("Token %s of %s not indexed; reading live metadata", token_id, collection.address)
        with chain_reader_factory() as reader:
            document = reader.read_token_metadata(collection.address, token_id)
        data = present_live_token(token_id, document, collection, settings, now=datetime.now(timezone.utc))
    return {"data": data}


__all__ = ["router"]
