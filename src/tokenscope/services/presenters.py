"""Shape store records into the camelCase JSON payloads served by the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from tokenscope.models import Attribute, Collection, Token
from tokenscope.services.addresses import display_address
from tokenscope.settings import Settings
from tokenscope.util import param_case


def cdn_asset(settings: Settings, address: str, kind: str) -> str:
    """Return the CDN URL of a collection-level image such as ``avatar``."""

    return f"{settings.cdn.base_uri}/{settings.chain.network}/{display_address(address)}/{kind}.png"


def media_urls(
    settings: Settings,
    address: str,
    name: str | None,
    *,
    mp4: bool = False,
    webm: bool = False,
    gif: bool = False,
) -> Dict[str, str | None]:
    """Return the image block of a token; optional variants are ``None`` when absent."""

    base = f"{settings.cdn.base_uri}/{settings.chain.network}/{display_address(address)}/{param_case(name)}"
    return {
        "original": f"{base}.png",
        "thumbnail": f"{base}-1000.png",
        "mp4": f"{base}.mp4" if mp4 else None,
        "webm": f"{base}.webm" if webm else None,
        "gif": f"{base}.gif" if gif else None,
    }


def present_attribute(attribute: Attribute) -> Dict[str, Any]:
    return {
        "traitType": attribute.trait_type,
        "value": attribute.value,
        "displayType": attribute.display_type,
    }


def present_collection(
    collection: Collection,
    settings: Settings,
    *,
    attributes: Iterable[Attribute] | None = None,
) -> Dict[str, Any]:
    """Serialize a collection; ``attributes`` adds the catalogue for detail views."""

    payload: Dict[str, Any] = {
        "address": display_address(collection.address),
        "owner": display_address(collection.owner),
        "name": collection.name,
        "description": collection.description,
        "symbol": collection.symbol,
        "totalSupply": collection.total_supply,
        "verified": collection.verified,
        "createdAt": collection.created_at,
        "updatedAt": collection.updated_at,
        "avatar": cdn_asset(settings, collection.address, "avatar"),
        "banner": {
            "large": cdn_asset(settings, collection.address, "banner-lg"),
            "small": cdn_asset(settings, collection.address, "banner-sm"),
        },
    }
    if attributes is not None:
        payload["attributes"] = [present_attribute(attribute) for attribute in attributes]
    return payload


def present_token(
    token: Token,
    collection: Collection,
    settings: Settings,
    *,
    include_timestamps: bool = False,
) -> Dict[str, Any]:
    """Serialize an indexed token with its metadata and attributes."""

    metadata = token.metadata
    name = metadata.name if metadata else None
    payload: Dict[str, Any] = {
        "tokenId": token.token_id,
        "name": name,
        "description": metadata.description if metadata else None,
        "image": media_urls(
            settings,
            collection.address,
            name,
            mp4=bool(metadata and metadata.mp4),
            webm=bool(metadata and metadata.webm),
            gif=bool(metadata and metadata.gif),
        ),
    }
    if include_timestamps:
        payload["createdAt"] = token.created_at
        payload["updatedAt"] = token.updated_at
    payload["attributes"] = [present_attribute(attribute) for attribute in token.attributes]
    payload["collection"] = {"name": collection.name}
    return payload


def present_live_token(
    token_id: str,
    document: Mapping[str, Any],
    collection: Collection,
    settings: Settings,
    *,
    now: datetime,
) -> Dict[str, Any]:
    """Serialize a token read from its on-chain ``tokenURI`` metadata document."""

    name = document.get("name")
    return {
        "tokenId": token_id,
        "name": name,
        "description": document.get("description"),
        "image": media_urls(
            settings,
            collection.address,
            name,
            mp4=bool(document.get("mp4_url")),
            webm=bool(document.get("webm_url")),
            gif=bool(document.get("gif_url")),
        ),
        "createdAt": now,
        "updatedAt": now,
        "attributes": _live_attributes(document.get("attributes")),
        "collection": {"name": collection.name},
    }


def _live_attributes(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, Mapping):
        return [{"traitType": key, "value": value, "displayType": None} for key, value in raw.items()]
    if isinstance(raw, list):
        attributes = []
        for item in raw:
            if not isinstance(item, Mapping):
                continue
            attributes.append(
                {
                    "traitType": item.get("trait_type"),
                    "value": item.get("value"),
                    "displayType": item.get("display_type"),
                }
            )
        return attributes
    return []


__all__ = [
    "cdn_asset",
    "media_urls",
    "present_attribute",
    "present_collection",
    "present_live_token",
    "present_token",
]
