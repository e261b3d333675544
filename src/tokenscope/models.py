"""Domain records materialized from the document store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional


@dataclass(slots=True)
class Collection:
    """An NFT contract and its display metadata."""

    id: str
    address: str
    owner: str
    name: str
    symbol: str
    description: Optional[str] = None
    total_supply: int = 0
    verified: bool = False
    visible: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Collection":
        return cls(
            id=doc_id,
            address=str(data.get("address") or "").lower(),
            owner=str(data.get("owner") or "").lower(),
            name=data.get("name") or "",
            symbol=data.get("symbol") or "",
            description=data.get("description"),
            total_supply=int(data.get("total_supply") or 0),
            verified=bool(data.get("verified", False)),
            visible=bool(data.get("visible", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(slots=True, frozen=True)
class Attribute:
    """A ``(trait_type, value)`` pair shared by tokens of one collection."""

    id: str
    parent_collection: str
    trait_type: str
    value: str
    display_type: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Attribute":
        return cls(
            id=doc_id,
            parent_collection=str(data.get("parent_collection") or ""),
            trait_type=str(data.get("trait_type") or ""),
            value=str(data.get("value") if data.get("value") is not None else ""),
            display_type=data.get("display_type"),
        )


@dataclass(slots=True)
class Metadata:
    """Display metadata and media flags for a token."""

    id: str
    parent_collection: str
    name: str
    description: Optional[str] = None
    mp4: bool = False
    webm: bool = False
    gif: bool = False

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Metadata":
        return cls(
            id=doc_id,
            parent_collection=str(data.get("parent_collection") or ""),
            name=data.get("name") or "",
            description=data.get("description"),
            mp4=bool(data.get("mp4", False)),
            webm=bool(data.get("webm", False)),
            gif=bool(data.get("gif", False)),
        )


@dataclass(slots=True)
class Token:
    """A single NFT with its references resolved where the query populated them."""

    id: str
    parent_collection: str
    token_id: str
    metadata_id: Optional[str] = None
    attribute_ids: List[str] = field(default_factory=list)
    burned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: Optional[Metadata] = None
    attributes: List[Attribute] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Token":
        return cls(
            id=doc_id,
            parent_collection=str(data.get("parent_collection") or ""),
            token_id=str(data.get("token_id") or ""),
            metadata_id=data.get("metadata"),
            attribute_ids=[str(value) for value in data.get("attributes") or []],
            burned=bool(data.get("burned", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(slots=True)
class TokenPage:
    """A slice of a token listing along with the size of the full listing."""

    tokens: List[Token]
    total: int
    page: int
    size: int


AttributeDistribution = Dict[str, Dict[str, int]]


__all__ = ["Attribute", "AttributeDistribution", "Collection", "Metadata", "Token", "TokenPage"]
