"""Random development fixtures for the NFT catalogue collections."""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

from google.cloud import firestore

LOGGER = logging.getLogger(__name__)

FIRESTORE_BATCH_LIMIT = 500

_ADJECTIVES = ["Rustic", "Sleek", "Golden", "Pixel", "Cosmic", "Lucky", "Ancient", "Neon", "Gentle", "Fierce"]
_NOUNS = ["Bunnies", "Apes", "Punks", "Owls", "Robots", "Dragons", "Cats", "Knights", "Gems", "Squids"]
_TRAITS = {
    "Background": ["Red", "Blue", "Green", "Yellow", "Purple"],
    "Eyes": ["Blue", "Brown", "Laser", "Sleepy", "Closed"],
    "Hat": ["Cap", "Crown", "Beanie", "None"],
    "Level": [str(level) for level in range(1, 21)],
}

Document = Tuple[str, Dict[str, Any]]


@dataclass(slots=True)
class FixtureSet:
    """Documents to write, grouped by target collection name."""

    collections: List[Document] = field(default_factory=list)
    metadata: List[Document] = field(default_factory=list)
    attributes: List[Document] = field(default_factory=list)
    tokens: List[Document] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "collections": len(self.collections),
            "metadata": len(self.metadata),
            "attributes": len(self.attributes),
            "tokens": len(self.tokens),
        }


def _doc_id() -> str:
    return uuid.uuid4().hex


def _random_address(rng: random.Random) -> str:
    return "0x" + "".join(rng.choice("0123456789abcdef") for _ in range(40))


def _past(rng: random.Random, now: datetime, max_days: int) -> datetime:
    return now - timedelta(days=rng.randint(0, max_days), seconds=rng.randint(0, 86_399))


def _sentence(rng: random.Random, words: int = 8) -> str:
    vocabulary = [word.lower() for word in _ADJECTIVES + _NOUNS]
    text = " ".join(rng.choice(vocabulary) for _ in range(words))
    return text.capitalize() + "."


def build_fixtures(
    *,
    collections: int = 5,
    metadata: int = 10,
    tokens: int = 20,
    attributes_per_collection: int = 8,
    seed: int | None = None,
    now: datetime | None = None,
) -> FixtureSet:
    """Generate random catalogue documents.

    Metadata and tokens are assigned to collections round-robin. Each token
    references metadata and attributes of its own collection only.
    """

    if collections < 1 and (metadata or tokens):
        raise ValueError("Metadata and tokens need at least one collection")

    rng = random.Random(seed)
    current = now or datetime.now(timezone.utc)
    fixtures = FixtureSet()

    for _ in range(collections):
        created_at = _past(rng, current, 365)
        fixtures.collections.append(
            (
                _doc_id(),
                {
                    "address": _random_address(rng),
                    "owner": _random_address(rng),
                    "name": f"{rng.choice(_ADJECTIVES)} {rng.choice(_NOUNS)}",
                    "description": _sentence(rng),
                    "symbol": "".join(rng.choice("ABCDEFGHIJKLMNOPQRSTUVWXYZ") for _ in range(3)),
                    "total_supply": rng.randint(1, 10_000),
                    "verified": rng.random() < 0.5,
                    "visible": rng.random() < 0.5,
                    "created_at": created_at,
                    "updated_at": max(created_at, _past(rng, current, 30)),
                },
            )
        )
    collection_ids = [doc_id for doc_id, _ in fixtures.collections]

    metadata_by_collection: Dict[str, List[str]] = {doc_id: [] for doc_id in collection_ids}
    for index in range(metadata):
        parent = collection_ids[index % len(collection_ids)]
        doc_id = _doc_id()
        metadata_by_collection[parent].append(doc_id)
        fixtures.metadata.append(
            (
                doc_id,
                {
                    "parent_collection": parent,
                    "name": f"{rng.choice(_ADJECTIVES)} {rng.choice(_NOUNS)} #{index + 1}",
                    "description": _sentence(rng),
                    "mp4": rng.random() < 0.5,
                    "webm": rng.random() < 0.5,
                    "gif": rng.random() < 0.5,
                    "created_at": _past(rng, current, 365),
                    "updated_at": _past(rng, current, 30),
                },
            )
        )

    catalogue = [(trait, value) for trait, values in _TRAITS.items() for value in values]
    attributes_by_collection: Dict[str, List[str]] = {doc_id: [] for doc_id in collection_ids}
    for parent in collection_ids:
        picked = rng.sample(catalogue, k=min(attributes_per_collection, len(catalogue)))
        for trait_type, value in picked:
            doc_id = _doc_id()
            attributes_by_collection[parent].append(doc_id)
            fixtures.attributes.append(
                (
                    doc_id,
                    {
                        "parent_collection": parent,
                        "trait_type": trait_type,
                        "value": value,
                        "display_type": "number" if trait_type == "Level" else None,
                    },
                )
            )

    next_token_id: Dict[str, int] = {doc_id: rng.randint(0, 50) for doc_id in collection_ids}
    for index in range(tokens):
        parent = collection_ids[index % len(collection_ids)]
        next_token_id[parent] += rng.randint(1, 5)
        owned_metadata = metadata_by_collection[parent]
        owned_attributes = attributes_by_collection[parent]
        attribute_ids = rng.sample(owned_attributes, k=rng.randint(0, len(owned_attributes))) if owned_attributes else []
        fixtures.tokens.append(
            (
                _doc_id(),
                {
                    "parent_collection": parent,
                    "token_id": str(next_token_id[parent]),
                    "metadata": rng.choice(owned_metadata) if owned_metadata else None,
                    "attributes": attribute_ids,
                    "burned": rng.random() < 0.2,
                    "created_at": _past(rng, current, 365),
                    "updated_at": _past(rng, current, 30),
                },
            )
        )

    return fixtures


def write_fixtures(
    client: firestore.Client,
    fixtures: FixtureSet,
    *,
    collection_names: Dict[str, str] | None = None,
    batch_size: int = 400,
) -> int:
    """Write ``fixtures`` with batched commits and return the number of documents written."""

    names = {
        "collections": "collections",
        "metadata": "metadata",
        "attributes": "attributes",
        "tokens": "tokens",
        **(collection_names or {}),
    }
    batch_size = max(1, min(batch_size, FIRESTORE_BATCH_LIMIT))
    batch = client.batch()
    pending = 0
    written = 0

    for group in ("collections", "metadata", "attributes", "tokens"):
        collection_ref = client.collection(names[group])
        for doc_id, payload in getattr(fixtures, group):
            batch.set(collection_ref.document(doc_id), payload)
            pending += 1
            if pending >= batch_size:
                batch.commit()
                written += pending
                batch = client.batch()
                pending = 0
        LOGGER.info("Queued %d %s documents", len(getattr(fixtures, group)), group)

    if pending:
        batch.commit()
        written += pending
    return written


__all__ = ["FixtureSet", "build_fixtures", "write_fixtures"]
