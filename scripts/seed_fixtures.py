#!/usr/bin/env python3
"""Seed the Firestore catalogue with random development fixtures.

Usage:
    python scripts/seed_fixtures.py [--collections 5] [--metadata 10] [--tokens 20]
                                    [--attributes-per-collection 8] [--seed 42] [--dry-run]

The target project and collection names come from tokenscope settings
(``TOKENSCOPE_STORAGE__FIRESTORE_PROJECT`` and friends) unless overridden
with ``--firestore-project``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from google.cloud import firestore

from tokenscope.fixtures import build_fixtures, write_fixtures
from tokenscope.observability import get_observability
from tokenscope.settings import get_settings

LOGGER = logging.getLogger("tokenscope.seed")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed Firestore with random NFT catalogue fixtures")
    parser.add_argument("--collections", type=int, default=5, help="Number of collections to create.")
    parser.add_argument("--metadata", type=int, default=10, help="Number of metadata documents to create.")
    parser.add_argument("--tokens", type=int, default=20, help="Number of tokens to create.")
    parser.add_argument(
        "--attributes-per-collection",
        type=int,
        default=8,
        help="Size of each collection's attribute catalogue.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible fixtures.")
    parser.add_argument("--firestore-project", help="Override the configured Firestore project.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=400,
        help="Number of documents to write per Firestore batch (<= 500).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Build fixtures and log counts without writing.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    settings = get_settings()
    fixtures = build_fixtures(
        collections=args.collections,
        metadata=args.metadata,
        tokens=args.tokens,
        attributes_per_collection=args.attributes_per_collection,
        seed=args.seed,
    )
    LOGGER.info("Built fixtures: %s", json.dumps(fixtures.counts()))
    if args.dry_run:
        return 0

    storage = settings.storage
    project = args.firestore_project or storage.firestore_project
    kwargs = {"project": project}
    if storage.firestore_database:
        kwargs["database"] = storage.firestore_database
    try:
        client = firestore.Client(**kwargs)
        written = write_fixtures(
            client,
            fixtures,
            collection_names={
                "collections": storage.collections_collection,
                "metadata": storage.metadata_collection,
                "attributes": storage.attributes_collection,
                "tokens": storage.tokens_collection,
            },
            batch_size=args.batch_size,
        )
    except Exception:
        LOGGER.exception("Seeding failed")
        return 1

    LOGGER.info("Seeding completed successfully (%d documents)", written)
    get_observability(component="seed", settings=settings).emit_event(
        "fixtures.seeded", project=project, documents=written, **fixtures.counts()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
