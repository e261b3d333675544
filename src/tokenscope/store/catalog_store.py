"""Read-only Firestore queries over collections, tokens, metadata and attributes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from tokenscope.models import Attribute, Collection, Metadata, Token, TokenPage
from tokenscope.util import numeric_sort_key

LOGGER = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CatalogStoreError(RuntimeError):
    """Raised when a Firestore read fails."""


class CatalogStore:
    """Query helper over the NFT catalogue collections in Firestore.

    Firestore has no collation support, so orderings that depend on numeric
    comparison of strings (token ids, attribute values) are applied in Python
    after the documents are fetched.
    """

    def __init__(
        self,
        *,
        project: str | None = None,
        database: str | None = None,
        client: Optional[firestore.Client] = None,
        collections_collection: str = "collections",
        tokens_collection: str = "tokens",
        metadata_collection: str = "metadata",
        attributes_collection: str = "attributes",
    ) -> None:
        if client is None:
            kwargs = {"project": project}
            if database:
                kwargs["database"] = database
            client = firestore.Client(**kwargs)
        self._client = client
        self._collections = client.collection(collections_collection)
        self._tokens = client.collection(tokens_collection)
        self._metadata = client.collection(metadata_collection)
        self._attributes = client.collection(attributes_collection)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except google_exceptions.GoogleAPICallError as exc:
            LOGGER.exception("Firestore %s failed", operation)
            raise CatalogStoreError(f"Firestore {operation} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def find_collection(self, address: str, *, visible_only: bool = False) -> Collection | None:
        """Return the collection stored under ``address`` (matched lower-cased)."""

        query = self._collections.where(filter=FieldFilter("address", "==", address.lower()))
        if visible_only:
            query = query.where(filter=FieldFilter("visible", "==", True))
        with self._guard("collection lookup"):
            for snapshot in query.limit(1).stream():
                return Collection.from_document(snapshot.id, snapshot.to_dict() or {})
        return None

    def list_visible_collections(self) -> List[Collection]:
        """Return visible collections, most recently updated first."""

        query = self._collections.where(filter=FieldFilter("visible", "==", True))
        with self._guard("collection listing"):
            collections = [Collection.from_document(snap.id, snap.to_dict() or {}) for snap in query.stream()]
        collections.sort(key=lambda item: _as_utc(item.updated_at), reverse=True)
        return collections

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def list_attributes(self, collection: Collection) -> List[Attribute]:
        """Return the attribute catalogue of ``collection`` in storage order."""

        query = self._attributes.where(filter=FieldFilter("parent_collection", "==", collection.id))
        with self._guard("attribute listing"):
            return [Attribute.from_document(snap.id, snap.to_dict() or {}) for snap in query.stream()]

    def list_attributes_by_trait(self, collection: Collection) -> List[Attribute]:
        """Return the catalogue sorted by trait type, then value."""

        attributes = self.list_attributes(collection)
        attributes.sort(key=lambda item: (item.trait_type, item.value))
        return attributes

    def list_attributes_by_value(self, collection: Collection) -> List[Attribute]:
        """Return the catalogue sorted by value using numeric-aware ordering."""

        attributes = self.list_attributes(collection)
        attributes.sort(key=lambda item: numeric_sort_key(item.value))
        return attributes

    def find_attributes(self, collection: Collection, pairs: Sequence[Tuple[str, str]]) -> List[Attribute]:
        """Return catalogue entries matching any of the ``(trait_type, value)`` pairs."""

        wanted = {(trait_type, str(value)) for trait_type, value in pairs}
        if not wanted:
            return []
        return [attr for attr in self.list_attributes(collection) if (attr.trait_type, attr.value) in wanted]

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def list_tokens(self, collection: Collection, *, populate_metadata: bool = False) -> List[Token]:
        """Return every token of ``collection`` with attributes resolved."""

        query = self._tokens.where(filter=FieldFilter("parent_collection", "==", collection.id))
        with self._guard("token listing"):
            tokens = [Token.from_document(snap.id, snap.to_dict() or {}) for snap in query.stream()]
        tokens.sort(key=lambda item: numeric_sort_key(item.token_id))
        self._populate(collection, tokens, populate_metadata=populate_metadata)
        return tokens

    def paginate_tokens(
        self,
        collection: Collection,
        *,
        page: int,
        size: int,
        attribute_ids: Sequence[str] | None = None,
    ) -> TokenPage:
        """Return one page of tokens ordered by numeric token id.

        When ``attribute_ids`` is given, only tokens carrying every one of the
        ids are listed; an empty sequence matches nothing.
        """

        page = max(page, 1)
        size = max(size, 1)
        query = self._tokens.where(filter=FieldFilter("parent_collection", "==", collection.id))
        required: set[str] | None = None
        if attribute_ids is not None:
            required = set(attribute_ids)
            if not required:
                return TokenPage(tokens=[], total=0, page=page, size=size)
            query = query.where(filter=FieldFilter("attributes", "array_contains", next(iter(sorted(required)))))

        with self._guard("token page"):
            tokens = [Token.from_document(snap.id, snap.to_dict() or {}) for snap in query.stream()]
        if required is not None:
            tokens = [token for token in tokens if required.issubset(token.attribute_ids)]
        tokens.sort(key=lambda item: numeric_sort_key(item.token_id))

        start = (page - 1) * size
        selected = tokens[start : start + size]
        self._populate(collection, selected, populate_metadata=True)
        return TokenPage(tokens=selected, total=len(tokens), page=page, size=size)

    def find_token(self, collection: Collection, token_id: str) -> Token | None:
        """Return a single populated token, or ``None`` when it is not indexed."""

        query = (
            self._tokens.where(filter=FieldFilter("parent_collection", "==", collection.id))
            .where(filter=FieldFilter("token_id", "==", token_id.lower()))
            .limit(1)
        )
        with self._guard("token lookup"):
            snapshots = list(query.stream())
        if not snapshots:
            return None
        token = Token.from_document(snapshots[0].id, snapshots[0].to_dict() or {})
        self._populate(collection, [token], populate_metadata=True)
        return token

    def count_unburned_tokens_with_attribute(self, collection: Collection, attribute: Attribute) -> int:
        """Count non-burned tokens of ``collection`` that reference ``attribute``."""

        query = (
            self._tokens.where(filter=FieldFilter("parent_collection", "==", collection.id))
            .where(filter=FieldFilter("attributes", "array_contains", attribute.id))
            .where(filter=FieldFilter("burned", "==", False))
        )
        with self._guard("token count"):
            results = query.count(alias="total").get()
        for row in results:
            for aggregate in row:
                return int(aggregate.value or 0)
        return 0

    # ------------------------------------------------------------------
    # Population helpers
    # ------------------------------------------------------------------

    def _populate(self, collection: Collection, tokens: List[Token], *, populate_metadata: bool) -> None:
        if not tokens:
            return
        catalogue = {attr.id: attr for attr in self.list_attributes(collection)}
        for token in tokens:
            token.attributes = [catalogue[attr_id] for attr_id in token.attribute_ids if attr_id in catalogue]
        if populate_metadata:
            metadata = self._get_metadata({token.metadata_id for token in tokens if token.metadata_id})
            for token in tokens:
                if token.metadata_id:
                    token.metadata = metadata.get(token.metadata_id)

    def _get_metadata(self, metadata_ids: Iterable[str]) -> Dict[str, Metadata]:
        refs = [self._metadata.document(metadata_id) for metadata_id in sorted(metadata_ids)]
        if not refs:
            return {}
        records: Dict[str, Metadata] = {}
        with self._guard("metadata lookup"):
            for snapshot in self._client.get_all(refs):
                if snapshot.exists:
                    records[snapshot.id] = Metadata.from_document(snapshot.id, snapshot.to_dict() or {})
        return records


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = ["CatalogStore", "CatalogStoreError"]
