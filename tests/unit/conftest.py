"""Shared fakes for the Firestore-backed catalogue."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from tokenscope.api.app import create_app
from tokenscope.api.deps import get_app_settings, get_catalog_store
from tokenscope.settings import Settings
from tokenscope.store import CatalogStore

COLLECTION_ADDRESS = "0x" + "ab" * 20
HIDDEN_ADDRESS = "0x" + "cd" * 20
UNKNOWN_ADDRESS = "0x" + "ef" * 20


@pytest.fixture
def anyio_backend():
    return "asyncio"


class _FakeSnapshot:
    def __init__(self, doc_id: str, data: Dict[str, Any] | None) -> None:
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self) -> Dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None


class _FakeDocumentReference:
    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection_name = collection
        self.id = doc_id
        self.path = f"{collection}/{doc_id}"


class _FakeAggregationQuery:
    def __init__(self, alias: str | None, value: int) -> None:
        self._alias = alias
        self._value = value

    def get(self) -> List[List[SimpleNamespace]]:
        return [[SimpleNamespace(alias=self._alias, value=self._value)]]


class _FakeQuery:
    def __init__(self, client: "FakeFirestoreClient", name: str, filters: Tuple = (), limit: int | None = None) -> None:
        self._client = client
        self._name = name
        self._filters = filters
        self._limit = limit

    def where(self, *, filter) -> "_FakeQuery":
        return _FakeQuery(self._client, self._name, self._filters + (filter,), self._limit)

    def limit(self, count: int) -> "_FakeQuery":
        return _FakeQuery(self._client, self._name, self._filters, count)

    def stream(self):
        self._client.queries.append((self._name, [(f.field_path, f.op_string, f.value) for f in self._filters]))
        if self._name in self._client.fail_collections:
            raise self._client.failure
        matched = []
        for doc_id, data in self._client.data.get(self._name, {}).items():
            if all(_matches(data, item) for item in self._filters):
                matched.append(_FakeSnapshot(doc_id, data))
        if self._limit is not None:
            matched = matched[: self._limit]
        return iter(matched)

    def count(self, alias: str | None = None) -> _FakeAggregationQuery:
        return _FakeAggregationQuery(alias, len(list(self.stream())))


class _FakeCollectionReference(_FakeQuery):
    def document(self, doc_id: str) -> _FakeDocumentReference:
        return _FakeDocumentReference(self._name, doc_id)


class _FakeBatch:
    def __init__(self, client: "FakeFirestoreClient") -> None:
        self._client = client
        self._operations: List[Tuple[str, Dict[str, Any]]] = []

    def set(self, doc_ref: _FakeDocumentReference, payload: Dict[str, Any]) -> None:
        self._operations.append((doc_ref.path, payload))

    def commit(self) -> None:
        for path, payload in self._operations:
            collection, doc_id = path.split("/", 1)
            self._client.data.setdefault(collection, {})[doc_id] = dict(payload)
        self._client.commits.append(list(self._operations))
        self._operations.clear()


class FakeFirestoreClient:
    """In-memory stand-in for ``google.cloud.firestore.Client``."""

    def __init__(self) -> None:
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.queries: List[Tuple[str, List[Tuple[str, str, Any]]]] = []
        self.commits: List[List[Tuple[str, Dict[str, Any]]]] = []
        self.fail_collections: set[str] = set()
        self.failure: Exception = RuntimeError("firestore unavailable")

    def add(self, collection: str, doc_id: str, payload: Dict[str, Any]) -> None:
        self.data.setdefault(collection, {})[doc_id] = payload

    def collection(self, name: str) -> _FakeCollectionReference:
        return _FakeCollectionReference(self, name)

    def get_all(self, refs):
        for ref in refs:
            yield _FakeSnapshot(ref.id, self.data.get(ref.collection_name, {}).get(ref.id))

    def batch(self) -> _FakeBatch:
        return _FakeBatch(self)


def _matches(data: Dict[str, Any], item) -> bool:
    value = data.get(item.field_path)
    if item.op_string == "==":
        return value == item.value
    if item.op_string == "array_contains":
        return isinstance(value, list) and item.value in value
    raise NotImplementedError(item.op_string)


def seed_catalogue(client: FakeFirestoreClient) -> None:
    """Populate ``client`` with one visible collection, one hidden collection and their tokens."""

    client.add(
        "collections",
        "col-1",
        {
            "address": COLLECTION_ADDRESS,
            "owner": "0x" + "12" * 20,
            "name": "Pancake Bunnies",
            "description": "Bunnies",
            "symbol": "PB",
            "total_supply": 4,
            "verified": True,
            "visible": True,
            "created_at": datetime(2023, 1, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        },
    )
    client.add(
        "collections",
        "col-2",
        {
            "address": HIDDEN_ADDRESS,
            "owner": "0x" + "34" * 20,
            "name": "Hidden Owls",
            "symbol": "HO",
            "total_supply": 0,
            "verified": False,
            "visible": False,
            "updated_at": datetime(2024, 6, 1, tzinfo=timezone.utc),
        },
    )
    attributes = {
        "attr-red": ("Background", "Red"),
        "attr-blue-eyes": ("Eyes", "Blue"),
        "attr-green-eyes": ("Eyes", "Green"),
        "attr-level-10": ("Level", "10"),
        "attr-level-2": ("Level", "2"),
    }
    for doc_id, (trait_type, value) in attributes.items():
        client.add(
            "attributes",
            doc_id,
            {"parent_collection": "col-1", "trait_type": trait_type, "value": value, "display_type": None},
        )
    client.add("attributes", "attr-other", {"parent_collection": "col-2", "trait_type": "Hat", "value": "Cap"})

    client.add(
        "metadata",
        "meta-1",
        {"parent_collection": "col-1", "name": "Bunny One", "description": "first", "mp4": True, "webm": False, "gif": True},
    )
    client.add("metadata", "meta-2", {"parent_collection": "col-1", "name": "Bunny Two", "description": "second"})

    tokens = [
        ("tok-1", "1", "meta-1", ["attr-red", "attr-blue-eyes"], False),
        ("tok-2", "2", "meta-2", ["attr-red"], False),
        ("tok-10", "10", None, ["attr-red", "attr-green-eyes", "attr-level-10"], True),
    ]
    for doc_id, token_id, metadata_id, attribute_ids, burned in tokens:
        client.add(
            "tokens",
            doc_id,
            {
                "parent_collection": "col-1",
                "token_id": token_id,
                "metadata": metadata_id,
                "attributes": attribute_ids,
                "burned": burned,
                "created_at": datetime(2023, 2, 1, tzinfo=timezone.utc),
                "updated_at": datetime(2023, 3, 1, tzinfo=timezone.utc),
            },
        )


@pytest.fixture
def firestore_client() -> FakeFirestoreClient:
    client = FakeFirestoreClient()
    seed_catalogue(client)
    return client


@pytest.fixture
def catalog_store(firestore_client: FakeFirestoreClient) -> CatalogStore:
    return CatalogStore(client=firestore_client)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        env="test",
        cdn={"base_uri": "https://cdn.test"},
        chain={"network": "bsc", "rpc_url": "https://rpc.test"},
        distribution={"indexed_collection_address": None},
    )


@pytest.fixture
def app(catalog_store: CatalogStore, test_settings: Settings):
    application = create_app(test_settings)
    application.dependency_overrides[get_catalog_store] = lambda: catalog_store
    application.dependency_overrides[get_app_settings] = lambda: test_settings
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
