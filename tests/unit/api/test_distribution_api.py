"""Tests for GET /tokens/distribution/{address}."""

from __future__ import annotations

from eth_utils import to_checksum_address
from fastapi.testclient import TestClient

from tokenscope.api.deps import get_catalog_store, get_indexed_collection_address
from tokenscope.settings import Settings

COLLECTION_ADDRESS = "0x" + "ab" * 20
UNKNOWN_ADDRESS = "0x" + "ef" * 20


def test_generic_distribution(client):
    response = client.get(f"/tokens/distribution/{to_checksum_address(COLLECTION_ADDRESS)}")

    assert response.status_code == 200
    assert response.json() == {
        "total": 3,
        "data": {
            "Background": {"Red": 3},
            "Eyes": {"Blue": 1, "Green": 1},
            "Level": {"10": 1},
        },
    }


def test_indexed_collection_counts_per_attribute(app, client):
    app.dependency_overrides[get_indexed_collection_address] = lambda: COLLECTION_ADDRESS

    response = client.get(f"/tokens/distribution/{COLLECTION_ADDRESS}")

    assert response.status_code == 200
    assert response.json() == {"total": 5, "data": {"0": 0, "1": 0, "2": 1, "3": 0, "4": 2}}


def test_indexed_override_matches_any_case(app, client):
    app.dependency_overrides[get_indexed_collection_address] = lambda: to_checksum_address(COLLECTION_ADDRESS)

    response = client.get(f"/tokens/distribution/{COLLECTION_ADDRESS.upper().replace('0X', '0x')}")

    assert response.json()["data"]["4"] == 2


def test_invalid_addresses_are_rejected(client):
    for address in ("not-an-address", "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAeD"):
        response = client.get(f"/tokens/distribution/{address}")
        assert response.status_code == 400
        assert response.json() == {"error": {"message": "Invalid address."}}


def test_unknown_collection_returns_not_found(client):
    response = client.get(f"/tokens/distribution/{UNKNOWN_ADDRESS}")

    assert response.status_code == 404
    assert response.json() == {"error": {"message": "Entity not found."}}


def test_storage_failure_returns_unknown_error(client, firestore_client):
    firestore_client.fail_collections.add("tokens")

    response = client.get(f"/tokens/distribution/{COLLECTION_ADDRESS}")

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Unknown error."}}


def test_preflight_and_cors_headers(client):
    preflight = client.options(f"/tokens/distribution/{COLLECTION_ADDRESS}")

    assert preflight.status_code == 204
    assert preflight.headers["access-control-allow-origin"] == "*"
    assert preflight.headers["access-control-allow-methods"] == "GET,OPTIONS"

    response = client.get(f"/tokens/distribution/{UNKNOWN_ADDRESS}")
    assert response.headers["access-control-allow-origin"] == "*"


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "env": "test"}


def test_dependency_failure_keeps_cors_header_and_envelope(app):
    def _broken_store():
        raise RuntimeError("no Firestore credentials")

    app.dependency_overrides[get_catalog_store] = _broken_store
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get(f"/tokens/distribution/{COLLECTION_ADDRESS}")

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Unknown error."}}
    assert response.headers["access-control-allow-origin"] == "*"


def test_indexed_address_without_prefix_selects_per_attribute(app, client):
    configured = Settings(env="test", distribution={"indexed_collection_address": "AB" * 20})
    app.dependency_overrides[get_indexed_collection_address] = lambda: configured.indexed_collection_address

    response = client.get(f"/tokens/distribution/{COLLECTION_ADDRESS}")

    assert response.json() == {"total": 5, "data": {"0": 0, "1": 0, "2": 1, "3": 0, "4": 2}}
