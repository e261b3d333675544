"""Tests for the collection API router."""

from __future__ import annotations

from eth_utils import to_checksum_address

COLLECTION_ADDRESS = "0x" + "ab" * 20
HIDDEN_ADDRESS = "0x" + "cd" * 20
UNKNOWN_ADDRESS = "0x" + "ef" * 20


def test_list_collections_returns_visible_only(client):
    response = client.get("/collections")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    collection = body["data"][0]
    checksummed = to_checksum_address(COLLECTION_ADDRESS)
    assert collection["address"] == checksummed
    assert collection["owner"] == to_checksum_address("0x" + "12" * 20)
    assert collection["name"] == "Pancake Bunnies"
    assert collection["totalSupply"] == 4
    assert collection["avatar"] == f"https://cdn.test/bsc/{checksummed}/avatar.png"
    assert collection["banner"] == {
        "large": f"https://cdn.test/bsc/{checksummed}/banner-lg.png",
        "small": f"https://cdn.test/bsc/{checksummed}/banner-sm.png",
    }
    assert "attributes" not in collection


def test_get_collection_includes_sorted_attributes(client):
    response = client.get(f"/collections/{to_checksum_address(COLLECTION_ADDRESS)}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [(item["traitType"], item["value"]) for item in data["attributes"]] == [
        ("Background", "Red"),
        ("Eyes", "Blue"),
        ("Eyes", "Green"),
        ("Level", "10"),
        ("Level", "2"),
    ]
    assert data["createdAt"].startswith("2023-01-01")


def test_get_collection_hides_invisible_and_unknown(client):
    for address in (HIDDEN_ADDRESS, UNKNOWN_ADDRESS):
        response = client.get(f"/collections/{address}")
        assert response.status_code == 404
        assert response.json() == {"error": {"message": "Entity not found."}}


def test_get_collection_rejects_bad_address(client):
    response = client.get("/collections/0x1234")

    assert response.status_code == 400
    assert response.json() == {"error": {"message": "Invalid address."}}


def test_collections_storage_failure_returns_unknown_error(client, firestore_client):
    firestore_client.fail_collections.add("collections")

    response = client.get("/collections")

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Unknown error."}}
