"""Live reads of ERC-721 token metadata for tokens that are not indexed yet."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict
from urllib.parse import unquote

import httpx
from eth_abi import decode, encode
from eth_utils import decode_hex, function_signature_to_4byte_selector, to_checksum_address

LOGGER = logging.getLogger(__name__)

TOKEN_URI_SELECTOR = function_signature_to_4byte_selector("tokenURI(uint256)")
_JSON_DATA_PREFIX = "data:application/json"


class ChainReadError(RuntimeError):
    """Raised when the RPC node or the metadata host cannot serve a token."""


class ChainReader:
    """Resolve ``tokenURI`` over JSON-RPC and fetch the metadata it points at."""

    def __init__(
        self,
        *,
        rpc_url: str,
        ipfs_gateway: str = "https://ipfs.io",
        timeout: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not rpc_url:
            raise ValueError("ChainReader requires an RPC URL")
        self._rpc_url = rpc_url
        self._ipfs_gateway = ipfs_gateway.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> "ChainReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def token_uri(self, contract_address: str, token_id: str) -> str:
        """Call ``tokenURI(token_id)`` on ``contract_address`` at the latest block."""

        try:
            numeric_id = int(token_id)
        except (TypeError, ValueError) as exc:
            raise ChainReadError(f"Token id {token_id!r} is not a uint256") from exc

        call_data = TOKEN_URI_SELECTOR + encode(["uint256"], [numeric_id])
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": to_checksum_address(contract_address), "data": "0x" + call_data.hex()}, "latest"],
        }
        try:
            response = self._client.post(self._rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ChainReadError(f"eth_call tokenURI failed: {exc}") from exc

        if body.get("error"):
            message = body["error"].get("message") if isinstance(body["error"], dict) else body["error"]
            raise ChainReadError(f"eth_call tokenURI reverted: {message}")
        try:
            (uri,) = decode(["string"], decode_hex(body.get("result") or "0x"))
        except Exception as exc:
            raise ChainReadError(f"Could not decode tokenURI result: {exc}") from exc
        return uri

    def resolve_uri(self, uri: str) -> str:
        """Map ``ipfs://`` URIs onto the configured HTTP gateway."""

        if uri.startswith("ipfs://"):
            path = uri[len("ipfs://") :]
            if path.startswith("ipfs/"):
                path = path[len("ipfs/") :]
            return f"{self._ipfs_gateway}/ipfs/{path}"
        return uri

    def fetch_metadata(self, uri: str) -> Dict[str, Any]:
        """Return the JSON metadata document referenced by ``uri``."""

        if uri.startswith(_JSON_DATA_PREFIX):
            return _decode_data_uri(uri)
        url = self.resolve_uri(uri)
        try:
            response = self._client.get(url)
            response.raise_for_status()
            document = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ChainReadError(f"Metadata fetch from {url} failed: {exc}") from exc
        if not isinstance(document, dict):
            raise ChainReadError(f"Metadata at {url} is not a JSON object")
        return document

    def read_token_metadata(self, contract_address: str, token_id: str) -> Dict[str, Any]:
        uri = self.token_uri(contract_address, token_id)
        LOGGER.info("Fetching live metadata for %s #%s from %s", contract_address, token_id, uri)
        return self.fetch_metadata(uri)


def _decode_data_uri(uri: str) -> Dict[str, Any]:
    header, _, data = uri.partition(",")
    try:
        if header.endswith(";base64"):
            raw = base64.b64decode(data).decode("utf-8")
        else:
            raw = unquote(data)
        document = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ChainReadError(f"Invalid inline metadata: {exc}") from exc
    if not isinstance(document, dict):
        raise ChainReadError("Inline metadata is not a JSON object")
    return document


__all__ = ["ChainReadError", "ChainReader", "TOKEN_URI_SELECTOR"]
