"""
RPC Helpers — eth_call Payloads, Response Parsing and HTTP Transports
======================================================================

  • JSON-RPC 2.0 request body for a read-only eth_call
  • Response classification (result / contract error / malformed)
  • Transports: post a JSON body, return the raw response body

A transport is any callable ``(url, body, timeout) -> str`` that raises
TransportError on DNS, connect or timeout failures.  The verifier only
depends on that shape, so tests pass plain functions.

Wire format (request):
  {"jsonrpc":"2.0","method":"eth_call",
   "params":[{"to":"0x…","data":"0x…"},"latest"],"id":1}

Wire format (response):
  {"jsonrpc":"2.0","id":1,"result":"0x<64 hex>"}     success
  {"jsonrpc":"2.0","id":1,"error":{…}}                revert / node error
"""

import json
import re
from typing import Any, Dict, Optional

import httpx

from web3_auth.abi import ABI_WORD_HEX
from web3_auth.central_config import DEFAULT_TIMEOUT_SECONDS
from web3_auth.exceptions import ContractError, TransportError

JSON_HEADERS = {"Content-Type": "application/json"}

# Revert text the contract uses for unregistered accounts
USER_NOT_FOUND = "User not found"

# SIP digest responses are 16 bytes = 32 hex characters
DIGEST_HEX = 32

_RESULT_PATTERN = re.compile(r"^0x[0-9a-fA-F]{%d,}$" % ABI_WORD_HEX)


# ── Request ─────────────────────────────────────────────────────────────

def build_eth_call_payload(to: str, data_hex: str) -> Dict[str, Any]:
    """JSON-RPC 2.0 eth_call against the latest block.

    Args:
        to: Contract address (0x…)
        data_hex: ABI-encoded call data, hex without 0x prefix
    """
    return {
        "jsonrpc": "2.0",
        "method": "eth_call",
        "params": [{"to": to, "data": "0x" + data_hex}, "latest"],
        "id": 1,
    }


def serialize_payload(payload: Dict[str, Any]) -> str:
    """Compact JSON, keys in insertion order, non-ASCII escaped."""
    return json.dumps(payload, separators=(",", ":"))


# ── Response ────────────────────────────────────────────────────────────

def extract_call_result(body: str) -> str:
    """Return the 0x-prefixed ``result`` of an eth_call response body.

    The raw body is checked for an ``"error"`` member before parsing: the
    node always answers with single-line JSON, so a substring test is
    enough to spot a revert.

    Raises:
        ContractError: The node returned an error object.
        TransportError: The body is not JSON or has no usable result.
    """
    if not isinstance(body, str):
        raise TransportError("malformed response", {"body_type": type(body).__name__})

    if '"error"' in body:
        unknown_user = USER_NOT_FOUND in body
        raise ContractError(
            "User not found" if unknown_user else "Contract call returned an error",
            unknown_user=unknown_user,
        )

    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise TransportError("malformed response", {"reason": str(exc)}) from exc

    result = data.get("result") if isinstance(data, dict) else None
    if not isinstance(result, str) or not _RESULT_PATTERN.match(result):
        raise TransportError("malformed response", {"result": result})
    return result


def expected_digest(result_hex: str) -> str:
    """First 32 hex characters after the 0x prefix of a bytes32 result.

    Only the left 16 bytes of the word are compared against the SIP
    digest; the right half is ignored.
    """
    return result_hex[2:2 + DIGEST_HEX]


# ── Transports ──────────────────────────────────────────────────────────

def _post(client: httpx.Client, url: str, body: str, timeout: float) -> str:
    try:
        response = client.post(url, content=body, headers=JSON_HEADERS, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise TransportError(f"RPC request timed out after {timeout}s", {"url": url}) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportError(f"RPC request failed: {exc}", {"url": url}) from exc
    return response.text


def post_json(url: str, body: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """POST ``body`` once with a short-lived client and return the raw reply."""
    with httpx.Client() as client:
        return _post(client, url, body, timeout)


class HttpJsonRpcTransport:
    """Long-lived transport around one httpx.Client.

    Open it once when the host starts, share it between threads, and
    close it after the last verification attempt has finished.
    """

    def __init__(self, headers: Optional[Dict[str, str]] = None) -> None:
        self._client = httpx.Client(headers=headers)

    def __call__(self, url: str, body: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
        return _post(self._client, url, body, timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpJsonRpcTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


async def post_json_async(url: str, body: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Async counterpart of post_json, for hosts running an event loop."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        try:
            response = await client.post(url, content=body, headers=JSON_HEADERS)
        except httpx.TimeoutException as exc:
            raise TransportError(f"RPC request timed out after {timeout}s", {"url": url}) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"RPC request failed: {exc}", {"url": url}) from exc
        return response.text
