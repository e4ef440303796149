"""
Web3 SIP Auth — Command Implementations
========================================

All CLI command handlers live here, keeping run.py as a thin
argparse dispatcher.  Each public function corresponds to a
subcommand (info, selftest, selector, encode, verify) and returns
the process exit code.
"""

from __future__ import annotations

from typing import Optional

from web3_auth.abi import (
    DIGEST_HASH_SIGNATURE,
    build_digest_hash_call,
    head_offsets,
    selector_hex,
)
from web3_auth.central_config import PROJECT_NAME, PROJECT_VERSION, Web3AuthConfig
from web3_auth.digest_header import DEFAULT_METHOD, parse_authorization_header
from web3_auth.exceptions import Web3AuthError
from web3_auth.keccak import keccak256_hex
from web3_auth.verifier import DigestCredentials, RpcVerifier

# Published Keccak-256 digests (Ethereum keccak256, not NIST SHA3-256)
KNOWN_VECTORS = (
    (b"", "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"),
    (b"abc", "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"),
    (
        DIGEST_HASH_SIGNATURE.encode(),
        "10db70b503ea2811af0bd0a49f2947ba35c8f333175914a78827d29d318522dd",
    ),
)
DIGEST_HASH_SELECTOR = "0x10db70b5"


# ── Commands ─────────────────────────────────────────────────────────────


def cmd_info(config: Web3AuthConfig) -> int:
    """Display version, endpoint and contract interface."""
    print(f"\n🔐 {PROJECT_NAME} v{PROJECT_VERSION}")
    print("=" * 55)
    print(f"🌐 RPC URL    : {config.rpc_url}")
    print(f"📜 Contract   : {config.contract_address}")
    print(f"⏱️  Timeout    : {config.timeout_seconds}s")
    print(f"📏 Max field  : {config.max_field_bytes} bytes")
    print(f"🔧 Function   : {DIGEST_HASH_SIGNATURE}")
    print(f"🔑 Selector   : {selector_hex(DIGEST_HASH_SIGNATURE)}")
    print()
    return 0


def cmd_selftest() -> int:
    """Check Keccak-256 vectors and the getDigestHash selector offline."""
    print(f"\n🧪 {PROJECT_NAME} self-test")
    print("=" * 55)
    failed = 0

    for data, expected in KNOWN_VECTORS:
        actual = keccak256_hex(data)
        label = data.decode() or "<empty>"
        if actual == expected:
            print(f"  ✅ keccak256({label})")
        else:
            print(f"  ❌ keccak256({label})")
            print(f"     expected: {expected}")
            print(f"     actual:   {actual}")
            failed += 1

    selector = selector_hex(DIGEST_HASH_SIGNATURE)
    if selector == DIGEST_HASH_SELECTOR:
        print(f"  ✅ selector {selector}")
    else:
        print(f"  ❌ selector {selector} (expected {DIGEST_HASH_SELECTOR})")
        failed += 1

    sample = ("testuser", "testrealm", DEFAULT_METHOD, "/", "testnonce")
    offsets = head_offsets(sample)
    call_data = build_digest_hash_call(*sample).hex()
    print(f"  📦 offsets  : {', '.join(hex(o) for o in offsets)}")
    print(f"  📦 call data: 0x{call_data[:100]}… ({len(call_data) // 2} bytes)")

    print()
    if failed:
        print(f"❌ {failed} check(s) FAILED")
        return 1
    print("✅ All checks passed")
    return 0


def cmd_selector(signature: str) -> int:
    print(selector_hex(signature))
    return 0


def cmd_encode(username: str, realm: str, method: str, uri: str, nonce: str) -> int:
    """Print the getDigestHash call data for the given fields."""
    try:
        call_data = build_digest_hash_call(username, realm, method, uri, nonce)
    except Web3AuthError as exc:
        print(f"❌ {exc}")
        return 1
    print("0x" + call_data.hex())
    return 0


def cmd_verify(
    config: Web3AuthConfig,
    header: Optional[str] = None,
    method: str = DEFAULT_METHOD,
    url_decoded: bool = False,
    username: Optional[str] = None,
    realm: Optional[str] = None,
    uri: Optional[str] = None,
    nonce: Optional[str] = None,
    response: Optional[str] = None,
) -> int:
    """Verify one set of digest credentials against the contract.

    Credentials come from a raw Authorization header or from the
    individual fields.  Exit code 0 only when authorized.
    """
    try:
        if header:
            credentials = parse_authorization_header(header, method, url_decoded=url_decoded)
        else:
            missing = [
                name
                for name, value in (
                    ("username", username),
                    ("realm", realm),
                    ("uri", uri),
                    ("nonce", nonce),
                    ("response", response),
                )
                if value is None
            ]
            if missing:
                print(f"❌ Missing: {', '.join('--' + m for m in missing)} (or pass --header)")
                return 2
            credentials = DigestCredentials(
                username=username,
                realm=realm,
                method=method,
                uri=uri,
                nonce=nonce,
                response=response,
            )
    except Web3AuthError as exc:
        print(f"❌ {exc}")
        return 2

    print(f"\n🔐 Verifying {credentials.username}@{credentials.realm} ({credentials.method})")
    print(f"🌐 {config.rpc_url} → {config.contract_address}")
    with RpcVerifier(config) as verifier:
        decision = verifier.verify(credentials)

    if decision.is_authorized:
        print("✅ Authorized")
        return 0
    print(f"❌ {decision}")
    return 1
