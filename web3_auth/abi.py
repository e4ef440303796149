"""
ABI Helpers — Selectors, Dynamic-String Encoding and Call Data
===============================================================

Builds the exact call data for

    getDigestHash(string username, string realm, string method,
                  string uri, string nonce) returns (bytes32)

  • Function selectors (first 4 bytes of keccak256(signature))
  • uint256 word encoding/decoding
  • Dynamic tuple of strings: head of offsets, then length + padded body
  • Companion decoder for the same layout

All layouts follow the Ethereum ABI specification:
  https://docs.soliditylang.org/en/latest/abi-spec.html

Terminology:
  • Word:   32 bytes = 256 bits = 64 hex characters
  • Head:   one offset word per dynamic argument, measured in bytes from
            the start of the arguments area (i.e. just after the selector)
  • Tail:   per argument, a length word followed by the UTF-8 bytes,
            right-padded with zeros to a whole number of words
"""

from typing import List, Sequence

from web3_auth.exceptions import EncodingPreconditionError
from web3_auth.keccak import keccak256

# ── ABI Word Constants ──────────────────────────────────────────────────

ABI_WORD_BYTES = 32          # 1 ABI word = 32 bytes
ABI_WORD_HEX = 64            # 32 bytes × 2 hex chars = 64 hex characters
SELECTOR_BYTES = 4
UINT256_LIMIT = 1 << 256

# ── Contract Interface ──────────────────────────────────────────────────
# Argument order must match the on-chain declaration; swapping two
# arguments still yields a well-formed call that hashes the wrong thing.

DIGEST_HASH_SIGNATURE = "getDigestHash(string,string,string,string,string)"
DIGEST_HASH_ARGUMENTS = ("username", "realm", "method", "uri", "nonce")


# ── Function Selectors ──────────────────────────────────────────────────

def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256(signature).

    The signature is used verbatim: canonical form, no spaces, no
    parameter names.  A non-canonical signature silently gives a
    different selector.
    """
    return keccak256(signature.encode("utf-8"))[:SELECTOR_BYTES]


def selector_hex(signature: str) -> str:
    """Selector as 0x-prefixed hex.

    >>> selector_hex("balanceOf(address)")
    '0x70a08231'
    """
    return "0x" + function_selector(signature).hex()


# ── Word Encoding ───────────────────────────────────────────────────────

def encode_uint256(value: int) -> str:
    """ABI-encode a uint256 as 32-byte hex (no 0x prefix).

    >>> encode_uint256(160)
    '00000000000000000000000000000000000000000000000000000000000000a0'
    """
    if value < 0 or value >= UINT256_LIMIT:
        raise EncodingPreconditionError(
            "Value does not fit in a uint256 word.", details={"value": value}
        )
    return format(value, f'0{ABI_WORD_HEX}x')


def decode_uint(hex_data: str, slot: int = 0) -> int:
    """Decode uint256 from ABI hex at 32-byte slot offset.

    Args:
        hex_data: Hex string (without 0x prefix).
        slot: Which 32-byte word to read (0-indexed).
    """
    start = slot * ABI_WORD_HEX
    word = hex_data[start:start + ABI_WORD_HEX]
    if len(word) != ABI_WORD_HEX:
        raise ValueError(f"ABI data too short for slot {slot}.")
    return int(word, 16)


def _word(value: int) -> bytes:
    return bytes.fromhex(encode_uint256(value))


# ── Dynamic Strings ─────────────────────────────────────────────────────

def padded_length(byte_length: int) -> int:
    """Bytes reserved for a string body: whole words, at least one.

    An empty string still occupies one zero word.
    """
    words = max(1, -(-byte_length // ABI_WORD_BYTES))
    return words * ABI_WORD_BYTES


def _utf8_bodies(strings: Sequence[str]) -> List[bytes]:
    bodies = []
    for index, value in enumerate(strings):
        if not isinstance(value, str):
            raise EncodingPreconditionError(
                f"Argument {index} is {type(value).__name__}, expected str.",
                details={"index": index},
            )
        body = value.encode("utf-8")
        if len(body) >= UINT256_LIMIT:
            raise EncodingPreconditionError(
                f"Argument {index} is too long for a uint256 length word.",
                details={"index": index},
            )
        bodies.append(body)
    return bodies


def _offsets(bodies: Sequence[bytes]) -> List[int]:
    offsets = []
    offset = ABI_WORD_BYTES * len(bodies)
    for body in bodies:
        offsets.append(offset)
        offset += ABI_WORD_BYTES + padded_length(len(body))
    return offsets


def head_offsets(strings: Sequence[str]) -> List[int]:
    """Head offsets for a tuple of strings, relative to the arguments area.

    offset[0] = 32·N; each next offset skips a length word and a padded body.
    """
    return _offsets(_utf8_bodies(strings))


def encode_dynamic_strings(strings: Sequence[str]) -> bytes:
    """ABI-encode N strings as a dynamic tuple (no selector).

    Layout:
        offset_0 … offset_{N-1}                 N head words
        len_0, body_0 (padded) … len_{N-1}, …   N tails

    Lengths are UTF-8 byte counts.  Total size is exactly
    32·N + Σ(32 + padded_length(len_i)).
    """
    bodies = _utf8_bodies(strings)
    parts = [_word(offset) for offset in _offsets(bodies)]
    for body in bodies:
        parts.append(_word(len(body)))
        parts.append(body.ljust(padded_length(len(body)), b"\x00"))
    return b"".join(parts)


def decode_dynamic_strings(data: bytes, count: int) -> List[str]:
    """Decode ``count`` strings encoded by encode_dynamic_strings.

    Raises ValueError when an offset or length points outside ``data``.
    """
    hex_data = bytes(data).hex()
    strings = []
    for slot in range(count):
        offset = decode_uint(hex_data, slot)
        if offset % ABI_WORD_BYTES or offset + ABI_WORD_BYTES > len(data):
            raise ValueError(f"Offset {offset} for argument {slot} is out of range.")
        length = decode_uint(hex_data, offset // ABI_WORD_BYTES)
        start = offset + ABI_WORD_BYTES
        if start + length > len(data):
            raise ValueError(f"Length {length} for argument {slot} overruns the data.")
        strings.append(bytes(data[start:start + length]).decode("utf-8"))
    return strings


# ── Call Data ───────────────────────────────────────────────────────────

def build_call(signature: str, args: Sequence[str]) -> bytes:
    """Selector followed by the dynamic-string encoding of ``args``."""
    return function_selector(signature) + encode_dynamic_strings(args)


def build_digest_hash_call(
    username: str, realm: str, method: str, uri: str, nonce: str
) -> bytes:
    """Call data for getDigestHash(username, realm, method, uri, nonce)."""
    return build_call(DIGEST_HASH_SIGNATURE, (username, realm, method, uri, nonce))
