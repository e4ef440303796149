"""
Keccak-256 — Ethereum's hash function
======================================

Pure-Python Keccak sponge used to derive contract function selectors.

This is the original Keccak submission padding (domain byte 0x01) that
Ethereum adopted before NIST finalised SHA3-256 (domain byte 0x06).
hashlib.sha3_256 therefore produces DIFFERENT digests and cannot be used.

Parameters (Keccak-256):
  • State:     1600 bits = 25 lanes × 64 bits
  • Rate:      1088 bits = 136 bytes absorbed per permutation
  • Capacity:  512 bits
  • Rounds:    24 (Keccak-f[1600])
  • Output:    256 bits = 32 bytes

Reference: https://keccak.team/keccak_specs_summary.html
"""

from typing import List, Union

RATE_BYTES = 136             # (1600 - 2 × 256) / 8
DIGEST_BYTES = 32
LANE_BYTES = 8
MASK64 = (1 << 64) - 1

ROUND_CONSTANTS = (
    0x0000000000000001, 0x0000000000008082, 0x800000000000808A, 0x8000000080008000,
    0x000000000000808B, 0x0000000080000001, 0x8000000080008081, 0x8000000000008009,
    0x000000000000008A, 0x0000000000000088, 0x0000000080008009, 0x000000008000000A,
    0x000000008000808B, 0x800000000000008B, 0x8000000000008089, 0x8000000000008003,
    0x8000000000008002, 0x8000000000000080, 0x000000000000800A, 0x800000008000000A,
    0x8000000080008081, 0x8000000000008080, 0x0000000080000001, 0x8000000080008008,
)

# Rho and Pi fused into one walk starting at lane 1: step i moves the
# carried lane into PI_LANES[i], rotated left by RHO_OFFSETS[i].
RHO_OFFSETS = (
    1, 3, 6, 10, 15, 21, 28, 36, 45, 55, 2, 14,
    27, 41, 56, 8, 25, 43, 62, 18, 39, 61, 20, 44,
)
PI_LANES = (
    10, 7, 11, 17, 18, 3, 5, 16, 8, 21, 24, 4,
    15, 23, 19, 13, 12, 2, 20, 14, 22, 9, 6, 1,
)


def _rotl64(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & MASK64


def keccak_f1600(state: List[int]) -> None:
    """Apply the 24-round Keccak-f[1600] permutation to 25 lanes in place.

    Lane (x, y) lives at index x + 5y.
    """
    for rc in ROUND_CONSTANTS:
        # Theta: column parity
        c = [state[x] ^ state[x + 5] ^ state[x + 10] ^ state[x + 15] ^ state[x + 20] for x in range(5)]
        for x in range(5):
            d = c[(x + 4) % 5] ^ _rotl64(c[(x + 1) % 5], 1)
            for y in range(0, 25, 5):
                state[y + x] ^= d

        # Rho + Pi
        current = state[1]
        for shift, lane in zip(RHO_OFFSETS, PI_LANES):
            state[lane], current = _rotl64(current, shift), state[lane]

        # Chi: row-wise non-linear step
        for y in range(0, 25, 5):
            row = state[y:y + 5]
            for x in range(5):
                state[y + x] = row[x] ^ (~row[(x + 1) % 5] & row[(x + 2) % 5])

        # Iota
        state[0] ^= rc


def _pad(data: bytes) -> bytearray:
    """Keccak pad10*1: 0x01 after the message, 0x80 on the last rate byte.

    A message that fills its last block exactly gets a whole extra block;
    with one byte left, both marks share it (0x81).
    """
    padded = bytearray(data)
    padded.extend(bytes(RATE_BYTES - len(data) % RATE_BYTES))
    padded[len(data)] ^= 0x01
    padded[-1] ^= 0x80
    return padded


def keccak256(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """Keccak-256 digest of ``data`` (32 bytes).

    >>> keccak256(b"").hex()
    'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    if isinstance(data, str):
        raise TypeError("keccak256 expects bytes, not str; encode the text first.")

    state = [0] * 25
    padded = _pad(bytes(data))

    # Absorb
    for offset in range(0, len(padded), RATE_BYTES):
        block = padded[offset:offset + RATE_BYTES]
        for i in range(RATE_BYTES // LANE_BYTES):
            state[i] ^= int.from_bytes(block[i * LANE_BYTES:(i + 1) * LANE_BYTES], "little")
        keccak_f1600(state)

    # Squeeze: 32 bytes fit inside one rate window
    return b"".join(
        state[i].to_bytes(LANE_BYTES, "little") for i in range(DIGEST_BYTES // LANE_BYTES)
    )


def keccak256_hex(data: Union[bytes, bytearray, memoryview]) -> str:
    """Hex digest (64 lowercase chars, no 0x prefix)."""
    return keccak256(data).hex()
