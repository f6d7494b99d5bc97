from __future__ import annotations

import struct

_INT32_RANGE = 1 << 32
_INT32_MAX = (1 << 31) - 1
SEED_RANGE = 10000


def _to_int32(value: int) -> int:
    value %= _INT32_RANGE
    return value - _INT32_RANGE if value > _INT32_MAX else value


def _utf16_units(text: str) -> tuple[int, ...]:
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    return struct.unpack(f"<{len(encoded) // 2}H", encoded)


def string_hash(text: str) -> int:
    """Fold ``text`` into a signed 32-bit integer with a ``h * 31 + unit`` rolling hash.

    Works on UTF-16 code units so identifiers hash the same way the browser
    side of the site hashes them.
    """
    value = 0
    for unit in _utf16_units(text):
        value = _to_int32((value << 5) - value + unit)
    return value


def seeded_random(seed: str) -> float:
    # abs() of a truncated remainder equals the remainder of abs() for ints.
    return (abs(string_hash(seed)) % SEED_RANGE) / SEED_RANGE


def hash_url(url: str) -> str:
    return format(abs(string_hash(url)), "x").zfill(12)[:12]
