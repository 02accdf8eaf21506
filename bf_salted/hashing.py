"""String hash functions used to derive Bloom filter indices.

Every function here maps a ``str`` to an unsigned 32-bit integer and is
deterministic across processes (no per-process seeding). The default is
32-bit FNV-1a computed over character code points; MurmurHash3 (via mmh3)
and xxHash32 (via xxhash) are provided as drop-in alternatives that hash
the UTF-8 encoding of the value.
"""
from __future__ import annotations

from typing import Callable, Dict, Union

import mmh3
import xxhash

from .parameters import InvalidParameter


HashFunction = Callable[[str], int]

FNV_OFFSET_BASIS_32 = 2166136261
MASK_32 = 0xFFFFFFFF


def fnv1a(value: str) -> int:
    """Compute the 32-bit FNV-1a hash of ``value``.

    The multiplication by the FNV prime (2**24 + 2**8 + 0x93 = 16777619) is
    written as shift-and-add, reduced modulo 2**32 after every character.
    """
    h = FNV_OFFSET_BASIS_32
    for char in value:
        h ^= ord(char)
        h = (h + (h << 1) + (h << 4) + (h << 7) + (h << 8) + (h << 24)) & MASK_32
    return h


def murmur3_32(value: str, seed: int = 0) -> int:
    """MurmurHash3 (x86, 32-bit) of the UTF-8 encoded ``value``."""
    return mmh3.hash(value.encode("utf-8"), seed, signed=False)


def xxh32(value: str, seed: int = 0) -> int:
    """xxHash32 of the UTF-8 encoded ``value``."""
    return xxhash.xxh32(value.encode("utf-8"), seed=seed).intdigest()


HASH_FUNCTIONS: Dict[str, HashFunction] = {
    "fnv1a": fnv1a,
    "murmur3": murmur3_32,
    "xxh32": xxh32,
}


def get_hash_function(spec: Union[str, HashFunction, None]) -> HashFunction:
    """Return the hash function named or given by ``spec``.

    ``None`` selects :func:`fnv1a`. A string must be a key of
    :data:`HASH_FUNCTIONS`. Any other value must be callable; its behaviour
    is not inspected.
    """
    if spec is None:
        return fnv1a
    if isinstance(spec, str):
        try:
            return HASH_FUNCTIONS[spec]
        except KeyError:
            known = ", ".join(sorted(HASH_FUNCTIONS))
            raise InvalidParameter(
                "hash_function", f"must be a callable or one of: {known}"
            ) from None
    if not callable(spec):
        raise InvalidParameter("hash_function", "must be callable")
    return spec
