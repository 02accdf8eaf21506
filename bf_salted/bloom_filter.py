"""Bloom filter using a single string hash with salted rounds.

Round ``i`` hashes the stringified value with the decimal text of ``i``
appended, so one hash function yields the configured number of indices.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping, Optional, Protocol, Union

from .hashing import HashFunction, get_hash_function
from .parameters import FilterOptions


logger = logging.getLogger(__name__)


class Stringifiable(Protocol):
    def __str__(self) -> str: ...


class BloomFilter:
    """Fixed-size Bloom filter backed by a bytearray bitset.

    Either pass ``(size, num_hashes)`` directly or let them be derived from
    ``max_capacity`` and/or ``false_positive_rate``:

    * ``size`` and ``num_hashes`` both given: used as is.
    * ``size`` and ``max_capacity``: the optimal ``num_hashes`` is computed.
    * ``max_capacity`` and ``false_positive_rate``: both are computed.
    * otherwise whichever of ``size``/``num_hashes`` was given is used and the
      rest fall back to 10000 bits and 4 hashes.
    """

    def __init__(
        self,
        size: Optional[int] = None,
        num_hashes: Optional[int] = None,
        *,
        max_capacity: Optional[int] = None,
        false_positive_rate: Optional[float] = None,
        hash_function: Union[str, HashFunction, None] = None,
    ) -> None:
        """Initialize a Bloom filter.

        Args:
            size: Number of bits in the filter (m).
            num_hashes: Number of salted hash rounds per value (k).
            max_capacity: Expected maximum number of distinct values (n).
            false_positive_rate: Highest acceptable false-positive rate (p).
            hash_function: ``str -> uint32`` callable or the name of a
                registered one (default FNV-1a).

        Raises:
            InvalidParameter: If any given parameter is out of range.
        """
        options = FilterOptions(
            size=size,
            num_hashes=num_hashes,
            max_capacity=max_capacity,
            false_positive_rate=false_positive_rate,
            hash_function=hash_function,
        )
        params = options.resolve()
        self._hash_function = get_hash_function(hash_function)
        self._size = params.size
        self._num_hashes = params.num_hashes
        self._bit_array = bytearray((self._size + 7) // 8)
        logger.debug(
            "Bloom filter allocated: %d bits (%d bytes), %d hashes",
            self._size,
            len(self._bit_array),
            self._num_hashes,
        )

    @classmethod
    def from_options(cls, options: Union[FilterOptions, Mapping[str, Any]]) -> "BloomFilter":
        """Build a filter from a :class:`FilterOptions` or an options dict."""
        if not isinstance(options, FilterOptions):
            options = FilterOptions.from_mapping(options)
        return cls(
            options.size,
            options.num_hashes,
            max_capacity=options.max_capacity,
            false_positive_rate=options.false_positive_rate,
            hash_function=options.hash_function,
        )

    def add(self, value: Stringifiable) -> None:
        """Insert ``value`` into the filter."""
        for bit_index in self._indices(value):
            self._bit_array[bit_index >> 3] |= 1 << (bit_index & 7)

    def update(self, values: Iterable[Stringifiable]) -> None:
        """Insert all ``values`` into the filter."""
        for value in values:
            self.add(value)

    def check(self, value: Stringifiable) -> bool:
        """Return False if ``value`` is definitely absent, True if it may be present."""
        for bit_index in self._indices(value):
            if not (self._bit_array[bit_index >> 3] & (1 << (bit_index & 7))):
                return False
        return True

    __contains__ = check

    def get_size(self) -> int:
        return self._size

    def get_num_hashes(self) -> int:
        return self._num_hashes

    @property
    def size(self) -> int:
        """Length of the bit array (m)."""
        return self._size

    @property
    def num_hashes(self) -> int:
        """Number of salted hash rounds (k)."""
        return self._num_hashes

    @property
    def hash_function(self) -> HashFunction:
        return self._hash_function

    @property
    def bit_array(self) -> bytearray:
        """Expose the underlying bit array for inspection."""
        return self._bit_array

    def bit_count(self) -> int:
        """Number of bits currently set."""
        return sum(bin(byte).count("1") for byte in self._bit_array)

    def fill_ratio(self) -> float:
        return self.bit_count() / self._size

    def _indices(self, value: Stringifiable) -> Iterator[int]:
        """Yield one bit index per round by salting the value with the round number."""
        text = value if isinstance(value, str) else str(value)
        for i in range(self._num_hashes):
            # Python's % keeps the result in [0, size) for any integer hash.
            yield self._hash_function(text + str(i)) % self._size

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self._size}, num_hashes={self._num_hashes})"
