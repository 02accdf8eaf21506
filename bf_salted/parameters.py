"""Sizing policy for the salted Bloom filter.

Turns a partially specified set of options into a concrete bit-array size
(m) and hash count (k). Formulas from
https://en.wikipedia.org/wiki/Bloom_filter#Probability_of_false_positives
"""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, fields
from typing import Any, Mapping, NamedTuple, Optional


logger = logging.getLogger(__name__)

DEFAULT_SIZE = 10000
DEFAULT_NUM_HASHES = 4

ERROR_PREFIX = "Invalid Bloom filter parameter"

_ALIASES = {
    "numHashes": "num_hashes",
    "maxCapacity": "max_capacity",
    "falsePositiveRate": "false_positive_rate",
    "hashFunction": "hash_function",
}


class InvalidParameter(ValueError):
    """A construction parameter is out of range."""

    def __init__(self, field: str, requirement: str) -> None:
        self.field = field
        super().__init__(f"{ERROR_PREFIX}: `{field}` {requirement}")


class FilterParameters(NamedTuple):
    size: int
    num_hashes: int


def _is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _require_positive_int(field: str, value: Any) -> None:
    if not _is_int(value) or value <= 0:
        raise InvalidParameter(field, "must be an integer greater than 0")


def _require_rate(field: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not 0 < value <= 1:
        raise InvalidParameter(field, "must be greater than 0 and at most 1")


def optimal_num_hashes(size: int, max_capacity: int) -> int:
    """Optimal k for a bit array of ``size`` holding ``max_capacity`` items.

    ``round((m / n) * ln 2)``, never less than 1.
    """
    _require_positive_int("size", size)
    _require_positive_int("max_capacity", max_capacity)
    return max(1, round((size / max_capacity) * math.log(2)))


def optimal_size(max_capacity: int, false_positive_rate: float) -> int:
    """Smallest m keeping the false-positive rate under ``false_positive_rate``.

    ``ceil(-n * ln p / (ln 2)^2)``, never less than 1.
    """
    _require_positive_int("max_capacity", max_capacity)
    _require_rate("false_positive_rate", false_positive_rate)
    return max(1, math.ceil((-max_capacity * math.log(false_positive_rate)) / math.log(2) ** 2))


def expected_false_positive_rate(size: int, num_hashes: int, count: int) -> float:
    """Theoretical false-positive probability after ``count`` insertions."""
    _require_positive_int("size", size)
    _require_positive_int("num_hashes", num_hashes)
    if not _is_int(count) or count < 0:
        raise InvalidParameter("count", "must be an integer of at least 0")
    return (1.0 - math.exp(-num_hashes * count / size)) ** num_hashes


@dataclass(frozen=True)
class FilterOptions:
    """Optional construction inputs; any subset may be given.

    Attributes:
        size: Desired bit-array length (m).
        num_hashes: Desired number of salted hash rounds (k).
        max_capacity: Expected maximum number of distinct items (n).
        false_positive_rate: Highest acceptable false-positive rate (p).
        hash_function: A ``str -> uint32`` callable or a registered name.
            Not used by resolution; carried for the filter.
    """

    size: Optional[int] = None
    num_hashes: Optional[int] = None
    max_capacity: Optional[int] = None
    false_positive_rate: Optional[float] = None
    hash_function: Any = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "FilterOptions":
        """Build options from a dict with snake_case or camelCase keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise InvalidParameter(key, "is not a recognized option")
            kwargs[name] = value
        return cls(**kwargs)

    def validate(self) -> None:
        """Check every given field; raise on the first bad one."""
        if self.size is not None:
            _require_positive_int("size", self.size)
        if self.num_hashes is not None:
            _require_positive_int("num_hashes", self.num_hashes)
        if self.max_capacity is not None:
            _require_positive_int("max_capacity", self.max_capacity)
        if self.false_positive_rate is not None:
            _require_rate("false_positive_rate", self.false_positive_rate)

    def resolve(self) -> FilterParameters:
        """Validate, then pick (size, num_hashes) by the first matching rule."""
        self.validate()
        size, num_hashes = self.size, self.num_hashes
        max_capacity, rate = self.max_capacity, self.false_positive_rate

        if size is not None and num_hashes is not None:
            rule = "explicit"
        elif size is not None and max_capacity is not None:
            rule = "size+max_capacity"
            num_hashes = optimal_num_hashes(size, max_capacity)
        elif max_capacity is not None and rate is not None:
            rule = "max_capacity+false_positive_rate"
            size = optimal_size(max_capacity, rate)
            num_hashes = optimal_num_hashes(size, max_capacity)
        else:
            rule = "defaults"
            size = DEFAULT_SIZE if size is None else size
            num_hashes = DEFAULT_NUM_HASHES if num_hashes is None else num_hashes

        logger.debug("Resolved size=%d num_hashes=%d (%s)", size, num_hashes, rule)
        return FilterParameters(int(size), int(num_hashes))
