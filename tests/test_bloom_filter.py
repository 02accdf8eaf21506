import pytest

from bf_salted.bloom_filter import BloomFilter
from bf_salted.hashing import fnv1a, murmur3_32
from bf_salted.parameters import FilterOptions, InvalidParameter


def _set_bits(bloom):
    return {i for i in range(bloom.size) if bloom.bit_array[i >> 3] & (1 << (i & 7))}


def test_added_value_present_and_other_absent():
    bloom = BloomFilter(size=10000, num_hashes=4)
    bloom.add("abcdefgh")
    assert bloom.check("abcdefgh")
    assert not bloom.check("12345678")


def test_positional_size_and_num_hashes():
    bloom = BloomFilter(10000, 4)
    bloom.add("abc")
    assert bloom.check("abc")
    assert not bloom.check("123")
    assert (bloom.get_size(), bloom.get_num_hashes()) == (10000, 4)


def test_defaults():
    bloom = BloomFilter()
    assert bloom.get_size() == 10000
    assert bloom.get_num_hashes() == 4
    assert bloom.hash_function is fnv1a
    assert len(bloom.bit_array) == 1250


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        (dict(size=100000, num_hashes=4, max_capacity=10000, false_positive_rate=0.05), (100000, 4)),
        (dict(max_capacity=10000, size=100000), (100000, 7)),
        (dict(max_capacity=10000, false_positive_rate=0.05), (62353, 4)),
        (dict(size=100000), (100000, 4)),
        (dict(num_hashes=4), (10000, 4)),
    ],
)
def test_parameter_priority(kwargs, expected):
    bloom = BloomFilter(**kwargs)
    assert (bloom.get_size(), bloom.get_num_hashes()) == expected


@pytest.mark.parametrize(
    "kwargs, field",
    [
        (dict(size=0), "size"),
        (dict(size=-1), "size"),
        (dict(num_hashes=0), "num_hashes"),
        (dict(num_hashes=-1), "num_hashes"),
        (dict(max_capacity=0), "max_capacity"),
        (dict(max_capacity=-1), "max_capacity"),
        (dict(false_positive_rate=0), "false_positive_rate"),
        (dict(false_positive_rate=2), "false_positive_rate"),
        (dict(hash_function=123), "hash_function"),
    ],
)
def test_invalid_construction(kwargs, field):
    with pytest.raises(InvalidParameter) as excinfo:
        BloomFilter(**kwargs)
    assert excinfo.value.field == field


@pytest.mark.parametrize(
    "kwargs",
    [dict(size=1), dict(num_hashes=1), dict(max_capacity=1), dict(false_positive_rate=0.005)],
)
def test_valid_boundaries(kwargs):
    BloomFilter(**kwargs)


def test_empty_filter_rejects_everything():
    bloom = BloomFilter(size=1000, num_hashes=3)
    for value in ["", "a", "abcdefgh", 0, 3.14, None]:
        assert not bloom.check(value)
    assert bloom.bit_count() == 0


def test_no_false_negatives():
    bloom = BloomFilter(size=500, num_hashes=5)
    values = [f"item-{i}" for i in range(300)]
    for value in values:
        bloom.add(value)
    assert all(value in bloom for value in values)


def test_tiny_filter_has_no_false_negatives():
    bloom = BloomFilter(1, 3)
    bloom.add("anything")
    assert bloom.check("anything")
    assert bloom.check("everything else")


def test_add_is_idempotent():
    bloom = BloomFilter(size=1000, num_hashes=4)
    bloom.add("value")
    before = bytes(bloom.bit_array)
    bloom.add("value")
    assert bytes(bloom.bit_array) == before


def test_bits_are_monotone():
    bloom = BloomFilter(size=2000, num_hashes=4)
    previous = _set_bits(bloom)
    for i in range(100):
        bloom.add(i)
        current = _set_bits(bloom)
        assert previous <= current
        previous = current


def test_determinism():
    first = BloomFilter(size=4096, num_hashes=6)
    second = BloomFilter(size=4096, num_hashes=6)
    values = ["alpha", "beta", "gamma", 42]
    first.update(values)
    second.update(values)
    assert first.bit_array == second.bit_array
    for probe in values + ["delta", "epsilon", 7]:
        assert first.check(probe) == second.check(probe)


def test_indices_use_salted_rounds():
    bloom = BloomFilter(size=10000, num_hashes=4)
    bloom.add("abcdefgh")
    expected = {fnv1a(f"abcdefgh{i}") % 10000 for i in range(4)}
    assert _set_bits(bloom) == expected


def test_non_string_values_are_stringified():
    class Point:
        def __init__(self, x, y):
            self.x, self.y = x, y

        def __str__(self):
            return f"Point({self.x}, {self.y})"

    bloom = BloomFilter(size=10000, num_hashes=4)
    bloom.add(Point(1, 2))
    bloom.add(42)
    assert bloom.check("Point(1, 2)")
    assert bloom.check(Point(1, 2))
    assert bloom.check("42")


def test_negative_and_wide_hashes_are_normalized():
    bloom = BloomFilter(size=97, num_hashes=3, hash_function=lambda value: -(len(value) ** 9))
    bloom.add("abc")
    assert bloom.check("abc")
    assert 0 < bloom.bit_count() <= 3


def test_custom_hash_function_by_name_and_callable():
    named = BloomFilter(size=1000, num_hashes=3, hash_function="murmur3")
    direct = BloomFilter(size=1000, num_hashes=3, hash_function=murmur3_32)
    assert named.hash_function is murmur3_32
    named.add("value")
    direct.add("value")
    assert named.bit_array == direct.bit_array


def test_from_options():
    bloom = BloomFilter.from_options({"maxCapacity": 10000, "falsePositiveRate": 0.05})
    assert (bloom.get_size(), bloom.get_num_hashes()) == (62353, 4)

    bloom = BloomFilter.from_options(FilterOptions(size=64, num_hashes=2, hash_function="xxh32"))
    assert (bloom.size, bloom.num_hashes) == (64, 2)

    with pytest.raises(InvalidParameter):
        BloomFilter.from_options({"size": 0})


def test_fill_ratio_and_repr():
    bloom = BloomFilter(size=8, num_hashes=1)
    assert bloom.fill_ratio() == 0.0
    bloom.add("x")
    assert bloom.fill_ratio() == 1 / 8
    assert repr(bloom) == "BloomFilter(size=8, num_hashes=1)"
