"""Empirical evaluation of the salted Bloom filter.

Performs a deterministic 80/20 split of unique synthetic items, builds a
filter sized for the 80% training set, and runs five checks per hash
function:

1. Membership on the training set (should be all present)
2. False positive rate on the held-out set, next to the theoretical estimate
3. Collision analysis using simple modifications of held-out items
4. Filter properties and memory usage
5. Insertion and query throughput

Run with ``python -m python_impl.benchmark``.
"""
from __future__ import annotations

import logging
import time
import uuid

from typing import Dict, List, Optional, Tuple

from bf_salted.bloom_filter import BloomFilter
from bf_salted.hashing import HASH_FUNCTIONS
from bf_salted.parameters import expected_false_positive_rate


logger = logging.getLogger(__name__)

TARGET_FALSE_POSITIVE_RATE = 0.01


def generate_synthetic_data(n: int = 100_000) -> list[str]:
    """Generate n unique random strings."""
    logger.info("Generating %d synthetic items", n)
    # UUIDs are virtually guaranteed to be unique
    return [str(uuid.uuid4()) for _ in range(n)]


def build_split(
    words: list[str],
    hash_function: str = "fnv1a",
    false_positive_rate: float = TARGET_FALSE_POSITIVE_RATE,
) -> Tuple[BloomFilter, list[str], list[str]]:
    """Create a deterministic 80/20 split and build the bloom filter.

    The filter is sized from the training set length and
    ``false_positive_rate``.

    Returns (bloom_filter, training_words, test_words).
    """
    words = sorted(set(words))
    split = int(len(words) * 0.8)
    train = words[:split]
    test = words[split:]

    bloom = BloomFilter(
        max_capacity=max(1, len(train)),
        false_positive_rate=false_positive_rate,
        hash_function=hash_function,
    )
    bloom.update(train)

    return bloom, train, test


def measure_membership(bloom: BloomFilter, train: list[str]) -> int:
    """Return how many training items the filter reports missing."""
    print("TEST A: Membership on training set")
    missing = [w for w in train if w not in bloom]
    print(f"  Training items: {len(train)}")
    print(f"  Missing after insertion: {len(missing)} (expected 0)")
    if missing:
        print(f"  Example missing: {missing[:5]}")
    print()
    return len(missing)


def measure_false_positive_rate(
    bloom: BloomFilter, train: list[str], test: list[str]
) -> Optional[float]:
    """Measure empirical false positive rate on the held-out set."""
    print("TEST B: False positive rate on held-out items")
    train_set = set(train)
    test_filtered = [w for w in test if w not in train_set]

    if not test_filtered:
        print("  No held-out items available for testing.")
        print()
        return None

    false_positives = sum(1 for w in test_filtered if w in bloom)
    fpr = false_positives / len(test_filtered)
    expected = expected_false_positive_rate(bloom.size, bloom.num_hashes, len(train))

    print(f"  Held-out items: {len(test_filtered)}")
    print(f"  False positives: {false_positives}")
    print(f"  Empirical FPR: {fpr:.6f} ({fpr*100:.4f}%)")
    print(f"  Theoretical FPR: {expected:.6f} ({expected*100:.4f}%)")
    print()
    return fpr


def measure_collisions(bloom: BloomFilter, train: list[str], test: list[str]) -> Optional[float]:
    """Analyze collision rate using simple modifications of held-out items."""
    print("TEST C: Collision analysis with simple modifications of held-out items")
    modifications = []

    for word in test[:500]:
        modifications.append(word + "x")
        if len(word) > 1:
            modifications.append(word[:-1] + "z")
        modifications.append("x" + word)

    # Remove any accidental actual items
    known = set(train) | set(test)
    modifications = [m for m in modifications if m not in known]

    if not modifications:
        print("  No modifications available for testing.")
        print()
        return None

    false_positives = sum(1 for m in modifications if m in bloom)
    rate = false_positives / len(modifications)

    print(f"  Variants tested: {len(modifications)}")
    print(f"  False positives from variants: {false_positives}")
    print(f"  Collision rate: {rate:.6f} ({rate*100:.4f}%)")
    print()
    return rate


def show_properties(bloom: BloomFilter, train: list[str]) -> None:
    """Display filter memory and configuration properties."""
    print("TEST D: Filter properties")
    bytes_len = len(bloom.bit_array)
    mb = bytes_len / (1024 * 1024)

    print(f"  Filter size (bits): {bloom.size}")
    print(f"  Filter size (bytes): {bytes_len}")
    print(f"  Filter size (MB): {mb:.2f}")
    print(f"  Number of hash functions: {bloom.num_hashes}")
    print(f"  Fill ratio: {bloom.fill_ratio():.4f}")
    print(f"  Items inserted: {len(train)}")
    if train:
        print(f"  Bytes per item: {bytes_len / len(train):.4f}")
    print()


def measure_performance(bloom: BloomFilter, train: list[str], test: list[str]) -> Dict[str, float]:
    """Measure insertion and query throughput (Ops/Sec)."""
    print("TEST E: Performance Benchmarking")

    # Fresh filter with the same configuration
    bench_filter = BloomFilter(bloom.size, bloom.num_hashes, hash_function=bloom.hash_function)

    start_time = time.perf_counter()
    for word in train:
        bench_filter.add(word)
    insert_time = time.perf_counter() - start_time
    insert_ops = len(train) / insert_time if insert_time > 0 else float("inf")
    print(f"    - Inserted {len(train)} items in {insert_time:.4f} sec")
    print(f"    - Insertion Throughput: {insert_ops:,.0f} ops/sec")

    start_time = time.perf_counter()
    for word in test:
        _ = word in bench_filter
    query_time = time.perf_counter() - start_time
    query_ops = len(test) / query_time if query_time > 0 else float("inf")
    print(f"    - Performed {len(test)} queries in {query_time:.4f} sec")
    print(f"    - Query Throughput: {query_ops:,.0f} ops/sec")
    print()

    return {
        "insert_count": len(train),
        "insert_time": insert_time,
        "insert_ops_per_sec": insert_ops,
        "query_count": len(test),
        "query_time": query_time,
        "query_ops_per_sec": query_ops,
    }


def evaluate(words: list[str], hash_function: str = "fnv1a") -> Dict[str, Optional[float]]:
    """Run every check for one hash function and collect the headline numbers."""
    bloom, train, test = build_split(words, hash_function=hash_function)

    missing = measure_membership(bloom, train)
    fpr = measure_false_positive_rate(bloom, train, test)
    collisions = measure_collisions(bloom, train, test)
    show_properties(bloom, train)
    metrics: Dict[str, Optional[float]] = dict(measure_performance(bloom, train, test))
    metrics.update(missing=missing, false_positive_rate=fpr, collision_rate=collisions)
    return metrics


def compare_hash_functions(results: Dict[str, Dict[str, Optional[float]]]) -> None:
    """Print a compact side-by-side comparison of the collected metrics."""
    def fmt(val):
        if val is None:
            return "N/A"
        if isinstance(val, float):
            if val == float("inf"):
                return "inf"
            if abs(val) >= 1000:
                return f"{val:,.0f}"
            return f"{val:,.6f}"
        return str(val)

    names = list(results)
    print(f"{'Metric':<32}" + "".join(f"{name:>16}" for name in names))
    print("-" * (32 + 16 * len(names)))

    rows: List[Tuple[str, str]] = [
        ("Missing members", "missing"),
        ("False positive rate", "false_positive_rate"),
        ("Collision rate", "collision_rate"),
        ("Insertion Throughput (ops/sec)", "insert_ops_per_sec"),
        ("Query Throughput (ops/sec)", "query_ops_per_sec"),
    ]
    for label, key in rows:
        print(f"{label:<32}" + "".join(f"{fmt(results[n].get(key)):>16}" for n in names))
    print()


def run_all(n: int = 100_000) -> Dict[str, Dict[str, Optional[float]]]:
    """Evaluate every registered hash function on the same data."""
    words = generate_synthetic_data(n)
    results = {}
    for name in HASH_FUNCTIONS:
        print("=" * 60)
        print(f"Running Bloom Filter evaluation with {name} (80/20 split)")
        print("=" * 60)
        print()
        results[name] = evaluate(words, hash_function=name)

    print("=" * 60)
    print("COMPARISON: Hash function summary")
    print("=" * 60)
    compare_hash_functions(results)
    return results


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    run_all()
