#!/usr/bin/env python3
"""
Benchmark Script for ttlkv

Measures the throughput of TTLCache operations on a chosen storage engine.
Each benchmark runs against a fresh store.

Usage:
    python scripts/benchmark.py                    # SQLite, all benchmarks
    python scripts/benchmark.py --engine memory    # In-memory engine
    python scripts/benchmark.py --operations 10000 # Custom operation count
    python scripts/benchmark.py --profile          # Enable cProfile
"""

import argparse
import os
import random
import statistics
import string
import sys
import tempfile
import time
from typing import Any, Callable, Dict, List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ttlkv.cache.ttl_cache import TTLCache


def random_string(length: int) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


def measure_time(func: Callable, iterations: int = 1) -> Dict[str, float]:
    """Measure execution time statistics."""
    times = []

    for _ in range(iterations):
        start = time.perf_counter()
        func()
        elapsed = (time.perf_counter() - start) * 1000  # Convert to ms
        times.append(elapsed)

    return {
        "min_ms": min(times),
        "max_ms": max(times),
        "mean_ms": statistics.mean(times),
        "median_ms": statistics.median(times),
        "total_ms": sum(times),
    }


class Benchmark:
    """Collection of benchmarks for TTLCache operations."""

    def __init__(self, engine: str, workdir: str, operations: int = 10000,
                 key_size: int = 16, value_size: int = 64):
        self.engine = engine
        self.workdir = workdir
        self.operations = operations
        self._runs = 0

        # Pre-generate test data
        self.keys = [random_string(key_size) for _ in range(operations)]
        self.values = [random_string(value_size).encode() for _ in range(operations)]

    def _fresh_cache(self) -> TTLCache:
        self._runs += 1
        path = os.path.join(self.workdir, f"bench-{self._runs}.db")
        return TTLCache.open(path, engine=self.engine)

    def _run(self, label: str, setup: Callable[[TTLCache], None],
             body: Callable[[TTLCache], None]) -> Dict[str, Any]:
        with self._fresh_cache() as cache:
            setup(cache)
            stats = measure_time(lambda: body(cache))
        stats["ops_per_second"] = self.operations / (stats["total_ms"] / 1000)
        stats["operation"] = label
        stats["count"] = self.operations
        return stats

    def _populate(self, cache: TTLCache) -> None:
        for i in range(self.operations):
            cache.set(self.keys[i], self.values[i])

    def benchmark_set(self) -> Dict[str, Any]:
        """Benchmark SET operations."""
        def body(cache):
            for i in range(self.operations):
                cache.set(self.keys[i], self.values[i])
        return self._run("SET", lambda cache: None, body)

    def benchmark_set_with_ttl(self) -> Dict[str, Any]:
        """Benchmark SET with TTL."""
        def body(cache):
            for i in range(self.operations):
                cache.set_with_ttl(self.keys[i], self.values[i], 60)
        return self._run("SET (with TTL)", lambda cache: None, body)

    def benchmark_get(self) -> Dict[str, Any]:
        """Benchmark GET operations (hits)."""
        def body(cache):
            for i in range(self.operations):
                cache.get(self.keys[i])
        return self._run("GET (hit)", self._populate, body)

    def benchmark_get_miss(self) -> Dict[str, Any]:
        """Benchmark GET operations (misses)."""
        miss_keys = [random_string(20) for _ in range(self.operations)]

        def body(cache):
            for key in miss_keys:
                cache.get(key)
        return self._run("GET (miss)", lambda cache: None, body)

    def benchmark_ttl(self) -> Dict[str, Any]:
        """Benchmark TTL queries."""
        def setup(cache):
            for i in range(self.operations):
                cache.set_with_ttl(self.keys[i], self.values[i], 60)

        def body(cache):
            for i in range(self.operations):
                cache.ttl(self.keys[i])
        return self._run("TTL", setup, body)

    def benchmark_expire(self) -> Dict[str, Any]:
        """Benchmark EXPIRE (read-modify-write)."""
        def body(cache):
            for i in range(self.operations):
                cache.expire(self.keys[i], 120)
        return self._run("EXPIRE", self._populate, body)

    def benchmark_incr(self) -> Dict[str, Any]:
        """Benchmark INCR on a small set of hot counters."""
        counters = self.keys[:10]

        def body(cache):
            for i in range(self.operations):
                cache.incr(counters[i % len(counters)])
        return self._run("INCR", lambda cache: None, body)

    def benchmark_delete(self) -> Dict[str, Any]:
        """Benchmark DELETE operations."""
        def body(cache):
            for i in range(self.operations):
                cache.delete(self.keys[i])
        return self._run("DELETE", self._populate, body)

    def benchmark_mixed_workload(self) -> Dict[str, Any]:
        """Benchmark mixed SET/GET workload (50/50)."""
        half = self.operations // 2

        def setup(cache):
            for i in range(half):
                cache.set(self.keys[i], self.values[i])

        def body(cache):
            for i in range(self.operations):
                if i % 2 == 0:
                    cache.set(self.keys[i], self.values[i])
                else:
                    cache.get(self.keys[i % half])
        return self._run("Mixed (50% SET, 50% GET)", setup, body)

    def run_all(self) -> List[Dict[str, Any]]:
        """Run all benchmarks."""
        benchmarks = [
            ("SET", self.benchmark_set),
            ("SET (TTL)", self.benchmark_set_with_ttl),
            ("GET (hit)", self.benchmark_get),
            ("GET (miss)", self.benchmark_get_miss),
            ("TTL", self.benchmark_ttl),
            ("EXPIRE", self.benchmark_expire),
            ("INCR", self.benchmark_incr),
            ("DELETE", self.benchmark_delete),
            ("Mixed workload", self.benchmark_mixed_workload),
        ]

        results = []
        for name, func in benchmarks:
            print(f"Running: {name}...", end=" ", flush=True)
            result = func()
            print(f"{result['ops_per_second']:,.0f} ops/sec")
            results.append(result)

        return results


def print_results(results: List[Dict[str, Any]]):
    """Print benchmark results in a table."""
    print()
    print("=" * 70)
    print("                        BENCHMARK RESULTS")
    print("=" * 70)
    print(f"{'Operation':<30} {'Ops/sec':>12} {'Mean (ms)':>12} {'Total (ms)':>12}")
    print("-" * 70)

    for r in results:
        print(f"{r['operation']:<30} {r['ops_per_second']:>12,.0f} "
              f"{r['mean_ms']:>12.3f} {r['total_ms']:>12.1f}")

    print("=" * 70)

    total_ops = sum(r['count'] for r in results)
    total_time = sum(r['total_ms'] for r in results)

    print()
    print(f"Total operations: {total_ops:,}")
    print(f"Total time: {total_time / 1000:.2f} seconds")
    print(f"Average throughput: {total_ops / (total_time / 1000):,.0f} ops/sec")


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark ttlkv cache operations",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--engine",
        choices=("sqlite", "memory"),
        default="sqlite",
        help="Storage engine to benchmark"
    )
    parser.add_argument(
        "--operations", "-n",
        type=int,
        default=5000,
        help="Number of operations per benchmark"
    )
    parser.add_argument(
        "--key-size",
        type=int,
        default=16,
        help="Size of keys"
    )
    parser.add_argument(
        "--value-size",
        type=int,
        default=64,
        help="Size of values"
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile profiling"
    )

    args = parser.parse_args()

    print("ttlkv Benchmark")
    print("===============")
    print(f"Engine: {args.engine}")
    print(f"Operations per test: {args.operations:,}")
    print(f"Key size: {args.key_size}")
    print(f"Value size: {args.value_size}")
    print()

    with tempfile.TemporaryDirectory(prefix="ttlkv-bench-") as workdir:
        benchmark = Benchmark(
            engine=args.engine,
            workdir=workdir,
            operations=args.operations,
            key_size=args.key_size,
            value_size=args.value_size,
        )

        if args.profile:
            import cProfile
            import pstats

            profiler = cProfile.Profile()
            profiler.enable()
            results = benchmark.run_all()
            profiler.disable()

            print_results(results)

            print()
            print("Profiling Results (top 20):")
            print("-" * 70)
            stats = pstats.Stats(profiler)
            stats.sort_stats('cumulative')
            stats.print_stats(20)
        else:
            results = benchmark.run_all()
            print_results(results)


if __name__ == "__main__":
    main()
