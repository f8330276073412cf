"""
Tests for the signature scheme benchmark
"""

import csv
import os

import pytest

from merklebatch.benchmark import (
    BENCH_FIELDS,
    BenchResult,
    available_schemes,
    gzip_size,
    run_benchmarks,
    write_bench_csv,
)
from merklebatch.protocol.errors import ConfigurationError


class TestRunBenchmarks:
    def test_ed25519_sizes(self):
        (result,) = run_benchmarks(["ed25519"])
        assert result.name == "ed25519"
        assert result.pk_bytes == 32
        assert result.sk_bytes == 32
        assert result.sig_bytes == 64
        assert result.sign_ms >= 0
        assert result.verify_ms >= 0
        assert result.keygen_ms >= 0

    def test_all_schemes_by_default(self):
        results = run_benchmarks()
        assert [r.name for r in results] == available_schemes()
        assert "ed25519" in available_schemes()

    def test_unknown_scheme(self):
        with pytest.raises(ConfigurationError):
            run_benchmarks(["sphincs-shake-128s"])

    def test_iterations_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            run_benchmarks(iterations=0)

    def test_signature_barely_compresses(self):
        (result,) = run_benchmarks(["ed25519"], iterations=3)
        # gzip adds a header, random bytes do not shrink
        assert result.gzip_sig_bytes >= result.sig_bytes


def test_gzip_size_of_redundant_data():
    assert gzip_size(b"\x00" * 4096) < 100
    assert gzip_size(os.urandom(256)) > 256


def test_bench_csv(tmp_path):
    results = [
        BenchResult("ed25519", 32, 32, 64, 0.05, 0.0123, 0.1, 87),
        BenchResult("other", 64, 128, 7856, 0.2, 12.5, 1.25, 7890),
    ]
    path = write_bench_csv(tmp_path / "out" / "bench.csv", results)

    with path.open(newline="") as f:
        rows = list(csv.reader(f))

    assert rows[0] == BENCH_FIELDS
    assert len(rows) == 3
    assert rows[1] == ["ed25519", "32", "32", "64", "0.012", "0.100", "87"]
    assert rows[2] == ["other", "64", "128", "7856", "12.500", "1.250", "7890"]
