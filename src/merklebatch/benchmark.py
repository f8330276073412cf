"""
Signature scheme benchmark.

Measures what one root signature costs for each available BatchSigner:
key and signature sizes, sign/verify time, and how far the signature
compresses. The results explain why batching pays off: the signature
is the fixed cost every message in a batch shares.
"""

from __future__ import annotations

import csv
import gzip
import logging
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from merklebatch.protocol.errors import ConfigurationError, SignerFailure
from merklebatch.signing.base import BatchSigner, BatchVerifier
from merklebatch.signing.ed25519 import Ed25519BatchSigner, Ed25519BatchVerifier

logger = logging.getLogger(__name__)

BENCH_CSV = "sphincs_param_bench.csv"

BENCH_FIELDS = [
    "param",
    "pk_bytes",
    "sk_bytes",
    "sig_bytes",
    "sign_ms",
    "verify_ms",
    "gzip_sig_bytes",
]

BENCH_MESSAGE = b"The quick brown fox jumps over the lazy dog"


@dataclass(frozen=True)
class SchemeFactory:
    """How to build a key pair for one signature scheme and read its key sizes."""
    name: str
    generate: Callable[[], Any]
    public_key_bytes: Callable[[Any], bytes]
    private_key_bytes: Callable[[Any], bytes]
    make_verifier: Callable[[Any], BatchVerifier]


def _ed25519_verifier(signer: Ed25519BatchSigner) -> BatchVerifier:
    verifier = Ed25519BatchVerifier()
    verifier.add_from_signer(signer)
    return verifier


_SCHEMES: Dict[str, SchemeFactory] = {
    "ed25519": SchemeFactory(
        name="ed25519",
        generate=Ed25519BatchSigner.generate,
        public_key_bytes=lambda s: s.public_key_bytes,
        private_key_bytes=lambda s: s.private_key_bytes(),
        make_verifier=_ed25519_verifier,
    ),
}


def available_schemes() -> List[str]:
    return sorted(_SCHEMES)


@dataclass(frozen=True)
class BenchResult:
    name: str
    pk_bytes: int
    sk_bytes: int
    sig_bytes: int
    keygen_ms: float
    sign_ms: float
    verify_ms: float
    gzip_sig_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def gzip_size(data: bytes) -> int:
    """Size of data after gzip at the highest compression level."""
    return len(gzip.compress(data, compresslevel=9))


def _timed(fn: Callable[[], Any]) -> Tuple[Any, float]:
    t0 = time.perf_counter()
    result = fn()
    return result, (time.perf_counter() - t0) * 1000.0


def benchmark_scheme(
    scheme: SchemeFactory,
    message: bytes = BENCH_MESSAGE,
    iterations: int = 1,
) -> BenchResult:
    """
    Benchmark one signature scheme.

    Timings are averaged over `iterations` key pairs. A signature that
    fails to verify aborts the run with SignerFailure.
    """
    if iterations < 1:
        raise ConfigurationError("iterations must be >= 1")

    keygen_total = sign_total = verify_total = 0.0
    signer: Optional[BatchSigner] = None
    signature = b""

    for _ in range(iterations):
        signer, keygen_ms = _timed(scheme.generate)
        signature, sign_ms = _timed(lambda: signer.sign(message))
        verifier = scheme.make_verifier(signer)
        ok, verify_ms = _timed(lambda: verifier.verify(message, signature, signer.key_id))
        if not ok:
            raise SignerFailure(f"Signature failed to verify for scheme {scheme.name}")
        keygen_total += keygen_ms
        sign_total += sign_ms
        verify_total += verify_ms

    result = BenchResult(
        name=scheme.name,
        pk_bytes=len(scheme.public_key_bytes(signer)),
        sk_bytes=len(scheme.private_key_bytes(signer)),
        sig_bytes=len(signature),
        keygen_ms=keygen_total / iterations,
        sign_ms=sign_total / iterations,
        verify_ms=verify_total / iterations,
        gzip_sig_bytes=gzip_size(signature),
    )
    logger.debug("Benchmarked %s: %s", scheme.name, result)
    return result


def run_benchmarks(
    names: Optional[Iterable[str]] = None,
    iterations: int = 1,
    message: bytes = BENCH_MESSAGE,
) -> List[BenchResult]:
    """Benchmark the named schemes (all available ones by default)."""
    selected = list(names) if names is not None else available_schemes()
    results = []
    for name in selected:
        try:
            scheme = _SCHEMES[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown signature scheme {name!r}; expected one of {available_schemes()}"
            ) from None
        results.append(benchmark_scheme(scheme, message=message, iterations=iterations))
    return results


def write_bench_csv(path: Union[str, Path], results: Iterable[BenchResult]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(BENCH_FIELDS)
        for r in results:
            writer.writerow([
                r.name,
                r.pk_bytes,
                r.sk_bytes,
                r.sig_bytes,
                f"{r.sign_ms:.3f}",
                f"{r.verify_ms:.3f}",
                r.gzip_sig_bytes,
            ])
    return path
