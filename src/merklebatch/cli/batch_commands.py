"""
Batch CLI commands for merklebatch.

Commands:
    merklebatch demo [--batch-size N] [--out DIR]       Sign demo messages, write summary CSV
    merklebatch keygen --out DIR                        Write an Ed25519 key pair (PEM)
    merklebatch sign --key PEM --out PATH FILE...       Sign files as one batch, write bundles
    merklebatch verify --public-key PEM --bundle PATH FILE
                                                        Verify one file against its bundle
    merklebatch bench [--out DIR] [--iterations N]      Benchmark root signature schemes
    merklebatch run-all [--out DIR]                     Run bench, then demo
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from merklebatch.benchmark import BENCH_CSV, run_benchmarks, write_bench_csv
from merklebatch.core.batch import ProofBundle, SignedBatch, sign_batch, verify_bundle
from merklebatch.core.hashing import get_hasher
from merklebatch.core.settings import get_settings
from merklebatch.protocol.codec import MAGIC, decode_bundle, encode_bundle
from merklebatch.protocol.enums import OutputFormat
from merklebatch.protocol.errors import CodecError, MerkleBatchError
from merklebatch.report import (
    EXPLANATION_TXT,
    SUMMARY_CSV,
    demo_messages,
    summarize,
    write_explanation,
    write_summary_csv,
)
from merklebatch.signing.ed25519 import Ed25519BatchSigner, Ed25519BatchVerifier

logger = logging.getLogger(__name__)

PRIVATE_KEY_FILE = "batch_signing_key.pem"
PUBLIC_KEY_FILE = "batch_signing_key.pub.pem"


def cmd_demo(args) -> int:
    """Sign a batch of demo messages and write the overhead summary."""
    settings = get_settings()
    batch_size = args.batch_size or settings.demo_batch_size
    out_dir = Path(args.out or settings.output_dir)
    hasher = get_hasher(args.hash or settings.hash_algorithm)

    messages = list(demo_messages(batch_size))
    signer = Ed25519BatchSigner.generate()
    verifier = Ed25519BatchVerifier()
    verifier.add_from_signer(signer)

    batch = sign_batch(messages, hasher, signer, workers=settings.workers)

    failures = [
        b.index for m, b in zip(messages, batch.bundles)
        if not verify_bundle(m, b, hasher, verifier, expected_root=batch.root)
    ]
    if failures:
        print(f"Verification failed for indices: {failures}", file=sys.stderr)
        return 1

    summary = summarize(batch)
    csv_path = write_summary_csv(out_dir / SUMMARY_CSV, [summary])
    note_path = write_explanation(
        out_dir / EXPLANATION_TXT,
        summary,
        hasher_name=hasher.name,
        digest_size=hasher.digest_size,
        scheme="Ed25519",
    )

    print("Merkle batch signing demo")
    print("=" * 40)
    print(f"Batch size:          {summary.batch_size}")
    print(f"Hash:                {hasher.name} ({hasher.digest_size} bytes)")
    print(f"Root:                {batch.root.hex()}")
    print(f"Signature bytes:     {summary.sig_bytes}")
    print(f"Proof bytes/msg:     {summary.proof_bytes_per_msg}")
    print(f"Avg overhead/msg:    {summary.avg_overhead_per_msg_bytes:.2f} bytes")
    print(f"Verified bundles:    {batch.size}/{batch.size}")
    print()
    print(f"Wrote {csv_path}")
    print(f"Wrote {note_path}")
    return 0


def cmd_keygen(args) -> int:
    """Generate an Ed25519 key pair for batch signing."""
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    signer = Ed25519BatchSigner.generate()
    private_path = out_dir / PRIVATE_KEY_FILE
    public_path = out_dir / PUBLIC_KEY_FILE
    private_path.write_bytes(signer.export_private_pem())
    private_path.chmod(0o600)
    public_path.write_bytes(signer.export_public_pem())

    print(f"Key ID:      {signer.key_id}")
    print(f"Private key: {private_path}")
    print(f"Public key:  {public_path}")
    return 0


def cmd_sign(args) -> int:
    """Sign a set of files as one batch and write their proof bundles."""
    settings = get_settings()
    hasher = get_hasher(args.hash or settings.hash_algorithm)
    signer = Ed25519BatchSigner.from_pem_file(args.key)

    paths = [Path(p) for p in args.files]
    messages = [p.read_bytes() for p in paths]
    logger.debug("Loaded %d message files for signing", len(messages))

    batch = sign_batch(messages, hasher, signer, workers=settings.workers)
    out = Path(args.out)
    fmt = OutputFormat(args.format)

    if fmt == OutputFormat.JSON:
        doc = batch.to_dict()
        doc["files"] = [str(p) for p in paths]
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(doc, indent=2), encoding="utf-8")
    elif fmt == OutputFormat.JSONL:
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8") as f:
            for p, bundle in zip(paths, batch.bundles):
                record = bundle.to_dict()
                record["file"] = str(p)
                f.write(json.dumps(record) + "\n")
    else:
        out.mkdir(parents=True, exist_ok=True)
        for bundle in batch.bundles:
            (out / f"{bundle.index}.mbb").write_bytes(encode_bundle(bundle))

    print(f"Signed {batch.size} files, root {batch.root.hex()}")
    print(f"Wrote {fmt.value} bundles to {out}")
    return 0


def cmd_verify(args) -> int:
    """Verify one file against a proof bundle and a public key."""
    settings = get_settings()

    verifier = Ed25519BatchVerifier()
    key_id = verifier.add_public_key_pem(Path(args.public_key).read_bytes())

    bundle, batch_hasher = _load_bundle(Path(args.bundle), args.index)
    hasher = get_hasher(args.hash or batch_hasher or settings.hash_algorithm)
    if bundle.key_id and bundle.key_id != key_id:
        print(f"Bundle was signed by key {bundle.key_id}, not {key_id}", file=sys.stderr)
        return 1

    message = Path(args.file).read_bytes()
    if not bundle.key_id:
        bundle = dataclasses.replace(bundle, key_id=key_id)

    if verify_bundle(message, bundle, hasher, verifier):
        print(f"VALID: {args.file} is message {bundle.index} of batch {bundle.root.hex()}")
        return 0

    print(f"INVALID: {args.file} does not verify against {args.bundle}", file=sys.stderr)
    return 1


def _load_bundle(path: Path, index: Any) -> Tuple[ProofBundle, Optional[str]]:
    """
    Read a bundle from a binary .mbb file, a bundle JSON, or a batch JSON.

    Returns the bundle and the hash algorithm recorded by a batch JSON
    (None for the other forms).
    """
    raw = path.read_bytes()
    if raw.startswith(MAGIC):
        return decode_bundle(raw), None

    try:
        data: Dict[str, Any] = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"Cannot parse bundle file {path}: {e}") from e

    try:
        if "bundles" in data:
            batch = SignedBatch.from_dict(data)
            bundles: List[ProofBundle] = batch.bundles
            if index is None:
                raise CodecError(f"{path} holds a whole batch; pass --index")
            if not 0 <= index < len(bundles):
                raise CodecError(f"--index {index} outside batch of {len(bundles)}")
            return bundles[index], batch.hasher_name or None
        return ProofBundle.from_dict(data), None
    except (KeyError, TypeError, ValueError) as e:
        raise CodecError(f"Malformed bundle in {path}: {e}") from e


def cmd_bench(args) -> int:
    """Benchmark each available signature scheme and write the CSV."""
    settings = get_settings()
    out_dir = Path(args.out or settings.output_dir)

    results = run_benchmarks(args.scheme or None, iterations=args.iterations)
    csv_path = write_bench_csv(out_dir / BENCH_CSV, results)

    print(f"{'SCHEME':<12} {'PK':>5} {'SK':>5} {'SIG':>6} {'KEYGEN_MS':>10} "
          f"{'SIGN_MS':>9} {'VERIFY_MS':>10} {'GZIP_SIG':>9}")
    print("-" * 74)
    for r in results:
        print(f"{r.name:<12} {r.pk_bytes:>5} {r.sk_bytes:>5} {r.sig_bytes:>6} {r.keygen_ms:>10.3f} "
              f"{r.sign_ms:>9.3f} {r.verify_ms:>10.3f} {r.gzip_sig_bytes:>9}")
    print()
    print(f"Wrote {csv_path}")
    return 0


def cmd_run_all(args) -> int:
    """Run the benchmark and then the demo into one output directory."""
    out_dir = Path(args.out or get_settings().output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print("Running signature scheme benchmarks...")
    rc = cmd_bench(argparse.Namespace(out=str(out_dir), iterations=args.iterations, scheme=None))
    if rc != 0:
        return rc

    print()
    print("Running Merkle batch signing demo...")
    rc = cmd_demo(argparse.Namespace(out=str(out_dir), batch_size=args.batch_size, hash=args.hash))
    if rc != 0:
        return rc

    print()
    print(f"Finished. See {out_dir} for output files.")
    return 0


def run_command(func, args) -> int:
    """Run a command, mapping library errors to exit code 1."""
    try:
        return func(args)
    except MerkleBatchError as e:
        print(f"Error ({e.code.value}): {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
