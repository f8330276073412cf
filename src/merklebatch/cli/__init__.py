"""
merklebatch CLI
---------------

Provides:
  - Merkle batch signing demo with overhead summary
  - Key generation
  - Signing files as a batch and verifying single files
  - Signature scheme benchmark, and a run-all that chains bench and demo
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from merklebatch.benchmark import available_schemes
from merklebatch.cli.batch_commands import (
    cmd_bench,
    cmd_demo,
    cmd_keygen,
    cmd_run_all,
    cmd_sign,
    cmd_verify,
    run_command,
)
from merklebatch.core.hashing import available_hashers
from merklebatch.core.settings import get_settings
from merklebatch.protocol.enums import OutputFormat


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="merklebatch",
        description="Sign many messages with one signature over a Merkle root",
    )
    parser.add_argument("--log-level", default=None, help="Override MERKLEBATCH_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command")

    # demo
    p_demo = sub.add_parser("demo", help="Sign demo messages and write an overhead summary")
    p_demo.add_argument("--batch-size", type=int, default=None, help="Number of messages")
    p_demo.add_argument("--out", default=None, help="Output directory")
    p_demo.add_argument("--hash", choices=available_hashers(), default=None)
    p_demo.set_defaults(func=cmd_demo)

    # keygen
    p_keygen = sub.add_parser("keygen", help="Generate an Ed25519 signing key pair")
    p_keygen.add_argument("--out", required=True, help="Directory for the PEM files")
    p_keygen.set_defaults(func=cmd_keygen)

    # sign
    p_sign = sub.add_parser("sign", help="Sign files as one batch")
    p_sign.add_argument("--key", required=True, help="PEM private key")
    p_sign.add_argument("--out", required=True, help="Output file (directory for bin)")
    p_sign.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.JSON.value,
    )
    p_sign.add_argument("--hash", choices=available_hashers(), default=None)
    p_sign.add_argument("files", nargs="+", help="Message files, in batch order")
    p_sign.set_defaults(func=cmd_sign)

    # verify
    p_verify = sub.add_parser("verify", help="Verify a file against its proof bundle")
    p_verify.add_argument("--public-key", required=True, help="PEM public key")
    p_verify.add_argument("--bundle", required=True, help="Bundle file (.mbb or JSON)")
    p_verify.add_argument("--index", type=int, default=None, help="Index within a batch JSON")
    p_verify.add_argument("--hash", choices=available_hashers(), default=None)
    p_verify.add_argument("file", help="Message file")
    p_verify.set_defaults(func=cmd_verify)

    # bench
    p_bench = sub.add_parser("bench", help="Benchmark root signature schemes")
    p_bench.add_argument("--out", default=None, help="Output directory")
    p_bench.add_argument("--iterations", type=int, default=1, help="Key pairs to average over")
    p_bench.add_argument(
        "--scheme",
        action="append",
        choices=available_schemes(),
        default=None,
        help="Scheme to benchmark (repeatable; default all)",
    )
    p_bench.set_defaults(func=cmd_bench)

    # run-all
    p_all = sub.add_parser("run-all", help="Run bench, then demo, into one directory")
    p_all.add_argument("--out", default=None, help="Output directory")
    p_all.add_argument("--iterations", type=int, default=1, help="Benchmark key pairs to average over")
    p_all.add_argument("--batch-size", type=int, default=None, help="Number of demo messages")
    p_all.add_argument("--hash", choices=available_hashers(), default=None)
    p_all.set_defaults(func=cmd_run_all)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return run_command(args.func, args)


__all__ = ["main", "build_parser", "configure_logging"]
