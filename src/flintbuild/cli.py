"""Command-line entrypoint for running the pipeline as a build step."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from flintbuild.errors import FlintBuildError
from flintbuild.models import DEFAULT_DIRECTIVE_PREFIX
from flintbuild.observability import StructuredLogger
from flintbuild.pipeline import run_pipeline
from flintbuild.probe import probe
from flintbuild.publish import write_receipt


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flint-build",
        description="Configure, compile and install the vendored FLINT library.",
    )
    parser.add_argument(
        "--receipt",
        type=Path,
        help="write a build receipt; a .cbor suffix selects CBOR, anything else JSON",
    )
    parser.add_argument(
        "--sync-sources",
        action="store_true",
        help="compare staged sources file by file instead of trusting an existing copy",
    )
    parser.add_argument("--directive-prefix", default=DEFAULT_DIRECTIVE_PREFIX)
    parser.add_argument("--log-json", type=Path, help="dump structured log records as JSON lines")
    parser.add_argument("--quiet", action="store_true", help="do not echo status lines to stderr")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = StructuredLogger(stream=None if args.quiet else sys.stderr)
    try:
        env = probe(os.environ)
        published = run_pipeline(
            env,
            logger=logger,
            stream=sys.stdout,
            sync_sources=args.sync_sources,
            directive_prefix=args.directive_prefix,
        )
        if args.receipt is not None:
            write_receipt(published, args.receipt)
    except FlintBuildError as exc:
        logger.log(
            operation="abort",
            stage="pipeline",
            message=f"Build aborted: {exc.code}",
            level="error",
            extra=exc.to_dict(),
        )
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_json is not None:
            logger.to_json_lines(args.log_json)
    return 0
