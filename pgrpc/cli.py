"""Command-line entry point of the generator."""

from __future__ import annotations

import argparse
import sys
import tomllib
from collections.abc import Sequence
from pathlib import Path

from pgrpc.builder import BuildConfigError, PgrpcBuilder


def _existing_file(value: str) -> Path:
    path = Path(value)
    if not path.exists():
        raise argparse.ArgumentTypeError(f"path does not exist: {value}")
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"not a file: {value}")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pgrpc")
    parser.add_argument(
        "-c",
        "--config-path",
        type=_existing_file,
        default="pgrpc.toml",
        help="configuration file (default: pgrpc.toml)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="output directory, overriding the configuration",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Load and validate the configuration for a run; returns an exit status."""
    args = build_parser().parse_args(argv)
    print("Generating PgRPC functions...")
    try:
        builder = PgrpcBuilder.from_config_file(args.config_path)
        if args.output is not None:
            builder.with_output_path(args.output)
        config = builder.resolve_config()
    except (BuildConfigError, OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Schemas: {', '.join(config.schemas)}")
    print(f"Output: {config.output_path}")
    return 0