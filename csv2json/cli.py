from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import pydantic

from .errors import ArgumentError, Csv2JsonError
from .models import ConversionConfig, Separator
from .pipeline import convert_file

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="csv2json",
        description="Convert a CSV file into a JSON array of objects, written next to it.",
    )
    parser.add_argument("csv_file", help="Path to the .csv file to convert")
    parser.add_argument(
        "--separator",
        choices=[s.value for s in Separator],
        default=Separator.COMMA.value,
        help="Column separator (default: comma)",
    )
    parser.add_argument("--pretty", action="store_true", help="Generate pretty JSON")
    parser.add_argument(
        "--encoding",
        default=None,
        help="Source encoding (default: detected from the file)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ConversionConfig:
    try:
        return ConversionConfig(
            filepath=Path(args.csv_file),
            separator=args.separator,
            pretty=args.pretty,
            encoding=args.encoding,
        )
    except pydantic.ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise ArgumentError(messages) from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        summary = convert_file(config)
    except Csv2JsonError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "Wrote %d records to %s (%d malformed rows skipped)",
        summary.records_written,
        summary.destination,
        len(summary.malformed_rows),
    )
    return 0
