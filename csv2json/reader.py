"""
Row parsing and record mapping: the producer half of the pipeline.

The first record of the source is the header. Every later record is paired
with it by position; rows of the wrong width are reported and skipped.
"""

from __future__ import annotations

import csv
import logging
import sys
from pathlib import Path
from typing import Dict, Iterator, List, TextIO, Tuple

from .channel import ChannelClosed, RendezvousChannel
from .errors import MalformedRowError, SourceReadError
from .models import MalformedRow, Separator

logger = logging.getLogger(__name__)

Record = Dict[str, str]


def _raise_field_size_limit() -> int:
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return limit
        except OverflowError:
            limit //= 10


# fields are bounded only by memory
_raise_field_size_limit()


def open_source(path: Path, encoding: str) -> TextIO:
    try:
        return path.open("r", encoding=encoding, newline="")
    except (OSError, LookupError) as exc:
        raise SourceReadError(f"cannot open {path}: {exc}") from exc


def iter_rows(handle: TextIO, separator: Separator) -> Iterator[Tuple[int, List[str]]]:
    """Yield (line number, cells) for every non-blank record in ``handle``."""
    reader = csv.reader(handle, delimiter=separator.char, strict=True)
    try:
        for row in reader:
            if not row:
                continue
            yield reader.line_num, row
    except (csv.Error, UnicodeDecodeError) as exc:
        raise SourceReadError(f"line {reader.line_num}: {exc}") from exc
    except OSError as exc:
        raise SourceReadError(str(exc)) from exc


def map_row(header: List[str], row: List[str]) -> Record:
    if len(row) != len(header):
        raise MalformedRowError(row, len(header))

    record: Record = {}
    for name, value in zip(header, row):
        record[name] = value
    return record


def produce_records(
    handle: TextIO,
    separator: Separator,
    channel: RendezvousChannel[Record],
) -> List[MalformedRow]:
    """
    Read ``handle`` to the end, sending one record per valid row.

    Closes ``channel`` on end-of-input, or with the error on a fatal read
    failure. Returns the rows that were skipped.
    """
    malformed: List[MalformedRow] = []
    try:
        rows = iter_rows(handle, separator)
        first = next(rows, None)
        if first is None:
            raise SourceReadError("source has no header row")
        _, header = first

        for line, row in rows:
            try:
                record = map_row(header, row)
            except MalformedRowError as exc:
                logger.warning("Line %d: %s Error: %s", line, row, exc)
                malformed.append(MalformedRow(line=line, row=row, error=str(exc)))
                continue
            channel.send(record)
    except ChannelClosed:
        # the writer gave up; its own error is what gets reported
        logger.debug("Writer closed the channel, stopping reader")
        return malformed
    except Exception as exc:
        channel.close(exc)
        raise

    channel.close()
    return malformed
