"""
Incremental JSON array writer: the consumer half of the pipeline.

Records are rendered one at a time and appended to the sink, so the array
framing is assembled as the stream goes rather than from a list in memory.
"""

from __future__ import annotations

import json
import logging
import textwrap
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Dict, TextIO

from .channel import RendezvousChannel
from .errors import DestinationWriteError
from .rules import INDENT_UNIT, OUTPUT_ENCODING, OUTPUT_SUFFIX

logger = logging.getLogger(__name__)


def output_path_for(source: Path) -> Path:
    return source.with_suffix(OUTPUT_SUFFIX)


def render_record(record: Dict[str, str], pretty: bool) -> str:
    if pretty:
        rendered = json.dumps(record, ensure_ascii=False, indent=len(INDENT_UNIT))
        return textwrap.indent(rendered, INDENT_UNIT)
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


class WriterState(str, Enum):
    OPENING = "opening"
    STREAMING = "streaming"
    CLOSING = "closing"
    DONE = "done"
    ABORTED = "aborted"


class JsonArrayWriter:
    """
    Owns an open sink and writes one JSON array into it.

    ``open`` writes the opening bracket, ``write_record`` appends one
    element, ``finalize`` closes the array and releases the sink. ``abort``
    releases the sink as-is, leaving an unterminated array behind.
    """

    def __init__(self, sink: TextIO, pretty: bool = False, close_sink: bool = True):
        self._sink = sink
        self._close_sink = close_sink
        self.pretty = pretty
        self.line_break = "\n" if pretty else ""
        self.state = WriterState.OPENING
        self.records_written = 0

    @classmethod
    def create(cls, path: Path, pretty: bool = False) -> "JsonArrayWriter":
        try:
            sink = path.open("w", encoding=OUTPUT_ENCODING, newline="")
        except OSError as exc:
            raise DestinationWriteError(f"cannot create {path}: {exc}") from exc
        return cls(sink, pretty=pretty)

    def _write(self, data: str) -> None:
        try:
            self._sink.write(data)
        except OSError as exc:
            raise DestinationWriteError(f"write failed: {exc}") from exc

    def open(self) -> None:
        if self.state is not WriterState.OPENING:
            raise RuntimeError(f"cannot open writer in state {self.state.value}")
        self._write("[" + self.line_break)
        self.state = WriterState.STREAMING

    def write_record(self, record: Dict[str, str]) -> None:
        if self.state is not WriterState.STREAMING:
            raise RuntimeError(f"cannot write record in state {self.state.value}")
        if self.records_written:
            self._write("," + self.line_break)
        self._write(render_record(record, self.pretty))
        self.records_written += 1

    def finalize(self) -> None:
        if self.state is not WriterState.STREAMING:
            raise RuntimeError(f"cannot finalize writer in state {self.state.value}")
        self.state = WriterState.CLOSING
        self._write(self.line_break + "]")
        try:
            self._sink.flush()
        except OSError as exc:
            raise DestinationWriteError(f"flush failed: {exc}") from exc
        self._release()
        self.state = WriterState.DONE

    def abort(self) -> None:
        if self.state in (WriterState.DONE, WriterState.ABORTED):
            return
        self.state = WriterState.ABORTED
        self._release()

    def _release(self) -> None:
        if not self._close_sink:
            return
        try:
            self._sink.close()
        except OSError as exc:
            raise DestinationWriteError(f"close failed: {exc}") from exc


def consume_records(
    channel: RendezvousChannel[Dict[str, str]],
    open_writer,
    completion: Future,
) -> None:
    """
    Drain ``channel`` into a writer obtained from ``open_writer()``.

    Resolves ``completion`` exactly once: with the number of records written
    after the array is closed, or with the error that stopped the writer.
    """
    writer = None
    try:
        writer = open_writer()
        logger.info("Writing JSON file...")
        writer.open()
        for record in channel:
            writer.write_record(record)
        writer.finalize()
    except Exception as exc:
        channel.close(exc)
        if writer is not None:
            try:
                writer.abort()
            except DestinationWriteError:
                logger.debug("Could not close destination after failure", exc_info=True)
        completion.set_exception(exc)
        return

    logger.info("Completed!")
    completion.set_result(writer.records_written)
