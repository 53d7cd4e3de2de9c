from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, List, TextIO, Tuple

from .channel import RendezvousChannel
from .encoding import detect_file_encoding
from .errors import ValidationError
from .models import ConversionConfig, ConversionSummary, MalformedRow, Separator
from .reader import open_source, produce_records
from .rules import SOURCE_SUFFIX
from .writer import JsonArrayWriter, consume_records, output_path_for

logger = logging.getLogger(__name__)


def check_source_file(path: Path) -> None:
    if path.suffix != SOURCE_SUFFIX:
        raise ValidationError(f"file {path} is not CSV")
    if not path.exists():
        raise ValidationError(f"file {path} does not exist")


def run_pipeline(
    open_reader: Callable[[], TextIO],
    open_writer: Callable[[], JsonArrayWriter],
    separator: Separator,
) -> Tuple[int, List[MalformedRow]]:
    """
    Run the reader and writer as two threads joined by a rendezvous channel.

    Blocks until the writer signals completion. Returns the number of
    records written and the rows that were skipped; a fatal error from
    either side is re-raised here.
    """
    channel: RendezvousChannel = RendezvousChannel()
    completion: Future = Future()
    produced: Future = Future()

    def read() -> None:
        try:
            with open_reader() as handle:
                produced.set_result(produce_records(handle, separator, channel))
        except Exception as exc:
            # opening failed before produce_records could close the channel
            channel.close(exc)
            produced.set_exception(exc)

    reader = threading.Thread(target=read, name="csv2json-reader")
    writer = threading.Thread(
        target=consume_records,
        args=(channel, open_writer, completion),
        name="csv2json-writer",
    )
    reader.start()
    writer.start()

    try:
        records_written = completion.result()
    finally:
        reader.join()
        writer.join()

    return records_written, produced.result()


def convert_file(config: ConversionConfig) -> ConversionSummary:
    source = config.filepath
    check_source_file(source)

    encoding = config.encoding or detect_file_encoding(source)
    destination = output_path_for(source)
    logger.debug("Converting %s (%s) into %s", source, encoding, destination)

    records_written, malformed = run_pipeline(
        lambda: open_source(source, encoding),
        lambda: JsonArrayWriter.create(destination, pretty=config.pretty),
        config.separator,
    )
    return ConversionSummary(
        source=str(source),
        destination=str(destination),
        encoding=encoding,
        records_written=records_written,
        malformed_rows=malformed,
    )


def convert_text(
    text: str,
    separator: Separator = Separator.COMMA,
    pretty: bool = False,
) -> Tuple[str, ConversionSummary]:
    """Same pipeline as convert_file, with in-memory source and sink."""
    sink = io.StringIO(newline="")

    records_written, malformed = run_pipeline(
        lambda: io.StringIO(text, newline=""),
        lambda: JsonArrayWriter(sink, pretty=pretty, close_sink=False),
        separator,
    )
    summary = ConversionSummary(records_written=records_written, malformed_rows=malformed)
    return sink.getvalue(), summary
