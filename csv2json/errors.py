from __future__ import annotations

from typing import List


class Csv2JsonError(Exception):
    """Base class for every error raised by csv2json."""


class ArgumentError(Csv2JsonError):
    """The conversion configuration could not be built."""


class ValidationError(Csv2JsonError):
    """The source path failed pre-flight checks."""


class PipelineIOError(Csv2JsonError, OSError):
    """Fatal I/O failure inside the running pipeline."""


class SourceReadError(PipelineIOError):
    pass


class DestinationWriteError(PipelineIOError):
    pass


class MalformedRowError(Csv2JsonError):
    """A data row does not have as many fields as the header."""

    def __init__(self, row: List[str], expected: int):
        self.row = row
        self.expected = expected
        super().__init__(
            f"line has {len(row)} fields, header has {expected}. Skipping"
        )
