"""
Source encoding detection.

Rules:
- Detect encoding best-effort via charset-normalizer from the head of the source.
- A UTF-8 BOM always wins, and is stripped by decoding with utf-8-sig.
- A sample that decodes as UTF-8 is UTF-8; a character cut off at the end of
  the sample does not count against it.
- Pure ASCII samples are widened to UTF-8, since only the head was inspected.
- If detection finds nothing, fall back to UTF-8.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path
from typing import Tuple

from charset_normalizer import from_bytes

from .errors import SourceReadError
from .rules import ENCODING_SAMPLE_BYTES

logger = logging.getLogger(__name__)


def _canonical(name: str) -> str:
    return codecs.lookup(name).name


def _is_utf8(sample: bytes) -> bool:
    try:
        codecs.getincrementaldecoder("utf-8")().decode(sample, final=False)
    except UnicodeDecodeError:
        return False
    return True


def detect_encoding(sample: bytes) -> str:
    if sample.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    if _is_utf8(sample):
        return "utf-8"

    match = from_bytes(sample).best()
    if match is None:
        return "utf-8"

    detected = _canonical(match.encoding)
    if detected == "ascii":
        return "utf-8"
    return detected


def detect_file_encoding(path: Path) -> str:
    try:
        with path.open("rb") as handle:
            sample = handle.read(ENCODING_SAMPLE_BYTES)
    except OSError as exc:
        raise SourceReadError(f"cannot open {path}: {exc}") from exc

    encoding = detect_encoding(sample)
    logger.debug("Detected encoding %s for %s", encoding, path)
    return encoding


def decode_bytes(raw: bytes) -> Tuple[str, str]:
    """
    Decode an in-memory upload, returning (text, encoding used).

    Falls back to UTF-8 when the detected codec cannot decode the whole
    payload; a payload UTF-8 cannot decode either is a SourceReadError.
    """
    encoding = detect_encoding(raw)
    try:
        return raw.decode(encoding), encoding
    except UnicodeDecodeError:
        logger.debug("Decoding with %s failed, retrying as utf-8", encoding)

    try:
        return raw.decode("utf-8"), "utf-8"
    except UnicodeDecodeError as exc:
        raise SourceReadError(f"cannot decode source: {exc}") from exc
