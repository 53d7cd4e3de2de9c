from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .rules import SEPARATOR_CHARS


class Separator(str, Enum):
    COMMA = "comma"
    SEMICOLON = "semicolon"

    @property
    def char(self) -> str:
        return SEPARATOR_CHARS[self.value]


class ConversionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    filepath: Path
    separator: Separator = Separator.COMMA
    pretty: bool = False
    encoding: Optional[str] = Field(default=None, examples=[None, "latin-1"])

    @field_validator("filepath")
    @classmethod
    def _filepath_not_empty(cls, value: Path) -> Path:
        if not str(value).strip() or value == Path("."):
            raise ValueError("a file path argument is required")
        return value


class MalformedRow(BaseModel):
    line: int
    row: List[str]
    error: str


class ConversionSummary(BaseModel):
    source: Optional[str] = None
    destination: Optional[str] = None
    encoding: str = Field(default="utf-8")
    records_written: int = 0
    malformed_rows: List[MalformedRow] = Field(default_factory=list)


class ConvertedJson(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content: str


class ReportSummary(BaseModel):
    records: int = 0
    malformed: int = 0
    separator: Separator = Separator.COMMA
    pretty: bool = False
    source_encoding: Optional[str] = Field(default=None, examples=[None])


class ConversionReport(BaseModel):
    summary: ReportSummary
    malformed_rows: List[MalformedRow] = Field(default_factory=list)


class ConvertResponse(BaseModel):
    converted_json: ConvertedJson
    report: ConversionReport

class HealthResponse(BaseModel):
    ok: bool = True
