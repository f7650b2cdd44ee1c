from dataclasses import dataclass
from enum import Enum


class DiagnosticKind(str, Enum):
    UNKNOWN_TOKEN = "unknown_token"
    TYPE_MISMATCH = "type_mismatch"
    MISSING_UNIT = "missing_unit"
    UNEXPECTED_UNIT = "unexpected_unit"
    TRAILING_CONTENT = "trailing_content"
    MISSING_ROOT = "missing_root"


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """A recoverable problem found while reading, with its source position."""

    kind: DiagnosticKind
    message: str
    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}: {self.message}"
