"""Error hierarchy for the STF reader."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stfreader.diagnostics import Diagnostic


class STFError(Exception):
    """Base error for all fatal reader errors."""

    def __init__(
        self,
        message: str,
        *,
        path: str = "<string>",
        line: int = 0,
        column: int = 0,
        cause: Exception | None = None,
    ):
        super().__init__(f"{path}:{line}:{column}: {message}")
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        self.cause = cause


class LexError(STFError):
    """The text could not be split into tokens."""


class StructuralError(STFError):
    """A mandatory token was missing or the block structure went out of sync."""


class UnterminatedBlockError(STFError):
    """End of input reached while a block was still open."""


class DiagnosticError(STFError):
    """A recoverable condition raised because the reader runs in strict mode."""

    def __init__(self, diagnostic: Diagnostic):
        super().__init__(
            diagnostic.message,
            path=diagnostic.path,
            line=diagnostic.line,
            column=diagnostic.column,
        )
        self.diagnostic = diagnostic


class ConfigurationError(STFError):
    """Reader misconfiguration."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message, path="<config>", cause=cause)
