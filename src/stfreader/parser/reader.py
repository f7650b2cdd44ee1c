import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from stfreader.config import ReaderConfig
from stfreader.diagnostics import Diagnostic, DiagnosticKind
from stfreader.errors import (
    DiagnosticError,
    LexError,
    STFError,
    StructuralError,
    UnterminatedBlockError,
)
from stfreader.parser.dispatch import DispatchTable
from stfreader.parser.lexer import PAREN_TOKENS, Token, TokenKind, iter_tokens
from stfreader.parser.units import MissingUnit, UnexpectedUnit, Unit, convert
from stfreader.source import read_source

logger = logging.getLogger(__name__)

HEADER_PREFIX = "simisa@"
IGNORED_BLOCK_NAMES = frozenset({"comment", "skip"})
BOOL_VALUES = {"1": True, "0": False, "true": True, "false": False}

_INT_PATTERN = re.compile(r"[+-]?\d+")
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


class STFReader:
    """Cursor over the tokens of one STF text.

    Callers open blocks with ``match_exact("(")`` and hand a ``DispatchTable``
    to ``parse_block``; handlers read their own nested blocks the same way.
    ``depth`` counts the parentheses opened and not yet closed.

    A reader is good for a single pass over a single text.
    """

    def __init__(
        self,
        source: str,
        *,
        path: str = "<string>",
        config: ReaderConfig | None = None,
    ):
        self.path = path
        self.config = config or ReaderConfig()
        self.diagnostics: list[Diagnostic] = []
        self._tokens = iter_tokens(source, path)
        self._lookahead: Token | None = None
        self._started = False
        self._depth = 0

    @classmethod
    def from_file(cls, path: str | Path, *, config: ReaderConfig | None = None) -> "STFReader":
        config = config or ReaderConfig()
        return cls(read_source(path, config.encoding), path=str(path), config=config)

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def at_end(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def parse_file(self, table: DispatchTable) -> None:
        """Dispatch top-level names until the end of the text."""
        while True:
            token = self._peek()
            if token.kind is TokenKind.EOF:
                return
            if token.kind is TokenKind.RPAREN:
                self.warn(
                    DiagnosticKind.TRAILING_CONTENT,
                    "Ignored content after unbalanced ')'",
                    token,
                )
                self._discard_remaining()
                return
            self._dispatch(table, token)

    def parse_block(self, table: DispatchTable) -> None:
        """Dispatch names until the closing ')' of the current block is consumed."""
        while True:
            token = self._peek()
            if token.kind is TokenKind.RPAREN:
                self._consume()
                return
            if token.kind is TokenKind.EOF:
                raise self._error(
                    UnterminatedBlockError, "Block is not closed before end of file", token
                )
            self._dispatch(table, token)

    def match_exact(self, expected: str) -> None:
        token = self._peek()
        paren_kind = PAREN_TOKENS.get(expected)
        if paren_kind is not None:
            matched = token.kind is paren_kind
        else:
            matched = token.is_value and token.name == expected.lower()
        if matched:
            self._consume()
            return

        if token.kind is TokenKind.EOF and self._depth > 0:
            raise self._error(
                UnterminatedBlockError, f"Expected {expected!r}, reached end of file", token
            )
        raise self._error(
            StructuralError, f"Expected {expected!r}, found {_describe(token)}", token
        )

    def skip_block(self) -> None:
        self.match_exact("(")
        self.skip_rest_of_block()

    def skip_rest_of_block(self) -> None:
        """Discard tokens up to and including the ')' closing the current block."""
        if self._depth == 0:
            raise self._error(StructuralError, "Not inside a block", self._peek())
        target = self._depth - 1
        while self._depth > target:
            token = self._peek()
            if token.kind is TokenKind.EOF:
                raise self._error(
                    UnterminatedBlockError, "Block is not closed before end of file", token
                )
            self._consume()

    def read_string(self, default: str | None = None) -> str | None:
        token = self._read_value("a string")
        if token is None:
            return default
        parts = [token.value]
        # "abc" + "def" continues the same string.
        while self._peek().kind is TokenKind.IDENT and self._peek().value == "+":
            self._consume()
            continued = self._read_value("a string after '+'")
            if continued is None:
                break
            parts.append(continued.value)
        return "".join(parts)

    def read_int(self, default: int | None = None) -> int | None:
        token = self._read_value("an integer")
        if token is None:
            return default
        if token.kind is TokenKind.NUMBER and token.unit is not None:
            self.warn(
                DiagnosticKind.UNEXPECTED_UNIT,
                f"Integer {token.value!r} takes no unit",
                token,
            )
            return default
        if not _INT_PATTERN.fullmatch(token.value):
            self.warn(
                DiagnosticKind.TYPE_MISMATCH,
                f"Expected an integer, found {token.value!r}",
                token,
            )
            return default
        try:
            value = int(token.value)
        except ValueError:
            value = None
        if value is None or not INT_MIN <= value <= INT_MAX:
            self.warn(
                DiagnosticKind.TYPE_MISMATCH,
                "Integer does not fit in 32 bits",
                token,
            )
            return default
        return value

    def read_float(self, unit: Unit = Unit.NONE, default: float | None = None) -> float | None:
        token = self._read_value("a number")
        if token is None:
            return default
        if token.kind is not TokenKind.NUMBER or token.number is None:
            self.warn(
                DiagnosticKind.TYPE_MISMATCH,
                f"Expected a number, found {token.value!r}",
                token,
            )
            return default
        try:
            return convert(token.number, token.unit, unit)
        except MissingUnit as exc:
            self.warn(DiagnosticKind.MISSING_UNIT, f"{token.value!r}: {exc}", token)
        except UnexpectedUnit as exc:
            self.warn(DiagnosticKind.UNEXPECTED_UNIT, f"{token.value!r}: {exc}", token)
        return default

    def read_bool(self, default: bool | None = None) -> bool | None:
        token = self._read_value("a boolean")
        if token is None:
            return default
        value = BOOL_VALUES.get(token.name)
        if value is None:
            self.warn(
                DiagnosticKind.TYPE_MISMATCH,
                f"Expected a boolean, found {token.value!r}",
                token,
            )
            return default
        return value

    def read_string_block(self, default: str | None = None) -> str | None:
        return self._read_block(self.read_string, default)

    def read_int_block(self, default: int | None = None) -> int | None:
        return self._read_block(self.read_int, default)

    def read_float_block(
        self, unit: Unit = Unit.NONE, default: float | None = None
    ) -> float | None:
        return self._read_block(self.read_float, unit, default)

    def read_bool_block(self, default: bool | None = None) -> bool | None:
        return self._read_block(self.read_bool, default)

    def warn(self, kind: DiagnosticKind, message: str, token: Token | None = None) -> None:
        """Record a recoverable problem at ``token`` (default: the next token)."""
        if token is None:
            token = self._peek()
        diagnostic = Diagnostic(
            kind=kind,
            message=message,
            path=self.path,
            line=token.line,
            column=token.column,
        )
        if self.config.strict:
            raise DiagnosticError(diagnostic)
        self.diagnostics.append(diagnostic)
        logger.debug("%s", diagnostic)

    def _dispatch(self, table: DispatchTable, token: Token) -> None:
        if token.kind is TokenKind.LPAREN:
            self.warn(DiagnosticKind.UNKNOWN_TOKEN, "Skipped unnamed block", token)
            self._consume()
            self.skip_rest_of_block()
            return

        self._consume()
        handler = table.get(token.name)
        if handler is None:
            if not _is_ignored(token):
                self.warn(
                    DiagnosticKind.UNKNOWN_TOKEN,
                    f"Skipped unknown token {token.value!r}",
                    token,
                )
            self._skip_following_block()
            return

        depth = self._depth
        handler()
        if self._depth != depth:
            raise self._error(
                StructuralError,
                f"Block {token.value!r} was left unbalanced by its reader",
                token,
            )

    def _skip_following_block(self) -> None:
        if self._peek().kind is TokenKind.LPAREN:
            self._consume()
            self.skip_rest_of_block()

    def _read_block(self, read: Callable[..., Any], *args: Any) -> Any:
        self.match_exact("(")
        value = read(*args)
        self.skip_rest_of_block()
        return value

    def _read_value(self, expected: str) -> Token | None:
        token = self._peek()
        if token.kind is TokenKind.EOF and self._depth > 0:
            raise self._error(
                UnterminatedBlockError, f"Expected {expected}, reached end of file", token
            )
        if not token.is_value:
            # Parens stay in place so the caller's block skipping stays balanced.
            self.warn(
                DiagnosticKind.TYPE_MISMATCH,
                f"Expected {expected}, found {_describe(token)}",
                token,
            )
            return None
        return self._consume()

    def _peek(self) -> Token:
        if self._lookahead is None:
            token = next(self._tokens)
            if not self._started:
                self._started = True
                if token.kind is TokenKind.IDENT and token.name.startswith(HEADER_PREFIX):
                    token = next(self._tokens)
            self._lookahead = token
        return self._lookahead

    def _consume(self) -> Token:
        token = self._peek()
        if token.kind is TokenKind.EOF:
            return token
        if token.kind is TokenKind.RPAREN and self._depth == 0:
            raise self._error(StructuralError, "Unbalanced ')'", token)

        self._lookahead = None
        if token.kind is TokenKind.LPAREN:
            self._depth += 1
            if self._depth > self.config.max_depth:
                raise self._error(
                    StructuralError,
                    f"Blocks nested deeper than {self.config.max_depth} levels",
                    token,
                )
        elif token.kind is TokenKind.RPAREN:
            self._depth -= 1
        return token

    def _discard_remaining(self) -> None:
        try:
            while self._peek().kind is not TokenKind.EOF:
                self._lookahead = None
        except LexError as exc:
            # Discarded text need not be well formed.
            self._lookahead = Token(TokenKind.EOF, "", "", exc.line, exc.column)

    def _error(self, error_cls: type[STFError], message: str, token: Token) -> STFError:
        return error_cls(message, path=self.path, line=token.line, column=token.column)


def _is_ignored(token: Token) -> bool:
    return token.kind is TokenKind.IDENT and (
        token.name in IGNORED_BLOCK_NAMES or token.value.startswith("#")
    )


def _describe(token: Token) -> str:
    if token.kind is TokenKind.EOF:
        return "end of file"
    return repr(token.value)
