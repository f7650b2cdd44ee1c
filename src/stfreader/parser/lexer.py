import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from stfreader.errors import LexError


class TokenKind(str, Enum):
    IDENT = "ident"
    STRING = "string"
    NUMBER = "number"
    LPAREN = "lparen"
    RPAREN = "rparen"
    EOF = "eof"


@dataclass(slots=True, frozen=True)
class Token:
    kind: TokenKind
    value: str
    name: str
    line: int
    column: int
    number: float | None = None
    unit: str | None = None

    @property
    def is_value(self) -> bool:
        return self.kind in _VALUE_KINDS


_VALUE_KINDS = frozenset({TokenKind.IDENT, TokenKind.STRING, TokenKind.NUMBER})

PAREN_TOKENS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

ESCAPES = {
    "n": "\n",
    "t": "\t",
}

NUMBER_PATTERN = re.compile(
    r"(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)"
    r"(?P<unit>[A-Za-z][A-Za-z0-9/^_]*)?"
)

_ATOM_STOP = frozenset('()"')


def iter_tokens(source: str, path: str = "<string>") -> Iterator[Token]:
    """Yield the tokens of ``source`` lazily, ending with a single EOF token."""
    index = 0
    line = 1
    line_start = 0
    length = len(source)

    while index < length:
        char = source[index]
        if char == "\n":
            index += 1
            line += 1
            line_start = index
            continue
        if char.isspace():
            index += 1
            continue

        column = index - line_start + 1

        if source.startswith("//", index):
            index = _skip_to_line_end(source, index)
            continue

        if char == '"':
            value, index, newlines, last_newline = _read_string(
                source, index, path, line, column
            )
            yield Token(TokenKind.STRING, value, value.lower(), line, column)
            if newlines:
                line += newlines
                line_start = last_newline + 1
            continue

        paren_kind = PAREN_TOKENS.get(char)
        if paren_kind is not None:
            yield Token(paren_kind, char, char, line, column)
            index += 1
            continue

        value, index = _read_atom(source, index)
        yield _classify_atom(value, line, column)

    yield Token(TokenKind.EOF, "", "", line, length - line_start + 1)


def lex(source: str, path: str = "<string>") -> list[Token]:
    return list(iter_tokens(source, path))


def _classify_atom(value: str, line: int, column: int) -> Token:
    match = NUMBER_PATTERN.fullmatch(value)
    if match is None:
        return Token(TokenKind.IDENT, value, value.lower(), line, column)
    return Token(
        TokenKind.NUMBER,
        value,
        value.lower(),
        line,
        column,
        number=float(match.group("number")),
        unit=match.group("unit"),
    )


def _skip_to_line_end(source: str, index: int) -> int:
    while index < len(source) and source[index] != "\n":
        index += 1
    return index


def _read_string(
    source: str, index: int, path: str, line: int, column: int
) -> tuple[str, int, int, int]:
    # Returns the decoded text, the index past the closing quote, and the
    # newline count and position of the last newline inside the literal.
    index += 1
    result: list[str] = []
    newlines = 0
    last_newline = -1

    while index < len(source):
        char = source[index]
        if char == '"':
            return "".join(result), index + 1, newlines, last_newline
        if char == "\\" and index + 1 < len(source):
            index += 1
            escaped = source[index]
            if escaped == "\n":
                newlines += 1
                last_newline = index
            result.append(ESCAPES.get(escaped, escaped))
        else:
            if char == "\n":
                newlines += 1
                last_newline = index
            result.append(char)
        index += 1

    raise LexError("Unterminated string literal", path=path, line=line, column=column)


def _read_atom(source: str, index: int) -> tuple[str, int]:
    start = index
    while index < len(source):
        char = source[index]
        if char.isspace() or char in _ATOM_STOP:
            break
        index += 1
    return source[start:index], index
