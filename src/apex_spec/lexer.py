# lexer.py
# Line-oriented tokenizer for APEX documents.
#
# Every input line becomes exactly one token: a block header or a content
# line. Header recognition is delegated to a matcher chosen once per lexer
# (strict or tolerant); both read the same canonical keyword table.

import logging
from enum import Enum
from typing import Union

from pydantic import BaseModel

from apex_spec.models import BlockKind, Span

logger = logging.getLogger(__name__)


class ParseMode(str, Enum):
    STRICT = "strict"  # exact uppercase headers only
    TOLERANT = "tolerant"  # any casing, repairs recorded as fixes


class ParseFix(BaseModel):
    """A lexical repair applied in tolerant mode."""

    line: int
    description: str


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class HeaderToken(BaseModel):
    kind: BlockKind
    span: Span


class LineToken(BaseModel):
    content: str
    span: Span


class EofToken(BaseModel):
    span: None = None


Token = Union[HeaderToken, LineToken, EofToken]


# ---------------------------------------------------------------------------
# Header matchers
# ---------------------------------------------------------------------------


def _is_canonical_case(text: str) -> bool:
    return all(("A" <= c <= "Z") or c == "_" for c in text)


class _StrictHeaders:
    """Exact uppercase keyword, nothing else on the line."""

    def __init__(self) -> None:
        self.fixes: list[ParseFix] = []

    def match(self, line: str, line_number: int) -> BlockKind | None:
        trimmed = line.strip()
        if not _is_canonical_case(trimmed):
            return None
        return BlockKind.from_str(trimmed)


class _TolerantHeaders:
    """Any casing of a keyword. Non-canonical casing is logged as a fix."""

    def __init__(self) -> None:
        self.fixes: list[ParseFix] = []

    def match(self, line: str, line_number: int) -> BlockKind | None:
        trimmed = line.strip()
        kind = BlockKind.from_str(trimmed)
        if kind is None:
            return None
        if not _is_canonical_case(trimmed):
            fix = ParseFix(
                line=line_number,
                description=f"Normalized header '{trimmed}' to '{kind.as_str()}'",
            )
            logger.debug("Tolerant fix at line %s: %s", line_number, fix.description)
            self.fixes.append(fix)
        return kind


_MATCHERS = {
    ParseMode.STRICT: _StrictHeaders,
    ParseMode.TOLERANT: _TolerantHeaders,
}


def _split_lines(text: str) -> list[str]:
    """
    Split on '\\n' only. A '\\r' directly before a '\\n' is dropped; other
    control characters stay inside the line. A trailing newline does not
    open an extra empty line.
    """
    pieces = text.split("\n")
    last = pieces.pop()
    lines = [piece[:-1] if piece.endswith("\r") else piece for piece in pieces]
    if last:
        lines.append(last)
    return lines


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------


class Lexer:
    """
    Tokenizes a whole document, one token per line, then a terminal EofToken.

    Tokenization is total for text input. ApexError.lex exists for future
    lexical errors but nothing here raises it.
    """

    def __init__(self, text: str, mode: ParseMode = ParseMode.STRICT) -> None:
        self._lines: list[str] = _split_lines(text)
        self._index = 0
        self._mode = ParseMode(mode)
        self._headers = _MATCHERS[self._mode]()

    @property
    def mode(self) -> ParseMode:
        return self._mode

    @property
    def fixes(self) -> list[ParseFix]:
        return self._headers.fixes

    def is_eof(self) -> bool:
        return self._index >= len(self._lines)

    def current_line_number(self) -> int:
        return self._index + 1

    def peek_line(self) -> str | None:
        if self.is_eof():
            return None
        return self._lines[self._index]

    def next_token(self) -> Token:
        if self.is_eof():
            return EofToken()

        line = self._lines[self._index]
        line_number = self.current_line_number()
        self._index += 1

        span = Span.line(line_number)
        kind = self._headers.match(line, line_number)
        if kind is not None:
            return HeaderToken(kind=kind, span=span)
        return LineToken(content=line, span=span)

    def tokenize_all(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if isinstance(token, EofToken):
                break
        logger.debug("Tokenized %d line(s) in %s mode", len(tokens) - 1, self._mode.value)
        return tokens

    def reset(self) -> None:
        self._index = 0
        self._headers.fixes.clear()
