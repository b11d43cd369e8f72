# parser.py
# Groups the lexer's token stream into ordered blocks.
#
# One linear pass. A header opens a block; every following content line
# belongs to it until the next header or EOF. Nothing nests.

import logging

from pydantic import BaseModel, Field

from apex_spec.lexer import EofToken, HeaderToken, Lexer, LineToken, ParseFix, ParseMode, Token
from apex_spec.models import ApexDocument, Block

logger = logging.getLogger(__name__)


class ParseResult(BaseModel):
    """A parsed document plus any tolerant-mode repairs."""

    document: ApexDocument
    fixes: list[ParseFix] = Field(default_factory=list)


def parse_tokens(tokens: list[Token]) -> ApexDocument:
    blocks: list[Block] = []
    current: Block | None = None

    for token in tokens:
        if isinstance(token, EofToken):
            break

        if isinstance(token, HeaderToken):
            current = Block(kind=token.kind, lines=[], span=token.span)
            blocks.append(current)
            continue

        if isinstance(token, LineToken):
            if current is None:
                # Leading content before the first header is dropped.
                if token.content.strip():
                    logger.debug(
                        "Discarding content before first header at line %s",
                        token.span.start_line,
                    )
                continue
            current.lines.append(token.content)
            current.span = current.span.merge(token.span)

    logger.debug("Parsed %d block(s)", len(blocks))
    return ApexDocument(blocks=blocks)


def parse_str(text: str) -> ApexDocument:
    """Parse in strict mode."""
    return parse_tokens(Lexer(text).tokenize_all())


def parse_str_with_mode(text: str, mode: ParseMode) -> ParseResult:
    """Parse in the given mode, returning the fix log alongside the document."""
    lexer = Lexer(text, mode)
    document = parse_tokens(lexer.tokenize_all())
    return ParseResult(document=document, fixes=list(lexer.fixes))
