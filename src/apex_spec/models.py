# models.py
# Document contracts for the APEX pipeline: spans, block kinds, blocks and the
# parsed document. No parsing or validation logic lives here.

from enum import Enum

from pydantic import BaseModel, Field


class Span(BaseModel):
    """Inclusive source range, 1-indexed. Used only for diagnostics."""

    start_line: int = Field(1, ge=1)
    end_line: int = Field(1, ge=1)
    start_col: int = Field(1, ge=1)
    end_col: int = Field(1, ge=1)

    @classmethod
    def line(cls, line: int) -> "Span":
        return cls(start_line=line, end_line=line)

    def merge(self, other: "Span") -> "Span":
        """Smallest span covering both. Ties keep this span's columns."""
        return Span(
            start_line=min(self.start_line, other.start_line),
            end_line=max(self.end_line, other.end_line),
            start_col=self.start_col if self.start_line <= other.start_line else other.start_col,
            end_col=self.end_col if self.end_line >= other.end_line else other.end_col,
        )


class BlockKind(str, Enum):
    """The nine block keywords, in canonical uppercase."""

    TASK = "TASK"
    GOALS = "GOALS"
    PLAN = "PLAN"
    CONSTRAINTS = "CONSTRAINTS"
    VALIDATION = "VALIDATION"
    TOOLS = "TOOLS"
    DIFF = "DIFF"
    CONTEXT = "CONTEXT"
    META = "META"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, text: str) -> "BlockKind | None":
        """Case-insensitive lookup. Returns None for anything outside the nine names."""
        return _BY_NAME.get(text.upper())

    def as_str(self) -> str:
        return self.value

    @property
    def is_required(self) -> bool:
        return self is BlockKind.TASK

    @property
    def allows_empty(self) -> bool:
        return self in (BlockKind.CONTEXT, BlockKind.META)


_BY_NAME: dict[str, BlockKind] = {kind.value: kind for kind in BlockKind}


class Block(BaseModel):
    """One header-delimited section. `lines` excludes the header line."""

    kind: BlockKind
    lines: list[str] = Field(default_factory=list, description="Raw content lines, verbatim.")
    span: Span = Field(default_factory=Span)

    def content_lines(self) -> list[str]:
        """Trimmed lines with blanks dropped."""
        return [stripped for stripped in (line.strip() for line in self.lines) if stripped]

    def content(self) -> str:
        return "\n".join(self.content_lines())

    def is_empty(self) -> bool:
        return not self.content_lines()


class ApexDocument(BaseModel):
    """Parsed AST: blocks in source order. Duplicate kinds are allowed here."""

    blocks: list[Block] = Field(default_factory=list)
    version: str | None = Field(default=None, description="APEX version from META, once validated.")

    def get_block(self, kind: BlockKind) -> Block | None:
        return next((block for block in self.blocks if block.kind is kind), None)

    def get_blocks(self, kind: BlockKind) -> list[Block]:
        return [block for block in self.blocks if block.kind is kind]

    def count_blocks(self, kind: BlockKind) -> int:
        return len(self.get_blocks(kind))

    # ------------------------------------------------------------------
    # Convenience accessors (first block of each kind)
    # ------------------------------------------------------------------

    def task(self) -> Block | None:
        return self.get_block(BlockKind.TASK)

    def goals(self) -> Block | None:
        return self.get_block(BlockKind.GOALS)

    def plan(self) -> Block | None:
        return self.get_block(BlockKind.PLAN)

    def constraints(self) -> Block | None:
        return self.get_block(BlockKind.CONSTRAINTS)

    def validation(self) -> Block | None:
        return self.get_block(BlockKind.VALIDATION)

    def tools(self) -> Block | None:
        return self.get_block(BlockKind.TOOLS)

    def diff(self) -> Block | None:
        return self.get_block(BlockKind.DIFF)

    def context(self) -> Block | None:
        return self.get_block(BlockKind.CONTEXT)

    def meta(self) -> Block | None:
        return self.get_block(BlockKind.META)
