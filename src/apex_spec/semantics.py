# semantics.py
# Constraint canonicalization, constraint classification, block precedence
# and a coarse complexity estimate derived from a validated document.
#
# Nothing here resolves conflicts. Precedence is advisory metadata for the
# runtime that executes the plan.

from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from apex_spec.models import BlockKind

if TYPE_CHECKING:
    from apex_spec.validator import ValidatedDocument

_U32_MAX = 2**32 - 1


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


def normalize_constraint(text: str) -> str:
    """
    Canonical identifier for a free-text constraint.

    Lowercase, every run of non-alphanumerics becomes one '_', no leading
    or trailing '_'. Idempotent on its own output.

        >>> normalize_constraint("< 300 LOC")
        '300_loc'
    """
    out: list[str] = []
    last_was_separator = True
    for char in text.strip().lower():
        if char.isascii() and char.isalnum():
            out.append(char)
            last_was_separator = False
        elif not last_was_separator:
            out.append("_")
            last_was_separator = True
    if out and out[-1] == "_":
        out.pop()
    return "".join(out)


def canonicalize(text: str) -> str:
    return normalize_constraint(text)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


class ConstraintKind(str, Enum):
    REAL_DBS_ONLY = "real_dbs_only"
    NO_MOCKS = "no_mocks"
    NO_STUBS = "no_stubs"
    SAFE_REFACTOR = "safe_refactor"
    API_COMPAT = "api_compat"
    REQUIRE_TESTS = "require_tests"
    LT_LOC = "lt_loc"
    OTHER = "other"


_SYNONYMS: dict[str, ConstraintKind] = {
    "no_mocks": ConstraintKind.NO_MOCKS,
    "real_dbs": ConstraintKind.REAL_DBS_ONLY,
    "real_dbs_only": ConstraintKind.REAL_DBS_ONLY,
    "real_databases": ConstraintKind.REAL_DBS_ONLY,
    "real_databases_only": ConstraintKind.REAL_DBS_ONLY,
    "no_stubs": ConstraintKind.NO_STUBS,
    "safe_refactor": ConstraintKind.SAFE_REFACTOR,
    "safe_refactoring": ConstraintKind.SAFE_REFACTOR,
    "api_compat": ConstraintKind.API_COMPAT,
    "api_compatibility": ConstraintKind.API_COMPAT,
    "api_compatibility_required": ConstraintKind.API_COMPAT,
    "require_tests": ConstraintKind.REQUIRE_TESTS,
    "tests_required": ConstraintKind.REQUIRE_TESTS,
}


def _fuzzy_kind(lower: str) -> ConstraintKind | None:
    """Keyword co-occurrence on the original lowercased text, first hit wins."""
    if "real" in lower and ("db" in lower or "database" in lower):
        return ConstraintKind.REAL_DBS_ONLY
    if "no" in lower and "mock" in lower:
        return ConstraintKind.NO_MOCKS
    if "no" in lower and "stub" in lower:
        return ConstraintKind.NO_STUBS
    if "safe" in lower and "refactor" in lower:
        return ConstraintKind.SAFE_REFACTOR
    if "api" in lower and "compat" in lower:
        return ConstraintKind.API_COMPAT
    if "require" in lower and "test" in lower:
        return ConstraintKind.REQUIRE_TESTS
    return None


class Constraint(BaseModel, frozen=True):
    """
    Canonical decoding of one constraint line.

    `limit` is set only for LT_LOC; `text` only for OTHER.
    """

    kind: ConstraintKind
    limit: int | None = None
    text: str | None = None

    @classmethod
    def lt_loc(cls, limit: int) -> "Constraint":
        return cls(kind=ConstraintKind.LT_LOC, limit=limit)

    @classmethod
    def other(cls, text: str) -> "Constraint":
        return cls(kind=ConstraintKind.OTHER, text=text)

    @classmethod
    def from_str(cls, raw: str) -> "Constraint":
        canonical = normalize_constraint(raw)

        kind = _SYNONYMS.get(canonical)
        if kind is not None:
            return cls(kind=kind)

        if "loc" in canonical:
            digits = "".join(c for c in canonical if c.isdigit())
            if digits and len(digits) <= len(str(_U32_MAX)) and int(digits) <= _U32_MAX:
                return cls.lt_loc(int(digits))

        kind = _fuzzy_kind(raw.lower())
        if kind is not None:
            return cls(kind=kind)

        return cls.other(canonical)

    def as_str(self) -> str:
        if self.kind is ConstraintKind.LT_LOC:
            return f"lt_{self.limit}_loc"
        if self.kind is ConstraintKind.OTHER:
            return self.text or ""
        return self.kind.value


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class Precedence(IntEnum):
    """CONSTRAINTS > TASK > GOALS > PLAN > CONTEXT (everything else)."""

    CONTEXT = 1
    PLAN = 2
    GOALS = 3
    TASK = 4
    CONSTRAINTS = 5

    @classmethod
    def for_block(cls, kind: BlockKind) -> "Precedence":
        return _PRECEDENCE_BY_KIND[kind]


_PRECEDENCE_BY_KIND: dict[BlockKind, Precedence] = {
    BlockKind.TASK: Precedence.TASK,
    BlockKind.GOALS: Precedence.GOALS,
    BlockKind.PLAN: Precedence.PLAN,
    BlockKind.CONSTRAINTS: Precedence.CONSTRAINTS,
    BlockKind.VALIDATION: Precedence.CONTEXT,
    BlockKind.TOOLS: Precedence.CONTEXT,
    BlockKind.DIFF: Precedence.CONTEXT,
    BlockKind.CONTEXT: Precedence.CONTEXT,
    BlockKind.META: Precedence.CONTEXT,
}


# ---------------------------------------------------------------------------
# Semantics
# ---------------------------------------------------------------------------

# (inclusive upper bound on plan steps, complexity)
_COMPLEXITY_BUCKETS: tuple[tuple[int, int], ...] = ((2, 1), (5, 2), (10, 3), (20, 4))


def complexity_for(step_count: int) -> int:
    for upper, score in _COMPLEXITY_BUCKETS:
        if step_count <= upper:
            return score
    return 5


class Semantics(BaseModel):
    constraints: list[Constraint] = Field(default_factory=list)
    requires_plan: bool = False
    complexity: int = Field(1, ge=1, le=5)

    @classmethod
    def from_validated(cls, doc: "ValidatedDocument") -> "Semantics":
        constraints = (
            [Constraint.from_str(rule) for rule in doc.constraints.rules]
            if doc.constraints is not None
            else []
        )
        complexity = complexity_for(len(doc.plan.steps)) if doc.plan is not None else 1
        requires_plan = doc.goals is not None and len(doc.goals.goals) > 1
        return cls(constraints=constraints, requires_plan=requires_plan, complexity=complexity)

    def _has(self, kind: ConstraintKind) -> bool:
        return any(c.kind is kind for c in self.constraints)

    def forbids_mocks(self) -> bool:
        return self._has(ConstraintKind.NO_MOCKS)

    def forbids_stubs(self) -> bool:
        return self._has(ConstraintKind.NO_STUBS)

    def requires_real_dbs(self) -> bool:
        return self._has(ConstraintKind.REAL_DBS_ONLY)

    def requires_tests(self) -> bool:
        return self._has(ConstraintKind.REQUIRE_TESTS)

    def requires_safe_refactor(self) -> bool:
        return self._has(ConstraintKind.SAFE_REFACTOR)

    def requires_api_compat(self) -> bool:
        return self._has(ConstraintKind.API_COMPAT)

    def loc_limit(self) -> int | None:
        """First LOC limit declared, if any."""
        return next(
            (c.limit for c in self.constraints if c.kind is ConstraintKind.LT_LOC),
            None,
        )

    def custom_constraints(self) -> list[str]:
        return [c.text for c in self.constraints if c.kind is ConstraintKind.OTHER and c.text is not None]
