# validator.py
# Structural and semantic validation of a parsed APEX document.
#
# Rules run in a fixed order and fail fast on the first hard violation:
#   1. exactly one TASK           -> MissingTask / MultipleTasks
#   2. TASK not empty             -> EmptyRequiredBlock
#   3. other empty blocks         -> warning (CONTEXT/META may be empty)
#   4. typed views per kind       (constraints canonicalized here)
#   5. tool registry policy       -> error / warning / ignored, per mode
#   6. version gate (strict only) -> warning, or ValidationFailure

import logging
from enum import Enum

from pydantic import BaseModel, Field

from apex_spec.errors import ApexError
from apex_spec.models import ApexDocument, Block, BlockKind
from apex_spec.registry import ToolRegistry, extract_tool_name
from apex_spec.semantics import canonicalize

logger = logging.getLogger(__name__)

_VERSION_HINT = "(v1.1 requires version=1.1)"


class ValidationMode(str, Enum):
    STRICT = "strict"  # version gated, unknown tools are errors
    LENIENT = "lenient"  # unknown tools are warnings
    LEGACY = "legacy"  # v1.0 behaviour, no version or registry policy


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class TaskView(BaseModel):
    line: str


class GoalsView(BaseModel):
    goals: list[str] = Field(default_factory=list)


class PlanView(BaseModel):
    steps: list[str] = Field(default_factory=list)


class ConstraintsView(BaseModel):
    rules: list[str] = Field(default_factory=list, description="Canonicalized constraint lines.")


class ValidationView(BaseModel):
    conditions: list[str] = Field(default_factory=list)


class ToolDeclaration(BaseModel):
    name: str
    arguments: str | None = None
    raw: str


class ToolsView(BaseModel):
    tools: list[ToolDeclaration] = Field(default_factory=list)


class DiffFormat(str, Enum):
    UNIFIED = "unified"
    RAW = "raw"
    UNSPECIFIED = "unspecified"


class DiffView(BaseModel):
    format: DiffFormat = DiffFormat.UNSPECIFIED
    changes: list[str] = Field(default_factory=list)


class ContextView(BaseModel):
    lines: list[str] = Field(default_factory=list)


class MetaView(BaseModel):
    entries: dict[str, str] = Field(default_factory=dict)

    def version(self) -> str | None:
        return self.entries.get("version")

    def is_version_compatible(self) -> bool:
        """Only major version 1 is supported. No version means 1.0."""
        version = self.version()
        if version is None:
            return True
        return is_version_compatible(version)

    def parse_fixes(self) -> str | None:
        return self.entries.get("parse_fixes")


def is_version_compatible(version: str) -> bool:
    major = version.split(".")[0]
    # An explicit '+' sign is accepted, as unsigned integer parsing does.
    if major.startswith("+"):
        major = major[1:]
    if not (major.isascii() and major.isdigit()):
        return False
    return major.lstrip("0") == "1"


class ValidatedDocument(BaseModel):
    """The AST plus one typed view per block kind present."""

    doc: ApexDocument
    task: TaskView
    goals: GoalsView | None = None
    plan: PlanView | None = None
    constraints: ConstraintsView | None = None
    validation: ValidationView | None = None
    tools: ToolsView | None = None
    diff: DiffView | None = None
    context: ContextView | None = None
    meta: MetaView | None = None
    meta_fixes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# View builders
# ---------------------------------------------------------------------------


def _task_view(block: Block) -> TaskView:
    return TaskView(line=block.content())


def _goals_view(block: Block) -> GoalsView:
    return GoalsView(goals=block.content_lines())


def _plan_view(block: Block) -> PlanView:
    return PlanView(steps=block.content_lines())


def _constraints_view(block: Block) -> ConstraintsView:
    return ConstraintsView(rules=[canonicalize(line) for line in block.content_lines()])


def _validation_view(block: Block) -> ValidationView:
    return ValidationView(conditions=block.content_lines())


def _context_view(block: Block) -> ContextView:
    return ContextView(lines=block.content_lines())


def parse_tool_declaration(line: str) -> ToolDeclaration:
    """
    Split a TOOLS line into name and raw arguments.

    `name(args)` keeps the text inside the parentheses (or everything after
    '(' when the closing paren is missing). `name "arg"` and `name arg` keep
    the trimmed remainder. A bare name has no arguments.
    """
    trimmed = line.strip()
    name = extract_tool_name(trimmed)
    rest = trimmed[len(name):].strip()

    if rest.startswith("("):
        arguments = rest[1:-1] if rest.endswith(")") else rest[1:]
    else:
        arguments = rest or None

    return ToolDeclaration(name=name, arguments=arguments, raw=trimmed)


def _tools_view(
    block: Block,
    mode: ValidationMode,
    registry: ToolRegistry | None,
    warnings: list[str],
) -> ToolsView:
    tools: list[ToolDeclaration] = []
    header_line = block.span.start_line

    for offset, raw in enumerate(block.lines, start=1):
        if not raw.strip():
            continue
        declaration = parse_tool_declaration(raw)

        if registry is not None and not registry.is_valid(declaration.name):
            if mode is ValidationMode.STRICT:
                raise ApexError.invalid_tool(declaration.name, header_line + offset)
            if mode is ValidationMode.LENIENT:
                logger.debug("Degrading unknown tool %r", declaration.name)
                warnings.append(f"Unknown tool '{declaration.name}' (tool_degraded)")

        tools.append(declaration)

    return ToolsView(tools=tools)


def _diff_view(block: Block) -> DiffView:
    lines = block.content_lines()
    if not lines:
        return DiffView()

    marker = lines[0].lower()
    if marker == "unified":
        return DiffView(format=DiffFormat.UNIFIED, changes=lines[1:])
    if marker == "raw":
        return DiffView(format=DiffFormat.RAW, changes=lines[1:])
    return DiffView(format=DiffFormat.UNSPECIFIED, changes=lines)


def _meta_view(block: Block) -> MetaView:
    entries: dict[str, str] = {}
    for line in block.content_lines():
        for delimiter in ("=", ":"):
            key, found, value = line.partition(delimiter)
            if found:
                entries[key.strip()] = value.strip()
                break
    return MetaView(entries=entries)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def validate(doc: ApexDocument) -> ValidatedDocument:
    """Legacy-mode validation without a registry."""
    return validate_with_mode(doc, ValidationMode.LEGACY, None)


def validate_with_mode(
    doc: ApexDocument,
    mode: ValidationMode,
    registry: ToolRegistry | None = None,
) -> ValidatedDocument:
    mode = ValidationMode(mode)
    warnings: list[str] = []

    tasks = doc.get_blocks(BlockKind.TASK)
    if not tasks:
        raise ApexError.missing_task()
    if len(tasks) > 1:
        raise ApexError.multiple_tasks(tasks[1].span.start_line)

    task_block = tasks[0]
    if task_block.is_empty():
        raise ApexError.empty_block(BlockKind.TASK.as_str(), task_block.span.start_line)

    for block in doc.blocks:
        if block.kind is BlockKind.TASK or block.kind.allows_empty:
            continue
        if block.is_empty():
            warnings.append(f"Empty {block.kind.as_str()} block")

    goals = doc.goals()
    plan = doc.plan()
    constraints = doc.constraints()
    validation = doc.validation()
    tools = doc.tools()
    diff = doc.diff()
    context = doc.context()
    meta = doc.meta()

    tools_view = _tools_view(tools, mode, registry, warnings) if tools is not None else None
    meta_view = _meta_view(meta) if meta is not None else None

    if mode is ValidationMode.STRICT:
        _enforce_version(meta_view, warnings)

    logger.debug(
        "Validated document in %s mode with %d warning(s)", mode.value, len(warnings)
    )
    return ValidatedDocument(
        doc=doc.model_copy(update={"version": meta_view.version() if meta_view else None}),
        task=_task_view(task_block),
        goals=_goals_view(goals) if goals is not None else None,
        plan=_plan_view(plan) if plan is not None else None,
        constraints=_constraints_view(constraints) if constraints is not None else None,
        validation=_validation_view(validation) if validation is not None else None,
        tools=tools_view,
        diff=_diff_view(diff) if diff is not None else None,
        context=_context_view(context) if context is not None else None,
        meta=meta_view,
        warnings=warnings,
    )


def _enforce_version(meta: MetaView | None, warnings: list[str]) -> None:
    if meta is None:
        warnings.append(f"Missing META block {_VERSION_HINT}")
        return
    version = meta.version()
    if version is None:
        warnings.append(f"Missing version in META {_VERSION_HINT}")
        return
    if not meta.is_version_compatible():
        raise ApexError.unsupported_version(version)
