# pipeline.py
# Public entry points chaining lex -> parse -> validate -> interpret.
#
# Each stage returns a new structure; nothing upstream is mutated. Any stage
# may raise ApexError, which propagates unchanged.

from apex_spec.config import ApexSettings, build_registry
from apex_spec.interpreter import ExecutionPlan, build_execution_plan
from apex_spec.lexer import ParseMode
from apex_spec.parser import parse_str, parse_str_with_mode
from apex_spec.registry import ToolRegistry
from apex_spec.validator import ValidatedDocument, ValidationMode, validate, validate_with_mode

APEX_VERSION = "1.1"
APEX_MIN_VERSION = "1.0"


def parse_and_validate(text: str) -> ValidatedDocument:
    """Strict parse, legacy validation."""
    return validate(parse_str(text))


def parse_full(text: str) -> ExecutionPlan:
    """Strict parse, legacy validation, then build the plan."""
    return build_execution_plan(parse_and_validate(text))


def parse_and_validate_with_mode(
    text: str,
    parse_mode: ParseMode = ParseMode.STRICT,
    validation_mode: ValidationMode = ValidationMode.LEGACY,
    registry: ToolRegistry | None = None,
) -> ValidatedDocument:
    """
    Parse and validate with explicit modes.

    Tolerant-mode repairs are reported in `meta_fixes` on the result, never
    as warnings.
    """
    result = parse_str_with_mode(text, parse_mode)
    validated = validate_with_mode(result.document, validation_mode, registry)
    return validated.model_copy(update={"meta_fixes": [fix.description for fix in result.fixes]})


def parse_full_with_mode(
    text: str,
    parse_mode: ParseMode = ParseMode.STRICT,
    validation_mode: ValidationMode = ValidationMode.LEGACY,
    registry: ToolRegistry | None = None,
) -> ExecutionPlan:
    return build_execution_plan(
        parse_and_validate_with_mode(text, parse_mode, validation_mode, registry)
    )


def run_with_settings(text: str, settings: ApexSettings) -> tuple[ValidatedDocument, ExecutionPlan]:
    """Validate and interpret using configured modes and registry."""
    validated = parse_and_validate_with_mode(
        text,
        settings.parse_mode,
        settings.validation_mode,
        build_registry(settings),
    )
    return validated, build_execution_plan(validated)
