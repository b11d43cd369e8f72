# config.py
# Runtime defaults read from the environment (and a local .env, if present).
#
#   APEX_PARSE_MODE           strict | tolerant            (default strict)
#   APEX_VALIDATION_MODE      strict | lenient | legacy    (default legacy)
#   APEX_EXTRA_TOOLS          comma-separated tool names   (default none)
#   APEX_ALLOW_UNKNOWN_TOOLS  true | false                 (default false)

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from apex_spec.lexer import ParseMode
from apex_spec.registry import ToolRegistry
from apex_spec.validator import ValidationMode


class ApexSettings(BaseModel):
    parse_mode: ParseMode = ParseMode.STRICT
    validation_mode: ValidationMode = ValidationMode.LEGACY
    extra_tools: list[str] = Field(default_factory=list)
    allow_unknown_tools: bool = False

    @field_validator("parse_mode", "validation_mode", mode="before")
    @classmethod
    def _lowercase_mode(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("extra_tools", mode="before")
    @classmethod
    def _split_tools(cls, value):
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


def load_settings(env_file: str | None = None) -> ApexSettings:
    """
    Build settings from the process environment.

    Values already in the environment win over the .env file. Invalid values
    raise pydantic.ValidationError.
    """
    load_dotenv(env_file)

    raw: dict[str, str] = {}
    for field, variable in (
        ("parse_mode", "APEX_PARSE_MODE"),
        ("validation_mode", "APEX_VALIDATION_MODE"),
        ("extra_tools", "APEX_EXTRA_TOOLS"),
        ("allow_unknown_tools", "APEX_ALLOW_UNKNOWN_TOOLS"),
    ):
        value = os.getenv(variable)
        if value is not None:
            raw[field] = value
    return ApexSettings.model_validate(raw)


def build_registry(settings: ApexSettings) -> ToolRegistry:
    if settings.allow_unknown_tools:
        return ToolRegistry.permissive()
    registry = ToolRegistry.new()
    registry.add_tools(settings.extra_tools)
    return registry
