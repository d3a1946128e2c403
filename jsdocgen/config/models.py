from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Language = Literal[
    "English",
    "Mandarin Chinese",
    "Spanish",
    "Hindi",
    "Portuguese",
    "Russian",
    "Japanese",
    "Yue Chinese",
    "Turkish",
    "Wu Chinese",
    "Korean",
    "French",
    "German",
    "Italian",
    "Arabic",
    "Greek",
]


class CustomTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str = Field(min_length=1)
    placeholder: str | None = None


class GenerativeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: Literal["openai", "anthropic"] = "openai"
    model: str = "gpt-4o-mini"
    api_key: str = ""
    api_key_env: str = "OPENAI_API_KEY"
    language: Language = "English"
    max_tokens: int = Field(default=256, gt=0)
    generate_description_for_type_parameters: bool = False
    generate_description_for_parameters: bool = False
    generate_description_for_returns: bool = False


class RenderConfiguration(BaseModel):
    """Snapshot of every user-configurable toggle used by the engine."""

    model_config = ConfigDict(frozen=True)

    description_placeholder: str = "Description placeholder"
    author: str = ""
    include_date: bool = False
    include_time: bool = False
    include_types: bool = True
    include_parenthesis_for_multiple_types: bool = True
    description_for_constructors: str = "Creates an instance of {Object}."
    function_variables_as_functions: bool = True
    include_export: bool = True
    include_async: bool = True
    custom_tags: tuple[CustomTag, ...] = ()
    tag_value_column_start: int = Field(default=0, ge=0)
    tag_name_column_start: int = Field(default=0, ge=0)
    tag_description_column_start: int = Field(default=0, ge=0)
    generative: GenerativeConfig = Field(default_factory=GenerativeConfig)
    ignore_patterns: tuple[str, ...] = (
        ".git",
        "node_modules",
        "dist",
        "build",
        "coverage",
        "out",
    )
    log_level: Literal["debug", "info", "warn", "error"] = "info"
