"""Data model for classified declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from jsdocgen.syntax.types import TypeDescriptor

Visibility = Literal["public", "private", "protected"]


class DeclarationKind(str, Enum):
    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    ARROW_OR_FUNCTION_VARIABLE = "function_variable"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    ENUM = "enum"
    PROPERTY_OR_FIELD = "property"
    PARAMETER = "parameter"
    TYPE_PARAMETER = "type_parameter"

    @property
    def is_callable(self) -> bool:
        return self in _CALLABLE_KINDS


_CALLABLE_KINDS = frozenset({
    DeclarationKind.FUNCTION,
    DeclarationKind.METHOD,
    DeclarationKind.CONSTRUCTOR,
    DeclarationKind.ARROW_OR_FUNCTION_VARIABLE,
})


@dataclass(frozen=True)
class SourceSpan:
    """Byte range of a declaration, including its export keyword and decorators."""

    start_byte: int
    end_byte: int
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type: TypeDescriptor
    optional: bool = False
    rest: bool = False
    has_default: bool = False
    default: str | None = None
    # Destructured object patterns are documented as ``param0.key`` entries.
    properties: tuple[ParameterInfo, ...] = ()
    node: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TypeParameterInfo:
    name: str
    constraint: TypeDescriptor | None = None
    default: TypeDescriptor | None = None


@dataclass(frozen=True)
class Modifiers:
    exported: bool = False
    default_export: bool = False
    is_async: bool = False
    is_generator: bool = False
    is_static: bool = False
    is_abstract: bool = False
    is_readonly: bool = False
    optional: bool = False
    visibility: Visibility | None = None
    accessor: Literal["get", "set"] | None = None


@dataclass(frozen=True)
class DeclarationRecord:
    """A classified declaration, immutable once built.

    ``node`` and ``value_node`` are borrowed tree-sitter handles; they are only
    valid while the owning document's tree is alive.
    """

    kind: DeclarationKind
    name: str | None
    span: SourceSpan
    indent: str = ""
    own_line: bool = True
    parameters: tuple[ParameterInfo, ...] = ()
    type_parameters: tuple[TypeParameterInfo, ...] = ()
    return_type: TypeDescriptor | None = None
    value_type: TypeDescriptor | None = None
    modifiers: Modifiers = field(default_factory=Modifiers)
    extends: tuple[TypeDescriptor, ...] = ()
    implements: tuple[TypeDescriptor, ...] = ()
    container: str | None = None
    degraded: bool = False
    node: Any = field(default=None, compare=False, repr=False)
    value_node: Any = field(default=None, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or "<anonymous>"
