"""Recursive type descriptors and their textual rendering."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Primitive:
    name: str


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class ArrayType:
    element: TypeDescriptor


@dataclass(frozen=True)
class UnionType:
    members: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class IntersectionType:
    members: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class FunctionParam:
    name: str
    type: TypeDescriptor
    optional: bool = False
    rest: bool = False


@dataclass(frozen=True)
class FunctionType:
    params: tuple[FunctionParam, ...]
    returns: TypeDescriptor


@dataclass(frozen=True)
class GenericType:
    base: str
    arguments: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class Unknown:
    pass


TypeDescriptor = (
    Primitive
    | Reference
    | ArrayType
    | UnionType
    | IntersectionType
    | FunctionType
    | GenericType
    | Unknown
)

UNKNOWN = Unknown()
VOID = Primitive("void")
UNDEFINED = Primitive("undefined")
STRING = Primitive("string")
NUMBER = Primitive("number")
BOOLEAN = Primitive("boolean")
EMPTY_OBJECT = Reference("{}")

_MULTIPLE = (UnionType, IntersectionType)


def union_of(members: list[TypeDescriptor] | tuple[TypeDescriptor, ...]) -> TypeDescriptor:
    """Build a flattened, de-duplicated union that keeps first-seen order.

    A single surviving member is returned as is; an empty input is Unknown.
    """
    flat: list[TypeDescriptor] = []
    for member in members:
        parts = member.members if isinstance(member, UnionType) else (member,)
        for part in parts:
            if part not in flat:
                flat.append(part)
    if not flat:
        return UNKNOWN
    if len(flat) == 1:
        return flat[0]
    return UnionType(tuple(flat))


def intersection_of(members: list[TypeDescriptor]) -> TypeDescriptor:
    flat: list[TypeDescriptor] = []
    for member in members:
        parts = member.members if isinstance(member, IntersectionType) else (member,)
        for part in parts:
            if part not in flat:
                flat.append(part)
    if len(flat) == 1:
        return flat[0]
    return IntersectionType(tuple(flat))


def contains_unknown(t: TypeDescriptor) -> bool:
    """True when any part of *t* could not be resolved."""
    if isinstance(t, Unknown):
        return True
    if isinstance(t, ArrayType):
        return contains_unknown(t.element)
    if isinstance(t, (UnionType, IntersectionType)):
        return any(contains_unknown(m) for m in t.members)
    if isinstance(t, GenericType):
        return any(contains_unknown(a) for a in t.arguments)
    if isinstance(t, FunctionType):
        return contains_unknown(t.returns) or any(contains_unknown(p.type) for p in t.params)
    return False


def render_type(
    t: TypeDescriptor,
    *,
    parenthesize_multiple: bool = False,
    optional: bool = False,
    rest: bool = False,
) -> str:
    """Render a descriptor as it appears between the braces of a tag.

    Unions and intersections are parenthesized when *parenthesize_multiple*
    is set, and always when prefixed by ``?`` (optional) or ``...`` (rest).
    """
    text = _render(t)
    if isinstance(t, _MULTIPLE) and (parenthesize_multiple or optional or rest):
        text = f"({text})"
    elif isinstance(t, FunctionType) and (optional or rest):
        text = f"({text})"
    if rest:
        text = f"...{text}"
    if optional:
        text = f"?{text}"
    return text


def _render(t: TypeDescriptor) -> str:
    if isinstance(t, (Primitive, Reference)):
        return t.name
    if isinstance(t, Unknown):
        return "any"
    if isinstance(t, ArrayType):
        inner = _render(t.element)
        if isinstance(t.element, (UnionType, IntersectionType, FunctionType)):
            inner = f"({inner})"
        return f"{inner}[]"
    if isinstance(t, UnionType):
        return " | ".join(_render_member(m, (FunctionType,)) for m in t.members)
    if isinstance(t, IntersectionType):
        return " & ".join(_render_member(m, (FunctionType, UnionType)) for m in t.members)
    if isinstance(t, GenericType):
        args = ", ".join(_render(a) for a in t.arguments)
        return f"{t.base}<{args}>"
    if isinstance(t, FunctionType):
        params = ", ".join(_render_param(p) for p in t.params)
        return f"({params}) => {_render(t.returns)}"
    raise TypeError(f"not a type descriptor: {t!r}")


def _render_member(t: TypeDescriptor, wrap: tuple[type, ...]) -> str:
    text = _render(t)
    return f"({text})" if isinstance(t, wrap) else text


def _render_param(p: FunctionParam) -> str:
    prefix = "..." if p.rest else ""
    marker = "?" if p.optional and not p.rest else ""
    return f"{prefix}{p.name}{marker}: {_render(p.type)}"
