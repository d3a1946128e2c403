"""Tag planner: turns a DeclarationRecord into an ordered list of TagRecords."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.drafter.models import SUMMARY, TagRecord
from jsdocgen.syntax.models import DeclarationKind, DeclarationRecord, ParameterInfo
from jsdocgen.syntax.types import VOID, ArrayType, TypeDescriptor, render_type

if TYPE_CHECKING:
    from jsdocgen.drafter.describer import DescriptionGenerator
    from jsdocgen.workspace.traversal import CancellationToken

logger = logging.getLogger(__name__)

_Section = Callable[[DeclarationRecord, RenderConfiguration], list[TagRecord]]


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _summary(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    text = config.description_placeholder
    if record.kind is DeclarationKind.CONSTRUCTOR and record.container:
        text = config.description_for_constructors.replace("{Object}", record.container)
    return [TagRecord(tag=SUMMARY, description=text)]


def _type_text(
    t: TypeDescriptor | None,
    config: RenderConfiguration,
    *,
    optional: bool = False,
    rest: bool = False,
) -> str | None:
    if t is None or not config.include_types:
        return None
    return render_type(
        t,
        parenthesize_multiple=config.include_parenthesis_for_multiple_types,
        optional=optional,
        rest=rest,
    )


def _flag(tag: str, attribute: str) -> _Section:
    def section(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
        return [TagRecord(tag=tag)] if getattr(record.modifiers, attribute) else []

    return section


def _visibility(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    visibility = record.modifiers.visibility
    return [TagRecord(tag=visibility)] if visibility else []


def _export(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    if config.include_export and record.modifiers.exported:
        return [TagRecord(tag="export")]
    return []


def _async(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    if config.include_async and record.modifiers.is_async:
        return [TagRecord(tag="async")]
    return []


def _templates(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    tags = []
    for param in record.type_parameters:
        name = param.name
        if param.default is not None:
            default = render_type(param.default) if config.include_types else None
            name = f"[{param.name}={default}]" if default else f"[{param.name}]"
        tags.append(TagRecord(tag="template", type=_type_text(param.constraint, config), name=name))
    return tags


def _param_name(param: ParameterInfo) -> str:
    if param.has_default and param.default is not None:
        return f"[{param.name}={param.default}]"
    if param.optional:
        return f"[{param.name}]"
    return param.name


def _param_tag(param: ParameterInfo, config: RenderConfiguration) -> TagRecord:
    declared = param.type
    if param.rest and isinstance(declared, ArrayType):
        declared = declared.element
    optional = param.optional and not param.rest
    return TagRecord(
        tag="param",
        type=_type_text(declared, config, optional=optional, rest=param.rest),
        name=_param_name(param),
    )


def _params(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    tags = []
    for param in record.parameters:
        tags.append(_param_tag(param, config))
        tags.extend(_param_tag(prop, config) for prop in param.properties)
    return tags


def _returns(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    if record.return_type is None:
        return []
    if not config.include_types and record.return_type == VOID:
        return []
    return [TagRecord(tag="returns", type=_type_text(record.return_type, config))]


def _class_name(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag="class", name=record.name)]


def _interface_name(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag="interface", name=record.name)]


def _self_typedef(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    if record.name is None or not config.include_types:
        return []
    return [TagRecord(tag="typedef", type=record.name)]


def _alias_typedef(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag="typedef", type=_type_text(record.value_type, config), name=record.name)]


def _heritage(tag: str, attribute: str) -> _Section:
    def section(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
        tags = []
        for base in getattr(record, attribute):
            text = render_type(base)
            if config.include_types:
                tags.append(TagRecord(tag=tag, type=text))
            else:
                tags.append(TagRecord(tag=tag, name=text))
        return tags

    return section


def _enum(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag="enum", type=_type_text(record.value_type, config))]


def _constructor(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag="constructor")]


def _value_type(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    text = _type_text(record.value_type, config, optional=record.modifiers.optional)
    return [TagRecord(tag="type", type=text)] if text is not None else []


def _custom(record: DeclarationRecord, config: RenderConfiguration) -> list[TagRecord]:
    return [TagRecord(tag=t.tag, description=t.placeholder) for t in config.custom_tags]


# ---------------------------------------------------------------------------
# Precedence tables
# ---------------------------------------------------------------------------

_FUNCTION: tuple[_Section, ...] = (
    _summary, _templates, _params, _returns, _export, _async, _custom,
)

PRECEDENCE: dict[DeclarationKind, tuple[_Section, ...]] = {
    DeclarationKind.FUNCTION: _FUNCTION,
    # class fields holding functions carry member modifiers
    DeclarationKind.ARROW_OR_FUNCTION_VARIABLE: (
        _summary,
        _visibility,
        _flag("static", "is_static"),
        *_FUNCTION[1:],
    ),
    DeclarationKind.METHOD: (
        _summary,
        _visibility,
        _flag("static", "is_static"),
        _flag("abstract", "is_abstract"),
        _templates,
        _params,
        _returns,
        _async,
        _custom,
    ),
    DeclarationKind.CONSTRUCTOR: (_summary, _constructor, _visibility, _params, _custom),
    DeclarationKind.CLASS: (
        _summary,
        _flag("abstract", "is_abstract"),
        _class_name,
        _self_typedef,
        _templates,
        _heritage("extends", "extends"),
        _heritage("implements", "implements"),
        _export,
        _custom,
    ),
    DeclarationKind.INTERFACE: (
        _summary,
        _interface_name,
        _self_typedef,
        _templates,
        _heritage("extends", "extends"),
        _export,
        _custom,
    ),
    DeclarationKind.TYPE_ALIAS: (_summary, _alias_typedef, _templates, _export, _custom),
    DeclarationKind.ENUM: (_summary, _enum, _export, _custom),
    DeclarationKind.PROPERTY_OR_FIELD: (
        _summary,
        _visibility,
        _flag("static", "is_static"),
        _flag("readonly", "is_readonly"),
        _value_type,
        _export,
        _custom,
    ),
    DeclarationKind.PARAMETER: (_summary, _value_type, _custom),
    DeclarationKind.TYPE_PARAMETER: (_summary, _templates, _custom),
}


def plan(record: DeclarationRecord, config: RenderConfiguration) -> tuple[TagRecord, ...]:
    """Produce the tags for *record* in the fixed order of its kind."""
    tags: list[TagRecord] = []
    for section in PRECEDENCE[record.kind]:
        tags.extend(section(record, config))
    return tuple(tags)


# ---------------------------------------------------------------------------
# Description generation
# ---------------------------------------------------------------------------


async def fill_descriptions(
    tags: tuple[TagRecord, ...],
    record: DeclarationRecord,
    describer: DescriptionGenerator | None,
    config: RenderConfiguration,
    token: CancellationToken | None = None,
) -> tuple[TagRecord, ...]:
    """Replace placeholder descriptions with generated text.

    The summary is always requested (constructors keep their template);
    template, param and returns descriptions are requested only when their
    generative flag is on. Once *token* is cancelled no further calls are
    made and the remaining tags keep their placeholders.
    """
    if describer is None:
        return tags
    generative = config.generative
    wanted = {
        "template": generative.generate_description_for_type_parameters,
        "param": generative.generate_description_for_parameters,
        "returns": generative.generate_description_for_returns,
    }
    filled: list[TagRecord] = []
    for tag in tags:
        if tag.is_summary:
            requested = record.kind is not DeclarationKind.CONSTRUCTOR
        else:
            requested = wanted.get(tag.tag, False)
        if not requested:
            filled.append(tag)
            continue
        if token is not None and token.cancelled:
            logger.debug("cancelled; keeping placeholder for @%s", tag.tag)
            filled.append(tag)
            continue
        text = await describer.describe(record, tag)
        filled.append(tag.model_copy(update={"description": text}))
    return tuple(filled)
