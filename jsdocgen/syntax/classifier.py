"""Declaration classifier: labels a syntax node with its DeclarationKind."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import replace

from tree_sitter import Node

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.errors import AlreadyDocumented, NotDocumentable
from jsdocgen.syntax.inference import (
    TypeInferencer,
    has_token,
    is_function_expression,
    unwrap_parentheses,
)
from jsdocgen.syntax.models import (
    DeclarationKind,
    DeclarationRecord,
    Modifiers,
    SourceSpan,
    TypeParameterInfo,
    Visibility,
)
from jsdocgen.syntax.parser import SourceDocument
from jsdocgen.syntax.types import (
    NUMBER,
    STRING,
    UNKNOWN,
    FunctionType,
    GenericType,
    Reference,
    Unknown,
    union_of,
)

logger = logging.getLogger(__name__)

CLASS_NODES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
CLASS_MEMBERS = frozenset({
    "method_definition",
    "method_signature",
    "abstract_method_signature",
    "public_field_definition",
    "field_definition",
})
INTERFACE_MEMBERS = frozenset({"property_signature", "method_signature"})
TOP_LEVEL_DECLARATIONS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "lexical_declaration",
    "variable_declaration",
})
_MODULE_NODES = frozenset({"internal_module", "module"})


class DeclarationClassifier:
    """Classifies nodes of a single document into DeclarationRecords.

    Type slots without an explicit annotation are left ``Unknown``; the
    TypeInferencer fills them in a second pass.
    """

    def __init__(self, document: SourceDocument, config: RenderConfiguration) -> None:
        self.document = document
        self.config = config
        self.types = TypeInferencer(document)
        self._handlers = {
            "function_declaration": self._function,
            "generator_function_declaration": self._function,
            "function_expression": self._default_export_function,
            "function": self._default_export_function,
            "generator_function": self._default_export_function,
            "arrow_function": self._default_export_function,
            "function_signature": self._overload,
            "class_declaration": self._class,
            "abstract_class_declaration": self._class,
            "class": self._default_export_class,
            "interface_declaration": self._interface,
            "type_alias_declaration": self._type_alias,
            "enum_declaration": self._enum,
            "lexical_declaration": self._variable,
            "variable_declaration": self._variable,
            "method_definition": self._method,
            "method_signature": self._method,
            "abstract_method_signature": self._method,
            "public_field_definition": self._field,
            "field_definition": self._field,
            "property_signature": self._field,
            "required_parameter": self._parameter,
            "optional_parameter": self._parameter,
            "type_parameter": self._type_parameter,
        }

    # -- public API --------------------------------------------------------

    def classify(self, node: Node) -> DeclarationRecord:
        """Classify *node*.

        Raises NotDocumentable for unsupported, ambiguous, overloaded or
        ambient nodes, and AlreadyDocumented when a JSDoc comment already
        precedes the declaration.
        """
        node = self._normalize(node)
        handler = self._handlers.get(node.type)
        if handler is None:
            raise NotDocumentable(node.type)
        if _inside_ambient(node):
            raise NotDocumentable(node.type, "ambient declaration")
        anchor = self.anchor(node)
        record = handler(node, anchor)
        if self.has_jsdoc(anchor):
            raise AlreadyDocumented(record.name)
        return record

    def anchor(self, node: Node) -> Node:
        """Outermost node a comment must precede (export keyword, decorators)."""
        anchor = node
        if anchor.parent is not None and anchor.parent.type == "export_statement":
            anchor = anchor.parent
        while anchor.prev_sibling is not None and anchor.prev_sibling.type == "decorator":
            anchor = anchor.prev_sibling
        return anchor

    def has_jsdoc(self, anchor: Node) -> bool:
        previous = anchor.prev_sibling
        if previous is None or previous.type != "comment":
            return False
        text = self.document.source[previous.start_byte:previous.end_byte]
        if not text.startswith(b"/**") or text.startswith(b"/**/"):
            return False
        gap = self.document.source[previous.end_byte:anchor.start_byte]
        return gap.strip() == b""

    # -- normalization -----------------------------------------------------

    def _normalize(self, node: Node) -> Node:
        if node.type == "export_statement":
            inner = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            if inner is None:
                raise NotDocumentable(node.type, "re-export")
            return inner
        if node.type == "variable_declarator" and node.parent is not None:
            return node.parent
        return node

    def _record(self, kind: DeclarationKind, name: str | None, anchor: Node, **fields) -> DeclarationRecord:
        span = SourceSpan(
            start_byte=anchor.start_byte,
            end_byte=anchor.end_byte,
            start_line=anchor.start_point[0],
            start_column=anchor.start_point[1],
            end_line=anchor.end_point[0],
            end_column=anchor.end_point[1],
        )
        return DeclarationRecord(
            kind=kind,
            name=name,
            span=span,
            indent=self.document.indent_at(anchor.start_byte),
            own_line=self.document.starts_line(anchor.start_byte),
            **fields,
        )

    # -- handlers ----------------------------------------------------------

    def _function(self, node: Node, anchor: Node) -> DeclarationRecord:
        exported, default = _export_flags(node)
        single = node.child_by_field_name("parameter")
        if single is not None:
            parameters = (self.types.read_parameter(single, 0),)
        else:
            parameters = self.types.read_parameters(node.child_by_field_name("parameters"))
        return self._record(
            DeclarationKind.FUNCTION,
            self._name(node),
            anchor,
            parameters=parameters,
            type_parameters=self._type_parameters(node),
            return_type=self._return_annotation(node),
            modifiers=Modifiers(
                exported=exported,
                default_export=default,
                is_async=has_token(node, "async"),
                is_generator=node.type.startswith("generator_") or has_token(node, "*"),
            ),
            node=node,
        )

    def _default_export_function(self, node: Node, anchor: Node) -> DeclarationRecord:
        if node.parent is None or node.parent.type != "export_statement":
            raise NotDocumentable(node.type, "function expression outside a declaration")
        return self._function(node, anchor)

    def _overload(self, node: Node, anchor: Node) -> DeclarationRecord:
        raise NotDocumentable(node.type, "overload without body")

    def _class(self, node: Node, anchor: Node) -> DeclarationRecord:
        exported, default = _export_flags(node)
        extends, implements = self._heritage(node)
        return self._record(
            DeclarationKind.CLASS,
            self._name(node),
            anchor,
            type_parameters=self._type_parameters(node),
            modifiers=Modifiers(
                exported=exported,
                default_export=default,
                is_abstract=node.type == "abstract_class_declaration",
            ),
            extends=extends,
            implements=implements,
            node=node,
        )

    def _default_export_class(self, node: Node, anchor: Node) -> DeclarationRecord:
        if node.parent is None or node.parent.type != "export_statement":
            raise NotDocumentable(node.type, "class expression outside a declaration")
        return self._class(node, anchor)

    def _interface(self, node: Node, anchor: Node) -> DeclarationRecord:
        exported, default = _export_flags(node)
        extends = []
        for child in node.named_children:
            if child.type in ("extends_type_clause", "extends_clause"):
                extends.extend(
                    self.types.from_annotation(t)
                    for t in child.named_children
                    if t.type != "comment"
                )
        return self._record(
            DeclarationKind.INTERFACE,
            self._name(node),
            anchor,
            type_parameters=self._type_parameters(node),
            modifiers=Modifiers(exported=exported, default_export=default),
            extends=tuple(extends),
            node=node,
        )

    def _type_alias(self, node: Node, anchor: Node) -> DeclarationRecord:
        exported, default = _export_flags(node)
        return self._record(
            DeclarationKind.TYPE_ALIAS,
            self._name(node),
            anchor,
            type_parameters=self._type_parameters(node),
            value_type=self.types.from_annotation(node.child_by_field_name("value")),
            modifiers=Modifiers(exported=exported, default_export=default),
            node=node,
        )

    def _enum(self, node: Node, anchor: Node) -> DeclarationRecord:
        exported, default = _export_flags(node)
        body = node.child_by_field_name("body")
        member_types = []
        for member in body.named_children if body else []:
            if member.type == "enum_assignment":
                value = member.child_by_field_name("value")
                member_types.append(STRING if value is not None and value.type in (
                    "string", "template_string"
                ) else NUMBER)
            elif member.type != "comment":
                member_types.append(NUMBER)
        return self._record(
            DeclarationKind.ENUM,
            self._name(node),
            anchor,
            value_type=union_of(member_types) if member_types else NUMBER,
            modifiers=Modifiers(exported=exported, default_export=default),
            node=node,
        )

    def _variable(self, node: Node, anchor: Node) -> DeclarationRecord:
        declarators = [c for c in node.named_children if c.type == "variable_declarator"]
        if len(declarators) != 1:
            raise NotDocumentable(node.type, "multiple declarators")
        declarator = declarators[0]
        name_node = declarator.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            raise NotDocumentable(node.type, "destructuring declaration")
        exported, default = _export_flags(node)
        modifiers = Modifiers(exported=exported, default_export=default)
        return self._value_holder(
            name=self.document.text_of(name_node),
            anchor=anchor,
            holder=declarator,
            modifiers=modifiers,
            container=None,
        )

    def _method(self, node: Node, anchor: Node) -> DeclarationRecord:
        owner = node.parent
        if node.type == "method_signature" and owner is not None and owner.type == "class_body":
            raise NotDocumentable(node.type, "overload without body")
        name = self._name(node)
        container = _container_name(node, self.document)
        accessor = "get" if has_token(node, "get") else "set" if has_token(node, "set") else None
        parameters = self.types.read_parameters(node.child_by_field_name("parameters"))
        visibility = _visibility(node, name)
        is_static = has_token(node, "static")

        if name == "constructor" and node.type == "method_definition":
            return self._record(
                DeclarationKind.CONSTRUCTOR,
                name,
                anchor,
                parameters=parameters,
                modifiers=Modifiers(visibility=visibility),
                container=container,
                node=node,
            )

        if accessor is not None:
            if accessor == "get":
                value_type = self._return_annotation(node)
                readonly = not _has_setter(node, name, self.document)
                value_node = None
            else:
                first = parameters[0] if parameters else None
                value_type = first.type if first else UNKNOWN
                value_node = first.node if first else None
                readonly = False
            return self._record(
                DeclarationKind.PROPERTY_OR_FIELD,
                name,
                anchor,
                value_type=value_type,
                modifiers=Modifiers(
                    is_static=is_static,
                    is_readonly=readonly,
                    visibility=visibility,
                    accessor=accessor,
                ),
                container=container,
                node=node,
                value_node=value_node,
            )

        return self._record(
            DeclarationKind.METHOD,
            name,
            anchor,
            parameters=parameters,
            type_parameters=self._type_parameters(node),
            return_type=self._return_annotation(node),
            modifiers=Modifiers(
                is_async=has_token(node, "async"),
                is_generator=has_token(node, "*"),
                is_static=is_static,
                is_abstract=node.type == "abstract_method_signature" or has_token(node, "abstract"),
                optional=has_token(node, "?"),
                visibility=visibility,
            ),
            container=container,
            node=node,
        )

    def _field(self, node: Node, anchor: Node) -> DeclarationRecord:
        name = self._name(node)
        modifiers = Modifiers(
            is_static=has_token(node, "static"),
            is_readonly=has_token(node, "readonly"),
            optional=has_token(node, "?"),
            visibility=_visibility(node, name),
        )
        return self._value_holder(
            name=name,
            anchor=anchor,
            holder=node,
            modifiers=modifiers,
            container=_container_name(node, self.document),
        )

    def _value_holder(
        self,
        name: str | None,
        anchor: Node,
        holder: Node,
        modifiers: Modifiers,
        container: str | None,
    ) -> DeclarationRecord:
        """Variables and fields: function-valued ones may be documented as functions."""
        annotation = holder.child_by_field_name("type")
        value = holder.child_by_field_name("value")
        if is_function_expression(value) and self.config.function_variables_as_functions:
            function = unwrap_parentheses(value)
            single = function.child_by_field_name("parameter")
            if single is not None:
                parameters = (self.types.read_parameter(single, 0),)
            else:
                parameters = self.types.read_parameters(function.child_by_field_name("parameters"))
            return_type = self._return_annotation(function)
            # ``const f: (a: string) => void = (a) => {}`` types the arrow from its annotation
            declared = self.types.from_annotation(annotation) if annotation else None
            if isinstance(declared, FunctionType):
                parameters = tuple(
                    replace(p, type=declared.params[i].type)
                    if isinstance(p.type, Unknown) and i < len(declared.params)
                    else p
                    for i, p in enumerate(parameters)
                )
                if isinstance(return_type, Unknown):
                    return_type = declared.returns
            return self._record(
                DeclarationKind.ARROW_OR_FUNCTION_VARIABLE,
                name,
                anchor,
                parameters=parameters,
                type_parameters=self._type_parameters(function),
                return_type=return_type,
                modifiers=Modifiers(
                    exported=modifiers.exported,
                    default_export=modifiers.default_export,
                    is_async=has_token(function, "async"),
                    is_generator=function.type.startswith("generator_") or has_token(function, "*"),
                    is_static=modifiers.is_static,
                    is_readonly=modifiers.is_readonly,
                    visibility=modifiers.visibility,
                ),
                container=container,
                node=function,
            )
        return self._record(
            DeclarationKind.PROPERTY_OR_FIELD,
            name,
            anchor,
            value_type=self.types.from_annotation(annotation) if annotation else UNKNOWN,
            modifiers=modifiers,
            container=container,
            node=holder,
            value_node=value,
        )

    def _parameter(self, node: Node, anchor: Node) -> DeclarationRecord:
        siblings = [c for c in node.parent.named_children] if node.parent else [node]
        index = next((i for i, c in enumerate(siblings) if c.id == node.id), 0)
        info = self.types.read_parameter(node, index)
        if info is None:
            raise NotDocumentable(node.type, "'this' parameter")
        return self._record(
            DeclarationKind.PARAMETER,
            info.name,
            anchor,
            parameters=(info,),
            value_type=info.type,
            modifiers=Modifiers(
                optional=info.optional,
                is_readonly=has_token(node, "readonly"),
                visibility=_visibility(node, info.name),
            ),
            container=_container_name(node, self.document),
            node=node,
            value_node=info.node,
        )

    def _type_parameter(self, node: Node, anchor: Node) -> DeclarationRecord:
        info = self._read_type_parameter(node)
        return self._record(
            DeclarationKind.TYPE_PARAMETER,
            info.name,
            anchor,
            type_parameters=(info,),
            node=node,
        )

    # -- helpers -----------------------------------------------------------

    def _name(self, node: Node) -> str | None:
        name = node.child_by_field_name("name")
        return self.document.text_of(name) if name is not None else None

    def _return_annotation(self, node: Node):
        annotation = node.child_by_field_name("return_type")
        return self.types.from_annotation(annotation) if annotation is not None else UNKNOWN

    def _type_parameters(self, node: Node) -> tuple[TypeParameterInfo, ...]:
        params = node.child_by_field_name("type_parameters")
        if params is None:
            return ()
        return tuple(
            self._read_type_parameter(p) for p in params.named_children if p.type == "type_parameter"
        )

    def _read_type_parameter(self, node: Node) -> TypeParameterInfo:
        constraint = node.child_by_field_name("constraint")
        default = node.child_by_field_name("value")
        return TypeParameterInfo(
            name=self._name(node) or self.document.text_of(node),
            constraint=self.types.from_annotation(constraint) if constraint is not None else None,
            default=self.types.from_annotation(default) if default is not None else None,
        )

    def _heritage(self, node: Node):
        extends = []
        implements = []
        for heritage in node.named_children:
            if heritage.type != "class_heritage":
                continue
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    for value in clause.children_by_field_name("value"):
                        arguments = value.next_named_sibling
                        base = self.types.text(value)
                        if arguments is not None and arguments.type == "type_arguments":
                            extends.append(GenericType(base, tuple(
                                self.types.from_annotation(a) for a in arguments.named_children
                            )))
                        else:
                            extends.append(Reference(base))
                elif clause.type == "implements_clause":
                    implements.extend(
                        self.types.from_annotation(t)
                        for t in clause.named_children
                        if t.type != "comment"
                    )
                elif clause.type not in ("comment",):
                    # JavaScript grammar: ``class A extends B`` without a clause node
                    extends.append(Reference(self.types.text(clause)))
        return tuple(extends), tuple(implements)


# ---------------------------------------------------------------------------
# Candidate enumeration
# ---------------------------------------------------------------------------


def iter_candidates(container: Node) -> Iterator[Node]:
    """Yield candidate declaration nodes of a block in source order.

    Top-level statements are yielded, followed by the members of classes and
    interfaces and the contents of namespaces. Function bodies are not
    entered.
    """
    for child in container.named_children:
        kind = child.type
        if kind == "export_statement":
            inner = child.child_by_field_name("declaration") or child.child_by_field_name("value")
            if inner is None:
                continue
            if inner.type in _MODULE_NODES:
                yield from _module_members(inner)
                continue
            yield child
            yield from _members(inner)
        elif kind in TOP_LEVEL_DECLARATIONS:
            yield child
            yield from _members(child)
        elif kind in _MODULE_NODES:
            yield from _module_members(child)
        elif kind == "expression_statement":
            for inner in child.named_children:
                if inner.type in _MODULE_NODES:
                    yield from _module_members(inner)


def _members(declaration: Node) -> Iterator[Node]:
    body = declaration.child_by_field_name("body")
    if body is None:
        return
    if declaration.type in CLASS_NODES:
        allowed = CLASS_MEMBERS
    elif declaration.type == "interface_declaration":
        allowed = INTERFACE_MEMBERS
    else:
        return
    for member in body.named_children:
        if member.type in allowed:
            yield member


def _module_members(module: Node) -> Iterator[Node]:
    body = module.child_by_field_name("body")
    if body is not None:
        yield from iter_candidates(body)


def _export_flags(node: Node) -> tuple[bool, bool]:
    parent = node.parent
    if parent is None or parent.type != "export_statement":
        return False, False
    return True, has_token(parent, "default")


def _inside_ambient(node: Node) -> bool:
    current = node.parent
    while current is not None:
        if current.type == "ambient_declaration":
            return True
        current = current.parent
    return has_token(node, "declare")


def _visibility(node: Node, name: str | None) -> Visibility | None:
    for child in node.children:
        if child.type == "accessibility_modifier":
            text = child.text.decode("utf-8") if child.text else ""
            if text in ("public", "private", "protected"):
                return text  # type: ignore[return-value]
    if name is not None and name.startswith("#"):
        return "private"
    return None


def _container_name(node: Node, document: SourceDocument) -> str | None:
    current = node.parent
    while current is not None:
        if current.type in CLASS_NODES or current.type == "interface_declaration":
            name = current.child_by_field_name("name")
            return document.text_of(name) if name is not None else None
        current = current.parent
    return None


def _has_setter(getter: Node, name: str | None, document: SourceDocument) -> bool:
    body = getter.parent
    if body is None or name is None:
        return False
    for member in body.named_children:
        if member.type != "method_definition" or not has_token(member, "set"):
            continue
        member_name = member.child_by_field_name("name")
        if member_name is not None and document.text_of(member_name) == name:
            return True
    return False


def locate(
    classifier: DeclarationClassifier, line: int, character: int
) -> DeclarationRecord:
    """Resolve a cursor position to the declaration it should document.

    The nearest enclosing documentable declaration wins; parameters and type
    parameters are skipped in favour of their owner. When the cursor is not
    inside a declaration, the first declaration starting at or below the
    cursor line is used. AlreadyDocumented propagates; NotDocumentable is
    raised when nothing qualifies.
    """
    node = classifier.document.node_at(line, character)
    while node is not None:
        try:
            record = classifier.classify(node)
        except NotDocumentable:
            node = node.parent
            continue
        if record.kind in (DeclarationKind.PARAMETER, DeclarationKind.TYPE_PARAMETER):
            node = node.parent
            continue
        return record

    for candidate in iter_candidates(classifier.document.root):
        if candidate.start_point[0] < line:
            continue
        try:
            return classifier.classify(candidate)
        except NotDocumentable:
            continue
    raise NotDocumentable("position", f"no declaration at line {line + 1}")
