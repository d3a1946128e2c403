"""Best-effort local type inference over tree-sitter nodes.

Annotated positions are converted structurally into TypeDescriptors. For
unannotated positions the inferencer looks at initializers, return
statements and nearby bindings. It never resolves types across files;
anything it cannot determine becomes ``Unknown`` (rendered ``any``), and
object literals fall back to the empty-object type ``{}``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from tree_sitter import Node

from jsdocgen.syntax.models import DeclarationKind, DeclarationRecord, ParameterInfo
from jsdocgen.syntax.parser import SourceDocument
from jsdocgen.syntax.types import (
    BOOLEAN,
    EMPTY_OBJECT,
    NUMBER,
    STRING,
    UNDEFINED,
    UNKNOWN,
    VOID,
    ArrayType,
    FunctionParam,
    FunctionType,
    GenericType,
    Primitive,
    Reference,
    TypeDescriptor,
    Unknown,
    contains_unknown,
    intersection_of,
    union_of,
)

logger = logging.getLogger(__name__)

FUNCTION_NODES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})
FUNCTION_EXPRESSIONS = frozenset({
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
})
_SCOPE_BARRIERS = FUNCTION_NODES | {"class", "class_declaration", "abstract_class_declaration"}

_ANNOTATION_WRAPPERS = frozenset({
    "type_annotation",
    "opting_type_annotation",
    "omitting_type_annotation",
    "default_type",
    "constraint",
})
_COMPARISON_OPERATORS = frozenset({
    "==", "!=", "===", "!==", "<", ">", "<=", ">=", "instanceof", "in",
})
_NUMERIC_OPERATORS = frozenset({
    "-", "*", "/", "%", "**", "<<", ">>", ">>>", "&", "|", "^",
})
_WHITESPACE = re.compile(r"\s+")


def has_token(node: Node, token: str) -> bool:
    """Whether *node* has a direct (anonymous) child token such as ``async``."""
    return any(child.type == token for child in node.children)


def is_function_expression(node: Node | None) -> bool:
    while node is not None and node.type == "parenthesized_expression":
        node = node.named_children[0] if node.named_children else None
    return node is not None and node.type in FUNCTION_EXPRESSIONS


def unwrap_parentheses(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


class TypeInferencer:
    """Derives TypeDescriptors for positions of one document."""

    def __init__(self, document: SourceDocument, max_depth: int = 4) -> None:
        self.document = document
        self.max_depth = max_depth
        self._degraded = False

    def text(self, node: Node) -> str:
        return _WHITESPACE.sub(" ", self.document.text_of(node)).strip()

    # -- dispatch ----------------------------------------------------------

    def infer(self, node: Node | None) -> TypeDescriptor:
        """Infer the type of any position: annotation, function, or expression."""
        if node is None:
            return UNKNOWN
        if node.type in _ANNOTATION_WRAPPERS or node.type.endswith("_type"):
            return self.from_annotation(node)
        if node.type in FUNCTION_NODES:
            return self.function_type(node)
        return self.infer_expression(node)

    # -- annotations -------------------------------------------------------

    def from_annotation(self, node: Node | None) -> TypeDescriptor:
        """Structurally convert a type annotation node."""
        if node is None:
            return UNKNOWN
        kind = node.type
        named = [c for c in node.named_children if c.type != "comment"]
        if kind in _ANNOTATION_WRAPPERS:
            return self.from_annotation(named[0]) if named else UNKNOWN
        if kind in ("type_predicate_annotation", "type_predicate"):
            return BOOLEAN
        if kind in ("asserts_annotation", "asserts"):
            return VOID
        if kind == "predefined_type":
            return Primitive(self.text(node))
        if kind in ("type_identifier", "nested_type_identifier", "this_type"):
            return Reference(self.text(node))
        if kind == "literal_type":
            return Primitive(self.text(node))
        if kind == "generic_type":
            base = node.child_by_field_name("name")
            args = node.child_by_field_name("type_arguments")
            arguments = tuple(
                self.from_annotation(a) for a in (args.named_children if args else [])
                if a.type != "comment"
            )
            base_text = self.text(base) if base else self.text(node)
            return GenericType(base_text, arguments) if arguments else Reference(base_text)
        if kind == "array_type":
            return ArrayType(self.from_annotation(named[0])) if named else ArrayType(UNKNOWN)
        if kind == "union_type":
            return union_of([self.from_annotation(c) for c in named])
        if kind == "intersection_type":
            return intersection_of([self.from_annotation(c) for c in named])
        if kind == "parenthesized_type":
            return self.from_annotation(named[0]) if named else UNKNOWN
        if kind == "function_type":
            params = node.child_by_field_name("parameters")
            returns = node.child_by_field_name("return_type")
            return FunctionType(
                tuple(_as_function_param(p) for p in self.read_parameters(params)),
                self.from_annotation(returns),
            )
        return Reference(self.text(node))

    # -- parameters --------------------------------------------------------

    def read_parameters(self, params: Node | None) -> tuple[ParameterInfo, ...]:
        """Read a ``formal_parameters`` node; unannotated types stay Unknown."""
        if params is None:
            return ()
        result: list[ParameterInfo] = []
        for child in params.named_children:
            if child.type in ("comment", "decorator"):
                continue
            info = self.read_parameter(child, len(result))
            if info is not None:
                result.append(info)
        return tuple(result)

    def read_parameter(self, node: Node, index: int) -> ParameterInfo | None:
        if node.type in ("required_parameter", "optional_parameter"):
            pattern = node.child_by_field_name("pattern")
            annotation = node.child_by_field_name("type")
            value = node.child_by_field_name("value")
            optional = node.type == "optional_parameter"
        else:
            pattern, annotation, value, optional = node, None, None, False
            if node.type == "assignment_pattern":
                pattern = node.child_by_field_name("left")
                value = node.child_by_field_name("right")
        if pattern is None or pattern.type == "this":
            return None

        rest = pattern.type == "rest_pattern"
        if rest:
            inner = [c for c in pattern.named_children if c.type != "comment"]
            pattern = inner[0] if inner else pattern

        declared = self.from_annotation(annotation) if annotation else UNKNOWN
        if pattern.type == "identifier":
            name = self.document.text_of(pattern)
            properties: tuple[ParameterInfo, ...] = ()
        else:
            name = f"param{index}"
            properties = self._pattern_properties(pattern, name, annotation)

        return ParameterInfo(
            name=name,
            type=declared,
            optional=optional,
            rest=rest,
            has_default=value is not None,
            default=self.text(value) if value is not None else None,
            properties=properties,
            node=value,
        )

    def _pattern_properties(
        self, pattern: Node, prefix: str, annotation: Node | None
    ) -> tuple[ParameterInfo, ...]:
        if pattern.type != "object_pattern":
            return ()
        member_types = self._object_member_types(annotation)
        properties: list[ParameterInfo] = []
        for child in pattern.named_children:
            default: Node | None = None
            if child.type == "shorthand_property_identifier_pattern":
                key = self.document.text_of(child)
            elif child.type == "object_assignment_pattern":
                left = child.child_by_field_name("left")
                default = child.child_by_field_name("right")
                key = self.document.text_of(left) if left else ""
            elif child.type == "pair_pattern":
                key_node = child.child_by_field_name("key")
                value_node = child.child_by_field_name("value")
                if value_node is not None and value_node.type == "assignment_pattern":
                    default = value_node.child_by_field_name("right")
                key = self.document.text_of(key_node) if key_node else ""
            else:
                continue
            if not key:
                continue
            declared, optional = member_types.get(key, (UNKNOWN, False))
            properties.append(
                ParameterInfo(
                    name=f"{prefix}.{key}",
                    type=declared,
                    optional=optional or default is not None,
                    has_default=default is not None,
                    default=self.text(default) if default is not None else None,
                    node=default,
                )
            )
        return tuple(properties)

    def _object_member_types(
        self, annotation: Node | None
    ) -> dict[str, tuple[TypeDescriptor, bool]]:
        """Member types of an inline ``{ a: string; b?: number }`` annotation."""
        if annotation is None:
            return {}
        node = annotation
        while node.type in _ANNOTATION_WRAPPERS and node.named_children:
            node = node.named_children[0]
        if node.type != "object_type":
            return {}
        members: dict[str, tuple[TypeDescriptor, bool]] = {}
        for member in node.named_children:
            if member.type != "property_signature":
                continue
            name = member.child_by_field_name("name")
            if name is None:
                continue
            members[self.document.text_of(name)] = (
                self.from_annotation(member.child_by_field_name("type")),
                has_token(member, "?"),
            )
        return members

    def complete_parameters(
        self, params: tuple[ParameterInfo, ...]
    ) -> tuple[ParameterInfo, ...]:
        """Fill Unknown parameter types from default values."""
        completed: list[ParameterInfo] = []
        for param in params:
            declared = param.type
            if isinstance(declared, Unknown):
                if param.rest:
                    declared = ArrayType(UNKNOWN)
                elif param.node is not None:
                    declared = self.infer_expression(param.node)
            completed.append(
                replace(
                    param,
                    type=declared,
                    properties=self.complete_parameters(param.properties),
                )
            )
        return tuple(completed)

    # -- functions ---------------------------------------------------------

    def function_type(self, node: Node, depth: int = 0) -> FunctionType:
        """Signature of a function-like node as a FunctionType."""
        single = node.child_by_field_name("parameter")
        if single is not None:
            params: tuple[FunctionParam, ...] = (
                FunctionParam(self.document.text_of(single), UNKNOWN),
            )
        else:
            infos = self.complete_parameters(
                self.read_parameters(node.child_by_field_name("parameters"))
            )
            params = tuple(_as_function_param(p) for p in infos)
        return FunctionType(params, self.infer_return(node, depth))

    def infer_return(self, node: Node, depth: int = 0) -> TypeDescriptor:
        """Return type of a function-like node, annotated or inferred."""
        annotation = node.child_by_field_name("return_type")
        if annotation is not None:
            return self.from_annotation(annotation)

        is_async = has_token(node, "async")
        if node.type.startswith("generator_") or has_token(node, "*"):
            return Reference("AsyncGenerator" if is_async else "Generator")

        body = node.child_by_field_name("body")
        if body is None:
            return UNKNOWN
        if body.type != "statement_block":
            result = self.infer_expression(body, depth + 1)
        else:
            values: list[TypeDescriptor] = []
            bare = False
            for statement in _return_statements(body):
                expressions = [c for c in statement.named_children if c.type != "comment"]
                if expressions:
                    values.append(self.infer_expression(expressions[0], depth + 1))
                else:
                    bare = True
            if not values:
                result = VOID
            else:
                if bare:
                    values.append(UNDEFINED)
                result = _combine(values)
        if is_async:
            if isinstance(result, GenericType) and result.base == "Promise":
                return result
            return GenericType("Promise", (result,))
        return result

    # -- expressions -------------------------------------------------------

    def infer_expression(self, node: Node | None, depth: int = 0) -> TypeDescriptor:
        if node is None or depth > self.max_depth:
            return UNKNOWN
        kind = node.type
        named = [c for c in node.named_children if c.type != "comment"]

        if kind in ("string", "template_string"):
            return STRING
        if kind == "number":
            return NUMBER
        if kind in ("true", "false"):
            return BOOLEAN
        if kind == "null":
            return Primitive("null")
        if kind == "undefined":
            return UNDEFINED
        if kind == "regex":
            return Reference("RegExp")
        if kind in ("jsx_element", "jsx_self_closing_element", "jsx_fragment"):
            return Reference("JSX.Element")
        if kind == "array":
            if not named or any(c.type == "spread_element" for c in named):
                return ArrayType(UNKNOWN)
            return ArrayType(_combine([self.infer_expression(c, depth + 1) for c in named]))
        if kind == "object":
            self._degraded = True
            logger.debug("object literal at line %d falls back to {}", node.start_point[0] + 1)
            return EMPTY_OBJECT
        if kind in FUNCTION_EXPRESSIONS:
            return self.function_type(node, depth + 1)
        if kind == "new_expression":
            return self._construct(node)
        if kind in ("parenthesized_expression", "non_null_expression", "satisfies_expression"):
            return self.infer_expression(named[0], depth) if named else UNKNOWN
        if kind == "as_expression":
            if len(named) > 1:
                return self.from_annotation(named[1])
            return self.infer_expression(named[0], depth) if named else UNKNOWN
        if kind == "type_assertion":
            args = [c for c in named if c.type == "type_arguments"]
            if args and args[0].named_children:
                return self.from_annotation(args[0].named_children[0])
            return UNKNOWN
        if kind == "unary_expression":
            return _unary_result(node.child_by_field_name("operator"))
        if kind == "update_expression":
            return NUMBER
        if kind == "binary_expression":
            return self._binary(node, depth)
        if kind == "ternary_expression":
            return _combine([
                self.infer_expression(node.child_by_field_name("consequence"), depth + 1),
                self.infer_expression(node.child_by_field_name("alternative"), depth + 1),
            ])
        if kind == "await_expression":
            inner = self.infer_expression(named[0], depth + 1) if named else UNKNOWN
            if isinstance(inner, GenericType) and inner.base == "Promise" and inner.arguments:
                return inner.arguments[0]
            return inner
        if kind == "assignment_expression":
            return self.infer_expression(node.child_by_field_name("right"), depth + 1)
        if kind == "sequence_expression":
            return self.infer_expression(named[-1], depth + 1) if named else UNKNOWN
        if kind == "identifier":
            return self._identifier(node, depth)
        if kind == "call_expression":
            return self._call(node, depth)
        return UNKNOWN

    def _construct(self, node: Node) -> TypeDescriptor:
        constructor = node.child_by_field_name("constructor")
        if constructor is None or constructor.type not in ("identifier", "member_expression"):
            return UNKNOWN
        name = self.text(constructor)
        args = node.child_by_field_name("type_arguments")
        if args is not None and args.named_children:
            return GenericType(name, tuple(self.from_annotation(a) for a in args.named_children))
        return Reference(name)

    def _binary(self, node: Node, depth: int) -> TypeDescriptor:
        operator = node.child_by_field_name("operator")
        op = operator.type if operator is not None else ""
        if op in _COMPARISON_OPERATORS:
            return BOOLEAN
        if op in _NUMERIC_OPERATORS:
            return NUMBER
        left = self.infer_expression(node.child_by_field_name("left"), depth + 1)
        right = self.infer_expression(node.child_by_field_name("right"), depth + 1)
        if op == "+":
            if STRING in (left, right):
                return STRING
            if left == NUMBER and right == NUMBER:
                return NUMBER
            return UNKNOWN
        if op in ("&&", "||", "??"):
            return _combine([left, right])
        return UNKNOWN

    def _identifier(self, node: Node, depth: int) -> TypeDescriptor:
        name = self.document.text_of(node)
        if name == "undefined":
            return UNDEFINED
        if name in ("NaN", "Infinity"):
            return NUMBER
        binding = self._find_binding(node, name)
        if binding is None:
            return UNKNOWN
        kind, target = binding
        if kind == "function":
            return self.function_type(target, depth + 1)
        if kind == "class":
            return Reference(f"typeof {name}")
        annotation = target.child_by_field_name("type")
        if annotation is not None:
            return self.from_annotation(annotation)
        return self.infer_expression(target.child_by_field_name("value"), depth + 1)

    def _call(self, node: Node, depth: int) -> TypeDescriptor:
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "identifier":
            return UNKNOWN
        binding = self._find_binding(callee, self.document.text_of(callee))
        if binding is None:
            return UNKNOWN
        kind, target = binding
        if kind == "function":
            return self.infer_return(target, depth + 1)
        if kind == "variable":
            annotation = self.from_annotation(target.child_by_field_name("type"))
            if isinstance(annotation, FunctionType):
                return annotation.returns
            value = target.child_by_field_name("value")
            if is_function_expression(value):
                return self.infer_return(unwrap_parentheses(value), depth + 1)
        return UNKNOWN

    def _find_binding(self, node: Node, name: str) -> tuple[str, Node] | None:
        """Nearest declaration of *name* visible from *node* within this file."""
        scope = node.parent
        while scope is not None:
            if scope.type in FUNCTION_NODES:
                for param in self.read_parameters(scope.child_by_field_name("parameters")):
                    if param.name == name:
                        return ("parameter", _parameter_node(scope, name, self.document))
            if scope.type in ("statement_block", "program", "class_body"):
                found = self._binding_in_block(scope, name)
                if found is not None:
                    return found
            scope = scope.parent
        return None

    def _binding_in_block(self, block: Node, name: str) -> tuple[str, Node] | None:
        for statement in block.named_children:
            if statement.type == "export_statement":
                inner = statement.child_by_field_name("declaration")
                if inner is None:
                    continue
                statement = inner
            if statement.type in ("lexical_declaration", "variable_declaration"):
                for declarator in statement.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    target = declarator.child_by_field_name("name")
                    if target is not None and self.document.text_of(target) == name:
                        return ("variable", declarator)
            elif statement.type in ("function_declaration", "generator_function_declaration"):
                target = statement.child_by_field_name("name")
                if target is not None and self.document.text_of(target) == name:
                    return ("function", statement)
            elif statement.type in ("class_declaration", "abstract_class_declaration"):
                target = statement.child_by_field_name("name")
                if target is not None and self.document.text_of(target) == name:
                    return ("class", statement)
        return None

    # -- second pass -------------------------------------------------------

    def complete(self, record: DeclarationRecord) -> DeclarationRecord:
        """Fill every Unknown slot the classifier left behind."""
        self._degraded = False
        parameters = self.complete_parameters(record.parameters)

        return_type = record.return_type
        if (
            record.kind.is_callable
            and record.kind is not DeclarationKind.CONSTRUCTOR
            and isinstance(return_type, Unknown)
            and record.node is not None
        ):
            return_type = self.infer_return(record.node)

        value_type = record.value_type
        if isinstance(value_type, Unknown):
            if record.modifiers.accessor == "get" and record.node is not None:
                value_type = self.infer_return(record.node)
            elif record.value_node is not None:
                value_type = self.infer(unwrap_parentheses(record.value_node))

        slots = [p.type for p in parameters]
        slots.extend(t for t in (return_type, value_type) if t is not None)
        degraded = self._degraded or any(contains_unknown(t) for t in slots)
        if degraded:
            logger.debug(
                "inference degraded for %s %s", record.kind.value, record.display_name
            )
        return replace(
            record,
            parameters=parameters,
            return_type=return_type,
            value_type=value_type,
            degraded=degraded,
        )


def _as_function_param(param: ParameterInfo) -> FunctionParam:
    return FunctionParam(
        name=param.name,
        type=param.type,
        optional=param.optional or param.has_default,
        rest=param.rest,
    )


def _combine(types: list[TypeDescriptor]) -> TypeDescriptor:
    """Union of inferred shapes; a single undeterminable shape poisons the result."""
    if any(isinstance(t, Unknown) for t in types):
        return UNKNOWN
    return union_of(types)


def _unary_result(operator: Node | None) -> TypeDescriptor:
    op = operator.type if operator is not None else ""
    if op in ("!", "delete"):
        return BOOLEAN
    if op == "typeof":
        return STRING
    if op == "void":
        return UNDEFINED
    if op in ("-", "+", "~"):
        return NUMBER
    return UNKNOWN


def _return_statements(node: Node):
    """Yield return statements of a body, not descending into nested functions."""
    for child in node.named_children:
        if child.type == "return_statement":
            yield child
        elif child.type not in _SCOPE_BARRIERS:
            yield from _return_statements(child)


def _parameter_node(function: Node, name: str, document: SourceDocument) -> Node:
    """The parameter node declaring *name*, viewed as a (type, value) carrier."""
    params = function.child_by_field_name("parameters")
    for child in params.named_children if params else []:
        pattern = child.child_by_field_name("pattern")
        if pattern is not None and pattern.type == "rest_pattern" and pattern.named_children:
            pattern = pattern.named_children[0]
        if pattern is not None and document.text_of(pattern) == name:
            return child
    return function
