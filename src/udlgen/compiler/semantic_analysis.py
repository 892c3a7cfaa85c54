# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic analysis: build and validate the Component Interface.

Consumes a resolved SchemaFile and produces the immutable
:class:`~udlgen.model.entities.ComponentInterface`. Validation is fail-fast:
the first problem found raises and no partial interface is returned.
"""

from __future__ import annotations

import logging
import math

from udlgen.compiler.parser import PRIMITIVE_TYPE_NAMES
from udlgen.errors import (
    CyclicTypeError,
    DuplicateDefinitionError,
    InvalidDefaultError,
    MissingNamespaceError,
    NotAnErrorTypeError,
)
from udlgen.model.entities import (
    Argument,
    CallbackInterface,
    ComponentInterface,
    Constructor,
    Enum,
    Field,
    Function,
    Method,
    Namespace,
    Object,
    Record,
    Variant,
)
from udlgen.model.syntax import (
    Attribute,
    LiteralValue,
    Position,
    RawArgument,
    RawCallbackInterface,
    RawDictionary,
    RawEnum,
    RawInterface,
    RawNamespace,
    RawOperation,
    SchemaFile,
    find_attribute,
    has_attribute,
    is_tagged_union,
)
from udlgen.model.types import (
    EnumType,
    ErrorType,
    MapType,
    OptionalType,
    RecordType,
    ScalarKind,
    ScalarType,
    SequenceType,
    StringType,
    TypeKind,
    walk,
)

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def analyze(schema: SchemaFile) -> ComponentInterface:
    """Build the Component Interface from a resolved SchemaFile.

    Checks performed, in order:
    - Exactly one namespace is declared.
    - Top-level names are unique across all categories (enums, errors,
      records, objects, callback interfaces, typedefs).
    - Member names are unique: enum variants, record fields, variant fields,
      arguments, methods and constructors. ``new`` is reserved for the
      primary constructor.
    - Literal defaults are representable in their declared type.
    - ``[Throws=X]`` names an error enum.
    - No record or enum contains itself by value.

    Args:
        schema: A tree returned by :func:`udlgen.compiler.resolver.resolve`.

    Returns:
        The validated :class:`ComponentInterface`.

    Raises:
        MissingNamespaceError: If no namespace is declared.
        DuplicateDefinitionError: On any duplicate name.
        InvalidDefaultError: On a default that does not fit its type.
        NotAnErrorTypeError: If a thrown type is not an error enum.
        CyclicTypeError: If records or enums contain themselves by value.
    """
    return _InterfaceBuilder(schema).build()


# ################
# Implementation
# ################


class _InterfaceBuilder:
    """Converts resolved declarations into Component Interface entities."""

    def __init__(self, schema: SchemaFile) -> None:
        self._schema = schema
        self._plain_enums: dict[str, RawEnum] = {}
        self._error_names: set[str] = set()

    def build(self) -> ComponentInterface:
        namespace_decl = self._single_namespace()
        self._check_top_level_duplicates()
        self._collect_error_names()

        enums: list[Enum] = []
        records: list[Record] = []
        objects: list[Object] = []
        callbacks: list[CallbackInterface] = []

        # Source order within each category is preserved; it is the wire order.
        enum_decls: list[RawEnum | RawInterface] = [*self._schema.enums]
        enum_decls.extend(i for i in self._schema.interfaces if is_tagged_union(i))
        enum_decls.sort(key=lambda decl: (decl.pos.line, decl.pos.column))
        for decl in enum_decls:
            if isinstance(decl, RawEnum):
                enums.append(self._build_plain_enum(decl))
            else:
                enums.append(self._build_tagged_union(decl))
        for dictionary in self._schema.dictionaries:
            records.append(self._build_record(dictionary))
        for iface in self._schema.interfaces:
            if not is_tagged_union(iface):
                objects.append(self._build_object(iface))
        for cbi in self._schema.callback_interfaces:
            callbacks.append(self._build_callback_interface(cbi))
        namespace = self._build_namespace(namespace_decl)

        _check_value_cycles(enums, records)

        ci = ComponentInterface(
            namespace=namespace,
            enums=tuple(enums),
            records=tuple(records),
            objects=tuple(objects),
            callback_interfaces=tuple(callbacks),
        )
        logger.debug(
            "Built interface '%s': %d enums, %d records, %d objects, %d callback interfaces, %d functions",
            namespace.name,
            len(enums),
            len(records),
            len(objects),
            len(callbacks),
            len(namespace.functions),
        )
        return ci

    # ------------------------------------------------------------------
    # Global checks
    # ------------------------------------------------------------------

    def _single_namespace(self) -> RawNamespace:
        namespaces = self._schema.namespaces
        if not namespaces:
            raise MissingNamespaceError("The schema must declare exactly one namespace")
        if len(namespaces) > 1:
            extra = namespaces[1]
            raise DuplicateDefinitionError(
                f"Only one namespace may be declared; found '{namespaces[0].name}' and '{extra.name}'",
                name=extra.name,
                line=extra.pos.line,
                column=extra.pos.column,
            )
        return namespaces[0]

    def _check_top_level_duplicates(self) -> None:
        """Every type name is unique across all categories."""
        declared: list[tuple[str, str, Position]] = []
        declared.extend((e.name, "enum", e.pos) for e in self._schema.enums)
        declared.extend((d.name, "dictionary", d.pos) for d in self._schema.dictionaries)
        declared.extend((i.name, "interface", i.pos) for i in self._schema.interfaces)
        declared.extend((c.name, "callback interface", c.pos) for c in self._schema.callback_interfaces)
        declared.extend((t.name, "typedef", t.pos) for t in self._schema.typedefs)

        seen: dict[str, str] = {}
        for name, category, pos in declared:
            if name in PRIMITIVE_TYPE_NAMES:
                raise DuplicateDefinitionError(
                    f"Duplicate definition of '{name}': {category} '{name}' conflicts with the built-in type",
                    name=name,
                    line=pos.line,
                    column=pos.column,
                )
            if name in seen:
                previous = seen[name]
                article = "an" if previous[0] in "aeiou" else "a"
                detail = f"another {category}" if previous == category else f"{article} {previous}"
                raise DuplicateDefinitionError(
                    f"Duplicate definition of '{name}': {category} '{name}' conflicts with {detail} of the same name",
                    name=name,
                    line=pos.line,
                    column=pos.column,
                )
            seen[name] = category

    def _collect_error_names(self) -> None:
        for enum_def in self._schema.enums:
            if has_attribute(enum_def.attributes, "Error"):
                self._error_names.add(enum_def.name)
            else:
                self._plain_enums[enum_def.name] = enum_def
        for iface in self._schema.interfaces:
            if has_attribute(iface.attributes, "Error"):
                self._error_names.add(iface.name)

    # ------------------------------------------------------------------
    # Enums and records
    # ------------------------------------------------------------------

    def _build_plain_enum(self, enum_def: RawEnum) -> Enum:
        _check_duplicates(
            [(v, enum_def.pos) for v in enum_def.values],
            f"enum '{enum_def.name}'",
            "variant",
        )
        return Enum(
            name=enum_def.name,
            variants=tuple(Variant(name=v) for v in enum_def.values),
            is_error=enum_def.name in self._error_names,
        )

    def _build_tagged_union(self, iface: RawInterface) -> Enum:
        ctx = f"enum '{iface.name}'"
        variants: list[Variant] = []
        for member in iface.members:
            if not member.is_variant:
                raise DuplicateDefinitionError(
                    f"{ctx}: '{member.name}' is not a variant; [Enum] and [Error] interfaces"
                    " may only declare variants such as 'Name(args);'",
                    name=member.name,
                    line=member.pos.line,
                    column=member.pos.column,
                )
            for arg in member.arguments:
                if arg.default is not None:
                    raise InvalidDefaultError(
                        f"{ctx}: variant field '{member.name}.{arg.name}' must not have a default value",
                        name=arg.name,
                        line=arg.default.pos.line,
                        column=arg.default.pos.column,
                    )
            _check_duplicates(
                [(a.name, a.pos) for a in member.arguments],
                f"variant '{member.name}' of {ctx}",
                "field",
            )
            variants.append(
                Variant(
                    name=member.name,
                    fields=tuple(Field(name=a.name, type=_resolved(a)) for a in member.arguments),
                )
            )
        _check_duplicates([(m.name, m.pos) for m in iface.members], ctx, "variant")
        return Enum(name=iface.name, variants=tuple(variants), is_error=iface.name in self._error_names)

    def _build_record(self, dictionary: RawDictionary) -> Record:
        ctx = f"dictionary '{dictionary.name}'"
        _check_duplicates([(m.name, m.pos) for m in dictionary.members], ctx, "field")
        fields: list[Field] = []
        for member in dictionary.members:
            type_kind = _resolved(member)
            if member.default is not None:
                self._check_default(member.default, type_kind, f"field '{member.name}' of {ctx}")
            fields.append(
                Field(name=member.name, type=type_kind, default=_literal(member.default), required=member.required)
            )
        return Record(name=dictionary.name, fields=tuple(fields))

    # ------------------------------------------------------------------
    # Objects and callback interfaces
    # ------------------------------------------------------------------

    def _build_object(self, iface: RawInterface) -> Object:
        ctx = f"interface '{iface.name}'"
        constructors: list[Constructor] = []
        methods: list[Method] = []
        for member in iface.members:
            if member.is_variant:
                raise DuplicateDefinitionError(
                    f"{ctx}: '{member.name}(...)' looks like an enum variant; mark the interface"
                    " with [Enum] or [Error] to declare a tagged union",
                    name=member.name,
                    line=member.pos.line,
                    column=member.pos.column,
                )
            if member.is_constructor:
                constructors.append(self._build_constructor(member, ctx))
            else:
                methods.append(self._build_method(member, iface.name, ctx))

        if not constructors:
            constructors.append(Constructor())
        _check_duplicates([(c.name, Position()) for c in constructors], ctx, "constructor")
        for method in methods:
            if method.name == "new":
                raise DuplicateDefinitionError(
                    f"{ctx}: the method name 'new' is reserved for the primary constructor",
                    name=method.name,
                )
        _check_duplicates([(m.name, m.pos) for m in iface.members if not m.is_constructor], ctx, "method")

        return Object(
            name=iface.name,
            constructors=tuple(constructors),
            methods=tuple(methods),
            threadsafe=has_attribute(iface.attributes, "Threadsafe"),
        )

    def _build_constructor(self, member: RawOperation, ctx: str) -> Constructor:
        name_attr = find_attribute(member.attributes, "Name")
        name = name_attr.value if name_attr is not None and name_attr.value else "new"
        throws = self._throws(member.attributes, f"constructor '{name}' of {ctx}")
        return Constructor(
            name=name,
            arguments=self._build_arguments(member.arguments, f"constructor '{name}' of {ctx}"),
            throws=throws,
            fallible=throws is not None or has_attribute(member.attributes, "Fallible"),
        )

    def _build_method(self, member: RawOperation, owner: str, ctx: str) -> Method:
        method_ctx = f"method '{member.name}' of {ctx}"
        throws = self._throws(member.attributes, method_ctx)
        return Method(
            name=member.name,
            object_name=owner,
            arguments=self._build_arguments(member.arguments, method_ctx),
            return_type=member.resolved_return,
            throws=throws,
            fallible=throws is not None or has_attribute(member.attributes, "Fallible"),
            is_static=member.is_static,
            exclusive=has_attribute(member.attributes, "Exclusive"),
        )

    def _build_callback_interface(self, cbi: RawCallbackInterface) -> CallbackInterface:
        ctx = f"callback interface '{cbi.name}'"
        _check_duplicates([(m.name, m.pos) for m in cbi.methods], ctx, "method")
        return CallbackInterface(
            name=cbi.name,
            methods=tuple(self._build_method(m, cbi.name, ctx) for m in cbi.methods),
        )

    # ------------------------------------------------------------------
    # Namespace
    # ------------------------------------------------------------------

    def _build_namespace(self, namespace: RawNamespace) -> Namespace:
        ctx = f"namespace '{namespace.name}'"
        error = self._throws(namespace.attributes, ctx)
        _check_duplicates([(f.name, f.pos) for f in namespace.functions], ctx, "function")
        functions: list[Function] = []
        for func in namespace.functions:
            func_ctx = f"function '{func.name}'"
            throws = self._throws(func.attributes, func_ctx)
            functions.append(
                Function(
                    name=func.name,
                    arguments=self._build_arguments(func.arguments, func_ctx),
                    return_type=func.resolved_return,
                    throws=throws,
                    fallible=throws is not None or has_attribute(func.attributes, "Fallible"),
                )
            )
        return Namespace(name=namespace.name, functions=tuple(functions), error=error)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _build_arguments(self, raw_args: list[RawArgument], ctx: str) -> tuple[Argument, ...]:
        _check_duplicates([(a.name, a.pos) for a in raw_args], ctx, "argument")
        arguments: list[Argument] = []
        for raw in raw_args:
            type_kind = _resolved(raw)
            if raw.default is not None:
                self._check_default(raw.default, type_kind, f"argument '{raw.name}' of {ctx}")
            arguments.append(
                Argument(
                    name=raw.name,
                    type=type_kind,
                    default=_literal(raw.default),
                    by_ref=has_attribute(raw.attributes, "ByRef"),
                )
            )
        return tuple(arguments)

    def _throws(self, attributes: list[Attribute], ctx: str) -> str | None:
        """Return the validated error name of a ``[Throws=X]`` attribute, if present."""
        attr = find_attribute(attributes, "Throws")
        if attr is None:
            return None
        if not attr.value:
            raise NotAnErrorTypeError(
                f"{ctx}: [Throws] requires an error type name",
                line=attr.pos.line,
                column=attr.pos.column,
            )
        if attr.value not in self._error_names:
            raise NotAnErrorTypeError(
                f"{ctx}: '{attr.value}' is not an error type; declare it with [Error]",
                name=attr.value,
                line=attr.pos.line,
                column=attr.pos.column,
            )
        return attr.value

    def _check_default(self, literal: LiteralValue, type_kind: TypeKind, ctx: str) -> None:
        problem = _default_problem(literal, type_kind, self._plain_enums)
        if problem is not None:
            raise InvalidDefaultError(
                f"Invalid default for {ctx}: {problem}",
                line=literal.pos.line,
                column=literal.pos.column,
            )


def _resolved(arg: RawArgument) -> TypeKind:
    if arg.resolved is None:
        raise ValueError(f"Argument '{arg.name}' has not been resolved; run the type resolver first")
    return arg.resolved


def _literal(literal: LiteralValue | None) -> LiteralValue | None:
    """Drop the source position so the interface does not depend on layout."""
    if literal is None:
        return None
    return literal.model_copy(update={"pos": Position()})


def _check_duplicates(names: list[tuple[str, Position]], ctx: str, what: str) -> None:
    """Raise DuplicateDefinitionError for the first name that appears twice."""
    seen: set[str] = set()
    for name, pos in names:
        if name in seen:
            raise DuplicateDefinitionError(
                f"Duplicate {what} '{name}' in {ctx}",
                name=name,
                line=pos.line or None,
                column=pos.column or None,
            )
        seen.add(name)


def _default_problem(literal: LiteralValue, type_kind: TypeKind, plain_enums: dict[str, RawEnum]) -> str | None:
    """Return a description of why *literal* does not fit *type_kind*, or None."""
    type_name = type_kind.canonical_name
    if literal.kind == "null":
        return None if isinstance(type_kind, OptionalType) else f"null is only valid for optional types, not '{type_name}'"
    if isinstance(type_kind, OptionalType):
        return _default_problem(literal, type_kind.inner, plain_enums)

    if literal.kind == "boolean":
        if isinstance(type_kind, ScalarType) and type_kind.scalar == ScalarKind.BOOLEAN:
            return None
        return f"boolean literal does not fit '{type_name}'"

    if literal.kind == "int":
        assert isinstance(literal.value, int)
        if isinstance(type_kind, ScalarType) and type_kind.scalar.is_integer:
            low, high = type_kind.scalar.int_range
            if low <= literal.value <= high:
                return None
            return f"{literal.value} is out of range for '{type_name}' ({low}..{high})"
        if isinstance(type_kind, ScalarType) and type_kind.scalar.is_float:
            return None
        return f"integer literal does not fit '{type_name}'"

    if literal.kind == "float":
        assert isinstance(literal.value, float)
        if isinstance(type_kind, ScalarType) and type_kind.scalar.is_float:
            if type_kind.scalar == ScalarKind.FLOAT32 and math.isfinite(literal.value) and abs(literal.value) > _F32_MAX:
                return f"{literal.value} is out of range for 'f32'"
            return None
        return f"float literal does not fit '{type_name}'"

    if literal.kind == "string":
        if isinstance(type_kind, StringType):
            return None
        if isinstance(type_kind, EnumType):
            enum_def = plain_enums.get(type_kind.name)
            if enum_def is None:
                return f"enum '{type_kind.name}' has associated data and cannot have a literal default"
            if literal.value in enum_def.values:
                return None
            return f"'{literal.value}' is not a variant of enum '{type_kind.name}'"
        return f"string literal does not fit '{type_name}'"

    if literal.kind == "empty_sequence":
        return None if isinstance(type_kind, SequenceType) else f"[] only fits sequence types, not '{type_name}'"

    if literal.kind == "empty_map":
        return None if isinstance(type_kind, MapType) else f"{{}} only fits record<K, V> types, not '{type_name}'"

    return f"unsupported literal kind '{literal.kind}'"


_F32_MAX = 3.4028234663852886e38


def _check_value_cycles(enums: list[Enum], records: list[Record]) -> None:
    """Reject records and enums that contain themselves by value.

    Containment through Optional, Sequence and Map counts too: a value type
    must be finitely sized without indirection through a handle.
    """
    graph: dict[str, list[str]] = {}
    for record in records:
        graph[record.name] = _value_references([f.type for f in record.fields])
    for enum in enums:
        graph[enum.name] = _value_references([f.type for v in enum.variants for f in v.fields])

    visiting: list[str] = []
    done: set[str] = set()

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            chain = " -> ".join([*visiting[visiting.index(name) :], name])
            raise CyclicTypeError(f"Recursive type definition: {chain}", name=name)
        visiting.append(name)
        for dep in graph.get(name, []):
            visit(dep)
        visiting.pop()
        done.add(name)

    for name in graph:
        visit(name)


def _value_references(types: list[TypeKind]) -> list[str]:
    names: list[str] = []
    for type_kind in types:
        for t in walk(type_kind):
            if isinstance(t, (RecordType, EnumType, ErrorType)):
                names.append(t.name)
    return names
