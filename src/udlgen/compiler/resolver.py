# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type resolution for parsed UDL declarations.

Resolution runs in two passes. The first pass collects every declared type
name into a :class:`SymbolTable` before any reference is looked at, so forward
references and mutually recursive declarations need no special handling. The
second pass substitutes every type expression with its :data:`TypeKind` and
returns a filled-in copy of the syntax tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from udlgen.errors import CyclicTypeError, InvalidNestingError, UnknownTypeError
from udlgen.model.syntax import (
    NamedExpr,
    NullableExpr,
    PrimitiveExpr,
    RawArgument,
    RawOperation,
    RawTypedef,
    RecordExpr,
    SchemaFile,
    SequenceExpr,
    TypeExpr,
    has_attribute,
    is_tagged_union,
)
from udlgen.model.types import (
    BytesType,
    CallbackInterfaceType,
    DurationType,
    EnumType,
    ErrorType,
    MapType,
    ObjectType,
    OptionalType,
    RecordType,
    ScalarKind,
    SequenceType,
    StringType,
    TimestampType,
    TypeKind,
    contains_handle,
    is_valid_map_key,
    scalar,
)

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class SymbolKind(Enum):
    """The category a declared type name belongs to."""

    ENUM = "enum"
    ERROR = "error"
    RECORD = "record"
    OBJECT = "object"
    CALLBACK_INTERFACE = "callback_interface"
    TYPEDEF = "typedef"


@dataclass
class SymbolTable:
    """Name → kind table built before any type substitution begins.

    A name may be registered more than once; duplicates are reported by the
    interface builder, which sees every declaration. Lookups return the first
    registration.
    """

    symbols: dict[str, SymbolKind] = field(default_factory=dict)
    typedefs: dict[str, RawTypedef] = field(default_factory=dict)

    def declare(self, name: str, kind: SymbolKind) -> None:
        self.symbols.setdefault(name, kind)

    def lookup(self, name: str) -> SymbolKind | None:
        return self.symbols.get(name)


def build_symbol_table(schema: SchemaFile) -> SymbolTable:
    """First pass: register every top-level type name."""
    table = SymbolTable()
    for enum_def in schema.enums:
        is_error = has_attribute(enum_def.attributes, "Error")
        table.declare(enum_def.name, SymbolKind.ERROR if is_error else SymbolKind.ENUM)
    for dictionary in schema.dictionaries:
        table.declare(dictionary.name, SymbolKind.RECORD)
    for iface in schema.interfaces:
        if has_attribute(iface.attributes, "Error"):
            table.declare(iface.name, SymbolKind.ERROR)
        elif is_tagged_union(iface):
            table.declare(iface.name, SymbolKind.ENUM)
        else:
            table.declare(iface.name, SymbolKind.OBJECT)
    for cbi in schema.callback_interfaces:
        table.declare(cbi.name, SymbolKind.CALLBACK_INTERFACE)
    for typedef in schema.typedefs:
        table.declare(typedef.name, SymbolKind.TYPEDEF)
        table.typedefs.setdefault(typedef.name, typedef)
    return table


def resolve(schema: SchemaFile) -> SchemaFile:
    """Resolve every type reference in *schema*.

    Args:
        schema: A raw tree produced by :func:`udlgen.compiler.parser.parse`.

    Returns:
        A deep copy of *schema* whose ``resolved`` / ``resolved_return`` slots
        are all populated. The input tree is not modified.

    Raises:
        UnknownTypeError: If a referenced name was never declared.
        CyclicTypeError: If typedefs refer to each other in a cycle.
        InvalidNestingError: If an object or callback interface is nested in
            a record field or enum variant field, or a map key type is not a
            string or non-float scalar.
    """
    table = build_symbol_table(schema)
    logger.debug("Symbol table has %d entries", len(table.symbols))
    return _Resolver(table).resolve(schema)


def resolve_type(type_expr: TypeExpr, table: SymbolTable) -> TypeKind:
    """Resolve a single type expression against *table*."""
    return _Resolver(table).resolve_type(type_expr)


# ################
# Implementation
# ################

_PRIMITIVES: dict[str, TypeKind] = {
    "boolean": scalar(ScalarKind.BOOLEAN),
    "i8": scalar(ScalarKind.INT8),
    "i16": scalar(ScalarKind.INT16),
    "i32": scalar(ScalarKind.INT32),
    "i64": scalar(ScalarKind.INT64),
    "u8": scalar(ScalarKind.UINT8),
    "u16": scalar(ScalarKind.UINT16),
    "u32": scalar(ScalarKind.UINT32),
    "u64": scalar(ScalarKind.UINT64),
    "float": scalar(ScalarKind.FLOAT32),
    "double": scalar(ScalarKind.FLOAT64),
    "string": StringType(),
    "DOMString": StringType(),
    "bytes": BytesType(),
    "timestamp": TimestampType(),
    "duration": DurationType(),
}


class _Resolver:
    """Second pass: substitutes type expressions using a finished symbol table."""

    def __init__(self, table: SymbolTable) -> None:
        self._table = table
        self._typedef_cache: dict[str, TypeKind] = {}
        self._typedef_stack: list[str] = []

    def resolve(self, schema: SchemaFile) -> SchemaFile:
        result = schema.model_copy(deep=True)

        # Resolve every typedef up front so cycles are reported even when the
        # alias is never used.
        for typedef in result.typedefs:
            self._resolve_typedef(typedef.name)

        for namespace in result.namespaces:
            for func in namespace.functions:
                self._resolve_operation(func)
        for dictionary in result.dictionaries:
            for member in dictionary.members:
                self._resolve_argument(member)
                self._check_value_field(member, f"dictionary '{dictionary.name}'")
        for iface in result.interfaces:
            for member in iface.members:
                self._resolve_operation(member)
                if is_tagged_union(iface):
                    for arg in member.arguments:
                        self._check_value_field(arg, f"variant '{member.name}' of enum '{iface.name}'")
        for cbi in result.callback_interfaces:
            for method in cbi.methods:
                self._resolve_operation(method)
        return result

    def resolve_type(self, type_expr: TypeExpr) -> TypeKind:
        if isinstance(type_expr, PrimitiveExpr):
            return _PRIMITIVES[type_expr.name]
        if isinstance(type_expr, NullableExpr):
            return OptionalType(inner=self.resolve_type(type_expr.inner))
        if isinstance(type_expr, SequenceExpr):
            return SequenceType(inner=self.resolve_type(type_expr.element))
        if isinstance(type_expr, RecordExpr):
            key = self.resolve_type(type_expr.key)
            if not is_valid_map_key(key):
                raise InvalidNestingError(
                    f"Map key type '{key.canonical_name}' is not supported; keys must be strings or non-float scalars",
                    line=type_expr.pos.line,
                    column=type_expr.pos.column,
                )
            return MapType(key=key, value=self.resolve_type(type_expr.value))
        # NamedExpr is the only remaining variant.
        assert isinstance(type_expr, NamedExpr)
        return self._resolve_name(type_expr)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _resolve_operation(self, operation: RawOperation) -> None:
        for arg in operation.arguments:
            self._resolve_argument(arg)
        if operation.return_type is not None:
            operation.resolved_return = self.resolve_type(operation.return_type)

    def _resolve_argument(self, arg: RawArgument) -> None:
        arg.resolved = self.resolve_type(arg.type)

    def _check_value_field(self, arg: RawArgument, ctx: str) -> None:
        """Objects and callback interfaces are handle-only and cannot be embedded by value."""
        assert arg.resolved is not None
        if contains_handle(arg.resolved):
            raise InvalidNestingError(
                f"Field '{arg.name}' of {ctx} has type '{arg.resolved.canonical_name}';"
                " objects and callback interfaces cannot be nested inside records or enums",
                name=arg.name,
                line=arg.pos.line,
                column=arg.pos.column,
            )

    # ------------------------------------------------------------------
    # Named references
    # ------------------------------------------------------------------

    def _resolve_name(self, expr: NamedExpr) -> TypeKind:
        kind = self._table.lookup(expr.name)
        if kind is None:
            raise UnknownTypeError(
                f"Unknown type '{expr.name}'",
                name=expr.name,
                line=expr.pos.line,
                column=expr.pos.column,
            )
        if kind == SymbolKind.ENUM:
            return EnumType(name=expr.name)
        if kind == SymbolKind.ERROR:
            return ErrorType(name=expr.name)
        if kind == SymbolKind.RECORD:
            return RecordType(name=expr.name)
        if kind == SymbolKind.OBJECT:
            return ObjectType(name=expr.name)
        if kind == SymbolKind.CALLBACK_INTERFACE:
            return CallbackInterfaceType(name=expr.name)
        return self._resolve_typedef(expr.name)

    def _resolve_typedef(self, name: str) -> TypeKind:
        """Inline a typedef, detecting alias cycles with an explicit stack."""
        if name in self._typedef_cache:
            return self._typedef_cache[name]
        typedef = self._table.typedefs[name]
        if name in self._typedef_stack:
            chain = " -> ".join([*self._typedef_stack[self._typedef_stack.index(name) :], name])
            raise CyclicTypeError(
                f"Typedef cycle detected: {chain}",
                name=name,
                line=typedef.pos.line,
                column=typedef.pos.column,
            )
        self._typedef_stack.append(name)
        try:
            resolved = self.resolve_type(typedef.target)
        finally:
            self._typedef_stack.pop()
        self._typedef_cache[name] = resolved
        return resolved
