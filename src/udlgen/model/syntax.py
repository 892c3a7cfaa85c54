# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Raw declaration tree produced by the schema parser.

Type references are kept as written (:class:`TypeExpr`). Each node that holds
a type reference also has a ``resolved`` slot which stays ``None`` until the
type resolver returns a filled-in copy of the tree.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

from udlgen.model.types import TypeKind

# ###############
# Public Interface
# ###############


class Position(BaseModel):
    """A 1-based source position."""

    line: int = 0
    column: int = 0


class PrimitiveExpr(BaseModel):
    """A built-in type name such as ``u32`` or ``string``."""

    kind: Literal["primitive"] = "primitive"
    name: str
    pos: Position = _Field(default_factory=Position)


class NamedExpr(BaseModel):
    """A reference to a user-declared type or typedef."""

    kind: Literal["named"] = "named"
    name: str
    pos: Position = _Field(default_factory=Position)


class SequenceExpr(BaseModel):
    """``sequence<T>``"""

    kind: Literal["sequence"] = "sequence"
    element: TypeExpr
    pos: Position = _Field(default_factory=Position)


class RecordExpr(BaseModel):
    """``record<K, V>`` (a map)."""

    kind: Literal["record"] = "record"
    key: TypeExpr
    value: TypeExpr
    pos: Position = _Field(default_factory=Position)


class NullableExpr(BaseModel):
    """``T?``"""

    kind: Literal["nullable"] = "nullable"
    inner: TypeExpr
    pos: Position = _Field(default_factory=Position)


TypeExpr = Annotated[
    PrimitiveExpr | NamedExpr | SequenceExpr | RecordExpr | NullableExpr,
    _Field(discriminator="kind"),
]


class LiteralValue(BaseModel):
    """A literal used as a default value.

    ``kind`` is one of ``int``, ``float``, ``string``, ``boolean``, ``null``,
    ``empty_sequence`` or ``empty_map``. ``value`` holds the decoded Python
    value (``None`` for the last three).
    """

    kind: Literal["int", "float", "string", "boolean", "null", "empty_sequence", "empty_map"]
    value: int | float | str | bool | None = None
    pos: Position = _Field(default_factory=Position)


class Attribute(BaseModel):
    """An extended attribute such as ``[Error]`` or ``[Throws=MyError]``."""

    name: str
    value: str | None = None
    pos: Position = _Field(default_factory=Position)


class RawArgument(BaseModel):
    """A function argument, dictionary member, or enum variant field."""

    name: str
    type: TypeExpr
    default: LiteralValue | None = None
    required: bool = False
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)
    resolved: TypeKind | None = None


class RawOperation(BaseModel):
    """A function, method, constructor, or tagged-union variant declaration.

    ``return_type`` is ``None`` for ``void`` and for constructors.
    """

    name: str
    arguments: list[RawArgument] = _Field(default_factory=list)
    return_type: TypeExpr | None = None
    attributes: list[Attribute] = _Field(default_factory=list)
    is_constructor: bool = False
    is_static: bool = False
    is_variant: bool = False
    pos: Position = _Field(default_factory=Position)
    resolved_return: TypeKind | None = None


class RawNamespace(BaseModel):
    name: str
    functions: list[RawOperation] = _Field(default_factory=list)
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)


class RawEnum(BaseModel):
    """``enum Name { "a", "b" };``"""

    name: str
    values: list[str] = _Field(default_factory=list)
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)


class RawDictionary(BaseModel):
    name: str
    members: list[RawArgument] = _Field(default_factory=list)
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)


class RawInterface(BaseModel):
    """``interface Name { ... };``

    With ``[Enum]`` or ``[Error]`` the members are tagged-union variants
    rather than methods.
    """

    name: str
    members: list[RawOperation] = _Field(default_factory=list)
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)


class RawCallbackInterface(BaseModel):
    name: str
    methods: list[RawOperation] = _Field(default_factory=list)
    attributes: list[Attribute] = _Field(default_factory=list)
    pos: Position = _Field(default_factory=Position)


class RawTypedef(BaseModel):
    name: str
    target: TypeExpr
    pos: Position = _Field(default_factory=Position)


class SchemaFile(BaseModel):
    """Top-level syntax tree for one .udl compilation unit, in source order."""

    namespaces: list[RawNamespace] = _Field(default_factory=list)
    enums: list[RawEnum] = _Field(default_factory=list)
    dictionaries: list[RawDictionary] = _Field(default_factory=list)
    interfaces: list[RawInterface] = _Field(default_factory=list)
    callback_interfaces: list[RawCallbackInterface] = _Field(default_factory=list)
    typedefs: list[RawTypedef] = _Field(default_factory=list)


def find_attribute(attributes: list[Attribute], name: str) -> Attribute | None:
    """Return the first attribute called *name*, or ``None``."""
    for attr in attributes:
        if attr.name == name:
            return attr
    return None


def has_attribute(attributes: list[Attribute], name: str) -> bool:
    return find_attribute(attributes, name) is not None


def is_tagged_union(interface: RawInterface) -> bool:
    """True for ``[Enum]`` and ``[Error]`` interfaces, which declare enum variants."""
    return has_attribute(interface.attributes, "Enum") or has_attribute(interface.attributes, "Error")


# Resolve forward references in self-referential models.
SequenceExpr.model_rebuild()
RecordExpr.model_rebuild()
NullableExpr.model_rebuild()
RawArgument.model_rebuild()
RawOperation.model_rebuild()
RawTypedef.model_rebuild()
