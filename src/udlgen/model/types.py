# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic type kinds for the Component Interface.

``TypeKind`` is a closed union discriminated on ``kind``. Consumers dispatch
on the concrete class and treat an unmatched kind as a programming error.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class ScalarKind(Enum):
    """Fixed-width scalar types."""

    BOOLEAN = "boolean"
    INT8 = "i8"
    INT16 = "i16"
    INT32 = "i32"
    INT64 = "i64"
    UINT8 = "u8"
    UINT16 = "u16"
    UINT32 = "u32"
    UINT64 = "u64"
    FLOAT32 = "f32"
    FLOAT64 = "f64"

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_RANGES

    @property
    def is_float(self) -> bool:
        return self in (ScalarKind.FLOAT32, ScalarKind.FLOAT64)

    @property
    def int_range(self) -> tuple[int, int]:
        """Inclusive (min, max) for integer kinds."""
        return _INTEGER_RANGES[self]


class _Kind(BaseModel):
    model_config = ConfigDict(frozen=True)


class ScalarType(_Kind):
    kind: Literal["scalar"] = "scalar"
    scalar: ScalarKind

    @property
    def canonical_name(self) -> str:
        return self.scalar.value


class StringType(_Kind):
    kind: Literal["string"] = "string"

    @property
    def canonical_name(self) -> str:
        return "string"


class BytesType(_Kind):
    kind: Literal["bytes"] = "bytes"

    @property
    def canonical_name(self) -> str:
        return "bytes"


class TimestampType(_Kind):
    kind: Literal["timestamp"] = "timestamp"

    @property
    def canonical_name(self) -> str:
        return "timestamp"


class DurationType(_Kind):
    kind: Literal["duration"] = "duration"

    @property
    def canonical_name(self) -> str:
        return "duration"


class OptionalType(_Kind):
    kind: Literal["optional"] = "optional"
    inner: TypeKind

    @property
    def canonical_name(self) -> str:
        return f"Optional{self.inner.canonical_name}"


class SequenceType(_Kind):
    kind: Literal["sequence"] = "sequence"
    inner: TypeKind

    @property
    def canonical_name(self) -> str:
        return f"Sequence{self.inner.canonical_name}"


class MapType(_Kind):
    kind: Literal["map"] = "map"
    key: TypeKind
    value: TypeKind

    @property
    def canonical_name(self) -> str:
        return f"Map{self.key.canonical_name}{self.value.canonical_name}"


class EnumType(_Kind):
    kind: Literal["enum"] = "enum"
    name: str

    @property
    def canonical_name(self) -> str:
        return f"Enum{self.name}"


class RecordType(_Kind):
    kind: Literal["record"] = "record"
    name: str

    @property
    def canonical_name(self) -> str:
        return f"Record{self.name}"


class ObjectType(_Kind):
    kind: Literal["object"] = "object"
    name: str

    @property
    def canonical_name(self) -> str:
        return f"Object{self.name}"


class CallbackInterfaceType(_Kind):
    kind: Literal["callback_interface"] = "callback_interface"
    name: str

    @property
    def canonical_name(self) -> str:
        return f"CallbackInterface{self.name}"


class ErrorType(_Kind):
    kind: Literal["error"] = "error"
    name: str

    @property
    def canonical_name(self) -> str:
        return f"Error{self.name}"


# The closed set of semantic type kinds. Adding a member here requires a new
# branch in every consumer that dispatches on the kind.
TypeKind = Annotated[
    ScalarType
    | StringType
    | BytesType
    | TimestampType
    | DurationType
    | OptionalType
    | SequenceType
    | MapType
    | EnumType
    | RecordType
    | ObjectType
    | CallbackInterfaceType
    | ErrorType,
    _Field(discriminator="kind"),
]

# Every ``kind`` tag, in declaration order.
TYPE_KIND_TAGS: tuple[str, ...] = (
    "scalar",
    "string",
    "bytes",
    "timestamp",
    "duration",
    "optional",
    "sequence",
    "map",
    "enum",
    "record",
    "object",
    "callback_interface",
    "error",
)

HANDLE_TYPES = (ObjectType, CallbackInterfaceType)


def scalar(kind: ScalarKind) -> ScalarType:
    """Shorthand constructor for a scalar type kind."""
    return ScalarType(scalar=kind)


def child_types(type_kind: TypeKind) -> list[TypeKind]:
    """Return the type kinds directly nested inside *type_kind*."""
    if isinstance(type_kind, (OptionalType, SequenceType)):
        return [type_kind.inner]
    if isinstance(type_kind, MapType):
        return [type_kind.key, type_kind.value]
    return []


def walk(type_kind: TypeKind) -> list[TypeKind]:
    """Return *type_kind* followed by every type kind nested inside it."""
    result = [type_kind]
    for child in child_types(type_kind):
        result.extend(walk(child))
    return result


def contains_handle(type_kind: TypeKind) -> bool:
    """Return True if an Object or CallbackInterface appears anywhere in *type_kind*."""
    return any(isinstance(t, HANDLE_TYPES) for t in walk(type_kind))


def is_valid_map_key(type_kind: TypeKind) -> bool:
    """Map keys are restricted to strings and non-float scalars."""
    if isinstance(type_kind, StringType):
        return True
    return isinstance(type_kind, ScalarType) and not type_kind.scalar.is_float


# ################
# Implementation
# ################

_INTEGER_RANGES: dict[ScalarKind, tuple[int, int]] = {
    ScalarKind.INT8: (-(2**7), 2**7 - 1),
    ScalarKind.INT16: (-(2**15), 2**15 - 1),
    ScalarKind.INT32: (-(2**31), 2**31 - 1),
    ScalarKind.INT64: (-(2**63), 2**63 - 1),
    ScalarKind.UINT8: (0, 2**8 - 1),
    ScalarKind.UINT16: (0, 2**16 - 1),
    ScalarKind.UINT32: (0, 2**32 - 1),
    ScalarKind.UINT64: (0, 2**64 - 1),
}

OptionalType.model_rebuild()
SequenceType.model_rebuild()
MapType.model_rebuild()
