# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic model: type kinds, the Component Interface and FFI signatures."""

from udlgen.model.entities import (
    Argument,
    Callable,
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
from udlgen.model.ffi import CallbackMethodSignature, FFIArgument, FFIFunction, FfiSignatureSet, FFIType
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
    ScalarType,
    SequenceType,
    StringType,
    TimestampType,
    TypeKind,
)

__all__ = [
    # Type kinds
    "ScalarKind",
    "ScalarType",
    "StringType",
    "BytesType",
    "TimestampType",
    "DurationType",
    "OptionalType",
    "SequenceType",
    "MapType",
    "EnumType",
    "RecordType",
    "ObjectType",
    "CallbackInterfaceType",
    "ErrorType",
    "TypeKind",
    # Component Interface
    "Field",
    "Argument",
    "Variant",
    "Enum",
    "Record",
    "Function",
    "Constructor",
    "Method",
    "Object",
    "CallbackInterface",
    "Namespace",
    "Callable",
    "ComponentInterface",
    # FFI
    "FFIType",
    "FFIArgument",
    "FFIFunction",
    "CallbackMethodSignature",
    "FfiSignatureSet",
]
