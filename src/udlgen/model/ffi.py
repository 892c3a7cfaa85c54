# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Low-level FFI signatures derived from a Component Interface.

These models describe the exported C-ABI surface of the native scaffolding.
They are language-agnostic; target-language bindings only differ in how they
spell the types listed here.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from udlgen.model.types import TypeKind

# ###############
# Public Interface
# ###############


class FFIType(Enum):
    """Types that may appear in an exported FFI signature."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    # A {pointer, length, capacity} triple owned by whoever receives it.
    BUFFER = "buffer"
    # An opaque u64 identifying an object instance or callback registration.
    HANDLE = "handle"
    # A borrowed {pointer, length} view of foreign-owned bytes.
    FOREIGN_BYTES = "foreign_bytes"
    # The foreign function pointer native code uses to invoke callbacks.
    FOREIGN_CALLBACK = "foreign_callback"


FFIFunctionKind = Literal[
    "function",
    "constructor",
    "method",
    "static_method",
    "object_free",
    "init_callback",
    "buffer_alloc",
    "buffer_from_bytes",
    "buffer_free",
    "buffer_reserve",
]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FFIArgument(_Frozen):
    name: str
    type: FFIType


class FFIFunction(_Frozen):
    """One exported symbol of the native scaffolding.

    Every exported symbol takes a trailing out-pointer to a call-status record
    in addition to ``arguments``; ``has_call_status`` is always true.

    Attributes:
        name: The exported symbol name.
        arguments: Declared arguments in call order, receiver handle first.
        return_type: Lowered return type, or ``None`` for void.
        error_type: Name of the error enum an ``Err`` status carries.
        fallible: Whether an ``Err`` status may be reported at all.
        kind: What the symbol is for.
        exclusive: The native side serializes calls on the receiver.
    """

    name: str
    arguments: tuple[FFIArgument, ...] = ()
    return_type: FFIType | None = None
    has_call_status: bool = True
    error_type: str | None = None
    fallible: bool = False
    kind: FFIFunctionKind = "function"
    exclusive: bool = False


class CallbackMethodSignature(_Frozen):
    """A callback-interface method as seen by the foreign trampoline.

    Arguments arrive as a single serialized buffer; ``index`` selects the
    method (``0`` is reserved for releasing the handle).
    """

    interface_name: str
    method_name: str
    index: int
    arguments: tuple[TypeKind, ...] = ()
    return_type: TypeKind | None = None
    error_type: str | None = None


class FfiSignatureSet(_Frozen):
    """Every exported symbol plus what the bindings must implement to use them.

    Attributes:
        namespace: The symbol prefix (``ComponentInterface.ffi_namespace()``).
        functions: Exported symbols in a deterministic order: namespace
            functions, then per object its constructors, methods and free
            function, then callback init functions, then the global buffer
            functions.
        callback_methods: Foreign trampoline entries per callback interface.
        helper_types: The type kinds that need lower/lift helpers, exactly
            those used by the interface.
    """

    namespace: str
    functions: tuple[FFIFunction, ...] = ()
    callback_methods: tuple[CallbackMethodSignature, ...] = ()
    helper_types: tuple[TypeKind, ...] = ()

    def get(self, name: str) -> FFIFunction | None:
        return next((f for f in self.functions if f.name == name), None)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.functions]
