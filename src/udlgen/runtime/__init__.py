# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reference implementation of the FFI run-time protocol.

Bindings in every target language must behave exactly like this package:
buffer ownership, wire encoding, call-status handling, object handles and
callback trampolines.
"""

from udlgen.runtime.buffer import BufferAllocator, ForeignBuffer
from udlgen.runtime.call_status import CallStatus, CallStatusCode, call_with_status
from udlgen.runtime.callbacks import FREE_METHOD_INDEX, CallbackRegistry
from udlgen.runtime.codec import Codec, EnumValue, Reader
from udlgen.runtime.errors import (
    BufferOwnershipError,
    BufferUnderflowError,
    CallError,
    FfiError,
    NativePanic,
    StaleHandleError,
    TrailingBytesError,
    UnexpectedCallError,
)
from udlgen.runtime.handles import HandleMap, ObjectHandle

__all__ = [
    "BufferAllocator",
    "ForeignBuffer",
    "Codec",
    "EnumValue",
    "Reader",
    "CallStatus",
    "CallStatusCode",
    "call_with_status",
    "HandleMap",
    "ObjectHandle",
    "CallbackRegistry",
    "FREE_METHOD_INDEX",
    "FfiError",
    "BufferOwnershipError",
    "BufferUnderflowError",
    "TrailingBytesError",
    "StaleHandleError",
    "CallError",
    "UnexpectedCallError",
    "NativePanic",
]
