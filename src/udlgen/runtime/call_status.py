# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""The call-status out-parameter attached to every exported callable.

The native side sets ``code`` and, for ``ERR`` and ``PANIC``, hands over an
error buffer. The caller lifts the result, the declared error, or the panic
message, and frees the error buffer exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from udlgen.model.types import ErrorType, StringType, TypeKind
from udlgen.runtime.buffer import BufferAllocator, ForeignBuffer
from udlgen.runtime.codec import Codec
from udlgen.runtime.errors import CallError, NativePanic, UnexpectedCallError

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class CallStatusCode(IntEnum):
    OK = 0
    ERR = 1
    PANIC = 2


@dataclass
class CallStatus:
    """Mutable out-parameter filled in by the native callee."""

    code: int = CallStatusCode.OK
    error_buf: ForeignBuffer | None = None

    def set_error(self, buf: ForeignBuffer) -> None:
        self.code = CallStatusCode.ERR
        self.error_buf = buf

    def set_panic(self, buf: ForeignBuffer) -> None:
        self.code = CallStatusCode.PANIC
        self.error_buf = buf


def call_with_status(
    native: Callable[[CallStatus], Any],
    *,
    codec: Codec,
    allocator: BufferAllocator,
    return_type: TypeKind | None = None,
    error_type: str | None = None,
) -> Any:
    """Invoke *native* with a fresh call status and interpret the outcome.

    Args:
        native: The exported function with its arguments already bound; it
            receives the call-status out-parameter and returns the raw FFI
            result.
        codec: Codec of the interface the function belongs to.
        allocator: Allocator that owns every buffer handed back.
        return_type: The declared return type, or ``None`` for void.
        error_type: The error enum an ``ERR`` status carries, if declared.

    Returns:
        The lifted return value (``None`` for void).

    Raises:
        CallError: On ``ERR`` with a declared error type; carries the lifted error.
        UnexpectedCallError: On ``ERR`` when no error type is declared.
        NativePanic: On ``PANIC`` or an unknown status code.
    """
    status = CallStatus()
    result = native(status)

    if status.code == CallStatusCode.OK:
        if status.error_buf is not None:
            allocator.free(status.error_buf)
        if return_type is None:
            return None
        return codec.lift(return_type, result, allocator)

    if status.code == CallStatusCode.ERR:
        if status.error_buf is None:
            raise UnexpectedCallError("Call failed without an error buffer")
        if error_type is None:
            message = codec.lift(StringType(), status.error_buf, allocator)
            raise UnexpectedCallError(message)
        error = codec.lift(ErrorType(name=error_type), status.error_buf, allocator)
        raise CallError(error_type, error)

    if status.code == CallStatusCode.PANIC:
        message = "native panic without a message"
        if status.error_buf is not None:
            message = codec.lift(StringType(), status.error_buf, allocator)
        logger.error("Native panic: %s", message)
        raise NativePanic(message)

    if status.error_buf is not None:
        allocator.free(status.error_buf)
    raise NativePanic(f"Unknown call status code {status.code}")
