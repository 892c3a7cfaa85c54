# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run-time errors raised by the FFI protocol implementation."""

from __future__ import annotations

from typing import Any

# ###############
# Public Interface
# ###############


class FfiError(Exception):
    """Base class for errors raised while crossing the FFI boundary."""


class BufferOwnershipError(FfiError):
    """Raised when a buffer is freed twice, or used after it was freed."""


class BufferUnderflowError(FfiError):
    """Raised when decoding needs more bytes than the buffer holds."""


class TrailingBytesError(FfiError):
    """Raised when a top-level buffer is not consumed exactly."""


class StaleHandleError(FfiError):
    """Raised when an object or callback handle is unknown or already released."""


class CallError(FfiError):
    """A declared, typed failure of a callable.

    Attributes:
        error_type: Name of the error enum.
        error: The lifted error value.
    """

    def __init__(self, error_type: str, error: Any) -> None:
        super().__init__(f"{error_type}: {error}")
        self.error_type = error_type
        self.error = error


class UnexpectedCallError(FfiError):
    """A failure reported by a callable that declares no error type."""


class NativePanic(FfiError):
    """An unrecoverable fault in the native implementation.

    The message is a diagnostic only and must not be interpreted as data.
    """
