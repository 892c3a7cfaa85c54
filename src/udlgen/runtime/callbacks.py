# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Callback interfaces: native code calling foreign implementations.

The foreign side registers each implementation and passes its handle to
native code. Native code calls back through a single trampoline per callback
interface, :meth:`CallbackRegistry.invoke`, selecting the method by its
1-based index; index 0 releases the handle.

Failure policy: an exception carrying the method's declared error type is
returned as ``ERR`` with the lowered error value, so it surfaces as the
native call's typed error. Any other exception is returned as ``PANIC`` with
its message.
"""

from __future__ import annotations

import logging
from typing import Any

from udlgen.model.ffi import CallbackMethodSignature, FfiSignatureSet
from udlgen.model.types import ErrorType, StringType
from udlgen.runtime.buffer import BufferAllocator, ForeignBuffer
from udlgen.runtime.call_status import CallStatusCode
from udlgen.runtime.codec import Codec, Reader
from udlgen.runtime.errors import CallError
from udlgen.runtime.handles import HandleMap

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

FREE_METHOD_INDEX = 0


class CallbackRegistry:
    """Holds the foreign implementations of one callback interface."""

    def __init__(
        self,
        signatures: FfiSignatureSet,
        interface_name: str,
        codec: Codec,
        allocator: BufferAllocator,
    ) -> None:
        self._methods: dict[int, CallbackMethodSignature] = {
            m.index: m for m in signatures.callback_methods if m.interface_name == interface_name
        }
        self._interface_name = interface_name
        self._codec = codec
        self._allocator = allocator
        self._handles: HandleMap[Any] = HandleMap()

    def __len__(self) -> int:
        return len(self._handles)

    def register(self, implementation: Any) -> int:
        """Register a foreign implementation and return its handle."""
        return self._handles.insert(implementation)

    def invoke(self, handle: int, method_index: int, args: ForeignBuffer) -> tuple[int, ForeignBuffer | None]:
        """Trampoline entry point called by native code.

        Takes ownership of *args*. Returns the status code and an output
        buffer whose ownership passes to the native caller: the lowered return
        value on ``OK`` (``None`` for void), the lowered error on ``ERR``, or
        the panic message on ``PANIC``.
        """
        try:
            data = self._allocator.read(args)
        finally:
            self._allocator.free(args)

        if method_index == FREE_METHOD_INDEX:
            try:
                self._handles.release(handle)
            except Exception as exc:
                return self._panic(exc)
            return CallStatusCode.OK, None

        try:
            method = self._methods[method_index]
        except KeyError:
            return self._panic(IndexError(f"{self._interface_name} has no method with index {method_index}"))

        try:
            implementation = self._handles.get(handle)
            reader = Reader(data)
            arguments = [self._codec.read(arg_type, reader) for arg_type in method.arguments]
            reader.finish()
            result = getattr(implementation, method.method_name)(*arguments)
        except CallError as exc:
            if method.error_type is None or exc.error_type != method.error_type:
                return self._panic(exc)
            try:
                encoded = self._codec.encode(ErrorType(name=method.error_type), exc.error)
            except Exception as encode_exc:
                return self._panic(encode_exc)
            return CallStatusCode.ERR, self._allocator.from_bytes(encoded)
        except Exception as exc:
            return self._panic(exc)

        if method.return_type is None:
            return CallStatusCode.OK, None
        try:
            encoded = self._codec.encode(method.return_type, result)
        except Exception as exc:
            return self._panic(exc)
        return CallStatusCode.OK, self._allocator.from_bytes(encoded)

    def _panic(self, exc: Exception) -> tuple[int, ForeignBuffer]:
        message = f"{type(exc).__name__}: {exc}"
        logger.warning("Callback on '%s' panicked: %s", self._interface_name, message)
        return CallStatusCode.PANIC, self._allocator.from_bytes(self._codec.encode(StringType(), message))
