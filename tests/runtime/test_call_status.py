# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for call-status handling on the calling side."""

from __future__ import annotations

from typing import Any

import pytest

from udlgen.compiler.build import compile_source
from udlgen.model.types import ErrorType, ScalarKind, StringType, scalar
from udlgen.runtime.buffer import BufferAllocator
from udlgen.runtime.call_status import CallStatus, CallStatusCode, call_with_status
from udlgen.runtime.codec import Codec, EnumValue
from udlgen.runtime.errors import CallError, NativePanic, UnexpectedCallError

# ###############
# Test Helpers
# ###############

_SCHEMA = """
[Throws=ArithmeticError]
namespace arithmetic {
    u64 add(u64 a, u64 b);
    string greet(string name);
};

[Error]
enum ArithmeticError { "IntegerOverflow", "DivisionByZero" };
"""


class _Fixture:
    def __init__(self) -> None:
        self.codec = Codec(compile_source(_SCHEMA))
        self.allocator = BufferAllocator()

    def call(self, native: Any, **kwargs: Any) -> Any:
        return call_with_status(native, codec=self.codec, allocator=self.allocator, **kwargs)


@pytest.fixture
def fx() -> _Fixture:
    return _Fixture()


# ###############
# OK
# ###############


class TestOk:
    def test_scalar_result(self, fx: _Fixture) -> None:
        assert fx.call(lambda status: 5, return_type=scalar(ScalarKind.UINT64)) == 5

    def test_void_result(self, fx: _Fixture) -> None:
        assert fx.call(lambda status: None) is None

    def test_buffer_result_is_lifted_and_freed(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            return fx.allocator.from_bytes(fx.codec.encode(StringType(), "hi"))

        assert fx.call(native, return_type=StringType()) == "hi"
        assert fx.allocator.live_buffers == 0

    def test_status_defaults_to_ok(self) -> None:
        status = CallStatus()
        assert status.code == CallStatusCode.OK
        assert status.error_buf is None


# ###############
# ERR
# ###############


class TestErr:
    def test_declared_error_is_lifted(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            error = fx.codec.encode(ErrorType(name="ArithmeticError"), EnumValue("IntegerOverflow"))
            status.set_error(fx.allocator.from_bytes(error))
            return 0

        with pytest.raises(CallError) as exc_info:
            fx.call(native, return_type=scalar(ScalarKind.UINT64), error_type="ArithmeticError")
        assert exc_info.value.error_type == "ArithmeticError"
        assert exc_info.value.error == EnumValue("IntegerOverflow")
        assert fx.allocator.live_buffers == 0

    def test_err_without_declared_type(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.set_error(fx.allocator.from_bytes(fx.codec.encode(StringType(), "boom")))

        with pytest.raises(UnexpectedCallError, match="boom"):
            fx.call(native)
        assert fx.allocator.live_buffers == 0

    def test_err_without_buffer(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.code = CallStatusCode.ERR

        with pytest.raises(UnexpectedCallError, match="without an error buffer"):
            fx.call(native, error_type="ArithmeticError")

    def test_malformed_error_buffer_still_freed(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.set_error(fx.allocator.from_bytes(b"\x00\x00\x00\x09"))

        with pytest.raises(ValueError, match="Invalid discriminant"):
            fx.call(native, error_type="ArithmeticError")
        assert fx.allocator.live_buffers == 0


# ###############
# PANIC
# ###############


class TestPanic:
    def test_panic_message(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.set_panic(fx.allocator.from_bytes(fx.codec.encode(StringType(), "index out of bounds")))

        with pytest.raises(NativePanic, match="index out of bounds"):
            fx.call(native, error_type="ArithmeticError")
        assert fx.allocator.live_buffers == 0

    def test_panic_without_message(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.code = CallStatusCode.PANIC

        with pytest.raises(NativePanic, match="without a message"):
            fx.call(native)

    def test_unknown_status_code(self, fx: _Fixture) -> None:
        def native(status: CallStatus) -> Any:
            status.code = 7
            status.error_buf = fx.allocator.alloc(0)

        with pytest.raises(NativePanic, match="Unknown call status code 7"):
            fx.call(native)
        assert fx.allocator.live_buffers == 0
