# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for FFI type lowering and signature derivation."""

import pytest

from udlgen.compiler.build import compile_source
from udlgen.compiler.ffi import derive_callable, derive_signatures, lower_type
from udlgen.errors import MissingErrorTypeError
from udlgen.model.entities import ComponentInterface, Function, Namespace
from udlgen.model.ffi import FFIType
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
    scalar,
)

# ###############
# Test Helpers
# ###############

_COUNTER_UDL = """
namespace counters {
    u32 total(sequence<Counter> counters);
};

[Error] enum CounterError { "Overflow" };

interface Counter {
    constructor(u32 start);
    [Name=zero] constructor();
    [Throws=CounterError, Exclusive] void increment();
    u32 get();
    static Counter clone_of(Counter other);
};

callback interface Observer {
    void changed(u32 value);
    [Throws=CounterError] boolean veto(string reason);
};
"""


def _ci(source: str) -> ComponentInterface:
    return compile_source(source)


# ###############
# Type Lowering
# ###############


class TestLowerType:
    @pytest.mark.parametrize(
        "kind,expected",
        [
            (ScalarKind.BOOLEAN, FFIType.INT8),
            (ScalarKind.INT8, FFIType.INT8),
            (ScalarKind.INT16, FFIType.INT16),
            (ScalarKind.INT32, FFIType.INT32),
            (ScalarKind.INT64, FFIType.INT64),
            (ScalarKind.UINT8, FFIType.UINT8),
            (ScalarKind.UINT16, FFIType.UINT16),
            (ScalarKind.UINT32, FFIType.UINT32),
            (ScalarKind.UINT64, FFIType.UINT64),
            (ScalarKind.FLOAT32, FFIType.FLOAT32),
            (ScalarKind.FLOAT64, FFIType.FLOAT64),
        ],
    )
    def test_scalars_pass_by_value(self, kind: ScalarKind, expected: FFIType) -> None:
        assert lower_type(scalar(kind)) == expected

    def test_time_types(self) -> None:
        assert lower_type(TimestampType()) == FFIType.INT64
        assert lower_type(DurationType()) == FFIType.UINT64

    def test_handles(self) -> None:
        assert lower_type(ObjectType(name="Counter")) == FFIType.HANDLE
        assert lower_type(CallbackInterfaceType(name="Observer")) == FFIType.HANDLE

    @pytest.mark.parametrize(
        "type_kind",
        [
            StringType(),
            BytesType(),
            OptionalType(inner=scalar(ScalarKind.UINT32)),
            SequenceType(inner=StringType()),
            MapType(key=StringType(), value=scalar(ScalarKind.UINT8)),
            RecordType(name="Point"),
            EnumType(name="Which"),
            ErrorType(name="Oops"),
        ],
    )
    def test_compound_types_use_buffers(self, type_kind: object) -> None:
        assert lower_type(type_kind) == FFIType.BUFFER  # type: ignore[arg-type]

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(TypeError, match="Unhandled type kind"):
            lower_type("not a type")  # type: ignore[arg-type]


# ###############
# Signature Derivation
# ###############


class TestDeriveSignatures:
    def test_which_example(self) -> None:
        ci = _ci('namespace example { Which get_it(boolean yes); }; enum Which { "Yeah", "Nah" };')
        signatures = derive_signatures(ci)
        prefix = ci.ffi_namespace()
        func = signatures.get(f"{prefix}_get_it")
        assert func is not None
        assert [(a.name, a.type) for a in func.arguments] == [("yes", FFIType.INT8)]
        assert func.return_type == FFIType.BUFFER
        assert func.has_call_status
        assert not func.fallible
        assert list(signatures.helper_types) == [EnumType(name="Which"), scalar(ScalarKind.BOOLEAN)]

    def test_prefix_uses_namespace_and_checksum(self) -> None:
        ci = _ci("namespace example {};")
        signatures = derive_signatures(ci)
        assert signatures.namespace == ci.ffi_namespace()
        assert signatures.namespace.startswith("example_")

    def test_symbol_order(self) -> None:
        ci = _ci(_COUNTER_UDL)
        signatures = derive_signatures(ci)
        p = signatures.namespace
        assert signatures.names == [
            f"{p}_total",
            f"{p}_Counter_new",
            f"{p}_Counter_zero",
            f"{p}_Counter_increment",
            f"{p}_Counter_get",
            f"{p}_Counter_clone_of",
            f"ffi_{p}_Counter_object_free",
            f"ffi_{p}_Observer_init_callback",
            f"ffi_{p}_buffer_alloc",
            f"ffi_{p}_buffer_from_bytes",
            f"ffi_{p}_buffer_free",
            f"ffi_{p}_buffer_reserve",
        ]

    def test_constructors_return_handles(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        cons = signatures.get(f"{signatures.namespace}_Counter_new")
        assert cons is not None
        assert cons.kind == "constructor"
        assert cons.return_type == FFIType.HANDLE
        assert [(a.name, a.type) for a in cons.arguments] == [("start", FFIType.UINT32)]

    def test_methods_take_receiver_handle(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        get = signatures.get(f"{signatures.namespace}_Counter_get")
        assert get is not None
        assert get.kind == "method"
        assert [(a.name, a.type) for a in get.arguments] == [("ptr", FFIType.HANDLE)]
        assert get.return_type == FFIType.UINT32

    def test_static_method_has_no_receiver(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        clone_of = signatures.get(f"{signatures.namespace}_Counter_clone_of")
        assert clone_of is not None
        assert clone_of.kind == "static_method"
        assert [(a.name, a.type) for a in clone_of.arguments] == [("other", FFIType.HANDLE)]
        assert clone_of.return_type == FFIType.HANDLE

    def test_throws_and_exclusive(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        increment = signatures.get(f"{signatures.namespace}_Counter_increment")
        assert increment is not None
        assert increment.error_type == "CounterError"
        assert increment.fallible
        assert increment.exclusive
        assert increment.return_type is None

    def test_object_free(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        free = signatures.get(f"ffi_{signatures.namespace}_Counter_object_free")
        assert free is not None
        assert free.kind == "object_free"
        assert [(a.name, a.type) for a in free.arguments] == [("handle", FFIType.HANDLE)]
        assert free.return_type is None

    def test_buffer_functions(self) -> None:
        signatures = derive_signatures(_ci("namespace x {};"))
        p = signatures.namespace
        alloc = signatures.get(f"ffi_{p}_buffer_alloc")
        from_bytes = signatures.get(f"ffi_{p}_buffer_from_bytes")
        reserve = signatures.get(f"ffi_{p}_buffer_reserve")
        assert alloc is not None and from_bytes is not None and reserve is not None
        assert [a.type for a in alloc.arguments] == [FFIType.INT32]
        assert [a.type for a in from_bytes.arguments] == [FFIType.FOREIGN_BYTES]
        assert [a.type for a in reserve.arguments] == [FFIType.BUFFER, FFIType.INT32]
        assert all(f.return_type == FFIType.BUFFER for f in (alloc, from_bytes, reserve))

    def test_callback_methods(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        init = signatures.get(f"ffi_{signatures.namespace}_Observer_init_callback")
        assert init is not None
        assert [a.type for a in init.arguments] == [FFIType.FOREIGN_CALLBACK]
        changed, veto = signatures.callback_methods
        assert (changed.method_name, changed.index) == ("changed", 1)
        assert changed.arguments == (scalar(ScalarKind.UINT32),)
        assert changed.return_type is None
        assert (veto.method_name, veto.index) == ("veto", 2)
        assert veto.return_type == scalar(ScalarKind.BOOLEAN)
        assert veto.error_type == "CounterError"

    def test_helper_types_are_exactly_those_used(self) -> None:
        signatures = derive_signatures(_ci(_COUNTER_UDL))
        names = [t.canonical_name for t in signatures.helper_types]
        assert names == sorted(names)
        assert "string" in names
        assert "SequenceObjectCounter" in names
        assert "u64" not in names
        assert "f64" not in names

    def test_deterministic(self) -> None:
        assert derive_signatures(_ci(_COUNTER_UDL)) == derive_signatures(_ci(_COUNTER_UDL))


# ###############
# Error Types
# ###############


class TestErrorTypes:
    def test_namespace_error_used_for_fallible(self) -> None:
        ci = _ci('[Throws=Oops] namespace x { [Fallible] void f(); void g(); }; [Error] enum Oops { "Bad" };')
        signatures = derive_signatures(ci)
        f = signatures.get(f"{signatures.namespace}_f")
        g = signatures.get(f"{signatures.namespace}_g")
        assert f is not None and g is not None
        assert f.error_type == "Oops"
        assert g.error_type is None
        assert not g.fallible

    def test_own_throws_overrides_namespace_error(self) -> None:
        ci = _ci("""
[Throws=Oops] namespace x { [Throws=Other] void f(); };
[Error] enum Oops { "Bad" };
[Error] enum Other { "Worse" };
""")
        signatures = derive_signatures(ci)
        func = signatures.get(f"{signatures.namespace}_f")
        assert func is not None and func.error_type == "Other"

    def test_fallible_without_any_error_type(self) -> None:
        ci = ComponentInterface(namespace=Namespace(name="x", functions=(Function(name="f", fallible=True),)))
        with pytest.raises(MissingErrorTypeError, match="no error type"):
            derive_signatures(ci)

    def test_derive_callable_fallible_override(self) -> None:
        ci = ComponentInterface(namespace=Namespace(name="x", error="Oops"))
        func = derive_callable(ci, Function(name="f"), symbol="x_f", fallible=True)
        assert func.error_type == "Oops"
        assert func.fallible
