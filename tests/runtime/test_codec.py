# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the wire codec and FFI lowering/lifting."""

from __future__ import annotations

from typing import Any

import pytest

from udlgen.compiler.build import compile_source
from udlgen.model.types import (
    BytesType,
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
    TypeKind,
    scalar,
)
from udlgen.runtime.buffer import BufferAllocator, ForeignBuffer
from udlgen.runtime.codec import Codec, EnumValue
from udlgen.runtime.errors import BufferOwnershipError, BufferUnderflowError, TrailingBytesError

# ###############
# Test Helpers
# ###############

_SCHEMA = """
namespace shapes {};

enum Color { "red", "green", "blue" };

[Enum] interface Shape {
    Circle(f64 radius);
    Rect(u16 width, u16 height);
    Empty();
};

[Error] interface ShapeError {
    TooBig(u32 limit);
};

dictionary Point {
    i32 x;
    i32 y;
    string? label;
};

dictionary Drawing {
    sequence<Shape> shapes;
    record<string, Color> colors;
};
"""


@pytest.fixture
def codec() -> Codec:
    return Codec(compile_source(_SCHEMA))


@pytest.fixture
def allocator() -> BufferAllocator:
    return BufferAllocator()


def _u32(n: int) -> bytes:
    return n.to_bytes(4, "big")


# ###############
# Byte Layout
# ###############


class TestScalarLayout:
    @pytest.mark.parametrize(
        "kind,value,expected",
        [
            (ScalarKind.BOOLEAN, True, b"\x01"),
            (ScalarKind.BOOLEAN, False, b"\x00"),
            (ScalarKind.INT8, -1, b"\xff"),
            (ScalarKind.UINT16, 258, b"\x01\x02"),
            (ScalarKind.INT32, -2, b"\xff\xff\xff\xfe"),
            (ScalarKind.UINT64, 1, b"\x00" * 7 + b"\x01"),
            (ScalarKind.FLOAT32, 0.5, b"\x3f\x00\x00\x00"),
            (ScalarKind.FLOAT64, 1.0, b"\x3f\xf0" + b"\x00" * 6),
        ],
    )
    def test_big_endian(self, codec: Codec, kind: ScalarKind, value: Any, expected: bytes) -> None:
        assert codec.encode(scalar(kind), value) == expected
        assert codec.decode(scalar(kind), expected) == value

    def test_out_of_range_rejected(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="out of range"):
            codec.encode(scalar(ScalarKind.UINT8), 256)

    @pytest.mark.parametrize("value", [1e40, -1e40, 10**39])
    def test_f32_out_of_range_rejected(self, codec: Codec, value: float) -> None:
        with pytest.raises(ValueError, match="out of range for f32"):
            codec.encode(scalar(ScalarKind.FLOAT32), value)

    def test_f64_out_of_range_int_rejected(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="out of range for f64"):
            codec.encode(scalar(ScalarKind.FLOAT64), 10**400)

    def test_f32_infinity_is_encoded(self, codec: Codec) -> None:
        assert codec.encode(scalar(ScalarKind.FLOAT32), float("inf")) == b"\x7f\x80\x00\x00"

    def test_bool_is_not_an_int(self, codec: Codec) -> None:
        with pytest.raises(ValueError):
            codec.encode(scalar(ScalarKind.UINT8), True)

    def test_invalid_boolean_byte(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="boolean"):
            codec.decode(scalar(ScalarKind.BOOLEAN), b"\x02")

    def test_time_types(self, codec: Codec) -> None:
        assert codec.encode(TimestampType(), -1) == b"\xff" * 8
        assert codec.encode(DurationType(), 1_000_000_000) == (1_000_000_000).to_bytes(8, "big")
        with pytest.raises(ValueError):
            codec.encode(DurationType(), -1)


class TestCompoundLayout:
    def test_string_is_length_prefixed_utf8(self, codec: Codec) -> None:
        assert codec.encode(StringType(), "hé") == _u32(3) + "hé".encode()

    def test_bytes(self, codec: Codec) -> None:
        assert codec.encode(BytesType(), b"\x00\x01") == _u32(2) + b"\x00\x01"
        assert codec.decode(BytesType(), _u32(0)) == b""

    def test_optional(self, codec: Codec) -> None:
        kind = OptionalType(inner=scalar(ScalarKind.UINT8))
        assert codec.encode(kind, None) == b"\x00"
        assert codec.encode(kind, 5) == b"\x01\x05"
        assert codec.decode(kind, b"\x01\x05") == 5

    def test_nested_optional(self, codec: Codec) -> None:
        kind = OptionalType(inner=OptionalType(inner=scalar(ScalarKind.UINT8)))
        assert codec.encode(kind, None) == b"\x00"

    def test_invalid_presence_flag(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="presence flag"):
            codec.decode(OptionalType(inner=scalar(ScalarKind.UINT8)), b"\x02\x05")

    def test_sequence(self, codec: Codec) -> None:
        kind = SequenceType(inner=scalar(ScalarKind.UINT8))
        assert codec.encode(kind, [1, 2]) == _u32(2) + b"\x01\x02"
        assert codec.decode(kind, _u32(0)) == []

    def test_map(self, codec: Codec) -> None:
        kind = MapType(key=StringType(), value=scalar(ScalarKind.UINT8))
        assert codec.encode(kind, {"a": 1}) == _u32(1) + _u32(1) + b"a" + b"\x01"
        assert codec.decode(kind, _u32(1) + _u32(1) + b"a" + b"\x01") == {"a": 1}

    def test_handles_are_u64(self, codec: Codec) -> None:
        assert codec.encode(ObjectType(name="Counter"), 7) == (7).to_bytes(8, "big")


class TestRecordsAndEnums:
    def test_record_fields_in_declared_order(self, codec: Codec) -> None:
        value = {"y": 2, "x": 1, "label": None}
        encoded = codec.encode(RecordType(name="Point"), value)
        assert encoded == _u32(1) + _u32(2) + b"\x00"
        assert codec.decode(RecordType(name="Point"), encoded) == {"x": 1, "y": 2, "label": None}

    def test_record_missing_field(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="missing field 'y'"):
            codec.encode(RecordType(name="Point"), {"x": 1, "label": None})

    def test_plain_enum_discriminant(self, codec: Codec) -> None:
        assert codec.encode(EnumType(name="Color"), EnumValue("red")) == _u32(1)
        assert codec.encode(EnumType(name="Color"), EnumValue("blue")) == _u32(3)
        assert codec.decode(EnumType(name="Color"), _u32(2)) == EnumValue("green")

    def test_tagged_union(self, codec: Codec) -> None:
        value = EnumValue("Rect", {"width": 3, "height": 4})
        encoded = codec.encode(EnumType(name="Shape"), value)
        assert encoded == _u32(2) + b"\x00\x03\x00\x04"
        assert codec.decode(EnumType(name="Shape"), encoded) == value

    def test_variant_without_fields(self, codec: Codec) -> None:
        assert codec.encode(EnumType(name="Shape"), EnumValue("Empty")) == _u32(3)

    def test_error_type(self, codec: Codec) -> None:
        value = EnumValue("TooBig", {"limit": 10})
        assert codec.decode(ErrorType(name="ShapeError"), codec.encode(ErrorType(name="ShapeError"), value)) == value

    def test_unknown_variant(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="no variant 'purple'"):
            codec.encode(EnumType(name="Color"), EnumValue("purple"))

    @pytest.mark.parametrize("discriminant", [0, 4, -1])
    def test_invalid_discriminant(self, codec: Codec, discriminant: int) -> None:
        with pytest.raises(ValueError, match="Invalid discriminant"):
            codec.decode(EnumType(name="Color"), discriminant.to_bytes(4, "big", signed=True))

    def test_nested_containers(self, codec: Codec) -> None:
        value = {
            "shapes": [EnumValue("Circle", {"radius": 0.5}), EnumValue("Empty")],
            "colors": {"sky": EnumValue("blue")},
        }
        kind = RecordType(name="Drawing")
        assert codec.decode(kind, codec.encode(kind, value)) == value


class TestExactConsumption:
    def test_trailing_bytes(self, codec: Codec) -> None:
        with pytest.raises(TrailingBytesError):
            codec.decode(scalar(ScalarKind.UINT8), b"\x01\x02")

    def test_underflow(self, codec: Codec) -> None:
        with pytest.raises(BufferUnderflowError):
            codec.decode(scalar(ScalarKind.UINT32), b"\x01\x02")

    def test_string_length_past_end(self, codec: Codec) -> None:
        with pytest.raises(BufferUnderflowError):
            codec.decode(StringType(), _u32(10) + b"abc")

    def test_negative_length(self, codec: Codec) -> None:
        with pytest.raises(ValueError, match="Negative length"):
            codec.decode(StringType(), b"\xff\xff\xff\xff")


# ###############
# Lowering and Lifting
# ###############


class TestLowerLift:
    def test_scalars_pass_by_value(self, codec: Codec, allocator: BufferAllocator) -> None:
        assert codec.lower(scalar(ScalarKind.UINT32), 7, allocator) == 7
        assert codec.lower(scalar(ScalarKind.BOOLEAN), True, allocator) == 1
        assert codec.lift(scalar(ScalarKind.BOOLEAN), 0, allocator) is False
        assert codec.lower(TimestampType(), -5, allocator) == -5
        assert codec.lower(ObjectType(name="Counter"), 3, allocator) == 3
        assert allocator.live_buffers == 0

    def test_lowering_checks_range(self, codec: Codec, allocator: BufferAllocator) -> None:
        with pytest.raises(ValueError):
            codec.lower(scalar(ScalarKind.INT8), 200, allocator)
        with pytest.raises(ValueError):
            codec.lower(ObjectType(name="Counter"), -1, allocator)

    @pytest.mark.parametrize(
        "kind,value",
        [
            (StringType(), "hello"),
            (OptionalType(inner=StringType()), None),
            (SequenceType(inner=scalar(ScalarKind.FLOAT32)), [0.5, 1.5]),
            (RecordType(name="Point"), {"x": -1, "y": 1, "label": "p"}),
            (EnumType(name="Color"), EnumValue("green")),
        ],
    )
    def test_buffer_ownership_round_trip(
        self, codec: Codec, allocator: BufferAllocator, kind: TypeKind, value: Any
    ) -> None:
        buf = codec.lower(kind, value, allocator)
        assert isinstance(buf, ForeignBuffer)
        assert allocator.live_buffers == 1
        assert codec.lift(kind, buf, allocator) == value
        assert allocator.live_buffers == 0

    def test_lifted_buffer_cannot_be_lifted_again(self, codec: Codec, allocator: BufferAllocator) -> None:
        buf = codec.lower(StringType(), "once", allocator)
        codec.lift(StringType(), buf, allocator)
        with pytest.raises(BufferOwnershipError):
            codec.lift(StringType(), buf, allocator)

    def test_buffer_freed_when_decoding_fails(self, codec: Codec, allocator: BufferAllocator) -> None:
        buf = allocator.from_bytes(_u32(0) + b"\xff")
        with pytest.raises(TrailingBytesError):
            codec.lift(StringType(), buf, allocator)
        assert allocator.live_buffers == 0
