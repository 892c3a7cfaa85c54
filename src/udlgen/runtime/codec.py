# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Wire encoding of values, and lowering/lifting across the FFI boundary.

All multi-byte values are big-endian. Booleans are a single ``i8`` (0 or 1).
Strings and bytes carry an ``i32`` byte length; sequences and maps an ``i32``
element count. Optionals start with an ``i8`` presence flag. Records encode
their fields in declared order; enums and errors an ``i32`` 1-based
discriminant followed by the variant's fields. Objects and callback
interfaces are ``u64`` handles.

Python values used by this codec:

========================  ================================================
Type kind                 Python value
========================  ================================================
boolean / integers        ``bool`` / ``int``
f32 / f64                 ``float``
String / Bytes            ``str`` / ``bytes``
Timestamp / Duration      ``int`` nanoseconds
Optional                  the inner value or ``None``
Sequence / Map            ``list`` / ``dict``
Record                    ``dict`` of field name to value
Enum / Error              :class:`EnumValue`
Object / Callback         ``int`` handle
========================  ================================================
"""

from __future__ import annotations

import math
import struct
import sys
from dataclasses import dataclass, field
from typing import Any

from udlgen.compiler.ffi import lower_type
from udlgen.model.entities import ComponentInterface, Enum, Record
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
    ScalarType,
    SequenceType,
    StringType,
    TimestampType,
    TypeKind,
)
from udlgen.runtime.buffer import BufferAllocator, ForeignBuffer
from udlgen.runtime.errors import BufferUnderflowError, TrailingBytesError

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class EnumValue:
    """A value of an enum or error type: the variant name plus its field values."""

    variant: str
    fields: dict[str, Any] = field(default_factory=dict)


class Codec:
    """Encodes and decodes values of the types declared by one interface."""

    def __init__(self, ci: ComponentInterface) -> None:
        self._ci = ci

    # ------------------------------------------------------------------
    # Byte-level encoding
    # ------------------------------------------------------------------

    def encode(self, type_kind: TypeKind, value: Any) -> bytes:
        out = bytearray()
        self.write(type_kind, value, out)
        return bytes(out)

    def decode(self, type_kind: TypeKind, data: bytes) -> Any:
        """Decode *data*, which must hold exactly one value of *type_kind*.

        Raises:
            BufferUnderflowError: If *data* ends before the value is complete.
            TrailingBytesError: If bytes remain after the value.
        """
        reader = Reader(data)
        value = self.read(type_kind, reader)
        reader.finish()
        return value

    def write(self, type_kind: TypeKind, value: Any, out: bytearray) -> None:
        if isinstance(type_kind, ScalarType):
            out += _pack_scalar(type_kind.scalar, value)
        elif isinstance(type_kind, StringType):
            _write_sized(value.encode("utf-8"), out)
        elif isinstance(type_kind, BytesType):
            _write_sized(bytes(value), out)
        elif isinstance(type_kind, TimestampType):
            out += _pack_scalar(ScalarKind.INT64, value)
        elif isinstance(type_kind, DurationType):
            out += _pack_scalar(ScalarKind.UINT64, value)
        elif isinstance(type_kind, OptionalType):
            if value is None:
                out += _pack_scalar(ScalarKind.INT8, 0)
            else:
                out += _pack_scalar(ScalarKind.INT8, 1)
                self.write(type_kind.inner, value, out)
        elif isinstance(type_kind, SequenceType):
            out += _pack_length(len(value))
            for item in value:
                self.write(type_kind.inner, item, out)
        elif isinstance(type_kind, MapType):
            out += _pack_length(len(value))
            for key, item in value.items():
                self.write(type_kind.key, key, out)
                self.write(type_kind.value, item, out)
        elif isinstance(type_kind, RecordType):
            record = self._record(type_kind.name)
            for f in record.fields:
                if f.name not in value:
                    raise ValueError(f"Record '{record.name}' value is missing field '{f.name}'")
                self.write(f.type, value[f.name], out)
        elif isinstance(type_kind, (EnumType, ErrorType)):
            enum = self._enum(type_kind.name)
            try:
                discriminant = enum.discriminant(value.variant)
            except KeyError:
                raise ValueError(f"Enum '{enum.name}' has no variant '{value.variant}'") from None
            out += _pack_scalar(ScalarKind.INT32, discriminant)
            for f in enum.variants[discriminant - 1].fields:
                if f.name not in value.fields:
                    raise ValueError(f"Variant '{enum.name}.{value.variant}' is missing field '{f.name}'")
                self.write(f.type, value.fields[f.name], out)
        elif isinstance(type_kind, (ObjectType, CallbackInterfaceType)):
            out += _pack_scalar(ScalarKind.UINT64, value)
        else:
            raise TypeError(f"Unhandled type kind: {type_kind!r}")

    def read(self, type_kind: TypeKind, reader: Reader) -> Any:
        if isinstance(type_kind, ScalarType):
            return _unpack_scalar(type_kind.scalar, reader)
        if isinstance(type_kind, StringType):
            return reader.take(_read_length(reader)).decode("utf-8")
        if isinstance(type_kind, BytesType):
            return reader.take(_read_length(reader))
        if isinstance(type_kind, TimestampType):
            return _unpack_scalar(ScalarKind.INT64, reader)
        if isinstance(type_kind, DurationType):
            return _unpack_scalar(ScalarKind.UINT64, reader)
        if isinstance(type_kind, OptionalType):
            flag = _unpack_scalar(ScalarKind.INT8, reader)
            if flag == 0:
                return None
            if flag != 1:
                raise ValueError(f"Unexpected presence flag {flag} for optional value")
            return self.read(type_kind.inner, reader)
        if isinstance(type_kind, SequenceType):
            count = _read_length(reader)
            return [self.read(type_kind.inner, reader) for _ in range(count)]
        if isinstance(type_kind, MapType):
            count = _read_length(reader)
            result: dict[Any, Any] = {}
            for _ in range(count):
                key = self.read(type_kind.key, reader)
                result[key] = self.read(type_kind.value, reader)
            return result
        if isinstance(type_kind, RecordType):
            record = self._record(type_kind.name)
            return {f.name: self.read(f.type, reader) for f in record.fields}
        if isinstance(type_kind, (EnumType, ErrorType)):
            enum = self._enum(type_kind.name)
            discriminant = _unpack_scalar(ScalarKind.INT32, reader)
            if not 1 <= discriminant <= len(enum.variants):
                raise ValueError(f"Invalid discriminant {discriminant} for enum '{enum.name}'")
            variant = enum.variants[discriminant - 1]
            return EnumValue(variant=variant.name, fields={f.name: self.read(f.type, reader) for f in variant.fields})
        if isinstance(type_kind, (ObjectType, CallbackInterfaceType)):
            return _unpack_scalar(ScalarKind.UINT64, reader)
        raise TypeError(f"Unhandled type kind: {type_kind!r}")

    # ------------------------------------------------------------------
    # Crossing the boundary
    # ------------------------------------------------------------------

    def lower(self, type_kind: TypeKind, value: Any, allocator: BufferAllocator) -> Any:
        """Convert *value* to its FFI representation.

        Buffer-passed types are encoded into a new buffer whose ownership
        passes to the receiver.
        """
        ffi_type = lower_type(type_kind)
        if ffi_type == FFIType.BUFFER:
            return allocator.from_bytes(self.encode(type_kind, value))
        if isinstance(type_kind, ScalarType):
            _check_scalar(type_kind.scalar, value)
            return int(value) if type_kind.scalar == ScalarKind.BOOLEAN else value
        # Timestamps are i64 nanoseconds; durations and handles are u64.
        _check_scalar(ScalarKind.INT64 if isinstance(type_kind, TimestampType) else ScalarKind.UINT64, value)
        return value

    def lift(self, type_kind: TypeKind, ffi_value: Any, allocator: BufferAllocator) -> Any:
        """Convert an FFI value back to a Python value.

        A received buffer is owned by the caller of this method: it is freed
        exactly once, even when decoding fails.
        """
        if lower_type(type_kind) == FFIType.BUFFER:
            assert isinstance(ffi_value, ForeignBuffer)
            try:
                data = allocator.read(ffi_value)
            finally:
                allocator.free(ffi_value)
            return self.decode(type_kind, data)
        if isinstance(type_kind, ScalarType) and type_kind.scalar == ScalarKind.BOOLEAN:
            return _int_to_bool(ffi_value)
        return ffi_value

    def _record(self, name: str) -> Record:
        record = self._ci.get_record(name)
        if record is None:
            raise KeyError(f"Unknown record '{name}'")
        return record

    def _enum(self, name: str) -> Enum:
        enum = self._ci.get_enum(name)
        if enum is None:
            raise KeyError(f"Unknown enum '{name}'")
        return enum


class Reader:
    """A cursor over received bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, count: int) -> bytes:
        if count > self.remaining:
            raise BufferUnderflowError(f"Need {count} bytes at offset {self._offset}, only {self.remaining} left")
        chunk = self._data[self._offset : self._offset + count]
        self._offset += count
        return chunk

    def finish(self) -> None:
        if self.remaining:
            raise TrailingBytesError(f"{self.remaining} unread bytes left in buffer")


# ################
# Implementation
# ################

_SCALAR_FORMATS: dict[ScalarKind, str] = {
    ScalarKind.BOOLEAN: ">b",
    ScalarKind.INT8: ">b",
    ScalarKind.INT16: ">h",
    ScalarKind.INT32: ">i",
    ScalarKind.INT64: ">q",
    ScalarKind.UINT8: ">B",
    ScalarKind.UINT16: ">H",
    ScalarKind.UINT32: ">I",
    ScalarKind.UINT64: ">Q",
    ScalarKind.FLOAT32: ">f",
    ScalarKind.FLOAT64: ">d",
}

_MAX_LENGTH = 2**31 - 1
_FLOAT_LIMITS = {
    ScalarKind.FLOAT32: 3.4028234663852886e38,
    ScalarKind.FLOAT64: sys.float_info.max,
}


def _check_scalar(kind: ScalarKind, value: Any) -> None:
    if kind == ScalarKind.BOOLEAN:
        if not isinstance(value, bool):
            raise ValueError(f"Expected a bool, got {value!r}")
    elif kind.is_integer:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Expected an int for {kind.value}, got {value!r}")
        low, high = kind.int_range
        if not low <= value <= high:
            raise ValueError(f"{value} is out of range for {kind.value} ({low}..{high})")
    elif not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValueError(f"Expected a float for {kind.value}, got {value!r}")
    elif abs(value) > _FLOAT_LIMITS[kind] and value not in (math.inf, -math.inf):
        raise ValueError(f"{value} is out of range for {kind.value}")


def _pack_scalar(kind: ScalarKind, value: Any) -> bytes:
    _check_scalar(kind, value)
    if kind == ScalarKind.BOOLEAN:
        value = int(value)
    return struct.pack(_SCALAR_FORMATS[kind], value)


def _unpack_scalar(kind: ScalarKind, reader: Reader) -> Any:
    fmt = _SCALAR_FORMATS[kind]
    (value,) = struct.unpack(fmt, reader.take(struct.calcsize(fmt)))
    if kind == ScalarKind.BOOLEAN:
        return _int_to_bool(value)
    return value


def _int_to_bool(value: int) -> bool:
    if value not in (0, 1):
        raise ValueError(f"Unexpected byte {value} for boolean")
    return value == 1


def _pack_length(length: int) -> bytes:
    if length > _MAX_LENGTH:
        raise ValueError(f"Length {length} does not fit in an i32")
    return struct.pack(">i", length)


def _read_length(reader: Reader) -> int:
    length = _unpack_scalar(ScalarKind.INT32, reader)
    if length < 0:
        raise ValueError(f"Negative length {length} in buffer")
    return length


def _write_sized(data: bytes, out: bytearray) -> None:
    out += _pack_length(len(data))
    out += data
