# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""The Component Interface: the validated, language-neutral interface model."""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, ConfigDict

from udlgen.model.syntax import LiteralValue
from udlgen.model.types import (
    CallbackInterfaceType,
    EnumType,
    ErrorType,
    ObjectType,
    RecordType,
    TypeKind,
    walk,
)

# ###############
# Public Interface
# ###############


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Field(_Frozen):
    """A named, typed member of a record or enum variant."""

    name: str
    type: TypeKind
    default: LiteralValue | None = None
    required: bool = False


class Argument(_Frozen):
    """A named, typed argument of a callable."""

    name: str
    type: TypeKind
    default: LiteralValue | None = None
    by_ref: bool = False


class Variant(_Frozen):
    """One variant of an enum. Plain enum variants have no fields."""

    name: str
    fields: tuple[Field, ...] = ()

    @property
    def has_fields(self) -> bool:
        return len(self.fields) > 0


class Enum(_Frozen):
    """An enumeration or tagged union. ``is_error`` marks error types."""

    name: str
    variants: tuple[Variant, ...] = ()
    is_error: bool = False

    @property
    def has_associated_data(self) -> bool:
        return any(v.has_fields for v in self.variants)

    @property
    def type_kind(self) -> TypeKind:
        return ErrorType(name=self.name) if self.is_error else EnumType(name=self.name)

    def discriminant(self, variant_name: str) -> int:
        """Return the 1-based wire discriminant of *variant_name*."""
        for index, variant in enumerate(self.variants):
            if variant.name == variant_name:
                return index + 1
        raise KeyError(f"Enum '{self.name}' has no variant '{variant_name}'")


class Record(_Frozen):
    name: str
    fields: tuple[Field, ...] = ()

    @property
    def type_kind(self) -> TypeKind:
        return RecordType(name=self.name)


class Function(_Frozen):
    """A free function declared in the namespace block.

    Attributes:
        throws: Name of the declared error enum, if any.
        fallible: Whether the callable may fail with an ``Err`` status. Implied
            by ``throws``; set explicitly with ``[Fallible]``.
    """

    name: str
    arguments: tuple[Argument, ...] = ()
    return_type: TypeKind | None = None
    throws: str | None = None
    fallible: bool = False


class Constructor(_Frozen):
    """A named constructor of an object. The primary constructor is ``new``."""

    name: str = "new"
    arguments: tuple[Argument, ...] = ()
    throws: str | None = None
    fallible: bool = False

    @property
    def is_primary(self) -> bool:
        return self.name == "new"


class Method(_Frozen):
    """An instance or static method of an object or callback interface.

    ``exclusive`` marks methods that need exclusive access to the instance;
    the native implementation provides the locking.
    """

    name: str
    object_name: str
    arguments: tuple[Argument, ...] = ()
    return_type: TypeKind | None = None
    throws: str | None = None
    fallible: bool = False
    is_static: bool = False
    exclusive: bool = False


class Object(_Frozen):
    """An opaque reference type, passed across the boundary by handle only."""

    name: str
    constructors: tuple[Constructor, ...] = ()
    methods: tuple[Method, ...] = ()
    threadsafe: bool = False

    @property
    def type_kind(self) -> TypeKind:
        return ObjectType(name=self.name)

    @property
    def primary_constructor(self) -> Constructor | None:
        for cons in self.constructors:
            if cons.is_primary:
                return cons
        return None


class CallbackInterface(_Frozen):
    """An interface implemented on the foreign side and invoked by native code."""

    name: str
    methods: tuple[Method, ...] = ()

    @property
    def type_kind(self) -> TypeKind:
        return CallbackInterfaceType(name=self.name)


class Namespace(_Frozen):
    """The top-level container: free functions plus a namespace-wide error type."""

    name: str
    functions: tuple[Function, ...] = ()
    error: str | None = None


Callable = Function | Constructor | Method


class ComponentInterface(_Frozen):
    """The canonical model of one schema compilation unit.

    Declarations keep their source order; that order determines enum
    discriminants and record field order on the wire.
    """

    namespace: Namespace
    enums: tuple[Enum, ...] = ()
    records: tuple[Record, ...] = ()
    objects: tuple[Object, ...] = ()
    callback_interfaces: tuple[CallbackInterface, ...] = ()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_enum(self, name: str) -> Enum | None:
        return next((e for e in self.enums if e.name == name), None)

    def get_record(self, name: str) -> Record | None:
        return next((r for r in self.records if r.name == name), None)

    def get_object(self, name: str) -> Object | None:
        return next((o for o in self.objects if o.name == name), None)

    def get_callback_interface(self, name: str) -> CallbackInterface | None:
        return next((c for c in self.callback_interfaces if c.name == name), None)

    def get_function(self, name: str) -> Function | None:
        return next((f for f in self.namespace.functions if f.name == name), None)

    @property
    def error_enums(self) -> list[Enum]:
        return [e for e in self.enums if e.is_error]

    # ------------------------------------------------------------------
    # Type universe
    # ------------------------------------------------------------------

    def iter_types(self) -> list[TypeKind]:
        """Return every type kind used by the interface, deduplicated.

        Only types that actually occur are returned: a schema without any
        integer type yields no integer scalars here.  The result is sorted by
        canonical name so it is independent of declaration order.
        """
        found: dict[str, TypeKind] = {}

        def add(type_kind: TypeKind | None) -> None:
            if type_kind is None:
                return
            for t in walk(type_kind):
                found.setdefault(t.canonical_name, t)

        for enum in self.enums:
            add(enum.type_kind)
            for variant in enum.variants:
                for f in variant.fields:
                    add(f.type)
        for record in self.records:
            add(record.type_kind)
            for f in record.fields:
                add(f.type)
        for obj in self.objects:
            add(obj.type_kind)
            for cons in obj.constructors:
                for arg in cons.arguments:
                    add(arg.type)
            for meth in obj.methods:
                add(meth.return_type)
                for arg in meth.arguments:
                    add(arg.type)
        for cbi in self.callback_interfaces:
            add(cbi.type_kind)
            for meth in cbi.methods:
                add(meth.return_type)
                for arg in meth.arguments:
                    add(arg.type)
        for func in self.namespace.functions:
            add(func.return_type)
            for arg in func.arguments:
                add(arg.type)
        return [found[name] for name in sorted(found)]

    # ------------------------------------------------------------------
    # Symbol naming
    # ------------------------------------------------------------------

    def checksum(self) -> int:
        """Return a stable 64-bit checksum of the interface definition."""
        # Local import: the artifact module depends on this one.
        from udlgen.compiler.artifact import serialize

        digest = hashlib.sha256(serialize(self).encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big")

    def ffi_namespace(self) -> str:
        """Prefix shared by every exported FFI symbol of this interface."""
        return f"{self.namespace.name}_{self.checksum() & 0xFFFF:x}"

