# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""FFI signature derivation.

A pure, one-shot transform from a Component Interface to the set of symbols
the native scaffolding exports. Scalars cross the boundary by value, objects
and callback interfaces as u64 handles, and everything else as a serialized
buffer whose ownership moves with it.
"""

from __future__ import annotations

import logging

from udlgen.errors import MissingErrorTypeError
from udlgen.model.entities import Callable, ComponentInterface, Constructor, Method
from udlgen.model.ffi import CallbackMethodSignature, FFIArgument, FFIFunction, FFIFunctionKind, FfiSignatureSet, FFIType
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

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def lower_type(type_kind: TypeKind) -> FFIType:
    """Return the FFI representation of *type_kind*.

    Raises:
        TypeError: If *type_kind* is not a member of the closed TypeKind union.
    """
    if isinstance(type_kind, ScalarType):
        return _SCALAR_FFI_TYPES[type_kind.scalar]
    if isinstance(type_kind, TimestampType):
        return FFIType.INT64
    if isinstance(type_kind, DurationType):
        return FFIType.UINT64
    if isinstance(type_kind, (ObjectType, CallbackInterfaceType)):
        return FFIType.HANDLE
    if isinstance(
        type_kind,
        (StringType, BytesType, OptionalType, SequenceType, MapType, RecordType, EnumType, ErrorType),
    ):
        return FFIType.BUFFER
    raise TypeError(f"Unhandled type kind: {type_kind!r}")


def derive_signatures(ci: ComponentInterface) -> FfiSignatureSet:
    """Derive every exported symbol of *ci*.

    Raises:
        MissingErrorTypeError: If a fallible callable has neither its own
            ``[Throws]`` nor a namespace-wide error type.
    """
    prefix = ci.ffi_namespace()
    functions: list[FFIFunction] = []

    for func in ci.namespace.functions:
        functions.append(derive_callable(ci, func, symbol=f"{prefix}_{func.name}"))

    for obj in ci.objects:
        for cons in obj.constructors:
            functions.append(derive_callable(ci, cons, symbol=f"{prefix}_{obj.name}_{cons.name}"))
        for meth in obj.methods:
            receiver = None if meth.is_static else obj.name
            functions.append(derive_callable(ci, meth, symbol=f"{prefix}_{obj.name}_{meth.name}", receiver=receiver))
        functions.append(
            FFIFunction(
                name=f"ffi_{prefix}_{obj.name}_object_free",
                arguments=(FFIArgument(name="handle", type=FFIType.HANDLE),),
                kind="object_free",
            )
        )

    callback_methods: list[CallbackMethodSignature] = []
    for cbi in ci.callback_interfaces:
        functions.append(
            FFIFunction(
                name=f"ffi_{prefix}_{cbi.name}_init_callback",
                arguments=(FFIArgument(name="callback", type=FFIType.FOREIGN_CALLBACK),),
                kind="init_callback",
            )
        )
        for index, meth in enumerate(cbi.methods, start=1):
            callback_methods.append(
                CallbackMethodSignature(
                    interface_name=cbi.name,
                    method_name=meth.name,
                    index=index,
                    arguments=tuple(arg.type for arg in meth.arguments),
                    return_type=meth.return_type,
                    error_type=_error_type(ci, meth, meth.fallible, f"{cbi.name}.{meth.name}"),
                )
            )

    functions.extend(_buffer_functions(prefix))

    signatures = FfiSignatureSet(
        namespace=prefix,
        functions=tuple(functions),
        callback_methods=tuple(callback_methods),
        helper_types=tuple(ci.iter_types()),
    )
    logger.debug(
        "Derived %d FFI functions and %d callback methods for '%s'",
        len(signatures.functions),
        len(signatures.callback_methods),
        prefix,
    )
    return signatures


def derive_callable(
    ci: ComponentInterface,
    callable_: Callable,
    *,
    symbol: str,
    receiver: str | None = None,
    fallible: bool | None = None,
) -> FFIFunction:
    """Derive the exported signature of a single callable.

    Args:
        ci: The interface the callable belongs to; supplies the namespace error.
        callable_: A function, constructor or method.
        symbol: The exported symbol name.
        receiver: For instance methods, the owning object name. The receiver
            handle is passed as the first argument.
        fallible: Overrides the callable's own ``fallible`` flag.

    Raises:
        MissingErrorTypeError: If the callable can fail but no error type is
            available to describe the failure.
    """
    is_fallible = callable_.fallible if fallible is None else fallible
    error_type = _error_type(ci, callable_, is_fallible, symbol)

    arguments: list[FFIArgument] = []
    if receiver is not None:
        arguments.append(FFIArgument(name="ptr", type=FFIType.HANDLE))
    arguments.extend(FFIArgument(name=arg.name, type=lower_type(arg.type)) for arg in callable_.arguments)

    kind: FFIFunctionKind
    if isinstance(callable_, Constructor):
        return_type: FFIType | None = FFIType.HANDLE
        kind = "constructor"
    else:
        return_type = None if callable_.return_type is None else lower_type(callable_.return_type)
        if isinstance(callable_, Method):
            kind = "static_method" if receiver is None else "method"
        else:
            kind = "function"

    return FFIFunction(
        name=symbol,
        arguments=tuple(arguments),
        return_type=return_type,
        error_type=error_type,
        fallible=is_fallible or error_type is not None,
        kind=kind,
        exclusive=isinstance(callable_, Method) and callable_.exclusive,
    )


# ################
# Implementation
# ################

_SCALAR_FFI_TYPES: dict[ScalarKind, FFIType] = {
    ScalarKind.BOOLEAN: FFIType.INT8,
    ScalarKind.INT8: FFIType.INT8,
    ScalarKind.INT16: FFIType.INT16,
    ScalarKind.INT32: FFIType.INT32,
    ScalarKind.INT64: FFIType.INT64,
    ScalarKind.UINT8: FFIType.UINT8,
    ScalarKind.UINT16: FFIType.UINT16,
    ScalarKind.UINT32: FFIType.UINT32,
    ScalarKind.UINT64: FFIType.UINT64,
    ScalarKind.FLOAT32: FFIType.FLOAT32,
    ScalarKind.FLOAT64: FFIType.FLOAT64,
}


def _error_type(ci: ComponentInterface, callable_: Callable, fallible: bool, symbol: str) -> str | None:
    """Pick the error enum for a callable: its own ``[Throws]``, else the namespace error if fallible."""
    if callable_.throws is not None:
        return callable_.throws
    if not fallible:
        return None
    if ci.namespace.error is not None:
        return ci.namespace.error
    raise MissingErrorTypeError(
        f"'{symbol}' is fallible but declares no error type and namespace '{ci.namespace.name}'"
        " has no default; add [Throws=ErrorName]",
        name=callable_.name,
    )


def _buffer_functions(prefix: str) -> list[FFIFunction]:
    return [
        FFIFunction(
            name=f"ffi_{prefix}_buffer_alloc",
            arguments=(FFIArgument(name="size", type=FFIType.INT32),),
            return_type=FFIType.BUFFER,
            kind="buffer_alloc",
        ),
        FFIFunction(
            name=f"ffi_{prefix}_buffer_from_bytes",
            arguments=(FFIArgument(name="bytes", type=FFIType.FOREIGN_BYTES),),
            return_type=FFIType.BUFFER,
            kind="buffer_from_bytes",
        ),
        FFIFunction(
            name=f"ffi_{prefix}_buffer_free",
            arguments=(FFIArgument(name="buf", type=FFIType.BUFFER),),
            kind="buffer_free",
        ),
        FFIFunction(
            name=f"ffi_{prefix}_buffer_reserve",
            arguments=(
                FFIArgument(name="buf", type=FFIType.BUFFER),
                FFIArgument(name="additional", type=FFIType.INT32),
            ),
            return_type=FFIType.BUFFER,
            kind="buffer_reserve",
        ),
    ]
