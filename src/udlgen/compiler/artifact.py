# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of compiled Component Interface artifacts.

Artifacts are stored as compact JSON files for portability and human-readability.
The format is versioned so future schema changes can be detected. The
serialized form is also the input of :meth:`ComponentInterface.checksum`, so
it must not depend on anything but the interface itself.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from udlgen.model.entities import (
    Argument,
    CallbackInterface,
    ComponentInterface,
    Constructor,
    Enum,
    Field,
    Function,
    Method,
    Namespace,
    Object,
    Record,
    Variant,
)
from udlgen.model.syntax import LiteralValue
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

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"
ARTIFACT_SUFFIX = ".udl.json"


def serialize(ci: ComponentInterface) -> str:
    """Serialize a ComponentInterface to a compact JSON string."""
    return json.dumps(_interface_to_dict(ci), separators=(",", ":"))


def deserialize(data: str) -> ComponentInterface:
    """Deserialize a ComponentInterface from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`ComponentInterface` model.

    Raises:
        ValueError: If the artifact format version is not recognised.
    """
    obj = json.loads(data)
    version = obj.get("v") if isinstance(obj, dict) else None
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")
    return _interface_from_dict(obj)


def write_artifact(ci: ComponentInterface, path: Path) -> None:
    """Write a compiled artifact to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(ci), encoding="utf-8")


def read_artifact(path: Path) -> ComponentInterface:
    """Read and deserialize a compiled artifact from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _interface_to_dict(ci: ComponentInterface) -> dict[str, Any]:
    return {
        "v": ARTIFACT_FORMAT_VERSION,
        "namespace": _namespace_to_dict(ci.namespace),
        "enums": [_enum_to_dict(e) for e in ci.enums],
        "records": [_record_to_dict(r) for r in ci.records],
        "objects": [_object_to_dict(o) for o in ci.objects],
        "callbacks": [_callback_to_dict(c) for c in ci.callback_interfaces],
    }


def _interface_from_dict(obj: dict[str, Any]) -> ComponentInterface:
    return ComponentInterface(
        namespace=_namespace_from_dict(obj["namespace"]),
        enums=tuple(_enum_from_dict(e) for e in obj.get("enums", [])),
        records=tuple(_record_from_dict(r) for r in obj.get("records", [])),
        objects=tuple(_object_from_dict(o) for o in obj.get("objects", [])),
        callback_interfaces=tuple(_callback_from_dict(c) for c in obj.get("callbacks", [])),
    )


def _namespace_to_dict(namespace: Namespace) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": namespace.name,
        "functions": [_function_to_dict(f) for f in namespace.functions],
    }
    if namespace.error is not None:
        d["error"] = namespace.error
    return d


def _namespace_from_dict(obj: dict[str, Any]) -> Namespace:
    return Namespace(
        name=obj["name"],
        functions=tuple(_function_from_dict(f) for f in obj.get("functions", [])),
        error=obj.get("error"),
    )


def _enum_to_dict(enum: Enum) -> dict[str, Any]:
    return {
        "name": enum.name,
        "variants": [_variant_to_dict(v) for v in enum.variants],
        "error": enum.is_error,
    }


def _enum_from_dict(obj: dict[str, Any]) -> Enum:
    return Enum(
        name=obj["name"],
        variants=tuple(_variant_from_dict(v) for v in obj.get("variants", [])),
        is_error=obj.get("error", False),
    )


def _variant_to_dict(variant: Variant) -> dict[str, Any]:
    d: dict[str, Any] = {"name": variant.name}
    if variant.fields:
        d["fields"] = [_field_to_dict(f) for f in variant.fields]
    return d


def _variant_from_dict(obj: dict[str, Any]) -> Variant:
    return Variant(name=obj["name"], fields=tuple(_field_from_dict(f) for f in obj.get("fields", [])))


def _record_to_dict(record: Record) -> dict[str, Any]:
    return {"name": record.name, "fields": [_field_to_dict(f) for f in record.fields]}


def _record_from_dict(obj: dict[str, Any]) -> Record:
    return Record(name=obj["name"], fields=tuple(_field_from_dict(f) for f in obj.get("fields", [])))


def _field_to_dict(f: Field) -> dict[str, Any]:
    d: dict[str, Any] = {"name": f.name, "type": _type_to_dict(f.type)}
    if f.default is not None:
        d["default"] = _literal_to_dict(f.default)
    if f.required:
        d["required"] = True
    return d


def _field_from_dict(obj: dict[str, Any]) -> Field:
    default = obj.get("default")
    return Field(
        name=obj["name"],
        type=_type_from_dict(obj["type"]),
        default=None if default is None else _literal_from_dict(default),
        required=obj.get("required", False),
    )


def _argument_to_dict(arg: Argument) -> dict[str, Any]:
    d: dict[str, Any] = {"name": arg.name, "type": _type_to_dict(arg.type)}
    if arg.default is not None:
        d["default"] = _literal_to_dict(arg.default)
    if arg.by_ref:
        d["by_ref"] = True
    return d


def _argument_from_dict(obj: dict[str, Any]) -> Argument:
    default = obj.get("default")
    return Argument(
        name=obj["name"],
        type=_type_from_dict(obj["type"]),
        default=None if default is None else _literal_from_dict(default),
        by_ref=obj.get("by_ref", False),
    )


def _callable_common(
    arguments: tuple[Argument, ...],
    return_type: TypeKind | None,
    throws: str | None,
    fallible: bool,
) -> dict[str, Any]:
    d: dict[str, Any] = {"args": [_argument_to_dict(a) for a in arguments]}
    if return_type is not None:
        d["ret"] = _type_to_dict(return_type)
    if throws is not None:
        d["throws"] = throws
    if fallible:
        d["fallible"] = True
    return d


def _function_to_dict(func: Function) -> dict[str, Any]:
    return {"name": func.name, **_callable_common(func.arguments, func.return_type, func.throws, func.fallible)}


def _function_from_dict(obj: dict[str, Any]) -> Function:
    return Function(
        name=obj["name"],
        arguments=tuple(_argument_from_dict(a) for a in obj.get("args", [])),
        return_type=_optional_type_from_dict(obj.get("ret")),
        throws=obj.get("throws"),
        fallible=obj.get("fallible", False),
    )


def _constructor_to_dict(cons: Constructor) -> dict[str, Any]:
    return {"name": cons.name, **_callable_common(cons.arguments, None, cons.throws, cons.fallible)}


def _constructor_from_dict(obj: dict[str, Any]) -> Constructor:
    return Constructor(
        name=obj["name"],
        arguments=tuple(_argument_from_dict(a) for a in obj.get("args", [])),
        throws=obj.get("throws"),
        fallible=obj.get("fallible", False),
    )


def _method_to_dict(meth: Method) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": meth.name,
        **_callable_common(meth.arguments, meth.return_type, meth.throws, meth.fallible),
    }
    if meth.is_static:
        d["static"] = True
    if meth.exclusive:
        d["exclusive"] = True
    return d


def _method_from_dict(obj: dict[str, Any], owner: str) -> Method:
    return Method(
        name=obj["name"],
        object_name=owner,
        arguments=tuple(_argument_from_dict(a) for a in obj.get("args", [])),
        return_type=_optional_type_from_dict(obj.get("ret")),
        throws=obj.get("throws"),
        fallible=obj.get("fallible", False),
        is_static=obj.get("static", False),
        exclusive=obj.get("exclusive", False),
    )


def _object_to_dict(obj: Object) -> dict[str, Any]:
    return {
        "name": obj.name,
        "constructors": [_constructor_to_dict(c) for c in obj.constructors],
        "methods": [_method_to_dict(m) for m in obj.methods],
        "threadsafe": obj.threadsafe,
    }


def _object_from_dict(obj: dict[str, Any]) -> Object:
    name = obj["name"]
    return Object(
        name=name,
        constructors=tuple(_constructor_from_dict(c) for c in obj.get("constructors", [])),
        methods=tuple(_method_from_dict(m, name) for m in obj.get("methods", [])),
        threadsafe=obj.get("threadsafe", False),
    )


def _callback_to_dict(cbi: CallbackInterface) -> dict[str, Any]:
    return {"name": cbi.name, "methods": [_method_to_dict(m) for m in cbi.methods]}


def _callback_from_dict(obj: dict[str, Any]) -> CallbackInterface:
    name = obj["name"]
    return CallbackInterface(name=name, methods=tuple(_method_from_dict(m, name) for m in obj.get("methods", [])))


def _literal_to_dict(literal: LiteralValue) -> dict[str, Any]:
    d: dict[str, Any] = {"k": literal.kind}
    if literal.value is not None:
        d["v"] = literal.value
    return d


def _literal_from_dict(obj: dict[str, Any]) -> LiteralValue:
    return LiteralValue(kind=obj["k"], value=obj.get("v"))


def _type_to_dict(type_kind: TypeKind) -> dict[str, Any]:
    """Encode a TypeKind as a tagged dict with compact keys."""
    if isinstance(type_kind, ScalarType):
        return {"k": "scalar", "t": type_kind.scalar.value}
    if isinstance(type_kind, StringType):
        return {"k": "string"}
    if isinstance(type_kind, BytesType):
        return {"k": "bytes"}
    if isinstance(type_kind, TimestampType):
        return {"k": "timestamp"}
    if isinstance(type_kind, DurationType):
        return {"k": "duration"}
    if isinstance(type_kind, OptionalType):
        return {"k": "optional", "i": _type_to_dict(type_kind.inner)}
    if isinstance(type_kind, SequenceType):
        return {"k": "sequence", "i": _type_to_dict(type_kind.inner)}
    if isinstance(type_kind, MapType):
        return {"k": "map", "key": _type_to_dict(type_kind.key), "val": _type_to_dict(type_kind.value)}
    # The remaining kinds are all references by name.
    assert isinstance(type_kind, (EnumType, RecordType, ObjectType, CallbackInterfaceType, ErrorType))
    return {"k": type_kind.kind, "n": type_kind.name}


def _type_from_dict(obj: dict[str, Any]) -> TypeKind:
    """Decode a TypeKind from a tagged dict."""
    kind = obj["k"]
    if kind == "scalar":
        return ScalarType(scalar=ScalarKind(obj["t"]))
    if kind == "string":
        return StringType()
    if kind == "bytes":
        return BytesType()
    if kind == "timestamp":
        return TimestampType()
    if kind == "duration":
        return DurationType()
    if kind == "optional":
        return OptionalType(inner=_type_from_dict(obj["i"]))
    if kind == "sequence":
        return SequenceType(inner=_type_from_dict(obj["i"]))
    if kind == "map":
        return MapType(key=_type_from_dict(obj["key"]), value=_type_from_dict(obj["val"]))
    if kind == "enum":
        return EnumType(name=obj["n"])
    if kind == "record":
        return RecordType(name=obj["n"])
    if kind == "object":
        return ObjectType(name=obj["n"])
    if kind == "callback_interface":
        return CallbackInterfaceType(name=obj["n"])
    if kind == "error":
        return ErrorType(name=obj["n"])
    raise ValueError(f"Unknown type kind: {kind!r}")


def _optional_type_from_dict(obj: dict[str, Any] | None) -> TypeKind | None:
    return None if obj is None else _type_from_dict(obj)
