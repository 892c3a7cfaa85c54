# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Per-language type oracle tables.

A type oracle maps every semantic type kind to the native type that
represents it in a target language and to the expressions that lower a value
to its wire form and lift it back. Tables are pure data, shipped as YAML
files next to this module and validated with pydantic on load.

Templates are :meth:`str.format` strings and may use these placeholders:

- ``{name}``: the declared name of an enum, record, object, callback
  interface or error.
- ``{canonical}``: the canonical name of the type kind (``Sequenceu32``).
- ``{inner}``: the native type of an optional or sequence element.
- ``{key}`` / ``{value}``: the native key and value types of a map.
- ``{var}``: the expression being converted (``lower`` and ``lift`` only).
"""

from __future__ import annotations

import logging
import string
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from udlgen.model.types import (
    TYPE_KIND_TAGS,
    CallbackInterfaceType,
    EnumType,
    ErrorType,
    MapType,
    ObjectType,
    OptionalType,
    RecordType,
    ScalarKind,
    ScalarType,
    SequenceType,
    TypeKind,
)

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PLACEHOLDERS = frozenset({"name", "canonical", "inner", "key", "value", "var"})


class OracleError(Exception):
    """Raised when a type oracle table is missing or invalid."""


class OracleEntry(BaseModel):
    """Native type and conversion templates for one type kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str
    lower: str
    lift: str

    @field_validator("type", "lower", "lift")
    @classmethod
    def validate_placeholders(cls, v: str) -> str:
        """Only the documented placeholders may appear in a template."""
        for _, field_name, _, _ in string.Formatter().parse(v):
            if field_name is not None and field_name not in PLACEHOLDERS:
                raise ValueError(f"Unknown placeholder '{{{field_name}}}' in template '{v}'")
        return v


class OracleTable(BaseModel):
    """The complete mapping for one target language.

    ``scalars`` is keyed by :class:`ScalarKind` value; ``kinds`` by every other
    TypeKind tag. Both must be complete.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    language: str
    scalars: dict[str, OracleEntry]
    kinds: dict[str, OracleEntry]

    @model_validator(mode="after")
    def validate_complete(self) -> OracleTable:
        """Every scalar kind and every non-scalar type kind tag must have an entry."""
        missing_scalars = sorted({k.value for k in ScalarKind} - set(self.scalars))
        if missing_scalars:
            raise ValueError(f"Missing scalar entries: {', '.join(missing_scalars)}")
        expected_kinds = set(TYPE_KIND_TAGS) - {"scalar"}
        missing_kinds = sorted(expected_kinds - set(self.kinds))
        if missing_kinds:
            raise ValueError(f"Missing type kind entries: {', '.join(missing_kinds)}")
        unknown = sorted(set(self.kinds) - expected_kinds) + sorted(set(self.scalars) - {k.value for k in ScalarKind})
        if unknown:
            raise ValueError(f"Unknown entries: {', '.join(unknown)}")
        return self


class TypeOracle:
    """Expands an :class:`OracleTable` for concrete type kinds."""

    def __init__(self, table: OracleTable) -> None:
        self._table = table

    @property
    def language(self) -> str:
        return self._table.language

    def native_type(self, type_kind: TypeKind) -> str:
        """Return the native type spelling of *type_kind*."""
        return self._entry(type_kind).type.format(**self._placeholders(type_kind, ""))

    def lower_expr(self, type_kind: TypeKind, var: str) -> str:
        """Return an expression lowering *var* of *type_kind* to its FFI form."""
        return self._entry(type_kind).lower.format(**self._placeholders(type_kind, var))

    def lift_expr(self, type_kind: TypeKind, var: str) -> str:
        """Return an expression lifting *var* from its FFI form to *type_kind*."""
        return self._entry(type_kind).lift.format(**self._placeholders(type_kind, var))

    def _entry(self, type_kind: TypeKind) -> OracleEntry:
        if isinstance(type_kind, ScalarType):
            return self._table.scalars[type_kind.scalar.value]
        return self._table.kinds[type_kind.kind]

    def _placeholders(self, type_kind: TypeKind, var: str) -> dict[str, str]:
        values = {
            "name": "",
            "canonical": type_kind.canonical_name,
            "inner": "",
            "key": "",
            "value": "",
            "var": var,
        }
        if isinstance(type_kind, (EnumType, RecordType, ObjectType, CallbackInterfaceType, ErrorType)):
            values["name"] = type_kind.name
        elif isinstance(type_kind, (OptionalType, SequenceType)):
            values["inner"] = self.native_type(type_kind.inner)
        elif isinstance(type_kind, MapType):
            values["key"] = self.native_type(type_kind.key)
            values["value"] = self.native_type(type_kind.value)
        return values


def available_languages() -> list[str]:
    """Return the names of the oracle tables shipped with the package."""
    return sorted(p.stem for p in _DATA_DIR.glob("*.yaml"))


def load_oracle(language: str) -> TypeOracle:
    """Load the shipped oracle table for *language*.

    Raises:
        OracleError: If no table exists for *language* or it is invalid.
    """
    path = _DATA_DIR / f"{language}.yaml"
    if not path.is_file():
        available = ", ".join(available_languages())
        raise OracleError(f"No type oracle for language '{language}' (available: {available})")
    return load_oracle_file(path)


def load_oracle_file(path: Path) -> TypeOracle:
    """Load and validate an oracle table from a YAML file.

    Raises:
        OracleError: If the file cannot be read, is not valid YAML, or does
            not describe a complete table.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OracleError(f"Cannot read type oracle file: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise OracleError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise OracleError(f"{path}: type oracle must be a YAML mapping")
    try:
        table = OracleTable.model_validate(data)
    except ValidationError as exc:
        raise OracleError(f"{path}: invalid type oracle table:\n{exc}") from exc
    logger.debug("Loaded type oracle '%s' from '%s'", table.language, path)
    return TypeOracle(table)


# ################
# Implementation
# ################

_DATA_DIR = Path(__file__).parent / "data"
