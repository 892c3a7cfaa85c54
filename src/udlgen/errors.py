# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Build-time error taxonomy for the interface pipeline.

Every stage of the pipeline (parse, resolve, build, derive) raises a
subclass of :class:`InterfaceError` and the build stops at the first one.
"""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class InterfaceError(Exception):
    """Base class for all errors raised while building a Component Interface.

    Attributes:
        message: Human-readable description of the problem.
        name: Name of the offending declaration, if known.
        line: 1-based line number of the error, if known.
        column: 1-based column number of the error, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(_format(message, line, column))
        self.message = message
        self.name = name
        self.line = line
        self.column = column


class SchemaSyntaxError(InterfaceError):
    """Raised for malformed schema text. Always carries a source position."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message, line=line, column=column)


class UnknownTypeError(InterfaceError):
    """Raised when a type name is referenced but never declared."""


class CyclicTypeError(InterfaceError):
    """Raised for typedef cycles and for value cycles between records and enums."""


class InvalidNestingError(InterfaceError):
    """Raised when a handle-only type is nested inside a record or enum variant field."""


class DuplicateDefinitionError(InterfaceError):
    """Raised when a name is declared more than once in the same scope."""


class InvalidDefaultError(InterfaceError):
    """Raised when a literal default is not representable in its declared type."""


class NotAnErrorTypeError(InterfaceError):
    """Raised when ``[Throws=X]`` names a type that is not an error enum."""


class MissingErrorTypeError(InterfaceError):
    """Raised when a fallible callable has no error type to report failures with."""


class MissingNamespaceError(InterfaceError):
    """Raised when a schema declares no namespace."""


# ################
# Implementation
# ################


def _format(message: str, line: int | None, column: int | None) -> str:
    if line is None:
        return message
    if column is None:
        return f"Line {line}: {message}"
    return f"Line {line}, column {column}: {message}"
