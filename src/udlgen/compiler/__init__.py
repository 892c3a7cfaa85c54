# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for .udl files: parsing, resolution, model building and FFI derivation."""

from udlgen.compiler.artifact import ARTIFACT_SUFFIX, deserialize, read_artifact, serialize, write_artifact
from udlgen.compiler.build import CompilerError, compile_file, compile_files, compile_source
from udlgen.compiler.ffi import derive_callable, derive_signatures, lower_type
from udlgen.compiler.parser import parse
from udlgen.compiler.resolver import SymbolKind, SymbolTable, build_symbol_table, resolve
from udlgen.compiler.semantic_analysis import analyze

__all__ = [
    "parse",
    "build_symbol_table",
    "resolve",
    "SymbolKind",
    "SymbolTable",
    "analyze",
    "derive_signatures",
    "derive_callable",
    "lower_type",
    "serialize",
    "deserialize",
    "write_artifact",
    "read_artifact",
    "ARTIFACT_SUFFIX",
    "compile_source",
    "compile_file",
    "compile_files",
    "CompilerError",
]
