# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler workflow for .udl files.

``compile_source`` runs the full pipeline on schema text: parse, resolve,
build the Component Interface, and derive its FFI signatures (so every
build-time error surfaces here, not in a renderer).

``compile_file`` adds a CMake-style cache on top: an artifact is reused when
it already exists and is strictly newer than the corresponding source file.
An artifact that cannot be read back is discarded and the source recompiled.
"""

from __future__ import annotations

import logging
from pathlib import Path

from udlgen.compiler.artifact import ARTIFACT_SUFFIX, read_artifact, write_artifact
from udlgen.compiler.ffi import derive_signatures
from udlgen.compiler.parser import parse
from udlgen.compiler.resolver import resolve
from udlgen.compiler.semantic_analysis import analyze
from udlgen.errors import InterfaceError
from udlgen.model.entities import ComponentInterface
from udlgen.model.syntax import SchemaFile

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when compiling a file fails.

    Wraps I/O failures and the :class:`~udlgen.errors.InterfaceError` that
    stopped the pipeline; the original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


def compile_source(source: str) -> ComponentInterface:
    """Compile schema text into a validated Component Interface.

    Raises:
        InterfaceError: The first problem found by any pipeline stage.
    """
    schema = parse(source)
    logger.debug("Parsed %d top-level declarations", _count_declarations(schema))
    resolved = resolve(schema)
    ci = analyze(resolved)
    # Derivation is pure; running it here reports MissingErrorTypeError at build time.
    derive_signatures(ci)
    return ci


def compile_file(source_file: Path, build_dir: Path) -> ComponentInterface:
    """Compile one .udl file, reusing a cached artifact when it is up to date.

    The artifact is written to ``build_dir / <stem>.udl.json``.

    Raises:
        CompilerError: If the file cannot be read or fails to compile.
    """
    artifact = artifact_path(source_file, build_dir)
    if _is_up_to_date(source_file, artifact):
        try:
            ci = read_artifact(artifact)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable artifact '%s': %s", artifact, exc)
        else:
            logger.debug("Using cached artifact '%s'", artifact)
            return ci

    try:
        source_text = source_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise CompilerError(f"Cannot read source file '{source_file}': {exc}") from exc

    try:
        ci = compile_source(source_text)
    except InterfaceError as exc:
        raise CompilerError(f"Error in '{source_file}': {exc}") from exc

    write_artifact(ci, artifact)
    logger.info("Compiled '%s' -> '%s'", source_file, artifact)
    return ci


def compile_files(files: list[Path], build_dir: Path) -> dict[str, ComponentInterface]:
    """Compile several .udl files, stopping at the first failure.

    Returns:
        A mapping from each file's stem to its Component Interface.

    Raises:
        CompilerError: On the first file that fails, or when two files share
            a stem and would overwrite each other's artifact.
    """
    compiled: dict[str, ComponentInterface] = {}
    for f in files:
        key = f.stem
        if key in compiled:
            raise CompilerError(f"Two source files compile to the same artifact '{key}{ARTIFACT_SUFFIX}'")
        compiled[key] = compile_file(f, build_dir)
    return compiled


def artifact_path(source_file: Path, build_dir: Path) -> Path:
    """Return the artifact path for *source_file* under *build_dir*."""
    return build_dir / (source_file.stem + ARTIFACT_SUFFIX)


# ################
# Implementation
# ################


def _is_up_to_date(source_file: Path, artifact: Path) -> bool:
    """Return True if *artifact* exists and is strictly newer than *source_file*."""
    if not artifact.exists() or not source_file.exists():
        return False
    return artifact.stat().st_mtime > source_file.stat().st_mtime


def _count_declarations(schema: SchemaFile) -> int:
    return (
        len(schema.namespaces)
        + len(schema.enums)
        + len(schema.dictionaries)
        + len(schema.interfaces)
        + len(schema.callback_interfaces)
        + len(schema.typedefs)
    )
