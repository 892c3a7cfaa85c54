# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""The contract between the interface pipeline and binding renderers.

A renderer receives the validated Component Interface, its FFI signatures and
the type oracle of its target language, and returns generated source files.
Template engines live outside this package; :class:`TypeTableRenderer` is the
one renderer shipped here and lists how each used type crosses the boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from udlgen.compiler.ffi import derive_signatures, lower_type
from udlgen.model.entities import ComponentInterface
from udlgen.model.ffi import FfiSignatureSet
from udlgen.oracle import TypeOracle, load_oracle

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class RenderInput:
    """Everything a renderer may consume."""

    interface: ComponentInterface
    signatures: FfiSignatureSet
    oracle: TypeOracle


class Renderer(Protocol):
    def render(self, render_input: RenderInput) -> dict[str, str]:
        """Return generated files as a mapping of file name to source text."""
        ...


def render_bindings(renderer: Renderer, ci: ComponentInterface, language: str) -> dict[str, str]:
    """Derive signatures, load the oracle for *language* and run *renderer*.

    Raises:
        MissingErrorTypeError: If signature derivation fails.
        OracleError: If no valid oracle exists for *language*.
    """
    render_input = RenderInput(interface=ci, signatures=derive_signatures(ci), oracle=load_oracle(language))
    files = renderer.render(render_input)
    logger.debug("Rendered %d file(s) for '%s' in %s", len(files), ci.namespace.name, language)
    return files


class TypeTableRenderer:
    """Renders a plain-text table of every helper type the bindings need.

    One line per type: canonical name, FFI representation, native type, and
    the lower and lift expressions applied to ``value``.
    """

    def render(self, render_input: RenderInput) -> dict[str, str]:
        oracle = render_input.oracle
        lines = [f"# {render_input.signatures.namespace} ({oracle.language})"]
        for type_kind in render_input.signatures.helper_types:
            lines.append(
                "\t".join(
                    [
                        type_kind.canonical_name,
                        lower_type(type_kind).value,
                        oracle.native_type(type_kind),
                        oracle.lower_expr(type_kind, "value"),
                        oracle.lift_expr(type_kind, "value"),
                    ]
                )
            )
        file_name = f"{render_input.interface.namespace.name}.{oracle.language}.types.txt"
        return {file_name: "\n".join(lines) + "\n"}
