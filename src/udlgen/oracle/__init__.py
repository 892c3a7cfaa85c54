# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Per-language type oracles consumed by binding renderers."""

from udlgen.oracle.tables import (
    OracleEntry,
    OracleError,
    OracleTable,
    TypeOracle,
    available_languages,
    load_oracle,
    load_oracle_file,
)

__all__ = [
    "OracleEntry",
    "OracleError",
    "OracleTable",
    "TypeOracle",
    "available_languages",
    "load_oracle",
    "load_oracle_file",
]
