# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer for .udl schema files."""

from udlgen.parser.lexer import Token, TokenType, tokenize

__all__ = [
    "tokenize",
    "Token",
    "TokenType",
]
