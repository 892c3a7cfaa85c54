# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for .udl interface definitions.

The scanner understands the WebIDL subset UDL uses: keywords, identifiers,
punctuation, double-quoted strings, decimal/hex integers and floats. Both
``//`` and ``/* */`` comments are discarded.
"""

import enum
from collections.abc import Callable
from dataclasses import dataclass

from udlgen.errors import SchemaSyntaxError

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """Kinds of token emitted by :func:`tokenize`."""

    # Keywords
    NAMESPACE = "namespace"
    ENUM = "enum"
    DICTIONARY = "dictionary"
    INTERFACE = "interface"
    CALLBACK = "callback"
    TYPEDEF = "typedef"
    CONSTRUCTOR = "constructor"
    STATIC = "static"
    REQUIRED = "required"
    OPTIONAL = "optional"
    VOID = "void"
    SEQUENCE = "sequence"
    RECORD = "record"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LANGLE = "<"
    RANGLE = ">"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    SEMICOLON = ";"
    EQUALS = "="
    QUESTION = "?"

    # Literals and names
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    IDENTIFIER = "IDENTIFIER"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """One token of UDL source.

    Attributes:
        type: Token kind.
        value: Source text of the token; for STRING tokens, the unescaped contents.
        line: 1-based line of the first character.
        column: 1-based column of the first character.
    """

    type: TokenType
    value: str
    line: int
    column: int


def tokenize(source: str) -> list[Token]:
    """Split UDL source text into tokens.

    Args:
        source: Complete contents of a .udl file.

    Returns:
        The tokens in source order, terminated by exactly one EOF token.

    Raises:
        SchemaSyntaxError: For a character that starts no token, an
            unterminated string or block comment, or a malformed literal.
    """
    return _Lexer(source).run()


# ################
# Implementation
# ################

_KEYWORDS = {t.value: t for t in TokenType if t.value.islower()}
_PUNCTUATION = {t.value: t for t in TokenType if len(t.value) == 1}
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class _Lexer:
    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: list[Token] = []

    def run(self) -> list[Token]:
        self._skip_trivia()
        while not self._at_end():
            self._scan_token()
            self._skip_trivia()
        self._tokens.append(Token(TokenType.EOF, "", self._line, self._column))
        return self._tokens

    # -------- cursor --------

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _char(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._source[index] if index < len(self._source) else ""

    def _bump(self, count: int = 1) -> None:
        for _ in range(count):
            if self._source[self._pos] == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
            self._pos += 1

    def _take_while(self, predicate: Callable[[str], bool]) -> str:
        start = self._pos
        while not self._at_end() and predicate(self._char()):
            self._bump()
        return self._source[start : self._pos]

    def _emit(self, token_type: TokenType, start: int, line: int, column: int) -> None:
        self._tokens.append(Token(token_type, self._source[start : self._pos], line, column))

    # -------- trivia --------

    def _skip_trivia(self) -> None:
        while not self._at_end():
            pair = self._char() + self._char(1)
            if self._char().isspace():
                self._bump()
            elif pair == "//":
                self._take_while(lambda ch: ch != "\n")
            elif pair == "/*":
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        line, column = self._line, self._column
        self._bump(2)
        while not self._at_end():
            if self._char() == "*" and self._char(1) == "/":
                self._bump(2)
                return
            self._bump()
        raise SchemaSyntaxError("Unterminated block comment", line, column)

    # -------- tokens --------

    def _scan_token(self) -> None:
        ch = self._char()
        line, column = self._line, self._column
        if ch in _PUNCTUATION:
            self._bump()
            self._tokens.append(Token(_PUNCTUATION[ch], ch, line, column))
        elif ch == '"':
            self._scan_string(line, column)
        elif ch.isdigit() or (ch == "-" and self._char(1).isdigit()):
            self._scan_number(line, column)
        elif ch.isalpha() or ch == "_":
            start = self._pos
            word = self._take_while(_is_name_char)
            self._emit(_KEYWORDS.get(word, TokenType.IDENTIFIER), start, line, column)
        else:
            raise SchemaSyntaxError(f"Unexpected character: {ch!r}", line, column)

    def _scan_string(self, line: int, column: int) -> None:
        self._bump()
        chars: list[str] = []
        while True:
            ch = self._char()
            if ch in ("", "\n"):
                raise SchemaSyntaxError("Unterminated string literal", line, column)
            if ch == '"':
                self._bump()
                break
            if ch == "\\":
                self._bump()
                escaped = self._char()
                if escaped == "":
                    raise SchemaSyntaxError("Unterminated string literal", line, column)
                if escaped not in _ESCAPES:
                    raise SchemaSyntaxError(f"Invalid escape sequence: '\\{escaped}'", self._line, self._column)
                chars.append(_ESCAPES[escaped])
            else:
                chars.append(ch)
            self._bump()
        self._tokens.append(Token(TokenType.STRING, "".join(chars), line, column))

    def _scan_number(self, line: int, column: int) -> None:
        """Integers may be negative or hex (``0x1F``); floats need digits on both sides of the point."""
        start = self._pos
        if self._char() == "-":
            self._bump()
        if self._char() == "0" and self._char(1) in ("x", "X"):
            self._bump(2)
            if not self._take_while(lambda ch: ch in _HEX_DIGITS):
                raise SchemaSyntaxError("Hex literal has no digits", line, column)
            self._emit(TokenType.INTEGER, start, line, column)
            return
        self._take_while(str.isdigit)
        if self._char() == "." and self._char(1).isdigit():
            self._bump()
            self._take_while(str.isdigit)
            self._emit(TokenType.FLOAT, start, line, column)
        else:
            self._emit(TokenType.INTEGER, start, line, column)
