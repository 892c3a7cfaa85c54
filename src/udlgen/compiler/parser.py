# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for .udl files.

Converts a token stream produced by the lexer into a raw SchemaFile tree.
No semantic checks happen here: undefined names and duplicates are accepted.
"""

from udlgen.errors import SchemaSyntaxError
from udlgen.model.syntax import (
    Attribute,
    LiteralValue,
    NamedExpr,
    NullableExpr,
    Position,
    PrimitiveExpr,
    RawArgument,
    RawCallbackInterface,
    RawDictionary,
    RawEnum,
    RawInterface,
    RawNamespace,
    RawOperation,
    RawTypedef,
    RecordExpr,
    SchemaFile,
    SequenceExpr,
    TypeExpr,
)
from udlgen.parser.lexer import Token, TokenType, tokenize

# ###############
# Public Interface
# ###############

PRIMITIVE_TYPE_NAMES: frozenset[str] = frozenset(
    {
        "boolean",
        "i8",
        "i16",
        "i32",
        "i64",
        "u8",
        "u16",
        "u32",
        "u64",
        "float",
        "double",
        "string",
        "DOMString",
        "bytes",
        "timestamp",
        "duration",
    }
)


def parse(source: str) -> SchemaFile:
    """Parse UDL source text into a raw SchemaFile tree.

    Args:
        source: The full text of a .udl file.

    Returns:
        A SchemaFile holding every declaration in source order.

    Raises:
        SchemaSyntaxError: If the source is lexically or syntactically invalid.
    """
    tokens = tokenize(source)
    return _Parser(tokens).parse()


# ################
# Implementation
# ################

# Keywords that may still be used where a name is expected (e.g. an argument
# called ``record`` or a method called ``optional``).
_KEYWORD_TYPES: frozenset[TokenType] = frozenset(
    {
        TokenType.NAMESPACE,
        TokenType.ENUM,
        TokenType.DICTIONARY,
        TokenType.INTERFACE,
        TokenType.CALLBACK,
        TokenType.TYPEDEF,
        TokenType.STATIC,
        TokenType.REQUIRED,
        TokenType.OPTIONAL,
        TokenType.SEQUENCE,
        TokenType.RECORD,
    }
)


class _Parser:
    """Recursive-descent parser for UDL token streams."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> SchemaFile:
        """Parse the full token stream and return a SchemaFile."""
        result = SchemaFile()
        while not self._at_end():
            self._parse_top_level(result)
        return result

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _peek_type(self, offset: int = 0) -> TokenType:
        """Return the token type *offset* tokens ahead of the current one."""
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index].type

    def _at_end(self) -> bool:
        """Return True if the current token is the EOF token."""
        return self._peek_type() == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises SchemaSyntaxError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = ", ".join(repr(t.value) for t in types)
            raise SchemaSyntaxError(
                f"Expected {expected}, got {_describe(tok)}",
                tok.line,
                tok.column,
            )
        return self._advance()

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types (without
        consuming).
        """
        return self._peek_type() in types

    def _expect_name_token(self) -> Token:
        """Consume the current token as a name.

        Accepts identifiers and non-structural keywords. Raises
        SchemaSyntaxError for structural tokens and EOF.
        """
        tok = self._current()
        if tok.type != TokenType.IDENTIFIER and tok.type not in _KEYWORD_TYPES:
            raise SchemaSyntaxError(
                f"Expected identifier, got {_describe(tok)}",
                tok.line,
                tok.column,
            )
        return self._advance()

    def _error(self, message: str) -> SchemaSyntaxError:
        tok = self._current()
        return SchemaSyntaxError(message, tok.line, tok.column)

    # ------------------------------------------------------------------
    # Top-level declarations
    # ------------------------------------------------------------------

    def _parse_top_level(self, result: SchemaFile) -> None:
        """Parse one top-level declaration and append it to the SchemaFile."""
        attributes = self._parse_attributes()
        tok = self._current()
        if tok.type == TokenType.NAMESPACE:
            result.namespaces.append(self._parse_namespace(attributes))
        elif tok.type == TokenType.ENUM:
            result.enums.append(self._parse_enum(attributes))
        elif tok.type == TokenType.DICTIONARY:
            result.dictionaries.append(self._parse_dictionary(attributes))
        elif tok.type == TokenType.INTERFACE:
            result.interfaces.append(self._parse_interface(attributes))
        elif tok.type == TokenType.CALLBACK:
            result.callback_interfaces.append(self._parse_callback_interface(attributes))
        elif tok.type == TokenType.TYPEDEF:
            if attributes:
                raise SchemaSyntaxError("Attributes are not allowed on typedefs", tok.line, tok.column)
            result.typedefs.append(self._parse_typedef())
        else:
            raise SchemaSyntaxError(
                f"Unexpected token {_describe(tok)} at top level",
                tok.line,
                tok.column,
            )

    def _parse_namespace(self, attributes: list[Attribute]) -> RawNamespace:
        """Parse: namespace <name> { <operation>* };"""
        start = self._expect(TokenType.NAMESPACE)
        name_tok = self._expect_name_token()
        self._expect(TokenType.LBRACE)
        namespace = RawNamespace(name=name_tok.value, attributes=attributes, pos=_pos(start))
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member_attrs = self._parse_attributes()
            namespace.functions.append(self._parse_operation(member_attrs, allow_static=False))
        self._expect(TokenType.RBRACE)
        self._expect(TokenType.SEMICOLON)
        return namespace

    def _parse_enum(self, attributes: list[Attribute]) -> RawEnum:
        """Parse: enum <Name> { "a", "b" [,] };"""
        start = self._expect(TokenType.ENUM)
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LBRACE)
        enum_def = RawEnum(name=name_tok.value, attributes=attributes, pos=_pos(start))
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            value_tok = self._expect(TokenType.STRING)
            enum_def.values.append(value_tok.value)
            if not self._check(TokenType.RBRACE):
                self._expect(TokenType.COMMA)
        self._expect(TokenType.RBRACE)
        self._expect(TokenType.SEMICOLON)
        return enum_def

    def _parse_dictionary(self, attributes: list[Attribute]) -> RawDictionary:
        """Parse: dictionary <Name> { [required] <type> <name> [= <literal>]; * };"""
        start = self._expect(TokenType.DICTIONARY)
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LBRACE)
        dictionary = RawDictionary(name=name_tok.value, attributes=attributes, pos=_pos(start))
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member_attrs = self._parse_attributes()
            member_start = self._current()
            required = False
            if self._check(TokenType.REQUIRED):
                self._advance()
                required = True
            member_type = self._parse_type()
            member_name = self._expect_name_token()
            default = self._parse_optional_default()
            self._expect(TokenType.SEMICOLON)
            dictionary.members.append(
                RawArgument(
                    name=member_name.value,
                    type=member_type,
                    default=default,
                    required=required,
                    attributes=member_attrs,
                    pos=_pos(member_start),
                )
            )
        self._expect(TokenType.RBRACE)
        self._expect(TokenType.SEMICOLON)
        return dictionary

    def _parse_interface(self, attributes: list[Attribute]) -> RawInterface:
        """Parse: interface <Name> { <member>* };"""
        start = self._expect(TokenType.INTERFACE)
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LBRACE)
        iface = RawInterface(name=name_tok.value, attributes=attributes, pos=_pos(start))
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member_attrs = self._parse_attributes()
            if self._check(TokenType.CONSTRUCTOR):
                iface.members.append(self._parse_constructor(member_attrs))
            elif self._check(TokenType.IDENTIFIER) and self._peek_type(1) == TokenType.LPAREN:
                iface.members.append(self._parse_variant(member_attrs))
            else:
                iface.members.append(self._parse_operation(member_attrs, allow_static=True))
        self._expect(TokenType.RBRACE)
        self._expect(TokenType.SEMICOLON)
        return iface

    def _parse_callback_interface(self, attributes: list[Attribute]) -> RawCallbackInterface:
        """Parse: callback interface <Name> { <operation>* };"""
        start = self._expect(TokenType.CALLBACK)
        self._expect(TokenType.INTERFACE)
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LBRACE)
        cbi = RawCallbackInterface(name=name_tok.value, attributes=attributes, pos=_pos(start))
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member_attrs = self._parse_attributes()
            cbi.methods.append(self._parse_operation(member_attrs, allow_static=False))
        self._expect(TokenType.RBRACE)
        self._expect(TokenType.SEMICOLON)
        return cbi

    def _parse_typedef(self) -> RawTypedef:
        """Parse: typedef <type> <Name>;"""
        start = self._expect(TokenType.TYPEDEF)
        target = self._parse_type()
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.SEMICOLON)
        return RawTypedef(name=name_tok.value, target=target, pos=_pos(start))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _parse_operation(self, attributes: list[Attribute], *, allow_static: bool) -> RawOperation:
        """Parse: [static] <return-type> <name>(<args>);"""
        start = self._current()
        is_static = False
        if self._check(TokenType.STATIC):
            if not allow_static:
                raise self._error("'static' is only allowed on interface methods")
            self._advance()
            is_static = True
        return_type: TypeExpr | None = None
        if self._check(TokenType.VOID):
            self._advance()
        else:
            return_type = self._parse_type()
        name_tok = self._expect_name_token()
        arguments = self._parse_argument_list()
        self._expect(TokenType.SEMICOLON)
        return RawOperation(
            name=name_tok.value,
            arguments=arguments,
            return_type=return_type,
            attributes=attributes,
            is_static=is_static,
            pos=_pos(start),
        )

    def _parse_constructor(self, attributes: list[Attribute]) -> RawOperation:
        """Parse: constructor(<args>);"""
        start = self._expect(TokenType.CONSTRUCTOR)
        arguments = self._parse_argument_list()
        self._expect(TokenType.SEMICOLON)
        return RawOperation(
            name="constructor",
            arguments=arguments,
            attributes=attributes,
            is_constructor=True,
            pos=_pos(start),
        )

    def _parse_variant(self, attributes: list[Attribute]) -> RawOperation:
        """Parse a tagged-union variant: <Name>(<args>);"""
        name_tok = self._expect(TokenType.IDENTIFIER)
        arguments = self._parse_argument_list()
        self._expect(TokenType.SEMICOLON)
        return RawOperation(
            name=name_tok.value,
            arguments=arguments,
            attributes=attributes,
            is_variant=True,
            pos=_pos(name_tok),
        )

    def _parse_argument_list(self) -> list[RawArgument]:
        """Parse: ( [<arg> (, <arg>)*] )"""
        self._expect(TokenType.LPAREN)
        arguments: list[RawArgument] = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_argument())
            while self._check(TokenType.COMMA):
                self._advance()
                arguments.append(self._parse_argument())
        self._expect(TokenType.RPAREN)
        return arguments

    def _parse_argument(self) -> RawArgument:
        """Parse: [attrs] [optional] <type> <name> [= <literal>]"""
        attributes = self._parse_attributes()
        start = self._current()
        if self._check(TokenType.OPTIONAL):
            self._advance()
        arg_type = self._parse_type()
        name_tok = self._expect_name_token()
        default = self._parse_optional_default()
        return RawArgument(
            name=name_tok.value,
            type=arg_type,
            default=default,
            attributes=attributes,
            pos=_pos(start),
        )

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _parse_type(self) -> TypeExpr:
        """Parse a type expression with any number of trailing '?'."""
        start = self._current()
        type_expr: TypeExpr
        if self._check(TokenType.SEQUENCE):
            self._advance()
            self._expect(TokenType.LANGLE)
            element = self._parse_type()
            self._expect(TokenType.RANGLE)
            type_expr = SequenceExpr(element=element, pos=_pos(start))
        elif self._check(TokenType.RECORD):
            self._advance()
            self._expect(TokenType.LANGLE)
            key = self._parse_type()
            self._expect(TokenType.COMMA)
            value = self._parse_type()
            self._expect(TokenType.RANGLE)
            type_expr = RecordExpr(key=key, value=value, pos=_pos(start))
        else:
            name_tok = self._expect(TokenType.IDENTIFIER)
            if name_tok.value in PRIMITIVE_TYPE_NAMES:
                type_expr = PrimitiveExpr(name=name_tok.value, pos=_pos(name_tok))
            else:
                type_expr = NamedExpr(name=name_tok.value, pos=_pos(name_tok))
        while self._check(TokenType.QUESTION):
            self._advance()
            type_expr = NullableExpr(inner=type_expr, pos=_pos(start))
        return type_expr

    # ------------------------------------------------------------------
    # Attributes and literals
    # ------------------------------------------------------------------

    def _parse_attributes(self) -> list[Attribute]:
        """Parse an optional attribute list: [Name, Name=Value, ...]"""
        if not self._check(TokenType.LBRACKET):
            return []
        self._advance()
        attributes: list[Attribute] = []
        while True:
            name_tok = self._expect(TokenType.IDENTIFIER)
            value: str | None = None
            if self._check(TokenType.EQUALS):
                self._advance()
                value = self._expect_name_token().value
            attributes.append(Attribute(name=name_tok.value, value=value, pos=_pos(name_tok)))
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RBRACKET)
        return attributes

    def _parse_optional_default(self) -> LiteralValue | None:
        if not self._check(TokenType.EQUALS):
            return None
        self._advance()
        return self._parse_literal()

    def _parse_literal(self) -> LiteralValue:
        tok = self._current()
        pos = _pos(tok)
        if tok.type == TokenType.INTEGER:
            self._advance()
            return LiteralValue(kind="int", value=_parse_int(tok.value), pos=pos)
        if tok.type == TokenType.FLOAT:
            self._advance()
            return LiteralValue(kind="float", value=float(tok.value), pos=pos)
        if tok.type == TokenType.STRING:
            self._advance()
            return LiteralValue(kind="string", value=tok.value, pos=pos)
        if tok.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return LiteralValue(kind="boolean", value=tok.type == TokenType.TRUE, pos=pos)
        if tok.type == TokenType.NULL:
            self._advance()
            return LiteralValue(kind="null", pos=pos)
        if tok.type == TokenType.LBRACKET:
            self._advance()
            self._expect(TokenType.RBRACKET)
            return LiteralValue(kind="empty_sequence", pos=pos)
        if tok.type == TokenType.LBRACE:
            self._advance()
            self._expect(TokenType.RBRACE)
            return LiteralValue(kind="empty_map", pos=pos)
        raise SchemaSyntaxError(f"Expected a literal value, got {_describe(tok)}", tok.line, tok.column)


def _parse_int(text: str) -> int:
    if "x" in text.lower():
        return int(text, 16)
    return int(text, 10)


def _pos(tok: Token) -> Position:
    return Position(line=tok.line, column=tok.column)


def _describe(tok: Token) -> str:
    if tok.type == TokenType.EOF:
        return "end of input"
    return repr(tok.value)
