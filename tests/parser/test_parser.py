# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the UDL schema parser."""

import pytest

from udlgen.compiler.parser import parse
from udlgen.errors import SchemaSyntaxError
from udlgen.model.syntax import (
    NamedExpr,
    NullableExpr,
    PrimitiveExpr,
    RecordExpr,
    SequenceExpr,
    find_attribute,
    is_tagged_union,
)

# ###############
# Namespaces and Functions
# ###############


class TestNamespace:
    def test_empty_namespace(self) -> None:
        schema = parse("namespace arithmetic {};")
        assert len(schema.namespaces) == 1
        assert schema.namespaces[0].name == "arithmetic"
        assert schema.namespaces[0].functions == []

    def test_function_with_arguments(self) -> None:
        schema = parse("namespace math { u64 add(u64 a, u64 b); };")
        func = schema.namespaces[0].functions[0]
        assert func.name == "add"
        assert [a.name for a in func.arguments] == ["a", "b"]
        assert func.return_type == PrimitiveExpr(name="u64", pos=func.return_type.pos)

    def test_void_function_has_no_return_type(self) -> None:
        schema = parse("namespace x { void hello(); };")
        assert schema.namespaces[0].functions[0].return_type is None

    def test_namespace_attributes(self) -> None:
        schema = parse("[Throws=ArithmeticError] namespace math {};")
        attr = find_attribute(schema.namespaces[0].attributes, "Throws")
        assert attr is not None
        assert attr.value == "ArithmeticError"

    def test_function_throws_attribute(self) -> None:
        schema = parse("namespace math { [Throws=MathError] u64 div(u64 a, u64 b); };")
        func = schema.namespaces[0].functions[0]
        assert find_attribute(func.attributes, "Throws") is not None

    def test_static_not_allowed_in_namespace(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="static"):
            parse("namespace x { static void f(); };")

    def test_missing_semicolon_raises(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="Expected"):
            parse("namespace x {}")


# ###############
# Enums and Dictionaries
# ###############


class TestEnum:
    def test_plain_enum(self) -> None:
        schema = parse('enum Which { "Yeah", "Nah" };')
        assert schema.enums[0].name == "Which"
        assert schema.enums[0].values == ["Yeah", "Nah"]

    def test_trailing_comma_allowed(self) -> None:
        schema = parse('enum Which { "Yeah", "Nah", };')
        assert schema.enums[0].values == ["Yeah", "Nah"]

    def test_error_enum_attribute(self) -> None:
        schema = parse('[Error] enum ArithmeticError { "IntegerOverflow" };')
        assert find_attribute(schema.enums[0].attributes, "Error") is not None

    def test_enum_values_must_be_strings(self) -> None:
        with pytest.raises(SchemaSyntaxError):
            parse("enum Which { Yeah };")


class TestDictionary:
    def test_members_with_defaults(self) -> None:
        schema = parse("""
dictionary Point {
    required double x;
    double y = 0.5;
    string? label = null;
    sequence<u8> data = [];
    record<string, u32> counts = {};
};
""")
        members = schema.dictionaries[0].members
        assert [m.name for m in members] == ["x", "y", "label", "data", "counts"]
        assert members[0].required is True
        assert members[0].default is None
        assert members[1].default is not None
        assert members[1].default.kind == "float"
        assert members[2].default is not None and members[2].default.kind == "null"
        assert members[3].default is not None and members[3].default.kind == "empty_sequence"
        assert members[4].default is not None and members[4].default.kind == "empty_map"

    def test_integer_literals(self) -> None:
        schema = parse("dictionary D { i32 a = -5; u32 b = 0x1F; };")
        a, b = schema.dictionaries[0].members
        assert a.default is not None and a.default.value == -5
        assert b.default is not None and b.default.value == 31

    def test_boolean_and_string_literals(self) -> None:
        schema = parse('dictionary D { boolean on = true; string s = "hi"; };')
        on, s = schema.dictionaries[0].members
        assert on.default is not None and on.default.value is True
        assert s.default is not None and s.default.value == "hi"

    def test_missing_literal_raises(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="literal"):
            parse("dictionary D { u32 a = ; };")


# ###############
# Interfaces
# ###############


class TestInterface:
    def test_constructor_and_methods(self) -> None:
        schema = parse("""
interface Counter {
    constructor(u32 start);
    [Name=from_zero] constructor();
    u32 get();
    [Exclusive] void increment();
    static Counter create();
};
""")
        iface = schema.interfaces[0]
        assert not is_tagged_union(iface)
        cons, named, get, inc, create = iface.members
        assert cons.is_constructor and [a.name for a in cons.arguments] == ["start"]
        assert named.is_constructor and find_attribute(named.attributes, "Name") is not None
        assert get.name == "get" and not get.is_static
        assert find_attribute(inc.attributes, "Exclusive") is not None
        assert create.is_static
        assert isinstance(create.return_type, NamedExpr)

    def test_tagged_union_variants(self) -> None:
        schema = parse("""
[Enum] interface Shape {
    Circle(double radius);
    Nothing();
};
""")
        iface = schema.interfaces[0]
        assert is_tagged_union(iface)
        assert [m.name for m in iface.members] == ["Circle", "Nothing"]
        assert all(m.is_variant for m in iface.members)

    def test_callback_interface(self) -> None:
        schema = parse("callback interface OnEvent { void fire(string name); };")
        cbi = schema.callback_interfaces[0]
        assert cbi.name == "OnEvent"
        assert cbi.methods[0].name == "fire"

    def test_argument_attributes_and_optional_keyword(self) -> None:
        schema = parse("interface O { void f([ByRef] string s, optional u32 n = 3); };")
        method = schema.interfaces[0].members[0]
        s, n = method.arguments
        assert find_attribute(s.attributes, "ByRef") is not None
        assert n.default is not None and n.default.value == 3

    def test_keyword_usable_as_argument_name(self) -> None:
        schema = parse("interface O { void f(string record); };")
        assert schema.interfaces[0].members[0].arguments[0].name == "record"


# ###############
# Types and Typedefs
# ###############


class TestTypes:
    def test_nested_generic_types(self) -> None:
        schema = parse("namespace x { void f(sequence<record<string, u32?>> arg); };")
        arg_type = schema.namespaces[0].functions[0].arguments[0].type
        assert isinstance(arg_type, SequenceExpr)
        assert isinstance(arg_type.element, RecordExpr)
        assert isinstance(arg_type.element.value, NullableExpr)

    def test_double_nullable(self) -> None:
        schema = parse("namespace x { void f(u32?? a); };")
        arg_type = schema.namespaces[0].functions[0].arguments[0].type
        assert isinstance(arg_type, NullableExpr)
        assert isinstance(arg_type.inner, NullableExpr)

    def test_typedef(self) -> None:
        schema = parse("typedef sequence<string> Names;")
        typedef = schema.typedefs[0]
        assert typedef.name == "Names"
        assert isinstance(typedef.target, SequenceExpr)

    def test_attributes_on_typedef_rejected(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="typedef"):
            parse("[Error] typedef string Name;")

    def test_undefined_names_are_not_rejected_by_parser(self) -> None:
        schema = parse("dictionary D { Missing m; };")
        assert isinstance(schema.dictionaries[0].members[0].type, NamedExpr)


# ###############
# Errors and Positions
# ###############


class TestErrors:
    def test_unexpected_top_level_token(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="at top level"):
            parse("u32 x;")

    def test_error_reports_end_of_input(self) -> None:
        with pytest.raises(SchemaSyntaxError, match="end of input"):
            parse("namespace x {")

    def test_error_position(self) -> None:
        with pytest.raises(SchemaSyntaxError) as exc_info:
            parse("namespace x {\n  void f(;\n};")
        assert exc_info.value.line == 2

    def test_declarations_keep_source_order(self) -> None:
        schema = parse('enum B { "x" }; enum A { "y" };')
        assert [e.name for e in schema.enums] == ["B", "A"]
