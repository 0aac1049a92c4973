# tests/test_parser.py
"""
Tests for the schema parser: S-expression source → declarations.
"""

import textwrap

import pytest

from reprenum.errors import (
    DuplicateVariant,
    MissingRepresentation,
    ReservedName,
    SchemaSyntaxError,
    UnresolvedConstantError,
)
from reprenum.errors import ReprEnumErrorCodes as E
from reprenum.expr import Add, Literal, Name
from reprenum.parser import (
    EnumDecl,
    SchemaModule,
    parse_expr,
    parse_file,
    parse_module,
)
from tests.conftest import NUMBER_RENUM, OPCODE_RENUM


class TestParseEmpty:

    def test_empty_string(self):
        mod = parse_module("")
        assert isinstance(mod, SchemaModule)
        assert mod.enums == ()
        assert mod.constants == {}

    def test_comment_only(self):
        mod = parse_module("; nothing here\n;; still nothing")
        assert mod.enums == ()


class TestParseEnum:

    def test_number(self):
        decl = parse_module(NUMBER_RENUM).enums[0]
        assert isinstance(decl, EnumDecl)
        assert decl.name == "Number"
        assert decl.repr_token == "u8"
        assert [v.name for v in decl.variants] == [
            "Zero", "One", "Two", "Three", "Four", "Ten", "Eleven", "Unknown"
        ]

    def test_explicit_value(self):
        decl = parse_module(NUMBER_RENUM).enums[0]
        ten = decl.variants[5]
        assert ten.value == Literal(10)
        assert decl.variants[0].value is None

    def test_catch_all_marker(self):
        unknown = parse_module(NUMBER_RENUM).enums[0].variants[-1]
        assert unknown.catch_all
        assert unknown.value is None

    def test_repr_anywhere(self):
        decl = parse_module("(enum E A (repr i16) B)").enums[0]
        assert decl.repr_token == "i16"
        assert [v.name for v in decl.variants] == ["A", "B"]

    def test_missing_repr_parses(self):
        decl = parse_module("(enum E A B)").enums[0]
        assert decl.repr_token is None
        with pytest.raises(MissingRepresentation):
            decl.build()

    def test_several_enums(self):
        mod = parse_module("(enum A (repr u8) X) (enum B (repr u16) Y)")
        assert [d.name for d in mod.enums] == ["A", "B"]
        assert mod["B"].repr_token == "u16"
        with pytest.raises(KeyError):
            mod["C"]

    def test_build_module(self):
        schemas = parse_module(OPCODE_RENUM).build()
        assert [s.type_name for s in schemas] == ["Opcode"]


class TestParseExpressions:

    def test_hex_constant(self):
        mod = parse_module(OPCODE_RENUM)
        assert mod.constants == {"BASE": 64}

    def test_sum_with_name(self):
        call = parse_module(OPCODE_RENUM)["Opcode"].variants[4]
        assert call.name == "Call"
        assert call.value == Add(Name("BASE"), Literal(4))

    def test_constant_folding_in_const(self):
        mod = parse_module("(const A 1) (const B (+ A 0x10 2))")
        assert mod.constants == {"A": 1, "B": 19}

    @pytest.mark.parametrize("text,expected", [
        ("10", Literal(10)),
        ("-3", Literal(-3)),
        ("0x1F", Literal(31)),
        ("0b101", Literal(5)),
        ("0o17", Literal(15)),
        ("BASE", Name("BASE")),
        ("(+ 1 2)", Add(Literal(1), Literal(2))),
        ("(+ A 1 2)", Add(Add(Name("A"), Literal(1)), Literal(2))),
    ])
    def test_parse_expr(self, text, expected):
        assert parse_expr(text) == expected

    def test_sums_are_not_folded(self):
        variant = parse_module("(enum E (repr u8) (A (+ 10 10)))").enums[0].variants[0]
        assert variant.value == Add(Literal(10), Literal(10))

    def test_undefined_constant_in_const(self):
        with pytest.raises(UnresolvedConstantError):
            parse_module("(const B (+ A 1))")


class TestParseErrors:

    def test_malformed(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(enum E (repr u8) A")
        assert info.value.code == E.MALFORMED_SEXP

    def test_unknown_form(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(struct S)")
        assert info.value.code == E.UNEXPECTED_FORM
        assert "struct" in str(info.value)

    def test_bare_atom_at_top_level(self):
        with pytest.raises(SchemaSyntaxError):
            parse_module("enum")

    @pytest.mark.parametrize("body", [
        "(A 1 2)",
        "5",
        "foo-bar",
        "()",
    ])
    def test_bad_variant(self, body):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module(f"(enum E (repr u8) {body})")
        assert info.value.code == E.UNEXPECTED_FORM

    @pytest.mark.parametrize("value", ['"ten"', "1.5", "(* 2 3)", "(+ 1)"])
    def test_bad_expression(self, value):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module(f"(enum E (repr u8) (A {value}))")
        assert info.value.code == E.INVALID_EXPRESSION

    def test_repr_twice(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(enum E (repr u8) (repr u16) A)")
        assert info.value.code == E.DUPLICATE_CLAUSE

    def test_const_twice(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(const A 1) (const A 2)")
        assert info.value.code == E.DUPLICATE_CLAUSE

    def test_bad_repr_clause(self):
        with pytest.raises(SchemaSyntaxError):
            parse_module("(enum E (repr) A)")

    def test_enum_twice(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(enum E (repr u8) A)\n(enum E (repr u8) B)")
        assert info.value.code == E.DUPLICATE_CLAUSE

    @pytest.mark.parametrize("src", [
        "(const def 4)",
        "(enum class (repr u8) A)",
        "(enum E (repr u8) pass)",
    ])
    def test_keyword_names(self, src):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module(src)
        assert info.value.code == E.UNEXPECTED_FORM

    def test_keyword_in_expression(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(enum E (repr u8) (A (+ def 1)) B)")
        assert info.value.code == E.INVALID_EXPRESSION


class TestReservedNames:

    @pytest.mark.parametrize("name", [
        "EnumValue", "REPRESENTATIONS", "UnknownVariantError",
        "ConversionContractError", "_E_COMPUTED_0",
    ])
    def test_constant_shadowing_generated_names(self, name):
        with pytest.raises(ReservedName) as info:
            parse_module(f"(const {name} 4) (enum E (repr u8) A)")
        assert info.value.code == E.RESERVED_NAME

    def test_constant_named_like_enum(self):
        with pytest.raises(ReservedName) as info:
            parse_module("(const E 1)\n(enum E (repr u8) (A E))",
                         filename="e.renum")
        assert info.value.name == "E"
        assert info.value.span.file == "e.renum"

    def test_enum_named_like_import(self):
        with pytest.raises(ReservedName):
            parse_module("(enum EnumValue (repr u8) A)")


class TestSpans:

    SRC = textwrap.dedent("""\
        (enum E
          (repr u8)
          A        ; first
          B
          A)
    """)

    def test_variant_lines(self):
        decl = parse_module(self.SRC, filename="e.renum").enums[0]
        assert decl.span.line == 1
        assert [v.span.line for v in decl.variants] == [3, 4, 5]
        assert decl.variants[0].span.column == 3
        assert decl.variants[0].span.file == "e.renum"

    def test_duplicate_points_at_second(self):
        decl = parse_module(self.SRC, filename="e.renum").enums[0]
        with pytest.raises(DuplicateVariant) as info:
            decl.build()
        assert info.value.span.line == 5
        assert info.value.to_gcc_format().startswith(
            "e.renum:5:3: error: duplicate variant: A [RENUM-2002]"
        )

    def test_comments_ignored(self):
        src = "; A B C\n(enum E (repr u8) C)"
        decl = parse_module(src).enums[0]
        assert decl.variants[0].span.line == 2

    def test_syntax_error_carries_file(self):
        with pytest.raises(SchemaSyntaxError) as info:
            parse_module("(oops)", filename="bad.renum")
        assert info.value.span.file == "bad.renum"


class TestParseFile:

    def test_parse_file(self, tmp_path):
        path = tmp_path / "opcodes.renum"
        path.write_text(OPCODE_RENUM, encoding="utf-8")
        mod = parse_file(path)
        assert mod.filename == str(path)
        assert mod["Opcode"].variants[0].span.file == str(path)
