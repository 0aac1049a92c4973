# tests/test_representation.py
"""
Tests for integer representations: lookup, ranges and wraparound.
"""

import pytest

from reprenum.errors import MissingRepresentation, UnsupportedRepresentation
from reprenum.representation import (
    POINTER_BITS,
    REPRESENTATIONS,
    parse_representation,
)


class TestLookup:

    @pytest.mark.parametrize("token,bits,signed", [
        ("i8", 8, True), ("i16", 16, True), ("i32", 32, True),
        ("i64", 64, True), ("i128", 128, True),
        ("u8", 8, False), ("u16", 16, False), ("u32", 32, False),
        ("u64", 64, False), ("u128", 128, False),
    ])
    def test_fixed_widths(self, token, bits, signed):
        r = parse_representation(token)
        assert r.name == token
        assert r.bits == bits
        assert r.signed is signed

    def test_platform_sized(self):
        assert parse_representation("usize").bits == POINTER_BITS
        assert parse_representation("isize").signed

    def test_computable_set(self):
        computable = {name for name, r in REPRESENTATIONS.items() if r.computable}
        assert computable == {"i8", "i16", "i32", "i64", "u8", "u16", "u32"}

    def test_missing(self):
        with pytest.raises(MissingRepresentation):
            parse_representation(None)
        with pytest.raises(MissingRepresentation):
            parse_representation("")

    def test_repr_c_rejected(self):
        with pytest.raises(UnsupportedRepresentation) as info:
            parse_representation("C")
        assert "repr(C)" in str(info.value)
        assert info.value.token == "C"

    @pytest.mark.parametrize("token", ["f32", "bool", "U8", "int"])
    def test_unknown_tokens_rejected(self, token):
        with pytest.raises(UnsupportedRepresentation):
            parse_representation(token, type_name="Color")


class TestRange:

    def test_unsigned_bounds(self):
        u8 = REPRESENTATIONS["u8"]
        assert (u8.min_value, u8.max_value) == (0, 255)
        assert u8.contains(255)
        assert not u8.contains(256)
        assert not u8.contains(-1)

    def test_signed_bounds(self):
        i8 = REPRESENTATIONS["i8"]
        assert (i8.min_value, i8.max_value) == (-128, 127)


class TestWrap:

    def test_unsigned_wrap(self):
        u8 = REPRESENTATIONS["u8"]
        assert u8.wrap(256) == 0
        assert u8.wrap(300) == 44
        assert u8.wrap(-1) == 255
        assert u8.wrapping_add(255, 1) == 0

    def test_signed_wrap(self):
        i8 = REPRESENTATIONS["i8"]
        assert i8.wrap(128) == -128
        assert i8.wrap(-129) == 127
        assert i8.wrapping_add(127, 1) == -128

    def test_wide_wrap(self):
        u64 = REPRESENTATIONS["u64"]
        assert u64.wrap(2 ** 64 + 5) == 5
        i128 = REPRESENTATIONS["i128"]
        assert i128.wrap(2 ** 127) == -(2 ** 127)

    def test_in_range_unchanged(self):
        for r in REPRESENTATIONS.values():
            assert r.wrap(0) == 0
            assert r.wrap(r.max_value) == r.max_value
            assert r.wrap(r.min_value) == r.min_value
