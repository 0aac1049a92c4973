"""reprenum/representation.py – integer representations of enums.

A :class:`Representation` is the integer type used to store and exchange
discriminants.  Besides width and signedness it records whether literal
arithmetic may be folded while the schema is resolved (``computable``);
wide and platform-sized types keep their symbolic expressions so that the
addition happens, with wraparound, when the conversion tables are built.

=========  ====  ======  ==========
token      bits  signed  computable
=========  ====  ======  ==========
``i8``        8  yes     yes
``i16``      16  yes     yes
``i32``      32  yes     yes
``i64``      64  yes     yes
``i128``    128  yes     no
``isize``   ptr  yes     no
``u8``        8  no      yes
``u16``      16  no      yes
``u32``      32  no      yes
``u64``      64  no      no
``u128``    128  no      no
``usize``   ptr  no      no
=========  ====  ======  ==========
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Dict, Optional

from reprenum.errors import (
    MissingRepresentation,
    SourceSpan,
    UnsupportedRepresentation,
)

__all__ = [
    "Representation",
    "REPRESENTATIONS",
    "POINTER_BITS",
    "parse_representation",
]

POINTER_BITS: int = struct.calcsize("P") * 8


@dataclass(frozen=True, slots=True)
class Representation:
    """An integer storage type: width, signedness and foldability."""

    name: str
    bits: int
    signed: bool
    computable: bool

    @property
    def min_value(self) -> int:
        if self.signed:
            return -(1 << (self.bits - 1))
        return 0

    @property
    def max_value(self) -> int:
        if self.signed:
            return (1 << (self.bits - 1)) - 1
        return (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        """Return ``True`` if *value* is representable without wrapping."""
        return self.min_value <= value <= self.max_value

    def wrap(self, value: int) -> int:
        """Reduce *value* modulo ``2**bits`` into this type's range.

        Applying ``wrap`` to an unbounded sum gives the same result as a
        chain of wrapping additions in the fixed width.
        """
        mask = (1 << self.bits) - 1
        value &= mask
        if self.signed and value > self.max_value:
            value -= 1 << self.bits
        return value

    def wrapping_add(self, left: int, right: int) -> int:
        return self.wrap(left + right)

    def __str__(self) -> str:
        return self.name


def _table() -> Dict[str, Representation]:
    specs = (
        ("i8", 8, True, True),
        ("i16", 16, True, True),
        ("i32", 32, True, True),
        ("i64", 64, True, True),
        ("i128", 128, True, False),
        ("isize", POINTER_BITS, True, False),
        ("u8", 8, False, True),
        ("u16", 16, False, True),
        ("u32", 32, False, True),
        ("u64", 64, False, False),
        ("u128", 128, False, False),
        ("usize", POINTER_BITS, False, False),
    )
    return {name: Representation(name, bits, signed, computable)
            for name, bits, signed, computable in specs}


REPRESENTATIONS: Dict[str, Representation] = _table()


def parse_representation(
    token: Optional[str],
    *,
    type_name: str = "",
    span: Optional[SourceSpan] = None,
) -> Representation:
    """Look up the representation named by *token*.

    Raises
    ------
    MissingRepresentation
        If *token* is ``None`` or empty.
    UnsupportedRepresentation
        If *token* is not one of :data:`REPRESENTATIONS` (``"C"`` included).
    """
    if not token:
        raise MissingRepresentation(type_name=type_name, span=span)
    try:
        return REPRESENTATIONS[token]
    except KeyError:
        raise UnsupportedRepresentation(
            token, type_name=type_name, span=span
        ) from None
