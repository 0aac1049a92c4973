"""reprenum/discriminant.py – discriminant values and the sequencer.

The :class:`Generator` walks the normal variants of one enum in
declaration order and hands out a :class:`Discriminant` for each, with
C-like numbering: unexplicit variants continue the running sequence and
explicit values re-anchor it.

Explicit literals are folded into plain integers only when the
representation is computable; anything else (named constants, sums, or
any value on a wide/platform-sized representation) becomes the new
*base* and following variants are expressed as ``base + offset``, to be
evaluated with wraparound once the constants are known.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from reprenum.expr import Add, Expr, Literal
from reprenum.representation import Representation

__all__ = ["Discriminant", "Generator"]

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


@dataclass(frozen=True, slots=True)
class Discriminant:
    """A resolved literal (``base is None``) or a deferred ``base + offset``."""

    offset: int
    base: Optional[Expr] = None

    @property
    def is_deferred(self) -> bool:
        return self.base is not None

    @property
    def literal(self) -> int:
        if self.base is not None:
            raise ValueError("deferred discriminant has no literal value")
        return self.offset

    def to_expr(self) -> Expr:
        if self.base is None:
            return Literal(self.offset)
        if self.offset == 0:
            return self.base
        return Add(self.base, Literal(self.offset))

    def __str__(self) -> str:
        return str(self.to_expr())


class Generator:
    """Stateful sequencer scoped to a single schema build."""

    def __init__(self, representation: Representation) -> None:
        self.representation = representation
        self.base: Optional[Expr] = None
        self.offset = 0

    def next(self) -> Discriminant:
        """Discriminant for a variant without an explicit value."""
        disc = Discriminant(self.offset, self.base)
        self.offset += 1
        return disc

    def reset(self, explicit: Expr) -> Discriminant:
        """Re-anchor the sequence on an explicit value."""
        if (
            self.representation.computable
            and isinstance(explicit, Literal)
            and _I64_MIN <= explicit.value <= _I64_MAX
        ):
            self.base = None
            self.offset = explicit.value + 1
            return Discriminant(explicit.value)

        self.base = explicit
        self.offset = 1
        return Discriminant(0, explicit)

    def __repr__(self) -> str:
        return (f"Generator(repr={self.representation.name}, "
                f"base={self.base}, offset={self.offset})")
