"""reprenum/expr.py – discriminant expressions.

Only three forms exist:

* :class:`Literal` – an integer;
* :class:`Name` – a named constant whose value is supplied when the
  conversion tables are built (or by the generated module);
* :class:`Add` – the sum of two expressions.

This is deliberately not a general arithmetic evaluator.  Sums are
evaluated with unbounded Python integers and reduced by the caller with
:meth:`Representation.wrap`, which is equivalent to wrapping at each step.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Union

from reprenum.errors import UnresolvedConstantError

__all__ = [
    "Expr",
    "Literal",
    "Name",
    "Add",
    "parse_int_literal",
    "evaluate",
    "iter_names",
    "to_python",
    "to_sexp",
]

_INT_RE = re.compile(
    r"""^[+-]?(
        0[xX][0-9a-fA-F](_?[0-9a-fA-F])*
      | 0[oO][0-7](_?[0-7])*
      | 0[bB][01](_?[01])*
      | [0-9](_?[0-9])*
    )$""",
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class Literal:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Name:
    ident: str

    def __str__(self) -> str:
        return self.ident


@dataclass(frozen=True, slots=True)
class Add:
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"{self.left} + {self.right}"


Expr = Union[Literal, Name, Add]


def parse_int_literal(text: str) -> Optional[int]:
    """Parse decimal, hex, octal or binary integer text; ``None`` otherwise.

    Leading zeros on decimal literals are accepted (``007`` is 7).
    """
    if not _INT_RE.match(text):
        return None
    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = text.replace("_", "")
    if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
        return sign * int(digits, 10)
    return sign * int(digits, 0)


def evaluate(expr: Expr, constants: Mapping[str, int]) -> int:
    """Evaluate *expr* with unbounded arithmetic.

    Raises
    ------
    UnresolvedConstantError
        If a :class:`Name` is missing from *constants*.
    """
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, Name):
        try:
            return int(constants[expr.ident])
        except KeyError:
            raise UnresolvedConstantError(expr.ident) from None
    if isinstance(expr, Add):
        return evaluate(expr.left, constants) + evaluate(expr.right, constants)
    raise TypeError(f"not a discriminant expression: {expr!r}")


def iter_names(expr: Expr) -> Iterator[str]:
    """Yield the constant names referenced by *expr*, left to right."""
    if isinstance(expr, Name):
        yield expr.ident
    elif isinstance(expr, Add):
        yield from iter_names(expr.left)
        yield from iter_names(expr.right)


def to_python(expr: Expr) -> str:
    """Render *expr* as Python source (unwrapped)."""
    if isinstance(expr, Literal):
        return repr(expr.value)
    if isinstance(expr, Name):
        return expr.ident
    if isinstance(expr, Add):
        return f"({to_python(expr.left)} + {to_python(expr.right)})"
    raise TypeError(f"not a discriminant expression: {expr!r}")


def to_sexp(expr: Expr) -> str:
    """Render *expr* back into schema syntax."""
    if isinstance(expr, Add):
        return f"(+ {to_sexp(expr.left)} {to_sexp(expr.right)})"
    return str(expr)
