"""reprenum/parser.py – S-expression schema front-end.

Converts schema source text into :class:`SchemaModule` objects holding
named constants and enum declarations.  Parsing is done by ``sexpdata``;
this module maps the resulting nested lists and symbols onto
:class:`~reprenum.schema.VariantDecl` objects.

Surface syntax
--------------
::

    ; line comments start with ';'
    (const BASE 0x40)

    (enum Opcode
      (repr u8)
      Nop                    ; 0
      Load                   ; 1
      (Store 10)             ; 10
      Jump                   ; 11
      (Call (+ BASE 4))      ; BASE + 4, wrapped to u8
      Ret                    ; BASE + 4 + 1
      (Other :unknown))      ; catch-all

* ``(repr TOKEN)`` may appear anywhere in the enum body, at most once.
* A variant is a bare symbol, ``(NAME EXPR)`` or ``(NAME :unknown)``.
* An expression is an integer (decimal, ``0x``, ``0o``, ``0b``, with
  optional ``_`` separators), a constant name, or ``(+ EXPR EXPR ...)``.

Design principles
-----------------
* **Head-symbol dispatch** – top-level forms are dispatched on their
  head symbol to a dedicated ``_parse_<tag>`` helper.
* **Fail-fast with location** – :class:`~reprenum.errors.SchemaSyntaxError`
  carries a ``SourceSpan`` found by scanning the source for the offending
  name.
* **No implicit coercions** – anything unexpected is an error.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

try:
    import sexpdata
    from sexpdata import Symbol
except ImportError:  # pragma: no cover
    raise ImportError(
        "The 'sexpdata' package is required for schema parsing. "
        "Install it with:  pip install sexpdata"
    )

from reprenum.errors import ReprEnumErrorCodes as E
from reprenum.errors import SchemaSyntaxError, SourceSpan
from reprenum.expr import Add, Expr, Literal, Name, evaluate, parse_int_literal
from reprenum.runtime import check_module_names
from reprenum.schema import SchemaBuilder, VariantDecl, VariantSchema

__all__ = [
    "EnumDecl",
    "SchemaModule",
    "parse_module",
    "parse_file",
    "parse_expr",
    "CATCH_ALL_MARKER",
]

_log = logging.getLogger(__name__)

CATCH_ALL_MARKER = ":unknown"

Sexp = Any  # Union[list, Symbol, str, int, float]


# ═══════════════════════════════════════════════════════════════════════
#  Parsed module
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EnumDecl:
    """An ``(enum ...)`` form before schema construction."""

    name: str
    repr_token: Optional[str]
    variants: Tuple[VariantDecl, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)

    def build(self) -> VariantSchema:
        """Run validation and discriminant resolution over the variants."""
        builder = SchemaBuilder(self.name, self.repr_token, span=self.span)
        return builder.extend(self.variants).build()


@dataclass(frozen=True)
class SchemaModule:
    filename: str
    constants: Dict[str, int]
    enums: Tuple[EnumDecl, ...]

    def build(self) -> List[VariantSchema]:
        return [decl.build() for decl in self.enums]

    def __getitem__(self, name: str) -> EnumDecl:
        for decl in self.enums:
            if decl.name == name:
                return decl
        raise KeyError(name)


# ═══════════════════════════════════════════════════════════════════════
#  Source locations
# ═══════════════════════════════════════════════════════════════════════

class _Locator:
    """Finds names in the source, moving forward through the text.

    ``sexpdata`` does not report positions, so spans are recovered by
    searching for each declared name after the previous match.
    """

    def __init__(self, text: str, filename: str) -> None:
        # Blank out comments, keeping offsets stable.
        self._text = re.sub(r";[^\n]*", lambda m: " " * len(m.group()), text)
        self._filename = filename
        self._cursor = 0

    def find(self, token: str) -> SourceSpan:
        pattern = re.compile(r"(?<![\w:.+-])" + re.escape(token) + r"(?![\w.+-])")
        m = pattern.search(self._text, self._cursor)
        if m is None:
            return SourceSpan(file=self._filename)
        self._cursor = m.end()
        line = self._text.count("\n", 0, m.start()) + 1
        column = m.start() - (self._text.rfind("\n", 0, m.start()) + 1) + 1
        return SourceSpan(
            file=self._filename,
            line=line,
            column=column,
            end_column=column + len(token),
        )


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

class _Context:
    def __init__(self, text: str, filename: str) -> None:
        self.filename = filename
        self.locator = _Locator(text, filename)
        self.constants: Dict[str, int] = {}
        self.spans: Dict[str, SourceSpan] = {}
        self.enums: List[EnumDecl] = []

    def error(
        self,
        message: str,
        code=E.UNEXPECTED_FORM,
        span: Optional[SourceSpan] = None,
    ) -> SchemaSyntaxError:
        return SchemaSyntaxError(
            message, code=code, span=span or SourceSpan(file=self.filename)
        )


def _is_symbol(s: Sexp) -> bool:
    return isinstance(s, Symbol)


def _sym_name(ctx: _Context, s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return str(s)
    raise ctx.error(f"expected symbol, got {type(s).__name__}: {_show(s)}")


def _identifier(ctx: _Context, s: Sexp, what: str) -> str:
    name = _sym_name(ctx, s)
    if not name.isidentifier() or keyword.iskeyword(name):
        raise ctx.error(f"invalid {what} name '{name}'")
    return name


def _expect_list(ctx: _Context, s: Sexp, *, min_len: int = 0) -> list:
    if not isinstance(s, list):
        raise ctx.error(f"expected list, got {type(s).__name__}: {_show(s)}")
    if len(s) < min_len:
        raise ctx.error(
            f"list too short: expected at least {min_len} elements, "
            f"got {len(s)}: {_show(s)}"
        )
    return s


def _head(ctx: _Context, s: list) -> str:
    if not s:
        raise ctx.error("unexpected empty list")
    return _sym_name(ctx, s[0])


def _show(s: Sexp) -> str:
    if isinstance(s, list):
        return "(" + " ".join(_show(x) for x in s) + ")"
    if isinstance(s, Symbol):
        return str(s)
    return repr(s)


# ═══════════════════════════════════════════════════════════════════════
#  Expressions
# ═══════════════════════════════════════════════════════════════════════

def _parse_expr(ctx: _Context, s: Sexp) -> Expr:
    if isinstance(s, bool):
        raise ctx.error(f"invalid discriminant expression: {_show(s)}",
                        code=E.INVALID_EXPRESSION)
    if isinstance(s, int):
        return Literal(s)
    if isinstance(s, Symbol):
        text = str(s)
        value = parse_int_literal(text)
        if value is not None:
            return Literal(value)
        if text.isidentifier() and not keyword.iskeyword(text):
            return Name(text)
        raise ctx.error(f"invalid discriminant expression: {text}",
                        code=E.INVALID_EXPRESSION)
    if isinstance(s, list) and s and _is_symbol(s[0]) and str(s[0]) == "+":
        if len(s) < 3:
            raise ctx.error(f"'+' needs at least two operands: {_show(s)}",
                            code=E.INVALID_EXPRESSION)
        expr = _parse_expr(ctx, s[1])
        for operand in s[2:]:
            expr = Add(expr, _parse_expr(ctx, operand))
        return expr
    raise ctx.error(f"invalid discriminant expression: {_show(s)}",
                    code=E.INVALID_EXPRESSION)


def parse_expr(text: str) -> Expr:
    """Parse a standalone discriminant expression (REPL/tests)."""
    ctx = _Context(text, "<string>")
    try:
        raw = sexpdata.loads(text, nil=None, true=None, false=None)
    except Exception as exc:
        raise ctx.error(f"S-expression syntax error: {exc}",
                        code=E.MALFORMED_SEXP) from exc
    return _parse_expr(ctx, raw)


# ═══════════════════════════════════════════════════════════════════════
#  Top-level forms
# ═══════════════════════════════════════════════════════════════════════

_TOP_LEVEL_DISPATCH: Dict[str, Callable[[_Context, list], None]] = {}


def _register(tag: str):
    """Decorator: register a parser function for a top-level form."""
    def deco(fn):
        _TOP_LEVEL_DISPATCH[tag] = fn
        return fn
    return deco


@_register("const")
def _parse_const(ctx: _Context, s: list) -> None:
    if len(s) != 3:
        raise ctx.error(f"expected (const NAME VALUE), got {_show(s)}")
    name = _identifier(ctx, s[1], "constant")
    span = ctx.locator.find(name)
    if name in ctx.constants:
        raise ctx.error(f"constant '{name}' defined twice",
                        code=E.DUPLICATE_CLAUSE, span=span)
    ctx.constants[name] = evaluate(_parse_expr(ctx, s[2]), ctx.constants)
    ctx.spans[name] = span


@_register("enum")
def _parse_enum(ctx: _Context, s: list) -> None:
    _expect_list(ctx, s, min_len=2)
    name = _identifier(ctx, s[1], "enum")
    span = ctx.locator.find(name)
    if any(decl.name == name for decl in ctx.enums):
        raise ctx.error(f"enum '{name}' defined twice",
                        code=E.DUPLICATE_CLAUSE, span=span)
    ctx.spans[name] = span

    repr_token: Optional[str] = None
    variants: List[VariantDecl] = []
    for item in s[2:]:
        if isinstance(item, list) and item and _is_symbol(item[0]) \
                and str(item[0]) == "repr":
            if len(item) != 2 or not _is_symbol(item[1]):
                raise ctx.error(f"expected (repr TOKEN), got {_show(item)}",
                                span=span)
            if repr_token is not None:
                raise ctx.error(f"enum '{name}' declares repr twice",
                                code=E.DUPLICATE_CLAUSE, span=span)
            repr_token = str(item[1])
            continue
        variants.append(_parse_variant(ctx, item))

    ctx.enums.append(EnumDecl(name, repr_token, tuple(variants), span=span))


def _parse_variant(ctx: _Context, s: Sexp) -> VariantDecl:
    if isinstance(s, Symbol):
        name = _identifier(ctx, s, "variant")
        return VariantDecl(name, span=ctx.locator.find(name))

    lst = _expect_list(ctx, s, min_len=1)
    name = _identifier(ctx, lst[0], "variant")
    span = ctx.locator.find(name)
    if len(lst) != 2:
        raise ctx.error(
            f"expected (NAME VALUE) or (NAME {CATCH_ALL_MARKER}), "
            f"got {_show(lst)}",
            span=span,
        )
    if _is_symbol(lst[1]) and str(lst[1]) == CATCH_ALL_MARKER:
        return VariantDecl(name, catch_all=True, span=span)
    try:
        value = _parse_expr(ctx, lst[1])
    except SchemaSyntaxError as exc:
        raise ctx.error(exc.message, code=exc.code, span=span) from None
    return VariantDecl(name, value, span=span)


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def parse_module(text: str, *, filename: str = "<string>") -> SchemaModule:
    """Parse a complete schema source string.

    Parameters
    ----------
    text:
        Schema source: zero or more ``(const ...)`` and ``(enum ...)``
        forms.
    filename:
        Used for ``SourceSpan`` tracking in error messages.

    Raises
    ------
    SchemaSyntaxError
        If the input is malformed or contains unrecognized forms.
    ReservedName
        If a constant or enum name would clash in a generated module.

    Example
    -------
    >>> mod = parse_module("(enum Bit (repr u8) Off On)")
    >>> [v.name for v in mod.enums[0].variants]
    ['Off', 'On']
    """
    ctx = _Context(text, filename)

    # Wrap in a list so several top-level forms parse as one object; the
    # newlines keep a trailing comment from swallowing the close paren.
    try:
        forms = sexpdata.loads("(\n" + text + "\n)",
                               nil=None, true=None, false=None)
    except Exception as exc:
        raise ctx.error(f"S-expression syntax error: {exc}",
                        code=E.MALFORMED_SEXP) from exc

    for form in forms:
        if not isinstance(form, list) or not form:
            raise ctx.error(f"expected top-level form (tag ...), got: {_show(form)}")
        tag = _head(ctx, form)
        handler = _TOP_LEVEL_DISPATCH.get(tag)
        if handler is None:
            raise ctx.error(
                f"unknown top-level form: ({tag} ...). "
                f"Expected one of: {sorted(_TOP_LEVEL_DISPATCH)}"
            )
        handler(ctx, form)

    check_module_names(ctx.constants, [d.name for d in ctx.enums], ctx.spans)

    _log.debug("parsed %s: %d constants, %d enums",
               filename, len(ctx.constants), len(ctx.enums))
    return SchemaModule(filename, dict(ctx.constants), tuple(ctx.enums))


def parse_file(path: Union[str, Path]) -> SchemaModule:
    """Read and parse a schema file."""
    p = Path(path)
    return parse_module(p.read_text(encoding="utf-8"), filename=str(p))
