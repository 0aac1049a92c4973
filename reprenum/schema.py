"""reprenum/schema.py – variant schema assembly and validation.

A :class:`SchemaBuilder` consumes variant declarations one at a time, in
declaration order.  Each declaration is validated as it arrives (so the
first offending variant determines the reported error) and every normal
variant is handed to the :class:`~reprenum.discriminant.Generator` for
its discriminant.  :meth:`SchemaBuilder.build` freezes the result into a
:class:`VariantSchema`.

Public API
----------
``build_schema(type_name, repr_token, decls) -> VariantSchema``
    One-shot helper over :class:`SchemaBuilder`.

Example
-------
>>> from reprenum.expr import Literal
>>> schema = build_schema("Number", "u8", [
...     VariantDecl("Zero"), VariantDecl("One"),
...     VariantDecl("Ten", Literal(10)), VariantDecl("Eleven"),
...     VariantDecl("Unknown", catch_all=True),
... ])
>>> [str(v.discriminant) for v in schema.normals]
['0', '1', '10', '11']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple, Union

from reprenum.discriminant import Discriminant, Generator
from reprenum.errors import (
    DiscriminantOutOfRange,
    DuplicateVariant,
    MultipleCatchAll,
    SourceSpan,
)
from reprenum.expr import Expr, Literal
from reprenum.representation import Representation, parse_representation

__all__ = [
    "VariantDecl",
    "NormalVariant",
    "UnknownVariant",
    "Variant",
    "VariantSchema",
    "SchemaBuilder",
    "build_schema",
]

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  Input declarations
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class VariantDecl:
    """One variant as declared by the front-end."""

    name: str
    value: Optional[Expr] = None
    catch_all: bool = False
    span: Optional[SourceSpan] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.catch_all and self.value is not None:
            raise ValueError(
                f"catch-all variant '{self.name}' cannot have a discriminant"
            )


# ═══════════════════════════════════════════════════════════════════════
#  Resolved variants
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class NormalVariant:
    name: str
    discriminant: Discriminant
    span: Optional[SourceSpan] = field(default=None, compare=False)

    is_catch_all = False


@dataclass(frozen=True, slots=True)
class UnknownVariant:
    """The catch-all variant; wraps any unmatched integer at runtime."""

    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False)

    is_catch_all = True


Variant = Union[NormalVariant, UnknownVariant]


@dataclass(frozen=True, slots=True)
class VariantSchema:
    """Validated, fully resolved description of one enum."""

    type_name: str
    representation: Representation
    variants: Tuple[Variant, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)

    @property
    def normals(self) -> Tuple[NormalVariant, ...]:
        return tuple(v for v in self.variants if isinstance(v, NormalVariant))

    @property
    def unknown(self) -> Optional[UnknownVariant]:
        for v in self.variants:
            if isinstance(v, UnknownVariant):
                return v
        return None

    def __getitem__(self, name: str) -> Variant:
        for v in self.variants:
            if v.name == name:
                return v
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.variants)


# ═══════════════════════════════════════════════════════════════════════
#  Builder
# ═══════════════════════════════════════════════════════════════════════

class SchemaBuilder:
    """Incremental schema assembly: validation plus discriminant resolution.

    The representation is checked first, in the constructor, so a missing
    or unsupported representation is reported before any variant.
    """

    def __init__(
        self,
        type_name: str,
        repr_token: Optional[str],
        *,
        span: Optional[SourceSpan] = None,
    ) -> None:
        self.type_name = type_name
        self.span = span
        self.representation = parse_representation(
            repr_token, type_name=type_name, span=span
        )
        self._generator = Generator(self.representation)
        self._variants: list[Variant] = []
        self._seen: Dict[str, Optional[SourceSpan]] = {}
        self._unknown: Optional[UnknownVariant] = None

    def add(self, decl: VariantDecl) -> Variant:
        """Validate and resolve one declaration; return the resolved variant."""
        if decl.name in self._seen:
            raise DuplicateVariant(
                decl.name,
                type_name=self.type_name,
                span=decl.span,
                original_span=self._seen[decl.name],
            )

        variant: Variant
        if decl.catch_all:
            if self._unknown is not None:
                raise MultipleCatchAll(
                    decl.name,
                    first=self._unknown.name,
                    type_name=self.type_name,
                    span=decl.span,
                )
            variant = UnknownVariant(decl.name, span=decl.span)
            self._unknown = variant
        else:
            variant = NormalVariant(
                decl.name, self._resolve(decl), span=decl.span
            )

        self._seen[decl.name] = decl.span
        self._variants.append(variant)
        _log.debug("%s.%s -> %s", self.type_name, decl.name,
                   getattr(variant, "discriminant", "<catch-all>"))
        return variant

    def extend(self, decls: Iterable[VariantDecl]) -> "SchemaBuilder":
        for decl in decls:
            self.add(decl)
        return self

    def build(self) -> VariantSchema:
        return VariantSchema(
            type_name=self.type_name,
            representation=self.representation,
            variants=tuple(self._variants),
            span=self.span,
        )

    def _resolve(self, decl: VariantDecl) -> Discriminant:
        if decl.value is None:
            disc = self._generator.next()
        else:
            disc = self._generator.reset(decl.value)

        # Literals must fit; deferred sums wrap when realized.
        if not disc.is_deferred:
            self._check_range(decl, disc.literal)
        elif isinstance(disc.base, Literal) and disc.offset == 0:
            self._check_range(decl, disc.base.value)
        return disc

    def _check_range(self, decl: VariantDecl, value: int) -> None:
        if not self.representation.contains(value):
            raise DiscriminantOutOfRange(
                decl.name,
                value,
                self.representation.name,
                type_name=self.type_name,
                span=decl.span,
            )


def build_schema(
    type_name: str,
    repr_token: Optional[str],
    decls: Iterable[VariantDecl],
    *,
    span: Optional[SourceSpan] = None,
) -> VariantSchema:
    """Build and validate a :class:`VariantSchema` in one pass."""
    return SchemaBuilder(type_name, repr_token, span=span).extend(decls).build()
