"""reprenum — integer-backed enums from declarative schemas.

This package resolves discriminants for a closed set of named variants
and synthesizes the four conversions between enum values and their
integer representation: ``to_int``, ``try_to_int``, ``from_int`` and
``try_from_int``.  One variant may be a catch-all that wraps any integer
not matching a named variant.

Submodules
----------
errors
    Structured error codes (``RENUM-XXXX``), ``SourceSpan`` and the
    exception hierarchy.

representation
    Integer representations (``u8`` ... ``usize``) with wraparound.

expr
    Discriminant expressions: literals, named constants and sums.

discriminant
    ``Discriminant`` values and the sequencing ``Generator``.

schema
    ``SchemaBuilder``: validation plus discriminant resolution.

synth
    ``synthesize``: schema → ``ConversionSet``.

runtime
    ``EnumValue`` base class and the table-driven ``build_enum``.

codegen
    Python source generation for conversion sets.

parser
    S-expression schema front-end.

main
    CLI entry-point with subcommands: ``generate``, ``resolve``, ``check``.

Usage
-----
Command-line::

    python -m reprenum generate opcodes.renum -o opcodes.py
    python -m reprenum resolve  opcodes.renum --format json

Programmatic::

    from reprenum import parse_module, compile_schema

    module = parse_module(open("opcodes.renum").read())
    Opcode = compile_schema(module.enums[0].build(), module.constants)
    Opcode.from_int(11)
"""

from __future__ import annotations

__version__: str = "0.1.0"

from reprenum.errors import (  # noqa: E402
    ConversionContractError,
    DiscriminantOutOfRange,
    DuplicateVariant,
    MissingRepresentation,
    MultipleCatchAll,
    ReprEnumError,
    ReservedName,
    SchemaError,
    SchemaSyntaxError,
    UnknownVariantError,
    UnsupportedRepresentation,
)
from reprenum.codegen import generate  # noqa: E402
from reprenum.parser import parse_file, parse_module  # noqa: E402
from reprenum.runtime import EnumValue, build_enum, compile_schema  # noqa: E402
from reprenum.schema import VariantDecl, build_schema  # noqa: E402
from reprenum.synth import synthesize  # noqa: E402

__all__: list[str] = [
    "__version__",
    "ConversionContractError",
    "DiscriminantOutOfRange",
    "DuplicateVariant",
    "EnumValue",
    "MissingRepresentation",
    "MultipleCatchAll",
    "ReprEnumError",
    "ReservedName",
    "SchemaError",
    "SchemaSyntaxError",
    "UnknownVariantError",
    "UnsupportedRepresentation",
    "VariantDecl",
    "build_enum",
    "build_schema",
    "compile_schema",
    "generate",
    "parse_file",
    "parse_module",
    "synthesize",
]
