# tests/conftest.py
"""
Shared schema sources and fixtures for the reprenum test-suite.
"""

import textwrap

import pytest

from reprenum.parser import parse_module
from reprenum.runtime import compile_schema
from reprenum.schema import VariantDecl, build_schema


# ═══════════════════════════════════════════════════════════════════════════
# SCHEMA SOURCES
# ═══════════════════════════════════════════════════════════════════════════

NUMBER_RENUM = textwrap.dedent("""\
    (enum Number
      (repr u8)
      Zero
      One
      Two
      Three
      Four
      (Ten 10)
      Eleven
      (Unknown :unknown))
""")

STRICT_RENUM = textwrap.dedent("""\
    (enum Strict
      (repr u8)
      A
      B
      C)
""")

# Call/Ret hang off a named constant; Twenty/TwentyOne off a sum of
# literals.  Both stay symbolic until the tables are built.
OPCODE_RENUM = textwrap.dedent("""\
    ; instruction set
    (const BASE 0x40)

    (enum Opcode
      (repr u8)
      Nop                 ; 0
      Load                ; 1
      (Store 10)
      Jump                ; 11
      (Call (+ BASE 4))   ; 68
      Ret                 ; 69
      (Twenty (+ 10 10))
      TwentyOne
      (Other :unknown))
""")

OPCODE_VALUES = {
    "Nop": 0,
    "Load": 1,
    "Store": 10,
    "Jump": 11,
    "Call": 68,
    "Ret": 69,
    "Twenty": 20,
    "TwentyOne": 21,
}

WRAP_RENUM = textwrap.dedent("""\
    (const TOP 255)
    (enum Wrap
      (repr u8)
      (Max TOP)
      Over)
""")

DUPLICATE_DISCRIMINANT_RENUM = textwrap.dedent("""\
    (enum Dup
      (repr u8)
      (First 1)
      (Second 1)
      (Rest :unknown))
""")


def number_decls():
    """Declarations equivalent to NUMBER_RENUM."""
    from reprenum.expr import Literal

    return [
        VariantDecl("Zero"),
        VariantDecl("One"),
        VariantDecl("Two"),
        VariantDecl("Three"),
        VariantDecl("Four"),
        VariantDecl("Ten", Literal(10)),
        VariantDecl("Eleven"),
        VariantDecl("Unknown", catch_all=True),
    ]


def load_enum(src: str, name: str = None):
    """Parse + build + compile the named enum (first one by default)."""
    module = parse_module(src)
    decl = module[name] if name else module.enums[0]
    return compile_schema(decl.build(), module.constants)


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def number_schema():
    return build_schema("Number", "u8", number_decls())


@pytest.fixture
def Number():
    return load_enum(NUMBER_RENUM)


@pytest.fixture
def Strict():
    return load_enum(STRICT_RENUM)


@pytest.fixture
def Opcode():
    return load_enum(OPCODE_RENUM)
