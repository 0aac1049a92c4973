#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
reprenum/codegen.py
===================

Python source generator for synthesized enums.

This module turns :class:`~reprenum.synth.ConversionSet` objects into a
standalone Python module.  The generated code:

1. Imports runtime support from ``reprenum.runtime``
2. Defines the named constants the schema references
3. Hoists every deferred discriminant into a module-level constant,
   computed once with wraparound in the enum's representation
4. Defines one :class:`~reprenum.runtime.EnumValue` subclass per enum,
   with ``to_int`` / ``try_to_int`` / ``from_int`` / ``try_from_int`` as
   ``if`` chains in declaration order followed by the fallback arm
5. Adds the representation-named aliases (``into_u8``, ``try_into_u8``)

The generated module behaves exactly like the class returned by
:func:`reprenum.runtime.build_enum` for the same conversion set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from reprenum.errors import UnresolvedConstantError
from reprenum.expr import iter_names, to_python
from reprenum.runtime import (
    GENERATED_IMPORTS,
    check_module_names,
    check_variant_names,
)
from reprenum.synth import (
    ConstRef,
    ConversionSet,
    Fallback,
    MatchKey,
    Operation,
    OperationKind,
)

__all__ = [
    "generate",
    "CodeGenerator",
    "CodeEmitter",
    "GeneratedModule",
]

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Low-level code emission with indentation management."""

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def emit_blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._buffer.write("\n")

    def emit_docstring(self, text: str) -> None:
        lines = text.strip().split("\n")
        if len(lines) == 1:
            self.emit(f'"""{lines[0]}"""')
        else:
            self.emit('"""' + lines[0])
            for line in lines[1:]:
                self.emit(line)
            self.emit('"""')

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    def block(self, header: str) -> "CodeEmitter._BlockContext":
        """Context manager for indented blocks."""
        return self._BlockContext(self, header)

    class _BlockContext:
        def __init__(self, emitter: "CodeEmitter", header: str) -> None:
            self._emitter = emitter
            self._header = header

        def __enter__(self) -> "CodeEmitter":
            self._emitter.emit(self._header)
            self._emitter.indent()
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter.dedent()

    def get_code(self) -> str:
        return self._buffer.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED MODULE CONTAINER
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class GeneratedModule:
    """Generated source plus the names it defines."""

    code: str
    source_name: str
    classes: List[str]
    constants: List[str]

    def write_to_file(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.code)


# ═══════════════════════════════════════════════════════════════════════════
# MAIN CODE GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

class CodeGenerator:
    """Emit a Python module for one or more conversion sets."""

    def __init__(
        self,
        constants: Optional[Mapping[str, int]] = None,
        *,
        source_name: str = "<schema>",
        preamble: Sequence[str] = (),
        header: bool = True,
    ) -> None:
        self.constants: Dict[str, int] = dict(constants or {})
        self.source_name = source_name
        self.preamble = list(preamble)
        self.header = header
        self.emitter = CodeEmitter()

    # -- driver -----------------------------------------------------------

    def generate(self, conversion_sets: Sequence[ConversionSet]) -> GeneratedModule:
        """Emit the module; names are checked before anything is written.

        Raises
        ------
        ReservedName
            If a constant, enum or variant name cannot be bound as
            emitted.
        UnresolvedConstantError
            If a deferred discriminant names a constant that is neither
            passed in nor expected from a preamble.
        """
        self._check_names(conversion_sets)
        e = self.emitter
        classes: List[str] = []

        self._emit_prologue()
        self._emit_constants(conversion_sets)

        for conversions in conversion_sets:
            e.emit_blank(2)
            classes.append(self._emit_enum(conversions))

        e.emit_blank(2)
        e.emit(f"__all__ = {classes!r}")

        return GeneratedModule(
            code=e.get_code(),
            source_name=self.source_name,
            classes=classes,
            constants=list(self.constants),
        )

    @staticmethod
    def _referenced(conversion_sets: Sequence[ConversionSet]) -> List[str]:
        names: Dict[str, None] = {}
        for conversions in conversion_sets:
            for const in conversions.constants:
                names.update(dict.fromkeys(iter_names(const.expr)))
        return list(names)

    def _check_names(self, conversion_sets: Sequence[ConversionSet]) -> None:
        external = [n for n in self._referenced(conversion_sets)
                    if n not in self.constants]
        check_module_names([*self.constants, *external],
                           [c.type_name for c in conversion_sets])
        for conversions in conversion_sets:
            check_variant_names(conversions.type_name,
                                conversions.representation.name,
                                conversions.variants)

    # -- prologue ---------------------------------------------------------

    def _emit_prologue(self) -> None:
        from reprenum import __version__

        e = self.emitter
        if self.header:
            e.emit("# -*- coding: utf-8 -*-")
            e.emit_docstring(
                f"Enum conversions generated by reprenum {__version__} "
                f"from {self.source_name}.\n\nDo not edit by hand."
            )
            e.emit_blank()
        e.emit("from reprenum.runtime import (")
        for name in GENERATED_IMPORTS:
            e.emit(f"    {name},")
        e.emit(")")
        for line in self.preamble:
            e.emit(line)

    def _emit_constants(self, conversion_sets: Sequence[ConversionSet]) -> None:
        e = self.emitter
        if self.constants:
            e.emit_blank()
            for name, value in self.constants.items():
                e.emit(f"{name} = {value!r}")

        missing = [n for n in self._referenced(conversion_sets)
                   if n not in self.constants]
        if missing and not self.preamble:
            raise UnresolvedConstantError(missing[0])
        for name in missing:
            _log.warning("constant %s is not defined in the generated module; "
                         "it must be provided by the preamble", name)

    # -- enum class -------------------------------------------------------

    def _emit_enum(self, conversions: ConversionSet) -> str:
        e = self.emitter
        cls_name = conversions.type_name
        repr_name = conversions.representation.name
        repr_var = f"_{cls_name}_REPR"

        e.emit(f"{repr_var} = REPRESENTATIONS[{repr_name!r}]")
        for const in conversions.constants:
            e.emit(f"{self._const_name(cls_name, const.name)} = "
                   f"{repr_var}.wrap({to_python(const.expr)})")
        e.emit_blank(2)

        with e.block(f"class {cls_name}(EnumValue):"):
            e.emit_docstring(f"Enum {conversions.type_name} (repr {repr_name}).")
            e.emit_blank()
            e.emit("__slots__ = ()")
            e.emit(f"_type_name = {conversions.type_name!r}")
            e.emit(f"_representation = {repr_var}")

            self._emit_to_int(cls_name, conversions["to_int"])
            self._emit_to_int(cls_name, conversions["try_to_int"])
            self._emit_from_int(cls_name, conversions["from_int"])
            self._emit_from_int(cls_name, conversions["try_from_int"])

            e.emit_blank()
            with e.block(f"def into_{repr_name}(self):"):
                e.emit("return self.to_int()")
            e.emit_blank()
            with e.block(f"def try_into_{repr_name}(self):"):
                e.emit("return self.try_to_int()")

        e.emit_blank(2)
        catch_all = conversions["from_int"].catch_all
        e.emit(f"{cls_name}._install({tuple(conversions.normals)!r}, "
               f"{catch_all!r})")
        return cls_name

    def _emit_to_int(self, cls_name: str, op: Operation) -> None:
        e = self.emitter
        e.emit_blank()
        with e.block(f"def {op.name}(self):"):
            if op.arms:
                e.emit("name = self.name")
            for arm in op.arms:
                with e.block(f"if name == {arm.variant!r}:"):
                    e.emit(f"return {self._key(cls_name, arm.key)}")
            if op.fallback is Fallback.CATCH_ALL:
                with e.block("if self.is_catch_all:"):
                    e.emit("return self.raw")
            if op.kind is OperationKind.TRY_TO_INT:
                e.emit("raise UnknownVariantError(self.name, self._type_name)")
            else:
                e.emit('raise ConversionContractError("unknown variant")')

    def _emit_from_int(self, cls_name: str, op: Operation) -> None:
        e = self.emitter
        e.emit_blank()
        e.emit("@classmethod")
        with e.block(f"def {op.name}(cls, number):"):
            e.emit("number = cls._check_range(number)")
            for arm in op.arms:
                with e.block(f"if number == {self._key(cls_name, arm.key)}:"):
                    e.emit(f"return cls.{arm.variant}")
            if op.fallback is Fallback.CATCH_ALL:
                e.emit(f"return cls.{op.catch_all}(number)")
            elif op.fallback is Fallback.ERROR:
                e.emit("raise UnknownVariantError(number, cls._type_name)")
            else:
                e.emit('raise ConversionContractError('
                       'f"unknown discriminant {number}")')

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _const_name(cls_name: str, const_name: str) -> str:
        return f"_{cls_name}_{const_name}"

    def _key(self, cls_name: str, key: MatchKey) -> str:
        if isinstance(key, ConstRef):
            return self._const_name(cls_name, key.name)
        return repr(key)


def generate(
    conversions: Union[ConversionSet, Sequence[ConversionSet]],
    constants: Optional[Mapping[str, int]] = None,
    *,
    source_name: str = "<schema>",
    preamble: Sequence[str] = (),
    header: bool = True,
) -> str:
    """Generate Python source for *conversions*.

    Parameters
    ----------
    conversions:
        One conversion set or a sequence of them (one class each).
    constants:
        Named constants to define at module level; deferred
        discriminants refer to them by name.
    preamble:
        Extra lines emitted after the imports, e.g. an import providing
        constants that are not passed in *constants*.
    """
    if isinstance(conversions, ConversionSet):
        conversions = [conversions]
    generator = CodeGenerator(
        constants,
        source_name=source_name,
        preamble=preamble,
        header=header,
    )
    return generator.generate(list(conversions)).code
