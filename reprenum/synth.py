"""reprenum/synth.py – conversion synthesis.

:func:`synthesize` is a pure function from a finished
:class:`~reprenum.schema.VariantSchema` to a :class:`ConversionSet`: the
four conversion operations between enum values and their integer
representation, described as ordered match arms plus a fallback arm,
together with the hoisted constants that deferred discriminants compile to.

=================  ===========  =====================  =====================
operation          direction    fallback (catch-all)   fallback (none)
=================  ===========  =====================  =====================
``to_int``         value → int  unwrap raw integer     panic (unreachable)
``try_to_int``     value → int  unwrap raw integer     error (unreachable)
``from_int``       int → value  wrap raw integer       panic
``try_from_int``   int → value  wrap raw integer       ``UnknownVariantError``
=================  ===========  =====================  =====================

Reverse arms are tried in declaration order and the first match wins;
two variants resolving to the same integer are not rejected here.

Each deferred discriminant is hoisted exactly once into a
:class:`HoistedConstant` and referenced by :class:`ConstRef` from the
arms of all four operations, so both directions agree on its value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from reprenum.expr import Expr
from reprenum.representation import Representation
from reprenum.schema import VariantSchema

__all__ = [
    "OperationKind",
    "Fallback",
    "ConstRef",
    "MatchKey",
    "MatchArm",
    "HoistedConstant",
    "Operation",
    "ConversionSet",
    "synthesize",
]

_log = logging.getLogger(__name__)


class OperationKind(Enum):
    TO_INT = "to_int"
    TRY_TO_INT = "try_to_int"
    FROM_INT = "from_int"
    TRY_FROM_INT = "try_from_int"

    @property
    def fallible(self) -> bool:
        return self in (OperationKind.TRY_TO_INT, OperationKind.TRY_FROM_INT)

    @property
    def reverse(self) -> bool:
        """``True`` for the integer → value direction."""
        return self in (OperationKind.FROM_INT, OperationKind.TRY_FROM_INT)


class Fallback(Enum):
    CATCH_ALL = "catch_all"
    PANIC = "panic"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ConstRef:
    """Reference to a :class:`HoistedConstant` by name."""

    name: str

    def __str__(self) -> str:
        return self.name


MatchKey = Union[int, ConstRef]


@dataclass(frozen=True, slots=True)
class MatchArm:
    key: MatchKey
    variant: str


@dataclass(frozen=True, slots=True)
class HoistedConstant:
    name: str
    representation: Representation
    expr: Expr


@dataclass(frozen=True, slots=True)
class Operation:
    kind: OperationKind
    representation: Representation
    arms: Tuple[MatchArm, ...]
    fallback: Fallback
    catch_all: Optional[str] = None

    @property
    def name(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class ConversionSet:
    """Everything a back-end needs to realize one enum."""

    type_name: str
    representation: Representation
    variants: Tuple[str, ...]
    catch_all: Optional[str]
    constants: Tuple[HoistedConstant, ...]
    operations: Mapping[OperationKind, Operation]

    def __getitem__(self, key: Union[str, OperationKind]) -> Operation:
        if isinstance(key, str):
            key = OperationKind(key)
        return self.operations[key]

    def __iter__(self) -> Iterator[Operation]:
        return (self.operations[k] for k in OperationKind)

    @property
    def normals(self) -> Tuple[str, ...]:
        return tuple(v for v in self.variants if v != self.catch_all)

    def key_for(self, variant: str) -> MatchKey:
        for arm in self.operations[OperationKind.TO_INT].arms:
            if arm.variant == variant:
                return arm.key
        raise KeyError(variant)


def synthesize(schema: VariantSchema) -> ConversionSet:
    """Produce the four conversion operations for *schema*."""
    representation = schema.representation
    unknown = schema.unknown
    catch_all = unknown.name if unknown is not None else None

    constants: List[HoistedConstant] = []
    arms: List[MatchArm] = []
    for variant in schema.normals:
        disc = variant.discriminant
        key: MatchKey
        if disc.is_deferred:
            const = HoistedConstant(
                f"COMPUTED_{len(constants)}", representation, disc.to_expr()
            )
            constants.append(const)
            key = ConstRef(const.name)
        else:
            key = disc.literal
        arms.append(MatchArm(key, variant.name))

    operations: Dict[OperationKind, Operation] = {}
    for kind in OperationKind:
        if catch_all is not None:
            fallback = Fallback.CATCH_ALL
        elif kind.fallible:
            fallback = Fallback.ERROR
        else:
            fallback = Fallback.PANIC
        operations[kind] = Operation(
            kind=kind,
            representation=representation,
            arms=tuple(arms),
            fallback=fallback,
            catch_all=catch_all,
        )

    _log.debug("synthesized %s: %d arms, %d hoisted constants, catch-all=%s",
               schema.type_name, len(arms), len(constants), catch_all)

    return ConversionSet(
        type_name=schema.type_name,
        representation=representation,
        variants=tuple(v.name for v in schema.variants),
        catch_all=catch_all,
        constants=tuple(constants),
        operations=operations,
    )
