"""reprenum/runtime.py – runtime support for synthesized enums.

Two things live here:

* :class:`EnumValue`, the base class of every enum type, whether built
  dynamically by :func:`build_enum` or emitted as source by
  :mod:`reprenum.codegen` (generated modules import it from here);
* :func:`build_enum`, the table-driven back-end: it realizes the hoisted
  constants of a :class:`~reprenum.synth.ConversionSet` once, builds a
  forward table (variant → integer) and a first-match-wins reverse table
  (integer → variant), and returns a new :class:`EnumValue` subclass.

Usage
-----
::

    Number = compile_schema(build_schema("Number", "u8", decls))

    Number.Ten.to_int()          # 10
    Number.from_int(11)          # Number.Eleven
    Number.from_int(200)         # Number.Unknown(200)
    Number.Unknown(200).into_u8()

Error semantics
---------------
``from_int`` on an integer that matches nothing, on an enum without a
catch-all variant, violates the strict conversion contract and raises
:class:`~reprenum.errors.ConversionContractError`.  ``try_from_int``
raises :class:`~reprenum.errors.UnknownVariantError` (a ``ValueError``)
instead, which callers are expected to handle.
"""

from __future__ import annotations

import keyword
import logging
import operator
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
)

from reprenum.errors import (
    ConversionContractError,
    RepresentationRangeError,
    ReservedName,
    SourceSpan,
    UnknownVariantError,
)
from reprenum.expr import evaluate
from reprenum.representation import REPRESENTATIONS, Representation
from reprenum.schema import VariantSchema
from reprenum.synth import ConstRef, ConversionSet, Fallback, synthesize

__all__ = [
    "EnumValue",
    "CatchAll",
    "REPRESENTATIONS",
    "GENERATED_IMPORTS",
    "check_variant_names",
    "check_module_names",
    "realize_constants",
    "build_enum",
    "compile_schema",
    "ConversionContractError",
    "UnknownVariantError",
]

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  Enum values
# ═══════════════════════════════════════════════════════════════════════

class CatchAll:
    """Constructor installed as the catch-all variant's class attribute.

    ``Number.Unknown(300)`` wraps the raw integer 300.
    """

    __slots__ = ("owner", "name")

    def __init__(self, owner: Type["EnumValue"], name: str) -> None:
        self.owner = owner
        self.name = name

    def __call__(self, raw: int) -> "EnumValue":
        return self.owner._make(self.name, self.owner._check_range(raw))

    def matches(self, value: Any) -> bool:
        return (isinstance(value, self.owner) and value.is_catch_all)

    def __repr__(self) -> str:
        return f"<catch-all {self.owner.__name__}.{self.name}>"


class EnumValue(ABC):
    """Abstract base class for enum types with integer conversions.

    Normal variants are singletons stored as class attributes; the
    catch-all variant is a :class:`CatchAll` constructor.  Subclasses
    implement the four conversions.
    """

    __slots__ = ("_name", "_raw")

    _type_name: ClassVar[str] = "EnumValue"
    _representation: ClassVar[Representation] = REPRESENTATIONS["i64"]
    _members: ClassVar[Dict[str, "EnumValue"]] = {}
    _catch_all: ClassVar[Optional[str]] = None

    def __init__(self, name: str, raw: Optional[int] = None) -> None:
        self._name = name
        self._raw = raw

    # -- construction -----------------------------------------------------

    @classmethod
    def _make(cls, name: str, raw: Optional[int] = None) -> "EnumValue":
        return cls(name, raw)

    @classmethod
    def _install(
        cls,
        normals: Sequence[str],
        catch_all: Optional[str] = None,
    ) -> None:
        """Create the variant attributes on *cls*."""
        names = list(normals) + ([catch_all] if catch_all else [])
        for name in names:
            reason = _name_problem(name, lambda n: hasattr(cls, n))
            if reason is not None:
                raise ReservedName(name, reason, type_name=cls._type_name)
        members = {}
        for name in normals:
            member = cls._make(name)
            members[name] = member
            setattr(cls, name, member)
        cls._members = members
        cls._catch_all = catch_all
        if catch_all:
            setattr(cls, catch_all, CatchAll(cls, catch_all))

    @classmethod
    def _check_range(cls, raw: Any) -> int:
        number = operator.index(raw)
        if not cls._representation.contains(number):
            raise RepresentationRangeError(number, cls._representation.name)
        return number

    # -- introspection ----------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def raw(self) -> Optional[int]:
        """The wrapped integer of a catch-all value, else ``None``."""
        return self._raw

    @property
    def is_catch_all(self) -> bool:
        return self._name == type(self)._catch_all

    @classmethod
    def members(cls) -> Tuple["EnumValue", ...]:
        """Normal variants in declaration order."""
        return tuple(cls._members.values())

    @classmethod
    def representation(cls) -> Representation:
        return cls._representation

    # -- conversions ------------------------------------------------------

    @abstractmethod
    def to_int(self) -> int:
        ...

    @abstractmethod
    def try_to_int(self) -> int:
        ...

    @classmethod
    @abstractmethod
    def from_int(cls, number: int) -> "EnumValue":
        ...

    @classmethod
    @abstractmethod
    def try_from_int(cls, number: int) -> "EnumValue":
        ...

    def __int__(self) -> int:
        return self.to_int()

    def __index__(self) -> int:
        return self.to_int()

    # -- value semantics --------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._name == other._name and self._raw == other._raw

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._name, self._raw))

    def __repr__(self) -> str:
        if self.is_catch_all:
            return f"{type(self).__name__}.{self._name}({self._raw})"
        return f"{type(self).__name__}.{self._name}"

    __str__ = __repr__


class _TableEnum(EnumValue):
    """Table-driven conversions, used by :func:`build_enum`."""

    __slots__ = ()

    _forward: ClassVar[Dict[str, int]] = {}
    _reverse: ClassVar[Dict[int, str]] = {}

    def to_int(self) -> int:
        if self.is_catch_all:
            return self._raw  # type: ignore[return-value]
        try:
            return self._forward[self._name]
        except KeyError:
            raise ConversionContractError("unknown variant") from None

    def try_to_int(self) -> int:
        if self.is_catch_all:
            return self._raw  # type: ignore[return-value]
        try:
            return self._forward[self._name]
        except KeyError:
            raise UnknownVariantError(self._name, self._type_name) from None

    @classmethod
    def from_int(cls, number: int) -> EnumValue:
        number = cls._check_range(number)
        name = cls._reverse.get(number)
        if name is not None:
            return cls._members[name]
        if cls._catch_all:
            return cls._make(cls._catch_all, number)
        raise ConversionContractError(f"unknown discriminant {number}")

    @classmethod
    def try_from_int(cls, number: int) -> EnumValue:
        number = cls._check_range(number)
        name = cls._reverse.get(number)
        if name is not None:
            return cls._members[name]
        if cls._catch_all:
            return cls._make(cls._catch_all, number)
        raise UnknownVariantError(number, cls._type_name)


# ═══════════════════════════════════════════════════════════════════════
#  Name checks
# ═══════════════════════════════════════════════════════════════════════

# Names every generated module binds at top level.
GENERATED_IMPORTS: Tuple[str, ...] = (
    "REPRESENTATIONS",
    "ConversionContractError",
    "EnumValue",
    "UnknownVariantError",
)


def _name_problem(name: str, taken: Callable[[str], bool]) -> Optional[str]:
    if not name.isidentifier() or keyword.iskeyword(name):
        return "is not a Python identifier"
    if name.startswith("_"):
        return "starts with an underscore"
    if taken(name):
        return "is already in use"
    return None


def _alias_names(repr_name: str) -> Tuple[str, str]:
    return f"into_{repr_name}", f"try_into_{repr_name}"


def check_variant_names(
    type_name: str,
    repr_name: str,
    names: Iterable[str],
    spans: Optional[Mapping[str, Optional[SourceSpan]]] = None,
) -> None:
    """Reject variant names that cannot become class attributes.

    Applies the same rule as :meth:`EnumValue._install`, before any class
    exists: a variant may not shadow an attribute of :class:`EnumValue`,
    of its metaclass or the ``into_<repr>`` aliases.

    Raises
    ------
    ReservedName
        For the first offending name.
    """
    reserved = (set(dir(EnumValue)) | set(dir(type(EnumValue)))
                | set(_alias_names(repr_name)))
    for name in names:
        reason = _name_problem(name, reserved.__contains__)
        if reason is not None:
            raise ReservedName(name, reason, type_name=type_name,
                               span=(spans or {}).get(name))


def check_module_names(
    constants: Iterable[str],
    enum_names: Iterable[str],
    spans: Optional[Mapping[str, Optional[SourceSpan]]] = None,
) -> None:
    """Reject constant and enum names that clash in a generated module.

    Enum names may not shadow :data:`GENERATED_IMPORTS` or repeat;
    constants may not shadow either of those nor an enum.  Names with a
    leading underscore are kept for the per-enum ``_<Enum>_...`` globals.
    """
    spans = spans or {}
    reserved = set(GENERATED_IMPORTS) | {"__all__"}
    enums: set = set()
    for name in enum_names:
        reason = _name_problem(name, lambda n: n in reserved or n in enums)
        if reason is not None:
            raise ReservedName(name, reason, type_name=name,
                               span=spans.get(name))
        enums.add(name)
    for name in constants:
        reason = _name_problem(name, lambda n: n in reserved or n in enums)
        if reason is not None:
            raise ReservedName(name, reason, span=spans.get(name))


# ═══════════════════════════════════════════════════════════════════════
#  Table construction
# ═══════════════════════════════════════════════════════════════════════

def realize_constants(
    conversions: ConversionSet,
    constants: Optional[Mapping[str, int]] = None,
) -> Dict[str, int]:
    """Compute every hoisted constant once, wrapped to the representation."""
    env = dict(constants or {})
    realized: Dict[str, int] = {}
    for const in conversions.constants:
        realized[const.name] = const.representation.wrap(
            evaluate(const.expr, env)
        )
    return realized


def _alias_methods(repr_name: str) -> Dict[str, Any]:
    def into(self: EnumValue) -> int:
        return self.to_int()

    def try_into(self: EnumValue) -> int:
        return self.try_to_int()

    into.__name__, try_into.__name__ = _alias_names(repr_name)
    return {into.__name__: into, try_into.__name__: try_into}


def build_enum(
    conversions: ConversionSet,
    constants: Optional[Mapping[str, int]] = None,
    *,
    module: Optional[str] = None,
) -> Type[EnumValue]:
    """Create an :class:`EnumValue` subclass implementing *conversions*.

    Parameters
    ----------
    conversions:
        Output of :func:`reprenum.synth.synthesize`.
    constants:
        Values for the named constants referenced by deferred
        discriminants.
    module:
        Optional ``__module__`` for the new class.

    Raises
    ------
    UnresolvedConstantError
        If a hoisted constant references a name missing from *constants*.
    ReservedName
        If a variant name cannot become a class attribute.
    """
    check_variant_names(conversions.type_name,
                        conversions.representation.name,
                        conversions.variants)
    realized = realize_constants(conversions, constants)

    def key_value(key: Any) -> int:
        if isinstance(key, ConstRef):
            return realized[key.name]
        return key

    to_int = conversions["to_int"]
    from_int = conversions["from_int"]

    forward = {arm.variant: key_value(arm.key) for arm in to_int.arms}
    reverse: Dict[int, str] = {}
    for arm in from_int.arms:
        value = key_value(arm.key)
        if value in reverse:
            _log.debug("%s.%s shadowed by %s.%s (both %d)",
                       conversions.type_name, arm.variant,
                       conversions.type_name, reverse[value], value)
            continue
        reverse[value] = arm.variant

    catch_all = from_int.catch_all if from_int.fallback is Fallback.CATCH_ALL else None

    namespace: Dict[str, Any] = {
        "__slots__": (),
        "__doc__": f"Enum {conversions.type_name} "
                   f"(repr {conversions.representation.name}).",
        "_type_name": conversions.type_name,
        "_representation": conversions.representation,
        "_forward": forward,
        "_reverse": reverse,
    }
    if module is not None:
        namespace["__module__"] = module
    namespace.update(_alias_methods(conversions.representation.name))

    cls = type(_TableEnum)(conversions.type_name, (_TableEnum,), namespace)
    cls._install(conversions.normals, catch_all)

    _log.debug("built %s with %d variants (%d computed)",
               conversions.type_name, len(forward), len(realized))
    return cls


def compile_schema(
    schema: VariantSchema,
    constants: Optional[Mapping[str, int]] = None,
    *,
    module: Optional[str] = None,
) -> Type[EnumValue]:
    """Synthesize and build an enum class straight from a schema."""
    return build_enum(synthesize(schema), constants, module=module)
