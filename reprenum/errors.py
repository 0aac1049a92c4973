# reprenum/errors.py
"""
reprenum Error Types and Reporting Module

This module provides the error handling infrastructure for the reprenum
pipeline: schema parsing, discriminant resolution, conversion synthesis,
constant realization and the runtime conversions of generated enums.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  ReprEnumError (base)                                                       │
│  ├── SchemaSyntaxError          - Malformed schema source                   │
│  ├── SchemaError                - Schema construction failures              │
│  │   ├── MissingRepresentation                                              │
│  │   ├── UnsupportedRepresentation                                          │
│  │   ├── DuplicateVariant                                                   │
│  │   ├── MultipleCatchAll                                                   │
│  │   ├── DiscriminantOutOfRange                                             │
│  │   └── ReservedName                                                       │
│  ├── UnresolvedConstantError    - Named constant missing at realization     │
│  ├── UnknownVariantError        - Fallible reverse conversion (ValueError)  │
│  ├── RepresentationRangeError   - Integer outside the repr (ValueError)     │
│  └── ConversionContractError    - Strict conversion contract violation      │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code following the pattern RENUM-XXXX where XXXX
is a 4-digit number in ranges:
  - 1000-1999: Syntax errors
  - 2000-2999: Schema construction errors
  - 4000-4999: Realization errors
  - 5000-5999: Runtime conversion errors
  - 9000-9999: Internal contract violations

Example Usage:
──────────────
    from reprenum.errors import DuplicateVariant, SchemaError

    try:
        schema = build_schema("Color", "u8", decls)
    except SchemaError as exc:
        print(exc.to_gcc_format(), file=sys.stderr)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, List, Optional

__all__ = [
    "ErrorSeverity",
    "ErrorPhase",
    "ErrorCode",
    "ReprEnumErrorCodes",
    "SourceSpan",
    "ErrorNote",
    "ErrorMessage",
    "ReprEnumError",
    "SchemaSyntaxError",
    "SchemaError",
    "MissingRepresentation",
    "UnsupportedRepresentation",
    "DuplicateVariant",
    "MultipleCatchAll",
    "DiscriminantOutOfRange",
    "ReservedName",
    "UnresolvedConstantError",
    "UnknownVariantError",
    "RepresentationRangeError",
    "ConversionContractError",
]


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for reprenum errors."""

    # Errors that abort schema construction or code generation
    FATAL = "fatal"

    # Standard errors that must be fixed
    ERROR = "error"

    WARNING = "warning"


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"          # Schema source parsing
    SCHEMA = "schema"          # Validation and discriminant resolution
    REALIZE = "realize"        # Hoisted constant computation
    RUNTIME = "runtime"        # Conversions on enum values
    INTERNAL = "internal"      # Contract violations


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``PREFIX-NNNN``.

    The number range encodes the phase (see module docstring).
    """

    __slots__ = ("prefix", "number", "name", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        name: str,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.name = name
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ReprEnumErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    MALFORMED_SEXP = ErrorCode(
        "RENUM", 1000, "MALFORMED_SEXP", ErrorPhase.SYNTAX
    )
    UNEXPECTED_FORM = ErrorCode(
        "RENUM", 1001, "UNEXPECTED_FORM", ErrorPhase.SYNTAX
    )
    INVALID_EXPRESSION = ErrorCode(
        "RENUM", 1002, "INVALID_EXPRESSION", ErrorPhase.SYNTAX
    )
    DUPLICATE_CLAUSE = ErrorCode(
        "RENUM", 1003, "DUPLICATE_CLAUSE", ErrorPhase.SYNTAX
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # SCHEMA ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    MISSING_REPRESENTATION = ErrorCode(
        "RENUM", 2000, "MISSING_REPRESENTATION", ErrorPhase.SCHEMA
    )
    UNSUPPORTED_REPRESENTATION = ErrorCode(
        "RENUM", 2001, "UNSUPPORTED_REPRESENTATION", ErrorPhase.SCHEMA
    )
    DUPLICATE_VARIANT = ErrorCode(
        "RENUM", 2002, "DUPLICATE_VARIANT", ErrorPhase.SCHEMA
    )
    MULTIPLE_CATCH_ALL = ErrorCode(
        "RENUM", 2003, "MULTIPLE_CATCH_ALL", ErrorPhase.SCHEMA
    )
    DISCRIMINANT_OUT_OF_RANGE = ErrorCode(
        "RENUM", 2004, "DISCRIMINANT_OUT_OF_RANGE", ErrorPhase.SCHEMA
    )
    RESERVED_NAME = ErrorCode(
        "RENUM", 2005, "RESERVED_NAME", ErrorPhase.SCHEMA
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # REALIZATION ERRORS (4000-4999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNRESOLVED_CONSTANT = ErrorCode(
        "RENUM", 4000, "UNRESOLVED_CONSTANT", ErrorPhase.REALIZE
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RUNTIME ERRORS (5000-5999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNKNOWN_VARIANT = ErrorCode(
        "RENUM", 5000, "UNKNOWN_VARIANT", ErrorPhase.RUNTIME
    )
    OUT_OF_REPRESENTATION = ErrorCode(
        "RENUM", 5001, "OUT_OF_REPRESENTATION", ErrorPhase.RUNTIME
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL ERRORS (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    CONTRACT_VIOLATION = ErrorCode(
        "RENUM", 9000, "CONTRACT_VIOLATION", ErrorPhase.INTERNAL,
        default_severity=ErrorSeverity.FATAL,
    )
    INTERNAL_ERROR = ErrorCode(
        "RENUM", 9999, "INTERNAL_ERROR", ErrorPhase.INTERNAL,
        default_severity=ErrorSeverity.FATAL,
    )


# Short alias
E = ReprEnumErrorCodes


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of schema source with start and end positions.

    The front-end attaches one of these to every declaration so that
    schema errors can point back at the offending variant.
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """Additional note attached to an error."""

    message: str
    span: Optional[SourceSpan] = None
    label: str = ""  # e.g., "note", "help"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete error message with all context.

    This is the internal representation of an error before it is printed
    or serialized by the command-line front-end.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ErrorMessage":
        """Add a note to this error message."""
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        lines = [f"{self.span}: {severity}: {self.message} [{self.code}]"]
        for note in self.notes:
            lines.append(str(note))
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "name": self.code.name,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "phase": self.code.phase.value,
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
            },
            "notes": [
                {"message": note.message, "label": note.label}
                for note in self.notes
            ],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class ReprEnumError(Exception):
    """
    Base exception for all reprenum errors.

    Carries a structured :class:`ErrorMessage`; ``str(exc)`` is the plain
    message so that runtime conversion errors read naturally, while
    :meth:`to_gcc_format` gives the full diagnostic.
    """

    default_code: ErrorCode = E.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            severity=severity,
            notes=notes or [],
            hint=hint,
        )

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def message(self) -> str:
        return self.error_message.message

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ReprEnumError":
        """Add a note to this error."""
        self.error_message.add_note(message, span, label)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def to_json(self) -> Dict[str, Any]:
        return self.error_message.to_json()

    def __str__(self) -> str:
        return self.error_message.message


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class SchemaSyntaxError(ReprEnumError):
    """Malformed schema source text."""

    default_code = E.UNEXPECTED_FORM


# ───────────────────────────────────────────────────────────────────────────────
# SCHEMA CONSTRUCTION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class SchemaError(ReprEnumError):
    """Error raised while building a variant schema."""

    default_code = E.MISSING_REPRESENTATION

    def __init__(
        self,
        message: str,
        type_name: str = "",
        variant: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.type_name = type_name
        self.variant = variant


class MissingRepresentation(SchemaError):
    """No integer representation was declared for the enum."""

    def __init__(
        self,
        type_name: str = "",
        span: Optional[SourceSpan] = None,
    ) -> None:
        subject = f"enum '{type_name}'" if type_name else "enum"
        super().__init__(
            f"no representation declared for {subject}",
            type_name=type_name,
            code=E.MISSING_REPRESENTATION,
            span=span,
            hint="add a (repr <integer type>) clause, e.g. (repr u8)",
        )


class UnsupportedRepresentation(SchemaError):
    """The declared representation is not a recognized integer type."""

    def __init__(
        self,
        token: str,
        type_name: str = "",
        span: Optional[SourceSpan] = None,
    ) -> None:
        if token == "C":
            message = "repr(C) is currently not supported"
        else:
            message = f"unexpected representation '{token}' for enum"
        super().__init__(
            message,
            type_name=type_name,
            code=E.UNSUPPORTED_REPRESENTATION,
            span=span,
            hint="use one of i8 i16 i32 i64 i128 isize u8 u16 u32 u64 u128 usize",
        )
        self.token = token


class DuplicateVariant(SchemaError):
    """Two variants share a name."""

    def __init__(
        self,
        variant: str,
        type_name: str = "",
        span: Optional[SourceSpan] = None,
        original_span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            f"duplicate variant: {variant}",
            type_name=type_name,
            variant=variant,
            code=E.DUPLICATE_VARIANT,
            span=span,
        )
        if original_span is not None:
            self.add_note("previously declared here", span=original_span)


class MultipleCatchAll(SchemaError):
    """More than one variant was marked as the catch-all."""

    def __init__(
        self,
        variant: str,
        first: str = "",
        type_name: str = "",
        span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            "an enum can only have one unknown variant",
            type_name=type_name,
            variant=variant,
            code=E.MULTIPLE_CATCH_ALL,
            span=span,
        )
        self.first = first
        if first:
            self.add_note(f"'{first}' is already the unknown variant")


class DiscriminantOutOfRange(SchemaError):
    """A literal discriminant does not fit the representation."""

    def __init__(
        self,
        variant: str,
        value: int,
        representation: str,
        type_name: str = "",
        span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            f"discriminant {value} of variant '{variant}' is out of range "
            f"for {representation}",
            type_name=type_name,
            variant=variant,
            code=E.DISCRIMINANT_OUT_OF_RANGE,
            span=span,
        )
        self.value = value
        self.representation = representation


class ReservedName(SchemaError):
    """A variant, enum or constant name cannot be bound in Python."""

    def __init__(
        self,
        name: str,
        reason: str,
        type_name: str = "",
        span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            f"name '{name}' {reason}",
            type_name=type_name,
            variant=name,
            code=E.RESERVED_NAME,
            span=span,
        )
        self.name = name
        self.reason = reason


# ───────────────────────────────────────────────────────────────────────────────
# REALIZATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class UnresolvedConstantError(ReprEnumError):
    """A symbolic discriminant references a constant with no value."""

    default_code = E.UNRESOLVED_CONSTANT

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        super().__init__(f"unresolved constant '{name}'", span=span)
        self.name = name


# ───────────────────────────────────────────────────────────────────────────────
# RUNTIME ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class UnknownVariantError(ReprEnumError, ValueError):
    """No variant matches an integer and the enum has no catch-all."""

    default_code = E.UNKNOWN_VARIANT

    def __init__(self, value: Any = None, type_name: str = "") -> None:
        message = "unknown variant"
        if value is not None:
            message = f"unknown variant {value!r}"
            if type_name:
                message += f" for {type_name}"
        super().__init__(message)
        self.value = value
        self.type_name = type_name


class RepresentationRangeError(ReprEnumError, ValueError):
    """An integer does not fit the enum's representation."""

    default_code = E.OUT_OF_REPRESENTATION

    def __init__(self, value: Any, representation: str) -> None:
        super().__init__(f"{value!r} does not fit in {representation}")
        self.value = value
        self.representation = representation


class ConversionContractError(ReprEnumError):
    """A strict conversion reached a case with no defined result."""

    default_code = E.CONTRACT_VIOLATION
