#!/usr/bin/env python3
"""reprenum/main.py — CLI entry-point for reprenum.

Usage examples
--------------
    # Generate a Python module implementing every enum in a schema file
    python -m reprenum generate opcodes.renum --output opcodes.py

    # Show the resolved discriminant of every variant
    python -m reprenum resolve opcodes.renum
    python -m reprenum resolve opcodes.renum --format json

    # Validate a schema file without producing output
    python -m reprenum check opcodes.renum

Exit codes
----------
    0   Success.
    1   The schema is invalid (diagnostic printed to stderr).
    2   Infrastructure failure (missing file, unwritable output, ...).

The module doubles as ``python -m reprenum`` via the companion
``reprenum/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from reprenum import __version__
from reprenum.codegen import CodeGenerator
from reprenum.errors import ReprEnumError, UnresolvedConstantError
from reprenum.expr import to_sexp
from reprenum.parser import SchemaModule, parse_file
from reprenum.runtime import check_variant_names, realize_constants
from reprenum.schema import NormalVariant, VariantSchema
from reprenum.synth import ConstRef, synthesize

_log = logging.getLogger("reprenum")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``reprenum`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.set_name("reprenum-cli")
    root = logging.getLogger("reprenum")
    root.setLevel(level)
    for old in [h for h in root.handlers if h.get_name() == "reprenum-cli"]:
        root.removeHandler(old)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _report(exc: ReprEnumError, fmt: str = "text") -> None:
    if fmt == "json":
        print(json.dumps(exc.to_json(), indent=2), file=sys.stderr)
    else:
        print(exc.to_gcc_format(), file=sys.stderr)


def _load(args: argparse.Namespace) -> tuple[SchemaModule, List[VariantSchema]]:
    path = _resolve_path(args.schema_file, "schema file")
    _log.info("Parsing %s", path)
    module = parse_file(path)
    schemas = module.build()
    for schema in schemas:
        check_variant_names(
            schema.type_name,
            schema.representation.name,
            [v.name for v in schema.variants],
            {v.name: v.span for v in schema.variants},
        )
        try:
            realize_constants(synthesize(schema), module.constants)
        except UnresolvedConstantError as exc:
            raise UnresolvedConstantError(exc.name, span=schema.span) from None
    _log.info("Resolved %d enum(s)", len(schemas))
    return module, schemas


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

def cmd_generate(args: argparse.Namespace) -> int:
    """Write a Python module implementing the schema's enums."""
    try:
        module, schemas = _load(args)
        generated = CodeGenerator(
            module.constants,
            source_name=Path(module.filename).name,
        ).generate([synthesize(schema) for schema in schemas])
    except ReprEnumError as exc:
        _report(exc)
        return EXIT_ERROR

    if args.output is None or args.output == "-":
        sys.stdout.write(generated.code)
        return EXIT_OK

    dest = Path(args.output).expanduser().resolve()
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        generated.write_to_file(dest)
    except OSError as exc:
        _log.error("Cannot write output: %s", exc)
        return EXIT_INFRA
    _log.info("Wrote %s (%s)", dest, ", ".join(generated.classes))
    return EXIT_OK


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------

def _resolved_rows(
    schema: VariantSchema,
    constants: Dict[str, int],
) -> List[Dict[str, Any]]:
    conversions = synthesize(schema)
    realized = realize_constants(conversions, constants)
    rows: List[Dict[str, Any]] = []
    for variant in schema.variants:
        row: Dict[str, Any] = {"name": variant.name}
        if isinstance(variant, NormalVariant):
            key = conversions.key_for(variant.name)
            if isinstance(key, ConstRef):
                row["value"] = realized[key.name]
                row["expr"] = to_sexp(variant.discriminant.to_expr())
            else:
                row["value"] = key
        else:
            row["catch_all"] = True
        rows.append(row)
    return rows


def cmd_resolve(args: argparse.Namespace) -> int:
    """Print the discriminant of every variant."""
    try:
        module, schemas = _load(args)
        tables = {
            schema.type_name: (schema, _resolved_rows(schema, module.constants))
            for schema in schemas
        }
    except ReprEnumError as exc:
        _report(exc, args.format)
        return EXIT_ERROR

    if args.format == "json":
        payload = {
            name: {"repr": schema.representation.name, "variants": rows}
            for name, (schema, rows) in tables.items()
        }
        print(json.dumps(payload, indent=2))
        return EXIT_OK

    for name, (schema, rows) in tables.items():
        print(f"{name} ({schema.representation.name})")
        for row in rows:
            if row.get("catch_all"):
                print(f"  {row['name']:<24} <catch-all>")
            elif "expr" in row:
                print(f"  {row['name']:<24} {row['value']}  = {row['expr']}")
            else:
                print(f"  {row['name']:<24} {row['value']}")
    return EXIT_OK


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Validate a schema file."""
    try:
        _, schemas = _load(args)
    except ReprEnumError as exc:
        _report(exc)
        return EXIT_ERROR
    for schema in schemas:
        _log.info("%s: %d variants OK", schema.type_name, len(schema))
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reprenum",
        description="Resolve enum discriminants and generate integer conversions.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v INFO, -vv DEBUG).",
    )

    subparsers = parser.add_subparsers(title="commands", metavar="<command>")

    p_generate = subparsers.add_parser(
        "generate", help="Generate a Python module from a schema file."
    )
    p_generate.add_argument("schema_file", help="Path to the schema file.")
    p_generate.add_argument(
        "-o", "--output",
        default=None,
        help="Output path (default: stdout).",
    )
    p_generate.set_defaults(func=cmd_generate)

    p_resolve = subparsers.add_parser(
        "resolve", help="Print the resolved discriminants."
    )
    p_resolve.add_argument("schema_file", help="Path to the schema file.")
    p_resolve.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    p_resolve.set_defaults(func=cmd_resolve)

    p_check = subparsers.add_parser("check", help="Validate a schema file.")
    p_check.add_argument("schema_file", help="Path to the schema file.")
    p_check.set_defaults(func=cmd_check)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the reprenum CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
