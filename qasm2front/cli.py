from __future__ import annotations

import argparse
import importlib.metadata
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from qasm2front.ast_nodes import Program, to_dict
from qasm2front.errors import QasmError
from qasm2front.lexer import tokenize
from qasm2front.parser import parse_program
from qasm2front.preprocess import expand

_LOG = logging.getLogger("qasm2-parse")


def _build_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    examples = (
        "Examples:\n"
        "  qasm2-parse --in circuit.qasm\n"
        "  qasm2-parse --in circuit.qasm --out circuit.json --include-dir lib/"
    )
    parser = argparse.ArgumentParser(
        prog="qasm2-parse",
        description="Parse an OpenQASM 2 circuit and print its syntax tree.",
        epilog=examples,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i",
        "--in",
        dest="input_path",
        required=True,
        help="Path to the OpenQASM 2 source file that should be parsed.",
    )
    parser.add_argument(
        "-o",
        "--out",
        dest="output_path",
        help="Destination path for the syntax tree (defaults to stdout).",
    )
    parser.add_argument(
        "-I",
        "--include-dir",
        dest="include_dir",
        help="Directory used to resolve include directives (defaults to the input file's directory).",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="output_format",
        choices=["json", "repr"],
        default="json",
        help="Output representation to generate (default: json).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Emit verbose logging (debug level).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_distribution_version()}",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    """Configure the logging subsystem for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _distribution_version() -> str:
    """Best-effort lookup of the installed package version."""
    try:
        return importlib.metadata.version("qasm2-frontend")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _report_qasm_error(err: QasmError) -> None:
    """Print a formatted QASM diagnostic to stderr."""
    print(f"Error {err.code} at line {err.line}, col {err.col}: {err.message}", file=sys.stderr)


def _render(program: Program, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(to_dict(program), indent=2)
    return "\n".join(repr(statement) for statement in program.statements)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    input_path = Path(args.input_path)
    include_dir = Path(args.include_dir) if args.include_dir else input_path.parent

    _LOG.debug("Input file: %s", input_path)
    _LOG.debug("Include directory: %s", include_dir)
    _LOG.debug("Requested format: %s", args.output_format)

    try:
        source = input_path.read_text(encoding="utf-8")
    except (FileNotFoundError, PermissionError) as exc:
        print(f"Failed to read input file '{input_path}': {exc}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error reading input file '{input_path}': {exc}", file=sys.stderr)
        return 1

    try:
        expanded = expand(source, include_dir, origin=input_path)
        _LOG.debug("Preprocessing complete.")
        tokens = tokenize(expanded)
        _LOG.debug("Lexed %d tokens.", len(tokens))
        program = parse_program(tokens)
    except QasmError as err:
        _report_qasm_error(err)
        return 1

    rendered = _render(program, args.output_format)
    if args.output_path is None:
        print(rendered)
    else:
        try:
            Path(args.output_path).write_text(rendered + "\n", encoding="utf-8")
        except OSError as exc:
            print(f"Failed to write output file '{args.output_path}': {exc}", file=sys.stderr)
            return 1

    _LOG.info("Parsed %d statements", len(program.statements))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
