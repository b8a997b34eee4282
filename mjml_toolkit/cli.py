"""Command-line interface for MJML Toolkit.

Sub-commands work on MJML files through the same core the editor uses.

Examples
--------
Re-serialise a file in canonical form::

    $ mjml-toolkit format email.mjml -o email.formatted.mjml

Check a file for parse errors and schema warnings::

    $ mjml-toolkit validate email.mjml

Compile to HTML (requires the ``mjml`` executable)::

    $ mjml-toolkit compile email.mjml -o email.html

Convert a plain HTML e-mail::

    $ mjml-toolkit from-html legacy.html -o email.mjml

Start from a built-in template::

    $ mjml-toolkit new --template newsletter
"""

import argparse
from dataclasses import replace
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from mjml_toolkit.core.generators.mjml_builder import generate_mjml
from mjml_toolkit.core.importers.html_importer import import_html
from mjml_toolkit.core.importers.mjml_importer import MjmlParseError, parse_mjml
from mjml_toolkit.core.models import HeadSettings
from mjml_toolkit.core.preview.mjml_compiler import CliMjmlCompiler
from mjml_toolkit.core.schema import get_default_schema
from mjml_toolkit.core.templates import TEMPLATE_INDEX, empty_document, get_template
from mjml_toolkit.logging_config import setup_logging
from mjml_toolkit.version import get_app_version

logger = logging.getLogger(__name__)

__all__ = ["main", "create_parser"]

EXIT_SUCCESS = 0
EXIT_PARSING_ERROR = 1
EXIT_FILE_ERROR = 4
EXIT_RENDERING_ERROR = 7


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mjml-toolkit",
        description="Edit, validate and convert MJML e-mail documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable logging from config files")
    sub = parser.add_subparsers(dest="command", required=True)

    fmt = sub.add_parser("format", help="Re-serialise an MJML file in canonical form")
    fmt.add_argument("file", type=Path)
    fmt.add_argument("-o", "--out", type=Path, help="Write to this file instead of stdout")

    validate = sub.add_parser("validate", help="Report parse errors and schema warnings")
    validate.add_argument("file", type=Path)

    comp = sub.add_parser("compile", help="Compile an MJML file to HTML with the mjml executable")
    comp.add_argument("file", type=Path)
    comp.add_argument("-o", "--out", type=Path, help="Write to this file instead of stdout")

    html = sub.add_parser("from-html", help="Convert a plain HTML e-mail to MJML")
    html.add_argument("file", type=Path)
    html.add_argument("-o", "--out", type=Path, help="Write to this file instead of stdout")

    new = sub.add_parser("new", help="Write an empty document or a built-in template")
    new.add_argument("--template", choices=sorted(TEMPLATE_INDEX), help="Template id")
    new.add_argument("--title", default="", help="Document title")
    new.add_argument("-o", "--out", type=Path, help="Write to this file instead of stdout")

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _emit(text: str, out: Optional[Path]) -> None:
    if out is None:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    out.write_text(text, encoding="utf-8")
    logger.info("Wrote %s", out)


def _report_parse_error(path: Path, exc: MjmlParseError) -> int:
    line = getattr(exc, "line", None)
    location = f"{path}:{line}" if line else str(path)
    print(f"{location}: {exc}", file=sys.stderr)
    return EXIT_PARSING_ERROR


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_format(args: argparse.Namespace) -> int:
    parsed = parse_mjml(_read(args.file))
    _emit(generate_mjml(parsed.document, parsed.head_settings), args.out)
    return EXIT_SUCCESS


def _cmd_validate(args: argparse.Namespace) -> int:
    parsed = parse_mjml(_read(args.file))
    warnings = list(parsed.warnings)
    seen = {(w.code, w.node_id) for w in warnings}
    for warning in get_default_schema().validate_document(parsed.document):
        if (warning.code, warning.node_id) not in seen:
            warnings.append(warning)
    for warning in warnings:
        print(f"{args.file}: warning: {warning.message}")
    print(f"{args.file}: OK ({len(warnings)} warning(s))")
    return EXIT_SUCCESS


def _cmd_compile(args: argparse.Namespace) -> int:
    result = CliMjmlCompiler().compile(_read(args.file))
    for error in result.errors:
        print(f"{args.file}: {error}", file=sys.stderr)
    if not result.html:
        return EXIT_RENDERING_ERROR
    _emit(result.html, args.out)
    return EXIT_SUCCESS


def _cmd_from_html(args: argparse.Namespace) -> int:
    parsed = import_html(_read(args.file))
    for warning in parsed.warnings:
        print(f"{args.file}: {warning.message}", file=sys.stderr)
    _emit(generate_mjml(parsed.document, parsed.head_settings), args.out)
    return EXIT_SUCCESS


def _cmd_new(args: argparse.Namespace) -> int:
    document, head = empty_document(), HeadSettings()
    if args.template:
        template = get_template(args.template)
        document, head = template.document, template.head_settings or head
    if args.title:
        head = replace(head, title=args.title)
    _emit(generate_mjml(document, head), args.out)
    return EXIT_SUCCESS


_COMMANDS = {
    "format": _cmd_format,
    "validate": _cmd_validate,
    "compile": _cmd_compile,
    "from-html": _cmd_from_html,
    "new": _cmd_new,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        setup_logging()

    try:
        return _COMMANDS[args.command](args)
    except MjmlParseError as exc:
        return _report_parse_error(getattr(args, "file", Path(args.command)), exc)
    except OSError as exc:
        print(f"mjml-toolkit: {exc}", file=sys.stderr)
        return EXIT_FILE_ERROR


if __name__ == "__main__":
    sys.exit(main())
