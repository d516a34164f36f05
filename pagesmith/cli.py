"""Main entry point for the pagesmith CLI."""
from __future__ import annotations

import asyncio
import logging
import re
import sys
from pathlib import Path

from pagesmith import __version__
from pagesmith.config import settings
from pagesmith.kernel.assembly import DocumentNotFound, EditorAssembly, FileStorage
from pagesmith.kernel.serialization import DocumentValidationError, load_document
from pagesmith.kernel.tree import count_nodes
from pagesmith.kernel.types import VIEWPORTS, WIDGET_CATEGORIES
from pagesmith.kernel.widgets import list_widgets_by_category

COMMANDS = ("import", "export", "validate", "widgets")


def print_help():
    """Print help message."""
    print(f"""
pagesmith v{__version__}

Usage:
  pagesmith [options] <command> [argument]

Commands:
  import FILE       Parse a markup file into a stored document
  export ID         Export a stored document as standalone markup
  validate FILE     Check a serialized JSON document
  widgets           List the available widget types

Options:
  --doc ID          Document id for import (default: file name)
  --storage DIR     Document directory (default: $PAGESMITH_STORAGE_DIR)
  --viewport VP     Viewport for export: desktop, tablet, mobile
  --out FILE        Write export to FILE instead of stdout
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  PAGESMITH_STORAGE_DIR   Document directory (same as --storage)
  PAGESMITH_LOG_LEVEL     Logging level (default: INFO)

Examples:
  pagesmith import newsletter.html --doc spring
  pagesmith export spring --viewport mobile --out spring-mobile.html
  pagesmith validate spring.json
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (import, export, validate, widgets)
        target: str | None (file or document id)
        doc_id: str | None
        storage: str | None
        viewport: str | None
        out: str | None
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "target": None,
        "doc_id": None,
        "storage": None,
        "viewport": None,
        "out": None,
        "show_help": False,
        "show_version": False,
    }
    options = {"--doc": "doc_id", "--storage": "storage", "--viewport": "viewport", "--out": "out"}

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in options:
            if i + 1 < len(args):
                result[options[arg]] = args[i + 1]
                i += 1
            else:
                print(f"Error: {arg} requires a value")
                sys.exit(1)
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'pagesmith --help' for usage.")
            sys.exit(1)
        elif result["command"] is None:
            if arg not in COMMANDS:
                print(f"Unknown command: {arg}")
                print("Run 'pagesmith --help' for usage.")
                sys.exit(1)
            result["command"] = arg
        elif result["target"] is None:
            result["target"] = arg
        else:
            print(f"Unexpected argument: {arg}")
            sys.exit(1)

        i += 1

    if result["viewport"] is not None and result["viewport"] not in VIEWPORTS:
        print(f"Error: --viewport must be one of {', '.join(VIEWPORTS)}")
        sys.exit(1)

    return result


def doc_id_from_path(path: Path) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "-", path.stem).strip("-") or "document"


def cmd_import(assembly: EditorAssembly, args: dict) -> int:
    path = Path(args["target"])
    try:
        markup = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: cannot read {path}: {e}")
        return 1

    doc_id = args["doc_id"] or doc_id_from_path(path)
    try:
        store = asyncio.run(assembly.import_markup(doc_id, markup))
    except (ValueError, DocumentValidationError) as e:
        print(f"Error: {e}")
        return 1
    print(f"Imported {path} as '{doc_id}' ({count_nodes(store.state.elements)} elements)")
    return 0


def cmd_export(assembly: EditorAssembly, args: dict) -> int:
    doc_id = args["target"]

    async def run() -> str:
        store = await assembly.load(doc_id)
        return await assembly.publish(doc_id, store, args["viewport"])

    try:
        markup = asyncio.run(run())
    except DocumentNotFound:
        print(f"Error: no document '{doc_id}'")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    except DocumentValidationError as e:
        print(f"Error: document '{doc_id}' is invalid: {e}")
        return 1

    if args["out"]:
        Path(args["out"]).write_text(markup, encoding="utf-8")
        print(f"Wrote {args['out']}")
    else:
        print(markup)
    return 0


def cmd_validate(args: dict) -> int:
    path = Path(args["target"])
    try:
        elements, _styles = load_document(path.read_text(encoding="utf-8"))
    except OSError as e:
        print(f"Error: cannot read {path}: {e}")
        return 1
    except DocumentValidationError as e:
        print(f"{path}: invalid")
        for err in e.errors:
            print(f"  - {err}")
        return 1

    print(f"{path}: OK ({count_nodes(elements)} elements)")
    return 0


def cmd_widgets() -> int:
    for category in WIDGET_CATEGORIES:
        widgets = list_widgets_by_category(category)
        if not widgets:
            continue
        print(f"{category}:")
        for w in widgets:
            kind = "container" if w.is_container else "leaf"
            print(f"  {w.type:<14} {w.label:<12} {kind}")
    return 0


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle help and version first
    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"pagesmith {__version__}")
        return

    if args["command"] is None:
        print_help()
        sys.exit(1)

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args["command"] == "widgets":
        sys.exit(cmd_widgets())

    if args["target"] is None:
        print(f"Error: '{args['command']}' needs an argument")
        print("Run 'pagesmith --help' for usage.")
        sys.exit(1)

    if args["command"] == "validate":
        sys.exit(cmd_validate(args))

    assembly = EditorAssembly(FileStorage(args["storage"]))
    if args["command"] == "import":
        sys.exit(cmd_import(assembly, args))
    sys.exit(cmd_export(assembly, args))


if __name__ == "__main__":
    main()
