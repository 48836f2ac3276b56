"""
flowscript-compile — compile a saved flow document into a Selenium script
=========================================================================

Usage
-----
    flowscript-compile <flow.json> [options]

Options
-------
    --no-headless       Comment out the headless directive (visible browser)
    --name NAME         Script name; the output file is <slug>.py
                        (default: the document's file stem)
    --out  <dir>        Output directory (default: current directory)
    --print             Print the generated source instead of writing a file
    -v, --verbose       Debug logging (linearization and emission trace)

Examples
--------
    flowscript-compile login-flow.json
    flowscript-compile login-flow.json --no-headless --out scripts/
    flowscript-compile login-flow.json --print
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from flowscript.compiler import compile_graph
from flowscript.compiler.serializer import load
from flowscript.errors import InvalidDocument, MissingStartNode

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="flowscript-compile",
        description="Compile a FlowScript flow document to a Selenium script.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("flow_json", metavar="flow.json", help="Path to the flow document.")
    p.add_argument(
        "--no-headless",
        dest="headless",
        action="store_false",
        help="Emit the headless directive commented out.",
    )
    p.add_argument("--name", default=None, help="Script name used for the output file.")
    p.add_argument("--out", metavar="DIR", default=".", help="Output directory (default: .).")
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a file.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return p


def _script_filename(name: str) -> str:
    """'Login Flow' → 'login_flow.py'."""
    safe = name.lower().replace("-", "_").replace(" ", "_")
    return f"{safe}.py"


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    json_path = Path(args.flow_json)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    try:
        graph = load(json_path)
        source = compile_graph(graph, headless=args.headless)
    except InvalidDocument as exc:
        print(f"[error] Invalid flow document: {exc}", file=sys.stderr)
        return 1
    except MissingStartNode as exc:
        print(f"[error] Cannot compile: {exc}", file=sys.stderr)
        return 1

    if args.print_only:
        print(source, end="")
        return 0

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / _script_filename(args.name or json_path.stem)
    out_path.write_text(source, encoding="utf-8")

    print(f"[flowscript-compile] nodes : {len(graph.nodes)}")
    print(f"[flowscript-compile] edges : {len(graph.edges)}")
    print(f"[flowscript-compile] wrote : {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
