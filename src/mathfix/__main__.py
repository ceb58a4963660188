"""Command-line entry: render (or un-render) math in an HTML file.

    python -m mathfix page.html -o page.out.html
    python -m mathfix page.out.html --recover
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mathfix.config import ProcessConfig
from mathfix.errors import RendererUnavailable
from mathfix.processor import process_html, recover_html


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mathfix",
        description="Render $...$, $$...$$, \\(...\\) and \\[...\\] math in an HTML file.",
    )
    parser.add_argument("input", help="HTML file to process ('-' for stdin).")
    parser.add_argument("-o", "--output", default=None, help="Output file (default: stdout).")
    parser.add_argument(
        "--recover",
        action="store_true",
        help="Undo earlier rendering, restoring the original source text.",
    )
    parser.add_argument(
        "--no-brackets",
        action="store_true",
        help="Do not promote math-looking (...) and [...] groups.",
    )
    parser.add_argument(
        "--no-styles",
        action="store_true",
        help="Do not add the presentation stylesheet.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.input == "-":
        source = sys.stdin.read()
    else:
        path = Path(args.input).expanduser()
        if not path.is_file():
            print(f"File does not exist: {path}", file=sys.stderr)
            return 2
        source = path.read_text(encoding="utf-8")

    config = ProcessConfig(
        reclassify_brackets=not args.no_brackets,
        inject_styles=not args.no_styles,
    )
    if args.recover:
        result = recover_html(source, config=config)
    else:
        try:
            result = process_html(source, config=config)
        except RendererUnavailable as e:
            print(f"mathfix: {e}", file=sys.stderr)
            return 1

    if args.output is None:
        sys.stdout.write(result)
    else:
        Path(args.output).expanduser().write_text(result, encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
