"""Command-line entry point: convert the first page of one PDF to PNG."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import FileReadError
from .export import revoke_object_url
from .ingest import PdfFile
from .pipeline import convert_pdf_to_image


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf2img",
        description="Render the first page of a PDF to a PNG image",
    )
    parser.add_argument("pdf", type=Path, help="Path to PDF")
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file, or directory when it exists or ends in a separator "
        "(default: next to the input)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the result summary as JSON"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        pdf = PdfFile.from_path(args.pdf)
    except FileReadError as exc:
        print(f"{exc.message}: {exc.detail}", file=sys.stderr)
        return 1

    result = asyncio.run(convert_pdf_to_image(pdf))
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    if not result.ok:
        print(result.error, file=sys.stderr)
        return 1

    out = result.file.save(args.output or args.pdf.parent)
    revoke_object_url(result.image_url)
    if not args.json:
        print(out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
