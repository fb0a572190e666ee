#!/usr/bin/env python3
"""
pdf_imaging_cli.py - PDF <-> image conversion and PDF size reduction.

Usage:
    python pdf_imaging_cli.py extract input.pdf -o ./pages --dpi 144
    python pdf_imaging_cli.py merge a.jpg b.png -o album.pdf --dpi 144
    python pdf_imaging_cli.py optimize input.pdf -o smaller.pdf --mode ghostscript -q ebook
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from pdf_imaging import (
    CompressionMode,
    CompressionQuality,
    ImageFormat,
    export,
    extract,
    make_request,
    merge,
    optimize_pdf,
)
from pdf_imaging.exceptions import PDFImagingError
from pdf_imaging.export import default_folder_name
from pdf_imaging.models import DEFAULT_DPI


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert PDFs to images, images to PDF, and shrink PDFs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python pdf_imaging_cli.py extract scan.pdf -o ./out/
  python pdf_imaging_cli.py merge *.jpg -o photos.pdf
  python pdf_imaging_cli.py optimize big.pdf -o small.pdf --mode ghostscript -q screen

Optimize modes:
  lossless     re-pack the document structure, no quality loss
  ghostscript  recompress images with Ghostscript (screen/ebook/printer)
"""
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    p_extract = commands.add_parser("extract", help="Rasterize PDF pages to images")
    p_extract.add_argument("input", type=Path, help="Input PDF")
    p_extract.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory that receives the page folder (default: .)"
    )
    p_extract.add_argument(
        "-d", "--dpi",
        type=float,
        default=DEFAULT_DPI,
        help=f"Render DPI (default: {DEFAULT_DPI:g})"
    )
    p_extract.add_argument(
        "-f", "--format",
        choices=[f.value for f in ImageFormat],
        default=ImageFormat.PNG.value,
        help="Image format (default: png)"
    )
    p_extract.add_argument(
        "--folder",
        help="Subfolder name (default: input file name)"
    )
    p_extract.add_argument(
        "-p", "--pages",
        type=parse_pages,
        help="Comma separated 1-based pages to export (default: all)"
    )

    p_merge = commands.add_parser("merge", help="Combine images into one PDF")
    p_merge.add_argument("inputs", nargs="+", type=Path, help="Images, in page order")
    p_merge.add_argument("-o", "--output", type=Path, required=True, help="Output PDF")
    p_merge.add_argument(
        "-d", "--dpi",
        type=float,
        default=DEFAULT_DPI,
        help=f"Image DPI used to size pages (default: {DEFAULT_DPI:g})"
    )

    p_opt = commands.add_parser("optimize", help="Reduce PDF file size")
    p_opt.add_argument("input", type=Path, help="Input PDF")
    p_opt.add_argument("-o", "--output", type=Path, help="Output PDF (default: <name>_optimized.pdf)")
    p_opt.add_argument(
        "-m", "--mode",
        choices=[m.value for m in CompressionMode],
        default=CompressionMode.LOSSLESS.value,
        help="Optimization mode (default: lossless)"
    )
    p_opt.add_argument(
        "-q", "--quality",
        choices=[q.value for q in CompressionQuality],
        default=CompressionQuality.EBOOK.value,
        help="Ghostscript preset (default: ebook)"
    )

    return parser.parse_args(argv)


def parse_pages(text: str):
    """'1,3' -> {0, 2}"""
    pages = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or int(part) < 1:
            raise argparse.ArgumentTypeError(f"invalid page number: {part!r}")
        pages.add(int(part) - 1)
    return pages


def run_extract(args) -> int:
    assets = extract(args.input, args.dpi)
    if args.pages is not None:
        for asset in assets:
            asset.is_selected = asset.page_index in args.pages

    written = export(
        assets,
        args.output_dir,
        ImageFormat(args.format),
        args.folder or default_folder_name(args.input),
    )
    print(f"Wrote {len(written)} of {len(assets)} pages")
    return 0


def run_merge(args) -> int:
    merge(args.inputs, args.output, args.dpi)
    print(f"Wrote {args.output} ({len(args.inputs)} pages)")
    return 0


def run_optimize(args) -> int:
    output_path = args.output or args.input.with_stem(args.input.stem + "_optimized")
    request = make_request(CompressionMode(args.mode), CompressionQuality(args.quality))
    result = optimize_pdf(args.input, output_path, request)
    print(f"\n{result.summary()}")
    return 0


COMMANDS = {
    "extract": run_extract,
    "merge": run_merge,
    "optimize": run_optimize,
}


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        return COMMANDS[args.command](args)
    except PDFImagingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
