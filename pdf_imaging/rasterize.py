"""
rasterize.py - PDF to image conversion using PyMuPDF.

Pages are rendered in memory at the requested DPI. The output bitmap covers
exactly the page crop box: ceil(width * dpi / 72) x ceil(height * dpi / 72)
pixels, opaque white wherever the page paints nothing.
"""

import logging
import math
from pathlib import Path
from typing import List, Tuple

import fitz  # pip install pymupdf
import numpy as np
from PIL import Image

from .exceptions import InvalidDocument, InvalidDPI, PageRenderFailed
from .models import PageAsset, dpi_to_scale
from .utils import PathLike, require_input

logger = logging.getLogger(__name__)


def _open_document(pdf_path: Path) -> fitz.Document:
    try:
        doc = fitz.open(pdf_path, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise InvalidDocument(pdf_path, str(e)) from e

    if doc.needs_pass:
        doc.close()
        raise InvalidDocument(pdf_path, "document is encrypted")
    return doc


def get_page_count(pdf_path: PathLike) -> int:
    """Get total page count."""
    pdf_path = require_input(pdf_path)
    with _open_document(pdf_path) as doc:
        return doc.page_count


def get_page_dimensions(pdf_path: PathLike, page_num: int) -> Tuple[float, float]:
    """Get crop box dimensions in PDF points (1/72 inch)."""
    pdf_path = require_input(pdf_path)
    with _open_document(pdf_path) as doc:
        rect = doc[page_num].rect
        return rect.width, rect.height


def page_transform(crop_box: fitz.Rect, scale: float) -> fitz.Matrix:
    """
    Map PDF space to raster space.

    Translates the crop box origin to (0, 0) and then scales, so that
    point p lands at (p - origin) * scale.
    """
    shift = fitz.Matrix(1, 0, 0, 1, -crop_box.x0, -crop_box.y0)
    return shift * fitz.Matrix(scale, scale)


def raster_size(width_pts: float, height_pts: float, scale: float) -> Tuple[int, int]:
    """Pixel size of a page rendered at scale."""
    # Drop float noise: 612 * (150 / 72) == 1275.0000000000002
    return math.ceil(round(width_pts * scale, 6)), math.ceil(round(height_pts * scale, 6))


def rasterize_page(page: fitz.Page, scale: float) -> Tuple[Image.Image, float, float]:
    """
    Rasterize a single PDF page to an RGB image.

    Args:
        page: Open PyMuPDF page
        scale: Pixels per PDF point (dpi / 72)

    Returns:
        Tuple of (RGB image, crop_width_pts, crop_height_pts)
    """
    crop_box = page.rect  # crop box, rotation applied
    width, height = raster_size(crop_box.width, crop_box.height, scale)

    # White canvas, page content composited over it
    canvas = np.full((height, width, 3), 255, dtype=np.uint8)

    pixmap = page.get_pixmap(
        matrix=page_transform(crop_box, scale),
        clip=crop_box,
        colorspace=fitz.csRGB,
        alpha=False,
    )
    rendered = np.frombuffer(pixmap.samples, dtype=np.uint8).reshape(
        pixmap.height, pixmap.width, pixmap.n
    )

    # MuPDF rounds the pixmap bounds with a small tolerance; clip to canvas
    h = min(height, pixmap.height)
    w = min(width, pixmap.width)
    canvas[:h, :w] = rendered[:h, :w, :3]

    return Image.fromarray(canvas), crop_box.width, crop_box.height


def extract(pdf_path: PathLike, dpi: float) -> List[PageAsset]:
    """
    Rasterize every page of a PDF.

    Args:
        pdf_path: Source PDF
        dpi: Render resolution (must be > 0)

    Returns:
        One PageAsset per page, in document order. Empty for a zero-page PDF.
    """
    if not dpi or dpi <= 0:
        raise InvalidDPI(dpi)
    pdf_path = require_input(pdf_path)

    scale = dpi_to_scale(dpi)
    assets: List[PageAsset] = []

    with _open_document(pdf_path) as doc:
        logger.info(f"Rasterizing {pdf_path.name}: {doc.page_count} pages @ {dpi:g} DPI")

        for index in range(doc.page_count):
            try:
                page = doc.load_page(index)
                image, width_pts, height_pts = rasterize_page(page, scale)
            except (RuntimeError, ValueError, MemoryError) as e:
                raise PageRenderFailed(index, str(e)) from e

            logger.debug(f"Rasterized page {index}: {image.width}x{image.height} @ {dpi:g} DPI")

            assets.append(PageAsset(
                page_index=index,
                page_size=(width_pts, height_pts),
                render_scale=scale,
                image=image,
            ))

    return assets
