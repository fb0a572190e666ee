"""
assemble.py - Images to PDF.

Each input image becomes one page. Page size in points is the image's pixel
size divided by dpi / 72, so a 300x400 px image at 144 DPI becomes a
150x200 pt page. Pages keep their own sizes; nothing is cropped or padded.
"""

import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

from PIL import Image

from . import codec
from .exceptions import ImageLoadFailed, InvalidDPI, NoImages, PDFImagingError
from .models import ImageListItem, dpi_to_scale
from .pdf_writer import PDFWriter
from .utils import PathLike, require_new_output

logger = logging.getLogger(__name__)

ImageSource = Union[PathLike, ImageListItem]


def _source_path(source: ImageSource) -> Path:
    if isinstance(source, ImageListItem):
        return source.path
    return Path(source)


def _load_full(path: Path) -> Image.Image:
    try:
        return codec.decode(path, max_pixel_dimension=None)
    except PDFImagingError as e:
        logger.error(f"Cannot load {path}: {e}")
        raise ImageLoadFailed(path.name) from e


def page_size_for(image: Image.Image, scale: float) -> Tuple[float, float]:
    """Page size in points for an image rendered at scale."""
    return image.width / scale, image.height / scale


def merge(images: Sequence[ImageSource], output_path: PathLike, dpi: float):
    """
    Merge images into a single PDF, one page per image.

    Args:
        images: Image paths or ImageListItems, in page order
        output_path: PDF to create; must not exist yet
        dpi: Pixels per inch used to size the pages

    Raises:
        NoImages, InvalidDPI, OutputDirectoryNotFound, OutputFileExists,
        ImageLoadFailed, DocumentCreationFailed
    """
    if not images:
        raise NoImages()
    if not dpi or dpi <= 0:
        raise InvalidDPI(dpi)
    output_path = require_new_output(output_path)

    scale = dpi_to_scale(dpi)
    paths = [_source_path(source) for source in images]

    first = _load_full(paths[0])
    first_size = page_size_for(first, scale)

    with PDFWriter(output_path, media_box=(0.0, 0.0) + first_size) as writer:
        image = first
        for index, path in enumerate(paths):
            if index > 0:
                image = _load_full(path)
            width_pts, height_pts = page_size_for(image, scale)
            writer.add_image_page(image, width_pts, height_pts)
            # Only one full-resolution bitmap alive at a time
            image.close()
        writer.save()

    logger.info(f"Merged {len(paths)} images into {output_path} @ {dpi:g} DPI")
