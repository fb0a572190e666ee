"""
lossless.py - Structural PDF re-packing.

Every page is redrawn unmodified into a fresh document which is then saved
with compressed streams and generated object streams. No pixels, fonts or
images are re-encoded; any size reduction comes from deduplication and
tighter serialization.
"""

import logging

import pikepdf

from .exceptions import DocumentCreationFailed, InvalidDocument, NoPages
from .pdf_writer import PDFWriter
from .utils import PathLike, require_input, require_new_output

logger = logging.getLogger(__name__)


def _media_box(page: pikepdf.Page):
    return tuple(float(v) for v in page.mediabox)


def optimize_lossless(pdf_path: PathLike, output_path: PathLike):
    """
    Re-serialize pdf_path into output_path page by page.

    Raises:
        FileNotFound, InvalidDocument, NoPages, OutputDirectoryNotFound,
        OutputFileExists, DocumentCreationFailed
    """
    pdf_path = require_input(pdf_path)

    try:
        source = pikepdf.open(pdf_path)
    except pikepdf.PasswordError as e:
        raise InvalidDocument(pdf_path, "document is encrypted") from e
    except (pikepdf.PdfError, OSError) as e:
        raise InvalidDocument(pdf_path, str(e)) from e

    with source:
        if len(source.pages) == 0:
            raise NoPages(pdf_path)

        output_path = require_new_output(output_path)
        logger.info(f"Re-packing {pdf_path.name}: {len(source.pages)} pages")

        first_box = _media_box(source.pages[0])
        with PDFWriter(output_path, media_box=first_box) as writer:
            for index, page in enumerate(source.pages):
                box = _media_box(page)
                try:
                    writer.add_source_page(page, box)
                except pikepdf.PdfError as e:
                    raise DocumentCreationFailed(output_path, f"page {index}: {e}") from e
                logger.debug(f"Page {index}: media box {box}")
            writer.save()
