"""
pdf_writer.py - Page-by-page PDF assembly with pikepdf.

Supports:
- Bitmap pages: one image stretched to fill the page (FlateDecode, optional
  SMask for alpha)
- Source pages: an existing page drawn unmodified as a form XObject, with
  its boxes and rotation carried over

The writer owns the output file from construction until save() or abort().
Pages are appended strictly in order; one writer per output document.
"""

import logging
import zlib
from pathlib import Path
from typing import Optional, Sequence, Tuple

import pikepdf
from pikepdf import Array, Dictionary, Name, Pdf, Stream
from PIL import Image

from .exceptions import DocumentCreationFailed, OutputFileExists
from .utils import remove_partial

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]


def _box_from_size(width: float, height: float) -> Box:
    return (0.0, 0.0, float(width), float(height))


# Carried from a source page so the copy is clipped and oriented the same
_PAGE_GEOMETRY_KEYS = ("/CropBox", "/BleedBox", "/TrimBox", "/ArtBox", "/Rotate", "/UserUnit")
_INHERITABLE_KEYS = ("/CropBox", "/Rotate")
_MAX_TREE_DEPTH = 64


def _page_attribute(page_obj: pikepdf.Object, key: str):
    """Value of key on a page, following /Parent for inheritable keys."""
    node = page_obj
    for _ in range(_MAX_TREE_DEPTH):
        if key in node:
            return node[key]
        if key not in _INHERITABLE_KEYS or "/Parent" not in node:
            return None
        node = node.Parent
    return None


class PDFWriter:
    """
    Assembles pages into a new PDF at output_path.

    The output file is created immediately (exclusive create), so a writer
    that fails to open raises DocumentCreationFailed before any page work.
    """

    def __init__(self, output_path: Path, media_box: Optional[Box] = None):
        self.output_path = Path(output_path)
        self.media_box = media_box
        self.page_count = 0

        try:
            self._fh = self.output_path.open("xb")
        except FileExistsError:
            raise OutputFileExists(self.output_path)
        except OSError as e:
            raise DocumentCreationFailed(self.output_path, str(e)) from e
        self.pdf = Pdf.new()

        logger.debug(f"Opened {self.output_path} (initial box {media_box})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.abort()
        return False

    def _new_page(self, media_box: Box) -> pikepdf.Page:
        llx, lly, urx, ury = media_box
        page = self.pdf.add_blank_page(page_size=(urx - llx, ury - lly))
        page.MediaBox = Array([llx, lly, urx, ury])
        self.page_count += 1
        return page

    def add_image_page(self, image: Image.Image, page_width_pts: float, page_height_pts: float):
        """Add a page of the given size with image stretched over all of it."""
        page = self._new_page(_box_from_size(page_width_pts, page_height_pts))

        if image.mode == "L":
            colorspace = Name.DeviceGray
            pixels = image
        else:
            colorspace = Name.DeviceRGB
            pixels = image.convert("RGB")

        image_dict = Dictionary({
            '/Type': Name.XObject,
            '/Subtype': Name.Image,
            '/Width': image.width,
            '/Height': image.height,
            '/ColorSpace': colorspace,
            '/BitsPerComponent': 8,
            '/Filter': Name.FlateDecode,
        })
        img_stream = Stream(self.pdf, zlib.compress(pixels.tobytes(), 6), image_dict)

        if "A" in image.getbands():
            mask_dict = Dictionary({
                '/Type': Name.XObject,
                '/Subtype': Name.Image,
                '/Width': image.width,
                '/Height': image.height,
                '/ColorSpace': Name.DeviceGray,
                '/BitsPerComponent': 8,
                '/Filter': Name.FlateDecode,
            })
            alpha = image.getchannel("A").tobytes()
            img_stream.SMask = self.pdf.make_indirect(
                Stream(self.pdf, zlib.compress(alpha, 6), mask_dict)
            )

        xobjects = Dictionary({})
        xobjects['/Im0'] = self.pdf.make_indirect(img_stream)
        page.Resources = Dictionary({'/XObject': xobjects})

        # Unit square image scaled to the page
        content = f"""
q
{page_width_pts:.4f} 0 0 {page_height_pts:.4f} 0 0 cm
/Im0 Do
Q
"""
        page.Contents = self.pdf.make_indirect(
            Stream(self.pdf, content.strip().encode("ascii"))
        )

        logger.debug(
            f"Added page {self.page_count}: {image.width}x{image.height} px -> "
            f"{page_width_pts:.2f}x{page_height_pts:.2f} pt"
        )

    def add_source_page(self, source: pikepdf.Page, media_box: Sequence[float]):
        """
        Add a page that draws source unchanged.

        The source content becomes a form XObject in the source's own user
        space and is drawn with the identity matrix. Page boxes, /Rotate and
        /UserUnit are carried over so viewers clip and orient it the same way.
        """
        box = tuple(float(v) for v in media_box)
        page = self._new_page(box)

        formx = self.pdf.copy_foreign(source.as_form_xobject(handle_transformations=False))
        formx.BBox = Array(list(box))

        for key in _PAGE_GEOMETRY_KEYS:
            value = _page_attribute(source.obj, key)
            if value is None:
                continue
            if key == "/Rotate":
                page.obj[key] = int(value)
            elif key == "/UserUnit":
                page.obj[key] = float(value)
            else:
                page.obj[key] = Array([float(v) for v in value])

        page.Resources = Dictionary({'/XObject': Dictionary({'/Fx0': formx})})
        page.Contents = self.pdf.make_indirect(Stream(self.pdf, b"q\n/Fx0 Do\nQ"))
        logger.debug(f"Copied page {self.page_count} with box {box}")

    def save(self):
        """Write the document and close the output file."""
        try:
            self.pdf.save(
                self._fh,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate
            )
            self._fh.close()
        except (OSError, pikepdf.PdfError) as e:
            self.abort()
            raise DocumentCreationFailed(self.output_path, str(e)) from e
        finally:
            self.pdf.close()

        logger.info(f"Saved {self.page_count} pages to {self.output_path}")

    def abort(self):
        """Discard the document and delete the partial output."""
        if not self._fh.closed:
            self._fh.close()
        remove_partial(self.output_path)
