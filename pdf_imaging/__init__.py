"""
PDF Imaging - convert between PDFs and images, and shrink PDFs.

- extract: rasterize PDF pages at a chosen DPI
- merge: assemble images into one PDF, one page per image
- optimize_pdf: lossless re-pack or Ghostscript recompression
- export: write rasterized pages as page_NNN image files
"""

from .assemble import merge
from .exceptions import PDFImagingError
from .export import export
from .ghostscript import GhostscriptEngine, optimize_external
from .lossless import optimize_lossless
from .models import (
    CompressionMode,
    CompressionQuality,
    ExternalEngineMode,
    ImageFormat,
    ImageListItem,
    LosslessMode,
    PageAsset,
    make_request,
)
from .pipeline import OptimizationResult, optimize_pdf
from .rasterize import extract

__version__ = "1.0.0"
