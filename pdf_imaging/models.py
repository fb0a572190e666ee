"""
models.py - Shared data types.

PageAsset is one rasterized page. ImageListItem is a merge input with an
optional cached preview. The compression enums and the OptimizeRequest
variant select how a PDF gets optimized.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image

# PDF user space unit
POINTS_PER_INCH = 72.0

DEFAULT_DPI = 144.0

# Longest side of list thumbnails
PREVIEW_MAX_PIXEL_SIZE = 320


def dpi_to_scale(dpi: float) -> float:
    """Convert DPI to a PDF point -> pixel scale factor."""
    return dpi / POINTS_PER_INCH


@dataclass
class PageAsset:
    """One rasterized PDF page."""
    page_index: int
    page_size: Tuple[float, float]  # crop box in points, unscaled
    render_scale: float
    image: Image.Image
    is_selected: bool = True

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return self.image.size


@dataclass
class ImageListItem:
    """An image source for merging, with an optional preview bitmap."""
    path: Path
    preview: Optional[Image.Image] = field(default=None, repr=False)

    def __post_init__(self):
        self.path = Path(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    def load_preview(self, max_pixel_size: float = PREVIEW_MAX_PIXEL_SIZE) -> Image.Image:
        """Decode and cache a downsampled preview."""
        if self.preview is None:
            from .codec import decode
            self.preview = decode(self.path, max_pixel_dimension=max_pixel_size)
        return self.preview


class ImageFormat(Enum):
    """Export image formats."""
    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value

    @property
    def pil_format(self) -> str:
        return self.value.upper()


class CompressionMode(Enum):
    LOSSLESS = "lossless"
    EXTERNAL_ENGINE = "ghostscript"


class CompressionQuality(Enum):
    SCREEN = "screen"
    EBOOK = "ebook"
    PRINTER = "printer"

    @property
    def ghostscript_setting(self) -> str:
        """Ghostscript -dPDFSETTINGS preset."""
        return f"/{self.value}"


@dataclass(frozen=True)
class LosslessMode:
    """Re-serialize pages without touching their content."""


@dataclass(frozen=True)
class ExternalEngineMode:
    """Recompress through Ghostscript with a quality preset."""
    quality: CompressionQuality = CompressionQuality.EBOOK


OptimizeRequest = Union[LosslessMode, ExternalEngineMode]


def make_request(
    mode: CompressionMode,
    quality: CompressionQuality = CompressionQuality.EBOOK
) -> OptimizeRequest:
    """Build an OptimizeRequest from a mode/quality pair."""
    if mode is CompressionMode.LOSSLESS:
        return LosslessMode()
    return ExternalEngineMode(quality)
