"""
codec.py - Image file decoding and encoding with Pillow.

decode() returns an RGB/RGBA/L bitmap with any EXIF orientation applied.
Passing max_pixel_dimension produces a thumbnail using the decoder's draft
mode, so large JPEGs are not fully decoded just to build a preview.
"""

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import DecodeFailed, EncodeFailed, FileNotFound, UnsupportedFormat
from .models import ImageFormat
from .utils import PathLike, remove_partial

logger = logging.getLogger(__name__)

_KEEP_MODES = ("RGB", "RGBA", "L")


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in _KEEP_MODES:
        return image
    if image.mode in ("LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        return image.convert("RGBA")
    return image.convert("RGB")


def decode(path: PathLike, max_pixel_dimension: Optional[float] = None) -> Image.Image:
    """
    Read an image file into memory.

    Args:
        path: Image file
        max_pixel_dimension: If set, downsample so the larger side fits

    Returns:
        Decoded PIL image, detached from the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFound(path)

    try:
        source = Image.open(path)
    except UnidentifiedImageError:
        raise UnsupportedFormat(path)
    except (OSError, Image.DecompressionBombError) as e:
        raise DecodeFailed(path, str(e)) from e

    with source:
        try:
            if max_pixel_dimension is not None:
                if max_pixel_dimension <= 0:
                    raise ValueError(f"max_pixel_dimension must be positive, got {max_pixel_dimension}")
                bound = max(1, int(max_pixel_dimension))
                source.draft("RGB", (bound, bound))
                image = ImageOps.exif_transpose(source)
                image.thumbnail((bound, bound), Image.LANCZOS)
            else:
                image = ImageOps.exif_transpose(source)
            image.load()
            image = _normalize_mode(image)
        except (OSError, SyntaxError, Image.DecompressionBombError) as e:
            raise DecodeFailed(path, str(e)) from e

    logger.debug(f"Decoded {path.name}: {image.size[0]}x{image.size[1]} {image.mode}")
    return image


def encode(image: Image.Image, path: PathLike, image_format: ImageFormat = ImageFormat.PNG):
    """Write image as a single-frame file in the given format."""
    path = Path(path)

    if image_format is ImageFormat.JPEG and image.mode not in ("RGB", "L"):
        # JPEG has no alpha: flatten onto white
        flat = Image.new("RGB", image.size, (255, 255, 255))
        flat.paste(image, mask=image.getchannel("A") if "A" in image.getbands() else None)
        image = flat

    try:
        with path.open("wb") as fh:
            image.save(fh, format=image_format.pil_format)
    except (OSError, ValueError) as e:
        remove_partial(path)
        raise EncodeFailed(path, str(e)) from e

    logger.debug(f"Wrote {path}")


def encode_png(image: Image.Image, path: PathLike):
    """Write image as a single-frame PNG."""
    encode(image, path, ImageFormat.PNG)
