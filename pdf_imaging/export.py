"""
export.py - Write rasterized pages to image files.

Files are named from the page index, not the output position:
exporting pages 0 and 2 yields page_001.png and page_003.png.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from . import codec
from .exceptions import DirectoryCreationFailed, EncodeFailed, ImageWriteFailed
from .models import ImageFormat, PageAsset
from .utils import PathLike

logger = logging.getLogger(__name__)

DEFAULT_FOLDER_NAME = "ExportedPages"


def page_filename(page_index: int, image_format: ImageFormat = ImageFormat.PNG) -> str:
    """page_001.png for page_index 0."""
    return f"page_{page_index + 1:03d}.{image_format.extension}"


def default_folder_name(pdf_path: Optional[PathLike] = None) -> str:
    """Subfolder name for an export: the source PDF's stem."""
    if pdf_path is None:
        return DEFAULT_FOLDER_NAME
    return Path(pdf_path).stem or DEFAULT_FOLDER_NAME


def export(
    assets: Sequence[PageAsset],
    output_directory: PathLike,
    image_format: ImageFormat = ImageFormat.PNG,
    subfolder_name: str = DEFAULT_FOLDER_NAME,
    selected_only: bool = True,
) -> List[Path]:
    """
    Export page images into output_directory/subfolder_name.

    Args:
        assets: Rasterized pages
        output_directory: Parent directory; created if missing
        image_format: File format for every page
        subfolder_name: Folder created under output_directory
        selected_only: Skip assets whose is_selected is False

    Returns:
        Paths written, in asset order

    Files written before a failure are left in place.
    """
    folder = Path(output_directory) / subfolder_name
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationFailed(folder, str(e)) from e

    written: List[Path] = []
    for asset in assets:
        if selected_only and not asset.is_selected:
            continue

        target = folder / page_filename(asset.page_index, image_format)
        try:
            codec.encode(asset.image, target, image_format)
        except EncodeFailed as e:
            logger.error(f"Export stopped at page {asset.page_number}: {e}")
            raise ImageWriteFailed(asset.page_index) from e
        written.append(target)

    logger.info(f"Exported {len(written)} pages to {folder}")
    return written
