"""
utils.py - Path guards shared by the writers.
"""

import logging
from pathlib import Path
from typing import Union

from .exceptions import FileNotFound, OutputDirectoryNotFound, OutputFileExists

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def require_input(path: PathLike) -> Path:
    """Return path as a Path, raising FileNotFound if it is missing."""
    path = Path(path)
    if not path.exists():
        raise FileNotFound(path)
    return path


def require_new_output(path: PathLike) -> Path:
    """
    Check that output can be created without overwriting anything.

    The check is advisory: nothing stops another writer from creating the
    file between this call and the actual write.
    """
    path = Path(path)
    if not path.parent.is_dir():
        raise OutputDirectoryNotFound(path.parent)
    if path.exists():
        raise OutputFileExists(path)
    return path


def remove_partial(path: Path):
    """Delete a partially written output. Failures are logged, not raised."""
    try:
        path.unlink()
        logger.debug(f"Removed partial output {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial output {path}: {e}")
