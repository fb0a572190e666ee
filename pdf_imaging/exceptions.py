"""
exceptions.py - Error taxonomy for pdf_imaging.

Every public operation raises a subclass of PDFImagingError. Errors are
grouped by kind:

- PreconditionError: missing inputs, bad arguments, unsafe destinations
- FormatError: unreadable images, corrupt or empty PDFs
- RenderError: page rasterization and image/PDF writing failures
- ExternalProcessError: Ghostscript lookup and execution failures

Not-found errors also derive from the builtin FileNotFoundError, and DPI
errors from ValueError, so callers can catch either family.
"""

from pathlib import Path
from typing import Optional, Union


class PDFImagingError(Exception):
    """Base class for all pdf_imaging errors."""


# Preconditions

class PreconditionError(PDFImagingError):
    """An operation was called with unusable inputs or destination."""


class FileNotFound(PreconditionError, FileNotFoundError):
    """Input file does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"File not found: {self.path}")


class OutputDirectoryNotFound(PreconditionError, FileNotFoundError):
    """Parent directory of the output file does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Output directory does not exist: {self.path}")


class OutputFileExists(PreconditionError, FileExistsError):
    """Output file already exists and will not be overwritten."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Output file already exists: {self.path}")


class NoImages(PreconditionError, ValueError):
    """Merge was called with an empty image list."""

    def __init__(self):
        super().__init__("Add at least one image")


class InvalidDPI(PreconditionError, ValueError):
    """DPI must be a positive number."""

    def __init__(self, dpi):
        self.dpi = dpi
        super().__init__(f"Invalid DPI: {dpi!r}")


# Formats

class FormatError(PDFImagingError):
    """Input exists but its content cannot be used."""


class UnsupportedFormat(FormatError):
    """Image type could not be recognized."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Unsupported image format: {self.path.name}")


class DecodeFailed(FormatError):
    """Image type was recognized but the data could not be decoded."""

    def __init__(self, path: Union[str, Path], detail: str = ""):
        self.path = Path(path)
        self.detail = detail
        message = f"Invalid image file: {self.path.name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ImageLoadFailed(FormatError):
    """One of the merge inputs could not be loaded."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Failed to load image: {name}")


class InvalidDocument(FormatError):
    """PDF is corrupt, encrypted or otherwise unopenable."""

    def __init__(self, path: Union[str, Path], detail: str = ""):
        self.path = Path(path)
        self.detail = detail
        message = f"PDF is damaged or not a valid document: {self.path.name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class NoPages(FormatError):
    """PDF opened but contains no pages."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"PDF has no pages: {self.path.name}")


# Rendering and writing

class RenderError(PDFImagingError):
    """Rasterizing or writing output failed."""


class PageRenderFailed(RenderError):
    """A single PDF page could not be rasterized."""

    def __init__(self, page_index: int, detail: str = ""):
        self.page_index = page_index
        self.detail = detail
        message = f"Failed to render page {page_index + 1}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EncodeFailed(RenderError):
    """An image could not be written to disk."""

    def __init__(self, path: Union[str, Path], detail: str = ""):
        self.path = Path(path)
        self.detail = detail
        message = f"Failed to write image: {self.path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ImageWriteFailed(RenderError):
    """Exporting a page image failed."""

    def __init__(self, page_index: int):
        self.page_index = page_index
        super().__init__(f"Failed to write page {page_index + 1}")


class DirectoryCreationFailed(RenderError):
    """Export folder could not be created."""

    def __init__(self, path: Union[str, Path], detail: str = ""):
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Cannot create output directory: {self.path}")


class DocumentCreationFailed(RenderError):
    """Output PDF could not be opened or finalized."""

    def __init__(self, path: Union[str, Path], detail: str = ""):
        self.path = Path(path)
        self.detail = detail
        message = f"Cannot create PDF file: {self.path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# External process

class ExternalProcessError(PDFImagingError):
    """Ghostscript could not be found or did not succeed."""


class EngineNotFound(ExternalProcessError):
    """No executable Ghostscript binary was found."""

    def __init__(self):
        super().__init__(
            "Ghostscript (gs) not found. Install it or use lossless mode instead."
        )


class EngineFailed(ExternalProcessError):
    """Ghostscript ran but did not produce a usable output."""

    def __init__(self, detail: str = "", log_path: Optional[Path] = None):
        self.detail = detail
        self.log_path = log_path
        if detail:
            message = f"Ghostscript compression failed: {detail}"
        else:
            message = "Ghostscript compression failed"
        super().__init__(message)
