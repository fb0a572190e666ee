from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Sequence

import pikepdf
import pytest
from pikepdf import Array, Pdf, Stream
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Left half of a 100x100 pt page painted black
HALF_BLACK = b"0 0 0 rg 0 0 50 100 re f"


def _write_pdf(path: Path, pages: Sequence[dict]) -> Path:
    pdf = Pdf.new()
    for page_def in pages:
        width, height = page_def.get("size", (100, 100))
        page = pdf.add_blank_page(page_size=(width, height))
        if "media_box" in page_def:
            page.MediaBox = Array(list(page_def["media_box"]))
        if "crop_box" in page_def:
            page.CropBox = Array(list(page_def["crop_box"]))
        if "content" in page_def:
            page.Contents = pdf.make_indirect(Stream(pdf, page_def["content"]))
        if "rotate" in page_def:
            page.Rotate = page_def["rotate"]
    pdf.save(path)
    return path


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str, pages: Sequence[dict]) -> Path:
        return _write_pdf(tmp_path / filename, pages)

    return _create


@pytest.fixture()
def sample_pdf(pdf_factory: Callable[..., Path]) -> Path:
    return pdf_factory(
        "sample.pdf",
        [
            {"size": (100, 100), "content": HALF_BLACK},
            {"size": (200, 300)},
            {"size": (612, 792)},
        ],
    )


@pytest.fixture()
def empty_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "empty.pdf"
    Pdf.new().save(path)
    return path


@pytest.fixture()
def image_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(
        filename: str,
        size: tuple[int, int],
        mode: str = "RGB",
        color=(200, 30, 30),
        fmt: str | None = None,
    ) -> Path:
        path = tmp_path / filename
        if mode == "L" and isinstance(color, tuple):
            color = color[0]
        if mode == "RGBA" and isinstance(color, tuple) and len(color) == 3:
            color = color + (128,)
        Image.new(mode, size, color).save(path, format=fmt)
        return path

    return _create


@pytest.fixture()
def script_factory(tmp_path: Path) -> Callable[[Path, str], Path]:
    """Write an executable shell script."""

    def _create(path: Path, body: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _create


def page_boxes(path: Path) -> list[tuple[float, ...]]:
    with pikepdf.open(path) as pdf:
        return [tuple(float(v) for v in page.mediabox) for page in pdf.pages]


posix_only = pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")
