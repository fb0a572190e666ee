from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from pdf_imaging import ImageFormat, PageAsset, export, extract
from pdf_imaging.exceptions import DirectoryCreationFailed, ImageWriteFailed
from pdf_imaging.export import default_folder_name, page_filename


def _assets(indices, size=(10, 10)) -> list[PageAsset]:
    return [
        PageAsset(
            page_index=i,
            page_size=size,
            render_scale=1.0,
            image=Image.new("RGB", size, (255, 0, 0)),
        )
        for i in indices
    ]


def test_export_png_creates_files(tmp_path: Path) -> None:
    written = export(_assets([0, 1]), tmp_path, ImageFormat.PNG, "TestPDF")

    folder = tmp_path / "TestPDF"
    assert folder.is_dir()
    assert written == [folder / "page_001.png", folder / "page_002.png"]
    with Image.open(written[0]) as image:
        assert image.format == "PNG"
        assert image.size == (10, 10)


def test_export_names_follow_page_index(tmp_path: Path) -> None:
    export(_assets([0, 2]), tmp_path, ImageFormat.PNG, "X")

    assert sorted(p.name for p in (tmp_path / "X").iterdir()) == ["page_001.png", "page_003.png"]


def test_export_skips_unselected(tmp_path: Path) -> None:
    assets = _assets([0, 1, 2])
    assets[1].is_selected = False

    written = export(assets, tmp_path, ImageFormat.PNG, "sel")

    assert [p.name for p in written] == ["page_001.png", "page_003.png"]


def test_export_can_include_unselected(tmp_path: Path) -> None:
    assets = _assets([0, 1])
    assets[0].is_selected = False

    written = export(assets, tmp_path, ImageFormat.PNG, "all", selected_only=False)

    assert len(written) == 2


def test_export_jpeg(tmp_path: Path) -> None:
    written = export(_assets([4]), tmp_path, ImageFormat.JPEG, "jpg")

    assert written == [tmp_path / "jpg" / "page_005.jpg"]
    with Image.open(written[0]) as image:
        assert image.format == "JPEG"


def test_export_creates_intermediate_directories(tmp_path: Path) -> None:
    export(_assets([0]), tmp_path / "a" / "b", ImageFormat.PNG, "c")

    assert (tmp_path / "a" / "b" / "c" / "page_001.png").exists()


def test_export_directory_creation_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("in the way")

    with pytest.raises(DirectoryCreationFailed):
        export(_assets([0]), blocker, ImageFormat.PNG, "out")


def test_export_write_failure_keeps_earlier_pages(tmp_path: Path) -> None:
    folder = tmp_path / "partial"
    (folder / "page_002.png").mkdir(parents=True)

    with pytest.raises(ImageWriteFailed) as excinfo:
        export(_assets([0, 1, 2]), tmp_path, ImageFormat.PNG, "partial")

    assert excinfo.value.page_index == 1
    assert (folder / "page_001.png").is_file()
    assert not (folder / "page_003.png").exists()


def test_export_extracted_pages(tmp_path: Path, sample_pdf: Path) -> None:
    assets = extract(sample_pdf, dpi=36)

    written = export(assets, tmp_path, ImageFormat.PNG, default_folder_name(sample_pdf))

    assert [p.parent.name for p in written] == ["sample"] * 3
    with Image.open(written[1]) as image:
        assert image.size == (100, 150)


def test_naming_helpers() -> None:
    assert page_filename(0) == "page_001.png"
    assert page_filename(99, ImageFormat.JPEG) == "page_100.jpg"
    assert default_folder_name() == "ExportedPages"
    assert default_folder_name("/docs/report.pdf") == "report"
