from __future__ import annotations

from pathlib import Path

import pytest

import pdf_imaging_cli
from conftest import page_boxes


def test_cli_merge(tmp_path: Path, image_factory) -> None:
    output = tmp_path / "album.pdf"
    images = [image_factory("1.png", (144, 144)), image_factory("2.png", (288, 144))]

    code = pdf_imaging_cli.main(["merge", *map(str, images), "-o", str(output), "--dpi", "144"])

    assert code == 0
    assert page_boxes(output) == [(0, 0, 72, 72), (0, 0, 144, 72)]


def test_cli_extract_selected_pages(tmp_path: Path, sample_pdf: Path) -> None:
    code = pdf_imaging_cli.main(
        ["extract", str(sample_pdf), "-o", str(tmp_path / "out"), "--dpi", "36", "--pages", "1,3"]
    )

    assert code == 0
    folder = tmp_path / "out" / "sample"
    assert sorted(p.name for p in folder.iterdir()) == ["page_001.png", "page_003.png"]


def test_cli_optimize_lossless_default_name(tmp_path: Path, sample_pdf: Path) -> None:
    code = pdf_imaging_cli.main(["optimize", str(sample_pdf)])

    assert code == 0
    assert (tmp_path / "sample_optimized.pdf").exists()


def test_cli_reports_errors(tmp_path: Path, capsys) -> None:
    code = pdf_imaging_cli.main(["extract", str(tmp_path / "missing.pdf")])

    assert code == 1
    assert "File not found" in capsys.readouterr().err


def test_parse_pages() -> None:
    assert pdf_imaging_cli.parse_pages("1, 3,,10") == {0, 2, 9}


def test_cli_rejects_bad_page_list(sample_pdf: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        pdf_imaging_cli.main(["extract", str(sample_pdf), "-p", "1,x"])

    assert excinfo.value.code == 2
    assert "invalid page number" in capsys.readouterr().err
