from __future__ import annotations

from pathlib import Path

import pytest

from conftest import page_boxes, posix_only
from pdf_imaging import (
    CompressionMode,
    CompressionQuality,
    ExternalEngineMode,
    GhostscriptEngine,
    LosslessMode,
    OptimizationResult,
    make_request,
    optimize_pdf,
)
from pdf_imaging.exceptions import EngineNotFound


def test_make_request() -> None:
    assert make_request(CompressionMode.LOSSLESS, CompressionQuality.SCREEN) == LosslessMode()
    assert make_request(CompressionMode.EXTERNAL_ENGINE, CompressionQuality.SCREEN) == ExternalEngineMode(
        CompressionQuality.SCREEN
    )


def test_quality_presets() -> None:
    assert [q.ghostscript_setting for q in CompressionQuality] == ["/screen", "/ebook", "/printer"]


def test_optimize_lossless_result(tmp_path: Path, sample_pdf: Path) -> None:
    output = tmp_path / "out.pdf"

    result = optimize_pdf(sample_pdf, output, LosslessMode())

    assert isinstance(result, OptimizationResult)
    assert result.input_size == sample_pdf.stat().st_size
    assert result.output_size == output.stat().st_size
    assert result.mode_name == "lossless"
    assert "Reduction:" in result.summary()
    assert len(page_boxes(output)) == 3


def test_optimize_external_engine_not_found(tmp_path: Path, sample_pdf: Path) -> None:
    engine = GhostscriptEngine(
        bundle_dir=tmp_path / "bundle", install_paths=[], search_path="", share_dirs=[]
    )

    with pytest.raises(EngineNotFound):
        optimize_pdf(sample_pdf, tmp_path / "out.pdf", ExternalEngineMode(), engine=engine)


@posix_only
def test_optimize_external_dispatch(tmp_path: Path, sample_pdf: Path, script_factory) -> None:
    script_factory(
        tmp_path / "bundle" / "bin" / "gs",
        'for a in "$@"; do case "$a" in -sOutputFile=*) out="${a#-sOutputFile=}";; esac; done\n'
        'cp input.pdf "$out"\n',
    )
    engine = GhostscriptEngine(
        bundle_dir=tmp_path / "bundle", install_paths=[], search_path="", share_dirs=[]
    )

    result = optimize_pdf(
        sample_pdf, tmp_path / "gs.pdf", ExternalEngineMode(CompressionQuality.SCREEN), engine=engine
    )

    assert result.mode_name == "ghostscript/screen"
    assert result.reduction_pct == pytest.approx(0.0)


def test_optimize_rejects_unknown_request(tmp_path: Path, sample_pdf: Path) -> None:
    with pytest.raises(TypeError):
        optimize_pdf(sample_pdf, tmp_path / "out.pdf", "fast")
