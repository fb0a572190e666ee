"""
pipeline.py - PDF optimization entry point.

Dispatches an OptimizeRequest to one of two independent algorithms:

- LosslessMode: structural re-pack with pikepdf (no quality loss)
- ExternalEngineMode: Ghostscript pdfwrite with a quality preset

Both share only the destination guards. Errors propagate to the caller;
the result carries size statistics for a successful run.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .ghostscript import GhostscriptEngine
from .lossless import optimize_lossless
from .models import ExternalEngineMode, LosslessMode, OptimizeRequest
from .utils import PathLike

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Result of optimizing a PDF."""
    input_path: Path
    output_path: Path
    request: OptimizeRequest
    input_size: int = 0
    output_size: int = 0
    total_time: float = 0.0

    @property
    def mode_name(self) -> str:
        if isinstance(self.request, ExternalEngineMode):
            return f"ghostscript/{self.request.quality.value}"
        return "lossless"

    @property
    def reduction_pct(self) -> float:
        if self.input_size == 0:
            return 0
        return (1 - self.output_size / self.input_size) * 100

    def summary(self) -> str:
        return (
            f"Input:  {self.input_path.name} ({self.input_size:,} bytes)\n"
            f"Output: {self.output_path.name} ({self.output_size:,} bytes)\n"
            f"Mode: {self.mode_name}\n"
            f"Reduction: {self.reduction_pct:.1f}%\n"
            f"Time: {self.total_time:.1f}s"
        )


def optimize_pdf(
    input_path: PathLike,
    output_path: PathLike,
    request: OptimizeRequest = LosslessMode(),
    engine: Optional[GhostscriptEngine] = None,
) -> OptimizationResult:
    """
    Optimize a PDF with the method selected by request.

    Args:
        input_path: Source PDF
        output_path: Destination; must not exist yet
        request: LosslessMode() or ExternalEngineMode(quality)
        engine: Ghostscript configuration for external mode

    Returns:
        OptimizationResult with statistics
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    start_time = time.time()

    if isinstance(request, LosslessMode):
        optimize_lossless(input_path, output_path)
    elif isinstance(request, ExternalEngineMode):
        (engine or GhostscriptEngine()).optimize(input_path, output_path, request.quality)
    else:
        raise TypeError(f"Unsupported optimize request: {request!r}")

    result = OptimizationResult(
        input_path=input_path,
        output_path=output_path,
        request=request,
        input_size=input_path.stat().st_size,
        output_size=output_path.stat().st_size,
        total_time=time.time() - start_time,
    )
    logger.info(f"\n{result.summary()}")
    return result
