"""High-level entry point running the full reference/test analysis pipeline."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from .compare.comparator import compare
from .config import EngineConfig
from .errors import DecodeError
from .extract.decode import decode_with_format
from .features.profile import profile_image
from .insights.report import generate_insights
from .io.models import ComparisonResult, ImageAnalysis, PixelBuffer, VisualAnalysisReport

logger = logging.getLogger(__name__)

ImageSource = str | Path | PixelBuffer


class VisualAnalysisEngine:
    """Compare a reference image with a test image and explain the result.

    The engine holds no state between calls, so one instance may be shared
    across threads or used from worker processes for independent pairs.
    """

    def __init__(self, config: EngineConfig | Mapping[str, Any] | None = None) -> None:
        if config is None or isinstance(config, EngineConfig):
            self.config = config or EngineConfig()
        else:
            self.config = EngineConfig.from_mapping(config)

    def analyze_image(self, source: ImageSource) -> ImageAnalysis:
        _, analysis = self._load(source)
        return analysis

    def compare_images(
        self,
        reference: ImageSource,
        test: ImageSource,
        output_dir: str | Path | None = None,
    ) -> ComparisonResult:
        ref_buffer, ref_analysis = self._load(reference)
        test_buffer, test_analysis = self._load(test)
        return compare(
            ref_buffer,
            test_buffer,
            ref_analysis,
            test_analysis,
            config=self.config,
            output_dir=output_dir,
        )

    def perform_visual_analysis(
        self,
        reference: ImageSource,
        test: ImageSource,
        output_dir: str | Path | None = None,
    ) -> VisualAnalysisReport:
        """Run decode, profiling, comparison and insight generation.

        Raises ``DecodeError`` when either image cannot be read and
        ``AnalysisError`` when no comparison metric could be computed.
        """
        try:
            ref_buffer, ref_analysis = self._load(reference)
            test_buffer, test_analysis = self._load(test)
        except DecodeError:
            logger.exception("Error performing visual analysis")
            raise

        comparison = compare(
            ref_buffer,
            test_buffer,
            ref_analysis,
            test_analysis,
            config=self.config,
            output_dir=output_dir,
        )
        return VisualAnalysisReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            reference=ref_analysis,
            test=test_analysis,
            comparison=comparison,
            insights=generate_insights(comparison, self.config.thresholds),
        )

    def _load(self, source: ImageSource) -> tuple[PixelBuffer, ImageAnalysis]:
        if isinstance(source, PixelBuffer):
            return source, profile_image(source)

        path = Path(source)
        buffer, image_format = decode_with_format(path)
        return buffer, profile_image(
            buffer,
            path=str(path),
            image_format=image_format,
            file_size=path.stat().st_size,
        )
