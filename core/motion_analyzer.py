"""
Main Motion Analyzer Interface
Coordinates frame capture, position sampling and frame comparison for one page.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from comparator.report_builder import ReportBuilder
from core.point_cloud import compare_layers
from core.raster import load_raster
from utils.file_utils import file_exists, make_output_dir
from utils.settings import Settings
from visual.compare_images import ImageComparator
from visual.generate_screenshots import ScreenshotGenerator, resolve_chrome_path

logger = logging.getLogger(__name__)


class MotionAnalyzer:
    def __init__(self, settings: Optional[Settings] = None,
                 generator_factory: Callable[[Settings], ScreenshotGenerator] = ScreenshotGenerator):
        self.settings = settings or Settings()
        self.generator_factory = generator_factory
        self.comparator = ImageComparator(threshold=self.settings.threshold)
        self.last_report: Optional[ReportBuilder] = None

    def run(self, url: str, out_dir: Union[str, Path, None] = None,
            chrome: Optional[str] = None, sample_points: Optional[int] = None) -> Dict[str, Any]:
        """
        Capture frames of ``url`` and report how much they changed.

        The first two frames are paired with debug snapshots of the page's
        particle layers so position movement can be measured alongside the
        pixel and edge differences.
        """
        settings = self.settings
        sample_points = sample_points or settings.sample_points
        labels = settings.frame_labels
        if len(labels) < 2:
            raise ValueError(f"need at least two frame labels, got {labels}")

        if chrome and not file_exists(chrome):
            raise FileNotFoundError(f"Chrome executable not found: {chrome}")
        out_dir = make_output_dir(out_dir)
        executable_path = resolve_chrome_path(chrome)

        report = ReportBuilder(url=url, viewport=settings.viewport, sample_points=sample_points,
                               out_dir=out_dir, executable_path=executable_path)
        self.last_report = report

        frame_paths = {}
        with self.generator_factory(settings) as generator:
            generator.setup(executable_path)
            generator.open(url)

            overlay_gone, wait_ms = generator.wait_until_ready()
            report.record_readiness(overlay_gone, wait_ms)

            snapshots = []
            for index, label in enumerate(labels):
                if index > 0:
                    generator.pause()
                # Positions are sampled alongside the first two frames only
                if index < 2:
                    snapshots.append(generator.debug_snapshot(sample_points))
                frame_paths[label] = generator.capture_screenshot(label, out_dir)
                report.add_frame(label, frame_paths[label])

        report.record_snapshot(snapshots[0])
        deltas = compare_layers(snapshots[0].get('layers'), snapshots[1].get('layers'))
        report.add_position_deltas(deltas)

        frames = {label: load_raster(path) for label, path in frame_paths.items()}
        report.collect_metrics(self.comparator.compare_frames(frames))

        logger.info(f"Motion check finished for {url}, frames in {out_dir}")
        return report.to_dict()
