"""
Visual Diff Module
Quantifies how much two frames (or two edge maps) differ.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np

from .raster import EdgeRaster, Raster, SizeMismatch

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 20


@dataclass(frozen=True)
class DiffResult:
    threshold: float
    changed_percent: float
    mean_abs_diff: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to the camelCase shape used in reports."""
        return {
            'threshold': self.threshold,
            'changedPercent': self.changed_percent,
            'meanAbsDiff': self.mean_abs_diff,
        }


def _summarize(per_element: np.ndarray, threshold: float) -> DiffResult:
    total = per_element.size
    changed = int(np.count_nonzero(per_element > threshold))
    # cumsum accumulates left to right, one element at a time
    sum_abs = float(np.cumsum(per_element.ravel(), dtype=np.float64)[-1])
    return DiffResult(
        threshold=threshold,
        changed_percent=(changed / total) * 100,
        mean_abs_diff=sum_abs / total,
    )


def diff_pixels(a: Raster, b: Raster, threshold: float = DEFAULT_THRESHOLD) -> DiffResult:
    """
    Compare two equal-sized RGBA rasters.

    A pixel's difference is the mean of its absolute R, G and B differences
    (alpha is ignored). A pixel counts as changed only when that mean is
    strictly greater than ``threshold``.

    Raises:
        SizeMismatch: if the rasters differ in width or height
    """
    if a.size != b.size:
        raise SizeMismatch('PNG', a.size, b.size)

    rgb_a = a.pixels[..., :3].astype(np.int16)
    rgb_b = b.pixels[..., :3].astype(np.int16)
    channel_sum = np.abs(rgb_a - rgb_b).sum(axis=2, dtype=np.int32)
    per_pixel = channel_sum / 3

    result = _summarize(per_pixel, threshold)
    logger.debug(
        f"Pixel diff {a.width}x{a.height}: {result.changed_percent:.3f}% changed, "
        f"mean {result.mean_abs_diff:.3f}"
    )
    return result


def diff_edges(a: EdgeRaster, b: EdgeRaster, threshold: float = DEFAULT_THRESHOLD) -> DiffResult:
    """Compare two equal-sized edge maps; changed when |a - b| > threshold."""
    if a.size != b.size:
        raise SizeMismatch('Edge', a.size, b.size)

    per_pixel = np.abs(a.magnitudes.astype(np.int16) - b.magnitudes.astype(np.int16))

    result = _summarize(per_pixel, threshold)
    logger.debug(
        f"Edge diff {a.width}x{a.height}: {result.changed_percent:.3f}% changed, "
        f"mean {result.mean_abs_diff:.3f}"
    )
    return result
