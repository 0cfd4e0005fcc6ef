"""
Image Comparison Module
Compares a time-ordered set of frames pixel-by-pixel and edge-by-edge.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from core.edge_extractor import extract_edges
from core.raster import EdgeRaster, Raster, load_raster
from core.visual_diff import DEFAULT_THRESHOLD, DiffResult, diff_edges, diff_pixels
from utils.file_utils import ensure_directory

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


def pair_label(first: str, second: str) -> str:
    return f"{first}_vs_{second}"


def default_pairs(labels: Sequence[str]) -> List[Pair]:
    """Consecutive frames in capture order, then first against last."""
    labels = list(labels)
    pairs = list(zip(labels, labels[1:]))
    if len(labels) > 2:
        pairs.append((labels[0], labels[-1]))
    return pairs


class ImageComparator:
    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        self.threshold = threshold

    def compare_frames(self, frames: Dict[str, Raster],
                       pairs: Optional[List[Pair]] = None) -> Dict[str, Dict[str, DiffResult]]:
        """
        Compare frames pairwise.

        Args:
            frames: Rasters keyed by label, in capture order
            pairs: Label pairs to compare; defaults to default_pairs(frames)

        Returns:
            {'pixelDiff': {pair_label: DiffResult}, 'edgeDiff': {pair_label: DiffResult}}
        """
        if pairs is None:
            pairs = default_pairs(list(frames))

        edges: Dict[str, EdgeRaster] = {}
        pixel_results = {}
        edge_results = {}
        for first, second in pairs:
            label = pair_label(first, second)
            pixel_results[label] = diff_pixels(frames[first], frames[second], self.threshold)
            for name in (first, second):
                if name not in edges:
                    edges[name] = extract_edges(frames[name])
            edge_results[label] = diff_edges(edges[first], edges[second], self.threshold)
            logger.info(
                f"{label}: pixels {pixel_results[label].changed_percent:.2f}% changed, "
                f"edges {edge_results[label].changed_percent:.2f}% changed"
            )

        return {'pixelDiff': pixel_results, 'edgeDiff': edge_results}

    def compare_files(self, paths: Dict[str, Union[str, Path]],
                      pairs: Optional[List[Pair]] = None) -> Dict[str, Dict[str, DiffResult]]:
        frames = {label: load_raster(path) for label, path in paths.items()}
        return self.compare_frames(frames, pairs)

    def save_edge_maps(self, frames: Dict[str, Raster], out_dir: Union[str, Path]) -> Dict[str, Path]:
        """Write ``<label>.edges.png`` for each frame and return the paths."""
        out_dir = Path(out_dir)
        ensure_directory(out_dir)
        written = {}
        for label, raster in frames.items():
            path = out_dir / f"{label}.edges.png"
            extract_edges(raster).to_image().save(path)
            written[label] = path
        return written
