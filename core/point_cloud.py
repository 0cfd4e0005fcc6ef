"""
Point Cloud Module
Measures how far sampled particle positions moved between two snapshots.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


class PositionLengthMismatch(Exception):
    """Raised in strict mode when two position samples differ in length."""

    pass


@dataclass(frozen=True)
class PositionDelta:
    avg_abs_delta: Optional[float]
    compared_length: int = 0
    length_a: int = 0
    length_b: int = 0

    @property
    def length_mismatch(self) -> bool:
        return self.length_a != self.length_b


def _as_sample(value: Any) -> Optional[np.ndarray]:
    """Return a flat float array, or None if ``value`` is not a numeric sequence."""
    if isinstance(value, np.ndarray):
        if value.ndim == 0:
            return None
    elif isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Sequence):
        return None
    try:
        return np.asarray(value, dtype=np.float64).ravel()
    except (TypeError, ValueError):
        return None


def compare_positions(a: Any, b: Any, strict: bool = False) -> PositionDelta:
    """
    Mean absolute per-element difference between two position samples.

    Only the overlapping prefix is compared when lengths differ; the lengths
    are reported so callers can spot the mismatch. With ``strict=True`` a
    mismatch raises PositionLengthMismatch instead.
    A NaN or infinite value anywhere in the compared prefix gives None.
    """
    sample_a = _as_sample(a)
    sample_b = _as_sample(b)
    length_a = 0 if sample_a is None else sample_a.size
    length_b = 0 if sample_b is None else sample_b.size

    if sample_a is None or sample_b is None or length_a == 0 or length_b == 0:
        return PositionDelta(None, 0, length_a, length_b)

    if length_a != length_b:
        if strict:
            raise PositionLengthMismatch(f"position sample length mismatch: {length_a} vs {length_b}")
        logger.warning(f"Position samples differ in length ({length_a} vs {length_b}), comparing prefix")

    n = min(length_a, length_b)
    total = 0.0
    for x, y in zip(sample_a[:n].tolist(), sample_b[:n].tolist()):
        total += abs(x - y)
    mean = total / n
    if not math.isfinite(mean):
        logger.warning(f"Position samples hold non-finite values, delta over {n} floats dropped")
        return PositionDelta(None, n, length_a, length_b)
    return PositionDelta(mean, n, length_a, length_b)


def avg_abs_delta(a: Any, b: Any) -> Optional[float]:
    """Mean absolute difference over the overlapping prefix, or None when there is no data."""
    return compare_positions(a, b).avg_abs_delta


def compare_layers(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, PositionDelta]:
    """
    Compare the sampled ``head`` of every layer in ``before`` with the same layer in ``after``.

    Layers are the per-layer dicts returned by a debug snapshot
    ({'totalFloats', 'sampledFloats', 'head'}) or None when a layer was not
    initialized.
    """
    results = {}
    after = after or {}
    for name, layer in (before or {}).items():
        head_a = layer.get('head') if layer else None
        other = after.get(name)
        head_b = other.get('head') if other else None
        results[name] = compare_positions(head_a, head_b)
        logger.debug(f"Layer {name}: delta={results[name].avg_abs_delta}")
    return results
