"""
Edge Extractor Module
Turns an RGBA raster into a Sobel edge-magnitude map.
"""

import logging

import numpy as np

from .raster import EdgeRaster, Raster

logger = logging.getLogger(__name__)

# ITU-R BT.709 luma coefficients
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722

# Magnitudes are divided by this and clipped to the uint8 range
MAGNITUDE_SCALE = 4.0
MAGNITUDE_MAX = 255.0


def luminance(raster: Raster) -> np.ndarray:
    """Per-pixel BT.709 luminance as a float32 grid of shape (height, width)."""
    rgb = raster.pixels.astype(np.float64)
    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]
    return (LUMA_R * r + LUMA_G * g + LUMA_B * b).astype(np.float32)


def extract_edges(raster: Raster) -> EdgeRaster:
    """
    Compute the Sobel edge magnitude of a raster.

    Interior pixels get ``min(255, hypot(gx, gy) / 4)`` truncated to uint8.
    The one-pixel border has no full 3x3 neighborhood and stays 0, so a
    raster narrower or shorter than 3 pixels yields an all-zero map.
    """
    w, h = raster.width, raster.height
    out = np.zeros((h, w), dtype=np.uint8)

    if w < 3 or h < 3:
        logger.debug(f"Raster {w}x{h} has no interior pixels, edge map is empty")
        return EdgeRaster(width=w, height=h, magnitudes=out)

    gray = luminance(raster).astype(np.float64)

    # 3x3 neighbors of every interior pixel
    tl = gray[:-2, :-2]
    tc = gray[:-2, 1:-1]
    tr = gray[:-2, 2:]
    ml = gray[1:-1, :-2]
    mr = gray[1:-1, 2:]
    bl = gray[2:, :-2]
    bc = gray[2:, 1:-1]
    br = gray[2:, 2:]

    gx = -tl + tr + -2 * ml + 2 * mr + -bl + br
    gy = -tl - 2 * tc - tr + bl + 2 * bc + br

    magnitude = np.minimum(MAGNITUDE_MAX, np.hypot(gx, gy) / MAGNITUDE_SCALE)
    out[1:-1, 1:-1] = magnitude.astype(np.uint8)

    logger.debug(f"Extracted edges for {w}x{h} raster, max magnitude {int(out.max())}")
    return EdgeRaster(width=w, height=h, magnitudes=out)
