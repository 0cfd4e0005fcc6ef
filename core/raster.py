"""
Raster Module
Decoded RGBA frames and single-channel edge maps shared by the comparison engine.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

CHANNELS = 4


class SizeMismatch(Exception):
    """Raised when two rasters compared pixel-by-pixel differ in width or height."""

    def __init__(self, kind: str, first: Tuple[int, int], second: Tuple[int, int]):
        self.first = first
        self.second = second
        super().__init__(
            f"{kind} size mismatch: {first[0]}x{first[1]} vs {second[0]}x{second[1]}"
        )


class RasterDecodeError(Exception):
    """Raised when image bytes cannot be decoded into a raster."""

    pass


def _freeze(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.uint8, order='C')
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Raster:
    """RGBA image, row-major, top-to-bottom; ``pixels`` has shape (height, width, 4)."""

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"raster dimensions must be positive, got {self.width}x{self.height}")
        if self.pixels.shape != (self.height, self.width, CHANNELS):
            raise ValueError(
                f"pixel array shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height} RGBA"
            )
        object.__setattr__(self, 'pixels', _freeze(self.pixels))

    @classmethod
    def from_buffer(cls, width: int, height: int, buffer: Union[bytes, bytearray, memoryview]) -> 'Raster':
        """Build a raster from a flat RGBA byte buffer of length width*height*4."""
        expected = width * height * CHANNELS
        if len(buffer) != expected:
            raise ValueError(f"buffer length {len(buffer)} != {expected} for {width}x{height} RGBA")
        pixels = np.frombuffer(bytes(buffer), dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(width=width, height=height, pixels=pixels)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> 'Raster':
        pixels = np.asarray(pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"expected an (height, width, 4) array, got shape {pixels.shape}")
        return cls(width=pixels.shape[1], height=pixels.shape[0], pixels=pixels)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def buffer(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True, eq=False)
class EdgeRaster:
    """Single-channel edge magnitudes; ``magnitudes`` has shape (height, width)."""

    width: int
    height: int
    magnitudes: np.ndarray

    def __post_init__(self):
        if self.magnitudes.shape != (self.height, self.width):
            raise ValueError(
                f"magnitude array shape {self.magnitudes.shape} does not match "
                f"{self.width}x{self.height}"
            )
        object.__setattr__(self, 'magnitudes', _freeze(self.magnitudes))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def buffer(self) -> bytes:
        return self.magnitudes.tobytes()

    def to_image(self) -> Image.Image:
        """Grayscale Pillow image of the edge map, for saving next to the frames."""
        return Image.fromarray(np.array(self.magnitudes))


def decode_raster(data: bytes) -> Raster:
    """Decode image bytes (PNG in practice) into an RGBA raster."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            rgba = image.convert('RGBA')
            pixels = np.asarray(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Error decoding image ({len(data)} bytes): {str(e)}")
        raise RasterDecodeError(f"failed to decode image: {e}") from e
    logger.debug(f"Decoded raster {pixels.shape[1]}x{pixels.shape[0]}")
    return Raster.from_array(pixels)


def load_raster(path: Union[str, Path]) -> Raster:
    """Read an image file from disk and decode it."""
    path = Path(path)
    logger.info(f"Loading raster: {path}")
    with open(path, 'rb') as f:
        data = f.read()
    return decode_raster(data)
