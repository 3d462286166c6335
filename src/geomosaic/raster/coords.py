# src/geomosaic/raster/coords.py

"""
This module converts coordinates between the three frames of a raster:

- pixel: (col, row) indices into the grid,
- UTM: projected coordinates given by the affine transform,
- custom: UTM coordinates translated by a user defined local origin.

All functions are stateless and take the transform (and custom origin)
they operate on. Rotation terms of the transform are ignored.
"""

import logging
import math
from typing import Optional, Sequence, Tuple

from rasterio.transform import Affine

from geomosaic.exceptions import RasterValidationError

log = logging.getLogger(__name__)

__all__ = [
    "pixel_to_utm",
    "utm_to_pixel",
    "pixel_to_custom",
    "custom_to_pixel",
    "custom_to_utm",
    "utm_to_custom",
    "round_half_away",
    "index_of"
]

def pixel_to_utm(transform: Affine, col, row) -> Tuple:
    """
    Map pixel coordinates to the projected (UTM) frame.

    Args:
        transform: North-up affine transform of the raster.
        col: Column(s), scalar or numpy array, may be fractional.
        row: Row(s), scalar or numpy array, may be fractional.

    Returns:
        Tuple: (x, y) in projected units.
    """
    return (col * transform.a + transform.c,
            row * transform.e + transform.f)

def utm_to_pixel(transform: Affine, x, y) -> Tuple:
    """
    Map projected (UTM) coordinates to fractional pixel coordinates.

    Raises:
        RasterValidationError: If either pixel scale is zero.
    """
    if transform.a == 0 or transform.e == 0:
        raise RasterValidationError(
            f"Cannot invert transform with zero scale "
            f"(scale_x={transform.a}, scale_y={transform.e})"
        )
    return ((x - transform.c) / transform.a,
            (y - transform.f) / transform.e)

def custom_to_utm(origin: Sequence[float], x, y) -> Tuple:
    """Translate custom-frame coordinates back to UTM."""
    return (x + origin[0], y + origin[1])

def utm_to_custom(origin: Sequence[float], x, y) -> Tuple:
    """Translate UTM coordinates into the custom frame."""
    return (x - origin[0], y - origin[1])

def pixel_to_custom(transform: Affine, origin: Sequence[float], col, row) -> Tuple:
    return utm_to_custom(origin, *pixel_to_utm(transform, col, row))

def custom_to_pixel(transform: Affine, origin: Sequence[float], x, y) -> Tuple:
    return utm_to_pixel(transform, *custom_to_utm(origin, x, y))

def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))

def index_of(width: int, height: int, col: float, row: float) -> Optional[int]:
    """
    Linear (row-major) index of a pixel in a band of the given shape.

    Fractional coordinates are rounded to the nearest pixel first.

    Returns:
        Optional[int]: `col + row * width`, or None if the pixel lies outside
        the grid or is not finite. Callers must check for None before indexing.
    """
    if not (math.isfinite(col) and math.isfinite(row)):
        log.debug(f"Pixel ({col}, {row}) is not a finite coordinate")
        return None
    c = round_half_away(col)
    r = round_half_away(row)
    if c < 0 or r < 0 or c >= width or r >= height:
        log.debug(f"Pixel ({col}, {row}) outside {width}x{height} grid")
        return None
    return c + r * width
