# src/geomosaic/raster/mosaic.py

"""
This module assembles co-registered tiles into a single mosaic.

All tiles must share the pixel scale, the grid dimensions and the band count.
Their upper left corners may sit anywhere on the common grid; small floating
point residues in those corners are absorbed when computing pixel offsets.
"""

import logging
import math
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np

from geomosaic.exceptions import RasterValidationError, ShapeMismatchError
from .layer import RasterDataset
from .io import load
from .resources import estimate_memory

log = logging.getLogger(__name__)

__all__ = [
    "SCALE_TOLERANCE",
    "OFFSET_BIAS",
    "SIZE_BIAS",
    "check_tiles",
    "mosaic_envelope",
    "tile_offset",
    "merge"
]

# Absolute tolerance when comparing tile scales
SCALE_TOLERANCE = float(np.finfo(np.float64).eps)

# Added before flooring tile offsets. Both biases must stay as they are for
# mosaics to match previously produced ones bit for bit.
OFFSET_BIAS = 0.1
SIZE_BIAS = 0.5

def _same(a: float, b: float, tolerance: float) -> bool:
    return abs(a - b) < tolerance

def check_tiles(tiles: Sequence[RasterDataset], tolerance: float = SCALE_TOLERANCE):
    """
    Ensure every tile matches the first one.

    Scales are compared within `tolerance`, width, height and band count
    exactly.

    Raises:
        RasterValidationError: If `tiles` is empty.
        ShapeMismatchError: On the first tile that does not match.
    """
    if not tiles:
        raise RasterValidationError("Cannot merge an empty list of tiles.")

    ref = tiles[0]
    for i, tile in enumerate(tiles):
        if not (_same(ref.scale_x, tile.scale_x, tolerance) and
                _same(ref.scale_y, tile.scale_y, tolerance) and
                ref.width == tile.width and
                ref.height == tile.height and
                ref.count == tile.count):
            raise ShapeMismatchError(
                f"Tile {i} does not match tile 0: "
                f"scale ({tile.scale_x}, {tile.scale_y}) vs ({ref.scale_x}, {ref.scale_y}), "
                f"size {tile.count}x{tile.width}x{tile.height} "
                f"vs {ref.count}x{ref.width}x{ref.height}"
            )

def mosaic_envelope(tiles: Sequence[RasterDataset]) -> Tuple[float, float, int, int]:
    """
    Upper left corner and size of the grid covering every tile.

    Tiles are assumed to have passed `check_tiles`. Works for either sign
    of the scales.

    Returns:
        Tuple: (ulx, uly, width, height) of the mosaic.
    """
    ref = tiles[0]
    scale_x, scale_y = ref.scale_x, ref.scale_y

    xs = [tile.utm_pose_x for tile in tiles]
    ys = [tile.utm_pose_y for tile in tiles]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    # North-up (scale_x > 0, scale_y < 0): ul = (min_x, max_y)
    ulx = min_x if scale_x > 0 else max_x
    uly = max_y if scale_y < 0 else min_y
    lrx = (max_x if scale_x > 0 else min_x) + scale_x * ref.width
    lry = (min_y if scale_y < 0 else max_y) + scale_y * ref.height

    # Tile corners accumulate sub-pixel residues, round to the nearest pixel
    width = math.floor((lrx - ulx) / scale_x + SIZE_BIAS)
    height = math.floor((lry - uly) / scale_y + SIZE_BIAS)
    return ulx, uly, width, height

def tile_offset(tile: RasterDataset, ulx: float, uly: float) -> Tuple[int, int]:
    """Pixel offset (xoff, yoff) of a tile's upper left corner in the mosaic."""
    xoff = math.floor((tile.utm_pose_x - ulx) / tile.scale_x + OFFSET_BIAS)
    yoff = math.floor((tile.utm_pose_y - uly) / tile.scale_y + OFFSET_BIAS)
    return xoff, yoff

def merge(
    tiles: Sequence[Union[str, Path, RasterDataset]],
    no_data: Union[float, int] = 0,
    tolerance: float = SCALE_TOLERANCE
) -> RasterDataset:
    """
    Merge tiles sharing a pixel scale into one mosaic.

    The mosaic takes its metadata, UTM zone, custom origin and band names from
    the first tile. Pixels covered by no tile are set to `no_data`. Tiles are
    written in input order, so where footprints overlap the later tile wins.

    Args:
        tiles: Tiles as RasterDataset objects or paths to raster files.
        no_data: Fill value for uncovered pixels, also set as the mosaic's nodata.
        tolerance: Absolute tolerance when comparing pixel scales.

    Returns:
        RasterDataset: The mosaic.

    Raises:
        ShapeMismatchError: If tiles disagree on scale, size or band count.
                            Nothing is allocated in that case.
    """
    rasters: List[RasterDataset] = [
        load(t) if isinstance(t, (str, Path)) else t for t in tiles
    ]
    check_tiles(rasters, tolerance=tolerance)

    ref = rasters[0]
    ulx, uly, out_w, out_h = mosaic_envelope(rasters)

    log.info(f"Merging {len(rasters)} tiles into a {ref.count}x{out_w}x{out_h} mosaic")

    estimate = estimate_memory(ref.count, out_w, out_h, ref.dtype)
    if not estimate.is_safe:
        log.warning(f"Mosaic may not fit in memory. {estimate.reason}")

    result = RasterDataset(dtype=ref.dtype)
    result.copy_meta_only(ref)
    result.set_transform(ulx, uly, ref.scale_x, ref.scale_y)
    result.set_size(ref.count, out_w, out_h, no_data)
    result.nodata = no_data
    for band_id, name in enumerate(ref.band_names):
        if name:
            result.set_band_name(band_id, name)

    for i, tile in enumerate(rasters):
        xoff, yoff = tile_offset(tile, ulx, uly)
        log.debug(f"Tile {i} at pixel offset ({xoff}, {yoff})")

        if xoff < 0 or yoff < 0 or xoff + tile.width > out_w or yoff + tile.height > out_h:
            # Cannot happen for tiles accepted by check_tiles: the size bias
            # exceeds the offset bias
            raise RuntimeError(
                f"Invariant violated: tile {i} offset ({xoff}, {yoff}) falls outside "
                f"the {out_w}x{out_h} mosaic envelope."
            )

        # Row r of the tile lands at linear index xoff + (yoff + r) * out_w
        result.data[:, yoff:yoff + tile.height, xoff:xoff + tile.width] = tile.data

    return result
