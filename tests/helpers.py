# tests/helpers.py

import numpy as np
from geomosaic.raster import RasterDataset

def assert_grid_match(r1: RasterDataset, r2: RasterDataset):
    """Strictly verify two rasters share the exact same grid."""
    assert (r1.utm_zone, r1.utm_north) == (r2.utm_zone, r2.utm_north), \
        f"UTM mismatch: {r1.utm_zone} != {r2.utm_zone}"

    assert r1.shape == r2.shape, \
        f"Shape mismatch: {r1.shape} != {r2.shape}"

    assert np.allclose(np.array(r1.transform_gdal), np.array(r2.transform_gdal), atol=1e-9), \
        "Transform mismatch (Pixel alignment error)"

def region(raster: RasterDataset, band_id: int, col: int, row: int, width: int, height: int) -> np.ndarray:
    """Samples of a rectangular block of one band, read through the flat band view."""
    band = raster.band(band_id)
    rows = [
        band[raster.index_of(col, r):raster.index_of(col, r) + width]
        for r in range(row, row + height)
    ]
    return np.array(rows)
