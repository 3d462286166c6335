# tests/conftest.py

import pytest
import numpy as np
import rasterio
from rasterio.transform import Affine

from geomosaic.raster import RasterDataset

@pytest.fixture
def tile_factory():
    """
    Fixture: Builds in-memory tiles on a shared 1m grid (north-up by default).
    Samples default to a ramp so that every pixel is distinguishable.
    """
    def _make(
        origin_x=0.0,
        origin_y=10.0,
        width=4,
        height=3,
        count=1,
        scale=(1.0, -1.0),
        fill=None,
        dtype=np.float32,
        band_names=None,
        utm_zone=31
    ):
        if fill is None:
            data = np.arange(count * height * width).reshape(count, height, width) + 1
        else:
            data = np.full((count, height, width), fill)

        return RasterDataset.from_array(
            data.astype(dtype),
            transform=Affine(scale[0], 0.0, origin_x, 0.0, scale[1], origin_y),
            utm_zone=utm_zone,
            band_names=band_names
        )
    return _make

@pytest.fixture
def mock_raster_factory(tmp_path):
    """
    Fixture: Writes a small synthetic GeoTIFF with rasterio and returns its path.
    """
    def _make(
        name,
        count=1,
        width=10,
        height=10,
        dtype="float32",
        origin=(500000.0, 4800000.0),
        res=1.0,
        crs="EPSG:32631",
        descriptions=None,
        tags=None,
        fill=None
    ):
        path = tmp_path / name
        transform = Affine.translation(*origin) * Affine.scale(res, -res)

        if fill is None:
            data = (np.arange(count * height * width) % 200).reshape(count, height, width)
        else:
            data = np.full((count, height, width), fill)

        profile = {
            'driver': 'GTiff',
            'height': height,
            'width': width,
            'count': count,
            'dtype': dtype,
            'crs': crs,
            'transform': transform
        }

        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(data.astype(dtype))
            for i, desc in enumerate(descriptions or []):
                dst.set_band_description(i + 1, desc)
            if tags:
                dst.update_tags(**tags)

        return path
    return _make
