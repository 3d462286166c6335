# tests/integration/test_io.py

import logging

import pytest
import numpy as np
import rasterio
from rasterio.transform import Affine

from geomosaic.exceptions import NumericParseError, RasterIOError
from geomosaic.raster import io, RasterDataset, quantize_to_bytes, merge
from helpers import assert_grid_match

@pytest.fixture
def survey_raster():
    data = np.random.default_rng(0).normal(100.0, 15.0, size=(2, 6, 7)).astype(np.float32)
    raster = RasterDataset.from_array(
        data,
        transform=Affine(0.5, 0.0, 500000.0, 0.0, -0.5, 4800000.0),
        utm_zone=31,
        utm_north=True,
        band_names=["dem", "slope"],
        metadata={"SOURCE": "survey"}
    )
    raster.set_custom_origin(500010.25, 4799990.5, 12.0)
    return raster

def test_driver_name():
    assert io.driver_name("a.tif") == "GTiff"
    assert io.driver_name("a.TIFF") == "GTiff"
    assert io.driver_name("dir.v2/a.jpg") == "JPEG"
    assert io.driver_name("a.png") == "PNG"
    assert io.driver_name("a.gif") == "GIF"

def test_save_load_round_trip(tmp_path, survey_raster):
    path = tmp_path / "survey.tif"
    io.save(survey_raster, path)
    loaded = io.load(path)

    assert loaded == survey_raster
    assert loaded.same_pose(survey_raster)
    assert_grid_match(loaded, survey_raster)
    assert loaded.transform_gdal == survey_raster.transform_gdal
    assert loaded.metadata == survey_raster.metadata
    assert loaded.custom_origin == (500010.25, 4799990.5, 12.0)
    assert loaded.band_names == ["dem", "slope"]
    assert loaded.get_band_id("slope") == 1
    assert np.array_equal(loaded.data, survey_raster.data)

def test_save_writes_crs_and_compression(tmp_path, survey_raster):
    path = tmp_path / "survey.tif"
    io.save(survey_raster, path)

    with rasterio.open(path) as src:
        assert src.crs.to_epsg() == 32631
        assert src.profile["compress"] == "deflate"
        assert src.descriptions == ("dem", "slope")
        assert src.tags(1)["NAME"] == "dem"

def test_save_without_options(tmp_path, survey_raster):
    path = tmp_path / "plain.tif"
    io.save(survey_raster, path, options={})

    with rasterio.open(path) as src:
        assert src.profile.get("compress") is None

def _spy_open(monkeypatch):
    profiles = []
    real_open = rasterio.open

    def spy(path, mode="r", **kwargs):
        if mode == "w":
            profiles.append(kwargs)
        return real_open(path, mode, **kwargs)

    monkeypatch.setattr(io.rasterio, "open", spy)
    return profiles

def test_default_compression_is_gtiff_only(tmp_path, survey_raster, monkeypatch):
    profiles = _spy_open(monkeypatch)

    io.save(survey_raster, tmp_path / "survey.tif")
    io.save(survey_raster, tmp_path / "survey.img", driver="ENVI")

    assert profiles[0]["COMPRESS"] == "DEFLATE"
    assert profiles[1]["driver"] == "ENVI"
    assert not set(io.COMPRESS_OPTIONS) & set(profiles[1])
    assert (tmp_path / "survey.img").exists()

def test_southern_hemisphere_and_nodata(tmp_path, survey_raster):
    survey_raster.set_utm(19, north=False)
    survey_raster.nodata = -9999.0
    path = tmp_path / "south.tif"
    io.save(survey_raster, path)
    loaded = io.load(path)

    assert (loaded.utm_zone, loaded.utm_north) == (19, False)
    assert loaded.nodata == -9999.0

@pytest.mark.parametrize("dtype", [np.uint8, np.int16, np.uint16, np.int32, np.float64])
def test_round_trip_sample_types(tmp_path, dtype):
    data = (np.arange(24) % 100).reshape(2, 3, 4).astype(dtype)
    raster = RasterDataset.from_array(data, transform=Affine(1.0, 0.0, 0.0, 0.0, -1.0, 3.0))
    path = tmp_path / f"{np.dtype(dtype).name}.tif"
    io.save(raster, path)

    loaded = io.load(path, dtype=dtype)
    assert loaded.dtype == np.dtype(dtype)
    assert loaded == raster

def test_type_mismatch_is_a_warning(tmp_path, mock_raster_factory, caplog):
    path = mock_raster_factory("int.tif", dtype="int16")

    with caplog.at_level(logging.WARNING):
        loaded = io.load(path)

    assert "casting to float32" in caplog.text
    assert loaded.dtype == np.float32
    assert loaded.band(0)[:5].tolist() == [0.0, 1.0, 2.0, 3.0, 4.0]

def test_load_from_file_without_geomosaic_metadata(mock_raster_factory):
    path = mock_raster_factory("plain.tif", count=2, descriptions=("red", "nir"), tags={"SENSOR": "x"})
    loaded = io.load(path)

    assert loaded.shape == (2, 10, 10)
    assert (loaded.utm_zone, loaded.utm_north) == (31, True)
    assert loaded.transform_gdal == (500000.0, 1.0, 0.0, 4800000.0, 0.0, -1.0)
    assert loaded.custom_origin == (0.0, 0.0, 0.0)
    assert loaded.get_meta("SENSOR") == "x"
    assert "AREA_OR_POINT" not in loaded.metadata
    assert loaded.get_band_id("nir") == 1

def test_load_bad_custom_origin(mock_raster_factory):
    path = mock_raster_factory("bad.tif", tags={"CUSTOM_X_ORIGIN": "abc"})
    with pytest.raises(NumericParseError):
        io.load(path)

def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        io.load(tmp_path / "missing.tif")

def test_load_not_a_raster(tmp_path):
    path = tmp_path / "notes.tif"
    path.write_text("not a raster")

    with pytest.raises(RasterIOError):
        io.load(path)

def test_save_with_unknown_driver(tmp_path, survey_raster):
    with pytest.raises(IOError):
        io.save(survey_raster, tmp_path / "out.xyz", driver="NOT_A_DRIVER")

def test_export_preview_png(tmp_path, survey_raster):
    out = tmp_path / "preview.png"
    io.export_preview(survey_raster, out, 1)

    assert out.exists()
    assert [p.name for p in tmp_path.iterdir() if "tmp" in p.name] == []

    expected = quantize_to_bytes(survey_raster.band(1)).reshape(6, 7)
    with rasterio.open(out) as src:
        assert src.driver == "PNG"
        assert src.count == 1
        assert src.dtypes[0] == "uint8"
        assert np.array_equal(src.read(1), expected)

def test_export_preview_from_path(tmp_path, mock_raster_factory):
    path = mock_raster_factory("source.tif")
    out = tmp_path / "preview.gif"
    io.export_preview(path, out, 0)

    with rasterio.open(out) as src:
        assert src.driver == "GIF"
        assert src.read(1).max() == 255

def test_export_bytes_failure_cleans_up(tmp_path):
    band = np.zeros((2, 2), dtype=np.uint8)
    with pytest.raises(RasterIOError):
        io.export_bytes(tmp_path / "out.nope", "NOT_A_DRIVER", [band], Affine.identity())

    assert list(tmp_path.iterdir()) == []

def test_merge_tiles_from_disk(tmp_path, mock_raster_factory):
    a = mock_raster_factory("a.tif", origin=(500000.0, 4800000.0), fill=1)
    b = mock_raster_factory("b.tif", origin=(500010.0, 4800000.0), fill=2)
    c = mock_raster_factory("c.tif", origin=(500000.0, 4799990.0), fill=3)

    result = merge([a, b, c], no_data=-1.0)
    assert result.shape == (1, 20, 20)
    assert (result.utm_pose_x, result.utm_pose_y) == (500000.0, 4800000.0)

    grid = result.data[0]
    assert np.all(grid[:10, :10] == 1)
    assert np.all(grid[:10, 10:] == 2)
    assert np.all(grid[10:, :10] == 3)
    assert np.all(grid[10:, 10:] == -1)

    out = tmp_path / "mosaic.tif"
    io.save(result, out)
    assert io.load(out) == result
