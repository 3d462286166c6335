# tests/unit/test_names.py

import pytest
import numpy as np

from geomosaic.exceptions import NameNotFoundError
from geomosaic.raster import names

def test_get_band_id_finds_name():
    meta = [{"NAME": "a"}, {"NAME": "b"}, {"NAME": "x"}]
    assert names.get_band_id(meta, "x") == 2

def test_get_band_id_missing_name():
    meta = [{"NAME": "a"}, {"NAME": "b"}]
    with pytest.raises(NameNotFoundError, match="x"):
        names.get_band_id(meta, "x")

def test_name_not_found_is_a_key_error():
    with pytest.raises(KeyError):
        names.get_band_id([{}], "x")

def test_first_match_wins():
    meta = [{"NAME": "dup"}, {"NAME": "dup"}]
    assert names.get_band_id(meta, "dup") == 0

def test_unnamed_bands_are_skipped():
    meta = [{}, {"OTHER": "x"}, {"NAME": "x"}]
    assert names.get_band_id(meta, "x") == 2
    assert names.get_band_name(meta, 0) == ""

def test_dataset_band_by_name(tile_factory):
    tile = tile_factory(count=3, band_names=["red", "green", "nir"])

    assert tile.get_band_id("nir") == 2
    assert tile.band_names == ["red", "green", "nir"]

    nir = tile.get_band_by_name("nir")
    assert np.array_equal(nir, tile.data[2].ravel())

    # the returned band is a view into the dataset
    nir[0] = -1
    assert tile.data[2, 0, 0] == -1

def test_set_band_name(tile_factory):
    tile = tile_factory(count=2)
    tile.set_band_name(1, "slope")

    assert tile.get_band_name(1) == "slope"
    assert tile.get_band_meta(1, "NAME") == "slope"
    assert tile.get_band_id("slope") == 1
