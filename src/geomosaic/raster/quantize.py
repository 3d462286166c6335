# src/geomosaic/raster/quantize.py

"""
This module stretches raster bands linearly for low bit depth previews.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from .layer import RasterDataset, format_number

log = logging.getLogger(__name__)

__all__ = [
    "quantize_to_bytes",
    "quantize_band",
    "normalize"
]

def quantize_to_bytes(band: np.ndarray) -> np.ndarray:
    """
    Stretch a band onto [0, 255], one byte per sample.

    The minimum maps to 0 and the maximum to 255; intermediate values are
    truncated, not rounded. A flat band (max == min) carries no contrast and
    yields all zeros.

    Args:
        band: Samples of any supported numeric type.

    Returns:
        np.ndarray: uint8 array with the shape of `band`.
    """
    band = np.asarray(band)
    if band.size == 0:
        return np.zeros(band.shape, dtype=np.uint8)

    vmin = band.min()
    vmax = band.max()
    if vmax == vmin:
        log.debug("Flat band, nothing to stretch")
        return np.zeros(band.shape, dtype=np.uint8)

    coef = 255.0 / (float(vmax) - float(vmin))
    stretched = np.floor(coef * (band.astype(np.float64) - float(vmin)))
    return stretched.astype(np.uint8)

def quantize_band(raster: RasterDataset, band_id: int) -> Tuple[np.ndarray, Dict[str, str]]:
    """
    Quantize one band of a dataset and describe how it was stretched.

    Returns:
        Tuple: the byte samples (flat, row-major) and the band metadata to
        store alongside them (NAME if the band has one, INITIAL_MIN and
        INITIAL_MAX of the source samples).
    """
    band = raster.band(band_id)
    meta = {}

    name = raster.get_band_name(band_id)
    if name:
        meta["NAME"] = name

    if band.size:
        meta["INITIAL_MIN"] = format_number(band.min())
        meta["INITIAL_MAX"] = format_number(band.max())

    return quantize_to_bytes(band), meta

def normalize(band: np.ndarray) -> np.ndarray:
    """Rescale a band onto [0, 1]. Flat bands come back unchanged."""
    band = np.asarray(band, dtype=np.float64)
    if band.size == 0:
        return band.copy()

    vmin = band.min()
    diff = band.max() - vmin
    if diff == 0:
        return band.copy()
    return (band - vmin) / diff
