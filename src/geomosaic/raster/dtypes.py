# src/geomosaic/raster/dtypes.py

"""
This module maps the supported numpy sample types to their on-disk
(rasterio/GDAL) counterparts.
"""

import logging
from typing import Union

import numpy as np

from geomosaic.exceptions import UnsupportedDtypeError

log = logging.getLogger(__name__)

__all__ = [
    "SUPPORTED_DTYPES",
    "resolve_dtype",
    "disk_dtype"
]

# numpy type -> rasterio dtype name
SUPPORTED_DTYPES = {
    np.dtype(np.float32): "float32",
    np.dtype(np.float64): "float64",
    np.dtype(np.uint8): "uint8",
    np.dtype(np.int8): "int8",
    np.dtype(np.uint16): "uint16",
    np.dtype(np.int16): "int16",
    np.dtype(np.uint32): "uint32",
    np.dtype(np.int32): "int32",
}

def resolve_dtype(dtype: Union[str, type, np.dtype]) -> np.dtype:
    """
    Normalize a sample type and check it is supported.

    Raises:
        UnsupportedDtypeError: If the type has no on-disk counterpart.
    """
    try:
        resolved = np.dtype(dtype)
    except TypeError as e:
        raise UnsupportedDtypeError(f"Not a numeric sample type: {dtype!r}") from e

    if resolved not in SUPPORTED_DTYPES:
        supported = [str(d) for d in SUPPORTED_DTYPES]
        raise UnsupportedDtypeError(
            f"Unsupported sample type '{resolved}'. Must be one of: {supported}"
        )
    return resolved

def disk_dtype(dtype: Union[str, type, np.dtype]) -> str:
    """Return the rasterio dtype name used to store samples of `dtype`."""
    return SUPPORTED_DTYPES[resolve_dtype(dtype)]
