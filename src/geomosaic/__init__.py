# src/geomosaic/__init__.py
#
# Copyright (c) The geomosaic project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
geomosaic: georeferenced multi-band rasters in UTM frames, and fast
mosaicking of co-registered tiles.
"""

from . import raster
from .exceptions import (
    RasterError,
    RasterIOError,
    RasterValidationError,
    ShapeMismatchError,
    UnsupportedDtypeError,
    NameNotFoundError,
    NumericParseError
)

__version__ = "0.1.0"

__all__ = [
    "raster",
    "RasterError",
    "RasterIOError",
    "RasterValidationError",
    "ShapeMismatchError",
    "UnsupportedDtypeError",
    "NameNotFoundError",
    "NumericParseError"
]
