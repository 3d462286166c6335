# src/geomosaic/raster/__init__.py
#
# Copyright (c) The geomosaic project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The raster subpackage provides the georeferenced raster data model,
coordinate conversions between pixel, UTM and custom frames, band naming,
byte quantization, tile merging and the rasterio backed I/O.
"""
# Core data structure
from .layer import (
    RasterDataset,
    CUSTOM_ORIGIN_KEYS,
    utm_crs,
    utm_from_crs
)

# Sample types
from .dtypes import (
    SUPPORTED_DTYPES,
    resolve_dtype,
    disk_dtype
)

# Coordinate frames
from .coords import (
    pixel_to_utm,
    utm_to_pixel,
    pixel_to_custom,
    custom_to_pixel,
    custom_to_utm,
    utm_to_custom,
    index_of
)

# Band naming
from .names import (
    get_band_id,
    get_band_name,
    set_band_name
)

# Quantization
from .quantize import (
    quantize_to_bytes,
    quantize_band,
    normalize
)

# I/O operations
from .io import (
    COMPRESS_OPTIONS,
    driver_name,
    load,
    save,
    export_bytes,
    export_preview,
    resolve_raster
)

# Resource management
from .resources import (
    MemoryEstimate,
    estimate_memory
)

# Mosaic
from .mosaic import (
    check_tiles,
    merge
)

__all__ = [
    # Layer
    "RasterDataset",
    "CUSTOM_ORIGIN_KEYS",
    "utm_crs",
    "utm_from_crs",

    # Sample types
    "SUPPORTED_DTYPES",
    "resolve_dtype",
    "disk_dtype",

    # Coordinate frames
    "pixel_to_utm",
    "utm_to_pixel",
    "pixel_to_custom",
    "custom_to_pixel",
    "custom_to_utm",
    "utm_to_custom",
    "index_of",

    # Band naming
    "get_band_id",
    "get_band_name",
    "set_band_name",

    # Quantization
    "quantize_to_bytes",
    "quantize_band",
    "normalize",

    # I/O
    "COMPRESS_OPTIONS",
    "driver_name",
    "load",
    "save",
    "export_bytes",
    "export_preview",
    "resolve_raster",

    # Resources
    "MemoryEstimate",
    "estimate_memory",

    # Mosaic
    "check_tiles",
    "merge"
]
