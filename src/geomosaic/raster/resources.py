# src/geomosaic/raster/resources.py

"""
This module checks whether a raster grid fits in RAM before it is allocated,
either by loading a file or by assembling a mosaic.
"""

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np
import psutil
import rasterio

log = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_SAFETY_FACTOR",
    "MIN_FREE_GB",
    "MemoryEstimate",
    "estimate_memory",
    "estimate_file_memory"
]

DEFAULT_SAFETY_FACTOR = 2.0
MIN_FREE_GB = 0.5

@dataclass(frozen=True)
class MemoryEstimate:
    """Estimation of memory requirements and safety for allocating a raster.

    Args:
        total_required_bytes: Total bytes required for the grid (with overhead)
        available_system_bytes: Currently available system memory in bytes
        is_safe: Boolean indicating if allocating is considered safe
        reason: Explanation for the safety assessment (e.g. "Req: 1.20GB, Avail: 8.00GB")
    """
    total_required_bytes: int
    available_system_bytes: int
    is_safe: bool
    reason: str

def estimate_memory(
    n_bands: int,
    width: int,
    height: int,
    dtype: Union[str, np.dtype],
    safety_factor: float = DEFAULT_SAFETY_FACTOR,
    min_free_gb: float = MIN_FREE_GB
) -> MemoryEstimate:
    """
    Checks if a grid of the given shape fits in RAM safely.

    Args:
        n_bands: Number of bands.
        width: Columns per band.
        height: Rows per band.
        dtype: Sample type.
        safety_factor: Multiplier to account for overhead (default 2.0)
        min_free_gb: Minimum free GB to leave available after allocating (default 0.5)

    Returns:
        MemoryEstimate: Contains total required bytes, available bytes, safety boolean, and reason.
    """
    raw_bytes = n_bands * width * height * np.dtype(dtype).itemsize
    total_required = int(raw_bytes * safety_factor)

    mem = psutil.virtual_memory()
    min_free_bytes = int(min_free_gb * (1024**3))
    is_safe = (total_required + min_free_bytes) <= mem.available

    reason = f"Req: {total_required/1e9:.2f}GB, Avail: {mem.available/1e9:.2f}GB"

    return MemoryEstimate(total_required, mem.available, is_safe, reason)

def estimate_file_memory(
    src: rasterio.DatasetReader,
    dtype: Union[str, np.dtype],
    safety_factor: float = DEFAULT_SAFETY_FACTOR
) -> MemoryEstimate:
    """Memory needed to load every band of an opened file as `dtype`."""
    return estimate_memory(src.count, src.width, src.height, dtype, safety_factor=safety_factor)
