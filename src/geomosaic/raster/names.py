# src/geomosaic/raster/names.py

"""
This module looks bands up by the NAME entry of their per-band metadata.
"""

import logging
from typing import Dict, List

from geomosaic.exceptions import NameNotFoundError

log = logging.getLogger(__name__)

__all__ = [
    "NAME_KEY",
    "get_band_id",
    "get_band_name",
    "set_band_name"
]

NAME_KEY = "NAME"

def get_band_id(band_metadata: List[Dict[str, str]], name: str) -> int:
    """
    Find the 0-based index of the band called `name`.

    Bands are scanned in order and the first match wins, so a duplicated
    name hides every later band carrying it.

    Args:
        band_metadata: Per-band metadata mappings, in band order.
        name: Band name to look up.

    Returns:
        int: Index of the first band whose NAME equals `name`.

    Raises:
        NameNotFoundError: If no band carries that name.
    """
    for band_id, meta in enumerate(band_metadata):
        if meta.get(NAME_KEY) == name:
            return band_id

    known = [meta.get(NAME_KEY, "") for meta in band_metadata]
    raise NameNotFoundError(f"Band name '{name}' not found in {known}")

def get_band_name(band_metadata: List[Dict[str, str]], band_id: int) -> str:
    """Name of a band, empty string when it has none."""
    return band_metadata[band_id].get(NAME_KEY, "")

def set_band_name(band_metadata: List[Dict[str, str]], band_id: int, name: str):
    band_metadata[band_id][NAME_KEY] = name
