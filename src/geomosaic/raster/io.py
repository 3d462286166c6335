# src/geomosaic/raster/io.py

"""
This module handles all disk-based operations for raster data.

It is the only place where geomosaic talks to rasterio/GDAL: loading and
saving RasterDataset objects, and exporting byte previews to formats such as
PNG, JPEG or GIF.
"""

import logging
from functools import wraps
from pathlib import Path
from typing import Union, Optional, List, Dict, Sequence, Callable

import numpy as np
import rasterio
import rasterio.shutil
from rasterio.errors import RasterioError
from rasterio.transform import Affine

from geomosaic.exceptions import RasterIOError
from .dtypes import disk_dtype
from .layer import RasterDataset, utm_crs, utm_from_crs
from .names import NAME_KEY
from .quantize import quantize_band
from .resources import estimate_file_memory

log = logging.getLogger(__name__)

__all__ = [
    "COMPRESS_OPTIONS",
    "driver_name",
    "load",
    "save",
    "export_bytes",
    "export_preview",
    "resolve_raster"
]

# Fastest deflate
COMPRESS_OPTIONS = {
    "COMPRESS": "DEFLATE",
    "PREDICTOR": "1",
    "ZLEVEL": "1"
}

# Dataset metadata GDAL adds on its own
_RESERVED_TAGS = {"AREA_OR_POINT"}

def driver_name(path: Union[str, Path]) -> str:
    """
    Guess the GDAL driver from a file extension.

    Works for JPEG, PNG, TIFF, GIF and others: 'a.jpg' -> 'JPEG',
    'a.tif' -> 'GTiff', 'a.png' -> 'PNG'.
    """
    ext = Path(path).suffix.lstrip(".").upper()
    if ext in ("JPG", "JPEG"):
        return "JPEG"
    if ext in ("TIF", "TIFF"):
        return "GTiff"
    return ext

def load(
    path: Union[str, Path],
    dtype: Union[str, type, np.dtype] = np.float32,
    check_memory: bool = True
) -> RasterDataset:
    """
    Load a raster from disk into memory.

    Reads the grid, transform, UTM zone, dataset and band metadata, and the
    custom origin stored in the metadata. Samples are cast to `dtype`; a file
    storing another type is read anyway, with a warning.

    Args:
        path: Path to raster file. All supported GDAL formats are accepted.
        dtype: Sample type of the returned dataset.
        check_memory: If True (default), estimates required RAM before loading.

    Returns:
        RasterDataset: In-memory dataset.

    Raises:
        FileNotFoundError: If the file does not exist.
        MemoryError: If check_memory is True and the file is too large.
        RasterIOError: If the file cannot be read.
        NumericParseError: If the stored custom origin is not numeric.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Raster file not found: {path}")

    expected = disk_dtype(dtype)
    log.debug(f"Loading raster: {path.name}")

    try:
        with rasterio.open(path) as src:
            if src.driver != "GTiff":
                log.warning(f"Expected GTiff and got {src.driver}: {path.name}")

            mismatched = sorted({d for d in src.dtypes if d != expected})
            if mismatched:
                log.warning(f"{path.name} stores {mismatched} samples, casting to {expected}")

            if check_memory:
                estimate = estimate_file_memory(src, dtype)
                if not estimate.is_safe:
                    log.error(estimate.reason)
                    raise MemoryError(
                        f"Raster {path.name} is too large to load. {estimate.reason}"
                    )

            data = src.read(out_dtype=expected)
            transform = src.transform
            zone, north = utm_from_crs(src.crs)
            nodata = src.nodata
            metadata = {
                k: v for k, v in src.tags().items() if k not in _RESERVED_TAGS
            }

            band_metadata = []
            for idx in src.indexes:
                meta = dict(src.tags(idx))
                desc = src.descriptions[idx - 1]
                if desc and NAME_KEY not in meta:
                    meta[NAME_KEY] = desc
                band_metadata.append(meta)

    except RasterioError as e:
        raise RasterIOError(f"Failed to read raster from {path}: {e}") from e

    raster = RasterDataset.from_array(
        data,
        transform=transform,
        utm_zone=zone,
        utm_north=north,
        metadata=metadata,
        nodata=nodata
    )
    raster.band_metadata = band_metadata
    return raster

def save(
    raster: RasterDataset,
    path: Union[str, Path],
    driver: str = "GTiff",
    options: Optional[Dict[str, str]] = None
):
    """
    Write a RasterDataset to disk.

    Args:
        raster: Dataset to save.
        path: Output file path.
        driver: GDAL driver name (default GTiff).
        options: Creation options passed through to the driver. Defaults to
                 COMPRESS_OPTIONS for GTiff and none for other drivers.
                 Pass an empty dict for none.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    profile = {
        "driver": driver,
        "dtype": disk_dtype(raster.dtype),
        "nodata": raster.nodata,
        "width": raster.width,
        "height": raster.height,
        "count": raster.count,
        "crs": raster.crs,
        "transform": raster.transform
    }
    if options is None:
        options = COMPRESS_OPTIONS if driver == "GTiff" else {}
    profile.update(options)

    log.info(f"Saving raster {raster.shape} → {path}")

    try:
        with rasterio.open(path, "w", **profile) as dst:
            dst.write(raster.data)
            if raster.metadata:
                dst.update_tags(**raster.metadata)

            for band_id, meta in enumerate(raster.band_metadata):
                if meta:
                    dst.update_tags(band_id + 1, **meta)
                if meta.get(NAME_KEY):
                    dst.set_band_description(band_id + 1, meta[NAME_KEY])

    except Exception as e:
        raise RasterIOError(f"Failed to save raster to {path}: {e}") from e

def export_bytes(
    path: Union[str, Path],
    driver: str,
    bands: Sequence[np.ndarray],
    transform: Affine,
    utm_zone: int = 0,
    utm_north: bool = True,
    metadata: Optional[Dict[str, str]] = None,
    band_metadata: Optional[List[Dict[str, str]]] = None
):
    """
    Persist byte bands with their georeferencing using any GDAL driver.

    Drivers such as JPEG or PNG only support copying an existing dataset, so
    the bands are first written to a temporary GeoTIFF beside `path`, which
    is then copied with `driver` and removed.

    Args:
        path: Output file path.
        driver: GDAL driver name (see `driver_name`).
        bands: 2D (Height, Width) uint8 arrays, one per band.
        transform: Affine transform of the bands.
        utm_zone: UTM zone (0 for none).
        utm_north: Hemisphere.
        metadata: Dataset metadata.
        band_metadata: Optional metadata per band.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    stack = np.stack([np.asarray(b, dtype=np.uint8) for b in bands])
    tmp_tif = path.with_name(f".{path.name}.tmp.tif")
    options = {"QUALITY": "95"} if driver == "JPEG" else {}

    log.info(f"Exporting {stack.shape[0]} byte band(s) as {driver} → {path}")

    try:
        with rasterio.open(
            tmp_tif, "w",
            driver="GTiff",
            width=stack.shape[2],
            height=stack.shape[1],
            count=stack.shape[0],
            dtype="uint8",
            crs=utm_crs(utm_zone, utm_north),
            transform=transform
        ) as dst:
            dst.write(stack)
            if metadata:
                dst.update_tags(**metadata)
            for band_id, meta in enumerate(band_metadata or []):
                if meta:
                    dst.update_tags(band_id + 1, **meta)

        rasterio.shutil.copy(tmp_tif, path, driver=driver, **options)

    except Exception as e:
        raise RasterIOError(f"Failed to export {driver} to {path}: {e}") from e

    finally:
        tmp_tif.unlink(missing_ok=True)
        tmp_tif.with_name(tmp_tif.name + ".aux.xml").unlink(missing_ok=True)

def resolve_raster(func: Callable):
    """
    Decorator: Resolves polymorphic inputs for pipeline functions.

    Ensures that the first argument of the decorated function is always a
    RasterDataset, whether the user passed a file path or a dataset.
    """
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, RasterDataset], *args, **kwargs):
        if isinstance(input_obj, (str, Path)):
            raster = load(input_obj)
        elif isinstance(input_obj, RasterDataset):
            raster = input_obj
        else:
            raise TypeError(
                f"Function {func.__name__} expects a file path or RasterDataset, "
                f"got {type(input_obj).__name__}"
            )
        return func(raster, *args, **kwargs)

    return wrapper

@resolve_raster
def export_preview(
    raster: RasterDataset,
    path: Union[str, Path],
    band_id: int,
    driver: Optional[str] = None
):
    """
    Stretch one band to bytes and export it, typically as an image.

    The band name and the original minimum and maximum are stored as band
    metadata of the export.

    Args:
        raster: Dataset or path to a raster file.
        path: Output path, e.g. 'preview.png'.
        band_id: 0-based band index.
        driver: GDAL driver, guessed from the extension of `path` if None.
    """
    band8u, meta = quantize_band(raster, band_id)
    export_bytes(
        path,
        driver or driver_name(path),
        [band8u.reshape(raster.height, raster.width)],
        raster.transform,
        utm_zone=raster.utm_zone,
        utm_north=raster.utm_north,
        metadata=raster.metadata,
        band_metadata=[meta]
    )
