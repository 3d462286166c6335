# src/geomosaic/raster/layer.py

import logging
from typing import Union, Optional, Dict, Tuple, List, Sequence

import numpy as np
from rasterio.crs import CRS
from rasterio.transform import Affine

from geomosaic.exceptions import NumericParseError, RasterValidationError
from . import coords
from . import names
from .dtypes import resolve_dtype

log = logging.getLogger(__name__)

__all__ = [
    "RasterDataset",
    "CUSTOM_ORIGIN_KEYS",
    "format_number",
    "parse_number",
    "utm_crs",
    "utm_from_crs"
]

CUSTOM_ORIGIN_KEYS = ("CUSTOM_X_ORIGIN", "CUSTOM_Y_ORIGIN", "CUSTOM_Z_ORIGIN")

def format_number(value: float) -> str:
    """Encode a number as metadata text, without losing precision."""
    return repr(float(value))

def parse_number(text: str, key: str = "value") -> float:
    """
    Decode a number stored as metadata text.

    Raises:
        NumericParseError: If `text` is not a valid number.
    """
    try:
        return float(text)
    except (TypeError, ValueError) as e:
        raise NumericParseError(f"Metadata {key}={text!r} is not a valid number") from e

def utm_crs(zone: int, north: bool = True) -> Optional[CRS]:
    """WGS84 / UTM CRS of a zone, None when the zone is unset (0)."""
    if not 1 <= zone <= 60:
        return None
    return CRS.from_epsg((32600 if north else 32700) + zone)

def utm_from_crs(crs: Optional[CRS]) -> Tuple[int, bool]:
    """
    Recover (zone, north) from a CRS.

    Returns (0, True) when the CRS is missing or not a UTM projection.
    """
    if crs is None:
        return 0, True

    epsg = crs.to_epsg()
    if epsg is not None:
        if 32601 <= epsg <= 32660:
            return epsg - 32600, True
        if 32701 <= epsg <= 32760:
            return epsg - 32700, False

    params = crs.to_dict()
    if params.get("proj") == "utm" and "zone" in params:
        return int(params["zone"]), not params.get("south", False)

    return 0, True

class RasterDataset:
    """
    A multi-band raster anchored to a UTM frame.

    The samples live in a single NumPy array of shape (Bands, Height, Width)
    so that every band is a row-major sequence of `width * height` samples,
    pixel (col, row) sitting at `col + row * width`.

    Besides the grid, a dataset carries:
        transform (Affine): north-up transform, pixel (col, row) -> UTM (x, y).
        utm_zone (int), utm_north (bool): projection identity (zone 0 = unset).
        band_metadata (List[Dict[str, str]]): one mapping per band, NAME names it.
        metadata (Dict[str, str]): dataset metadata, including the custom origin
            as CUSTOM_X_ORIGIN, CUSTOM_Y_ORIGIN and CUSTOM_Z_ORIGIN.
        nodata: optional no-data sentinel handed to the codec.

    Copies are always deep: two datasets never share a band buffer.
    """

    def __init__(self, dtype: Union[str, type, np.dtype] = np.float32):
        self._dtype = resolve_dtype(dtype)
        self._data = np.zeros((0, 0, 0), dtype=self._dtype)
        self.band_metadata: List[Dict[str, str]] = []
        self.metadata: Dict[str, str] = {}
        self.nodata: Optional[Union[float, int]] = None
        self.set_transform(0, 0)
        self.set_utm(0)
        self.set_custom_origin(0, 0, 0)

    @classmethod
    def from_array(
        cls,
        data: np.ndarray,
        transform: Optional[Affine] = None,
        utm_zone: int = 0,
        utm_north: bool = True,
        band_names: Optional[Sequence[str]] = None,
        metadata: Optional[Dict[str, str]] = None,
        nodata: Optional[Union[float, int]] = None
    ) -> 'RasterDataset':
        """
        Build a dataset around existing samples.

        Args:
            data: 2D (Height, Width) or 3D (Bands, Height, Width) array.
                  2D arrays are promoted to a single band. The array is copied.
            transform: Affine transform, defaults to the identity.
            utm_zone: UTM zone number.
            utm_north: Hemisphere.
            band_names: Optional names, one per band.
            metadata: Optional dataset metadata. CUSTOM_*_ORIGIN entries set
                      the custom origin.
            nodata: No-data sentinel.

        Raises:
            RasterValidationError: If dimensions mismatch.
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"Data must be numpy.ndarray, got {type(data)}")

        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        if data.ndim != 3:
            raise RasterValidationError(f"Data must be 2D or 3D, got shape {data.shape}")

        if band_names is not None and len(band_names) != data.shape[0]:
            raise RasterValidationError(
                f"Got {len(band_names)} band names for {data.shape[0]} bands"
            )

        raster = cls(dtype=data.dtype)
        if transform is not None:
            raster.transform = transform
        raster.set_utm(utm_zone, utm_north)
        raster.nodata = nodata

        if metadata:
            raster.metadata.update(metadata)
            raster.refresh_custom_origin()

        raster._data = np.array(data, dtype=raster.dtype, order="C", copy=True)
        raster.band_metadata = [{} for _ in range(raster.count)]
        for band_id, name in enumerate(band_names or []):
            raster.set_band_name(band_id, name)

        return raster

    # Grid

    @property
    def data(self) -> np.ndarray:
        """The samples as a (Bands, Height, Width) array."""
        return self._data

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def width(self) -> int:
        return self._data.shape[2]

    @property
    def height(self) -> int:
        return self._data.shape[1]

    @property
    def count(self) -> int:
        return self._data.shape[0]

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Returns (Bands, Height, Width)."""
        return self._data.shape

    def band(self, band_id: int) -> np.ndarray:
        """
        Flat, row-major view of a band (length width * height).

        Writing into the view writes into the dataset.
        """
        if not 0 <= band_id < self.count:
            raise IndexError(f"Band index {band_id} out of range (0-{self.count - 1})")
        return self._data[band_id].reshape(-1)

    @property
    def bands(self) -> List[np.ndarray]:
        """Flat views of every band, in order."""
        return [self.band(i) for i in range(self.count)]

    def set_size(self, n_bands: int, width: int, height: int, fill: Union[float, int] = 0):
        """
        Reallocate the grid to `n_bands` bands of `width` x `height` samples.

        Previous samples are discarded, every sample is set to `fill` and
        every band gets fresh, empty metadata. Copy the dataset first to keep
        the old content.
        """
        if n_bands < 0 or width < 0 or height < 0:
            raise RasterValidationError(
                f"Invalid size: {n_bands} bands of {width}x{height}"
            )

        log.debug(f"Resizing raster to {n_bands} bands of {width}x{height}")
        self._data = np.full((n_bands, height, width), fill, dtype=self._dtype)
        self.band_metadata = [{} for _ in range(n_bands)]

    # Georeferencing

    def set_transform(self, pos_x: float, pos_y: float,
                      scale_x: float = 1.0, scale_y: float = 1.0):
        """
        Set the north-up transform from the upper left corner and pixel size.

        Args:
            pos_x: Upper left corner x.
            pos_y: Upper left corner y.
            scale_x: Pixel width (w-e resolution).
            scale_y: Pixel height (n-s resolution), usually negative.
        """
        self.transform = Affine(scale_x, 0.0, pos_x, 0.0, scale_y, pos_y)

    @property
    def transform_gdal(self) -> Tuple[float, ...]:
        """Transform as GDAL coefficients (origin_x, scale_x, 0, origin_y, 0, scale_y)."""
        return self.transform.to_gdal()

    @property
    def scale_x(self) -> float:
        """Pixel width, negative if the origin is on the right."""
        return self.transform.a

    @property
    def scale_y(self) -> float:
        """Pixel height, negative if the origin is on top (north-up)."""
        return self.transform.e

    @property
    def utm_pose_x(self) -> float:
        """Upper left corner x."""
        return self.transform.c

    @property
    def utm_pose_y(self) -> float:
        """Upper left corner y."""
        return self.transform.f

    def set_utm(self, zone: int, north: bool = True):
        self.utm_zone = zone
        self.utm_north = north

    @property
    def crs(self) -> Optional[CRS]:
        return utm_crs(self.utm_zone, self.utm_north)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Returns (left, bottom, right, top) in UTM units."""
        x0, y0 = self.pixel_to_utm(0, 0)
        x1, y1 = self.pixel_to_utm(self.width, self.height)
        return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)

    # Custom origin

    def set_custom_origin(self, x: float, y: float, z: float = 0.0):
        """Set the local origin (UTM meters) and store it in the metadata."""
        self._custom_origin = (float(x), float(y), float(z))
        for key, value in zip(CUSTOM_ORIGIN_KEYS, self._custom_origin):
            self.metadata[key] = format_number(value)

    def refresh_custom_origin(self):
        """
        Re-read the custom origin from the metadata. Missing keys read as 0.

        Raises:
            NumericParseError: If a stored value is not a number. The
                               dataset is left untouched.
        """
        origin = tuple(
            parse_number(self.metadata.get(key, "0"), key)
            for key in CUSTOM_ORIGIN_KEYS
        )
        self._custom_origin = origin

    @property
    def custom_origin(self) -> Tuple[float, float, float]:
        return self._custom_origin

    @property
    def custom_x_origin(self) -> float:
        return self._custom_origin[0]

    @property
    def custom_y_origin(self) -> float:
        return self._custom_origin[1]

    @property
    def custom_z_origin(self) -> float:
        return self._custom_origin[2]

    # Coordinate frames

    def pixel_to_utm(self, col, row) -> Tuple:
        return coords.pixel_to_utm(self.transform, col, row)

    def utm_to_pixel(self, x, y) -> Tuple:
        return coords.utm_to_pixel(self.transform, x, y)

    def pixel_to_custom(self, col, row) -> Tuple:
        return coords.pixel_to_custom(self.transform, self._custom_origin, col, row)

    def custom_to_pixel(self, x, y) -> Tuple:
        return coords.custom_to_pixel(self.transform, self._custom_origin, x, y)

    def custom_to_utm(self, x, y) -> Tuple:
        return coords.custom_to_utm(self._custom_origin, x, y)

    def utm_to_custom(self, x, y) -> Tuple:
        return coords.utm_to_custom(self._custom_origin, x, y)

    def index_of(self, col: float, row: float) -> Optional[int]:
        """Linear index of the nearest pixel, None outside the grid."""
        return coords.index_of(self.width, self.height, col, row)

    def index_utm(self, x: float, y: float) -> Optional[int]:
        return self.index_of(*self.utm_to_pixel(x, y))

    def index_custom(self, x: float, y: float) -> Optional[int]:
        return self.index_of(*self.custom_to_pixel(x, y))

    # Metadata

    def get_meta(self, key: str, default: str = "") -> str:
        return self.metadata.get(key, default)

    def get_band_meta(self, band_id: int, key: str, default: str = "") -> str:
        return self.band_metadata[band_id].get(key, default)

    def set_band_name(self, band_id: int, name: str):
        names.set_band_name(self.band_metadata, band_id, name)

    def get_band_name(self, band_id: int) -> str:
        return names.get_band_name(self.band_metadata, band_id)

    @property
    def band_names(self) -> List[str]:
        return [self.get_band_name(i) for i in range(self.count)]

    def get_band_id(self, name: str) -> int:
        """0-based index of the first band called `name` (NameNotFoundError otherwise)."""
        return names.get_band_id(self.band_metadata, name)

    def get_band_by_name(self, name: str) -> np.ndarray:
        return self.band(self.get_band_id(name))

    def copy_meta_only(self, other: 'RasterDataset'):
        """Copy transform, UTM, custom origin, no-data and dataset metadata."""
        self.transform = other.transform
        self.set_utm(other.utm_zone, other.utm_north)
        self.nodata = other.nodata
        self.metadata = dict(other.metadata)
        self._custom_origin = other.custom_origin

    def copy_meta(
        self,
        other: 'RasterDataset',
        n_bands: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        fill: Union[float, int] = 0
    ):
        """
        Copy the georeferencing of `other` and reshape to match it.

        The band count, width and height default to those of `other`. The
        samples of this dataset are reset to `fill`, never copied.
        """
        self.copy_meta_only(other)
        self.set_size(
            other.count if n_bands is None else n_bands,
            other.width if width is None else width,
            other.height if height is None else height,
            fill
        )

    # Value semantics

    def copy(self) -> 'RasterDataset':
        """Returns a deep copy of the dataset."""
        clone = RasterDataset(dtype=self._dtype)
        clone.copy_meta_only(self)
        clone._data = self._data.copy()
        clone.band_metadata = [dict(meta) for meta in self.band_metadata]
        return clone

    def __copy__(self) -> 'RasterDataset':
        return self.copy()

    def __deepcopy__(self, memo) -> 'RasterDataset':
        return self.copy()

    def __eq__(self, other: object) -> bool:
        """
        Same grid, scales, upper left corner, dataset metadata and samples.

        UTM zone, custom origin and band metadata are not compared, see
        `same_pose` for the former two.
        """
        if not isinstance(other, RasterDataset):
            return NotImplemented

        meta_eq = (
            self.width == other.width and
            self.height == other.height and
            self.scale_x == other.scale_x and
            self.scale_y == other.scale_y and
            self.utm_pose_x == other.utm_pose_x and
            self.utm_pose_y == other.utm_pose_y and
            self.metadata == other.metadata
        )
        if not meta_eq:
            return False

        return self.shape == other.shape and np.array_equal(self._data, other.data)

    __hash__ = None

    def same_pose(self, other: 'RasterDataset') -> bool:
        """Equality that also requires the same UTM zone, hemisphere and custom origin."""
        return (
            self == other and
            self.utm_zone == other.utm_zone and
            self.utm_north == other.utm_north and
            self.custom_origin == other.custom_origin
        )

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        """Allows np.array(raster_obj) to work directly."""
        if dtype is None:
            return self._data
        return self._data.astype(dtype)

    def __repr__(self) -> str:
        return (f"<RasterDataset bands={self.count} width={self.width} "
                f"height={self.height} dtype={self._dtype} "
                f"utm={self.utm_zone}{'N' if self.utm_north else 'S'}>")
