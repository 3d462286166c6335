# src/geomosaic/exceptions.py

"""
This module defines the error hierarchy shared by every geomosaic module.
"""

__all__ = [
    "RasterError",
    "RasterIOError",
    "RasterValidationError",
    "ShapeMismatchError",
    "UnsupportedDtypeError",
    "NameNotFoundError",
    "NumericParseError"
]

class RasterError(Exception):
    """Base class for all raster errors."""

class RasterIOError(RasterError, IOError):
    """The codec failed to open, create, read or write a raster file."""

class RasterValidationError(RasterError, ValueError):
    """A raster or one of its arguments is not in a valid state."""

class ShapeMismatchError(RasterValidationError):
    """Tiles handed to the mosaic disagree on scale, dimensions or band count."""

class UnsupportedDtypeError(RasterValidationError):
    """The requested sample type is not one of the supported numeric types."""

class NameNotFoundError(RasterError, KeyError):
    """No band carries the requested name."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the message readable
        return str(self.args[0]) if self.args else ""

class NumericParseError(RasterError, ValueError):
    """A numeric value stored as string metadata could not be parsed."""
