import argparse
import sys
import logging
from typing import List, Optional

from geomosaic.raster import io
from geomosaic.raster.mosaic import merge

class _Parser(argparse.ArgumentParser):
    """Argument parser reporting usage errors with exit status 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def export_preview(input_path: str, band: int, output_path: str, driver: Optional[str] = None) -> None:
    """
    Loads a raster and exports one of its bands stretched to bytes.

    Args:
        input_path (str): Raster to read.
        band (int): 0-based band index.
        output_path (str): Image to write, its extension selects the driver unless given.
        driver (str): Optional GDAL driver overriding the extension.
    """
    raster = io.load(input_path)

    if not 0 <= band < raster.count:
        logging.error(f"Band {band} out of range, {input_path} has {raster.count} band(s).")
        sys.exit(1)

    io.export_preview(raster, output_path, band, driver=driver)
    logging.info(f"Exported band {band} of {input_path} to {output_path}")

def mosaic(tile_paths: List[str], output_path: str, no_data: float = 0.0,
           driver: str = "GTiff", compress: bool = True) -> None:
    """
    Loads the tiles, merges them and saves the mosaic.

    Args:
        tile_paths (List[str]): Tiles in write order, later tiles win on overlaps.
        output_path (str): Mosaic to write.
        no_data (float): Value for pixels no tile covers.
        driver (str): GDAL driver of the output.
        compress (bool): Use the default deflate compression.
    """
    tiles = [io.load(p) for p in tile_paths]
    result = merge(tiles, no_data=no_data)
    io.save(result, output_path, driver=driver, options=None if compress else {})
    logging.info(f"Merged {len(tiles)} tiles into {output_path} ({result.width}x{result.height})")

def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and routes execution to the selected tool.
    """
    parser = _Parser(
        prog="geomosaic",
        description="Georeferenced raster tools: byte previews and tile mosaics"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug messages."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser(
        "export-preview",
        help="Stretches one band to bytes and writes it as an image (PNG, JPEG, GIF...)."
    )
    export_parser.add_argument("input", help="Input raster.")
    export_parser.add_argument("band", type=int, help="0-based band index.")
    export_parser.add_argument("output", help="Output image, e.g. preview.png.")
    export_parser.add_argument(
        "--driver",
        default=None,
        help="GDAL driver. Guessed from the output extension by default."
    )

    mosaic_parser = subparsers.add_parser(
        "mosaic",
        help="Merges tiles sharing a pixel scale into one raster."
    )
    mosaic_parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Two or more tiles followed by the output raster."
    )
    mosaic_parser.add_argument(
        "--no-data",
        type=float,
        default=0.0,
        help="Value for pixels covered by no tile. Defaults to 0."
    )
    mosaic_parser.add_argument(
        "--driver",
        default="GTiff",
        help="GDAL driver of the output. Defaults to GTiff."
    )
    mosaic_parser.add_argument(
        "--no-compress",
        action="store_true",
        help="Disable deflate compression of the output."
    )

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "mosaic" and len(args.paths) < 3:
        mosaic_parser.error("expected at least 2 tiles and an output path")

    try:
        if args.command == "export-preview":
            export_preview(args.input, args.band, args.output, driver=args.driver)
        elif args.command == "mosaic":
            mosaic(
                args.paths[:-1],
                args.paths[-1],
                no_data=args.no_data,
                driver=args.driver,
                compress=not args.no_compress
            )
    except Exception as e:
        logging.error(f"{args.command} failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
