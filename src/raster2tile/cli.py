"""Command-line interface for raster2tile."""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any

from raster2tile import __version__, contracts
from raster2tile.config import load_settings
from raster2tile.errors import Raster2TileError
from raster2tile.logging_utils import LogOptions, configure_logging
from raster2tile.raster.models import StretchParams, TileCoordinate
from raster2tile.service import LayerSpec, RasterService

LOGGER = logging.getLogger("raster2tile.cli")


def _print_json(payload: Any) -> None:
    """Write a JSON payload to stdout."""
    sys.stdout.write(json.dumps(payload, indent=2))
    sys.stdout.write("\n")


def _add_source_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Raster path or, with --remote, an HTTP(S)/S3 URL.")
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Stream the source through /vsicurl/ instead of opening a local file.",
    )


def _add_info_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the info subcommand."""
    info = subparsers.add_parser("info", help="Print raster metadata and band statistics.")
    _add_source_argument(info)


def _add_tile_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the tile rendering subcommand."""
    tile = subparsers.add_parser("tile", help="Render one z/x/y tile to PNG.")
    _add_source_argument(tile)
    tile.add_argument("z", type=int, help="Zoom level.")
    tile.add_argument("x", type=int, help="Tile column.")
    tile.add_argument("y", type=int, help="Tile row (0 is northernmost).")
    tile.add_argument("--band", type=int, default=1, help="Band to render (1-based).")
    tile.add_argument(
        "--rgb",
        nargs=3,
        type=int,
        metavar=("R", "G", "B"),
        help="Render three bands as red, green, and blue.",
    )
    tile.add_argument("--min", type=float, help="Stretch minimum (default: band minimum).")
    tile.add_argument("--max", type=float, help="Stretch maximum (default: band maximum).")
    tile.add_argument("--gamma", type=float, help="Gamma exponent (default: 1.0).")
    tile.add_argument(
        "--pixel",
        action="store_true",
        help="Render on the synthetic pixel grid, for images without georeferencing.",
    )
    tile.add_argument("--tile-size", type=int, help="Tile edge length in pixels.")
    tile.add_argument("--output", default="tile.png", help="Output PNG path.")


def _add_stats_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the band statistics subcommand."""
    stats = subparsers.add_parser("stats", help="Print per-band statistics.")
    _add_source_argument(stats)
    stats.add_argument("--band", type=int, help="Only report this band.")


def _add_histogram_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the histogram subcommand."""
    hist = subparsers.add_parser("histogram", help="Print a band histogram.")
    _add_source_argument(hist)
    hist.add_argument("--band", type=int, default=1, help="Band to summarize.")
    hist.add_argument("--bins", type=int, help="Number of bins (default from settings).")


def _add_query_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the pixel query subcommand."""
    query = subparsers.add_parser("query", help="Print every band value at a location.")
    _add_source_argument(query)
    query.add_argument("x", type=float, help="Longitude, or pixel column with --pixel.")
    query.add_argument("y", type=float, help="Latitude, or pixel row with --pixel.")
    query.add_argument(
        "--pixel",
        action="store_true",
        help="Treat X Y as pixel coordinates.",
    )


def _add_profile_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the elevation profile subcommand."""
    profile = subparsers.add_parser("profile", help="Sample band 1 along a polyline.")
    _add_source_argument(profile)
    profile.add_argument(
        "--point",
        nargs=2,
        type=float,
        action="append",
        metavar=("X", "Y"),
        required=True,
        help="Polyline vertex as lon lat, or pixel x y with --pixel (repeatable).",
    )
    profile.add_argument(
        "--pixel",
        action="store_true",
        help="Treat points as pixel coordinates with planar distances.",
    )
    profile.add_argument("--samples", type=int, help="Number of samples (default from settings).")


def _add_version_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the version subcommand."""
    subparsers.add_parser("version", help="Print the current version.")


def _open(service: RasterService, args: argparse.Namespace) -> str:
    """Open the command's source and return its dataset id."""
    if args.remote:
        return service.open_remote_raster(args.path).id
    return service.open_raster(args.path).id


def _stretch_from_args(args: argparse.Namespace) -> StretchParams | None:
    if args.min is None and args.max is None and args.gamma is None:
        return None
    defaults = StretchParams()
    return StretchParams(
        min=defaults.min if args.min is None else args.min,
        max=defaults.max if args.max is None else args.max,
        gamma=defaults.gamma if args.gamma is None else args.gamma,
    )


def _run_tile(service: RasterService, args: argparse.Namespace) -> int:
    dataset_id = _open(service, args)
    stretch = _stretch_from_args(args)
    coord = TileCoordinate(z=args.z, x=args.x, y=args.y)
    if args.rgb:
        stretches = [stretch or StretchParams()] * 3
        if args.pixel:
            layers = [
                LayerSpec(dataset_id=dataset_id, band=band, stretch=channel_stretch)
                for band, channel_stretch in zip(args.rgb, stretches)
            ]
            png = service.get_cross_layer_pixel_rgb_tile(
                layers,
                coord.z,
                coord.x,
                coord.y,
                tile_size=args.tile_size,
            )
        else:
            png = service.get_rgb_tile(
                dataset_id,
                coord.z,
                coord.x,
                coord.y,
                args.rgb,
                stretches,
                tile_size=args.tile_size,
            )
    elif args.pixel:
        png = service.get_pixel_tile(
            dataset_id, coord.z, coord.x, coord.y, args.band, stretch, tile_size=args.tile_size
        )
    elif stretch is None:
        png = service.get_tile(dataset_id, coord.z, coord.x, coord.y, args.band, tile_size=args.tile_size)
    else:
        png = service.get_tile_stretched(
            dataset_id, coord.z, coord.x, coord.y, args.band, stretch, tile_size=args.tile_size
        )
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(png)
    LOGGER.info("Wrote %s", output, extra={"tile": coord.label()})
    return 0


def _run_command(service: RasterService, args: argparse.Namespace) -> int:
    """Dispatch a raster subcommand."""
    if args.command == "info":
        if args.remote:
            metadata = service.open_remote_raster(args.path)
        else:
            metadata = service.open_raster(args.path)
        payload = metadata.to_dict()
        contracts.validate_raster_metadata(payload)
        _print_json(payload)
        return 0
    if args.command == "tile":
        return _run_tile(service, args)
    if args.command == "stats":
        dataset_id = _open(service, args)
        stats = service.get_raster_stats(dataset_id)
        if args.band is not None:
            stats = [entry for entry in stats if entry.band == args.band]
        payloads = [entry.to_dict() for entry in stats]
        for payload in payloads:
            contracts.validate_band_stats(payload)
        _print_json(payloads)
        return 0
    if args.command == "histogram":
        dataset_id = _open(service, args)
        payload = service.get_histogram(dataset_id, args.band, args.bins).to_dict()
        contracts.validate_histogram(payload)
        _print_json(payload)
        return 0
    if args.command == "query":
        dataset_id = _open(service, args)
        if args.pixel:
            result = service.query_pixel_value_at_pixel(
                dataset_id, int(math.floor(args.x)), int(math.floor(args.y))
            )
        else:
            result = service.query_pixel_value(dataset_id, args.x, args.y)
        payload = result.to_dict()
        contracts.validate_pixel_query(payload)
        _print_json(payload)
        return 0
    if args.command == "profile":
        dataset_id = _open(service, args)
        points = [(x, y) for x, y in args.point]
        if args.pixel:
            profile = service.get_elevation_profile_pixels(dataset_id, points, args.samples)
        else:
            profile = service.get_elevation_profile(dataset_id, points, args.samples)
        payload = profile.to_dict()
        contracts.validate_profile(payload)
        _print_json(payload)
        return 0
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entrypoint and return an exit code."""
    parser = argparse.ArgumentParser(
        prog="raster2tile",
        description="Render raster datasets as map tiles and sample their values.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Reduce log output to warnings and errors.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON on stderr.",
    )
    parser.add_argument(
        "--log-file",
        help="Optional path for JSON log output.",
    )
    parser.add_argument(
        "--config",
        help="Path to a raster2tile.json settings file.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_info_parser(subparsers)
    _add_tile_parser(subparsers)
    _add_stats_parser(subparsers)
    _add_histogram_parser(subparsers)
    _add_query_parser(subparsers)
    _add_profile_parser(subparsers)
    _add_version_parser(subparsers)

    args = parser.parse_args(argv)
    log_file_value = getattr(args, "log_file", None)
    log_options = LogOptions(
        verbose=getattr(args, "verbose", 0) or 0,
        quiet=bool(getattr(args, "quiet", False)),
        log_file=Path(log_file_value) if log_file_value else None,
        json_console=bool(getattr(args, "log_json", False)),
    )
    configure_logging(log_options)

    if args.command == "version":
        print(__version__)
        return 0

    settings = load_settings(Path(args.config) if args.config else None)
    try:
        service = RasterService(settings)
        return _run_command(service, args)
    except Raster2TileError as exc:
        LOGGER.error("%s", exc)
        return 1
