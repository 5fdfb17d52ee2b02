"""Module entrypoint for `python -m raster2tile`."""

from __future__ import annotations

from raster2tile.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
