"""Configuration and on-disk tile set discovery."""

from __future__ import annotations

import csv
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .geometry import Vec2
from .tilecache import TileKey

log = logging.getLogger(__name__)


@dataclass
class Config:
    """Viewer settings read from ``config.toml``."""

    scans_root: str
    scan_name: str
    secondary_name: str | None = None
    recording_folder: str | None = None
    recording_filename: str | None = None
    recording_fps: float = 30.0
    min_moving_time: float = 8.0
    max_moving_time: float = 8.0


@dataclass
class TileSet:
    """All tiles of one scan, grouped by zoom key (a power of two)."""

    name: str
    theta_levels: list[int] = field(default_factory=list)
    tiles: dict[int, list[TileKey]] = field(default_factory=dict)
    world_sizes: dict[int, Vec2] = field(default_factory=dict)
    points_of_interest: list[Vec2] = field(default_factory=list)


def _optional_str(table: dict, name: str) -> str | None:
    value = table.get(name)
    return value if isinstance(value, str) else None


def _float(table: dict, name: str, default: float) -> float:
    value = table.get(name)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def load_config(path: str | Path) -> Config:
    """Read a TOML config; raise ValueError if a required key is missing."""
    with open(path, "rb") as handle:
        table = tomllib.load(handle)
    root = _optional_str(table, "scans_root")
    if root is None:
        raise ValueError("config `scans_root` is empty!")
    name = _optional_str(table, "scan_name")
    if name is None:
        raise ValueError("config `scan_name` is empty!")
    return Config(
        scans_root=root,
        scan_name=name,
        secondary_name=_optional_str(table, "secondary_name"),
        recording_folder=_optional_str(table, "recording_folder"),
        recording_filename=_optional_str(table, "recording_filename"),
        recording_fps=_float(table, "recording_fps", 30.0),
        min_moving_time=_float(table, "min_moving_time", 8.0),
        max_moving_time=_float(table, "max_moving_time", 8.0),
    )


def parse_tile_filename(filename: str) -> tuple[int, int, int, int]:
    """Split ``XxYxWxH.ext`` into (x, y, width, height)."""
    base = filename.split(".")[0]
    parts = [p.strip() for p in base.split("x") if p.strip()]
    if len(parts) < 4:
        raise ValueError(f"not a tile file name: {filename!r}")
    x, y, width, height = (int(p) for p in parts[:4])
    return x, y, width, height


def _dir_number(path: Path) -> int | None:
    try:
        return int(float(path.name))
    except ValueError:
        return None


def load_theta_levels(set_path: str | Path) -> list[int]:
    """Sorted theta angles found as sub-directories of ``<set>/2.0``."""
    rotations = Path(set_path) / "2.0"
    if not rotations.is_dir():
        return []
    levels = [
        n for d in rotations.iterdir() if d.is_dir() and (n := _dir_number(d)) is not None
    ]
    return sorted(levels)


def load_points_of_interest(path: str | Path) -> list[Vec2]:
    """Read (x, y) from columns 1 and 2 of a CSV with a header row."""
    path = Path(path)
    if not path.is_file():
        log.info("%s not found.", path)
        return []
    with path.open(newline="") as handle:
        rows = list(csv.reader(handle))
    return [Vec2(float(row[1]), float(row[2])) for row in rows[1:] if len(row) >= 3]


def load_tile_set(root: str | Path, name: str) -> TileSet:
    """Scan ``root/name`` for zoom directories of jpg tiles."""
    base = Path(root) / name
    tile_set = TileSet(name=name)
    zoom_dirs = sorted(base.iterdir()) if base.is_dir() else []
    if not zoom_dirs:
        log.warning("%s is empty", base)
        return tile_set

    tile_set.theta_levels = load_theta_levels(base)
    for zoom_dir in zoom_dirs:
        if not zoom_dir.is_dir():
            continue
        zoom = _dir_number(zoom_dir)
        if zoom is None:
            continue
        source = base / f"{zoom}.0" / "0.0"
        files = (
            sorted(f for f in source.iterdir() if f.is_file() and f.suffix.lower() == ".jpg")
            if source.is_dir()
            else []
        )
        log.info("zoom level %d: %d tiles", zoom, len(files))
        keys: list[TileKey] = []
        size_x = size_y = 0.0
        for tile_file in files:
            x, y, width, height = parse_tile_filename(tile_file.name)
            keys.extend(
                TileKey(
                    zoom, x, y, width, height, theta,
                    str(base / f"{zoom}.0" / f"{theta}.0" / tile_file.name), name,
                )
                for theta in tile_set.theta_levels
            )
            size_x = max(size_x, float(x + width))
            size_y = max(size_y, float(y + height))
        tile_set.tiles[zoom] = keys
        tile_set.world_sizes[zoom] = Vec2(size_x, size_y)

    tile_set.points_of_interest = load_points_of_interest(base / "poi.csv")
    return tile_set