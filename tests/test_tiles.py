from pathlib import Path

import pytest

from gemview.geometry import Vec2
from gemview.tiles import (
    load_config,
    load_points_of_interest,
    load_theta_levels,
    load_tile_set,
    parse_tile_filename,
)


def test_config_defaults(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text('scans_root = "/scans/"\nscan_name = "a"\n')
    config = load_config(cfg)
    assert config.scans_root == "/scans/"
    assert config.scan_name == "a"
    assert config.secondary_name is None
    assert config.recording_fps == 30.0
    assert config.min_moving_time == 8.0


def test_config_values(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        'scans_root = "r"\nscan_name = "a"\nsecondary_name = "b"\nrecording_fps = 60\n'
    )
    config = load_config(cfg)
    assert config.secondary_name == "b"
    assert config.recording_fps == 60.0


@pytest.mark.parametrize("body", ['scan_name = "a"\n', 'scans_root = "r"\n'])
def test_config_missing_required(tmp_path, body):
    cfg = tmp_path / "config.toml"
    cfg.write_text(body)
    with pytest.raises(ValueError):
        load_config(cfg)


def test_parse_tile_filename():
    assert parse_tile_filename("0x256x128x64.jpg") == (0, 256, 128, 64)


def test_parse_bad_filename():
    with pytest.raises(ValueError):
        parse_tile_filename("tile.jpg")


def _make_set(root: Path) -> Path:
    base = root / "scan"
    for theta in ("0.0", "18.0"):
        (base / "2.0" / theta).mkdir(parents=True)
    for name in ("0x0x100x50.jpg", "100x0x20x80.jpg", "notes.txt"):
        (base / "2.0" / "0.0" / name).write_bytes(b"")
    (base / "poi.csv").write_text("name,x,y\np,0.25,0.75\n")
    return base


def test_theta_levels_sorted(tmp_path):
    base = _make_set(tmp_path)
    (base / "2.0" / "9.0").mkdir()
    assert load_theta_levels(base) == [0, 9, 18]


def test_points_of_interest(tmp_path):
    base = _make_set(tmp_path)
    assert load_points_of_interest(base / "poi.csv") == [Vec2(0.25, 0.75)]
    assert load_points_of_interest(base / "missing.csv") == []


def test_load_tile_set(tmp_path):
    _make_set(tmp_path)
    tile_set = load_tile_set(tmp_path, "scan")
    assert tile_set.theta_levels == [0, 18]
    keys = tile_set.tiles[2]
    assert len(keys) == 4
    assert {k.theta for k in keys} == {0, 18}
    assert all(k.tileset == "scan" for k in keys)
    assert tile_set.world_sizes[2] == Vec2(120.0, 80.0)
    assert any(k.filepath.endswith(str(Path("18.0") / "0x0x100x50.jpg")) for k in keys)


def test_load_missing_set(tmp_path):
    tile_set = load_tile_set(tmp_path, "nothing")
    assert tile_set.tiles == {}