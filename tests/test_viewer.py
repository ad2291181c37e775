import pytest

from gemview.geometry import Vec2
from gemview.tilecache import TileKey
from gemview.tiles import Config, TileSet
from gemview.viewer import Tween, Viewer, ease_in_ease_out


class FakeLoader:
    def __init__(self):
        self.requests = []

    def request_load(self, path, callback):
        self.requests.append((path, callback))

    def dispatch_main_callbacks(self, max_count):
        return 0

    def deliver(self):
        pending, self.requests = self.requests, []
        for path, callback in pending:
            callback(path, "image")


def _tile_set(name="a"):
    keys = [TileKey(32, 0, 0, 256, 256, t, f"{name}/{t}.jpg", name) for t in (0, 90)]
    return TileSet(
        name=name,
        theta_levels=[0, 90],
        tiles={32: keys},
        world_sizes={32: Vec2(256.0, 256.0)},
        points_of_interest=[Vec2(0.25, 0.25)],
    )


@pytest.fixture
def viewer():
    v = Viewer(Config(scans_root="root", scan_name="a"), FakeLoader(), (1024, 768))
    v.add_tile_set(_tile_set())
    return v


def test_ease_endpoints():
    assert ease_in_ease_out(0.0) == 0.0
    assert ease_in_ease_out(1.0) == pytest.approx(1.0)
    assert ease_in_ease_out(0.25) < ease_in_ease_out(0.75)


def test_tween_runs_and_finishes():
    finished = []
    tween = Tween()
    tween.on_finished = lambda: finished.append(True)
    tween.start(2.0)
    assert tween.is_animating
    tween.update(1.0)
    assert 0.0 < tween.value < 1.0
    tween.update(1.5)
    assert not tween.is_animating
    assert tween.value == pytest.approx(1.0)
    assert finished == [True]


def test_tween_pause_and_delay():
    tween = Tween()
    tween.start(1.0, delay=1.0)
    tween.update(0.5)
    assert tween.value == 0.0
    tween.pause()
    tween.update(5.0)
    assert tween.paused and tween.is_animating


def test_screen_world_round_trip(viewer):
    p = Vec2(123.0, -45.0)
    back = viewer.screen_to_world(viewer.world_to_screen(p))
    assert back.x == pytest.approx(p.x)
    assert back.y == pytest.approx(p.y)


def test_global_world_round_trip(viewer):
    g = Vec2(0.3, 0.6)
    back = viewer.world_to_global(viewer.global_to_world(g))
    assert back.x == pytest.approx(g.x)
    assert back.y == pytest.approx(g.y)


def test_view_centered_after_setup(viewer):
    assert viewer.world_to_global(viewer.view.offset_world) == Vec2(0.5, 0.5)


def test_update_caches_loads_then_ready(viewer):
    loader = viewer.loader
    assert len(loader.requests) == 2
    assert viewer.update_caches() is False
    loader.deliver()
    assert len(viewer.cache_main) == 2
    assert viewer.cache_misses == 2
    assert viewer.update_caches() is True


def test_invisible_tiles_demoted(viewer):
    viewer.loader.deliver()
    viewer.view.offset_world = Vec2(100000.0, 100000.0)
    viewer.calculate_view_matrix()
    viewer.update_caches()
    assert viewer.cache_main == {}
    assert len(viewer.cache_secondary) == 2


def test_preload_out_of_range_requests_nothing(viewer):
    viewer.loader.requests.clear()
    viewer.preload_zoom(0)
    viewer.preload_zoom(6)
    assert viewer.loader.requests == []


def test_scroll_lowers_zoom_target(viewer):
    before = viewer.current_zoom.target
    viewer.scroll(512, 384, 0.0, 10.0)
    assert viewer.current_zoom.target < before
    assert viewer.current_zoom.speed == 2.0


def test_nudge_theta_respects_recording(viewer):
    start = viewer.current_theta.target
    viewer.nudge_theta(0.3)
    assert viewer.current_theta.target > start
    viewer.recording = True
    viewer.frame_ready = False
    moved = viewer.current_theta.target
    viewer.nudge_theta(0.3)
    assert viewer.current_theta.target == moved


def test_points_of_interest_exhaust(viewer):
    assert viewer.next_point_of_interest() == Vec2(0.25, 0.25)
    assert viewer.tween.is_animating
    assert viewer.current_zoom.target == 2.0
    with pytest.raises(IndexError):
        viewer.next_point_of_interest()


def test_animation_finished_sets_zoom(viewer):
    viewer.animation_finished()
    assert viewer.current_zoom.target == pytest.approx(1.3)


def test_drag_moves_offset(viewer):
    start = viewer.view.offset_world
    viewer.press(100, 100)
    viewer.drag(150, 100)
    assert viewer.view.offset_world.x < start.x


def test_update_keeps_zoom_level_in_bounds(viewer):
    for _ in range(30):
        viewer.update(0.1)
    assert 1 <= viewer.current_zoom_level <= 5
    assert 0 <= viewer.view.theta_index < len(viewer.theta_levels)


def test_status_lines(viewer):
    lines = viewer.status_lines(Vec2(0.0, 0.0))
    assert lines[0].startswith("Offset: ")
    assert "ZoomLevel 5" in lines[1]
    assert len(lines) == 7