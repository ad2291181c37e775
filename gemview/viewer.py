"""Viewer state: camera, tile caches, zoom, rotation and polarisation blending."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable

from .geometry import Affine, Rect, Vec2, build_view_matrix
from .smoothing import SmoothValueLinear
from .tilecache import TileCacheLRU, TileKey
from .tiles import Config, TileSet

MAX_ZOOM_LEVEL = 1
MIN_ZOOM_LEVEL = 5
DEFAULT_THETA_LEVELS = [0, 18, 36, 54, 72, 90, 108, 126, 144, 162]


def ease_in_ease_out(t: float) -> float:
    """Cosine ease curve mapping [0, 1] onto [0, 1]."""
    t = max(0.0, min(1.0, t))
    return 0.5 - 0.5 * math.cos(math.pi * t)


class Tween:
    """A one-shot eased animation from 0 to 1."""

    def __init__(self) -> None:
        self.on_finished: Callable[[], None] | None = None
        self._duration = 1.0
        self._delay = 0.0
        self._progress = 0.0
        self._animating = False
        self._paused = False

    def start(self, duration: float, delay: float = 0.0) -> None:
        self._duration = max(duration, 1e-6)
        self._delay = max(delay, 0.0)
        self._progress = 0.0
        self._animating = True
        self._paused = False

    def update(self, dt: float) -> None:
        if not self._animating or self._paused:
            return
        if self._delay > 0.0:
            used = min(self._delay, dt)
            self._delay -= used
            dt -= used
        self._progress += dt / self._duration
        if self._progress >= 1.0:
            self._progress = 1.0
            self._animating = False
            if self.on_finished is not None:
                self.on_finished()

    def pause(self) -> None:
        self._paused = True

    def reset(self) -> None:
        self._progress = 0.0
        self._delay = 0.0
        self._animating = False
        self._paused = False

    @property
    def value(self) -> float:
        return ease_in_ease_out(self._progress)

    @property
    def is_animating(self) -> bool:
        return self._animating

    @property
    def paused(self) -> bool:
        return self._paused


@dataclass
class ViewState:
    offset_world: Vec2 = Vec2()
    scale: float = 1.0
    theta_index: int = 0
    theta: float = 0.0
    view_world: Rect = Rect()
    tileset: str = ""


def _zoom_key(level: int) -> int:
    return int(math.floor(2.0 ** level))


@dataclass
class Viewer:
    """Camera and cache logic, independent of any window or renderer."""

    config: Config
    loader: Any
    screen_size: tuple[int, int] = (1024, 768)
    tile_sets: dict[str, TileSet] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self.view = ViewState(tileset=self.config.scan_name)
        self.next_tile_set = self.config.secondary_name or ""
        self.next_tile_set_offset = Vec2()
        self.theta_levels = list(DEFAULT_THETA_LEVELS)
        self.current_zoom = SmoothValueLinear(2.0, 5.3, 1.0, 8.0)
        self.current_theta = SmoothValueLinear(2.0, 0.0, -360.0, 720.0)
        self.rotation_angle = SmoothValueLinear(2.0, 0.0, -360.0, 720.0)
        self.current_zoom_level = math.floor(self.current_zoom.value)
        self.last_zoom_level = self.current_zoom_level
        self.view.scale = 2.0 ** (self.current_zoom_level - self.current_zoom.value)
        self.cycle_theta = True
        self.recording = False
        self.frame_ready = False
        self.blend_alpha = 0.0
        self.t = 0.0
        self.zoom_center_world = Vec2()
        self.rotation_center_world = Vec2()
        self.view_target_world = Vec2()
        self.view_start_world = Vec2()
        self.offset_delta = Vec2()
        self.last_mouse = Vec2()
        self.focus_view_target = False
        self.view_targets: dict[str, list[Vec2]] = {}
        self.cache_main: dict[TileKey, Any] = {}
        self.cache_secondary = TileCacheLRU(600)
        self.cache_misses = 0
        self.tween = Tween()
        self.tween.on_finished = self.animation_finished
        self.view_matrix = Affine()
        self.view_matrix_inverted = Affine()
        self.resize(*self.screen_size)

    # -- setup ---------------------------------------------------------

    def add_tile_set(self, tile_set: TileSet) -> None:
        """Register a tile set; the primary one also centres the view."""
        self.tile_sets[tile_set.name] = tile_set
        self.view_targets[tile_set.name] = list(tile_set.points_of_interest)
        if tile_set.name != self.view.tileset:
            return
        if tile_set.theta_levels:
            self.theta_levels = list(tile_set.theta_levels)
        size = tile_set.world_sizes.get(_zoom_key(self.current_zoom_level), Vec2())
        self.next_tile_set_offset = Vec2(size.x, 0.0)
        self.preload_zoom(self.current_zoom_level - 1)
        self.preload_zoom(self.current_zoom_level - 2)
        self.update_caches()
        self.view.offset_world = self.global_to_world(Vec2(0.5, 0.5))
        self.calculate_view_matrix()

    # -- transforms ----------------------------------------------------

    def calculate_view_matrix(self) -> None:
        self.view_matrix = build_view_matrix(
            self.view.offset_world, self.view.scale, self.rotation_angle.value, self.screen_center
        )
        self.view_matrix_inverted = self.view_matrix.inverse()

    def screen_to_world(self, point: Vec2) -> Vec2:
        return self.view_matrix_inverted.apply(point)

    def world_to_screen(self, point: Vec2) -> Vec2:
        return self.view_matrix.apply(point)

    def _world_size(self) -> Vec2 | None:
        tile_set = self.tile_sets.get(self.view.tileset)
        if tile_set is None:
            return None
        return tile_set.world_sizes.get(_zoom_key(self.current_zoom_level))

    def global_to_world(self, point: Vec2) -> Vec2:
        size = self._world_size()
        return point if size is None else point * size

    def world_to_global(self, point: Vec2) -> Vec2:
        size = self._world_size()
        return point if size is None else point / size

    def is_visible_rect(self, rect: Rect, offset: Vec2 = Vec2()) -> bool:
        x, y = rect.x + offset.x, rect.y + offset.y
        corners = [
            self.view_matrix.apply(Vec2(cx, cy))
            for cx, cy in (
                (x, y), (x + rect.width, y), (x + rect.width, y + rect.height), (x, y + rect.height)
            )
        ]
        xs = [c.x for c in corners]
        ys = [c.y for c in corners]
        bounds = Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
        return self.screen_rectangle.intersects(bounds)

    def is_visible_key(self, key: TileKey, offset: Vec2 = Vec2()) -> bool:
        return self.is_visible_rect(Rect(key.x, key.y, key.width, key.height), offset)

    # -- caches --------------------------------------------------------

    def _theta_pair(self) -> tuple[int, int]:
        i = self.view.theta_index
        return self.theta_levels[i], self.theta_levels[(i + 1) % len(self.theta_levels)]

    def _store_main(self, key: TileKey, image: Any) -> None:
        self.cache_misses += 1
        self.cache_main[key] = image

    def update_caches(self) -> bool:
        """Sync the main cache with what is on screen; True if nothing is missing."""
        ready = True
        zoom = _zoom_key(self.current_zoom_level)
        t1, t2 = self._theta_pair()
        current, nxt = self.view.tileset, self.next_tile_set

        for key, image in list(self.cache_main.items()):
            if (
                key.zoom != zoom
                or key.theta not in (t1, t2)
                or key.tileset not in (current, nxt)
                or (key.tileset == current and not self.is_visible_key(key))
                or (key.tileset == nxt and not self.is_visible_key(key, self.next_tile_set_offset))
            ):
                self.cache_secondary.put(key, image)
                del self.cache_main[key]

        for name, offset in ((current, None), (nxt, self.next_tile_set_offset)):
            tile_set = self.tile_sets.get(name)
            if tile_set is None:
                continue
            for key in tile_set.tiles.get(zoom, []):
                if key in self.cache_main or key.theta not in (t1, t2):
                    continue
                if key.tileset not in (current, nxt):
                    continue
                if offset is None and key.tileset == current and not self.is_visible_key(key):
                    continue
                if offset is not None and key.tileset == nxt and not self.is_visible_key(key, offset):
                    continue
                image = self.cache_secondary.get(key)
                if image is not None:
                    self.cache_main[key] = image
                    self.cache_secondary.erase(key)
                else:
                    ready = False
                    self.loader.request_load(
                        key.filepath, lambda _path, img, key=key: self._store_main(key, img)
                    )
        return ready

    def preload_zoom(self, level: int) -> None:
        """Queue tiles of another zoom level covering the current view."""
        if level < MAX_ZOOM_LEVEL or level > MIN_ZOOM_LEVEL:
            return
        tile_set = self.tile_sets.get(self.view.tileset)
        if tile_set is None:
            return
        multiplier = 2.0 ** (level - self.current_zoom_level)
        t1, t2 = self._theta_pair()
        area = self.view.view_world
        right, left = area.right / multiplier, area.left / multiplier
        top, bottom = area.top / multiplier, area.bottom / multiplier
        for key in tile_set.tiles.get(_zoom_key(level), []):
            if key.theta not in (t1, t2):
                continue
            if key.x >= right or key.x + key.width <= left or key.y >= bottom or key.y + key.height <= top:
                continue
            if not self.cache_secondary.contains(key, False):
                self.loader.request_load(
                    key.filepath,
                    lambda _path, img, key=key: self.cache_secondary.put(key, img),
                )

    # -- animation -----------------------------------------------------

    def set_view_target(self, world: Vec2, delay_s: float = 0.0) -> None:
        self.tween.pause()
        self.tween.reset()
        self.zoom_center_world = world
        self.view_target_world = world
        self.view_start_world = self.view.offset_world
        dist = self.world_to_global(self.view_start_world).distance(
            self.world_to_global(self.view_target_world)
        ) / math.sqrt(2.0)
        movement = max(self.config.min_moving_time, self.config.max_moving_time * dist)
        self.tween.start(movement, delay_s)
        self.current_zoom.set_target(2.0)
        self.current_zoom.speed = 0.1

    def next_point_of_interest(self) -> Vec2:
        """Fly to the next stored point of interest; IndexError when none are left."""
        target = self.view_targets.get(self.view.tileset, []).pop()
        self.set_view_target(self.global_to_world(target))
        return target

    def animation_finished(self) -> None:
        self.current_zoom.set_target(1.3)

    # -- per frame -----------------------------------------------------

    def update(self, dt: float) -> bool:
        """Advance one frame; return whether every needed tile is loaded."""
        self.loader.dispatch_main_callbacks(32)
        if self.recording:
            dt = 1.0 / self.config.recording_fps if self.frame_ready else 0.0

        if not self.recording or self.frame_ready:
            self.view.offset_world = self.view.offset_world + self.offset_delta
            self.offset_delta = Vec2()
            if self.cycle_theta:
                self.current_theta.set_target(self.current_theta.target + 0.1)
            self.tween.update(dt)
        self.calculate_view_matrix()

        prev_zoom = self.current_zoom.value
        zoom_updated = self.current_zoom.process(dt)
        zooming_in = prev_zoom > self.current_zoom.value
        load_in = load_out = False
        if zoom_updated:
            before = self.world_to_screen(self.zoom_center_world)
            self.view.scale = 2.0 ** (self.current_zoom_level - self.current_zoom.value)
            self.calculate_view_matrix()
            after = self.world_to_screen(self.zoom_center_world)
            self.view.offset_world = self.view.offset_world + (
                self.screen_to_world(after) - self.screen_to_world(before)
            )
            self.calculate_view_matrix()
            self.current_zoom_level = max(
                MAX_ZOOM_LEVEL, min(math.floor(self.current_zoom.value), MIN_ZOOM_LEVEL)
            )
            if self.current_zoom_level != self.last_zoom_level:
                m = 2.0 ** (self.last_zoom_level - self.current_zoom_level)
                self.view.scale = 2.0 ** (self.current_zoom_level - self.current_zoom.value)
                self.zoom_center_world *= m
                self.rotation_center_world *= m
                self.view_target_world *= m
                self.view_start_world *= m
                self.view.offset_world *= m
                self.next_tile_set_offset *= m
                self.last_zoom_level = self.current_zoom_level
                self.calculate_view_matrix()
            if self.view.scale > 0.8 and zooming_in:
                load_in = True
            elif self.view.scale < 0.6 and not zooming_in:
                load_out = True

        self.rotation_angle.process(dt)
        self.calculate_view_matrix()

        if self.current_theta.process(dt):
            self._update_theta()

        w, h = self.screen_size
        self.view.view_world = Rect.from_corners(
            self.screen_to_world(Vec2(6.0, 6.0)), self.screen_to_world(Vec2(w - 12.0, h - 12.0))
        )

        if self.tween.is_animating and not self.tween.paused:
            self.t = self.tween.value
            tween = self.view_target_world * self.t + self.view_start_world * (1.0 - self.t)
            self.offset_delta = tween - self.view.offset_world

        if load_out and not self.recording:
            self.preload_zoom(self.current_zoom_level + 1)
        if load_in and not self.recording:
            self.preload_zoom(self.current_zoom_level - 1)

        self.frame_ready = self.update_caches()
        return self.frame_ready

    def _update_theta(self) -> None:
        theta = self.current_theta
        self.view.theta = math.fmod(theta.value + 180.0, 180.0)
        if theta.target < 0.0:
            theta.set_target(theta.target + 180.0)
            theta.set_value(theta.value + 180.0)
        elif theta.target >= 180.0:
            theta.set_target(theta.target - 180.0)
            theta.set_value(theta.value - 180.0)

        index = 0
        for i, level in enumerate(self.theta_levels):
            if level > self.view.theta:
                break
            index = i
        self.view.theta_index = index
        t1 = self.theta_levels[index]
        t2 = (
            self.theta_levels[0] + 180
            if index == len(self.theta_levels) - 1
            else self.theta_levels[index + 1]
        )
        self.blend_alpha = 0.0 if t1 == t2 else (self.view.theta - t1) / (t2 - t1)

    # -- input ---------------------------------------------------------

    def press(self, x: float, y: float) -> None:
        self.last_mouse = Vec2(x, y)

    def drag(self, x: float, y: float) -> None:
        current = Vec2(x, y)
        delta = self.screen_to_world(self.last_mouse) - self.screen_to_world(current)
        self.view.offset_world = self.view.offset_world + delta
        self.last_mouse = current
        self.tween.pause()

    def scroll(self, x: float, y: float, scroll_x: float, scroll_y: float) -> None:
        point = self.screen_to_world(Vec2(x, y))
        self.rotation_center_world = point
        self.rotation_angle.set_target(self.rotation_angle.target - scroll_x)
        self.zoom_center_world = point
        self.current_zoom.speed = 2.0
        self.current_zoom.set_target(self.current_zoom.target - scroll_y * 0.015)
        self.focus_view_target = False
        self.tween.pause()

    def _input_allowed(self) -> bool:
        return not self.recording or self.frame_ready

    def nudge_theta(self, delta: float) -> None:
        if self._input_allowed():
            self.current_theta.set_target(self.current_theta.target + delta)

    def nudge_rotation(self, delta: float) -> None:
        if self._input_allowed():
            self.rotation_angle.set_target(self.rotation_angle.target + delta)

    def resize(self, width: int, height: int) -> None:
        self.screen_size = (width, height)
        self.screen_rectangle = Rect(0.0, 0.0, float(width), float(height))
        self.screen_center = Vec2(width / 2.0, height / 2.0)
        self.calculate_view_matrix()
        self.update_caches()

    def status_lines(self, cursor: Vec2) -> list[str]:
        """Debug overlay text for a cursor position in screen coordinates."""
        world = self.screen_to_world(cursor)
        glob = self.world_to_global(world)
        v = self.view
        lines = [
            f"Offset: {v.offset_world.x:.2f}, {v.offset_world.y:.2f}, "
            f"Mouse: world {world.x:.2f}, {world.y:.2f} global {glob.x:.4f}, {glob.y:.4f}, "
            f"ZoomCenter {self.zoom_center_world.x:.2f}, {self.zoom_center_world.y:.2f}, "
            f"rotationAngle {self.rotation_angle.value:.2f}",
            f"Zoom: {self.current_zoom.value:.2f} (ZoomLevel {self.current_zoom_level}, "
            f"Scale: {v.scale:.2f}), Theta: {v.theta:.2f} (Theta Index: {v.theta_index}, "
            f"blend: {self.blend_alpha:.2f})",
            f"Cache: MAIN {len(self.cache_main)}, SECONDARY {len(self.cache_secondary)} "
            f"(cache misses: {self.cache_misses}), frameReady {str(self.frame_ready).lower()}",
        ]
        lines.extend(" ".join(f"{n:9.3f}" for n in row) for row in self.view_matrix.rows())
        return lines