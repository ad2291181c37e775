"""Window, input handling, rendering and frame recording for the viewer."""

from __future__ import annotations

import argparse
import logging
import math
from datetime import datetime
from pathlib import Path

import pygame

from .geometry import Rect, Vec2
from .loader import AsyncTextureLoader
from .tiles import load_config, load_tile_set
from .viewer import Viewer

log = logging.getLogger(__name__)

WINDOW_TITLE = "As Gems in Metal"
SCREEN_MARGIN = 6.0
CSV_HEADER = "frameCount,t,currentViewX,currentViewY,deltaX,deltaY"

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
CYAN = (0, 255, 255)
YELLOW = (255, 255, 0)


class FrameRecorder:
    """Writes rendered frames as numbered PNG files plus a CSV of camera motion."""

    def __init__(self, folder: str | Path, name: str) -> None:
        self.directory = Path(folder) / name
        self.directory.mkdir(parents=True, exist_ok=True)
        self.csv_path = self.directory / "tween.csv"
        self.csv_path.write_text(CSV_HEADER + "\n", encoding="utf-8")

    def record(
        self,
        surface: pygame.Surface,
        frame_count: int,
        t: float,
        offset: Vec2,
        delta: Vec2,
    ) -> Path:
        """Save one frame and its motion row; return the image path."""
        path = self.directory / f"frame_{frame_count:06d}.png"
        pygame.image.save(surface, str(path))
        row = ",".join(
            [str(frame_count)] + [format(v, "g") for v in (t, offset.x, offset.y, delta.x, delta.y)]
        )
        with self.csv_path.open("a", encoding="utf-8") as handle:
            handle.write(row + "\n")
        return path


class App:
    """Connects a :class:`Viewer` to a pygame window."""

    def __init__(self, viewer: Viewer, size: tuple[int, int] = (1024, 768)) -> None:
        self.viewer = viewer
        self.size = size
        self.show_debug = True
        self.draw_cached = False
        self.recorder: FrameRecorder | None = None
        self.frame_count = 0
        self.visible_tiles = 0
        self.mouse = Vec2()
        self.running = True
        self._font: pygame.font.Font | None = None

    @property
    def recording(self) -> bool:
        return self.viewer.recording

    # -- input ---------------------------------------------------------

    def handle_key(self, key: int) -> None:
        viewer = self.viewer
        if key == pygame.K_LEFT:
            viewer.nudge_theta(-0.3)
        elif key == pygame.K_RIGHT:
            viewer.nudge_theta(0.3)
        elif key == pygame.K_UP:
            viewer.nudge_rotation(1.0)
        elif key == pygame.K_DOWN:
            viewer.nudge_rotation(-1.0)
        elif key == pygame.K_d:
            self.show_debug = not self.show_debug
        elif key == pygame.K_c:
            self.draw_cached = not self.draw_cached
        elif key == pygame.K_t:
            viewer.cycle_theta = not viewer.cycle_theta
        elif key == pygame.K_SPACE:
            try:
                viewer.next_point_of_interest()
            except IndexError:
                log.warning("no points of interest left for %s", viewer.view.tileset)
        elif key == pygame.K_r:
            self.toggle_recording()

    def handle_event(self, event: pygame.event.Event) -> None:
        viewer = self.viewer
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN:
            self.handle_key(event.key)
        elif event.type == pygame.MOUSEBUTTONDOWN:
            self.mouse = Vec2(*event.pos)
            if event.button in (1, 2, 3):
                viewer.press(*event.pos)
        elif event.type == pygame.MOUSEMOTION:
            self.mouse = Vec2(*event.pos)
            if any(event.buttons):
                viewer.drag(*event.pos)
        elif event.type == pygame.MOUSEWHEEL:
            viewer.scroll(self.mouse.x, self.mouse.y, float(event.x), float(event.y))
        elif event.type == pygame.VIDEORESIZE:
            self.size = (event.w, event.h)
            viewer.resize(event.w, event.h)

    def toggle_recording(self) -> None:
        """Start a new recording, or stop the running one."""
        if not self.recording:
            config = self.viewer.config
            name = config.recording_filename or datetime.now().strftime("%Y-%m-%d_%H:%M:%S")
            folder = config.recording_folder if config.recording_folder is not None else "."
            self.recorder = FrameRecorder(folder, name)
            log.info("Recording to %s", self.recorder.directory)
        else:
            self.recorder = None
        self.viewer.recording = not self.viewer.recording

    # -- rendering -----------------------------------------------------

    def _screen_polygon(self, rect: Rect, offset: Vec2 = Vec2()) -> list[tuple[float, float]]:
        x, y = rect.x + offset.x, rect.y + offset.y
        corners = (
            Vec2(x, y),
            Vec2(x + rect.width, y),
            Vec2(x + rect.width, y + rect.height),
            Vec2(x, y + rect.height),
        )
        return [tuple(self.viewer.world_to_screen(c)) for c in corners]

    def _blit_tile(self, layer: pygame.Surface, image: pygame.Surface, origin: Vec2, angle: float) -> None:
        width, height = image.get_size()
        centre = self.viewer.world_to_screen(origin + Vec2(width / 2.0, height / 2.0))
        transformed = pygame.transform.rotozoom(image, -angle, self.viewer.view.scale)
        layer.blit(transformed, transformed.get_rect(center=(round(centre.x), round(centre.y))))

    def _render_scene(self) -> pygame.Surface:
        viewer = self.viewer
        size = viewer.screen_size
        layer_a = pygame.Surface(size)
        layer_b = pygame.Surface(size)
        layer_a.fill(BLACK)
        layer_b.fill(BLACK)

        levels = viewer.theta_levels
        index = viewer.view.theta_index
        t1, t2 = levels[index], levels[(index + 1) % len(levels)]
        angle = math.fmod(viewer.rotation_angle.value, 360.0)
        outline = self.show_debug and not self.recording

        self.visible_tiles = 0
        for key, image in list(viewer.cache_main.items()):
            if key.theta == t1:
                layer, colour = layer_a, RED
            elif key.theta == t2:
                layer, colour = layer_b, GREEN
            else:
                continue
            origin = Vec2(float(key.x), float(key.y))
            if key.tileset != viewer.view.tileset:
                origin = origin + viewer.next_tile_set_offset
            self._blit_tile(layer, image, origin, angle)
            if outline:
                pygame.draw.polygon(
                    layer, colour, self._screen_polygon(Rect(key.x, key.y, key.width, key.height)), 3
                )
            self.visible_tiles += 1

        alpha = max(0.0, min(1.0, viewer.blend_alpha))
        layer_b.set_alpha(round(alpha * 255))
        layer_a.blit(layer_b, (0, 0))
        return layer_a

    def _draw_world_overlay(self, target: pygame.Surface) -> None:
        viewer = self.viewer
        levels = viewer.theta_levels
        level_zoom = 2.0 ** viewer.current_zoom_level

        if self.draw_cached:
            current_theta = levels[viewer.view.theta_index]
            for key in viewer.cache_secondary:
                if key.theta != current_theta:
                    continue
                m = key.zoom / level_zoom
                if not viewer.is_visible_key(key):
                    continue
                rect = Rect(m * key.x + 2, m * key.y + 2, m * key.width - 4, m * key.height - 4)
                pygame.draw.polygon(target, BLUE, self._screen_polygon(rect), 1)

        next_set = viewer.tile_sets.get(viewer.next_tile_set)
        if next_set is not None:
            size = next_set.world_sizes.get(int(math.floor(level_zoom)))
            if size is not None:
                offset = viewer.next_tile_set_offset
                bounds = Rect(offset.x, offset.y, size.x, size.y)
                pygame.draw.polygon(target, CYAN, self._screen_polygon(bounds), 10)

        centre = viewer.world_to_screen(viewer.zoom_center_world)
        pygame.draw.circle(target, YELLOW, (round(centre.x), round(centre.y)), 10, 1)

        width, height = viewer.screen_size
        pygame.draw.line(target, GREEN, (self.mouse.x, 0), (self.mouse.x, height), 1)
        pygame.draw.line(target, GREEN, (0, self.mouse.y), (width, self.mouse.y), 1)
        m = SCREEN_MARGIN
        corners = [(m, m), (width - m, m), (width - m, height - m), (m, height - m)]
        pygame.draw.lines(target, YELLOW, True, corners, 6)

    def _draw_text(self, target: pygame.Surface) -> None:
        if self._font is None:
            pygame.font.init()
            self._font = pygame.font.Font(None, 16)
        lines = self.viewer.status_lines(self.mouse)
        status, matrix = lines[:3], lines[3:]
        width, height = target.get_size()
        line_height = self._font.get_linesize()
        y = height - line_height * len(status)
        for text in status:
            target.blit(self._font.render(text, True, WHITE, BLACK), (0, y))
            y += line_height
        y = 20
        for text in matrix:
            target.blit(self._font.render(text, True, WHITE, BLACK), (width - 360, y))
            y += line_height

    def draw(self, surface: pygame.Surface) -> None:
        """Render one frame to ``surface``, recording it when a recording runs."""
        viewer = self.viewer
        final = self._render_scene()
        if self.show_debug and not self.recording:
            self._draw_world_overlay(final)

        if self.recording and viewer.frame_ready and self.recorder is not None:
            self.recorder.record(
                final, self.frame_count, viewer.t, viewer.view.offset_world, viewer.offset_delta
            )
            self.frame_count += 1

        surface.blit(final, (0, 0))

        if self.recording:
            width, height = viewer.screen_size
            m = int(SCREEN_MARGIN)
            pygame.draw.rect(surface, RED, (m, m, width - 2 * m, height - 2 * m), m)

        if self.show_debug:
            self._draw_text(surface)

    # -- main loop -----------------------------------------------------

    def run(self) -> None:
        pygame.init()
        screen = pygame.display.set_mode(self.size, pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)
        clock = pygame.time.Clock()
        self.running = True
        dt = 0.0
        try:
            while self.running:
                for event in pygame.event.get():
                    self.handle_event(event)
                self.viewer.update(dt)
                self.draw(screen)
                pygame.display.flip()
                dt = clock.tick(60) / 1000.0
        finally:
            self.recorder = None
            self.viewer.loader.stop()
            pygame.quit()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="gemview", description="Pan and zoom through tiled scans.")
    parser.add_argument("config", nargs="?", default="config.toml", help="path to config.toml")
    parser.add_argument("--width", type=int, default=1024)
    parser.add_argument("--height", type=int, default=768)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as err:
        log.error("Parsing failed: %s", err)
        return 1

    size = (args.width, args.height)
    loader = AsyncTextureLoader(pygame.image.load)
    viewer = Viewer(config, loader, size)
    loader.start()
    if config.secondary_name:
        viewer.add_tile_set(load_tile_set(config.scans_root, config.secondary_name))
    viewer.add_tile_set(load_tile_set(config.scans_root, config.scan_name))
    App(viewer, size).run()
    return 0