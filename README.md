# gemview

gemview is a desktop viewer for very large scans that are stored as image
tiles at several zoom levels and several polarisation angles (theta). You
can pan, zoom and rotate across a scan while the two nearest theta layers
are blended together. The camera can also glide between points of
interest, and the view can be recorded frame by frame.

## Installing

```
pip install .
```

This installs the `gemview` command. pygame is the only runtime dependency.

## Preparing a scan

A scan set lives in a folder below a common root:

```
<scans_root>/<scan_name>/
    2.0/0.0/100x200x256x256.jpg
    2.0/18.0/100x200x256x256.jpg
    ...
    4.0/0.0/...
    poi.csv
```

- The first folder level is the zoom factor (`2.0`, `4.0`, ...).
- The second level is the theta angle in degrees. The theta angles are
  taken from the folders under `2.0/`. The tiles of a zoom level are listed
  from its `0.0/` folder (`.jpg` files only) and the same file name is then
  looked up under every theta folder.
- Each tile file name gives its position and size: `XxYxWIDTHxHEIGHT.jpg`.
- `poi.csv` is optional. After a header row, columns two and three hold the
  x and y position of a point of interest as a fraction of the scan's size
  (0.0 to 1.0).

## Configuration

gemview reads a TOML file:

```toml
scans_root = "/data/scans/"
scan_name = "sample_a"
secondary_name = "sample_b"        # optional, placed to the right of the first
recording_folder = "/data/videos/" # optional, the current directory otherwise
recording_filename = "take1"       # optional, a timestamp is used otherwise
recording_fps = 30.0               # default 30
min_moving_time = 8.0              # seconds, default 8
max_moving_time = 8.0              # seconds, default 8
```

`scans_root` and `scan_name` are required; if either is missing the
command logs the error and exits with status 1.

## Running

```
gemview [CONFIG] [--width W] [--height H]
```

`CONFIG` defaults to `config.toml` in the current directory; the window
size defaults to 1024×768 and the window can be resized.

## Controls

| Input            | Action                                               |
|------------------|------------------------------------------------------|
| Drag with mouse  | Pan                                                  |
| Scroll wheel     | Zoom around the cursor (horizontal scroll rotates)   |
| Left / Right     | Step theta down / up                                 |
| Up / Down        | Rotate the view                                      |
| Space            | Fly to the next point of interest (last in the file first) |
| `t`              | Toggle automatic theta cycling                       |
| `d`              | Toggle the debug overlay                             |
| `c`              | Toggle drawing of cached tile outlines               |
| `r`              | Start / stop recording                               |

## Recording

Pressing `r` creates the folder `<recording_folder>/<recording_filename>/`
and writes each rendered frame into it as `frame_000000.png`,
`frame_000001.png`, and so on, together with a `tween.csv` holding
`frameCount,t,currentViewX,currentViewY,deltaX,deltaY` for every frame.

While recording, time advances by one frame at the configured frame rate,
and only once every tile needed for the frame has been loaded, so the
frame sequence stays smooth even when tiles are slow to load.

## What it does not do

- Recording produces image files and a CSV, not a video file; encode the
  frames with a tool of your choice.
- Theta layers are blended with a plain alpha blit in pygame, with no GPU
  shader.

## Using it as a library

The building blocks can be used on their own:

- `gemview.smoothing` — `SmoothValueLinear` and `SmoothVec2Linear`, values
  that ease towards a target.
- `gemview.tilecache` — `TileKey` and `TileCacheLRU`, a least-recently-used
  tile cache.
- `gemview.loader` — `AsyncTextureLoader`, a background image loader that
  runs its callbacks on the calling thread through
  `dispatch_main_callbacks`; it can be used as a context manager.
- `gemview.geometry` — `Vec2`, `Rect`, `Affine` and `build_view_matrix`.
- `gemview.tiles` — `Config`, `TileSet`, `load_config`, `load_tile_set`,
  `parse_tile_filename`, `load_theta_levels` and `load_points_of_interest`.
- `gemview.viewer` — `Viewer`, `ViewState`, `Tween` and `ease_in_ease_out`:
  the camera and cache logic without any drawing.
- `gemview.app` — `App`, `FrameRecorder` and `main`, the pygame window.

## Running the tests

```
pip install ".[test]"
pytest
```