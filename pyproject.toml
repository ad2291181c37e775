[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gemview"
version = "0.1.0"
description = "Interactive viewer for large tiled scans with zoom, rotation and polarisation-angle blending"
requires-python = ">=3.11"
dependencies = [
    "pygame",
]
keywords = ["tiles", "viewer", "scan", "zoom", "polarisation", "lru-cache", "pygame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: X11 Applications",
    "Intended Audience :: Science/Research",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gemview = "gemview.app:main"

[tool.hatch.build.targets.wheel]
packages = ["gemview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
