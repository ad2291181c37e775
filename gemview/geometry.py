"""Plane geometry: vectors, rectangles and affine view transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterator


@dataclass(frozen=True, slots=True)
class Vec2:
    """An immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, other: Vec2 | float) -> Vec2:
        if isinstance(other, Vec2):
            return Vec2(self.x * other.x, self.y * other.y)
        if isinstance(other, Real):
            return Vec2(self.x * other, self.y * other)
        return NotImplemented

    def __rmul__(self, other: float) -> Vec2:
        if isinstance(other, Real):
            return Vec2(self.x * other, self.y * other)
        return NotImplemented

    def __truediv__(self, other: Vec2 | float) -> Vec2:
        if isinstance(other, Vec2):
            return Vec2(self.x / other.x, self.y / other.y)
        if isinstance(other, Real):
            return Vec2(self.x / other, self.y / other)
        return NotImplemented

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def distance(self, other: Vec2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True, slots=True)
class Rect:
    """An axis-aligned rectangle given by its top-left corner and size."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_corners(cls, a: Vec2, b: Vec2) -> Rect:
        """Build the rectangle spanned by two opposite corners, in any order."""
        left, right = sorted((a.x, b.x))
        top, bottom = sorted((a.y, b.y))
        return cls(left, top, right - left, bottom - top)

    @property
    def left(self) -> float:
        return min(self.x, self.x + self.width)

    @property
    def right(self) -> float:
        return max(self.x, self.x + self.width)

    @property
    def top(self) -> float:
        return min(self.y, self.y + self.height)

    @property
    def bottom(self) -> float:
        return max(self.y, self.y + self.height)

    @property
    def center(self) -> Vec2:
        return Vec2(self.x + self.width / 2.0, self.y + self.height / 2.0)

    def intersects(self, other: Rect) -> bool:
        """True when the interiors overlap; touching edges do not count."""
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )

    def scaled_from_center(self, factor: float) -> Rect:
        """Return a copy scaled by ``factor`` about the same center."""
        c = self.center
        width = self.width * factor
        height = self.height * factor
        return Rect(c.x - width / 2.0, c.y - height / 2.0, width, height)


@dataclass(frozen=True, slots=True)
class Affine:
    """A 2D affine map: x' = a*x + b*y + c, y' = d*x + e*y + f."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    @classmethod
    def translation(cls, offset: Vec2) -> Affine:
        return cls(1.0, 0.0, offset.x, 0.0, 1.0, offset.y)

    @classmethod
    def scaling(cls, sx: float, sy: float) -> Affine:
        return cls(sx, 0.0, 0.0, 0.0, sy, 0.0)

    @classmethod
    def rotation(cls, degrees: float) -> Affine:
        rad = math.radians(degrees)
        cos, sin = math.cos(rad), math.sin(rad)
        return cls(cos, -sin, 0.0, sin, cos, 0.0)

    def then(self, other: Affine) -> Affine:
        """Return the map that applies ``self`` first and ``other`` after."""
        return Affine(
            other.a * self.a + other.b * self.d,
            other.a * self.b + other.b * self.e,
            other.a * self.c + other.b * self.f + other.c,
            other.d * self.a + other.e * self.d,
            other.d * self.b + other.e * self.e,
            other.d * self.c + other.e * self.f + other.f,
        )

    def apply(self, point: Vec2) -> Vec2:
        return Vec2(
            self.a * point.x + self.b * point.y + self.c,
            self.d * point.x + self.e * point.y + self.f,
        )

    def inverse(self) -> Affine:
        det = self.a * self.e - self.b * self.d
        if abs(det) < 1e-12:
            raise ValueError("affine transform is not invertible")
        ia = self.e / det
        ib = -self.b / det
        id_ = -self.d / det
        ie = self.a / det
        return Affine(
            ia,
            ib,
            -(ia * self.c + ib * self.f),
            id_,
            ie,
            -(id_ * self.c + ie * self.f),
        )

    def rows(self) -> tuple[tuple[float, float, float, float], ...]:
        """The equivalent 4x4 matrix for column vectors, row by row."""
        return (
            (self.a, self.b, 0.0, self.c),
            (self.d, self.e, 0.0, self.f),
            (0.0, 0.0, 1.0, 0.0),
            (0.0, 0.0, 0.0, 1.0),
        )


def build_view_matrix(offset: Vec2, scale: float, angle_degrees: float, center: Vec2) -> Affine:
    """World-to-screen map: shift by -offset, scale, rotate, then move to center."""
    angle = math.fmod(angle_degrees, 360.0)
    return (
        Affine.translation(-offset)
        .then(Affine.scaling(scale, scale))
        .then(Affine.rotation(angle))
        .then(Affine.translation(center))
    )