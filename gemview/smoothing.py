"""Values that ease linearly towards a target over time."""

from __future__ import annotations

from numbers import Real

from .geometry import Vec2


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class SmoothValueLinear:
    """A scalar that moves towards its target, limited to [minimum, maximum]."""

    def __init__(
        self,
        speed: float,
        start_value: float = 0.0,
        minimum: float = 0.0,
        maximum: float = 1.0,
    ) -> None:
        self.speed = speed
        self.minimum = minimum
        self.maximum = maximum
        self._current = float(start_value)
        self._target = float(start_value)
        self._needs_processing = True

    def set_target(self, target: float) -> None:
        self._target = _clamp(target, self.minimum, self.maximum)
        self._needs_processing = True

    def set_value(self, value: float) -> None:
        self._current = _clamp(value, self.minimum, self.maximum)
        self._needs_processing = True

    def jump_to(self, value: float) -> None:
        self._current = _clamp(value, self.minimum, self.maximum)
        self._target = self._current
        self._needs_processing = True

    @property
    def value(self) -> float:
        return self._current

    @property
    def target(self) -> float:
        return self._target

    def process(self, delta_s: float) -> bool:
        """Advance by ``delta_s`` seconds; return whether the value was updated."""
        if not self._needs_processing or delta_s < 0.0001:
            return False
        diff = self._target - self._current
        if abs(diff) < 0.001:
            self._current = self._target
            self._needs_processing = False
        else:
            self._current += diff * min(self.speed * delta_s, 1.0)
        self._current = _clamp(self._current, self.minimum, self.maximum)
        return True


class SmoothVec2Linear:
    """A 2D vector that moves towards its target."""

    def __init__(self, speed: float, start_value: Vec2) -> None:
        self.speed = speed
        self._current = start_value
        self._target = start_value
        self._needs_processing = True

    def set_target(self, target: Vec2) -> None:
        self._target = target
        self._needs_processing = True

    def set_value(self, value: Vec2) -> None:
        self._current = value
        self._needs_processing = True

    def jump_to(self, value: Vec2 | float) -> None:
        """Set value and target at once; a scalar sets both components."""
        if isinstance(value, Real):
            value = Vec2(float(value), float(value))
        self._current = value
        self._target = value
        self._needs_processing = True

    @property
    def value(self) -> Vec2:
        return self._current

    @property
    def target(self) -> Vec2:
        return self._target

    def process(self, delta_s: float) -> bool:
        """Advance by ``delta_s`` seconds; return whether the value was updated."""
        if not self._needs_processing:
            return False
        diff = self._target - self._current
        if diff.length_squared() < 0.01:
            self._current = self._target
            self._needs_processing = False
        else:
            self._current = self._current + diff * min(self.speed * delta_s, 1.0)
        return True