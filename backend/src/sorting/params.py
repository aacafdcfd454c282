"""Pixel sort parameter model.

All numeric fields are clamped into range and out-of-range enum values fall
back to their first variant. Nothing here raises: bad input is repaired.
"""

import dataclasses
import math
from dataclasses import dataclass
from enum import IntEnum


class SortDirection(IntEnum):
    HORIZONTAL = 0
    VERTICAL = 1


class SortKey(IntEnum):
    BRIGHTNESS = 0
    HUE = 1
    SATURATION = 2
    INTENSITY = 3
    MINIMUM = 4
    RED = 5
    GREEN = 6
    BLUE = 7


class IntervalMode(IntEnum):
    THRESHOLD = 0
    RANDOM = 1
    EDGES = 2
    WAVES = 3
    NONE = 4


THRESHOLD_RANGE = (0, 255)
JITTER_RANGE = (0, 100)
SPAN_MIN_RANGE = (1, 10000)
SPAN_MAX_RANGE = (0, 10000)
FALLOFF_RANGE = (0, 100)


@dataclass(frozen=True)
class PixelSortParams:
    direction: SortDirection = SortDirection.HORIZONTAL
    sort_key: SortKey = SortKey.BRIGHTNESS
    interval_mode: IntervalMode = IntervalMode.THRESHOLD
    lower_threshold: int = 64
    upper_threshold: int = 204
    reverse: bool = False
    jitter: int = 0
    span_min: int = 1
    span_max: int = 0  # 0 = unlimited
    angle: int = 0  # degrees, horizontal direction only
    falloff: int = 0  # percent chance to skip a span

    @property
    def vertical(self) -> bool:
        return self.direction == SortDirection.VERTICAL

    @property
    def uses_angle(self) -> bool:
        return self.direction == SortDirection.HORIZONTAL and self.angle != 0

    @classmethod
    def from_dict(cls, values: dict) -> "PixelSortParams":
        """Build clamped params from a flat host mapping.

        Unknown keys are ignored. Enum fields accept a member, its index,
        or its lower-case name ("vertical", "hue", "edges").
        """
        defaults = cls()
        fields = {}
        for field in dataclasses.fields(cls):
            if field.name in values:
                fields[field.name] = values[field.name]
        raw = dataclasses.replace(defaults, **fields)
        return clamp(raw)

    def to_dict(self) -> dict:
        out = dataclasses.asdict(self)
        for name in ("direction", "sort_key", "interval_mode"):
            out[name] = getattr(self, name).name.lower()
        return out


def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        member = enum_cls.__members__.get(value.strip().upper())
        if member is not None:
            return member
        try:
            value = int(value)
        except ValueError:
            return enum_cls(0)
    try:
        return enum_cls(int(value))
    except (TypeError, ValueError, OverflowError):
        return enum_cls(0)


def _coerce_int(value, default: int) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def _coerce_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _clip(value: int, bounds: tuple[int, int]) -> int:
    lo, hi = bounds
    return max(lo, min(hi, value))


def clamp(params: PixelSortParams) -> PixelSortParams:
    """Repair every field into its valid range. Total and idempotent."""
    defaults = PixelSortParams()

    lower = _clip(_coerce_int(params.lower_threshold, defaults.lower_threshold), THRESHOLD_RANGE)
    upper = _clip(_coerce_int(params.upper_threshold, defaults.upper_threshold), THRESHOLD_RANGE)
    if upper < lower:
        upper = lower

    span_min = _clip(_coerce_int(params.span_min, defaults.span_min), SPAN_MIN_RANGE)
    span_max = _clip(_coerce_int(params.span_max, defaults.span_max), SPAN_MAX_RANGE)
    if 0 < span_max < span_min:
        span_max = span_min

    return PixelSortParams(
        direction=_coerce_enum(SortDirection, params.direction),
        sort_key=_coerce_enum(SortKey, params.sort_key),
        interval_mode=_coerce_enum(IntervalMode, params.interval_mode),
        lower_threshold=lower,
        upper_threshold=upper,
        reverse=_coerce_bool(params.reverse),
        jitter=_clip(_coerce_int(params.jitter, defaults.jitter), JITTER_RANGE),
        span_min=span_min,
        span_max=span_max,
        angle=_coerce_int(params.angle, defaults.angle) % 360,
        falloff=_clip(_coerce_int(params.falloff, defaults.falloff), FALLOFF_RANGE),
    )
