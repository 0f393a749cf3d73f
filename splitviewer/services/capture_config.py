"""Immutable capture configuration snapshot and its filter variants.

Snapshots are fetched from the device, copied with a change applied, and
pushed back whole. Nothing here mutates a snapshot in place.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Union

from splitviewer.services.camera_device import InvalidParameter

VALID_BINNING = (1, 2, 4)
ROI_WIDTH_ALIGNMENT = 4


@dataclass(frozen=True, slots=True)
class Roi:
    enabled: bool
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Binning:
    x: int
    y: int

    @classmethod
    def uniform(cls, factor: int) -> "Binning":
        return cls(x=factor, y=factor)


@dataclass(frozen=True, slots=True)
class RangeFilter:
    enabled: bool = False
    min: float = 0.0
    max: float = 0.0

    def with_enabled(self, enabled: bool) -> "RangeFilter":
        return replace(self, enabled=bool(enabled))

    def with_range(self, minimum: float, maximum: float) -> "RangeFilter":
        """Write both bounds; a parameter write always enables the filter."""
        return replace(self, enabled=True, min=float(minimum), max=float(maximum))

    def with_lower_bound(self, minimum: float) -> "RangeFilter":
        return replace(self, enabled=True, min=float(minimum))


@dataclass(frozen=True, slots=True)
class ScalarFilter:
    enabled: bool = False
    value: float = 0.0

    def with_enabled(self, enabled: bool) -> "ScalarFilter":
        return replace(self, enabled=bool(enabled))

    def with_value(self, value: float) -> "ScalarFilter":
        return replace(self, enabled=True, value=float(value))


@dataclass(frozen=True, slots=True)
class ToggleFilter:
    enabled: bool = False

    def with_enabled(self, enabled: bool) -> "ToggleFilter":
        return replace(self, enabled=bool(enabled))

    def read(self) -> tuple[bool, None, None]:
        """Device-shaped read: enabled plus two reserved fields."""
        return self.enabled, None, None


FilterSetting = Union[RangeFilter, ScalarFilter, ToggleFilter]


@dataclass(frozen=True)
class CaptureConfig:
    frame_period_us: int
    roi: Roi
    binning: Binning
    distance_filter: RangeFilter = RangeFilter()
    intensity_filter: RangeFilter = RangeFilter()
    isolated_pixel_filter: ScalarFilter = ScalarFilter()
    ambiguity_filter: ScalarFilter = ScalarFilter()
    remission_filter: RangeFilter = RangeFilter()
    edge_correction: ToggleFilter = ToggleFilter()

    def filter(self, field: str) -> FilterSetting:
        setting = getattr(self, field, None)
        if not isinstance(setting, (RangeFilter, ScalarFilter, ToggleFilter)):
            raise KeyError(f"unknown filter {field!r}")
        return setting

    def with_filter(self, field: str, setting: FilterSetting) -> "CaptureConfig":
        current = self.filter(field)
        if type(current) is not type(setting):
            raise TypeError(f"{field} expects {type(current).__name__}, got {type(setting).__name__}")
        return replace(self, **{field: setting})

    def with_frame_period(self, frame_period_us: int) -> "CaptureConfig":
        return replace(self, frame_period_us=int(frame_period_us))

    def with_geometry(self, roi: Roi | None = None, binning: Binning | None = None) -> "CaptureConfig":
        return replace(
            self,
            roi=self.roi if roi is None else roi,
            binning=self.binning if binning is None else binning,
        )


def validate_binning(binning: Binning) -> None:
    for axis, factor in (("x", binning.x), ("y", binning.y)):
        if factor not in VALID_BINNING:
            raise InvalidParameter(f"binning {axis}={factor} not in {VALID_BINNING}")


def validate_geometry(roi: Roi, binning: Binning) -> None:
    """Check ROI/binning invariants; inputs are never adjusted."""
    validate_binning(binning)
    if not roi.enabled:
        return
    if roi.x < 0 or roi.y < 0:
        raise InvalidParameter(f"ROI position ({roi.x}, {roi.y}) must be non-negative")
    if roi.width <= 0 or roi.height <= 0:
        raise InvalidParameter(f"ROI size {roi.width}x{roi.height} must be positive")
    if roi.width % binning.x or (roi.width // binning.x) % ROI_WIDTH_ALIGNMENT:
        raise InvalidParameter(
            f"ROI width {roi.width} must be divisible by {ROI_WIDTH_ALIGNMENT} after binning by {binning.x}"
        )
    if roi.height % binning.y:
        raise InvalidParameter(f"ROI height {roi.height} must be divisible by binning {binning.y}")


def validate_frame_period(frame_period_us: int) -> None:
    if frame_period_us <= 0:
        raise InvalidParameter(f"frame period must be positive, got {frame_period_us} us")


def validate_value(value: float, name: str = "value") -> None:
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite, got {value}")


def validate_range(minimum: float, maximum: float) -> None:
    if not (math.isfinite(minimum) and math.isfinite(maximum)):
        raise InvalidParameter(f"range bounds must be finite, got ({minimum}, {maximum})")
    if minimum > maximum:
        raise InvalidParameter(f"range minimum {minimum} exceeds maximum {maximum}")
