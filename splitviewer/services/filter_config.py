"""Filter configuration model backed by the device configuration snapshot.

Every operation runs a full fetch -> copy -> push cycle through
``ConfigAccess``. Parameter writes always enable the targeted filter; only
``set_enabled`` toggles a filter without touching its values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.units import db_to_linear, linear_to_db
from splitviewer.services.capture_config import (
    RangeFilter,
    ScalarFilter,
    ToggleFilter,
    validate_frame_period,
    validate_range,
    validate_value,
)
from splitviewer.services.config_access import ConfigAccess

LOG = logging.getLogger(__name__)

DISTANCE = "distance_filter"
INTENSITY = "intensity_filter"
ISOLATED_PIXEL = "isolated_pixel_filter"
AMBIGUITY = "ambiguity_filter"
REMISSION = "remission_filter"
EDGE_CORRECTION = "edge_correction"


class IsoPixTarget(str, Enum):
    """Where the isolated-pixel value setter writes.

    OWN_FILTER writes and enables the isolated-pixel filter. INTENSITY_SLOT
    reproduces the legacy behaviour: the value lands in the intensity filter's
    lower bound and enables the intensity filter instead. The upper bound is
    left as it is, so this path can store min > max; it is the only write that
    skips the range ordering check.
    """

    OWN_FILTER = "own"
    INTENSITY_SLOT = "intensity_slot"


def _identity(value: float) -> float:
    return value


@dataclass(frozen=True)
class UnitPolicy:
    to_device: Callable[[float], float]
    from_device: Callable[[float], float]


LINEAR = UnitPolicy(to_device=_identity, from_device=_identity)
DECIBEL = UnitPolicy(to_device=db_to_linear, from_device=linear_to_db)

FILTER_UNITS = {
    DISTANCE: LINEAR,
    INTENSITY: DECIBEL,
    ISOLATED_PIXEL: LINEAR,
    AMBIGUITY: LINEAR,
    REMISSION: LINEAR,
    EDGE_CORRECTION: LINEAR,
}


class FilterConfigModel:
    def __init__(self, access: ConfigAccess, iso_pixel_target: IsoPixTarget = IsoPixTarget.OWN_FILTER):
        self._access = access
        self.iso_pixel_target = IsoPixTarget(iso_pixel_target)

    def snapshot(self):
        return self._access.read()

    # ---- frame period ----

    def get_frame_period_ms(self) -> float:
        return self._access.read().frame_period_us / 1000

    def set_frame_period_ms(self, period_ms: float) -> None:
        validate_value(period_ms, "frame period")
        period_us = int(round(period_ms * 1000))
        validate_frame_period(period_us)
        self._access.modify(lambda cfg: cfg.with_frame_period(period_us))
        LOG.info("[FILTERS] frame period set to %s us", period_us)

    # ---- generic filter access ----

    def is_enabled(self, field: str) -> bool:
        return self._access.read().filter(field).enabled

    def set_enabled(self, field: str, enabled: bool) -> None:
        self._access.modify(lambda cfg: cfg.with_filter(field, cfg.filter(field).with_enabled(enabled)))
        LOG.info("[FILTERS] %s enabled=%s", field, bool(enabled))

    def get_range(self, field: str) -> tuple[float, float]:
        setting = _expect(self._access.read().filter(field), RangeFilter, field)
        units = FILTER_UNITS[field]
        return units.from_device(setting.min), units.from_device(setting.max)

    def set_range(self, field: str, minimum: float, maximum: float) -> None:
        validate_range(minimum, maximum)
        units = FILTER_UNITS[field]
        low, high = units.to_device(minimum), units.to_device(maximum)

        def change(cfg):
            setting = _expect(cfg.filter(field), RangeFilter, field)
            return cfg.with_filter(field, setting.with_range(low, high))

        self._access.modify(change)
        LOG.info("[FILTERS] %s range set to (%s, %s)", field, minimum, maximum)

    def get_value(self, field: str) -> float:
        setting = _expect(self._access.read().filter(field), ScalarFilter, field)
        return FILTER_UNITS[field].from_device(setting.value)

    def set_value(self, field: str, value: float) -> None:
        validate_value(value, field)
        device_value = FILTER_UNITS[field].to_device(value)

        def change(cfg):
            setting = _expect(cfg.filter(field), ScalarFilter, field)
            return cfg.with_filter(field, setting.with_value(device_value))

        self._access.modify(change)
        LOG.info("[FILTERS] %s value set to %s", field, value)

    # ---- isolated pixel ----

    def set_isolated_pixel_value(self, value: float) -> None:
        validate_value(value, ISOLATED_PIXEL)
        if self.iso_pixel_target is IsoPixTarget.OWN_FILTER:
            self.set_value(ISOLATED_PIXEL, value)
            return

        def change(cfg):
            intensity = _expect(cfg.filter(INTENSITY), RangeFilter, INTENSITY)
            return cfg.with_filter(INTENSITY, intensity.with_lower_bound(float(value)))

        self._access.modify(change)
        LOG.info("[FILTERS] isolated pixel value %s written to intensity slot", value)

    # ---- edge correction ----

    def get_edge_correction(self) -> bool:
        enabled, _, _ = _expect(
            self._access.read().filter(EDGE_CORRECTION), ToggleFilter, EDGE_CORRECTION
        ).read()
        return enabled


def _expect(setting, kind, field):
    if not isinstance(setting, kind):
        raise TypeError(f"{field} is a {type(setting).__name__}, not a {kind.__name__}")
    return setting
