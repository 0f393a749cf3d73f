"""Startup settings for the split viewer.

Design:
- Defaults mirror the fixed startup parameters of the viewer app.
- Environment variables override individual fields; nothing is persisted.
- Geometry invariants are enforced by the capture layer, not here.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_BINNING = 4
DEFAULT_ROI = (100, 100, 320, 320)
DEFAULT_FRAME_PERIOD_US = 33333
DEFAULT_NAMESPACE = "Visionary_T_Mini_AP_SplitViewer"
DEFAULT_ISOPIX_TARGET = "own"
ISOPIX_TARGETS = ("own", "intensity_slot")


@dataclass(frozen=True)
class StartupSettings:
    binning: int = DEFAULT_BINNING
    roi: tuple[int, int, int, int] = DEFAULT_ROI
    frame_period_us: int = DEFAULT_FRAME_PERIOD_US
    namespace: str = DEFAULT_NAMESPACE
    iso_pixel_target: str = DEFAULT_ISOPIX_TARGET


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _parse_roi(raw: str) -> tuple[int, int, int, int]:
    parts = [p for p in raw.replace(" ", "").split(",") if p]
    if len(parts) != 4:
        raise ValueError(f"SPLITVIEWER_ROI must be 'x,y,width,height', got {raw!r}")
    x, y, width, height = (_parse_int("SPLITVIEWER_ROI", p) for p in parts)
    return x, y, width, height


def load_settings(environ: Mapping[str, str] | None = None) -> StartupSettings:
    """Build settings from defaults plus SPLITVIEWER_* environment overrides."""
    env = os.environ if environ is None else environ
    values = {}

    if env.get("SPLITVIEWER_BINNING", "").strip():
        values["binning"] = _parse_int("SPLITVIEWER_BINNING", env["SPLITVIEWER_BINNING"])
    if env.get("SPLITVIEWER_ROI", "").strip():
        values["roi"] = _parse_roi(env["SPLITVIEWER_ROI"])
    if env.get("SPLITVIEWER_FRAME_PERIOD_US", "").strip():
        values["frame_period_us"] = _parse_int(
            "SPLITVIEWER_FRAME_PERIOD_US", env["SPLITVIEWER_FRAME_PERIOD_US"]
        )
    namespace = env.get("SPLITVIEWER_NAMESPACE", "").strip()
    if namespace:
        values["namespace"] = namespace
    target = env.get("SPLITVIEWER_ISOPIX_TARGET", "").strip().lower()
    if target:
        if target not in ISOPIX_TARGETS:
            raise ValueError(
                f"SPLITVIEWER_ISOPIX_TARGET must be one of {ISOPIX_TARGETS}, got {target!r}"
            )
        values["iso_pixel_target"] = target

    return StartupSettings(**values)
