"""Depth camera device contract, geometric model, and frame types."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping, Protocol

import numpy as np

if TYPE_CHECKING:
    from splitviewer.services.capture_config import Binning, CaptureConfig, Roi

NEW_IMAGE_EVENT = "OnNewImage"
PLANE_NAMES = ("Depth", "Intensity")


class SplitViewerError(RuntimeError):
    """Base class for capture core failures."""


class DeviceUnavailable(SplitViewerError):
    """Raised when the device handle is missing or a get/set call fails."""


class ConfigurationRejected(SplitViewerError):
    """Raised when the device refuses a pushed configuration snapshot."""


class InvalidParameter(SplitViewerError, ValueError):
    """Raised when a caller-supplied ROI, binning, or range violates its invariants."""


@dataclass(frozen=True, slots=True)
class SensorIntrinsics:
    """Full-resolution pinhole calibration of the imager."""

    width: int
    height: int
    fx: float
    fy: float
    cx: float
    cy: float


@dataclass(frozen=True, slots=True)
class CameraModel:
    """Pinhole projection valid for exactly one ROI/binning geometry.

    Attributes:
        width, height: Logical image size after ROI and binning.
        fx, fy, cx, cy: Intrinsics expressed in logical pixels.
        roi, binning: Geometry the model was derived from.
    """

    width: int
    height: int
    fx: float
    fy: float
    cx: float
    cy: float
    roi: Roi
    binning: Binning

    @classmethod
    def derive(cls, sensor: SensorIntrinsics, roi: Roi, binning: Binning) -> "CameraModel":
        if roi.enabled:
            x0, y0, width, height = roi.x, roi.y, roi.width, roi.height
        else:
            x0, y0, width, height = 0, 0, sensor.width, sensor.height
        return cls(
            width=width // binning.x,
            height=height // binning.y,
            fx=sensor.fx / binning.x,
            fy=sensor.fy / binning.y,
            cx=(sensor.cx - x0) / binning.x,
            cy=(sensor.cy - y0) / binning.y,
            roi=roi,
            binning=binning,
        )

    def matches(self, frame: "DepthFrame") -> bool:
        """Return True when frame was captured under this model's geometry."""
        return frame.roi == self.roi and frame.binning == self.binning

    def pixel_to_ray(self, u: float, v: float) -> np.ndarray:
        """Unit-z ray through pixel (u, v)."""
        return np.array([(u - self.cx) / self.fx, (v - self.cy) / self.fy, 1.0])

    def to_points(self, depth: np.ndarray) -> np.ndarray:
        """Project a depth plane (z per pixel) to an (N, 3) array of valid points."""
        depth = np.asarray(depth, dtype=np.float32)
        if depth.shape != (self.height, self.width):
            raise ValueError(
                f"depth shape {depth.shape} does not match model {(self.height, self.width)}"
            )
        v, u = np.indices(depth.shape, dtype=np.float32)
        valid = depth > 0
        z = depth[valid]
        x = (u[valid] - self.cx) / self.fx * z
        y = (v[valid] - self.cy) / self.fy * z
        return np.stack((x, y, z), axis=1)


@dataclass(frozen=True)
class DepthFrame:
    timestamp: float
    planes: Mapping[str, np.ndarray]
    roi: Roi
    binning: Binning

    def plane(self, name: str) -> np.ndarray:
        try:
            return self.planes[name]
        except KeyError:
            raise KeyError(f"frame has no plane {name!r} (available: {sorted(self.planes)})") from None


FrameHandler = Callable[[DepthFrame], None]


class DeviceProvider(Protocol):
    """Opaque depth camera consumed by the capture core."""

    def start(self) -> None:
        """Start acquisition."""

    def stop(self) -> None:
        """Stop acquisition; safe to call when already stopped."""

    def get_config(self) -> CaptureConfig:
        """Return the current capture configuration snapshot."""

    def set_config(self, config: CaptureConfig) -> bool:
        """Apply a full snapshot; False when the device refuses it."""

    def get_initial_camera_model(self) -> CameraModel:
        """Return the camera model for the currently applied geometry."""

    def register(self, event: str, handler: FrameHandler) -> None:
        """Subscribe handler to a device event."""

    def deregister(self, event: str, handler: FrameHandler) -> None:
        """Remove a previously registered handler."""
