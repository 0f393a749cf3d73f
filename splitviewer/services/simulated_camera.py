"""Simulated time-of-flight camera implementing the device provider contract.

Renders a synthetic scene (a wall with a sphere swinging in front of it) at
the configured frame period and geometry, applying the distance and
intensity filters the way the device would. Used as the default provider
when no hardware is attached and throughout the tests.
"""
from __future__ import annotations

import logging
import math
import threading
import time

import numpy as np

from splitviewer.services.camera_device import (
    NEW_IMAGE_EVENT,
    CameraModel,
    DepthFrame,
    FrameHandler,
    InvalidParameter,
    SensorIntrinsics,
)
from splitviewer.services.capture_config import (
    Binning,
    CaptureConfig,
    RangeFilter,
    Roi,
    ScalarFilter,
    ToggleFilter,
    validate_frame_period,
    validate_geometry,
)

LOG = logging.getLogger(__name__)

VISIONARY_T_MINI = SensorIntrinsics(width=512, height=424, fx=365.0, fy=365.0, cx=255.5, cy=211.5)
WALL_DEPTH_MM = 2000.0
SPHERE_RADIUS_MM = 300.0
SPHERE_DEPTH_MM = 1200.0
SPHERE_SWING_MM = 250.0


def default_capture_config(sensor: SensorIntrinsics = VISIONARY_T_MINI) -> CaptureConfig:
    return CaptureConfig(
        frame_period_us=33333,
        roi=Roi(enabled=False, x=0, y=0, width=sensor.width, height=sensor.height),
        binning=Binning.uniform(1),
        distance_filter=RangeFilter(enabled=False, min=200.0, max=5000.0),
        intensity_filter=RangeFilter(enabled=False, min=0.001, max=1.0),
        isolated_pixel_filter=ScalarFilter(enabled=False, value=5.0),
        ambiguity_filter=ScalarFilter(enabled=False, value=0.5),
        remission_filter=RangeFilter(enabled=False, min=0.0, max=100.0),
        edge_correction=ToggleFilter(enabled=True),
    )


class SimulatedCamera:
    def __init__(self, sensor: SensorIntrinsics = VISIONARY_T_MINI, config: CaptureConfig | None = None, seed: int = 0):
        self.sensor = sensor
        self._config = config or default_capture_config(sensor)
        self._lock = threading.Lock()
        self._handlers: dict[str, list[FrameHandler]] = {NEW_IMAGE_EVENT: []}
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._rng = np.random.default_rng(seed)
        self._started_at = time.time()
        self.frames_emitted = 0

    # ---- configuration ----

    def get_config(self) -> CaptureConfig:
        with self._lock:
            return self._config

    def set_config(self, config: CaptureConfig) -> bool:
        reason = self.reject_reason(config)
        if reason:
            LOG.warning("[SIM_CAMERA] rejected config: %s", reason)
            return False
        with self._lock:
            self._config = config
        return True

    def reject_reason(self, config: CaptureConfig) -> str | None:
        try:
            validate_frame_period(config.frame_period_us)
            validate_geometry(config.roi, config.binning)
        except InvalidParameter as exc:
            return str(exc)
        roi = config.roi
        if roi.enabled and (roi.x + roi.width > self.sensor.width or roi.y + roi.height > self.sensor.height):
            return f"ROI {roi} exceeds sensor {self.sensor.width}x{self.sensor.height}"
        return None

    def get_initial_camera_model(self) -> CameraModel:
        config = self.get_config()
        return CameraModel.derive(self.sensor, config.roi, config.binning)

    # ---- events ----

    def register(self, event: str, handler: FrameHandler) -> None:
        with self._lock:
            if event not in self._handlers:
                raise ValueError(f"unknown event {event!r}")
            self._handlers[event].append(handler)

    def deregister(self, event: str, handler: FrameHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def handler_count(self, event: str = NEW_IMAGE_EVENT) -> int:
        with self._lock:
            return len(self._handlers.get(event, []))

    # ---- acquisition ----

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._acquisition_loop, name="sim-camera", daemon=True)
        self._thread.start()
        LOG.info("[SIM_CAMERA] acquisition started")

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=2)
        self._thread = None

    def is_acquiring(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _acquisition_loop(self) -> None:
        while not self._stop_event.wait(self.get_config().frame_period_us / 1_000_000):
            self.emit_frame()

    def emit_frame(self) -> DepthFrame:
        """Render one frame for the current config and notify OnNewImage handlers."""
        frame = self.render_frame(self.get_config())
        with self._lock:
            handlers = tuple(self._handlers[NEW_IMAGE_EVENT])
        for handler in handlers:
            try:
                handler(frame)
            except Exception:
                LOG.exception("[SIM_CAMERA] OnNewImage handler failed")
        self.frames_emitted += 1
        return frame

    def render_frame(self, config: CaptureConfig) -> DepthFrame:
        model = CameraModel.derive(self.sensor, config.roi, config.binning)
        v, u = np.indices((model.height, model.width), dtype=np.float32)
        dx = (u - model.cx) / model.fx
        dy = (v - model.cy) / model.fy

        phase = (time.time() - self._started_at) * 0.5
        center = np.array([SPHERE_SWING_MM * math.sin(phase), 0.0, SPHERE_DEPTH_MM], dtype=np.float32)
        a = dx * dx + dy * dy + 1.0
        b = -2.0 * (dx * center[0] + dy * center[1] + center[2])
        c = float(center @ center) - SPHERE_RADIUS_MM ** 2
        disc = b * b - 4.0 * a * c
        hit = disc >= 0
        t = np.where(hit, (-b - np.sqrt(np.maximum(disc, 0.0))) / (2.0 * a), np.inf)

        depth = np.minimum(np.full(dx.shape, WALL_DEPTH_MM, dtype=np.float32), t).astype(np.float32)
        depth += self._rng.normal(0.0, 2.0, size=depth.shape).astype(np.float32)
        intensity = np.clip((800.0 / depth) ** 2, 0.0, 1.0).astype(np.float32)

        invalid = np.zeros(depth.shape, dtype=bool)
        if config.distance_filter.enabled:
            invalid |= (depth < config.distance_filter.min) | (depth > config.distance_filter.max)
        if config.intensity_filter.enabled:
            invalid |= (intensity < config.intensity_filter.min) | (intensity > config.intensity_filter.max)
        depth[invalid] = 0.0

        return DepthFrame(
            timestamp=time.time(),
            planes={"Depth": depth, "Intensity": intensity},
            roi=config.roi,
            binning=config.binning,
        )
