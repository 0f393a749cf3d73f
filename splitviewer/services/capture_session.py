"""Capture session controller: device lifetime, geometry, and camera model."""
from __future__ import annotations

import logging
import threading

from splitviewer.services.camera_device import (
    NEW_IMAGE_EVENT,
    CameraModel,
    ConfigurationRejected,
    DepthFrame,
    DeviceProvider,
    DeviceUnavailable,
    FrameHandler,
    SplitViewerError,
)
from splitviewer.services.capture_config import (
    Binning,
    Roi,
    validate_frame_period,
    validate_geometry,
)
from splitviewer.services.config_access import ConfigAccess
from splitviewer.services.session_state_machine import SessionState, SessionStateMachine


class CaptureSession:
    """Configure the device once, start acquisition, and forward frame events.

    The camera model is re-derived inside the config lock on every path that
    changes ROI or binning, and replaced as a single reference so readers see
    either the old or the new model.
    """

    def __init__(self, provider: DeviceProvider, access: ConfigAccess | None = None):
        self._provider = provider
        self._access = access or ConfigAccess(provider)
        self._state = SessionStateMachine()
        self._lifecycle_lock = threading.Lock()
        self._handlers_lock = threading.Lock()
        self._frame_handlers: list[FrameHandler] = []
        self._camera_model: CameraModel | None = None
        self._registered = False
        self._device_started = False

    @property
    def state(self) -> SessionState:
        return self._state.state

    @property
    def camera_model(self) -> CameraModel | None:
        return self._camera_model

    @property
    def roi(self) -> Roi:
        return self._access.read().roi

    @property
    def binning(self) -> Binning:
        return self._access.read().binning

    def add_frame_handler(self, handler: FrameHandler) -> None:
        with self._handlers_lock:
            self._frame_handlers.append(handler)

    def remove_frame_handler(self, handler: FrameHandler) -> None:
        with self._handlers_lock:
            if handler in self._frame_handlers:
                self._frame_handlers.remove(handler)

    def start(self, roi: Roi, binning: Binning, frame_period_us: int) -> CameraModel:
        """Configure and start a STOPPED session; returns the derived camera model.

        A running session raises ``InvalidTransition``: call ``stop()`` first.
        Runtime ROI or binning changes go through ``apply_geometry``.
        """
        validate_geometry(roi, binning)
        validate_frame_period(frame_period_us)

        with self._lifecycle_lock:
            self._state.request_start()
            logging.info(
                "[SESSION] configuring roi=%s binning=%s frame_period=%sus",
                roi,
                binning,
                frame_period_us,
            )
            try:
                with self._access.lock:
                    self._device_call("stop", self._provider.stop)
                    self._device_started = False
                    self._access.modify(
                        lambda cfg: cfg.with_frame_period(frame_period_us).with_geometry(roi, binning)
                    )
                    self._camera_model = self._derive_camera_model()
                self._device_call("start", self._provider.start)
                self._device_started = True
                self._device_call("register", self._provider.register, NEW_IMAGE_EVENT, self._on_new_image)
                self._registered = True
            except ConfigurationRejected:
                logging.critical("[SESSION] failed to configure capture device")
                self._state.mark_failed()
                raise
            except Exception:
                logging.error("[SESSION] start failed", exc_info=True)
                self._rollback()
                self._state.mark_failed()
                raise

            self._state.mark_running()
            logging.info("[SESSION] running model=%s", self._camera_model)
            return self._camera_model

    def apply_geometry(self, roi: Roi | None = None, binning: Binning | None = None) -> CameraModel:
        """Change ROI and/or binning and replace the camera model before releasing the lock."""
        with self._access.lock:
            current = self._access.read()
            new_roi = current.roi if roi is None else roi
            new_binning = current.binning if binning is None else binning
            validate_geometry(new_roi, new_binning)
            self._access.modify(lambda cfg: cfg.with_geometry(new_roi, new_binning))
            self._camera_model = self._derive_camera_model()
        logging.info("[SESSION] geometry applied roi=%s binning=%s", new_roi, new_binning)
        return self._camera_model

    def stop(self) -> None:
        with self._lifecycle_lock:
            if self._state.state is SessionState.STOPPED:
                return
            try:
                self._release_device()
            finally:
                self._state.mark_stopped()
            logging.info("[SESSION] stopped")

    def _release_device(self) -> None:
        if self._registered:
            self._registered = False
            self._device_call("deregister", self._provider.deregister, NEW_IMAGE_EVENT, self._on_new_image)
        if self._device_started:
            self._device_started = False
            self._device_call("stop", self._provider.stop)

    def _rollback(self) -> None:
        try:
            self._release_device()
        except SplitViewerError:
            logging.warning("[SESSION] rollback after failed start incomplete", exc_info=True)

    def _derive_camera_model(self) -> CameraModel:
        model = self._device_call("get_initial_camera_model", self._provider.get_initial_camera_model)
        if model is None:
            raise DeviceUnavailable("capture device returned no camera model")
        return model

    def _on_new_image(self, frame: DepthFrame) -> None:
        with self._handlers_lock:
            handlers = tuple(self._frame_handlers)
        for handler in handlers:
            try:
                handler(frame)
            except Exception:
                logging.exception("[SESSION] frame handler %r failed", handler)

    @staticmethod
    def _device_call(action: str, fn, *args):
        try:
            return fn(*args)
        except SplitViewerError:
            raise
        except Exception as exc:
            raise DeviceUnavailable(f"device {action} failed: {exc}") from exc
