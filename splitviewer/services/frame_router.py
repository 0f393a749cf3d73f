"""Frame event router: capacity-1 event queue feeding presentation sinks."""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Iterable, Protocol, Sequence

from splitviewer.services.camera_device import PLANE_NAMES, CameraModel, DepthFrame
from splitviewer.services.frame_bus import FrameQueue, OverflowPolicy


class PresentationSink(Protocol):
    def clear(self) -> None:
        ...

    def add_depthmap(
        self,
        frame: DepthFrame,
        model: CameraModel,
        options: Any,
        plane_names: Sequence[str],
    ) -> None:
        ...

    def present(self) -> None:
        ...


class DispatchMetrics:
    """Rolling dispatch rate, refreshed about once a second."""

    def __init__(self):
        self.dispatch_fps = 0.0
        self.last_ts = time.time()
        self.frames = 0

    def on_frame(self):
        self.frames += 1
        now = time.time()
        delta = now - self.last_ts
        if delta >= 1.0:
            self.dispatch_fps = self.frames / delta
            self.frames = 0
            self.last_ts = now


class FrameRouter:
    def __init__(
        self,
        sinks: Iterable[PresentationSink],
        model_source: Callable[[], CameraModel | None],
        *,
        plane_names: Sequence[str] = PLANE_NAMES,
        options: Any = None,
        queue: FrameQueue[DepthFrame] | None = None,
    ):
        self._sinks = tuple(sinks)
        self._model_source = model_source
        self.plane_names = tuple(plane_names)
        self.options = options
        self._queue = queue if queue is not None else FrameQueue(maxlen=1, policy=OverflowPolicy.LAST_ONLY)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._metrics = DispatchMetrics()
        self._counter_lock = threading.Lock()
        self.delivered = 0
        self.stale_frames = 0
        self.sink_failures = 0

    @property
    def sinks(self) -> tuple[PresentationSink, ...]:
        return self._sinks

    def on_new_image(self, frame: DepthFrame) -> None:
        """Device notification entry point; never blocks the notifier."""
        self._queue.put(frame)

    def process_pending(self, timeout: float | None = 0.0) -> bool:
        """Dispatch at most one queued frame. Returns True when a frame reached the sinks."""
        frame = self._queue.get(timeout=timeout)
        if frame is None:
            return False
        return self.dispatch(frame)

    def dispatch(self, frame: DepthFrame) -> bool:
        model = self._model_source()
        if model is None or not model.matches(frame):
            with self._counter_lock:
                self.stale_frames += 1
            logging.warning(
                "[ROUTER] dropping frame captured under roi=%s binning=%s; no matching camera model",
                frame.roi,
                frame.binning,
            )
            return False

        plane_names = list(self.plane_names)
        for sink in self._sinks:
            try:
                sink.clear()
                sink.add_depthmap(frame, model, self.options, plane_names)
                sink.present()
            except Exception:
                with self._counter_lock:
                    self.sink_failures += 1
                logging.exception("[ROUTER] sink %s failed to render frame", type(sink).__name__)

        with self._counter_lock:
            self.delivered += 1
        self._metrics.on_frame()
        return True

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._dispatch_loop, name="frame-router", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        self._queue.clear()
        if self._thread:
            self._thread.join(timeout=timeout)
        self._thread = None

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _dispatch_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.process_pending(timeout=0.5)
            except Exception:
                logging.error("[ROUTER] dispatch crash", exc_info=True)

    def metrics(self) -> dict:
        with self._counter_lock:
            return {
                "dispatch_fps": self._metrics.dispatch_fps,
                "delivered": self.delivered,
                "dropped": self._queue.dropped_frames,
                "stale": self.stale_frames,
                "sink_failures": self.sink_failures,
                "queue_fill": (self._queue.size() / max(1, self._queue.maxlen)) * 100,
            }
