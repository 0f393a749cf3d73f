"""Test doubles shared by the capture core tests."""
import time

import numpy as np

from splitviewer.services.camera_device import CameraModel, DepthFrame
from splitviewer.services.capture_config import Binning, Roi
from splitviewer.services.simulated_camera import VISIONARY_T_MINI, SimulatedCamera

STARTUP_ROI = Roi(enabled=True, x=100, y=100, width=320, height=320)
STARTUP_BINNING = Binning.uniform(4)


class ManualCamera(SimulatedCamera):
    """Simulated camera without the acquisition thread; frames are emitted by hand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.start_calls = 0
        self.stop_calls = 0
        self.set_config_calls = 0
        self.acquiring = False

    def start(self):
        self.start_calls += 1
        self.acquiring = True

    def stop(self):
        self.stop_calls += 1
        self.acquiring = False

    def set_config(self, config):
        self.set_config_calls += 1
        return super().set_config(config)


class RejectingCamera(ManualCamera):
    def set_config(self, config):
        self.set_config_calls += 1
        return False


class UnreachableCamera(ManualCamera):
    def get_config(self):
        raise OSError("device not responding")


class RecordingSink:
    def __init__(self, name, log, fail_on=None):
        self.name = name
        self.log = log
        self.fail_on = fail_on
        self.frames = []

    def _record(self, step):
        if self.fail_on == step:
            raise RuntimeError(f"{self.name} cannot {step}")
        self.log.append((self.name, step))

    def clear(self):
        self._record("clear")

    def add_depthmap(self, frame, model, options, plane_names):
        self._record("add_depthmap")
        self.frames.append((frame, model, tuple(plane_names)))

    def present(self):
        self._record("present")


def make_frame(roi=STARTUP_ROI, binning=STARTUP_BINNING, fill=1000.0):
    model = CameraModel.derive(VISIONARY_T_MINI, roi, binning)
    shape = (model.height, model.width)
    return DepthFrame(
        timestamp=time.time(),
        planes={
            "Depth": np.full(shape, fill, dtype=np.float32),
            "Intensity": np.full(shape, 0.25, dtype=np.float32),
        },
        roi=roi,
        binning=binning,
    )


def wait_until(predicate, timeout=2.0, interval=0.01):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
