"""Qt sink widgets driven directly through the presentation protocol."""
import os
import subprocess
import sys
import unittest

from fakes import STARTUP_BINNING, STARTUP_ROI, make_frame

from splitviewer.services.camera_device import CameraModel
from splitviewer.services.simulated_camera import VISIONARY_T_MINI


def _module_importable(module: str) -> bool:
    """Return True when module can be imported in a subprocess."""
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    return result.returncode == 0


QT_AVAILABLE = _module_importable("PyQt6.QtWidgets") and _module_importable("cv2")


@unittest.skipUnless(QT_AVAILABLE, "PyQt6 or OpenCV unavailable in test environment")
class DepthViewTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        from PyQt6.QtWidgets import QApplication

        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        from splitviewer.ui.depth_view import DepthmapView, PointCloudView
        from splitviewer.ui.split_view import SplitViewerWindow

        self.DepthmapView = DepthmapView
        self.PointCloudView = PointCloudView
        self.SplitViewerWindow = SplitViewerWindow
        self.model = CameraModel.derive(VISIONARY_T_MINI, STARTUP_ROI, STARTUP_BINNING)

    def test_depthmap_view_presents_tiled_planes(self):
        view = self.DepthmapView()
        view.clear()
        view.add_depthmap(make_frame(), self.model, None, ("Depth", "Intensity"))
        view.present()
        self.assertEqual(view.frames_presented, 1)
        self.assertEqual((view.last_image.width(), view.last_image.height()), (160, 80))
        self.assertIsNotNone(view.pixmap())

    def test_present_without_depthmap_is_noop(self):
        view = self.DepthmapView()
        view.clear()
        view.present()
        self.assertEqual(view.frames_presented, 0)

    def test_clear_discards_pending_tiles(self):
        view = self.DepthmapView()
        view.add_depthmap(make_frame(), self.model, None, ("Depth",))
        view.clear()
        view.present()
        self.assertEqual(view.frames_presented, 0)

    def test_point_cloud_view_uses_model_geometry(self):
        view = self.PointCloudView()
        view.clear()
        view.add_depthmap(make_frame(), self.model, {"yaw_deg": 0.0}, ("Depth",))
        view.present()
        self.assertEqual((view.last_image.width(), view.last_image.height()), (80, 80))

    def test_window_exposes_both_sinks(self):
        window = self.SplitViewerWindow()
        self.assertEqual(window.sinks, [window.view_2d, window.view_3d])
        window.show_status("Capture failed", warning=True)
        self.assertEqual(window.status_label.text(), "Capture failed")
        window.on_metrics_update({"dispatch_fps": 29.5, "delivered": 10, "dropped": 2})
        self.assertIn("Dropped: 2", window.metrics_label.text())
