"""Qt presentation sinks for depth frames."""
import threading

import numpy as np
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QImage, QPixmap
from PyQt6.QtWidgets import QLabel

from splitviewer.ui.rendering import render_planes, render_point_cloud
from splitviewer.ui.widget_utils import configure_depth_view


def bgr_to_qimage(bgr: np.ndarray) -> QImage:
    bgr = np.ascontiguousarray(bgr)
    height, width = bgr.shape[:2]
    return QImage(
        bgr.data,
        width,
        height,
        int(bgr.strides[0]),
        QImage.Format.Format_BGR888,
    ).copy()


class DepthmapView(QLabel):
    """Sink rendering the requested planes side by side.

    ``clear``/``add_depthmap``/``present`` run on the router thread; the
    finished QImage crosses to the GUI thread through ``frameRendered``.
    """

    frameRendered = pyqtSignal(QImage)

    def __init__(self, title="2D", object_name="view_2d", parent=None):
        super().__init__(parent)
        configure_depth_view(self, f"{title}: waiting for frames", object_name=object_name)
        self.title = title
        self._lock = threading.Lock()
        self._tiles = []
        self.frames_presented = 0
        self.last_image = None
        self.frameRendered.connect(self._show_image)

    def clear(self):
        with self._lock:
            self._tiles = []

    def add_depthmap(self, frame, model, options, plane_names):
        tile = self._render(frame, model, options, plane_names)
        with self._lock:
            self._tiles.append(tile)

    def _render(self, frame, model, options, plane_names):
        return render_planes(frame, plane_names)

    def present(self):
        with self._lock:
            tiles, self._tiles = self._tiles, []
        if not tiles:
            return
        canvas = tiles[0] if len(tiles) == 1 else np.vstack(tiles)
        self.frameRendered.emit(bgr_to_qimage(canvas))

    def _show_image(self, image: QImage):
        self.last_image = image
        self.frames_presented += 1
        pixmap = QPixmap.fromImage(image)
        self.setPixmap(
            pixmap.scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.FastTransformation,
            )
        )


class PointCloudView(DepthmapView):
    """Sink projecting the frame through the camera model as a rotated point cloud."""

    def __init__(self, title="3D", object_name="view_3d", yaw_deg=25.0, parent=None):
        super().__init__(title=title, object_name=object_name, parent=parent)
        self.yaw_deg = yaw_deg

    def _render(self, frame, model, options, plane_names):
        yaw = self.yaw_deg
        if isinstance(options, dict):
            yaw = options.get("yaw_deg", yaw)
        return render_point_cloud(frame, model, plane_names, yaw_deg=yaw)
