from PyQt6.QtWidgets import QHBoxLayout, QVBoxLayout, QWidget

from splitviewer.ui.depth_view import DepthmapView, PointCloudView
from splitviewer.ui.theme import Styles
from splitviewer.ui.widget_utils import make_status_label


class SplitViewerWindow(QWidget):
    """2D plane view on the left, rotated point cloud on the right."""

    def __init__(self):
        super().__init__()

        self.setWindowTitle("Depth Split Viewer")
        self.setGeometry(200, 200, 1100, 480)
        self.setStyleSheet(Styles.window())

        self.view_2d = DepthmapView(title="2D", object_name="view_2d")
        self.view_3d = PointCloudView(title="3D", object_name="view_3d")
        self.status_label = make_status_label("Idle")
        self.metrics_label = make_status_label("")

        views = QHBoxLayout()
        views.addWidget(self.view_2d, stretch=2)
        views.addWidget(self.view_3d, stretch=1)

        root_layout = QVBoxLayout()
        root_layout.addLayout(views)
        root_layout.addWidget(self.status_label)
        root_layout.addWidget(self.metrics_label)
        self.setLayout(root_layout)

    @property
    def sinks(self):
        return [self.view_2d, self.view_3d]

    def show_status(self, text, warning=False):
        self.status_label.setText(text)
        self.status_label.setStyleSheet(Styles.status_label(warning))

    def on_metrics_update(self, payload):
        self.metrics_label.setText(
            f"Dispatch FPS: {payload.get('dispatch_fps', 0.0):.2f} | "
            f"Delivered: {payload.get('delivered', 0)} | "
            f"Dropped: {payload.get('dropped', 0)} | "
            f"Stale: {payload.get('stale', 0)} | "
            f"Sink failures: {payload.get('sink_failures', 0)}"
        )
