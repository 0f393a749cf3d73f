"""Split viewer entry point."""
import logging
import sys

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication

from core.logging_setup import setup_logging
from core.settings import load_settings
from splitviewer.runtime import build_runtime, on_started
from splitviewer.services.camera_device import SplitViewerError
from splitviewer.ui.split_view import SplitViewerWindow

METRICS_INTERVAL_MS = 1000


def main(argv=None):
    setup_logging()
    settings = load_settings()

    app = QApplication(argv if argv is not None else sys.argv)
    window = SplitViewerWindow()
    runtime = build_runtime(settings, window.sinks)

    try:
        model = on_started(runtime, settings)
        window.show_status(
            f"Running {model.width}x{model.height} @ {settings.frame_period_us / 1000:.1f} ms"
        )
    except SplitViewerError as exc:
        logging.error("Capture startup failed: %s", exc)
        window.show_status(f"Capture failed: {exc}", warning=True)

    timer = QTimer(window)
    timer.timeout.connect(lambda: window.on_metrics_update(runtime.router.metrics()))
    timer.start(METRICS_INTERVAL_MS)

    window.show()
    try:
        return app.exec()
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    sys.exit(main())
