from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QLabel

from splitviewer.ui.theme import Styles


def _display_only(label: QLabel) -> QLabel:
    label.setTextInteractionFlags(Qt.TextInteractionFlag.NoTextInteraction)
    label.setFocusPolicy(Qt.FocusPolicy.NoFocus)
    return label


def configure_depth_view(
    label: QLabel,
    text: str = "",
    min_size: tuple[int, int] = (320, 240),
    object_name: str = "depth_view",
) -> QLabel:
    """Style an image label that shows rendered frames scaled to fit."""
    label.setText(text)
    label.setObjectName(object_name)
    label.setAlignment(Qt.AlignmentFlag.AlignCenter)
    label.setMinimumSize(*min_size)
    label.setStyleSheet(Styles.depth_view(object_name))
    return _display_only(label)


def make_status_label(text: str = "", warning: bool = False) -> QLabel:
    label = QLabel(text)
    label.setStyleSheet(Styles.status_label(warning))
    return _display_only(label)
