class Colors:
    """Palette for the split viewer; views stay dark so colormapped depth reads well."""

    VIEW_BG = "#111315"
    VIEW_BORDER = "#2c3238"
    PANEL_BG = "#1c1f22"
    FG_LIGHT = "#c8c9c4"
    FG_MUTED = "#80858a"
    WARN_FG = "#d9a441"


class Styles:
    """Reusable stylesheet templates."""

    @staticmethod
    def window():
        return f"""
            QWidget {{
                background-color: {Colors.PANEL_BG};
                color: {Colors.FG_LIGHT};
            }}
        """

    @staticmethod
    def depth_view(object_name):
        return f"""
            QLabel#{object_name} {{
                border: 1px solid {Colors.VIEW_BORDER};
                background-color: {Colors.VIEW_BG};
                color: {Colors.FG_MUTED};
                padding: 4px;
            }}
        """

    @staticmethod
    def status_label(warning=False):
        color = Colors.WARN_FG if warning else Colors.FG_LIGHT
        return f"""
            QLabel {{
                color: {color};
                background-color: transparent;
                padding: 2px 4px;
                font-family: monospace;
                font-size: 12px;
            }}
        """
