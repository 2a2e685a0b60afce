from __future__ import annotations

from typing import Dict

from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication

# accent per element, used for roster cells and slot borders
ELEMENT_COLORS: Dict[str, str] = {
    "fire": "#e0603a",
    "water": "#3a8ee0",
    "storm": "#c9b13a",
    "earth": "#5fae4a",
    "light": "#e8e2b0",
    "dark": "#9a6ad8",
}
ACCENT = "#c8a24a"


def element_color(element: str) -> QColor:
    return QColor(ELEMENT_COLORS.get((element or "").lower(), "#8a8f98"))


def apply_dark_palette(app: QApplication) -> None:
    """Dark Fusion palette with the gold accent of the roster screen."""
    app.setStyle("Fusion")

    p = QPalette()
    p.setColor(QPalette.Window, QColor("#17191d"))
    p.setColor(QPalette.WindowText, QColor("#e3e1da"))
    p.setColor(QPalette.Base, QColor("#202329"))
    p.setColor(QPalette.AlternateBase, QColor("#1c1f24"))
    p.setColor(QPalette.ToolTipBase, QColor("#23262c"))
    p.setColor(QPalette.ToolTipText, QColor("#f0ede4"))
    p.setColor(QPalette.Text, QColor("#e3e1da"))
    p.setColor(QPalette.Button, QColor("#262930"))
    p.setColor(QPalette.ButtonText, QColor("#e3e1da"))
    p.setColor(QPalette.Highlight, QColor(ACCENT))
    p.setColor(QPalette.HighlightedText, QColor("#111111"))
    p.setColor(QPalette.Disabled, QPalette.Text, QColor("#5d6068"))
    p.setColor(QPalette.Disabled, QPalette.ButtonText, QColor("#5d6068"))
    app.setPalette(p)

    app.setStyleSheet(
        f"""
        QPushButton {{ background-color: #262930; border: 1px solid #343842; border-radius: 6px; padding: 5px 14px; }}
        QPushButton:hover {{ background-color: #30343c; }}
        QPushButton[primary="true"] {{ background-color: #5a4a1f; border-color: {ACCENT}; color: #fff6dc; font-weight: bold; }}
        QLineEdit, QComboBox {{ background-color: #202329; border: 1px solid #343842; border-radius: 5px; padding: 4px 8px; }}
        QGroupBox {{ border: 1px solid #2c3038; border-radius: 6px; margin-top: 8px; padding-top: 16px; }}
        QGroupBox::title {{ subcontrol-origin: margin; left: 10px; padding: 0 6px; color: {ACCENT}; }}
        QTabBar::tab {{ background-color: #1c1f24; color: #7d828c; padding: 8px 18px; border-top: 2px solid transparent; }}
        QTabBar::tab:selected {{ color: #f0ede4; border-top: 2px solid {ACCENT}; font-weight: bold; }}
        QTableWidget {{ gridline-color: #2c3038; selection-background-color: #4a3f22; }}
        QHeaderView::section {{ background-color: #17191d; color: #a7abb3; border: none; border-bottom: 1px solid #2c3038; padding: 5px 8px; }}
        QStatusBar {{ color: #a7abb3; }}
        """
    )
