"""
main.py

Scene Editor - Main Application

PyQt6 application hosting the scene-graph editor:
- Click to select, drag to move
- Corner/edge handles to scale (shift: proportional, alt: from center)
- Top handle to rotate
- Shift-click and rubber-band drag to build multi-selections

Usage:
    python main.py

Dependencies:
    pip install PyQt6 platformdirs tomli-w
"""

from __future__ import annotations

import sys
from typing import Optional

from PyQt6.QtWidgets import QApplication, QMainWindow

from canvas import EditorScene, EditorView, ShapeItem
from debug_trace import close_log, configure, trace, trace_exception
from models import EventInfo, SceneEvents, format_geometry
from settings import SettingsManager, get_settings


DEMO_SHAPES = [
    {"shape": "rect", "left": 180, "top": 160, "width": 160, "height": 100},
    {"shape": "ellipse", "left": 420, "top": 220, "width": 140, "height": 140},
    {"shape": "rect", "left": 640, "top": 180, "width": 120, "height": 180, "angle": 20},
    {"shape": "rect", "left": 320, "top": 420, "width": 220, "height": 80, "fill_color": "#E67E22"},
]


class MainWindow(QMainWindow):
    """Main application window for the scene editor.

    Args:
        settings_manager: The SettingsManager instance for application settings.
    """

    def __init__(self, settings_manager: SettingsManager):
        super().__init__()
        self.settings_manager = settings_manager
        self.setWindowTitle("Scene Editor")

        self.scene = EditorScene()
        self.view = EditorView(self.scene, self)
        self.setCentralWidget(self.view)

        for options in DEMO_SHAPES:
            self.scene.add(ShapeItem.from_options(options))

        self.scene.on(SceneEvents.OBJECT_MODIFIED, self._on_object_modified)
        self.scene.on(SceneEvents.OBJECT_SELECTED, self._on_selection_changed)
        self.scene.on(SceneEvents.SELECTION_CREATED, self._on_selection_changed)
        self.scene.on(SceneEvents.SELECTION_CLEARED, self._on_selection_changed)

        self.statusBar().showMessage(
            "Drag to move, handles to scale/rotate, shift-click or drag a rectangle to multi-select."
        )

    def _on_object_modified(self, info: EventInfo):
        self.statusBar().showMessage(f"Modified: {format_geometry(info.target)}")

    def _on_selection_changed(self, info: EventInfo):
        group = self.scene.get_active_group()
        active: Optional[object] = self.scene.get_active_object()
        if group is not None:
            self.statusBar().showMessage(f"Selected group of {group.size()}")
        elif active is not None:
            self.statusBar().showMessage(f"Selected {active!r}")
        else:
            self.statusBar().showMessage("Selection cleared")


def main():
    """Application entry point."""
    app = QApplication(sys.argv)

    # Load settings (use singleton to ensure single instance)
    settings_manager = get_settings()
    debug = settings_manager.settings.debug
    configure(debug.trace, debug.trace_paint, debug.log_file, debug.categories)
    trace("Application starting", "MAIN")

    # Ensure settings file has all sections
    settings_manager.ensure_file_complete()

    def on_quit():
        trace("Application quitting", "MAIN")
        close_log()

    app.aboutToQuit.connect(on_quit)

    trace("Creating MainWindow", "MAIN")
    w = MainWindow(settings_manager)
    w.resize(1000, 700)
    w.show()
    trace("Entering event loop", "MAIN")
    sys.exit(app.exec())


if __name__ == "__main__":
    # Set up global exception handler to catch crashes
    def excepthook(exc_type, exc_value, exc_tb):
        import traceback
        trace("UNCAUGHT EXCEPTION:", "CRASH")
        trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "CRASH")
        close_log()
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise
