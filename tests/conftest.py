"""Shared fixtures: isolated settings, a fresh scene, and pointer helpers."""
from __future__ import annotations

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import settings as settings_module
from canvas.items import ShapeItem
from canvas.scene import EditorScene
from models import Origin, PointerEvent


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Every test gets default settings backed by a throwaway directory."""
    manager = settings_module.SettingsManager(settings_dir=tmp_path / "config")
    settings_module.set_settings(manager)
    yield manager
    settings_module.set_settings(None)


@pytest.fixture()
def scene():
    return EditorScene()


@pytest.fixture()
def events(scene):
    """Record (event_name, target) for every scene notification."""
    log = []
    names = [
        "mouse:down", "mouse:move", "mouse:up",
        "object:moving", "object:scaling", "object:rotating", "object:modified",
        "object:selected", "selection:created", "selection:cleared",
    ]
    for name in names:
        scene.on(name, lambda info, name=name: log.append((name, info.target)))
    return log


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def rect_at(x, y, w, h, **kwargs) -> ShapeItem:
    """Rectangle whose left/top is its top-left corner (spans x..x+w, y..y+h)."""
    return ShapeItem(x, y, w, h, origin_x=Origin.LEFT, origin_y=Origin.TOP, **kwargs)


def press(scene, x, y, **mods):
    scene.on_pointer_down(PointerEvent(x, y, **mods))


def move(scene, x, y, **mods):
    scene.on_pointer_move(PointerEvent(x, y, **mods))


def release(scene, x, y, **mods):
    scene.on_pointer_up(PointerEvent(x, y, **mods))


def click(scene, x, y, **mods):
    press(scene, x, y, **mods)
    release(scene, x, y, **mods)


def drag(scene, start, end, steps=4, **mods):
    """Press at ``start``, move in ``steps`` increments to ``end``, release."""
    (x0, y0), (x1, y1) = start, end
    press(scene, x0, y0, **mods)
    for i in range(1, steps + 1):
        t = i / steps
        move(scene, x0 + (x1 - x0) * t, y0 + (y1 - y0) * t, **mods)
    release(scene, x1, y1, **mods)
