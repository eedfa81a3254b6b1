"""
canvas package

Scene-graph editing engine (geometry, objects, hit testing, selection and
gestures) plus the PyQt6 widget that hosts it.
"""

from canvas.geometry import Point
from canvas.items import GroupItem, ShapeItem, TransformableItem
from canvas.gestures import MarqueeSelector, TransformSession
from canvas.scene import EditorScene
from canvas.view import EditorView

__all__ = [
    "Point",
    "TransformableItem",
    "ShapeItem",
    "GroupItem",
    "TransformSession",
    "MarqueeSelector",
    "EditorScene",
    "EditorView",
]
