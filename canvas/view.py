"""
canvas/view.py

QWidget host for an EditorScene: translates Qt mouse events into pointer
events, supplies the surface offset, maps symbolic cursors to Qt cursors
and paints objects, selection borders, handles and the marquee.
"""

from __future__ import annotations

from typing import Dict, Optional

from PyQt6.QtCore import QEvent, QPoint, QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QCursor, QPainter, QPen, QPolygonF
from PyQt6.QtWidgets import QWidget

from canvas.geometry import Point
from canvas.items import GroupItem, ShapeItem, TransformableItem
from canvas.scene import EditorScene
from debug_trace import trace
from models import Corner, Cursor, Offset, PointerEvent
from settings import get_settings
from utils import hex_to_qcolor


CURSOR_SHAPES: Dict[str, Qt.CursorShape] = {
    Cursor.DEFAULT: Qt.CursorShape.ArrowCursor,
    Cursor.MOVE: Qt.CursorShape.SizeAllCursor,
    Cursor.ROTATE: Qt.CursorShape.CrossCursor,
    Cursor.W_RESIZE: Qt.CursorShape.SizeHorCursor,
    Cursor.E_RESIZE: Qt.CursorShape.SizeHorCursor,
    Cursor.N_RESIZE: Qt.CursorShape.SizeVerCursor,
    Cursor.S_RESIZE: Qt.CursorShape.SizeVerCursor,
    Cursor.NW_RESIZE: Qt.CursorShape.SizeFDiagCursor,
    Cursor.SE_RESIZE: Qt.CursorShape.SizeFDiagCursor,
    Cursor.NE_RESIZE: Qt.CursorShape.SizeBDiagCursor,
    Cursor.SW_RESIZE: Qt.CursorShape.SizeBDiagCursor,
}


def _qpoint(p: Point) -> QPointF:
    return QPointF(p.x, p.y)


class EditorView(QWidget):
    """
    Widget that drives an EditorScene.

    Host coordinates are the top-level window's coordinates, so the scene
    sees the widget's position inside the window as its surface offset.
    """

    def __init__(self, scene: EditorScene, parent=None):
        super().__init__(parent)
        self.scene = scene
        self.setMouseTracking(True)  # hover cursor updates
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        scene.set_render_callback(self.update)
        scene.set_render_top_callback(self.update)
        scene.set_cursor_callback(self.apply_cursor)
        scene.set_offset_provider(self.surface_offset)

    # ---- host interfaces ----

    def surface_offset(self) -> Offset:
        """Translation from window coordinates to this widget's coordinates."""
        origin = self.mapTo(self.window(), QPoint(0, 0))
        return Offset(float(origin.x()), float(origin.y()))

    def apply_cursor(self, name: str) -> None:
        shape = CURSOR_SHAPES.get(name, Qt.CursorShape.ArrowCursor)
        self.setCursor(QCursor(shape))

    def _pointer_event(self, event, primary: bool) -> PointerEvent:
        pos = event.scenePosition()
        mods = event.modifiers()
        return PointerEvent(
            x=pos.x(),
            y=pos.y(),
            primary=primary,
            shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
            alt=bool(mods & Qt.KeyboardModifier.AltModifier),
        )

    # ---- Qt events ----

    def mousePressEvent(self, event):
        primary = event.button() == Qt.MouseButton.LeftButton
        self.scene.on_pointer_down(self._pointer_event(event, primary))
        event.accept()

    def mouseMoveEvent(self, event):
        primary = bool(event.buttons() & Qt.MouseButton.LeftButton)
        self.scene.on_pointer_move(self._pointer_event(event, primary))
        event.accept()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            event.ignore()
            return
        self.scene.on_pointer_up(self._pointer_event(event, True))
        event.accept()

    def changeEvent(self, event):
        # window lost activation: end any open gesture
        if event.type() == QEvent.Type.ActivationChange and not self.isActiveWindow():
            self.scene.pointer_lost()
        super().changeEvent(event)

    def resizeEvent(self, event):
        self.scene.calc_offset()
        super().resizeEvent(event)

    def moveEvent(self, event):
        self.scene.calc_offset()
        super().moveEvent(event)

    # ---- painting ----

    def paintEvent(self, event):
        trace("EditorView.paintEvent", "PAINT")
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QColor("#FFFFFF"))

        scene = self.scene
        group = scene.get_active_group()
        for obj in scene.objects_to_render():
            owner = group if group is not None and group.contains(obj) else None
            self._paint_object(painter, obj, owner)
            if owner is not None:
                self._paint_border(painter, obj, owner, dashed=True)
            elif obj._should_paint_handles():
                self._paint_border(painter, obj, None)
                self._paint_handles(painter, obj)

        if group is not None:
            self._paint_border(painter, group, None)
            self._paint_handles(painter, group)

        self._paint_marquee(painter)
        painter.end()

    def _paint_object(self, painter: QPainter, obj: TransformableItem, owner: Optional[GroupItem]):
        painter.save()
        if owner is not None:
            painter.translate(owner.left, owner.top)
            painter.rotate(owner.angle)
            painter.scale(owner.scale_x, owner.scale_y)
        center = obj.get_center_point()
        painter.translate(center.x, center.y)
        painter.rotate(obj.angle)
        painter.scale(obj.scale_x, obj.scale_y)

        pen = QPen(QColor("#333333"))
        pen.setCosmetic(True)
        pen.setWidthF(max(obj.stroke_width, 1.0))
        painter.setPen(pen)
        painter.setBrush(QBrush(hex_to_qcolor(obj.fill_color, QColor(0, 0, 0, 0))))
        r = QRectF(-obj.width / 2, -obj.height / 2, obj.width, obj.height)
        if isinstance(obj, ShapeItem) and obj.shape == "ellipse":
            painter.drawEllipse(r)
        else:
            painter.drawRect(r)
        painter.restore()

    def _scene_corners(self, obj: TransformableItem, owner: Optional[GroupItem]):
        corners = obj.corners()
        if owner is not None:
            corners = tuple(owner.to_scene_point(c) for c in corners)
        return corners

    def _paint_border(self, painter: QPainter, obj: TransformableItem,
                      owner: Optional[GroupItem], dashed: bool = False):
        pen = QPen(hex_to_qcolor(obj.border_color, QColor("#0078D7")))
        pen.setWidthF(1.0)
        if dashed:
            pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPolygon(QPolygonF([_qpoint(c) for c in self._scene_corners(obj, owner)]))

    def _paint_handles(self, painter: QPainter, obj: TransformableItem):
        if not obj.has_controls:
            return
        handles = get_settings().settings.canvas.handles
        painter.setPen(QPen(hex_to_qcolor(handles.border_color, QColor("#0078D7")), 1.0))
        painter.setBrush(QBrush(hex_to_qcolor(handles.fill_color, QColor("#FFFFFF"))))
        coords = obj.o_coords
        half = obj.corner_size / 2
        if obj.has_rotating_point:
            painter.drawLine(_qpoint(coords[Corner.MT]), _qpoint(coords[Corner.MTR]))
        for corner_id in Corner.ALL:
            if corner_id == Corner.MTR and not obj.has_rotating_point:
                continue
            c = coords[corner_id]
            painter.drawRect(QRectF(c.x - half, c.y - half, obj.corner_size, obj.corner_size))

    def _paint_marquee(self, painter: QPainter):
        selector = self.scene.group_selector
        if selector is None:
            return
        sel = get_settings().settings.canvas.selection
        p1, p2 = selector.rect()
        pen = QPen(hex_to_qcolor(sel.border_color, QColor("#0078D7")))
        pen.setWidthF(sel.line_width)
        painter.setPen(pen)
        painter.setBrush(QBrush(hex_to_qcolor(sel.fill_color, QColor(0, 120, 215, 51))))
        painter.drawRect(QRectF(p1.x, p1.y, p2.x - p1.x, p2.y - p1.y))
