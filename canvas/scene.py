"""
canvas/scene.py

Editor scene: owns the object arena, the selection slots and the single
gesture session, and talks to its host only through callbacks (render,
cursor, surface offset). No Qt types are used here.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from canvas.gestures import GestureMixin
from canvas.hit_test import HitTestMixin
from canvas.items import GroupItem, TransformableItem
from canvas.mixins import EventedMixin
from canvas.selection import SelectionMixin
from debug_trace import trace
from models import GeometryError, Offset, SceneEvents


class EditorScene(EventedMixin, SelectionMixin, HitTestMixin, GestureMixin):
    """
    Scene of transformable objects driven by pointer gestures.

    Objects live in an id-keyed arena; ``_order`` lists the ids of top-level
    objects bottom to top. Transient groups are registered in the arena
    while active but are never part of ``_order``.
    """

    def __init__(self):
        EventedMixin.__init__(self)
        self._nodes: Dict[int, TransformableItem] = {}
        self._order: List[int] = []
        self._offset = Offset()
        self._on_render: Optional[Callable[[], None]] = None
        self._on_render_top: Optional[Callable[[], None]] = None
        self._on_cursor: Optional[Callable[[str], None]] = None
        self._offset_provider: Optional[Callable[[], Offset]] = None
        self.cursor: Optional[str] = None
        self._init_selection()
        self._init_gestures()

    # ---- host wiring ----

    def set_render_callback(self, callback: Optional[Callable[[], None]]):
        """Set callback that redraws objects, borders and handles."""
        self._on_render = callback

    def set_render_top_callback(self, callback: Optional[Callable[[], None]]):
        """Set callback that redraws only the marquee overlay."""
        self._on_render_top = callback

    def set_cursor_callback(self, callback: Optional[Callable[[str], None]]):
        """Set callback receiving symbolic cursor names."""
        self._on_cursor = callback

    def set_offset_provider(self, provider: Optional[Callable[[], Offset]]):
        """Set provider of the host-to-canvas translation and refresh the cached offset."""
        self._offset_provider = provider
        self.calc_offset()

    def calc_offset(self) -> Offset:
        """Re-read the surface offset (call after layout changes)."""
        if self._offset_provider is not None:
            self._offset = self._offset_provider()
        return self._offset

    def render_all(self) -> None:
        self.emit(SceneEvents.BEFORE_RENDER)
        if self._on_render:
            self._on_render()
        self.emit(SceneEvents.AFTER_RENDER)

    def render_top(self) -> None:
        if self._on_render_top:
            self._on_render_top()
        elif self._on_render:
            self._on_render()

    def set_cursor(self, cursor: str) -> None:
        if cursor == self.cursor:
            return
        self.cursor = cursor
        if self._on_cursor:
            self._on_cursor(cursor)

    # ---- object collection ----

    def add(self, *objects: TransformableItem) -> None:
        """Append objects on top of the z-order and compute their handle caches.

        Raises:
            GeometryError: for groups or objects already in the scene.
        """
        for obj in objects:
            if isinstance(obj, GroupItem):
                raise GeometryError("Groups are created by selection, not added directly")
            if obj.node_id in self._nodes:
                raise GeometryError(f"{obj!r} is already in the scene")
            self._nodes[obj.node_id] = obj
            self._order.append(obj.node_id)
            obj.set_coords()
            trace(f"added {obj!r}", "SCENE")
        self.render_all()

    def remove(self, obj: TransformableItem) -> None:
        """Remove ``obj`` from the scene, detaching it from any selection."""
        if obj.node_id not in self._order:
            return
        session = self.current_transform
        if session is not None and session.target is obj:
            self._session = None
        group = self._active_group
        if group is not None and group.contains(obj):
            group.remove_with_update(obj)
            if group.size() == 1:
                sole = group.members()[0]
                self.discard_active_group()
                self.set_active_object(sole)
        if self._active_object is obj:
            self.discard_active_object()
        obj.set_active(False)
        self._order.remove(obj.node_id)
        del self._nodes[obj.node_id]
        trace(f"removed {obj!r}", "SCENE")
        self.render_all()

    def get_objects(self) -> List[TransformableItem]:
        """Top-level objects, bottom to top."""
        return [self._nodes[i] for i in self._order]

    def item(self, node_id: int) -> Optional[TransformableItem]:
        return self._nodes.get(node_id)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, obj: TransformableItem) -> bool:
        return obj.node_id in self._order

    def objects_to_render(self) -> List[TransformableItem]:
        """Paint order: inactive objects first, then active ones, each in z-order."""
        objects = self.get_objects()
        return [o for o in objects if not o.active] + [o for o in objects if o.active]

