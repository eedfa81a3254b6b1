"""
canvas/selection.py

Active object / active group bookkeeping for the editor scene.

At most one of (nothing, one standalone object, one group) is selected.
All operations take effect immediately.
"""

from __future__ import annotations

from typing import Optional, Sequence

from canvas.items import GroupItem, TransformableItem
from debug_trace import trace
from models import ObjectEvents, PointerEvent, SceneEvents


class SelectionMixin:
    """
    Mixin for EditorScene managing the selection slots.

    Expects the host to provide ``_nodes``, ``get_objects()``,
    ``render_all()`` and ``emit()``.
    """

    def _init_selection(self):
        self._active_object: Optional[TransformableItem] = None
        self._active_group: Optional[GroupItem] = None

    def get_active_object(self) -> Optional[TransformableItem]:
        return self._active_object

    def get_active_group(self) -> Optional[GroupItem]:
        return self._active_group

    def activate(self, obj: TransformableItem) -> None:
        obj.set_active(True)

    def deactivate(self, obj: TransformableItem) -> None:
        obj.set_active(False)

    def create_group(self, objects: Sequence[TransformableItem]) -> GroupItem:
        """Build a group over ``objects`` and register it in the arena."""
        group = GroupItem(objects, self._nodes)
        self._nodes[group.node_id] = group
        return group

    def set_active_object(self, obj: TransformableItem, e: Optional[PointerEvent] = None) -> None:
        """Make ``obj`` the single standalone selection.

        Any active group is dissolved and any previous active object is
        deactivated first.
        """
        if self._active_group is not None:
            self.discard_active_group()
        if self._active_object is not None and self._active_object is not obj:
            self._active_object.set_active(False)
        self._active_object = obj
        obj.set_active(True)
        trace(f"Active object -> {obj!r}", "SELECT")
        self.render_all()
        self.emit(SceneEvents.OBJECT_SELECTED, target=obj, e=e)
        obj.emit(ObjectEvents.SELECTED, target=obj, e=e)

    def set_active_group(self, group: Optional[GroupItem], e: Optional[PointerEvent] = None) -> None:
        """Make ``group`` the selection; None discards the current group.

        The standalone slot is cleared. A previous active object that is a
        member of ``group`` keeps its active flag.
        """
        if group is None:
            self.discard_active_group()
            return
        if group is self._active_group:
            group.set_active(True)
            return
        if self._active_group is not None:
            self.discard_active_group()
        previous = self._active_object
        self._active_object = None
        if previous is not None and not group.contains(previous):
            previous.set_active(False)
        self._active_group = group
        group.set_active(True)
        trace(f"Active group -> {group!r} ({group.size()} members)", "SELECT")
        self.emit(SceneEvents.SELECTION_CREATED, target=group, e=e)

    def discard_active_group(self) -> None:
        """Dissolve the active group, releasing members as standalone objects."""
        group = self._active_group
        self._active_group = None
        if group is None:
            return
        group.destroy()
        group.set_active(False)
        self._nodes.pop(group.node_id, None)

    def discard_active_object(self) -> None:
        if self._active_object is not None:
            self._active_object.set_active(False)
        self._active_object = None

    def deactivate_all(self) -> None:
        """Clear every active flag, dissolve the group and empty both slots."""
        for obj in self.get_objects():
            obj.set_active(False)
        self.discard_active_group()
        self.discard_active_object()

    def deactivate_all_with_dispatch(self, e: Optional[PointerEvent] = None) -> None:
        """deactivate_all(), emitting selection:cleared if anything was selected."""
        had_selection = self._active_object is not None or self._active_group is not None
        self.deactivate_all()
        if had_selection:
            self.emit(SceneEvents.SELECTION_CLEARED, target=None, e=e)
