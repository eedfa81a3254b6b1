"""
canvas/mixins.py

Mixin classes for scene objects: named-event subscription, style and
control-handle defaults, and gesture state tracking.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from debug_trace import trace, trace_exception
from models import EventInfo, PointerEvent
from settings import get_settings


Listener = Callable[[EventInfo], Any]


class EventedMixin:
    """
    Mixin that provides synchronous named notifications.

    Listeners are called in subscription order. A listener that raises is
    traced and skipped; the remaining listeners still run and the
    emitter's own state is untouched.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event_name: str, listener: Listener) -> None:
        """Subscribe ``listener`` to ``event_name``."""
        self._listeners.setdefault(event_name, []).append(listener)

    def off(self, event_name: Optional[str] = None, listener: Optional[Listener] = None) -> None:
        """Unsubscribe.

        With no arguments every listener is dropped; with only a name, every
        listener of that event is dropped.
        """
        if event_name is None:
            self._listeners.clear()
            return
        if listener is None:
            self._listeners.pop(event_name, None)
            return
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event_name: str, target: Optional[object] = None,
             e: Optional[PointerEvent] = None) -> None:
        """Deliver ``event_name`` to every current listener."""
        listeners = self._listeners.get(event_name)
        if not listeners:
            return
        info = EventInfo(target=target, e=e)
        # copy so listeners may unsubscribe while being notified
        for listener in list(listeners):
            try:
                listener(info)
            except Exception:
                trace_exception(f"Listener for {event_name!r} raised")


class StyleMixin:
    """
    Mixin that carries border, handle and padding settings for an object.

    Defaults come from the [canvas.objects] and [canvas.handles] sections
    of settings.toml at construction time.
    """

    def __init__(self):
        s = get_settings().settings.canvas
        self.padding = s.objects.padding
        self.stroke_width = s.objects.stroke_width
        self.min_scale_limit = s.objects.min_scale_limit
        self.border_color = s.objects.border_color
        self.has_controls = s.objects.has_controls
        self.has_rotating_point = s.objects.has_rotating_point
        self.corner_size = s.handles.corner_size
        self.rotating_point_offset = s.handles.rotating_point_offset
        self.corner_color = s.handles.border_color
        self._orig_has_controls: Optional[bool] = None  # saved while grouped
        self.fill_color = "#00000000"  # transparent

    def _should_paint_handles(self) -> bool:
        """Check if this object should paint its control handles.

        Returns False for members of a group, since the group draws its
        own handles.
        """
        return self.active and self.has_controls and self.group_id is None


class GestureStateMixin:
    """
    Mixin that tracks per-gesture state: the moving / scaling flags and a
    geometry snapshot taken when a gesture starts.
    """

    def __init__(self):
        self.is_moving = False
        self._scaling = False
        self.original = None

    def save_state(self) -> None:
        """Snapshot geometry so the end of a gesture can detect changes."""
        self.original = self.geometry.copy()
        trace(f"save_state {self.kind}#{self.node_id}", "STATE")

    def has_state_changed(self) -> bool:
        """True when geometry differs from the last saved snapshot."""
        if self.original is None:
            return False
        return self.geometry != self.original
