"""
nodes/drag.py

Drag mapping: a swipe from a start point to an end point.
"""

from __future__ import annotations

import math

from models import DragRecord
from canvas.items import (
    ConnectorHandle,
    HandleItem,
    KeyBadgeItem,
    arrow_icon_path,
    make_circle,
    make_icon,
)
from canvas.scaling import update_baseline
from nodes.base import MappingNode

LINE_WIDTH = 17.0
LINE_WIDTH_SELECTED = 20.0
LINE_OPACITY = 0.1
LINE_OPACITY_SELECTED = 0.8
END_RADIUS = 9.0


class DragNode(MappingNode):
    """
    Two endpoints joined by a wide, faint hit line.

    Grabbing the line moves both endpoints.  Grabbing an endpoint moves only
    that endpoint unless Shift is held, in which case the other endpoint
    follows by the same delta.
    """

    record: DragRecord

    def create_visual(self) -> None:
        colors = self.ctx.settings.settings.nodes.colors

        self.line = ConnectorHandle(self, "line", "#666666", LINE_WIDTH)
        self.line.setOpacity(LINE_OPACITY)
        self.line.setZValue(-1)
        self.line.setParentItem(self.shape)

        self.start = HandleItem(self, "start")
        self.badge = KeyBadgeItem(self.record.key, "#666666", active_color=colors.key_active)
        self.start.badge = self.badge
        self.start.add(self.badge)

        self.end = HandleItem(self, "end")
        self.end.add(make_circle(END_RADIUS, "#ffffff", "#666666", 1.0, opacity=0.8))
        self.arrow = make_icon(arrow_icon_path(), colors.drag, width=1.0, filled=True)
        self.end.add(self.arrow)

        self._place(self.start, self.record.start_pos)
        self._place(self.end, self.record.end_pos)
        self._adopt(self.start)
        self._adopt(self.end)
        self.ctx.scale_engine.apply_item(self.line, self.ctx.scale.current)
        self._update_arrow()

    def key_badge(self):
        return self.badge

    def relayout(self) -> None:
        self._place(self.start, self.record.start_pos)
        self._place(self.end, self.record.end_pos)
        self._update_arrow()

    def arrow_angle(self) -> float:
        """Direction of the swipe in degrees, ``atan2(dy, dx)``."""
        (sx, sy), (ex, ey) = self.start.point(), self.end.point()
        return math.degrees(math.atan2(ey - sy, ex - sx))

    def _update_arrow(self) -> None:
        self.line.set_points(self.start.pos(), self.end.pos())
        self.arrow.setRotation(self.arrow_angle())

    def _shift_point(self, handle: HandleItem, dx: float, dy: float) -> None:
        x, y = handle.point()
        handle.place(*self._clamped(x + dx, y + dy))

    def _drag(self, handle, x, y, dx, dy, shift) -> None:
        if handle is self.line:
            self._shift_point(self.start, dx, dy)
            self._shift_point(self.end, dx, dy)
        else:
            handle.place(*self._clamped(x, y))
            if shift:
                other = self.end if handle is self.start else self.start
                self._shift_point(other, dx, dy)
        self._update_arrow()

    def sync_record_from_visual(self) -> None:
        self.record.start_pos = self._position_of(self.start)
        self.record.end_pos = self._position_of(self.end)

    def _set_highlight(self, on: bool) -> None:
        super()._set_highlight(on)
        self.line.setOpacity(LINE_OPACITY_SELECTED if on else LINE_OPACITY)
        update_baseline(self.line, width=LINE_WIDTH_SELECTED if on else LINE_WIDTH)
        if self.shape is not None:
            self.ctx.scale_engine.apply_item(self.line, self.ctx.scale.current)

    def set_start_delay(self, value) -> None:
        self.record.set_start_delay(value)
        self._notify_changed()

    def set_drag_speed(self, value) -> None:
        self.record.set_drag_speed(value)
        self._notify_changed()
