"""
nodes/steer_wheel.py

Steering wheel mapping: a center handle with four radial key handles.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from PyQt6.QtCore import QPointF

from models import Direction, Position, SteerWheelRecord
from canvas.items import (
    ConnectorLine,
    HandleItem,
    KeyBadgeItem,
    make_circle,
    make_icon,
    wheel_icon_path,
)
from debug_trace import trace
from nodes.base import MappingNode

CENTER_RADIUS = 15.0


class SteerWheelNode(MappingNode):
    """
    Center plus up/right/down/left handles at fixed angles.

    Each direction stores a normalized offset from the center along its own
    axis.  Dragging a direction handle changes only that offset; dragging the
    center carries all handles along and pulls back any offset that would
    reach past the frame edge.
    """

    record: SteerWheelRecord

    def create_visual(self) -> None:
        colors = self.ctx.settings.settings.nodes.colors

        self.center = HandleItem(self, "center", scaled=False)
        self.center.add(make_circle(CENTER_RADIUS, colors.steer_wheel, "#ffffff", 1.0, opacity=0.8))
        self.center.add(make_icon(wheel_icon_path(), "#ffffff", width=1.5))

        self.direction_handles: Dict[str, HandleItem] = {}
        self.spokes: Dict[str, ConnectorLine] = {}
        for direction in Direction.ALL:
            handle = HandleItem(self, direction)
            handle.badge = KeyBadgeItem(self.record.keys[direction], colors.steer_wheel,
                                        active_color=colors.key_active)
            handle.add(handle.badge)
            self.direction_handles[direction] = handle

            spoke = ConnectorLine(colors.steer_wheel, 2.0)
            spoke.setOpacity(0.6)
            spoke.setZValue(-1)
            spoke.setParentItem(self.shape)
            self.spokes[direction] = spoke

        self._place(self.center, self.record.center_pos)
        self._adopt(self.center)
        for direction, handle in self.direction_handles.items():
            self._place_direction(direction)
            self._adopt(handle)
            self.ctx.scale_engine.apply_item(self.spokes[direction], self.ctx.scale.current)
            self.spokes[direction].connect(self.center, handle)

    def label_keys(self) -> List[str]:
        keys = self.record.keys
        return [keys[Direction.UP], keys[Direction.LEFT], keys[Direction.DOWN], keys[Direction.RIGHT]]

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _direction_point(self, direction: str, distance: float) -> QPointF:
        angle = Direction.ANGLES[direction]
        center = self.center.pos()
        return QPointF(center.x() + math.cos(angle) * distance, center.y() + math.sin(angle) * distance)

    def _place_direction(self, direction: str) -> None:
        distance = self.ctx.space.offset_to_pixels(self.record.offsets[direction], direction)
        p = self._direction_point(direction, distance)
        self.direction_handles[direction].place(p.x(), p.y())

    def _refresh_spokes(self) -> None:
        for spoke in self.spokes.values():
            spoke.refresh()

    def relayout(self) -> None:
        self._place(self.center, self.record.center_pos)
        for direction in Direction.ALL:
            self._place_direction(direction)
        self._refresh_spokes()

    def reclamp_offsets(self) -> None:
        """Pull every offset back inside the distance from the center to the frame edge."""
        for direction in Direction.ALL:
            limit = self.record.max_offset(direction)
            if self.record.offsets[direction] > limit:
                trace(f"steer {direction} offset {self.record.offsets[direction]} -> {limit}", "NODE")
                self.record.set_offset(direction, limit)

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------

    def _drag(self, handle, x, y, dx, dy, shift) -> None:
        if handle is self.center:
            self.center.place(*self._clamped(x, y))
            self.record.center_pos = self._position_of(self.center)
            self.reclamp_offsets()
            for direction in Direction.ALL:
                self._place_direction(direction)
        else:
            self._drag_direction(handle.role, x, y)
        self._refresh_spokes()

    def _drag_direction(self, direction: str, x: float, y: float) -> None:
        center = self.center.pos()
        distance = math.hypot(x - center.x(), y - center.y())
        max_px = self.ctx.space.offset_to_pixels(self.record.max_offset(direction), direction)
        min_px = self.ctx.settings.settings.nodes.steer_min_pixel_distance
        distance = min(max_px, max(min_px, distance))
        p = self._direction_point(direction, distance)
        self.direction_handles[direction].place(p.x(), p.y())
        self.record.set_offset(direction, self.ctx.space.pixels_to_offset(distance, direction))

    def sync_record_from_visual(self) -> None:
        self.record.center_pos = self._position_of(self.center)

    def move_center(self, pos: Position) -> None:
        """Programmatic center move with the same re-clamp as a drag."""
        x, y = self.ctx.space.denormalize(self.ctx.space.constrain(pos.x, pos.y))
        self.begin_drag(self.center)
        self.drag_handle(self.center, x, y)
        self.end_drag(self.center)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def key_slot(self, handle: HandleItem) -> Optional[str]:
        return handle.role if handle.role in Direction.ALL else None

    def apply_key(self, slot: str, key: str) -> None:
        self.set_direction_key(slot, key)

    def set_direction_key(self, direction: str, key: str) -> None:
        self.record.keys[direction] = key or ""
        self.direction_handles[direction].badge.set_key(self.record.keys[direction])
        self._notify_changed()

    def set_offset(self, direction: str, value: float) -> None:
        """Set one offset (normalized), bounded by the distance to the frame edge."""
        self.record.set_offset(direction, min(float(value), self.record.max_offset(direction)))
        self._place_direction(direction)
        self._refresh_spokes()
        self._notify_changed()
