"""
nodes/multi_click.py

Multi-click mapping: an ordered sequence of click points with per-point delays.
"""

from __future__ import annotations

from typing import List, Optional

from models import ClickPoint, MultiClickRecord, Position
from canvas.items import ConnectorLine, HandleItem, KeyBadgeItem, make_circle, make_label, offset_label
from debug_trace import trace
from nodes.base import MappingNode

POINT_COLOR = "#dc3545"
POINT_STROKE = "#bd2130"
POINT_RADIUS = 8.0
BADGE_OFFSET = (0.0, -20.0)


class ClickPointHandle(HandleItem):
    """One click point: numbered circle plus its delay label."""

    def __init__(self, node: "MultiClickNode", point: ClickPoint):
        super().__init__(node, "point")
        self.click_point = point
        self.add(make_circle(POINT_RADIUS, POINT_COLOR, POINT_STROKE, 2.0))
        self.order_text = self.add(make_label(str(point.order), 10, "#ffffff"))
        self.delay_text = self.add(make_label(f"{point.delay}ms", 12, POINT_COLOR, centered=False))
        self.delay_text.setPos(-20, 10)

    def refresh_labels(self) -> None:
        self.order_text.setText(str(self.click_point.order))
        self.delay_text.setText(f"{self.click_point.delay}ms")
        # Re-center the order number for its new width
        br = self.order_text.boundingRect()
        self.order_text.setPos(-br.width() / 2, -br.height() / 2)


class MultiClickNode(MappingNode):
    """
    Click sequence drawn as numbered points joined by dashed arrows.

    The first point carries the node's key badge.  Deleting it deletes the
    whole node; deleting any other point splices its neighbours together and
    renumbers the rest.
    """

    record: MultiClickRecord

    def create_visual(self) -> None:
        self.points: List[ClickPointHandle] = []
        self.connectors: List[ConnectorLine] = []
        self.badge: Optional[KeyBadgeItem] = None
        for point in self.record.click_nodes:
            self._add_handle(point)

    def key_badge(self):
        return self.badge

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    def _add_handle(self, point: ClickPoint) -> ClickPointHandle:
        handle = ClickPointHandle(self, point)
        if not self.points:
            colors = self.ctx.settings.settings.nodes.colors
            self.badge = KeyBadgeItem(self.record.key, POINT_COLOR, active_color=colors.key_active)
            offset_label(self.badge, *BADGE_OFFSET)
            handle.badge = self.badge
            handle.add(self.badge)
        self._place(handle, point.pos)
        self._adopt(handle)
        if self.points:
            self._connect(self.points[-1], handle)
        self.points.append(handle)
        return handle

    def _connect(self, start: ClickPointHandle, end: ClickPointHandle) -> ConnectorLine:
        connector = ConnectorLine(POINT_COLOR, 2.0, dash=[5.0, 5.0], pointer_length=5.0,
                                  pointer_width=5.0, end_inset=POINT_RADIUS)
        connector.setZValue(-1)
        connector.setParentItem(self.shape)
        connector.connect(start, end)
        self.ctx.scale_engine.apply_item(connector, self.ctx.scale.current)
        self.connectors.append(connector)
        return connector

    def add_point(self, pos: Position, delay: Optional[int] = None) -> ClickPointHandle:
        """Append a click point at normalized *pos*, connected from the current last point."""
        if delay is None:
            delay = self.ctx.settings.settings.nodes.multi_click_point_delay
        constrained = self.ctx.space.constrain(pos.x, pos.y)
        point = ClickPoint(constrained, delay=max(0, int(delay)), order=len(self.record.click_nodes) + 1)
        self.record.click_nodes.append(point)
        handle = self._add_handle(point)
        trace(f"multi-click point {point.order} added", "NODE")
        self._notify_changed()
        return handle

    def delete_point(self, handle: ClickPointHandle) -> bool:
        """
        Remove a click point.

        The first point stands for the whole node: removing it deletes the
        node from its registry.  A node that is not registered keeps its
        first point.

        Returns:
            True if a point (or the node) was removed.
        """
        if handle not in self.points:
            return False
        index = self.points.index(handle)
        if index == 0:
            if self.ctx.registry.contains(self):
                self.ctx.registry.delete_node(self)
                return True
            return False

        for connector in [c for c in self.connectors if c.references(handle)]:
            self._discard(connector)
            self.connectors.remove(connector)
        if index < len(self.points) - 1:
            self._connect(self.points[index - 1], self.points[index + 1])

        self._discard(handle)
        self.points.pop(index)
        self.record.click_nodes.pop(index)
        self.record.renumber()
        for h in self.points:
            h.refresh_labels()
        trace(f"multi-click point {index + 1} deleted", "NODE")
        self._notify_changed()
        return True

    def _discard(self, item) -> None:
        scene = item.scene()
        if scene is not None:
            scene.removeItem(item)
        else:
            item.setParentItem(None)

    def set_point_delay(self, index: int, delay) -> None:
        """Set the delay (ms, clamped to >= 0) of the point at list *index*."""
        handle = self.points[index]
        try:
            value = int(delay)
        except (TypeError, ValueError):
            return
        handle.click_point.delay = max(0, value)
        handle.refresh_labels()
        self._notify_changed()

    # ------------------------------------------------------------------
    # Drag and layout
    # ------------------------------------------------------------------

    def _refresh_connectors(self) -> None:
        for connector in self.connectors:
            connector.refresh()

    def _drag(self, handle, x, y, dx, dy, shift) -> None:
        handle.place(*self._clamped(x, y))
        if shift:
            for other in self.points:
                if other is not handle:
                    ox, oy = other.point()
                    other.place(*self._clamped(ox + dx, oy + dy))
        self._refresh_connectors()

    def relayout(self) -> None:
        for handle in self.points:
            self._place(handle, handle.click_point.pos)
        self._refresh_connectors()

    def sync_record_from_visual(self) -> None:
        for handle in self.points:
            handle.click_point.pos = self._position_of(handle)
        self.record.renumber()

    def handle_context(self, handle, scene_pos) -> None:
        self.delete_point(handle)

    def destroy(self) -> None:
        super().destroy()
        self.points = []
        self.connectors = []
