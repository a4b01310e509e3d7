"""
nodes/click.py

Single and double click mappings: one position, one key.
"""

from __future__ import annotations

from models import ClickRecord, MappingKind
from canvas.items import HandleItem, KeyBadgeItem
from nodes.base import MappingNode


class ClickNode(MappingNode):
    """Click (``KMT_CLICK``) or double click (``KMT_CLICK_TWICE``) at one point."""

    record: ClickRecord

    def create_visual(self) -> None:
        colors = self.ctx.settings.settings.nodes.colors
        fill = colors.click if self.kind == MappingKind.CLICK else colors.double_click
        self.handle = HandleItem(self, "main", scaled=False)
        self.badge = KeyBadgeItem(self.record.key, fill, active_color=colors.key_active)
        self.handle.badge = self.badge
        self.handle.add(self.badge)
        self._place(self.handle, self.record.pos)
        self._adopt(self.handle)

    def key_badge(self):
        return self.badge

    def relayout(self) -> None:
        self._place(self.handle, self.record.pos)

    def _drag(self, handle, x, y, dx, dy, shift) -> None:
        self.handle.place(*self._clamped(x, y))

    def sync_record_from_visual(self) -> None:
        self.record.pos = self._position_of(self.handle)
