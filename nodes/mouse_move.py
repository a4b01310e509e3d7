"""
nodes/mouse_move.py

Mouse-move mapping: the pointer anchor plus the optional small-eyes point.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from models import MouseMoveRecord, Position
from canvas.items import (
    ConnectorLine,
    HandleItem,
    KeyBadgeItem,
    eye_icon_path,
    make_circle,
    make_icon,
    mouse_icon_path,
    offset_label,
)
from debug_trace import trace
from nodes.base import MappingNode

log = logging.getLogger(__name__)

ANCHOR_RADIUS = 20.0
EYES_RADIUS = 15.0
EYES_BADGE_OFFSET = (-2.0, 28.0)

SMALL_EYES_FIELDS = ("enabled", "type", "switch_map", "key", "pos")


class MouseMoveNode(MappingNode):
    """
    Pointer anchor with an optional small-eyes sub-point.

    The small-eyes point has its own key and is drawn only while enabled,
    joined to the anchor by a dashed connector.  Right-clicking the anchor
    toggles it.
    """

    record: MouseMoveRecord

    def create_visual(self) -> None:
        colors = self.ctx.settings.settings.nodes.colors
        self.anchor = HandleItem(self, "anchor")
        self.anchor.add(make_circle(ANCHOR_RADIUS, colors.mouse, "#ffffff", 1.0, opacity=0.8))
        self.anchor.add(make_icon(mouse_icon_path(), "#ffffff", width=1.5))
        self._place(self.anchor, self.record.start_pos)
        self._adopt(self.anchor)

        self.eyes: Optional[HandleItem] = None
        self.eyes_link: Optional[ConnectorLine] = None
        if self.record.small_eyes.enabled:
            self._build_small_eyes()

    def label_keys(self) -> List[str]:
        eyes = self.record.small_eyes
        return [eyes.key] if eyes.enabled else []

    # ------------------------------------------------------------------
    # Small eyes
    # ------------------------------------------------------------------

    def _build_small_eyes(self) -> None:
        colors = self.ctx.settings.settings.nodes.colors
        eyes = HandleItem(self, "small_eyes")
        eyes.add(make_circle(EYES_RADIUS, colors.small_eyes, "#ffffff", 1.0, opacity=0.8))
        eyes.add(make_icon(eye_icon_path(), "#ffffff", width=1.5))
        eyes.badge = KeyBadgeItem(self.record.small_eyes.key, colors.small_eyes, force_rect=True,
                                  active_color=colors.key_active)
        offset_label(eyes.badge, *EYES_BADGE_OFFSET)
        eyes.add(eyes.badge)
        self._place(eyes, self.record.small_eyes.pos)
        self._adopt(eyes)

        link = ConnectorLine(colors.small_eyes, 2.0, dash=[5.0, 5.0])
        link.setOpacity(0.5)
        link.setZValue(-1)
        link.setParentItem(self.shape)
        self.ctx.scale_engine.apply_item(link, self.ctx.scale.current)
        link.connect(self.anchor, eyes)

        self.eyes, self.eyes_link = eyes, link
        trace("small eyes shown", "NODE")

    def _remove_small_eyes(self) -> None:
        for item in (self.eyes_link, self.eyes):
            if item is None:
                continue
            if item is self.eyes and item.badge is not None:
                item.badge.stop_pulse()
            scene = item.scene()
            if scene is not None:
                scene.removeItem(item)
            else:
                item.setParentItem(None)
        self.eyes, self.eyes_link = None, None
        self.ctx.key_capture.release_owner(self)
        trace("small eyes hidden", "NODE")

    def set_small_eyes(self, **changes) -> None:
        """
        Merge *changes* into the small-eyes config and show or hide the point.

        Accepted keys: ``enabled``, ``type``, ``switch_map``, ``key`` and
        ``pos`` (a ``Position`` or an ``{x, y}`` dict).  Other keys are logged
        and ignored.  The anchor position is never touched.
        """
        eyes = self.record.small_eyes
        for name, value in changes.items():
            if name not in SMALL_EYES_FIELDS:
                log.warning("Ignoring unknown small eyes field: %s", name)
                continue
            if name == "pos" and not isinstance(value, Position):
                value = Position.from_dict(value, eyes.pos)
            setattr(eyes, name, value)
        eyes.enabled = bool(eyes.enabled)

        if eyes.enabled and self.eyes is None and self.shape is not None:
            self._build_small_eyes()
        elif not eyes.enabled and self.eyes is not None:
            self._remove_small_eyes()
        elif self.eyes is not None:
            self.eyes.badge.set_key(eyes.key)
            self._place(self.eyes, eyes.pos)
            self.eyes_link.refresh()
        self._notify_changed()

    def toggle_small_eyes(self) -> None:
        self.set_small_eyes(enabled=not self.record.small_eyes.enabled)

    def set_small_eyes_key(self, key: str) -> bool:
        """Bind the small-eyes key.  Ignored while small eyes is disabled."""
        if not self.record.small_eyes.enabled:
            return False
        self.record.small_eyes.key = key or ""
        if self.eyes is not None:
            self.eyes.badge.set_key(self.record.small_eyes.key)
        self._notify_changed()
        return True

    def set_speed_ratios(self, x=None, y=None) -> None:
        self.record.set_speed_ratios(x, y)
        self._notify_changed()

    def set_switch_map(self, flag: bool) -> None:
        self.record.small_eyes.switch_map = bool(flag)
        self._notify_changed()

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def handle_context(self, handle, scene_pos) -> None:
        if handle is self.anchor:
            self.toggle_small_eyes()

    def key_slot(self, handle: HandleItem) -> Optional[str]:
        if handle is self.eyes and handle.badge is not None:
            return "small_eyes"
        return None

    def apply_key(self, slot: str, key: str) -> None:
        self.set_small_eyes_key(key)

    def _drag(self, handle, x, y, dx, dy, shift) -> None:
        handle.place(*self._clamped(x, y))
        if shift:
            other = self.eyes if handle is self.anchor else self.anchor
            if other is not None:
                ox, oy = other.point()
                other.place(*self._clamped(ox + dx, oy + dy))
        if self.eyes_link is not None:
            self.eyes_link.refresh()

    def relayout(self) -> None:
        self._place(self.anchor, self.record.start_pos)
        if self.eyes is not None:
            self._place(self.eyes, self.record.small_eyes.pos)
            self.eyes_link.refresh()

    def sync_record_from_visual(self) -> None:
        self.record.start_pos = self._position_of(self.anchor)
        if self.eyes is not None:
            self.record.small_eyes.pos = self._position_of(self.eyes)

    def destroy(self) -> None:
        super().destroy()
        self.eyes, self.eyes_link = None, None
