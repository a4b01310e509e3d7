"""
nodes/base.py

Behavior shared by every mapping node: lifecycle, selection, the drag
protocol driven by handle items, key binding and serialization.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from key_capture import CaptureTarget
from models import KindSpec, MappingRecord, Position, get_kind_spec
from canvas.animation import Pulse
from canvas.items import HandleItem, NodeShape, set_highlight
from debug_trace import trace
from utils import build_node_label

if TYPE_CHECKING:
    from session import EditorContext


class MappingNode:
    """
    One node on the canvas: a canonical record plus the item tree showing it.

    Subclasses build their items in ``create_visual()``, re-place them from
    the record in ``relayout()``, apply drag constraints in ``_drag()`` and
    copy the final handle positions back into the record in
    ``sync_record_from_visual()``.

    Args:
        ctx: Editing session the node lives in.
        record: The node's record; mutated in place, never replaced.
    """

    SELECT_PULSE_SPEED = 0.01
    SELECT_PULSE_DEPTH = 0.35
    SELECT_PULSE_FLOOR = 0.3

    def __init__(self, ctx: "EditorContext", record: MappingRecord):
        self.ctx = ctx
        self.record = record
        self.selected = False
        self.dragging = False
        self.initial_opacity = record.opacity
        self._select_pulse: Optional[Pulse] = None
        self._last_target: Optional[Tuple[float, float]] = None
        self.shape: Optional[NodeShape] = NodeShape(self, record.type)
        self.create_visual()
        self.shape.setOpacity(record.opacity)
        trace(f"node created {record.type}", "NODE")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def kind(self) -> str:
        return self.record.type

    @property
    def spec(self) -> KindSpec:
        return get_kind_spec(self.record.type)

    def supports_key(self) -> bool:
        return self.spec.supports_key

    def label_keys(self) -> List[str]:
        return [getattr(self.record, "key", "")]

    def label(self) -> str:
        """Node list label: type name, bound keys and truncated comment."""
        return build_node_label(self.spec.label, self.label_keys(), self.record.comment)

    def to_record(self) -> Dict[str, Any]:
        return self.record.to_dict()

    # ------------------------------------------------------------------
    # Visual construction (variant-specific)
    # ------------------------------------------------------------------

    def create_visual(self) -> None:
        raise NotImplementedError

    def relayout(self) -> None:
        """Re-place every item from the record after the reference frame changed."""
        raise NotImplementedError

    def sync_record_from_visual(self) -> None:
        raise NotImplementedError

    def handles(self) -> List[HandleItem]:
        return [i for i in self.shape.childItems() if isinstance(i, HandleItem)] if self.shape else []

    def _place(self, handle: HandleItem, pos: Position) -> None:
        handle.place(*self.ctx.space.denormalize(pos))

    def _position_of(self, handle: HandleItem) -> Position:
        x, y = handle.point()
        return self.ctx.space.normalize(x, y)

    def _clamped(self, x: float, y: float) -> Tuple[float, float]:
        return self.ctx.space.clamp_pixel(x, y)

    def _adopt(self, handle: HandleItem) -> HandleItem:
        """Parent a handle built after creation and bring it to the node's current scale."""
        handle.setParentItem(self.shape)
        self.ctx.scale_engine.apply_item(handle, self.ctx.scale.current)
        if self.selected:
            set_highlight(handle, True)
        return handle

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def set_opacity(self, value: float) -> None:
        self.record.set_opacity(value)
        self.initial_opacity = self.record.opacity
        if self.shape is not None:
            self.shape.setOpacity(self.record.opacity)

    def set_scale(self, factor: float) -> None:
        if self.shape is not None:
            self.ctx.scale_engine.apply(self.shape, factor)

    def set_comment(self, text: str) -> None:
        self.record.comment = text or ""
        self._notify_changed()

    def set_switch_map(self, flag: bool) -> None:
        self.record.switch_map = bool(flag)
        self._notify_changed()

    def set_key(self, key: str) -> bool:
        """Bind *key* to the node.  Returns False for variants without a node-level key."""
        if not self.supports_key():
            return False
        self.record.key = key or ""
        badge = self.key_badge()
        if badge is not None:
            badge.set_key(self.record.key)
        self._notify_changed()
        return True

    def key_badge(self):
        return None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, pulse: bool = False) -> None:
        if not self.selected:
            self.selected = True
            self._set_highlight(True)
        if pulse:
            self._start_select_pulse()

    def deselect(self) -> None:
        self._stop_select_pulse()
        if self.selected:
            self.selected = False
            self._set_highlight(False)

    def _set_highlight(self, on: bool) -> None:
        for handle in self.handles():
            set_highlight(handle, on)

    def _start_select_pulse(self) -> None:
        self._stop_select_pulse()
        duration = self.ctx.settings.settings.animation.select_pulse_ms
        self._select_pulse = Pulse(self._select_pulse_frame, duration, on_finished=self._restore_opacity)
        self._select_pulse.start()

    def _select_pulse_frame(self, elapsed_ms: float) -> None:
        if self.shape is None:
            return
        value = self.initial_opacity - math.sin(elapsed_ms * self.SELECT_PULSE_SPEED) * self.SELECT_PULSE_DEPTH
        self.shape.setOpacity(max(self.SELECT_PULSE_FLOOR, value))

    def _restore_opacity(self) -> None:
        if self.shape is not None:
            self.shape.setOpacity(self.initial_opacity)

    def _stop_select_pulse(self) -> None:
        if self._select_pulse is not None:
            pulse, self._select_pulse = self._select_pulse, None
            pulse.stop()

    @property
    def is_pulsing(self) -> bool:
        return self._select_pulse is not None and self._select_pulse.is_running

    # ------------------------------------------------------------------
    # Drag protocol (called by HandleItem and by tests)
    # ------------------------------------------------------------------

    def handle_pressed(self, handle: HandleItem) -> None:
        self.ctx.registry.select_node(self)

    def begin_drag(self, handle: HandleItem) -> None:
        self.dragging = True
        self._last_target = handle.point()
        trace(f"drag start {self.kind}/{handle.role}", "DRAG")

    def drag_handle(self, handle: HandleItem, x: float, y: float, shift: bool = False) -> None:
        """Move *handle* towards pixel (x, y) under the variant's constraints.

        ``shift`` is the modifier used by variants that move companion
        handles along with the dragged one.
        """
        if not self.dragging:
            self.begin_drag(handle)
        last_x, last_y = self._last_target
        self._last_target = (x, y)
        trace(f"drag {self.kind}/{handle.role} -> ({x:.1f}, {y:.1f})", "FRAME")
        self._drag(handle, x, y, x - last_x, y - last_y, shift)

    def _drag(self, handle: HandleItem, x: float, y: float, dx: float, dy: float, shift: bool) -> None:
        raise NotImplementedError

    def end_drag(self, handle: Optional[HandleItem] = None) -> None:
        if not self.dragging:
            return
        self.dragging = False
        self._last_target = None
        self.sync_record_from_visual()
        trace(f"drag end {self.kind}", "DRAG")
        self._notify_changed()

    def handle_context(self, handle: HandleItem, scene_pos) -> None:
        pass

    def handle_double_click(self, handle: HandleItem) -> None:
        pass

    # ------------------------------------------------------------------
    # Key capture
    # ------------------------------------------------------------------

    def key_slot(self, handle: HandleItem) -> Optional[str]:
        """Binding edited by double-clicking the badge of *handle*, or ``None``."""
        if self.supports_key() and handle.badge is not None:
            return "key"
        return None

    def begin_key_capture(self, handle: HandleItem) -> bool:
        slot = self.key_slot(handle)
        if slot is None or handle.badge is None:
            return False
        self.ctx.registry.select_node(self)
        target = CaptureTarget(
            owner=self,
            slot=slot,
            on_key=lambda key: self.apply_key(slot, key),
            on_active=handle.badge.set_active,
        )
        return self.ctx.key_capture.start(target)

    def apply_key(self, slot: str, key: str) -> None:
        self.set_key(key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def destroy(self) -> None:
        """Stop animations, release key capture and remove the item tree."""
        if self.shape is None:
            return
        self._stop_select_pulse()
        self.ctx.key_capture.release_owner(self)
        for handle in self.handles():
            if handle.badge is not None:
                handle.badge.stop_pulse()
        scene = self.shape.scene()
        if scene is not None:
            scene.removeItem(self.shape)
        self.shape = None
        self.selected = False
        trace(f"node destroyed {self.kind}", "NODE")

    @property
    def is_destroyed(self) -> bool:
        return self.shape is None

    def _notify_changed(self) -> None:
        self.ctx.registry.node_changed(self)
