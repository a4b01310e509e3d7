"""
session.py

Editing session: wires the scene, coordinate space, scaling, key capture,
node registry and document codec together.  Nodes receive this context
explicitly instead of reaching for module-level singletons.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from PyQt6.QtCore import QTimer

from key_capture import KeyCapture
from models import MappingKind, Position, get_kind_spec
from canvas.frame import CoordinateSpace
from canvas.scaling import ScaleEngine
from canvas.scene import MappingScene
from config_codec import ConfigCodec
from debug_trace import trace
from nodes.registry import NodeRegistry
from settings import SettingsManager, get_settings

log = logging.getLogger(__name__)


class ScaleController:
    """
    The session's node scale.

    Manual changes are clamped to the configured range, rounded to two
    decimals, applied to every node and persisted in the settings.  Holding a
    control steps the value on a repeating timer.
    """

    def __init__(self, ctx: "EditorContext"):
        self.ctx = ctx
        cfg = ctx.settings.settings.scale
        self.current = self._clamp(cfg.value)
        self._direction = 0
        self._timer = QTimer()
        self._timer.setInterval(cfg.repeat_interval_ms)
        self._timer.timeout.connect(self.tick)

    def _clamp(self, value) -> float:
        cfg = self.ctx.settings.settings.scale
        try:
            value = float(value)
        except (TypeError, ValueError):
            value = 1.0
        return round(min(max(value, cfg.minimum), cfg.maximum), 2)

    def set_scale(self, value) -> float:
        """Clamp, apply to all nodes and persist.  Returns the value in effect."""
        scale = self._clamp(value)
        if scale != self.current:
            self.current = scale
            trace(f"scale -> {scale:.2f}", "SCALE")
            self.ctx.registry.apply_scale(scale)
            self._persist(scale)
        return self.current

    def _persist(self, scale: float) -> None:
        self.ctx.settings.settings.scale.value = scale
        try:
            self.ctx.settings.save()
        except OSError as e:
            log.warning("Could not persist scale setting: %s", e)

    def start_continuous(self, direction: int) -> None:
        """Begin stepping up (``direction > 0``) or down until ``stop_continuous``."""
        if self._timer.isActive():
            return
        self._direction = 1 if direction > 0 else -1
        self.tick()
        self._timer.start()

    def stop_continuous(self) -> None:
        self._timer.stop()
        self._direction = 0

    @property
    def is_continuous(self) -> bool:
        return self._timer.isActive()

    def tick(self) -> None:
        if not self._direction:
            return
        cfg = self.ctx.settings.settings.scale
        stepped = self.current + cfg.step * self._direction
        stepped = min(max(stepped, cfg.soft_minimum), cfg.soft_maximum)
        self.set_scale(stepped)


class EditorContext:
    """
    One editing session.

    Args:
        settings: Settings to use; defaults to the process-wide instance.
        scene: Scene to draw on; a new ``MappingScene`` when omitted.

    Attributes:
        switch_key: Document-level key toggling the mapping on and off.
        document_size: ``(width, height)`` remembered from the last loaded
            document, used on save when no background is shown.
    """

    def __init__(self, settings: Optional[SettingsManager] = None, scene: Optional[MappingScene] = None):
        self.settings = settings or get_settings()
        self.scene = scene or MappingScene(self.settings)
        canvas = self.settings.settings.canvas
        self.space = CoordinateSpace(
            self.scene.canvas_frame,
            self.scene.background_frame,
            padding=canvas.edge_padding,
            precision=canvas.precision,
        )
        self.scale_engine = ScaleEngine()
        self.key_capture = KeyCapture()
        self.registry = NodeRegistry(self)
        self.scale = ScaleController(self)
        self.codec = ConfigCodec(self)
        self.switch_key = self.settings.settings.document.default_switch_key
        self.document_size: Optional[Tuple[int, int]] = None

        self.scene.configure_linkage(
            key_capture=self.key_capture,
            on_empty_click=self.registry.deselect_node,
            on_context_click=self.add_context_point,
            on_drop=self.drop_mapping,
            on_resized=self.registry.relayout_all,
        )

    def add_mapping(self, kind: str, pos: Optional[Position] = None, comment: str = ""):
        """Create a default mapping of *kind* at normalized *pos* (canvas center by default)."""
        spec = get_kind_spec(kind)
        if spec is None:
            log.warning("Unsupported mapping type: %s", kind)
            return None
        pos = pos or Position(0.5, 0.5)
        source = {"type": kind, "comment": comment, spec.position_key: pos.to_dict()}
        node = self.registry.create_node(source)
        if node is not None:
            self.registry.select_node(node)
        return node

    def drop_mapping(self, kind: str, x: float, y: float):
        """Palette drop at scene pixel (x, y)."""
        n = self.space.normalize(x, y)
        return self.add_mapping(kind, self.space.constrain(n.x, n.y))

    def add_context_point(self, x: float, y: float):
        """Right click on the canvas: extend the selected multi-click sequence."""
        node = self.registry.selected
        if node is None or node.kind != MappingKind.CLICK_MULTI:
            return None
        delay = self.settings.settings.nodes.multi_click_context_delay
        return node.add_point(self.space.normalize(x, y), delay=delay)

    def set_switch_key(self, key: str) -> None:
        if key:
            self.switch_key = key

    def reference_size(self) -> Tuple[int, int]:
        """Size written as the document's ``width``/``height``."""
        background = self.scene.background_size()
        if background is not None:
            return background
        if self.document_size is not None:
            return self.document_size
        return self.scene.canvas_size
