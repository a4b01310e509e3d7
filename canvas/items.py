"""
canvas/items.py

Graphics items that node visuals are built from: the node root, draggable
handle groups, connector lines/arrows and key badges.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Tuple

from PyQt6.QtCore import Qt, QPointF, QRectF, QLineF
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPainterPath, QPen, QPolygonF
from PyQt6.QtWidgets import (
    QGraphicsDropShadowEffect,
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsItemGroup,
    QGraphicsLineItem,
    QGraphicsPathItem,
    QGraphicsSimpleTextItem,
)

from models import CENTERED_TEXT_KEY, FIXED_SCALE_KEY, LABEL_OFFSET_KEY, NODE_KIND_KEY
from canvas.animation import Pulse
from canvas.scaling import applied_scale, center_text, scale_text, update_baseline
from debug_trace import trace
from utils import format_key_text, hex_to_qcolor, is_single_symbol, key_font_size


# =============================================================================
# Node root
# =============================================================================

class NodeShape(QGraphicsItem):
    """
    Invisible root of a node's item tree.

    The root stays at the scene origin with an identity transform, so its
    children are positioned in scene pixels.  ``node`` points back to the
    owning node for hit-testing from arbitrary child items.
    """

    def __init__(self, node: Any, kind: str):
        super().__init__()
        self.node = node
        self.setData(NODE_KIND_KEY, kind)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemHasNoContents, True)

    def boundingRect(self) -> QRectF:
        return QRectF()

    def paint(self, painter: QPainter, option, widget=None):
        pass


def node_for_item(item: Optional[QGraphicsItem]) -> Any:
    """Walk up from any child item to the owning node, or ``None``."""
    while item is not None:
        if isinstance(item, NodeShape):
            return item.node
        item = item.parentItem()
    return None


# =============================================================================
# Handles
# =============================================================================

class DragForwardMixin:
    """
    Forwards mouse gestures on an item to its owning node.

    Dragging is not done by Qt's movable flag: each mouse move is handed to
    the node, which applies its own constraints and places the item.  The
    concrete class must set ``node``, ``role``, ``badge`` and
    ``_press_offset``.
    """

    def point(self) -> Tuple[float, float]:
        p = self.pos()
        return p.x(), p.y()

    def hit_badge(self, scene_pt: QPointF) -> bool:
        return self.badge is not None and self.badge.sceneBoundingRect().contains(scene_pt)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._press_offset = event.scenePos() - self.pos()
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            self.node.handle_pressed(self)
            self.node.begin_drag(self)
            event.accept()
            return
        if event.button() == Qt.MouseButton.RightButton:
            self.node.handle_context(self, event.scenePos())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._press_offset is None:
            super().mouseMoveEvent(event)
            return
        target = event.scenePos() - self._press_offset
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        self.node.drag_handle(self, target.x(), target.y(), shift=shift)
        event.accept()

    def mouseReleaseEvent(self, event):
        if self._press_offset is None:
            super().mouseReleaseEvent(event)
            return
        self._press_offset = None
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self.node.end_drag(self)
        event.accept()

    def mouseDoubleClickEvent(self, event):
        if self.hit_badge(event.scenePos()):
            self.node.begin_key_capture(self)
        else:
            self.node.handle_double_click(self)
        event.accept()


class HandleItem(DragForwardMixin, QGraphicsItemGroup):
    """
    A draggable part of a node (a click point, a drag endpoint, a wheel button...).

    The group receives the events of all of its children.

    Attributes:
        role: Name of the part within the node (``"main"``, ``"start"``, ``"up"``...).
        badge: Key badge inside this handle, if any.

    A handle created with ``scaled=False`` is the node's body itself rather
    than a part hung off it: scaling reaches its children but not the group.
    """

    def __init__(self, node: Any, role: str, scaled: bool = True):
        super().__init__()
        if not scaled:
            self.setData(FIXED_SCALE_KEY, True)
        self.node = node
        self.role = role
        self.badge: Optional["KeyBadgeItem"] = None
        self._press_offset: Optional[QPointF] = None
        self.setAcceptHoverEvents(True)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    def add(self, item: QGraphicsItem) -> QGraphicsItem:
        self.addToGroup(item)
        return item

    def place(self, x: float, y: float) -> None:
        self.setPos(QPointF(x, y))


def make_circle(radius: float, fill: str, stroke: str = "", stroke_width: float = 0.0,
                opacity: float = 1.0) -> QGraphicsEllipseItem:
    """Circle centered on the local origin."""
    circle = QGraphicsEllipseItem(QRectF(-radius, -radius, radius * 2, radius * 2))
    circle.setBrush(QBrush(hex_to_qcolor(fill, QColor(Qt.GlobalColor.gray))))
    if stroke and stroke_width > 0:
        circle.setPen(QPen(hex_to_qcolor(stroke, QColor(Qt.GlobalColor.black)), stroke_width))
    else:
        circle.setPen(QPen(Qt.PenStyle.NoPen))
    circle.setOpacity(opacity)
    return circle


def make_label(text: str, size: float, color: str, centered: bool = True) -> QGraphicsSimpleTextItem:
    label = QGraphicsSimpleTextItem(text)
    font = QFont()
    font.setPointSizeF(size)
    label.setFont(font)
    label.setBrush(QBrush(hex_to_qcolor(color, QColor(Qt.GlobalColor.white))))
    if centered:
        label.setData(CENTERED_TEXT_KEY, True)
        center_text(label)
    return label


def make_icon(path: QPainterPath, color: str, width: float = 1.5, filled: bool = False) -> QGraphicsPathItem:
    icon = QGraphicsPathItem(path)
    qcolor = hex_to_qcolor(color, QColor(Qt.GlobalColor.white))
    pen = QPen(qcolor, width)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
    icon.setPen(pen)
    icon.setBrush(QBrush(qcolor) if filled else QBrush(Qt.BrushStyle.NoBrush))
    return icon


def set_highlight(item: QGraphicsItem, on: bool, color: str = "#ffffff") -> None:
    """Toggle the drop-shadow glow used to mark the selected node."""
    if on:
        if item.graphicsEffect() is None:
            effect = QGraphicsDropShadowEffect()
            effect.setBlurRadius(12)
            effect.setOffset(0, 0)
            effect.setColor(hex_to_qcolor(color, QColor(Qt.GlobalColor.white)))
            item.setGraphicsEffect(effect)
    else:
        item.setGraphicsEffect(None)


# =============================================================================
# Icon paths (drawn around the local origin)
# =============================================================================

def arrow_icon_path(size: float = 6.0) -> QPainterPath:
    """Arrowhead pointing along +x."""
    path = QPainterPath()
    path.moveTo(-size, -size)
    path.lineTo(size * 0.6, 0)
    path.lineTo(-size, size)
    path.closeSubpath()
    return path


def mouse_icon_path() -> QPainterPath:
    path = QPainterPath()
    path.addRoundedRect(QRectF(-7, -10, 14, 20), 7, 7)
    path.moveTo(0, -10)
    path.lineTo(0, -3)
    return path


def eye_icon_path() -> QPainterPath:
    path = QPainterPath()
    path.moveTo(-9, 0)
    path.quadTo(0, -8, 9, 0)
    path.quadTo(0, 8, -9, 0)
    path.addEllipse(QPointF(0, 0), 2.5, 2.5)
    return path


def wheel_icon_path() -> QPainterPath:
    path = QPainterPath()
    path.addEllipse(QPointF(0, 0), 9, 9)
    path.addEllipse(QPointF(0, 0), 3, 3)
    path.moveTo(-9, 0)
    path.lineTo(-3, 0)
    path.moveTo(3, 0)
    path.lineTo(9, 0)
    path.moveTo(0, 3)
    path.lineTo(0, 9)
    return path


# =============================================================================
# Connectors
# =============================================================================

class ConnectorLine(QGraphicsLineItem):
    """
    Straight connector with optional dash pattern and arrowhead.

    Dash lengths and pointer size are kept in pixels; the pen's dash pattern
    is derived from them because Qt measures dashes in pen widths.

    Args:
        color: Stroke color.
        width: Stroke width in pixels.
        dash: Dash/gap lengths in pixels; empty for a solid line.
        pointer_length: Arrowhead length in pixels; 0 for no arrowhead.
        pointer_width: Arrowhead width in pixels.
        end_inset: Distance kept between the arrow tip and the end point.
    """

    def __init__(self, color: str, width: float, dash: Optional[List[float]] = None,
                 pointer_length: float = 0.0, pointer_width: float = 0.0, end_inset: float = 0.0):
        super().__init__()
        self.color = hex_to_qcolor(color, QColor(Qt.GlobalColor.red))
        self.stroke_width = float(width)
        self.dash: List[float] = list(dash or [])
        self.pointer_length = float(pointer_length)
        self.pointer_width = float(pointer_width)
        self.end_inset = float(end_inset)
        self.start_item: Optional[HandleItem] = None
        self.end_item: Optional[HandleItem] = None
        self._apply_pen()

    def _apply_pen(self):
        pen = QPen(self.color, self.stroke_width)
        pen.setCapStyle(Qt.PenCapStyle.FlatCap)
        if self.dash and self.stroke_width > 0:
            pen.setStyle(Qt.PenStyle.CustomDashLine)
            pen.setDashPattern([max(0.01, d / self.stroke_width) for d in self.dash])
        else:
            pen.setStyle(Qt.PenStyle.SolidLine)
        self.setPen(pen)

    def set_stroke_width(self, width: float) -> None:
        self.stroke_width = float(width)
        self._apply_pen()

    def set_dash(self, dash: List[float]) -> None:
        self.dash = list(dash)
        self._apply_pen()

    def set_pointer(self, length: float, width: float) -> None:
        self.prepareGeometryChange()
        self.pointer_length = float(length)
        self.pointer_width = float(width)
        self.update()

    def connect(self, start_item: HandleItem, end_item: HandleItem) -> None:
        self.start_item = start_item
        self.end_item = end_item
        self.refresh()

    def references(self, item: HandleItem) -> bool:
        return self.start_item is item or self.end_item is item

    def refresh(self) -> None:
        """Re-read the endpoints from the connected handles."""
        if self.start_item is None or self.end_item is None:
            return
        self.set_points(self.start_item.pos(), self.end_item.pos())

    def set_points(self, p1: QPointF, p2: QPointF) -> None:
        self.setLine(QLineF(p1, p2))

    def boundingRect(self) -> QRectF:
        extra = max(self.pointer_length, self.pointer_width)
        return super().boundingRect().adjusted(-extra, -extra, extra, extra)

    def paint(self, painter: QPainter, option, widget=None):
        super().paint(painter, option, widget)
        if self.pointer_length <= 0:
            return
        ln = self.line()
        length = ln.length()
        if length < 1e-6:
            return
        ux, uy = ln.dx() / length, ln.dy() / length
        px, py = -uy, ux
        tip = QPointF(ln.x2() - ux * self.end_inset, ln.y2() - uy * self.end_inset)
        half = self.pointer_width / 2
        base = QPointF(tip.x() - ux * self.pointer_length, tip.y() - uy * self.pointer_length)
        left = QPointF(base.x() + px * half, base.y() + py * half)
        right = QPointF(base.x() - px * half, base.y() - py * half)
        painter.setPen(QPen(self.color, max(1.0, self.stroke_width / 2)))
        painter.setBrush(QBrush(self.color))
        painter.drawPolygon(QPolygonF([tip, left, right]))


class ConnectorHandle(DragForwardMixin, ConnectorLine):
    """Connector the user can grab to move the whole node (the drag path's hit line).

    The item itself stays at the origin; its endpoints follow the handles.
    """

    def __init__(self, node: Any, role: str, color: str, width: float):
        super().__init__(color, width)
        self.node = node
        self.role = role
        self.badge = None
        self._press_offset: Optional[QPointF] = None
        self.setAcceptHoverEvents(True)
        self.setCursor(Qt.CursorShape.OpenHandCursor)


# =============================================================================
# Key badge
# =============================================================================

BADGE_BASE_RADIUS = 10.0


def badge_geometry(text: str, font_size: float, force_rect: bool = False) -> Tuple[QPainterPath, bool]:
    """
    Outline for a key badge around *text*.

    Single characters and short names (up to 8 characters) get a circle,
    longer text or ``force_rect`` a pill-shaped rounded rectangle.

    Returns:
        Tuple of (path centered on the origin, is_circle).
    """
    path = QPainterPath()
    if is_single_symbol(text) and not force_rect:
        radius = max(BADGE_BASE_RADIUS, len(text) * 5)
        path.addEllipse(QPointF(0, 0), radius, radius)
        return path, True

    font = QFont()
    font.setPointSizeF(font_size)
    text_width = QFontMetricsF(font).horizontalAdvance(text)
    if len(text) <= 8 and not force_rect:
        radius = max(BADGE_BASE_RADIUS, text_width / 1.7)
        path.addEllipse(QPointF(0, 0), radius, radius)
        return path, True

    width = text_width + 10
    height = max(BADGE_BASE_RADIUS * 2, font_size * 1.2 + 8)
    path.addRoundedRect(QRectF(-width / 2, -height / 2, width, height), height / 2, height / 2)
    return path, False


class KeyBadgeItem(QGraphicsItemGroup):
    """
    Key binding badge: a circle or pill with the formatted key text.

    While its node is waiting for a key the badge pulses and its outline
    turns to the active color.
    """

    KEY_PULSE_SPEED = 0.005
    KEY_PULSE_AMPLITUDE = 0.03

    def __init__(self, key: str, fill: str, text_color: str = "#ffffff", opacity: float = 0.8,
                 force_rect: bool = False, active_color: str = "#28a745"):
        super().__init__()
        self.key = key
        self.force_rect = force_rect
        self.active_color = active_color
        self._pulse: Optional[Pulse] = None

        self.outline = QGraphicsPathItem()
        self.outline.setBrush(QBrush(hex_to_qcolor(fill, QColor("#666666"))))
        self.outline.setPen(QPen(Qt.PenStyle.NoPen))
        self.outline.setOpacity(opacity)
        self.addToGroup(self.outline)

        self.text = make_label("", 11.0, text_color)
        self.addToGroup(self.text)
        self._layout(key)

    def _layout(self, key: str) -> None:
        display = format_key_text(key)
        size = key_font_size(display)
        path, _ = badge_geometry(display, size, self.force_rect)
        self.outline.setPath(path)
        self.text.setText(display)
        font = self.text.font()
        font.setPointSizeF(size)
        self.text.setFont(font)
        # Keep the font baseline in step with the new text, then re-apply the current scale
        update_baseline(self.text, font=size)
        scale_text(self.text, applied_scale(self))

    def set_key(self, key: str) -> None:
        self.key = key
        self._layout(key)

    @property
    def is_active(self) -> bool:
        return self._pulse is not None

    def set_active(self, active: bool) -> None:
        """Start or stop the waiting-for-key pulse."""
        self.stop_pulse()
        pen = QPen(Qt.PenStyle.NoPen)
        if active:
            pen = QPen(hex_to_qcolor(self.active_color, QColor(Qt.GlobalColor.green)), 2)
            self._pulse = Pulse(self._pulse_frame, duration_ms=int(2 * math.pi / self.KEY_PULSE_SPEED), loop=True)
            self._pulse.start()
        self.outline.setPen(pen)
        trace(f"badge {self.key or '<none>'} active={active}", "KEYS")

    def _pulse_frame(self, elapsed_ms: float) -> None:
        factor = 1 + math.sin(elapsed_ms * self.KEY_PULSE_SPEED) * self.KEY_PULSE_AMPLITUDE
        self.setScale(applied_scale(self) * factor)

    def stop_pulse(self) -> None:
        if self._pulse is not None:
            pulse, self._pulse = self._pulse, None
            pulse.stop()
            self.setScale(applied_scale(self))


def offset_label(item: QGraphicsItem, x: float, y: float) -> None:
    """Place *item* away from its group origin; the offset grows with scale^1.7."""
    item.setData(LABEL_OFFSET_KEY, [float(x), float(y)])
    item.setPos(QPointF(x, y))
