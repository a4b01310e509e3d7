"""
canvas/scaling.py

Node scaling with a separate response curve per primitive kind.

The first time a primitive is scaled its unscaled size attributes are stored
in the item's data as a baseline.  Every later call computes from that
baseline, so applying the same scale twice gives the same result as applying
it once.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from PyQt6.QtCore import QRectF
from PyQt6.QtWidgets import (
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsItemGroup,
    QGraphicsLineItem,
    QGraphicsPathItem,
    QGraphicsSimpleTextItem,
)

from models import (
    APPLIED_SCALE_KEY,
    BASELINE_KEY,
    CENTERED_TEXT_KEY,
    FIXED_SCALE_KEY,
    LABEL_OFFSET_KEY,
    NODE_KIND_KEY,
)
from debug_trace import trace

# Response curve exponents
LINE_EXPONENT = 3.0         # stroke width and pointer size of lines/arrows
DASH_EXPONENT = 1.0         # dash pattern of lines/arrows
PATH_EXPONENT = 2.0         # path icons
SHAPE_EXPONENT = 1.0        # circles, groups, path strokes
TEXT_EXPONENT = 0.2         # font size
LABEL_OFFSET_EXPONENT = 1.7  # offset of labels placed away from their group origin


def response(scale: float, exponent: float) -> float:
    return scale ** exponent


def capture_baseline(item: QGraphicsItem) -> Dict[str, Any]:
    """Return the item's baseline, capturing it from the current values on first use."""
    base = item.data(BASELINE_KEY)
    if base is not None:
        return base

    # Imported here to avoid a cycle: items imports scaling helpers
    from canvas.items import ConnectorLine

    base: Dict[str, Any] = {}
    if isinstance(item, QGraphicsItemGroup):
        base["scale"] = item.scale()
        offset = item.data(LABEL_OFFSET_KEY)
        if offset is not None:
            base["offset"] = [float(offset[0]), float(offset[1])]
    elif isinstance(item, ConnectorLine):
        base["width"] = item.stroke_width
        base["pointer_length"] = item.pointer_length
        base["pointer_width"] = item.pointer_width
        base["dash"] = list(item.dash)
    elif isinstance(item, QGraphicsLineItem):
        base["width"] = item.pen().widthF()
    elif isinstance(item, QGraphicsEllipseItem):
        base["radius"] = item.rect().width() / 2
        base["width"] = item.pen().widthF()
    elif isinstance(item, QGraphicsPathItem):
        base["scale"] = item.scale()
        base["width"] = item.pen().widthF()
    elif isinstance(item, QGraphicsSimpleTextItem):
        base["font"] = item.font().pointSizeF()
    item.setData(BASELINE_KEY, base)
    return base


def update_baseline(item: QGraphicsItem, **values) -> None:
    """Replace baseline entries after the item's unscaled geometry changed (e.g. new key text)."""
    base = dict(capture_baseline(item))
    base.update(values)
    item.setData(BASELINE_KEY, base)


def applied_scale(item: QGraphicsItem) -> float:
    """Scale last applied to the node containing *item* (1.0 before any scaling)."""
    node_item: Optional[QGraphicsItem] = item
    while node_item is not None:
        value = node_item.data(APPLIED_SCALE_KEY)
        if value is not None:
            return float(value)
        node_item = node_item.parentItem()
    return 1.0


def center_text(item: QGraphicsSimpleTextItem) -> None:
    br = item.boundingRect()
    item.setPos(-br.width() / 2, -br.height() / 2)


def scale_text(item: QGraphicsSimpleTextItem, scale: float) -> None:
    base = capture_baseline(item)
    font = item.font()
    font.setPointSizeF(max(1.0, base["font"] * response(scale, TEXT_EXPONENT)))
    item.setFont(font)
    if item.data(CENTERED_TEXT_KEY):
        center_text(item)


class ScaleEngine:
    """Applies a uniform node scale to an item tree."""

    def apply(self, root: QGraphicsItem, scale: float) -> None:
        """Scale every descendant of *root*; the root itself keeps its transform."""
        trace(f"scale {scale:.2f} on {root.data(NODE_KIND_KEY)}", "SCALE")
        root.setData(APPLIED_SCALE_KEY, float(scale))
        for child in root.childItems():
            self._scale_item(child, scale)

    def apply_item(self, item: QGraphicsItem, scale: float) -> None:
        """Scale one subtree added to a node after the node was scaled."""
        self._scale_item(item, scale)

    def _scale_item(self, item: QGraphicsItem, scale: float) -> None:
        from canvas.items import ConnectorLine

        if isinstance(item, QGraphicsItemGroup) and item.data(FIXED_SCALE_KEY):
            item.setData(APPLIED_SCALE_KEY, float(scale))
            for child in item.childItems():
                self._scale_item(child, scale)
            return

        base = capture_baseline(item)

        if isinstance(item, QGraphicsItemGroup):
            scene_pos = item.scenePos()
            item.setScale(base["scale"] * response(scale, SHAPE_EXPONENT))
            item.setData(APPLIED_SCALE_KEY, float(scale))
            if "offset" in base:
                factor = response(scale, LABEL_OFFSET_EXPONENT)
                item.setPos(base["offset"][0] * factor, base["offset"][1] * factor)
            elif item.parentItem() is not None:
                item.setPos(item.parentItem().mapFromScene(scene_pos))
            for child in item.childItems():
                self._scale_item(child, scale)

        elif isinstance(item, ConnectorLine):
            line_factor = response(scale, LINE_EXPONENT)
            item.set_stroke_width(base["width"] * line_factor)
            item.set_pointer(base["pointer_length"] * line_factor, base["pointer_width"] * line_factor)
            item.set_dash([d * response(scale, DASH_EXPONENT) for d in base["dash"]])

        elif isinstance(item, QGraphicsLineItem):
            pen = item.pen()
            pen.setWidthF(base["width"] * response(scale, LINE_EXPONENT))
            item.setPen(pen)

        elif isinstance(item, QGraphicsEllipseItem):
            radius = base["radius"] * response(scale, SHAPE_EXPONENT)
            center = item.rect().center()
            item.setRect(QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2))
            pen = item.pen()
            pen.setWidthF(base["width"] * response(scale, SHAPE_EXPONENT))
            item.setPen(pen)

        elif isinstance(item, QGraphicsPathItem):
            item.setScale(base["scale"] * response(scale, PATH_EXPONENT))
            pen = item.pen()
            pen.setWidthF(base["width"] * response(scale, SHAPE_EXPONENT))
            item.setPen(pen)

        elif isinstance(item, QGraphicsSimpleTextItem):
            scale_text(item, scale)
