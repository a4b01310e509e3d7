"""
nodes package

Mapping node variants and the registry that owns them.
"""

from models import MappingKind
from nodes.base import MappingNode
from nodes.click import ClickNode
from nodes.drag import DragNode
from nodes.mouse_move import MouseMoveNode
from nodes.multi_click import MultiClickNode
from nodes.steer_wheel import SteerWheelNode

NODE_CLASSES = {
    MappingKind.CLICK: ClickNode,
    MappingKind.CLICK_TWICE: ClickNode,
    MappingKind.CLICK_MULTI: MultiClickNode,
    MappingKind.DRAG: DragNode,
    MappingKind.STEER_WHEEL: SteerWheelNode,
    MappingKind.MOUSE_MOVE: MouseMoveNode,
}

__all__ = [
    "NODE_CLASSES",
    "MappingNode",
    "ClickNode",
    "DragNode",
    "MouseMoveNode",
    "MultiClickNode",
    "SteerWheelNode",
]
