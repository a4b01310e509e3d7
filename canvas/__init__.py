"""
canvas package

PyQt6 graphics items, scaling and the scene for the key-mapping editor.
"""

from canvas.frame import CoordinateSpace, ReferenceFrame, fit_background
from canvas.items import ConnectorLine, HandleItem, KeyBadgeItem, NodeShape
from canvas.scaling import ScaleEngine
from canvas.scene import MappingScene

__all__ = [
    "CoordinateSpace",
    "ReferenceFrame",
    "fit_background",
    "ConnectorLine",
    "HandleItem",
    "KeyBadgeItem",
    "NodeShape",
    "ScaleEngine",
    "MappingScene",
]
