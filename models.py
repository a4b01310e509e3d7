"""
models.py

Data models and constants for the key-mapping editor.

Every node on the canvas owns exactly one record from this module.  Records
hold normalized [0, 1] coordinates only and know how to read themselves from,
and write themselves back to, the JSON document shape.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Type


# ----------------------------
# Mapping type tags
# ----------------------------

class MappingKind:
    """Variant tags as written to the ``type`` field of a record."""
    CLICK = "KMT_CLICK"
    CLICK_TWICE = "KMT_CLICK_TWICE"
    CLICK_MULTI = "KMT_CLICK_MULTI"
    DRAG = "KMT_DRAG"
    STEER_WHEEL = "KMT_STEER_WHEEL"
    MOUSE_MOVE = "KMT_MOUSE_MOVE"


class Direction:
    """Steering wheel directions and their fixed handle angles (radians)."""
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    ALL = (UP, RIGHT, DOWN, LEFT)

    ANGLES = {
        UP: -math.pi / 2,
        RIGHT: 0.0,
        DOWN: math.pi / 2,
        LEFT: math.pi,
    }

    @staticmethod
    def is_horizontal(direction: str) -> bool:
        return direction in (Direction.LEFT, Direction.RIGHT)


# ----------------------------
# Value helpers
# ----------------------------

def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* into ``[lo, hi]``."""
    return max(lo, min(hi, value))


def _as_float(value: Any, default: float) -> float:
    """Coerce a JSON value to float, falling back to *default*."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    return int(round(_as_float(value, default)))


def _split_extras(d: Dict[str, Any], known: set) -> Dict[str, Any]:
    """Return the keys of *d* that are not in *known*, preserved for round-trips."""
    return {k: v for k, v in d.items() if k not in known}


@dataclass
class Position:
    """A normalized position inside the reference frame."""
    x: float = 0.5
    y: float = 0.5

    @classmethod
    def from_dict(cls, d: Any, default: Optional["Position"] = None) -> "Position":
        """Build a position from ``{"x": .., "y": ..}``; missing axes use *default*."""
        base = default or cls()
        if not isinstance(d, dict):
            return cls(base.x, base.y)
        return cls(_as_float(d.get("x"), base.x), _as_float(d.get("y"), base.y))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


# ----------------------------
# Records
# ----------------------------

@dataclass
class MappingRecord:
    """Fields shared by every mapping record.

    Unknown keys of a loaded record are kept in ``extras`` so they survive
    a load/save cycle untouched.
    """
    type: str = ""
    comment: str = ""
    opacity: float = 1.0
    switch_map: bool = False
    extras: Dict[str, Any] = field(default_factory=dict, repr=False)

    # Wire names handled by the base record
    _BASE_KEYS = ("type", "comment", "opacity", "switchMap")

    @classmethod
    def _base_kwargs(cls, d: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "comment": str(d.get("comment", "") or ""),
            "opacity": clamp(_as_float(d.get("opacity"), 1.0), 0.0, 1.0),
            "switch_map": bool(d.get("switchMap", False)),
        }

    def _base_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "comment": self.comment, "opacity": self.opacity}

    def set_opacity(self, value: float) -> None:
        self.opacity = clamp(_as_float(value, self.opacity), 0.0, 1.0)

    def position(self) -> Position:
        """The record's primary position (see ``KindSpec.position_key``)."""
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass
class ClickRecord(MappingRecord):
    """Single or double click at one position."""
    type: str = MappingKind.CLICK
    pos: Position = field(default_factory=Position)
    key: str = ""

    _KEYS = {"pos", "key"}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], frame=None) -> "ClickRecord":
        known = set(cls._BASE_KEYS) | cls._KEYS
        return cls(
            type=d.get("type", MappingKind.CLICK),
            pos=Position.from_dict(d.get("pos")),
            key=str(d.get("key", "") or ""),
            extras=_split_extras(d, known),
            **cls._base_kwargs(d),
        )

    def position(self) -> Position:
        return self.pos

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["pos"] = self.pos.to_dict()
        d["key"] = self.key
        d["switchMap"] = self.switch_map
        d.update(self.extras)
        return d


DRAG_END_OFFSET = (0.02, 0.07)
MAX_START_DELAY = 2000


@dataclass
class DragRecord(MappingRecord):
    """Two-point drag path with a start delay and a speed factor."""
    type: str = MappingKind.DRAG
    start_pos: Position = field(default_factory=Position)
    end_pos: Position = field(default_factory=lambda: Position(0.5, 0.5).offset(*DRAG_END_OFFSET))
    key: str = ""
    start_delay: int = 0
    drag_speed: float = 1.0

    _KEYS = {"startPos", "endPos", "key", "startDelay", "dragSpeed"}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], frame=None) -> "DragRecord":
        start = Position.from_dict(d.get("startPos"))
        end = Position.from_dict(d.get("endPos"), start.offset(*DRAG_END_OFFSET))
        rec = cls(
            start_pos=start,
            end_pos=end,
            key=str(d.get("key", "") or ""),
            extras=_split_extras(d, set(cls._BASE_KEYS) | cls._KEYS),
            **cls._base_kwargs(d),
        )
        rec.set_start_delay(d.get("startDelay", 0))
        rec.set_drag_speed(d.get("dragSpeed", 1))
        return rec

    def set_start_delay(self, value: Any) -> None:
        self.start_delay = int(clamp(_as_int(value, 0), 0, MAX_START_DELAY))

    def set_drag_speed(self, value: Any) -> None:
        self.drag_speed = clamp(_as_float(value, 1.0), 0.0, 1.0)

    def position(self) -> Position:
        return self.start_pos

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d.update({
            "startPos": self.start_pos.to_dict(),
            "endPos": self.end_pos.to_dict(),
            "key": self.key,
            "startDelay": self.start_delay,
            "dragSpeed": self.drag_speed,
            "switchMap": self.switch_map,
        })
        d.update(self.extras)
        return d


DEFAULT_POINT_DELAY = 200


@dataclass
class ClickPoint:
    """One point of a multi-click sequence."""
    pos: Position = field(default_factory=Position)
    delay: int = 0
    order: int = 1

    @classmethod
    def from_dict(cls, d: Any, order: int) -> "ClickPoint":
        if not isinstance(d, dict):
            d = {}
        return cls(
            pos=Position.from_dict(d.get("pos")),
            delay=max(0, _as_int(d.get("delay"), 0)),
            order=order,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"delay": self.delay, "pos": self.pos.to_dict(), "order": self.order}


@dataclass
class MultiClickRecord(MappingRecord):
    """Ordered click sequence; only the first point carries the key."""
    type: str = MappingKind.CLICK_MULTI
    key: str = ""
    click_nodes: List[ClickPoint] = field(default_factory=list)

    _KEYS = {"key", "clickNodes", "pos"}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], frame=None) -> "MultiClickRecord":
        raw_points = d.get("clickNodes") or []
        if not isinstance(raw_points, list):
            raise ValueError("clickNodes must be a list")
        points = [ClickPoint.from_dict(p, i + 1) for i, p in enumerate(raw_points)]
        if not points and "pos" in d:
            # Dropped from the palette: the drop position becomes the first point
            points = [ClickPoint(Position.from_dict(d.get("pos")), delay=0, order=1)]
        return cls(
            key=str(d.get("key", "") or ""),
            click_nodes=points,
            extras=_split_extras(d, set(cls._BASE_KEYS) | cls._KEYS),
            **cls._base_kwargs(d),
        )

    def renumber(self) -> None:
        for i, point in enumerate(self.click_nodes):
            point.order = i + 1

    def position(self) -> Position:
        return self.click_nodes[0].pos if self.click_nodes else Position()

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["key"] = self.key
        d["clickNodes"] = [p.to_dict() for p in self.click_nodes]
        d["switchMap"] = self.switch_map
        d.update(self.extras)
        return d


STEER_OFFSET_PRECISION = 5
DEFAULT_STEER_PIXEL_DISTANCE = 50
DEFAULT_STEER_KEYS = {
    Direction.LEFT: "Key_A",
    Direction.RIGHT: "Key_D",
    Direction.UP: "Key_W",
    Direction.DOWN: "Key_S",
}


def default_steer_offset(direction: str, frame, pixel_distance: float = DEFAULT_STEER_PIXEL_DISTANCE) -> float:
    """Default offset for *direction*: a fixed pixel distance expressed in frame units.

    Args:
        direction: One of ``Direction.ALL``.
        frame: Reference frame with ``width``/``height``; ``None`` gives 0.1.
        pixel_distance: Distance in pixels to convert.
    """
    if frame is None:
        return 0.1
    extent = frame.width if Direction.is_horizontal(direction) else frame.height
    if extent <= 0:
        return 0.1
    return round(pixel_distance / extent, STEER_OFFSET_PRECISION)


@dataclass
class SteerWheelRecord(MappingRecord):
    """Steering wheel center plus four normalized radial offsets and their keys."""
    type: str = MappingKind.STEER_WHEEL
    center_pos: Position = field(default_factory=Position)
    offsets: Dict[str, float] = field(default_factory=lambda: {d: 0.1 for d in Direction.ALL})
    keys: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STEER_KEYS))

    _KEYS = {"centerPos"} | {f"{d}Offset" for d in Direction.ALL} | {f"{d}Key" for d in Direction.ALL}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], frame=None,
                  pixel_distance: float = DEFAULT_STEER_PIXEL_DISTANCE) -> "SteerWheelRecord":
        offsets = {}
        keys = {}
        for direction in Direction.ALL:
            value = _as_float(d.get(f"{direction}Offset"), 0.0)
            if value <= 0:
                value = default_steer_offset(direction, frame, pixel_distance)
            offsets[direction] = round(value, STEER_OFFSET_PRECISION)
            keys[direction] = str(d.get(f"{direction}Key") or DEFAULT_STEER_KEYS[direction])
        return cls(
            center_pos=Position.from_dict(d.get("centerPos")),
            offsets=offsets,
            keys=keys,
            extras=_split_extras(d, set(cls._BASE_KEYS) | cls._KEYS),
            **cls._base_kwargs(d),
        )

    def set_offset(self, direction: str, value: float) -> None:
        self.offsets[direction] = round(max(0.0, value), STEER_OFFSET_PRECISION)

    def max_offset(self, direction: str) -> float:
        """Distance from the center to the frame edge along *direction*."""
        cx, cy = self.center_pos.x, self.center_pos.y
        return {
            Direction.LEFT: cx,
            Direction.RIGHT: 1 - cx,
            Direction.UP: cy,
            Direction.DOWN: 1 - cy,
        }[direction]

    def position(self) -> Position:
        return self.center_pos

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["centerPos"] = self.center_pos.to_dict()
        for direction in (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN):
            d[f"{direction}Offset"] = self.offsets[direction]
        for direction in (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN):
            d[f"{direction}Key"] = self.keys[direction]
        d["switchMap"] = self.switch_map
        d.update(self.extras)
        return d


MIN_SPEED_RATIO = 0.001


@dataclass
class SmallEyesRecord:
    """Precision sub-point of the mouse-move mapping."""
    enabled: bool = False
    type: str = MappingKind.CLICK
    switch_map: bool = False
    key: str = "Key_Alt"
    pos: Position = field(default_factory=lambda: Position(0.7, 0.7))

    @classmethod
    def from_dict(cls, d: Any) -> "SmallEyesRecord":
        if not isinstance(d, dict):
            return cls()
        # Present without a flag means enabled
        enabled = d.get("enabled")
        return cls(
            enabled=True if enabled is None else bool(enabled),
            type=d.get("type", MappingKind.CLICK),
            switch_map=bool(d.get("switchMap", False)),
            key=str(d.get("key") or "Key_Alt"),
            pos=Position.from_dict(d.get("pos"), Position(0.7, 0.7)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "type": self.type,
            "switchMap": self.switch_map,
            "key": self.key,
            "pos": self.pos.to_dict(),
        }


@dataclass
class MouseMoveRecord(MappingRecord):
    """Mouse-movement region with optional small-eyes sub-point."""
    type: str = MappingKind.MOUSE_MOVE
    start_pos: Position = field(default_factory=Position)
    speed_ratio_x: float = 1.0
    speed_ratio_y: float = 1.0
    small_eyes: SmallEyesRecord = field(default_factory=SmallEyesRecord)

    _KEYS = {"startPos", "speedRatioX", "speedRatioY", "smallEyes"}
    # A top-level switchMap is read but never edited, so it is written back verbatim
    _PASSTHROUGH_KEYS = {"switchMap"}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], frame=None) -> "MouseMoveRecord":
        rec = cls(
            start_pos=Position.from_dict(d.get("startPos")),
            small_eyes=SmallEyesRecord.from_dict(d.get("smallEyes")),
            extras=_split_extras(d, (set(cls._BASE_KEYS) - cls._PASSTHROUGH_KEYS) | cls._KEYS),
            **cls._base_kwargs(d),
        )
        rec.set_speed_ratios(d.get("speedRatioX", 1.0), d.get("speedRatioY", 1.0))
        return rec

    def set_speed_ratios(self, x: Any = None, y: Any = None) -> None:
        if x is not None:
            self.speed_ratio_x = max(MIN_SPEED_RATIO, _as_float(x, self.speed_ratio_x))
        if y is not None:
            self.speed_ratio_y = max(MIN_SPEED_RATIO, _as_float(y, self.speed_ratio_y))

    def position(self) -> Position:
        return self.start_pos

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d.update({
            "startPos": self.start_pos.to_dict(),
            "speedRatioX": self.speed_ratio_x,
            "speedRatioY": self.speed_ratio_y,
        })
        if self.small_eyes.enabled:
            d["smallEyes"] = self.small_eyes.to_dict()
        d.update(self.extras)
        return d


# ----------------------------
# Capability table
# ----------------------------

@dataclass(frozen=True)
class KindSpec:
    """Per-variant capabilities selected by tag."""
    kind: str
    label: str
    record_cls: Type[MappingRecord]
    supports_key: bool
    position_key: str
    icon: str


KIND_TABLE: Dict[str, KindSpec] = {
    MappingKind.CLICK: KindSpec(MappingKind.CLICK, "Single Click", ClickRecord, True, "pos", "click"),
    MappingKind.CLICK_TWICE: KindSpec(MappingKind.CLICK_TWICE, "Double Click", ClickRecord, True, "pos", "double_click"),
    MappingKind.CLICK_MULTI: KindSpec(MappingKind.CLICK_MULTI, "Multi Click", MultiClickRecord, True, "pos", "multi_click"),
    MappingKind.DRAG: KindSpec(MappingKind.DRAG, "Drag", DragRecord, True, "startPos", "drag"),
    MappingKind.STEER_WHEEL: KindSpec(MappingKind.STEER_WHEEL, "Steering Wheel", SteerWheelRecord, False, "centerPos", "steer_wheel"),
    MappingKind.MOUSE_MOVE: KindSpec(MappingKind.MOUSE_MOVE, "Mouse Map", MouseMoveRecord, False, "startPos", "mouse"),
}


def get_kind_spec(kind: str) -> Optional[KindSpec]:
    """Look up the capability entry for a ``type`` tag, or ``None`` if unsupported."""
    return KIND_TABLE.get(kind)


def record_from_dict(d: Dict[str, Any], frame=None) -> MappingRecord:
    """Build the record matching ``d["type"]``.

    Raises:
        KeyError: The tag is not a supported variant.
        ValueError: A field has an unusable shape.
    """
    if not isinstance(d, dict):
        raise ValueError("mapping record must be an object")
    spec = get_kind_spec(d.get("type", ""))
    if spec is None:
        raise KeyError(d.get("type"))
    rec = spec.record_cls.from_dict(d, frame=frame)
    rec.type = spec.kind
    return rec


# ----------------------------
# Graphics item constants
# ----------------------------

NODE_KIND_KEY = 1      # QGraphicsItem.data key for the owning node's tag
BASELINE_KEY = 2       # QGraphicsItem.data key for captured scale baselines
LABEL_OFFSET_KEY = 3   # QGraphicsItem.data key for a group's unscaled label offset
APPLIED_SCALE_KEY = 4  # QGraphicsItem.data key for the last group scale applied
CENTERED_TEXT_KEY = 5  # QGraphicsItem.data flag: keep the text centered on its parent origin
FIXED_SCALE_KEY = 6    # QGraphicsItem.data flag: group keeps its own scale, only its children scale

EDGE_PADDING = 0.002
POSITION_PRECISION = 4
