"""Tests for mapping records, their defaults, clamps and the capability table."""
from __future__ import annotations

import pytest

from canvas.frame import ReferenceFrame
from models import (
    KIND_TABLE,
    ClickRecord,
    Direction,
    DragRecord,
    MappingKind,
    MouseMoveRecord,
    MultiClickRecord,
    Position,
    SteerWheelRecord,
    default_steer_offset,
    get_kind_spec,
    record_from_dict,
)


class TestClickRecord:
    def test_defaults(self):
        rec = record_from_dict({"type": MappingKind.CLICK})
        assert isinstance(rec, ClickRecord)
        assert rec.pos == Position(0.5, 0.5)
        assert rec.key == ""
        assert rec.opacity == 1.0

    def test_double_click_keeps_tag(self):
        rec = record_from_dict({"type": MappingKind.CLICK_TWICE, "key": "Key_Q"})
        assert rec.type == MappingKind.CLICK_TWICE
        assert rec.to_dict()["type"] == MappingKind.CLICK_TWICE

    def test_opacity_clamped(self):
        assert record_from_dict({"type": MappingKind.CLICK, "opacity": 3}).opacity == 1.0
        assert record_from_dict({"type": MappingKind.CLICK, "opacity": -1}).opacity == 0.0

    def test_zero_opacity_is_kept(self):
        assert record_from_dict({"type": MappingKind.CLICK, "opacity": 0}).opacity == 0.0

    def test_unknown_fields_survive(self):
        rec = record_from_dict({"type": MappingKind.CLICK, "vendorHint": {"a": 1}})
        assert rec.to_dict()["vendorHint"] == {"a": 1}


class TestDragRecord:
    def test_end_defaults_relative_to_start(self):
        rec = record_from_dict({"type": MappingKind.DRAG, "startPos": {"x": 0.2, "y": 0.3}})
        assert rec.end_pos.x == pytest.approx(0.22)
        assert rec.end_pos.y == pytest.approx(0.37)

    def test_start_delay_clamped(self):
        rec = DragRecord()
        rec.set_start_delay(5000)
        assert rec.start_delay == 2000
        rec.set_start_delay(-3)
        assert rec.start_delay == 0

    def test_drag_speed_clamped_and_zero_kept(self):
        rec = DragRecord()
        rec.set_drag_speed(4)
        assert rec.drag_speed == 1.0
        rec.set_drag_speed(0)
        assert rec.drag_speed == 0.0

    def test_serialized_fields(self):
        d = DragRecord(key="Key_E").to_dict()
        assert set(d) >= {"type", "startPos", "endPos", "key", "startDelay", "dragSpeed", "switchMap"}


class TestMultiClickRecord:
    def test_drop_position_becomes_first_point(self):
        rec = record_from_dict({"type": MappingKind.CLICK_MULTI, "pos": {"x": 0.1, "y": 0.2}})
        assert len(rec.click_nodes) == 1
        assert rec.click_nodes[0].pos == Position(0.1, 0.2)
        assert rec.click_nodes[0].order == 1
        assert "pos" not in rec.to_dict()

    def test_orders_come_from_list_position(self):
        rec = record_from_dict({
            "type": MappingKind.CLICK_MULTI,
            "clickNodes": [
                {"pos": {"x": 0.1, "y": 0.1}, "delay": 100, "order": 7},
                {"pos": {"x": 0.2, "y": 0.2}, "delay": -5, "order": 3},
            ],
        })
        assert [p.order for p in rec.click_nodes] == [1, 2]
        assert rec.click_nodes[1].delay == 0

    def test_click_nodes_must_be_a_list(self):
        with pytest.raises(ValueError):
            record_from_dict({"type": MappingKind.CLICK_MULTI, "clickNodes": "nope"})


class TestSteerWheelRecord:
    def test_default_offset_from_pixels(self):
        frame = ReferenceFrame(0, 0, 800, 600)
        assert default_steer_offset(Direction.LEFT, frame) == 0.0625
        assert default_steer_offset(Direction.UP, frame) == round(50 / 600, 5)
        assert default_steer_offset(Direction.UP, None) == 0.1

    def test_missing_or_non_positive_offsets_get_defaults(self):
        frame = ReferenceFrame(0, 0, 800, 600)
        rec = record_from_dict({"type": MappingKind.STEER_WHEEL, "leftOffset": 0, "rightOffset": 0.2}, frame)
        assert rec.offsets[Direction.LEFT] == 0.0625
        assert rec.offsets[Direction.RIGHT] == 0.2

    def test_default_keys(self):
        rec = SteerWheelRecord()
        assert rec.keys == {
            Direction.LEFT: "Key_A", Direction.RIGHT: "Key_D",
            Direction.UP: "Key_W", Direction.DOWN: "Key_S",
        }

    def test_max_offset_is_distance_to_edge(self):
        rec = SteerWheelRecord(center_pos=Position(0.3, 0.9))
        assert rec.max_offset(Direction.LEFT) == pytest.approx(0.3)
        assert rec.max_offset(Direction.RIGHT) == pytest.approx(0.7)
        assert rec.max_offset(Direction.UP) == pytest.approx(0.9)
        assert rec.max_offset(Direction.DOWN) == pytest.approx(0.1)

    def test_wire_names(self):
        d = SteerWheelRecord().to_dict()
        for direction in Direction.ALL:
            assert f"{direction}Offset" in d
            assert f"{direction}Key" in d
        assert "offsets" not in d


class TestMouseMoveRecord:
    def test_small_eyes_omitted_when_disabled(self):
        assert "smallEyes" not in MouseMoveRecord().to_dict()

    def test_small_eyes_enabled_when_present_without_flag(self):
        rec = record_from_dict({"type": MappingKind.MOUSE_MOVE, "smallEyes": {"key": "Key_Shift"}})
        assert rec.small_eyes.enabled is True
        assert rec.small_eyes.pos == Position(0.7, 0.7)
        assert rec.to_dict()["smallEyes"]["key"] == "Key_Shift"

    def test_speed_ratio_floor(self):
        rec = record_from_dict({"type": MappingKind.MOUSE_MOVE, "speedRatioX": 0, "speedRatioY": -2})
        assert rec.speed_ratio_x == 0.001
        assert rec.speed_ratio_y == 0.001

    def test_top_level_switch_map_kept(self):
        rec = record_from_dict({"type": MappingKind.MOUSE_MOVE, "switchMap": True})
        assert rec.switch_map is True
        assert rec.to_dict()["switchMap"] is True
        assert "switchMap" not in MouseMoveRecord().to_dict()

    def test_set_speed_ratios_one_axis(self):
        rec = MouseMoveRecord()
        rec.set_speed_ratios(y=3)
        assert rec.speed_ratio_x == 1.0
        assert rec.speed_ratio_y == 3.0


class TestKindTable:
    def test_every_tag_has_an_entry(self):
        tags = {
            MappingKind.CLICK, MappingKind.CLICK_TWICE, MappingKind.CLICK_MULTI,
            MappingKind.DRAG, MappingKind.STEER_WHEEL, MappingKind.MOUSE_MOVE,
        }
        assert set(KIND_TABLE) == tags

    def test_key_support(self):
        assert get_kind_spec(MappingKind.CLICK).supports_key
        assert not get_kind_spec(MappingKind.STEER_WHEEL).supports_key
        assert not get_kind_spec(MappingKind.MOUSE_MOVE).supports_key

    def test_position_keys(self):
        assert get_kind_spec(MappingKind.DRAG).position_key == "startPos"
        assert get_kind_spec(MappingKind.STEER_WHEEL).position_key == "centerPos"
        assert get_kind_spec(MappingKind.CLICK_MULTI).position_key == "pos"

    def test_unsupported_tag(self):
        assert get_kind_spec("KMT_NOPE") is None
        with pytest.raises(KeyError):
            record_from_dict({"type": "KMT_NOPE"})

    def test_multi_click_record_class(self):
        assert get_kind_spec(MappingKind.CLICK_MULTI).record_cls is MultiClickRecord
