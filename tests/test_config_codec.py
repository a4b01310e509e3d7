"""Tests for loading and saving the key mapping JSON document."""
from __future__ import annotations

import json
import logging

import pytest

from models import Direction, MappingKind, Position
from schemas import validate_document, validate_mapping


def _document(*nodes, **extra):
    doc = {"switchKey": "Key_QuoteLeft", "keyMapNodes": list(nodes), "width": 800, "height": 600}
    doc.update(extra)
    return doc


class TestSave:
    def test_click_record_shape(self, ctx):
        ctx.add_mapping(MappingKind.CLICK, Position(0.5, 0.5))
        ctx.registry.nodes[0].set_key("A")
        node = ctx.codec.to_document()["keyMapNodes"][0]
        assert node["type"] == MappingKind.CLICK
        assert node["pos"] == {"x": 0.5, "y": 0.5}
        assert node["key"] == "A"
        assert node["switchMap"] is False
        assert list(node)[:5] == ["type", "comment", "opacity", "key", "pos"]

    def test_document_layout(self, ctx, add):
        add({"type": MappingKind.MOUSE_MOVE})
        add({"type": MappingKind.DRAG})
        doc = ctx.codec.to_document()
        assert list(doc) == ["switchKey", "mouseMoveMap", "keyMapNodes", "width", "height"]
        assert doc["switchKey"] == "Key_QuoteLeft"
        assert doc["mouseMoveMap"]["type"] == MappingKind.MOUSE_MOVE
        assert "smallEyes" not in doc["mouseMoveMap"]
        assert [n["type"] for n in doc["keyMapNodes"]] == [MappingKind.DRAG]
        assert (doc["width"], doc["height"]) == (800, 600)

    def test_no_mouse_move_key_when_absent(self, ctx, add):
        add({"type": MappingKind.CLICK})
        assert "mouseMoveMap" not in ctx.codec.to_document()

    def test_small_eyes_written_when_enabled(self, ctx, add):
        node = add({"type": MappingKind.MOUSE_MOVE})
        node.set_small_eyes(enabled=True)
        eyes = ctx.codec.to_document()["mouseMoveMap"]["smallEyes"]
        assert eyes["enabled"] is True
        assert eyes["pos"] == {"x": 0.7, "y": 0.7}
        assert eyes["key"] == "Key_Alt"

    def test_saved_document_validates(self, ctx, add):
        for kind in (MappingKind.CLICK, MappingKind.CLICK_TWICE, MappingKind.DRAG,
                     MappingKind.STEER_WHEEL, MappingKind.MOUSE_MOVE):
            add({"type": kind})
        add({"type": MappingKind.CLICK_MULTI, "pos": {"x": 0.2, "y": 0.2}})
        ok, errors = validate_document(ctx.codec.to_document())
        assert ok, errors

    def test_save_to_file_remembers_directory(self, ctx, add, tmp_path, settings):
        add({"type": MappingKind.CLICK, "key": "Key_F"})
        path = tmp_path / "out" / "mapping.json"
        path.parent.mkdir()
        assert ctx.codec.save(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["keyMapNodes"][0]["key"] == "Key_F"
        assert settings.get_last_dir() == path.parent.resolve()

    def test_save_failure_returns_false(self, ctx, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            assert not ctx.codec.save(tmp_path / "missing" / "mapping.json")
        assert "Could not write" in caplog.text


class TestLoad:
    def test_round_trip(self, ctx, add):
        add({"type": MappingKind.MOUSE_MOVE, "smallEyes": {"key": "Key_Shift"}, "speedRatioX": 2})
        add({"type": MappingKind.CLICK_TWICE, "key": "Key_Q", "comment": "dbl", "opacity": 0.5})
        add({"type": MappingKind.DRAG, "key": "Key_E", "startDelay": 300, "dragSpeed": 0.4})
        add({"type": MappingKind.CLICK_MULTI, "key": "Key_M", "clickNodes": [
            {"pos": {"x": 0.1, "y": 0.1}, "delay": 0},
            {"pos": {"x": 0.2, "y": 0.3}, "delay": 120},
        ]})
        add({"type": MappingKind.STEER_WHEEL, "centerPos": {"x": 0.3, "y": 0.7}, "leftOffset": 0.12})
        first = ctx.codec.to_document()
        assert ctx.codec.from_document(json.loads(json.dumps(first)))
        assert ctx.codec.to_document() == first

    def test_unknown_fields_survive(self, ctx):
        doc = _document({"type": MappingKind.CLICK, "pos": {"x": 0.4, "y": 0.4}, "vendor": 7})
        assert ctx.codec.from_document(doc)
        assert ctx.codec.to_document()["keyMapNodes"][0]["vendor"] == 7

    def test_load_replaces_nodes(self, ctx, add):
        add({"type": MappingKind.DRAG})
        assert ctx.codec.from_document(_document({"type": MappingKind.CLICK}))
        assert [n.kind for n in ctx.registry.nodes] == [MappingKind.CLICK]

    def test_mouse_move_map_created_first(self, ctx):
        doc = _document({"type": MappingKind.CLICK}, mouseMoveMap={"type": MappingKind.MOUSE_MOVE})
        assert ctx.codec.from_document(doc)
        assert ctx.registry.nodes[0].kind == MappingKind.MOUSE_MOVE

    def test_unsupported_tags_skipped(self, ctx, caplog):
        doc = _document(
            {"type": MappingKind.CLICK, "key": "Key_A"},
            {"type": "KMT_GESTURE"},
            {"type": MappingKind.DRAG, "key": "Key_B"},
        )
        with caplog.at_level(logging.WARNING):
            assert ctx.codec.from_document(doc)
        assert [n.kind for n in ctx.registry.nodes] == [MappingKind.CLICK, MappingKind.DRAG]
        assert "KMT_GESTURE" in caplog.text

    def test_second_mouse_move_skipped(self, ctx, caplog):
        doc = _document(
            {"type": MappingKind.MOUSE_MOVE, "startPos": {"x": 0.2, "y": 0.2}},
            mouseMoveMap={"type": MappingKind.MOUSE_MOVE, "startPos": {"x": 0.6, "y": 0.6}},
        )
        with caplog.at_level(logging.WARNING):
            assert ctx.codec.from_document(doc)
        mouse = ctx.registry.mouse_move_node()
        assert ctx.registry.node_count() == 1
        assert mouse.record.start_pos == Position(0.6, 0.6)

    def test_mouse_move_map_without_type(self, ctx):
        doc = _document({"type": MappingKind.CLICK}, mouseMoveMap={"startPos": {"x": 0.3, "y": 0.7}})
        assert ctx.codec.from_document(doc)
        mouse = ctx.registry.mouse_move_node()
        assert mouse.record.start_pos == Position(0.3, 0.7)
        assert ctx.codec.to_document()["mouseMoveMap"]["type"] == MappingKind.MOUSE_MOVE

    def test_document_without_node_list(self, ctx, add):
        add({"type": MappingKind.DRAG})
        doc = {"switchKey": "Key_F3", "mouseMoveMap": {"startPos": {"x": 0.5, "y": 0.5}}}
        assert ctx.codec.from_document(doc)
        assert [n.kind for n in ctx.registry.nodes] == [MappingKind.MOUSE_MOVE]
        assert ctx.switch_key == "Key_F3"

    def test_mouse_map_switch_flag_round_trip(self, ctx):
        doc = _document(mouseMoveMap={"type": MappingKind.MOUSE_MOVE, "switchMap": True})
        assert ctx.codec.from_document(doc)
        assert ctx.codec.to_document()["mouseMoveMap"]["switchMap"] is True

    def test_mouse_map_with_wrong_type_rejected(self, ctx):
        doc = _document(mouseMoveMap={"type": MappingKind.CLICK})
        assert not ctx.codec.from_document(doc)
        assert ctx.registry.node_count() == 0

    def test_small_eyes_without_flag_is_enabled(self, ctx):
        doc = _document(mouseMoveMap={"type": MappingKind.MOUSE_MOVE, "smallEyes": {"key": "Key_Tab"}})
        assert ctx.codec.from_document(doc)
        node = ctx.registry.mouse_move_node()
        assert node.eyes is not None
        assert node.record.small_eyes.key == "Key_Tab"

    def test_default_steer_offsets_from_frame(self, ctx):
        assert ctx.codec.from_document(_document({"type": MappingKind.STEER_WHEEL}))
        offsets = ctx.registry.nodes[0].record.offsets
        assert offsets[Direction.LEFT] == 0.0625
        assert offsets[Direction.RIGHT] == 0.0625
        assert offsets[Direction.UP] == round(50 / 600, 5)

    def test_loaded_values_not_clamped(self, ctx):
        doc = _document({"type": MappingKind.CLICK, "pos": {"x": 0.0, "y": 1.0}})
        assert ctx.codec.from_document(doc)
        assert ctx.registry.nodes[0].record.pos == Position(0.0, 1.0)

    def test_switch_key_and_size_remembered(self, ctx):
        doc = _document(switchKey="Key_F1", width=1920, height=1080)
        assert ctx.codec.from_document(doc)
        assert ctx.switch_key == "Key_F1"
        assert ctx.document_size == (1920, 1080)
        out = ctx.codec.to_document()
        assert (out["width"], out["height"]) == (1920, 1080)
        assert out["switchKey"] == "Key_F1"

    def test_missing_switch_key_keeps_current(self, ctx):
        ctx.set_switch_key("Key_F2")
        assert ctx.codec.from_document({"keyMapNodes": []})
        assert ctx.switch_key == "Key_F2"
        assert ctx.document_size is None

    def test_load_from_file(self, ctx, tmp_path):
        path = tmp_path / "mapping.json"
        path.write_text(json.dumps(_document({"type": MappingKind.CLICK, "key": "Key_J"})), encoding="utf-8")
        assert ctx.codec.load(path)
        assert ctx.registry.nodes[0].record.key == "Key_J"

    def test_missing_file(self, ctx, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            assert not ctx.codec.load(tmp_path / "nope.json")
        assert "Could not read" in caplog.text


class TestFailedLoadLeavesSessionUntouched:
    @pytest.fixture()
    def existing(self, add):
        return [add({"type": MappingKind.CLICK, "key": "Key_A"}), add({"type": MappingKind.DRAG})]

    def test_invalid_json(self, ctx, existing, caplog):
        with caplog.at_level(logging.ERROR):
            assert not ctx.codec.loads("{ not json")
        assert ctx.registry.nodes == existing
        assert "not valid JSON" in caplog.text

    def test_schema_failure(self, ctx, existing, caplog):
        doc = _document({"type": MappingKind.CLICK, "pos": {"x": "left", "y": 0.5}})
        with caplog.at_level(logging.ERROR):
            assert not ctx.codec.from_document(doc)
        assert ctx.registry.nodes == existing
        assert "failed validation" in caplog.text

    def test_not_an_object(self, ctx, existing):
        assert not ctx.codec.from_document([1, 2, 3])
        assert ctx.registry.nodes == existing

    def test_click_points_not_a_list(self, ctx, existing):
        doc = _document({"type": MappingKind.CLICK_MULTI, "clickNodes": {"pos": {"x": 0.1, "y": 0.1}}})
        assert not ctx.codec.from_document(doc)
        assert ctx.registry.nodes == existing

    def test_unusable_record_after_validation(self, ctx, existing, monkeypatch, caplog):
        import config_codec

        def broken(d, frame=None):
            raise ValueError("bad shape")

        monkeypatch.setattr(config_codec, "record_from_dict", broken)
        with caplog.at_level(logging.ERROR):
            assert not ctx.codec.from_document(_document({"type": MappingKind.CLICK}))
        assert ctx.registry.nodes == existing
        assert "bad shape" in caplog.text


class TestSchema:
    def test_error_paths(self):
        ok, errors = validate_document({"keyMapNodes": [{"comment": "no type"}]})
        assert not ok
        assert errors == ["keyMapNodes -> 0: 'type' is a required property"]

    def test_root_errors(self):
        ok, errors = validate_document("mappings")
        assert not ok
        assert errors[0].startswith("root: ")

    def test_negative_size_rejected(self):
        ok, errors = validate_document(_document(width=-5))
        assert not ok
        assert errors[0].startswith("width: ")

    def test_single_mapping(self):
        assert validate_mapping({"type": MappingKind.DRAG, "startPos": {"x": 0.1, "y": 0.2}}) == (True, [])
        ok, errors = validate_mapping({"type": MappingKind.DRAG, "dragSpeed": "fast"})
        assert not ok
        assert errors == ["dragSpeed: 'fast' is not of type 'number'"]
