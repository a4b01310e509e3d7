"""Tests for node creation by tag, single selection, deletion and z-order."""
from __future__ import annotations

import logging

import pytest

from models import MappingKind, Position


class TestCreation:
    def test_nodes_in_creation_order(self, ctx, add):
        a = add({"type": MappingKind.CLICK})
        b = add({"type": MappingKind.DRAG})
        assert ctx.registry.nodes == [a, b]
        assert ctx.registry.index_of(b) == 1
        assert a.shape.scene() is ctx.scene

    def test_unsupported_tag_is_skipped(self, ctx, caplog):
        with caplog.at_level(logging.WARNING):
            assert ctx.registry.create_node({"type": "KMT_GESTURE"}) is None
        assert ctx.registry.node_count() == 0
        assert "KMT_GESTURE" in caplog.text

    def test_second_mouse_move_rejected(self, ctx, add, caplog):
        first = add({"type": MappingKind.MOUSE_MOVE})
        with caplog.at_level(logging.WARNING):
            assert ctx.registry.create_node({"type": MappingKind.MOUSE_MOVE}) is None
        assert ctx.registry.mouse_move_node() is first
        assert ctx.registry.node_count() == 1
        assert "mouse-move" in caplog.text

    def test_mappings_exclude_mouse_move(self, ctx, add):
        add({"type": MappingKind.MOUSE_MOVE})
        add({"type": MappingKind.CLICK, "key": "Key_A"})
        mappings = ctx.registry.mappings()
        assert [m["type"] for m in mappings] == [MappingKind.CLICK]

    def test_labels(self, ctx, add):
        add({"type": MappingKind.CLICK, "key": "Key_A", "comment": "fire"})
        add({"type": MappingKind.DRAG, "key": "Key_Space"})
        add({"type": MappingKind.CLICK_MULTI, "pos": {"x": 0.1, "y": 0.1},
             "comment": "a very long comment for this one"})
        assert ctx.registry.labels() == [
            "Single Click - (A) - fire",
            "Drag - (␣)",
            "Multi Click - a very long comment ...",
        ]

    def test_find_node_from_child_item(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        assert ctx.registry.find_node(node.badge.text) is node
        assert ctx.registry.find_node(None) is None

    def test_add_mapping_selects(self, ctx):
        node = ctx.add_mapping(MappingKind.DRAG, Position(0.3, 0.3))
        assert ctx.registry.selected is node
        assert node.record.start_pos == Position(0.3, 0.3)

    def test_drop_mapping_at_scene_position(self, ctx):
        node = ctx.drop_mapping(MappingKind.CLICK, 200, 450)
        assert node.record.pos == Position(0.25, 0.75)

    def test_drop_unknown_kind(self, ctx):
        assert ctx.drop_mapping("KMT_NOPE", 10, 10) is None


class TestSelection:
    def test_single_selection(self, ctx, add):
        a = add({"type": MappingKind.CLICK})
        b = add({"type": MappingKind.CLICK})
        ctx.registry.select_node(a)
        ctx.registry.select_node(b)
        assert ctx.registry.selected is b
        assert b.selected and not a.selected
        assert a.handle.graphicsEffect() is None
        assert b.handle.graphicsEffect() is not None

    def test_selection_releases_previous_capture(self, ctx, add):
        a = add({"type": MappingKind.CLICK})
        b = add({"type": MappingKind.CLICK})
        a.begin_key_capture(a.handle)
        assert ctx.key_capture.is_capturing_for(a)
        ctx.registry.select_node(b)
        assert not ctx.key_capture.is_capturing
        assert not a.badge.is_active

    def test_empty_click_deselects(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        ctx.registry.select_node(node)
        ctx.registry.deselect_node()
        assert ctx.registry.selected is None
        assert not node.selected

    def test_selecting_unknown_node_is_ignored(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        ctx.registry.delete_node(node)
        ctx.registry.select_node(node)
        assert ctx.registry.selected is None


class TestListeners:
    def test_callbacks(self, ctx, add):
        events = []
        ctx.registry.configure_listeners(
            on_added=lambda n: events.append(("added", n.kind)),
            on_removed=lambda n: events.append(("removed", n.kind)),
            on_selection_changed=lambda n: events.append(("selected", n.kind if n else None)),
            on_node_changed=lambda n: events.append(("changed", n.kind)),
        )
        node = add({"type": MappingKind.CLICK})
        ctx.registry.select_node(node)
        node.begin_drag(node.handle)
        node.drag_handle(node.handle, 100, 100)
        node.end_drag(node.handle)
        ctx.registry.delete_node(node)
        assert events == [
            ("added", MappingKind.CLICK),
            ("selected", MappingKind.CLICK),
            ("changed", MappingKind.CLICK),
            ("selected", None),
            ("removed", MappingKind.CLICK),
        ]

    def test_reselecting_same_node_does_not_notify(self, ctx, add):
        seen = []
        ctx.registry.configure_listeners(on_selection_changed=seen.append)
        node = add({"type": MappingKind.CLICK})
        ctx.registry.select_node(node)
        ctx.registry.select_node(node)
        assert seen == [node]


class TestDeletion:
    def test_delete_removes_from_scene(self, ctx, add):
        node = add({"type": MappingKind.DRAG})
        shape = node.shape
        assert ctx.registry.delete_node(node)
        assert shape.scene() is None
        assert not ctx.registry.contains(node)
        assert not ctx.registry.delete_node(node)

    def test_delete_selected(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        assert not ctx.registry.delete_selected_node()
        ctx.registry.select_node(node)
        assert ctx.registry.delete_selected_node()
        assert ctx.registry.node_count() == 0

    def test_delete_releases_capture(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        node.begin_key_capture(node.handle)
        ctx.registry.delete_node(node)
        assert not ctx.key_capture.is_capturing

    def test_clear_all(self, ctx, add):
        for kind in (MappingKind.CLICK, MappingKind.DRAG, MappingKind.STEER_WHEEL):
            add({"type": kind})
        ctx.registry.clear_all()
        assert ctx.registry.node_count() == 0
        assert ctx.registry.selected is None

    def test_discard_multi_click_point(self, ctx, add):
        node = add({"type": MappingKind.CLICK_MULTI, "clickNodes": [
            {"pos": {"x": 0.1, "y": 0.1}}, {"pos": {"x": 0.2, "y": 0.2}}]})
        assert ctx.registry.discard(node, node.points[1])
        assert ctx.registry.contains(node)
        assert len(node.points) == 1

    def test_discard_whole_node(self, ctx, add):
        node = add({"type": MappingKind.CLICK})
        assert ctx.registry.discard(node, node.handle)
        assert ctx.registry.node_count() == 0


class TestClone:
    def test_clone_copies_record_and_keeps_source_selected(self, ctx, add):
        source = add({"type": MappingKind.DRAG, "key": "Key_E", "comment": "swipe"})
        ctx.registry.select_node(source)
        clone = ctx.registry.clone_node(source)
        assert clone is not source
        assert clone.to_record() == source.to_record()
        assert clone.record is not source.record
        assert ctx.registry.selected is source

    def test_clone_of_mouse_move_rejected(self, ctx, add):
        node = add({"type": MappingKind.MOUSE_MOVE})
        assert ctx.registry.clone_node(node) is None


class TestZOrder:
    @pytest.fixture()
    def three(self, add):
        return [add({"type": MappingKind.CLICK}) for _ in range(3)]

    def test_creation_stacks_upwards(self, three):
        assert [n.shape.zValue() for n in three] == [1000, 1010, 1020]

    def test_move_to_front(self, ctx, three):
        ctx.registry.select_node(three[0])
        ctx.registry.move_selected_to_front()
        assert three[0].shape.zValue() > max(n.shape.zValue() for n in three[1:])
        assert [n.shape.zValue() for n in three] == [1020, 1000, 1010]

    def test_move_to_back(self, ctx, three):
        ctx.registry.select_node(three[2])
        ctx.registry.move_selected_to_back()
        assert three[2].shape.zValue() == 990

    def test_list_order_unchanged(self, ctx, three):
        ctx.registry.select_node(three[0])
        ctx.registry.move_selected_to_front()
        assert ctx.registry.nodes == three

    def test_without_selection_nothing_moves(self, ctx, three):
        ctx.registry.move_selected_to_front()
        assert [n.shape.zValue() for n in three] == [1000, 1010, 1020]
