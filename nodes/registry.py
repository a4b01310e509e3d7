"""
nodes/registry.py

Owns the nodes of one editing session: creation by tag, the single
selection, z-order, deletion and the callbacks a node list listens to.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from PyQt6.QtWidgets import QGraphicsItem

from models import MappingKind, MappingRecord, record_from_dict
from canvas.items import node_for_item
from debug_trace import trace
from nodes.base import MappingNode

if TYPE_CHECKING:
    from session import EditorContext

log = logging.getLogger(__name__)

NodeCallback = Callable[[MappingNode], None]


class NodeRegistry:
    """
    Ordered collection of the live nodes of a session.

    List order is creation order and is what gets serialized.  Z-order is
    separate and only changes on explicit front/back requests.

    Args:
        ctx: Editing session; supplies the scene, scale and key capture.
    """

    def __init__(self, ctx: "EditorContext"):
        self.ctx = ctx
        self._nodes: List[MappingNode] = []
        self.selected: Optional[MappingNode] = None
        self._on_added: Optional[NodeCallback] = None
        self._on_removed: Optional[NodeCallback] = None
        self._on_selection_changed: Optional[Callable[[Optional[MappingNode]], None]] = None
        self._on_node_changed: Optional[NodeCallback] = None

    def configure_listeners(
        self,
        on_added: Optional[NodeCallback] = None,
        on_removed: Optional[NodeCallback] = None,
        on_selection_changed: Optional[Callable[[Optional[MappingNode]], None]] = None,
        on_node_changed: Optional[NodeCallback] = None,
    ):
        """
        Configure callbacks for a node list kept in step with the registry.

        Args:
            on_added: Called after a node is created and shown.
            on_removed: Called after a node is destroyed.
            on_selection_changed: Called with the newly selected node or None.
            on_node_changed: Called when a node's record changed (drag end, key, comment...).
        """
        self._on_added = on_added
        self._on_removed = on_removed
        self._on_selection_changed = on_selection_changed
        self._on_node_changed = on_node_changed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[MappingNode]:
        return list(self._nodes)

    def node_count(self) -> int:
        return len(self._nodes)

    def contains(self, node: MappingNode) -> bool:
        return node in self._nodes

    def index_of(self, node: MappingNode) -> int:
        return self._nodes.index(node)

    def mouse_move_node(self) -> Optional[MappingNode]:
        for node in self._nodes:
            if node.kind == MappingKind.MOUSE_MOVE:
                return node
        return None

    def mappings(self) -> List[Dict[str, Any]]:
        """Records of every node except the mouse-move one, in list order."""
        return [n.to_record() for n in self._nodes if n.kind != MappingKind.MOUSE_MOVE]

    def labels(self) -> List[str]:
        return [n.label() for n in self._nodes]

    def find_node(self, item: Optional[QGraphicsItem]) -> Optional[MappingNode]:
        node = node_for_item(item)
        return node if node in self._nodes else None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_node(self, source: Union[Dict[str, Any], MappingRecord]) -> Optional[MappingNode]:
        """
        Create a node from a record dict (or a ready record) and add it to the scene.

        Returns:
            The new node, or None if the tag is unsupported or a second
            mouse-move mapping was requested.
        """
        from nodes import NODE_CLASSES

        if isinstance(source, MappingRecord):
            record = source
        else:
            try:
                record = record_from_dict(source, frame=self.ctx.space.frame())
            except KeyError:
                log.warning("Unsupported mapping type: %s", source.get("type") if isinstance(source, dict) else source)
                return None

        node_cls = NODE_CLASSES.get(record.type)
        if node_cls is None:
            log.warning("Unsupported mapping type: %s", record.type)
            return None
        if record.type == MappingKind.MOUSE_MOVE and self.mouse_move_node() is not None:
            log.warning("Only one mouse-move mapping is allowed; ignoring the new one")
            return None

        node = node_cls(self.ctx, record)
        node.shape.setZValue(self._next_z())
        self.ctx.scene.addItem(node.shape)
        node.set_scale(self.ctx.scale.current)
        self._nodes.append(node)
        trace(f"registry add {record.type} (#{len(self._nodes)})", "NODE")
        if self._on_added:
            self._on_added(node)
        return node

    def clone_node(self, node: MappingNode) -> Optional[MappingNode]:
        """Create a copy of *node* at the same position; the source stays selected."""
        if node not in self._nodes:
            return None
        clone = self.create_node(node.to_record())
        if clone is not None:
            self.select_node(node)
        return clone

    def _next_z(self) -> float:
        zorder = self.ctx.settings.settings.canvas.zorder
        if not self._nodes:
            return zorder.base
        return max(n.shape.zValue() for n in self._nodes) + zorder.step

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_node(self, node: Optional[MappingNode], from_list: bool = False) -> None:
        """
        Make *node* the single selected node.

        Selecting from the node list also pulses the node's opacity so it can
        be found on the canvas.
        """
        if node is not None and node not in self._nodes:
            return
        previous = self.selected
        if previous is not None and previous is not node:
            previous.deselect()
            self.ctx.key_capture.release_owner(previous)
        self.selected = node
        if node is not None:
            node.select(pulse=from_list)
        if previous is not node and self._on_selection_changed:
            self._on_selection_changed(node)

    def deselect_node(self) -> None:
        self.select_node(None)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_node(self, node: MappingNode) -> bool:
        if node not in self._nodes:
            return False
        if self.selected is node:
            self.selected = None
            if self._on_selection_changed:
                self._on_selection_changed(None)
        self._nodes.remove(node)
        node.destroy()
        trace(f"registry remove {node.kind} ({len(self._nodes)} left)", "NODE")
        if self._on_removed:
            self._on_removed(node)
        return True

    def delete_selected_node(self) -> bool:
        if self.selected is None:
            return False
        return self.delete_node(self.selected)

    def discard(self, node: MappingNode, handle=None) -> bool:
        """
        Drop onto the delete zone: a multi-click point drops just that point,
        anything else drops the whole node.
        """
        if handle is not None and hasattr(node, "delete_point") and handle in getattr(node, "points", []):
            return node.delete_point(handle)
        return self.delete_node(node)

    def clear_all(self) -> None:
        for node in list(self._nodes):
            self.delete_node(node)

    # ------------------------------------------------------------------
    # Z-order
    # ------------------------------------------------------------------

    def move_selected_to_front(self) -> None:
        node = self.selected
        if node is None or len(self._nodes) <= 1:
            return
        zorder = self.ctx.settings.settings.canvas.zorder
        others = sorted((n for n in self._nodes if n is not node), key=lambda n: n.shape.zValue())
        for idx, other in enumerate(others):
            other.shape.setZValue(zorder.base + idx * zorder.step)
        node.shape.setZValue(zorder.base + len(others) * zorder.step)

    def move_selected_to_back(self) -> None:
        node = self.selected
        if node is None or len(self._nodes) <= 1:
            return
        zorder = self.ctx.settings.settings.canvas.zorder
        new_z = min(n.shape.zValue() for n in self._nodes) - zorder.step
        if new_z >= 0:
            node.shape.setZValue(new_z)
            return
        others = sorted((n for n in self._nodes if n is not node), key=lambda n: n.shape.zValue())
        node.shape.setZValue(zorder.base)
        for idx, other in enumerate(others):
            other.shape.setZValue(zorder.base + (idx + 1) * zorder.step)

    # ------------------------------------------------------------------
    # Session-wide updates
    # ------------------------------------------------------------------

    def apply_scale(self, scale: float) -> None:
        for node in self._nodes:
            node.set_scale(scale)

    def relayout_all(self) -> None:
        for node in self._nodes:
            node.relayout()

    def node_changed(self, node: MappingNode) -> None:
        if node in self._nodes and self._on_node_changed:
            self._on_node_changed(node)
