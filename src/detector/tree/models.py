# src/detector/tree/models.py
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from .core import NodeBase, BoundingBox, Paint, Capability, Metric
from .nodes.text import TextNode


class DesignDocument(BaseModel):
    """
    Represents an ingested design document.

    Nodes live in a flat arena keyed by id; the tree shape is kept in the
    per-node child id lists and a parent index. This model is the read-only
    query surface the detection services use.
    """
    name: str = ""
    root_id: Optional[str] = None
    nodes: Dict[str, NodeBase] = Field(default_factory=dict)
    parents: Dict[str, Optional[str]] = Field(default_factory=dict)
    order: List[str] = Field(default_factory=list)  # pre-order of every node
    selection: List[str] = Field(default_factory=list)
    load_errors: List[str] = Field(default_factory=list)

    # --- Lookup ---

    def get_node(self, node_id: str) -> Optional[NodeBase]:
        return self.nodes.get(node_id)

    @property
    def root(self) -> Optional[NodeBase]:
        return self.nodes.get(self.root_id) if self.root_id else None

    def get_selection(self) -> List[NodeBase]:
        """Returns selected nodes in selection order, dropping unknown ids."""
        return [self.nodes[i] for i in self.selection if i in self.nodes]

    # --- Tree queries ---

    def get_children(self, node: NodeBase) -> List[NodeBase]:
        return [self.nodes[c] for c in node.child_ids if c in self.nodes]

    def get_parent(self, node: NodeBase) -> Optional[NodeBase]:
        parent_id = self.parents.get(node.id)
        return self.nodes.get(parent_id) if parent_id else None

    def get_bounding_box(self, node: NodeBase) -> Optional[BoundingBox]:
        return node.bbox if node.has(Capability.HAS_GEOMETRY) else None

    def get_fills(self, node: NodeBase) -> Optional[List[Paint]]:
        return node.fills if node.has(Capability.HAS_FILLS) else None

    def iter_subtree(self, node: NodeBase) -> Iterator[NodeBase]:
        """Pre-order walk of a subtree using an explicit stack."""
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            # Reverse so the first child is visited first.
            for child_id in reversed(current.child_ids):
                child = self.nodes.get(child_id)
                if child is not None:
                    stack.append(child)

    # --- Text queries ---

    def get_characters(self, node: NodeBase) -> str:
        return node.characters if isinstance(node, TextNode) else ""

    def get_font_size(self, node: NodeBase) -> Optional[Metric]:
        return node.font_size if isinstance(node, TextNode) else None

    def get_font_weight(self, node: NodeBase) -> Optional[Metric]:
        return node.font_weight if isinstance(node, TextNode) else None

    def get_range_weight(self, node: NodeBase, start: int, end: int) -> Optional[Metric]:
        if not isinstance(node, TextNode):
            return None
        return node.weight_in_range(start, end)
