from typing import Any, Dict, List

from ..core import NodeBase, NodeDefinition, NodeType, Capability, parse_common


class ShapeNode(NodeBase):
    """Model representing vector and shape layers (rectangles, ellipses, vectors...)."""
    type: NodeType = NodeType.RECTANGLE


def parse_shape(raw: Dict[str, Any], child_ids: List[str]) -> ShapeNode:
    # Boolean operations keep their operands as children.
    return ShapeNode(**parse_common(raw, child_ids))


# --- DEFINITION ---
DEFINITION = NodeDefinition(
    type_tags=[
        NodeType.RECTANGLE,
        NodeType.ELLIPSE,
        NodeType.POLYGON,
        NodeType.STAR,
        NodeType.LINE,
        NodeType.VECTOR,
        NodeType.BOOLEAN_OPERATION,
        NodeType.WIDGET,
    ],
    model=ShapeNode,
    parser=parse_shape,
    capabilities={Capability.HAS_GEOMETRY, Capability.HAS_FILLS, Capability.HAS_CHILDREN}
)
