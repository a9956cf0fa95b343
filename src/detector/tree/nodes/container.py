from typing import Any, Dict, List

from ..core import NodeBase, NodeDefinition, NodeType, Capability, parse_common


class ContainerNode(NodeBase):
    """
    Model representing a node that holds children: frames, groups, sections,
    components and component sets.
    """
    type: NodeType = NodeType.FRAME


def parse_container(raw: Dict[str, Any], child_ids: List[str]) -> ContainerNode:
    return ContainerNode(**parse_common(raw, child_ids))


# --- DEFINITION ---
DEFINITION = NodeDefinition(
    type_tags=[
        NodeType.DOCUMENT,
        NodeType.PAGE,
        NodeType.FRAME,
        NodeType.GROUP,
        NodeType.SECTION,
        NodeType.COMPONENT,
        NodeType.COMPONENT_SET,
    ],
    model=ContainerNode,
    parser=parse_container,
    capabilities={Capability.HAS_GEOMETRY, Capability.HAS_FILLS, Capability.HAS_CHILDREN}
)
