from typing import Any, Dict, List, Optional

from ..core import NodeBase, NodeDefinition, NodeType, Capability, parse_common


class InstanceNode(NodeBase):
    """
    Model representing a component instance.
    The master component is resolved through the host, never stored here.
    """
    type: NodeType = NodeType.INSTANCE
    main_component_id: Optional[str] = None


def parse_instance(raw: Dict[str, Any], child_ids: List[str]) -> InstanceNode:
    main_id = raw.get("mainComponentId")
    return InstanceNode(
        **parse_common(raw, child_ids),
        main_component_id=str(main_id) if main_id is not None else None,
    )


# --- DEFINITION ---
DEFINITION = NodeDefinition(
    type_tags=[NodeType.INSTANCE],
    model=InstanceNode,
    parser=parse_instance,
    capabilities={Capability.HAS_GEOMETRY, Capability.HAS_FILLS, Capability.HAS_CHILDREN}
)
