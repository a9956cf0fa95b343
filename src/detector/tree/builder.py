# src/detector/tree/builder.py
import logging
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import ValidationError

from .core import NodeBase, Capability, parse_common
from .models import DesignDocument
from .registry import NodeRegistry

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Builder responsible for turning a host document export into a DesignDocument.

    The export is a nested mapping of nodes. Ingestion walks it with an explicit
    stack, parses every node through the NodeRegistry and resolves each node's
    capabilities once, so later stages never probe raw properties again.
    """

    def __init__(self):
        """Initializes the builder and ensures the NodeRegistry is populated."""
        NodeRegistry.discover()

    def build(self, payload: Dict[str, Any]) -> DesignDocument:
        """
        Parses a raw export into a DesignDocument.

        Args:
            payload (Dict[str, Any]): Either a full export
                (`{"name", "document", "selection"}`) or a bare root node.

        Returns:
            DesignDocument: The typed arena with parent index and pre-order.
        """
        if not isinstance(payload, dict):
            return DesignDocument(load_errors=["payload is not a mapping"])

        root_raw = payload.get("document", payload)
        doc = DesignDocument(name=str(payload.get("name", "")))

        if not self._is_node_payload(root_raw):
            doc.load_errors.append("root node has no id")
            logger.warning("Document root has no id, nothing to ingest.")
            return doc

        # (raw payload, parent id) pairs; children pushed in reverse for pre-order.
        stack: List[Tuple[Dict[str, Any], Optional[str]]] = [(root_raw, None)]
        while stack:
            raw, parent_id = stack.pop()
            node_id = str(raw["id"])

            if node_id in doc.nodes:
                doc.load_errors.append(f"duplicate id {node_id}")
                logger.warning(f"Duplicate node id {node_id}, skipping the later occurrence.")
                continue

            children_raw = []
            for child in raw.get("children") or []:
                if self._is_node_payload(child):
                    children_raw.append(child)
                else:
                    doc.load_errors.append(f"malformed node (no id) under {node_id}")
                    logger.warning(f"Skipping child without id under node {node_id}.")
            child_ids = [str(c["id"]) for c in children_raw]

            node = self._parse_node(raw, child_ids)
            if node is None:
                doc.load_errors.append(f"malformed node {node_id}")
                parent = doc.nodes.get(parent_id) if parent_id is not None else None
                if parent is None:
                    continue
                # The children take the rejected node's place under its parent.
                slot = parent.child_ids.index(node_id)
                parent.child_ids[slot:slot + 1] = child_ids
                for child in reversed(children_raw):
                    stack.append((child, parent.id))
                logger.info(f"Reattached {len(child_ids)} child(ren) of {node_id} to {parent.id}.")
                continue

            doc.nodes[node.id] = node
            doc.parents[node.id] = parent_id
            doc.order.append(node.id)
            if doc.root_id is None:
                doc.root_id = node.id

            for child in reversed(children_raw):
                stack.append((child, node.id))

        # Drop child ids whose payload was rejected.
        for node in doc.nodes.values():
            node.child_ids = [c for c in dict.fromkeys(node.child_ids) if c in doc.nodes and doc.parents.get(c) == node.id]

        selection = payload.get("selection") or []
        doc.selection = [str(i) for i in selection if str(i) in doc.nodes]

        logger.debug(f"Ingested {len(doc.nodes)} nodes ({len(doc.load_errors)} load errors).")
        return doc

    @staticmethod
    def _is_node_payload(raw: Any) -> bool:
        return isinstance(raw, dict) and raw.get("id") not in (None, "")

    def _parse_node(self, raw: Dict[str, Any], child_ids: List[str]) -> Optional[NodeBase]:
        """
        Parses one node with the parser registered for its type tag.
        Falls back to the generic NodeBase for unknown tags.
        """
        try:
            common = parse_common(raw, child_ids)
            definition = NodeRegistry.get_definition(common["type"])
            if definition:
                node = definition.parser(raw, child_ids)
                allowed = definition.capabilities
            else:
                node = NodeBase(**common)
                allowed = frozenset(Capability)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed node {raw.get('id')}: {e}")
            return None

        node.capabilities = self._resolve_capabilities(node, allowed)
        return node

    @staticmethod
    def _resolve_capabilities(node: NodeBase, allowed: FrozenSet[Capability]) -> FrozenSet[Capability]:
        present = set()
        if node.bbox is not None:
            present.add(Capability.HAS_GEOMETRY)
        if node.fills is not None:
            present.add(Capability.HAS_FILLS)
        if node.is_text:
            present.add(Capability.HAS_TEXT)
        if node.child_ids:
            present.add(Capability.HAS_CHILDREN)
        return frozenset(present & set(allowed))
