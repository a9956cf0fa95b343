# src/detector/services/background_resolver_service.py
import logging
from enum import Enum
from typing import Optional, Tuple

from detector.tree.core import NodeBase, PASS_THROUGH_TYPES, RGB, first_solid_color
from detector.tree.models import DesignDocument

logger = logging.getLogger(__name__)


class BackgroundSource(str, Enum):
    PARENT = "parent"
    SIBLING = "sibling"
    ANCESTOR = "ancestor"


class BackgroundResolverService:
    """
    Finds the best-guess color rendered behind a node.

    The document has no flattening step, so the resolver approximates paint
    order with an ordered fallback policy. Each step runs only when the
    previous one found nothing:

    1. The direct parent's first visible solid fill.
    2. The nearest earlier sibling (lower paint index, so drawn behind) whose
       box overlaps the node and which has a visible solid fill. Siblings are
       scanned from index-1 down to 0.
    3. Ancestors upward, skipping groups, components and instances, which
       have no background of their own.

    If nothing matches the result is None. The resolver never substitutes a
    default color; callers decide what to show.
    """

    def __init__(self, document: DesignDocument):
        self.document = document

    def resolve(self, node: NodeBase) -> Optional[RGB]:
        found = self.resolve_with_source(node)
        return found[0] if found else None

    def resolve_with_source(self, node: NodeBase) -> Optional[Tuple[RGB, BackgroundSource]]:
        """Same as `resolve`, also reporting which step produced the color."""
        parent = self.document.get_parent(node)
        if parent is None:
            return None

        color = first_solid_color(self.document.get_fills(parent))
        if color is not None:
            return color, BackgroundSource.PARENT

        color = self._from_siblings_behind(node, parent)
        if color is not None:
            return color, BackgroundSource.SIBLING

        color = self._from_ancestors(parent)
        if color is not None:
            return color, BackgroundSource.ANCESTOR

        logger.debug(f"No background found for node {node.id}")
        return None

    def _from_siblings_behind(self, node: NodeBase, parent: NodeBase) -> Optional[RGB]:
        target_box = self.document.get_bounding_box(node)
        if target_box is None:
            return None

        siblings = self.document.get_children(parent)
        index = next((i for i, s in enumerate(siblings) if s.id == node.id), -1)

        for sibling in reversed(siblings[:max(index, 0)]):
            box = self.document.get_bounding_box(sibling)
            if box is None or not box.overlaps(target_box):
                continue
            color = first_solid_color(self.document.get_fills(sibling))
            if color is not None:
                return color
        return None

    def _from_ancestors(self, start: NodeBase) -> Optional[RGB]:
        current: Optional[NodeBase] = start
        while current is not None:
            if current.type not in PASS_THROUGH_TYPES:
                color = first_solid_color(self.document.get_fills(current))
                if color is not None:
                    return color
            current = self.document.get_parent(current)
        return None
