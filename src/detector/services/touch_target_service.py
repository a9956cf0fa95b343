# src/detector/services/touch_target_service.py
import logging
from enum import Enum
from typing import Iterable, Optional

from detector.host import HostBridge
from detector.model import DetectionSettings, Issue, IssueType, NodeData, SEVERITY_BY_TYPE
from detector.tree.core import BoundingBox, NodeBase, NodeType
from detector.tree.models import DesignDocument

logger = logging.getLogger(__name__)


class TouchTargetKind(str, Enum):
    SIZE = "Size"
    SPACING = "Spacing"


def _axis_overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> float:
    return max(0.0, min(a_end, b_end) - max(a_start, b_start))


def _edge_gap(a_start: float, a_end: float, b_start: float, b_end: float) -> float:
    """Smaller of the two edge-to-edge distances between two intervals."""
    return min(abs(b_start - a_end), abs(a_start - b_end))


class TouchTargetService:
    """
    Classifies interactive elements and checks their size and spacing.

    Candidates are found by name: the node's own name, or for a component
    instance the name of its master component, must contain one of the
    configured keywords. Text layers are never candidates by their own name.
    """

    def __init__(self, document: DesignDocument, host: HostBridge, settings: DetectionSettings):
        self.document = document
        self.host = host
        self.settings = settings

    def _name_matches(self, name: Optional[str]) -> bool:
        if not name:
            return False
        lowered = name.lower()
        return any(keyword in lowered for keyword in self.settings.touch_target_keywords)

    async def is_touch_target_candidate(self, node: NodeBase) -> bool:
        """
        True when the node's name, or its master component's name, contains a keyword.
        Host resolution failures propagate to the caller.
        """
        if not node.is_text and self._name_matches(node.name):
            return True

        if node.type == NodeType.INSTANCE:
            master = await self.host.resolve_master_component(node)
            if master is not None and self._name_matches(master.name):
                return True

        return False

    def is_too_small(self, node: NodeBase, min_size: Optional[float] = None) -> bool:
        box = self.document.get_bounding_box(node)
        if box is None:
            return False
        limit = self.settings.min_touch_target_size if min_size is None else min_size
        return box.width < limit or box.height < limit

    def is_too_close(
            self,
            node: NodeBase,
            pool: Iterable[NodeBase],
            min_spacing: Optional[float] = None
    ) -> bool:
        """
        Checks the node against every other boxed node in the pool.

        Neighbors sharing vertical space are compared on their horizontal gap,
        neighbors sharing horizontal space on their vertical gap. A gap equal
        to the minimum spacing passes.
        """
        box = self.document.get_bounding_box(node)
        if box is None:
            return False
        limit = self.settings.min_touch_target_spacing if min_spacing is None else min_spacing

        for other in pool:
            if other.id == node.id:
                continue
            other_box = self.document.get_bounding_box(other)
            if other_box is None:
                continue
            if self._violates_spacing(box, other_box, limit):
                logger.debug(f"Touch target {node.id} is closer than {limit}px to {other.id}")
                return True
        return False

    @staticmethod
    def _violates_spacing(a: BoundingBox, b: BoundingBox, limit: float) -> bool:
        vertical_overlap = _axis_overlap(a.y, a.bottom, b.y, b.bottom)
        if vertical_overlap > 0 and _edge_gap(a.x, a.right, b.x, b.right) < limit:
            return True

        horizontal_overlap = _axis_overlap(a.x, a.right, b.x, b.right)
        if horizontal_overlap > 0 and _edge_gap(a.y, a.bottom, b.y, b.bottom) < limit:
            return True

        return False

    def build_issue(self, node: NodeBase, kind: TouchTargetKind) -> Optional[Issue]:
        """
        Creates a touch target Issue, or None when the node has no usable id or name.
        """
        if not node.id or not node.name:
            logger.warning(f"Touch target node without id/name skipped: id={node.id!r} name={node.name!r}")
            return None

        issue_type = IssueType.TOUCH_TARGET_SIZE if kind == TouchTargetKind.SIZE else IssueType.TOUCH_TARGET_SPACING
        box = self.document.get_bounding_box(node)

        return Issue(
            type=issue_type,
            severity=SEVERITY_BY_TYPE[issue_type],
            description=self.describe(kind),
            node_data=NodeData(
                id=node.id,
                name=node.name,
                node_type=node.raw_type or node.type.value,
                width=box.width if box else None,
                height=box.height if box else None,
                required_size=self.settings.required_size_label,
            ),
        )

    def describe(self, kind: TouchTargetKind) -> str:
        if kind == TouchTargetKind.SIZE:
            return (
                "Touch target size is too small for accessibility. "
                f"Should be at least {self.settings.required_size_label.replace(' ', '')}."
            )
        spacing = f"{self.settings.min_touch_target_spacing:g}"
        return (
            "Spacing between touch targets is too small for accessibility. "
            f"Should be at least {spacing}px to the nearest element in all directions."
        )