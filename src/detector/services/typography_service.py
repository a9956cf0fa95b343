# src/detector/services/typography_service.py
import logging
from typing import Any, Optional

from detector.tree.core import NodeBase, is_mixed
from detector.tree.models import DesignDocument

logger = logging.getLogger(__name__)

DEFAULT_BOLD_WEIGHT = 700


class TypographyService:
    """Legibility and boldness checks for text runs."""

    def __init__(self, document: DesignDocument, min_font_size: float = 11, bold_weight: float = DEFAULT_BOLD_WEIGHT):
        self.document = document
        self.min_font_size = min_font_size
        self.bold_weight = bold_weight

    def is_legible_size(self, font_size: float, minimum: Optional[float] = None) -> bool:
        """Inclusive lower bound: a size equal to the minimum is legible."""
        return font_size >= (self.min_font_size if minimum is None else minimum)

    def is_bold(self, weight: Any, node: Optional[NodeBase] = None, start: int = 0, end: int = 0) -> bool:
        """
        Determines whether a weight, or any character in [start, end) of a
        mixed-weight run, is bold.

        Args:
            weight: A concrete weight or MIXED.
            node: The text node, needed only when `weight` is MIXED.
            start: First character offset (inclusive).
            end: Last character offset (exclusive).

        Returns:
            bool: True as soon as one bold character is found. Out-of-range
            or empty ranges give False.
        """
        if is_mixed(weight):
            return self._any_bold_in_range(node, start, end)

        if not weight or isinstance(weight, bool) or not isinstance(weight, (int, float)):
            return False

        return weight >= self.bold_weight

    def _any_bold_in_range(self, node: Optional[NodeBase], start: int, end: int) -> bool:
        if node is None:
            return False

        text_length = len(self.document.get_characters(node))
        if start < 0 or end > text_length or start >= end:
            logger.debug(f"Invalid range on node {node.id}: start={start}, end={end}, length={text_length}")
            return False

        for i in range(start, end):
            range_weight = self.document.get_range_weight(node, i, i + 1)
            if isinstance(range_weight, (int, float)) and range_weight >= self.bold_weight:
                return True
        return False
