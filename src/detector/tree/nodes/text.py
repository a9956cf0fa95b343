from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from ..core import (
    NodeBase, NodeDefinition, NodeType, Capability, Metric, MIXED, _Mixed, parse_common
)

MIXED_MARKER = "mixed"


class FontName(BaseModel):
    family: str
    style: str = "Regular"


class StyledRange(BaseModel):
    """A run of characters [start, end) sharing one style."""
    start: int
    end: int
    font_weight: Optional[float] = None
    font_size: Optional[float] = None


class TextNode(NodeBase):
    """
    Model representing a text layer.
    Metrics are either concrete numbers or MIXED when they vary across the run.
    """
    type: NodeType = NodeType.TEXT
    characters: str = ""
    font_size: Optional[Metric] = None
    font_weight: Optional[Metric] = None
    line_height: Optional[Any] = None
    font_name: Optional[Union[FontName, _Mixed]] = None
    styled_ranges: List[StyledRange] = []

    @property
    def has_mixed_font(self) -> bool:
        return self.font_name is MIXED

    def weight_in_range(self, start: int, end: int) -> Optional[Metric]:
        """
        Returns the font weight for characters [start, end).
        MIXED if the range spans runs of different weights, None if unknown.
        """
        if self.font_weight is not MIXED:
            return self.font_weight

        weights = set()
        for run in self.styled_ranges:
            if run.start < end and start < run.end:
                weights.add(run.font_weight)
        if not weights:
            return None
        if len(weights) > 1:
            return MIXED
        return weights.pop()


def _metric(value: Any) -> Optional[Metric]:
    if isinstance(value, str) and value.lower() == MIXED_MARKER:
        return MIXED
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _font_name(value: Any) -> Optional[Union[FontName, _Mixed]]:
    if isinstance(value, str) and value.lower() == MIXED_MARKER:
        return MIXED
    if isinstance(value, dict) and value.get("family"):
        return FontName(family=value["family"], style=value.get("style", "Regular"))
    return None


def parse_text(raw: Dict[str, Any], child_ids: List[str]) -> TextNode:
    ranges = []
    for run in raw.get("styledRanges") or []:
        if not isinstance(run, dict):
            continue
        ranges.append(StyledRange(
            start=int(run.get("start", 0)),
            end=int(run.get("end", 0)),
            font_weight=run.get("fontWeight"),
            font_size=run.get("fontSize"),
        ))

    return TextNode(
        **parse_common(raw, child_ids),
        characters=str(raw.get("characters") or ""),
        font_size=_metric(raw.get("fontSize")),
        font_weight=_metric(raw.get("fontWeight")),
        line_height=raw.get("lineHeight"),
        font_name=_font_name(raw.get("fontName")),
        styled_ranges=ranges,
    )


# --- DEFINITION ---
DEFINITION = NodeDefinition(
    type_tags=[NodeType.TEXT],
    model=TextNode,
    parser=parse_text,
    capabilities={Capability.HAS_GEOMETRY, Capability.HAS_FILLS, Capability.HAS_TEXT}
)
