# src/detector/tree/core.py
import logging
from enum import Enum
from typing import Dict, Any, List, Callable, Type, Optional, Tuple, Set, FrozenSet, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class _Mixed:
    """
    Sentinel for text properties that vary across a run of characters.
    There is exactly one instance: MIXED.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MIXED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Mixed, ())


MIXED = _Mixed()

# Text metrics are a concrete number or the MIXED sentinel.
Metric = Union[float, _Mixed]

# Type alias for a color: (R, G, B), each channel 0..255
RGB = Tuple[int, int, int]


def is_mixed(value: Any) -> bool:
    return value is MIXED


class NodeType(str, Enum):
    """Type tags used by the host document model."""
    DOCUMENT = "DOCUMENT"
    PAGE = "PAGE"
    FRAME = "FRAME"
    GROUP = "GROUP"
    SECTION = "SECTION"
    COMPONENT = "COMPONENT"
    COMPONENT_SET = "COMPONENT_SET"
    INSTANCE = "INSTANCE"
    TEXT = "TEXT"
    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    POLYGON = "POLYGON"
    STAR = "STAR"
    LINE = "LINE"
    VECTOR = "VECTOR"
    BOOLEAN_OPERATION = "BOOLEAN_OPERATION"
    WIDGET = "WIDGET"
    SLICE = "SLICE"
    UNKNOWN = "UNKNOWN"


# Containers without a rendered background of their own.
PASS_THROUGH_TYPES: FrozenSet[NodeType] = frozenset({
    NodeType.GROUP,
    NodeType.COMPONENT,
    NodeType.INSTANCE,
})


class Capability(str, Enum):
    """What a node exposes. Resolved once at ingestion time."""
    HAS_GEOMETRY = "has_geometry"
    HAS_FILLS = "has_fills"
    HAS_TEXT = "has_text"
    HAS_CHILDREN = "has_children"


class BoundingBox(BaseModel):
    """Axis-aligned box in device-independent pixels."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def overlaps(self, other: "BoundingBox") -> bool:
        """Two boxes overlap iff each start is strictly less than the other's end on both axes."""
        return (
            self.x < other.right and other.x < self.right and
            self.y < other.bottom and other.y < self.bottom
        )


class PaintColor(BaseModel):
    """Paint color as delivered by the host: channels in 0..1."""
    model_config = ConfigDict(frozen=True)

    r: float = Field(ge=0.0, le=1.0)
    g: float = Field(ge=0.0, le=1.0)
    b: float = Field(ge=0.0, le=1.0)


class Paint(BaseModel):
    """A single fill entry. Only SOLID paints carry a color."""
    model_config = ConfigDict(frozen=True)

    type: str
    visible: bool = True
    color: Optional[PaintColor] = None

    @property
    def is_visible_solid(self) -> bool:
        return self.type.upper() == "SOLID" and self.visible and self.color is not None

    def to_rgb(self) -> Optional[RGB]:
        """Converts the 0..1 paint channels to 0..255 integers."""
        if self.color is None:
            return None
        return (
            int(round(self.color.r * 255)),
            int(round(self.color.g * 255)),
            int(round(self.color.b * 255)),
        )


def first_solid_color(fills: Optional[List[Paint]]) -> Optional[RGB]:
    """Returns the color of the first visible SOLID paint, if any."""
    if not fills:
        return None
    for paint in fills:
        if paint.is_visible_solid:
            return paint.to_rgb()
    return None


class NodeBase(BaseModel):
    """
    Base data model representing a generic design node in the typed tree.
    Children are held by the DesignDocument arena; nodes only keep child ids.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    type: NodeType = NodeType.UNKNOWN
    raw_type: str = ""
    name: Optional[str] = None
    bbox: Optional[BoundingBox] = None
    fills: Optional[List[Paint]] = None
    child_ids: List[str] = Field(default_factory=list)
    capabilities: FrozenSet[Capability] = Field(default_factory=frozenset)

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def is_text(self) -> bool:
        return self.type == NodeType.TEXT


# Parser signature: (raw payload, child ids) -> typed node
NodeParser = Callable[[Dict[str, Any], List[str]], NodeBase]


class NodeDefinition:
    """
    Configuration object binding one or more host type tags to a node model and parser.
    """

    def __init__(
            self,
            type_tags: List[NodeType],
            model: Type[NodeBase],
            parser: NodeParser,
            capabilities: Optional[Set[Capability]] = None
    ):
        self.type_tags = type_tags
        self.model = model
        self.parser = parser
        self.capabilities: FrozenSet[Capability] = frozenset(capabilities or set())


def coerce_node_type(tag: Any) -> NodeType:
    try:
        return NodeType(str(tag).upper())
    except ValueError:
        return NodeType.UNKNOWN


def parse_bbox(raw: Dict[str, Any]) -> Optional[BoundingBox]:
    """Reads x/y/width/height from a raw payload. Returns None unless all four are numbers."""
    values = [raw.get(k) for k in ("x", "y", "width", "height")]
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in values):
        return None
    return BoundingBox(x=values[0], y=values[1], width=values[2], height=values[3])


def parse_fills(raw: Dict[str, Any]) -> Optional[List[Paint]]:
    """
    Reads the ordered fill list. Non-list values (e.g. a mixed marker) yield None.
    Paints that fail validation are dropped one by one; the rest keep their order.
    """
    fills = raw.get("fills")
    if not isinstance(fills, list):
        return None

    paints = []
    for index, entry in enumerate(fills):
        if not isinstance(entry, dict) or "type" not in entry:
            continue
        try:
            paints.append(Paint.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Dropping malformed fill #{index} on node {raw.get('id')}: {e.error_count()} error(s)")
    return paints


def parse_common(raw: Dict[str, Any], child_ids: List[str]) -> Dict[str, Any]:
    """Field set shared by every node kind."""
    raw_type = str(raw.get("type", ""))
    return {
        "id": str(raw["id"]),
        "type": coerce_node_type(raw_type),
        "raw_type": raw_type.upper(),
        "name": raw.get("name"),
        "bbox": parse_bbox(raw),
        "fills": parse_fills(raw),
        "child_ids": child_ids,
    }
