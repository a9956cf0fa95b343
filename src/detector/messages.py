# src/detector/messages.py
import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from detector.model import Issue, Undetermined


class ScanMode(str, Enum):
    FULL = "full"
    SELECTION = "selection"


class ScanRequested(BaseModel):
    event: Literal["scan"] = "scan"
    mode: ScanMode = ScanMode.FULL


class QuickCheckStarted(BaseModel):
    event: Literal["quickcheck-started"] = "quickcheck-started"


class SelectionChanged(BaseModel):
    """
    The host's selection changed. Nodes are given by id; full node payloads
    (mappings with an "id" key) are accepted and reduced to their ids.
    """
    event: Literal["selection-changed"] = "selection-changed"
    nodes: List[str] = Field(default_factory=list)

    @field_validator("nodes", mode="before")
    @classmethod
    def _node_ids(cls, v: Any) -> List[str]:
        if v is None:
            return []
        ids = []
        for item in v:
            if isinstance(item, dict):
                item = item.get("id")
            if item:
                ids.append(str(item))
        return ids


class QuickCheckCancelled(BaseModel):
    event: Literal["quickcheck-cancelled"] = "quickcheck-cancelled"


class FontSizeEditRequested(BaseModel):
    event: Literal["font-size-edit-requested"] = "font-size-edit-requested"
    node_id: str
    font_size: float

    @field_validator("font_size")
    @classmethod
    def _positive_finite(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("font size must be a positive finite number")
        return v


class Navigate(BaseModel):
    event: Literal["navigate"] = "navigate"
    node_id: str


SessionEvent = Annotated[
    Union[ScanRequested, QuickCheckStarted, SelectionChanged, QuickCheckCancelled, FontSizeEditRequested, Navigate],
    Field(discriminator="event"),
]

_event_adapter = TypeAdapter(SessionEvent)


def parse_event(payload: Dict[str, Any]) -> SessionEvent:
    """
    Validates a raw message from the UI channel into a typed event.
    Raises pydantic.ValidationError for unknown events or bad fields.
    """
    return _event_adapter.validate_python(payload)


class ScanResponse(BaseModel):
    """Reply to a scan or a selection change."""
    issues: List[Issue] = Field(default_factory=list)
    undetermined: List[Undetermined] = Field(default_factory=list)

    def to_message(self) -> Dict[str, Any]:
        return {
            "issues": [issue.to_message() for issue in self.issues],
            "undetermined": [u.model_dump(mode="json") for u in self.undetermined],
        }
