# src/detector/model.py
import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from canvas_a11y.core.managers.config_manager import config_manager


class IssueType(str, Enum):
    TYPOGRAPHY = "Typography"
    CONTRAST = "Contrast"
    TOUCH_TARGET_SIZE = "Touch Target Size"
    TOUCH_TARGET_SPACING = "Touch Target Spacing"


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Compliance(str, Enum):
    AAA = "AAA"
    AA = "AA"
    AAA_LARGE = "AAA Large"
    AA_LARGE = "AA Large"
    FAIL = "Fail"


# Severity is fixed per issue type.
SEVERITY_BY_TYPE: Dict[IssueType, Severity] = {
    IssueType.CONTRAST: Severity.CRITICAL,
    IssueType.TYPOGRAPHY: Severity.MAJOR,
    IssueType.TOUCH_TARGET_SIZE: Severity.MINOR,
    IssueType.TOUCH_TARGET_SPACING: Severity.MINOR,
}


class ContrastResult(BaseModel):
    """
    Contrast evaluation for one foreground/background pair.
    A ratio of 0 only ever appears together with FAIL, for inputs that could not be evaluated.
    """
    model_config = ConfigDict(frozen=True)

    ratio: float = Field(ge=0.0, le=21.0)
    compliance: Compliance


class NodeData(BaseModel):
    """Type-specific payload of an Issue: the node and the measurements that triggered it."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    node_type: str
    characters: Optional[str] = None
    font_size: Optional[float] = None
    line_height: Optional[Any] = None
    width: Optional[float] = None
    height: Optional[float] = None
    contrast_score: Optional[Compliance] = None
    contrast_ratio: Optional[float] = None
    foreground_color: Optional[Tuple[int, int, int]] = None
    background_color: Optional[Tuple[int, int, int]] = None
    required_size: Optional[str] = None


class Issue(BaseModel):
    """
    Data model representing a single accessibility finding.
    Immutable once created; a re-scan produces fresh instances.
    """
    model_config = ConfigDict(frozen=True)

    type: IssueType
    severity: Severity
    description: str
    node_data: NodeData

    @property
    def node_id(self) -> str:
        return self.node_data.id

    def to_message(self) -> Dict[str, Any]:
        """Serializes the issue for the UI message channel."""
        return self.model_dump(mode="json", exclude_none=True)


class UndeterminedReason(str, Enum):
    NO_BACKGROUND = "no-background"
    MIXED_FONT_SIZE = "mixed-font-size"


class Undetermined(BaseModel):
    """A node for which a value could not be computed, surfaced instead of guessed."""
    model_config = ConfigDict(frozen=True)

    node_id: str
    reason: UndeterminedReason


class ScanOutcome(BaseModel):
    """Result of one detection pass."""
    issues: List[Issue] = Field(default_factory=list)
    undetermined: List[Undetermined] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)  # node ids that failed analysis


class DetectionSettings(BaseModel):
    """Thresholds used by the detection services."""
    model_config = ConfigDict(frozen=True)

    min_font_size: float = Field(default=11, gt=0)
    min_touch_target_size: float = Field(default=44, gt=0)
    min_touch_target_spacing: float = Field(default=8, ge=0)
    bold_weight: float = Field(default=700, gt=0)
    touch_target_keywords: Tuple[str, ...] = ("btn", "button", "link", "touch")

    @field_validator("touch_target_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, v: Any) -> Tuple[str, ...]:
        if isinstance(v, str):
            v = v.split(",")
        return tuple(k.strip().lower() for k in v if str(k).strip())

    @property
    def required_size_label(self) -> str:
        size = _format_px(self.min_touch_target_size)
        return f"{size} x {size}px"

    @classmethod
    def from_config(cls) -> "DetectionSettings":
        """Builds settings from the 'detection' section of settings.json."""
        section = config_manager.get_section("detection")
        known = {k: v for k, v in section.items() if k in cls.model_fields and v is not None}
        return cls(**known)


def _format_px(value: float) -> str:
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
