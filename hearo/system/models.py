"""Domain types: labels, policy entries, classifications and alerts."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict


class SoundLabel(str, Enum):
    FIRE_ALARM = "fire_alarm"
    SMOKE_DETECTOR = "smoke_detector"
    DOORBELL = "doorbell"
    PHONE_RING = "phone_ring"
    BABY_CRY = "baby_cry"
    CAR_HORN = "car_horn"
    GLASS_BREAK = "glass_break"
    SCREAM = "scream"


class Category(str, Enum):
    EMERGENCY = "emergency"
    DOORBELL = "doorbell"
    PHONE = "phone"
    BABY = "baby"
    CAR = "car"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Source(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class PolicyEntry:
    category: Category
    severity: Severity
    default_location: str


@dataclass(frozen=True)
class Classification:
    """One judgment about a captured window.

    ``label`` is a plain string so that backends may report labels the
    policy table does not know about.
    """

    label: str
    confidence: float
    source: Source = Source.LOCAL
    latency_ms: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.label, SoundLabel):
            object.__setattr__(self, "label", self.label.value)
        object.__setattr__(self, "source", Source(self.source))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class Alert:
    id: int
    label: str
    category: Category
    severity: Severity
    location: str
    confidence: float
    source: Source
    created_at: datetime = field(compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "severity": self.severity.value,
            "location": self.location,
            "confidence": self.confidence,
            "source": self.source.value,
            "created_at": self.created_at.isoformat(),
        }
