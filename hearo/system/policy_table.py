"""Static mapping from sound label to category, severity and location."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from hearo.system.models import Category, PolicyEntry, Severity, SoundLabel

POLICY_TABLE: Mapping[str, PolicyEntry] = MappingProxyType(
    {
        SoundLabel.FIRE_ALARM.value: PolicyEntry(Category.EMERGENCY, Severity.CRITICAL, "Whole House"),
        SoundLabel.SMOKE_DETECTOR.value: PolicyEntry(Category.EMERGENCY, Severity.CRITICAL, "Whole House"),
        SoundLabel.DOORBELL.value: PolicyEntry(Category.DOORBELL, Severity.MEDIUM, "Front Door"),
        SoundLabel.PHONE_RING.value: PolicyEntry(Category.PHONE, Severity.HIGH, "Living Room"),
        SoundLabel.BABY_CRY.value: PolicyEntry(Category.BABY, Severity.HIGH, "Nursery"),
        SoundLabel.CAR_HORN.value: PolicyEntry(Category.CAR, Severity.MEDIUM, "Outside"),
        SoundLabel.GLASS_BREAK.value: PolicyEntry(Category.EMERGENCY, Severity.CRITICAL, "Unknown"),
        SoundLabel.SCREAM.value: PolicyEntry(Category.EMERGENCY, Severity.CRITICAL, "Unknown"),
    }
)

UNKNOWN_ENTRY = PolicyEntry(Category.UNKNOWN, Severity.MEDIUM, "Unknown")


def lookup(label: str) -> PolicyEntry:
    """Return the policy entry for *label*, or the unknown-sound entry."""
    if isinstance(label, SoundLabel):
        label = label.value
    return POLICY_TABLE.get(label, UNKNOWN_ENTRY)


def is_known(label: str) -> bool:
    if isinstance(label, SoundLabel):
        label = label.value
    return label in POLICY_TABLE
