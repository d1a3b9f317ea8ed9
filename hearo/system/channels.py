"""Notification channel abstraction shared by the visual, haptic and audible outputs."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, TypeVar

from hearo.system.models import Severity

DEFAULT_SEVERITY = Severity.MEDIUM

T = TypeVar("T")


def coerce_severity(severity: Severity | str) -> Severity:
    """Return *severity* as an enum member, or the default for unmapped values."""
    try:
        return Severity(severity)
    except ValueError:
        return DEFAULT_SEVERITY


def for_severity(table: Mapping[Severity, T], severity: Severity | str) -> T:
    """Look up an intensity table, falling back to the default severity's entry."""
    return table.get(coerce_severity(severity), table[DEFAULT_SEVERITY])


class NotificationChannel(ABC):
    name: str = "channel"

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    @abstractmethod
    def trigger(self, severity: Severity | str) -> bool:
        """Fire the channel; return False (or raise) on failure."""


def build_channels(
    toggles,
    visual: Optional[NotificationChannel] = None,
    haptic: Optional[NotificationChannel] = None,
    audible: Optional[NotificationChannel] = None,
) -> List[NotificationChannel]:
    """Instantiate the channels switched on in *toggles*, visual first."""
    from hearo.system.haptic import HapticChannel
    from hearo.system.tone import AudibleToneChannel
    from hearo.system.visual import VisualFlashChannel

    channels: List[NotificationChannel] = []
    if toggles.visual:
        channels.append(visual or VisualFlashChannel())
    if toggles.haptic:
        channels.append(haptic or HapticChannel())
    if toggles.audible:
        channels.append(audible or AudibleToneChannel())
    return channels
