"""Haptic channel: severity-specific vibration patterns."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from hearo.system.channels import NotificationChannel, coerce_severity, for_severity
from hearo.system.models import Severity

# Alternating on/off durations in milliseconds, starting with "on".
VIBRATION_PATTERNS: Dict[Severity, List[int]] = {
    Severity.CRITICAL: [500, 100, 500, 100, 500, 100, 500],
    Severity.HIGH: [300, 100, 300, 100, 300],
    Severity.MEDIUM: [200, 100, 200],
    Severity.LOW: [100],
}


@dataclass
class HapticChannel(NotificationChannel):
    patterns: Dict[Severity, List[int]] = field(default_factory=lambda: dict(VIBRATION_PATTERNS))
    motor: Optional[Callable[[List[int]], None]] = None
    enabled: bool = True
    history: List[Severity] = field(default_factory=list)

    name = "haptic"

    def pattern_for(self, severity: Severity | str) -> List[int]:
        return list(for_severity(self.patterns, severity))

    def trigger(self, severity: Severity | str) -> bool:
        pattern = self.pattern_for(severity)
        if self.motor is not None:
            self.motor(pattern)
        self.history.append(coerce_severity(severity))
        return True

    def last_pattern(self) -> List[int] | None:
        return self.pattern_for(self.history[-1]) if self.history else None
