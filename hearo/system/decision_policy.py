"""Gate between classification and dispatch: confidence floor plus per-label cooldown."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from hearo.system.models import Classification
from hearo.utils.constants import POLICY


@dataclass
class DecisionPolicy:
    min_confidence: float = POLICY.min_confidence
    cooldown_s: float = POLICY.cooldown_s
    _last_alert: Dict[str, float] = field(default_factory=dict)

    def should_alert(self, classification: Classification, at: Optional[float] = None) -> bool:
        """*at* is the capture clock in seconds; defaults to the monotonic clock."""
        if classification.confidence < self.min_confidence:
            return False
        now = time.monotonic() if at is None else at
        last = self._last_alert.get(classification.label)
        if last is not None and now - last < self.cooldown_s:
            return False
        self._last_alert[classification.label] = now
        return True

    def reset(self) -> None:
        self._last_alert.clear()
