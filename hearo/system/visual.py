"""Visual flash channel and an optional pygame surface to flash on."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

from hearo.system.channels import NotificationChannel, for_severity
from hearo.system.models import Severity

LOGGER = logging.getLogger(__name__)

SEVERITY_COLORS: Dict[Severity, str] = {
    Severity.CRITICAL: "#ef4444",
    Severity.HIGH: "#f97316",
    Severity.MEDIUM: "#eab308",
    Severity.LOW: "#22c55e",
}
FLASH_DURATION_S = 0.3


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color {color}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


class FlashSurface(Protocol):
    def flash(self, color: Tuple[int, int, int], duration_s: float) -> None: ...


@dataclass
class VisualFlashChannel(NotificationChannel):
    colors: Dict[Severity, str] = field(default_factory=lambda: dict(SEVERITY_COLORS))
    duration_s: float = FLASH_DURATION_S
    surface: Optional[FlashSurface] = None
    enabled: bool = True
    state: Dict[str, object] = field(default_factory=dict)
    history: List[str] = field(default_factory=list)

    name = "visual"

    def color_for(self, severity: Severity | str) -> str:
        return for_severity(self.colors, severity)

    def trigger(self, severity: Severity | str) -> bool:
        color = self.color_for(severity)
        if self.surface is not None:
            self.surface.flash(hex_to_rgb(color), self.duration_s)
        self.state = {"color": color, "duration_s": self.duration_s}
        self.history.append(color)
        return True


@dataclass
class PygameFlashSurface:
    """Fills a small pygame window with the alert colour, then restores it."""

    size: Tuple[int, int] = (480, 320)
    background: Tuple[int, int, int] = (14, 16, 20)
    _screen: Optional[object] = None
    _inited: bool = False

    def _ensure_pygame(self) -> bool:
        if self._inited:
            return True
        try:
            import pygame

            pygame.init()
            self._screen = pygame.display.set_mode(self.size)
            pygame.display.set_caption("Hearo")
            self._inited = True
        except (ImportError, RuntimeError) as exc:
            LOGGER.warning("Visual flash disabled (pygame not available): %s", exc)
        return self._inited

    def flash(self, color: Tuple[int, int, int], duration_s: float) -> None:
        if not self._ensure_pygame():
            raise RuntimeError("no display available")
        import pygame

        pygame.event.pump()
        self._screen.fill(color)
        pygame.display.flip()
        time.sleep(duration_s)
        self._screen.fill(self.background)
        pygame.display.flip()
