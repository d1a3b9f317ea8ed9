"""Error taxonomy for the alert pipeline.

Only :class:`AcquisitionError` is meant to reach the user. The others are
absorbed where they occur: classifier errors by the fallback chain, channel
errors by the dispatcher. Unknown labels are not an error at all; they map
to the fallback policy entry.
"""
from __future__ import annotations


class HearoError(Exception):
    """Base class for Hearo errors."""


class AcquisitionError(HearoError):
    """The audio input could not be opened (missing device, permission denied)."""


class ClassifierUnavailable(HearoError):
    """A classifier backend failed or timed out."""


class ChannelFailure(HearoError):
    """A notification channel failed to fire."""

    def __init__(self, channel: str, reason: str) -> None:
        super().__init__(f"{channel} channel failed: {reason}")
        self.channel = channel
        self.reason = reason


class InvalidTransition(HearoError):
    """The monitor state machine was asked to make an illegal move."""
