"""
Domain layer - Pure business logic without external dependencies.
"""

from .meeting_finder import MeetingFinder, find_best_meeting_times
from .models import (
    FlexDirection,
    FlexMember,
    HourAnalysis,
    MeetingFinderOptions,
    MeetingFinderResult,
    MeetingQuality,
    MeetingSlot,
    Participant,
)
from .timezones import TimezoneConverter

__all__ = [
    "FlexDirection",
    "FlexMember",
    "HourAnalysis",
    "MeetingFinder",
    "MeetingFinderOptions",
    "MeetingFinderResult",
    "MeetingQuality",
    "MeetingSlot",
    "Participant",
    "TimezoneConverter",
    "find_best_meeting_times",
]
