"""
Domain models for participants, hour analyses and meeting slots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pendulum import DateTime


HOURS_IN_DAY = 24


def format_hour(hour: int) -> str:
    """Format an hour of the day as ``HH:00``."""
    return f"{hour:02d}:00"


@dataclass(frozen=True)
class Participant:
    """
    A person taking part in the meeting search.

    Working hours are whole hours local to ``timezone``. A start later than
    the end means the window wraps past midnight.
    """
    id: str
    name: str
    timezone: str
    working_hours_start: int
    working_hours_end: int
    title: str = ""
    group_id: Optional[str] = None

    def __post_init__(self):
        for label, value in (
            ("working_hours_start", self.working_hours_start),
            ("working_hours_end", self.working_hours_end),
        ):
            if not 0 <= value < HOURS_IN_DAY:
                raise ValueError(f"{label} must be between 0 and 23, got {value}")

    @property
    def wraps_midnight(self) -> bool:
        return self.working_hours_start > self.working_hours_end


class FlexDirection(str, Enum):
    EARLY = "early"
    LATE = "late"

    @property
    def adverb(self) -> str:
        return "earlier" if self is FlexDirection.EARLY else "later"


@dataclass(frozen=True)
class FlexResult:
    """Outcome of checking a single hour against a participant's flex windows."""
    can_flex: bool
    direction: Optional[FlexDirection] = None
    hours_needed: int = 0


@dataclass(frozen=True)
class FlexMember:
    """A participant who can attend by shifting their day by ``hours_needed``."""
    participant: Participant
    direction: FlexDirection
    hours_needed: int

    def format_display(self) -> str:
        return f"{self.participant.name} {self.hours_needed}h {self.direction.adverb}"


@dataclass(frozen=True)
class HourAnalysis:
    """Who can attend during one viewer-local hour."""
    hour: int
    available_members: List[Participant] = field(default_factory=list)
    flexing_members: List[FlexMember] = field(default_factory=list)
    unavailable_members: List[Participant] = field(default_factory=list)

    @property
    def total_available(self) -> int:
        return len(self.available_members) + len(self.flexing_members)

    def is_available(self, participant_id: str) -> bool:
        return any(p.id == participant_id for p in self.available_members)

    def flex_for(self, participant_id: str) -> Optional[FlexMember]:
        for flex in self.flexing_members:
            if flex.participant.id == participant_id:
                return flex
        return None


class MeetingQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class MeetingSlot:
    """
    A candidate meeting window in the viewer's local time.

    ``end_hour`` is exclusive and wraps modulo 24. The three member lists
    partition the participants of the search.
    """
    id: str
    start_hour: int
    end_hour: int
    duration: int
    score: float
    quality: MeetingQuality
    available_members: List[Participant]
    flexing_members: List[FlexMember]
    unavailable_members: List[Participant]

    @property
    def hours(self) -> List[int]:
        """The wrapped list of hours covered by this slot."""
        return [(self.start_hour + i) % HOURS_IN_DAY for i in range(self.duration)]

    @property
    def attendee_count(self) -> int:
        return len(self.available_members) + len(self.flexing_members)

    @property
    def participant_count(self) -> int:
        return self.attendee_count + len(self.unavailable_members)

    def covers(self, other: "MeetingSlot") -> bool:
        """Check if every hour of ``other`` falls inside this slot."""
        own_hours = set(self.hours)
        return all(hour in own_hours for hour in other.hours)

    def summary_text(self) -> str:
        """
        Describe who can attend.

        Examples:
            All 3 participants available
            All available (Bob 1h earlier)
            2/3 available (Carol unavailable)
        """
        if not self.unavailable_members and not self.flexing_members:
            return f"All {len(self.available_members)} participants available"

        if not self.unavailable_members:
            flex_names = ", ".join(f.format_display() for f in self.flexing_members)
            return f"All available ({flex_names})"

        unavailable_names = ", ".join(p.name for p in self.unavailable_members)
        return (
            f"{self.attendee_count}/{self.participant_count} available "
            f"({unavailable_names} unavailable)"
        )

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:00 – HH:00 (Nh)
        """
        return f"{format_hour(self.start_hour)} – {format_hour(self.end_hour)} ({self.duration}h)"


@dataclass(frozen=True)
class MeetingFinderOptions:
    """
    Input bundle for a meeting search.

    ``reference_time`` pins the instant used for timezone offsets; when left
    out the current time is used.
    """
    participants: List[Participant]
    viewer_timezone: str
    min_duration: int = 1
    max_duration: int = 4
    allow_flex_hours: bool = True
    flex_range: int = 2
    reference_time: Optional[DateTime] = None

    def __post_init__(self):
        if not 1 <= self.min_duration <= self.max_duration <= HOURS_IN_DAY:
            raise ValueError(
                "Durations must satisfy 1 <= min_duration <= max_duration <= 24, "
                f"got min_duration={self.min_duration}, max_duration={self.max_duration}"
            )
        if self.flex_range < 0:
            raise ValueError(f"flex_range must not be negative, got {self.flex_range}")


@dataclass(frozen=True)
class MeetingFinderResult:
    """Output bundle of a meeting search."""
    has_results: bool
    slots: List[MeetingSlot] = field(default_factory=list)
    suggestion: Optional[str] = None
