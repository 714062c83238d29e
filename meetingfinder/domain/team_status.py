"""
Who on the team is working right now, and who is about to start or stop.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .models import HOURS_IN_DAY, Participant
from .timezones import TimezoneConverter


SOON_THRESHOLD_HOURS = 2


@dataclass(frozen=True)
class MemberStatus:
    """
    Working state of one member at the reference instant.

    Exactly one of ``hours_until_start`` (when off) and ``hours_until_end``
    (when working) is set.
    """
    participant: Participant
    is_working: bool
    hours_until_start: Optional[int] = None
    hours_until_end: Optional[int] = None


@dataclass(frozen=True)
class TeamStatus:
    members: List[MemberStatus] = field(default_factory=list)

    @property
    def online(self) -> List[MemberStatus]:
        return [s for s in self.members if s.is_working]

    @property
    def coming_soon(self) -> List[MemberStatus]:
        """Members starting within the threshold, soonest first."""
        upcoming = [
            s for s in self.members
            if not s.is_working
            and s.hours_until_start is not None
            and s.hours_until_start <= SOON_THRESHOLD_HOURS
        ]
        return sorted(upcoming, key=lambda s: s.hours_until_start)

    @property
    def leaving_soon(self) -> List[MemberStatus]:
        """Members finishing within the threshold, soonest first."""
        leaving = [
            s for s in self.members
            if s.is_working
            and s.hours_until_end is not None
            and s.hours_until_end <= SOON_THRESHOLD_HOURS
        ]
        return sorted(leaving, key=lambda s: s.hours_until_end)


def summarize_team_status(
    participants: Sequence[Participant],
    viewer_timezone: str,
    converter: TimezoneConverter
) -> TeamStatus:
    """
    Compute each member's working state in the viewer's clock.

    Hour distances are measured between whole viewer-local hours.
    """
    current_hour = converter.current_hour(viewer_timezone)
    statuses: List[MemberStatus] = []

    for participant in participants:
        if participant.working_hours_start == participant.working_hours_end:
            # Empty window, never starts work
            statuses.append(MemberStatus(participant=participant, is_working=False))
            continue

        working = converter.is_currently_working(participant)

        if working:
            end = converter.convert_hour(
                participant.working_hours_end, participant.timezone, viewer_timezone
            )
            statuses.append(
                MemberStatus(
                    participant=participant,
                    is_working=True,
                    hours_until_end=(end - current_hour) % HOURS_IN_DAY
                )
            )
        else:
            start = converter.convert_hour(
                participant.working_hours_start, participant.timezone, viewer_timezone
            )
            statuses.append(
                MemberStatus(
                    participant=participant,
                    is_working=False,
                    hours_until_start=(start - current_hour) % HOURS_IN_DAY
                )
            )

    return TeamStatus(members=statuses)
