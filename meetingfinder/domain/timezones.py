"""
Hour-of-day timezone arithmetic.

All conversions work on whole hours: UTC offsets are taken at an explicit
reference instant and the shifted hour is rounded to the nearest integer.
Zones with fractional offsets (e.g. Asia/Kolkata, UTC+5:30) therefore lose
their half hour. Offsets are looked up for the reference instant only, so
results for the same nominal hours may differ across a DST change.
"""

import math
from datetime import datetime
from typing import Callable, List, Optional

import pendulum
from pendulum import DateTime

from .models import HOURS_IN_DAY, FlexDirection, FlexResult, Participant


DEFAULT_FLEX_RANGE = 2

# Suggested zones for roster entries
COMMON_TIMEZONES = (
    "Pacific/Honolulu",  # UTC-10
    "America/Anchorage",  # UTC-9
    "America/Los_Angeles",  # UTC-8
    "America/Denver",  # UTC-7
    "America/Chicago",  # UTC-6
    "America/New_York",  # UTC-5
    "America/Sao_Paulo",  # UTC-3
    "Atlantic/Azores",  # UTC-1
    "Europe/London",  # UTC+0
    "Europe/Paris",  # UTC+1
    "Europe/Berlin",  # UTC+1
    "Europe/Athens",  # UTC+2
    "Europe/Moscow",  # UTC+3
    "Asia/Dubai",  # UTC+4
    "Asia/Kolkata",  # UTC+5:30
    "Asia/Dhaka",  # UTC+6
    "Asia/Bangkok",  # UTC+7
    "Asia/Shanghai",  # UTC+8
    "Asia/Tokyo",  # UTC+9
    "Australia/Sydney",  # UTC+10/11
    "Pacific/Auckland",  # UTC+12/13
)

OffsetLookup = Callable[[str, DateTime], float]


def pendulum_offset_hours(timezone: str, reference: DateTime) -> float:
    """Return the UTC offset of ``timezone`` at ``reference`` in hours."""
    return reference.in_timezone(timezone).utcoffset().total_seconds() / 3600


def is_valid_timezone(name: str) -> bool:
    """Check whether ``name`` is a timezone pendulum can load."""
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError):
        return False
    return True


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def is_hour_in_range(hour: int, start: int, end: int) -> bool:
    """
    Check if ``hour`` falls in the half-open window ``[start, end)``.

    A start later than the end wraps past midnight. Equal bounds form an
    empty window.
    """
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def format_time_until_available(minutes: int) -> str:
    """
    Format a wait time for display.

    Examples: "Available now", "in 45m", "in 3h", "in 3h 15m"
    """
    if minutes == 0:
        return "Available now"

    hours, mins = divmod(minutes, 60)

    if hours == 0:
        return f"in {mins}m"
    if mins == 0:
        return f"in {hours}h"
    return f"in {hours}h {mins}m"


class TimezoneConverter:
    """
    Converts hours between timezones at a fixed reference instant.

    The offset lookup is injectable so callers can pin offsets without
    depending on the timezone database or the wall clock.
    """

    def __init__(
        self,
        reference_time: Optional[datetime] = None,
        offset_lookup: Optional[OffsetLookup] = None
    ):
        if reference_time is None:
            reference_time = pendulum.now("UTC")
        elif not isinstance(reference_time, DateTime):
            reference_time = pendulum.instance(reference_time)

        self.reference_time: DateTime = reference_time
        self._offset_lookup = offset_lookup or pendulum_offset_hours

    def offset_hours(self, timezone: str) -> float:
        """UTC offset of ``timezone`` at the reference instant, in hours."""
        return self._offset_lookup(timezone, self.reference_time)

    def convert_hour(self, hour: int, from_timezone: str, to_timezone: str) -> int:
        """
        Convert an hour of the day from one timezone to another.

        The result is rounded to the nearest whole hour and wrapped into 0-23.
        """
        diff = self.offset_hours(to_timezone) - self.offset_hours(from_timezone)
        return round_half_up(hour + diff) % HOURS_IN_DAY

    def working_hours_in_viewer_timezone(
        self,
        participant: Participant,
        viewer_timezone: str
    ) -> List[int]:
        """List the viewer-local hours of a participant's working window, in order."""
        start = self.convert_hour(
            participant.working_hours_start, participant.timezone, viewer_timezone
        )
        end = self.convert_hour(
            participant.working_hours_end, participant.timezone, viewer_timezone
        )

        if start <= end:
            return list(range(start, end))

        # Overnight: hours wrap around midnight
        return list(range(start, HOURS_IN_DAY)) + list(range(0, end))

    def is_hour_in_working_range(
        self,
        hour: int,
        participant: Participant,
        viewer_timezone: str
    ) -> bool:
        """Check if a viewer-local hour is inside the participant's working window."""
        start = self.convert_hour(
            participant.working_hours_start, participant.timezone, viewer_timezone
        )
        end = self.convert_hour(
            participant.working_hours_end, participant.timezone, viewer_timezone
        )
        return is_hour_in_range(hour, start, end)

    def flex_hours_early(
        self,
        participant: Participant,
        viewer_timezone: str,
        flex_range: int = DEFAULT_FLEX_RANGE
    ) -> List[int]:
        """
        Viewer-local hours just before the participant's normal start.

        The hour at index ``i`` needs ``i + 1`` hours of flex.
        """
        normal_start = self.convert_hour(
            participant.working_hours_start, participant.timezone, viewer_timezone
        )
        return [(normal_start - i) % HOURS_IN_DAY for i in range(1, flex_range + 1)]

    def flex_hours_late(
        self,
        participant: Participant,
        viewer_timezone: str,
        flex_range: int = DEFAULT_FLEX_RANGE
    ) -> List[int]:
        """
        Viewer-local hours from the participant's normal end onwards.

        The hour at index ``i`` needs ``i + 1`` hours of flex.
        """
        normal_end = self.convert_hour(
            participant.working_hours_end, participant.timezone, viewer_timezone
        )
        return [(normal_end + i) % HOURS_IN_DAY for i in range(flex_range)]

    def flex_for_hour(
        self,
        hour: int,
        participant: Participant,
        viewer_timezone: str,
        flex_range: int = DEFAULT_FLEX_RANGE
    ) -> FlexResult:
        """
        Check whether a participant could reach ``hour`` by flexing.

        Early flex is checked before late flex, so an hour that appears in
        both windows is reported as early.
        """
        early = self.flex_hours_early(participant, viewer_timezone, flex_range)
        if hour in early:
            return FlexResult(
                can_flex=True,
                direction=FlexDirection.EARLY,
                hours_needed=early.index(hour) + 1
            )

        late = self.flex_hours_late(participant, viewer_timezone, flex_range)
        if hour in late:
            return FlexResult(
                can_flex=True,
                direction=FlexDirection.LATE,
                hours_needed=late.index(hour) + 1
            )

        return FlexResult(can_flex=False)

    def local_time(self, timezone: str) -> DateTime:
        """The reference instant expressed in ``timezone``."""
        return self.reference_time.in_timezone(timezone)

    def current_hour(self, timezone: str) -> int:
        return self.local_time(timezone).hour

    def is_currently_working(self, participant: Participant) -> bool:
        """Check if the participant is inside their working window at the reference instant."""
        return is_hour_in_range(
            self.current_hour(participant.timezone),
            participant.working_hours_start,
            participant.working_hours_end
        )

    def minutes_until_available(self, participant: Participant) -> int:
        """Minutes until the participant's next working window opens, 0 if working."""
        if self.is_currently_working(participant):
            return 0

        local = self.local_time(participant.timezone)
        minutes_from_midnight = local.hour * 60 + local.minute
        work_start_minutes = participant.working_hours_start * 60

        if minutes_from_midnight < work_start_minutes:
            return work_start_minutes - minutes_from_midnight

        # Already past today's start, wait for tomorrow
        return HOURS_IN_DAY * 60 - minutes_from_midnight + work_start_minutes

    def day_offset(self, member_timezone: str, viewer_timezone: str) -> int:
        """Calendar days the member's local date is ahead of the viewer's."""
        member_date = self.local_time(member_timezone).date()
        viewer_date = self.local_time(viewer_timezone).date()
        return member_date.toordinal() - viewer_date.toordinal()

    def format_timezone_label(self, timezone: str, include_current_time: bool = False) -> str:
        """
        Human-readable zone label.

        Examples: "New York (UTC-5)", "Kolkata (UTC+5:30) - 6:30 PM"
        """
        offset = self.offset_hours(timezone)
        sign = "+" if offset >= 0 else "-"
        hours = math.floor(abs(offset))
        minutes = round((abs(offset) % 1) * 60)
        offset_str = f"{sign}{hours}:{minutes:02d}" if minutes > 0 else f"{sign}{hours}"

        city_name = timezone.split("/")[-1].replace("_", " ")
        label = f"{city_name} (UTC{offset_str})"

        if include_current_time:
            return f"{label} - {self.local_time(timezone).format('h:mm A')}"

        return label

    def format_timezone_abbreviation(self, timezone: str) -> str:
        """Short zone name at the reference instant, e.g. "EST" or "CEST"."""
        return self.local_time(timezone).tzname() or timezone.split("/")[-1]
