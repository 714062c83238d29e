"""
Application services for planning meetings across a team.

The service coordinates loading participants via a roster adapter and
delegates slot search and ranking to the domain-level ``MeetingFinder``.
This keeps the CLI thin and lets tests swap the roster for a stub through
a simple protocol.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from ..domain.exceptions import UnknownParticipantError
from ..domain.meeting_finder import MeetingFinder
from ..domain.models import MeetingFinderOptions, MeetingFinderResult, Participant


logger = logging.getLogger(__name__)


class RosterProtocol(Protocol):
    """Protocol describing the roster behaviour needed by the service."""

    async def get_members(self, identifiers: Sequence[str]) -> List[Participant]:
        """Return the members matching the given ids or names."""

    async def get_group_members(self, group: str) -> List[Participant]:
        """Return all members of a group."""


def _matches(participant: Participant, identifier: str) -> bool:
    return participant.id == identifier or participant.name.lower() == identifier.lower()


class MeetingPlannerService:
    """
    Orchestrates roster lookups and meeting slot search.
    """

    def __init__(
        self,
        roster: RosterProtocol,
        finder: Optional[MeetingFinder] = None,
    ) -> None:
        self._roster = roster
        self._finder = finder or MeetingFinder()

    async def find_meeting_times(
        self,
        *,
        participants: Sequence[str] = (),
        group: Optional[str] = None,
        viewer_timezone: str,
        min_duration: int = 1,
        max_duration: int = 4,
        allow_flex_hours: bool = True,
        flex_range: int = 2,
        reference_time: Optional[datetime] = None,
    ) -> MeetingFinderResult:
        """
        Load the requested participants and search for meeting slots.
        """
        members = await self.fetch_participants(identifiers=participants, group=group)

        return self.plan(
            MeetingFinderOptions(
                participants=members,
                viewer_timezone=viewer_timezone,
                min_duration=min_duration,
                max_duration=max_duration,
                allow_flex_hours=allow_flex_hours,
                flex_range=flex_range,
                reference_time=reference_time,
            )
        )

    async def fetch_participants(
        self,
        *,
        identifiers: Sequence[str] = (),
        group: Optional[str] = None,
    ) -> List[Participant]:
        """
        Fetch group members and individually named participants.

        Group members come first, then the named participants, without
        duplicates.

        Raises:
            UnknownParticipantError: If the roster does not know an identifier
        """
        identifier_list = list(identifiers)
        collected: List[Participant] = []

        if group is not None:
            collected.extend(await self._roster.get_group_members(group))

        if identifier_list:
            members = await self._roster.get_members(identifier_list)

            missing = [
                identifier for identifier in identifier_list
                if not any(_matches(m, identifier) for m in members)
            ]
            if missing:
                raise UnknownParticipantError(missing)

            collected.extend(members)

        return self._deduplicate(collected)

    def plan(self, options: MeetingFinderOptions) -> MeetingFinderResult:
        """Run the meeting search for already loaded participants."""
        result = self._finder.find_best_meeting_times(options)

        if result.has_results:
            best = result.slots[0]
            logger.info(
                "Best slot for %d participants: %s (score %.1f, %s)",
                len(options.participants),
                best.format_display(),
                best.score,
                best.quality.value,
            )
        else:
            logger.info("No meeting slot found: %s", result.suggestion)

        return result

    @staticmethod
    def _deduplicate(participants: Sequence[Participant]) -> List[Participant]:
        """Drop repeated participants, keeping the first occurrence."""
        unique: List[Participant] = []
        seen: set[str] = set()

        for participant in participants:
            if participant.id not in seen:
                unique.append(participant)
                seen.add(participant.id)

        return unique
