"""
Core business logic for finding common meeting times across timezones.

Pure domain logic: no I/O, no shared state. Every call works from the
participants and options it is given and returns fresh values.
"""

import logging
from typing import List, Optional, Sequence

from .models import (
    HOURS_IN_DAY,
    FlexMember,
    HourAnalysis,
    MeetingFinderOptions,
    MeetingFinderResult,
    MeetingQuality,
    MeetingSlot,
    Participant,
)
from .timezones import OffsetLookup, TimezoneConverter


logger = logging.getLogger(__name__)

MAX_RESULTS = 5
MIN_ATTENDEES = 2

SUGGEST_MORE_PARTICIPANTS = "Select at least 2 participants to find meeting times"
SUGGEST_FEWER_PARTICIPANTS = "No overlapping availability found. Try selecting fewer participants."
SUGGEST_ENABLE_FLEX = "No overlapping availability found. Try enabling flex hours."


def calculate_score(
    available_count: int,
    flexing_members: Sequence[FlexMember],
    total_participants: int
) -> float:
    """
    Score a slot between 0 and 100.

    - up to 60 points for the share of people inside their normal hours
    - up to 30 points for the share of people flexing
    - 10 points when everyone can attend
    - minus 3 points for each person flexing 2 hours or more
    """
    if total_participants == 0:
        return 0.0

    flex_count = len(flexing_members)
    normal_score = available_count / total_participants * 60
    flex_score = flex_count / total_participants * 30
    all_available_bonus = 10 if available_count + flex_count == total_participants else 0
    heavy_flex_penalty = 3 * sum(1 for f in flexing_members if f.hours_needed >= 2)

    score = normal_score + flex_score + all_available_bonus - heavy_flex_penalty
    return max(0.0, min(100.0, score))


def determine_quality(score: float) -> MeetingQuality:
    if score >= 90:
        return MeetingQuality.EXCELLENT
    if score >= 70:
        return MeetingQuality.GOOD
    if score >= 50:
        return MeetingQuality.FAIR
    return MeetingQuality.POOR


class MeetingFinder:
    """
    Finds and ranks meeting slots in the viewer's local time.

    Algorithm:
    1. Classify every participant for each of the 24 viewer-local hours
    2. Enumerate every window of min..max duration starting at each hour
    3. Keep windows at least two people can attend in full, and score them
    4. Drop shorter windows already covered by a better, longer one
    5. Return the top results
    """

    def __init__(self, offset_lookup: Optional[OffsetLookup] = None):
        self._offset_lookup = offset_lookup

    def find_best_meeting_times(self, options: MeetingFinderOptions) -> MeetingFinderResult:
        """
        Find the best meeting slots for the given options.

        Returns a result with ``has_results=False`` and a suggestion when
        fewer than two participants are given or nothing overlaps.
        """
        participants = list(options.participants)

        if len(participants) < MIN_ATTENDEES:
            return MeetingFinderResult(
                has_results=False,
                suggestion=SUGGEST_MORE_PARTICIPANTS
            )

        converter = TimezoneConverter(
            reference_time=options.reference_time,
            offset_lookup=self._offset_lookup
        )

        hour_analyses = [
            self._analyze_hour(
                hour=hour,
                participants=participants,
                viewer_timezone=options.viewer_timezone,
                allow_flex_hours=options.allow_flex_hours,
                flex_range=options.flex_range,
                converter=converter
            )
            for hour in range(HOURS_IN_DAY)
        ]

        candidates = self._find_contiguous_slots(
            hour_analyses=hour_analyses,
            participants=participants,
            min_duration=options.min_duration,
            max_duration=options.max_duration
        )

        ranked = self._deduplicate_slots(candidates)[:MAX_RESULTS]

        logger.debug(
            "Found %d candidate slots, kept %d for %d participants in %s",
            len(candidates),
            len(ranked),
            len(participants),
            options.viewer_timezone
        )

        if not ranked:
            return MeetingFinderResult(
                has_results=False,
                suggestion=(
                    SUGGEST_FEWER_PARTICIPANTS
                    if options.allow_flex_hours
                    else SUGGEST_ENABLE_FLEX
                )
            )

        return MeetingFinderResult(has_results=True, slots=ranked)

    def _analyze_hour(
        self,
        hour: int,
        participants: List[Participant],
        viewer_timezone: str,
        allow_flex_hours: bool,
        flex_range: int,
        converter: TimezoneConverter
    ) -> HourAnalysis:
        """Split participants into available, flexing and unavailable for one hour."""
        available: List[Participant] = []
        flexing: List[FlexMember] = []
        unavailable: List[Participant] = []

        for participant in participants:
            if converter.is_hour_in_working_range(hour, participant, viewer_timezone):
                available.append(participant)
                continue

            if allow_flex_hours:
                flex = converter.flex_for_hour(hour, participant, viewer_timezone, flex_range)
                if flex.can_flex and flex.direction is not None:
                    flexing.append(
                        FlexMember(
                            participant=participant,
                            direction=flex.direction,
                            hours_needed=flex.hours_needed
                        )
                    )
                    continue

            unavailable.append(participant)

        return HourAnalysis(
            hour=hour,
            available_members=available,
            flexing_members=flexing,
            unavailable_members=unavailable
        )

    def _find_contiguous_slots(
        self,
        hour_analyses: List[HourAnalysis],
        participants: List[Participant],
        min_duration: int,
        max_duration: int
    ) -> List[MeetingSlot]:
        """
        Enumerate every window and keep those enough people can attend in full.

        Slots are returned in generation order: by start hour, then duration.
        """
        slots: List[MeetingSlot] = []

        for start_hour in range(HOURS_IN_DAY):
            for duration in range(min_duration, max_duration + 1):
                window = [
                    hour_analyses[(start_hour + i) % HOURS_IN_DAY]
                    for i in range(duration)
                ]

                available: List[Participant] = []
                flexing: List[FlexMember] = []
                unavailable: List[Participant] = []

                for participant in participants:
                    if all(analysis.is_available(participant.id) for analysis in window):
                        available.append(participant)
                        continue

                    worst = self._worst_flex_across_window(participant, window)
                    if worst is not None:
                        flexing.append(worst)
                    else:
                        unavailable.append(participant)

                if len(available) + len(flexing) < MIN_ATTENDEES:
                    continue

                score = calculate_score(len(available), flexing, len(participants))
                end_hour = (start_hour + duration) % HOURS_IN_DAY

                slots.append(
                    MeetingSlot(
                        id=f"{start_hour}-{end_hour}-{duration}",
                        start_hour=start_hour,
                        end_hour=end_hour,
                        duration=duration,
                        score=score,
                        quality=determine_quality(score),
                        available_members=available,
                        flexing_members=flexing,
                        unavailable_members=unavailable
                    )
                )

        return slots

    @staticmethod
    def _worst_flex_across_window(
        participant: Participant,
        window: List[HourAnalysis]
    ) -> Optional[FlexMember]:
        """
        Return the largest flex the participant needs to attend every hour.

        None if some hour is neither a working nor a flex hour for them, or
        if no hour needs flexing at all.
        """
        worst: Optional[FlexMember] = None

        for analysis in window:
            if analysis.is_available(participant.id):
                continue

            flex = analysis.flex_for(participant.id)
            if flex is None:
                return None

            if worst is None or flex.hours_needed > worst.hours_needed:
                worst = flex

        return worst

    def _deduplicate_slots(self, slots: List[MeetingSlot]) -> List[MeetingSlot]:
        """
        Rank slots and drop those covered by a better, longer slot.

        Ties in score put the longer slot first so it can absorb the shorter
        windows it contains. Slots of equal duration never absorb each other.
        """
        ranked = sorted(slots, key=lambda s: (-s.score, -s.duration))
        kept: List[MeetingSlot] = []

        for slot in ranked:
            is_subset = any(
                slot.duration < existing.duration and existing.covers(slot)
                for existing in kept
            )
            if not is_subset:
                kept.append(slot)

        return kept


def find_best_meeting_times(
    participants: Sequence[Participant],
    viewer_timezone: str,
    offset_lookup: Optional[OffsetLookup] = None,
    **options
) -> MeetingFinderResult:
    """Run a meeting search with a throwaway ``MeetingFinder``."""
    finder_options = MeetingFinderOptions(
        participants=list(participants),
        viewer_timezone=viewer_timezone,
        **options
    )
    return MeetingFinder(offset_lookup=offset_lookup).find_best_meeting_times(finder_options)
