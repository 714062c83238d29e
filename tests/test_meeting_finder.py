"""
Tests for the meeting finder.
"""

import itertools

import pendulum
import pytest

from meetingfinder.domain.meeting_finder import (
    MAX_RESULTS,
    SUGGEST_ENABLE_FLEX,
    SUGGEST_FEWER_PARTICIPANTS,
    SUGGEST_MORE_PARTICIPANTS,
    MeetingFinder,
    calculate_score,
    determine_quality,
    find_best_meeting_times,
)
from meetingfinder.domain.models import (
    FlexDirection,
    FlexMember,
    MeetingFinderOptions,
    MeetingQuality,
    Participant,
)
from meetingfinder.domain.timezones import TimezoneConverter


REFERENCE = pendulum.datetime(2024, 1, 15, 12, 0, tz="UTC")

OFFSETS = {
    "Europe/London": 0,
    "America/New_York": -5,
    "Asia/Kolkata": 5.5,
    "Asia/Tokyo": 9,
    "Australia/Brisbane": 10,
    "Pacific/Auckland": 12,
}


def _offsets(timezone, reference):
    return OFFSETS[timezone]


def _person(person_id: str, timezone: str = "Europe/London", start: int = 9, end: int = 17) -> Participant:
    return Participant(
        id=person_id,
        name=person_id.capitalize(),
        timezone=timezone,
        working_hours_start=start,
        working_hours_end=end
    )


def _find(participants, viewer_timezone="Europe/London", **options):
    return find_best_meeting_times(
        participants,
        viewer_timezone,
        offset_lookup=_offsets,
        reference_time=REFERENCE,
        **options
    )


def _assert_partitioned(slot, participants):
    ids = (
        [p.id for p in slot.available_members]
        + [f.participant.id for f in slot.flexing_members]
        + [p.id for p in slot.unavailable_members]
    )
    assert sorted(ids) == sorted(p.id for p in participants)


TEAMS = [
    [_person("alice"), _person("bob")],
    [_person("alice"), _person("bob", "America/New_York"), _person("chen", "Asia/Tokyo")],
    [_person("alice", start=22, end=6), _person("bob", "Asia/Kolkata", 8, 20), _person("chen", "Pacific/Auckland", 13, 1)],
    [_person("alice"), _person("bob", "Australia/Brisbane"), _person("chen", start=9, end=9), _person("dana", "America/New_York", 6, 14)],
]


class TestScenarios:
    """End-to-end searches with pinned offsets."""

    def test_identical_teammates_long_meeting(self):
        """Two people with the same day get one full-day slot."""
        participants = [_person("alice"), _person("bob")]

        result = _find(participants, allow_flex_hours=False, max_duration=8)

        assert result.has_results
        assert result.suggestion is None
        assert len(result.slots) == 1

        slot = result.slots[0]
        assert slot.id == "9-17-8"
        assert (slot.start_hour, slot.end_hour, slot.duration) == (9, 17, 8)
        assert slot.score == 70
        assert slot.quality == MeetingQuality.GOOD
        assert [p.id for p in slot.available_members] == ["alice", "bob"]
        assert slot.flexing_members == []
        assert slot.unavailable_members == []

    def test_identical_teammates_default_durations(self):
        """Equal-length windows never absorb each other."""
        result = _find([_person("alice"), _person("bob")], allow_flex_hours=False)

        assert [s.id for s in result.slots] == ["9-13-4", "10-14-4", "11-15-4", "12-16-4", "13-17-4"]
        assert all(s.score == 70 for s in result.slots)

    def test_no_overlap_without_flex(self):
        participants = [_person("alice"), _person("bob", "Pacific/Auckland")]

        result = _find(participants, allow_flex_hours=False, min_duration=1)

        assert not result.has_results
        assert result.slots == []
        assert result.suggestion == SUGGEST_ENABLE_FLEX

    def test_no_overlap_even_with_flex(self):
        """Twelve hours apart, two hours of flex each still do not meet."""
        participants = [_person("alice"), _person("bob", "Pacific/Auckland")]

        result = _find(participants, allow_flex_hours=True, flex_range=2)

        assert not result.has_results
        assert result.suggestion == SUGGEST_FEWER_PARTICIPANTS

    def test_flex_bridges_gap(self):
        participants = [_person("alice"), _person("bob", "Australia/Brisbane")]

        result = _find(participants, allow_flex_hours=True, flex_range=2)

        assert result.has_results
        assert [s.id for s in result.slots] == ["7-8-1", "8-9-1", "7-9-2"]

        first = result.slots[0]
        assert first.available_members == []
        assert [(f.participant.id, f.direction, f.hours_needed) for f in first.flexing_members] == [
            ("alice", FlexDirection.EARLY, 2),
            ("bob", FlexDirection.LATE, 1),
        ]
        assert first.score == 37
        assert first.quality == MeetingQuality.POOR

        for slot in result.slots:
            assert slot.flexing_members
            assert all(f.hours_needed <= 2 for f in slot.flexing_members)
            assert slot.quality in (MeetingQuality.GOOD, MeetingQuality.FAIR, MeetingQuality.POOR)

    def test_worst_flex_across_window_is_kept(self):
        participants = [_person("alice"), _person("bob", "Australia/Brisbane")]

        result = _find(participants, flex_range=2)
        two_hour = next(s for s in result.slots if s.id == "7-9-2")

        assert [(f.participant.id, f.direction, f.hours_needed) for f in two_hour.flexing_members] == [
            ("alice", FlexDirection.EARLY, 2),
            ("bob", FlexDirection.LATE, 2),
        ]
        assert two_hour.score == 34

    @pytest.mark.parametrize("allow_flex", [True, False])
    def test_single_participant(self, allow_flex):
        result = _find([_person("alice")], allow_flex_hours=allow_flex)

        assert not result.has_results
        assert result.slots == []
        assert result.suggestion == SUGGEST_MORE_PARTICIPANTS

    def test_no_participants(self):
        result = _find([])

        assert result.suggestion == SUGGEST_MORE_PARTICIPANTS

    def test_full_attendance_outranks_partial(self):
        """The 13-17 slot everyone can attend beats the pair-only slots."""
        participants = [_person("alice"), _person("bob"), _person("carol", start=13, end=17)]

        result = _find(participants, allow_flex_hours=False)

        assert [s.id for s in result.slots] == ["13-17-4", "9-13-4", "10-14-4", "11-15-4", "12-16-4"]

        best, runner_up = result.slots[0], result.slots[1]
        assert best.score == 70
        assert len(best.available_members) == 3
        assert runner_up.score == pytest.approx(40)
        assert runner_up.quality == MeetingQuality.POOR
        assert [p.id for p in runner_up.unavailable_members] == ["carol"]

    def test_overnight_slot_wraps_midnight(self):
        participants = [_person("alice", start=22, end=6), _person("bob", start=22, end=6)]

        result = _find(participants, allow_flex_hours=False)

        assert result.slots[0].id == "22-2-4"
        assert result.slots[0].hours == [22, 23, 0, 1]
        assert result.slots[0].end_hour == 2

    def test_equal_start_and_end_is_never_available(self):
        participants = [_person("alice"), _person("bob"), _person("chen", start=9, end=9)]

        result = _find(participants, allow_flex_hours=False)

        for slot in result.slots:
            assert "chen" not in [p.id for p in slot.available_members]

    def test_real_timezones(self):
        """Berlin and New York overlap for two hours in January."""
        participants = [_person("alice", "Europe/Berlin"), _person("bob", "America/New_York")]

        result = MeetingFinder().find_best_meeting_times(
            MeetingFinderOptions(
                participants=participants,
                viewer_timezone="Europe/Berlin",
                reference_time=REFERENCE
            )
        )

        assert [s.id for s in result.slots] == ["15-17-2", "14-17-3", "15-18-3", "13-17-4", "15-19-4"]
        assert result.slots[0].quality == MeetingQuality.GOOD
        assert result.slots[1].score == 55
        assert result.slots[1].quality == MeetingQuality.FAIR


class TestInvariants:
    """Properties that hold for every search."""

    @pytest.mark.parametrize("team", TEAMS)
    @pytest.mark.parametrize("allow_flex", [True, False])
    def test_members_are_partitioned(self, team, allow_flex):
        result = _find(team, allow_flex_hours=allow_flex, flex_range=3, max_duration=6)

        for slot in result.slots:
            _assert_partitioned(slot, team)
            assert slot.attendee_count >= 2

    @pytest.mark.parametrize("team", TEAMS)
    def test_results_are_ranked_and_capped(self, team):
        result = _find(team, flex_range=2, max_duration=6)

        assert len(result.slots) <= MAX_RESULTS
        scores = [s.score for s in result.slots]
        assert scores == sorted(scores, reverse=True)
        for slot in result.slots:
            assert 0 <= slot.score <= 100
            assert slot.quality == determine_quality(slot.score)

    @pytest.mark.parametrize("team", TEAMS)
    def test_no_kept_slot_is_covered_by_a_longer_one(self, team):
        result = _find(team, flex_range=2, max_duration=8)

        for shorter, longer in itertools.permutations(result.slots, 2):
            if shorter.duration < longer.duration:
                assert not longer.covers(shorter)

    def test_viewer_timezone_only_shifts_hours(self):
        team = [_person("alice"), _person("bob", "America/New_York")]

        london = _find(team, viewer_timezone="Europe/London")
        tokyo = _find(team, viewer_timezone="Asia/Tokyo")

        assert [s.score for s in london.slots] == [s.score for s in tokyo.slots]
        assert sorted(((s.start_hour + 9) % 24, s.duration) for s in london.slots) == sorted(
            (s.start_hour, s.duration) for s in tokyo.slots
        )


class TestHourAnalysis:
    """Tests for per-hour classification."""

    def test_buckets_preserve_input_order(self):
        converter = TimezoneConverter(reference_time=REFERENCE, offset_lookup=_offsets)
        participants = [
            _person("zoe", start=10, end=18),
            _person("adam", "America/New_York"),
            _person("mia"),
            _person("eli", start=6, end=8),
        ]

        analysis = MeetingFinder()._analyze_hour(
            hour=9,
            participants=participants,
            viewer_timezone="Europe/London",
            allow_flex_hours=True,
            flex_range=2,
            converter=converter
        )

        assert [p.id for p in analysis.available_members] == ["mia"]
        assert [(f.participant.id, f.direction, f.hours_needed) for f in analysis.flexing_members] == [
            ("zoe", FlexDirection.EARLY, 1),
            ("eli", FlexDirection.LATE, 2),
        ]
        assert [p.id for p in analysis.unavailable_members] == ["adam"]
        assert analysis.total_available == 3

    def test_flex_disabled_marks_unavailable(self):
        converter = TimezoneConverter(reference_time=REFERENCE, offset_lookup=_offsets)

        analysis = MeetingFinder()._analyze_hour(
            hour=8,
            participants=[_person("alice")],
            viewer_timezone="Europe/London",
            allow_flex_hours=False,
            flex_range=2,
            converter=converter
        )

        assert analysis.flexing_members == []
        assert [p.id for p in analysis.unavailable_members] == ["alice"]


class TestScoring:
    """Tests for slot scores and quality tiers."""

    @staticmethod
    def _flexers(light: int, heavy: int):
        person = _person("x")
        return (
            [FlexMember(person, FlexDirection.EARLY, 1)] * light
            + [FlexMember(person, FlexDirection.LATE, 2)] * heavy
        )

    def test_everyone_in_normal_hours(self):
        assert calculate_score(2, [], 2) == 70

    def test_partial_attendance(self):
        assert calculate_score(1, [], 3) == pytest.approx(20)

    def test_heavy_flex_penalty(self):
        assert calculate_score(0, self._flexers(0, 2), 2) == 34
        assert calculate_score(1, self._flexers(1, 0), 2) == 55

    def test_clamped_at_zero(self):
        assert calculate_score(0, self._flexers(0, 1), 20) == 0

    def test_no_participants(self):
        assert calculate_score(0, [], 0) == 0

    def test_score_always_in_bounds(self):
        for total in range(1, 9):
            for available in range(total + 1):
                for flexing in range(total - available + 1):
                    for heavy in range(flexing + 1):
                        score = calculate_score(available, self._flexers(flexing - heavy, heavy), total)
                        assert 0 <= score <= 100

    @pytest.mark.parametrize(
        "score, quality",
        [
            (100, MeetingQuality.EXCELLENT),
            (90, MeetingQuality.EXCELLENT),
            (89.99, MeetingQuality.GOOD),
            (70, MeetingQuality.GOOD),
            (69.9, MeetingQuality.FAIR),
            (50, MeetingQuality.FAIR),
            (49.9, MeetingQuality.POOR),
            (0, MeetingQuality.POOR),
        ],
    )
    def test_quality_tiers(self, score, quality):
        assert determine_quality(score) == quality


class TestDeduplication:
    """Tests for ranking and subset removal."""

    def test_longer_slot_absorbs_contained_shorter_slots(self):
        participants = [_person("alice"), _person("bob")]

        result = _find(participants, allow_flex_hours=False, min_duration=2, max_duration=8)

        assert [s.id for s in result.slots] == ["9-17-8"]

    def test_better_short_slot_survives_worse_long_slot(self):
        """A short slot ranked above a longer one is kept even when covered by it."""
        participants = [_person("alice"), _person("bob"), _person("carol", start=13, end=17)]

        result = _find(participants, allow_flex_hours=False, min_duration=4, max_duration=8)
        ids = [s.id for s in result.slots]

        assert ids[0] == "13-17-4"
        assert "9-17-8" in ids
