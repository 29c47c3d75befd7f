import pytest
from datetime import timedelta

from timedwall.errors import NoEventsError
from timedwall.models import DAY, StaticEvent, Timeline, TransitionEvent
from timedwall.timeline import (
    STEPS, event_cooldown, event_window, forward_distance, next_event, next_event_with_distance,
    prev_event, prev_event_with_distance, transition_cooldown, transition_progress,
    transition_ratio, until_next, wrap
)

from conftest import tp


@pytest.fixture
def three_statics():
    timeline = Timeline()
    timeline.add_static(tp("06:00"), "morning.jpg")
    timeline.add_static(tp("12:00"), "noon.jpg")
    timeline.add_static(tp("18:00"), "evening.jpg")
    return timeline


@pytest.fixture
def single_static():
    timeline = Timeline()
    timeline.add_static(tp("08:00"), "only.jpg")
    return timeline


class TestWraparound:
    def test_wrap(self):
        assert wrap(timedelta(hours=-1)) == timedelta(hours=23)
        assert wrap(timedelta(hours=25)) == timedelta(hours=1)
        assert wrap(DAY) == timedelta(0)

    def test_forward_distance_across_midnight(self):
        assert forward_distance(tp("23:30"), tp("00:30")) == timedelta(hours=1)
        assert forward_distance(tp("00:30"), tp("23:30")) == timedelta(hours=23)
        assert forward_distance(tp("12:00"), tp("12:00")) == timedelta(0)


class TestUntilNext:
    """Tests for the time until the next event starts"""

    @pytest.mark.parametrize("now, expected", [
        ("05:00", timedelta(hours=1)),
        ("06:00", timedelta(hours=6)),
        ("07:30", timedelta(hours=4, minutes=30)),
        ("17:59", timedelta(minutes=1)),
        ("18:00", timedelta(hours=12)),
        ("23:00", timedelta(hours=7)),
        ("00:00", timedelta(hours=6)),
    ])
    def test_three_statics(self, three_statics, now, expected):
        assert until_next(three_statics, tp(now)) == expected

    def test_matches_brute_force_model(self, three_statics):
        """Every minute of the day, compared with a hand-computed minimum"""
        starts = [6 * 60, 12 * 60, 18 * 60]
        for minute in range(0, 24 * 60, 7):
            expected = min(((start - minute) % 1440) or 1440 for start in starts)
            result = until_next(three_statics, tp(f"{minute // 60}:{minute % 60:02d}"))
            assert timedelta(0) < result <= DAY
            assert result == timedelta(minutes=expected)

    def test_single_event_is_a_whole_day(self, single_static):
        assert until_next(single_static, tp("08:00")) == DAY

    def test_empty_timeline_is_a_whole_day(self):
        assert until_next(Timeline(), tp("08:00")) == DAY


class TestNextEvent:
    def test_empty_timeline(self):
        with pytest.raises(NoEventsError):
            next_event(Timeline(), tp("08:00"))

    def test_single_static(self, single_static):
        event, distance = next_event_with_distance(single_static, tp("07:00"))
        assert event == single_static.statics[0]
        assert distance == timedelta(hours=1)

    def test_wraps_to_tomorrow(self, three_statics):
        assert next_event(three_statics, tp("13:00")).image == "evening.jpg"
        assert next_event(three_statics, tp("19:00")).image == "morning.jpg"

    def test_event_starting_now_is_not_next(self, three_statics):
        assert next_event(three_statics, tp("12:00")).image == "evening.jpg"

    def test_mixed_events(self, two_transitions):
        two_transitions.add_static(tp("07:00"), "day")
        assert isinstance(next_event(two_transitions, tp("06:30")), StaticEvent)
        assert isinstance(next_event(two_transitions, tp("12:00")), TransitionEvent)


class TestPrevEvent:
    def test_empty_timeline(self):
        with pytest.raises(NoEventsError):
            prev_event(Timeline(), tp("08:00"))

    def test_single_static(self, single_static):
        assert prev_event(single_static, tp("09:00")) == single_static.statics[0]
        # Before today's start, yesterday's occurrence is the previous one
        assert prev_event(single_static, tp("07:00")) == single_static.statics[0]

    def test_today_and_yesterday(self, three_statics):
        assert prev_event(three_statics, tp("13:00")).image == "noon.jpg"
        event, distance = prev_event_with_distance(three_statics, tp("03:00"))
        assert event.image == "evening.jpg"
        assert distance == timedelta(hours=9)

    def test_event_starting_now_is_active(self, three_statics):
        assert prev_event(three_statics, tp("12:00")).image == "noon.jpg"

    def test_midnight_crossing_transition(self):
        timeline = Timeline()
        timeline.add_static(tp("06:00"), "day.jpg")
        late = timeline.add_transition(tp("23:30"), tp("00:30"), "day.jpg", "night.jpg")
        assert prev_event(timeline, tp("00:10")) == late
        assert prev_event(timeline, tp("23:45")) == late
        assert prev_event(timeline, tp("06:01")).image == "day.jpg"

    def test_two_transitions(self, two_transitions):
        event = prev_event(two_transitions, tp("06:30"))
        assert event == two_transitions.transitions[0]
        assert transition_ratio(event, tp("06:30")) == pytest.approx(0.5)


class TestTransitionProgress:
    """Tests for the crossfade completion ratio"""

    def test_halfway(self):
        transition = TransitionEvent(tp("22:00"), tp("23:00"), "a", "b")
        assert transition_ratio(transition, tp("22:30")) == 0.5
        assert transition_progress(transition, tp("22:30")) == timedelta(minutes=30)

    def test_midnight_crossing(self):
        transition = TransitionEvent(tp("23:30"), tp("00:30"), "a", "b")
        assert transition.duration == timedelta(hours=1)
        assert transition_ratio(transition, tp("00:00")) == 0.5
        assert transition_ratio(transition, tp("23:45")) == 0.25

    def test_start_is_zero(self):
        transition = TransitionEvent(tp("22:00"), tp("23:00"), "a", "b")
        assert transition_ratio(transition, tp("22:00")) == 0.0

    def test_after_the_window_is_complete(self):
        transition = TransitionEvent(tp("22:00"), tp("23:00"), "a", "b")
        assert transition_ratio(transition, tp("23:00")) == 1.0
        assert transition_ratio(transition, tp("23:15")) == 1.0

    def test_range_inside_window(self):
        transition = TransitionEvent(tp("23:00"), tp("01:00"), "a", "b")
        previous = -1.0
        for minute in range(0, 120):
            ratio = transition_ratio(transition, tp("23:00") + timedelta(minutes=minute))
            assert 0.0 <= ratio < 1.0
            assert ratio > previous
            previous = ratio

    def test_cooldown(self):
        transition = TransitionEvent(tp("06:00"), tp("07:00"), "a", "b")
        assert STEPS == 10
        assert transition_cooldown(transition) == timedelta(minutes=6)


class TestEventWindow:
    def test_static_window_lasts_until_next_event(self, three_statics):
        morning = three_statics.statics[0]
        assert event_window(three_statics, morning) == timedelta(hours=6)
        assert event_cooldown(three_statics, morning) == timedelta(hours=6)

    def test_transition_window_is_its_duration(self, two_transitions):
        dawn = two_transitions.transitions[0]
        assert event_window(two_transitions, dawn) == timedelta(hours=1)
        assert event_cooldown(two_transitions, dawn) == timedelta(minutes=6)

    def test_not_an_event(self, three_statics):
        with pytest.raises(TypeError):
            event_window(three_statics, "08:00")
