# timeline.py
"""
Resolution queries over a Timeline.

Every time of day lives on a 24 hour circle, so all distances here are
forward distances taken modulo one day. Plain subtraction of two times of
day is never used: it breaks for anything that spans midnight.
"""
import logging
from datetime import timedelta
from typing import Tuple

from timedwall.errors import NoEventsError
from timedwall.models import DAY, Event, StaticEvent, TimePoint, Timeline, TransitionEvent

# Number of blend updates across one transition
STEPS = 10

logger = logging.getLogger(__name__)


def wrap(delta: timedelta) -> timedelta:
    """Reduce a duration into [0, 24h)"""
    return delta % DAY


def forward_distance(origin: TimePoint, target: TimePoint) -> timedelta:
    """How long after `origin` the clock next reads `target`, in [0, 24h)"""
    return wrap(target.offset - origin.offset)


def _distance_to_next(now: TimePoint, start: TimePoint) -> timedelta:
    # An event starting right now next happens tomorrow
    return forward_distance(now, start) or DAY


def until_next(timeline: Timeline, t: TimePoint) -> timedelta:
    """Duration from `t` until the next event starts, in (0, 24h].

    An empty timeline returns the 24 hour sentinel.
    """
    shortest = DAY
    for event in timeline.events:
        diff = _distance_to_next(t, event.start)
        if diff < shortest:
            shortest = diff
    return shortest


def next_event(timeline: Timeline, now: TimePoint) -> Event:
    """The event that starts soonest after `now`"""
    event, _ = next_event_with_distance(timeline, now)
    return event


def next_event_with_distance(timeline: Timeline, now: TimePoint) -> Tuple[Event, timedelta]:
    """Like next_event, also returning how long until it starts"""
    if timeline.is_empty():
        raise NoEventsError("Can not find next event: the timeline has no events")

    best = None
    best_diff = None
    for event in timeline.events:
        diff = _distance_to_next(now, event.start)
        if best_diff is None or diff < best_diff:
            best, best_diff = event, diff
    return best, best_diff


def prev_event(timeline: Timeline, now: TimePoint) -> Event:
    """The event whose most recent start (today's or yesterday's) is closest before `now`.

    An event starting exactly at `now` counts as the previous one (distance 0)
    instead of being skipped until tomorrow, since it is the one that is active.
    """
    event, _ = prev_event_with_distance(timeline, now)
    return event


def prev_event_with_distance(timeline: Timeline, now: TimePoint) -> Tuple[Event, timedelta]:
    """Like prev_event, also returning how long ago it started (0 when it starts at `now`)"""
    if timeline.is_empty():
        raise NoEventsError("Can not find previous event: the timeline has no events")

    best = None
    best_diff = None
    for event in timeline.events:
        # Covers both today's start and yesterday's start in one step
        diff = forward_distance(event.start, now)
        if best_diff is None or diff < best_diff:
            best, best_diff = event, diff
    return best, best_diff


def event_window(timeline: Timeline, event: Event) -> timedelta:
    """How long an event stays active once it has started"""
    if isinstance(event, StaticEvent):
        return until_next(timeline, event.at)
    elif isinstance(event, TransitionEvent):
        return event.duration
    raise TypeError(f"Not a timeline event: {event!r}")


def event_cooldown(timeline: Timeline, event: Event) -> timedelta:
    """How often an active event's effect is re-applied"""
    if isinstance(event, StaticEvent):
        return event_window(timeline, event)
    elif isinstance(event, TransitionEvent):
        return transition_cooldown(event)
    raise TypeError(f"Not a timeline event: {event!r}")


def transition_cooldown(transition: TransitionEvent) -> timedelta:
    return transition.duration / STEPS


def transition_progress(transition: TransitionEvent, now: TimePoint) -> timedelta:
    """How far into the transition `now` is, capped at the transition's length"""
    window = transition.duration
    progress = wrap(window - forward_distance(now, transition.up_to))
    if forward_distance(transition.start, now) >= window:
        # Already over
        return window
    return progress


def transition_ratio(transition: TransitionEvent, now: TimePoint) -> float:
    """Completion ratio of a transition at `now`: [0, 1) inside the window, 1.0 once it is over"""
    window = transition.duration
    if not window:
        return 1.0
    return transition_progress(transition, now) / window
