# state.py
"""
Working out what the desktop should show right now, without waiting for
the scheduler's next tick. Used at startup and whenever a refresh is
requested (for example after resuming from sleep).
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from timedwall.models import DAY, Event, StaticEvent, TimePoint, Timeline, TransitionEvent
from timedwall.timeline import (
    forward_distance, prev_event, transition_cooldown, transition_ratio, until_next, wrap
)
from timedwall.writer import WallpaperWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitialState:
    """The event active at `now` and how far along it is"""
    event: Event
    now: TimePoint
    window: timedelta
    cooldown: timedelta
    ratio: Optional[float] = None

    @property
    def settle(self) -> timedelta:
        """How long to hold off the scheduler's own triggers after applying this state"""
        if isinstance(self.event, TransitionEvent):
            return self.cooldown / 2
        return self.window / 2


def resolve_initial_state(timeline: Timeline, now: TimePoint) -> InitialState:
    """Pick the active event for `now`. Raises NoEventsError on an empty timeline."""
    event = prev_event(timeline, now)

    if isinstance(event, StaticEvent):
        elapsed = forward_distance(event.at, now)
        # Time left until the next event starts
        window = wrap(until_next(timeline, event.at) - elapsed) or DAY
        return InitialState(event=event, now=now, window=window, cooldown=window)
    elif isinstance(event, TransitionEvent):
        return InitialState(
            event=event,
            now=now,
            window=event.duration,
            cooldown=transition_cooldown(event),
            ratio=transition_ratio(event, now),
        )
    raise TypeError(f"Not a timeline event: {event!r}")


def apply_initial_state(state: InitialState, writer: WallpaperWriter) -> None:
    """Put the resolved state on the desktop"""
    event = state.event
    if isinstance(event, StaticEvent):
        logger.info(f"Initial static wallpaper event at {event.at}")
        logger.debug(f"Window: {state.window}, filename: {event.image}")
        writer.show_static(event)
    elif isinstance(event, TransitionEvent):
        logger.info(f"Initial transition event at {event.start} ({int(state.ratio * 100)}% complete)")
        logger.debug(
            f"Up to: {event.up_to}, window: {state.window}, cooldown: {state.cooldown}, "
            f"type: {event.mode}, from: {event.from_image}, to: {event.to_image}"
        )
        # Show the "from" image first so that something happens immediately
        writer.show_image(event.from_image)
        writer.show_transition(event, state.ratio)
    else:
        raise TypeError(f"Not a timeline event: {event!r}")
