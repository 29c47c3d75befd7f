# scheduler.py
import queue
import signal
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from timedwall.models import Event, StaticEvent, TimePoint, Timeline, TransitionEvent
from timedwall.state import InitialState, apply_initial_state, resolve_initial_state
from timedwall.timeline import (
    event_cooldown, event_window, forward_distance, transition_progress, transition_ratio
)
from timedwall.writer import WallpaperWriter

# Inbox messages
REFRESH = "refresh"
STOP = "stop"

REFRESH_SIGNALS = ("SIGHUP", "SIGUSR1")


@dataclass
class Trigger:
    """A recurring daily action: active for `window` after `at`, re-run every `cooldown`"""
    event: Event
    at: TimePoint
    window: timedelta
    cooldown: timedelta
    action: Callable[[datetime], None]
    last_fired: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        return forward_distance(self.at, TimePoint.from_datetime(now)) < self.window

    def activated_at(self, now: datetime) -> datetime:
        """When the occurrence of this trigger that `now` falls in began"""
        return now.replace(microsecond=0) - forward_distance(self.at, TimePoint.from_datetime(now))

    def is_due(self, now: datetime) -> bool:
        if not self.is_active(now):
            return False
        if self.last_fired is None or self.last_fired < self.activated_at(now):
            # First run of this occurrence
            return True
        return now - self.last_fired >= self.cooldown

    def fire(self, now: datetime) -> None:
        # Marked first, so a failing action waits for its next cadence
        self.last_fired = now
        self.action(now)


class EventLoop:
    """Evaluates every trigger on each tick"""

    def __init__(self):
        self.triggers: List[Trigger] = []
        self.ticks = 0
        self.logger = logging.getLogger(__name__)

    def add(self, trigger: Trigger) -> None:
        self.triggers.append(trigger)

    def find(self, event: Event) -> Optional[Trigger]:
        for trigger in self.triggers:
            if trigger.event == event:
                return trigger
        return None

    def tick(self, now: datetime) -> int:
        """Fire every due trigger. Returns how many fired."""
        self.ticks += 1
        fired = 0
        for trigger in self.triggers:
            if not trigger.is_due(now):
                continue
            fired += 1
            try:
                trigger.fire(now)
            except Exception as e:
                # Only this trigger's tick is lost
                self.logger.error(f"Event at {trigger.at} failed: {e}")
        return fired


def build_triggers(timeline: Timeline, writer: WallpaperWriter) -> List[Trigger]:
    """One trigger per timeline event"""
    logger = logging.getLogger(__name__)
    triggers = []

    for event in timeline.events:
        window = event_window(timeline, event)
        cooldown = event_cooldown(timeline, event)

        if isinstance(event, StaticEvent):
            logger.debug(f"Registering static event at {event.at} for setting {event.image}")
            action = _static_action(event, window, writer)
        elif isinstance(event, TransitionEvent):
            logger.debug(
                f"Registering transition at {event.start} for transitioning "
                f"from {event.from_image} to {event.to_image}"
            )
            action = _transition_action(event, cooldown, writer)
        else:
            raise TypeError(f"Not a timeline event: {event!r}")

        triggers.append(Trigger(event=event, at=event.start, window=window, cooldown=cooldown, action=action))

    return triggers


def _static_action(event: StaticEvent, window: timedelta, writer: WallpaperWriter) -> Callable[[datetime], None]:
    logger = logging.getLogger(__name__)

    def action(now: datetime) -> None:
        logger.info(f"Triggered static wallpaper event at {event.at}")
        logger.debug(f"Window: {window}, filename: {event.image}")
        writer.show_static(event)

    return action


def _transition_action(event: TransitionEvent, cooldown: timedelta, writer: WallpaperWriter) -> Callable[[datetime], None]:
    logger = logging.getLogger(__name__)

    def action(now: datetime) -> None:
        point = TimePoint.from_datetime(now)
        # Recomputed on every tick since the clock has moved on
        ratio = transition_ratio(event, point)
        logger.info(f"Triggered transition event at {event.start} ({int(ratio * 100)}% complete)")
        logger.debug(
            f"Progress: {transition_progress(event, point)}, up to: {event.up_to}, "
            f"window: {event.duration}, cooldown: {cooldown}, type: {event.mode}"
        )
        writer.show_transition(event, ratio)

    return action


class Daemon:
    """Runs a timeline: sets the initial wallpaper, then ticks the event loop forever.

    One thread does all the work. Refresh and stop requests (including those
    coming from signal handlers) are queued and handled in arrival order
    between ticks, so the writer is never used by two callers at once.
    """

    def __init__(
        self,
        timeline: Timeline,
        writer: WallpaperWriter,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.timeline = timeline
        self.writer = writer
        self.clock = clock
        self.loop = EventLoop()
        self.logger = logging.getLogger(__name__)
        self._inbox = queue.SimpleQueue()
        self._next_tick = time.monotonic()
        self.started = False

    @property
    def loop_wait(self) -> float:
        return self.timeline.loop_wait.total_seconds()

    def request_refresh(self) -> None:
        """Ask the daemon to re-derive the wallpaper from the current time"""
        self._inbox.put(REFRESH)

    def stop(self) -> None:
        self._inbox.put(STOP)

    def install_signal_handlers(self) -> None:
        """SIGHUP and SIGUSR1 request a refresh (must be called from the main thread)"""
        for name in REFRESH_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is not None:
                signal.signal(signum, self._on_signal)

    def _on_signal(self, signum, frame) -> None:
        # SimpleQueue.put is safe to call from a signal handler
        self._inbox.put(REFRESH)

    def start(self) -> InitialState:
        """Set the initial wallpaper and register triggers. Errors here are fatal."""
        state = self.apply_current_state()
        for trigger in build_triggers(self.timeline, self.writer):
            self.loop.add(trigger)

        # Give the freshly applied state time before the triggers take over
        self.logger.debug(f"Activating events in {state.settle}")
        self._next_tick = time.monotonic() + state.settle.total_seconds()
        self.started = True
        return state

    def apply_current_state(self) -> InitialState:
        now = self.clock()
        state = resolve_initial_state(self.timeline, TimePoint.from_datetime(now))
        apply_initial_state(state, self.writer)
        return state

    def refresh(self) -> Optional[InitialState]:
        """Handle a refresh request. Failures are logged, the daemon keeps running."""
        self.logger.info("Refreshing wallpaper")
        try:
            state = self.apply_current_state()
        except Exception as e:
            self.logger.error(f"Could not refresh wallpaper: {e}")
            return None

        # The active trigger already has what it would have done
        trigger = self.loop.find(state.event)
        if trigger is not None:
            trigger.last_fired = self.clock()
        return state

    def tick(self) -> int:
        fired = self.loop.tick(self.clock())
        self._next_tick = time.monotonic() + self.loop_wait
        return fired

    def handle(self, message: str) -> bool:
        """Handle one inbox message. Returns False once the daemon should stop."""
        if message == STOP:
            return False
        if message == REFRESH:
            self.refresh()
        return True

    def process_pending(self) -> bool:
        """Handle every queued message without blocking"""
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                return True
            if not self.handle(message):
                return False

    def serve_forever(self) -> None:
        """Tick every loop_wait seconds and handle messages in between, until stopped"""
        while True:
            timeout = max(0.0, self._next_tick - time.monotonic())
            try:
                message = self._inbox.get(timeout=timeout)
            except queue.Empty:
                message = None

            if message is not None and not self.handle(message):
                break

            # Checked after every message too, so a flood of refreshes can't hold off the triggers
            if time.monotonic() >= self._next_tick:
                self.tick()

        self.logger.info("Event loop stopped")

    def run(self) -> None:
        self.start()
        self.serve_forever()
