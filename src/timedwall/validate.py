# validate.py
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict

from timedwall.models import DAY, Timeline, TransitionEvent, ValidationResult


def _format_timedelta(td: timedelta) -> str:
    """Format a timedelta into a human-readable string"""
    total_seconds = int(td.total_seconds())
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"


class TimelineValidator:
    """Validator for timeline integrity"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate(self, timeline: Timeline, check_files: bool = True) -> ValidationResult:
        """Main validation entry point"""
        result = ValidationResult()

        if timeline.is_empty():
            result.add("timeline_events", "error", "Timeline must contain at least one event")
            return result

        self._validate_transitions(timeline, result)
        self._validate_starts(timeline, result)
        self._analyze_overlaps(timeline, result)
        if check_files:
            self._validate_images(timeline, result)

        return result

    def _validate_transitions(self, timeline: Timeline, result: ValidationResult) -> None:
        for transition in timeline.transitions:
            if not transition.duration:
                result.add("timeline_transitions", "error", f"Transition at {transition.start} has no duration")

    def _validate_starts(self, timeline: Timeline, result: ValidationResult) -> None:
        """No two events may start at the same time of day"""
        seen = {}
        for event in timeline.events:
            key = event.start.seconds
            if key in seen:
                result.add("timeline_duplicates", "error", f"More than one event starts at {event.start}")
            seen[key] = event

    def _analyze_overlaps(self, timeline: Timeline, result: ValidationResult) -> None:
        """A transition must be over before the next event starts"""
        events = sorted(timeline.events, key=lambda e: e.start.seconds)

        for i, event in enumerate(events):
            if not isinstance(event, TransitionEvent):
                continue
            following = events[(i + 1) % len(events)]
            gap = (following.start.offset - event.start.offset) % DAY or DAY
            if event.duration > gap:
                overlap = event.duration - gap
                result.add(
                    "timeline_overlap",
                    "error",
                    f"Transition {event.start}-{event.up_to} overlaps the event at {following.start} "
                    f"by {_format_timedelta(overlap)}",
                )

    def _validate_images(self, timeline: Timeline, result: ValidationResult) -> None:
        """Each referenced image should exist on disk"""
        for image in timeline.images():
            image_path = timeline.resolve_image(image)
            if not image_path.exists():
                result.add("timeline_images", "warning", f"Image {image_path} not found")

    def validate_config(self, config: Dict[str, Any]) -> ValidationResult:
        """Validate the global configuration"""
        result = ValidationResult()

        daemon = config.get("daemon", {})
        if not isinstance(daemon, dict):
            result.add("config_daemon", "error", "The [daemon] section must be a table")
        else:
            loop_wait = daemon.get("loop_wait", 5)
            if isinstance(loop_wait, bool) or not isinstance(loop_wait, (int, float)) or loop_wait <= 0:
                result.add("config_daemon", "error", f"loop_wait must be a positive number of seconds, got {loop_wait!r}")
            temp_image = daemon.get("temp_image", "")
            if not isinstance(temp_image, str):
                result.add("config_daemon", "error", "temp_image must be a path")
            elif temp_image and Path(temp_image).suffix.lower() not in (".jpg", ".jpeg"):
                result.add("config_daemon", "warning", f"temp_image is written as JPEG, but is named {temp_image}")

        timeline = config.get("timeline", {})
        if not isinstance(timeline, dict):
            result.add("config_timeline", "error", "The [timeline] section must be a table")
        else:
            path = timeline.get("path", "")
            if not isinstance(path, str):
                result.add("config_timeline", "error", "timeline path must be a string")
            elif path and not Path(path).expanduser().exists():
                result.add("config_timeline", "warning", f"Timeline file {path} not found")

        engine = config.get("engine", {})
        if not isinstance(engine, dict):
            result.add("config_engine", "error", "The [engine] section must be a table")
        else:
            command = engine.get("command", "")
            if not isinstance(command, str):
                result.add("config_engine", "error", "engine command must be a string")
            elif command and "{path}" not in command:
                result.add("config_engine", "error", "engine command must contain a {path} placeholder")

        return result
