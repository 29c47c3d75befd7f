# src/timedwall/models.py
from pathlib import Path
from datetime import datetime, time, timedelta
from dataclasses import dataclass, field
from typing import Optional, Union, List
from collections import defaultdict

SECONDS_PER_DAY = 24 * 60 * 60
DAY = timedelta(days=1)

DEFAULT_LOOP_WAIT = timedelta(seconds=5)
DEFAULT_TRANSITION_MODE = "overlay"
DEFAULT_VERSION = "1.0"

# Placeholder used by the "format" filename template
FORMAT_PLACEHOLDER = "%s"


def expand_filename(template: str, name: str) -> str:
    """Apply a filename template (e.g. "/usr/share/backgrounds/%s.jpg") to a short name"""
    if not template or FORMAT_PLACEHOLDER not in template:
        return name
    prefix, suffix = template.split(FORMAT_PLACEHOLDER, 1)
    return f"{prefix}{name}{suffix}"


def shorten_filename(template: str, filename: str) -> str:
    """Reverse of expand_filename. Filenames that don't fit the template are returned as-is."""
    if not template or FORMAT_PLACEHOLDER not in template:
        return filename
    prefix, suffix = template.split(FORMAT_PLACEHOLDER, 1)
    if len(filename) < len(prefix) + len(suffix):
        return filename
    if not (filename.startswith(prefix) and filename.endswith(suffix)):
        return filename
    return filename[len(prefix):len(filename) - len(suffix)]


@dataclass(frozen=True)
class TimePoint:
    """Time of day with no date component, always taken modulo 24 hours"""
    hour: int
    minute: int
    second: int = 0

    def __post_init__(self):
        if not (0 <= self.hour < 24 and 0 <= self.minute < 60 and 0 <= self.second < 60):
            raise ValueError(f"Invalid time of day: {self.hour}:{self.minute}:{self.second}")

    @classmethod
    def parse(cls, value: str) -> "TimePoint":
        """Parse "HH:MM" (or "HH:MM:SS") into a TimePoint"""
        clean = value.strip()
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                parsed = datetime.strptime(clean, fmt)
                return cls(parsed.hour, parsed.minute, parsed.second)
            except ValueError:
                continue
        raise ValueError(f"Invalid time format: {value!r}")

    @classmethod
    def from_seconds(cls, seconds: Union[int, float]) -> "TimePoint":
        """Build a TimePoint from seconds since midnight, wrapping around the day"""
        total = int(seconds) % SECONDS_PER_DAY
        return cls(total // 3600, (total % 3600) // 60, total % 60)

    @classmethod
    def from_time(cls, value: time) -> "TimePoint":
        return cls(value.hour, value.minute, value.second)

    @classmethod
    def from_datetime(cls, value: datetime) -> "TimePoint":
        return cls(value.hour, value.minute, value.second)

    @classmethod
    def now(cls) -> "TimePoint":
        return cls.from_datetime(datetime.now())

    @property
    def seconds(self) -> int:
        """Seconds since midnight"""
        return self.hour * 3600 + self.minute * 60 + self.second

    @property
    def offset(self) -> timedelta:
        """Distance from midnight as a timedelta"""
        return timedelta(seconds=self.seconds)

    def __add__(self, other: timedelta) -> "TimePoint":
        if not isinstance(other, timedelta):
            return NotImplemented
        return TimePoint.from_seconds(self.seconds + int(other.total_seconds()))

    def __sub__(self, other: timedelta) -> "TimePoint":
        if not isinstance(other, timedelta):
            return NotImplemented
        return TimePoint.from_seconds(self.seconds - int(other.total_seconds()))

    def __str__(self) -> str:
        if self.second:
            return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class StaticEvent:
    """Show a single image starting at a time of day"""
    at: TimePoint
    image: str

    @property
    def start(self) -> TimePoint:
        return self.at

    @property
    def images(self) -> List[str]:
        return [self.image]

    def describe(self, template: str = "") -> str:
        """Render the event as a line of the simple timed wallpaper format"""
        return f"@{self.at}: {shorten_filename(template, self.image)}"

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class TransitionEvent:
    """Crossfade from one image to another between two times of day"""
    start: TimePoint
    up_to: TimePoint
    from_image: str
    to_image: str
    mode: str = DEFAULT_TRANSITION_MODE

    @property
    def duration(self) -> timedelta:
        """Length of the transition, wrapping past midnight"""
        return timedelta(seconds=(self.up_to.seconds - self.start.seconds) % SECONDS_PER_DAY)

    @property
    def images(self) -> List[str]:
        return [self.from_image, self.to_image]

    def describe(self, template: str = "") -> str:
        """Render the event as a line of the simple timed wallpaper format"""
        line = (
            f"@{self.start}-{self.up_to}: "
            f"{shorten_filename(template, self.from_image)} .. {shorten_filename(template, self.to_image)}"
        )
        if self.mode != DEFAULT_TRANSITION_MODE:
            line += f" | {self.mode}"
        return line

    def __str__(self) -> str:
        return self.describe()


Event = Union[StaticEvent, TransitionEvent]


@dataclass
class Timeline:
    """All events of one repeating daily cycle"""
    version: str = DEFAULT_VERSION
    name: str = ""
    format: str = ""
    path: Optional[Path] = None
    statics: List[StaticEvent] = field(default_factory=list)
    transitions: List[TransitionEvent] = field(default_factory=list)
    loop_wait: timedelta = DEFAULT_LOOP_WAIT

    @property
    def events(self) -> List[Event]:
        return [*self.statics, *self.transitions]

    def is_empty(self) -> bool:
        return not self.statics and not self.transitions

    def add_static(self, at: TimePoint, image: str) -> StaticEvent:
        """Add a static event, applying the filename template"""
        event = StaticEvent(at=at, image=expand_filename(self.format, image))
        self.statics.append(event)
        return event

    def add_transition(
        self,
        start: TimePoint,
        up_to: TimePoint,
        from_image: str,
        to_image: str,
        mode: str = "",
    ) -> TransitionEvent:
        """Add a transition event, applying the filename template"""
        event = TransitionEvent(
            start=start,
            up_to=up_to,
            from_image=expand_filename(self.format, from_image),
            to_image=expand_filename(self.format, to_image),
            mode=mode or DEFAULT_TRANSITION_MODE,
        )
        self.transitions.append(event)
        return event

    def images(self) -> List[str]:
        """Every image referenced by the timeline, in order of first use"""
        seen = []
        for event in sorted(self.events, key=lambda e: e.start.seconds):
            for image in event.images:
                if image not in seen:
                    seen.append(image)
        return seen

    def resolve_image(self, image: str) -> Path:
        """Absolute path of an image; relative paths are taken from the timeline's directory"""
        image_path = Path(image).expanduser()
        if not image_path.is_absolute() and self.path is not None:
            image_path = Path(self.path).parent / image_path
        return image_path.resolve()

    def dump(self) -> str:
        """Serialize to the simple timed wallpaper format"""
        header = [f"stw: {self.version}"]
        if self.name:
            header.append(f"name: {self.name}")
        if self.format:
            header.append(f"format: {self.format}")
        lines = [e.describe(self.format) for e in sorted(self.events, key=lambda e: e.start.seconds)]
        return "\n".join(header + lines) + "\n"

    def __str__(self) -> str:
        title = self.name or (Path(self.path).stem if self.path else "timeline")
        return f"{title}: {len(self.statics)} statics, {len(self.transitions)} transitions"


class ValidationResult:
    def __init__(self):
        self.messages = []

    def add(self, check: str, level: str, message: str):
        """
        Add a message to the result.
        :param check: Identifier for the check (e.g., "timeline_overlap").
        :param level: The level of the message (error or warning).
        :param message: The message to display.
        """

        self.messages.append({
            "check": check,
            "level": level,
            "message": message
        })

    def merge(self, other: 'ValidationResult'):
        """Merge another ValidationResult into this one"""
        self.messages.extend(other.messages)

    @property
    def errors(self) -> dict:
        errors = defaultdict(list)
        for msg in self.messages:
            if msg["level"] == "error":
                errors[msg["check"]].append(msg["message"])

        return errors

    @property
    def warnings(self) -> dict:
        warnings = defaultdict(list)
        for msg in self.messages:
            if msg["level"] == "warning":
                warnings[msg["check"]].append(msg["message"])

        return warnings

    @property
    def passed(self) -> bool:
        """Validation is considered passed if there are no errors"""
        return len(self.errors) == 0

    @property
    def failed(self) -> bool:
        """Validation is considered failed if there are any errors"""
        return len(self.errors) > 0
