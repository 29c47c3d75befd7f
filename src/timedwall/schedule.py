# schedule.py
import re
import logging
import xml.etree.ElementTree as ET
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

from timedwall.errors import ParseError
from timedwall.models import (
    DEFAULT_TRANSITION_MODE, FORMAT_PLACEHOLDER, TimePoint, Timeline
)
from timedwall.validate import TimelineValidator

# Constants
COMMENT_PREFIXES = ("#", "//")

TIME_PATTERN = r"\d{1,2}:\d{2}(?::\d{2})?"

TRANSITION_REGEX = re.compile(
    r"^@(?P<start>" + TIME_PATTERN + r")"   # Start time
    r"\s*-\s*"                              # Dash
    r"(?P<up_to>" + TIME_PATTERN + r")"     # End time
    r"\s*:\s*(?P<images>.*)$"               # "from .. to [| mode]"
)

STATIC_REGEX = re.compile(
    r"^@(?P<at>" + TIME_PATTERN + r")"      # Start time
    r"\s*:\s*(?P<image>.*)$"                # Image filename
)

HEADER_REGEX = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)\s*:\s*(?P<value>.*)$")


class ScheduleManager:
    """Loads timelines from the simple timed wallpaper and GNOME XML formats"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.validator = TimelineValidator()

    def load_timeline(self, path: Union[str, Path], strict: bool = True) -> Timeline:
        """Load and parse a timeline file, picking the format from its content"""
        path = Path(path).expanduser()
        self.logger.debug(f"Loading timeline from {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read timeline file {path}: {e}")
            raise ParseError(f"Failed to read timeline file: {e}", path=path)

        if self.is_gnome_xml(text):
            self.logger.debug("Using the GNOME timed wallpaper format")
            timeline = self.parse_gnome(text, path)
        else:
            self.logger.debug("Using the simple timed wallpaper format")
            timeline = self.parse_stw(text, path)

        if strict:
            self.check(timeline)
        return timeline

    def check(self, timeline: Timeline) -> None:
        """Raise ParseError if the timeline breaks a structural rule (overlaps, duplicate starts)"""
        result = self.validator.validate(timeline, check_files=False)
        if result.failed:
            problems = "; ".join(msg for messages in result.errors.values() for msg in messages)
            self.logger.error(f"Timeline validation failed: {problems}")
            raise ParseError(f"Invalid timeline: {problems}", path=timeline.path)

    @staticmethod
    def is_gnome_xml(text: str) -> bool:
        stripped = text.lstrip()
        return stripped.startswith("<") and "<background" in stripped

    def parse_stw(self, text: str, path: Optional[Union[str, Path]] = None) -> Timeline:
        """Parse the simple timed wallpaper format.

        Header fields come first as "key: value" lines ("stw" is required,
        "name" and "format" optional). Events are "@HH:MM: image" for statics
        and "@HH:MM-HH:MM: from .. to [| mode]" for transitions.
        """
        fields = {}
        statics = []
        transitions = []

        for number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith(COMMENT_PREFIXES):
                continue

            if line.startswith("@"):
                match = TRANSITION_REGEX.match(line)
                if match:
                    transitions.append(self._parse_transition(match, line, path, number))
                    continue
                match = STATIC_REGEX.match(line)
                if match:
                    statics.append(self._parse_static(match, line, path, number))
                    continue
                raise ParseError(f"Invalid event syntax: {line}", path=path, line=number)

            match = HEADER_REGEX.match(line)
            if not match:
                raise ParseError(f"Invalid syntax: {line}", path=path, line=number)
            fields[match.group("key").strip()] = match.group("value").strip()

        if "stw" not in fields:
            raise ParseError("Missing required 'stw' field", path=path)

        template = fields.get("format", "")
        if template and FORMAT_PLACEHOLDER not in template:
            raise ParseError(f"The format field must contain {FORMAT_PLACEHOLDER}: {template}", path=path)

        timeline = Timeline(
            version=fields["stw"],
            name=fields.get("name", ""),
            format=template,
            path=Path(path) if path is not None else None,
        )
        # Added through the timeline so the filename template is applied
        for start, up_to, from_image, to_image, mode in transitions:
            timeline.add_transition(start, up_to, from_image, to_image, mode)
        for at, image in statics:
            timeline.add_static(at, image)

        self.logger.debug(f"Parsed {timeline}")
        return timeline

    def _parse_time(self, value: str, line: str, path, number: int) -> TimePoint:
        try:
            return TimePoint.parse(value)
        except ValueError:
            raise ParseError(f"Invalid time '{value}': {line}", path=path, line=number)

    def _parse_static(self, match: re.Match, line: str, path, number: int) -> tuple:
        at = self._parse_time(match.group("at"), line, path, number)
        image = match.group("image").strip()
        if not image:
            raise ParseError(f"Missing image filename: {line}", path=path, line=number)
        return at, image

    def _parse_transition(self, match: re.Match, line: str, path, number: int) -> tuple:
        start = self._parse_time(match.group("start"), line, path, number)
        up_to = self._parse_time(match.group("up_to"), line, path, number)
        if start == up_to:
            raise ParseError(f"Transition has no duration: {line}", path=path, line=number)

        images = match.group("images")
        if ".." not in images:
            raise ParseError(f"Missing \"..\" between the two images: {line}", path=path, line=number)
        from_image, to_image = (part.strip() for part in images.split("..", 1))

        mode = DEFAULT_TRANSITION_MODE
        if "|" in to_image:
            to_image, mode = (part.strip() for part in to_image.split("|", 1))
            mode = mode or DEFAULT_TRANSITION_MODE

        if not from_image or not to_image:
            raise ParseError(f"Missing image filename: {line}", path=path, line=number)
        return start, up_to, from_image, to_image, mode

    def parse_gnome(self, text: str, path: Optional[Union[str, Path]] = None) -> Timeline:
        """Parse a GNOME timed wallpaper XML document.

        GNOME lists its elements in sequence with a duration each, starting at
        <starttime>. Each element is placed at the time of day where the
        previous one ended.
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            line = e.position[0] if getattr(e, "position", None) else None
            raise ParseError(f"Invalid XML: {e}", path=path, line=line)

        if root.tag != "background":
            raise ParseError(f"Expected a <background> root element, got <{root.tag}>", path=path)

        starttime = root.find("starttime")
        if starttime is None:
            raise ParseError("Missing <starttime> element", path=path)
        cursor = TimePoint(
            self._xml_int(starttime, "hour", path) % 24,
            self._xml_int(starttime, "minute", path),
            self._xml_int(starttime, "second", path, default=0),
        )

        timeline = Timeline(name=Path(path).stem if path is not None else "", path=Path(path) if path is not None else None)
        for element in root:
            if element.tag == "static":
                duration = self._xml_duration(element, path)
                timeline.add_static(cursor, self._xml_text(element, "file", path))
            elif element.tag == "transition":
                duration = self._xml_duration(element, path)
                if not duration:
                    raise ParseError("Transition has no duration", path=path)
                timeline.add_transition(
                    cursor,
                    cursor + duration,
                    self._xml_text(element, "from", path),
                    self._xml_text(element, "to", path),
                    element.get("type", DEFAULT_TRANSITION_MODE),
                )
            else:
                continue
            cursor = cursor + duration

        self.logger.debug(f"Parsed {timeline}")
        return timeline

    def _xml_text(self, element: ET.Element, tag: str, path) -> str:
        child = element.find(tag)
        if child is None or not (child.text or "").strip():
            raise ParseError(f"Missing <{tag}> in <{element.tag}>", path=path)
        return child.text.strip()

    def _xml_int(self, element: ET.Element, tag: str, path, default: Optional[int] = None) -> int:
        child = element.find(tag)
        if child is None or not (child.text or "").strip():
            if default is not None:
                return default
            raise ParseError(f"Missing <{tag}> in <{element.tag}>", path=path)
        try:
            return int(child.text.strip())
        except ValueError:
            raise ParseError(f"Invalid <{tag}> value in <{element.tag}>: {child.text.strip()}", path=path)

    def _xml_duration(self, element: ET.Element, path) -> timedelta:
        value = self._xml_text(element, "duration", path)
        try:
            seconds = float(value)
        except ValueError:
            raise ParseError(f"Invalid <duration> in <{element.tag}>: {value}", path=path)
        if seconds < 0:
            raise ParseError(f"Negative <duration> in <{element.tag}>: {value}", path=path)
        return timedelta(seconds=seconds)

    def save_timeline(self, timeline: Timeline, path: Union[str, Path]) -> Path:
        """Write a timeline in the simple timed wallpaper format"""
        path = Path(path).expanduser()
        path.write_text(timeline.dump(), encoding="utf-8")
        self.logger.debug(f"Saved timeline to {path}")
        return path
