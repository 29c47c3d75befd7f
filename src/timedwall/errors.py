# errors.py
from pathlib import Path
from typing import Optional, Union


class TimedWallError(Exception):
    """Base class for all timedwall errors"""


class ParseError(TimedWallError):
    """Malformed timeline input (bad syntax, missing field, invalid structure)"""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None, line: Optional[int] = None):
        self.message = message
        self.path = str(path) if path is not None else None
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        location = ""
        if self.path and self.line is not None:
            location = f"{self.path}, line {self.line}: "
        elif self.path:
            location = f"{self.path}: "
        elif self.line is not None:
            location = f"line {self.line}: "
        return f"{location}{self.message}"


class NoEventsError(TimedWallError):
    """A resolution query was made against an empty timeline"""


class ResourceError(TimedWallError):
    """An image could not be found, decoded or written, or the wallpaper could not be set"""
