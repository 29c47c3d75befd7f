from datetime import datetime
from unittest.mock import Mock

import pytest
from PIL import Image

from timedwall.imaging import ImageBlender
from timedwall.models import TimePoint, Timeline
from timedwall.writer import WallpaperWriter

COLORS = {
    "day": (255, 255, 255),
    "night": (0, 0, 0),
    "dawn": (255, 128, 0),
}


def tp(value: str) -> TimePoint:
    return TimePoint.parse(value)


def at(value: str) -> datetime:
    """A datetime on a fixed date at the given time of day"""
    point = tp(value)
    return datetime(2024, 3, 1, point.hour, point.minute, point.second)


@pytest.fixture
def image_dir(tmp_path):
    """Directory with small solid-colour JPEGs named after COLORS"""
    images = tmp_path / "images"
    images.mkdir()
    for name, color in COLORS.items():
        Image.new("RGB", (8, 8), color).save(images / f"{name}.jpg", quality=100)
    return images


@pytest.fixture
def two_transitions(image_dir):
    """Dawn and dusk crossfades, as found in most timed wallpapers"""
    timeline = Timeline(name="twilight", format="%s.jpg", path=image_dir / "twilight.stw")
    timeline.add_transition(tp("06:00"), tp("07:00"), "night", "day")
    timeline.add_transition(tp("19:00"), tp("20:00"), "day", "night")
    return timeline


@pytest.fixture
def set_wallpaper():
    return Mock(return_value=None)


@pytest.fixture
def blender():
    return Mock(wraps=ImageBlender())


@pytest.fixture
def make_writer(tmp_path, set_wallpaper, blender):
    def _make(timeline):
        return WallpaperWriter(timeline, set_wallpaper, tmp_path / "out" / "blended.jpg", blender)
    return _make
