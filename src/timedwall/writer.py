# writer.py
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from timedwall.errors import ResourceError, TimedWallError
from timedwall.imaging import ImageBlender
from timedwall.models import StaticEvent, Timeline, TransitionEvent

SetWallpaper = Callable[[Path], object]


class WallpaperWriter:
    """Owner of the blended temp image and of the wallpaper-set effect.

    Every image that reaches the desktop goes through here. The writer is
    not thread safe: the Daemon drives it from a single thread, and all
    refresh requests reach that thread as messages.
    """

    def __init__(
        self,
        timeline: Timeline,
        set_wallpaper: SetWallpaper,
        temp_image: Union[str, Path],
        blender: Optional[ImageBlender] = None,
    ):
        self.timeline = timeline
        self.set_wallpaper = set_wallpaper
        self.temp_image = Path(temp_image).expanduser()
        self.blender = blender or ImageBlender()
        self.logger = logging.getLogger(__name__)

    def _apply(self, path: Path) -> None:
        self.logger.debug(f"Setting {path}")
        try:
            result = self.set_wallpaper(path)
        except TimedWallError:
            raise
        except Exception as e:
            raise ResourceError(f"Could not set wallpaper: {e}") from e
        # A False return is a failure too
        if result is False:
            raise ResourceError(f"Could not set wallpaper to {path}")

    def show_image(self, image: str) -> Path:
        """Set one of the timeline's images as the wallpaper"""
        path = self.timeline.resolve_image(image)
        if not path.exists():
            raise ResourceError(f"File does not exist: {path}")
        self._apply(path)
        return path

    def show_static(self, event: StaticEvent) -> Path:
        return self.show_image(event.image)

    def show_transition(self, event: TransitionEvent, ratio: float) -> Path:
        """Blend the two images of a transition at `ratio` and set the result"""
        self.logger.debug(f"Crossfading {event.from_image} and {event.to_image} at {int(ratio * 100)}%")

        first = self.blender.open(self.timeline.resolve_image(event.from_image))
        second = self.blender.open(self.timeline.resolve_image(event.to_image))
        blended = self.blender.blend(first, second, ratio, event.mode)
        self.blender.save(blended, self.temp_image)

        # Double check that the generated file exists
        if not self.temp_image.exists():
            raise ResourceError(f"File does not exist: {self.temp_image}")

        self._apply(self.temp_image)
        return self.temp_image
