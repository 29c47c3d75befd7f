# imaging.py
import logging
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from timedwall.errors import ResourceError

JPEG_QUALITY = 100


class ImageBlender:
    """Opens, crossfades and saves images with Pillow"""

    def __init__(self, quality: int = JPEG_QUALITY):
        self.quality = quality
        self.logger = logging.getLogger(__name__)

    def open(self, path: Union[str, Path]) -> Image.Image:
        """Load an image fully into memory"""
        try:
            with Image.open(path) as image:
                image.load()
                return image.convert("RGB")
        except (OSError, UnidentifiedImageError) as e:
            raise ResourceError(f"Could not open image {path}: {e}")

    def blend(self, first: Image.Image, second: Image.Image, ratio: float, mode: str = "overlay") -> Image.Image:
        """Crossfade from `first` (ratio 0) to `second` (ratio 1)"""
        if mode != "overlay":
            self.logger.debug(f"Unsupported transition type '{mode}', using overlay")

        ratio = min(max(ratio, 0.0), 1.0)
        first = first.convert("RGB")
        second = second.convert("RGB")
        # Image.blend needs both images at the same size
        if second.size != first.size:
            second = second.resize(first.size)
        return Image.blend(first, second, ratio)

    def save(self, image: Image.Image, path: Union[str, Path]) -> Path:
        """Write an image as JPEG"""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            image.save(path, format="JPEG", quality=self.quality)
        except (OSError, ValueError) as e:
            raise ResourceError(f"Could not write image {path}: {e}")
        return path
