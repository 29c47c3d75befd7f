import pytest
from PIL import Image

from timedwall.errors import ResourceError
from timedwall.imaging import ImageBlender


@pytest.fixture
def blender():
    return ImageBlender()


class TestImageBlender:
    def test_blend_midpoint(self, blender):
        black = Image.new("RGB", (4, 4), (0, 0, 0))
        white = Image.new("RGB", (4, 4), (200, 100, 50))
        blended = blender.blend(black, white, 0.5)
        assert blended.getpixel((0, 0)) == (100, 50, 25)

    def test_blend_ends(self, blender):
        black = Image.new("RGB", (4, 4), (0, 0, 0))
        white = Image.new("RGB", (4, 4), (255, 255, 255))
        assert blender.blend(black, white, 0.0).getpixel((1, 1)) == (0, 0, 0)
        assert blender.blend(black, white, 1.0).getpixel((1, 1)) == (255, 255, 255)
        # Out of range ratios are clamped
        assert blender.blend(black, white, 1.5).getpixel((1, 1)) == (255, 255, 255)

    def test_blend_different_sizes(self, blender):
        small = Image.new("RGB", (4, 4), (0, 0, 0))
        large = Image.new("RGBA", (16, 8), (255, 255, 255, 255))
        blended = blender.blend(small, large, 0.5)
        assert blended.size == (4, 4)
        assert blended.mode == "RGB"

    def test_open_and_save(self, blender, tmp_path):
        source = tmp_path / "source.png"
        Image.new("RGBA", (6, 6), (10, 20, 30, 255)).save(source)

        image = blender.open(source)
        assert image.mode == "RGB"

        target = blender.save(image, tmp_path / "nested" / "out.jpg")
        assert target.exists()
        with Image.open(target) as saved:
            assert saved.format == "JPEG"
            assert saved.size == (6, 6)

    def test_open_missing(self, blender, tmp_path):
        with pytest.raises(ResourceError):
            blender.open(tmp_path / "missing.jpg")

    def test_open_not_an_image(self, blender, tmp_path):
        bogus = tmp_path / "bogus.jpg"
        bogus.write_text("not an image")
        with pytest.raises(ResourceError):
            blender.open(bogus)
