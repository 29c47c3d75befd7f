import pytest
from datetime import timedelta
from unittest.mock import call

from PIL import Image

from timedwall.errors import NoEventsError, ResourceError
from timedwall.models import DAY, Timeline, TransitionEvent
from timedwall.state import apply_initial_state, resolve_initial_state

from conftest import tp


class TestResolveInitialState:
    def test_single_static(self):
        timeline = Timeline()
        static = timeline.add_static(tp("08:00"), "only.jpg")

        state = resolve_initial_state(timeline, tp("09:00"))
        assert state.event == static
        assert state.ratio is None
        assert state.window == timedelta(hours=23)
        assert state.cooldown == state.window
        assert state.settle == timedelta(hours=11, minutes=30)

    def test_static_at_its_start_lasts_a_day(self):
        timeline = Timeline()
        timeline.add_static(tp("08:00"), "only.jpg")
        assert resolve_initial_state(timeline, tp("08:00")).window == DAY

    def test_static_from_yesterday(self):
        timeline = Timeline()
        night = timeline.add_static(tp("23:00"), "night.jpg")
        timeline.add_static(tp("06:00"), "day.jpg")

        state = resolve_initial_state(timeline, tp("01:00"))
        assert state.event == night
        assert state.window == timedelta(hours=5)

    def test_inside_a_transition(self, two_transitions):
        state = resolve_initial_state(two_transitions, tp("06:30"))
        assert isinstance(state.event, TransitionEvent)
        assert state.event.start == tp("06:00")
        assert state.ratio == pytest.approx(0.5)
        assert state.window == timedelta(hours=1)
        assert state.cooldown == timedelta(minutes=6)
        assert state.settle == timedelta(minutes=3)

    def test_after_a_transition(self, two_transitions):
        """Past the end of the last transition, the blend is complete"""
        state = resolve_initial_state(two_transitions, tp("12:00"))
        assert state.event.start == tp("06:00")
        assert state.ratio == 1.0

    def test_idempotent(self, two_transitions):
        first = resolve_initial_state(two_transitions, tp("19:45"))
        second = resolve_initial_state(two_transitions, tp("19:45"))
        assert first == second

    def test_empty_timeline(self):
        with pytest.raises(NoEventsError):
            resolve_initial_state(Timeline(), tp("12:00"))


class TestApplyInitialState:
    def test_static(self, image_dir, make_writer, set_wallpaper, blender):
        timeline = Timeline(path=image_dir / "wall.stw")
        timeline.add_static(tp("08:00"), "day.jpg")
        writer = make_writer(timeline)

        apply_initial_state(resolve_initial_state(timeline, tp("09:00")), writer)
        set_wallpaper.assert_called_once_with((image_dir / "day.jpg").resolve())
        blender.blend.assert_not_called()

    def test_transition(self, two_transitions, make_writer, set_wallpaper, blender, image_dir):
        """The "from" image goes up first, then the blend for the current ratio"""
        writer = make_writer(two_transitions)

        apply_initial_state(resolve_initial_state(two_transitions, tp("06:30")), writer)

        assert set_wallpaper.call_args_list == [
            call((image_dir / "night.jpg").resolve()),
            call(writer.temp_image),
        ]
        blender.blend.assert_called_once()
        assert blender.blend.call_args[0][2] == pytest.approx(0.5)

        with Image.open(writer.temp_image) as blended:
            red, green, blue = blended.convert("RGB").getpixel((4, 4))
        assert abs(red - 127) <= 3

    def test_missing_image(self, tmp_path, make_writer, set_wallpaper):
        timeline = Timeline(path=tmp_path / "wall.stw")
        timeline.add_static(tp("08:00"), "missing.jpg")

        with pytest.raises(ResourceError, match="File does not exist"):
            apply_initial_state(resolve_initial_state(timeline, tp("09:00")), make_writer(timeline))
        set_wallpaper.assert_not_called()

    def test_failed_setter(self, image_dir, make_writer, set_wallpaper):
        timeline = Timeline(path=image_dir / "wall.stw")
        timeline.add_static(tp("08:00"), "day.jpg")
        set_wallpaper.return_value = False

        with pytest.raises(ResourceError):
            apply_initial_state(resolve_initial_state(timeline, tp("09:00")), make_writer(timeline))
