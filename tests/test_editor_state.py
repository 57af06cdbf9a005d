"""Tests for CorrectionParameters and EditorState."""

import dataclasses

import pytest

from colorpress.models.editor_state import EditorState
from colorpress.models.image_model import CorrectionParameters, Frame, clamp_quality, normalize_delay


class TestCorrectionParameters:
    """Test clamping at the point of acceptance."""

    def test_defaults_are_identity(self):
        assert CorrectionParameters().is_identity()

    def test_clamped(self):
        params = CorrectionParameters.clamped(temperature=150, tint=-300, brightness=12.6, contrast=0, saturation=-100)

        assert params == CorrectionParameters(100, -100, 13, 0, -100)

    def test_with_value(self):
        params = CorrectionParameters().with_value("contrast", 250)

        assert params.contrast == 100
        assert not params.is_identity()

    def test_with_unknown_name(self):
        with pytest.raises(ValueError):
            CorrectionParameters().with_value("gamma", 1)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            CorrectionParameters().temperature = 5


class TestHelpers:
    @pytest.mark.parametrize("raw, expected", [(0, 100), (None, 100), (-5, 100), (40, 40), (1, 1)])
    def test_normalize_delay(self, raw, expected):
        assert normalize_delay(raw) == expected

    @pytest.mark.parametrize("raw, expected", [(5, 10), (10, 10), (55, 55), (101, 100)])
    def test_clamp_quality(self, raw, expected):
        assert clamp_quality(raw) == expected


class TestEditorState:
    """Test the single-writer editor state."""

    def test_defaults(self, state):
        assert state.params == CorrectionParameters()
        assert state.quality == 90
        assert state.output_format == "jpeg"

    def test_output_format_forced_to_gif_for_animation(self, state, animation_frames):
        state.set_output_format("png")
        state.frames.load_animated(animation_frames, 1)

        assert state.output_format == "gif"

        state.frames.clear()
        assert state.output_format == "png"

    def test_single_frame_keeps_still_format(self, state, gray_buffer):
        state.set_output_format("webp")
        state.frames.load_animated([Frame(pixels=gray_buffer)], 1)

        assert state.output_format == "webp"

    def test_set_output_format_validates(self, state):
        state.set_output_format("JPG")
        assert state.output_format == "jpeg"

        with pytest.raises(ValueError):
            state.set_output_format("gif")
        with pytest.raises(ValueError):
            state.set_output_format("bmp")

    def test_quality_clamped(self, state):
        state.set_quality(3)
        assert state.quality == 10

        state.set_quality(300)
        assert state.quality == 100

    def test_reset_keeps_format_and_media(self, state, gray_buffer):
        state.frames.load_static(gray_buffer, 1)
        state.set_output_format("png")
        state.set_param("temperature", 40)
        state.set_param("saturation", -20)
        state.set_quality(30)

        state.reset_adjustments()

        assert state.params == CorrectionParameters()
        assert state.quality == 90
        assert state.output_format == "png"
        assert not state.frames.is_empty()

    def test_snapshot_is_stable(self, state):
        state.set_param("brightness", 10)
        snapshot = state.snapshot()

        state.set_param("brightness", 60)

        assert snapshot.params.brightness == 10
        assert state.snapshot().params.brightness == 60

    def test_listeners_notified_on_change_only(self, state):
        calls = []
        state.add_listener(lambda: calls.append(state.params))

        state.set_param("tint", 5)
        state.set_param("tint", 5)
        state.set_quality(90)

        assert len(calls) == 1

    def test_set_params_clamps(self, state):
        state.set_params(CorrectionParameters(temperature=500))

        assert state.params.temperature == 100
