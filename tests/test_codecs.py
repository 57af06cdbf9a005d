"""Tests for the Pillow-backed decoder and encoders."""

import io

import numpy as np
import pytest
from PIL import Image

from colorpress.models.errors import DecodeError, EncodeError
from colorpress.models.image_model import Frame
from colorpress.services.codec_service import PillowDecoder, PillowGifEncoder, PillowStillEncoder

COLORS = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]


def gif_bytes(colors, durations, size=(6, 4)):
    images = [Image.new("RGB", size, c) for c in colors]
    out = io.BytesIO()
    images[0].save(out, format="GIF", save_all=True, append_images=images[1:], duration=durations, loop=0)
    return out.getvalue()


def still_bytes(fmt, size=(5, 3), color=(10, 200, 30)):
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def noisy_buffer():
    rng = np.random.default_rng(0)
    buf = rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8)
    buf[..., 3] = 255
    return buf


class TestPillowDecoder:
    """Test decoding into RGBA frames."""

    def test_png_is_single_frame(self):
        decoded = PillowDecoder().decode(still_bytes("PNG"))

        assert decoded.source_format == "PNG"
        assert not decoded.is_animated
        pixels = decoded.frames[0].pixels
        assert pixels.shape == (3, 5, 4)
        assert pixels.dtype == np.uint8
        assert tuple(pixels[0, 0]) == (10, 200, 30, 255)

    def test_animated_gif_frames_and_delays(self):
        decoded = PillowDecoder().decode(gif_bytes(COLORS, [100, 50, 200]))

        assert decoded.source_format == "GIF"
        assert decoded.is_animated
        assert [f.delay_ms for f in decoded.frames] == [100, 50, 200]
        for frame, color in zip(decoded.frames, COLORS):
            assert frame.pixels.shape == (4, 6, 4)
            assert tuple(frame.pixels[2, 3]) == color + (255,)

    def test_zero_delay_becomes_default(self):
        decoded = PillowDecoder().decode(gif_bytes(COLORS[:2], [0, 0]))

        assert [f.delay_ms for f in decoded.frames] == [100, 100]

    def test_custom_default_delay(self):
        decoded = PillowDecoder(default_delay_ms=40).decode(gif_bytes(COLORS[:2], [0, 0]))

        assert [f.delay_ms for f in decoded.frames] == [40, 40]

    def test_garbage_raises_decode_error(self):
        with pytest.raises(DecodeError):
            PillowDecoder().decode(b"definitely not an image")


class TestPillowStillEncoder:
    """Test still image encoding."""

    @pytest.mark.parametrize(
        "fmt, magic",
        [("jpeg", b"\xff\xd8"), ("png", b"\x89PNG"), ("webp", b"RIFF")],
    )
    def test_formats(self, noisy_buffer, fmt, magic):
        data = PillowStillEncoder().encode(noisy_buffer, fmt, 0.9 if fmt != "png" else None)

        assert data.startswith(magic)

    def test_png_round_trip_is_lossless(self, noisy_buffer):
        data = PillowStillEncoder().encode(noisy_buffer, "png")

        decoded = np.array(Image.open(io.BytesIO(data)).convert("RGBA"))
        np.testing.assert_array_equal(decoded, noisy_buffer)

    def test_lower_quality_is_smaller(self, noisy_buffer):
        encoder = PillowStillEncoder()

        small = encoder.encode(noisy_buffer, "jpeg", 0.1)
        large = encoder.encode(noisy_buffer, "jpeg", 0.95)

        assert len(small) < len(large)

    def test_unsupported_format(self, noisy_buffer):
        with pytest.raises(EncodeError):
            PillowStillEncoder().encode(noisy_buffer, "bmp")

    def test_zero_size_canvas(self):
        with pytest.raises(EncodeError):
            PillowStillEncoder().encode(np.zeros((0, 0, 4), dtype=np.uint8), "png")


class TestPillowGifEncoder:
    """Test animated GIF encoding."""

    def test_frames_delays_and_loop(self, make_buffer):
        frames = [Frame(pixels=make_buffer(c, 6, 4), delay_ms=d) for c, d in zip(COLORS, [100, 50, 200])]

        data = PillowGifEncoder().encode(frames)

        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "GIF"
            assert image.n_frames == 3
            assert image.info.get("loop") == 0
            durations = []
            for i in range(image.n_frames):
                image.seek(i)
                durations.append(image.info["duration"])
        assert durations == [100, 50, 200]

    def test_reduced_palette(self, make_buffer):
        frames = [Frame(pixels=make_buffer(c, 6, 4), delay_ms=100) for c in COLORS]

        data = PillowGifEncoder(colors=16).encode(frames)

        decoded = PillowDecoder().decode(data)
        assert len(decoded.frames) == 3

    def test_empty_sequence(self):
        with pytest.raises(EncodeError):
            PillowGifEncoder().encode([])

    def test_identical_neighbours_keep_their_own_frames(self, make_buffer):
        frames = [
            Frame(pixels=make_buffer(10, 6, 4), delay_ms=100),
            Frame(pixels=make_buffer(10, 6, 4), delay_ms=50),
            Frame(pixels=make_buffer(200, 6, 4), delay_ms=70),
            Frame(pixels=make_buffer(200, 6, 4), delay_ms=30),
        ]

        data = PillowGifEncoder().encode(frames)

        decoded = PillowDecoder().decode(data)
        assert [f.delay_ms for f in decoded.frames] == [100, 50, 70, 30]
        assert [int(f.pixels[1, 1, 0]) for f in decoded.frames] == [10, 10, 200, 200]

    def test_transparent_pixels_survive(self, make_buffer):
        buf = make_buffer((250, 20, 20), 6, 4)
        buf[0, :, 3] = 0
        data = PillowGifEncoder(colors=8).encode([Frame(pixels=buf, delay_ms=100)])

        (frame,) = PillowDecoder().decode(data).frames
        assert (frame.pixels[0, :, 3] == 0).all()
        assert (frame.pixels[1:, :, 3] == 255).all()
        assert tuple(frame.pixels[2, 2, :3]) == (250, 20, 20)
