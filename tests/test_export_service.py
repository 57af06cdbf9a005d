"""Tests for the export pipeline."""

import io

import numpy as np
import pytest
from PIL import Image

from colorpress.models.errors import EmptyMediaError, EncodeError, ExportCancelled
from colorpress.models.frame_store import FrameStore
from colorpress.models.image_model import CorrectionParameters, EditorSnapshot
from colorpress.services.color_service import ColorService
from colorpress.services.export_service import ExportService, suggested_file_name, write_artifact


@pytest.fixture
def service(still_encoder, animation_encoder):
    return ExportService(still_encoder=still_encoder, animation_encoder=animation_encoder, workers=1)


def snapshot(fmt="jpeg", quality=90, **params):
    return EditorSnapshot(params=CorrectionParameters(**params), quality=quality, output_format=fmt)


class TestExportStatic:
    """Test exporting a single buffer."""

    def test_corrects_then_encodes(self, service, still_encoder, gray_buffer):
        data = service.export_static(gray_buffer, CorrectionParameters(temperature=50), "jpeg", 80)

        buffer, fmt, quality = still_encoder.calls[0]
        assert data.startswith(b"still:jpeg")
        assert fmt == "jpeg"
        assert quality == pytest.approx(0.8)
        assert (buffer == np.array([178, 128, 78, 255], dtype=np.uint8)).all()

    def test_png_gets_no_quality(self, service, still_encoder, gray_buffer):
        service.export_static(gray_buffer, CorrectionParameters(), "png", 30)

        assert still_encoder.calls[0][2] is None

    def test_webp_gets_quality_fraction(self, service, still_encoder, gray_buffer):
        service.export_static(gray_buffer, CorrectionParameters(), "webp", 10)

        assert still_encoder.calls[0][2] == pytest.approx(0.1)

    def test_encoder_failure_not_retried(self, failing_encoder, gray_buffer):
        service = ExportService(still_encoder=failing_encoder)

        with pytest.raises(EncodeError):
            service.export_static(gray_buffer, CorrectionParameters(), "png", 90)
        assert len(failing_encoder.calls) == 1

    def test_measure_static(self, service, gray_buffer):
        size = service.measure_static(gray_buffer, CorrectionParameters(), "png", 90)

        assert size == len(service.export_static(gray_buffer, CorrectionParameters(), "png", 90))


class TestExportAnimated:
    """Test exporting every frame of an animation."""

    def test_all_frames_corrected_with_delays(self, service, animation_encoder, animation_frames):
        params = CorrectionParameters(brightness=7)

        service.export_animated(animation_frames, params)

        (encoded,) = animation_encoder.calls
        assert len(encoded) == len(animation_frames)
        assert [f.delay_ms for f in encoded] == [100, 50, 200]
        assert [int(f.pixels[0, 0, 0]) for f in encoded] == [17, 27, 37]

    @pytest.mark.parametrize("workers", [1, 2, 4])
    def test_order_preserved_with_workers(self, animation_encoder, make_buffer, workers):
        from colorpress.models.image_model import Frame

        frames = [Frame(pixels=make_buffer(i, 8, 8), delay_ms=10 + i) for i in range(12)]
        service = ExportService(animation_encoder=animation_encoder, workers=workers)

        service.export_animated(frames, CorrectionParameters(contrast=20))

        expected = ColorService().correct
        (encoded,) = animation_encoder.calls
        assert [f.delay_ms for f in encoded] == [10 + i for i in range(12)]
        for src, out in zip(frames, encoded):
            np.testing.assert_array_equal(out.pixels, expected(src.pixels, CorrectionParameters(contrast=20)))

    def test_source_frames_untouched(self, service, animation_frames):
        before = [f.pixels.copy() for f in animation_frames]

        service.export_animated(animation_frames, CorrectionParameters(temperature=90))

        for original, frame in zip(before, animation_frames):
            np.testing.assert_array_equal(original, frame.pixels)


class TestExport:
    """Test export() dispatch and cancellation."""

    def test_empty_store(self, service):
        with pytest.raises(EmptyMediaError):
            service.export(FrameStore(), snapshot())

    def test_static_dispatch(self, service, still_encoder, gray_buffer):
        store = FrameStore()
        store.load_static(gray_buffer, 10)

        result = service.export(store, snapshot("webp", 50))

        assert result.format == "webp"
        assert result.suggested_name == "corrected-image.webp"
        assert result.size == len(result.data)
        assert still_encoder.calls[0][1:] == ("webp", pytest.approx(0.5))

    def test_animated_dispatch(self, service, animation_encoder, animation_frames):
        store = FrameStore()
        store.load_animated(animation_frames, 10)

        result = service.export(store, snapshot("gif"))

        assert result.format == "gif"
        assert result.suggested_name == "corrected-animation.gif"
        assert len(animation_encoder.calls) == 1

    def test_cancelled_before_encoding(self, service, animation_encoder, animation_frames):
        store = FrameStore()
        store.load_animated(animation_frames, 10)

        with pytest.raises(ExportCancelled):
            service.export(store, snapshot("gif"), is_cancelled=lambda: True)
        assert animation_encoder.calls == []

    def test_cancelled_after_encoding(self, service, still_encoder, gray_buffer):
        store = FrameStore()
        store.load_static(gray_buffer, 10)
        generation = store.generation

        def is_cancelled():
            # media replaced while the encoder ran
            return bool(still_encoder.calls) and store.generation != generation

        original_encode = still_encoder.encode

        def encode_then_clear(*args, **kwargs):
            data = original_encode(*args, **kwargs)
            store.clear()
            return data

        still_encoder.encode = encode_then_clear

        with pytest.raises(ExportCancelled):
            service.export(store, snapshot("png"), is_cancelled=is_cancelled)


class TestRealCodecs:
    """Test the default Pillow encoders end to end."""

    def test_animated_gif_round_trip(self, make_buffer):
        from colorpress.models.image_model import Frame

        frames = [
            Frame(pixels=make_buffer((200, 0, 0), 6, 4), delay_ms=100),
            Frame(pixels=make_buffer((0, 200, 0), 6, 4), delay_ms=60),
        ]
        store = FrameStore()
        store.load_animated(frames, 10)

        result = ExportService().export(store, snapshot("gif"))

        with Image.open(io.BytesIO(result.data)) as image:
            assert image.n_frames == 2

    def test_frames_equal_after_correction_are_all_written(self, make_buffer):
        from colorpress.models.image_model import Frame

        frames = [
            Frame(pixels=make_buffer(10, 6, 4), delay_ms=100),
            Frame(pixels=make_buffer(40, 6, 4), delay_ms=50),
            Frame(pixels=make_buffer(200, 6, 4), delay_ms=70),
        ]
        store = FrameStore()
        store.load_animated(frames, 10)

        # brightness -100 crushes the first two frames to black
        result = ExportService().export(store, snapshot("gif", brightness=-100))

        with Image.open(io.BytesIO(result.data)) as image:
            assert image.n_frames == 3
            durations = []
            for i in range(image.n_frames):
                image.seek(i)
                durations.append(image.info["duration"])
        assert durations == [100, 50, 70]

    def test_static_jpeg(self, random_buffer):
        store = FrameStore()
        store.load_static(random_buffer, 10)

        result = ExportService().export(store, snapshot("jpeg", 75, saturation=30))

        with Image.open(io.BytesIO(result.data)) as image:
            assert image.format == "JPEG"
            assert image.size == (12, 16)


class TestWriteArtifact:
    """Test atomic file writes."""

    def test_writes_file(self, tmp_path):
        target = write_artifact(tmp_path / "out.png", b"payload")

        assert target.read_bytes() == b"payload"
        assert [p.name for p in tmp_path.iterdir()] == ["out.png"]

    def test_replaces_existing(self, tmp_path):
        target = tmp_path / "out.gif"
        target.write_bytes(b"old")

        write_artifact(target, b"new")

        assert target.read_bytes() == b"new"

    def test_missing_directory_leaves_nothing(self, tmp_path):
        with pytest.raises(OSError):
            write_artifact(tmp_path / "missing" / "out.png", b"x")
        assert list(tmp_path.iterdir()) == []


def test_suggested_names():
    assert suggested_file_name("gif") == "corrected-animation.gif"
    assert suggested_file_name("png") == "corrected-image.png"
