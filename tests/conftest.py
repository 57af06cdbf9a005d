"""Shared fixtures: pixel buffers, frame sequences and fake collaborators."""

import functools
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from colorpress.models.editor_state import EditorState
from colorpress.models.errors import EncodeError
from colorpress.models.image_model import Frame


def solid(value, width=2, height=2, alpha=255):
    """Buffer filled with one RGB(A) color; an int means gray."""
    if isinstance(value, int):
        value = (value, value, value)
    rgba = tuple(value) + ((alpha,) if len(value) == 3 else ())
    buf = np.empty((height, width, 4), dtype=np.uint8)
    buf[...] = rgba
    return buf


class FakeScheduler:
    """Stands in for Tk `after`/`after_cancel`; callbacks run only when asked."""

    def __init__(self):
        self.pending: Dict[str, Tuple[int, Callable[[], None]]] = {}
        self.cancelled: List[str] = []
        self._next = 0

    def after(self, ms, func, *args):
        self._next += 1
        after_id = f"after#{self._next}"
        self.pending[after_id] = (ms, functools.partial(func, *args) if args else func)
        return after_id

    def after_cancel(self, id):
        self.pending.pop(id, None)
        self.cancelled.append(id)

    def run_next(self) -> int:
        """Run the oldest pending callback; returns its delay."""
        after_id = next(iter(self.pending))
        ms, func = self.pending.pop(after_id)
        func()
        return ms


class RecordingStillEncoder:
    def __init__(self, fail: Optional[Exception] = None):
        self.calls = []
        self.fail = fail

    def encode(self, buffer, fmt, quality=None):
        self.calls.append((buffer.copy(), fmt, quality))
        if self.fail is not None:
            raise self.fail
        return b"still:" + fmt.encode() + bytes(int(buffer.size % 7))


class RecordingAnimationEncoder:
    def __init__(self, fail: Optional[Exception] = None):
        self.calls: List[Sequence[Frame]] = []
        self.fail = fail

    def encode(self, frames):
        self.calls.append(list(frames))
        if self.fail is not None:
            raise self.fail
        return b"GIF89a" + bytes(len(frames))


@pytest.fixture
def gray_buffer():
    """2x2 all-gray (128, 128, 128, 255) image."""
    return solid(128)


@pytest.fixture
def random_buffer():
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(16, 12, 4), dtype=np.uint8)


@pytest.fixture
def animation_frames():
    """Three distinguishable frames with delays 100, 50, 200 ms."""
    return (
        Frame(pixels=solid(10, 4, 3), delay_ms=100),
        Frame(pixels=solid(20, 4, 3), delay_ms=50),
        Frame(pixels=solid(30, 4, 3), delay_ms=200),
    )


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def state():
    return EditorState()


@pytest.fixture
def still_encoder():
    return RecordingStillEncoder()


@pytest.fixture
def animation_encoder():
    return RecordingAnimationEncoder()


@pytest.fixture
def failing_encoder():
    return RecordingStillEncoder(fail=EncodeError("zero-size canvas"))


@pytest.fixture
def make_buffer():
    """Factory for solid-color buffers: make_buffer(value, width, height, alpha)."""
    return solid
