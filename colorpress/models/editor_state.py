"""Состояние редактора: параметры коррекции, качество, формат и медиа.

Единственный писатель (контроллер), много читателей (предпросмотр, экспорт).
Параметры хранятся неизменяемым объектом и заменяются целиком, поэтому
читатель всегда видит согласованный набор значений.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from colorpress.models.frame_store import FrameStore
from colorpress.models.image_model import (
    ANIMATED_FORMAT,
    DEFAULT_QUALITY,
    STILL_FORMATS,
    CorrectionParameters,
    EditorSnapshot,
    clamp_quality,
)


class EditorState:
    def __init__(self, frames: Optional[FrameStore] = None, default_quality: int = DEFAULT_QUALITY) -> None:
        self.frames = frames if frames is not None else FrameStore()
        self._default_quality = clamp_quality(default_quality)
        self._params = CorrectionParameters()
        self._quality = self._default_quality
        self._still_format = "jpeg"
        self._listeners: List[Callable[[], None]] = []

    # ---- Read access ----
    @property
    def params(self) -> CorrectionParameters:
        return self._params

    @property
    def quality(self) -> int:
        return self._quality

    @property
    def output_format(self) -> str:
        """Формат сохранения; для многокадровой анимации всегда gif."""
        if self.frames.is_animated():
            return ANIMATED_FORMAT
        return self._still_format

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(params=self._params, quality=self._quality, output_format=self.output_format)

    # ---- Mutations ----
    def set_param(self, name: str, value: float) -> None:
        params = self._params.with_value(name, value)
        if params != self._params:
            self._params = params
            self._notify()

    def set_params(self, params: CorrectionParameters) -> None:
        params = CorrectionParameters.clamped(
            params.temperature, params.tint, params.brightness, params.contrast, params.saturation
        )
        if params != self._params:
            self._params = params
            self._notify()

    def set_quality(self, value: float) -> None:
        quality = clamp_quality(value)
        if quality != self._quality:
            self._quality = quality
            self._notify()

    def set_output_format(self, fmt: str) -> None:
        fmt = fmt.lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in STILL_FORMATS:
            raise ValueError(f"Неподдерживаемый формат: {fmt}")
        if fmt != self._still_format:
            self._still_format = fmt
            self._notify()

    def reset_adjustments(self) -> None:
        """Обнуляет пять ползунков и возвращает качество 90; формат и медиа не трогает."""
        self._params = CorrectionParameters()
        self._quality = self._default_quality
        self._notify()

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()
