"""Модели данных для изображений и параметров коррекции.

Принципы:
- SRP: только структуры данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

# (height, width, 4) uint8, RGBA, non-premultiplied
PixelBuffer = np.ndarray

DEFAULT_DELAY_MS = 100
DEFAULT_QUALITY = 90
PARAM_MIN, PARAM_MAX = -100, 100
QUALITY_MIN, QUALITY_MAX = 10, 100

STILL_FORMATS: Tuple[str, ...] = ("jpeg", "png", "webp")
ANIMATED_FORMAT = "gif"
OUTPUT_FORMATS: Tuple[str, ...] = STILL_FORMATS + (ANIMATED_FORMAT,)


def _clamp_int(value: float, lo: int, hi: int) -> int:
    return int(max(lo, min(hi, round(value))))


def clamp_quality(value: float) -> int:
    """Приводит качество сжатия к диапазону [10, 100]."""
    return _clamp_int(value, QUALITY_MIN, QUALITY_MAX)


@dataclass(frozen=True)
class CorrectionParameters:
    """Неизменяемый набор ползунков цветокоррекции.

    Fields:
        temperature: Холоднее (<0) / теплее (>0), [-100, 100].
        tint: Пурпурный (<0) / зелёный (>0), [-100, 100].
        brightness: Яркость, [-100, 100].
        contrast: Контраст, [-100, 100].
        saturation: Насыщенность, [-100, 100].
    """
    temperature: int = 0
    tint: int = 0
    brightness: int = 0
    contrast: int = 0
    saturation: int = 0

    @classmethod
    def clamped(
        cls,
        temperature: float = 0,
        tint: float = 0,
        brightness: float = 0,
        contrast: float = 0,
        saturation: float = 0,
    ) -> "CorrectionParameters":
        """Создаёт параметры, ограничивая каждое значение диапазоном [-100, 100]."""
        return cls(
            temperature=_clamp_int(temperature, PARAM_MIN, PARAM_MAX),
            tint=_clamp_int(tint, PARAM_MIN, PARAM_MAX),
            brightness=_clamp_int(brightness, PARAM_MIN, PARAM_MAX),
            contrast=_clamp_int(contrast, PARAM_MIN, PARAM_MAX),
            saturation=_clamp_int(saturation, PARAM_MIN, PARAM_MAX),
        )

    def with_value(self, name: str, value: float) -> "CorrectionParameters":
        """Возвращает копию с одним изменённым (и ограниченным) параметром."""
        if name not in self.__dataclass_fields__:
            raise ValueError(f"Неизвестный параметр коррекции: {name}")
        return replace(self, **{name: _clamp_int(value, PARAM_MIN, PARAM_MAX)})

    def is_identity(self) -> bool:
        return not any((self.temperature, self.tint, self.brightness, self.contrast, self.saturation))


@dataclass(frozen=True)
class Frame:
    """Кадр анимации: RGBA-буфер и длительность показа, мс."""
    pixels: PixelBuffer
    delay_ms: int = DEFAULT_DELAY_MS

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def normalize_delay(delay_ms: Optional[float]) -> int:
    """Нулевая или отсутствующая задержка превращается в 100 мс."""
    if not delay_ms or delay_ms < 1:
        return DEFAULT_DELAY_MS
    return int(delay_ms)


@dataclass(frozen=True)
class EmptyMedia:
    """Ничего не загружено."""


@dataclass(frozen=True)
class StaticImage:
    pixels: PixelBuffer
    original_size: int


@dataclass(frozen=True)
class AnimatedImage:
    """Многокадровая анимация; порядок кадров фиксируется при декодировании."""
    frames: Tuple[Frame, ...]
    original_size: int


MediaState = Union[EmptyMedia, StaticImage, AnimatedImage]


@dataclass(frozen=True)
class SourceImage:
    """Результат загрузки файла.

    Fields:
        media: Декодированное медиа (статичное или анимированное).
        source_format: Формат контейнера по данным Pillow, например "GIF".
        default_output_format: Формат сохранения по умолчанию.
        path: Путь к исходному файлу, если известен.
    """
    media: MediaState
    source_format: str
    default_output_format: str
    path: Optional[Path] = None

    @property
    def original_size(self) -> int:
        return getattr(self.media, "original_size", 0)


@dataclass(frozen=True)
class EditorSnapshot:
    """Атомарный снимок настроек, который читают предпросмотр и экспорт."""
    params: CorrectionParameters
    quality: int
    output_format: str
