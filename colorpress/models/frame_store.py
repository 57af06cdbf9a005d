"""Хранилище декодированных кадров текущего изображения.

Принципы:
- SRP: только хранение и доступ на чтение; никакой обработки пикселей.
- Новая загрузка полностью заменяет состояние, частичных изменений нет.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Sequence, Tuple

from colorpress.models.errors import DecodeError, EmptyMediaError
from colorpress.models.image_model import (
    AnimatedImage,
    EmptyMedia,
    Frame,
    MediaState,
    PixelBuffer,
    StaticImage,
)

logger = logging.getLogger(__name__)


class FrameStore:
    """Держит `MediaState` и уведомляет подписчиков о каждой смене медиа.

    `generation` увеличивается при каждой загрузке и очистке; по нему
    предпросмотр и экспорт понимают, что их работа устарела.
    """

    def __init__(self) -> None:
        self._media: MediaState = EmptyMedia()
        self._generation: int = 0
        self._listeners: List[Callable[[MediaState], None]] = []

    # ---- Mutations ----
    def load_static(self, buffer: PixelBuffer, original_size: int) -> None:
        self._replace(StaticImage(pixels=buffer, original_size=int(original_size)))

    def load_animated(self, frames: Sequence[Frame], original_size: int) -> None:
        """Загружает анимацию; одиночный кадр сохраняется как статичное изображение."""
        frames = tuple(frames)
        if not frames:
            raise DecodeError("Анимация не содержит кадров")
        if len(frames) == 1:
            self.load_static(frames[0].pixels, original_size)
            return
        self._replace(AnimatedImage(frames=frames, original_size=int(original_size)))

    def load(self, media: MediaState) -> None:
        if isinstance(media, AnimatedImage):
            self.load_animated(media.frames, media.original_size)
        elif isinstance(media, StaticImage):
            self.load_static(media.pixels, media.original_size)
        else:
            self.clear()

    def clear(self) -> None:
        self._replace(EmptyMedia())

    def add_listener(self, callback: Callable[[MediaState], None]) -> None:
        self._listeners.append(callback)

    # ---- Read access ----
    @property
    def media(self) -> MediaState:
        return self._media

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def original_size(self) -> int:
        return getattr(self._media, "original_size", 0)

    def is_empty(self) -> bool:
        return isinstance(self._media, EmptyMedia)

    def is_animated(self) -> bool:
        return isinstance(self._media, AnimatedImage)

    def frame_count(self) -> int:
        if isinstance(self._media, AnimatedImage):
            return len(self._media.frames)
        if isinstance(self._media, StaticImage):
            return 1
        return 0

    def frame_at(self, index: int) -> Frame:
        media = self._media
        if isinstance(media, AnimatedImage):
            if not 0 <= index < len(media.frames):
                raise IndexError(f"Кадр {index} вне диапазона 0..{len(media.frames) - 1}")
            return media.frames[index]
        if isinstance(media, StaticImage):
            if index != 0:
                raise IndexError(f"Кадр {index} вне диапазона 0..0")
            return Frame(pixels=media.pixels)
        raise EmptyMediaError("Изображение не загружено")

    def frames(self) -> Tuple[Frame, ...]:
        return tuple(self.frame_at(i) for i in range(self.frame_count()))

    def static_buffer(self) -> PixelBuffer:
        media = self._media
        if isinstance(media, StaticImage):
            return media.pixels
        if isinstance(media, AnimatedImage):
            return media.frames[0].pixels
        raise EmptyMediaError("Изображение не загружено")

    def dimensions(self) -> Tuple[int, int]:
        """Ширина и высота холста (по первому кадру)."""
        buffer = self.static_buffer()
        return int(buffer.shape[1]), int(buffer.shape[0])

    # ---- Helpers ----
    def _replace(self, media: MediaState) -> None:
        self._media = media
        self._generation += 1
        logger.debug("Media replaced: %s (generation %d)", type(media).__name__, self._generation)
        for callback in list(self._listeners):
            callback(media)
