"""Загрузка изображений с диска и упаковка в модель медиа.

Принципы:
- SRP: класс отвечает только за чтение файла, декодирование и выбор формата
  сохранения по умолчанию.
- OCP: декодер подставляется снаружи; новые источники (байты из буфера обмена,
  URL) добавляются отдельными методами поверх `load_bytes`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from colorpress.models.errors import DecodeError
from colorpress.models.image_model import AnimatedImage, MediaState, SourceImage, StaticImage
from colorpress.services.codec_service import MediaDecoder, PillowDecoder

logger = logging.getLogger(__name__)


def default_output_format(source_format: str, animated: bool) -> str:
    """Формат сохранения по умолчанию для исходного контейнера."""
    fmt = source_format.upper()
    if animated:
        return "gif"
    if fmt == "WEBP":
        return "webp"
    if fmt in ("PNG", "GIF"):
        # single-frame GIF is exported as PNG
        return "png"
    return "jpeg"


class ImageService:
    def __init__(self, decoder: Optional[MediaDecoder] = None) -> None:
        self._decoder: MediaDecoder = decoder if decoder is not None else PillowDecoder()

    def load_image(self, file_path: str | Path) -> SourceImage:
        """Загружает изображение с диска.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `SourceImage` со статичным или анимированным медиа и размером файла.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            DecodeError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        data = path.read_bytes()
        source = self.load_bytes(data)
        return SourceImage(
            media=source.media,
            source_format=source.source_format,
            default_output_format=source.default_output_format,
            path=path,
        )

    def load_bytes(self, data: bytes) -> SourceImage:
        """Декодирует байты; размер оригинала равен длине `data`."""
        if not data:
            raise DecodeError("Пустой файл")
        decoded = self._decoder.decode(data)
        if not decoded.frames:
            raise DecodeError("Изображение не содержит кадров")

        media: MediaState
        if len(decoded.frames) > 1:
            media = AnimatedImage(frames=tuple(decoded.frames), original_size=len(data))
        else:
            media = StaticImage(pixels=decoded.frames[0].pixels, original_size=len(data))

        animated = isinstance(media, AnimatedImage)
        logger.info(
            "Decoded %s image: %d frame(s), %d bytes",
            decoded.source_format or "unknown",
            len(decoded.frames),
            len(data),
        )
        return SourceImage(
            media=media,
            source_format=decoded.source_format,
            default_output_format=default_output_format(decoded.source_format, animated),
        )
