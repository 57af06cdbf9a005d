"""Кодеки на Pillow: декодирование файлов в RGBA-кадры и обратное кодирование.

Принципы:
- DIP: ядро зависит от протоколов `MediaDecoder`, `StillEncoder`,
  `AnimationEncoder`; реализации на Pillow подставляются контроллером,
  в тестах используются заглушки.
- Ошибки Pillow переводятся в `DecodeError` / `EncodeError`.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
from PIL import GifImagePlugin, Image, ImageSequence, UnidentifiedImageError

from colorpress.models.errors import DecodeError, EncodeError
from colorpress.models.image_model import (
    DEFAULT_DELAY_MS,
    STILL_FORMATS,
    Frame,
    PixelBuffer,
    normalize_delay,
)

logger = logging.getLogger(__name__)

_PIL_FORMATS = {"jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}


@dataclass(frozen=True)
class DecodedImage:
    """Кадры в порядке воспроизведения и формат контейнера ("GIF", "PNG", ...)."""
    frames: Tuple[Frame, ...]
    source_format: str

    @property
    def is_animated(self) -> bool:
        return len(self.frames) > 1


class MediaDecoder(Protocol):
    def decode(self, data: bytes) -> DecodedImage: ...


class StillEncoder(Protocol):
    def encode(self, buffer: PixelBuffer, fmt: str, quality: Optional[float] = None) -> bytes: ...


class AnimationEncoder(Protocol):
    def encode(self, frames: Sequence[Frame]) -> bytes: ...


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(buffer, dtype=np.uint8))


def image_to_buffer(image: Image.Image) -> PixelBuffer:
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    return np.array(rgba, dtype=np.uint8)


class PillowDecoder:
    """Декодирует JPEG/PNG/WebP/GIF; GIF раскладывается на полноразмерные кадры."""

    def __init__(self, default_delay_ms: int = DEFAULT_DELAY_MS) -> None:
        self.default_delay_ms = default_delay_ms

    def decode(self, data: bytes) -> DecodedImage:
        try:
            with Image.open(io.BytesIO(data)) as image:
                source_format = (image.format or "").upper()
                if source_format == "GIF":
                    frames = self._decode_frames(image)
                else:
                    frames = (Frame(pixels=image_to_buffer(image), delay_ms=self.default_delay_ms),)
        except UnidentifiedImageError as exc:
            raise DecodeError("Файл не является изображением") from exc
        except (OSError, ValueError, EOFError) as exc:
            raise DecodeError(f"Не удалось декодировать изображение: {exc}") from exc

        if not frames:
            raise DecodeError("Изображение не содержит кадров")
        logger.debug("Decoded %s: %d frame(s)", source_format or "image", len(frames))
        return DecodedImage(frames=frames, source_format=source_format)

    def _decode_frames(self, image: Image.Image) -> Tuple[Frame, ...]:
        frames: List[Frame] = []
        canvas_size: Optional[Tuple[int, int]] = None
        for frame in ImageSequence.Iterator(image):
            rgba = frame.convert("RGBA")
            # first frame defines the canvas
            if canvas_size is None:
                canvas_size = rgba.size
            elif rgba.size != canvas_size:
                padded = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
                padded.paste(rgba, (0, 0))
                rgba = padded
            delay = frame.info.get("duration")
            if not delay:
                delay = self.default_delay_ms
            frames.append(Frame(pixels=np.array(rgba, dtype=np.uint8), delay_ms=normalize_delay(delay)))
        return tuple(frames)


class PillowStillEncoder:
    """Кодирует один буфер в JPEG/PNG/WebP.

    `quality` задаётся долей [0, 1]; PNG его игнорирует (сжатие без потерь).
    """

    def encode(self, buffer: PixelBuffer, fmt: str, quality: Optional[float] = None) -> bytes:
        if fmt not in STILL_FORMATS:
            raise EncodeError(f"Неподдерживаемый формат: {fmt}")
        if buffer.ndim != 3 or buffer.shape[0] == 0 or buffer.shape[1] == 0:
            raise EncodeError("Нельзя сохранить холст нулевого размера")

        image = buffer_to_image(buffer)
        options = {}
        if fmt == "jpeg":
            # JPEG has no alpha channel
            image = image.convert("RGB")
        if fmt in ("jpeg", "webp") and quality is not None:
            q = max(0.0, min(1.0, float(quality)))
            options["quality"] = int(round(q * 100))

        out = io.BytesIO()
        try:
            image.save(out, format=_PIL_FORMATS[fmt], **options)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(f"Ошибка кодирования {fmt}: {exc}") from exc
        return out.getvalue()


class PillowGifEncoder:
    """Собирает зацикленный GIF из кадров с их исходными задержками.

    Каждый кадр пишется отдельным блоком со своей палитрой через
    `GifImagePlugin.getheader` / `getdata`; одинаковые соседние кадры не
    склеиваются, число кадров и задержки совпадают с входом.
    Пиксели с альфой < 128 становятся прозрачным индексом.

    Args:
        colors: Размер палитры каждого кадра (2..256).
    """

    def __init__(self, colors: int = 256) -> None:
        self.colors = max(2, min(256, int(colors)))

    def encode(self, frames: Sequence[Frame]) -> bytes:
        if not frames:
            raise EncodeError("Нет кадров для GIF")
        if any(f.width == 0 or f.height == 0 for f in frames):
            raise EncodeError("Нельзя сохранить холст нулевого размера")

        logger.debug("Encoding GIF: %d frames, %d colors", len(frames), self.colors)
        chunks: List[bytes] = []
        try:
            indexed = [self._to_palette(f.pixels) for f in frames]
            header, _ = GifImagePlugin.getheader(
                indexed[0][0].copy(), info={"loop": 0, "duration": frames[0].delay_ms, "optimize": False}
            )
            chunks.extend(header)
            for frame, (image, transparency) in zip(frames, indexed):
                params = {"duration": int(frame.delay_ms), "disposal": 2, "include_color_table": True}
                if transparency is not None:
                    params["transparency"] = transparency
                chunks.extend(GifImagePlugin.getdata(image, offset=(0, 0), **params))
        except (OSError, ValueError) as exc:
            raise EncodeError(f"Ошибка кодирования GIF: {exc}") from exc
        chunks.append(b";")
        return b"".join(chunks)

    def _to_palette(self, buffer: PixelBuffer) -> Tuple[Image.Image, Optional[int]]:
        """Кадр в режиме "P" и индекс прозрачного цвета (или None)."""
        transparent = buffer[..., 3] < 128
        has_alpha = bool(transparent.any())
        # the last palette slot is reserved for transparency
        n_colors = self.colors - 1 if has_alpha else self.colors
        rgb = buffer_to_image(buffer).convert("RGB")
        quantized = rgb.quantize(colors=n_colors, method=Image.Quantize.MEDIANCUT)

        palette = list(quantized.getpalette() or [])[: 3 * n_colors]
        palette += [0] * (3 * n_colors - len(palette))
        indices = np.array(quantized, dtype=np.uint8)
        transparency: Optional[int] = None
        if has_alpha:
            transparency = n_colors
            indices[transparent] = transparency
            palette += [0, 0, 0]

        image = Image.fromarray(indices)
        image.putpalette(palette)
        return image, transparency
