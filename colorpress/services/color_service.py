"""Попиксельная цветокоррекция RGBA-буферов.

Порядок стадий фиксирован: температура, оттенок, яркость, контраст,
насыщенность, затем ограничение [0, 255]. Промежуточные значения не
ограничиваются, поэтому яркость насыщенности считается по «сырым»
значениям после контраста. Альфа-канал не изменяется.
"""
from __future__ import annotations

from typing import Optional

import numpy as np
from PIL import Image

from colorpress.models.image_model import CorrectionParameters, PixelBuffer

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.2989, 0.5870, 0.1140], dtype=np.float64)


def contrast_factor(contrast: int) -> Optional[float]:
    """Коэффициент контраста; None, если стадия пропускается."""
    if contrast == 0:
        return None
    return (259.0 * (contrast + 255)) / (255.0 * (259 - contrast))


def saturation_factor(saturation: int) -> Optional[float]:
    """Коэффициент насыщенности; None, если стадия пропускается."""
    if saturation == 0:
        return None
    return (saturation + 100) / 100.0


class ColorService:
    def correct(self, buffer: PixelBuffer, params: CorrectionParameters) -> PixelBuffer:
        """Возвращает новый буфер с применённой коррекцией.

        Args:
            buffer: Массив (H, W, 4) uint8 в RGBA.
            params: Снимок параметров коррекции.

        Returns:
            Новый массив той же формы; вход не изменяется.
        """
        if buffer.ndim != 3 or buffer.shape[2] != 4:
            raise ValueError(f"Ожидался RGBA-буфер формы (H, W, 4), получено {buffer.shape}")

        out = np.array(buffer, dtype=np.uint8, copy=True)
        if params.is_identity() or buffer.size == 0:
            return out

        rgb = buffer[..., :3].astype(np.float64)
        r = rgb[..., 0]
        g = rgb[..., 1]
        b = rgb[..., 2]

        # additive pre-adjustments
        r += params.temperature + params.brightness
        g += params.tint + params.brightness
        b += params.brightness - params.temperature

        f = contrast_factor(params.contrast)
        if f is not None:
            rgb -= 128.0
            rgb *= f
            rgb += 128.0

        s = saturation_factor(params.saturation)
        if s is not None:
            wr, wg, wb = LUMA_WEIGHTS
            gray = (wr * r + wg * g + wb * b)[..., np.newaxis]
            rgb -= gray
            rgb *= s
            rgb += gray

        np.clip(rgb, 0.0, 255.0, out=rgb)
        # round half to even, same as a clamped 8-bit canvas store
        out[..., :3] = np.rint(rgb).astype(np.uint8)
        return out

    def correct_image(self, image: Image.Image, params: CorrectionParameters) -> Image.Image:
        """Коррекция для изображения PIL (через RGBA)."""
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        corrected = self.correct(np.asarray(rgba, dtype=np.uint8), params)
        return Image.fromarray(corrected)
