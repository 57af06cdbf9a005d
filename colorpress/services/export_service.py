"""Экспорт: применение коррекции и кодирование результата.

Принципы:
- SRP: сервис не знает про UI; он получает хранилище кадров и снимок
  настроек, возвращает байты.
- Кадры анимации корректируются независимо (можно в пуле потоков), итоговый
  порядок всегда совпадает с исходным.
- Ошибки кодировщика пробрасываются без повторов; на диск пишется только
  полностью готовый результат.
"""
from __future__ import annotations

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from colorpress.models.errors import EmptyMediaError, ExportCancelled
from colorpress.models.frame_store import FrameStore
from colorpress.models.image_model import (
    ANIMATED_FORMAT,
    AnimatedImage,
    CorrectionParameters,
    EditorSnapshot,
    Frame,
    PixelBuffer,
    StaticImage,
)
from colorpress.services.codec_service import (
    AnimationEncoder,
    PillowGifEncoder,
    PillowStillEncoder,
    StillEncoder,
)
from colorpress.services.color_service import ColorService

logger = logging.getLogger(__name__)

LOSSY_FORMATS = ("jpeg", "webp")


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    format: str
    suggested_name: str

    @property
    def size(self) -> int:
        return len(self.data)


def suggested_file_name(fmt: str) -> str:
    if fmt == ANIMATED_FORMAT:
        return "corrected-animation.gif"
    return f"corrected-image.{fmt}"


class ExportService:
    """Собирает итоговый файл из текущего медиа и параметров.

    Args:
        color_service: Корректор пикселей (тот же, что и у предпросмотра).
        still_encoder: Кодировщик статичных форматов.
        animation_encoder: Кодировщик анимации.
        workers: Число потоков для коррекции кадров; 1 отключает пул.
    """

    def __init__(
        self,
        color_service: Optional[ColorService] = None,
        still_encoder: Optional[StillEncoder] = None,
        animation_encoder: Optional[AnimationEncoder] = None,
        workers: int = 2,
    ) -> None:
        self._color = color_service if color_service is not None else ColorService()
        self._still: StillEncoder = still_encoder if still_encoder is not None else PillowStillEncoder()
        self._animation: AnimationEncoder = animation_encoder if animation_encoder is not None else PillowGifEncoder()
        self._workers = max(1, int(workers))

    # ---- Public API ----
    def export_static(self, buffer: PixelBuffer, params: CorrectionParameters, fmt: str, quality: int) -> bytes:
        """Корректирует буфер и кодирует его в `fmt`.

        Для jpeg/webp качество передаётся долей `quality / 100`, PNG его не получает.
        """
        corrected = self._color.correct(buffer, params)
        quality_fraction = quality / 100.0 if fmt in LOSSY_FORMATS else None
        return self._still.encode(corrected, fmt, quality_fraction)

    def export_animated(
        self,
        frames: Sequence[Frame],
        params: CorrectionParameters,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ) -> bytes:
        """Корректирует каждый кадр одним снимком параметров и собирает анимацию."""
        frames = list(frames)
        corrected = self._correct_frames(frames, params, is_cancelled)
        self._check_cancelled(is_cancelled)
        return self._animation.encode(corrected)

    def export(
        self,
        store: FrameStore,
        snapshot: EditorSnapshot,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ) -> ExportResult:
        """Экспортирует текущее медиа хранилища.

        Raises:
            EmptyMediaError: если ничего не загружено.
            EncodeError: если кодировщик не справился.
            ExportCancelled: если `is_cancelled()` вернул True по ходу работы.
        """
        # one read: the store may be replaced while a background export runs
        media = store.media
        if isinstance(media, AnimatedImage):
            logger.info("Exporting animation: %d frames", len(media.frames))
            data = self.export_animated(media.frames, snapshot.params, is_cancelled)
            fmt = ANIMATED_FORMAT
        elif isinstance(media, StaticImage):
            fmt = snapshot.output_format
            logger.info("Exporting static image as %s (quality %d)", fmt, snapshot.quality)
            data = self.export_static(media.pixels, snapshot.params, fmt, snapshot.quality)
        else:
            raise EmptyMediaError("Нечего экспортировать: изображение не загружено")

        self._check_cancelled(is_cancelled)
        logger.info("Export finished: %d bytes", len(data))
        return ExportResult(data=data, format=fmt, suggested_name=suggested_file_name(fmt))

    def measure_static(self, buffer: PixelBuffer, params: CorrectionParameters, fmt: str, quality: int) -> int:
        """Размер статичного результата в байтах (для статистики сжатия)."""
        return len(self.export_static(buffer, params, fmt, quality))

    # ---- Helpers ----
    def _correct_frames(
        self,
        frames: List[Frame],
        params: CorrectionParameters,
        is_cancelled: Optional[Callable[[], bool]],
    ) -> List[Frame]:
        def correct_one(frame: Frame) -> Frame:
            self._check_cancelled(is_cancelled)
            return Frame(pixels=self._color.correct(frame.pixels, params), delay_ms=frame.delay_ms)

        if self._workers == 1 or len(frames) < 2:
            return [correct_one(f) for f in frames]
        # Executor.map yields results in submission order
        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            return list(pool.map(correct_one, frames))

    @staticmethod
    def _check_cancelled(is_cancelled: Optional[Callable[[], bool]]) -> None:
        if is_cancelled is not None and is_cancelled():
            raise ExportCancelled("Экспорт отменён")


def write_artifact(path: str | Path, data: bytes) -> Path:
    """Атомарно записывает файл: временный файл рядом и `os.replace`.

    При ошибке временный файл удаляется, целевой путь не затрагивается.
    """
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    logger.info("Saved %d bytes to %s", len(data), target)
    return target
