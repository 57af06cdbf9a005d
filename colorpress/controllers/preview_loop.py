"""Живой предпросмотр: коррекция текущего кадра и показ на холсте.

Статичное изображение пересчитывается один раз на каждое изменение.
Анимация крутится самоперепланирующимся таймером: показать кадр, сдвинуть
курсор, подождать задержку показанного кадра. Таймер работает в цикле
событий Tk (`after` / `after_cancel`), поэтому тики никогда не пересекаются.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from colorpress.models.editor_state import EditorState
from colorpress.models.image_model import PixelBuffer
from colorpress.services.color_service import ColorService

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Подмножество API виджета Tk, нужное циклу."""

    def after(self, ms: int, func: Callable[[], None]) -> str: ...

    def after_cancel(self, id: str) -> None: ...


class PreviewLoop:
    """Цикл предпросмотра с явной ручкой отмены.

    Attributes:
        on_present: Получает скорректированный буфер и флаг «новое медиа»
            (холст нужно подогнать под размеры).
        on_frame_shown: Получает (индекс кадра, всего кадров) после показа.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        state: EditorState,
        color_service: Optional[ColorService] = None,
        on_present: Optional[Callable[[PixelBuffer, bool], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._state = state
        self._color = color_service if color_service is not None else ColorService()
        self.on_present = on_present
        self.on_frame_shown: Optional[Callable[[int, int], None]] = None

        self._cursor: int = 0
        self._after_id: Optional[str] = None
        # bumped on every start/stop; a tick with a stale token does nothing
        self._token: int = 0
        self._running: bool = False
        self._fresh_media: bool = False

    # ---- Public API ----
    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def is_running(self) -> bool:
        return self._running

    def media_loaded(self) -> None:
        """Новая загрузка: курсор в 0, таймер перезапускается."""
        self.stop()
        self._cursor = 0
        self._fresh_media = True
        self.refresh()

    def refresh(self) -> None:
        """Перерисовать с текущими параметрами; курсор анимации не сбрасывается."""
        frames = self._state.frames
        if frames.is_empty():
            self.stop()
            return
        if frames.is_animated():
            self._start_animation()
        else:
            self.stop()
            buffer = self._color.correct(frames.static_buffer(), self._state.params)
            self._present(buffer)

    def stop(self) -> None:
        self._token += 1
        if self._after_id is not None:
            self._scheduler.after_cancel(self._after_id)
            self._after_id = None
        if self._running:
            logger.debug("Preview loop stopped at frame %d", self._cursor)
        self._running = False

    # ---- Internals ----
    def _start_animation(self) -> None:
        self.stop()
        count = self._state.frames.frame_count()
        if self._cursor >= count:
            self._cursor = 0
        self._running = True
        logger.debug("Preview loop started at frame %d of %d", self._cursor, count)
        self._tick(self._token)

    def _tick(self, token: int) -> None:
        self._after_id = None
        if token != self._token:
            return

        frames = self._state.frames
        params = self._state.params  # one snapshot per tick
        index = self._cursor
        frame = frames.frame_at(index)
        self._present(self._color.correct(frame.pixels, params))
        if token != self._token:
            # presenting stopped or restarted the loop
            return

        count = frames.frame_count()
        self._cursor = (index + 1) % count
        if self.on_frame_shown is not None:
            self.on_frame_shown(index, count)
            if token != self._token:
                return
        self._after_id = self._scheduler.after(frame.delay_ms, lambda: self._tick(token))

    def _present(self, buffer: PixelBuffer) -> None:
        fresh = self._fresh_media
        self._fresh_media = False
        if self.on_present is not None:
            self.on_present(buffer, fresh)
