"""Контроллер приложения: оркестрация UI, состояния редактора и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без логики обработки пикселей).
- DIP: зависит от сервисов как от ролей; кодеки подставляются через конструкторы сервисов.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы и `PreviewLoop`.
- Контроллер единственный, кто пишет в `EditorState`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from tkinter import TclError, filedialog, messagebox
from typing import Optional

import customtkinter as ctk

from colorpress.config import AppConfig
from colorpress.controllers.preview_loop import PreviewLoop
from colorpress.models.editor_state import EditorState
from colorpress.models.errors import DecodeError, EmptyMediaError, EncodeError, ExportCancelled
from colorpress.models.frame_store import FrameStore
from colorpress.models.image_model import CorrectionParameters, EditorSnapshot, MediaState, PixelBuffer
from colorpress.services.codec_service import PillowDecoder, PillowGifEncoder, buffer_to_image
from colorpress.services.export_service import ExportResult, ExportService, suggested_file_name, write_artifact
from colorpress.services.image_service import ImageService
from colorpress.services.stats_service import SizeStats
from colorpress.ui.bottom_bar import BottomBar
from colorpress.ui.image_viewer import ImageViewer
from colorpress.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)

_STATS_DELAY_MS = 200


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Загрузка изображений через `ImageService` в `FrameStore`.
    - Запуск и остановка живого предпросмотра.
    - Экспорт в фоне с отменой при смене медиа.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    config: AppConfig = field(default_factory=AppConfig)

    state: EditorState = field(init=False)
    _image_service: ImageService = field(init=False)
    _export_service: ExportService = field(init=False)
    _preview: PreviewLoop = field(init=False)
    _shown_params: Optional[CorrectionParameters] = None
    _stats_after_id: Optional[str] = None
    _export_thread: Optional[threading.Thread] = None

    def __post_init__(self) -> None:
        self.state = EditorState(default_quality=self.config.default_quality)
        self._image_service = ImageService(PillowDecoder(default_delay_ms=self.config.default_delay_ms))
        self._export_service = ExportService(
            animation_encoder=PillowGifEncoder(colors=self.config.gif_colors),
            workers=self.config.export_workers,
        )
        self._preview = PreviewLoop(self.window, self.state, on_present=self._present)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_param_change = self._handle_param_change
        self.sidebar.on_quality_change = self._handle_quality_change
        self.sidebar.on_format_change = self._handle_format_change
        self.sidebar.on_back = self._handle_back
        self.sidebar.on_reset = self._handle_reset
        self.sidebar.on_download = self._handle_download

        self.viewer.on_zoom_change = self._handle_viewer_zoom_changed
        self.bottom.on_zoom_change = self._handle_zoom_change
        self.bottom.on_zoom_preset = self._handle_zoom_change
        self.bottom.on_zoom_fit = self._handle_zoom_fit

        self._preview.on_frame_shown = self.bottom.set_frame_status
        self.state.add_listener(self._handle_state_changed)
        self.state.frames.add_listener(self._handle_media_changed)
        self.sidebar.set_params(self.state.params, self.state.quality)

    def shutdown(self) -> None:
        """Останавливает таймеры перед закрытием окна."""
        self._preview.stop()
        self._cancel_stats()

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите изображение",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.webp *.gif"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return
        self.open_path(file_path)

    def open_path(self, file_path: str) -> None:
        """Загружает файл; при ошибке текущее медиа остаётся без изменений."""
        try:
            source = self._image_service.load_image(file_path)
        except (FileNotFoundError, DecodeError) as exc:
            logger.warning("Failed to load %s: %s", file_path, exc)
            messagebox.showerror("Ошибка загрузки", str(exc))
            return

        self._shown_params = self.state.params
        self.state.frames.load(source.media)
        if not self.state.frames.is_animated():
            self.state.set_output_format(source.default_output_format)

        width, height = self.state.frames.dimensions()
        self.sidebar.set_image_info(source, width, height, self.state.frames.frame_count())
        self.sidebar.set_animated(self.state.frames.is_animated(), self.state.output_format)
        self.sidebar.set_media_loaded(True)
        if not self.state.frames.is_animated():
            self.bottom.set_status("")

        self._preview.media_loaded()
        self._schedule_stats()

    def _handle_param_change(self, name: str, value: int) -> None:
        self.state.set_param(name, value)

    def _handle_quality_change(self, quality: int) -> None:
        self.state.set_quality(quality)

    def _handle_format_change(self, fmt: str) -> None:
        self.state.set_output_format(fmt)

    def _handle_reset(self) -> None:
        self.state.reset_adjustments()
        self.sidebar.set_params(self.state.params, self.state.quality)

    def _handle_back(self) -> None:
        self.state.frames.clear()

    def _handle_state_changed(self) -> None:
        if self.state.frames.is_empty():
            return
        if self.state.params != self._shown_params:
            self._shown_params = self.state.params
            self._preview.refresh()
        self._schedule_stats()

    def _handle_media_changed(self, media: MediaState) -> None:
        if not self.state.frames.is_empty():
            return
        self._preview.stop()
        self._cancel_stats()
        self.viewer.clear()
        self.sidebar.clear_image_info()
        self.sidebar.set_animated(False, self.state.output_format)
        self.sidebar.set_media_loaded(False)
        self.bottom.set_status("")

    def _handle_zoom_change(self, zoom_percent: int) -> None:
        self.viewer.set_zoom_percent(zoom_percent)

    def _handle_viewer_zoom_changed(self, zoom_percent: int) -> None:
        # Sync bottom bar when user zooms with mouse wheel
        self.bottom.set_zoom_percent(zoom_percent)

    def _handle_zoom_fit(self) -> None:
        self.viewer.set_zoom_to_fit()
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())

    # ---- Export ----
    def _handle_download(self) -> None:
        if self._export_thread is not None and self._export_thread.is_alive():
            return
        store = self.state.frames
        if store.is_empty():
            return

        snapshot = self.state.snapshot()
        fmt = snapshot.output_format
        try:
            target = filedialog.asksaveasfilename(
                title="Сохранить результат",
                initialfile=suggested_file_name(fmt),
                defaultextension=f".{fmt}",
                filetypes=((fmt.upper(), f"*.{fmt}"), ("All files", "*.*")),
            )
        except TclError:
            return
        if not target:
            return

        self.sidebar.set_exporting(True)
        self.bottom.set_status("Экспорт…")
        self._export_thread = threading.Thread(
            target=self._run_export,
            args=(store, snapshot, target, store.generation),
            name="colorpress-export",
            daemon=True,
        )
        self._export_thread.start()

    def _run_export(self, store: FrameStore, snapshot: EditorSnapshot, target: str, generation: int) -> None:
        """Тело фонового экспорта; результат всегда возвращается в UI-поток через `after`."""

        def is_cancelled() -> bool:
            return store.generation != generation

        try:
            result = self._export_service.export(store, snapshot, is_cancelled)
        except ExportCancelled:
            self.window.after(0, self._export_cancelled)
        except (EncodeError, EmptyMediaError) as exc:
            logger.error("Export failed: %s", exc, exc_info=True)
            self.window.after(0, self._export_failed, exc)
        except Exception as exc:
            logger.exception("Unexpected export error")
            self.window.after(0, self._export_failed, exc)
        else:
            self.window.after(0, self._export_finished, result, target, generation)

    def _export_finished(self, result: ExportResult, target: str, generation: int) -> None:
        self._export_thread = None
        if self.state.frames.generation != generation:
            # media replaced while encoding: no artifact
            self._export_cancelled()
            return
        try:
            write_artifact(target, result.data)
        except OSError as exc:
            logger.error("Could not write %s: %s", target, exc)
            self._export_failed(exc)
            return
        self.sidebar.set_exporting(False)
        self.bottom.set_status(f"Сохранено: {target}")
        self.sidebar.set_size_stats(SizeStats.from_bytes(self.state.frames.original_size, result.size))

    def _export_cancelled(self) -> None:
        logger.info("Export cancelled: media changed")
        self._export_thread = None
        self.sidebar.set_exporting(False)
        self.sidebar.set_media_loaded(not self.state.frames.is_empty())
        self.bottom.set_status("")

    def _export_failed(self, exc: Exception) -> None:
        self._export_thread = None
        self.sidebar.set_exporting(False)
        self.bottom.set_status("")
        messagebox.showerror("Ошибка экспорта", str(exc))

    # ---- Helpers ----
    def _present(self, buffer: PixelBuffer, fresh: bool) -> None:
        image = buffer_to_image(buffer)
        if fresh:
            self.viewer.set_image(image)
            self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())
        else:
            self.viewer.set_frame(image)

    def _schedule_stats(self) -> None:
        self._cancel_stats()
        self._stats_after_id = self.window.after(_STATS_DELAY_MS, self._update_stats)

    def _cancel_stats(self) -> None:
        if self._stats_after_id is not None:
            self.window.after_cancel(self._stats_after_id)
            self._stats_after_id = None

    def _update_stats(self) -> None:
        """Пересчитывает «текущий размер» статичного изображения кодированием в памяти."""
        self._stats_after_id = None
        store = self.state.frames
        if store.is_empty():
            return
        if store.is_animated():
            # GIF size is known only after export
            self.sidebar.set_size_stats(None)
            return
        snapshot = self.state.snapshot()
        try:
            size = self._export_service.measure_static(
                store.static_buffer(), snapshot.params, snapshot.output_format, snapshot.quality
            )
        except EncodeError as exc:
            logger.warning("Could not measure output size: %s", exc)
            self.sidebar.set_size_stats(None)
            return
        self.sidebar.set_size_stats(SizeStats.from_bytes(store.original_size, size))
