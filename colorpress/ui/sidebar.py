"""Боковая панель: открытие файла, информация, ползунки коррекции и сжатия.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через события `on_*`, состояние принимает через `set_*`.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

import customtkinter as ctk

from colorpress.models.image_model import (
    PARAM_MAX,
    PARAM_MIN,
    QUALITY_MAX,
    QUALITY_MIN,
    STILL_FORMATS,
    CorrectionParameters,
    SourceImage,
)
from colorpress.services.stats_service import SizeStats

# (field, title, left hint, right hint)
_ADJUSTMENTS: Tuple[Tuple[str, str, str, str], ...] = (
    ("temperature", "Температура", "Холоднее (синий)", "Теплее (жёлтый)"),
    ("tint", "Оттенок", "Пурпурный", "Зелёный"),
    ("brightness", "Яркость", "", ""),
    ("contrast", "Контраст", "", ""),
    ("saturation", "Насыщенность", "", ""),
)

_GREEN = "#4ade80"
_YELLOW = "#facc15"


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


class Sidebar(ctk.CTkScrollableFrame):
    """Панель инструментов с блоками: файл, информация, коррекция, сжатие, действия."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_param_change: Optional[Callable[[str, int], None]] = None
        self.on_quality_change: Optional[Callable[[int], None]] = None
        self.on_format_change: Optional[Callable[[str], None]] = None
        self.on_back: Optional[Callable[[], None]] = None
        self.on_reset: Optional[Callable[[], None]] = None
        self.on_download: Optional[Callable[[], None]] = None

        # Controls
        self._title = ctk.CTkLabel(self, text="Инструменты", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Информация", font=ctk.CTkFont(size=16, weight="bold"))
        self._info_title.grid(row=2, column=0, padx=8, pady=(8, 4), sticky="w")

        self._path_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._frames_val = ctk.StringVar(value="—")

        self._info_path = ctk.CTkLabel(self, textvariable=self._path_val, wraplength=270, anchor="w", justify="left")
        self._info_dims = ctk.CTkLabel(self, textvariable=self._dims_val, anchor="w", justify="left")
        self._info_frames = ctk.CTkLabel(self, textvariable=self._frames_val, anchor="w", justify="left")
        self._animated_badge = ctk.CTkLabel(self, text="• АНИМАЦИЯ", text_color=_GREEN, anchor="w")

        self._info_path.grid(row=3, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_dims.grid(row=4, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_frames.grid(row=5, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._animated_badge.grid(row=6, column=0, padx=8, pady=(0, 8), sticky="w")
        self._animated_badge.grid_remove()

        # Adjustments
        self._adj_title = ctk.CTkLabel(self, text="Коррекция", font=ctk.CTkFont(size=16, weight="bold"))
        self._adj_title.grid(row=7, column=0, padx=8, pady=(8, 4), sticky="w")

        self._sliders: Dict[str, ctk.CTkSlider] = {}
        self._slider_vals: Dict[str, ctk.StringVar] = {}
        row = 8
        for field, title, left, right in _ADJUSTMENTS:
            row = self._add_adjustment(row, field, title, left, right)

        # Compression
        self._comp_title = ctk.CTkLabel(self, text="Сжатие", font=ctk.CTkFont(size=16, weight="bold"))
        self._comp_title.grid(row=40, column=0, padx=8, pady=(12, 4), sticky="w")

        self._quality_val = ctk.StringVar(value="90%")
        self._quality_label = ctk.CTkLabel(self, text="Качество сжатия:")
        self._quality_slider = ctk.CTkSlider(
            self,
            from_=QUALITY_MIN,
            to=QUALITY_MAX,
            number_of_steps=QUALITY_MAX - QUALITY_MIN,
            command=self._on_quality_slider,
        )
        self._quality_slider.set(90)
        self._quality_value = ctk.CTkLabel(self, textvariable=self._quality_val, width=48, anchor="w")
        self._quality_hint = ctk.CTkLabel(
            self, text="меньше файл  ←  →  лучше качество", text_color="gray", anchor="w"
        )
        self._quality_label.grid(row=41, column=0, padx=8, pady=(0, 2), sticky="w")
        self._quality_slider.grid(row=42, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._quality_value.grid(row=43, column=0, padx=8, pady=(0, 2), sticky="w")
        self._quality_hint.grid(row=44, column=0, padx=8, pady=(0, 6), sticky="w")

        # Size stats
        self._orig_size_val = ctk.StringVar(value="Исходный размер: —")
        self._cur_size_val = ctk.StringVar(value="Текущий размер: —")
        self._saved_val = ctk.StringVar(value="Сэкономлено: —")
        self._orig_size = ctk.CTkLabel(self, textvariable=self._orig_size_val, anchor="w")
        self._cur_size = ctk.CTkLabel(self, textvariable=self._cur_size_val, anchor="w")
        self._saved = ctk.CTkLabel(self, textvariable=self._saved_val, anchor="w", text_color=_YELLOW)
        self._orig_size.grid(row=45, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._cur_size.grid(row=46, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._saved.grid(row=47, column=0, padx=8, pady=(0, 8), sticky="ew")

        # Output format (static images only)
        self._format_label = ctk.CTkLabel(self, text="Формат сохранения")
        self._format_buttons = ctk.CTkSegmentedButton(
            self,
            values=[f.upper() for f in STILL_FORMATS],
            command=self._on_format_click,
        )
        self._format_buttons.set("JPEG")
        self._format_label.grid(row=48, column=0, padx=8, pady=(4, 2), sticky="w")
        self._format_buttons.grid(row=49, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Actions
        self._back_btn = ctk.CTkButton(self, text="← Назад", fg_color="gray30", command=self._emit_back)
        self._reset_btn = ctk.CTkButton(self, text="Сбросить настройки", fg_color="gray30", command=self._emit_reset)
        self._download_btn = ctk.CTkButton(self, text="Скачать JPEG", command=self._emit_download)
        self._back_btn.grid(row=60, column=0, padx=8, pady=(0, 6), sticky="ew")
        self._reset_btn.grid(row=61, column=0, padx=8, pady=(0, 6), sticky="ew")
        self._download_btn.grid(row=62, column=0, padx=8, pady=(0, 8), sticky="ew")

        self.set_media_loaded(False)

    # ---- Public API ----
    def set_image_info(self, source: SourceImage, width: int, height: int, frame_count: int) -> None:
        """Отображает метаданные загруженного изображения."""
        self._path_val.set(str(source.path) if source.path else "—")
        self._dims_val.set(f"{width} × {height} px, {source.source_format or '?'}")
        self._frames_val.set(f"Кадров: {frame_count}")

    def clear_image_info(self) -> None:
        self._path_val.set("—")
        self._dims_val.set("—")
        self._frames_val.set("—")
        self.set_size_stats(None)

    def set_params(self, params: CorrectionParameters, quality: int) -> None:
        """Синхронизирует ползунки с состоянием (например, после сброса)."""
        for field, slider in self._sliders.items():
            value = int(getattr(params, field))
            slider.set(value)
            self._slider_vals[field].set(_signed(value))
        self._quality_slider.set(quality)
        self._quality_val.set(f"{quality}%")

    def set_animated(self, animated: bool, output_format: str) -> None:
        """Для анимации прячет выбор формата: результат всегда GIF."""
        if animated:
            self._animated_badge.grid()
            self._format_label.grid_remove()
            self._format_buttons.grid_remove()
            self._download_btn.configure(text="Скачать анимированный GIF")
        else:
            self._animated_badge.grid_remove()
            self._format_label.grid()
            self._format_buttons.grid()
            self._format_buttons.set(output_format.upper())
            self._download_btn.configure(text=f"Скачать {output_format.upper()}")

    def set_media_loaded(self, loaded: bool) -> None:
        state = "normal" if loaded else "disabled"
        for btn in (self._back_btn, self._reset_btn, self._download_btn):
            btn.configure(state=state)

    def set_exporting(self, busy: bool) -> None:
        self._download_btn.configure(state="disabled" if busy else "normal")

    def set_size_stats(self, stats: Optional[SizeStats]) -> None:
        if stats is None:
            self._orig_size_val.set("Исходный размер: —")
            self._cur_size_val.set("Текущий размер: —")
            self._saved_val.set("Сэкономлено: —")
            self._saved.configure(text_color=_YELLOW)
            return
        self._orig_size_val.set(f"Исходный размер: {stats.original_text()}")
        self._cur_size_val.set(f"Текущий размер: {stats.corrected_text()}")
        self._saved_val.set(f"Сэкономлено: {stats.saved_text()}")
        self._saved.configure(text_color=_GREEN if stats.is_saving else _YELLOW)

    # ---- Events ----
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _on_adjustment(self, field: str, value: float) -> None:
        v = int(round(value))
        self._slider_vals[field].set(_signed(v))
        if self.on_param_change:
            self.on_param_change(field, v)

    def _on_quality_slider(self, value: float) -> None:
        quality = int(round(value))
        self._quality_val.set(f"{quality}%")
        if self.on_quality_change:
            self.on_quality_change(quality)

    def _on_format_click(self, value: str) -> None:
        fmt = value.lower()
        self._download_btn.configure(text=f"Скачать {value}")
        if self.on_format_change:
            self.on_format_change(fmt)

    def _emit_back(self) -> None:
        if self.on_back:
            self.on_back()

    def _emit_reset(self) -> None:
        if self.on_reset:
            self.on_reset()

    def _emit_download(self) -> None:
        if self.on_download:
            self.on_download()

    # ---- Helpers ----
    def _add_adjustment(self, row: int, field: str, title: str, left: str, right: str) -> int:
        value_var = ctk.StringVar(value="0")
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(header, text=f"{title}:", anchor="w").grid(row=0, column=0, sticky="w")
        ctk.CTkLabel(header, textvariable=value_var, width=40, anchor="e").grid(row=0, column=1, sticky="e")
        header.grid(row=row, column=0, padx=8, pady=(4, 0), sticky="ew")

        slider = ctk.CTkSlider(
            self,
            from_=PARAM_MIN,
            to=PARAM_MAX,
            number_of_steps=PARAM_MAX - PARAM_MIN,
            command=lambda v, f=field: self._on_adjustment(f, v),
        )
        slider.set(0)
        slider.grid(row=row + 1, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._sliders[field] = slider
        self._slider_vals[field] = value_var

        if left or right:
            hints = ctk.CTkFrame(self, fg_color="transparent")
            hints.grid_columnconfigure(0, weight=1)
            ctk.CTkLabel(hints, text=left, text_color="gray", anchor="w").grid(row=0, column=0, sticky="w")
            ctk.CTkLabel(hints, text=right, text_color="gray", anchor="e").grid(row=0, column=1, sticky="e")
            hints.grid(row=row + 2, column=0, padx=8, pady=(0, 4), sticky="ew")
        return row + 3
