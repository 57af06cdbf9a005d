"""Нижняя панель: счётчик кадров анимации, статус экспорта и масштаб предпросмотра."""
from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

ZOOM_MIN = 10
ZOOM_MAX = 400
ZOOM_STEP = 25
_FIT = "Вписать"
_PRESETS = (25, 50, 100, 200, 400)


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=48, **kwargs)

        # callbacks
        self.on_zoom_change: Optional[Callable[[int], None]] = None
        self.on_zoom_preset: Optional[Callable[[int], None]] = None
        self.on_zoom_fit: Optional[Callable[[], None]] = None

        self._percent = 100

        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)

        # Playback / export status
        self._frame_value = ctk.StringVar(value="")
        self._frame_label = ctk.CTkLabel(
            self, textvariable=self._frame_value, width=110, anchor="w", font=ctk.CTkFont(weight="bold")
        )
        self._frame_label.grid(row=0, column=0, padx=(12, 6), pady=6, sticky="w")

        self._status_value = ctk.StringVar(value="")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status_value, anchor="w", text_color="gray70")
        self._status_label.grid(row=0, column=1, padx=6, pady=6, sticky="ew")

        # Zoom group
        zoom = ctk.CTkFrame(self, fg_color="transparent")
        zoom.grid(row=0, column=2, padx=(6, 10), pady=6, sticky="e")

        ctk.CTkButton(zoom, text="−", width=28, command=lambda: self._step(-ZOOM_STEP)).pack(side="left")
        self._zoom_slider = ctk.CTkSlider(
            zoom, from_=ZOOM_MIN, to=ZOOM_MAX, number_of_steps=ZOOM_MAX - ZOOM_MIN, width=180,
            command=self._on_slider_change,
        )
        self._zoom_slider.set(self._percent)
        self._zoom_slider.pack(side="left", padx=4)
        ctk.CTkButton(zoom, text="+", width=28, command=lambda: self._step(ZOOM_STEP)).pack(side="left")

        self._zoom_menu = ctk.CTkOptionMenu(
            zoom,
            values=[_FIT] + [f"{p}%" for p in _PRESETS],
            width=96,
            command=self._on_menu_choice,
        )
        self._zoom_menu.set("100%")
        self._zoom_menu.pack(side="left", padx=(8, 0))

    # ---- Sync from controller ----
    def set_zoom_percent(self, percent: int) -> None:
        self._percent = percent
        self._zoom_slider.set(percent)
        self._zoom_menu.set(f"{percent}%")

    def set_frame_status(self, index: int, count: int) -> None:
        self._frame_value.set(f"Кадр {index + 1} / {count}")

    def set_status(self, text: str) -> None:
        """Текст статуса; пустая строка также сбрасывает счётчик кадров."""
        self._status_value.set(text)
        if not text:
            self._frame_value.set("")

    # ---- Events ----
    def _on_slider_change(self, value: float) -> None:
        self._emit(int(round(value)), self.on_zoom_change)

    def _on_menu_choice(self, value: str) -> None:
        if value == _FIT:
            if self.on_zoom_fit:
                self.on_zoom_fit()
            return
        self._emit(int(value.rstrip("%")), self.on_zoom_preset)

    def _step(self, delta: int) -> None:
        percent = max(ZOOM_MIN, min(ZOOM_MAX, self._percent + delta))
        self._zoom_slider.set(percent)
        self._emit(percent, self.on_zoom_change)

    def _emit(self, percent: int, callback: Optional[Callable[[int], None]]) -> None:
        self._percent = percent
        self._zoom_menu.set(f"{percent}%")
        if callback:
            callback(percent)
