"""Настройки приложения с переопределением через переменные окружения."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional, Tuple

from colorpress.models.image_model import DEFAULT_DELAY_MS, DEFAULT_QUALITY

logger = logging.getLogger(__name__)

ENV_PREFIX = "COLORPRESS_"


@dataclass(frozen=True)
class AppConfig:
    """Неизменяемые настройки.

    Fields:
        default_quality: Качество сжатия после запуска и после сброса.
        default_delay_ms: Задержка кадра, если в GIF она не указана.
        export_workers: Потоков для цветокоррекции кадров при экспорте GIF.
        gif_colors: Размер палитры GIF при экспорте (2..256).
        log_level: Уровень логирования.
        window_title: Заголовок окна.
        min_size: Минимальный размер окна, px.
    """
    default_quality: int = DEFAULT_QUALITY
    default_delay_ms: int = DEFAULT_DELAY_MS
    export_workers: int = 2
    gif_colors: int = 256
    log_level: str = "INFO"
    window_title: str = "Цветокоррекция и сжатие"
    min_size: Tuple[int, int] = (1000, 640)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Читает `COLORPRESS_<FIELD>`; нераспознанные значения пропускаются."""
        environ = os.environ if environ is None else environ
        config = cls()
        overrides = {}
        for field in fields(cls):
            if field.name == "min_size":
                continue
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            current = getattr(config, field.name)
            if isinstance(current, int):
                try:
                    overrides[field.name] = int(raw)
                except ValueError:
                    logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, field.name.upper(), raw)
            else:
                overrides[field.name] = raw.upper() if field.name == "log_level" else raw
        config = replace(config, **overrides)
        return replace(
            config,
            export_workers=max(1, config.export_workers),
            gif_colors=max(2, min(256, config.gif_colors)),
        )
