"""Исключения приложения.

Загрузка, экспорт и предпросмотр сообщают об ошибках только этими типами,
чтобы контроллер мог показать пользователю понятное сообщение.
"""
from __future__ import annotations


class ColorPressError(Exception):
    """Базовое исключение приложения."""


class DecodeError(ColorPressError, ValueError):
    """Входные байты не являются поддерживаемым изображением."""


class EncodeError(ColorPressError, RuntimeError):
    """Кодировщик не смог сформировать выходной файл."""


class EmptyMediaError(ColorPressError, LookupError):
    """Операция требует загруженного изображения, а его нет."""


class ExportCancelled(ColorPressError):
    """Экспорт отменён: медиа заменено или сброшено до завершения."""
