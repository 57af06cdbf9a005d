"""Статистика размеров: исходный и текущий размер, доля сэкономленного."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def to_kb(byte_length: int) -> float:
    """Размер в КБ, округлённый до сотых."""
    return round(byte_length / 1024, 2)


def compression_saved(original_kb: float, corrected_kb: float) -> Optional[float]:
    """Процент экономии; отрицательный, если результат больше оригинала."""
    if not original_kb or not corrected_kb:
        return None
    return round((1 - corrected_kb / original_kb) * 100, 1)


@dataclass(frozen=True)
class SizeStats:
    original_kb: float
    corrected_kb: float
    saved_percent: Optional[float]

    @classmethod
    def from_bytes(cls, original_size: int, corrected_size: int) -> "SizeStats":
        original_kb = to_kb(original_size)
        corrected_kb = to_kb(corrected_size)
        return cls(original_kb, corrected_kb, compression_saved(original_kb, corrected_kb))

    @property
    def is_saving(self) -> bool:
        return self.saved_percent is not None and self.saved_percent > 0

    def original_text(self) -> str:
        return f"{self.original_kb:.2f} KB"

    def corrected_text(self) -> str:
        return f"{self.corrected_kb:.2f} KB"

    def saved_text(self) -> str:
        if self.saved_percent is None:
            return "—"
        return f"{self.saved_percent:.1f}%"
