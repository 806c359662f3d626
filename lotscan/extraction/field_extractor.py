"""Извлечение кода лота и срока годности из распознанного текста."""

import re
from typing import Optional, Pattern, Sequence

from loguru import logger

from config.settings import CENTURY_PREFIX, LOT_MARKERS
from contracts.capture_dto import ExtractionResult
from ..domain.exceptions import CaptureConfigurationError


class FieldExtractionEngine:
    """
    Извлекает код лота и срок годности из распознанного текста.

    Чистая функция от текста: без камеры, без I/O, без состояния между вызовами.

    Лот: маркер ("lotto", "lot", "l", точка допускается) без учёта регистра
    отдельным словом, затем необязательная пунктуация и серия заглавных букв,
    цифр и дефисов.
    Без маркера лот не угадывается.

    Дата: первая подстрока D[D]/M[M]/YYYY или YY с разделителями "/", "-", ".".
    Календарная валидность не проверяется: 31/02/24 -> 2024-02-31.
    """

    # D[D] sep M[M] sep YYYY|YY; год не продолжается цифрой
    DATE_PATTERN = re.compile(r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})(?!\d)")

    def __init__(
        self,
        lot_markers: Optional[Sequence[str]] = None,
        century_prefix: str = CENTURY_PREFIX
    ):
        """
        Args:
            lot_markers: Словарь маркеров лота (по умолчанию из settings)
            century_prefix: Префикс для двузначного года
        """
        self.lot_markers = self._normalize_markers(lot_markers if lot_markers is not None else LOT_MARKERS)
        self.century_prefix = century_prefix
        self._lot_pattern = self._build_lot_pattern(self.lot_markers)

        logger.debug(f"[FieldExtractionEngine] Маркеры лота: {self.lot_markers}")

    def extract(self, text: Optional[str]) -> ExtractionResult:
        """
        Разбирает текст на лот и срок годности.

        Args:
            text: Распознанный текст (может быть пустым)

        Returns:
            ExtractionResult: оба поля могут отсутствовать
        """
        if not text:
            return ExtractionResult()

        result = ExtractionResult(
            lot=self._extract_lot(text),
            expiry_date=self._extract_date(text),
        )

        if result.expiry_date and not result.has_calendar_valid_date:
            logger.warning(f"[FieldExtractionEngine] Дата не существует в календаре, оставлена как есть: {result.expiry_date}")

        logger.debug(f"[FieldExtractionEngine] {text!r} -> lot={result.lot}, expiry={result.expiry_date}")
        return result

    def _extract_lot(self, text: str) -> Optional[str]:
        match = self._lot_pattern.search(text)
        if not match:
            return None
        return match.group(1)

    def _extract_date(self, text: str) -> Optional[str]:
        match = self.DATE_PATTERN.search(text)
        if not match:
            return None

        day, month, year = match.groups()
        if len(year) == 2:
            year = self.century_prefix + year

        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    @staticmethod
    def _normalize_markers(markers: Sequence[str]) -> list[str]:
        cleaned = {m.strip().rstrip(".").lower() for m in markers if m and m.strip().rstrip(".")}
        if not cleaned:
            raise CaptureConfigurationError(
                message="Словарь маркеров лота пуст",
                component="FieldExtractionEngine"
            )
        # Длинные маркеры раньше: "lotto" до "lot" до "l"
        return sorted(cleaned, key=lambda m: (-len(m), m))

    @staticmethod
    def _build_lot_pattern(markers: Sequence[str]) -> Pattern:
        alternation = "|".join(re.escape(m) for m in markers)
        # Маркер без учёта регистра и не начало другого слова ("LATTE" не маркер).
        # Серия лота: только заглавные, цифры, дефисы
        return re.compile(rf"\b(?i:{alternation})(?![A-Za-z])\.?\s*[:.]?\s*([A-Z0-9-]+)")
