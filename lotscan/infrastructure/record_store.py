"""
Хранилище записей в JSON-файлах.

Одна подтверждённая запись -> один файл <barcode>_<timestamp>.json
в OUTPUT_DIR. Формат: полезная нагрузка (barcode, lot, expiryDate)
плюс поля аудита.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from config.settings import OUTPUT_DIR
from contracts.record_dto import CapturedRecord
from ..domain.exceptions import RecordSinkError
from ..domain.interfaces import IRecordSink


class JsonRecordStore(IRecordSink):
    """Реализация IRecordSink: запись в JSON-файлы."""

    # Символы, недопустимые в имени файла
    _UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR
        self.last_saved_path: Optional[Path] = None

    def save(self, record: CapturedRecord) -> None:
        """
        Сохраняет запись в JSON файл.

        Raises:
            RecordSinkError: Если не удалось сохранить файл
        """
        file_path = self.output_dir / self._file_name(record)
        data = self._serialize(record)

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except (IOError, OSError, TypeError) as e:
            raise RecordSinkError(
                message=f"Не удалось сохранить запись: {file_path}",
                component="JsonRecordStore",
                original_error=e
            )

        self.last_saved_path = file_path
        logger.info(f"[JsonRecordStore] Запись сохранена: {file_path}")

    def load_all(self) -> List[Dict[str, Any]]:
        """
        Загружает все сохранённые записи (по имени файла).

        Raises:
            RecordSinkError: Если файл не читается
        """
        if not self.output_dir.exists():
            return []

        records = []
        for file_path in sorted(self.output_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    records.append(json.load(f))
            except (IOError, OSError, json.JSONDecodeError) as e:
                raise RecordSinkError(
                    message=f"Не удалось загрузить запись: {file_path}",
                    component="JsonRecordStore",
                    original_error=e
                )

        logger.debug(f"[JsonRecordStore] Загружено записей: {len(records)}")
        return records

    def _file_name(self, record: CapturedRecord) -> str:
        barcode = self._UNSAFE_CHARS.sub("_", record.barcode)
        timestamp = record.captured_at.strftime("%Y%m%d_%H%M%S_%f")
        return f"{barcode}_{timestamp}.json"

    @staticmethod
    def _serialize(record: CapturedRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(record.to_payload())
        data["audit"] = {
            "raw_recognized_text": record.raw_recognized_text,
            "manual_barcode": record.manual_barcode,
            "manual_text": record.manual_text,
            "captured_at": record.captured_at.isoformat(),
        }
        return data
