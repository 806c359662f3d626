#!/usr/bin/env python3
"""
Извлечение лота и срока годности из готового текста (без камеры).

Использование:
    python scripts/extract_fields.py "LOTTO L99 SCAD 01/01/26"
    python scripts/extract_fields.py --file recognized.txt
    echo "LOT: A-12 EXP 31.12.2025" | python scripts/extract_fields.py
"""

import sys
import argparse
import json
from pathlib import Path

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from lotscan.configuration.config_loader import CaptureConfigLoader
from lotscan.domain.exceptions import CaptureError
from lotscan.extraction.field_extractor import FieldExtractionEngine


def main():
    parser = argparse.ArgumentParser(description="Извлечение лота и срока годности из текста")
    parser.add_argument("text", nargs="?", help="Распознанный текст (иначе --file или stdin)")
    parser.add_argument("--file", type=Path, default=None, help="Файл с текстом")
    parser.add_argument("--config", type=Path, default=None, help="Путь к capture.yaml")
    args = parser.parse_args()

    if args.text is not None:
        text = args.text
    elif args.file is not None:
        text = args.file.read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()

    try:
        config = CaptureConfigLoader(args.config).load()
    except CaptureError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    engine = FieldExtractionEngine(
        lot_markers=config.extraction.lot_markers,
        century_prefix=config.extraction.century_prefix
    )
    result = engine.extract(text)

    print(json.dumps({
        "lot": result.lot,
        "expiryDate": result.expiry_date,
        "calendarValid": result.has_calendar_valid_date if result.expiry_date else None,
    }, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
