#!/usr/bin/env python3
"""
Консольный захват: штрихкод -> лот и срок годности -> проверка -> запись.

Использование:
    # Камера по умолчанию, распознавание через TrOCR
    python scripts/run_capture.py

    # Штрихкод вводится вручную, распознавание через Google Vision
    python scripts/run_capture.py --manual-barcode --backend google_vision

    # Без поиска продукта в Open Food Facts
    python scripts/run_capture.py --no-lookup
"""

import sys
import argparse
from pathlib import Path

from loguru import logger

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import validate_config, OUTPUT_DIR
from contracts.capture_dto import CaptureStage
from lotscan.application.factory import CaptureComponentFactory
from lotscan.configuration.config_loader import CaptureConfigLoader
from lotscan.domain.exceptions import CaptureError
from lotscan.workflow.capture_workflow import CaptureWorkflow


def print_notice(notice: CaptureError) -> None:
    print(f"  [!] {notice.message}")


def ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return "q"


def handle_barcode_stage(workflow: CaptureWorkflow, manual: bool, timeout: float) -> None:
    print("\n[1/3] Штрихкод")

    if not manual:
        workflow.start()
        if not workflow.requires_manual_entry:
            print(f"  Наведите камеру на штрихкод (до {timeout:.0f} с)...")
            code = workflow.run_barcode_detection(timeout=timeout)
            if code:
                print(f"  [OK] Найден: {code}")
                return
            print("  Штрихкод не найден, переход на ручной ввод")
        workflow.use_manual_barcode_entry()

    while workflow.is_active and workflow.stage == CaptureStage.BARCODE_CAPTURE:
        code = ask("  Введите штрихкод (q - отмена): ")
        if code.lower() == "q":
            workflow.cancel()
            return
        try:
            workflow.submit_barcode(code)
        except ValueError as e:
            print(f"  [ERROR] {e}")


def handle_text_stage(workflow: CaptureWorkflow) -> None:
    print("\n[2/3] Лот и срок годности")

    product = workflow.session.product
    if product is not None and product.found:
        print(f"  Продукт: {product.name} ({product.brand})")

    while workflow.is_active and workflow.stage == CaptureStage.TEXT_CAPTURE:
        if workflow.requires_manual_entry:
            lot = ask("  Лот (пусто - нет): ")
            expiry = ask("  Срок годности YYYY-MM-DD (пусто - нет): ")
            try:
                workflow.skip_text_capture(lot=lot, expiry_date=expiry)
            except ValueError as e:
                print(f"  [ERROR] {e}")
            continue

        command = ask("  Enter - захват, m - ручной ввод, b - назад к штрихкоду, q - отмена: ")
        if command == "q":
            workflow.cancel()
        elif command == "b":
            workflow.retry_barcode()
        elif command == "m":
            workflow.use_manual_text_entry()
        else:
            text = workflow.capture_text()
            if text:
                print(f"  [OK] Распознано: {text!r}")


def handle_review_stage(workflow: CaptureWorkflow) -> None:
    session = workflow.session
    print("\n[3/3] Проверка")
    print(f"  Штрихкод:      {session.barcode}")
    print(f"  Лот:           {session.lot or '-'}")
    print(f"  Срок годности: {session.expiry_date or '-'}")

    command = ask("  c - подтвердить, e - исправить, t - повторить текст, b - повторить штрихкод, q - отмена: ")
    if command == "c":
        try:
            workflow.confirm()
        except CaptureError as e:
            print(f"  [ERROR] {e.message}")
    elif command == "e":
        barcode = ask(f"  Штрихкод [{session.barcode}]: ") or None
        lot = ask(f"  Лот [{session.lot or ''}] (- очистить): ")
        expiry = ask(f"  Срок годности [{session.expiry_date or ''}] (- очистить): ")
        try:
            workflow.update_fields(
                barcode=barcode,
                lot="" if lot == "-" else (lot or None),
                expiry_date="" if expiry == "-" else (expiry or None),
            )
        except ValueError as e:
            print(f"  [ERROR] {e}")
    elif command == "t":
        workflow.retry_text()
    elif command == "b":
        workflow.retry_barcode()
    elif command == "q":
        workflow.cancel()


def main():
    """Главная функция консольного захвата."""
    parser = argparse.ArgumentParser(description="Захват штрихкода, лота и срока годности")
    parser.add_argument("--manual-barcode", action="store_true", help="Ввести штрихкод вручную (без камеры)")
    parser.add_argument("--backend", default=None, help="Бэкенд распознавания: trocr | google_vision")
    parser.add_argument("--config", type=Path, default=None, help="Путь к capture.yaml")
    parser.add_argument("--no-lookup", action="store_true", help="Не искать продукт в Open Food Facts")
    parser.add_argument("--timeout", type=float, default=30.0, help="Таймаут детекции штрихкода, с")
    parser.add_argument("--verbose", action="store_true", help="Подробный лог (DEBUG)")
    args = parser.parse_args()

    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if args.verbose else "WARNING"
    )

    print("\n" + "=" * 60)
    print("  LOTSCAN - захват штрихкода, лота и срока годности")
    print("=" * 60)

    try:
        validate_config()
        config = CaptureConfigLoader(args.config).load()
    except (ValueError, CaptureError) as e:
        print(f"\n[ERROR] {e}")
        sys.exit(1)

    print(f"[OK] Записи сохраняются в: {OUTPUT_DIR}")

    workflow = CaptureComponentFactory.create_capture_workflow(
        config=config,
        record_sink=CaptureComponentFactory.create_record_sink(),
        product_lookup=None if args.no_lookup else CaptureComponentFactory.create_product_lookup(),
        recognition_backend=args.backend,
        on_notice=print_notice,
    )

    with workflow:
        try:
            while workflow.is_active:
                if workflow.stage == CaptureStage.BARCODE_CAPTURE:
                    handle_barcode_stage(workflow, manual=args.manual_barcode, timeout=args.timeout)
                elif workflow.stage == CaptureStage.TEXT_CAPTURE:
                    handle_text_stage(workflow)
                else:
                    handle_review_stage(workflow)
        except KeyboardInterrupt:
            workflow.cancel()

    if workflow.record is None:
        print("\n[CANCELLED] Захват отменён")
        sys.exit(1)

    print("\n" + "=" * 60)
    print(f"  [SUCCESS] {workflow.record.to_payload()}")
    print("=" * 60)


if __name__ == "__main__":
    main()
