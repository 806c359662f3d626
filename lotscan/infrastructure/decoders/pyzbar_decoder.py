"""
Декодер штрихкодов на базе pyzbar (libzbar).

Кадр переводится в grayscale, zbar ищет только разрешённые символики.
Первый найденный штрихкод возвращается как строка.
"""

from typing import Optional, Sequence

import cv2
import numpy as np
from loguru import logger
from pyzbar.pyzbar import ZBarSymbol, decode

from contracts.capture_dto import Symbology
from ...domain.exceptions import DecodeNoiseError
from ...domain.interfaces import IBarcodeDecoder


class PyzbarBarcodeDecoder(IBarcodeDecoder):
    """
    Реализация IBarcodeDecoder через pyzbar.

    ЦКП: строка штрихкода с одного кадра или None.
    """

    SYMBOL_MAP = {
        Symbology.EAN_13: "EAN13",
        Symbology.EAN_8: "EAN8",
        Symbology.CODE_128: "CODE128",
        Symbology.CODE_39: "CODE39",
        Symbology.UPC_A: "UPCA",
        Symbology.UPC_E: "UPCE",
        Symbology.QR_CODE: "QRCODE",
    }

    def __init__(self):
        self._symbol_cache = {}
        logger.debug("[PyzbarBarcodeDecoder] Инициализирован")

    def decode(self, frame: np.ndarray, symbologies: Sequence[Symbology]) -> Optional[str]:
        """
        Ищет штрихкод на кадре.

        Args:
            frame: Кадр BGR или Grayscale
            symbologies: Принимаемые символики

        Returns:
            Строка штрихкода или None

        Raises:
            DecodeNoiseError: zbar не смог обработать кадр
        """
        symbols = self._resolve_symbols(symbologies)
        if not symbols:
            return None

        try:
            gray = self._to_grayscale(frame)
            barcodes = decode(gray, symbols=symbols)
        except Exception as e:
            raise DecodeNoiseError(
                message="Кадр не обработан zbar",
                component="PyzbarBarcodeDecoder",
                original_error=e
            )

        for barcode in barcodes:
            value = self._decode_data(barcode.data)
            if value:
                logger.debug(f"[PyzbarBarcodeDecoder] {barcode.type}: {value}")
                return value

        return None

    def _resolve_symbols(self, symbologies: Sequence[Symbology]) -> list:
        key = tuple(symbologies)
        if key not in self._symbol_cache:
            symbols = []
            for symbology in symbologies:
                # Набор ZBarSymbol зависит от сборки libzbar
                symbol = getattr(ZBarSymbol, self.SYMBOL_MAP.get(symbology, ""), None)
                if symbol is None:
                    logger.warning(f"[PyzbarBarcodeDecoder] Символика не поддерживается zbar: {symbology.value}")
                    continue
                symbols.append(symbol)
            self._symbol_cache[key] = symbols
        return self._symbol_cache[key]

    @staticmethod
    def _to_grayscale(frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 2:
            return frame
        if frame.shape[2] == 4:
            return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

    @staticmethod
    def _decode_data(data: bytes) -> str:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            text = data.decode("latin-1")
        return text.strip()
