from .pyzbar_decoder import PyzbarBarcodeDecoder

__all__ = ["PyzbarBarcodeDecoder"]
