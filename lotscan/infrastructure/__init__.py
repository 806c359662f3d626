"""
Infrastructure слой: адаптеры внешних библиотек и сервисов.

- decoders/     - pyzbar
- recognition/  - TrOCR (transformers), Google Cloud Vision
- lookup/       - Open Food Facts (requests)
- record_store  - JSON-файлы
"""
