"""
Бэкенды распознавания текста.

Модули импортируются напрямую (trocr_recognizer, google_vision_recognizer),
чтобы не загружать torch и google-cloud-vision без необходимости.
"""
