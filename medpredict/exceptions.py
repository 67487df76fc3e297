from typing import Optional


# Кастомные исключения
class MedPredictException(Exception):
    """Базовое исключение приложения"""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

class DatasetException(MedPredictException):
    """Исключение загрузки набора данных"""
    def __init__(self, message: str = "Ошибка загрузки данных", details: Optional[dict] = None):
        super().__init__(message, details)

class NotTrainedException(MedPredictException):
    """Модель ещё не обучена"""
    def __init__(self, message: str = "Модель не обучена"):
        super().__init__(message)

class TrainingException(MedPredictException):
    """Исключение обучения модели"""
    def __init__(self, message: str = "Ошибка обучения модели", details: Optional[dict] = None):
        super().__init__(message, details)

class WorkerException(MedPredictException):
    """Исключение фонового воркера"""
    def __init__(self, message: str = "Worker error"):
        super().__init__(message)

class ModelLoadException(MedPredictException):
    """Файл модели повреждён или несовместим"""
    def __init__(self, message: str = "Ошибка загрузки модели", details: Optional[dict] = None):
        super().__init__(message, details)
