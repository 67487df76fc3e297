"""
Конфигурация приложения MedPredict
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class MedPredictSettings(BaseSettings):
    """Настройки подготовки данных, моделей и фонового воркера"""

    model_config = SettingsConfigDict(
        env_prefix="MEDPREDICT_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Данные
    DATA_PATH: Optional[str] = None
    MODEL_PATH: str = "./models/noshow_nn.joblib"

    # Подготовка выборки
    OVERSAMPLE_FACTOR: int = 3
    TRAIN_RATIO: float = 0.70
    VALIDATION_RATIO: float = 0.15
    PREDICTION_THRESHOLD: float = 0.5
    RANDOM_SEED: Optional[int] = None

    # Полносвязная сеть
    NN_HIDDEN_LAYERS: List[int] = [10, 6]
    NN_ITERATIONS: int = 5000
    NN_LOG_PERIOD: int = 250
    NN_LEARNING_RATE: float = 0.01
    NN_ERROR_THRESHOLD: float = 0.01

    # LSTM
    LSTM_ITERATIONS: int = 300
    LSTM_LOG_PERIOD: int = 30
    LSTM_LEARNING_RATE: float = 0.01
    LSTM_ERROR_THRESHOLD: float = 0.01
    LSTM_EMBEDDING_DIM: int = 16
    LSTM_HIDDEN_DIM: int = 20

    # Фоновый воркер
    WORKER_START_METHOD: str = "spawn"
    WORKER_POLL_INTERVAL: float = 0.1

    # Логирование
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Глобальный экземпляр настроек
_settings: Optional[MedPredictSettings] = None


def get_settings() -> MedPredictSettings:
    """Получение настроек приложения"""
    global _settings
    if _settings is None:
        _settings = MedPredictSettings()
    return _settings
