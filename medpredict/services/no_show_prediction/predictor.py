"""
Обучаемые предикторы неявок
Алгоритмы обучения предоставляются сторонними библиотеками; конвейер
работает только через интерфейс Trainable
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import joblib
import numpy as np
from sklearn.neural_network import MLPClassifier

from medpredict.exceptions import ModelLoadException, NotTrainedException, TrainingException
from medpredict.services.no_show_prediction.schemas import (
    FeatureBounds, FeatureVector, TrainingOptions, TrainingProgress,
    TrainingSample, TrainingStats
)

CLASSES = np.array([0, 1])


class Trainable(ABC):
    """Абстрактная обучаемая модель: train(samples, options) и run(input)"""

    is_trained: bool = False

    @abstractmethod
    def train(self, samples: Sequence[TrainingSample], options: TrainingOptions) -> TrainingStats:
        """Обучение модели на размеченных примерах"""
        pass

    @abstractmethod
    def run(self, input: Any) -> Any:
        """Прогноз для одного входа"""
        pass

    @staticmethod
    def _notify(options: TrainingOptions, iterations: int, error: float) -> None:
        """Вызов колбэков с заданной периодичностью"""
        if options.callback_period <= 0 or iterations % options.callback_period != 0:
            return
        if options.log_callback is not None:
            options.log_callback(f"iterations: {iterations}, training error: {error}")
        if options.progress_callback is not None:
            options.progress_callback(TrainingProgress(iterations=iterations, error=error))


class NeuralNetPredictor(Trainable):
    """
    Полносвязная сеть 8 -> [10, 6] -> 1 на основе MLPClassifier
    Одна итерация обучения - одна эпоха partial_fit
    """

    def __init__(self, hidden_layers: Tuple[int, ...] = (10, 6),
                 random_state: Optional[int] = None):
        self.hidden_layers = tuple(hidden_layers)
        self.random_state = random_state
        self.model: Optional[MLPClassifier] = None
        self.is_trained = False
        self.logger = logging.getLogger(__name__)

    def train(self, samples: Sequence[TrainingSample], options: TrainingOptions) -> TrainingStats:
        if not samples:
            raise TrainingException("Нет данных для обучения")

        features = np.array([self._as_list(s.input) for s in samples])
        target = np.array([s.noshow for s in samples])

        model = MLPClassifier(
            hidden_layer_sizes=self.hidden_layers,
            activation='logistic',
            solver='adam',
            learning_rate_init=options.learning_rate,
            random_state=self.random_state,
        )

        iterations = 0
        error = float('inf')
        while iterations < options.iterations:
            model.partial_fit(features, target, classes=CLASSES)
            iterations += 1
            error = float(model.loss_)
            self._notify(options, iterations, error)
            if error < options.error_threshold:
                break

        # Модель заменяется целиком только после успешного обучения
        self.model = model
        self.is_trained = True
        self.logger.info(f"Сеть обучена за {iterations} итераций, ошибка {error:.6f}")

        return TrainingStats(iterations=iterations, error=error)

    def run(self, input: Union[FeatureVector, List[float]]) -> float:
        """Вероятность неявки"""
        if not self.is_trained:
            raise NotTrainedException()
        return float(self.model.predict_proba([self._as_list(input)])[0][1])

    def save_model(self, file_path: Union[str, Path], bounds: FeatureBounds) -> None:
        """
        Сохранение модели вместе с границами нормализации
        """
        if not self.is_trained:
            raise NotTrainedException()

        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        model_data = {
            'model': self.model,
            'hidden_layers': self.hidden_layers,
            'bounds': bounds.model_dump(),
            'trained_at': datetime.utcnow(),
        }
        joblib.dump(model_data, path)
        self.logger.info(f"Модель сохранена в {path}")

    @classmethod
    def load_model(cls, file_path: Union[str, Path]) -> Tuple['NeuralNetPredictor', FeatureBounds]:
        """
        Загрузка модели и границ нормализации
        """
        try:
            model_data: Dict[str, Any] = joblib.load(file_path)

            predictor = cls(hidden_layers=model_data['hidden_layers'])
            predictor.model = model_data['model']
            bounds = FeatureBounds(**model_data['bounds'])
        except Exception as e:
            logging.getLogger(__name__).error(f"Ошибка загрузки модели: {e}")
            raise ModelLoadException(f"Не удалось загрузить модель из {file_path}",
                                     {'error': str(e)}) from e

        predictor.is_trained = True
        predictor.logger.info(f"Модель загружена из {file_path}")

        return predictor, bounds

    @staticmethod
    def _as_list(vector: Union[FeatureVector, List[float]]) -> List[float]:
        if isinstance(vector, FeatureVector):
            return vector.to_list()
        return list(vector)
