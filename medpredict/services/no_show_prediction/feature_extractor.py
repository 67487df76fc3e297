"""
Экстрактор признаков для модели прогнозирования неявок
Min-max нормализация по границам, вычисленным на наборе данных
"""

import numpy as np
from typing import List

from medpredict.services.no_show_prediction.schemas import (
    Record, FeatureBounds, FeatureVector, FEATURE_NAMES
)


def normalize(value: float, min_value: float, max_value: float) -> float:
    """Min-max нормализация; при нулевом диапазоне возвращает середину 0.5"""
    if min_value == max_value:
        return 0.5
    return (value - min_value) / (max_value - min_value)


def denormalize(value: float, min_value: float, max_value: float) -> float:
    """Обратное преобразование к нормализации"""
    return value * (max_value - min_value) + min_value


class FeatureExtractor:
    """
    Построение входных векторов из записей и значений формы
    Границы задаются один раз при создании
    """

    def __init__(self, bounds: FeatureBounds):
        self.bounds = bounds

    def build_input_vector(self, age: int, days_wait: int, gender: int, sms: int,
                           scholarship: int, hypertension: int, diabetes: int,
                           alcoholism: int) -> FeatureVector:
        """
        Построение вектора из 8 признаков
        Возраст и ожидание нормализуются, бинарные флаги передаются как есть
        """
        return FeatureVector(
            age=normalize(age, self.bounds.age.min, self.bounds.age.max),
            days_wait=normalize(days_wait, self.bounds.days_wait.min, self.bounds.days_wait.max),
            gender=gender,
            sms_received=sms,
            scholarship=scholarship,
            hipertension=hypertension,
            diabetes=diabetes,
            alcoholism=alcoholism,
        )

    def extract(self, record: Record) -> FeatureVector:
        """Вектор признаков для исторической записи"""
        return self.build_input_vector(
            record.age, record.days_wait, record.gender, record.sms_received,
            record.scholarship, record.hypertension, record.diabetes, record.alcoholism
        )

    def extract_batch(self, records: List[Record]) -> np.ndarray:
        """Матрица признаков (n_samples, 8)"""
        matrix = np.zeros((len(records), len(FEATURE_NAMES)))
        for i, record in enumerate(records):
            matrix[i] = self.extract(record).to_list()
        return matrix

    @staticmethod
    def get_feature_names() -> List[str]:
        """Получение списка имен признаков в правильном порядке"""
        return list(FEATURE_NAMES)
