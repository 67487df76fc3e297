"""
Оценка качества обученных моделей: точность и полнота по классам
"""

from typing import Any, Callable, Optional, Sequence

import numpy as np
from sklearn.metrics import accuracy_score, recall_score

from medpredict.services.no_show_prediction.feature_extractor import FeatureExtractor
from medpredict.services.no_show_prediction.predictor import Trainable
from medpredict.services.no_show_prediction.schemas import (
    EvaluationReport, FeatureBounds, Record, TrainingSample
)

THRESHOLD = 0.5


def _percent(value: float) -> str:
    return f"{value * 100:.1f}"


def score_to_class(score: Any, threshold: float = THRESHOLD) -> int:
    """Неявка, только если оценка строго больше порога"""
    if isinstance(score, dict):
        score = score['noshow']
    elif isinstance(score, (list, tuple, np.ndarray)):
        score = score[0]
    return 1 if float(score) > threshold else 0


def text_to_class(output: Optional[str]) -> int:
    """Ответ, начинающийся с "n", означает неявку"""
    return 1 if (output or '').lower().strip().startswith('n') else 0


def evaluate(predictor: Trainable, items: Sequence[Any],
             to_input: Callable[[Any], Any],
             actual: Callable[[Any], int],
             to_class: Callable[[Any], int]) -> EvaluationReport:
    """
    Прогон предиктора по элементам и расчёт метрик

    Args:
        predictor: Обученная модель (не изменяется)
        items: Записи или примеры для оценки
        to_input: Построение входа модели из элемента
        actual: Истинный класс элемента (1 - неявка)
        to_class: Перевод ответа модели в класс

    Returns:
        Точность и полнота по классам в процентах
    """
    if not items:
        return EvaluationReport(overall='0.0', recall_positive='0.0', recall_negative='0.0')

    y_true = np.array([actual(item) for item in items])
    y_pred = np.array([to_class(predictor.run(to_input(item))) for item in items])

    # Для класса без примеров полнота равна 0.0
    recall_negative, recall_positive = recall_score(
        y_true, y_pred, labels=[0, 1], average=None, zero_division=0
    )

    return EvaluationReport(
        overall=_percent(accuracy_score(y_true, y_pred)),
        recall_positive=_percent(recall_positive),
        recall_negative=_percent(recall_negative),
    )


def evaluate_numeric(predictor: Trainable, records: Sequence[Record],
                     bounds: FeatureBounds, threshold: float = THRESHOLD) -> EvaluationReport:
    """Оценка полносвязной сети на исходных записях без дублей"""
    extractor = FeatureExtractor(bounds)
    return evaluate(
        predictor, records,
        to_input=extractor.extract,
        actual=lambda r: r.noshow,
        to_class=lambda score: score_to_class(score, threshold),
    )


def evaluate_text(predictor: Trainable, samples: Sequence[TrainingSample]) -> EvaluationReport:
    """Оценка LSTM на закодированных текстах"""
    return evaluate(
        predictor, samples,
        to_input=lambda s: s.input,
        actual=lambda s: s.noshow,
        to_class=text_to_class,
    )
