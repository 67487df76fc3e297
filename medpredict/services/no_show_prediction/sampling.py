"""
Подготовка обучающих выборок: oversampling неявок, перемешивание и разбиение

Набор данных несбалансирован (~78% явок / 22% неявок). Без коррекции сеть
минимизирует ошибку, всегда предсказывая явку, поэтому записи с неявкой
повторяются OVERSAMPLE_FACTOR раз.
"""

import logging
import math
from typing import List, Optional, Sequence, TypeVar

import numpy as np

from medpredict.services.no_show_prediction.feature_extractor import FeatureExtractor
from medpredict.services.no_show_prediction.schemas import (
    Record, FeatureBounds, TrainingSample, DatasetSplit
)
from medpredict.services.no_show_prediction.text_encoder import encode_record

logger = logging.getLogger(__name__)

OVERSAMPLE_FACTOR = 3
TRAIN_RATIO = 0.70
VALIDATION_RATIO = 0.15

T = TypeVar('T')


def shuffle(items: Sequence[T], seed: Optional[int] = None,
            rng: Optional[np.random.Generator] = None) -> List[T]:
    """Несмещённое перемешивание (Фишер-Йейтс), возвращает новый список"""
    rng = rng if rng is not None else np.random.default_rng(seed)
    items = list(items)
    for i in range(len(items) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def oversample(samples: Sequence[TrainingSample],
               factor: int = OVERSAMPLE_FACTOR) -> List[TrainingSample]:
    """Каждая неявка повторяется factor раз подряд за исходной позицией"""
    result = []
    for sample in samples:
        result.append(sample)
        if sample.noshow == 1:
            result.extend([sample] * (factor - 1))
    return result


def prepare_training_data(records: Sequence[Record], bounds: FeatureBounds,
                          factor: int = OVERSAMPLE_FACTOR,
                          seed: Optional[int] = None) -> List[TrainingSample]:
    """
    Обучающая выборка для полносвязной сети

    Args:
        records: Исходные записи
        bounds: Границы для нормализации
        factor: Во сколько раз повторять неявки
        seed: Зерно для воспроизводимого перемешивания

    Returns:
        Перемешанный список из p*factor + q примеров
    """
    extractor = FeatureExtractor(bounds)
    samples = [
        TrainingSample(
            input=extractor.extract(record),
            output={'noshow': record.noshow},
            noshow=record.noshow,
        )
        for record in records
    ]
    return shuffle(oversample(samples, factor), seed=seed)


def split_dataset(records: Sequence[Record], seed: Optional[int] = None,
                  factor: int = OVERSAMPLE_FACTOR,
                  train_ratio: float = TRAIN_RATIO,
                  validation_ratio: float = VALIDATION_RATIO) -> DatasetSplit:
    """
    Разбиение на train/validation/test (70/15/15) для LSTM

    Oversampling применяется только к train, чтобы валидация и тест
    отражали реальное распределение классов.
    """
    rng = np.random.default_rng(seed)
    encoded = shuffle([encode_record(r) for r in records], rng=rng)

    n = len(encoded)
    train_end = math.floor(n * train_ratio)
    val_end = math.floor(n * round(train_ratio + validation_ratio, 10))

    raw_train = encoded[:train_end]
    validation = encoded[train_end:val_end]
    test = encoded[val_end:]

    # Дубликаты добавляются в конец, затем train перемешивается повторно
    train = list(raw_train)
    for sample in raw_train:
        if sample.noshow == 1:
            train.extend([sample] * (factor - 1))
    train = shuffle(train, rng=rng)

    logger.debug(f"Разбиение: train={len(train)} (без дублей {len(raw_train)}), "
                 f"val={len(validation)}, test={len(test)}")

    return DatasetSplit(train=train, validation=validation, test=test)
