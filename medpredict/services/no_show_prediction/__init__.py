"""
Модуль прогнозирования неявок пациентов
Подготовка данных, обучение моделей и оценка качества
"""

from .schemas import (
    Record, Bounds, FeatureBounds, FeatureVector, TrainingSample, TrainingOptions,
    TrainingProgress, TrainingStats, EvaluationReport, DatasetSplit, PredictionForm,
    RiskVerdict
)
from .dataset import DatasetStore, load_records
from .feature_extractor import FeatureExtractor, normalize, denormalize
from .text_encoder import record_to_text, clean_text
from .sampling import shuffle, oversample, prepare_training_data, split_dataset
from .predictor import Trainable, NeuralNetPredictor
from .evaluator import evaluate, evaluate_numeric, evaluate_text
from .risk import RiskAssessment
from .trainer import TrainingHandlers, train_model, predict_risk

__all__ = [
    # Схемы
    'Record', 'Bounds', 'FeatureBounds', 'FeatureVector', 'TrainingSample',
    'TrainingOptions', 'TrainingProgress', 'TrainingStats', 'EvaluationReport',
    'DatasetSplit', 'PredictionForm', 'RiskVerdict',

    # Данные
    'DatasetStore', 'load_records',

    # Признаки
    'FeatureExtractor', 'normalize', 'denormalize', 'record_to_text', 'clean_text',

    # Выборки
    'shuffle', 'oversample', 'prepare_training_data', 'split_dataset',

    # Модели
    'Trainable', 'NeuralNetPredictor',

    # Оценка
    'evaluate', 'evaluate_numeric', 'evaluate_text', 'RiskAssessment',

    # Обучение
    'TrainingHandlers', 'train_model', 'predict_risk'
]
