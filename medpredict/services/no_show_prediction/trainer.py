"""
Обучение полносвязной сети и прогноз по форме
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from medpredict.config import MedPredictSettings, get_settings
from medpredict.services.no_show_prediction.dataset import DatasetStore
from medpredict.services.no_show_prediction.feature_extractor import FeatureExtractor
from medpredict.services.no_show_prediction.predictor import Trainable
from medpredict.services.no_show_prediction.sampling import prepare_training_data
from medpredict.services.no_show_prediction.schemas import (
    FeatureBounds, PredictionForm, TrainingOptions, TrainingProgress
)

logger = logging.getLogger(__name__)

SEPARATOR = '─' * 52


def _noop(*args, **kwargs) -> None:
    pass


@dataclass
class TrainingHandlers:
    """Колбэки хода обучения"""
    on_log: Callable[[str], None] = _noop
    on_progress: Callable[[int, float], None] = _noop
    on_done: Callable[[Any], None] = _noop
    on_error: Callable[[Exception], None] = _noop
    on_samples: Callable[[str], None] = _noop


def progress_percent(iterations: int, total: int) -> int:
    if total <= 0:
        return 100
    return min(100, round(iterations / total * 100))


def train_model(store: DatasetStore, predictor: Trainable,
                handlers: TrainingHandlers,
                settings: Optional[MedPredictSettings] = None) -> None:
    """
    Обучение сети на выборке с oversampling неявок

    Ошибки не пробрасываются, а передаются в handlers.on_error.
    """
    settings = settings or get_settings()
    iterations_total = settings.NN_ITERATIONS

    try:
        samples = prepare_training_data(
            store.records, store.bounds,
            factor=settings.OVERSAMPLE_FACTOR, seed=settings.RANDOM_SEED
        )

        hidden = ', '.join(str(size) for size in settings.NN_HIDDEN_LAYERS)
        handlers.on_log(f"[INIT] Original samples: {len(store)} → After oversampling: {len(samples)}")
        handlers.on_log("[INIT] Input features: 8 (age, days_wait, gender, sms, scholarship, "
                        "hypertension, diabetes, alcoholism)")
        handlers.on_log(f"[INIT] Architecture: 8 → [{hidden}] → 1 (sigmoid)")
        handlers.on_log(f"[INIT] Learning rate: {settings.NN_LEARNING_RATE} · "
                        f"Max iterations: {iterations_total}")
        handlers.on_log(SEPARATOR)

        def on_progress(progress: TrainingProgress) -> None:
            handlers.on_progress(progress_percent(progress.iterations, iterations_total), progress.error)
            handlers.on_log(f"[iter {progress.iterations:04d}]  error: {progress.error:.6f}")

        stats = predictor.train(samples, TrainingOptions(
            iterations=iterations_total,
            error_threshold=settings.NN_ERROR_THRESHOLD,
            learning_rate=settings.NN_LEARNING_RATE,
            callback_period=settings.NN_LOG_PERIOD,
            log_callback=logger.debug,
            progress_callback=on_progress,
        ))

        handlers.on_log(SEPARATOR)
        handlers.on_log(f"[DONE] Finished in {stats.iterations} iterations · "
                        f"Final error: {stats.error:.6f}")
    except Exception as e:
        logger.error(f"Ошибка обучения сети: {e}")
        handlers.on_error(e)
        return

    handlers.on_done(stats)


def predict_risk(predictor: Trainable, bounds: FeatureBounds, form: PredictionForm) -> float:
    """Вероятность неявки для значений формы"""
    flags = form.flags()
    vector = FeatureExtractor(bounds).build_input_vector(
        form.age, form.days_wait, flags['gender'], flags['sms'], flags['scholarship'],
        flags['hypertension'], flags['diabetes'], flags['alcoholism']
    )
    return predictor.run(vector)
