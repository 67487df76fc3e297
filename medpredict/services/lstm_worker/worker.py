"""
Фоновый воркер LSTM
Выполняется в отдельном процессе: разбиение, oversampling, обучение,
оценка и прогноз по тексту. Все результаты отправляются событиями.
"""

import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from medpredict.config import MedPredictSettings
from medpredict.services.lstm_worker.messages import (
    DoneMessage, ErrorMessage, LogMessage, LSTMMetrics, PredictionMessage,
    PredictRequest, ProgressMessage, SamplesMessage, TrainRequest,
    parse_request, to_payload
)
from medpredict.services.no_show_prediction.evaluator import evaluate_text, text_to_class
from medpredict.services.no_show_prediction.predictor import Trainable
from medpredict.services.no_show_prediction.sampling import split_dataset
from medpredict.services.no_show_prediction.schemas import (
    Record, TrainingOptions, TrainingProgress
)
from medpredict.services.no_show_prediction.text_encoder import clean_text
from medpredict.services.no_show_prediction.trainer import progress_percent

logger = logging.getLogger(__name__)

SEPARATOR = '─' * 48
PREVIEW_EXAMPLES = 3


def default_predictor_factory(settings: MedPredictSettings) -> Trainable:
    from medpredict.services.no_show_prediction.lstm_model import LSTMTextPredictor

    return LSTMTextPredictor(
        embedding_dim=settings.LSTM_EMBEDDING_DIM,
        hidden_dim=settings.LSTM_HIDDEN_DIM,
        random_state=settings.RANDOM_SEED,
    )


class LSTMWorker:
    """
    Обработчик запросов воркера
    Владеет обученной моделью; наружу передаются только события
    """

    def __init__(self, emit: Callable[[Dict[str, Any]], None],
                 settings: Optional[MedPredictSettings] = None,
                 predictor_factory: Callable[[MedPredictSettings], Trainable] = default_predictor_factory):
        self.emit_payload = emit
        self.settings = settings or MedPredictSettings()
        self.predictor_factory = predictor_factory
        self.net: Optional[Trainable] = None

    def emit(self, message: BaseModel) -> None:
        self.emit_payload(to_payload(message))

    def log(self, message: str) -> None:
        self.emit(LogMessage(message=message))

    def handle(self, payload: Dict[str, Any]) -> None:
        """Обработка одного запроса; исключения превращаются в события error"""
        try:
            request = parse_request(payload)
        except Exception as e:
            logger.error(f"Некорректный запрос воркеру: {e}")
            self.emit(ErrorMessage(message=str(e)))
            return

        if isinstance(request, TrainRequest):
            self.train(request)
        elif isinstance(request, PredictRequest):
            self.predict(request)

    def train(self, request: TrainRequest) -> None:
        settings = self.settings
        try:
            records = [Record(**row) for row in request.data]
            split = split_dataset(
                records, seed=settings.RANDOM_SEED, factor=settings.OVERSAMPLE_FACTOR,
                train_ratio=settings.TRAIN_RATIO, validation_ratio=settings.VALIDATION_RATIO
            )
            train, validation, test = split.train, split.validation, split.test

            examples = '\n'.join(f'"{s.input}" → {s.output}' for s in train[:PREVIEW_EXAMPLES])
            self.emit(SamplesMessage(examples=examples))
            self.log(f"[INIT] Train: {len(train)} · Val: {len(validation)} · Test: {len(test)}")
            self.log('[INIT] Short labels: "yes" (show) / "no" (no-show)')
            self.log(f"[INIT] Iterations: {settings.LSTM_ITERATIONS} · LR: {settings.LSTM_LEARNING_RATE}")
            self.log(SEPARATOR)

            # Прежняя модель заменяется только после успешного обучения
            self.net = None
            net = self.predictor_factory(settings)

            def on_progress(progress: TrainingProgress) -> None:
                pct = progress_percent(progress.iterations, settings.LSTM_ITERATIONS)
                self.emit(ProgressMessage(pct=pct, error=progress.error))
                self.log(f"[iter {progress.iterations:04d}]  error: {progress.error:.6f}")

            net.train(train, TrainingOptions(
                iterations=settings.LSTM_ITERATIONS,
                error_threshold=settings.LSTM_ERROR_THRESHOLD,
                learning_rate=settings.LSTM_LEARNING_RATE,
                callback_period=settings.LSTM_LOG_PERIOD,
                log_callback=logger.debug,
                progress_callback=on_progress,
            ))

            self.log(SEPARATOR)
            self.log('[DONE] LSTM training complete.')

            val_metrics = evaluate_text(net, validation)
            test_metrics = evaluate_text(net, test)

            self.log(f"[EVAL] Val accuracy:       {val_metrics.overall}%")
            self.log(f"[EVAL] Test accuracy:      {test_metrics.overall}%")
            self.log(f"[EVAL] Test no-show recall: {test_metrics.recall_positive}%")

            self.net = net
            self.emit(DoneMessage(metrics=LSTMMetrics(
                val_acc=val_metrics.overall,
                test_acc=test_metrics.overall,
                test_show_recall=test_metrics.recall_negative,
                test_noshow_recall=test_metrics.recall_positive,
            )))
        except Exception as e:
            logger.error(f"Ошибка обучения LSTM: {e}")
            self.emit(ErrorMessage(message=str(e)))

    def predict(self, request: PredictRequest) -> None:
        if self.net is None:
            self.emit(ErrorMessage(message="LSTM not trained yet", request_id=request.request_id))
            return

        try:
            cleaned = clean_text(request.text)
            label = 'noshow' if text_to_class(self.net.run(cleaned)) == 1 else 'showup'
            self.emit(PredictionMessage(label=label, cleaned=cleaned, request_id=request.request_id))
        except Exception as e:
            logger.error(f"Ошибка прогноза LSTM: {e}")
            self.emit(ErrorMessage(message=str(e), request_id=request.request_id))


def run_worker(requests, events, settings_payload: Optional[Dict[str, Any]] = None,
               predictor_factory: Callable[[MedPredictSettings], Trainable] = default_predictor_factory) -> None:
    """
    Точка входа процесса воркера
    Читает запросы из очереди до получения None
    """
    settings = MedPredictSettings(**(settings_payload or {}))
    worker = LSTMWorker(events.put, settings, predictor_factory)

    while True:
        payload = requests.get()
        if payload is None:
            break
        worker.handle(payload)
