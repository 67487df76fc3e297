"""
Фоновое обучение LSTM в отдельном процессе
"""

from .messages import (
    TrainRequest, PredictRequest, SamplesMessage, LogMessage, ProgressMessage,
    LSTMMetrics, DoneMessage, ErrorMessage, PredictionMessage, parse_event, parse_request
)
from .worker import LSTMWorker, run_worker
from .host import LSTMWorkerHost, WorkerState

__all__ = [
    # Сообщения
    'TrainRequest', 'PredictRequest', 'SamplesMessage', 'LogMessage', 'ProgressMessage',
    'LSTMMetrics', 'DoneMessage', 'ErrorMessage', 'PredictionMessage',
    'parse_event', 'parse_request',

    # Воркер
    'LSTMWorker', 'run_worker', 'LSTMWorkerHost', 'WorkerState'
]
