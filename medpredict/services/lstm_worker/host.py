"""
Управление фоновым воркером LSTM

Обучение выполняется в отдельном процессе, чтобы не блокировать
интерактивную сторону. Новый запуск обучения безусловно завершает
предыдущий процесс; события старого запуска после этого не доставляются.
"""

import logging
import queue
import threading
import time
import uuid
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from enum import Enum
from multiprocessing import get_context
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ValidationError

from medpredict.config import MedPredictSettings, get_settings
from medpredict.exceptions import NotTrainedException, WorkerException
from medpredict.services.lstm_worker.messages import (
    DoneMessage, ErrorMessage, LogMessage, LSTMMetrics, PredictionMessage,
    PredictRequest, ProgressMessage, SamplesMessage, TrainRequest,
    parse_event, to_payload
)
from medpredict.services.lstm_worker.worker import run_worker
from medpredict.services.no_show_prediction.schemas import Record
from medpredict.services.no_show_prediction.trainer import TrainingHandlers

SHUTDOWN_TIMEOUT = 5.0


class WorkerState(str, Enum):
    """Состояния запуска обучения"""
    IDLE = "idle"
    TRAINING = "training"
    DONE = "done"
    FAILED = "failed"


# Отложенный вызов обработчика: (функция, аргументы)
HandlerCall = Tuple[Callable, tuple]


class LSTMWorkerHost:
    """
    Хост фонового воркера LSTM

    События обрабатываются в отдельном потоке-слушателе и передаются
    в TrainingHandlers вне блокировки состояния. Из обработчиков можно
    перезапустить обучение через train(); predict() из них недоступен,
    так как ответ доставляет тот же поток.
    """

    def __init__(self, settings: Optional[MedPredictSettings] = None,
                 worker_target: Callable = run_worker,
                 start_method: Optional[str] = None):
        self.settings = settings or get_settings()
        self.worker_target = worker_target
        self._context = get_context(start_method or self.settings.WORKER_START_METHOD)
        # _lock защищает состояние, _delivery удерживается на время вызова обработчиков
        self._lock = threading.RLock()
        self._delivery = threading.RLock()
        self._generation = 0
        self._process = None
        self._requests = None
        self._listener: Optional[threading.Thread] = None
        self._handlers = TrainingHandlers()
        self._futures: Dict[str, Future] = {}
        self._finished = threading.Event()
        self.state = WorkerState.IDLE
        self.metrics: Optional[LSTMMetrics] = None
        self.last_error: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    def train(self, records: Sequence[Union[Record, Dict[str, Any]]],
              handlers: Optional[TrainingHandlers] = None) -> None:
        """
        Запуск обучения в новом процессе воркера
        Текущий запуск, если есть, завершается принудительно
        """
        data = [r.model_dump(by_alias=True) if isinstance(r, BaseModel) else dict(r) for r in records]
        calls: List[HandlerCall] = []

        with self._lock:
            self._terminate()
            self._generation += 1
            generation = self._generation
            self._handlers = handlers or TrainingHandlers()
            self._finished = threading.Event()
            self.state = WorkerState.TRAINING
            self.metrics = None
            self.last_error = None

            try:
                requests = self._context.Queue()
                events = self._context.Queue()
                process = self._context.Process(
                    target=self.worker_target,
                    args=(requests, events, self.settings.model_dump()),
                    daemon=True,
                )
                process.start()
            except Exception as e:
                self.logger.error(f"Не удалось запустить воркер: {e}")
                calls = self._fail(WorkerException())
            else:
                self._process = process
                self._requests = requests
                self._listener = threading.Thread(
                    target=self._listen, args=(generation, process, events),
                    name=f"lstm-worker-listener-{generation}", daemon=True
                )
                self._listener.start()

                requests.put(to_payload(TrainRequest(data=data)))
                self.logger.info(f"Запущено обучение LSTM #{generation} на {len(data)} записях")

        # Возврат только после завершения уже начатой доставки событий прежнего запуска
        with self._delivery:
            self._run_calls(calls)

    def predict(self, text: str, timeout: Optional[float] = None) -> PredictionMessage:
        """
        Прогноз по произвольному тексту
        До успешного завершения обучения сразу завершается ошибкой
        """
        with self._lock:
            if threading.current_thread() is self._listener:
                raise WorkerException("predict() is not available inside worker event handlers")
            if self.state != WorkerState.DONE or self._process is None:
                raise NotTrainedException("LSTM not trained yet")

            request_id = str(uuid.uuid4())
            future: Future = Future()
            self._futures[request_id] = future
            self._requests.put(to_payload(PredictRequest(text=text, request_id=request_id)))

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            with self._lock:
                self._futures.pop(request_id, None)
            raise WorkerException("Prediction timed out")

    def wait(self, timeout: Optional[float] = None) -> WorkerState:
        """
        Ожидание терминального события текущего запуска
        Если за время ожидания обучение перезапущено, ожидается новый запуск
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            finished = self._finished
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            if not finished.wait(remaining) or finished is self._finished:
                return self.state

    @property
    def is_training(self) -> bool:
        return self.state == WorkerState.TRAINING

    def shutdown(self) -> None:
        """Остановка воркера"""
        with self._lock:
            self._generation += 1
            if self._process is not None and self._process.is_alive():
                self._requests.put(None)
                self._process.join(timeout=SHUTDOWN_TIMEOUT)
            self._terminate()
            self.state = WorkerState.IDLE
        with self._delivery:
            pass

    def __enter__(self) -> 'LSTMWorkerHost':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def _terminate(self) -> None:
        """Принудительное завершение процесса без доставки частичных результатов"""
        if self._process is not None:
            if self._process.is_alive():
                self.logger.info("Завершение текущего процесса воркера")
                self._process.terminate()
            self._process.join(timeout=SHUTDOWN_TIMEOUT)
            self._requests.cancel_join_thread()

        self._process = None
        self._requests = None
        self._listener = None
        self._fail_futures("Worker terminated")

    def _fail(self, error: Exception) -> List[HandlerCall]:
        """Перевод запуска в failed; возвращает вызовы обработчиков"""
        self.state = WorkerState.FAILED
        self.last_error = str(error)
        self._fail_futures(str(error))
        return [(self._handlers.on_error, (error,)), (self._finished.set, ())]

    def _fail_futures(self, message: str) -> None:
        for future in self._futures.values():
            if not future.done():
                future.set_exception(WorkerException(message))
        self._futures.clear()

    def _listen(self, generation: int, process, events) -> None:
        poll_interval = self.settings.WORKER_POLL_INTERVAL
        while generation == self._generation:
            try:
                payload = events.get(timeout=poll_interval)
            except queue.Empty:
                if process.is_alive():
                    continue
                self._deliver(generation, lambda: self._lost(f"код завершения {process.exitcode}"))
                return
            except (EOFError, OSError) as e:
                self._deliver(generation, lambda: self._lost(str(e)))
                return

            self._deliver(generation, lambda: self._dispatch(payload))

    def _deliver(self, generation: int, build: Callable[[], List[HandlerCall]]) -> None:
        """
        Обновление состояния под блокировкой и вызов обработчиков вне её
        События устаревшего запуска отбрасываются
        """
        with self._delivery:
            with self._lock:
                if generation != self._generation:
                    return
                calls = build()
            self._run_calls(calls)

    def _lost(self, reason: str) -> List[HandlerCall]:
        self.logger.error(f"Процесс воркера завершился без результата: {reason}")
        return self._fail(WorkerException())

    def _dispatch(self, payload: Dict[str, Any]) -> List[HandlerCall]:
        try:
            message = parse_event(payload)
        except ValidationError as e:
            self.logger.warning(f"Некорректное событие воркера: {e}")
            return []

        handlers = self._handlers
        if isinstance(message, SamplesMessage):
            return [(handlers.on_samples, (message.examples,))]
        if isinstance(message, LogMessage):
            return [(handlers.on_log, (message.message,))]
        if isinstance(message, ProgressMessage):
            return [(handlers.on_progress, (message.pct, message.error))]
        if isinstance(message, DoneMessage):
            self.state = WorkerState.DONE
            self.metrics = message.metrics
            return [(handlers.on_done, (message.metrics,)), (self._finished.set, ())]
        if isinstance(message, PredictionMessage):
            future = self._futures.pop(message.request_id, None)
            if future is not None:
                future.set_result(message)
            return []
        if isinstance(message, ErrorMessage):
            future = self._futures.pop(message.request_id, None) if message.request_id else None
            if future is not None:
                future.set_exception(WorkerException(message.message))
                return []
            if self.state == WorkerState.TRAINING:
                return self._fail(WorkerException(message.message))
            return [(handlers.on_error, (WorkerException(message.message),))]
        return []

    def _run_calls(self, calls: List[HandlerCall]) -> None:
        for handler, args in calls:
            self._call(handler, *args)

    def _call(self, handler: Callable, *args) -> None:
        try:
            handler(*args)
        except Exception as e:
            self.logger.exception(f"Ошибка в обработчике события воркера: {e}")
