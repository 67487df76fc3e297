import pytest

from medpredict.config import MedPredictSettings
from medpredict.services.no_show_prediction.predictor import Trainable
from medpredict.services.no_show_prediction.schemas import Record, TrainingStats


@pytest.fixture
def make_record():
    """Фабрика записей с разумными значениями по умолчанию"""
    def _make(**overrides):
        data = {
            'age': 30,
            'days_wait': 5,
            'gender': 0,
            'sms_received': 1,
            'scholarship': 0,
            'hipertension': 0,
            'diabetes': 0,
            'alcoholism': 0,
            'neighbourhood': 'CENTRO',
            'noshow': 0,
        }
        data.update(overrides)
        return Record(**data)
    return _make


@pytest.fixture
def records(make_record):
    """20 записей с уникальным возрастом, каждая четвертая - неявка"""
    return [
        make_record(
            age=20 + i,
            days_wait=i % 7,
            gender=i % 2,
            diabetes=int(i % 5 == 0),
            neighbourhood=f'HOOD_{i % 3}',
            noshow=int(i % 4 == 0),
        )
        for i in range(20)
    ]


@pytest.fixture
def settings():
    """Облегчённые настройки для быстрых тестов"""
    return MedPredictSettings(
        NN_ITERATIONS=10,
        NN_LOG_PERIOD=5,
        LSTM_ITERATIONS=30,
        LSTM_LOG_PERIOD=3,
        LSTM_ERROR_THRESHOLD=0.0,
        RANDOM_SEED=7,
        WORKER_POLL_INTERVAL=0.05,
    )


class StubTextPredictor(Trainable):
    """Быстрая замена LSTM: "no" для текстов с диабетом"""

    def train(self, samples, options):
        for iteration in range(1, options.iterations + 1):
            self._notify(options, iteration, 1.0 / iteration)
        self.is_trained = True
        return TrainingStats(iterations=options.iterations, error=1.0 / options.iterations)

    def run(self, input):
        return 'no' if 'diabetes' in input else 'yes'


@pytest.fixture
def stub_factory():
    """Фабрика предиктора для воркера"""
    return lambda settings: StubTextPredictor()
