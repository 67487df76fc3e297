"""
Тесты обработчика запросов воркера LSTM (в текущем процессе)
"""

import queue

import pytest

from medpredict.services.lstm_worker.worker import LSTMWorker, run_worker


def by_type(events, kind):
    return [e for e in events if e['type'] == kind]


@pytest.fixture
def train_payload(records):
    return {'type': 'train', 'data': [r.model_dump(by_alias=True) for r in records]}


class TestLSTMWorker:
    """Тесты обучения и прогноза"""

    @pytest.fixture
    def events(self):
        return []

    @pytest.fixture
    def worker(self, events, settings, stub_factory):
        return LSTMWorker(events.append, settings, stub_factory)

    def test_predict_before_train(self, events, worker):
        worker.handle({'type': 'predict', 'text': 'male', 'request_id': 'r1'})
        assert events == [{'type': 'error', 'message': 'LSTM not trained yet', 'request_id': 'r1'}]

    def test_train_event_order(self, events, worker, train_payload):
        worker.handle(train_payload)

        assert events[0]['type'] == 'samples'
        assert events[-1]['type'] == 'done'
        assert not by_type(events, 'error')
        assert events[0]['examples'].count('\n') == 2
        assert ' → ' in events[0]['examples']

        logs = [e['message'] for e in by_type(events, 'log')]
        assert logs[0].startswith("[INIT] Train: ")
        assert logs[0].endswith(" · Val: 3 · Test: 3")
        assert '[DONE] LSTM training complete.' in logs
        assert any(line.startswith('[EVAL] Test no-show recall:') for line in logs)

        progress = by_type(events, 'progress')
        assert len(progress) == 10
        assert progress[-1]['pct'] == 100

    def test_done_metrics(self, events, worker, train_payload):
        worker.handle(train_payload)

        metrics = events[-1]['metrics']
        assert set(metrics) == {'valAcc', 'testAcc', 'testShowRecall', 'testNoshowRecall'}
        for value in metrics.values():
            assert 0.0 <= float(value) <= 100.0

    def test_predict_after_train(self, events, worker, train_payload):
        worker.handle(train_payload)
        events.clear()

        worker.handle({'type': 'predict', 'text': 'Female, age 70 -- DIABETES!', 'request_id': 'r2'})
        worker.handle({'type': 'predict', 'text': 'male age 20'})

        assert events == [
            {'type': 'prediction', 'label': 'noshow', 'cleaned': 'female age 70 diabetes',
             'request_id': 'r2'},
            {'type': 'prediction', 'label': 'showup', 'cleaned': 'male age 20'},
        ]

    def test_factory_failure(self, events, settings, train_payload):
        def failing_factory(settings):
            raise RuntimeError("no backend")

        worker = LSTMWorker(events.append, settings, failing_factory)
        worker.handle(train_payload)

        assert events[-1] == {'type': 'error', 'message': 'no backend'}
        assert worker.net is None

    def test_invalid_records(self, events, worker):
        worker.handle({'type': 'train', 'data': [{'age': 'old'}]})
        assert events[-1]['type'] == 'error'
        assert not by_type(events, 'samples')

    def test_invalid_request(self, events, worker):
        worker.handle({'type': 'unknown'})
        assert events[-1]['type'] == 'error'

    def test_real_lstm(self, events, settings, train_payload):
        worker = LSTMWorker(events.append, settings)

        worker.handle(train_payload)
        worker.handle({'type': 'predict', 'text': 'male age 45'})

        assert by_type(events, 'done')
        assert events[-1]['type'] == 'prediction'
        assert events[-1]['label'] in ('noshow', 'showup')


class TestRunWorker:
    """Тесты цикла обработки очереди"""

    def test_stops_on_none(self, settings, stub_factory, train_payload):
        requests, events = queue.Queue(), queue.Queue()
        requests.put(train_payload)
        requests.put({'type': 'predict', 'text': 'diabetes', 'request_id': 'x'})
        requests.put(None)

        run_worker(requests, events, settings.model_dump(), stub_factory)

        received = []
        while not events.empty():
            received.append(events.get())
        assert received[-1] == {'type': 'prediction', 'label': 'noshow',
                                'cleaned': 'diabetes', 'request_id': 'x'}
        assert by_type(received, 'done')
