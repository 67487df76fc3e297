"""
Тесты обучаемых предикторов
"""

from unittest.mock import Mock

import joblib
import pytest

from medpredict.exceptions import ModelLoadException, NotTrainedException, TrainingException
from medpredict.services.no_show_prediction.lstm_model import LABELS, LSTMTextPredictor
from medpredict.services.no_show_prediction.predictor import NeuralNetPredictor
from medpredict.services.no_show_prediction.sampling import prepare_training_data, split_dataset
from medpredict.services.no_show_prediction.schemas import FeatureBounds, TrainingOptions


class TestNeuralNetPredictor:
    """Тесты полносвязной сети"""

    @pytest.fixture
    def samples(self, records):
        return prepare_training_data(records, FeatureBounds.from_records(records), seed=1)

    def test_run_without_training(self):
        with pytest.raises(NotTrainedException):
            NeuralNetPredictor().run([0.5] * 8)

    def test_train_with_callbacks(self, samples):
        progress = Mock()
        log = Mock()
        predictor = NeuralNetPredictor(random_state=0)

        stats = predictor.train(samples, TrainingOptions(
            iterations=6, error_threshold=0.0, learning_rate=0.01,
            callback_period=2, progress_callback=progress, log_callback=log,
        ))

        assert predictor.is_trained
        assert stats.iterations == 6
        assert [c.args[0].iterations for c in progress.call_args_list] == [2, 4, 6]
        assert log.call_count == 3

    def test_stops_below_error_threshold(self, samples):
        predictor = NeuralNetPredictor(random_state=0)
        stats = predictor.train(samples, TrainingOptions(iterations=50, error_threshold=1e6))
        assert stats.iterations == 1

    def test_run_returns_probability(self, samples):
        predictor = NeuralNetPredictor(random_state=0)
        predictor.train(samples, TrainingOptions(iterations=3))

        probability = predictor.run(samples[0].input)

        assert 0.0 <= probability <= 1.0

    def test_empty_samples(self):
        with pytest.raises(TrainingException):
            NeuralNetPredictor().train([], TrainingOptions(iterations=1))

    def test_save_and_load(self, samples, records, tmp_path):
        bounds = FeatureBounds.from_records(records)
        predictor = NeuralNetPredictor(random_state=0)
        predictor.train(samples, TrainingOptions(iterations=3))
        path = tmp_path / 'models' / 'nn.joblib'

        predictor.save_model(path, bounds)
        loaded, loaded_bounds = NeuralNetPredictor.load_model(path)

        assert loaded.is_trained
        assert loaded_bounds == bounds
        assert loaded.run(samples[0].input) == pytest.approx(predictor.run(samples[0].input))

    @pytest.mark.parametrize("content", [b"not a joblib file", b""])
    def test_load_corrupt_file(self, tmp_path, content):
        path = tmp_path / "nn.joblib"
        path.write_bytes(content)

        with pytest.raises(ModelLoadException):
            NeuralNetPredictor.load_model(path)

    def test_load_incompatible_file(self, tmp_path):
        path = tmp_path / "nn.joblib"
        joblib.dump({"model": None}, path)

        with pytest.raises(ModelLoadException):
            NeuralNetPredictor.load_model(path)

    def test_save_without_training(self, records, tmp_path):
        with pytest.raises(NotTrainedException):
            NeuralNetPredictor().save_model(tmp_path / 'nn.joblib', FeatureBounds.from_records(records))


class TestLSTMTextPredictor:
    """Тесты LSTM-классификатора"""

    def test_run_without_training(self):
        with pytest.raises(NotTrainedException):
            LSTMTextPredictor().run('female age30')

    def test_train_and_run(self, records):
        split = split_dataset(records, seed=3)
        progress = Mock()
        predictor = LSTMTextPredictor(embedding_dim=8, hidden_dim=8, random_state=0)

        stats = predictor.train(split.train, TrainingOptions(
            iterations=10, error_threshold=0.0, callback_period=5, progress_callback=progress,
        ))

        assert stats.iterations == 10
        assert progress.call_count == 2
        assert predictor.run(split.test[0].input) in LABELS
        assert predictor.run('completely unknown tokens') in LABELS
        assert predictor.run('') in LABELS
