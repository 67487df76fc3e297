"""
Тесты оценки качества моделей
"""

from unittest.mock import Mock

import pytest

from medpredict.services.no_show_prediction.evaluator import (
    evaluate_numeric, evaluate_text, score_to_class, text_to_class
)
from medpredict.services.no_show_prediction.schemas import (
    EvaluationReport, FeatureBounds, TrainingSample
)


def text_sample(label: str) -> TrainingSample:
    return TrainingSample(input='female age30 sameday sms', output=label,
                          noshow=1 if label == 'no' else 0)


class TestPolicies:
    """Тесты перевода ответа модели в класс"""

    def test_numeric_threshold_is_exclusive(self):
        assert score_to_class(0.5) == 0
        assert score_to_class(0.5000001) == 1
        assert score_to_class(0.1) == 0

    def test_numeric_output_shapes(self):
        assert score_to_class({'noshow': 0.9}) == 1
        assert score_to_class([0.2]) == 0

    @pytest.mark.parametrize("output,expected", [
        ('no', 1), ('No', 1), ('  nope', 1), ('yes', 0), ('', 0), (None, 0), ('maybe', 0),
    ])
    def test_text_policy(self, output, expected):
        assert text_to_class(output) == expected


class TestEvaluateNumeric:
    """Тесты оценки полносвязной сети"""

    @pytest.fixture
    def balanced_records(self, make_record):
        return [make_record(age=20 + i, noshow=int(i < 2)) for i in range(10)]

    def test_majority_predictor(self, balanced_records):
        """Модель, всегда предсказывающая явку"""
        predictor = Mock()
        predictor.run.return_value = 0.1

        report = evaluate_numeric(predictor, balanced_records,
                                  FeatureBounds.from_records(balanced_records))

        assert isinstance(report, EvaluationReport)
        assert report.overall == '80.0'
        assert report.recall_positive == '0.0'
        assert report.recall_negative == '100.0'
        assert predictor.run.call_count == len(balanced_records)

    def test_score_at_threshold_counts_as_show(self, balanced_records):
        predictor = Mock()
        predictor.run.return_value = 0.5

        report = evaluate_numeric(predictor, balanced_records,
                                  FeatureBounds.from_records(balanced_records))

        assert report.recall_positive == '0.0'

    def test_perfect_predictor(self, balanced_records):
        predictor = Mock()
        predictor.run.side_effect = [0.9 if r.noshow else 0.2 for r in balanced_records]

        report = evaluate_numeric(predictor, balanced_records,
                                  FeatureBounds.from_records(balanced_records))

        assert report.overall == '100.0'
        assert report.recall_positive == '100.0'
        assert report.recall_negative == '100.0'

    def test_report_aliases(self, balanced_records):
        predictor = Mock()
        predictor.run.return_value = 0.9

        report = evaluate_numeric(predictor, balanced_records,
                                  FeatureBounds.from_records(balanced_records))
        payload = report.model_dump(by_alias=True)

        assert payload == {'overall': '20.0', 'noshowRecall': '100.0', 'showUpRecall': '0.0'}


class TestEvaluateText:
    """Тесты оценки LSTM"""

    def test_empty_set_reports_zero(self):
        report = evaluate_text(Mock(), [])
        assert report.overall == '0.0'
        assert report.recall_positive == '0.0'
        assert report.recall_negative == '0.0'

    def test_recall_rounding(self):
        samples = [text_sample('no'), text_sample('no'), text_sample('no'), text_sample('yes')]
        predictor = Mock()
        predictor.run.side_effect = ['no', 'yes', 'yes', 'yes']

        report = evaluate_text(predictor, samples)

        assert report.overall == '50.0'
        assert report.recall_positive == '33.3'
        assert report.recall_negative == '100.0'

    def test_missing_class_recall_is_zero(self):
        samples = [text_sample('yes'), text_sample('yes')]
        predictor = Mock()
        predictor.run.return_value = 'yes'

        report = evaluate_text(predictor, samples)

        assert report.overall == '100.0'
        assert report.recall_positive == '0.0'
        assert report.recall_negative == '100.0'
