"""
Тесты вердикта по риску неявки
"""

import pytest

from medpredict.services.no_show_prediction.risk import ATTEND_LABEL, NO_SHOW_LABEL, RiskAssessment


class TestRiskAssessment:
    """Тесты перевода вероятности в вердикт"""

    @pytest.mark.parametrize("risk,percent,is_no_show", [
        (0.0, 0, False), (0.5, 50, False), (0.501, 50, True), (0.734, 73, True), (1.0, 100, True),
    ])
    def test_assess_verdict(self, risk, percent, is_no_show):
        verdict = RiskAssessment().assess_verdict(risk)

        assert verdict.percent == percent
        assert verdict.is_no_show is is_no_show
        assert verdict.label == (NO_SHOW_LABEL if is_no_show else ATTEND_LABEL)
        assert f"Risk score: {percent}%" in verdict.description

    def test_custom_threshold(self):
        assert RiskAssessment(threshold=0.2).assess_verdict(0.3).is_no_show

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            RiskAssessment(threshold=1.5)

    def test_text_verdict(self):
        verdict = RiskAssessment.text_verdict('noshow', 'male age 70 diabetes')

        assert verdict.is_no_show
        assert verdict.label == NO_SHOW_LABEL
        assert '"male age 70 diabetes"' in verdict.description
        assert not RiskAssessment.text_verdict('showup', 'female').is_no_show
