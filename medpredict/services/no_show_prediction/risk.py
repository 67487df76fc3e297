"""
Вердикт по риску неявки для отображения пользователю
"""

from medpredict.services.no_show_prediction.schemas import RiskVerdict

NO_SHOW_LABEL = "Likely No-Show"
ATTEND_LABEL = "Will Attend"


class RiskAssessment:
    """Перевод оценки модели в вердикт с пояснением"""

    def __init__(self, threshold: float = 0.5):
        if not (0 <= threshold <= 1):
            raise ValueError("Порог должен быть в диапазоне [0, 1]")
        self.threshold = threshold

    def assess_verdict(self, risk: float) -> RiskVerdict:
        """
        Вердикт для вероятности неявки полносвязной сети

        Args:
            risk: Вероятность неявки (0-1)
        """
        percent = round(risk * 100)
        is_no_show = risk > self.threshold

        if is_no_show:
            description = (f"Risk score: {percent}% - High probability of missing the appointment. "
                           f"Consider a manual follow-up or confirmation call.")
        else:
            description = (f"Risk score: {percent}% - Patient is likely to attend. "
                           f"No special intervention required.")

        return RiskVerdict(
            risk=risk,
            percent=percent,
            is_no_show=is_no_show,
            label=NO_SHOW_LABEL if is_no_show else ATTEND_LABEL,
            description=description,
        )

    @staticmethod
    def text_verdict(label: str, cleaned: str) -> RiskVerdict:
        """Вердикт для ответа LSTM ("noshow" / "showup")"""
        is_no_show = label == 'noshow'
        if is_no_show:
            description = f'LSTM read: "{cleaned}" -> predicted the patient will miss their appointment.'
        else:
            description = f'LSTM read: "{cleaned}" -> predicted the patient will attend.'

        return RiskVerdict(
            risk=1.0 if is_no_show else 0.0,
            percent=100 if is_no_show else 0,
            is_no_show=is_no_show,
            label=NO_SHOW_LABEL if is_no_show else ATTEND_LABEL,
            description=description,
        )
