"""
Текстовое представление записей для LSTM
"""

import re

from medpredict.services.no_show_prediction.schemas import Record, TrainingSample

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def record_to_text(record: Record) -> str:
    """
    Короткая последовательность токенов для записи
    Короткие тексты сокращают время обучения LSTM
    """
    tokens = [
        'male' if record.gender == 1 else 'female',
        f'age{record.age}',
        'sameday' if record.days_wait == 0 else f'wait{record.days_wait}',
        'sms' if record.sms_received else 'nosms',
        'scholarship' if record.scholarship else '',
        'hypertension' if record.hypertension else '',
        'diabetes' if record.diabetes else '',
        'alcoholism' if record.alcoholism else '',
    ]
    return ' '.join(token for token in tokens if token)


def clean_text(text: str) -> str:
    """Нижний регистр, только [a-z0-9], одиночные пробелы без краевых"""
    text = _NON_ALNUM.sub('', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def label_for(noshow: int) -> str:
    """Короткие метки ускоряют обучение: "yes" - пришёл, "no" - неявка"""
    return 'no' if noshow == 1 else 'yes'


def encode_record(record: Record) -> TrainingSample:
    return TrainingSample(
        input=clean_text(record_to_text(record)),
        output=label_for(record.noshow),
        noshow=record.noshow,
    )
