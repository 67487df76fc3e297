"""
Тесты текстового представления записей
"""

import re

import pytest

from medpredict.services.no_show_prediction.text_encoder import (
    clean_text, encode_record, label_for, record_to_text
)


class TestRecordToText:
    """Тесты построения последовательности токенов"""

    def test_minimal_record(self, make_record):
        record = make_record(gender=0, age=34, days_wait=0, sms_received=0)
        assert record_to_text(record) == 'female age34 sameday nosms'

    def test_all_flags(self, make_record):
        record = make_record(gender=1, age=62, days_wait=12, sms_received=1, scholarship=1,
                             hipertension=1, diabetes=1, alcoholism=1)
        assert record_to_text(record) == (
            'male age62 wait12 sms scholarship hypertension diabetes alcoholism'
        )

    def test_only_set_flags_are_included(self, make_record):
        record = make_record(gender=1, age=5, days_wait=3, diabetes=1)
        assert record_to_text(record) == 'male age5 wait3 sms diabetes'

    def test_encode_record(self, make_record):
        sample = encode_record(make_record(age=40, days_wait=0, noshow=1))
        assert sample.input == 'female age40 sameday sms'
        assert sample.output == 'no'
        assert label_for(0) == 'yes'


class TestCleanText:
    """Тесты очистки текста"""

    @pytest.mark.parametrize("raw,expected", [
        ("Male, AGE 45!!  waited 3 days", "male age 45 waited 3 days"),
        ("  \t spaced\n\nout  ", "spaced out"),
        ("Çà et là — 100%", "et l 100"),
        ("", ""),
        ("!!!", ""),
    ])
    def test_cleaning(self, raw, expected):
        assert clean_text(raw) == expected

    @pytest.mark.parametrize("raw", [
        "Female age72 SAMEDAY sms Diabetes",
        "  a b c  ",
        "tabs\tand\r\nnewlines",
        "ÄÖÜ ß straße",
        "x  -  y",
    ])
    def test_idempotent_and_total(self, raw):
        cleaned = clean_text(raw)

        assert clean_text(cleaned) == cleaned
        assert re.fullmatch(r'[a-z0-9 ]*', cleaned)
        assert not cleaned.startswith(' ')
        assert not cleaned.endswith(' ')
        assert '  ' not in cleaned
