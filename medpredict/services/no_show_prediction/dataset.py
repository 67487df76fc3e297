"""
Загрузка и хранение набора записей о приёмах
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from pydantic import ValidationError

from medpredict.exceptions import DatasetException
from medpredict.services.no_show_prediction.schemas import Record, FeatureBounds

logger = logging.getLogger(__name__)

COMPACT_COLUMNS = [
    'age', 'days_wait', 'gender', 'sms_received', 'scholarship',
    'hipertension', 'diabetes', 'alcoholism', 'neighbourhood', 'noshow'
]

# Колонки публичного датасета Medical Appointment No Shows
PUBLIC_COLUMNS = {
    'Age': 'age',
    'Gender': 'gender',
    'SMS_received': 'sms_received',
    'Scholarship': 'scholarship',
    'Hipertension': 'hipertension',
    'Diabetes': 'diabetes',
    'Alcoholism': 'alcoholism',
    'Neighbourhood': 'neighbourhood',
    'No-show': 'noshow',
}


class DatasetStore:
    """
    Неизменяемый набор записей и производные границы признаков
    Границы пересчитываются целиком при добавлении записей
    """

    PREVIEW_SIZE = 10

    def __init__(self, records: List[Record]):
        self._records = tuple(records)
        self.bounds = FeatureBounds.from_records(list(self._records))
        self.neighbourhoods = sorted({r.neighbourhood for r in self._records if r.neighbourhood})

    @property
    def records(self) -> List[Record]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def with_records(self, records: List[Record]) -> 'DatasetStore':
        """Новое хранилище с добавленными записями и пересчитанными границами"""
        return DatasetStore(list(self._records) + list(records))

    def class_counts(self) -> dict:
        positives = sum(r.noshow for r in self._records)
        return {'noshow': positives, 'show': len(self._records) - positives}

    def preview(self) -> pd.DataFrame:
        """Первые записи для отображения таблицей"""
        rows = [r.model_dump(by_alias=True) for r in self._records[:self.PREVIEW_SIZE]]
        return pd.DataFrame(rows, columns=COMPACT_COLUMNS)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'DatasetStore':
        return cls(load_records(path))


def _from_public_schema(frame: pd.DataFrame) -> pd.DataFrame:
    """Приведение публичного датасета к компактной схеме"""
    scheduled = pd.to_datetime(frame['ScheduledDay'], utc=True).dt.normalize()
    appointment = pd.to_datetime(frame['AppointmentDay'], utc=True).dt.normalize()

    converted = frame.rename(columns=PUBLIC_COLUMNS)[list(PUBLIC_COLUMNS.values())].copy()
    converted['days_wait'] = (appointment - scheduled).dt.days.clip(lower=0)
    converted['gender'] = converted['gender'].str.upper().map({'M': 1, 'F': 0})
    converted['noshow'] = converted['noshow'].map({'Yes': 1, 'No': 0})
    return converted


def records_from_frame(frame: pd.DataFrame) -> List[Record]:
    """Построение записей из DataFrame в компактной или публичной схеме"""
    if set(PUBLIC_COLUMNS).issubset(frame.columns) and {'ScheduledDay', 'AppointmentDay'}.issubset(frame.columns):
        frame = _from_public_schema(frame)

    missing = set(COMPACT_COLUMNS) - set(frame.columns)
    missing.discard('neighbourhood')
    if missing:
        raise DatasetException("Отсутствуют колонки", {'missing': sorted(missing)})

    if 'neighbourhood' not in frame.columns:
        frame = frame.assign(neighbourhood='')
    frame = frame.assign(neighbourhood=frame['neighbourhood'].fillna('').astype(str))

    try:
        return [Record(**row) for row in frame[COMPACT_COLUMNS].to_dict(orient='records')]
    except ValidationError as e:
        raise DatasetException("Некорректная запись в наборе данных", {'errors': e.errors()})


def load_records(path: Union[str, Path], limit: Optional[int] = None) -> List[Record]:
    """Загрузка записей из CSV или JSON"""
    path = Path(path)
    if not path.exists():
        raise DatasetException(f"Файл не найден: {path}")

    try:
        if path.suffix.lower() == '.json':
            frame = pd.read_json(path)
        else:
            frame = pd.read_csv(path)
    except ValueError as e:
        raise DatasetException(f"Не удалось прочитать {path}: {e}")

    if limit is not None:
        frame = frame.head(limit)

    records = records_from_frame(frame)
    logger.info(f"Загружено {len(records)} записей из {path}")
    return records
