"""
Схемы данных для модуля прогнозирования неявок пациентов
"""

from typing import Optional, List, Dict, Any, Callable, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Порядок признаков во входном векторе. Район проживания намеренно исключён:
# десятки редких категорий на ~150 записях приводят к вырождению модели.
FEATURE_NAMES = [
    'age', 'days_wait', 'gender', 'sms_received',
    'scholarship', 'hipertension', 'diabetes', 'alcoholism'
]


def _coerce_flag(value: Any) -> Any:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ('1', 'true', 'yes', 'y'):
            return 1
        if normalized in ('0', 'false', 'no', 'n', ''):
            return 0
    if isinstance(value, bool):
        return int(value)
    return value


class Record(BaseModel):
    """Историческая запись о приёме пациента"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    age: int = Field(..., description="Возраст пациента")
    days_wait: int = Field(..., ge=0, description="Дни между записью и приёмом")
    gender: int = Field(..., ge=0, le=1, description="Пол (1 - M, 0 - F)")
    sms_received: int = Field(0, ge=0, le=1, description="Получено SMS-напоминание")
    scholarship: int = Field(0, ge=0, le=1, description="Социальная программа")
    hypertension: int = Field(0, ge=0, le=1, alias='hipertension', description="Гипертония")
    diabetes: int = Field(0, ge=0, le=1, description="Диабет")
    alcoholism: int = Field(0, ge=0, le=1, description="Алкоголизм")
    neighbourhood: str = Field('', description="Район")
    noshow: int = Field(..., ge=0, le=1, description="Неявка (1 - пропустил)")

    @field_validator('gender', mode='before')
    @classmethod
    def validate_gender(cls, v):
        if isinstance(v, str) and v.strip().upper() in ('M', 'F'):
            return 1 if v.strip().upper() == 'M' else 0
        return _coerce_flag(v)

    @field_validator('sms_received', 'scholarship', 'hypertension', 'diabetes',
                     'alcoholism', 'noshow', mode='before')
    @classmethod
    def validate_flags(cls, v):
        return _coerce_flag(v)


class Bounds(BaseModel):
    """Минимум и максимум одного числового признака"""
    min: float
    max: float


class FeatureBounds(BaseModel):
    """Границы числовых признаков для min-max нормализации"""
    age: Bounds
    days_wait: Bounds

    @classmethod
    def from_records(cls, records: List[Record]) -> 'FeatureBounds':
        """Вычисление границ за один проход по записям"""
        if not records:
            return cls(age=Bounds(min=0, max=0), days_wait=Bounds(min=0, max=0))

        age_min = age_max = records[0].age
        days_min = days_max = records[0].days_wait
        for record in records[1:]:
            age_min = min(age_min, record.age)
            age_max = max(age_max, record.age)
            days_min = min(days_min, record.days_wait)
            days_max = max(days_max, record.days_wait)

        return cls(
            age=Bounds(min=age_min, max=age_max),
            days_wait=Bounds(min=days_min, max=days_max),
        )


class FeatureVector(BaseModel):
    """Нормализованный вектор из 8 признаков"""
    model_config = ConfigDict(frozen=True)

    age: float
    days_wait: float
    gender: int
    sms_received: int
    scholarship: int
    hipertension: int
    diabetes: int
    alcoholism: int

    def to_list(self) -> List[float]:
        return [float(getattr(self, name)) for name in FEATURE_NAMES]


class TrainingSample(BaseModel):
    """Обучающий пример: вектор или строка и метка"""
    model_config = ConfigDict(frozen=True)

    input: Union[FeatureVector, str]
    output: Union[Dict[str, int], str]
    noshow: int = Field(..., ge=0, le=1)


class TrainingProgress(BaseModel):
    """Состояние обучения, передаваемое в колбэки"""
    iterations: int
    error: float


class TrainingStats(BaseModel):
    """Итог обучения внешней модели"""
    iterations: int
    error: float


class TrainingOptions(BaseModel):
    """Параметры обучения внешней модели"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    iterations: int = 5000
    error_threshold: float = 0.01
    learning_rate: float = 0.01
    callback_period: int = 250
    log_callback: Optional[Callable[[str], None]] = None
    progress_callback: Optional[Callable[[TrainingProgress], None]] = None


class EvaluationReport(BaseModel):
    """Точность и полнота по классам в процентах с одним знаком"""
    model_config = ConfigDict(populate_by_name=True)

    overall: str = Field(..., description="Общая точность")
    recall_positive: str = Field(..., alias='noshowRecall', description="Полнота для неявок")
    recall_negative: str = Field(..., alias='showUpRecall', description="Полнота для явок")


class DatasetSplit(BaseModel):
    """Разбиение на обучающую, валидационную и тестовую выборки"""
    train: List[TrainingSample]
    validation: List[TrainingSample]
    test: List[TrainingSample]


class PredictionForm(BaseModel):
    """Состояние формы прогноза (замена глобального состояния переключателей)"""
    age: int = 30
    days_wait: int = 0
    gender: str = 'F'
    sms: str = 'No'
    scholarship: str = 'No'
    hypertension: str = 'No'
    diabetes: str = 'No'
    alcoholism: str = 'No'

    @field_validator('gender')
    @classmethod
    def validate_gender(cls, v):
        if v.upper() not in ['M', 'F']:
            raise ValueError('Пол должен быть M или F')
        return v.upper()

    @field_validator('sms', 'scholarship', 'hypertension', 'diabetes', 'alcoholism')
    @classmethod
    def validate_toggle(cls, v):
        if v.capitalize() not in ['Yes', 'No']:
            raise ValueError('Значение должно быть Yes или No')
        return v.capitalize()

    def flags(self) -> Dict[str, int]:
        """Перевод переключателей в бинарные признаки"""
        return {
            'gender': 1 if self.gender == 'M' else 0,
            'sms': 1 if self.sms == 'Yes' else 0,
            'scholarship': 1 if self.scholarship == 'Yes' else 0,
            'hypertension': 1 if self.hypertension == 'Yes' else 0,
            'diabetes': 1 if self.diabetes == 'Yes' else 0,
            'alcoholism': 1 if self.alcoholism == 'Yes' else 0,
        }


class RiskVerdict(BaseModel):
    """Вердикт для отображения пользователю"""
    risk: float = Field(..., ge=0, le=1)
    percent: int
    is_no_show: bool
    label: str
    description: str
