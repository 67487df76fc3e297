"""
Протокол сообщений между вызывающей стороной и воркером LSTM
Поле type и имена полей сохраняются для совместимости
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# Запросы (caller -> worker)
class TrainRequest(BaseModel):
    type: Literal['train'] = 'train'
    data: List[Dict[str, Any]]


class PredictRequest(BaseModel):
    type: Literal['predict'] = 'predict'
    text: str
    request_id: Optional[str] = None


# События (worker -> caller)
class SamplesMessage(BaseModel):
    type: Literal['samples'] = 'samples'
    examples: str


class LogMessage(BaseModel):
    type: Literal['log'] = 'log'
    message: str


class ProgressMessage(BaseModel):
    type: Literal['progress'] = 'progress'
    pct: int = Field(..., ge=0, le=100)
    error: float


class LSTMMetrics(BaseModel):
    """Метрики LSTM в процентах с одним знаком"""
    model_config = ConfigDict(populate_by_name=True)

    val_acc: str = Field(..., alias='valAcc')
    test_acc: str = Field(..., alias='testAcc')
    test_show_recall: str = Field(..., alias='testShowRecall')
    test_noshow_recall: str = Field(..., alias='testNoshowRecall')


class DoneMessage(BaseModel):
    type: Literal['done'] = 'done'
    metrics: LSTMMetrics


class ErrorMessage(BaseModel):
    type: Literal['error'] = 'error'
    message: str
    request_id: Optional[str] = None


class PredictionMessage(BaseModel):
    type: Literal['prediction'] = 'prediction'
    label: Literal['noshow', 'showup']
    cleaned: str
    request_id: Optional[str] = None


WorkerRequest = Annotated[Union[TrainRequest, PredictRequest], Field(discriminator='type')]

WorkerEvent = Annotated[
    Union[SamplesMessage, LogMessage, ProgressMessage, DoneMessage, ErrorMessage, PredictionMessage],
    Field(discriminator='type'),
]

_request_adapter = TypeAdapter(WorkerRequest)
_event_adapter = TypeAdapter(WorkerEvent)


def parse_request(payload: Dict[str, Any]) -> Union[TrainRequest, PredictRequest]:
    return _request_adapter.validate_python(payload)


def parse_event(payload: Dict[str, Any]):
    return _event_adapter.validate_python(payload)


def to_payload(message: BaseModel) -> Dict[str, Any]:
    """Словарь для передачи через очередь, с исходными именами полей"""
    return message.model_dump(by_alias=True, exclude_none=True)
