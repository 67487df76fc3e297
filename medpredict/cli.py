import logging
from pathlib import Path
from typing import List, Optional

import typer

from medpredict.config import get_settings
from medpredict.exceptions import MedPredictException
from medpredict.logging_config import setup_logging
from medpredict.services.lstm_worker.host import LSTMWorkerHost, WorkerState
from medpredict.services.no_show_prediction import (
    DatasetStore, NeuralNetPredictor, PredictionForm, RiskAssessment,
    TrainingHandlers, clean_text, evaluate_numeric, predict_risk, train_model
)

# Создаем Typer приложение
app = typer.Typer(
    name="medpredict",
    help="Прогнозирование неявок пациентов: полносвязная сеть и LSTM",
    add_completion=False
)

logger = logging.getLogger(__name__)


def _load_store(data: Optional[Path]) -> DatasetStore:
    settings = get_settings()
    path = data or (Path(settings.DATA_PATH) if settings.DATA_PATH else None)
    if path is None:
        typer.echo("Не указан файл с данными (--data или MEDPREDICT_DATA_PATH)")
        raise typer.Exit(code=1)
    try:
        return DatasetStore.from_file(path)
    except MedPredictException as e:
        typer.echo(f"Ошибка загрузки данных: {e.message} {e.details or ''}")
        raise typer.Exit(code=1)


def _print_progress(pct: int, error: float) -> None:
    logger.debug(f"Training… {pct}% (error: {error:.4f})")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Уровень логирования (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """MedPredict CLI"""
    setup_logging(log_level)


@app.command()
def preview(
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="CSV или JSON с записями")
):
    """Первые записи, границы признаков и районы"""
    store = _load_store(data)
    counts = store.class_counts()

    typer.echo(store.preview().to_string(index=False))
    typer.echo("")
    typer.echo(f"Записей: {len(store)} (неявок: {counts['noshow']}, явок: {counts['show']})")
    typer.echo(f"Возраст: {store.bounds.age.min:g}..{store.bounds.age.max:g}")
    typer.echo(f"Ожидание (дни): {store.bounds.days_wait.min:g}..{store.bounds.days_wait.max:g}")
    typer.echo(f"Районов: {len(store.neighbourhoods)}")


@app.command("train-nn")
def train_nn(
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="CSV или JSON с записями"),
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Куда сохранить модель"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Зерно для воспроизводимости")
):
    """Обучение полносвязной сети и оценка точности"""
    settings = get_settings()
    if seed is not None:
        settings = settings.model_copy(update={'RANDOM_SEED': seed})

    store = _load_store(data)
    predictor = NeuralNetPredictor(hidden_layers=tuple(settings.NN_HIDDEN_LAYERS),
                                   random_state=settings.RANDOM_SEED)
    failed: List[Exception] = []

    train_model(store, predictor, TrainingHandlers(
        on_log=typer.echo,
        on_progress=_print_progress,
        on_error=failed.append,
    ), settings)

    if failed:
        typer.echo(f"[ERROR] {failed[0]}")
        typer.echo("Повторите обучение")
        raise typer.Exit(code=1)

    report = evaluate_numeric(predictor, store.records, store.bounds, settings.PREDICTION_THRESHOLD)
    typer.echo(f"Точность: {report.overall}%")
    typer.echo(f"Полнота (явка): {report.recall_negative}%")
    typer.echo(f"Полнота (неявка): {report.recall_positive}%")

    target = save or Path(settings.MODEL_PATH)
    predictor.save_model(target, store.bounds)
    typer.echo(f"Модель сохранена: {target}")


@app.command()
def predict(
    model: Optional[Path] = typer.Option(None, "--model", "-m", help="Файл обученной модели"),
    age: int = typer.Option(30, "--age", help="Возраст"),
    days: int = typer.Option(0, "--days", help="Дней ожидания"),
    gender: str = typer.Option("F", "--gender", help="Пол (M/F)"),
    sms: str = typer.Option("No", "--sms", help="SMS-напоминание (Yes/No)"),
    scholarship: str = typer.Option("No", "--scholarship", help="Социальная программа (Yes/No)"),
    hypertension: str = typer.Option("No", "--hypertension", help="Гипертония (Yes/No)"),
    diabetes: str = typer.Option("No", "--diabetes", help="Диабет (Yes/No)"),
    alcoholism: str = typer.Option("No", "--alcoholism", help="Алкоголизм (Yes/No)")
):
    """Прогноз риска неявки обученной сетью"""
    settings = get_settings()
    path = model or Path(settings.MODEL_PATH)
    if not path.exists():
        typer.echo(f"Модель не найдена: {path}. Сначала выполните train-nn")
        raise typer.Exit(code=1)

    try:
        form = PredictionForm(
            age=age, days_wait=days, gender=gender, sms=sms, scholarship=scholarship,
            hypertension=hypertension, diabetes=diabetes, alcoholism=alcoholism
        )
    except ValueError as e:
        typer.echo(f"Некорректные параметры: {e}")
        raise typer.Exit(code=1)

    try:
        predictor, bounds = NeuralNetPredictor.load_model(path)
    except MedPredictException as e:
        typer.echo(f"{e.message}. Повторите train-nn")
        raise typer.Exit(code=1)

    risk = predict_risk(predictor, bounds, form)
    verdict = RiskAssessment(settings.PREDICTION_THRESHOLD).assess_verdict(risk)

    typer.echo(f"{verdict.percent}% · {verdict.label}")
    typer.echo(verdict.description)


@app.command("train-lstm")
def train_lstm(
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="CSV или JSON с записями"),
    text: Optional[List[str]] = typer.Option(None, "--text", "-t", help="Текст для прогноза после обучения"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Зерно для воспроизводимости")
):
    """Обучение LSTM в фоновом процессе и прогноз по текстам"""
    settings = get_settings()
    if seed is not None:
        settings = settings.model_copy(update={'RANDOM_SEED': seed})

    store = _load_store(data)

    with LSTMWorkerHost(settings) as host:
        host.train(store.records, TrainingHandlers(
            on_samples=lambda examples: typer.echo(f"Примеры:\n{examples}"),
            on_log=typer.echo,
            on_progress=_print_progress,
            on_done=lambda metrics: typer.echo(
                f"Val: {metrics.val_acc}% · Test: {metrics.test_acc}% · "
                f"Recall show/no-show: {metrics.test_show_recall}% / {metrics.test_noshow_recall}%"
            ),
            on_error=lambda error: typer.echo(f"[ERROR] {error}"),
        ))

        if host.wait() != WorkerState.DONE:
            typer.echo("Повторите обучение LSTM")
            raise typer.Exit(code=1)

        for raw_text in text or []:
            try:
                result = host.predict(raw_text)
            except MedPredictException as e:
                typer.echo(f"Ошибка прогноза: {e.message}")
                continue
            verdict = RiskAssessment.text_verdict(result.label, result.cleaned)
            typer.echo(f"{verdict.label}: {verdict.description}")


@app.command("clean-text")
def clean_text_command(
    text: str = typer.Argument(..., help="Произвольный текст")
):
    """Предпросмотр очищенного текста для LSTM"""
    typer.echo(clean_text(text))


if __name__ == "__main__":
    app()
