"""
LSTM-классификатор коротких текстов на PyTorch
"""

import logging
from typing import Dict, List, Optional, Sequence

import torch
import torch.nn as nn
from torch.nn.utils.rnn import pack_padded_sequence

from medpredict.exceptions import NotTrainedException, TrainingException
from medpredict.services.no_show_prediction.predictor import Trainable
from medpredict.services.no_show_prediction.schemas import (
    TrainingOptions, TrainingSample, TrainingStats
)

LABELS = ['yes', 'no']
PAD, UNKNOWN = '<pad>', '<unk>'


class SequenceClassifier(nn.Module):
    def __init__(self, vocab_size: int, embedding_dim: int = 16, hidden_dim: int = 20):
        super(SequenceClassifier, self).__init__()
        self.embedding = nn.Embedding(vocab_size, embedding_dim, padding_idx=0)
        self.lstm = nn.LSTM(embedding_dim, hidden_dim, batch_first=True)
        self.head = nn.Linear(hidden_dim, len(LABELS))

    def forward(self, tokens: torch.Tensor, lengths: torch.Tensor) -> torch.Tensor:
        packed = pack_padded_sequence(
            self.embedding(tokens), lengths, batch_first=True, enforce_sorted=False
        )
        _, (hidden, _) = self.lstm(packed)
        return self.head(hidden[-1])


class LSTMTextPredictor(Trainable):
    """
    Классификатор текстов записей: run(text) -> "yes" | "no"
    Словарь строится по токенам обучающих текстов
    """

    def __init__(self, embedding_dim: int = 16, hidden_dim: int = 20,
                 random_state: Optional[int] = None):
        self.embedding_dim = embedding_dim
        self.hidden_dim = hidden_dim
        self.random_state = random_state
        self.vocabulary: Dict[str, int] = {}
        self.model: Optional[SequenceClassifier] = None
        self.is_trained = False
        self.logger = logging.getLogger(__name__)

    def train(self, samples: Sequence[TrainingSample], options: TrainingOptions) -> TrainingStats:
        if not samples:
            raise TrainingException("Нет данных для обучения")
        if self.random_state is not None:
            torch.manual_seed(self.random_state)

        vocabulary = self._build_vocabulary(s.input for s in samples)
        tokens, lengths = self._encode([s.input for s in samples], vocabulary)
        target = torch.tensor([LABELS.index(s.output) for s in samples])

        model = SequenceClassifier(len(vocabulary), self.embedding_dim, self.hidden_dim)
        optimizer = torch.optim.Adam(model.parameters(), lr=options.learning_rate)
        criterion = nn.CrossEntropyLoss()

        model.train()
        iterations = 0
        error = float('inf')
        while iterations < options.iterations:
            optimizer.zero_grad()
            loss = criterion(model(tokens, lengths), target)
            loss.backward()
            optimizer.step()

            iterations += 1
            error = float(loss.item())
            self._notify(options, iterations, error)
            if error < options.error_threshold:
                break

        model.eval()
        self.vocabulary = vocabulary
        self.model = model
        self.is_trained = True
        self.logger.info(f"LSTM обучена за {iterations} итераций, ошибка {error:.6f}")

        return TrainingStats(iterations=iterations, error=error)

    def run(self, input: str) -> str:
        if not self.is_trained:
            raise NotTrainedException("LSTM not trained yet")

        tokens, lengths = self._encode([input], self.vocabulary)
        with torch.no_grad():
            logits = self.model(tokens, lengths)
        return LABELS[int(logits.argmax(dim=1)[0])]

    @staticmethod
    def _build_vocabulary(texts) -> Dict[str, int]:
        vocabulary = {PAD: 0, UNKNOWN: 1}
        for text in texts:
            for token in text.split():
                vocabulary.setdefault(token, len(vocabulary))
        return vocabulary

    @staticmethod
    def _encode(texts: List[str], vocabulary: Dict[str, int]):
        """Паддинг индексов токенов; пустой текст кодируется как <unk>"""
        sequences = [
            [vocabulary.get(token, 1) for token in text.split()] or [1]
            for text in texts
        ]
        width = max(len(s) for s in sequences)
        tokens = torch.zeros((len(sequences), width), dtype=torch.long)
        for i, sequence in enumerate(sequences):
            tokens[i, :len(sequence)] = torch.tensor(sequence)
        lengths = torch.tensor([len(s) for s in sequences])
        return tokens, lengths
