"""
Encoders of the tokens of a sentence into dense vectors.

Two models are available: a trainable embeddings table and a frozen pretrained
transformer. Both build stateful TokensEncoder instances, one per sentence
being processed (see hanclassifier.pool).
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import torch
import torch.nn as nn
from transformers import AutoModel, AutoTokenizer

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

UNKNOWN_TOKEN = "<unk>"


def normalize_form(form: str) -> str:
    return form.lower()


def load_embeddings(path) -> Dict[str, torch.Tensor]:
    """
    Read pretrained word embeddings in the word2vec text format, one form per
    line followed by its values, with an optional "count size" header line.

    The forms are normalized, the first vector of a form wins.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Embeddings file not found: {path}")

    embeddings: Dict[str, torch.Tensor] = {}
    size = None

    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            fields = line.split()
            if not fields or (line_number == 1 and len(fields) == 2 and fields[0].isdigit()):
                continue

            try:
                vector = torch.tensor([float(v) for v in fields[1:]])
            except ValueError as e:
                raise ConfigurationError(f"{path}:{line_number}: invalid embedding values") from e

            if size is None:
                size = len(vector)
            if len(vector) != size or size == 0:
                raise ConfigurationError(f"{path}:{line_number}: expected {size} values, got {len(vector)}")

            embeddings.setdefault(normalize_form(fields[0]), vector)

    if not embeddings:
        raise ConfigurationError(f"No embeddings in '{path}'")

    logger.info(f"Loaded {len(embeddings)} embeddings of size {size} from '{path}'")
    return embeddings


class TokensEncoder:
    """
    Encode one sentence at a time, keeping what is needed for its backward.

    An instance must complete its forward/backward pair before being used on
    another sentence.
    """

    def __init__(self, model, id=0):
        self.model = model
        self.id = id
        self._output = None

    def forward(self, tokens: List[str]) -> torch.Tensor:
        if self.model.trainable and torch.is_grad_enabled():
            self._output = self.model.encode(tokens)
            return self._output.detach()

        self._output = None
        with torch.no_grad():
            return self.model.encode(tokens)

    def backward(self, errors: torch.Tensor):
        if self._output is None:
            raise RuntimeError("Backward called without a trainable forward.")

        self.model.zero_grad(set_to_none=True)
        self._output.backward(errors)
        self._output = None

    def get_params_errors(self, copy=True) -> List[torch.Tensor]:
        return [
            (p.grad.clone() if copy else p.grad) if p.grad is not None else torch.zeros_like(p)
            for p in self.model.parameters() if p.requires_grad
        ]


class EmbeddingsEncoderModel(nn.Module):
    """A table of word embeddings, the forms are lower-cased."""

    kind = "embeddings"

    def __init__(self, vocabulary: Iterable[str], embedding_size=50, optimize=True):
        super().__init__()
        self.vocabulary = [UNKNOWN_TOKEN] + sorted({normalize_form(w) for w in vocabulary} - {UNKNOWN_TOKEN})
        self.index = {form: i for i, form in enumerate(self.vocabulary)}
        self.embedding_size = embedding_size
        self.optimize = optimize
        self.embeddings = nn.Embedding(len(self.vocabulary), embedding_size)
        nn.init.uniform_(self.embeddings.weight, -0.1, 0.1)
        self.embeddings.weight.requires_grad_(optimize)

    @classmethod
    def from_pretrained(cls, embeddings: Dict[str, torch.Tensor], vocabulary: Iterable[str] = (), optimize=True):
        """
        A table initialized with pretrained vectors. The forms of the vocabulary
        missing from them keep a random vector.
        """
        embedding_size = len(next(iter(embeddings.values())))
        model = cls(set(embeddings) | set(vocabulary), embedding_size=embedding_size, optimize=optimize)

        with torch.no_grad():
            for form, vector in embeddings.items():
                model.embeddings.weight[model.index[normalize_form(form)]] = vector

        return model

    @property
    def encoding_size(self) -> int:
        return self.embedding_size

    @property
    def trainable(self) -> bool:
        return self.optimize

    def encode(self, tokens: List[str]) -> torch.Tensor:
        unknown = self.index[UNKNOWN_TOKEN]
        indices = torch.tensor([self.index.get(normalize_form(t), unknown) for t in tokens], dtype=torch.long)
        return self.embeddings(indices)

    def build_encoder(self, id=0) -> TokensEncoder:
        return TokensEncoder(self, id=id)

    def get_config(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "vocabulary": self.vocabulary[1:],
            "embedding_size": self.embedding_size,
            "optimize": self.optimize,
        }

    def get_state(self) -> Optional[Dict[str, torch.Tensor]]:
        return self.state_dict()


class TransformerEncoderModel(nn.Module):
    """
    Frozen pretrained transformer, the sub-word states are averaged per token.
    """

    kind = "transformer"

    def __init__(self, model_name="distilbert-base-uncased", max_length=256):
        super().__init__()
        self.model_name = model_name
        self.max_length = max_length
        self.tokenizer = AutoTokenizer.from_pretrained(model_name)
        self.encoder = AutoModel.from_pretrained(model_name)
        self.encoder.eval()
        for param in self.encoder.parameters():
            param.requires_grad = False

    def train(self, mode=True):
        super().train(mode)
        self.encoder.eval()
        return self

    @property
    def encoding_size(self) -> int:
        return self.encoder.config.hidden_size

    @property
    def trainable(self) -> bool:
        return False

    def encode(self, tokens: List[str]) -> torch.Tensor:
        inputs = self.tokenizer(tokens, is_split_into_words=True, return_tensors="pt",
                                truncation=True, max_length=self.max_length)
        with torch.no_grad():
            states = self.encoder(**inputs).last_hidden_state[0]

        word_ids = inputs.word_ids(0)
        encodings = torch.zeros(len(tokens), self.encoding_size)
        counts = torch.zeros(len(tokens), 1)
        for position, word_id in enumerate(word_ids):
            if word_id is not None:
                encodings[word_id] += states[position]
                counts[word_id] += 1

        # Tokens cut by the truncation keep a zero encoding.
        return encodings / counts.clamp(min=1)

    def build_encoder(self, id=0) -> TokensEncoder:
        return TokensEncoder(self, id=id)

    def get_config(self) -> Dict[str, Any]:
        return {"kind": self.kind, "model_name": self.model_name, "max_length": self.max_length}

    def get_state(self):
        return None


def tokens_encoder_from_config(config: Dict[str, Any], state=None):
    config = dict(config)
    kind = config.pop("kind")

    if kind == EmbeddingsEncoderModel.kind:
        model = EmbeddingsEncoderModel(**config)
    elif kind == TransformerEncoderModel.kind:
        model = TransformerEncoderModel(**config)
    else:
        raise ValueError(f"Unknown tokens encoder kind: {kind}")

    if state is not None:
        model.load_state_dict(state)

    logger.debug(f"Tokens encoder '{kind}' built, encoding size {model.encoding_size}")
    return model
