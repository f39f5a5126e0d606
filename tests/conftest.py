"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
import torch

from hanclassifier.classes_config import ClassesConfig
from hanclassifier.dataset.example import Example
from hanclassifier.model import HANClassifierModel
from hanclassifier.tokens_encoder import EmbeddingsEncoderModel

VOCABULARY = ["the", "cat", "dog", "sat", "ran", "on", "mat", "away", "a", "bird"]


@pytest.fixture(autouse=True)
def seed():
    torch.manual_seed(13)


@pytest.fixture
def encoder_model():
    """A small trainable embeddings table."""
    return EmbeddingsEncoderModel(VOCABULARY, embedding_size=8)


@pytest.fixture
def flat_config():
    return ClassesConfig({0: None, 1: None})


@pytest.fixture
def two_level_config():
    """Class 0 has two sub-classes, class 1 is a leaf."""
    return ClassesConfig({0: ClassesConfig({0: None, 1: None}), 1: None})


@pytest.fixture
def three_level_config():
    return ClassesConfig({
        0: ClassesConfig({0: ClassesConfig({0: None, 1: None}), 1: None}),
        1: None,
        2: ClassesConfig({0: None, 1: None, 2: None}),
    })


@pytest.fixture
def build_model(encoder_model):
    """Factory of small models on the shared embeddings."""

    def _build(classes_config, name="test-model"):
        return HANClassifierModel(
            name=name,
            classes_config=classes_config,
            tokens_encoder=encoder_model,
            attention_size=4,
            hidden_size=6,
        )

    return _build


@pytest.fixture
def document():
    return [["The", "cat", "sat", "on", "the", "mat"], ["A", "dog", "ran", "away"]]


@pytest.fixture
def examples(document):
    return [
        Example(sentences=document, gold_classes=[0, 1]),
        Example(sentences=[["the", "bird", "sat"]], gold_classes=[0, 0]),
        Example(sentences=[["a", "dog", "ran"], ["the", "cat", "ran"]], gold_classes=[1]),
        Example(sentences=[["the", "dog", "sat"]], gold_classes=[0]),
    ]


@pytest.fixture
def write_jsonl():
    """Write records as JSON lines, returns the path."""

    def _write(path, records):
        with open(path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record) + "\n")
        return path

    return _write


@pytest.fixture
def corpus_path(tmp_path, examples, write_jsonl):
    """The shared examples written in corpus format."""
    return write_jsonl(
        tmp_path / "corpus.jsonl",
        [{"text": e.sentences, "classes": e.gold_classes} for e in examples],
    )
