import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix
from tqdm import tqdm

from ..classifier import HANClassifier
from ..dataset.example import Example
from ..helpers import argmax_index
from ..logging_config import LogContext
from ..model import HANClassifierModel

logger = logging.getLogger(__name__)


@dataclass
class MetricCounter:
    true_pos: int = 0
    false_pos: int = 0
    false_neg: int = 0

    @property
    def precision(self) -> float:
        total = self.true_pos + self.false_pos
        return self.true_pos / total if total > 0 else 0.0

    @property
    def recall(self) -> float:
        total = self.true_pos + self.false_neg
        return self.true_pos / total if total > 0 else 0.0

    @property
    def f1_score(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r > 0 else 0.0

    def __str__(self):
        return (f"precision {100 * self.precision:5.2f} % | recall {100 * self.recall:5.2f} % | "
                f"f1 score {100 * self.f1_score:5.2f} %")


class ConfusionMatrix:
    """Counts of (expected, found) classes pairs."""

    def __init__(self, labels: Sequence[str]):
        self.labels = list(labels)
        self.expected: List[int] = []
        self.found: List[int] = []

    def increment(self, expected: int, found: int):
        self.expected.append(expected)
        self.found.append(found)

    @property
    def matrix(self) -> np.ndarray:
        n = len(self.labels)
        if not self.expected:
            return np.zeros((n, n), dtype=int)
        return confusion_matrix(self.expected, self.found, labels=list(range(n)))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.matrix, index=self.labels, columns=self.labels)

    def __str__(self):
        return self.to_dataframe().to_string()


@dataclass
class ValidationInfo:
    """
    metrics: one counter per level of the hierarchy
    confusion_matrix: the confusion of the top level classes
    """

    metrics: List[MetricCounter]
    confusion_matrix: ConfusionMatrix
    examples_count: int = 0

    @property
    def accuracy(self) -> float:
        """The average of the f1 scores of the levels."""
        if not self.metrics:
            return 0.0
        return sum(m.f1_score for m in self.metrics) / len(self.metrics)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "level": i,
                "true_pos": m.true_pos,
                "false_pos": m.false_pos,
                "false_neg": m.false_neg,
                "precision": m.precision,
                "recall": m.recall,
                "f1_score": m.f1_score,
            }
            for i, m in enumerate(self.metrics)
        ]).set_index("level")


class Validator:
    """Evaluate a HANClassifierModel on a set of examples, level by level."""

    def __init__(self, model: HANClassifierModel, verbose=True):
        self.model = model
        self.verbose = verbose
        self.classifier = HANClassifier(model, propagate_to_input=False)
        self.validation_info: Optional[ValidationInfo] = None

    def new_validation_info(self) -> ValidationInfo:
        classes_config = self.model.classes_config
        return ValidationInfo(
            metrics=[MetricCounter() for _ in range(classes_config.depth)],
            confusion_matrix=ConfusionMatrix(labels=[str(i) for i in range(len(classes_config))]),
        )

    def validate(self, examples: List[Example]) -> ValidationInfo:
        self.model.eval()
        self.validation_info = self.new_validation_info()

        with LogContext(f"Validation on {len(examples)} examples", logger):
            for example in tqdm(examples, disable=not self.verbose):
                self.validate_example(example)

        return self.validation_info

    def validate_example(self, example: Example):
        predictions = self.classifier.classify(example.sentences)
        expected_classes = self.model.expected_classes(example.gold_classes)
        info = self.validation_info
        info.examples_count += 1

        for level_index, gold_class in enumerate(expected_classes):
            metric = info.metrics[level_index]
            is_no_class = 1 <= level_index < len(predictions) and gold_class == len(predictions[level_index]) - 1

            if level_index == 0:
                info.confusion_matrix.increment(expected=gold_class, found=argmax_index(predictions[0]))

            if level_index >= len(predictions):
                metric.false_neg += 1
            elif argmax_index(predictions[level_index]) == gold_class:
                # A correct 'stop' prediction is not counted as a true positive.
                if not is_no_class:
                    metric.true_pos += 1
            elif is_no_class:
                metric.false_neg += 1
            else:
                metric.false_pos += 1
