from typing import List

import torch

from .helpers import argmax_index
from .hierarchical_head import EncodedDocument, HANHead
from .level_tree import LevelTree
from .model import HANClassifierModel
from .pool import TokensEncodersPool


class LevelClassifier:
    """
    Run the head of a single level: forward a document to a distribution of
    classes, backward the errors of its logits.
    """

    def __init__(self, head: HANHead, rnn_dropout=0.0, attention_dropout=0.0, output_dropout=0.0,
                 propagate_to_input=False):
        self.head = head
        self.rnn_dropout = rnn_dropout
        self.attention_dropout = attention_dropout
        self.output_dropout = output_dropout
        self.propagate_to_input = propagate_to_input
        self._input: EncodedDocument = []
        self._logits = None

    def forward(self, document: EncodedDocument) -> torch.Tensor:
        if self.propagate_to_input and torch.is_grad_enabled():
            self._input = [s.detach().clone().requires_grad_(True) for s in document]
        else:
            self._input = [s.detach() for s in document]

        self._logits = self.head(
            self._input,
            rnn_dropout=self.rnn_dropout,
            attention_dropout=self.attention_dropout,
            output_dropout=self.output_dropout,
        )
        return torch.softmax(self._logits, dim=-1).detach()

    def backward(self, output_errors: torch.Tensor):
        """
        output_errors: the errors of the logits (for a softmax cross-entropy,
                       the distribution minus the one-hot gold vector)
        """
        if self._logits is None or not self._logits.requires_grad:
            raise RuntimeError("Backward called without a training forward.")

        self.head.zero_grad(set_to_none=True)
        self._logits.backward(output_errors)
        self._logits = None

    def get_input_errors(self, copy=True) -> EncodedDocument:
        if not self.propagate_to_input:
            raise RuntimeError("Input errors are available only when propagating to the input.")

        return [
            (s.grad.clone() if copy else s.grad) if s.grad is not None else torch.zeros_like(s)
            for s in self._input
        ]

    def get_params_errors(self, copy=True) -> List[torch.Tensor]:
        return [
            (p.grad.clone() if copy else p.grad) if p.grad is not None else torch.zeros_like(p)
            for p in self.head.parameters() if p.requires_grad
        ]


class HANClassifier:
    """
    A classifier of documents on a hierarchy of classes: the top level is
    classified first, then the sub-level of the predicted class, until a leaf
    or a 'stop' prediction is reached.
    """

    def __init__(self, model: HANClassifierModel, rnn_dropout=0.0, attention_dropout=0.0, output_dropout=0.0,
                 propagate_to_input=False):
        self.model = model
        self.propagate_to_input = propagate_to_input
        self.top_level: LevelTree[LevelClassifier] = model.top_level.map(
            lambda head: LevelClassifier(
                head,
                rnn_dropout=rnn_dropout,
                attention_dropout=attention_dropout,
                output_dropout=output_dropout,
                propagate_to_input=propagate_to_input,
            )
        )
        self.tokens_encoders_pool = TokensEncodersPool(model.tokens_encoder)

    def classify(self, sentences: List[List[str]]) -> List[torch.Tensor]:
        """
        Classify a document given as list of sentences of tokens.

        Returns the distributions of the classes, one per level, from the top.
        """
        with torch.no_grad():
            encoders = self.tokens_encoders_pool.get_encoders(len(sentences))
            document = [encoder.forward(tokens) for encoder, tokens in zip(encoders, sentences)]

        return self.classify_encoded(document)

    def classify_encoded(self, document: EncodedDocument) -> List[torch.Tensor]:
        with torch.no_grad():
            return self.forward_level(document, self.top_level)

    def forward_level(self, document: EncodedDocument, level_classifier: LevelTree[LevelClassifier],
                      level_index=0) -> List[torch.Tensor]:
        prediction = level_classifier.item.forward(document)
        output = [prediction]

        predicted_class = argmax_index(prediction)
        sub_level = level_classifier.sub_levels.get(predicted_class)
        go_to_sub_level = level_index == 0 or predicted_class < len(prediction) - 1  # last index = 'stop'

        if sub_level is not None and go_to_sub_level:
            output += self.forward_level(document, sub_level, level_index=level_index + 1)

        return output
