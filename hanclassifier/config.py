"""
Default hyperparameters of the model and of its training.
"""

from dataclasses import dataclass, field
from typing import Optional

from .optimizer import UpdateMethod


@dataclass
class ModelConfig:
    attention_size: int = 100
    recurrent_type: str = "gru"
    hidden_size: Optional[int] = None
    token_encoding_size: int = 50
    pretrained_model: Optional[str] = None  # a transformers model name, instead of the embeddings
    embeddings_path: Optional[str] = None  # pretrained word embeddings, their size overrides token_encoding_size

    @classmethod
    def from_args(cls, args) -> "ModelConfig":
        return cls(
            attention_size=args.attention_size,
            recurrent_type=args.recurrent_type,
            hidden_size=args.hidden_size,
            token_encoding_size=args.token_encoding_size,
            pretrained_model=args.pretrained_model,
            embeddings_path=args.embeddings_path,
        )


@dataclass
class TrainingConfig:
    epochs: int = 10
    batch_size: int = 1
    shuffle: bool = True
    seed: int = 743
    rnn_dropout: float = 0.0
    attention_dropout: float = 0.0
    output_dropout: float = 0.0
    optimize_embeddings: bool = True
    classifier_update_method: UpdateMethod = field(
        default_factory=lambda: UpdateMethod(name="adam", learning_rate=0.001))
    tokens_encoder_update_method: UpdateMethod = field(
        default_factory=lambda: UpdateMethod(name="adagrad", learning_rate=0.1))

    @classmethod
    def from_args(cls, args) -> "TrainingConfig":
        return cls(
            epochs=args.epochs,
            batch_size=args.batch_size,
            shuffle=not args.no_shuffle,
            seed=args.seed,
            rnn_dropout=args.dropout,
            attention_dropout=args.dropout,
            output_dropout=args.dropout,
            optimize_embeddings=not args.no_embeddings_optimization,
            classifier_update_method=UpdateMethod(name=args.classifier_optimizer, learning_rate=args.learning_rate),
            tokens_encoder_update_method=UpdateMethod(
                name=args.embeddings_optimizer, learning_rate=args.embeddings_learning_rate),
        )
