from .classes_config import ClassesConfig
from .classifier import HANClassifier, LevelClassifier
from .config import ModelConfig, TrainingConfig
from .dataset import CorpusReader, Dataset, Example
from .errors import ConfigurationError, ConsistencyError, HANClassifierError
from .evals.validator import ValidationInfo, Validator
from .hierarchical_head import HANHead
from .labels_config import LabelsConfig
from .level_tree import LevelTree
from .model import HANClassifierModel
from .optimizer import ParamsOptimizer, UpdateMethod
from .tokens_encoder import EmbeddingsEncoderModel, TransformerEncoderModel
from .trainer import Trainer

__all__ = [
    "ClassesConfig",
    "HANClassifier",
    "LevelClassifier",
    "ModelConfig",
    "TrainingConfig",
    "CorpusReader",
    "Dataset",
    "Example",
    "ConfigurationError",
    "ConsistencyError",
    "HANClassifierError",
    "ValidationInfo",
    "Validator",
    "HANHead",
    "LabelsConfig",
    "LevelTree",
    "HANClassifierModel",
    "ParamsOptimizer",
    "UpdateMethod",
    "EmbeddingsEncoderModel",
    "TransformerEncoderModel",
    "Trainer",
]
