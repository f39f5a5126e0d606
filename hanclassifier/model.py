import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import torch
import torch.nn as nn

from .classes_config import ClassesConfig
from .errors import ConsistencyError
from .hierarchical_head import HANHead
from .level_tree import ClassPath, LevelTree
from .tokens_encoder import tokens_encoder_from_config

logger = logging.getLogger(__name__)


def head_key(path: ClassPath) -> str:
    return "_".join(["root"] + [str(i) for i in path])


class HANClassifierModel:
    """
    The model of a HANClassifier: one HAN head per level of a classes hierarchy,
    all working on the encodings of the same tokens encoder.

    The heads of the sub-levels have an extra output, the last one, that means
    'stop at this level'.
    """

    def __init__(
        self,
        name: str,
        classes_config: ClassesConfig,
        tokens_encoder,
        attention_size: int = 20,
        recurrent_type: str = "gru",
        hidden_size: Optional[int] = None,
    ):
        self.name = name
        self.classes_config = classes_config
        self.tokens_encoder = tokens_encoder
        self.attention_size = attention_size
        self.recurrent_type = recurrent_type
        self.hidden_size = hidden_size

        self.heads = nn.ModuleDict()
        self.top_level: LevelTree[HANHead] = LevelTree.build(classes_config, self._build_head)

        logger.info(
            f"Model '{name}' built: {len(self.heads)} heads, {classes_config.depth} levels, "
            f"tokens encoding size {self.tokens_encoding_size}"
        )

    def _build_head(self, config: ClassesConfig, level: int, path: ClassPath) -> HANHead:
        head = HANHead(
            input_size=self.tokens_encoding_size,
            output_size=len(config) + (1 if level > 0 else 0),  # the 'stop' class of the sub-levels
            attention_size=self.attention_size,
            recurrent_type=self.recurrent_type,
            hidden_size=self.hidden_size,
        )
        self.heads[head_key(path)] = head
        return head

    @property
    def tokens_encoding_size(self) -> int:
        return self.tokens_encoder.encoding_size

    @property
    def heads_count(self) -> int:
        return len(self.heads)

    def has_sub_levels(self, classes: Sequence[int]) -> bool:
        """Whether the class reached by the given path has sub-levels itself."""
        return self.top_level.find(classes) is not None

    def get_no_class_index(self, classes: Sequence[int]) -> int:
        """The 'stop' index of the head of the sub-level of the given class path."""
        node = self.top_level.find(classes)
        if node is None:
            raise ConsistencyError(f"The class path {list(classes)} has no sub-levels.")
        return node.item.output_size - 1

    def expected_classes(self, gold_classes: Sequence[int]) -> List[int]:
        """The gold classes, plus the 'stop' class if they end before a leaf."""
        gold_classes = list(gold_classes)
        if self.has_sub_levels(gold_classes):
            return gold_classes + [self.get_no_class_index(gold_classes)]
        return gold_classes

    def parameters(self):
        return self.heads.parameters()

    def train(self, mode=True):
        self.heads.train(mode)
        self.tokens_encoder.train(mode)
        return self

    def eval(self):
        return self.train(False)

    def get_config(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "classes_config": self.classes_config.to_dict(),
            "tokens_encoder": self.tokens_encoder.get_config(),
            "attention_size": self.attention_size,
            "recurrent_type": self.recurrent_type,
            "hidden_size": self.hidden_size,
        }

    def dump(self, stream):
        torch.save({
            "model_config": self.get_config(),
            "heads_state_dict": self.heads.state_dict(),
            "tokens_encoder_state_dict": self.tokens_encoder.get_state(),
        }, stream)

    @classmethod
    def load(cls, stream) -> "HANClassifierModel":
        checkpoint = torch.load(stream, map_location="cpu", weights_only=True)
        config = checkpoint["model_config"]

        model = cls(
            name=config["name"],
            classes_config=ClassesConfig.from_dict(config["classes_config"]),
            tokens_encoder=tokens_encoder_from_config(
                config["tokens_encoder"], state=checkpoint["tokens_encoder_state_dict"]),
            attention_size=config["attention_size"],
            recurrent_type=config["recurrent_type"],
            hidden_size=config["hidden_size"],
        )
        model.heads.load_state_dict(checkpoint["heads_state_dict"])
        return model

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            self.dump(f)

    @classmethod
    def load_from_file(cls, path) -> "HANClassifierModel":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")
        with open(path, "rb") as f:
            return cls.load(f)
