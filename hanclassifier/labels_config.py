"""
Human readable labels of a classes hierarchy.

A labels configuration is a JSON object with the following template:

    {
      "labels": ["Label 0 Name", "Label 1 Name", "Label 2 Name"],
      "sublevels": [{ /* sub-level 0 */ }, null, { /* sub-level 2 */ }]
    }
"""

import json
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .classes_config import ClassesConfig
from .errors import ConfigurationError, ConsistencyError
from .helpers import predicted_path


class LabelsConfig(BaseModel):
    """
    Attributes:
        labels: one label per class index of this level
        sub_levels: the labels of the sub-levels, one per class index (None for a leaf class)
    """

    model_config = ConfigDict(populate_by_name=True)

    labels: List[str]
    sub_levels: Optional[List[Optional["LabelsConfig"]]] = Field(default=None, alias="sublevels")

    @classmethod
    def from_file(cls, path) -> "LabelsConfig":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Labels configuration not found: {path}")

        try:
            return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid labels configuration '{path}': {e}") from e

    def get_indices_hierarchy(self, predictions: Sequence) -> List[int]:
        """
        Class indices of a prediction from the top level, without the 'stop'
        predictions of the sub-levels (the last index of their distribution).
        """
        return predicted_path(predictions)

    def get_label_by_indices(self, indices: Sequence[int]) -> str:
        if not indices:
            raise ValueError("Cannot get the label of an empty indices hierarchy.")

        level_config = self
        for depth, class_index in enumerate(indices[:-1]):
            sub = level_config.sub_levels[class_index] if level_config.sub_levels else None
            if sub is None:
                raise ConsistencyError(f"No labels defined for the sub-level of {list(indices[:depth + 1])}.")
            level_config = sub

        return level_config.labels[indices[-1]]

    def get_label(self, predictions: Sequence) -> str:
        return self.get_label_by_indices(self.get_indices_hierarchy(predictions))

    def get_level(self, predictions: Sequence) -> int:
        """Level of the predicted class, starting from 1 for the top level."""
        if not predictions:
            raise ValueError("Empty predictions.")

        return len(self.get_indices_hierarchy(predictions))

    def is_compatible(self, classes_config: ClassesConfig) -> bool:
        if len(classes_config) != len(self.labels):
            return False

        if self.sub_levels is None:
            return all(sub is None for sub in classes_config.classes.values())

        if len(self.sub_levels) != len(self.labels):
            return False

        for class_index, labels_sub in enumerate(self.sub_levels):
            classes_sub = classes_config.classes.get(class_index)
            if labels_sub is None and classes_sub is None:
                continue
            if labels_sub is None or classes_sub is None or not labels_sub.is_compatible(classes_sub):
                return False

        return True
