"""
Reader of the corpora in JSON lines format, one example per line:

    {"text": [["tok1", "tok2", ...], [...]], "classes": [i0, i1, ...]}

The older single level format {"text": [[...]], "class": n} is also accepted,
with n starting from 1.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigurationError
from .example import Example


class TextLine(BaseModel):
    text: List[List[str]] = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def check_sentences(cls, text):
        if any(len(sentence) == 0 for sentence in text):
            raise ValueError("empty sentence in 'text'")
        return text


class CorpusLine(TextLine):
    model_config = ConfigDict(populate_by_name=True)

    classes: Optional[List[int]] = None
    legacy_class: Optional[int] = Field(default=None, alias="class")

    @model_validator(mode="after")
    def check_classes(self):
        if self.classes is not None:
            if not self.classes:
                raise ValueError("empty 'classes'")
            if any(c < 0 for c in self.classes):
                raise ValueError(f"negative class index in {self.classes}")
        elif self.legacy_class is not None:
            if self.legacy_class < 1:
                raise ValueError(f"'class' must start from 1, got {self.legacy_class}")
        else:
            raise ValueError("missing 'classes' field")

        return self

    @property
    def gold_classes(self) -> List[int]:
        return list(self.classes) if self.classes is not None else [self.legacy_class - 1]

    def to_example(self) -> Example:
        return Example(sentences=self.text, gold_classes=self.gold_classes)


class CorpusReader:

    def read(self, path) -> List[Example]:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Corpus file not found: {path}")

        examples = []
        with open(path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    examples.append(CorpusLine.model_validate_json(line).to_example())
                except ValidationError as e:
                    raise ConfigurationError(f"{path}:{line_number}: invalid example: {e}") from e

        return examples


def read_texts(path) -> List[List[List[str]]]:
    """Read the 'text' field of each line, the classes are not required."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    texts = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                texts.append(TextLine.model_validate_json(line).text)
            except ValidationError as e:
                raise ConfigurationError(f"{path}:{line_number}: invalid text: {e}") from e

    return texts
