from .corpus_reader import CorpusReader, read_texts
from .dataset import Dataset, derive_classes_config
from .example import Example

__all__ = [
    "CorpusReader",
    "Dataset",
    "Example",
    "derive_classes_config",
    "read_texts",
]
