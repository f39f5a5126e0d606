from dataclasses import dataclass
from typing import List


@dataclass
class Example:
    """
    An example to train or test a HANClassifier.

    sentences: the sentences of the text, each as list of token forms
    gold_classes: the gold class of each level, starting from the top
    """

    sentences: List[List[str]]
    gold_classes: List[int]
