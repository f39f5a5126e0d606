import logging
from typing import List

from ..classes_config import ClassesConfig
from ..errors import ConfigurationError
from ..helpers import build_classes_config_from_paths
from .example import Example

logger = logging.getLogger(__name__)


def derive_classes_config(examples: List[Example], auto_complete=False) -> ClassesConfig:
    """The hierarchy of classes covered by the gold classes of the given examples."""
    return build_classes_config_from_paths((e.gold_classes for e in examples), auto_complete=auto_complete)


class Dataset:
    """
    The training, validation and test sets of a HANClassifier.

    The classes hierarchy is taken from the training set, which must define
    all the possible classes (use auto_complete if the examples may not cover
    all of them). The classes of the validation and test sets must be
    compatible with it.
    """

    def __init__(self, training: List[Example], validation: List[Example], test: List[Example],
                 auto_complete=False):
        self.training = training
        self.validation = validation
        self.test = test

        if not training:
            raise ConfigurationError("The training dataset is empty.")

        self.classes_config = derive_classes_config(training, auto_complete=auto_complete)

        if not self.classes_config.is_complete():
            raise ConfigurationError("The training dataset must contain all the possible classes.")

        if not derive_classes_config(validation).is_compatible(self.classes_config):
            raise ConfigurationError("The classes defined in the validation dataset must be compatible with the training set.")

        if not derive_classes_config(test).is_compatible(self.classes_config):
            raise ConfigurationError("The classes defined in the test dataset must be compatible with the training set.")

        logger.info(
            f"Dataset: {len(training)} training, {len(validation)} validation, {len(test)} test examples, "
            f"{self.classes_config.depth} levels of classes"
        )
