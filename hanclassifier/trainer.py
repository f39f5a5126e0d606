import logging
from pathlib import Path
from typing import List, Optional

import torch
from tqdm import tqdm

from .classifier import HANClassifier, LevelClassifier
from .dataset.example import Example
from .evals.validator import ValidationInfo, Validator
from .hierarchical_head import EncodedDocument
from .level_tree import LevelTree
from .logging_config import LogContext
from .model import HANClassifierModel
from .optimizer import ParamsOptimizer, UpdateMethod
from .pool import TokensEncodersPool

logger = logging.getLogger(__name__)


class Trainer:
    """
    Train a HANClassifierModel following the gold classes of each example from
    the top level down.

    The heads of all the levels visited by an example share the same encoded
    input, so the errors of the input are summed over the levels before being
    propagated to the tokens encoder.
    """

    def __init__(
        self,
        model: HANClassifierModel,
        classifier_update_method: UpdateMethod,
        tokens_encoder_update_method: Optional[UpdateMethod] = None,
        rnn_dropout=0.0,
        attention_dropout=0.0,
        output_dropout=0.0,
        verbose=True,
    ):
        self.model = model
        self.verbose = verbose
        self.best_accuracy: Optional[float] = None

        self.tokens_encoder_optimizer: Optional[ParamsOptimizer] = None
        if tokens_encoder_update_method is not None and model.tokens_encoder.trainable:
            self.tokens_encoder_optimizer = ParamsOptimizer(
                model.tokens_encoder.parameters(), tokens_encoder_update_method)

        self.classifier = HANClassifier(
            model,
            rnn_dropout=rnn_dropout,
            attention_dropout=attention_dropout,
            output_dropout=output_dropout,
            propagate_to_input=self.tokens_encoder_optimizer is not None,
        )
        self.top_level_optimizer: LevelTree[ParamsOptimizer] = model.top_level.map(
            lambda head: ParamsOptimizer(head.parameters(), classifier_update_method))
        self.classifier_optimizers: List[ParamsOptimizer] = list(self.top_level_optimizer.items())

        self.tokens_encoders_pool = TokensEncodersPool(model.tokens_encoder)
        self.validator = Validator(model, verbose=verbose)

    def train(
        self,
        training_set: List[Example],
        epochs: int,
        batch_size: int = 1,
        shuffle: bool = True,
        seed: int = 743,
        validation_set: Optional[List[Example]] = None,
        model_path=None,
    ):
        """
        Train the model on the training set, validating it after each epoch if
        a validation set is given and saving it to model_path each time its
        accuracy improves.
        """
        generator = torch.Generator().manual_seed(seed) if shuffle else None

        for i in range(epochs):
            with LogContext(f"Epoch {i + 1} of {epochs}", logger):
                self.new_epoch()
                self.train_epoch(training_set, batch_size=batch_size, generator=generator)

            if validation_set is not None:
                self.validate_and_save_model(validation_set, model_path=model_path)

    def train_epoch(self, training_set: List[Example], batch_size: int = 1, generator=None):
        self.model.train()

        if generator is not None:
            indices = torch.randperm(len(training_set), generator=generator).tolist()
        else:
            indices = list(range(len(training_set)))

        for examples_count, example_index in enumerate(tqdm(indices, disable=not self.verbose), start=1):
            if (examples_count - 1) % batch_size == 0:
                self.new_batch()

            self.new_example()
            self.learn_from_example(training_set[example_index])

            if examples_count % batch_size == 0 or examples_count == len(training_set):
                self.update()

    def learn_from_example(self, example: Example):
        """
        Learn from one example, accumulating the errors of the parameters of
        the heads on its gold path (and of the tokens encoder, if trained).
        """
        encoders = self.tokens_encoders_pool.get_encoders(len(example.sentences))
        document = [encoder.forward(tokens) for encoder, tokens in zip(encoders, example.sentences)]
        sentences_errors = [torch.zeros_like(sentence) for sentence in document]

        self.train_level_classifier(
            level_classifier=self.classifier.top_level,
            level_optimizer=self.top_level_optimizer,
            document=document,
            sentences_errors=sentences_errors,
            expected_classes=self.model.expected_classes(example.gold_classes),
        )

        if self.tokens_encoder_optimizer is not None:
            for encoder, errors in zip(encoders, sentences_errors):
                encoder.backward(errors)
                self.tokens_encoder_optimizer.accumulate(encoder.get_params_errors(copy=False))

    def train_level_classifier(
        self,
        level_classifier: LevelTree[LevelClassifier],
        level_optimizer: LevelTree[ParamsOptimizer],
        document: EncodedDocument,
        sentences_errors: EncodedDocument,
        expected_classes: List[int],
        level_index: int = 0,
    ):
        expected_class = expected_classes[level_index]
        classifier = level_classifier.item

        distribution = classifier.forward(document)
        errors = distribution.clone()
        errors[expected_class] -= 1.0

        classifier.backward(errors)
        level_optimizer.item.accumulate(classifier.get_params_errors(copy=False))

        if self.tokens_encoder_optimizer is not None:
            for sentence_errors, input_errors in zip(sentences_errors, classifier.get_input_errors(copy=False)):
                sentence_errors.add_(input_errors)

        if level_index < len(expected_classes) - 1:
            self.train_level_classifier(
                level_classifier=level_classifier.sub_level(expected_class),
                level_optimizer=level_optimizer.sub_level(expected_class),
                document=document,
                sentences_errors=sentences_errors,
                expected_classes=expected_classes,
                level_index=level_index + 1,
            )

    def new_epoch(self):
        for optimizer in self.classifier_optimizers:
            optimizer.new_epoch()
        if self.tokens_encoder_optimizer is not None:
            self.tokens_encoder_optimizer.new_epoch()

    def new_batch(self):
        for optimizer in self.classifier_optimizers:
            optimizer.new_batch()
        if self.tokens_encoder_optimizer is not None:
            self.tokens_encoder_optimizer.new_batch()

    def new_example(self):
        for optimizer in self.classifier_optimizers:
            optimizer.new_example()
        if self.tokens_encoder_optimizer is not None:
            self.tokens_encoder_optimizer.new_example()

    def update(self):
        for optimizer in self.classifier_optimizers:
            optimizer.update()
        if self.tokens_encoder_optimizer is not None:
            self.tokens_encoder_optimizer.update()

    def validate_and_save_model(self, validation_set: List[Example], model_path=None) -> ValidationInfo:
        logger.info(f"Epoch validation on {len(validation_set)} examples")

        info = self.validator.validate(validation_set)
        self.model.train()
        log_validation_info(info, logger)

        if self.best_accuracy is None or info.accuracy > self.best_accuracy:
            self.best_accuracy = info.accuracy

            if model_path is not None:
                logger.info(f'NEW BEST ACCURACY! Saving model to "{model_path}"...')
                self.model.save(Path(model_path))

        return info


def log_validation_info(info: ValidationInfo, log: logging.Logger, title="Accuracy"):
    log.info(f"{title} (f1 average): {100 * info.accuracy:5.2f} %")
    for i, metric in enumerate(info.metrics):
        log.info(f"- Level {i}: {metric}")
    log.info(f"Level 0 confusion:\n{info.confusion_matrix}")
