"""
Command line tools: train, evaluate, classify and classes-to-indices.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from .classifier import HANClassifier
from .config import ModelConfig, TrainingConfig
from .dataset import CorpusReader, Dataset, read_texts
from .errors import ConfigurationError, ConsistencyError, HANClassifierError
from .evals import Validator, plot_confusion_matrix
from .helpers import path_to_string, predicted_path, reduce_sentences
from .labels_config import LabelsConfig
from .logging_config import setup_logging
from .model import HANClassifierModel
from .tokens_encoder import EmbeddingsEncoderModel, TransformerEncoderModel, load_embeddings
from .trainer import Trainer, log_validation_info

logger = logging.getLogger("hanclassifier")


def build_tokens_encoder(dataset: Dataset, model_config: ModelConfig, optimize: bool):
    if model_config.pretrained_model and model_config.embeddings_path:
        raise ConfigurationError("Use either pretrained embeddings or a pretrained model, not both.")

    if model_config.pretrained_model:
        logger.info(f"Loading pretrained encoder '{model_config.pretrained_model}'...")
        return TransformerEncoderModel(model_name=model_config.pretrained_model)

    vocabulary = {token for example in dataset.training for sentence in example.sentences for token in sentence}

    if model_config.embeddings_path:
        logger.info(f"Loading embeddings from '{model_config.embeddings_path}'...")
        embeddings = load_embeddings(model_config.embeddings_path)
        # The training forms are added only when the embeddings are optimized.
        return EmbeddingsEncoderModel.from_pretrained(
            embeddings, vocabulary=vocabulary if optimize else (), optimize=optimize)

    logger.info(f"Embeddings vocabulary: {len(vocabulary)} forms")
    return EmbeddingsEncoderModel(vocabulary, embedding_size=model_config.token_encoding_size, optimize=optimize)


def read_corpus(reader: CorpusReader, path, name):
    logger.info(f"Loading {name} dataset from '{path}'...")
    return reader.read(path)


def train(args):
    model_config = ModelConfig.from_args(args)
    training_config = TrainingConfig.from_args(args)

    reader = CorpusReader()
    dataset = Dataset(
        training=read_corpus(reader, args.training_set_path, "training"),
        validation=read_corpus(reader, args.validation_set_path, "validation"),
        test=read_corpus(reader, args.test_set_path, "test"),
        auto_complete=args.auto_complete,
    )

    model = HANClassifierModel(
        name=args.model_name,
        classes_config=dataset.classes_config,
        tokens_encoder=build_tokens_encoder(dataset, model_config, optimize=training_config.optimize_embeddings),
        attention_size=model_config.attention_size,
        recurrent_type=model_config.recurrent_type,
        hidden_size=model_config.hidden_size,
    )

    logger.info(f"-- START TRAINING ON {len(dataset.training)} EXAMPLES")

    trainer = Trainer(
        model,
        classifier_update_method=training_config.classifier_update_method,
        tokens_encoder_update_method=(
            training_config.tokens_encoder_update_method if training_config.optimize_embeddings else None),
        rnn_dropout=training_config.rnn_dropout,
        attention_dropout=training_config.attention_dropout,
        output_dropout=training_config.output_dropout,
        verbose=not args.quiet,
    )
    trainer.train(
        dataset.training,
        epochs=training_config.epochs,
        batch_size=training_config.batch_size,
        shuffle=training_config.shuffle,
        seed=training_config.seed,
        validation_set=dataset.validation,
        model_path=args.model_path,
    )

    if not dataset.test:
        return 0

    logger.info(f"-- START VALIDATION ON {len(dataset.test)} TEST EXAMPLES")

    best_model = HANClassifierModel.load_from_file(args.model_path)
    info = Validator(best_model, verbose=not args.quiet).validate(dataset.test)
    log_validation_info(info, logger, title="Final accuracy")
    return 0


def evaluate(args):
    examples = read_corpus(CorpusReader(), args.validation_set_path, "validation")

    logger.info(f"Loading HAN classifier model from '{args.model_path}'...")
    model = HANClassifierModel.load_from_file(args.model_path)

    logger.info(f"-- START VALIDATION ON {len(examples)} EXAMPLES")
    info = Validator(model, verbose=not args.quiet).validate(examples)
    log_validation_info(info, logger)

    if args.report:
        info.to_dataframe().to_csv(args.report)
        logger.info(f"Metrics report saved to '{args.report}'")

    if args.plot:
        plt.close(plot_confusion_matrix(info.confusion_matrix, path=args.plot))
        logger.info(f"Confusion matrix saved to '{args.plot}'")

    return 0


def classify(args):
    logger.info(f"Loading HAN classifier model from '{args.model_path}'...")
    classifier = HANClassifier(HANClassifierModel.load_from_file(args.model_path))

    labels_config = None
    if args.labels_config_path:
        logger.info(f"Loading labels configuration from '{args.labels_config_path}'...")
        labels_config = LabelsConfig.from_file(args.labels_config_path)
        if not labels_config.is_compatible(classifier.model.classes_config):
            raise ConsistencyError("The labels configuration is not compatible with the classes of the model.")

    for sentences in read_texts(args.input_path):
        if args.reduce_sentences:
            sentences = reduce_sentences(sentences)

        predictions = classifier.classify(sentences)

        if labels_config is not None:
            predicted_class = labels_config.get_label(predictions)
        else:
            predicted_class = path_to_string(predicted_path(predictions))

        confidence = 1.0
        for p in predictions:
            confidence *= float(p.max())

        print(json.dumps({"class": predicted_class, "confidence": round(confidence, 4)}))

    return 0


def classes_to_indices(args):
    corpus = pd.read_json(args.input_path, lines=True)
    if "class" not in corpus.columns:
        raise HANClassifierError(f"No 'class' field in '{args.input_path}'")

    categories = list(dict.fromkeys(corpus["class"]))
    mapping = {category: index for index, category in enumerate(categories)}
    corpus["classes"] = corpus["class"].map(lambda category: [mapping[category]])

    Path(args.output_path).parent.mkdir(parents=True, exist_ok=True)
    corpus.drop(columns=["class"]).to_json(args.output_path, orient="records", lines=True, force_ascii=False)

    print("Mapping:")
    for category, index in mapping.items():
        print(f"{index:3d} -> {category}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hanclassifier", description="Hierarchical HAN text classifier")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("-q", "--quiet", action="store_true", help="disable the progress bars")
    subparsers = parser.add_subparsers(dest="command", required=True)

    train_parser = subparsers.add_parser("train", help="train a new model")
    train_parser.add_argument("-n", "--model-name", required=True, help="the name of the model")
    train_parser.add_argument("-m", "--model-path", required=True, help="the file in which to save the model")
    train_parser.add_argument("-t", "--training-set-path", required=True)
    train_parser.add_argument("-v", "--validation-set-path", required=True)
    train_parser.add_argument("-s", "--test-set-path", required=True)
    train_parser.add_argument("-a", "--auto-complete", action="store_true",
                              help="auto-complete the training dataset with the missing classes")
    train_parser.add_argument("--no-embeddings-optimization", action="store_true",
                              help="do not optimize the embeddings")
    train_parser.add_argument("--pretrained-model", default=None,
                              help="a transformers model to encode the tokens, instead of the embeddings")
    train_parser.add_argument("--embeddings-path", default=None,
                              help="pretrained word embeddings in word2vec text format")
    train_parser.add_argument("--epochs", type=int, default=10)
    train_parser.add_argument("--batch-size", type=int, default=1)
    train_parser.add_argument("--no-shuffle", action="store_true")
    train_parser.add_argument("--seed", type=int, default=743)
    train_parser.add_argument("--dropout", type=float, default=0.0)
    train_parser.add_argument("--attention-size", type=int, default=100)
    train_parser.add_argument("--recurrent-type", choices=["gru", "lstm", "rnn"], default="gru")
    train_parser.add_argument("--hidden-size", type=int, default=None)
    train_parser.add_argument("--token-encoding-size", type=int, default=50)
    train_parser.add_argument("--classifier-optimizer", choices=["adam", "adagrad", "sgd"], default="adam")
    train_parser.add_argument("--learning-rate", type=float, default=0.001)
    train_parser.add_argument("--embeddings-optimizer", choices=["adam", "adagrad", "sgd"], default="adagrad")
    train_parser.add_argument("--embeddings-learning-rate", type=float, default=0.1)
    train_parser.set_defaults(func=train)

    evaluate_parser = subparsers.add_parser("evaluate", help="evaluate a model on a dataset")
    evaluate_parser.add_argument("-m", "--model-path", required=True)
    evaluate_parser.add_argument("-v", "--validation-set-path", required=True)
    evaluate_parser.add_argument("--report", default=None, help="save the metrics per level to a CSV file")
    evaluate_parser.add_argument("--plot", default=None, help="save the level 0 confusion heat-map to a file")
    evaluate_parser.set_defaults(func=evaluate)

    classify_parser = subparsers.add_parser("classify", help="classify tokenized texts")
    classify_parser.add_argument("-m", "--model-path", required=True)
    classify_parser.add_argument("-i", "--input-path", required=True,
                                 help='JSON lines file of objects {"text": [[tokens], ...]}')
    classify_parser.add_argument("-l", "--labels-config-path", default=None)
    classify_parser.add_argument("--reduce-sentences", action="store_true",
                                 help="classify only the sentences before the third one with 5 or more tokens")
    classify_parser.set_defaults(func=classify)

    convert_parser = subparsers.add_parser("classes-to-indices",
                                           help="convert the 'class' categories of a corpus to 'classes' indices")
    convert_parser.add_argument("input_path")
    convert_parser.add_argument("output_path")
    convert_parser.set_defaults(func=classes_to_indices)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("hanclassifier", level=args.log_level, log_file=args.log_file)

    try:
        return args.func(args)
    except (HANClassifierError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
