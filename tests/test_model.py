"""
Tests of the HAN heads and of the model built on a classes hierarchy.
"""

import io

import pytest
import torch

from hanclassifier.classes_config import ClassesConfig
from hanclassifier.classifier import HANClassifier
from hanclassifier.errors import ConsistencyError
from hanclassifier.hierarchical_head import HANHead
from hanclassifier.model import HANClassifierModel, head_key


class TestHANHead:
    """Test HANHead."""

    @pytest.mark.parametrize("recurrent_type", ["gru", "lstm", "rnn"])
    def test_forward(self, recurrent_type):
        head = HANHead(input_size=5, output_size=3, attention_size=4, recurrent_type=recurrent_type)
        document = [torch.randn(4, 5), torch.randn(2, 5), torch.randn(7, 5)]

        logits = head(document)

        assert logits.shape == (3,)

    def test_dropout_only_in_training(self):
        head = HANHead(input_size=5, output_size=3, attention_size=4)
        document = [torch.randn(6, 5), torch.randn(4, 5)]
        dropouts = {"rnn_dropout": 0.5, "attention_dropout": 0.5, "output_dropout": 0.5}

        assert not torch.equal(head(document, **dropouts), head(document, **dropouts))

        head.eval()
        assert torch.equal(head(document, **dropouts), head(document))

    def test_single_token_document(self):
        head = HANHead(input_size=5, output_size=2, hidden_size=3)

        assert head([torch.randn(1, 5)]).shape == (2,)

    def test_unknown_recurrent_type(self):
        with pytest.raises(ValueError):
            HANHead(input_size=5, output_size=2, recurrent_type="ran")


class TestHANClassifierModel:
    """Test the heads built by HANClassifierModel."""

    def test_one_head_per_level(self, build_model, three_level_config):
        model = build_model(three_level_config)

        assert model.heads_count == 4
        assert set(model.heads.keys()) == {"root", "root_0", "root_0_0", "root_2"}
        assert model.top_level.find([0, 0]).item is model.heads["root_0_0"]

    def test_output_sizes(self, build_model, three_level_config):
        model = build_model(three_level_config)

        # The sub-levels have the extra 'stop' output.
        assert [head.output_size for head in model.top_level.items()] == [3, 3, 3, 4]
        assert all(head.input_size == 8 for head in model.top_level.items())

    def test_flat_hierarchy(self, build_model, flat_config):
        model = build_model(flat_config)

        assert model.heads_count == 1
        assert model.top_level.item.output_size == 2

    def test_no_class_index(self, build_model, three_level_config):
        model = build_model(three_level_config)

        assert model.get_no_class_index([0]) == 2
        assert model.get_no_class_index([2]) == 3

        with pytest.raises(ConsistencyError):
            model.get_no_class_index([1])

    def test_expected_classes(self, build_model, three_level_config):
        model = build_model(three_level_config)

        assert model.has_sub_levels([0])
        assert not model.has_sub_levels([1])
        assert model.expected_classes([1]) == [1]
        assert model.expected_classes([0, 1]) == [0, 1]
        assert model.expected_classes([0, 0, 1]) == [0, 0, 1]
        assert model.expected_classes([0]) == [0, 2]
        assert model.expected_classes([0, 0]) == [0, 0, 2]
        assert model.expected_classes([2]) == [2, 3]

    def test_head_key(self):
        assert head_key(()) == "root"
        assert head_key((0, 2)) == "root_0_2"

    def test_get_config(self, build_model, two_level_config):
        config = build_model(two_level_config).get_config()

        assert config["name"] == "test-model"
        assert ClassesConfig.from_dict(config["classes_config"]) == two_level_config
        assert config["tokens_encoder"]["kind"] == "embeddings"
        assert config["attention_size"] == 4


class TestPersistence:
    """Test the serialization of a model."""

    def test_dump_and_load(self, build_model, three_level_config, document):
        model = build_model(three_level_config, name="saved")
        stream = io.BytesIO()
        model.dump(stream)
        stream.seek(0)

        loaded = HANClassifierModel.load(stream)

        assert loaded.name == "saved"
        assert loaded.classes_config == three_level_config
        assert loaded.heads_count == model.heads_count

        expected = HANClassifier(model).classify(document)
        found = HANClassifier(loaded).classify(document)

        assert len(found) == len(expected)
        for e, f in zip(expected, found):
            assert torch.allclose(e, f)

    def test_save_and_load_file(self, build_model, two_level_config, tmp_path):
        model = build_model(two_level_config)
        path = tmp_path / "models" / "model.pt"

        model.save(path)
        loaded = HANClassifierModel.load_from_file(path)

        assert path.exists()
        assert torch.equal(
            loaded.tokens_encoder.embeddings.weight, model.tokens_encoder.embeddings.weight)
        for key, param in model.heads.state_dict().items():
            assert torch.equal(loaded.heads.state_dict()[key], param)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HANClassifierModel.load_from_file(tmp_path / "missing.pt")
