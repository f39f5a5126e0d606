import pytest
import torch

from hanclassifier.optimizer import ParamsOptimizer, UpdateMethod


@pytest.fixture
def layer():
    return torch.nn.Linear(3, 2)


class TestUpdateMethod:
    """Test UpdateMethod."""

    @pytest.mark.parametrize("name, optimizer_cls", [
        ("adam", torch.optim.Adam),
        ("adagrad", torch.optim.Adagrad),
        ("sgd", torch.optim.SGD),
    ])
    def test_build(self, layer, name, optimizer_cls):
        optimizer = UpdateMethod(name=name, learning_rate=0.5).build(layer.parameters())

        assert isinstance(optimizer, optimizer_cls)
        assert optimizer.param_groups[0]["lr"] == 0.5

    def test_options(self, layer):
        optimizer = UpdateMethod(name="sgd", options={"momentum": 0.9}).build(layer.parameters())

        assert optimizer.param_groups[0]["momentum"] == 0.9

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            UpdateMethod(name="rmsprop")


class TestParamsOptimizer:
    """Test the accumulation of the errors and the averaged update."""

    def test_update_with_the_average(self, layer):
        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod(name="sgd", learning_rate=1.0))
        weight, bias = layer.weight.detach().clone(), layer.bias.detach().clone()

        optimizer.accumulate([torch.ones(2, 3), torch.ones(2)])
        optimizer.accumulate([3 * torch.ones(2, 3), torch.zeros(2)])
        assert optimizer.accumulation_count == 2

        optimizer.update()

        assert torch.allclose(layer.weight, weight - 2.0)
        assert torch.allclose(layer.bias, bias - 0.5)
        assert optimizer.accumulation_count == 0
        assert optimizer.updates == 1

    def test_accumulated_errors_are_copied(self, layer):
        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod(name="sgd", learning_rate=1.0))
        bias = layer.bias.detach().clone()
        errors = [torch.zeros(2, 3), torch.ones(2)]

        optimizer.accumulate(errors)
        errors[1].fill_(100.0)
        optimizer.update()

        assert torch.allclose(layer.bias, bias - 1.0)

    def test_update_without_errors(self, layer):
        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod(name="sgd", learning_rate=1.0))
        weight = layer.weight.detach().clone()

        optimizer.update()

        assert torch.equal(layer.weight, weight)
        assert optimizer.updates == 0

    def test_wrong_number_of_errors(self, layer):
        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod())

        with pytest.raises(ValueError):
            optimizer.accumulate([torch.ones(2, 3)])

    def test_frozen_params_are_skipped(self, layer):
        layer.bias.requires_grad_(False)

        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod())

        assert len(optimizer.params) == 1

    def test_lifecycle_counters(self, layer):
        optimizer = ParamsOptimizer(layer.parameters(), UpdateMethod())

        optimizer.new_epoch()
        optimizer.new_batch()
        optimizer.new_example()
        optimizer.new_example()

        assert (optimizer.epochs, optimizer.batches, optimizer.examples) == (1, 1, 2)
