"""
Optimizers accumulating the errors of the parameters across the examples of a batch.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import torch

OPTIMIZERS = {
    "adam": torch.optim.Adam,
    "adagrad": torch.optim.Adagrad,
    "sgd": torch.optim.SGD,
}


@dataclass
class UpdateMethod:
    """The torch optimizer used to update a set of parameters."""

    name: str = "adam"
    learning_rate: float = 0.001
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.name not in OPTIMIZERS:
            raise ValueError(f"Unknown update method '{self.name}', expected one of {sorted(OPTIMIZERS)}")

    def build(self, params) -> torch.optim.Optimizer:
        return OPTIMIZERS[self.name](params, lr=self.learning_rate, **self.options)


class ParamsOptimizer:
    """
    Accumulate the errors of some parameters and update them with the average.

    The lifecycle methods new_epoch(), new_batch() and new_example() must be
    called before processing the related unit.
    """

    def __init__(self, params: Iterable[torch.nn.Parameter], update_method: UpdateMethod):
        self.params: List[torch.nn.Parameter] = [p for p in params if p.requires_grad]
        self.update_method = update_method
        self.optimizer = update_method.build(self.params) if self.params else None
        self._errors: Optional[List[torch.Tensor]] = None
        self._count = 0
        self.epochs = 0
        self.batches = 0
        self.examples = 0
        self.updates = 0

    @property
    def accumulation_count(self) -> int:
        return self._count

    def accumulate(self, params_errors: List[torch.Tensor]):
        if len(params_errors) != len(self.params):
            raise ValueError(f"Expected errors for {len(self.params)} parameters, got {len(params_errors)}")

        if self._errors is None:
            self._errors = [e.detach().clone() for e in params_errors]
        else:
            for acc, e in zip(self._errors, params_errors):
                acc.add_(e.detach())

        self._count += 1

    def update(self):
        if self._count == 0 or self.optimizer is None:
            return

        self.optimizer.zero_grad(set_to_none=True)
        for param, errors in zip(self.params, self._errors):
            param.grad = errors / self._count

        self.optimizer.step()
        self.optimizer.zero_grad(set_to_none=True)

        self._errors = None
        self._count = 0
        self.updates += 1

    def new_epoch(self):
        self.epochs += 1

    def new_batch(self):
        self.batches += 1

    def new_example(self):
        self.examples += 1
