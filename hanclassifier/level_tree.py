"""
A tree with the shape of a classes hierarchy, carrying one item per level.

The same structure holds the heads of a model, the classifiers that run them
and the optimizers that train them, so that all of them are built by the same
recursion and always share the shape of the ClassesConfig they come from.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from .classes_config import ClassesConfig
from .errors import ConsistencyError

T = TypeVar("T")
U = TypeVar("U")

ClassPath = Tuple[int, ...]


@dataclass(frozen=True)
class LevelTree(Generic[T]):
    item: T
    sub_levels: Dict[int, Optional["LevelTree[T]"]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        config: ClassesConfig,
        factory: Callable[[ClassesConfig, int, ClassPath], T],
        level: int = 0,
        path: ClassPath = (),
    ) -> "LevelTree[T]":
        """
        Build a tree mirroring the given classes configuration.

        factory: called with (config, level, path) of each node, returns its item
        """
        return cls(
            item=factory(config, level, path),
            sub_levels={
                class_index: cls.build(sub, factory, level=level + 1, path=path + (class_index,))
                if sub is not None else None
                for class_index, sub in config.classes.items()
            },
        )

    def map(self, fn: Callable[[T], U]) -> "LevelTree[U]":
        return LevelTree(
            item=fn(self.item),
            sub_levels={
                class_index: sub.map(fn) if sub is not None else None
                for class_index, sub in self.sub_levels.items()
            },
        )

    def items(self) -> Iterator[T]:
        """Items in pre-order, sub-levels sorted by class index."""
        yield self.item
        for _, sub in sorted(self.sub_levels.items()):
            if sub is not None:
                yield from sub.items()

    def sub_level(self, class_index: int) -> "LevelTree[T]":
        sub = self.sub_levels.get(class_index)

        if sub is None:
            raise ConsistencyError(f"No sub-level for class {class_index} at this level.")

        return sub

    def find(self, path) -> Optional["LevelTree[T]"]:
        """The node reached following the given class path, None if it leads to a leaf."""
        node = self
        for depth, class_index in enumerate(path):
            if node is None or class_index not in node.sub_levels:
                raise ConsistencyError(f"Class path {list(path)} not defined at level {depth}.")
            node = node.sub_levels[class_index]

        return node

    @property
    def depth(self) -> int:
        return 1 + max((sub.depth for sub in self.sub_levels.values() if sub is not None), default=0)

    def __len__(self):
        return sum(1 for _ in self.items())
