from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ClassesConfig:
    """
    The hierarchy of classes that can be predicted.

    classes: map of class indices to the configuration of their sub-level,
             None if the class is a leaf.
    """

    classes: Dict[int, Optional["ClassesConfig"]] = field(default_factory=dict)

    def __len__(self):
        return len(self.classes)

    @property
    def is_empty(self) -> bool:
        return not self.classes

    @property
    def depth(self) -> int:
        """Number of levels of the hierarchy, 0 for an empty configuration."""
        if not self.classes:
            return 0

        return 1 + max(sub.depth if sub is not None else 0 for sub in self.classes.values())

    def is_complete(self) -> bool:
        """
        Whether the class indices of every level form the sequence 0..n-1.
        """
        if sorted(self.classes) != list(range(len(self.classes))):
            return False

        return all(sub.is_complete() for sub in self.classes.values() if sub is not None)

    def is_compatible(self, other: "ClassesConfig") -> bool:
        """
        Whether all the classes of this configuration, with their sub-levels,
        are defined in the other one.
        """
        for class_index, sub_level in self.classes.items():
            if class_index not in other.classes:
                return False

            other_sub_level = other.classes[class_index]

            if sub_level is None:
                if other_sub_level is not None:
                    return False
            elif other_sub_level is None or not sub_level.is_compatible(other_sub_level):
                return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            str(class_index): sub.to_dict() if sub is not None else None
            for class_index, sub in sorted(self.classes.items())
        }

    @classmethod
    def from_dict(cls, data: Dict[Any, Any]) -> "ClassesConfig":
        return cls(classes={
            int(class_index): cls.from_dict(sub) if sub is not None else None
            for class_index, sub in data.items()
        })
