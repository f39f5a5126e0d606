from typing import Dict, Iterable, List, Optional, Sequence

from .classes_config import ClassesConfig


def _build_paths_tree(label_paths: Iterable[Sequence[int]]) -> Dict[int, dict]:
    tree: Dict[int, dict] = {}

    for path in label_paths:
        level = tree
        for class_index in path:
            level = level.setdefault(class_index, {})

    return tree


def _to_classes_config(level: Dict[int, dict], auto_complete: bool) -> Optional[ClassesConfig]:
    if not level:
        return None

    if auto_complete:
        indices = range(max(level) + 1)
        return ClassesConfig(classes={
            i: _to_classes_config(level[i], auto_complete=True) if i in level else None
            for i in indices
        })

    return ClassesConfig(classes={
        i: _to_classes_config(sub, auto_complete=False) for i, sub in sorted(level.items())
    })


def build_classes_config_from_paths(label_paths, auto_complete=False) -> ClassesConfig:
    """
    Build the minimal classes hierarchy containing all the given label paths.

    label_paths: class indices per example, from the top level
    auto_complete: fill each level with the missing classes 0..max, as leaves
    """
    tree = _build_paths_tree(label_paths)

    return _to_classes_config(tree, auto_complete=auto_complete) or ClassesConfig()


def argmax_index(distribution) -> int:
    """Index of the first maximum of a distribution."""
    return int(distribution.argmax().item())


def path_to_string(indices: List[int], separator: str = "-") -> str:
    return separator.join(str(i) for i in indices)


def predicted_path(predictions) -> List[int]:
    """
    Class indices of the distributions of a classification, from the top
    level, without the 'stop' prediction of a sub-level (its last index).
    """
    return [
        argmax_index(p) for level, p in enumerate(predictions)
        if level == 0 or argmax_index(p) != len(p) - 1
    ]


def reduce_sentences(sentences: List[List[str]], min_tokens: int = 5, max_long_sentences: int = 2) -> List[List[str]]:
    """
    Keep the leading sentences of a document until it reaches more than
    max_long_sentences sentences with at least min_tokens tokens.
    """
    reduced = []
    long_sentences = 0

    for sentence in sentences:
        if len(sentence) >= min_tokens:
            long_sentences += 1
        if long_sentences > max_long_sentences:
            break
        reduced.append(sentence)

    return reduced
