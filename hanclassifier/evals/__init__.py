from .validator import ConfusionMatrix, MetricCounter, ValidationInfo, Validator
from .visualizations import plot_confusion_matrix, plot_level_scores

__all__ = [
    "ConfusionMatrix",
    "MetricCounter",
    "ValidationInfo",
    "Validator",
    "plot_confusion_matrix",
    "plot_level_scores",
]
