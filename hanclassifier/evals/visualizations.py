import matplotlib.pyplot as plt
import seaborn as sns


def plot_confusion_matrix(confusion_matrix, title="Level 0 Confusion Matrix", path=None):
    """
    Draw the heat-map of a ConfusionMatrix, saving it to path if given.

    Returns the matplotlib figure.
    """
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(
        confusion_matrix.matrix,
        annot=True,
        fmt="d",
        xticklabels=confusion_matrix.labels,
        yticklabels=confusion_matrix.labels,
        cmap="Blues",
        ax=ax,
    )
    ax.set_xlabel("Predicted")
    ax.set_ylabel("True")
    ax.set_title(title)
    fig.tight_layout()

    if path is not None:
        fig.savefig(path)

    return fig


def plot_level_scores(validation_info, title="F1 Score per Level", path=None):
    df = validation_info.to_dataframe()

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.bar([f"Level {i}" for i in df.index], df["f1_score"])
    ax.set_ylim(0.0, 1.0)
    ax.set_ylabel("F1 Score")
    ax.set_title(title)
    ax.grid(True, axis="y")
    fig.tight_layout()

    if path is not None:
        fig.savefig(path)

    return fig
