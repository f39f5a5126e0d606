class HANClassifierError(Exception):
    """Base class of the errors raised by hanclassifier."""


class ConfigurationError(HANClassifierError, ValueError):
    """Invalid dataset, corpus or labels configuration. Never recoverable."""


class ConsistencyError(HANClassifierError, RuntimeError):
    """A model, classes hierarchy or labels configuration that do not match each other."""
