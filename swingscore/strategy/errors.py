"""Error types raised by the analysis pipeline."""


class InsufficientDataError(ValueError):
    """The bar series is shorter than an indicator's minimum window."""


class ComputationError(RuntimeError):
    """An unexpected failure while computing indicators, patterns or scores."""
