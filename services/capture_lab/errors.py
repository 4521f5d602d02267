"""Engine error types."""


class InsufficientDataError(ValueError):
    """
    Raised when there is nothing to analyse: the price and PV series share no
    timestamp, or the KPI calculator received an empty series.

    Terminal for the run; never retried inside the engine.
    """

    def __init__(self, message: str = "No data available for computation"):
        super().__init__(message)
