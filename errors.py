class AnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""


class InsufficientSampleError(AnalyticsError, ValueError):
    """Too few valid body-weight values to compute sample statistics.

    Recoverable: callers surface it as a validation warning ("enter at least
    two valid weights") instead of a crash.
    """

    def __init__(self, valid_count, minimum=2):
        self.valid_count = valid_count
        self.minimum = minimum
        super().__init__(
            f"At least {minimum} valid body weight values are required, got {valid_count}"
        )


class UnknownMetricError(AnalyticsError, KeyError):
    def __init__(self, metric):
        self.metric = metric
        super().__init__(metric)

    def __str__(self):
        return f"Unknown metric: {self.metric}"
