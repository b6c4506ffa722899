# errors.py


class InvalidTimeStep(ValueError):
    """Raised when dt or total_time is not strictly positive."""


class InvalidNoiseModel(ValueError):
    """Raised when the noise variances would make the filter degenerate."""
