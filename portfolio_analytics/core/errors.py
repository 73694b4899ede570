"""
Typed errors for caller contract violations.

Data-quality conditions (missing counters, zero denominators, thin baselines)
never raise; they surface as ``None`` fields. The errors below signal a bug in
the caller and must not be swallowed.
"""


class AnalyticsError(ValueError):
    """Base class for structural errors raised by the analytics engine."""


class MalformedHeatmapError(AnalyticsError):
    """
    Raised when sparse heatmap arrays are structurally invalid.

    Covers non-positive grid dimensions, parallel arrays of different
    lengths, and linear indexes outside ``[0, rows * columns)``.
    """


class InvalidWindowError(AnalyticsError):
    """Raised when a baseline window of zero or fewer days is requested."""

    def __init__(self, window_days: int) -> None:
        self.window_days = window_days
        super().__init__(f"windowDays must be positive, got {window_days}")
