"""Exception hierarchy for Live Measures."""

from .base import LiveMeasuresError
from .config import ConfigurationError, InvalidConfigError
from .invariants import (
    DuplicateMeasureError,
    InvariantViolationError,
    MeasureAlreadyPersistedError,
    ThresholdParseError,
    UnknownComponentError,
    UnknownMetricError,
    UnsupportedConditionError,
    UnsupportedOperatorError,
)
from .store import DataStoreError

__all__ = [
    "LiveMeasuresError",
    "DataStoreError",
    "InvariantViolationError",
    "UnknownMetricError",
    "UnknownComponentError",
    "DuplicateMeasureError",
    "MeasureAlreadyPersistedError",
    "UnsupportedOperatorError",
    "UnsupportedConditionError",
    "ThresholdParseError",
    "ConfigurationError",
    "InvalidConfigError",
]
