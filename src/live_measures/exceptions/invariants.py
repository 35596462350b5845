"""Invariant violations and input-shape errors raised by the core.

Invariant violations indicate a programming or data-integrity error and are
never recovered from inside a refresh.
"""

from typing import Optional

from .base import LiveMeasuresError


class InvariantViolationError(LiveMeasuresError):
    """Base class for broken invariants."""

    pass


class UnknownMetricError(InvariantViolationError):
    """Raised when writing a metric that was not loaded into the matrix."""

    def __init__(self, metric_key: str):
        super().__init__(f"Metric {metric_key} not loaded", details={"metric": metric_key})
        self.metric_key = metric_key


class DuplicateMeasureError(InvariantViolationError):
    """Raised when two live measures exist for the same (component, metric)."""

    def __init__(self, component_uuid: str, metric_key: str):
        super().__init__(
            "Duplicate live measure",
            details={"component": component_uuid, "metric": metric_key},
        )
        self.component_uuid = component_uuid
        self.metric_key = metric_key


class UnknownComponentError(InvariantViolationError):
    """Raised when a component is missing from the store or from the loaded ancestor chain."""

    def __init__(self, component_uuid: str):
        super().__init__(
            f"Component {component_uuid} is not part of the loaded ancestor chain",
            details={"component": component_uuid},
        )
        self.component_uuid = component_uuid


class MeasureAlreadyPersistedError(InvariantViolationError):
    """Raised when inserting a live measure that already has a uuid."""

    def __init__(self, uuid: str):
        super().__init__(
            "Inserting a live measure that has already a uuid", details={"uuid": uuid}
        )
        self.uuid = uuid


class UnsupportedOperatorError(InvariantViolationError):
    """Raised when a quality gate condition uses an unknown operator."""

    def __init__(self, operator: str):
        super().__init__(f"Unsupported operator '{operator}'", details={"operator": operator})
        self.operator = operator


class UnsupportedConditionError(InvariantViolationError):
    """Raised when a condition targets a metric type that cannot be evaluated."""

    def __init__(self, metric_key: str, value_type: str, reason: Optional[str] = None):
        message = reason or f"Conditions are not supported for metric type {value_type}"
        super().__init__(message, details={"metric": metric_key, "value_type": value_type})
        self.metric_key = metric_key
        self.value_type = value_type


class ThresholdParseError(LiveMeasuresError):
    """Raised when a condition threshold cannot be parsed for its metric type."""

    def __init__(self, metric_key: str, value: str):
        super().__init__(
            f"Quality Gate: Unable to parse value '{value}' to compare against {metric_key}",
            details={"metric": metric_key, "value": value},
        )
        self.metric_key = metric_key
        self.value = value
