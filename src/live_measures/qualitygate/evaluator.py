"""ConditionEvaluator: compares one live measure against one gate condition.

The ERROR threshold is checked first, then WARN; a condition that reaches
neither is OK. Every metric value type is handled explicitly here, and a type
that cannot be compared is an invariant violation rather than a silent OK.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from ..exceptions import ThresholdParseError, UnsupportedConditionError, UnsupportedOperatorError
from ..models import EvaluationResult, Level, LiveMeasure, Metric, MetricType, QualityGateCondition

Comparable = Union[bool, int, float, str]


class Operator(Enum):
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    LT = "LT"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def parse(cls, operator: str) -> "Operator":
        try:
            return cls(operator)
        except ValueError:
            raise UnsupportedOperatorError(operator)

    def matches(self, measure_value: Comparable, threshold: Comparable) -> bool:
        """True iff ``measure_value <op> threshold``."""
        if self is Operator.EQ:
            return measure_value == threshold
        if self is Operator.NE:
            return measure_value != threshold
        if self is Operator.GT:
            return measure_value > threshold  # type: ignore[operator]
        return measure_value < threshold  # type: ignore[operator]


_SYMBOLS = {Operator.EQ: "=", Operator.NE: "!=", Operator.GT: ">", Operator.LT: "<"}


class ConditionEvaluator:
    """Stateless evaluator of quality gate conditions."""

    def evaluate(
        self, metric: Metric, condition: QualityGateCondition, measure: Optional[LiveMeasure]
    ) -> EvaluationResult:
        _check_supported(metric)
        operator = Operator.parse(condition.operator)

        value = self._measure_value(metric, condition, measure)
        if value is None:
            return EvaluationResult(Level.OK, None)

        for level, threshold in (
            (Level.ERROR, condition.error_threshold),
            (Level.WARN, condition.warning_threshold),
        ):
            if not threshold:
                continue
            if operator.matches(value, _parse_threshold(metric, threshold)):
                return EvaluationResult(level, value)
        return EvaluationResult(Level.OK, value)

    @staticmethod
    def breached_threshold(condition: QualityGateCondition, level: Level) -> Optional[str]:
        """Threshold that produced ``level``, or None for OK."""
        if level is Level.ERROR:
            return condition.error_threshold
        if level is Level.WARN:
            return condition.warning_threshold
        return None

    def comparable_value(
        self, metric: Metric, condition: QualityGateCondition, measure: Optional[LiveMeasure]
    ) -> Optional[Comparable]:
        """Value of ``measure`` as compared against ``condition``, without checking thresholds."""
        _check_supported(metric)
        return self._measure_value(metric, condition, measure)

    # ── value extraction ──────────────────────────────────────────

    def _measure_value(
        self, metric: Metric, condition: QualityGateCondition, measure: Optional[LiveMeasure]
    ) -> Optional[Comparable]:
        if measure is None:
            return None
        if condition.period is not None:
            return self._variation_value(metric, measure)

        value_type = metric.value_type
        if value_type in (MetricType.STRING, MetricType.LEVEL):
            return measure.data
        if value_type is MetricType.NO_VALUE:
            raise UnsupportedConditionError(metric.key, value_type.value)
        if measure.value is None:
            return None
        return _coerce(value_type, measure.value)

    def _variation_value(self, metric: Metric, measure: LiveMeasure) -> Optional[Comparable]:
        if measure.variation is None:
            return None
        value_type = metric.value_type
        if value_type in (MetricType.NO_VALUE, MetricType.STRING, MetricType.LEVEL):
            raise UnsupportedConditionError(
                metric.key,
                value_type.value,
                f"Period conditions are not supported for metric type {value_type.value}",
            )
        return _coerce(value_type, measure.variation)


def _check_supported(metric: Metric) -> None:
    if metric.value_type is MetricType.DATA:
        raise UnsupportedConditionError(
            metric.key, metric.value_type.value, "Conditions on MetricType DATA are not supported"
        )


def _coerce(value_type: MetricType, value: float) -> Comparable:
    if value_type is MetricType.BOOLEAN:
        return value == 1
    if value_type in (MetricType.INT, MetricType.LONG):
        return int(value)
    return float(value)


def _parse_threshold(metric: Metric, threshold: str) -> Comparable:
    value_type = metric.value_type
    try:
        if value_type is MetricType.BOOLEAN:
            return int(threshold) == 1
        if value_type is MetricType.INT:
            # "10.0" is accepted for INT metrics and truncated
            return int(threshold.split(".", 1)[0]) if "." in threshold else int(threshold)
        if value_type is MetricType.LONG:
            return int(threshold)
        if value_type is MetricType.DOUBLE:
            return float(threshold)
    except ValueError:
        raise ThresholdParseError(metric.key, threshold)
    if value_type in (MetricType.STRING, MetricType.LEVEL):
        return threshold
    raise UnsupportedConditionError(
        metric.key,
        value_type.value,
        f"Unsupported value type {value_type.value}. Can not convert condition value",
    )
