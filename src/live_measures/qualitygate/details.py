"""JSON codec of the ``quality_gate_details`` measure.

Shape::

    {"level": "ERROR",
     "conditions": [{"metric": "bugs", "op": "GT", "warning": "1", "error": "2",
                     "actual": "3", "level": "ERROR"}],
     "ignoredConditions": false}

``warning``/``error`` are omitted for empty thresholds, ``actual`` when no
value could be compared, ``period`` for conditions on overall code.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from ..models import Level


@dataclass(frozen=True)
class EvaluatedCondition:
    metric_key: str
    operator: str
    level: Level
    warning_threshold: Optional[str] = None
    error_threshold: Optional[str] = None
    actual: Optional[object] = None
    period: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"metric": self.metric_key, "op": self.operator}
        if self.period is not None:
            result["period"] = self.period
        if self.warning_threshold:
            result["warning"] = self.warning_threshold
        if self.error_threshold:
            result["error"] = self.error_threshold
        actual = format_actual(self.actual)
        if actual is not None:
            result["actual"] = actual
        result["level"] = self.level.value
        return result


@dataclass(frozen=True)
class QualityGateDetails:
    level: Level
    conditions: list[EvaluatedCondition] = field(default_factory=list)
    ignored_conditions: bool = False

    def to_json(self) -> str:
        return json.dumps(
            {
                "level": self.level.value,
                "conditions": [c.to_dict() for c in self.conditions],
                "ignoredConditions": self.ignored_conditions,
            }
        )

    @classmethod
    def from_json(cls, data: str) -> "QualityGateDetails":
        raw = json.loads(data)
        conditions = [
            EvaluatedCondition(
                metric_key=c["metric"],
                operator=c["op"],
                level=Level(c["level"]),
                warning_threshold=c.get("warning"),
                error_threshold=c.get("error"),
                actual=c.get("actual"),
                period=c.get("period"),
            )
            for c in raw.get("conditions", [])
        ]
        return cls(
            level=Level(raw["level"]),
            conditions=conditions,
            ignored_conditions=bool(raw.get("ignoredConditions", False)),
        )


def format_actual(value: Optional[object]) -> Optional[str]:
    """Render a compared value as text. Integral floats drop their fraction."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)
