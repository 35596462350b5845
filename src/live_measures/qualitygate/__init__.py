"""Quality gate evaluation against live measures."""

from .computer import QualityGateComputer
from .details import EvaluatedCondition, QualityGateDetails
from .evaluator import ConditionEvaluator, Operator

__all__ = [
    "ConditionEvaluator",
    "EvaluatedCondition",
    "Operator",
    "QualityGateComputer",
    "QualityGateDetails",
]
