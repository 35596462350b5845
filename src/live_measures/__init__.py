"""
Live Measures - incremental issue-metric aggregation and quality gate status

Keeps per-component issue metrics (bugs, violations, ratings, remediation
effort, and their new-code counterparts) and the project's quality gate in
sync with the issue population, without re-running a full analysis.
"""

__version__ = "0.1.0"

from .api import configure_logging, open_session, refresh
from .config import LiveMeasuresConfig, load_config
from .measure import LiveMeasureComputer, RefreshResult
from .models import Component, ComponentType, Level, LiveMeasure, Rating, RuleType, Severity
from .qualitygate import QualityGateComputer

__all__ = [
    "refresh",  # Main entry point
    "open_session",
    "configure_logging",
    "LiveMeasureComputer",
    "QualityGateComputer",
    "RefreshResult",
    "LiveMeasuresConfig",
    "load_config",
    "Component",
    "ComponentType",
    "LiveMeasure",
    "Level",
    "Rating",
    "RuleType",
    "Severity",
]
