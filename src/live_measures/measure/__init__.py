"""Live measure computation: issue fold, measure matrix and refresh orchestration."""

from .computer import LiveMeasureComputer, RefreshResult
from .issue_counter import IssueCounter
from .loader import MatrixLoader
from .matrix import MeasureMatrix
from .seed import AnalysisMeasure, persist_analysis_measures

__all__ = [
    "AnalysisMeasure",
    "IssueCounter",
    "LiveMeasureComputer",
    "MatrixLoader",
    "MeasureMatrix",
    "RefreshResult",
    "persist_analysis_measures",
]
