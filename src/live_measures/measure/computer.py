"""LiveMeasureComputer: refreshes issue-derived measures of a component and its ancestors.

One refresh:

1. resolves the project's last analysis (none: the project is gone, stop),
2. loads the MeasureMatrix of the ancestor chain,
3. folds the IssueGroups of each subtree, leaf first, into the matrix,
   writing the overall value of every metric and, when a leak period exists,
   the new-code value into the variation slot of its ``new_*`` counterpart,
4. writes back touched cells only,
5. re-evaluates the project's quality gate,
6. commits once. Any failure rolls the whole refresh back.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..config import LiveMeasuresConfig
from ..logging_config import get_logger
from ..metrics import (
    EFFORT_BY_TYPE,
    ISSUES_BY_RESOLUTION,
    ISSUES_BY_SEVERITY,
    ISSUES_BY_STATUS,
    ISSUES_BY_TYPE,
    NEW_VIOLATIONS,
    RATING_BY_TYPE,
    VIOLATIONS,
)
from ..models import Component, Level, LiveMeasure, Rating, Severity
from ..persistence.store import DataStore
from ..qualitygate.computer import QualityGateComputer
from ..qualitygate.details import QualityGateDetails
from .issue_counter import IssueCounter
from .loader import MatrixLoader
from .matrix import MeasureMatrix

logger = get_logger(__name__)


@dataclass
class RefreshResult:
    """What one refresh changed."""

    project: Component
    touched: list[LiveMeasure] = field(default_factory=list)
    quality_gate: Optional[QualityGateDetails] = None

    @property
    def alert_status(self) -> Level:
        """The project's gate level; OK when the project has no gate."""
        return self.quality_gate.level if self.quality_gate is not None else Level.OK


class LiveMeasureComputer:
    """Entry point of live measure recomputation.

    Args:
        config: Supplies the severity -> rating policy and extra metric keys.
        loader: Builds the matrix of a refresh.
        quality_gate_computer: Re-evaluates the project's gate.
    """

    def __init__(
        self,
        config: Optional[LiveMeasuresConfig] = None,
        loader: Optional[MatrixLoader] = None,
        quality_gate_computer: Optional[QualityGateComputer] = None,
    ) -> None:
        self.config = config or LiveMeasuresConfig()
        self.loader = loader or MatrixLoader(self.config.extra_metric_keys)
        self.quality_gate_computer = quality_gate_computer or QualityGateComputer()
        self.rating_by_severity: Mapping[Severity, Rating] = self.config.rating_by_severity

    def refresh(self, session: DataStore, component: Component) -> Optional[RefreshResult]:
        """Recompute the measures of ``component`` and all of its ancestors.

        Returns:
            The refresh outcome, or None when the project has no analysis
            (deleted concurrently). Nothing is written in that case.
        """
        start = time.perf_counter()
        try:
            result = self._refresh(session, component)
            if result is not None:
                session.commit()
        except Exception:
            session.rollback()
            raise

        if result is not None:
            logger.debug(
                "Refreshed %s: %d measures touched, gate %s in %.1fms",
                component.uuid,
                len(result.touched),
                result.alert_status.value,
                (time.perf_counter() - start) * 1000,
            )
        return result

    def _refresh(self, session: DataStore, component: Component) -> Optional[RefreshResult]:
        last_analysis = session.select_last_analysis(component.project_uuid)
        if last_analysis is None:
            logger.info("No analysis for project %s, skipping refresh", component.project_uuid)
            return None
        leak_start = last_analysis.period_date

        matrix = self.loader.load(session, component)
        for c in matrix.get_bottom_up_components():
            counter = IssueCounter(session.select_issue_groups(c, leak_start))
            self._write_measures(matrix, c, counter, only_in_leak=False)
            if leak_start is not None:
                self._write_measures(matrix, c, counter, only_in_leak=True)

        touched = matrix.get_touched()
        for measure in touched:
            session.insert_or_update_live_measure(measure)

        project = matrix.get_project()
        quality_gate = self.quality_gate_computer.recalculate(
            session, project, matrix.get_touched_of(project)
        )
        return RefreshResult(project=project, touched=touched, quality_gate=quality_gate)

    def _write_measures(
        self, matrix: MeasureMatrix, component: Component, counter: IssueCounter, only_in_leak: bool
    ) -> None:
        """Write every derived metric of ``component``.

        Overall values go through ``set_value`` on the plain key; new-code
        values through ``set_variation`` on the ``new_*`` key.
        """

        def write(current_key: str, new_key: str, value) -> None:
            if only_in_leak:
                matrix.set_variation(component, new_key, value)
            else:
                matrix.set_value(component, current_key, value)

        write(VIOLATIONS, NEW_VIOLATIONS, counter.count_unresolved(only_in_leak))

        for current_key, new_key, rule_type in ISSUES_BY_TYPE:
            write(current_key, new_key, counter.count_unresolved_by_type(rule_type, only_in_leak))

        for current_key, new_key, severity in ISSUES_BY_SEVERITY:
            write(current_key, new_key, counter.count_unresolved_by_severity(severity, only_in_leak))

        for current_key, new_key, resolution in ISSUES_BY_RESOLUTION:
            write(current_key, new_key, counter.count_by_resolution(resolution, only_in_leak))

        for current_key, new_key, status in ISSUES_BY_STATUS:
            write(current_key, new_key, counter.count_by_status(status, only_in_leak))

        for current_key, new_key, rule_type in EFFORT_BY_TYPE:
            write(current_key, new_key, counter.effort_of_unresolved(rule_type, only_in_leak))

        for current_key, new_key, rule_type in RATING_BY_TYPE:
            severity = counter.get_max_severity_of_unresolved(rule_type, only_in_leak)
            write(current_key, new_key, self.rating_by_severity[severity or Severity.INFO])
