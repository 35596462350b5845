"""DataStore protocol: the only surface through which the core touches storage.

A DataStore instance is a session: every write happens inside its current
transaction until ``commit()`` or ``rollback()``.
"""

from typing import Collection, Optional, Protocol

from ..models import (
    Analysis,
    Component,
    IssueGroup,
    LiveMeasure,
    Metric,
    QualityGate,
    QualityGateCondition,
)


class DataStore(Protocol):
    def select_last_analysis(self, project_uuid: str) -> Optional[Analysis]: ...

    def select_ancestors(self, component: Component) -> list[Component]:
        """Ancestors of ``component``, nearest first, project last."""
        ...

    def select_metrics_by_keys(self, keys: Collection[str]) -> list[Metric]: ...

    def select_metrics_by_ids(self, ids: Collection[int]) -> list[Metric]: ...

    def select_issue_groups(
        self, component: Component, leak_start: Optional[int]
    ) -> list[IssueGroup]:
        """Issue groups of the subtree rooted at ``component``.

        A group is ``in_leak`` when its issues were created at or after
        ``leak_start``; with no leak start nothing is in leak.
        """
        ...

    def select_live_measures(
        self, component_uuids: Collection[str], metric_ids: Collection[int]
    ) -> list[LiveMeasure]: ...

    def insert_live_measure(self, measure: LiveMeasure) -> None: ...

    def update_live_measure(self, measure: LiveMeasure) -> bool: ...

    def insert_or_update_live_measure(self, measure: LiveMeasure) -> None: ...

    def delete_live_measures_by_project(self, project_uuid: str) -> None: ...

    def select_quality_gate_for_project(self, project_uuid: str) -> Optional[QualityGate]: ...

    def select_conditions_for_gate(self, gate_id: int) -> list[QualityGateCondition]: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
