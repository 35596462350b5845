"""IssueCounter: answers per-component issue questions from a set of IssueGroups.

The groups of one subtree are laid out once as parallel numpy columns; every
question is then a boolean mask followed by a sum (or a max over severity
ordinals). The counter never mutates its groups and never raises.

``only_in_leak`` restricts any question to groups created inside the leak
period.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from ..models import IssueGroup, RuleType, Severity


class IssueCounter:
    """Pure fold over the IssueGroups of one component subtree."""

    def __init__(self, groups: Iterable[IssueGroup]) -> None:
        groups = list(groups)
        self._rule_types = np.array([g.rule_type.value for g in groups], dtype=np.int64)
        self._severities = np.array([g.severity.ordinal for g in groups], dtype=np.int64)
        self._resolutions = np.array([g.resolution for g in groups], dtype=object)
        self._statuses = np.array([g.status for g in groups], dtype=object)
        self._unresolved = np.array([g.resolution is None for g in groups], dtype=bool)
        self._in_leak = np.array([g.in_leak for g in groups], dtype=bool)
        self._counts = np.array([g.count for g in groups], dtype=np.int64)
        self._efforts = np.array([g.effort for g in groups], dtype=np.float64)

    def __len__(self) -> int:
        return len(self._counts)

    # ── masks ─────────────────────────────────────────────────────

    def _scope(self, only_in_leak: bool) -> np.ndarray:
        if only_in_leak:
            return self._in_leak.copy()
        return np.ones(len(self._counts), dtype=bool)

    def _unresolved_of_type(self, rule_type: RuleType, only_in_leak: bool) -> np.ndarray:
        return self._scope(only_in_leak) & self._unresolved & (self._rule_types == rule_type.value)

    def _sum_counts(self, mask: np.ndarray) -> int:
        return int(self._counts[mask].sum())

    # ── questions ─────────────────────────────────────────────────

    def count_unresolved(self, only_in_leak: bool = False) -> int:
        return self._sum_counts(self._scope(only_in_leak) & self._unresolved)

    def count_unresolved_by_type(self, rule_type: RuleType, only_in_leak: bool = False) -> int:
        return self._sum_counts(self._unresolved_of_type(rule_type, only_in_leak))

    def count_unresolved_by_severity(self, severity: Severity, only_in_leak: bool = False) -> int:
        mask = self._scope(only_in_leak) & self._unresolved & (self._severities == severity.ordinal)
        return self._sum_counts(mask)

    def count_by_resolution(self, resolution: Optional[str], only_in_leak: bool = False) -> int:
        """Count issues whose resolution equals ``resolution``. ``None`` counts unresolved."""
        if resolution is None:
            return self.count_unresolved(only_in_leak)
        mask = self._scope(only_in_leak) & (self._resolutions == resolution)
        return self._sum_counts(mask)

    def count_by_status(self, status: str, only_in_leak: bool = False) -> int:
        mask = self._scope(only_in_leak) & (self._statuses == status)
        return self._sum_counts(mask)

    def effort_of_unresolved(self, rule_type: RuleType, only_in_leak: bool = False) -> float:
        mask = self._unresolved_of_type(rule_type, only_in_leak)
        return float(self._efforts[mask].sum())

    def get_max_severity_of_unresolved(
        self, rule_type: RuleType, only_in_leak: bool = False
    ) -> Optional[Severity]:
        """Highest severity among unresolved issues of ``rule_type``, or None if there are none."""
        mask = self._unresolved_of_type(rule_type, only_in_leak)
        if not mask.any():
            return None
        return Severity.from_ordinal(int(self._severities[mask].max()))
