"""QualityGateComputer: recomputes a project's gate status after a refresh.

Only conditions whose metric was modified by the refresh are re-evaluated;
every other condition keeps the ``gate_status`` stored on its measure. A
condition whose measure has no stored status yet counts as OK.
"""

from __future__ import annotations

from typing import Collection, Optional

from ..exceptions import DuplicateMeasureError, UnknownMetricError
from ..logging_config import get_logger
from ..metrics import ALERT_STATUS, QUALITY_GATE_DETAILS
from ..models import Component, Level, LiveMeasure, Metric, QualityGateCondition
from ..persistence.store import DataStore
from .details import EvaluatedCondition, QualityGateDetails
from .evaluator import ConditionEvaluator, Operator

logger = get_logger(__name__)


class QualityGateComputer:
    def __init__(self, evaluator: Optional[ConditionEvaluator] = None) -> None:
        self.evaluator = evaluator or ConditionEvaluator()

    def recalculate(
        self,
        session: DataStore,
        project: Component,
        modified_measures: Collection[LiveMeasure],
    ) -> Optional[QualityGateDetails]:
        """Re-evaluate the project's gate and upsert ``alert_status`` and ``quality_gate_details``.

        Args:
            session: Store session of the running refresh. Nothing is committed here.
            project: Root component of the refreshed tree.
            modified_measures: Measures written by the refresh. Only those on
                ``project`` take part.

        Returns:
            The evaluated gate, or None when the project has no gate.
        """
        gate = session.select_quality_gate_for_project(project.uuid)
        if gate is None:
            logger.debug("Project %s has no quality gate", project.uuid)
            return None

        conditions = session.select_conditions_for_gate(gate.id)
        status_metrics = _index_by_key(
            session.select_metrics_by_keys([ALERT_STATUS, QUALITY_GATE_DETAILS]),
            (ALERT_STATUS, QUALITY_GATE_DETAILS),
        )
        metrics_by_id = {
            m.id: m for m in session.select_metrics_by_ids({c.metric_id for c in conditions})
        }

        modified: dict[int, LiveMeasure] = {}
        for measure in modified_measures:
            if measure.component_uuid != project.uuid:
                continue
            if measure.metric_id in modified:
                raise DuplicateMeasureError(project.uuid, str(measure.metric_id))
            modified[measure.metric_id] = measure

        untouched_ids = {c.metric_id for c in conditions} - modified.keys()
        stored = {
            m.metric_id: m
            for m in session.select_live_measures(
                [project.uuid],
                untouched_ids
                | {status_metrics[ALERT_STATUS].id, status_metrics[QUALITY_GATE_DETAILS].id},
            )
        }

        evaluated: list[EvaluatedCondition] = []
        for condition in conditions:
            metric = metrics_by_id.get(condition.metric_id)
            if metric is None:
                raise UnknownMetricError(str(condition.metric_id))
            if condition.metric_id in modified:
                evaluated.append(
                    self._reevaluate(session, metric, condition, modified[condition.metric_id])
                )
            else:
                evaluated.append(
                    self._previous(metric, condition, stored.get(condition.metric_id))
                )

        level = max((c.level for c in evaluated), default=Level.OK)
        details = QualityGateDetails(level=level, conditions=evaluated)

        _upsert_data(
            session,
            project,
            status_metrics[ALERT_STATUS],
            stored.get(status_metrics[ALERT_STATUS].id),
            level.value,
        )
        _upsert_data(
            session,
            project,
            status_metrics[QUALITY_GATE_DETAILS],
            stored.get(status_metrics[QUALITY_GATE_DETAILS].id),
            details.to_json(),
        )
        logger.debug("Quality gate of %s is %s", project.uuid, level.value)
        return details

    def _reevaluate(
        self,
        session: DataStore,
        metric: Metric,
        condition: QualityGateCondition,
        measure: LiveMeasure,
    ) -> EvaluatedCondition:
        result = self.evaluator.evaluate(metric, condition, measure)
        threshold = self.evaluator.breached_threshold(condition, result.level)
        gate_text = (
            f"{metric.key} {Operator.parse(condition.operator).symbol} {threshold}"
            if threshold
            else None
        )
        if measure.gate_status != result.level or measure.gate_text != gate_text:
            measure.gate_status = result.level
            measure.gate_text = gate_text
            session.insert_or_update_live_measure(measure)
        return _evaluated(metric, condition, result.level, result.value)

    def _previous(
        self, metric: Metric, condition: QualityGateCondition, measure: Optional[LiveMeasure]
    ) -> EvaluatedCondition:
        # same coercion as a re-evaluation, so unchanged details serialize identically
        actual = self.evaluator.comparable_value(metric, condition, measure)
        level = measure.gate_status if measure is not None and measure.gate_status else Level.OK
        return _evaluated(metric, condition, level, actual)


def _evaluated(
    metric: Metric, condition: QualityGateCondition, level: Level, actual: Optional[object]
) -> EvaluatedCondition:
    return EvaluatedCondition(
        metric_key=metric.key,
        operator=condition.operator,
        level=level,
        warning_threshold=condition.warning_threshold,
        error_threshold=condition.error_threshold,
        actual=actual,
        period=condition.period,
    )


def _index_by_key(metrics: Collection[Metric], required: Collection[str]) -> dict[str, Metric]:
    by_key = {m.key: m for m in metrics}
    for key in required:
        if key not in by_key:
            raise UnknownMetricError(key)
    return by_key


def _upsert_data(
    session: DataStore,
    project: Component,
    metric: Metric,
    measure: Optional[LiveMeasure],
    data: str,
) -> None:
    if measure is None:
        session.insert_live_measure(
            LiveMeasure(
                component_uuid=project.uuid,
                project_uuid=project.uuid,
                metric_id=metric.id,
                data=data,
            )
        )
    elif measure.data != data:
        measure.data = data
        session.update_live_measure(measure)
