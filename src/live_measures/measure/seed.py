"""Replace a project's live measures with the measures of a finished analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..exceptions import UnknownMetricError
from ..logging_config import get_logger
from ..metrics import NOT_PERSISTED_ON_FILES
from ..models import Component, ComponentType, LiveMeasure
from ..persistence.store import DataStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisMeasure:
    """Measure computed by the analysis pipeline for one (component, metric)."""

    value: Optional[float] = None
    data: Optional[str] = None
    variation: Optional[float] = None

    def is_empty(self) -> bool:
        return self.value is None and self.variation is None and self.data is None


def persist_analysis_measures(
    session: DataStore,
    project: Component,
    measures_by_component: Mapping[Component, Mapping[str, AnalysisMeasure]],
) -> int:
    """Delete every live measure of ``project`` and insert the analysis measures.

    Empty measures are skipped, as are distribution metrics on files. The
    replacement is committed as one transaction.

    Returns:
        Number of inserted live measures.
    """
    keys = {key for measures in measures_by_component.values() for key in measures}
    metrics = {m.key: m for m in session.select_metrics_by_keys(keys)} if keys else {}

    inserted = 0
    try:
        session.delete_live_measures_by_project(project.uuid)
        for component, measures in measures_by_component.items():
            for key, measure in measures.items():
                if measure.is_empty():
                    continue
                if key in NOT_PERSISTED_ON_FILES and component.type is ComponentType.FILE:
                    continue
                metric = metrics.get(key)
                if metric is None:
                    raise UnknownMetricError(key)
                session.insert_live_measure(
                    LiveMeasure(
                        component_uuid=component.uuid,
                        project_uuid=project.uuid,
                        metric_id=metric.id,
                        value=measure.value,
                        data=measure.data,
                        variation=measure.variation,
                    )
                )
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.debug("Persisted %d live measures for project %s", inserted, project.uuid)
    return inserted
