"""MeasureMatrix: the (component x metric) grid of measures touched by one refresh.

Cells are created lazily. A cell loaded from the store starts untouched and
only becomes touched when a write actually changes it, so ``get_touched()``
returns exactly the rows that have to be written back.
"""

from __future__ import annotations

import math
from typing import Iterable, Iterator, Optional, Sequence, Union

from ..exceptions import DuplicateMeasureError, UnknownComponentError, UnknownMetricError
from ..models import Component, LiveMeasure, Metric, Rating


def same_double(a: Optional[float], b: Optional[float]) -> bool:
    """Total-order equality on optional doubles: NaN equals NaN, 0.0 differs from -0.0."""
    if a is None or b is None:
        return a is None and b is None
    if math.isnan(a) or math.isnan(b):
        return math.isnan(a) and math.isnan(b)
    return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)


class _Cell:
    __slots__ = ("measure", "touched")

    def __init__(self, measure: LiveMeasure, touched: bool) -> None:
        self.measure = measure
        self.touched = touched


class MeasureMatrix:
    """Sparse grid of draft live measures for one ancestor chain.

    Args:
        bottom_up_components: The refreshed component first, then each
            ancestor up to the project.
        metrics: Metrics that may be written. Writing any other key is an
            invariant violation.
    """

    def __init__(self, bottom_up_components: Sequence[Component], metrics: Iterable[Metric]) -> None:
        self._components = list(bottom_up_components)
        self._components_by_uuid = {c.uuid: c for c in self._components}
        self._metrics_by_key: dict[str, Metric] = {}
        self._metrics_by_id: dict[int, Metric] = {}
        for metric in metrics:
            self._metrics_by_key[metric.key] = metric
            self._metrics_by_id[metric.id] = metric
        # component uuid -> metric key -> cell
        self._table: dict[str, dict[str, _Cell]] = {c.uuid: {} for c in self._components}

    def init(self, db_measures: Iterable[LiveMeasure]) -> None:
        """Place measures loaded from the store as untouched cells."""
        for measure in db_measures:
            metric = self._metrics_by_id.get(measure.metric_id)
            if metric is None:
                raise UnknownMetricError(str(measure.metric_id))
            row = self._table.get(measure.component_uuid)
            if row is None:
                raise UnknownComponentError(measure.component_uuid)
            if metric.key in row:
                raise DuplicateMeasureError(measure.component_uuid, metric.key)
            row[metric.key] = _Cell(measure, touched=False)

    # ── traversal ─────────────────────────────────────────────────

    def get_bottom_up_components(self) -> Iterator[Component]:
        return iter(self._components)

    def get_project(self) -> Component:
        return self._components[-1]

    def get_metric(self, metric_key: str) -> Metric:
        metric = self._metrics_by_key.get(metric_key)
        if metric is None:
            raise UnknownMetricError(metric_key)
        return metric

    def get_measure(self, component: Component, metric_key: str) -> Optional[LiveMeasure]:
        self.get_metric(metric_key)
        cell = self._table.get(component.uuid, {}).get(metric_key)
        return cell.measure if cell is not None else None

    # ── writes ────────────────────────────────────────────────────

    def set_value(
        self, component: Component, metric_key: str, value: Union[float, int, str, Rating]
    ) -> None:
        """Write a value. Ratings set both data and value, strings set data only.

        A numeric write on a cell that already has a value and a variation
        keeps the leak-period baseline: the variation moves by the same delta
        as the value.
        """
        if isinstance(value, Rating):
            self._set_rating(component, metric_key, value)
        elif isinstance(value, str):
            self._set_data(component, metric_key, value)
        else:
            self._set_double(component, metric_key, float(value))

    def set_variation(self, component: Component, metric_key: str, variation: Union[float, int, Rating]) -> None:
        if isinstance(variation, Rating):
            variation = variation.index
        variation = float(variation)
        cell = self._cell(component, metric_key)
        if cell is not None and same_double(cell.measure.variation, variation):
            return
        self._change(component, metric_key, cell).variation = variation

    def _set_double(self, component: Component, metric_key: str, value: float) -> None:
        cell = self._cell(component, metric_key)
        if cell is not None and same_double(cell.measure.value, value):
            return
        measure = self._change(component, metric_key, cell)
        if measure.value is not None and measure.variation is not None:
            measure.variation = value - (measure.value - measure.variation)
        measure.value = value

    def _set_data(self, component: Component, metric_key: str, data: str) -> None:
        cell = self._cell(component, metric_key)
        if cell is not None and cell.measure.data == data:
            return
        self._change(component, metric_key, cell).data = data

    def _set_rating(self, component: Component, metric_key: str, rating: Rating) -> None:
        cell = self._cell(component, metric_key)
        index = float(rating.index)
        if (
            cell is not None
            and cell.measure.data == rating.name
            and same_double(cell.measure.value, index)
        ):
            return
        measure = self._change(component, metric_key, cell)
        measure.data = rating.name
        measure.value = index

    def _cell(self, component: Component, metric_key: str) -> Optional[_Cell]:
        self.get_metric(metric_key)
        row = self._table.get(component.uuid)
        if row is None:
            raise UnknownComponentError(component.uuid)
        return row.get(metric_key)

    def _change(self, component: Component, metric_key: str, cell: Optional[_Cell]) -> LiveMeasure:
        """Mark ``cell`` touched, materialising it first if needed."""
        if cell is None:
            measure = LiveMeasure(
                component_uuid=component.uuid,
                project_uuid=component.project_uuid,
                metric_id=self._metrics_by_key[metric_key].id,
            )
            cell = _Cell(measure, touched=True)
            self._table[component.uuid][metric_key] = cell
        else:
            cell.touched = True
        return cell.measure

    # ── results ───────────────────────────────────────────────────

    def get_touched(self) -> list[LiveMeasure]:
        return [
            cell.measure
            for row in self._table.values()
            for cell in row.values()
            if cell.touched
        ]

    def get_touched_of(self, component: Component) -> list[LiveMeasure]:
        return [cell.measure for cell in self._table.get(component.uuid, {}).values() if cell.touched]
