"""MatrixLoader: materialises the MeasureMatrix of one refresh."""

from __future__ import annotations

from typing import Collection

from ..metrics import CORE_METRIC_KEYS
from ..models import Component
from ..persistence.store import DataStore
from .matrix import MeasureMatrix


class MatrixLoader:
    """Loads the ancestor chain, the metric catalogue and the existing measures.

    Args:
        extra_metric_keys: Keys loaded on every refresh on top of the core
            catalogue.
    """

    def __init__(self, extra_metric_keys: Collection[str] = ()) -> None:
        self.extra_metric_keys = tuple(extra_metric_keys)

    def load(
        self,
        session: DataStore,
        component: Component,
        metric_keys: Collection[str] = (),
    ) -> MeasureMatrix:
        keys = list(dict.fromkeys((*CORE_METRIC_KEYS, *self.extra_metric_keys, *metric_keys)))
        metrics = session.select_metrics_by_keys(keys)

        bottom_up_components = [component]
        bottom_up_components.extend(session.select_ancestors(component))

        matrix = MeasureMatrix(bottom_up_components, metrics)
        db_measures = session.select_live_measures(
            [c.uuid for c in bottom_up_components], [m.id for m in metrics]
        )
        matrix.init(db_measures)
        return matrix
