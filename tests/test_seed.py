"""Tests for persisting the measures of a finished analysis."""

import pytest

from live_measures.exceptions import UnknownMetricError
from live_measures.measure.seed import AnalysisMeasure, persist_analysis_measures
from live_measures.models import LiveMeasure, MetricType
from live_measures.persistence.writer import register_metrics


@pytest.fixture
def seed_metrics(db, metrics):
    extra = register_metrics(
        db.conn,
        {
            "ncloc": MetricType.INT,
            "function_complexity_distribution": MetricType.DATA,
        },
    )
    db.conn.commit()
    return {**metrics, **extra}


class TestPersistAnalysisMeasures:
    def test_replaces_previous_measures(self, store, tree, seed_metrics):
        old = LiveMeasure(
            component_uuid=tree.file_c.uuid,
            project_uuid=tree.project.uuid,
            metric_id=seed_metrics["bugs"].id,
            value=9.0,
        )
        store.insert_live_measure(old)
        store.commit()

        inserted = persist_analysis_measures(
            store,
            tree.project,
            {
                tree.file_a: {"ncloc": AnalysisMeasure(value=120)},
                tree.project: {
                    "ncloc": AnalysisMeasure(value=300),
                    "new_bugs": AnalysisMeasure(variation=1),
                },
            },
        )

        assert inserted == 3
        persisted = {
            (m.component_uuid, m.metric_id): m
            for m in store.select_project_live_measures(tree.project.uuid)
        }
        assert set(persisted) == {
            (tree.file_a.uuid, seed_metrics["ncloc"].id),
            (tree.project.uuid, seed_metrics["ncloc"].id),
            (tree.project.uuid, seed_metrics["new_bugs"].id),
        }
        assert persisted[(tree.project.uuid, seed_metrics["new_bugs"].id)].variation == 1.0

    def test_empty_measures_are_skipped(self, store, tree, seed_metrics):
        inserted = persist_analysis_measures(
            store, tree.project, {tree.file_a: {"ncloc": AnalysisMeasure()}}
        )
        assert inserted == 0
        assert store.select_project_live_measures(tree.project.uuid) == []

    def test_distributions_are_not_stored_on_files(self, store, tree, seed_metrics):
        distribution = AnalysisMeasure(data="1=0;2=3")
        persist_analysis_measures(
            store,
            tree.project,
            {
                tree.file_a: {"function_complexity_distribution": distribution},
                tree.directory: {"function_complexity_distribution": distribution},
            },
        )
        persisted = store.select_project_live_measures(tree.project.uuid)
        assert [(m.component_uuid, m.data) for m in persisted] == [(tree.directory.uuid, "1=0;2=3")]

    def test_unknown_metric_rolls_back(self, store, tree, seed_metrics):
        store.insert_live_measure(
            LiveMeasure(
                component_uuid=tree.project.uuid,
                project_uuid=tree.project.uuid,
                metric_id=seed_metrics["ncloc"].id,
                value=10.0,
            )
        )
        store.commit()

        with pytest.raises(UnknownMetricError):
            persist_analysis_measures(
                store, tree.project, {tree.project: {"not_a_metric": AnalysisMeasure(value=1)}}
            )

        assert [m.value for m in store.select_project_live_measures(tree.project.uuid)] == [10.0]
