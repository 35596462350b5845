"""Tests for MeasureMatrix."""

import math

import pytest

from live_measures.exceptions import (
    DuplicateMeasureError,
    UnknownComponentError,
    UnknownMetricError,
)
from live_measures.measure.matrix import MeasureMatrix, same_double
from live_measures.models import (
    Component,
    ComponentType,
    LiveMeasure,
    Metric,
    MetricType,
    Rating,
)

PROJECT = Component(uuid="P", project_uuid="P", type=ComponentType.PROJECT)
FILE = Component(uuid="F", project_uuid="P", uuid_path=".P.", type=ComponentType.FILE)
OTHER = Component(uuid="X", project_uuid="P", uuid_path=".P.", type=ComponentType.FILE)

BUGS = Metric(id=1, key="bugs", value_type=MetricType.INT)
NEW_BUGS = Metric(id=2, key="new_bugs", value_type=MetricType.INT)
RATING = Metric(id=3, key="reliability_rating", value_type=MetricType.INT)
LABEL = Metric(id=4, key="label", value_type=MetricType.STRING)


def measure(component, metric, **kwargs):
    return LiveMeasure(
        component_uuid=component.uuid,
        project_uuid=component.project_uuid,
        metric_id=metric.id,
        uuid=f"{component.uuid}-{metric.id}",
        **kwargs,
    )


@pytest.fixture
def matrix():
    return MeasureMatrix([FILE, PROJECT], [BUGS, NEW_BUGS, RATING, LABEL])


class TestTraversal:
    def test_bottom_up_order(self, matrix):
        assert [c.uuid for c in matrix.get_bottom_up_components()] == ["F", "P"]

    def test_project_is_last(self, matrix):
        assert matrix.get_project() is PROJECT

    def test_get_metric(self, matrix):
        assert matrix.get_metric("bugs") is BUGS
        with pytest.raises(UnknownMetricError):
            matrix.get_metric("coverage")

    def test_missing_cell_reads_none(self, matrix):
        assert matrix.get_measure(FILE, "bugs") is None


class TestInit:
    def test_loaded_measures_are_untouched(self, matrix):
        matrix.init([measure(FILE, BUGS, value=3.0)])
        assert matrix.get_measure(FILE, "bugs").value == 3.0
        assert matrix.get_touched() == []

    def test_unknown_metric_id(self, matrix):
        with pytest.raises(UnknownMetricError):
            matrix.init([LiveMeasure(component_uuid="F", project_uuid="P", metric_id=99)])

    def test_component_outside_chain(self, matrix):
        with pytest.raises(UnknownComponentError):
            matrix.init([measure(OTHER, BUGS, value=1.0)])

    def test_duplicate_measure(self, matrix):
        with pytest.raises(DuplicateMeasureError) as exc_info:
            matrix.init([measure(FILE, BUGS, value=1.0), measure(FILE, BUGS, value=2.0)])
        assert exc_info.value.metric_key == "bugs"


class TestSetValue:
    def test_new_cell_is_touched(self, matrix):
        matrix.set_value(FILE, "bugs", 2)
        touched = matrix.get_touched()
        assert len(touched) == 1
        assert touched[0].value == 2.0
        assert touched[0].uuid is None
        assert touched[0].project_uuid == "P"
        assert touched[0].metric_id == BUGS.id

    def test_repeated_write_is_a_noop(self, matrix):
        """set_value twice with the same value touches the same cells as once."""
        matrix.set_value(FILE, "bugs", 2)
        once = [(m.component_uuid, m.metric_id) for m in matrix.get_touched()]
        matrix.set_value(FILE, "bugs", 2)
        assert [(m.component_uuid, m.metric_id) for m in matrix.get_touched()] == once

    def test_same_value_as_loaded_is_not_touched(self, matrix):
        matrix.init([measure(FILE, BUGS, value=3.0)])
        matrix.set_value(FILE, "bugs", 3)
        assert matrix.get_touched() == []

    def test_different_value_touches_loaded_cell(self, matrix):
        matrix.init([measure(FILE, BUGS, value=3.0)])
        matrix.set_value(FILE, "bugs", 4)
        touched = matrix.get_touched()
        assert [m.uuid for m in touched] == ["F-1"]
        assert touched[0].value == 4.0

    def test_value_change_keeps_leak_baseline(self, matrix):
        matrix.init([measure(FILE, BUGS, value=10.0, variation=3.0)])
        matrix.set_value(FILE, "bugs", 12)
        cell = matrix.get_measure(FILE, "bugs")
        assert cell.value == 12.0
        assert cell.variation == 5.0
        assert cell.value - cell.variation == 7.0

    def test_value_without_variation_leaves_variation_unset(self, matrix):
        matrix.init([measure(FILE, BUGS, value=10.0)])
        matrix.set_value(FILE, "bugs", 12)
        assert matrix.get_measure(FILE, "bugs").variation is None

    def test_rating_sets_data_and_value(self, matrix):
        matrix.set_value(FILE, "reliability_rating", Rating.C)
        cell = matrix.get_measure(FILE, "reliability_rating")
        assert cell.data == "C"
        assert cell.value == 3.0

    def test_same_rating_is_a_noop(self, matrix):
        matrix.init([measure(FILE, RATING, value=3.0, data="C")])
        matrix.set_value(FILE, "reliability_rating", Rating.C)
        assert matrix.get_touched() == []

    def test_string_sets_data_only(self, matrix):
        matrix.set_value(FILE, "label", "hot")
        cell = matrix.get_measure(FILE, "label")
        assert cell.data == "hot"
        assert cell.value is None

    def test_unknown_metric(self, matrix):
        with pytest.raises(UnknownMetricError):
            matrix.set_value(FILE, "coverage", 1)

    def test_unknown_component(self, matrix):
        with pytest.raises(UnknownComponentError):
            matrix.set_value(OTHER, "bugs", 1)


class TestSetVariation:
    def test_sets_variation_only(self, matrix):
        matrix.set_variation(FILE, "new_bugs", 1)
        cell = matrix.get_measure(FILE, "new_bugs")
        assert cell.variation == 1.0
        assert cell.value is None

    def test_same_variation_is_a_noop(self, matrix):
        matrix.init([measure(FILE, NEW_BUGS, variation=1.0)])
        matrix.set_variation(FILE, "new_bugs", 1)
        assert matrix.get_touched() == []

    def test_rating_variation_uses_index(self, matrix):
        matrix.set_variation(FILE, "reliability_rating", Rating.E)
        assert matrix.get_measure(FILE, "reliability_rating").variation == 5.0


class TestTouched:
    def test_touched_of_component(self, matrix):
        matrix.set_value(FILE, "bugs", 1)
        matrix.set_value(PROJECT, "bugs", 1)
        matrix.set_value(PROJECT, "new_bugs", 0)
        assert len(matrix.get_touched()) == 3
        assert [m.component_uuid for m in matrix.get_touched_of(FILE)] == ["F"]
        assert len(matrix.get_touched_of(PROJECT)) == 2


class TestSameDouble:
    def test_none(self):
        assert same_double(None, None)
        assert not same_double(None, 0.0)
        assert not same_double(0.0, None)

    def test_nan_equals_nan(self):
        assert same_double(math.nan, math.nan)
        assert not same_double(math.nan, 1.0)

    def test_signed_zero(self):
        assert not same_double(0.0, -0.0)
        assert same_double(-0.0, -0.0)

    def test_plain_values(self):
        assert same_double(1.5, 1.5)
        assert not same_double(1.5, 1.25)
