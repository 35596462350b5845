"""Tests for the quality_gate_details codec."""

import json

from live_measures.models import Level
from live_measures.qualitygate.details import EvaluatedCondition, QualityGateDetails, format_actual


class TestEvaluatedCondition:
    def test_full_condition(self):
        cond = EvaluatedCondition(
            metric_key="new_bugs",
            operator="GT",
            level=Level.WARN,
            warning_threshold="0",
            error_threshold="5",
            actual=2.0,
            period=1,
        )
        assert cond.to_dict() == {
            "metric": "new_bugs",
            "op": "GT",
            "period": 1,
            "warning": "0",
            "error": "5",
            "actual": "2",
            "level": "WARN",
        }

    def test_empty_fields_are_omitted(self):
        cond = EvaluatedCondition(
            metric_key="bugs", operator="GT", level=Level.OK, warning_threshold="", error_threshold="2"
        )
        assert cond.to_dict() == {"metric": "bugs", "op": "GT", "error": "2", "level": "OK"}


class TestQualityGateDetails:
    def test_to_json(self):
        details = QualityGateDetails(
            level=Level.ERROR,
            conditions=[
                EvaluatedCondition(
                    metric_key="bugs", operator="GT", level=Level.ERROR, error_threshold="2", actual=3
                )
            ],
        )
        assert json.loads(details.to_json()) == {
            "level": "ERROR",
            "conditions": [
                {"metric": "bugs", "op": "GT", "error": "2", "actual": "3", "level": "ERROR"}
            ],
            "ignoredConditions": False,
        }

    def test_from_json(self):
        raw = (
            '{"level": "WARN", "conditions": [{"metric": "coverage", "op": "LT", '
            '"warning": "80", "actual": "75.5", "level": "WARN"}], "ignoredConditions": true}'
        )
        details = QualityGateDetails.from_json(raw)
        assert details.level is Level.WARN
        assert details.ignored_conditions is True
        assert details.conditions == [
            EvaluatedCondition(
                metric_key="coverage",
                operator="LT",
                level=Level.WARN,
                warning_threshold="80",
                actual="75.5",
            )
        ]

    def test_no_conditions(self):
        details = QualityGateDetails(level=Level.OK)
        assert json.loads(details.to_json())["conditions"] == []


class TestFormatActual:
    def test_integral_float_drops_fraction(self):
        assert format_actual(3.0) == "3"
        assert format_actual(3) == "3"

    def test_fraction_is_kept(self):
        assert format_actual(75.5) == "75.5"

    def test_text_and_bool(self):
        assert format_actual("WARN") == "WARN"
        assert format_actual(True) == "1"
        assert format_actual(False) == "0"

    def test_none(self):
        assert format_actual(None) is None
