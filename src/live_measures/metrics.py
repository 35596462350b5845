"""Core metric keys recomputed from issue aggregates.

Every key listed in ``CORE_METRIC_KEYS`` is loaded into the matrix of a
refresh. ``new_*`` keys carry their new-code value in the variation slot.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .models import IssueResolution, IssueStatus, MetricType, Rating, RuleType, Severity

VIOLATIONS = "violations"
NEW_VIOLATIONS = "new_violations"
BLOCKER_VIOLATIONS = "blocker_violations"
NEW_BLOCKER_VIOLATIONS = "new_blocker_violations"
CRITICAL_VIOLATIONS = "critical_violations"
NEW_CRITICAL_VIOLATIONS = "new_critical_violations"
MAJOR_VIOLATIONS = "major_violations"
NEW_MAJOR_VIOLATIONS = "new_major_violations"
MINOR_VIOLATIONS = "minor_violations"
NEW_MINOR_VIOLATIONS = "new_minor_violations"
INFO_VIOLATIONS = "info_violations"
NEW_INFO_VIOLATIONS = "new_info_violations"

CODE_SMELLS = "code_smells"
NEW_CODE_SMELLS = "new_code_smells"
BUGS = "bugs"
NEW_BUGS = "new_bugs"
VULNERABILITIES = "vulnerabilities"
NEW_VULNERABILITIES = "new_vulnerabilities"

FALSE_POSITIVE_ISSUES = "false_positive_issues"
NEW_FALSE_POSITIVE_ISSUES = "new_false_positive_issues"
WONT_FIX_ISSUES = "wont_fix_issues"
NEW_WONT_FIX_ISSUES = "new_wont_fix_issues"
OPEN_ISSUES = "open_issues"
NEW_OPEN_ISSUES = "new_open_issues"
REOPENED_ISSUES = "reopened_issues"
NEW_REOPENED_ISSUES = "new_reopened_issues"
CONFIRMED_ISSUES = "confirmed_issues"
NEW_CONFIRMED_ISSUES = "new_confirmed_issues"

TECHNICAL_DEBT = "sqale_index"
NEW_TECHNICAL_DEBT = "new_technical_debt"
RELIABILITY_REMEDIATION_EFFORT = "reliability_remediation_effort"
NEW_RELIABILITY_REMEDIATION_EFFORT = "new_reliability_remediation_effort"
SECURITY_REMEDIATION_EFFORT = "security_remediation_effort"
NEW_SECURITY_REMEDIATION_EFFORT = "new_security_remediation_effort"

RELIABILITY_RATING = "reliability_rating"
NEW_RELIABILITY_RATING = "new_reliability_rating"
SECURITY_RATING = "security_rating"
NEW_SECURITY_RATING = "new_security_rating"

ALERT_STATUS = "alert_status"
QUALITY_GATE_DETAILS = "quality_gate_details"

# Metrics never stored on FILE components by the analysis seed.
FUNCTION_COMPLEXITY_DISTRIBUTION = "function_complexity_distribution"
FILE_COMPLEXITY_DISTRIBUTION = "file_complexity_distribution"
CLASS_COMPLEXITY_DISTRIBUTION = "class_complexity_distribution"

NOT_PERSISTED_ON_FILES = frozenset(
    {
        FUNCTION_COMPLEXITY_DISTRIBUTION,
        FILE_COMPLEXITY_DISTRIBUTION,
        CLASS_COMPLEXITY_DISTRIBUTION,
    }
)

# (current key, new-code key, rule type)
ISSUES_BY_TYPE = (
    (CODE_SMELLS, NEW_CODE_SMELLS, RuleType.CODE_SMELL),
    (BUGS, NEW_BUGS, RuleType.BUG),
    (VULNERABILITIES, NEW_VULNERABILITIES, RuleType.VULNERABILITY),
)

ISSUES_BY_SEVERITY = (
    (BLOCKER_VIOLATIONS, NEW_BLOCKER_VIOLATIONS, Severity.BLOCKER),
    (CRITICAL_VIOLATIONS, NEW_CRITICAL_VIOLATIONS, Severity.CRITICAL),
    (MAJOR_VIOLATIONS, NEW_MAJOR_VIOLATIONS, Severity.MAJOR),
    (MINOR_VIOLATIONS, NEW_MINOR_VIOLATIONS, Severity.MINOR),
    (INFO_VIOLATIONS, NEW_INFO_VIOLATIONS, Severity.INFO),
)

# (current key, new-code key, resolution)
ISSUES_BY_RESOLUTION = (
    (FALSE_POSITIVE_ISSUES, NEW_FALSE_POSITIVE_ISSUES, IssueResolution.FALSE_POSITIVE),
    (WONT_FIX_ISSUES, NEW_WONT_FIX_ISSUES, IssueResolution.WONT_FIX),
)

# (current key, new-code key, status)
ISSUES_BY_STATUS = (
    (OPEN_ISSUES, NEW_OPEN_ISSUES, IssueStatus.OPEN),
    (REOPENED_ISSUES, NEW_REOPENED_ISSUES, IssueStatus.REOPENED),
    (CONFIRMED_ISSUES, NEW_CONFIRMED_ISSUES, IssueStatus.CONFIRMED),
)

EFFORT_BY_TYPE = (
    (TECHNICAL_DEBT, NEW_TECHNICAL_DEBT, RuleType.CODE_SMELL),
    (RELIABILITY_REMEDIATION_EFFORT, NEW_RELIABILITY_REMEDIATION_EFFORT, RuleType.BUG),
    (SECURITY_REMEDIATION_EFFORT, NEW_SECURITY_REMEDIATION_EFFORT, RuleType.VULNERABILITY),
)

RATING_BY_TYPE = (
    (RELIABILITY_RATING, NEW_RELIABILITY_RATING, RuleType.BUG),
    (SECURITY_RATING, NEW_SECURITY_RATING, RuleType.VULNERABILITY),
)

DEFAULT_RATING_BY_SEVERITY: Mapping[Severity, Rating] = MappingProxyType(
    {
        Severity.BLOCKER: Rating.E,
        Severity.CRITICAL: Rating.D,
        Severity.MAJOR: Rating.C,
        Severity.MINOR: Rating.B,
        Severity.INFO: Rating.A,
    }
)


def _derived_keys() -> tuple[str, ...]:
    keys: list[str] = [VIOLATIONS, NEW_VIOLATIONS]
    for table in (
        ISSUES_BY_TYPE,
        ISSUES_BY_SEVERITY,
        ISSUES_BY_RESOLUTION,
        ISSUES_BY_STATUS,
        EFFORT_BY_TYPE,
        RATING_BY_TYPE,
    ):
        for current_key, new_key, _ in table:
            keys.append(current_key)
            keys.append(new_key)
    return tuple(keys)


DERIVED_METRIC_KEYS = _derived_keys()
CORE_METRIC_KEYS = DERIVED_METRIC_KEYS + (ALERT_STATUS, QUALITY_GATE_DETAILS)


def _core_metric_types() -> dict[str, MetricType]:
    types: dict[str, MetricType] = {}
    for key in DERIVED_METRIC_KEYS:
        if key in (TECHNICAL_DEBT, NEW_TECHNICAL_DEBT) or key.endswith("_remediation_effort"):
            types[key] = MetricType.LONG
        else:
            types[key] = MetricType.INT
    types[ALERT_STATUS] = MetricType.LEVEL
    types[QUALITY_GATE_DETAILS] = MetricType.DATA
    return types


CORE_METRIC_TYPES: Mapping[str, MetricType] = MappingProxyType(_core_metric_types())
