"""Write the rows owned by external collaborators: components, metrics, analyses, issues, gates.

The analysis pipeline and the administration surface populate these tables;
the live-measure core only reads them. None of these functions commits: they
join the caller's transaction.
"""

import sqlite3
from typing import Iterable, Mapping, Optional

from ..metrics import CORE_METRIC_TYPES
from ..models import (
    Analysis,
    Component,
    IssueStatus,
    Metric,
    MetricType,
    QualityGate,
    QualityGateCondition,
    RuleType,
    Severity,
)
from .sqlite_store import new_uuid

_ISSUE_COLUMNS = frozenset(
    {"issue_type", "severity", "resolution", "status", "effort", "issue_creation_date"}
)


def insert_component(conn: sqlite3.Connection, component: Component) -> Component:
    conn.execute(
        """
        INSERT INTO components (uuid, project_uuid, uuid_path, qualifier, kee, name)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            component.uuid,
            component.project_uuid,
            component.uuid_path,
            component.type.value,
            component.key,
            component.name,
        ),
    )
    return component


def insert_metric(conn: sqlite3.Connection, key: str, value_type: MetricType) -> Metric:
    cur = conn.execute(
        "INSERT INTO metrics (name, val_type) VALUES (?, ?)", (key, value_type.value)
    )
    return Metric(id=cur.lastrowid, key=key, value_type=value_type)


def register_metrics(
    conn: sqlite3.Connection, types_by_key: Optional[Mapping[str, MetricType]] = None
) -> dict[str, Metric]:
    """Insert every metric of ``types_by_key`` (the core catalogue by default) not yet present.

    Returns
    -------
    dict
        metric key -> Metric, for all requested keys.
    """
    types_by_key = CORE_METRIC_TYPES if types_by_key is None else types_by_key
    existing = {
        r["name"]: Metric(id=r["id"], key=r["name"], value_type=MetricType(r["val_type"]))
        for r in conn.execute("SELECT id, name, val_type FROM metrics").fetchall()
    }
    result: dict[str, Metric] = {}
    for key, value_type in types_by_key.items():
        metric = existing.get(key)
        if metric is None:
            metric = insert_metric(conn, key, value_type)
        result[key] = metric
    return result


def insert_analysis(
    conn: sqlite3.Connection,
    project_uuid: str,
    created_at: int,
    period_date: Optional[int] = None,
    uuid: Optional[str] = None,
) -> Analysis:
    """Record a finished analysis and make it the project's last one."""
    analysis = Analysis(
        uuid=uuid or new_uuid(),
        project_uuid=project_uuid,
        created_at=created_at,
        period_date=period_date,
    )
    conn.execute("UPDATE analyses SET islast = 0 WHERE component_uuid = ?", (project_uuid,))
    conn.execute(
        """
        INSERT INTO analyses (uuid, component_uuid, created_at, period_date, islast)
        VALUES (?, ?, ?, ?, 1)
        """,
        (analysis.uuid, analysis.project_uuid, analysis.created_at, analysis.period_date),
    )
    return analysis


def insert_issue(
    conn: sqlite3.Connection,
    component: Component,
    rule_type: RuleType,
    severity: Severity,
    created_at: int,
    resolution: Optional[str] = None,
    status: str = IssueStatus.OPEN,
    effort: float = 0.0,
    key: Optional[str] = None,
) -> str:
    """Insert one issue on ``component``. Returns the issue key."""
    issue_key = key or new_uuid()
    conn.execute(
        """
        INSERT INTO issues (
            kee, component_uuid, project_uuid, issue_type, severity,
            resolution, status, effort, issue_creation_date
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            issue_key,
            component.uuid,
            component.project_uuid,
            rule_type.value,
            severity.value,
            resolution,
            status,
            effort,
            created_at,
        ),
    )
    return issue_key


def update_issue(conn: sqlite3.Connection, key: str, **changes: object) -> None:
    """Apply a transition or an edit to an issue.

    Accepted keyword arguments: ``rule_type`` (RuleType), ``severity``
    (Severity), ``resolution``, ``status``, ``effort``, ``created_at``.

    Raises
    ------
    ValueError
        If an unknown field is given or no issue has that key.
    """
    columns: dict[str, object] = {}
    for name, value in changes.items():
        if name == "rule_type":
            columns["issue_type"] = value.value if isinstance(value, RuleType) else value
        elif name == "severity":
            columns["severity"] = value.value if isinstance(value, Severity) else value
        elif name == "created_at":
            columns["issue_creation_date"] = value
        else:
            columns[name] = value
    unknown = set(columns) - _ISSUE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown issue fields: {', '.join(sorted(unknown))}")
    if not columns:
        return
    assignments = ", ".join(f"{column} = ?" for column in columns)
    cur = conn.execute(
        f"UPDATE issues SET {assignments} WHERE kee = ?", (*columns.values(), key)
    )
    if cur.rowcount != 1:
        raise ValueError(f"No issue with key={key}")


def insert_quality_gate(conn: sqlite3.Connection, name: str) -> QualityGate:
    cur = conn.execute("INSERT INTO quality_gates (name) VALUES (?)", (name,))
    return QualityGate(id=cur.lastrowid, name=name)


def insert_condition(
    conn: sqlite3.Connection,
    gate_id: int,
    metric_id: int,
    operator: str,
    warning_threshold: Optional[str] = None,
    error_threshold: Optional[str] = None,
    period: Optional[int] = None,
) -> QualityGateCondition:
    cur = conn.execute(
        """
        INSERT INTO quality_gate_conditions (
            gate_id, metric_id, operator, value_warning, value_error, period
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (gate_id, metric_id, operator, warning_threshold, error_threshold, period),
    )
    return QualityGateCondition(
        id=cur.lastrowid,
        gate_id=gate_id,
        metric_id=metric_id,
        operator=operator,
        warning_threshold=warning_threshold,
        error_threshold=error_threshold,
        period=period,
    )


def associate_project_to_gate(conn: sqlite3.Connection, project_uuid: str, gate_id: int) -> None:
    """Select ``gate_id`` as the project's gate, replacing any previous association."""
    conn.execute(
        "INSERT OR REPLACE INTO project_qgates (project_uuid, gate_id) VALUES (?, ?)",
        (project_uuid, gate_id),
    )


def insert_components(conn: sqlite3.Connection, components: Iterable[Component]) -> None:
    for component in components:
        insert_component(conn, component)
