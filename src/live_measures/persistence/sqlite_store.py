"""SQLite implementation of the DataStore protocol."""

from __future__ import annotations

import sqlite3
import time
import uuid
from contextlib import contextmanager
from typing import Callable, Collection, Iterator, Optional, Sequence, TypeVar

from ..exceptions import DataStoreError, MeasureAlreadyPersistedError, UnknownComponentError
from ..logging_config import get_logger
from ..models import (
    Analysis,
    Component,
    ComponentType,
    IssueGroup,
    IssueStatus,
    Level,
    LiveMeasure,
    Metric,
    MetricType,
    QualityGate,
    QualityGateCondition,
    RuleType,
    Severity,
)

logger = get_logger(__name__)

T = TypeVar("T")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_uuid() -> str:
    """16-character unique id used for live measure rows."""
    return uuid.uuid4().hex[:16]


def chunked(values: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split ``values`` into slices of at most ``size`` items."""
    for start in range(0, len(values), size):
        yield values[start : start + size]


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


class SqliteDataStore:
    """DataStore session over one ``sqlite3.Connection``.

    Writes join the connection's current transaction; nothing is committed
    until ``commit()``.

    Parameters
    ----------
    conn:
        An open connection (from ``MeasureDB.connect()``).
    clock:
        Returns the current time in epoch milliseconds. Used for
        ``created_at``/``updated_at``.
    max_query_params:
        Maximum bind parameters of a single ``IN (...)`` list. Larger inputs
        are queried in chunks.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        clock: Optional[Callable[[], int]] = None,
        max_query_params: int = 999,
    ) -> None:
        self.conn = conn
        self.clock = clock or now_ms
        self.max_query_params = max_query_params

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.debug("Store operation %s failed: %s", operation, e)
            raise DataStoreError(operation, str(e)) from e

    # ── analyses & components ─────────────────────────────────────

    def select_last_analysis(self, project_uuid: str) -> Optional[Analysis]:
        with self._guard("select_last_analysis"):
            row = self.conn.execute(
                """
                SELECT uuid, component_uuid, created_at, period_date
                FROM analyses
                WHERE component_uuid = ? AND islast = 1
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (project_uuid,),
            ).fetchone()
        if row is None:
            return None
        return Analysis(
            uuid=row["uuid"],
            project_uuid=row["component_uuid"],
            created_at=row["created_at"],
            period_date=row["period_date"],
        )

    def select_component(self, component_uuid: str) -> Optional[Component]:
        with self._guard("select_component"):
            row = self.conn.execute(
                "SELECT * FROM components WHERE uuid = ?", (component_uuid,)
            ).fetchone()
        return _component(row) if row is not None else None

    def select_ancestors(self, component: Component) -> list[Component]:
        uuids = component.ancestor_uuids
        if not uuids:
            return []
        found: dict[str, Component] = {}
        with self._guard("select_ancestors"):
            for chunk in chunked(uuids, self.max_query_params):
                rows = self.conn.execute(
                    f"SELECT * FROM components WHERE uuid IN ({_placeholders(len(chunk))})",
                    tuple(chunk),
                ).fetchall()
                for row in rows:
                    found[row["uuid"]] = _component(row)
        missing = [u for u in uuids if u not in found]
        if missing:
            raise UnknownComponentError(missing[0])
        return [found[u] for u in reversed(uuids)]

    # ── metrics ───────────────────────────────────────────────────

    def select_metrics_by_keys(self, keys: Collection[str]) -> list[Metric]:
        return self._select_metrics("name", list(keys), "select_metrics_by_keys")

    def select_metrics_by_ids(self, ids: Collection[int]) -> list[Metric]:
        return self._select_metrics("id", list(ids), "select_metrics_by_ids")

    def _select_metrics(self, column: str, values: list, operation: str) -> list[Metric]:
        metrics: list[Metric] = []
        with self._guard(operation):
            for chunk in chunked(values, self.max_query_params):
                rows = self.conn.execute(
                    f"SELECT id, name, val_type FROM metrics WHERE {column} IN ({_placeholders(len(chunk))})",
                    tuple(chunk),
                ).fetchall()
                metrics.extend(
                    Metric(id=r["id"], key=r["name"], value_type=MetricType(r["val_type"]))
                    for r in rows
                )
        return metrics

    # ── issues ────────────────────────────────────────────────────

    def select_issue_groups(
        self, component: Component, leak_start: Optional[int]
    ) -> list[IssueGroup]:
        with self._guard("select_issue_groups"):
            rows = self.conn.execute(
                """
                SELECT
                    i.issue_type AS rule_type,
                    i.severity AS severity,
                    i.resolution AS resolution,
                    i.status AS status,
                    CASE
                        WHEN ? IS NOT NULL AND i.issue_creation_date >= ? THEN 1
                        ELSE 0
                    END AS in_leak,
                    COUNT(*) AS issue_count,
                    COALESCE(SUM(i.effort), 0) AS effort
                FROM issues i
                INNER JOIN components c ON c.uuid = i.component_uuid
                WHERE i.project_uuid = ?
                  AND i.status <> ?
                  AND (c.uuid = ? OR instr(c.uuid_path, ?) > 0)
                GROUP BY i.issue_type, i.severity, i.resolution, i.status, in_leak
                """,
                (
                    leak_start,
                    leak_start,
                    component.project_uuid,
                    IssueStatus.CLOSED,
                    component.uuid,
                    f".{component.uuid}.",
                ),
            ).fetchall()
        return [
            IssueGroup(
                rule_type=RuleType.from_db(r["rule_type"]),
                severity=Severity(r["severity"]),
                resolution=r["resolution"],
                status=r["status"],
                in_leak=bool(r["in_leak"]),
                count=int(r["issue_count"]),
                effort=float(r["effort"]),
            )
            for r in rows
        ]

    # ── live measures ─────────────────────────────────────────────

    def select_live_measures(
        self, component_uuids: Collection[str], metric_ids: Collection[int]
    ) -> list[LiveMeasure]:
        component_uuids = list(component_uuids)
        metric_ids = list(metric_ids)
        if not component_uuids or not metric_ids:
            return []
        measures: list[LiveMeasure] = []
        # both IN lists share one statement, so both are chunked
        metric_size = max(1, min(len(metric_ids), self.max_query_params // 2))
        component_size = max(1, self.max_query_params - metric_size)
        with self._guard("select_live_measures"):
            for metric_chunk in chunked(metric_ids, metric_size):
                for chunk in chunked(component_uuids, component_size):
                    rows = self.conn.execute(
                        f"""
                        SELECT * FROM live_measures
                        WHERE component_uuid IN ({_placeholders(len(chunk))})
                          AND metric_id IN ({_placeholders(len(metric_chunk))})
                        """,
                        (*chunk, *metric_chunk),
                    ).fetchall()
                    measures.extend(_live_measure(r) for r in rows)
        return measures

    def select_project_live_measures(self, project_uuid: str) -> list[LiveMeasure]:
        with self._guard("select_project_live_measures"):
            rows = self.conn.execute(
                "SELECT * FROM live_measures WHERE project_uuid = ?", (project_uuid,)
            ).fetchall()
        return [_live_measure(r) for r in rows]

    def insert_live_measure(self, measure: LiveMeasure) -> None:
        if measure.uuid is not None:
            raise MeasureAlreadyPersistedError(measure.uuid)
        now = self.clock()
        row_uuid = new_uuid()
        with self._guard("insert_live_measure"):
            self.conn.execute(
                """
                INSERT INTO live_measures (
                    uuid, component_uuid, project_uuid, metric_id, value, text_value,
                    variation, gate_status, gate_text, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row_uuid,
                    measure.component_uuid,
                    measure.project_uuid,
                    measure.metric_id,
                    measure.value,
                    measure.data,
                    measure.variation,
                    measure.gate_status.value if measure.gate_status else None,
                    measure.gate_text,
                    now,
                    now,
                ),
            )
        measure.uuid = row_uuid
        measure.created_at = now
        measure.updated_at = now

    def update_live_measure(self, measure: LiveMeasure) -> bool:
        now = self.clock()
        with self._guard("update_live_measure"):
            cur = self.conn.execute(
                """
                UPDATE live_measures
                SET value = ?, text_value = ?, variation = ?, gate_status = ?,
                    gate_text = ?, updated_at = ?
                WHERE component_uuid = ? AND metric_id = ?
                """,
                (
                    measure.value,
                    measure.data,
                    measure.variation,
                    measure.gate_status.value if measure.gate_status else None,
                    measure.gate_text,
                    now,
                    measure.component_uuid,
                    measure.metric_id,
                ),
            )
        if cur.rowcount != 1:
            return False
        measure.updated_at = now
        return True

    def insert_or_update_live_measure(self, measure: LiveMeasure) -> None:
        if not self.update_live_measure(measure):
            self.insert_live_measure(measure)

    def delete_live_measures_by_project(self, project_uuid: str) -> None:
        with self._guard("delete_live_measures_by_project"):
            self.conn.execute("DELETE FROM live_measures WHERE project_uuid = ?", (project_uuid,))

    # ── quality gates ─────────────────────────────────────────────

    def select_quality_gate_for_project(self, project_uuid: str) -> Optional[QualityGate]:
        with self._guard("select_quality_gate_for_project"):
            row = self.conn.execute(
                """
                SELECT g.id, g.name
                FROM quality_gates g
                INNER JOIN project_qgates pq ON pq.gate_id = g.id
                WHERE pq.project_uuid = ?
                """,
                (project_uuid,),
            ).fetchone()
        if row is None:
            return None
        return QualityGate(id=row["id"], name=row["name"])

    def select_conditions_for_gate(self, gate_id: int) -> list[QualityGateCondition]:
        with self._guard("select_conditions_for_gate"):
            rows = self.conn.execute(
                "SELECT * FROM quality_gate_conditions WHERE gate_id = ? ORDER BY id",
                (gate_id,),
            ).fetchall()
        return [
            QualityGateCondition(
                id=r["id"],
                gate_id=r["gate_id"],
                metric_id=r["metric_id"],
                operator=r["operator"],
                warning_threshold=r["value_warning"],
                error_threshold=r["value_error"],
                period=r["period"],
            )
            for r in rows
        ]

    # ── transaction ───────────────────────────────────────────────

    def commit(self) -> None:
        with self._guard("commit"):
            self.conn.commit()

    def rollback(self) -> None:
        with self._guard("rollback"):
            self.conn.rollback()


def _component(row: sqlite3.Row) -> Component:
    return Component(
        uuid=row["uuid"],
        project_uuid=row["project_uuid"],
        uuid_path=row["uuid_path"],
        type=ComponentType(row["qualifier"]),
        key=row["kee"],
        name=row["name"],
    )


def _live_measure(row: sqlite3.Row) -> LiveMeasure:
    return LiveMeasure(
        uuid=row["uuid"],
        component_uuid=row["component_uuid"],
        project_uuid=row["project_uuid"],
        metric_id=row["metric_id"],
        value=row["value"],
        data=row["text_value"],
        variation=row["variation"],
        gate_status=Level.parse(row["gate_status"]) if row["gate_status"] else None,
        gate_text=row["gate_text"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
