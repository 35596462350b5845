"""Shared test fixtures for Live Measures: database, store session, component tree."""

from dataclasses import dataclass
from typing import Optional

import pytest

from live_measures.models import Component, ComponentType, LiveMeasure, RuleType, Severity
from live_measures.persistence import MeasureDB, SqliteDataStore
from live_measures.persistence.writer import (
    insert_analysis,
    insert_components,
    insert_issue,
    register_metrics,
)

# Start of the leak period used by the scenario tests (epoch ms).
T0 = 1_700_000_000_000


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def tick(self, ms: int = 1) -> int:
        self.now += ms
        return self.now


@dataclass(frozen=True)
class ComponentTree:
    """project -> module -> directory -> (file_a, file_b), plus module -> file_c."""

    project: Component
    module: Component
    directory: Component
    file_a: Component
    file_b: Component
    file_c: Component

    @property
    def all(self) -> list:
        return [self.project, self.module, self.directory, self.file_a, self.file_b, self.file_c]


def build_tree(project_uuid: str = "prj") -> ComponentTree:
    project = Component(
        uuid=project_uuid,
        project_uuid=project_uuid,
        type=ComponentType.PROJECT,
        key=f"org:{project_uuid}",
        name=project_uuid,
    )

    def child(parent: Component, uuid: str, type: ComponentType) -> Component:
        return Component(
            uuid=uuid,
            project_uuid=project_uuid,
            uuid_path=parent.child_path(),
            type=type,
            key=f"{parent.key}:{uuid}",
            name=uuid,
        )

    module = child(project, "mod", ComponentType.MODULE)
    directory = child(module, "dir", ComponentType.DIRECTORY)
    return ComponentTree(
        project=project,
        module=module,
        directory=directory,
        file_a=child(directory, "fa", ComponentType.FILE),
        file_b=child(directory, "fb", ComponentType.FILE),
        file_c=child(module, "fc", ComponentType.FILE),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db(tmp_path):
    """Connected measure database in a temporary directory."""
    with MeasureDB(tmp_path / "measures.db") as database:
        yield database


@pytest.fixture
def store(db, clock):
    return SqliteDataStore(db.conn, clock=clock)


@pytest.fixture
def metrics(db):
    """Core metric catalogue, keyed by metric key."""
    registered = register_metrics(db.conn)
    db.conn.commit()
    return registered


@pytest.fixture
def components():
    """Component tree, not yet stored."""
    return build_tree()


@pytest.fixture
def tree(db, components):
    """The component tree, stored."""
    insert_components(db.conn, components.all)
    db.conn.commit()
    return components


@pytest.fixture
def analysis(db, tree):
    """Last analysis of the project, without a leak period."""
    result = insert_analysis(db.conn, tree.project.uuid, created_at=T0 + 10_000)
    db.conn.commit()
    return result


@pytest.fixture
def add_issue(db):
    """Insert and commit one issue. Defaults to an unresolved MAJOR bug created before T0."""

    def _add(
        component: Component,
        rule_type: RuleType = RuleType.BUG,
        severity: Severity = Severity.MAJOR,
        created_at: int = T0 - 1,
        **kwargs,
    ) -> str:
        key = insert_issue(db.conn, component, rule_type, severity, created_at, **kwargs)
        db.conn.commit()
        return key

    return _add


@pytest.fixture
def measure_of(store, metrics):
    """Read the persisted live measure of (component, metric key)."""

    def _read(component: Component, key: str) -> Optional[LiveMeasure]:
        found = store.select_live_measures([component.uuid], [metrics[key].id])
        assert len(found) <= 1
        return found[0] if found else None

    return _read
