"""Domain records for live measures: components, metrics, measures, gates, issues.

All records are plain dataclasses so they map one-to-one onto SQLite rows
without ORM machinery. Enumerations carry the storage form of each value
(``RuleType`` its integer constant, the others their name).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Optional


class ComponentType(Enum):
    PROJECT = "PROJECT"
    MODULE = "MODULE"
    DIRECTORY = "DIRECTORY"
    FILE = "FILE"


class MetricType(Enum):
    """Value type of a metric. Drives how measures and thresholds are compared."""

    BOOLEAN = "BOOLEAN"
    INT = "INT"
    LONG = "LONG"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    LEVEL = "LEVEL"
    DATA = "DATA"
    NO_VALUE = "NO_VALUE"


class RuleType(Enum):
    """Issue type. Values are the integer constants stored on issue rows."""

    CODE_SMELL = 1
    BUG = 2
    VULNERABILITY = 3

    @classmethod
    def from_db(cls, value: int) -> "RuleType":
        return cls(int(value))


@total_ordering
class Severity(Enum):
    """Issue severity, ordered INFO < MINOR < MAJOR < CRITICAL < BLOCKER."""

    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"
    BLOCKER = "BLOCKER"

    @property
    def ordinal(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "Severity":
        return _SEVERITY_ORDER[ordinal]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.ordinal < other.ordinal


_SEVERITY_ORDER = (
    Severity.INFO,
    Severity.MINOR,
    Severity.MAJOR,
    Severity.CRITICAL,
    Severity.BLOCKER,
)


class Rating(Enum):
    """Letter rating. ``index`` is the numeric value persisted on the measure."""

    A = 1
    B = 2
    C = 3
    D = 4
    E = 5

    @property
    def index(self) -> int:
        return self.value


@total_ordering
class Level(Enum):
    """Quality gate level, ordered OK < WARN < ERROR."""

    OK = "OK"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def parse(cls, name: Optional[str]) -> "Level":
        """Map a stored level name to a Level. Absent or unknown names read as OK."""
        if name == cls.ERROR.value:
            return cls.ERROR
        if name == cls.WARN.value:
            return cls.WARN
        return cls.OK

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank < other.rank


_LEVEL_ORDER = (Level.OK, Level.WARN, Level.ERROR)


class IssueStatus:
    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    REOPENED = "REOPENED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class IssueResolution:
    FIXED = "FIXED"
    FALSE_POSITIVE = "FALSE-POSITIVE"
    WONT_FIX = "WONTFIX"
    REMOVED = "REMOVED"


@dataclass(frozen=True)
class Component:
    """A node of the component tree.

    ``uuid_path`` lists the ancestors from the root, dot-delimited: the project
    has ``"."``, its direct children ``".<project uuid>."`` and so on.
    """

    uuid: str
    project_uuid: str
    uuid_path: str = "."
    type: ComponentType = ComponentType.FILE
    key: str = ""
    name: str = ""

    @property
    def ancestor_uuids(self) -> list[str]:
        """Ancestor uuids from root to direct parent."""
        return [u for u in self.uuid_path.split(".") if u]

    def child_path(self) -> str:
        """``uuid_path`` value for a direct child of this component."""
        return f"{self.uuid_path}{self.uuid}."


@dataclass(frozen=True)
class Metric:
    id: int
    key: str
    value_type: MetricType


@dataclass
class LiveMeasure:
    """Current value of one metric on one component.

    ``value`` and ``variation`` together carry both the overall value and the
    new-code value: when ``variation`` is set, ``value - variation`` is the
    value at the start of the leak period.
    """

    component_uuid: str
    project_uuid: str
    metric_id: int
    value: Optional[float] = None
    data: Optional[str] = None
    variation: Optional[float] = None
    gate_status: Optional[Level] = None
    gate_text: Optional[str] = None
    uuid: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    def is_empty(self) -> bool:
        return self.value is None and self.variation is None and self.data is None


@dataclass(frozen=True)
class Analysis:
    """Last analysis marker of a project. ``period_date`` starts the leak period."""

    uuid: str
    project_uuid: str
    created_at: int
    period_date: Optional[int] = None


@dataclass(frozen=True)
class QualityGateCondition:
    metric_id: int
    operator: str
    warning_threshold: Optional[str] = None
    error_threshold: Optional[str] = None
    period: Optional[int] = None
    id: Optional[int] = None
    gate_id: Optional[int] = None


@dataclass(frozen=True)
class QualityGate:
    id: int
    name: str
    conditions: tuple[QualityGateCondition, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class IssueGroup:
    """Issues of a subtree collapsed by (type, severity, resolution, status, in_leak)."""

    rule_type: RuleType
    severity: Severity
    resolution: Optional[str]
    status: str
    in_leak: bool
    count: int
    effort: float


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one condition: its level and the value that was compared."""

    level: Level
    value: Optional[object] = None
