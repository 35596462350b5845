"""Configuration loading for Live Measures.

Configuration sources are merged in priority order:
    1. Defaults (defined in LiveMeasuresConfig)
    2. Global config (~/.live-measures.toml)
    3. Project config (./live-measures.toml)
    4. Explicit config file
    5. Keyword overrides passed by the embedding host

The engine is embedded, so no environment variables are consulted.

Example:
    >>> config = load_config(max_query_params=500)
    >>> config.max_query_params
    500
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from .exceptions import ConfigurationError, InvalidConfigError
from .metrics import DEFAULT_RATING_BY_SEVERITY
from .models import Rating, Severity

Verbosity = Literal["quiet", "normal", "verbose"]

# SQLite's default SQLITE_MAX_VARIABLE_NUMBER on older builds.
DEFAULT_MAX_QUERY_PARAMS = 999


@dataclass(frozen=True)
class LiveMeasuresConfig:
    """Settings for one embedded live-measure engine.

    Attributes:
        database_path: SQLite file backing the data store
        rating_by_severity: Worst unresolved severity -> rating. Must map every
            severity.
        extra_metric_keys: Metric keys loaded into each refresh in addition to
            the core catalogue
        max_query_params: Upper bound of bind parameters per query, at least 2;
            larger inputs are split
        verbosity: Logging verbosity level
    """

    database_path: str = "live_measures.db"
    rating_by_severity: Mapping[Severity, Rating] = field(
        default_factory=lambda: dict(DEFAULT_RATING_BY_SEVERITY)
    )
    extra_metric_keys: tuple[str, ...] = ()
    max_query_params: int = DEFAULT_MAX_QUERY_PARAMS
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        missing = [s.value for s in Severity if s not in self.rating_by_severity]
        if missing:
            raise InvalidConfigError(
                "rating_by_severity", sorted(missing), "every severity must be mapped to a rating"
            )
        for severity, rating in self.rating_by_severity.items():
            if not isinstance(severity, Severity) or not isinstance(rating, Rating):
                raise InvalidConfigError(
                    "rating_by_severity", f"{severity}={rating}", "expected Severity -> Rating"
                )
        # one bind per IN list of a live measure query
        if self.max_query_params < 2:
            raise InvalidConfigError(
                "max_query_params", self.max_query_params, "must be at least 2"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> LiveMeasuresConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides from the embedding host

    Returns:
        Validated LiveMeasuresConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".live-measures.toml"
    if global_config.exists():
        merged.update(_read_source(global_config, "global"))

    project_config = Path.cwd() / "live-measures.toml"
    if project_config.exists():
        merged.update(_read_source(project_config, "project"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_read_source(config_file, "explicit"))

    merged.update(overrides)

    ratings = merged.pop("ratings", None)
    if ratings is not None:
        merged["rating_by_severity"] = _parse_ratings(ratings)

    if "extra_metric_keys" in merged:
        merged["extra_metric_keys"] = tuple(merged["extra_metric_keys"])

    try:
        return LiveMeasuresConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _read_source(path: Path, label: str) -> dict[str, Any]:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} config '{path}': {e}")


def _parse_ratings(raw: Any) -> dict[Severity, Rating]:
    """Parse a ``[ratings]`` table (``BLOCKER = "E"``) on top of the defaults."""
    if not isinstance(raw, Mapping):
        raise InvalidConfigError("ratings", raw, "expected a table of severity = rating")

    result = dict(DEFAULT_RATING_BY_SEVERITY)
    for severity_name, rating_name in raw.items():
        try:
            severity = severity_name if isinstance(severity_name, Severity) else Severity(
                str(severity_name).upper()
            )
        except ValueError:
            raise InvalidConfigError("ratings", severity_name, "unknown severity")
        try:
            rating = rating_name if isinstance(rating_name, Rating) else Rating[
                str(rating_name).upper()
            ]
        except KeyError:
            raise InvalidConfigError(f"ratings.{severity.value}", rating_name, "unknown rating")
        result[severity] = rating
    return result


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
