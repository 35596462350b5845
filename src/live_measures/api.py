"""Public API for Live Measures.

Hosts embed the engine by opening a session on the measure database and
calling ``refresh`` whenever the issues of a component change.

Example:
    >>> from live_measures import open_session, refresh
    >>>
    >>> with open_session(database_path="/var/lib/measures.db") as session:
    ...     component = session.select_component(file_uuid)
    ...     result = refresh(session, component)
    ...     result.alert_status
    <Level.WARN: 'WARN'>
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .config import LiveMeasuresConfig, load_config
from .logging_config import get_logger, setup_logging
from .measure.computer import LiveMeasureComputer, RefreshResult
from .models import Component
from .persistence.database import MeasureDB
from .persistence.sqlite_store import SqliteDataStore
from .persistence.store import DataStore

logger = get_logger(__name__)


@contextmanager
def open_session(
    config: Optional[LiveMeasuresConfig] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> Iterator[SqliteDataStore]:
    """Open the configured measure database and yield a store session on it.

    Args:
        config: Ready configuration. When omitted it is loaded from
            ``config_file`` and the discovered TOML files, then ``overrides``.
    """
    if config is None:
        config = load_config(config_file, **overrides)
    logger.debug("Opening live measure session on %s", config.database_path)
    with MeasureDB(config.database_path) as db:
        yield SqliteDataStore(db.conn, max_query_params=config.max_query_params)


def refresh(
    session: DataStore,
    component: Component,
    config: Optional[LiveMeasuresConfig] = None,
) -> Optional[RefreshResult]:
    """Refresh the live measures of ``component`` and its ancestors in one transaction.

    Returns:
        The refresh outcome, or None when the project has no analysis.

    Raises:
        DataStoreError: If the store fails. The refresh is rolled back.
        InvariantViolationError: On a programming or data-integrity error.
        ThresholdParseError: If a gate threshold does not parse.
    """
    return LiveMeasureComputer(config).refresh(session, component)


def configure_logging(
    config: Optional[LiveMeasuresConfig] = None, log_file: Optional[str] = None
) -> logging.Logger:
    """Install the rich log handler at the configured verbosity.

    Hosts that route ``live_measures`` logs through their own handlers skip this.
    """
    if config is None:
        config = load_config()
    return setup_logging(
        verbose=config.verbosity == "verbose",
        quiet=config.verbosity == "quiet",
        log_file=log_file,
    )
