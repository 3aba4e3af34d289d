"""Process-wide reporting of StructuredError records."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Protocol, Union, runtime_checkable

from structerr.config import get_settings
from structerr.record import StructuredError, wrap_skip_frames

logger = logging.getLogger(__name__)


@runtime_checkable
class Reporter(Protocol):
    """Sink for finished records. Expected to be non-blocking and non-raising."""

    def send(self, fields: Mapping[str, str], app_version: str) -> None:
        ...


ReporterLike = Union[Reporter, Callable[[Mapping[str, str], str], None]]


class _CallableReporter:
    def __init__(self, fn: Callable[[Mapping[str, str], str], None]):
        self._fn = fn

    def send(self, fields: Mapping[str, str], app_version: str) -> None:
        self._fn(fields, app_version)


def _as_reporter(reporter: ReporterLike) -> Reporter:
    if isinstance(reporter, Reporter):
        return reporter
    if callable(reporter):
        return _CallableReporter(reporter)
    raise TypeError(f"reporter must have send() or be callable, got {type(reporter).__name__}")


@dataclass(frozen=True)
class ReportingConfig:
    app_version: str
    reporter: Reporter
    logging_enabled: bool


class ReportingFacade:
    """Hands finished records to a reporter, optionally logging them first.

    Configured once with `initialize`. A second `initialize` is ignored with a
    warning. Records reported before `initialize` go to a fallback built from
    `get_settings()` and the Statsig reporter, which does nothing unless a
    Statsig secret is set. The fallback never blocks a later `initialize`.
    """

    def __init__(self) -> None:
        self._config: Optional[ReportingConfig] = None
        self._fallback: Optional[ReportingConfig] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._config is not None

    def initialize(self, app_version: str, reporter: ReporterLike, enable_logging: bool) -> None:
        config = ReportingConfig(app_version, _as_reporter(reporter), enable_logging)
        with self._lock:
            if self._config is not None:
                logger.warning(
                    "Error reporting already initialized for version %s; ignoring re-initialization",
                    self._config.app_version,
                )
                return
            self._config = config

    def _current_config(self) -> ReportingConfig:
        config = self._config
        if config is not None:
            return config

        from structerr.services.statsig_client import StatsigReporter

        settings = get_settings()
        with self._lock:
            if self._config is not None:
                return self._config
            if self._fallback is None:
                logger.debug("Error reporting used before initialize(); using settings defaults")
                self._fallback = ReportingConfig(
                    settings.app_version, StatsigReporter(), settings.enable_logging
                )
            return self._fallback

    def report(self, record: StructuredError) -> None:
        config = self._current_config()
        if config.logging_enabled:
            logging.getLogger(record.namespace).error("%s", record.describe())
        config.reporter.send(dict(record.fields), config.app_version)


_facade = ReportingFacade()


def initialize(app_version: str, reporter: ReporterLike, enable_logging: bool) -> None:
    """Configure process-wide reporting. Call once, before any `report`."""
    _facade.initialize(app_version, reporter, enable_logging)


def report(exc: Optional[BaseException]) -> Optional[StructuredError]:
    """Wrap `exc` (if needed) and report it. Returns the reported record."""
    record = wrap_skip_frames(exc, 1)
    if record is not None:
        _facade.report(record)
    return record
