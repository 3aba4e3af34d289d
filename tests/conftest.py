from __future__ import annotations

from typing import Mapping

import pytest

from structerr import context
from structerr.config import get_settings
from structerr.reporting import ReportingFacade


class RecordingReporter:
    """Reporter double that keeps everything it is sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[dict[str, str], str]] = []

    def send(self, fields: Mapping[str, str], app_version: str) -> None:
        self.sent.append((dict(fields), app_version))


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Isolate settings and process-wide context between tests."""
    for name in ("STRUCTERR_INCLUDE_GLOBAL_CONTEXT", "STRUCTERR_STDERR_LIMIT", "STRUCTERR_STATSIG_SERVER_SECRET"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    context.clear_globals()
    yield
    get_settings.cache_clear()
    context.clear_globals()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def facade(reporter: RecordingReporter) -> ReportingFacade:
    facade = ReportingFacade()
    facade.initialize("1.2.3", reporter, enable_logging=True)
    return facade
