"""Statsig-backed reporter for structured errors."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from statsig.statsig_event import StatsigEvent
from statsig.statsig_options import StatsigOptions
from statsig.statsig_server import StatsigServer
from statsig.statsig_user import StatsigUser

from structerr.config import get_settings

logger = logging.getLogger(__name__)


class _StatsigAdapter:
    def __init__(self, secret_key: str | None, environment: str, client: Any = None):
        self._client: Any = client
        if client is not None or not secret_key:
            return

        try:
            server = StatsigServer()
            server.initialize(secret_key, StatsigOptions(tier=environment))
            self._client = server
        except Exception as exc:  # noqa: BLE001
            logger.warning("Statsig initialization failed: %s", exc)
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def log_event(
        self,
        *,
        user_id: str,
        event_name: str,
        value: float | int | str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        if not self._client:
            return

        try:
            self._client.log_event(
                StatsigEvent(StatsigUser(user_id), event_name, value=value, metadata=metadata)
            )
        except Exception as exc:  # noqa: BLE001
            logger.debug("Statsig event failed: %s", exc)

    def shutdown(self) -> None:
        if not self._client:
            return

        try:
            self._client.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Statsig shutdown failed: %s", exc)


_statsig_client: _StatsigAdapter | None = None


def get_statsig_client() -> _StatsigAdapter:
    global _statsig_client
    if _statsig_client is None:
        settings = get_settings()
        _statsig_client = _StatsigAdapter(
            settings.statsig_server_secret, settings.environment
        )
    return _statsig_client


class StatsigReporter:
    """Reporter that logs one Statsig event per record.

    The event value is the record's error_type; the metadata is every field
    plus `app_version`.
    """

    def __init__(
        self,
        client: _StatsigAdapter | None = None,
        *,
        event_name: str | None = None,
        user_id: str | None = None,
    ):
        settings = get_settings()
        self._client = client
        self.event_name = event_name or settings.statsig_event_name
        self.user_id = user_id or settings.statsig_user_id

    def send(self, fields: Mapping[str, str], app_version: str) -> None:
        client = self._client or get_statsig_client()
        metadata = dict(fields)
        metadata["app_version"] = app_version
        client.log_event(
            user_id=self.user_id,
            event_name=self.event_name,
            value=fields.get("error_type"),
            metadata=metadata,
        )

    def shutdown(self) -> None:
        """Flush pending events. Call once at process exit."""
        if self._client is not None:
            self._client.shutdown()
        else:
            shutdown_statsig()


def shutdown_statsig() -> None:
    """Flush and drop the shared client; a later send builds a new one."""
    global _statsig_client
    client, _statsig_client = _statsig_client, None
    if client is not None:
        client.shutdown()
