import logging

import pytest

import structerr.services.statsig_client as statsig_client
from structerr.record import new
from structerr.services.statsig_client import StatsigReporter, _StatsigAdapter


class FakeStatsigServer:
    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail
        self.closed = False

    def log_event(self, event):
        if self.fail:
            raise RuntimeError("network down")
        self.events.append(event)

    def shutdown(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_client(monkeypatch):
    monkeypatch.setattr(statsig_client, "_statsig_client", None)


class TestAdapter:
    def test_disabled_without_secret(self):
        adapter = _StatsigAdapter(None, "development")
        assert not adapter.enabled
        adapter.log_event(user_id="backend", event_name="x")
        adapter.shutdown()

    def test_logs_statsig_event(self):
        server = FakeStatsigServer()
        adapter = _StatsigAdapter(None, "development", client=server)
        adapter.log_event(user_id="svc", event_name="error_reported", value="fs.PathError", metadata={"a": "b"})
        (event,) = server.events
        assert event.event_name == "error_reported"
        assert event.value == "fs.PathError"
        assert event.metadata == {"a": "b"}
        assert event.user.user_id == "svc"

    def test_event_failures_are_swallowed(self, caplog):
        adapter = _StatsigAdapter(None, "development", client=FakeStatsigServer(fail=True))
        with caplog.at_level(logging.DEBUG, logger="structerr.services.statsig_client"):
            adapter.log_event(user_id="svc", event_name="x")
        assert "Statsig event failed" in caplog.text

    def test_initialization_failure_disables_adapter(self, monkeypatch, caplog):
        class ExplodingServer:
            def initialize(self, *args, **kwargs):
                raise RuntimeError("bad key")

        monkeypatch.setattr(statsig_client, "StatsigServer", ExplodingServer)
        with caplog.at_level(logging.WARNING, logger="structerr.services.statsig_client"):
            adapter = _StatsigAdapter("secret-key", "production")
        assert not adapter.enabled
        assert "Statsig initialization failed" in caplog.text

    def test_shutdown(self):
        server = FakeStatsigServer()
        _StatsigAdapter(None, "development", client=server).shutdown()
        assert server.closed


class TestReporter:
    def test_sends_fields_as_metadata(self):
        server = FakeStatsigServer()
        reporter = StatsigReporter(_StatsigAdapter(None, "test", client=server))
        err = new("boom").with_field("request_id", "abc")
        reporter.send(dict(err.fields), "1.2.3")
        (event,) = server.events
        assert event.event_name == "error_reported"
        assert event.value == "structerr.StructuredError"
        assert event.metadata["request_id"] == "abc"
        assert event.metadata["error"] == "boom"
        assert event.metadata["app_version"] == "1.2.3"
        assert event.user.user_id == "backend"

    def test_settings_control_event_name(self, monkeypatch):
        from structerr.config import get_settings

        monkeypatch.setenv("STRUCTERR_STATSIG_EVENT_NAME", "svc_error")
        get_settings.cache_clear()
        reporter = StatsigReporter(_StatsigAdapter(None, "test", client=FakeStatsigServer()))
        assert reporter.event_name == "svc_error"

    def test_default_client_is_noop_without_secret(self):
        StatsigReporter().send({"error": "x", "error_type": "t"}, "1.0")
        assert not statsig_client.get_statsig_client().enabled

    def test_shutdown_flushes_own_client(self):
        server = FakeStatsigServer()
        StatsigReporter(_StatsigAdapter(None, "test", client=server)).shutdown()
        assert server.closed


class TestSharedClientShutdown:
    def test_shutdown_flushes_and_drops_shared_client(self, monkeypatch):
        server = FakeStatsigServer()
        monkeypatch.setattr(statsig_client, "_statsig_client", _StatsigAdapter(None, "test", client=server))

        StatsigReporter().shutdown()

        assert server.closed
        assert statsig_client._statsig_client is None

    def test_shutdown_without_client_is_noop(self):
        statsig_client.shutdown_statsig()
        assert statsig_client._statsig_client is None
