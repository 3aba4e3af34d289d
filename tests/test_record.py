import copy
import pickle

import pytest

import structerr
from structerr import context, fs, net
from structerr.record import DEFAULT_TYPE_TAG, StructuredError, new, wrap


class TestConstruction:
    def test_new_without_cause_sets_reserved_keys(self):
        err = new("something broke")
        assert err.fields["error"] == "something broke"
        assert err.fields["error_type"] == DEFAULT_TYPE_TAG
        assert "error_op" not in err.fields

    def test_new_with_cause_keeps_explicit_description(self):
        cause = fs.PathError("open", "/srv/app.conf", OSError("no such file"))
        err = new("config unavailable", cause)
        assert err.describe() == "config unavailable"
        assert err.fields["error_type"] == "fs.PathError"

    def test_bytes_paths_become_text(self):
        err = wrap(fs.PathError("open", b"/tmp/x", OSError(2, "No such file")))
        assert err.fields["path"] == "/tmp/x"

        native = wrap(OSError(2, "No such file or directory", b"/tmp/y"))
        assert native.fields["path"] == "/tmp/y"
        assert all(isinstance(value, str) for value in native.fields.values())
        assert err.fields["error_op"] == "open"
        assert err.fields["path"] == "/srv/app.conf"

    def test_empty_description_falls_back_to_classification(self):
        err = new("", net.ParseError("IP address", "1.2.3"))
        assert err.describe() == "invalid IP address"
        assert err.fields["error_type"] == "net.ParseError"
        assert err.fields["text_to_parse"] == "1.2.3"

    def test_new_with_structured_cause_returns_it(self):
        inner = new("inner")
        assert new("outer", inner) is inner

    def test_cause_is_chained(self):
        cause = ValueError("bad")
        assert wrap(cause).__cause__ is cause

    def test_namespace_is_callers_module(self):
        assert new("x").namespace == __name__
        assert wrap(ValueError("x")).namespace == __name__

    def test_can_be_raised(self):
        with pytest.raises(StructuredError, match="kaboom"):
            raise new("kaboom")


class TestWrap:
    def test_wrap_none_is_none(self):
        assert wrap(None) is None

    def test_wrap_is_idempotent(self):
        first = wrap(KeyError("k"))
        assert wrap(first) is first
        assert wrap(wrap(first)) is first

    def test_wrapped_filesystem_failure(self):
        err = wrap(fs.PathError("open", "/tmp/x", OSError("no such file")))
        assert err.fields["error_op"] == "open"
        assert err.describe() == "no such file"
        assert err.fields["error_type"] == "fs.PathError"

    def test_wrap_of_unknown_failure(self):
        class Quota(Exception):
            pass

        err = wrap(Quota("over quota"))
        assert err.describe() == "over quota"
        assert err.fields["error_type"].endswith("Quota")


class TestEnrichment:
    def test_chained_calls_return_same_instance(self):
        err = new("x")
        assert err.with_field("a", 1) is err
        assert err.with_operation("dial") is err
        assert err.with_fields({"b": 2}, c=3) is err

    def test_last_write_wins_on_normalized_key(self):
        err = new("x").with_field("Count", 1).with_field("count", 2)
        assert err.fields["count"] == "2"
        assert "Count" not in err.fields

    def test_values_are_stringified(self):
        err = new("x").with_field("proxy_all", True).with_field("attempts", 3).with_field("ratio", 0.5)
        assert err.fields["proxy_all"] == "true"
        assert err.fields["attempts"] == "3"
        assert err.fields["ratio"] == "0.5"

    def test_keys_are_normalized(self):
        err = new("x").with_field("Proxy-Addr!!", "10.0.0.1:8080")
        assert err.fields["proxy_addr"] == "10.0.0.1:8080"

    def test_operation_is_stored_verbatim(self):
        err = new("x").with_operation("Read-All")
        assert err.fields["error_op"] == "Read-All"

    def test_with_operation_overrides_classified_op(self):
        err = wrap(fs.PathError("open", "/x", OSError("gone"))).with_operation("load_config")
        assert err.fields["error_op"] == "load_config"

    def test_fields_view_is_read_only(self):
        err = new("x")
        with pytest.raises(TypeError):
            err.fields["error"] = "changed"


class TestDescribeAndFill:
    def test_str_is_description(self):
        err = new("disk full").with_field("device", "sda")
        assert str(err) == "disk full"

    def test_fill_does_not_clear_target(self):
        err = new("x").with_field("request_id", "r-1")
        target = {"existing": "kept", "request_id": "old"}
        err.fill(target)
        assert target["existing"] == "kept"
        assert target["request_id"] == "r-1"
        assert target["error"] == "x"

    def test_satisfies_contextual(self):
        assert isinstance(new("x"), context.Contextual)


class TestCopyAndPickle:
    def test_copy_keeps_fields_and_namespace(self):
        err = new("boom").with_field("attempt", 3)
        clone = copy.copy(err)
        assert dict(clone.fields) == dict(err.fields)
        assert clone.namespace == err.namespace
        clone.with_field("attempt", 4)
        assert err.fields["attempt"] == "3"

    def test_pickle_round_trip(self):
        err = wrap(fs.PathError("open", "/tmp/x", OSError("no such file")))
        restored = pickle.loads(pickle.dumps(err))
        assert isinstance(restored, StructuredError)
        assert dict(restored.fields) == dict(err.fields)
        assert restored.namespace == __name__
        assert str(restored) == "no such file"


class TestContextInheritance:
    def test_ambient_context_is_inherited(self):
        with context.scope(request_id="abc", user="u-7"):
            err = new("boom")
        assert err.fields["request_id"] == "abc"
        assert err.fields["user"] == "u-7"

    def test_explicit_fields_override_inherited(self):
        with context.scope(request_id="abc"):
            err = new("boom").with_field("request_id", "xyz")
        assert err.fields["request_id"] == "xyz"

    def test_reserved_keys_override_inherited(self):
        with context.scope(error="from context"):
            err = new("from caller")
        assert err.describe() == "from caller"

    def test_context_captured_at_creation_only(self):
        err = new("boom")
        with context.scope(request_id="late"):
            pass
        assert "request_id" not in err.fields

    def test_globals_only_when_enabled(self, monkeypatch):
        from structerr.config import get_settings

        context.put_global("app_instance", "i-1")
        assert "app_instance" not in new("x").fields

        monkeypatch.setenv("STRUCTERR_INCLUDE_GLOBAL_CONTEXT", "true")
        get_settings.cache_clear()
        assert new("x").fields["app_instance"] == "i-1"


def test_package_exports():
    assert structerr.new is new
    assert structerr.wrap is wrap
    assert structerr.normalize("A B") == "a_b"
