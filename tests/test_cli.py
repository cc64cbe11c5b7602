from datetime import timedelta

import pytest

from gotenberg.cli import VERSION, _run, _ShutdownSignal, apply_env_overrides, build_flag_set, main
from gotenberg.debug import debug, reset_debug
from gotenberg.deadline import Deadline
from gotenberg.flags import FlagError, FlagSet, ParsedFlags
from gotenberg.modules import ModuleDescriptor


class FakeApp:
    def __init__(self, id_, start_error=None, stop_error=None, message="", flag_set=None):
        self.id = id_
        self.start_error = start_error
        self.stop_error = stop_error
        self.message = message
        self.flag_set = flag_set
        self.started = False
        self.stop_deadline = None

    def descriptor(self):
        return ModuleDescriptor(id=self.id, flag_set=self.flag_set, new=lambda: self)

    def start(self):
        self.started = True
        if self.start_error:
            raise RuntimeError(self.start_error)

    def startup_message(self):
        return self.message

    def stop(self, deadline):
        self.stop_deadline = deadline
        if self.stop_error:
            raise RuntimeError(self.stop_error)


class PortApp(FakeApp):
    def __init__(self):
        flag_set = FlagSet("myapp")
        flag_set.add_int("myapp-port", 3000, "")
        super().__init__("myapp", flag_set=flag_set)
        self.port = None

    def provision(self, ctx):
        self.port = ctx.parsed_flags().must_int("myapp-port")


class BrokenApp(FakeApp):
    def provision(self, ctx):
        raise RuntimeError("boom")


class FakeSystemLogger:
    def descriptor(self):
        return ModuleDescriptor(id="notes", new=lambda: self)

    def system_messages(self):
        return ["first note", "second note"]


def _serve(args, environ, modules):
    with _ShutdownSignal() as shutdown:
        shutdown.request()
        return _run(args, environ, [mod.descriptor() for mod in modules], shutdown)


@pytest.fixture(autouse=True)
def _clean_debug():
    reset_debug()
    yield
    reset_debug()


def test_build_flag_set_defaults_and_module_flags():
    module_flags = FlagSet("mod")
    module_flags.add_string("mod-name", "value", "")
    flag_set = build_flag_set([ModuleDescriptor(id="mod", flag_set=module_flags)])
    parsed = ParsedFlags(flag_set)
    assert parsed.must_duration("gotenberg-graceful-shutdown-duration") == timedelta(seconds=30)
    assert parsed.must_bool("gotenberg-build-debug-data") is True
    assert parsed.must_string("mod-name") == "value"


def test_apply_env_overrides_replaces_slices():
    flag_set = FlagSet("tests")
    flag_set.add_string_slice("foo-bar", ["a"], "")
    apply_env_overrides(flag_set, {"FOO_BAR": "b,c"})
    assert ParsedFlags(flag_set).must_string_slice("foo-bar") == ["b", "c"]


def test_apply_env_overrides_sets_values_without_marking_changed():
    flag_set = FlagSet("tests")
    flag_set.add_duration("wait-time", timedelta(seconds=1), "")
    flag_set.add_string("untouched", "same", "")
    apply_env_overrides(flag_set, {"WAIT_TIME": "2m"})
    parsed = ParsedFlags(flag_set)
    assert parsed.must_duration("wait-time") == timedelta(minutes=2)
    assert parsed.must_string("untouched") == "same"
    assert flag_set.changed("wait-time") is False


def test_apply_env_overrides_invalid_value():
    flag_set = FlagSet("tests")
    flag_set.add_bool("enabled", False, "")
    with pytest.raises(FlagError, match="invalid overriding value 'maybe' from ENABLED"):
        apply_env_overrides(flag_set, {"ENABLED": "maybe"})


def test_main_rejects_unknown_flag(capsys):
    assert main(["--no-such-flag=1"]) == 1
    out = capsys.readouterr().out
    assert f"Version: {VERSION}" in out
    assert "unknown flag: --no-such-flag" in out


def test_main_rejects_invalid_environment_override(monkeypatch, capsys):
    monkeypatch.setenv("GOTENBERG_BUILD_DEBUG_DATA", "maybe")
    assert main([]) == 1
    assert "[FATAL] invalid overriding value 'maybe' from GOTENBERG_BUILD_DEBUG_DATA" in capsys.readouterr().out


def test_run_starts_and_stops_apps(capsys):
    app = FakeApp("myapp")
    assert _serve([], {}, [app, FakeSystemLogger()]) == 0
    out = capsys.readouterr().out
    assert app.started is True
    assert isinstance(app.stop_deadline, Deadline)
    assert "[SYSTEM] modules: myapp notes " in out
    assert "[SYSTEM] myapp: application started" in out
    assert "[SYSTEM] notes: first note" in out
    assert "[SYSTEM] notes: second note" in out
    assert "[SYSTEM] graceful shutdown of 30s" in out
    assert "[SYSTEM] myapp: application stopped" in out
    assert debug().modules == ["myapp", "notes"]


def test_run_prints_custom_startup_message(capsys):
    app = FakeApp("myapp", message="listening")
    assert _serve([], {}, [app]) == 0
    assert "[SYSTEM] myapp: listening" in capsys.readouterr().out


def test_run_flags_then_environment(capsys):
    app = PortApp()
    assert _serve(["--myapp-port=8080", "--gotenberg-build-debug-data=false"], {}, [app]) == 0
    assert app.port == 8080
    assert debug().modules == []

    app = PortApp()
    assert _serve(["--myapp-port=8080"], {"MYAPP_PORT": "9090"}, [app]) == 0
    assert app.port == 9090


def test_run_start_failure(capsys):
    app = FakeApp("myapp", start_error="cannot bind")
    assert _serve([], {}, [app]) == 1
    out = capsys.readouterr().out
    assert "[FATAL] starting myapp: cannot bind" in out
    assert app.stop_deadline is None


def test_run_stop_failure(capsys):
    app = FakeApp("myapp", stop_error="still busy")
    assert _serve([], {}, [app]) == 1
    assert "[FATAL] stopping myapp: still busy" in capsys.readouterr().out


def test_run_provision_failure(capsys):
    app = BrokenApp("bad")
    assert _serve([], {}, [app]) == 1
    assert "[FATAL] provision module bad: boom" in capsys.readouterr().out
    assert app.started is False