"""Tests for Environment lookups and ApplicationContext lifecycle."""

import threading

import pytest

from encprops.core.environment import ApplicationContext, Environment
from encprops.core.initializer import ContextInitializer
from encprops.core.property_sources import MapPropertySource
from encprops.errors import MissingPropertyError, PlaceholderResolutionError


def _env(*sources: dict) -> Environment:
    """Environment whose sources are *sources*, highest precedence first."""
    env = Environment(include_system_environment=False)
    for index, props in enumerate(sources):
        env.property_sources.add_last(MapPropertySource(f"s{index}", props))
    return env


class TestGetProperty:
    def test_first_source_wins(self):
        env = _env({"k": "high"}, {"k": "low", "only_low": "x"})
        assert env.get_property("k") == "high"
        assert env.get_property("only_low") == "x"

    def test_default_when_missing(self):
        env = _env({})
        assert env.get_property("missing") is None
        assert env.get_property("missing", "fallback") == "fallback"

    def test_contains_property(self):
        env = _env({"a": "1"})
        assert env.contains_property("a") is True
        assert env.contains_property("b") is False

    def test_type_conversion(self):
        env = _env({"port": " 8080 ", "ratio": "0.5", "on": "yes", "off": "False"})
        assert env.get_property("port", target_type=int) == 8080
        assert env.get_property("ratio", target_type=float) == pytest.approx(0.5)
        assert env.get_property("on", target_type=bool) is True
        assert env.get_property("off", target_type=bool) is False

    def test_bad_conversion_raises(self):
        env = _env({"port": "eighty", "flag": "maybe"})
        with pytest.raises(ValueError, match="port"):
            env.get_property("port", target_type=int)
        with pytest.raises(ValueError, match="flag"):
            env.get_property("flag", target_type=bool)

    def test_unsupported_type(self):
        env = _env({"a": "1"})
        with pytest.raises(TypeError):
            env.get_property("a", target_type=list)

    def test_default_is_not_converted(self):
        env = _env({})
        assert env.get_property("port", 9000, target_type=int) == 9000


class TestPlaceholders:
    def test_resolved_across_sources(self):
        env = _env({"url": "jdbc://${host}:${port:5432}/app"}, {"host": "db"})
        assert env.get_property("url") == "jdbc://db:5432/app"

    def test_nested(self):
        env = _env({"a": "${b}", "b": "${c}!", "c": "end"})
        assert env.get_property("a") == "end!"

    def test_empty_default(self):
        env = _env({"a": "[${missing:}]"})
        assert env.get_property("a") == "[]"

    def test_unresolvable(self):
        env = _env({"a": "${missing}"})
        with pytest.raises(PlaceholderResolutionError, match="missing"):
            env.get_property("a")

    def test_circular(self):
        env = _env({"a": "${b}", "b": "${a}"})
        with pytest.raises(PlaceholderResolutionError, match="Circular"):
            env.get_property("a")

    def test_self_reference(self):
        env = _env({"a": "x${a}"})
        with pytest.raises(PlaceholderResolutionError):
            env.get_property("a")

    def test_resolve_placeholders_in_text(self):
        env = _env({"name": "world"})
        assert env.resolve_placeholders("hello ${name}") == "hello world"


class TestRequiredProperty:
    def test_present(self):
        env = _env({"n": "3"})
        assert env.get_required_property("n", int) == 3

    def test_missing_raises(self):
        env = _env({})
        with pytest.raises(MissingPropertyError) as exc_info:
            env.get_required_property("db.url")
        assert isinstance(exc_info.value, KeyError)
        assert "db.url" in str(exc_info.value)


class TestSystemEnvironment:
    def test_included_by_default(self, monkeypatch):
        monkeypatch.setenv("ENCPROPS_ENV_TEST", "from-env")
        env = Environment()

        assert env.property_sources.names() == ["systemEnvironment"]
        assert env.get_property("ENCPROPS_ENV_TEST") == "from-env"

    def test_sources_added_first_beat_environment(self, monkeypatch):
        monkeypatch.setenv("ENCPROPS_ENV_TEST", "from-env")
        env = Environment()
        env.property_sources.add_first(MapPropertySource("app", {"ENCPROPS_ENV_TEST": "from-file"}))

        assert env.get_property("ENCPROPS_ENV_TEST") == "from-file"


class RecordingInitializer(ContextInitializer):
    def __init__(self, name: str, calls: list[str]) -> None:
        self.name = name
        self.calls = calls

    def initialize(self, context: ApplicationContext) -> None:
        self.calls.append(self.name)
        context.environment.property_sources.add_first(MapPropertySource(self.name, {}))


class NestingInitializer(ContextInitializer):
    """Touches the context lifecycle from inside ``initialize``."""

    def __init__(self, action) -> None:
        self.action = action
        self.error: Exception | None = None

    def initialize(self, context: ApplicationContext) -> None:
        try:
            self.action(context)
        except RuntimeError as exc:
            self.error = exc


class TestApplicationContext:
    def test_refresh_runs_initializers_in_order(self):
        calls: list[str] = []
        context = ApplicationContext(Environment(include_system_environment=False))
        context.add_initializer(RecordingInitializer("one", calls))
        context.add_initializer(RecordingInitializer("two", calls))

        context.refresh()

        assert calls == ["one", "two"]
        assert context.is_refreshed is True
        assert context.get_environment().property_sources.names() == ["two", "one"]

    def test_second_refresh_is_noop(self):
        calls: list[str] = []
        context = ApplicationContext()
        context.add_initializer(RecordingInitializer("one", calls))

        context.refresh()
        context.refresh()

        assert calls == ["one"]

    def test_add_after_refresh_rejected(self):
        context = ApplicationContext()
        context.refresh()
        with pytest.raises(RuntimeError):
            context.add_initializer(RecordingInitializer("late", []))

    def test_default_environment_created(self):
        assert isinstance(ApplicationContext().environment, Environment)

    @pytest.mark.parametrize(
        "action, message",
        [
            (lambda ctx: ctx.add_initializer(RecordingInitializer("nested", [])), "during refresh"),
            (lambda ctx: ctx.refresh(), "already in progress"),
        ],
    )
    def test_lifecycle_calls_inside_initializer_rejected(self, action, message):
        nesting = NestingInitializer(action)
        context = ApplicationContext(Environment(include_system_environment=False))
        context.add_initializer(nesting)

        worker = threading.Thread(target=context.refresh, daemon=True)
        worker.start()
        worker.join(2)

        assert not worker.is_alive(), "refresh() did not return"
        assert nesting.error is not None and message in str(nesting.error)
        assert context.is_refreshed is True

    def test_failed_refresh_can_be_retried(self):
        class Flaky(ContextInitializer):
            attempts = 0

            def initialize(self, context: ApplicationContext) -> None:
                Flaky.attempts += 1
                if Flaky.attempts == 1:
                    raise ValueError("boom")

        context = ApplicationContext(Environment(include_system_environment=False))
        context.add_initializer(Flaky())

        with pytest.raises(ValueError):
            context.refresh()
        assert context.is_refreshed is False

        context.refresh()
        assert context.is_refreshed is True
