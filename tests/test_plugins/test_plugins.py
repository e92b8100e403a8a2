"""Tests for the commitcam plugin contract, hook dispatch and registry."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
import yaml

from commitcam.exceptions import DuplicatePluginError, PluginError
from commitcam.models import (
    CaptureContext,
    OptionSpec,
    OptionType,
    Phase,
    PluginConfiguration,
)
from commitcam.output import OutputFormat, OutputManager, set_output
from commitcam.plugins.base import Plugin
from commitcam.plugins.hooks import HookOutcome, HookRunner
from commitcam.plugins.manager import ENTRY_POINT_GROUP, PluginManager
from commitcam.plugins.options import ENABLED_OPTION
from commitcam.plugins.sample import SamplePlugin

from conftest import ALL_PHASES, ENABLED, RecordingPlugin


# ---------------------------------------------------------------------------
# Test helpers -- concrete Plugin subclasses
# ---------------------------------------------------------------------------


class MinimalPlugin(Plugin):
    """Smallest valid plugin -- only implements the required ``name`` property."""

    @property
    def name(self) -> str:
        return "minimal"


class EndpointPlugin(Plugin):
    """Declares extra options and requires ``endpoint`` to count as configured."""

    @property
    def name(self) -> str:
        return "endpoint"

    @property
    def runner_order(self) -> frozenset[Phase]:
        return frozenset({Phase.CAPTURE_READY})

    @property
    def options(self) -> list[OptionSpec]:
        return [
            ENABLED_OPTION,
            OptionSpec(key="endpoint", required=True),
            OptionSpec(key="retries", type=OptionType.INTEGER, default=3),
            OptionSpec(key="scale", type=OptionType.NUMBER),
        ]

    def configured(self) -> bool:
        return super().configured() and bool(self.configuration.get("endpoint"))


def _answers(*values: str):
    """Return a prompt callable that replays *values* and records the labels."""
    remaining = list(values)
    labels: list[str] = []

    def prompt(label: str) -> str:
        labels.append(label)
        return remaining.pop(0)

    prompt.labels = labels  # type: ignore[attr-defined]
    return prompt


# ---------------------------------------------------------------------------
# Plugin ABC
# ---------------------------------------------------------------------------


class TestPluginABC:
    """Test that Plugin enforces the abstract contract and its defaults."""

    def test_cannot_instantiate_without_name(self) -> None:
        with pytest.raises(TypeError):

            class BadPlugin(Plugin):
                pass

            BadPlugin()  # type: ignore[abstract]

    def test_defaults(self) -> None:
        plugin = MinimalPlugin()
        assert plugin.version == "0.1.0"
        assert plugin.description == ""
        assert plugin.runner_order == frozenset()
        assert plugin.options == [ENABLED_OPTION]
        assert plugin.configuration is None

    def test_default_hooks_are_noops(self, ctx: CaptureContext) -> None:
        plugin = MinimalPlugin()
        for phase in Phase:
            assert plugin.hook_for(phase)(ctx) is None

    def test_hook_for_maps_each_phase(self) -> None:
        plugin = MinimalPlugin()
        assert plugin.hook_for(Phase.PRE_CAPTURE) == plugin.run_pre_capture
        assert plugin.hook_for(Phase.POST_CAPTURE) == plugin.run_post_capture
        assert plugin.hook_for(Phase.CAPTURE_READY) == plugin.run_capture_ready

    def test_config_from_raw_mapping(self) -> None:
        plugin = MinimalPlugin(config={"enabled": True, "extra": "x"})
        assert plugin.configuration == PluginConfiguration(enabled=True, options={"extra": "x"})

    def test_empty_mapping_means_unconfigured(self) -> None:
        assert MinimalPlugin(config={}).configuration is None

    def test_config_sourced_from_runner_store(self, store) -> None:
        store.set("minimal", PluginConfiguration(enabled=True))

        class FakeRunner:
            pass

        runner = FakeRunner()
        runner.store = store  # type: ignore[attr-defined]
        plugin = MinimalPlugin(runner=runner)  # type: ignore[arg-type]
        assert plugin.enabled() is True
        assert not hasattr(plugin, "runner")

    def test_explicit_config_wins_over_runner(self, store) -> None:
        store.set("minimal", PluginConfiguration(enabled=True))

        class FakeRunner:
            pass

        runner = FakeRunner()
        runner.store = store  # type: ignore[attr-defined]
        plugin = MinimalPlugin(runner=runner, config={"enabled": False})  # type: ignore[arg-type]
        assert plugin.enabled() is False

    def test_unreadable_store_entry_means_unconfigured(self, store, capsys) -> None:
        store.path.write_text(
            yaml.safe_dump({"minimal": {"enabled": True, "tags": [1, 2]}}), encoding="utf-8"
        )

        class FakeRunner:
            pass

        runner = FakeRunner()
        runner.store = store  # type: ignore[attr-defined]
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        plugin = MinimalPlugin(runner=runner)  # type: ignore[arg-type]
        assert plugin.configuration is None
        assert plugin.configured() is False
        err = capsys.readouterr().err
        assert "Warning: Ignoring stored configuration" in err
        assert "minimal" in err

    def test_parse_user_input_available_on_plugins(self) -> None:
        assert MinimalPlugin.parse_user_input("TRUE") is True
        assert MinimalPlugin().parse_user_input("12") == 12


# ---------------------------------------------------------------------------
# Enablement state machine
# ---------------------------------------------------------------------------


class TestEnablement:
    """configured() / enabled() / valid_configuration()."""

    def test_unconfigured(self, quiet_output) -> None:
        plugin = MinimalPlugin()
        assert plugin.configured() is False
        assert plugin.enabled() is False
        assert plugin.valid_configuration() is False

    def test_configured_and_enabled(self) -> None:
        plugin = MinimalPlugin(config=ENABLED)
        assert plugin.configured() is True
        assert plugin.enabled() is True
        assert plugin.valid_configuration() is True

    def test_configured_but_disabled(self) -> None:
        plugin = MinimalPlugin(config={"enabled": False})
        assert plugin.configured() is True
        assert plugin.enabled() is False
        assert plugin.valid_configuration() is False

    @pytest.mark.parametrize("value", ["true", "yes", 1, None])
    def test_only_boolean_true_enables(self, value: Any) -> None:
        plugin = MinimalPlugin(config={"enabled": value})
        assert plugin.enabled() is False

    def test_invalid_when_not_configured_regardless_of_enabled(self, quiet_output) -> None:
        """A subclass whose stronger configured() fails is never admitted."""
        plugin = EndpointPlugin(config={"enabled": True})
        assert plugin.enabled() is True
        assert plugin.configured() is False
        assert plugin.valid_configuration() is False

    def test_unconfigured_message_explains_setup(self, capsys) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        MinimalPlugin().valid_configuration()
        err = capsys.readouterr().err
        assert "Missing or invalid configuration for plugin 'minimal'" in err
        assert "commitcam plugins configure minimal" in err

    def test_disabled_is_skipped_quietly(self, capsys) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        MinimalPlugin(config={"enabled": False}).valid_configuration()
        assert capsys.readouterr().err == ""


# ---------------------------------------------------------------------------
# Configuration flow
# ---------------------------------------------------------------------------


class TestConfigureOptions:
    """configure_options() builds a fresh configuration from prompts."""

    def test_default_options_prompt_for_enabled(self) -> None:
        prompt = _answers("true")
        result = MinimalPlugin().configure_options(prompt)
        assert result == PluginConfiguration(enabled=True, options={})
        assert prompt.labels == ["enabled (true/false)"]

    def test_prompts_in_declared_order_with_types(self) -> None:
        prompt = _answers("yes", "https://example.com/hook", "", "1.5")
        result = EndpointPlugin().configure_options(prompt)
        assert prompt.labels == [
            "enabled (true/false)",
            "endpoint",
            "retries",
            "scale",
        ]
        assert result.enabled is True
        assert result.options == {
            "endpoint": "https://example.com/hook",
            "retries": 3,
            "scale": 1.5,
        }

    def test_reasks_on_invalid_value(self, quiet_output) -> None:
        prompt = _answers("maybe", "false")
        result = MinimalPlugin().configure_options(prompt)
        assert result.enabled is False
        assert len(prompt.labels) == 2

    def test_required_blank_reasks(self, quiet_output) -> None:
        prompt = _answers("true", "", "http://x", "4", "")
        result = EndpointPlugin().configure_options(prompt)
        assert result.options["endpoint"] == "http://x"
        assert result.options["retries"] == 4
        assert result.options["scale"] is None

    def test_rerun_replaces_previous_configuration(self) -> None:
        plugin = EndpointPlugin(
            config={"enabled": True, "endpoint": "old", "retries": 9, "legacy": "keep?"}
        )
        first = plugin.configure_options(_answers("true", "a", "1", "2"))
        second = plugin.configure_options(_answers("false", "b", "", ""))
        assert first.options == {"endpoint": "a", "retries": 1, "scale": 2.0}
        assert second == PluginConfiguration(
            enabled=False, options={"endpoint": "b", "retries": 3, "scale": None}
        )
        assert "legacy" not in second.options

    def test_does_not_touch_current_configuration(self) -> None:
        plugin = MinimalPlugin(config={"enabled": False})
        plugin.configure_options(_answers("true"))
        assert plugin.enabled() is False

    def test_default_prompt_uses_typer(self) -> None:
        with patch("commitcam.plugins.base.typer.prompt", return_value="true") as mock_prompt:
            result = MinimalPlugin().configure_options()
        assert result.enabled is True
        mock_prompt.assert_called_once_with("enabled (true/false)", default="", show_default=False)


# ---------------------------------------------------------------------------
# HookRunner
# ---------------------------------------------------------------------------


class TestHookRunner:
    """Per-phase dispatch, admission checks and failure isolation."""

    def test_empty_runner_order_never_invoked(self, ctx, calls) -> None:
        silent = RecordingPlugin("silent", frozenset(), calls, config=ENABLED)
        runner = HookRunner([silent])
        for phase in Phase:
            report = runner.run_phase(phase, ctx)
            assert report.results == []
        assert calls == []

    def test_invoked_only_for_declared_phases(self, ctx, calls) -> None:
        plugin = RecordingPlugin(
            "pre-ready",
            frozenset({Phase.PRE_CAPTURE, Phase.CAPTURE_READY}),
            calls,
            config=ENABLED,
        )
        runner = HookRunner([plugin])
        for phase in Phase.ordered():
            runner.run_phase(phase, ctx)
        assert calls == [("pre-ready", "pre_capture"), ("pre-ready", "capture_ready")]

    def test_disabled_plugin_never_runs(self, ctx, calls) -> None:
        plugin = RecordingPlugin("off", ALL_PHASES, calls, config={"enabled": False})
        runner = HookRunner([plugin])
        reports = [runner.run_phase(phase, ctx) for phase in Phase.ordered()]
        assert calls == []
        assert all(r.skipped == ["off"] for r in reports)

    def test_unconfigured_plugin_skipped(self, ctx, calls, quiet_output) -> None:
        plugin = RecordingPlugin("new", ALL_PHASES, calls)
        report = HookRunner([plugin]).run_pre_capture(ctx)
        assert report.skipped == ["new"]
        assert calls == []

    def test_admission_checked_before_every_dispatch(self, ctx, calls) -> None:
        plugin = RecordingPlugin("flaky", ALL_PHASES, calls, config=ENABLED)
        answers = iter([True, False, True])
        with patch.object(plugin, "valid_configuration", side_effect=lambda: next(answers)):
            runner = HookRunner([plugin])
            runner.run_pre_capture(ctx)
            runner.run_post_capture(ctx)
            runner.run_capture_ready(ctx)
        assert calls == [("flaky", "pre_capture"), ("flaky", "capture_ready")]

    def test_registration_order_preserved(self, ctx, calls) -> None:
        first = RecordingPlugin("first", ALL_PHASES, calls, config=ENABLED)
        second = RecordingPlugin("second", ALL_PHASES, calls, config=ENABLED)
        HookRunner([second, first]).run_post_capture(ctx)
        assert calls == [("second", "post_capture"), ("first", "post_capture")]

    def test_failure_does_not_cascade(self, ctx, calls, quiet_output) -> None:
        boom = RecordingPlugin(
            "boom", ALL_PHASES, calls, config=ENABLED, fail_in=frozenset({Phase.POST_CAPTURE})
        )
        fine = RecordingPlugin("fine", ALL_PHASES, calls, config=ENABLED)
        report = HookRunner([boom, fine]).run_post_capture(ctx)
        assert calls == [("boom", "post_capture"), ("fine", "post_capture")]
        assert report.failed == ["boom"]
        assert report.invoked == ["fine"]
        failed = report.results[0]
        assert failed.outcome == HookOutcome.FAILED
        assert isinstance(failed.error, RuntimeError)

    def test_failing_admission_check_is_isolated(self, ctx, calls, quiet_output) -> None:
        broken = RecordingPlugin("broken", ALL_PHASES, calls, config=ENABLED)
        fine = RecordingPlugin("fine", ALL_PHASES, calls, config=ENABLED)
        with patch.object(broken, "valid_configuration", side_effect=KeyError("endpoint")):
            report = HookRunner([broken, fine]).run_pre_capture(ctx)
        assert report.failed == ["broken"]
        assert calls == [("fine", "pre_capture")]

    def test_failure_is_reported(self, ctx, calls, capsys, caplog) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        boom = RecordingPlugin(
            "boom", ALL_PHASES, calls, config=ENABLED, fail_in=frozenset({Phase.PRE_CAPTURE})
        )
        HookRunner([boom]).run_pre_capture(ctx)
        assert "Plugin 'boom' failed during pre_capture: boom exploded" in capsys.readouterr().err
        assert any("boom" in rec.getMessage() for rec in caplog.records)

    def test_plugins_for(self, calls) -> None:
        pre = RecordingPlugin("pre", frozenset({Phase.PRE_CAPTURE}), calls)
        both = RecordingPlugin("both", frozenset({Phase.PRE_CAPTURE, Phase.POST_CAPTURE}), calls)
        runner = HookRunner([pre, both])
        assert [p.name for p in runner.plugins_for(Phase.PRE_CAPTURE)] == ["pre", "both"]
        assert [p.name for p in runner.plugins_for(Phase.POST_CAPTURE)] == ["both"]
        assert runner.plugins_for(Phase.CAPTURE_READY) == []


# ---------------------------------------------------------------------------
# PluginManager
# ---------------------------------------------------------------------------


@pytest.fixture
def manager() -> PluginManager:
    """A fresh PluginManager."""
    return PluginManager()


class TestPluginManager:
    """Registration, lookup, discovery and dispatch tables."""

    def test_register_and_get(self, manager: PluginManager) -> None:
        plugin = MinimalPlugin()
        manager.register(plugin)
        assert manager.get_plugin("minimal") is plugin
        assert manager.plugin_names() == ["minimal"]

    def test_duplicate_name_is_fatal(self, manager: PluginManager) -> None:
        manager.register(MinimalPlugin())
        with pytest.raises(DuplicatePluginError, match="minimal"):
            manager.register(MinimalPlugin())

    def test_empty_name_rejected(self, manager: PluginManager, calls) -> None:
        with pytest.raises(PluginError, match="empty name"):
            manager.register(RecordingPlugin("", ALL_PHASES, calls))

    def test_get_unknown_raises(self, manager: PluginManager) -> None:
        with pytest.raises(PluginError, match="not installed"):
            manager.get_plugin("nope")

    def test_list_plugins(self, manager: PluginManager) -> None:
        manager.register(MinimalPlugin())
        manager.register(EndpointPlugin(config={"enabled": True, "endpoint": "x"}))
        assert manager.list_plugins() == [
            {
                "name": "minimal",
                "version": "0.1.0",
                "description": "",
                "phases": [],
                "configured": False,
                "enabled": False,
            },
            {
                "name": "endpoint",
                "version": "0.1.0",
                "description": "",
                "phases": ["capture_ready"],
                "configured": True,
                "enabled": True,
            },
        ]

    def test_dispatch_table(self, manager: PluginManager, calls) -> None:
        manager.register(RecordingPlugin("a", frozenset({Phase.POST_CAPTURE}), calls))
        manager.register(RecordingPlugin("b", ALL_PHASES, calls))
        manager.register(MinimalPlugin())
        assert manager.dispatch_table() == {
            Phase.PRE_CAPTURE: ["b"],
            Phase.POST_CAPTURE: ["a", "b"],
            Phase.CAPTURE_READY: ["b"],
        }

    def test_hook_runner_cached_and_invalidated(self, manager: PluginManager) -> None:
        first = manager.get_hook_runner()
        assert manager.get_hook_runner() is first
        manager.register(MinimalPlugin())
        assert manager.get_hook_runner() is not first

    def test_discover_registers_builtins(self, manager: PluginManager) -> None:
        with patch("commitcam.plugins.manager.importlib.metadata.entry_points", return_value=[]):
            loaded = manager.discover()
        assert loaded == ["plugin-sample"]
        assert isinstance(manager.get_plugin("plugin-sample"), SamplePlugin)

    def test_discover_entry_points(self, manager: PluginManager) -> None:
        class FakeEP:
            name = "minimal"

            def load(self) -> type:
                return MinimalPlugin

        with patch(
            "commitcam.plugins.manager.importlib.metadata.entry_points",
            return_value=[FakeEP()],
        ) as mock_eps:
            loaded = manager.discover(include_builtins=False)
        mock_eps.assert_called_once_with(group=ENTRY_POINT_GROUP)
        assert loaded == ["minimal"]

    def test_discover_skips_broken_entry_point(self, manager: PluginManager) -> None:
        class BrokenEP:
            name = "broken"

            def load(self) -> type:
                raise ImportError("missing dependency")

        with patch(
            "commitcam.plugins.manager.importlib.metadata.entry_points",
            return_value=[BrokenEP()],
        ):
            loaded = manager.discover()
        assert loaded == ["plugin-sample"]

    def test_discover_duplicate_entry_point_is_fatal(self, manager: PluginManager) -> None:
        class ImpostorEP:
            name = "impostor"

            def load(self) -> type:
                return SamplePlugin

        with patch(
            "commitcam.plugins.manager.importlib.metadata.entry_points",
            return_value=[ImpostorEP()],
        ):
            with pytest.raises(DuplicatePluginError, match="plugin-sample"):
                manager.discover()


# ---------------------------------------------------------------------------
# Sample plugin
# ---------------------------------------------------------------------------


class TestSamplePlugin:
    """The reference plugin shipped with commitcam."""

    def test_identity(self) -> None:
        plugin = SamplePlugin()
        assert plugin.name == "plugin-sample"
        assert plugin.runner_order == frozenset(Phase)
        assert plugin.options == [ENABLED_OPTION]

    def test_prints_in_every_phase(self, ctx, capsys) -> None:
        plugin = SamplePlugin(config=ENABLED)
        runner = HookRunner([plugin])
        for phase in Phase.ordered():
            runner.run_phase(phase, ctx)
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("✨  Say cheese")
        assert out[1].startswith("📸  Snap")
        assert ctx.short_sha in out[2]
