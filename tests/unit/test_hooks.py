"""Unit tests for loadorder.features.hooks: the activation veto contract."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import pytest

from loadorder.features import Feature, run_after_init, run_before_init, run_before_load

if TYPE_CHECKING:
    from conftest import PluginFactory

    from loadorder.catalog import PluginDescriptor


class Recorder(Feature):
    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        return True

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def before_load(self, descriptor: PluginDescriptor) -> bool:
        self.calls.append("before_load")
        return True

    def before_init(self, descriptor: PluginDescriptor, plugin: object) -> bool:
        self.calls.append("before_init")
        return True

    def after_init(self, descriptor: PluginDescriptor, plugin: object) -> None:
        self.calls.append("after_init")


class Denier(Feature):
    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        return True

    def before_load(self, descriptor: PluginDescriptor) -> bool:
        self.invalid_message = "host is headless"
        return False

    def before_init(self, descriptor: PluginDescriptor, plugin: object) -> bool:
        return False


class Raiser(Feature):
    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        return True

    def before_load(self, descriptor: PluginDescriptor) -> bool:
        raise RuntimeError("hook crashed")

    def after_init(self, descriptor: PluginDescriptor, plugin: object) -> None:
        raise RuntimeError("late crash")


class TestBeforeLoad:
    def test_no_features_allows(self, plugin: PluginFactory) -> None:
        result = run_before_load(plugin("A"))
        assert result
        assert result.feature is None

    def test_all_allow(self, plugin: PluginFactory) -> None:
        descriptor = plugin("A")
        recorder = Recorder()
        descriptor.features.append(recorder)
        assert run_before_load(descriptor).allowed
        assert recorder.calls == ["before_load"]

    def test_first_denial_stops(self, plugin: PluginFactory) -> None:
        descriptor = plugin("A")
        denier, recorder = Denier(), Recorder()
        descriptor.features.extend([denier, recorder])
        result = run_before_load(descriptor)
        assert not result
        assert result.feature is denier
        assert result.reason == "host is headless"
        assert recorder.calls == []

    def test_raising_hook_counts_as_denial(self, plugin: PluginFactory) -> None:
        descriptor = plugin("A")
        descriptor.features.append(Raiser())
        result = run_before_load(descriptor)
        assert not result.allowed
        assert "hook crashed" in (result.reason or "")


class TestBeforeInit:
    def test_denial_without_message(self, plugin: PluginFactory) -> None:
        descriptor = plugin("A")
        descriptor.features.append(Denier())
        result = run_before_init(descriptor, object())
        assert not result
        assert result.reason is None

    def test_allows(self, plugin: PluginFactory) -> None:
        descriptor = plugin("A")
        recorder = Recorder()
        descriptor.features.append(recorder)
        assert run_before_init(descriptor, object())
        assert recorder.calls == ["before_init"]


class TestAfterInit:
    def test_failures_are_logged_and_others_still_run(
        self, plugin: PluginFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        descriptor = plugin("A")
        recorder = Recorder()
        descriptor.features.extend([Raiser(), recorder])
        with caplog.at_level(logging.CRITICAL, logger="loadorder.features.hooks"):
            run_after_init(descriptor, object())
        assert recorder.calls == ["after_init"]
        assert "errored in after_init" in caplog.text
