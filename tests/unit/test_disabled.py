"""Unit tests for loadorder.resolver.disabled: the disabled-set filter."""
from __future__ import annotations

from typing import TYPE_CHECKING

from loadorder.resolver import filter_disabled
from loadorder.session import IssueKind, IssueSeverity, ResolutionSession

if TYPE_CHECKING:
    from conftest import PluginFactory


class TestFilterDisabled:
    def test_disabled_by_id(self, plugin: PluginFactory) -> None:
        a, b = plugin("A", id="a"), plugin("B", id="b")
        session = ResolutionSession([a, b])
        enabled = filter_disabled(session, {"a"})
        assert enabled == [b]
        assert session.disabled == (a,)
        assert session.pending == (b,)

    def test_disabled_by_name_when_id_is_absent(self, plugin: PluginFactory) -> None:
        a = plugin("Nameless", id=None)
        session = ResolutionSession([a])
        assert filter_disabled(session, {"Nameless"}) == []

    def test_name_does_not_match_when_id_is_present(self, plugin: PluginFactory) -> None:
        a = plugin("Core", id="core")
        session = ResolutionSession([a])
        assert filter_disabled(session, {"Core"}) == [a]

    def test_reason_is_information(self, plugin: PluginFactory) -> None:
        a = plugin("A")
        session = ResolutionSession([a])
        filter_disabled(session, {"A"})
        reason = session.reason_for(a)
        assert reason is not None
        assert reason.kind is IssueKind.DISABLED
        assert reason.effective_severity is IssueSeverity.INFORMATION

    def test_store_is_not_modified(self, plugin: PluginFactory) -> None:
        store = frozenset({"A"})
        filter_disabled(ResolutionSession([plugin("A"), plugin("B")]), store)
        assert store == frozenset({"A"})

    def test_self_cannot_be_disabled(self, plugin: PluginFactory) -> None:
        loader = plugin("Loader", is_self=True)
        session = ResolutionSession([loader])
        assert filter_disabled(session, {"Loader"}) == [loader]
        assert session.disabled == ()

    def test_enabled_list_is_in_precedence_order(self, plugin: PluginFactory) -> None:
        low, high = plugin("A", "1.0.0", id="x"), plugin("B", "2.0.0", id="y")
        assert filter_disabled(ResolutionSession([low, high]), set()) == [high, low]
