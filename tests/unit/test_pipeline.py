"""Unit tests for loadorder.resolver.pipeline and the resolution guarantees
that hold across all phases.
"""
from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any

import pytest

import loadorder
from loadorder.catalog import catalog_from_document
from loadorder.config import LoaderSettings
from loadorder.features import FeatureRegistry
from loadorder.resolver import LoadOrderResolver, in_conflict, resolve
from loadorder.session import IssueKind, Partition, ResolutionSession

if TYPE_CHECKING:
    from loadorder.catalog import PluginDescriptor

    from conftest import PluginFactory


def _by_name(session: ResolutionSession, name: str) -> list[PluginDescriptor]:
    return [d for d in session.catalog if d.name == name]


def _mixed_catalog(plugin: PluginFactory) -> list[PluginDescriptor]:
    return [
        plugin("Loader", "1.0.0", id="loader", is_self=True),
        plugin("Core", "2.1.0", id="core"),
        plugin("Core", "2.1.0", id="core", source="mirror"),
        plugin("Core", "1.0.0", id="core"),
        plugin("Ui", "1.2.0", id="ui", dependencies={"core": "^2.0.0"}, load_after=["skins"]),
        plugin("Skins", "0.3.0", id="skins", load_before=["ui"]),
        plugin("Legacy", "0.5.0", id="legacy", dependencies={"core": "<2"}),
        plugin("Rival", "0.1.0", id="rival", conflicts={"ui": "*"}),
        plugin("Sounds", "1.0.0", id="sounds"),
        plugin("Music", "1.0.0", id="music", dependencies={"sounds": ">=1.0.0"}),
        plugin("Remix", "1.0.0", id="remix", dependencies={"music": "*"}),
        plugin("Ping", "1.0.0", id="ping", load_after=["pong"]),
        plugin("Pong", "1.0.0", id="pong", load_after=["ping"]),
        plugin("Spectator", "1.0.0", id="spectator", load_after=["ping"]),
        plugin("Unnamed", "1.0.0", id=None, dependencies={"core": "*"}),
        plugin("Placeholder", "1.0.0", id="placeholder", is_bare=True),
    ]


def _outcome(session: ResolutionSession) -> dict[str, Any]:
    def reasons(descriptors):  # type: ignore[no-untyped-def]
        result = {}
        for d in descriptors:
            reason = session.reason_for(d)
            result[id(d)] = (reason.kind, reason.message, id(reason.related) if reason.related else None)
        return result

    return {
        "accepted": [id(d) for d in session.accepted],
        "disabled": reasons(session.disabled),
        "ignored": reasons(session.ignored),
    }


# ===========================================================================
# LoadOrderResolver
# ===========================================================================


class TestLoadOrderResolver:
    def test_default_store_comes_from_settings(self) -> None:
        resolver = LoadOrderResolver(settings=LoaderSettings(disabled_ids=["a", "b"]))
        assert resolver.disabled_store == {"a", "b"}

    def test_explicit_store_is_used_as_is(self) -> None:
        store: set[str] = set()
        assert LoadOrderResolver(disabled_store=store).disabled_store is store

    def test_default_registry_has_builtins(self) -> None:
        assert "define-feature" in LoadOrderResolver().registry

    def test_fixture_catalog(self, catalog_document: list[dict[str, Any]]) -> None:
        session = LoadOrderResolver().resolve(catalog_from_document(catalog_document))
        accepted = [f"{d.id}@{d.version}" for d in session.accepted]
        assert accepted == ["core@2.1.0", "sounds@1.0.0", "music@1.0.0", "ui@1.0.0"]
        ignored = {d.id: session.reason_for(d).kind for d in session.ignored}  # type: ignore[union-attr]
        assert ignored == {
            "core": IssueKind.DUPLICATE_IDENTITY,
            "legacy": IssueKind.UNSATISFIED_DEPENDENCY,
            "rival": IssueKind.DECLARED_CONFLICT,
        }

    def test_mixed_catalog(self, plugin: PluginFactory) -> None:
        store = {"sounds"}
        session = LoadOrderResolver(disabled_store=store).resolve(_mixed_catalog(plugin))
        names = [d.name for d in session.accepted]
        assert names[0] == "Loader"
        assert names.index("Skins") < names.index("Ui")
        assert names.index("Core") < names.index("Ui")
        assert "Spectator" in names
        assert "Placeholder" in names
        assert "Placeholder" not in [d.name for d in session.activatable]
        assert {d.name for d in session.disabled} == {"Sounds", "Music", "Remix"}
        assert store == {"sounds", "music", "remix"}
        assert session.newly_disabled == ("music", "remix")
        for name in ("Ping", "Pong"):
            (member,) = _by_name(session, name)
            assert session.reason_for(member).kind is IssueKind.CIRCULAR_CONSTRAINT  # type: ignore[union-attr]

    def test_resolve_function(self, plugin: PluginFactory) -> None:
        session = resolve([plugin("A")], disabled_store=set())
        assert [d.name for d in session.accepted] == ["A"]

    def test_package_level_api(self, plugin: PluginFactory) -> None:
        session = loadorder.resolve([plugin("A", features=["no-update"])], disabled_store=set())
        evaluation = loadorder.evaluate_features(session)
        assert evaluation.converged
        assert len(session.accepted[0].features) == 1


class TestHostVersionCheck:
    def test_mismatch_is_recorded_without_moving(self, plugin: PluginFactory) -> None:
        old = plugin("Old", game_version="1.28")
        resolver = LoadOrderResolver(disabled_store=set(), settings=LoaderSettings(host_version="1.29"))
        session = resolver.resolve([old])
        assert session.accepted == (old,)
        (issue,) = session.issues
        assert issue.kind is IssueKind.HOST_VERSION_MISMATCH
        assert "1.28" in issue.message

    def test_matching_and_undeclared_versions_pass(self, plugin: PluginFactory) -> None:
        catalog = [plugin("Same", game_version="1.29"), plugin("Unknown")]
        resolver = LoadOrderResolver(disabled_store=set(), settings=LoaderSettings(host_version="1.29"))
        assert resolver.resolve(catalog).issues == ()

    def test_bare_descriptors_are_not_checked(self, plugin: PluginFactory) -> None:
        bare = plugin("Bare", game_version="0.1", is_bare=True)
        resolver = LoadOrderResolver(disabled_store=set(), settings=LoaderSettings(host_version="1.29"))
        assert resolver.resolve([bare]).issues == ()

    def test_no_host_version_disables_check(self, plugin: PluginFactory) -> None:
        resolver = LoadOrderResolver(disabled_store=set(), settings=LoaderSettings(host_version=None))
        assert resolver.resolve([plugin("Old", game_version="0.1")]).issues == ()


# ===========================================================================
# Guarantees across the whole pipeline
# ===========================================================================


class TestResolutionGuarantees:
    @pytest.fixture()
    def session(self, plugin: PluginFactory) -> ResolutionSession:
        return LoadOrderResolver(disabled_store={"sounds"}).resolve(_mixed_catalog(plugin))

    def test_every_descriptor_in_exactly_one_final_partition(self, session: ResolutionSession) -> None:
        assert session.pending == ()
        seen = [*session.accepted, *session.disabled, *session.ignored]
        assert len(seen) == len(set(seen)) == len(session)
        for descriptor in session.catalog:
            assert session.partition_of(descriptor) is not Partition.PENDING

    def test_dependencies_load_earlier_with_satisfying_version(self, session: ResolutionSession) -> None:
        position = {d.id: i for i, d in enumerate(session.accepted) if d.id is not None}
        for index, descriptor in enumerate(session.accepted):
            for dep_id, dep_range in descriptor.manifest.dependencies.items():
                assert dep_id in position
                assert position[dep_id] < index
                assert dep_range.is_satisfied(session.accepted[position[dep_id]].version)

    def test_no_two_accepted_share_an_id(self, session: ResolutionSession) -> None:
        ids = [d.id for d in session.accepted if d.id is not None]
        assert len(ids) == len(set(ids))

    def test_ordering_hints_hold(self, session: ResolutionSession) -> None:
        position = {d.id: i for i, d in enumerate(session.accepted) if d.id is not None}
        for index, descriptor in enumerate(session.accepted):
            for later in descriptor.manifest.load_before:
                if later in position:
                    assert index < position[later]
            for earlier in descriptor.manifest.load_after:
                if earlier in position:
                    assert position[earlier] < index

    def test_no_accepted_pair_conflicts(self, session: ResolutionSession) -> None:
        accepted = session.accepted
        for i, left in enumerate(accepted):
            for right in accepted[i + 1:]:
                assert not in_conflict(left, right)

    def test_every_removed_descriptor_has_a_reason(self, session: ResolutionSession) -> None:
        for descriptor in [*session.disabled, *session.ignored]:
            assert session.reason_for(descriptor) is not None

    def test_discovery_order_does_not_matter(self, plugin: PluginFactory) -> None:
        catalog = _mixed_catalog(plugin)
        expected = _outcome(LoadOrderResolver(disabled_store={"sounds"}).resolve(catalog))
        rng = random.Random(20240601)
        for _ in range(40):
            shuffled = catalog[:]
            rng.shuffle(shuffled)
            outcome = _outcome(LoadOrderResolver(disabled_store={"sounds"}).resolve(shuffled))
            assert outcome == expected


# ===========================================================================
# Named scenarios
# ===========================================================================


class TestScenarios:
    def test_duplicate_collapse(self, plugin: PluginFactory) -> None:
        v1, v2 = plugin("X", "1.0.0", id="X"), plugin("X", "2.0.0", id="X")
        session = resolve([v1, v2], disabled_store=set())
        assert session.accepted == (v2,)
        assert session.reason_for(v1).kind is IssueKind.DUPLICATE_IDENTITY  # type: ignore[union-attr]

    def test_build_metadata_satisfies_exact_dependency(self, plugin: PluginFactory) -> None:
        a = plugin("A", dependencies={"B": "1.0.0"})
        b = plugin("B", "1.0.0+build.5")
        session = resolve([a, b], disabled_store=set())
        assert session.accepted == (b, a)

    def test_duplicate_tie_break_ignores_build_metadata(self, plugin: PluginFactory) -> None:
        first = plugin("X", "1.0.0+zzz", id="X", source="a")
        second = plugin("X", "1.0.0+aaa", id="X", source="b")
        for catalog in ([first, second], [second, first]):
            session = resolve(catalog, disabled_store=set())
            assert session.accepted == (first,)

    def test_release_beats_its_prerelease(self, plugin: PluginFactory) -> None:
        snapshot = plugin("X", "2.0.0-SNAPSHOT", id="X")
        release = plugin("X", "2.0.0", id="X")
        session = resolve([snapshot, release], disabled_store=set())
        assert session.accepted == (release,)

    def test_prerelease_does_not_satisfy_plain_range(self, plugin: PluginFactory) -> None:
        a = plugin("A", dependencies={"B": ">=1.0.0"})
        b = plugin("B", "2.0.0-beta.1")
        session = resolve([a, b], disabled_store=set())
        assert session.accepted == (b,)
        assert session.reason_for(a).kind is IssueKind.UNSATISFIED_DEPENDENCY  # type: ignore[union-attr]

    def test_missing_dependency(self, plugin: PluginFactory) -> None:
        a = plugin("A", dependencies={"B": ">=1.0.0"})
        b = plugin("B", "0.9.0")
        session = resolve([a, b], disabled_store=set())
        assert a not in session.accepted
        assert session.reason_for(a).kind is IssueKind.UNSATISFIED_DEPENDENCY  # type: ignore[union-attr]

    def test_cascade_disable(self, plugin: PluginFactory) -> None:
        a = plugin("A", dependencies={"B": ">=1.0.0"})
        b = plugin("B", "1.0.0")
        store = {"B"}
        session = resolve([a, b], disabled_store=store)
        assert session.partition_of(a) is Partition.DISABLED
        assert "A" in store

    def test_cycle_detection(self, plugin: PluginFactory) -> None:
        a = plugin("A", load_after=["B"])
        b = plugin("B", load_after=["A"])
        session = resolve([a, b], disabled_store=set())
        assert set(session.ignored) == {a, b}
        for member in (a, b):
            assert session.reason_for(member).kind is IssueKind.CIRCULAR_CONSTRAINT  # type: ignore[union-attr]

    def test_self_descriptor_survives_disable_request(self, plugin: PluginFactory) -> None:
        loader = plugin("Loader", is_self=True)
        session = resolve([loader], disabled_store={"Loader"})
        assert session.accepted == (loader,)

    def test_features_are_negotiated_after_resolution(self, plugin: PluginFactory) -> None:
        provider = plugin("Provider", features=["define-feature(quiet, no-update)"])
        consumer = plugin("Consumer", features=["quiet"])
        resolver = LoadOrderResolver(disabled_store=set(), registry=FeatureRegistry())
        session = resolver.resolve([consumer, provider])
        evaluation = resolver.evaluate_features(session)
        assert evaluation.not_found == {}
        assert len(consumer.features) == 1
