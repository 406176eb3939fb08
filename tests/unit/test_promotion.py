"""Tests for PromotionEngine: copy, stamp, manifest, status, failure stages."""

from __future__ import annotations

import logging

import pytest

from kart.core.catalog import Catalog
from kart.core.errors import (
    ManifestWriteError,
    MissingTrackError,
    PromotionCopyError,
    StorageError,
    UnknownChannelError,
    UnknownProjectError,
)
from kart.core.promotion import (
    COPY_DONE_MESSAGE,
    MANIFEST_DONE_MESSAGE,
    PromotionEngine,
    PromotionState,
)
from kart.models.builds import Build
from kart.reporting import CollectingReporter
from kart.storage.memory import InMemoryBlobStore


class ManifestBreakingStore(InMemoryBlobStore):
    """Fails every write of a kart.json manifest while ``broken`` is set."""

    broken = True

    def put(self, bucket, key, data, *, metadata=None):
        if self.broken and key.endswith("/kart.json"):
            raise StorageError("manifest bucket is read-only")
        super().put(bucket, key, data, metadata=metadata)


class ExplodingReporter:
    def emit(self, event):
        raise RuntimeError("reporter went away")


@pytest.fixture
def stored(archive_builds) -> list[Build]:
    return archive_builds([
        {"version": "0.1.2", "metadata": {"commit": "abc123"}},
        {"version": "0.1.3", "arch": "amd64"},
    ])


class TestRelease:
    def test_release_returns_stamped_release(
        self, engine: PromotionEngine, stored, fixed_now
    ):
        rel = engine.release(stored[0], track="stable")
        assert rel.channel == "stable"
        assert rel.release_date == fixed_now
        assert (rel.project, rel.version, rel.number) == ("testing", "0.1.2", 1)
        assert rel.metadata == {"commit": "abc123"}

    def test_release_copies_into_track_bucket(
        self, engine: PromotionEngine, blob_store: InMemoryBlobStore, stored
    ):
        rel = engine.release(stored[0], track="stable")
        assert rel.key == "testing/stable/0.1.2/1_all.tar.gz"
        assert blob_store.get("kart-releases", rel.key) == blob_store.get(
            "kart-archive", stored[0].key
        )

    def test_release_keeps_source(
        self, engine: PromotionEngine, catalog: Catalog, stored
    ):
        engine.release(stored[0], track="stable")
        assert catalog.get("testing", "sync", 1) == stored[0]

    def test_release_into_project_bucket(
        self, engine: PromotionEngine, blob_store: InMemoryBlobStore, stored
    ):
        rel = engine.release(stored[1], track="beta")
        assert blob_store.list("kart-archive", "testing/beta/") == [
            "testing/beta/0.1.3/2_amd64.tar.gz",
            "testing/beta/kart.json",
        ]
        assert rel.arch == "amd64"

    def test_release_into_archive_bucket_joins_channel(
        self, engine: PromotionEngine, catalog: Catalog, stored
    ):
        # beta is a catalog channel with no deploy bucket of its own
        engine.release(stored[1], track="beta")
        (listed,) = catalog.list("testing", "beta")
        assert (listed.version, listed.number, listed.arch) == ("0.1.3", 2, "amd64")

    def test_name_pattern_defaults_to_track(self, engine: PromotionEngine, stored):
        rel = engine.release(stored[0], track="stable")
        assert rel.name_pattern == "{project}-{version}.{ext}"
        assert rel.file_name == "testing-0.1.2.tar.gz"

    def test_name_pattern_override(self, engine: PromotionEngine, stored):
        rel = engine.release(stored[0], track="stable", name_pattern="{project}.{ext}")
        assert rel.file_name == "testing.tar.gz"

    def test_unrenderable_name_pattern_copies_nothing(
        self, engine: PromotionEngine, blob_store: InMemoryBlobStore, stored
    ):
        with pytest.raises(ValueError, match="revision"):
            engine.release(stored[0], track="beta", name_pattern="app-{revision}.{ext}")
        assert blob_store.list("kart-archive", "testing/beta/") == []
        assert engine.status("testing", "beta") is None

    def test_progress_messages(self, engine: PromotionEngine, stored):
        reporter = CollectingReporter()
        engine.release(stored[0], track="stable", reporter=reporter)
        assert reporter.messages == [COPY_DONE_MESSAGE, MANIFEST_DONE_MESSAGE]
        assert reporter.events[0].stage == PromotionState.COPIED.value

    def test_copy_message_is_stable(self):
        assert COPY_DONE_MESSAGE == "File moved to release channel"

    def test_failing_reporter_is_ignored(
        self, engine: PromotionEngine, stored, caplog, fixed_now
    ):
        with caplog.at_level(logging.WARNING, logger="kart.reporting"):
            rel = engine.release(stored[0], track="stable", reporter=ExplodingReporter())
        assert rel.release_date == fixed_now
        assert engine.status("testing", "stable").number == 1
        assert "reporter went away" in caplog.text

    def test_release_is_repeatable(self, engine: PromotionEngine, stored):
        first = engine.release(stored[0], track="stable")
        second = engine.release(stored[0], track="stable")
        assert first.key == second.key
        assert engine.status("testing", "stable").number == 1


class TestValidation:
    @pytest.mark.parametrize("track", [None, ""])
    def test_missing_track(
        self, engine: PromotionEngine, blob_store: InMemoryBlobStore, stored, track
    ):
        with pytest.raises(MissingTrackError) as excinfo:
            engine.release(stored[0], track=track)
        assert excinfo.value.stage == "validate"
        assert blob_store.list("kart-releases", "") == []

    def test_unknown_track_copies_nothing(
        self, engine: PromotionEngine, blob_store: InMemoryBlobStore, stored
    ):
        before = blob_store.list("kart-archive", "")
        with pytest.raises(UnknownChannelError):
            engine.release(stored[0], track="nope")
        assert blob_store.list("kart-archive", "") == before
        assert blob_store.list("kart-releases", "") == []

    def test_unknown_project(self, engine: PromotionEngine):
        ghost = Build(project="ghost", channel="sync", version="1.0", number=1)
        with pytest.raises(UnknownProjectError):
            engine.release(ghost, track="stable")


class TestFailureStages:
    def test_copy_failure_writes_no_manifest(
        self, engine: PromotionEngine, catalog: Catalog, stored
    ):
        catalog.remove(stored[0])
        with pytest.raises(PromotionCopyError) as excinfo:
            engine.release(stored[0], track="stable")
        assert excinfo.value.stage == "copy"
        assert "copy stage" in str(excinfo.value)
        assert engine.status("testing", "stable") is None

    def test_copy_failure_keeps_previous_release(
        self, engine: PromotionEngine, catalog: Catalog, stored
    ):
        engine.release(stored[1], track="stable")
        catalog.remove(stored[0])
        with pytest.raises(PromotionCopyError):
            engine.release(stored[0], track="stable")
        assert engine.status("testing", "stable").number == 2

    def test_manifest_failure_after_copy(self, projects, make_build_dir, fixed_now):
        store = ManifestBreakingStore()
        build = Catalog(store, projects).store(make_build_dir(), "testing", "sync", "1.0")
        engine = PromotionEngine(store, projects, clock=lambda: fixed_now)

        with pytest.raises(ManifestWriteError) as excinfo:
            engine.release(build, track="stable")

        err = excinfo.value
        assert err.stage == "manifest-write"
        assert "manifest-write stage" in str(err)
        assert err.release is not None
        assert err.release.release_date == fixed_now
        assert store.get("kart-releases", err.release.key)
        assert engine.status("testing", "stable") is None

    def test_record_release_recovers(self, projects, make_build_dir):
        store = ManifestBreakingStore()
        build = Catalog(store, projects).store(make_build_dir(), "testing", "sync", "1.0")
        engine = PromotionEngine(store, projects)
        with pytest.raises(ManifestWriteError):
            engine.release(build, track="stable")

        store.broken = False
        assert engine.record_release(build, "stable") == "testing/stable/kart.json"
        assert engine.status("testing", "stable").number == build.number


class TestStatus:
    def test_nothing_released(self, engine: PromotionEngine):
        assert engine.status("testing", "stable") is None

    def test_status_names_the_source_build(self, engine: PromotionEngine, stored):
        engine.release(stored[0], track="stable")
        current = engine.status("testing", "stable")
        assert current.channel == "sync"
        assert current.key == stored[0].key
        assert (current.version, current.number) == ("0.1.2", 1)

    def test_status_follows_latest_release(self, engine: PromotionEngine, stored):
        engine.release(stored[0], track="stable")
        engine.release(stored[1], track="stable")
        assert engine.status("testing", "stable").number == 2

    def test_status_via_channel_alias(self, engine: PromotionEngine, stored):
        engine.release(stored[0], track="edge")
        assert engine.manifest.location("testing", "edge")[1] == "testing/nightly/kart.json"
        assert engine.status("testing", "edge").number == 1

    def test_unknown_channel(self, engine: PromotionEngine):
        with pytest.raises(UnknownChannelError):
            engine.status("testing", "nope")
