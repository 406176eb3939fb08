"""Tests for Pydantic models: builds, releases, listing options, projects."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from kart.core.errors import UnknownChannelError, UnknownProjectError
from kart.models.builds import DEFAULT_ARCH, DEFAULT_EXT, Build, Release
from kart.models.listing import ListOptions, SortSpec
from kart.models.projects import DEFAULT_NAME_PATTERN, ProjectConfig


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


class TestBuild:
    def test_defaults(self):
        build = Build(project="testing", channel="sync", version="1.0", number=1)
        assert build.arch == DEFAULT_ARCH
        assert build.ext == DEFAULT_EXT
        assert build.metadata == {}
        assert build.name_pattern is None

    def test_none_arch_means_all(self):
        build = Build(
            project="testing", channel="sync", version="1.0", number=1, arch=None
        )
        assert build.arch == "all"

    def test_frozen(self):
        build = Build(project="testing", channel="sync", version="1.0", number=1)
        with pytest.raises(ValidationError):
            build.number = 2

    @pytest.mark.parametrize("number", [0, -1])
    def test_number_must_be_positive(self, number):
        with pytest.raises(ValidationError):
            Build(project="testing", channel="sync", version="1.0", number=number)

    @pytest.mark.parametrize("field", ["project", "channel", "version", "ext"])
    def test_slash_rejected(self, field):
        fields = dict(project="testing", channel="sync", version="1.0", number=1)
        fields[field] = "a/b"
        with pytest.raises(ValidationError):
            Build(**fields)

    @pytest.mark.parametrize("field", ["project", "channel", "version"])
    def test_empty_segment_rejected(self, field):
        fields = dict(project="testing", channel="sync", version="1.0", number=1)
        fields[field] = ""
        with pytest.raises(ValidationError):
            Build(**fields)

    @pytest.mark.parametrize("arch", ["x86.64", "a/b", ""])
    def test_bad_arch_rejected(self, arch):
        with pytest.raises(ValidationError):
            Build(project="testing", channel="sync", version="1.0", number=1, arch=arch)

    def test_to_json_uses_manifest_names(self):
        build = Build(
            project="testing",
            channel="sync",
            version="1.0",
            number=1,
            name_pattern="{project}.{ext}",
        )
        data = json.loads(build.to_json())
        assert data["namePattern"] == "{project}.{ext}"
        assert "name_pattern" not in data

    def test_accepts_alias_and_field_name(self):
        by_alias = Build.model_validate(
            {"project": "p", "channel": "c", "version": "1", "number": 1, "namePattern": "x"}
        )
        by_name = Build(project="p", channel="c", version="1", number=1, name_pattern="x")
        assert by_alias == by_name

    @pytest.mark.parametrize(
        "pattern", ["app-{revision}.{ext}", "{0}.{ext}", "{}.{ext}", "{project.name}", "{version"]
    )
    def test_unrenderable_name_pattern_rejected(self, pattern):
        with pytest.raises(ValidationError):
            Build(project="p", channel="c", version="1", number=1, name_pattern=pattern)

    def test_name_pattern_accepts_format_spec_and_braces(self):
        build = Build(
            project="p", channel="c", version="1", number=7,
            name_pattern="{{p}}-{number:03d}.{ext}",
        )
        rel = Release.from_build(build, track="t", name_pattern=build.name_pattern)
        assert rel.file_name == "{p}-007.tar.gz"


# ---------------------------------------------------------------------------
# Release
# ---------------------------------------------------------------------------


class TestRelease:
    @pytest.fixture
    def build(self) -> Build:
        return Build(
            project="testing",
            channel="sync",
            version="0.1.2",
            number=3,
            arch="amd64",
            metadata={"commit": "abc123"},
        )

    def test_from_build_replaces_channel(self, build: Build):
        rel = Release.from_build(build, track="stable")
        assert rel.channel == "stable"
        assert (rel.project, rel.version, rel.number, rel.arch) == (
            "testing", "0.1.2", 3, "amd64"
        )
        assert rel.metadata == {"commit": "abc123"}
        assert rel.release_date is None

    def test_from_build_leaves_build_untouched(self, build: Build):
        Release.from_build(build, track="stable")
        assert build.channel == "sync"

    def test_from_build_name_pattern(self, build: Build):
        rel = Release.from_build(build, track="stable", name_pattern="{project}.{ext}")
        assert rel.name_pattern == "{project}.{ext}"

    def test_stamped(self, build: Build):
        now = datetime(2026, 1, 2, tzinfo=timezone.utc)
        rel = Release.from_build(build, track="stable")
        stamped = rel.stamped(now)
        assert stamped.release_date == now
        assert rel.release_date is None

    def test_stamped_defaults_to_now(self, build: Build):
        stamped = Release.from_build(build, track="stable").stamped()
        assert stamped.release_date is not None
        assert stamped.release_date.tzinfo is not None

    def test_file_name_from_pattern(self, build: Build):
        rel = Release.from_build(
            build, track="stable", name_pattern=DEFAULT_NAME_PATTERN
        )
        assert rel.file_name == "testing-0.1.2-3-amd64.tar.gz"

    def test_file_name_without_pattern(self, build: Build):
        rel = Release.from_build(build, track="stable")
        assert rel.file_name == "3_amd64.tar.gz"

    def test_json_round_trip(self, build: Build):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        rel = Release.from_build(build, track="stable", name_pattern="x").stamped(now)
        data = json.loads(rel.to_json())
        assert "releaseDate" in data
        assert Release.from_json(rel.to_json()) == rel

    def test_from_json_accepts_plain_build(self, build: Build):
        rel = Release.from_json(build.to_json())
        assert rel.channel == "sync"
        assert rel.release_date is None


# ---------------------------------------------------------------------------
# Listing options
# ---------------------------------------------------------------------------


class TestListOptions:
    def test_defaults(self):
        options = ListOptions()
        assert options.filter == {}
        assert options.sort is None
        assert options.limit is None

    def test_sort_unknown_field(self):
        with pytest.raises(ValidationError, match="unknown field"):
            SortSpec(key=["colour"])

    def test_sort_needs_a_field(self):
        with pytest.raises(ValidationError):
            SortSpec(key=[])

    def test_sort_order_values(self):
        assert SortSpec(key=["number"], order=-1).order == -1
        with pytest.raises(ValidationError):
            SortSpec(key=["number"], order=0)

    def test_negative_limit(self):
        with pytest.raises(ValidationError):
            ListOptions(limit=-1)

    def test_from_mapping(self):
        options = ListOptions.model_validate(
            {"filter": {"arch": "amd64"}, "sort": {"key": ["version"], "order": -1}, "limit": 2}
        )
        assert options.sort == SortSpec(key=["version"], order=-1)


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_resolve_defaults(self, projects: ProjectConfig):
        resolved = projects.resolve_channel("testing", "sync")
        assert resolved.deploy_track == "sync"
        assert resolved.bucket == "kart-archive"
        assert resolved.name_pattern == DEFAULT_NAME_PATTERN

    def test_resolve_deploy_overrides(self, projects: ProjectConfig):
        resolved = projects.resolve_channel("testing", "stable")
        assert resolved.deploy_track == "stable"
        assert resolved.bucket == "kart-releases"
        assert resolved.name_pattern == "{project}-{version}.{ext}"

    def test_resolve_track_differs_from_channel(self, projects: ProjectConfig):
        assert projects.resolve_channel("testing", "edge").deploy_track == "nightly"

    def test_resolve_bucket(self, projects: ProjectConfig):
        assert projects.resolve_bucket("testing") == "kart-archive"

    def test_unknown_project(self, projects: ProjectConfig):
        with pytest.raises(UnknownProjectError):
            projects.resolve_bucket("nope")
        with pytest.raises(UnknownProjectError):
            projects.resolve_channel("nope", "sync")

    def test_unknown_channel(self, projects: ProjectConfig):
        with pytest.raises(UnknownChannelError) as excinfo:
            projects.resolve_channel("testing", "nope")
        assert excinfo.value.channel == "nope"

    def test_load_toml(self, projects_file, projects: ProjectConfig):
        assert ProjectConfig.load(projects_file) == projects

    def test_load_json(self, tmp_path, projects: ProjectConfig):
        path = tmp_path / "kart.json"
        path.write_text(json.dumps(projects.model_dump()))
        assert ProjectConfig.load(path) == projects

    def test_channel_name_pattern_validated(self, projects: ProjectConfig):
        data = projects.model_dump()
        data["projects"]["testing"]["channels"]["beta"]["name_pattern"] = "{revision}"
        with pytest.raises(ValidationError, match="revision"):
            ProjectConfig.model_validate(data)
