"""Tests for pluginpack.orchestrator."""

from __future__ import annotations

import json
import os
import xml.etree.ElementTree as ET
import zipfile
from datetime import date
from pathlib import Path

import pytest

from pluginpack.archives import ArchiveError
from pluginpack.config import ProjectType
from pluginpack.orchestrator import BuildError, BuildStage, Orchestrator
from tests._fixtures.project_builder import ProjectBuilder

BUILD_DAY = date(2025, 7, 23)


def _seed_project(project_builder: ProjectBuilder) -> None:
    project_builder.seed_plugin(name="My - Plugin", version="25.07.01")
    project_builder.write(
        {
            "dist/WEB_ROOT/index.html": "<html>template</html>",
            "dist/WEB_ROOT/assets/app.js": "console.log('app')",
            "dist/WEB_ROOT/.DS_Store": "junk",
            "dist/robots.txt": "User-agent: *",
            "src/powerschool/WEB_ROOT/admin/my_plugin.html": "<p>admin</p>",
            "src/powerschool/queries_root/my_plugin.named_queries.xml": "<queries/>",
            "src/powerschool/user_schema_root/u_my_plugin.xml": "<table/>",
            "src/powerschool/pagecataloging/page.json": '{"version": "25.07.01", "pages": [{"version": "1"}]}',
        }
    )
    archive_dir = project_builder.path("plugin_archive")
    archive_dir.mkdir()
    for index in range(5):
        old = archive_dir / f"My_Plugin-25.06.{index + 1:02d}.zip"
        old.write_bytes(b"old")
        timestamp = 1_600_000_000 + index
        os.utime(old, (timestamp, timestamp))


def test_run_builds_versioned_artifacts(project_builder: ProjectBuilder) -> None:
    _seed_project(project_builder)
    config = project_builder.config(archives_to_keep=3)

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.previous_version == "25.07.01"
    assert result.version == "25.07.02"
    assert result.plugin_name == "My - Plugin"
    assert result.stages[-1] is BuildStage.DONE
    assert BuildStage.FRAMEWORK_COPY not in result.stages

    descriptor = json.loads(config.descriptor_path.read_text(encoding="utf-8"))
    assert descriptor["version"] == "25.07.02"
    manifest_root = ET.fromstring(config.manifest_path.read_bytes())
    assert manifest_root.get("version") == "25.07.02"
    assert manifest_root.get("name") == "My - Plugin"
    schema_root = ET.fromstring((config.schema_dir / "plugin.xml").read_bytes())
    assert schema_root.get("name") == "My - Plugin DATA"
    assert schema_root.find("access_request") is None

    page = json.loads((config.page_catalog_dir / "page.json").read_text(encoding="utf-8"))
    assert page == {"version": "25.07.02", "pages": [{"version": "25.07.02"}]}

    primary = config.archive_dir / "My_Plugin-25.07.02.zip"
    schema = config.archive_dir / "DATA-My_Plugin-25.07.02.zip"
    assert [outcome.path for outcome in result.archives] == [primary, schema]
    with zipfile.ZipFile(primary) as archive:
        names = set(archive.namelist())
    assert "plugin.xml" in names
    assert "WEB_ROOT/assets/app.js" in names
    assert "WEB_ROOT/admin/my_plugin.html" in names
    assert "queries_root/my_plugin.named_queries.xml" in names
    assert "WEB_ROOT/index.html" not in names
    assert "WEB_ROOT/.DS_Store" not in names
    assert "robots.txt" not in names
    with zipfile.ZipFile(schema) as archive:
        assert sorted(archive.namelist()) == ["plugin.xml", "user_schema_root/u_my_plugin.xml"]

    remaining = sorted(path.name for path in config.archive_dir.iterdir())
    assert len(remaining) == 3
    assert primary.name in remaining and schema.name in remaining
    assert "My_Plugin-25.06.05.zip" in remaining
    assert len(result.pruned) == 4


def test_run_copies_svelte_build_output(project_builder: ProjectBuilder) -> None:
    _seed_project(project_builder)
    project_builder.write({"public/build/bundle.js": "svelte bundle"})
    config = project_builder.config(project_type=ProjectType.SVELTE)

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert BuildStage.FRAMEWORK_COPY in result.stages
    copied = config.build_dir / "WEB_ROOT" / "My_Plugin" / "bundle.js"
    assert copied.read_text(encoding="utf-8") == "svelte bundle"


def test_run_svelte_without_build_output_continues(project_builder: ProjectBuilder) -> None:
    _seed_project(project_builder)
    config = project_builder.config(project_type=ProjectType.SVELTE)

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.stages[-1] is BuildStage.DONE
    assert not (config.build_dir / "WEB_ROOT" / "My_Plugin").exists()


def test_run_fails_when_descriptor_missing(project_builder: ProjectBuilder) -> None:
    project_builder.write({"plugin.xml": '<plugin name="X" version="1"/>'})
    config = project_builder.config()

    with pytest.raises(BuildError) as excinfo:
        Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert excinfo.value.stage is BuildStage.READ_DESCRIPTOR
    assert not config.archive_dir.exists()


def test_run_fails_when_manifest_malformed(project_builder: ProjectBuilder) -> None:
    project_builder.write_json("package.json", {"name": "x", "version": "25.07.01"})
    project_builder.write({"plugin.xml": "<plugin name="})
    config = project_builder.config()

    with pytest.raises(BuildError) as excinfo:
        Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert excinfo.value.stage is BuildStage.READ_DESCRIPTOR
    descriptor = json.loads(config.descriptor_path.read_text(encoding="utf-8"))
    assert descriptor["version"] == "25.07.01"


def test_run_falls_back_on_unparseable_version(project_builder: ProjectBuilder) -> None:
    project_builder.seed_plugin(version="not-a-version")
    config = project_builder.config()

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.version == "25.07.01"


def test_run_aborts_on_archive_failure(
    project_builder: ProjectBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    _seed_project(project_builder)
    config = project_builder.config(archives_to_keep=1)

    import pluginpack.orchestrator as orchestrator_module

    def broken_zip(source: Path, destination: Path) -> int:
        raise ArchiveError(source, destination, "disk full")

    monkeypatch.setattr(orchestrator_module, "create_zip", broken_zip)

    with pytest.raises(BuildError) as excinfo:
        Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert excinfo.value.stage is BuildStage.PRIMARY_ARCHIVE
    assert isinstance(excinfo.value.__cause__, ArchiveError)
    assert len(list(config.archive_dir.iterdir())) == 5


def test_run_continues_when_build_tree_preparation_fails(
    project_builder: ProjectBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    _seed_project(project_builder)
    config = project_builder.config()

    import pluginpack.orchestrator as orchestrator_module

    def exploding_merge(config):
        raise RuntimeError("merge exploded")

    monkeypatch.setattr(orchestrator_module, "merge_platform_folders", exploding_merge)

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.stages[-1] is BuildStage.DONE
    assert (config.archive_dir / "My_Plugin-25.07.02.zip").exists()


def test_run_archives_files_dated_before_1980(project_builder: ProjectBuilder) -> None:
    _seed_project(project_builder)
    config = project_builder.config()
    os.utime(config.build_dir / "WEB_ROOT" / "assets" / "app.js", (0, 0))

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.stages[-1] is BuildStage.DONE
    with zipfile.ZipFile(config.archive_dir / "My_Plugin-25.07.02.zip") as archive:
        assert archive.getinfo("WEB_ROOT/assets/app.js").date_time[0] == 1980


def test_run_survives_deeply_nested_page_catalog_json(project_builder: ProjectBuilder) -> None:
    _seed_project(project_builder)
    nested = "[" * 200_000 + "]" * 200_000
    project_builder.write({"src/powerschool/pagecataloging/deep.json": nested})
    config = project_builder.config()

    result = Orchestrator(config, clock=lambda: BUILD_DAY).run()

    assert result.stages[-1] is BuildStage.DONE
    assert (config.page_catalog_dir / "deep.json").read_text(encoding="utf-8") == nested
    page = json.loads((config.page_catalog_dir / "page.json").read_text(encoding="utf-8"))
    assert page["version"] == "25.07.02"
