"""Build pipeline orchestration: version, manifests, build tree, archives, retention."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .archives import ArchiveError, archive_names, create_zip, prune_archives
from .config import BuildConfig, ProjectType
from .descriptor import DescriptorError, PackageDescriptor, load_descriptor, write_descriptor_version
from .logging import get_logger
from .manifest import Manifest, ManifestError, load_manifest, write_manifest_variants
from .tree_ops import copy_tree, discard_file, merge_platform_folders, purge_junk, rewrite_json_versions
from .versioning import next_version, slugify


class BuildStage(str, Enum):
    """Pipeline stages in execution order."""

    READ_DESCRIPTOR = "read_descriptor"
    COMPUTE_VERSION = "compute_version"
    ENSURE_DIRECTORIES = "ensure_directories"
    UPDATE_MANIFESTS = "update_manifests"
    PREPARE_BUILD_TREE = "prepare_build_tree"
    FRAMEWORK_COPY = "framework_copy"
    PRIMARY_ARCHIVE = "primary_archive"
    SCHEMA_ARCHIVE = "schema_archive"
    PRUNE_ARCHIVES = "prune_archives"
    DONE = "done"


class BuildError(RuntimeError):
    """Fatal pipeline failure; the triggering exception is chained as ``__cause__``."""

    def __init__(self, stage: BuildStage, message: str) -> None:
        super().__init__(message)
        self.stage = stage


@dataclass(frozen=True)
class ArchiveOutcome:
    """An archive produced (or skipped, with size 0) during a run."""

    path: Path
    size: int

    @property
    def created(self) -> bool:
        return self.size > 0


@dataclass
class BuildResult:
    """Summary of a completed pipeline run."""

    plugin_name: str
    previous_version: str
    version: str
    archives: List[ArchiveOutcome] = field(default_factory=list)
    pruned: List[Path] = field(default_factory=list)
    stages: List[BuildStage] = field(default_factory=list)


class Orchestrator:
    """Runs the packaging pipeline for one project, strictly in sequence."""

    def __init__(self, config: BuildConfig, *, clock: Callable[[], date] | None = None) -> None:
        self.config = config
        self._clock = clock or date.today
        self.logger = get_logger("orchestrator")

    def run(self) -> BuildResult:
        """Execute every stage; raise ``BuildError`` on a fatal failure."""
        self.logger.info("Starting plugin build process for %s", self.config.project_root)
        try:
            result = self._run_stages()
        except BuildError as exc:
            self.logger.error("--- BUILD FAILED --- [%s] %s", exc.stage.value, exc)
            raise
        self.logger.info("Build process completed successfully!")
        return result

    def _run_stages(self) -> BuildResult:
        config = self.config
        stages: List[BuildStage] = []

        descriptor, manifest = self._read_inputs()
        stages.append(BuildStage.READ_DESCRIPTOR)

        version = next_version(descriptor.version, self._clock())
        stages.append(BuildStage.COMPUTE_VERSION)
        self.logger.info("Plugin: %s", descriptor.name or manifest.name)
        self.logger.info("Current Version: %s -> New Version: %s", descriptor.version, version)

        self._best_effort(BuildStage.ENSURE_DIRECTORIES, self._ensure_directories)
        stages.append(BuildStage.ENSURE_DIRECTORIES)

        manifest = self._update_manifests(descriptor, manifest, version)
        stages.append(BuildStage.UPDATE_MANIFESTS)

        self._best_effort(BuildStage.PREPARE_BUILD_TREE, self._prepare_build_tree)
        stages.append(BuildStage.PREPARE_BUILD_TREE)

        if config.project_type is ProjectType.SVELTE:
            self._best_effort(BuildStage.FRAMEWORK_COPY, lambda: self._copy_framework_build(manifest))
            stages.append(BuildStage.FRAMEWORK_COPY)

        self.logger.info("Creating zip archives...")
        primary_name, schema_name = archive_names(manifest.name, version)
        archives = [
            self._build_archive(BuildStage.PRIMARY_ARCHIVE, config.build_dir, primary_name),
        ]
        stages.append(BuildStage.PRIMARY_ARCHIVE)
        archives.append(self._build_archive(BuildStage.SCHEMA_ARCHIVE, config.schema_dir, schema_name))
        stages.append(BuildStage.SCHEMA_ARCHIVE)

        pruned = self._best_effort(
            BuildStage.PRUNE_ARCHIVES,
            lambda: prune_archives(config.archive_dir, config.archives_to_keep),
        )
        stages.append(BuildStage.PRUNE_ARCHIVES)
        stages.append(BuildStage.DONE)

        return BuildResult(
            plugin_name=manifest.name,
            previous_version=descriptor.version,
            version=version,
            archives=archives,
            pruned=pruned or [],
            stages=stages,
        )

    # ------------------------------------------------------------------
    # Stages

    def _read_inputs(self) -> tuple[PackageDescriptor, Manifest]:
        try:
            descriptor = load_descriptor(self.config.descriptor_path)
            manifest = load_manifest(self.config.manifest_path)
        except (DescriptorError, ManifestError) as exc:
            raise BuildError(BuildStage.READ_DESCRIPTOR, str(exc)) from exc
        return descriptor, manifest

    def _ensure_directories(self) -> None:
        self.logger.info("Verifying directory structure...")
        for directory in (self.config.build_dir, self.config.archive_dir, self.config.schema_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def _update_manifests(
        self, descriptor: PackageDescriptor, manifest: Manifest, version: str
    ) -> Manifest:
        try:
            write_descriptor_version(descriptor, version)
            self.logger.info("Updated %s to version %s", self.config.descriptor_filename, version)
            variants = write_manifest_variants(manifest.with_version(version), self.config)
        except (DescriptorError, ManifestError) as exc:
            raise BuildError(BuildStage.UPDATE_MANIFESTS, str(exc)) from exc

        self._best_effort(
            BuildStage.UPDATE_MANIFESTS,
            lambda: rewrite_json_versions(self.config.page_catalog_dir, version),
        )
        return variants.primary

    def _prepare_build_tree(self) -> None:
        self.logger.info("Preparing build directory...")
        merge_platform_folders(self.config)
        purge_junk(self.config.build_dir, self.config.junk_names)
        for relative in self.config.template_files:
            discard_file(self.config.build_dir / relative)

    def _copy_framework_build(self, manifest: Manifest) -> None:
        target = self.config.build_dir / "WEB_ROOT" / slugify(manifest.name)
        if copy_tree(self.config.framework_build_dir, target):
            self.logger.info("Copied framework build contents to %s", target)
        else:
            self.logger.info(
                "Framework build output not found at %s, skipping copy step.",
                self.config.framework_build_dir,
            )

    def _build_archive(self, stage: BuildStage, source: Path, file_name: str) -> ArchiveOutcome:
        destination = self.config.archive_dir / file_name
        try:
            size = create_zip(source, destination)
        except ArchiveError as exc:
            raise BuildError(stage, str(exc)) from exc
        return ArchiveOutcome(path=destination, size=size)

    # ------------------------------------------------------------------
    # Internal helpers

    def _best_effort(self, stage: BuildStage, action: Callable[[], object]) -> Optional[object]:
        try:
            return action()
        except Exception as exc:
            self.logger.error("Stage %s failed: %s", stage.value, exc)
            self.logger.debug("Stage %s failure details", stage.value, exc_info=True)
            return None


__all__ = [
    "ArchiveOutcome",
    "BuildError",
    "BuildResult",
    "BuildStage",
    "Orchestrator",
]
