"""Artifact assembly: walks the configured mappings into per-platform archives."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Tuple
import asyncio
import json
import os
import posixpath

from core.archive import ArchiveManager, ArchiveSink, format_suffix
from core.template import extract_placeholders

from .errors import ConfigurationError
from .file_walker import SEP, Capture, FileWalker, build_path
from .mapping import FileMapping, check_wildcards
from .platforms import PlatformInfo
from .plugins import call_hook, has_hook

if TYPE_CHECKING:  # pragma: no cover
    from .configuration import ArtifactConfiguration
    from .project import Project


@dataclass(slots=True)
class ArtifactMetadataItem:
    id: str
    path: str
    platform: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        if self.platform is not None:
            data["platform"] = self.platform
        data["path"] = self.path
        return data


@dataclass(slots=True)
class ArtifactMetadata:
    """Manifest describing every artifact produced for one project version.

    Plugins may add fields with item assignment; they are serialized next
    to ``name``, ``version`` and ``artifacts``.
    """

    name: str
    version: str
    artifacts: List[ArtifactMetadataItem] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("name", "version", "artifacts")

    def __getitem__(self, key: str) -> Any:
        if key in self._FIELDS:
            return getattr(self, key)
        return self.extra[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in self._FIELDS:
            setattr(self, key, value)
        else:
            self.extra[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._FIELDS or key in self.extra

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "artifacts": [item.to_dict() for item in self.artifacts],
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data


class Artifact:
    """Generate the archives and manifest of one project."""

    def __init__(self, config: "ArtifactConfiguration", project: "Project") -> None:
        self.config = config
        self.project = project
        self.mappings: List[FileMapping] = list(config.files)
        self._archives = ArchiveManager(project.console)

    async def generate(self) -> ArtifactMetadata:
        project = self.project
        console = project.console

        metadata = ArtifactMetadata(name=project.name, version=project.version)
        default_id_plugin: Any = None

        for plugin in project.plugins:
            if has_hook(plugin, "process_artifact_metadata"):
                await call_hook(plugin, "process_artifact_metadata", metadata)
            if has_hook(plugin, "get_default_artifact_id"):
                default_id_plugin = plugin

        for platform in project.platforms:
            if project.platform_specified:
                console.info(f"Generating artifact of project {project.name} ({platform.name})...")
            else:
                console.info(f"Generating artifact of project {project.name}...")

            artifact_id = await self._artifact_id(platform, default_id_plugin)
            target = project.dist_dir / f"{artifact_id}{format_suffix(self.config.format)}"

            sink = await asyncio.to_thread(
                self._archives.open_archive,
                target_path=target,
                format_hint=self.config.format,
            )
            try:
                mappings = [mapping for mapping in self.mappings if mapping.applies_to(platform.name)]
                await self._walk(mappings, platform, sink)
                await asyncio.to_thread(sink.close)
            except BaseException:
                sink.abort()
                raise

            console.info(f"Artifact generated at path {target}.")

            metadata.artifacts.append(
                ArtifactMetadataItem(
                    id=artifact_id,
                    platform=platform.name if project.platform_specified else None,
                    path=target.relative_to(project.dist_dir).as_posix(),
                )
            )

        await self._write_metadata(metadata)
        return metadata

    async def _artifact_id(self, platform: PlatformInfo, default_id_plugin: Any) -> str:
        project = self.project
        template = self.config.id
        if not template and default_id_plugin is not None:
            template = await call_hook(
                default_id_plugin,
                "get_default_artifact_id",
                platform if project.platform_specified else None,
            )
        if not template:
            template = "{name}-{platform}" if project.platform_specified else "{name}"
        return project.render_template(str(template), self._platform_data(platform))

    @staticmethod
    def _platform_data(platform: PlatformInfo) -> Dict[str, Any]:
        data: Dict[str, Any] = {"platform": platform.name}
        data.update(platform.variables)
        return data

    async def _walk(self, mappings: List[FileMapping], platform: PlatformInfo, sink: ArchiveSink) -> None:
        project = self.project
        console = project.console
        data = self._platform_data(platform)

        for mapping in mappings:
            base_dir = Path(project.render_template(str(self.resolve_base_dir(mapping, platform.name)), data))
            pattern = project.render_template(mapping.pattern, data)
            path = project.render_template(mapping.path, data)

            unresolved = extract_placeholders(pattern) | extract_placeholders(path)
            if unresolved:
                console.debug(f"Unresolved placeholders left as-is: {', '.join(sorted(unresolved))}")
            elif pattern != mapping.pattern or path != mapping.path:
                check_wildcards(pattern, path)

            if self.config.target_dir:
                target_dir = project.render_template(self.config.target_dir, data)
                path = posixpath.join(target_dir, path.lstrip(SEP))
            console.debug(f"Matching '{pattern}' under {base_dir}")

            walker = FileWalker(pattern)
            matches: List[Tuple[str, Tuple[Capture, ...]]] = await asyncio.to_thread(
                lambda: list(walker.walk(base_dir))
            )

            for relative_path, captures in matches:
                path_in_artifact = build_path(path, captures)
                source = base_dir / relative_path
                await asyncio.to_thread(sink.add_file, source, path_in_artifact)
                console.info(f"{os.path.relpath(source, project.dir)} -> {path_in_artifact}")

    def resolve_base_dir(self, mapping: FileMapping, platform: str) -> Path:
        project = self.project

        if mapping.package:
            base_dir = project.get_dependency_dir(mapping.package, platform)
            if base_dir is None:
                raise ConfigurationError(f'Dependency package "{mapping.package}" not found')
            if mapping.base_dir:
                base_dir = base_dir / mapping.base_dir
            return base_dir

        base_dir = Path(project.dir)
        if self.config.base_dir:
            base_dir = base_dir / self.config.base_dir
        if mapping.base_dir:
            base_dir = base_dir / mapping.base_dir
        return base_dir

    async def _write_metadata(self, metadata: ArtifactMetadata) -> None:
        project = self.project
        console = project.console
        path = project.dist_dir / f"{project.name}.json"
        text = json.dumps(metadata.to_dict(), indent=4)

        if console.dry_run:
            console.dry(f"Would write artifact metadata to {path}")
            return

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text + "\n", encoding="utf-8")

        await asyncio.to_thread(_write)
        console.info(f"Artifact metadata generated at path {path}.")


__all__ = ["Artifact", "ArtifactMetadata", "ArtifactMetadataItem"]
