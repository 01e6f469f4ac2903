"""Project configuration loading and validation."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml

from core.archive import normalize_format
from core.config_loader import load_config_file, normalize_string_list

from .errors import ConfigurationError
from .mapping import FileMapping, normalize_mappings
from .platforms import PlatformInfo, PlatformSpecifier

DEFAULT_CONFIG_FILE = "dist.toml"


def _optional_str(data: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


def _table_list(value: Any, *, field_name: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"`{field_name}` must be a list")
    return list(value)


@dataclass(slots=True)
class ArtifactConfiguration:
    files: List[FileMapping]
    id: str | None = None
    base_dir: str | None = None
    target_dir: str | None = None
    format: str = "zip"

    @classmethod
    def from_mapping(cls, data: Any) -> "ArtifactConfiguration":
        if not isinstance(data, Mapping):
            raise ConfigurationError("Missing `artifact` section in project configuration")
        archive_format = _optional_str(data, "format") or "zip"
        try:
            archive_format = normalize_format(archive_format)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls(
            files=normalize_mappings(data.get("files")),
            id=_optional_str(data, "id"),
            base_dir=_optional_str(data, "base_dir", "baseDir", "root"),
            target_dir=_optional_str(data, "target_dir", "targetDir"),
            format=archive_format,
        )


@dataclass(slots=True)
class DependencyConfiguration:
    name: str
    specifier: PlatformSpecifier = field(default_factory=PlatformSpecifier)

    @classmethod
    def from_value(cls, value: Any) -> "DependencyConfiguration":
        if isinstance(value, str):
            name = value.strip()
            if not name:
                raise ConfigurationError("Dependency entries cannot be empty strings")
            return cls(name=name)
        if isinstance(value, Mapping):
            name = _optional_str(value, "name")
            if not name:
                raise ConfigurationError("Dependency entries must include a non-empty 'name'")
            return cls(name=name.strip(), specifier=PlatformSpecifier.from_mapping(value))
        raise ConfigurationError("Dependencies must be specified as strings or mappings")

    @property
    def platform_specific(self) -> bool:
        spec = self.specifier
        return bool(spec.multiplatform or spec.platform or spec.platforms)


@dataclass(slots=True)
class ProjectConfiguration:
    name: str
    version: str
    dir: Path
    artifact: ArtifactConfiguration
    dist_dir: str = "dist"
    dependency_dir: str = "dependencies"
    plugins: List[str] = field(default_factory=list)
    platforms: List[PlatformInfo] = field(default_factory=list)
    dependencies: List[DependencyConfiguration] = field(default_factory=list)
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, root: Path) -> "ProjectConfiguration":
        name = _optional_str(data, "name")
        if not name:
            raise ConfigurationError("Project name is required")

        project_dir = Path(_optional_str(data, "dir") or ".")
        if not project_dir.is_absolute():
            project_dir = root / project_dir

        platform_entries = _table_list(data.get("platforms"), field_name="platforms")
        if data.get("platform") is not None:
            platform_entries.insert(0, data["platform"])
        platforms = [PlatformInfo.from_value(entry) for entry in platform_entries]

        try:
            plugins = normalize_string_list(data.get("plugins"), field_name="plugins")
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc

        dependencies = [
            DependencyConfiguration.from_value(entry)
            for entry in _table_list(data.get("dependencies"), field_name="dependencies")
        ]

        return cls(
            name=name,
            version=_optional_str(data, "version") or "0.0.0",
            dir=project_dir.resolve(),
            artifact=ArtifactConfiguration.from_mapping(data.get("artifact")),
            dist_dir=_optional_str(data, "dist_dir", "distDir") or "dist",
            dependency_dir=_optional_str(data, "dependency_dir", "dependencyDir") or "dependencies",
            plugins=plugins,
            platforms=platforms,
            dependencies=dependencies,
            raw=data,
        )


def load_project_configurations(path: Path) -> List[ProjectConfiguration]:
    """Load every project defined in the configuration file at *path*.

    The file holds either a single ``project`` table or a ``projects`` list.
    Project names must be unique.
    """

    if not path.is_file():
        raise ConfigurationError(f"Configuration file '{path}' does not exist")
    try:
        data = load_config_file(path)
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to load '{path}': {exc}") from exc

    if "projects" in data:
        entries = _table_list(data["projects"], field_name="projects")
    elif isinstance(data.get("project"), Mapping):
        entries = [data["project"]]
    else:
        raise ConfigurationError(f"'{path}' must define a `project` table or a `projects` list")

    root = path.parent.resolve()
    configs: Dict[str, ProjectConfiguration] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ConfigurationError("Project entries must be tables")
        config = ProjectConfiguration.from_mapping(entry, root=root)
        if config.name in configs:
            raise ConfigurationError(f'Duplicated project name "{config.name}"')
        configs[config.name] = config
    return list(configs.values())


__all__ = [
    "ArtifactConfiguration",
    "DEFAULT_CONFIG_FILE",
    "DependencyConfiguration",
    "ProjectConfiguration",
    "load_project_configurations",
]
