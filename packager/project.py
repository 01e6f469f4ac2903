"""Runtime view of one configured project."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union
import shutil

from core.console import Console
from core.template import render

from .artifact import Artifact, ArtifactMetadata
from .configuration import ProjectConfiguration
from .platforms import PlatformInfo, PlatformSpecifier, get_matched_platforms
from .plugins import load_plugins

DependencyKey = Union[str, Tuple[str, str]]


class Project:
    """A project ready for packaging.

    :meth:`load` resolves plugins, platforms and dependency directories;
    :meth:`clean` resets the distribution directory and :meth:`distribute`
    generates the artifacts.
    """

    def __init__(
        self,
        config: ProjectConfiguration,
        *,
        specifier: PlatformSpecifier | None = None,
        console: Console | None = None,
        dist_dir: Path | str | None = None,
    ) -> None:
        self.config = config
        self.specifier = specifier or PlatformSpecifier()
        self.console = console or Console()
        self.name = config.name
        self.version = config.version
        self.dir = config.dir
        self.dist_dir = self._resolve(dist_dir if dist_dir is not None else config.dist_dir)
        self.dependency_dir = self._resolve(config.dependency_dir)
        self.platforms: List[PlatformInfo] = []
        self.platform_specified = False
        self.plugins: List[Any] = []
        self.dependency_dir_map: Dict[DependencyKey, Path] = {}

    def _resolve(self, value: Path | str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.dir / path
        return path

    def load(self) -> None:
        self.plugins = load_plugins(self.config.plugins, self)

        matched = get_matched_platforms(self.specifier, self.config.platforms)
        self.platforms = matched.platforms
        self.platform_specified = matched.specified

        self.dependency_dir_map = {}
        for dependency in self.config.dependencies:
            package_dir = self.dependency_dir / dependency.name
            self.dependency_dir_map[dependency.name] = package_dir
            if not dependency.platform_specific:
                continue
            for platform in get_matched_platforms(dependency.specifier, self.config.platforms).platforms:
                self.dependency_dir_map[(dependency.name, platform.name)] = package_dir / platform.name

        self.console.debug(
            f"Project {self.name} {self.version}: platforms "
            f"{', '.join(platform.name for platform in self.platforms) or '<none>'}"
        )

    def clean(self) -> None:
        if self.console.dry_run:
            self.console.dry(f"Would clean {self.dist_dir}")
            return
        if self.dist_dir.exists():
            shutil.rmtree(self.dist_dir)
        self.dist_dir.mkdir(parents=True, exist_ok=True)

    async def distribute(self) -> ArtifactMetadata:
        return await Artifact(self.config.artifact, self).generate()

    def get_dependency_dir(self, package: str, platform: str) -> Path | None:
        """Return the directory of dependency *package* for *platform*.

        The platform-specific directory is only consulted when platforms
        were selected explicitly; the generic directory is the fallback.
        """

        if self.platform_specified:
            specific = self.dependency_dir_map.get((package, platform))
            if specific is not None:
                return specific
        return self.dependency_dir_map.get(package)

    def template_data(self, data: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "dir": str(self.dir),
            "dist_dir": str(self.dist_dir),
        }
        if data:
            context.update(data)
        return context

    def render_template(self, template: str, data: Mapping[str, Any] | None = None) -> str:
        return render(template, self.template_data(data))


__all__ = ["DependencyKey", "Project"]
