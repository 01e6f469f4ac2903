"""Command line interface for the packager."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import asyncio
import sys

from core.config_loader import normalize_string_list
from core.console import Console
from core.template import TemplateError

from .configuration import DEFAULT_CONFIG_FILE, ProjectConfiguration, load_project_configurations
from .errors import ConfigurationError
from .platforms import PlatformSpecifier
from .project import Project


def _split_platforms(values: Iterable[str]) -> List[str]:
    names: List[str] = []
    for value in values:
        for part in normalize_string_list(value.split(",")):
            if part not in names:
                names.append(part)
    return names


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="packager", description="Package a project into per-platform archives")
    parser.add_argument(
        "names",
        nargs="*",
        metavar="NAME",
        help="Names of projects to distribute; omit to distribute every configured project",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        metavar="FILENAME",
        help=f"Configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    platform_group = parser.add_mutually_exclusive_group()
    platform_group.add_argument("-p", "--platform", help="Package for a single configured platform")
    platform_group.add_argument(
        "-P",
        "--platforms",
        action="append",
        default=[],
        metavar="NAMES",
        help="Package for the given platforms (comma-separated, repeatable)",
    )
    platform_group.add_argument(
        "-m",
        "--multiplatform",
        action="store_true",
        help="Package for every configured platform",
    )
    parser.add_argument("-d", "--dist-dir", help="Override the distribution directory")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Report matched files without writing archives")
    parser.add_argument(
        "--log-level",
        choices=sorted(Console.LEVELS, key=Console.LEVELS.__getitem__),
        default="info",
        help="Console verbosity (default: info)",
    )
    return parser.parse_args(list(argv))


def _select_configs(configs: List[ProjectConfiguration], names: List[str]) -> List[ProjectConfiguration]:
    if not names:
        return configs
    by_name = {config.name: config for config in configs}
    selected: List[ProjectConfiguration] = []
    for name in names:
        config = by_name.get(name)
        if config is None:
            raise ConfigurationError(f'Project "{name}" does not exist')
        selected.append(config)
    return selected


async def _distribute(projects: List[Project]) -> None:
    for project in projects:
        await project.distribute()


def run(args: Namespace, console: Console) -> None:
    configs = _select_configs(load_project_configurations(Path(args.config)), args.names)
    specifier = PlatformSpecifier(
        multiplatform=args.multiplatform,
        platform=args.platform,
        platforms=tuple(_split_platforms(args.platforms)),
    )

    projects: List[Project] = []
    for config in configs:
        project = Project(config, specifier=specifier, console=console, dist_dir=args.dist_dir)
        project.load()
        projects.append(project)

    for project in projects:
        project.clean()

    asyncio.run(_distribute(projects))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    console = Console(level=args.log_level, dry_run=args.dry_run)

    try:
        run(args, console)
    except (ConfigurationError, TemplateError) as exc:
        console.error(str(exc))
        return 2
    except OSError as exc:
        console.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
