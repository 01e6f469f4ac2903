"""Normalization of configured file mappings."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping
import posixpath

from core.config_loader import normalize_string_list
from core.template import extract_placeholders

from .errors import ConfigurationError
from .file_walker import GLOBSTAR, SEP, STAR, Globstar, Wildcard, compile_pattern


@dataclass(frozen=True, slots=True)
class FileMapping:
    """One rule relating a source glob pattern to a destination path template."""

    pattern: str
    path: str
    package: str | None = None
    base_dir: str | None = None
    platform_set: frozenset[str] | None = None

    def applies_to(self, platform: str) -> bool:
        return self.platform_set is None or platform in self.platform_set


def normalize_path(value: str) -> str:
    """Normalize a ``/``-separated path, keeping a trailing separator."""

    normalized = posixpath.normpath(value)
    if value.endswith(SEP) and not normalized.endswith(SEP):
        normalized += SEP
    return normalized


def _basename(value: str) -> str:
    return posixpath.basename(value.rstrip(SEP))


def _source_wildcards(pattern: str) -> tuple[int, int]:
    globstars = 0
    stars = 0
    for token in compile_pattern(pattern):
        if isinstance(token, Globstar):
            globstars += 1
        elif isinstance(token, Wildcard):
            stars += token.regex.groups
    return globstars, stars


def _destination_wildcards(path: str) -> tuple[int, int]:
    pieces = path.split(GLOBSTAR)
    return len(pieces) - 1, sum(piece.count(STAR) for piece in pieces)


def check_wildcards(pattern: str, path: str) -> None:
    """Reject a destination using more ``**`` or ``*`` tokens than *pattern* captures."""

    try:
        source_globstars, source_stars = _source_wildcards(pattern)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    target_globstars, target_stars = _destination_wildcards(path)
    if target_globstars > source_globstars or target_stars > source_stars:
        raise ConfigurationError(
            f"Destination '{path}' uses more wildcards than pattern '{pattern}' can capture"
        )


def normalize_mapping(entry: Any) -> FileMapping:
    """Convert a raw ``files`` entry into a :class:`FileMapping`.

    A string entry is used as both pattern and destination. A mapping entry
    may define ``pattern``, ``path``, ``package``, ``base_dir`` and
    ``platform``/``platforms``. A destination ending in ``/`` names a
    directory that receives the pattern's final component.
    """

    package: str | None = None
    base_dir: str | None = None
    platform_set: frozenset[str] | None = None

    if isinstance(entry, str):
        raw_pattern: Any = entry
        raw_path: Any = None
    elif isinstance(entry, Mapping):
        raw_pattern = entry.get("pattern")
        raw_path = entry.get("path")
        if entry.get("package"):
            package = str(entry["package"])
        raw_base_dir = entry.get("base_dir", entry.get("baseDir"))
        if raw_base_dir:
            base_dir = normalize_path(str(raw_base_dir))
        try:
            platforms = normalize_string_list(entry.get("platforms"), field_name="platforms")
            platforms += normalize_string_list(entry.get("platform"), field_name="platform")
        except TypeError as exc:
            raise ConfigurationError(f"Invalid platforms for mapping {dict(entry)!r}: {exc}") from exc
        if platforms:
            platform_set = frozenset(platforms)
    else:
        raise ConfigurationError(f"File mappings must be strings or mappings, got {entry!r}")

    if not raw_pattern or not isinstance(raw_pattern, str):
        raise ConfigurationError(f"Property `pattern` is required for mapping {entry!r}")

    pattern = normalize_path(raw_pattern)
    if pattern.endswith(SEP):
        raise ConfigurationError(
            f"Mapping pattern '{raw_pattern}' must match files, not directories"
        )

    path = normalize_path(str(raw_path)) if raw_path else pattern

    if path.endswith(SEP):
        base_name = posixpath.basename(pattern)
        if base_name == GLOBSTAR and _basename(path) == GLOBSTAR:
            raise ConfigurationError(
                f"Destination '{raw_path}' is ambiguous: both pattern and path end with '{GLOBSTAR}'"
            )
        path = posixpath.join(path, base_name)

    # Placeholders may expand to wildcards, so such mappings are checked once rendered.
    if not extract_placeholders(pattern) | extract_placeholders(path):
        check_wildcards(pattern, path)

    return FileMapping(
        pattern=pattern,
        path=path,
        package=package,
        base_dir=base_dir,
        platform_set=platform_set,
    )


def normalize_mappings(entries: Iterable[Any] | None) -> List[FileMapping]:
    if entries is None:
        raise ConfigurationError("Missing `files` field in `artifact` configuration")
    if isinstance(entries, (str, bytes, Mapping)):
        raise ConfigurationError("`artifact.files` must be a list of mappings")
    return [normalize_mapping(entry) for entry in entries]


__all__ = [
    "FileMapping",
    "check_wildcards",
    "normalize_mapping",
    "normalize_mappings",
    "normalize_path",
]
