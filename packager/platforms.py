"""Platform definitions and platform selection."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence
import sys

from core.config_loader import normalize_string_list, string_mapping

from .errors import ConfigurationError


def host_platform() -> str:
    """Return the identifier of the platform this process runs on."""
    return sys.platform


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    name: str
    env: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any) -> "PlatformInfo":
        if isinstance(value, str):
            name = value.strip()
            if not name:
                raise ConfigurationError("Platform names cannot be empty")
            return cls(name=name)
        if isinstance(value, Mapping):
            name = value.get("name")
            if not name or not str(name).strip():
                raise ConfigurationError(f"Platform entry {dict(value)!r} requires a non-empty 'name'")
            variables = value.get("variables", value.get("data"))
            try:
                env = {key: str(item) for key, item in string_mapping(value.get("env"), field_name="env").items()}
                data = string_mapping(variables, field_name="variables")
            except TypeError as exc:
                raise ConfigurationError(f"Platform '{name}': {exc}") from exc
            return cls(name=str(name).strip(), env=env, variables=data)
        raise ConfigurationError("Platforms must be specified as strings or mappings")


@dataclass(frozen=True, slots=True)
class PlatformSpecifier:
    """Selects which configured platforms take part in a run."""

    multiplatform: bool = False
    platform: str | None = None
    platforms: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PlatformSpecifier":
        try:
            platforms = normalize_string_list(data.get("platforms"), field_name="platforms")
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        platform = data.get("platform")
        return cls(
            multiplatform=bool(data.get("multiplatform", False)),
            platform=str(platform) if platform else None,
            platforms=tuple(platforms),
        )


@dataclass(frozen=True, slots=True)
class MatchedPlatforms:
    platforms: List[PlatformInfo]
    specified: bool


def get_matched_platforms(
    specifier: PlatformSpecifier,
    platforms: Sequence[PlatformInfo],
) -> MatchedPlatforms:
    """Resolve *specifier* against the configured *platforms*.

    Explicit ``platforms`` win over a single ``platform``, which wins over
    ``multiplatform``. Filtering keeps the order of *platforms*. Without any
    selection the host platform is used and the result is not ``specified``.
    """

    names: Sequence[str] = specifier.platforms or (
        (specifier.platform,) if specifier.platform else ()
    )

    if names:
        name_set = set(names)
        return MatchedPlatforms(
            platforms=[platform for platform in platforms if platform.name in name_set],
            specified=True,
        )

    if specifier.multiplatform:
        return MatchedPlatforms(platforms=list(platforms), specified=True)

    return MatchedPlatforms(platforms=[PlatformInfo(name=host_platform())], specified=False)


__all__ = [
    "MatchedPlatforms",
    "PlatformInfo",
    "PlatformSpecifier",
    "get_matched_platforms",
    "host_platform",
]
