"""Plugin loading and hook invocation."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List
import importlib
import inspect

from .errors import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover
    from .project import Project

DEFAULT_PLUGIN_ATTRIBUTE = "plugin"


class Plugin:
    """Base class for packager plugins.

    Plugins do not have to inherit from this class; any object exposing
    either hook is accepted. Hooks may be plain functions or coroutines.

    ``process_artifact_metadata(metadata)``
        Called once per run before any artifact is generated. May mutate
        the metadata or add fields to it.
    ``get_default_artifact_id(platform)``
        Returns the artifact id template used when the artifact config does
        not set ``id``. *platform* is ``None`` when no platform was
        selected explicitly.
    """

    def __init__(self, project: "Project | None" = None) -> None:
        self.project = project


def has_hook(plugin: Any, name: str) -> bool:
    return callable(getattr(plugin, name, None))


async def call_hook(plugin: Any, name: str, *args: Any) -> Any:
    """Call hook *name* on *plugin*, awaiting the result when needed."""
    result = getattr(plugin, name)(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def load_plugin(reference: str, project: "Project | None" = None) -> Any:
    """Import the plugin named by ``module`` or ``module:attribute``.

    Classes and other callables found at the attribute are called with
    *project* to produce the plugin instance.
    """

    module_name, _, attribute = reference.partition(":")
    attribute = attribute or DEFAULT_PLUGIN_ATTRIBUTE
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f'Failed to import plugin "{reference}": {exc}') from exc

    target = getattr(module, attribute, None)
    if target is None:
        raise ConfigurationError(f'Plugin module "{module_name}" has no attribute "{attribute}"')

    if inspect.isclass(target) or (callable(target) and not _is_plugin_object(target)):
        return target(project)
    return target


def _is_plugin_object(value: Any) -> bool:
    return has_hook(value, "process_artifact_metadata") or has_hook(value, "get_default_artifact_id")


def load_plugins(references: Iterable[str], project: "Project | None" = None) -> List[Any]:
    return [load_plugin(reference, project) for reference in references]


__all__ = [
    "DEFAULT_PLUGIN_ATTRIBUTE",
    "Plugin",
    "call_hook",
    "has_hook",
    "load_plugin",
    "load_plugins",
]
