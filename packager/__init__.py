"""Package multi-platform projects into versioned archives."""

from .artifact import Artifact, ArtifactMetadata, ArtifactMetadataItem
from .configuration import (
    ArtifactConfiguration,
    DependencyConfiguration,
    ProjectConfiguration,
    load_project_configurations,
)
from .errors import ConfigurationError
from .file_walker import Capture, FileWalker, Segment, SegmentRun, build_path, compile_pattern
from .mapping import FileMapping, normalize_mapping, normalize_mappings
from .platforms import MatchedPlatforms, PlatformInfo, PlatformSpecifier, get_matched_platforms, host_platform
from .plugins import Plugin, load_plugin, load_plugins
from .project import Project

__all__ = [
    "Artifact",
    "ArtifactMetadata",
    "ArtifactMetadataItem",
    "ArtifactConfiguration",
    "DependencyConfiguration",
    "ProjectConfiguration",
    "load_project_configurations",
    "ConfigurationError",
    "Capture",
    "FileWalker",
    "Segment",
    "SegmentRun",
    "build_path",
    "compile_pattern",
    "FileMapping",
    "normalize_mapping",
    "normalize_mappings",
    "MatchedPlatforms",
    "PlatformInfo",
    "PlatformSpecifier",
    "get_matched_platforms",
    "host_platform",
    "Plugin",
    "load_plugin",
    "load_plugins",
    "Project",
]
