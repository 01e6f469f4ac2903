"""Shared core utilities for archiving, templating and configuration."""

from .archive import ArchiveConsole, ArchiveManager, ArchiveSink, format_suffix, normalize_format
from .console import Console
from .template import MAX_RENDER_PASSES, TemplateError, extract_placeholders, lookup, render
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    load_config_file,
    normalize_string_list,
    string_mapping,
)

__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "ArchiveSink",
    "format_suffix",
    "normalize_format",
    "Console",
    "MAX_RENDER_PASSES",
    "TemplateError",
    "extract_placeholders",
    "lookup",
    "render",
    "ConfigLoader",
    "FILE_LOADERS",
    "load_config_file",
    "normalize_string_list",
    "string_mapping",
]
