"""Placeholder rendering utilities."""
from __future__ import annotations

from typing import Any, Mapping, Sequence
import re


_PLACEHOLDER_PATTERN = re.compile(r"\{([$\w.-]+)\}")

MAX_RENDER_PASSES = 64
"""Upper bound on substitution passes before the data is deemed self-referential."""


class TemplateError(ValueError):
    """Raised when template rendering fails."""


class _Missing:
    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return "<missing>"


MISSING: Any = _Missing()


def lookup(expression: str, data: Mapping[str, Any]) -> Any:
    """Walk *data* along the dotted *expression*.

    Returns :data:`MISSING` when any step cannot be followed.
    """

    current: Any = data
    for part in expression.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
        if current is None:
            return MISSING
    return current


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_once(template: str, data: Mapping[str, Any]) -> str:
    def replacement(match: re.Match[str]) -> str:
        value = lookup(match.group(1), data)
        if value is MISSING:
            return match.group(0)
        return _stringify(value)

    return _PLACEHOLDER_PATTERN.sub(replacement, template)


def render(
    template: str,
    data: Mapping[str, Any],
    *,
    max_passes: int = MAX_RENDER_PASSES,
) -> str:
    """Substitute ``{a.b.c}`` placeholders in *template* using *data*.

    Unresolvable placeholders are left untouched. Substitution repeats on
    its own output until a pass produces no change, so values may contain
    further placeholders. More than *max_passes* changing passes raise
    :class:`TemplateError`.
    """

    current = template
    for _ in range(max_passes):
        rendered = _render_once(current, data)
        if rendered == current:
            return rendered
        current = rendered
    raise TemplateError(
        f"Template '{template}' did not stabilize after {max_passes} passes; "
        "check for self-referential values"
    )


def extract_placeholders(template: str) -> set[str]:
    """Collect the placeholder expressions referenced within *template*."""

    return {match.group(1) for match in _PLACEHOLDER_PATTERN.finditer(template)}


__all__ = [
    "MAX_RENDER_PASSES",
    "MISSING",
    "TemplateError",
    "extract_placeholders",
    "lookup",
    "render",
]
