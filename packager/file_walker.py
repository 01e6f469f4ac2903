"""Restricted glob matching with wildcard captures.

Patterns use ``/`` as separator and support three kinds of segment:

* literal segments, matched exactly;
* segments containing ``*``, where each ``*`` matches any run of characters
  inside a single path segment;
* ``**`` as a whole segment, matching zero or more whole segments.

Every wildcard records what it matched. The captures of one file can then be
fed to :func:`build_path` to rebuild a destination path from a template that
uses the same wildcards.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union
import os
import posixpath
import re

GLOBSTAR = "**"
STAR = "*"
SEP = "/"


@dataclass(frozen=True, slots=True)
class Segment:
    """Text matched by one ``*``."""

    value: str


@dataclass(frozen=True, slots=True)
class SegmentRun:
    """Whole path segments absorbed by one ``**``."""

    segments: Tuple[str, ...] = ()


Capture = Union[Segment, SegmentRun]


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class Wildcard:
    source: str
    regex: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class Globstar:
    pass


Token = Union[Literal, Wildcard, Globstar]


def _compile_segment(segment: str) -> Token:
    if segment == GLOBSTAR:
        return Globstar()
    if STAR not in segment:
        return Literal(segment)
    # Adjacent stars inside a segment behave as one.
    pieces = re.split(r"\*+", segment)
    body = "([^/]*)".join(re.escape(piece) for piece in pieces)
    return Wildcard(segment, re.compile(body, re.DOTALL))


def compile_pattern(pattern: str) -> Tuple[Token, ...]:
    """Compile *pattern* into the token sequence driving :class:`FileWalker`."""

    if not pattern:
        raise ValueError("Glob pattern cannot be empty")
    segments = [segment for segment in pattern.split(SEP) if segment not in ("", ".")]
    if not segments:
        raise ValueError(f"Glob pattern '{pattern}' does not name any file")
    return tuple(_compile_segment(segment) for segment in segments)


@dataclass(frozen=True, slots=True)
class _State:
    index: int
    captures: Tuple[Capture, ...] = ()
    run: Tuple[str, ...] = ()


class FileWalker:
    """Enumerate the files under a directory matching a glob pattern."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.tokens = compile_pattern(pattern)

    def walk(self, base_dir: Path | str) -> Iterator[Tuple[str, Tuple[Capture, ...]]]:
        """Yield ``(relative_path, captures)`` for every matching file.

        Entries are visited in sorted order. Subtrees the remaining pattern
        cannot satisfy are never listed. A missing *base_dir* raises
        :class:`FileNotFoundError`.
        """

        base = Path(base_dir)
        if not base.is_dir():
            raise FileNotFoundError(f"Base directory '{base}' does not exist")
        yield from self._walk_dir(base, (), self._closure(_State(0)))

    def matches(self, relative_path: str) -> Tuple[Capture, ...] | None:
        """Match a ``/``-separated file path against the pattern without touching the disk."""

        states = self._closure(_State(0))
        for name in [part for part in relative_path.split(SEP) if part]:
            states = self._advance(states, name)
            if not states:
                return None
        return self._accepted(states)

    def _walk_dir(
        self,
        directory: Path,
        parts: Tuple[str, ...],
        states: List[_State],
    ) -> Iterator[Tuple[str, Tuple[Capture, ...]]]:
        for name, path in self._candidates(directory, states):
            next_states = self._advance(states, name)
            if not next_states:
                continue
            if path.is_dir() and not path.is_symlink():
                live = [state for state in next_states if state.index < len(self.tokens)]
                if live:
                    yield from self._walk_dir(path, parts + (name,), live)
            elif path.is_file():
                captures = self._accepted(next_states)
                if captures is not None:
                    yield SEP.join(parts + (name,)), captures

    def _candidates(self, directory: Path, states: Sequence[_State]) -> List[Tuple[str, Path]]:
        tokens = [self.tokens[state.index] for state in states]
        if all(isinstance(token, Literal) for token in tokens):
            names = sorted({token.text for token in tokens if isinstance(token, Literal)})
            return [(name, directory / name) for name in names if os.path.lexists(directory / name)]
        with os.scandir(directory) as entries:
            names = sorted(entry.name for entry in entries)
        return [(name, directory / name) for name in names]

    def _accepted(self, states: Sequence[_State]) -> Tuple[Capture, ...] | None:
        for state in states:
            if state.index == len(self.tokens):
                return state.captures
        return None

    def _advance(self, states: Sequence[_State], name: str) -> List[_State]:
        # States sharing a position have identical futures; the first one in
        # automaton order keeps its captures.
        result: List[_State] = []
        seen: set[Tuple[int, Tuple[str, ...]]] = set()
        for state in states:
            for stepped in self._step(state, name):
                for closed in self._closure(stepped):
                    position = (closed.index, closed.run)
                    if position not in seen:
                        seen.add(position)
                        result.append(closed)
        return result

    def _step(self, state: _State, name: str) -> Iterator[_State]:
        if state.index >= len(self.tokens):
            return
        token = self.tokens[state.index]
        if isinstance(token, Globstar):
            yield _State(state.index, state.captures, state.run + (name,))
        elif isinstance(token, Literal):
            if name == token.text:
                yield _State(state.index + 1, state.captures)
        else:
            match = token.regex.fullmatch(name)
            if match:
                segments = tuple(Segment(value) for value in match.groups())
                yield _State(state.index + 1, state.captures + segments)

    def _closure(self, state: _State) -> List[_State]:
        states = [state]
        while state.index < len(self.tokens) and isinstance(self.tokens[state.index], Globstar):
            state = _State(state.index + 1, state.captures + (SegmentRun(state.run),))
            states.append(state)
        return states


def build_path(destination_pattern: str, captures: Sequence[Capture]) -> str:
    """Rebuild *destination_pattern* by filling its wildcards with *captures*.

    ``**`` tokens are filled with :class:`SegmentRun` captures and ``*`` tokens
    with :class:`Segment` captures. Both are paired right to left, so the last
    wildcard of the template receives the last capture of its kind. Tokens
    left without a capture are dropped.
    """

    stars: List[str] = [capture.value for capture in captures if isinstance(capture, Segment)]
    runs: List[Tuple[str, ...]] = [capture.segments for capture in captures if isinstance(capture, SegmentRun)]

    rooted = destination_pattern.startswith(SEP)

    parts = destination_pattern.split(GLOBSTAR)
    for index in range(len(parts) - 1, 0, -1):
        if not runs:
            break
        run = runs.pop()
        if run:
            parts.insert(index, SEP.join(run))

    parts = "".join(parts).split(STAR)
    for index in range(len(parts) - 1, 0, -1):
        if not stars:
            break
        parts.insert(index, stars.pop())

    path = posixpath.normpath("".join(parts))
    if path == ".":
        return ""
    if not rooted:
        path = path.lstrip(SEP)
    elif path.startswith(SEP * 2):
        path = SEP + path.lstrip(SEP)
    return path


__all__ = [
    "Capture",
    "FileWalker",
    "Globstar",
    "Literal",
    "Segment",
    "SegmentRun",
    "Token",
    "Wildcard",
    "build_path",
    "compile_pattern",
]
