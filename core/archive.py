"""Archive writing utilities reusable across projects."""
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
import os
import tarfile
import zipfile

import zstandard as zstd

_FORMAT_ALIASES: dict[str, str] = {
    "zst": "zst",
    "tar.zst": "zst",
    "tzst": "zst",
    "gztar": "gztar",
    "gz": "gztar",
    "tar.gz": "gztar",
    "tgz": "gztar",
    "xztar": "xztar",
    "xz": "xztar",
    "tar.xz": "xztar",
    "txz": "xztar",
    "tar": "tar",
    "zip": "zip",
}

_FORMAT_SUFFIXES: dict[str, str] = {
    "zst": ".tar.zst",
    "gztar": ".tar.gz",
    "xztar": ".tar.xz",
    "tar": ".tar",
    "zip": ".zip",
}


@runtime_checkable
class ArchiveConsole(Protocol):
    """Minimal console interface required by :class:`ArchiveManager`."""

    dry_run: bool

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def dry(self, message: str) -> None:
        ...


def normalize_format(format_hint: str) -> str:
    """Return the canonical archive format name for *format_hint*."""

    normalized = format_hint.strip().lower()
    if normalized in _FORMAT_ALIASES:
        return _FORMAT_ALIASES[normalized]
    raise ValueError(f"Unsupported archive format hint '{format_hint}'")


def format_suffix(format_hint: str) -> str:
    """Return the file suffix used for archives of *format_hint*."""

    return _FORMAT_SUFFIXES[normalize_format(format_hint)]


class ArchiveSink:
    """Ordered stream of files written into one archive.

    Entries are added with :meth:`add_file`; :meth:`close` finalizes the
    archive and flushes it to disk. A sink that fails while writing removes
    the partial output before re-raising.
    """

    def __init__(self, target_path: Path) -> None:
        self.target_path = target_path
        self.entries: list[tuple[Path, str]] = []
        self._closed = False

    def add_file(self, source: Path | str, arcname: str) -> None:
        if self._closed:
            raise RuntimeError(f"Archive '{self.target_path}' is already closed")
        source_path = Path(source)
        try:
            self._write(source_path, arcname)
        except BaseException:
            self.abort()
            raise
        self.entries.append((source_path, arcname))

    def close(self) -> Path:
        if self._closed:
            return self.target_path
        try:
            self._finalize()
        except BaseException:
            self.abort()
            raise
        self._closed = True
        return self.target_path

    def abort(self) -> None:
        """Discard the archive, removing any partially written output."""
        if self._closed:
            return
        self._closed = True
        try:
            self._finalize()
        except Exception:  # pragma: no cover - output is discarded anyway
            pass
        self.target_path.unlink(missing_ok=True)

    def _write(self, source: Path, arcname: str) -> None:
        raise NotImplementedError

    def _finalize(self) -> None:
        raise NotImplementedError


class _DryRunSink(ArchiveSink):
    def __init__(self, target_path: Path, console: ArchiveConsole) -> None:
        super().__init__(target_path)
        self._console = console

    def _write(self, source: Path, arcname: str) -> None:
        self._console.dry(f"Would add {source} as {arcname}")

    def _finalize(self) -> None:
        self._console.dry(f"Would write {len(self.entries)} file(s) to {self.target_path}")

    def abort(self) -> None:
        self._closed = True


class _ZipSink(ArchiveSink):
    def __init__(self, target_path: Path) -> None:
        super().__init__(target_path)
        self._archive = zipfile.ZipFile(
            target_path,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=9,
            allowZip64=True,
            strict_timestamps=False,
        )

    def _write(self, source: Path, arcname: str) -> None:
        self._archive.write(source, arcname)

    def _finalize(self) -> None:
        self._archive.close()


class _TarSink(ArchiveSink):
    def __init__(self, target_path: Path, archive_format: str) -> None:
        super().__init__(target_path)
        self._handle: BinaryIO | None = None
        self._writer: BinaryIO | None = None
        if archive_format == "zst":
            self._handle = target_path.open("wb")
            compressor = zstd.ZstdCompressor(
                level=19,
                threads=max(1, min(os.cpu_count() or 1, 8)),
                write_checksum=True,
            )
            self._writer = compressor.stream_writer(self._handle)
            self._tar = tarfile.open(fileobj=self._writer, mode="w|", format=tarfile.PAX_FORMAT)
        else:
            mode = {"gztar": "w:gz", "xztar": "w:xz", "tar": "w"}[archive_format]
            self._tar = tarfile.open(target_path, mode=mode, format=tarfile.PAX_FORMAT)

    def _write(self, source: Path, arcname: str) -> None:
        self._tar.add(source, arcname=arcname, recursive=False)

    def _finalize(self) -> None:
        try:
            self._tar.close()
            if self._writer is not None:
                self._writer.close()
        finally:
            if self._handle is not None and not self._handle.closed:
                self._handle.close()


class ArchiveManager:
    """Create archives from ordered streams of files."""

    def __init__(
        self,
        console: ArchiveConsole,
    ) -> None:
        self._console = console

    def open_archive(
        self,
        *,
        target_path: Path | str,
        format_hint: str,
    ) -> ArchiveSink:
        """Open a fresh archive at *target_path*, replacing any existing file.

        Parameters
        ----------
        target_path:
            Exact path (including filename) for the archive that should be created.
        format_hint:
            Archive format such as ``"zst"`` or ``"zip"``; any alias accepted by
            :func:`normalize_format`.
        """

        target = Path(target_path).expanduser()
        archive_format = normalize_format(format_hint)

        if self._console.dry_run:
            return _DryRunSink(target, self._console)

        target.parent.mkdir(parents=True, exist_ok=True)

        if archive_format == "zip":
            return _ZipSink(target)
        return _TarSink(target, archive_format)


__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "ArchiveSink",
    "format_suffix",
    "normalize_format",
]
