"""File operations for dot-inject."""

import difflib
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

from .constants import BACKUP_SUFFIX, CWD_SEARCH_DEPTH, TEMPLATE_SUFFIXES
from .exceptions import TemplateReadError, WriteError


def is_template_file(path: Path) -> bool:
    """Check if a path carries a template suffix."""
    return path.name.endswith(TEMPLATE_SUFFIXES)


def output_path_for(path: Path) -> Path:
    """Get the rendered output path for a template.

    ``config.template`` -> ``config``; files without a template suffix
    are rendered in place.
    """
    for suffix in TEMPLATE_SUFFIXES:
        if path.name.endswith(suffix) and len(path.name) > len(suffix):
            return path.with_name(path.name[: -len(suffix)])
    return path


def is_binary_file(path: Path) -> bool:
    """Check if a file is binary."""
    try:
        with open(path, "rb") as f:
            chunk = f.read(8192)
            return b"\x00" in chunk
    except OSError:
        return True


def read_template(path: Path) -> str:
    """Read a template file as text.

    Raises:
        TemplateReadError: file is missing, binary or not UTF-8.
    """
    if not path.is_file():
        raise TemplateReadError(f"Input file not found: {path}")
    if is_binary_file(path):
        raise TemplateReadError(f"Cannot process binary file: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateReadError(f"Failed to read {path}: {e}")


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to path atomically.

    Content goes to a temp file in the destination directory which is then
    renamed over the target, so readers never observe a partial file. The
    mode of an existing target is preserved.

    Raises:
        WriteError: the write or rename failed; the target is untouched.
    """
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if path.exists():
            shutil.copymode(path, tmp_name)

        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise WriteError(f"Failed to write output file {path}: {e}")
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def backup_file(path: Path) -> Path | None:
    """Copy a file to ``<path>.backup`` before it is overwritten.

    Returns:
        Path to backup file, or None if there was nothing to back up

    Raises:
        WriteError: the copy failed.
    """
    if not path.is_file():
        return None

    backup_path = path.with_name(path.name + BACKUP_SUFFIX)
    try:
        shutil.copy2(path, backup_path)
    except OSError as e:
        raise WriteError(f"Failed to create backup {backup_path}: {e}")
    return backup_path


def unified_diff(before: str, after: str, path: Path | str) -> str:
    """Render a unified diff between template content and its rendering."""
    lines = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=str(path),
        tofile=f"{path} (rendered)",
    )
    return "".join(lines)


def _iter_files(directory: Path, max_depth: int | None = None) -> Iterator[Path]:
    """Walk a directory in sorted order, skipping .git."""
    base_depth = len(directory.parts)
    for root, dirs, files in os.walk(directory):
        root_path = Path(root)
        depth = len(root_path.parts) - base_depth
        dirs[:] = sorted(d for d in dirs if d != ".git")
        if max_depth is not None and depth + 1 >= max_depth:
            dirs[:] = []
        for name in sorted(files):
            yield root_path / name


def iter_directory_files(directory: Path, recursive: bool = True) -> Iterator[Path]:
    """Yield regular files in a directory, recursing if requested."""
    if recursive:
        yield from _iter_files(directory)
    else:
        for path in sorted(directory.iterdir()):
            if path.is_file():
                yield path


def find_template_files(
    home: Path,
    locations: Iterable[str],
    cwd: Path | None = None,
    cwd_depth: int = CWD_SEARCH_DEPTH,
) -> list[Path]:
    """Find template files in the configured locations.

    Searches each location relative to home recursively, plus the current
    directory (when it is not home) down to ``cwd_depth`` levels. Results
    are de-duplicated and sorted.
    """
    found: set[Path] = set()

    for location in locations:
        base = home / location
        if not base.is_dir():
            continue
        for path in _iter_files(base):
            if is_template_file(path):
                found.add(path.resolve())

    if cwd is not None and cwd.resolve() != home.resolve():
        for path in _iter_files(cwd, max_depth=cwd_depth):
            if is_template_file(path):
                found.add(path.resolve())

    return sorted(found)
