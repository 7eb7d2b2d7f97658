"""
Write the allowlisted part of an archive to disk.

Only regular files under one of the allowed top-level directories are
written; everything else is drained so the stream keeps moving. JavaScript
files go through a transform before they are written.
"""

import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

from .archive import ArchiveEntry
from .errors import ArchiveError
from .transform import is_javascript


def top_level_dir(name: str) -> str:
    """Return the first path segment of an archive member name."""
    parts = [part for part in name.split("/") if part and part != "."]
    return parts[0] if parts else ""


def clean_output_dirs(root: Path, dirs: Iterable[str]) -> None:
    """Remove the output directories so no file from a previous run survives."""
    for dir_name in dirs:
        dir_path = Path(root) / dir_name
        if dir_path.exists():
            print(f"Removing directory: {dir_path}")
            shutil.rmtree(dir_path)


def output_path(root: Path, name: str) -> Path:
    """
    Resolve where an archive member is written.

    Raises:
        ArchiveError: If the member name points outside root
    """
    root = Path(root).resolve()
    path = (root / name).resolve()
    if not path.is_relative_to(root) or path == root:
        raise ArchiveError(f"Refusing to write outside {root}: {name}")
    return path


def materialize_entries(
    entries: Iterable[ArchiveEntry],
    root: Path,
    allowed_dirs: Iterable[str],
    transform: Callable[[bytes], bytes] | None = None,
) -> list[Path]:
    """
    Write allowlisted file entries under root, draining all others.

    Args:
        entries: Archive entries in archive order
        root: Output root; files land at root / entry.name
        allowed_dirs: Top-level directory names eligible for extraction
        transform: Applied to the content of .js files before writing

    Returns:
        Paths of the files written, in archive order
    """
    allowed = set(allowed_dirs)
    written = []

    for entry in entries:
        if entry.type != "file" or top_level_dir(entry.name) not in allowed:
            entry.drain()
            continue

        outfile = output_path(root, entry.name)
        print(f'  writing "{outfile}"')

        data = entry.read()
        if transform is not None and is_javascript(outfile):
            data = transform(data)

        outfile.parent.mkdir(parents=True, exist_ok=True)
        outfile.write_bytes(data)
        written.append(outfile)

    return written
