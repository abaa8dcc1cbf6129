"""Hard-linked mirror of thoughts/ for search tools that do not follow symlinks."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from rich.console import Console

from .config import SEARCHABLE_DIR

console = Console()


@dataclass
class IndexResult:
    """Counts from one index pass."""
    total: int = 0  # source files reachable through thoughts/
    linked: int = 0
    removed: int = 0
    failed: int = 0  # could not hard link, usually a cross-device source


def _sorted_entries(directory: str) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def collect_source_files(thoughts_dir: Path) -> dict[str, Path]:
    """Map each file reachable through thoughts/ to its real location.

    Symlinked directories are followed and hidden entries and the searchable
    directory itself are skipped. A directory that is already one of its own
    ancestors is not entered again, so symlink loops terminate while the same
    directory reached along separate paths is indexed under each of them.
    Top-level files such as CLAUDE.md are not part of the index.
    """
    sources: dict[str, Path] = {}
    ancestors: set[str] = set()

    def walk(directory: str, relative: PurePosixPath) -> None:
        real = os.path.realpath(directory)
        if real in ancestors:
            return

        try:
            entries = _sorted_entries(directory)
        except OSError:
            return

        ancestors.add(real)
        try:
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                rel = relative / entry.name
                try:
                    if entry.is_dir():
                        walk(entry.path, rel)
                    elif entry.is_file():
                        sources[str(rel)] = Path(os.path.realpath(entry.path))
                except OSError:
                    continue
        finally:
            ancestors.discard(real)

    if not thoughts_dir.is_dir():
        return sources

    for entry in _sorted_entries(str(thoughts_dir)):
        if entry.name == SEARCHABLE_DIR or entry.name.startswith("."):
            continue
        if entry.is_dir():
            walk(entry.path, PurePosixPath(entry.name))

    return sources


def _same_file(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def _remove_stale(searchable: Path, sources: dict[str, Path]) -> int:
    removed = 0
    for dirpath, dirnames, filenames in os.walk(searchable, topdown=False):
        current = Path(dirpath)
        for filename in filenames:
            path = current / filename
            rel = path.relative_to(searchable).as_posix()
            source = sources.get(rel)
            if source is None or not _same_file(path, source):
                path.unlink()
                removed += 1

        if current != searchable:
            try:
                current.rmdir()
            except OSError:
                # not empty
                pass

    return removed


def build_searchable_index(thoughts_dir: Path, rebuild: bool = False) -> IndexResult:
    """Bring thoughts/searchable/ in line with the files reachable through thoughts/.

    Entries whose source disappeared or was replaced are dropped, missing
    ones are hard linked. With ``rebuild`` the directory is recreated from
    scratch.

    Args:
        thoughts_dir: The code repository's thoughts/ directory
        rebuild: Delete the existing index first

    Returns:
        Counts of what changed
    """
    thoughts_dir = Path(thoughts_dir)
    searchable = thoughts_dir / SEARCHABLE_DIR
    result = IndexResult()

    if not thoughts_dir.is_dir():
        return result

    if os.path.lexists(searchable) and (searchable.is_symlink() or not searchable.is_dir()):
        console.print(f"[yellow]Skipping search index: {searchable} exists and is not a directory[/yellow]")
        return result

    if rebuild and searchable.is_dir():
        shutil.rmtree(searchable)

    sources = collect_source_files(thoughts_dir)
    result.total = len(sources)

    searchable.mkdir(exist_ok=True)
    result.removed = _remove_stale(searchable, sources)

    for rel, source in sources.items():
        target = searchable / rel
        if os.path.lexists(target):
            continue
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.link(source, target)
            result.linked += 1
        except OSError:
            result.failed += 1

    return result
