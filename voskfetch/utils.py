import os
import shutil
import socket
from pathlib import Path
from typing import Iterator, Sequence, Tuple

# Public resolvers reachable over any transport (Wi-Fi, cellular or wired).
PROBE_HOSTS: Sequence[Tuple[str, int]] = (('1.1.1.1', 53), ('8.8.8.8', 53))


def is_internet_available(timeout: float = 1.5) -> bool:
    """Check whether some network transport is currently up.

    Args:
        timeout: Seconds to wait for each probe connection

    Returns:
        True if a TCP connection to any probe host succeeds
    """
    for host, port in PROBE_HOSTS:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            continue
    return False


def iter_files(root: Path, skip_hidden: bool = False) -> Iterator[Path]:
    """Yield every regular file below root."""
    for dirpath, dirnames, filenames in os.walk(root):
        if skip_hidden:
            dirnames[:] = [d for d in dirnames if not d.startswith('.')]
        for name in filenames:
            if skip_hidden and name.startswith('.'):
                continue
            path = Path(dirpath) / name
            if path.is_file():
                yield path


def directory_size(root: Path) -> int:
    """Sum of file sizes under root, 0 if root does not exist."""
    if not root.is_dir():
        return 0
    total = 0
    for path in iter_files(root):
        try:
            total += path.stat().st_size
        except OSError:
            continue
    return total


def remove_tree(path: Path) -> bool:
    """Remove path recursively if it exists.

    Returns:
        True if something was removed
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return True
    if path.exists() or path.is_symlink():
        path.unlink()
        return True
    return False


def format_bytes(size: int) -> str:
    if size >= 1_000_000_000:
        return f"{size / 1_000_000_000:.1f} GB"
    if size >= 1_000_000:
        return f"{size / 1_000_000:.1f} MB"
    if size >= 1_000:
        return f"{size / 1_000:.1f} KB"
    return f"{size} B"
