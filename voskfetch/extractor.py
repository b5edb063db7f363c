import logging
import os
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from .errors import ExtractionError
from .logger import get_logger, log_event
from .utils import remove_tree
from .verifier import ModelVerifier


class ArchiveExtractor:
    """Unpacks a model archive into a clean target directory."""

    def __init__(self, chunk_size: int = 8192, logger: Optional[logging.Logger] = None):
        """Initialize the extractor with a specific chunk size.

        Args:
            chunk_size: Size of each copied block in bytes (default: 8KB)
            logger: Logger for extraction events
        """
        self.chunk_size = chunk_size
        self.logger = logger or get_logger('extractor')

    @staticmethod
    def find_common_prefix(entries: Iterable[zipfile.ZipInfo]) -> Optional[str]:
        """
        Detect a single top-level folder wrapping every archive entry.

        Args:
            entries: Archive members in archive order

        Returns:
            The folder name if all entries live under it, otherwise None
        """
        seen = set()
        for info in entries:
            name = info.filename.replace('\\', '/')
            head, sep, _ = name.partition('/')
            if sep and head:
                seen.add(head)
            elif info.is_dir() and name:
                seen.add(name.rstrip('/'))
            else:
                # A file at the archive root: nothing to collapse
                return None
        if len(seen) == 1:
            return seen.pop()
        return None

    def extract(self, archive_path: Path, target_dir: Path) -> int:
        """
        Extract archive_path into target_dir, replacing whatever was there.

        Args:
            archive_path: Path to the ZIP archive
            target_dir: Destination directory

        Returns:
            Number of files written

        Raises:
            ExtractionError: If the archive cannot be read or an entry cannot be written
        """
        archive_path = Path(archive_path)
        target_dir = Path(target_dir)

        try:
            remove_tree(target_dir)
            target_dir.mkdir(parents=True, exist_ok=True)
            root = target_dir.resolve()

            with zipfile.ZipFile(archive_path) as archive:
                entries = archive.infolist()
                prefix = self.find_common_prefix(entries)
                written = 0
                skipped = 0

                for info in entries:
                    name = info.filename.replace('\\', '/')
                    if prefix and name.startswith(prefix + '/'):
                        name = name[len(prefix) + 1:]
                    if not name:
                        continue

                    destination = Path(os.path.normpath(root / name))
                    if destination == root or root not in destination.resolve().parents:
                        skipped += 1
                        log_event(self.logger, logging.DEBUG, "entry_skipped",
                                  entry=info.filename, reason="outside target directory")
                        continue

                    if info.is_dir():
                        destination.mkdir(parents=True, exist_ok=True)
                        continue

                    destination.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(info) as src, destination.open('wb') as out:
                        for chunk in iter(lambda: src.read(self.chunk_size), b''):
                            out.write(chunk)
                    written += 1

        except (zipfile.BadZipFile, zipfile.LargeZipFile, RuntimeError, OSError) as e:
            raise ExtractionError(f"Failed to extract model files: {e}") from e

        log_event(self.logger, logging.INFO, "extraction_completed",
                  archive=str(archive_path), target=str(target_dir),
                  prefix=prefix, files=written, skipped=skipped)
        return written


def resolve_model_root(directory: Path, verifier: Optional[ModelVerifier] = None) -> Path:
    """
    Find the directory that actually holds the model files.

    Archives sometimes nest the payload below one or more extra folders.
    Checks directory itself, then its immediate subdirectories, then any
    deeper subdirectory; falls back to directory when nothing verifies.
    """
    directory = Path(directory)
    verifier = verifier or ModelVerifier()
    if not directory.is_dir():
        return directory
    if verifier.is_valid(directory):
        return directory

    children = sorted(
        p for p in directory.iterdir()
        if p.is_dir() and not p.name.startswith('.')
    )
    for child in children:
        if verifier.is_valid(child):
            return child

    for dirpath, dirnames, _ in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
        for name in dirnames:
            candidate = Path(dirpath) / name
            if verifier.is_valid(candidate):
                return candidate

    return directory
