"""Local directory of EPUB files: list, add, read and delete."""

import logging
from datetime import datetime
from pathlib import Path

from epub_splitter.errors import LibraryError
from epub_splitter.library.models import LibraryEntry

log = logging.getLogger(__name__)


class LibraryManager:
    """Manages the EPUB files kept in one directory."""

    SUFFIX = ".epub"

    def __init__(self, root: Path):
        self.root = root

    def _ensure_root(self) -> None:
        """Create library directory if it doesn't exist."""
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        """Resolve a book name inside the library.

        Raises:
            LibraryError: If the name is not an EPUB or escapes the library
        """
        if not name.lower().endswith(self.SUFFIX):
            raise LibraryError("Only EPUB files are allowed")

        root = self.root.resolve()
        path = (root / name).resolve()
        if not path.is_relative_to(root) or path == root:
            raise LibraryError("Access denied")
        return path

    def list_books(self) -> list[LibraryEntry]:
        """List EPUB files with size and timestamps, sorted by name."""
        if not self.root.exists():
            return []

        entries = []
        for path in sorted(self.root.iterdir(), key=lambda p: p.name.lower()):
            if not path.is_file() or not path.name.lower().endswith(self.SUFFIX):
                continue
            try:
                stat = path.stat()
            except OSError as e:
                log.warning("Error reading file %s: %s", path.name, e)
                continue
            entries.append(
                LibraryEntry(
                    name=path.name,
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime),
                    created=datetime.fromtimestamp(
                        getattr(stat, "st_birthtime", stat.st_ctime)
                    ),
                )
            )
        return entries

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except LibraryError:
            return False

    def read(self, name: str) -> bytes:
        """Return the bytes of a stored EPUB.

        Raises:
            LibraryError: If the file is not in the library
        """
        path = self.path_for(name)
        if not path.is_file():
            raise LibraryError("File not found")
        return path.read_bytes()

    def save(self, name: str, data: bytes) -> Path:
        """Store bytes under ``name``, replacing any existing file."""
        path = self.path_for(name)
        self._ensure_root()
        path.write_bytes(data)
        log.debug("Saved %s (%d bytes)", name, len(data))
        return path

    def add(self, source: Path) -> Path:
        """Copy an EPUB from disk into the library, keeping its file name."""
        if not source.is_file():
            raise LibraryError(f"File not found: {source}")
        path = self.path_for(source.name)
        if source.resolve() == path:
            return path
        return self.save(source.name, source.read_bytes())

    def delete(self, name: str) -> None:
        """Remove a stored EPUB.

        Raises:
            LibraryError: If the file is not in the library
        """
        path = self.path_for(name)
        if not path.is_file():
            raise LibraryError("File not found")
        path.unlink()
