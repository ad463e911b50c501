"""Read-only view of an EPUB (ZIP) archive."""

from __future__ import annotations

import io
import posixpath
import zipfile
from urllib.parse import unquote

from epub_splitter.errors import StructuralError


def resolve_href(base_dir: str, href: str) -> str:
    """Resolve a document-relative href to an archive path.

    The fragment is dropped and percent escapes are decoded.
    """
    path = unquote(href.split("#", 1)[0])
    if not path:
        return ""
    if base_dir:
        path = posixpath.join(base_dir, path)
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized.lstrip("/")


class EpubArchive:
    """Lazy path -> text lookups over archive bytes."""

    def __init__(self, data: bytes):
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise StructuralError(f"Not a valid EPUB archive: {e}") from e
        self._names = {
            info.filename: info for info in self._zip.infolist() if not info.is_dir()
        }

    def __contains__(self, path: object) -> bool:
        return path in self._names

    def read_text(self, path: str) -> str:
        """Decompress ``path`` and decode it as UTF-8.

        Raises:
            KeyError: If ``path`` is not in the archive
        """
        data = self._zip.read(self._names[path])
        return data.decode("utf-8-sig", errors="replace")

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "EpubArchive":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
