"""Library data models."""

from datetime import datetime

from pydantic import BaseModel


class LibraryEntry(BaseModel):
    """An EPUB stored in the library directory."""

    name: str
    size: int
    modified: datetime
    created: datetime
