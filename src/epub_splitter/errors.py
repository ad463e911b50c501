"""Error taxonomy for archive resolution, partitioning and the library."""


class EpubSplitterError(Exception):
    """Base error carrying a short type tag and a human readable message."""

    error_type = "ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StructuralError(EpubSplitterError):
    """Archive lacks the container, rootfile or package document. Fatal."""

    error_type = "STRUCTURE"

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class NavigationError(EpubSplitterError):
    """Navigation document or NCX is present but unusable."""

    error_type = "NAVIGATION"


class ChapterExtractionError(EpubSplitterError):
    """A single content document could not be extracted."""

    error_type = "CHAPTER"

    def __init__(self, context: str, message: str):
        self.context = context
        super().__init__(message)


class ValidationError(EpubSplitterError):
    """Invalid partitioning request, rejected before any work is done."""

    error_type = "VALIDATION"


class LibraryError(EpubSplitterError):
    """Library file access failed."""

    error_type = "LIBRARY"
