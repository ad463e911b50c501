"""epub_splitter package."""
