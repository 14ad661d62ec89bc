"""Exception hierarchy shared by the storage layer and its adapters."""

from __future__ import annotations


class DictionaryError(Exception):
    """Base class for all failures reported by the dictionary store."""


class NotFound(DictionaryError):
    """The requested word is not present in the document."""

    def __init__(self, word: str) -> None:
        super().__init__(f"word '{word}' is not in the dictionary")
        self.word = word


class AlreadyExists(DictionaryError):
    """Strict mode refused to overwrite an existing word."""

    def __init__(self, word: str) -> None:
        super().__init__(f"word '{word}' is already in the dictionary")
        self.word = word


class CorruptDocument(DictionaryError):
    """The backing file is not a JSON object of the expected shape."""


class DocumentIOError(DictionaryError):
    """The backing file could not be opened, read or written.

    The original ``OSError`` is available as ``__cause__``.
    """


class StoreClosed(DictionaryError):
    """A mutation was submitted after the store was shut down."""
