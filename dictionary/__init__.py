"""Persistent word/definition dictionary backed by a single JSON file."""

# Package exports should be side-effect free.

from .errors import (
    AlreadyExists,
    CorruptDocument,
    DictionaryError,
    DocumentIOError,
    NotFound,
    StoreClosed,
)
from .models import Entry
from .store import Dictionary

__all__ = [
    "AlreadyExists",
    "CorruptDocument",
    "Dictionary",
    "DictionaryError",
    "DocumentIOError",
    "Entry",
    "NotFound",
    "StoreClosed",
]
