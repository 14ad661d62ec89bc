"""Public entry point used by the CLI and the HTTP API.

Mutations go through :class:`~dictionary.serializer.MutationSerializer`;
reads go straight to the document. A ``get`` running concurrently with a
mutation may therefore see the state before or after it, but anything issued
after a mutation has returned sees its effect.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import NotFound
from .models import Entry
from .serializer import MutationSerializer
from .storage import JsonDocument

logger = logging.getLogger(__name__)


class Dictionary:
    """Word → definition store backed by the JSON file at ``path``."""

    def __init__(self, path: str | Path, *, strict: bool = False) -> None:
        self._document = JsonDocument(path)
        self._document.ensure_exists()
        self._writer = MutationSerializer(self._document, strict=strict)
        logger.debug("Opened dictionary %s (strict=%s)", self._document.path, strict)

    def __enter__(self) -> "Dictionary":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def path(self) -> Path:
        return self._document.path

    @property
    def strict(self) -> bool:
        return self._writer.strict

    @property
    def closed(self) -> bool:
        return self._writer.closed

    def add(self, word: str, definition: str) -> None:
        self._writer.add(word, definition)

    def remove(self, word: str) -> None:
        self._writer.remove(word)

    def update(self, word: str, definition: str) -> None:
        self._writer.update(word, definition)

    def get(self, word: str) -> Entry:
        entries = self._document.read()
        try:
            return entries[word]
        except KeyError:
            raise NotFound(word) from None

    def list(self) -> Tuple[List[str], Dict[str, Entry]]:
        """Return sorted words and their entries from a single read."""
        entries = self._document.read()
        return sorted(entries), entries

    def close(self, timeout: Optional[float] = None) -> None:
        """Refuse further mutations and wait for queued ones to finish.

        Reads keep working after the store is closed.
        """
        self._writer.close(timeout)
