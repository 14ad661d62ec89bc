"""Storage helpers for the dictionary document.

The whole dictionary lives in one JSON object mapping each word to
``{"definition": ...}``. Decoding tolerates a UTF-8 BOM and BOM-marked
UTF-16 as written by editors on Windows. Undecodable bytes and anything that
is not an object of the expected shape are reported as
:class:`~dictionary.errors.CorruptDocument`.

Writes replace the complete file in place. There is no temp-file-then-rename
step, so a crash during :meth:`JsonDocument.write` may leave a truncated file
behind.
"""

from __future__ import annotations

import codecs
import json
import logging
from pathlib import Path
from typing import Dict, Mapping

from .errors import CorruptDocument, DocumentIOError
from .models import Entry

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = b"{}"


_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def _decode_text(raw: bytes) -> str:
    # UTF-16 only with a BOM; bare UTF-16 guessing turns arbitrary bytes into text.
    enc = "utf-16" if raw.startswith(_UTF16_BOMS) else "utf-8-sig"
    try:
        return raw.decode(enc)
    except UnicodeDecodeError as exc:
        raise CorruptDocument(f"document is not valid {enc.upper()} text: {exc}") from exc


def decode(raw: bytes) -> Dict[str, Entry]:
    """Return the entries stored in ``raw`` JSON bytes.

    Bytes that do not decode are rejected instead of being patched with
    replacement characters, which a later write would make permanent.
    """
    text = _decode_text(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptDocument(f"document is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise CorruptDocument(
            f"document must be a JSON object, got {type(data).__name__}"
        )

    entries: Dict[str, Entry] = {}
    for word, value in data.items():
        if not isinstance(value, dict):
            raise CorruptDocument(f"entry for '{word}' must be an object")
        definition = value.get("definition")
        if not isinstance(definition, str):
            raise CorruptDocument(f"entry for '{word}' has no string definition")
        entries[word] = Entry(definition)
    return entries


def encode(entries: Mapping[str, Entry]) -> bytes:
    """Serialise ``entries`` as UTF-8 JSON."""
    data = {word: entry.to_dict() for word, entry in entries.items()}
    return json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")


class JsonDocument:
    """The dictionary file at ``path``.

    Instances hold no entries themselves; every :meth:`read` goes to disk so
    callers always see the latest written state.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonDocument({str(self.path)!r})"

    def ensure_exists(self) -> bool:
        """Create an empty document if none exists. Returns ``True`` if created."""
        if self.path.exists():
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(EMPTY_DOCUMENT)
        except OSError as exc:
            raise DocumentIOError(f"cannot create {self.path}: {exc}") from exc
        logger.info("Created empty dictionary document at %s", self.path)
        return True

    def read(self) -> Dict[str, Entry]:
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            raise DocumentIOError(f"cannot read {self.path}: {exc}") from exc
        return decode(raw)

    def write(self, entries: Mapping[str, Entry]) -> None:
        data = encode(entries)
        try:
            self.path.write_bytes(data)
        except OSError as exc:
            raise DocumentIOError(f"cannot write {self.path}: {exc}") from exc
        logger.debug("Wrote %d entries to %s", len(entries), self.path)
