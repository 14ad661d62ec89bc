"""Dataclasses representing dictionary structures."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Entry:
    """Single dictionary entry.

    Entries are immutable; an update stores a new ``Entry`` under the same
    word instead of changing the existing one.

    Attributes:
        definition: Free-text definition of the word.
    """

    definition: str

    def __str__(self) -> str:
        return self.definition

    def to_dict(self) -> Dict[str, Any]:
        return {"definition": self.definition}
