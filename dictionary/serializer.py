"""Single-writer coordinator for dictionary mutations.

All add/remove/update requests are funnelled through one background thread.
The thread reads the current document, applies exactly one change and writes
the result back before it looks at the next request, so two mutations never
interleave their read and write steps and no update is lost. Each request
carries a :class:`concurrent.futures.Future` through which the worker reports
success or the exception that stopped it.

Shutdown: :meth:`MutationSerializer.close` refuses new requests with
:class:`~dictionary.errors.StoreClosed`, lets everything already queued run to
completion and then joins the worker.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import AlreadyExists, DictionaryError, NotFound, StoreClosed
from .models import Entry
from .storage import JsonDocument

logger = logging.getLogger(__name__)

ADD = "add"
REMOVE = "remove"
UPDATE = "update"
MUTATION_KINDS = (ADD, REMOVE, UPDATE)


@dataclass
class Mutation:
    """One queued change together with its reply channel."""

    kind: str
    word: str
    definition: Optional[str] = None
    future: "Future[None]" = field(default_factory=Future)


class MutationSerializer:
    """Applies mutations to ``document`` one at a time in submission order.

    ``strict`` selects the policy for both :meth:`add` and :meth:`remove`:
    in strict mode adding an existing word raises ``AlreadyExists`` and
    removing a missing word raises ``NotFound``; otherwise add overwrites and
    remove of a missing word does nothing. :meth:`update` always requires the
    word to exist.
    """

    def __init__(
        self,
        document: JsonDocument,
        *,
        strict: bool = False,
        name: str = "dictionary-writer",
    ) -> None:
        self._document = document
        self.strict = strict
        self._queue: "queue.Queue[Optional[Mutation]]" = queue.Queue()
        # Guards ``_closed`` so nothing is enqueued behind the stop sentinel.
        self._state_lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(
        self, kind: str, word: str, definition: Optional[str] = None
    ) -> "Future[None]":
        """Queue a mutation and return the future that reports its outcome."""
        if kind not in MUTATION_KINDS:
            raise ValueError(f"unknown mutation kind: {kind!r}")
        if kind != REMOVE and definition is None:
            raise ValueError(f"{kind} requires a definition")
        mutation = Mutation(kind, word, definition)
        with self._state_lock:
            if self._closed:
                raise StoreClosed("dictionary store is closed")
            self._queue.put(mutation)
        return mutation.future

    def add(self, word: str, definition: str) -> None:
        self.submit(ADD, word, definition).result()

    def remove(self, word: str) -> None:
        self.submit(REMOVE, word).result()

    def update(self, word: str, definition: str) -> None:
        self.submit(UPDATE, word, definition).result()

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting mutations and wait until the queue is drained."""
        with self._state_lock:
            if not self._closed:
                self._closed = True
                self._queue.put(None)
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            mutation = self._queue.get()
            try:
                if mutation is None:
                    logger.debug("Mutation worker for %s stopped", self._document)
                    return
                self._process(mutation)
            finally:
                self._queue.task_done()

    def _process(self, mutation: Mutation) -> None:
        if not mutation.future.set_running_or_notify_cancel():
            return
        try:
            entries = self._document.read()
            if self._apply(entries, mutation):
                self._document.write(entries)
        except DictionaryError as exc:
            logger.warning(
                "%s '%s' failed: %s", mutation.kind, mutation.word, exc
            )
            mutation.future.set_exception(exc)
        except Exception as exc:
            logger.exception("%s '%s' failed unexpectedly", mutation.kind, mutation.word)
            mutation.future.set_exception(exc)
        else:
            logger.info("%s '%s' applied", mutation.kind, mutation.word)
            mutation.future.set_result(None)

    def _apply(self, entries: Dict[str, Entry], mutation: Mutation) -> bool:
        """Apply ``mutation`` to ``entries``; return ``False`` if nothing changed."""
        word = mutation.word
        if mutation.kind == ADD:
            if self.strict and word in entries:
                raise AlreadyExists(word)
            entries[word] = Entry(mutation.definition or "")
            return True
        if mutation.kind == UPDATE:
            if word not in entries:
                raise NotFound(word)
            entries[word] = Entry(mutation.definition or "")
            return True
        if word not in entries:
            if self.strict:
                raise NotFound(word)
            return False
        del entries[word]
        return True
