import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from dictionary.errors import (
    AlreadyExists,
    CorruptDocument,
    DocumentIOError,
    NotFound,
    StoreClosed,
)
from dictionary.models import Entry
from dictionary.serializer import MutationSerializer
from dictionary.storage import JsonDocument


@pytest.fixture
def document(tmp_path):
    doc = JsonDocument(tmp_path / "dictionary.json")
    doc.ensure_exists()
    return doc


@pytest.fixture
def serializer(document):
    s = MutationSerializer(document)
    yield s
    s.close()


def test_concurrent_adds_lose_nothing(document, serializer):
    words = [f"word{i}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda w: serializer.add(w, f"definition of {w}"), words))
    entries = document.read()
    assert set(entries) == set(words)
    assert entries["word42"] == Entry("definition of word42")


def test_concurrent_mixed_mutations(document, serializer):
    for i in range(50):
        serializer.add(f"w{i}", "old")

    def work(i):
        if i % 2:
            serializer.remove(f"w{i}")
        else:
            serializer.update(f"w{i}", "new")

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(50)))
    entries = document.read()
    assert sorted(entries) == sorted(f"w{i}" for i in range(0, 50, 2))
    assert all(e == Entry("new") for e in entries.values())


def test_sequential_updates_keep_last(document, serializer):
    serializer.add("x", "def1")
    serializer.update("x", "def2")
    serializer.update("x", "def3")
    assert document.read()["x"] == Entry("def3")


def test_submit_returns_future(document, serializer):
    futures = [serializer.submit("add", "x", str(i)) for i in range(10)]
    for f in futures:
        assert f.result() is None
    assert document.read()["x"] == Entry("9")


def test_submit_validates_arguments(serializer):
    with pytest.raises(ValueError):
        serializer.submit("rename", "x", "y")
    with pytest.raises(ValueError):
        serializer.submit("add", "x")


def test_lenient_policy(document, serializer):
    serializer.add("x", "def1")
    serializer.add("x", "def2")
    assert document.read()["x"] == Entry("def2")
    serializer.remove("x")
    serializer.remove("x")
    serializer.remove("x")
    assert document.read() == {}


def test_lenient_remove_of_missing_word_does_not_write(document, serializer, monkeypatch):
    calls = []
    monkeypatch.setattr(document, "write", lambda entries: calls.append(entries))
    serializer.remove("missing")
    assert calls == []


def test_strict_policy(document):
    s = MutationSerializer(document, strict=True)
    try:
        s.add("x", "def1")
        with pytest.raises(AlreadyExists):
            s.add("x", "def2")
        assert document.read()["x"] == Entry("def1")
        s.remove("x")
        for _ in range(3):
            with pytest.raises(NotFound):
                s.remove("x")
    finally:
        s.close()


def test_update_missing_word_fails_in_both_modes(document, serializer):
    with pytest.raises(NotFound):
        serializer.update("ghost", "boo")
    strict = MutationSerializer(document, strict=True)
    try:
        with pytest.raises(NotFound):
            strict.update("ghost", "boo")
    finally:
        strict.close()
    assert document.read() == {}


def test_corrupt_document_is_left_untouched(document, serializer):
    document.path.write_bytes(b"{broken")
    with pytest.raises(CorruptDocument):
        serializer.add("x", "def")
    assert document.path.read_bytes() == b"{broken"


def test_write_failure_is_reported_and_store_recovers(document, serializer, monkeypatch):
    original_write = document.write
    failures = [DocumentIOError("disk full")]

    def flaky_write(entries):
        if failures:
            raise failures.pop()
        original_write(entries)

    monkeypatch.setattr(document, "write", flaky_write)
    with pytest.raises(DocumentIOError):
        serializer.add("x", "lost")
    assert document.read() == {}

    serializer.add("y", "kept")
    assert document.read() == {"y": Entry("kept")}


def test_unexpected_error_reaches_caller(document, serializer, monkeypatch):
    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(document, "read", boom)
    with pytest.raises(RuntimeError):
        serializer.add("x", "def")
    monkeypatch.undo()
    serializer.add("x", "def")
    assert document.read() == {"x": Entry("def")}


def test_close_drains_queued_mutations(document):
    s = MutationSerializer(document)
    release = threading.Event()
    entered = threading.Event()
    original_read = document.read

    def blocking_read():
        entered.set()
        release.wait(5)
        return original_read()

    document.read = blocking_read  # type: ignore[method-assign]
    futures = [s.submit("add", f"w{i}", "d") for i in range(5)]
    assert entered.wait(5)

    closer = threading.Thread(target=s.close)
    closer.start()
    for _ in range(500):
        if s.closed:
            break
        threading.Event().wait(0.01)
    assert s.closed
    with pytest.raises(StoreClosed):
        s.submit("add", "late", "d")

    release.set()
    closer.join(5)
    assert not closer.is_alive()
    for f in futures:
        assert f.result(timeout=5) is None
    del document.read
    assert sorted(document.read()) == [f"w{i}" for i in range(5)]


def test_close_is_idempotent(document):
    s = MutationSerializer(document)
    s.close()
    s.close()
    with pytest.raises(StoreClosed):
        s.add("x", "d")
