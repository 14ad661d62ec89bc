import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TextIO

from tabulate import tabulate

from . import storage
from .errors import DictionaryError
from .models import Entry
from .store import Dictionary
from runtime_config import load_dictionary_settings

Ask = Callable[[str], Optional[str]]
Say = Callable[[str], None]

MENU = (
    "Which action do you want to perform?",
    "1. Add a word",
    "2. Define a word",
    "3. Remove a word",
    "4. List all words",
    "5. Update a word",
    "6. Exit",
)


def render_table(words: Sequence[str], entries: Mapping[str, Entry]) -> str:
    """Render ``words`` as a two-column Word/Definition grid."""
    rows = [(word, entries[word].definition) for word in words]
    return tabulate(
        rows,
        headers=("Word", "Definition"),
        tablefmt="grid",
        disable_numparse=True,
    )


def _print_list(store: Dictionary, say: Say) -> None:
    words, entries = store.list()
    if not words:
        say("The dictionary is empty.")
        return
    say(render_table(words, entries))


def _open_store(args: argparse.Namespace) -> Dictionary:
    settings = load_dictionary_settings()
    path = args.file or settings.path
    strict = settings.strict if args.strict is None else args.strict
    return Dictionary(path, strict=strict)


def _resolve_path(args: argparse.Namespace) -> Path:
    return args.file or load_dictionary_settings().path


# --- one-shot commands ----------------------------------------------------

def add(args: argparse.Namespace, store: Dictionary) -> None:
    """Add a word (overwrites unless the store is strict)."""
    store.add(args.word, args.definition)
    print(f"Word '{args.word}' added successfully!")


def define(args: argparse.Namespace, store: Dictionary) -> None:
    """Print the definition of a word."""
    entry = store.get(args.word)
    print(f"Definition: {entry}")


def remove(args: argparse.Namespace, store: Dictionary) -> None:
    """Remove a word."""
    store.remove(args.word)
    print(f"Word '{args.word}' removed successfully!")


def update(args: argparse.Namespace, store: Dictionary) -> None:
    """Replace the definition of an existing word."""
    store.update(args.word, args.definition)
    print(f"Word '{args.word}' updated successfully!")


def list_words(args: argparse.Namespace, store: Dictionary) -> None:
    """Show all words as a table."""
    _print_list(store, print)


def shell(args: argparse.Namespace, store: Dictionary) -> None:
    """Run the interactive menu."""
    run_shell(store)


# --- maintenance commands -------------------------------------------------

def validate(args: argparse.Namespace) -> None:
    """Check that the dictionary file decodes."""
    path = _resolve_path(args)
    try:
        storage.JsonDocument(path).read()
    except DictionaryError as e:
        raise SystemExit(f"invalid dictionary: {e}")

    print(f"Dictionary '{path}' OK")


def stats(args: argparse.Namespace) -> None:
    """Show statistics about the dictionary."""
    entries = storage.JsonDocument(_resolve_path(args)).read()
    total_chars = sum(len(e.definition) for e in entries.values())

    print(f"Entries: {len(entries)}")
    print(f"Definition characters: {total_chars}")


def export(args: argparse.Namespace) -> None:
    """Export the dictionary as a plain text file."""
    entries = storage.JsonDocument(_resolve_path(args)).read()
    lines = [f"{word}: {entries[word].definition}" for word in sorted(entries)]

    path = args.output or Path("-")
    if path == Path("-"):
        for line in lines:
            print(line)
    else:
        Path(path).write_text("\n".join(lines), encoding="utf-8")


# --- interactive menu -----------------------------------------------------

def _shell_add(store: Dictionary, ask: Ask, say: Say) -> None:
    word = ask("Enter a word to add into the dictionary: ")
    if not word:
        say("No word entered.")
        return
    definition = ask(f"Enter a definition for '{word}': ")
    if definition is None:
        return
    store.add(word, definition)
    say(f"Word '{word}' added successfully!")


def _shell_define(store: Dictionary, ask: Ask, say: Say) -> None:
    word = ask("Enter the word to define: ")
    if not word:
        say("No word entered.")
        return
    say(f"Definition: {store.get(word)}")


def _shell_remove(store: Dictionary, ask: Ask, say: Say) -> None:
    word = ask("Enter a word to remove: ")
    if not word:
        say("No word entered.")
        return
    store.remove(word)
    say(f"Word '{word}' removed successfully!")


def _shell_list(store: Dictionary, ask: Ask, say: Say) -> None:
    _print_list(store, say)


def _shell_update(store: Dictionary, ask: Ask, say: Say) -> None:
    word = ask("Enter the word to update: ")
    if not word:
        say("No word entered.")
        return
    # fail early instead of asking for a definition we cannot store
    store.get(word)
    definition = ask(f"Enter the new definition for '{word}': ")
    if definition is None:
        return
    store.update(word, definition)
    say(f"Word '{word}' updated successfully!")


_SHELL_ACTIONS: Dict[str, Callable[[Dictionary, Ask, Say], None]] = {
    "1": _shell_add,
    "2": _shell_define,
    "3": _shell_remove,
    "4": _shell_list,
    "5": _shell_update,
}


def run_shell(
    store: Dictionary,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> None:
    """Menu loop reading choices from ``stdin`` until "6" or end of input."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def say(text: str = "") -> None:
        print(text, file=stdout)

    def ask(prompt: str) -> Optional[str]:
        stdout.write(prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            return None
        return line.rstrip("\r\n").strip()

    while True:
        for line in MENU:
            say(line)
        choice = ask("Enter the number corresponding to your choice: ")
        if choice is None or choice == "6":
            say("Exiting the program ...")
            return
        action = _SHELL_ACTIONS.get(choice)
        if action is None:
            say("Invalid command. Please try again.")
            continue
        try:
            action(store, ask, say)
        except DictionaryError as exc:
            logging.info("shell action %s failed: %s", choice, exc)
            say(f"Error: {exc}")


def main(argv: List[str] | None = None) -> None:
    if argv is None and len(sys.argv) == 1:
        argv = ["shell"]
    parser = argparse.ArgumentParser(description="Word/definition dictionary")
    parser.add_argument("--file", type=Path, default=None, help="dictionary JSON file")
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="fail when adding an existing word or removing a missing one"
        " (default: from config)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    parser.add_argument("--log-file", type=Path, default=None, help="write logs to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="add a word")
    p.add_argument("word")
    p.add_argument("definition")
    p.set_defaults(func=add, needs_store=True)

    p = sub.add_parser("get", aliases=["define"], help="show the definition of a word")
    p.add_argument("word")
    p.set_defaults(func=define, needs_store=True)

    p = sub.add_parser("remove", help="remove a word")
    p.add_argument("word")
    p.set_defaults(func=remove, needs_store=True)

    p = sub.add_parser("update", help="change the definition of a word")
    p.add_argument("word")
    p.add_argument("definition")
    p.set_defaults(func=update, needs_store=True)

    p = sub.add_parser("list", help="list all words")
    p.set_defaults(func=list_words, needs_store=True)

    p = sub.add_parser("shell", help="interactive menu")
    p.set_defaults(func=shell, needs_store=True)

    p = sub.add_parser("validate", help="check the dictionary file")
    p.set_defaults(func=validate, needs_store=False)

    p = sub.add_parser("stats", help="show statistics")
    p.set_defaults(func=stats, needs_store=False)

    p = sub.add_parser("export", help="export as plain text")
    p.add_argument(
        "--output",
        type=Path,
        default=None,
        help="output file (defaults to stdout)",
    )
    p.set_defaults(func=export, needs_store=False)

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", handlers=handlers)

    try:
        if not args.needs_store:
            args.func(args)
            return
        with _open_store(args) as store:
            args.func(args, store)
    except DictionaryError as e:
        raise SystemExit(f"error: {e}")


if __name__ == "__main__":
    main()
