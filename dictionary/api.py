"""Flask-Blueprint mit den Wörterbuch-Endpunkten.

Die Routen übersetzen HTTP-Anfragen 1:1 in Aufrufe von
:class:`~dictionary.store.Dictionary`. Die Store-Instanz legt ``server.py``
beim Erstellen der App unter ``app.extensions["dictionary"]`` ab. Fehler aus
dem Store werden zentral in HTTP-Statuscodes übersetzt.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request

from .errors import (
    AlreadyExists,
    CorruptDocument,
    DictionaryError,
    DocumentIOError,
    NotFound,
    StoreClosed,
)
from .store import Dictionary

logger = logging.getLogger(__name__)

bp = Blueprint("dictionary", __name__, url_prefix="/api")

_STATUS_BY_ERROR = (
    (NotFound, 404),
    (AlreadyExists, 409),
    (StoreClosed, 503),
    (CorruptDocument, 500),
    (DocumentIOError, 500),
)


class BadPayload(ValueError):
    """Request body is missing or has the wrong shape."""


def _store() -> Dictionary:
    return current_app.extensions["dictionary"]


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadPayload("Invalid request payload")
    return data


def _text_field(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str):
        raise BadPayload(f"Missing '{name}' in request payload")
    return value


@bp.errorhandler(BadPayload)
def _bad_payload(exc: BadPayload) -> Tuple[Any, int]:
    return jsonify({"error": str(exc)}), 400


@bp.errorhandler(DictionaryError)
def _dictionary_error(exc: DictionaryError) -> Tuple[Any, int]:
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break
    if status >= 500:
        logger.error("Wörterbuchfehler: %s", exc)
    return jsonify({"error": str(exc)}), status


@bp.route("/", methods=["GET"])
def root() -> Any:
    """Einfacher Bereitschaftsendpunkt."""
    return jsonify({"status": "ok"})


@bp.route("/word", methods=["POST"])
def add_word() -> Any:
    """Legt ein Wort an (bzw. überschreibt es, falls der Store nicht strikt ist)."""
    data = _payload()
    word = _text_field(data, "word").strip()
    definition = _text_field(data, "definition")
    if not word:
        raise BadPayload("Missing 'word' in request payload")
    _store().add(word, definition)
    return jsonify({"status": "added", "word": word}), 201


@bp.route("/word/<word>", methods=["GET"])
def get_word(word: str) -> Any:
    """Liefert die Definition eines Worts."""
    entry = _store().get(word)
    return jsonify({"word": word, "definition": entry.definition})


@bp.route("/word/<word>", methods=["PUT"])
def update_word(word: str) -> Any:
    """Ersetzt die Definition eines vorhandenen Worts."""
    definition = _text_field(_payload(), "definition")
    _store().update(word, definition)
    return jsonify({"status": "updated", "word": word})


@bp.route("/word/<word>", methods=["DELETE"])
def remove_word(word: str) -> Any:
    """Entfernt ein Wort."""
    _store().remove(word)
    return jsonify({"status": "removed", "word": word})


@bp.route("/words", methods=["GET"])
def list_words() -> Any:
    """Listet alle Wörter samt Definition."""
    words, entries = _store().list()
    return jsonify(
        {"words": [{"word": w, "definition": entries[w].definition} for w in words]}
    )
