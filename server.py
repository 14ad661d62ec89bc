"""Flask-Anwendung für das Wörterbuch.

Der Server öffnet beim Start das in ``config.ini`` (bzw. ``DICTIONARY_PATH``)
konfigurierte Wörterbuch, registriert die Routen aus :mod:`dictionary.api` und
protokolliert jede Anfrage mit Methode, Pfad, Statuscode und Dauer. Das Logging
geht auf stdout und optional in eine rotierende Logdatei.

Der Server muss als genau ein Prozess laufen: der Schreib-Thread serialisiert
Änderungen nur innerhalb seines Prozesses, mehrere Worker (``gunicorn -w N``)
würden sich gegenseitig Updates überschreiben. Mit Gunicorn also
``gunicorn -w 1 --threads 8 'server:create_app()'``. ``create_app`` verweigert
den Start, wenn ``WEB_CONCURRENCY`` mehr als einen Worker verlangt.
"""

import os
import sys
import time
import shutil
import logging
import configparser
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from flask import Flask, g, request

from dictionary.api import bp as dictionary_bp
from dictionary.store import Dictionary
from runtime_config import load_dictionary_settings, load_merged_config


# Custom StreamHandler to handle encoding errors
class SafeEncodingStreamHandler(logging.StreamHandler):
    def emit(self, record):
        """Schreibt Logzeilen robust unter Erhalt nicht-ASCII-Zeichen."""
        try:
            msg = self.format(record)
            stream = self.stream
            stream.write(msg.encode('utf-8', errors='replace').decode('utf-8', errors='ignore') + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating handler that tolerates Windows file locks (e.g. OneDrive/AV)."""

    def rotate(self, source: str, dest: str) -> None:
        try:
            super().rotate(source, dest)
            return
        except PermissionError as exc:
            if getattr(exc, "winerror", None) != 32:
                raise
        # Fallback: copy current log and truncate instead of renaming
        if os.path.exists(source):
            shutil.copy2(source, dest)
        with open(source, "w", encoding=self.encoding or "utf-8") as fh:
            fh.truncate(0)


formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

logger = logging.getLogger(__name__)  # Module-level logger
request_logger = logging.getLogger("dictionary.requests")


def configure_logging(config: configparser.ConfigParser) -> Optional[SafeRotatingFileHandler]:
    """Richtet Konsolen- und optionale Dateilogs gemäss ``[LOGGING]`` ein."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except Exception:
            pass

    level_name = config.get('LOGGING', 'level', fallback='INFO').upper()
    level = logging._nameToLevel.get(level_name, logging.INFO)
    root_logger.setLevel(level)

    safe_handler = SafeEncodingStreamHandler(sys.stdout)
    safe_handler.setFormatter(formatter)
    root_logger.addHandler(safe_handler)

    try:
        file_enabled = config.getint('LOGGING', 'file_enabled', fallback=0) == 1
    except ValueError:
        file_enabled = False
    file_path = config.get('LOGGING', 'file_path', fallback='')
    if not (file_enabled and file_path):
        return None

    try:
        max_bytes = max(0, config.getint('LOGGING', 'file_max_bytes', fallback=1048576))
    except ValueError:
        max_bytes = 1048576
    try:
        backup_count = max(0, config.getint('LOGGING', 'file_backup_count', fallback=5))
    except ValueError:
        backup_count = 5

    try:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = SafeRotatingFileHandler(
            file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8',
            delay=True,
        )
    except OSError as exc:
        logger.warning("Dateilogs konnten nicht initialisiert werden: %s", exc)
        return None
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    return file_handler


def _log_request(response: Any) -> Any:
    """Schreibt eine Logzeile pro Anfrage; Fehlerstatus als ERROR."""
    started = g.pop("_request_started", None)
    duration_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
    args = (
        request.method,
        request.path,
        dict(request.args),
        request.headers.get("User-Agent", ""),
        response.status_code,
        duration_ms,
    )
    message = "%s %s query=%s agent=%r -> %s (%.1f ms)"
    if response.status_code >= 400:
        request_logger.error("Request failed: " + message, *args)
    else:
        request_logger.info("Request handled: " + message, *args)
    return response


def _require_single_process() -> None:
    """Bricht ab, wenn die Umgebung mehrere Worker-Prozesse anfordert."""
    raw = os.getenv("WEB_CONCURRENCY", "").strip()
    if not raw:
        return
    try:
        workers = int(raw)
    except ValueError:
        raise RuntimeError(f"WEB_CONCURRENCY ist keine Zahl: {raw!r}") from None
    if workers > 1:
        raise RuntimeError(
            f"WEB_CONCURRENCY={workers}: das Wörterbuch unterstützt nur einen "
            "Worker-Prozess (Schreibzugriffe werden prozessintern serialisiert)."
        )


def create_app(store: Optional[Dictionary] = None) -> Flask:
    """
    Erstellt die Flask-Instanz.
    Ohne ``store`` wird das Wörterbuch aus der Konfiguration geöffnet.
    """
    _require_single_process()
    if store is None:
        settings = load_dictionary_settings()
        store = Dictionary(settings.path, strict=settings.strict)
        logger.info("Wörterbuch geöffnet: %s (strict=%s)", store.path, store.strict)

    app = Flask(__name__)
    # Umlaute unverändert ausliefern statt als \u-Escapes.
    app.json.ensure_ascii = False
    app.extensions["dictionary"] = store

    @app.before_request
    def _start_timer() -> None:
        g._request_started = time.perf_counter()

    app.after_request(_log_request)
    app.register_blueprint(dictionary_bp)
    return app


def _run_local() -> None:
    """Lokaler Debug-Server."""
    configure_logging(load_merged_config())
    port = int(os.environ.get("PORT", 8000))
    app = create_app()
    logger.warning("Lokal verfügbar auf http://127.0.0.1:%s/api/", port)
    try:
        # Reloader aus: er würde einen zweiten Prozess mit eigenem Writer starten.
        app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
    finally:
        app.extensions["dictionary"].close()


if __name__ == "__main__":
    _run_local()
