"""Helper-Funktionen, um statische und dynamische Konfiguration zu trennen.

Die Anwendung liest ``config.ini`` als Basis. Lokale Abweichungen (z.B. ein
anderer Speicherort für das Wörterbuch auf einem Testrechner) gehören in
``config.runtime.ini``; diese Datei wird abschnittsweise darübergelegt. Zum
Schluss haben Umgebungsvariablen (auch aus ``.env``) Vorrang.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

CONFIG_MAIN_PATH = Path(__file__).resolve().parent / "config.ini"
CONFIG_RUNTIME_PATH = Path(__file__).resolve().parent / "config.runtime.ini"

DEFAULT_DICTIONARY_PATH = "data/dictionary.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def load_base_config(path: Path = CONFIG_MAIN_PATH) -> configparser.ConfigParser:
    """Lädt ausschließlich die statische Grundkonfiguration."""
    cfg = configparser.ConfigParser()
    cfg.read(path, encoding="utf-8-sig")
    return cfg


def load_runtime_config(path: Path = CONFIG_RUNTIME_PATH) -> configparser.ConfigParser:
    """Lädt nur die lokale Laufzeitkonfiguration."""
    cfg = configparser.ConfigParser()
    if path.exists():
        cfg.read(path, encoding="utf-8-sig")
    return cfg


def load_merged_config(
    main_path: Path = CONFIG_MAIN_PATH,
    runtime_path: Path = CONFIG_RUNTIME_PATH,
) -> configparser.ConfigParser:
    """Kombiniert statische und lokale Konfiguration."""
    base = load_base_config(main_path)
    runtime = load_runtime_config(runtime_path)
    for section in runtime.sections():
        if not base.has_section(section):
            base.add_section(section)
        for key, value in runtime.items(section):
            base.set(section, key, value)
    return base


@dataclass
class DictionarySettings:
    """Where the dictionary lives and which mutation policy applies."""

    path: Path
    strict: bool = False


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in _TRUE_VALUES


def load_dictionary_settings(
    cfg: Optional[configparser.ConfigParser] = None,
) -> DictionarySettings:
    """Liest ``[DICTIONARY]`` und wendet ``DICTIONARY_PATH``/``DICTIONARY_STRICT`` an."""
    load_dotenv()
    if cfg is None:
        cfg = load_merged_config()

    path = cfg.get("DICTIONARY", "path", fallback=DEFAULT_DICTIONARY_PATH)
    try:
        strict = cfg.getboolean("DICTIONARY", "strict", fallback=False)
    except ValueError:
        strict = False

    env_path = os.getenv("DICTIONARY_PATH")
    if env_path and env_path.strip():
        path = env_path.strip()
    env_strict = _env_flag("DICTIONARY_STRICT")
    if env_strict is not None:
        strict = env_strict

    return DictionarySettings(path=Path(path), strict=strict)
