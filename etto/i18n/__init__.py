"""UI/status message tables. English is the base table; other languages may be partial."""
from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_LANGUAGE = "en"

# code -> (display name, module holding STRINGS)
LANGUAGES: Dict[str, tuple] = {
    "en": ("English", "etto.i18n.en"),
    "de": ("Deutsch", "etto.i18n.de"),
}

SETTINGS_FILE = "app_settings.json"

_current_lang: str = DEFAULT_LANGUAGE
_tables: Dict[str, Dict[str, str]] = {}
_settings_path: Optional[Path] = None


def _table(lang: str) -> Dict[str, str]:
    if lang not in _tables:
        entry = LANGUAGES.get(lang)
        _tables[lang] = dict(importlib.import_module(entry[1]).STRINGS) if entry else {}
    return _tables[lang]


def _read_settings() -> Dict[str, Any]:
    if _settings_path is None or not _settings_path.exists():
        return {}
    try:
        data = json.loads(_settings_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def init(config_dir: Path) -> None:
    """Point the module at the settings dir and restore the saved language."""
    global _settings_path, _current_lang
    _settings_path = Path(config_dir) / SETTINGS_FILE
    saved = _read_settings().get("language")
    if saved in LANGUAGES:
        _current_lang = saved


def set_language(lang: str) -> None:
    global _current_lang
    if lang not in LANGUAGES:
        return
    _current_lang = lang
    if _settings_path is None:
        return
    data = _read_settings()
    data["language"] = lang
    _settings_path.parent.mkdir(parents=True, exist_ok=True)
    _settings_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def get_language() -> str:
    return _current_lang


def available_languages() -> Dict[str, str]:
    return {code: entry[0] for code, entry in LANGUAGES.items()}


def missing_keys(lang: str) -> List[str]:
    """Keys of the English table that *lang* does not translate."""
    own = _table(lang)
    return sorted(k for k in _table(DEFAULT_LANGUAGE) if k not in own)


def tr(key: str, **kwargs: Any) -> str:
    for lang in (_current_lang, DEFAULT_LANGUAGE):
        text = _table(lang).get(key)
        if text is not None:
            break
    else:
        return key
    if not kwargs:
        return text
    try:
        return text.format(**kwargs)
    except (KeyError, IndexError):
        return text
