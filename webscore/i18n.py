"""Internationalization (i18n) for report labels and analyzer messages."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Supported languages
SUPPORTED_LANGUAGES = ["en", "ja"]
DEFAULT_LANGUAGE = "en"

LOCALES_DIR = Path(__file__).parent / "locales"

# Cache for loaded translations (thread-safe via lock)
_translations: Dict[str, Dict[str, Any]] = {}
_translations_lock = threading.Lock()


def normalize_language(language: Optional[str]) -> str:
    """Map an arbitrary language code onto a supported one."""
    if language and language.lower() in SUPPORTED_LANGUAGES:
        return language.lower()
    return DEFAULT_LANGUAGE


def load_translations(language: str) -> Dict[str, Any]:
    """Load translations for a specific language."""
    language = normalize_language(language)
    with _translations_lock:
        if language in _translations:
            return _translations[language]

        locale_path = LOCALES_DIR / f"{language}.json"
        if locale_path.exists():
            with open(locale_path, "r", encoding="utf-8") as f:
                _translations[language] = json.load(f)
        else:
            logger.warning(f"Locale file missing: {locale_path}")
            _translations[language] = {}

        return _translations[language]


def _lookup(translations: Dict[str, Any], key: str) -> Optional[Any]:
    value: Any = translations
    for part in key.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return None
    return value


def t(key: str, language: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Translate a key to the specified language.

    Falls back to English, then to the key itself.

    Args:
        key: Translation key in dot notation (e.g., "report.scores.seo")
        language: Target language code
        **kwargs: Values for placeholder substitution

    Returns:
        Translated string or the key if not found
    """
    value = _lookup(load_translations(language), key)
    if value is None and normalize_language(language) != DEFAULT_LANGUAGE:
        value = _lookup(load_translations(DEFAULT_LANGUAGE), key)
    if not isinstance(value, str):
        return key

    try:
        return value.format(**kwargs)
    except (KeyError, ValueError, IndexError):
        return value


class Translator:
    """Translator bound to one language."""

    def __init__(self, language: Optional[str] = None):
        self.language = normalize_language(language)

    def __call__(self, key: str, **kwargs) -> str:
        return t(key, self.language, **kwargs)

    def get(self, key: str, default: str = "", **kwargs) -> str:
        """Get translation, returning ``default`` when the key is unknown."""
        result = t(key, self.language, **kwargs)
        return result if result != key else default


def get_translator(language: Optional[str] = None) -> Translator:
    return Translator(language)
