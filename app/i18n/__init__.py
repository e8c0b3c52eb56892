import json
import logging
import os
from typing import Dict, Any, Optional
from app.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "locales")


class I18n:
    """Message catalogue keyed by dotted names (e.g. "error.otp_expired")"""

    def __init__(self, locales_dir: str = LOCALES_DIR, default_locale: Optional[str] = None):
        self.locales: Dict[str, Dict[str, Any]] = {}
        self.default_locale = default_locale or config.i18n.default_locale
        self.load_locales(locales_dir)

    def load_locales(self, locales_dir: str):
        if not os.path.exists(locales_dir):
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for filename in sorted(os.listdir(locales_dir)):
            if not filename.endswith(".json"):
                continue
            locale_code = filename[:-5]
            try:
                with open(os.path.join(locales_dir, filename), "r", encoding="utf-8") as f:
                    self.locales[locale_code] = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading locale {locale_code}: {e}")

    def _lookup(self, key: str, locale: str) -> Optional[str]:
        value: Any = self.locales.get(locale, {})
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value if isinstance(value, str) else None

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Translated string; falls back to the default locale, then English, then the key"""
        for candidate in (locale, self.default_locale, "en"):
            if not candidate:
                continue
            value = self._lookup(key, candidate)
            if value is not None:
                try:
                    return value.format(**kwargs)
                except (KeyError, IndexError):
                    return value
        return key

i18n = I18n()
