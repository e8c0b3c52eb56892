import functools
from typing import Callable, Optional
from fastapi import Request
from app.config.settings import config
from app.i18n import i18n

def get_locale(accept_language: Optional[str] = None) -> str:
    """Extract locale from Accept-Language header"""
    if not accept_language:
        return config.i18n.default_locale

    languages = []
    for lang in accept_language.split(","):
        parts = lang.strip().split(";")
        locale = parts[0].split("-")[0].lower()
        languages.append(locale)

    for locale in languages:
        if locale in config.i18n.supported_locales:
            return locale

    return config.i18n.default_locale

def translator(request: Request) -> Callable[..., str]:
    """i18n.get bound to the request's locale"""
    locale = get_locale(request.headers.get("accept-language"))
    return functools.partial(i18n.get, locale=locale)
