"""Message catalogs."""

import json
import logging
import os
from functools import lru_cache
from importlib import resources
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
LANGUAGES = ("en", "ja")
LOCALE_VARIABLES = ("LC_ALL", "LC_MESSAGES", "LANG")

# Anything called as msg(message_id, **data)
Messages = Callable[..., str]


@lru_cache(maxsize=None)
def load_catalog(lang: str) -> dict[str, str]:
    """Load the message catalog shipped for a language."""
    text = resources.files("twig").joinpath("locales", f"{lang}.json").read_text(encoding="utf-8")
    return json.loads(text)


def resolve_language(flag: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> str:
    """Pick a catalog from an explicit flag or the locale environment.

    ``ja_JP.UTF-8`` selects ``ja``. Anything without a catalog falls back to
    English.
    """
    if env is None:
        env = os.environ

    value = flag
    if not value:
        value = next((env[name] for name in LOCALE_VARIABLES if env.get(name)), "")

    lang = value[:2].lower()
    if lang in LANGUAGES:
        return lang
    return DEFAULT_LANGUAGE


class Localizer:
    """Look up messages by id for one language."""

    def __init__(self, lang: str = DEFAULT_LANGUAGE) -> None:
        self.lang = lang if lang in LANGUAGES else DEFAULT_LANGUAGE
        self.messages = load_catalog(self.lang)
        self.fallback = load_catalog(DEFAULT_LANGUAGE)

    def __call__(self, message_id: str, **data: object) -> str:
        template = self.messages.get(message_id) or self.fallback.get(message_id)
        if template is None:
            logger.debug("No message for %s", message_id)
            return message_id
        return template.format(**data)
