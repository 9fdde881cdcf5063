"""
Translation tables for the public site (en, ar, fr).
Missing keys fall back to English, then to the caller's default.
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'locales')
SUPPORTED_LANGUAGES = ('en', 'ar', 'fr')
FALLBACK_LANGUAGE = 'en'
RTL_LANGUAGES = {'ar'}

_tables = {}


def load_table(lang):
    if lang not in _tables:
        path = os.path.join(LOCALES_DIR, f'{lang}.json')
        try:
            with open(path, encoding='utf-8') as f:
                _tables[lang] = json.load(f)
        except (OSError, ValueError) as e:
            logger.error('Could not load translations for %s: %s', lang, e)
            _tables[lang] = {}
    return _tables[lang]


def lookup(table, key):
    node = table
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def translate(key, lang=FALLBACK_LANGUAGE, default=None):
    for candidate in (lang, FALLBACK_LANGUAGE):
        if candidate in SUPPORTED_LANGUAGES:
            value = lookup(load_table(candidate), key)
            if value is not None:
                return value
    return default if default is not None else key


def text_direction(lang):
    return 'rtl' if lang in RTL_LANGUAGES else 'ltr'
