import logging
import os
from pathlib import Path

import yaml
from flask import request, g, current_app

logger = logging.getLogger(__name__)

LANGUAGES = ['ru', 'en']
DEFAULT_LANGUAGE = os.environ.get('DEFAULT_LANGUAGE', 'ru')
TRANSLATIONS_DIR = Path(__file__).resolve().parent.parent / 'translations'

# Cache for translations
_translations_cache = {}
_translation_file_times = {}

def load_translations():
    """Load translations from YAML files with hot-reloading in debug mode"""
    global _translations_cache

    # In production, use cached translations
    if not current_app.debug and _translations_cache:
        return _translations_cache

    # Check if any translation files have been modified
    reload_needed = False
    for lang in LANGUAGES:
        file_path = TRANSLATIONS_DIR / f'{lang}.yaml'
        try:
            current_mtime = file_path.stat().st_mtime
            if _translation_file_times.get(file_path) != current_mtime:
                _translation_file_times[file_path] = current_mtime
                reload_needed = True
        except FileNotFoundError:
            continue

    if reload_needed or not _translations_cache:
        logger.info("[Translations] Reloading language files...")
        translations = {}
        for lang in LANGUAGES:
            try:
                with open(TRANSLATIONS_DIR / f'{lang}.yaml', 'r', encoding='utf-8') as f:
                    translations[lang] = yaml.safe_load(f) or {}
            except FileNotFoundError:
                logger.warning("[Translations] File translations/%s.yaml not found", lang)
                translations[lang] = {}
        _translations_cache = translations

    return _translations_cache

def get_language():
    """Detect language from Accept-Language header"""
    if hasattr(g, 'language'):
        return g.language

    accept_lang = request.headers.get('Accept-Language', '').lower()

    # Russian-speaking audiences get Russian, explicit English gets English
    russian_codes = ['ru', 'uk', 'be', 'kk']
    if any(code in accept_lang for code in russian_codes):
        g.language = 'ru'
    elif 'en' in accept_lang:
        g.language = 'en'
    else:
        g.language = DEFAULT_LANGUAGE if DEFAULT_LANGUAGE in LANGUAGES else 'ru'

    return g.language

def t(key, *args, **kwargs):
    """Translate key to current language"""
    lang = get_language()
    translations = load_translations()
    translation = translations.get(lang, {}).get(key, translations.get('en', {}).get(key, key))

    if args or kwargs:
        try:
            if kwargs:
                return translation.format(**kwargs)
            return translation.format(*args)
        except (IndexError, KeyError, ValueError) as e:
            logger.warning("[Translations] Formatting error for key '%s': %s", key, e)
            return translation

    return translation
