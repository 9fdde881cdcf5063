"""
Static data store.
Reads the JSON snapshots written by fetch_static_data.py so the public
site can render without a live Content API. Every loader degrades to
None / [] instead of raising.
"""

import json
import logging
import os

from pydantic import ValidationError
from werkzeug.utils import secure_filename

from schemas import GalleryCategory, RoomCategory

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_STATIC_DATA_DIR = os.path.join(BASE_DIR, 'static-data')

HOME_CONTENT = 'home-content.json'
ABOUT_CONTENT = 'about-content.json'
ROOM_CATEGORIES = 'room-categories.json'
GALLERY_CATEGORIES = 'gallery-categories.json'


def room_category_file(slug):
    return f'room-category-{slug}.json'


def gallery_category_file(slug):
    return f'gallery-category-{slug}.json'


class StaticDataStore:
    def __init__(self, directory=DEFAULT_STATIC_DATA_DIR):
        self.directory = directory

    def path(self, filename):
        return os.path.join(self.directory, filename)

    def load(self, filename):
        """Return the parsed document, or None when it cannot be read."""
        if not filename or secure_filename(filename) != filename:
            logger.warning('Refusing to load static data with unsafe name %r', filename)
            return None
        try:
            with open(self.path(filename), encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            logger.warning('Static data %s not found in %s', filename, self.directory)
        except (OSError, ValueError) as e:
            logger.warning('Error loading static data %s: %s', filename, e)
        return None

    def _data(self, filename, key):
        doc = self.load(filename)
        if not isinstance(doc, dict) or not isinstance(doc.get('data'), dict):
            return None
        return doc['data'].get(key)

    def get_home_content(self):
        return self._data(HOME_CONTENT, 'content') or None

    def get_about_content(self):
        return self._data(ABOUT_CONTENT, 'content') or None

    def get_room_categories(self):
        return _parse_all(RoomCategory, self._data(ROOM_CATEGORIES, 'categories'))

    def get_room_category(self, slug):
        return _parse_one(RoomCategory, self._data(room_category_file(slug), 'category'))

    def get_gallery_categories(self):
        return _parse_all(GalleryCategory, self._data(GALLERY_CATEGORIES, 'categories'))

    def get_gallery_category(self, slug):
        return _parse_one(GalleryCategory, self._data(gallery_category_file(slug), 'category'))


def _parse_one(model, raw):
    if not isinstance(raw, dict):
        return None
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning('Skipping malformed %s: %s', model.__name__, e)
        return None


def _parse_all(model, raw):
    if not isinstance(raw, list):
        return []
    parsed = (_parse_one(model, item) for item in raw)
    return [item for item in parsed if item is not None]


# ─── Content resolution ──────────────────────────────────────────
def find_section(content, section_id):
    """Section dict with the given sectionId, or {} if the page lacks it."""
    if not isinstance(content, dict):
        return {}
    for section in content.get('sections') or []:
        if isinstance(section, dict) and section.get('sectionId') == section_id:
            return section
    return {}


def resolve(static_value, translated_default, is_default_locale):
    """Two-tier content rule.

    Static data is only fully populated in the default language, so other
    languages always use the translation table.
    """
    if not is_default_locale:
        return translated_default
    return static_value or translated_default
