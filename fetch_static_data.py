#!/usr/bin/env python3
"""
Fetch static data from the Content API.

Mirrors the API responses the public site needs into JSON files so the
site can be served without a running backend. Each run overwrites the
previous files. A failing resource is logged and skipped; the others
are still written.

Usage:
    python fetch_static_data.py
"""

import json
import logging
import os
import sys
from collections import namedtuple

import requests
from dotenv import load_dotenv
from werkzeug.utils import secure_filename

from api import DEFAULT_API_URL, DEFAULT_TIMEOUT
from static_data import (
    ABOUT_CONTENT, DEFAULT_STATIC_DATA_DIR, GALLERY_CATEGORIES, HOME_CONTENT, ROOM_CATEGORIES,
    gallery_category_file, room_category_file,
)

logger = logging.getLogger(__name__)

load_dotenv()

API_URL = os.environ.get('API_URL', DEFAULT_API_URL)
OUTPUT_DIR = os.environ.get('STATIC_DATA_DIR', DEFAULT_STATIC_DATA_DIR)

RESOURCES = [
    ('/api/content/home', HOME_CONTENT),
    ('/api/content/about', ABOUT_CONTENT),
    ('/api/room-categories', ROOM_CATEGORIES),
    ('/api/gallery-categories', GALLERY_CATEGORIES),
]

# list file -> (detail endpoint prefix, detail filename builder)
FAN_OUT = [
    (ROOM_CATEGORIES, '/api/room-categories', room_category_file),
    (GALLERY_CATEGORIES, '/api/gallery-categories', gallery_category_file),
]

SyncReport = namedtuple('SyncReport', ['saved', 'failed'])


def fetch_and_save(session, api_url, output_dir, endpoint, filename, timeout=DEFAULT_TIMEOUT):
    """Write the raw response body of ``endpoint`` to ``filename``.

    Returns the parsed document, or None on any failure.
    """
    try:
        logger.info('Fetching %s...', endpoint)
        response = session.get(f"{api_url.rstrip('/')}{endpoint}", timeout=timeout)
        response.raise_for_status()
        data = json.loads(response.content)
        with open(os.path.join(output_dir, filename), 'wb') as f:
            f.write(response.content)
        logger.info('✅ Saved to %s', filename)
        return data
    except (requests.exceptions.RequestException, ValueError, OSError) as e:
        logger.error('❌ Error fetching %s: %s', endpoint, e)
        return None


def list_categories(document):
    if not isinstance(document, dict) or not document.get('success'):
        return []
    data = document.get('data')
    categories = data.get('categories') if isinstance(data, dict) else None
    return categories if isinstance(categories, list) else []


def fetch_all_data(api_url=API_URL, output_dir=OUTPUT_DIR, session=None, timeout=DEFAULT_TIMEOUT):
    os.makedirs(output_dir, exist_ok=True)
    own_session = session is None
    session = session or requests.Session()
    saved, failed = [], []

    def fetch(endpoint, filename):
        document = fetch_and_save(session, api_url, output_dir, endpoint, filename, timeout=timeout)
        (failed if document is None else saved).append(filename)
        return document

    try:
        logger.info('📦 Fetching all static data...')
        documents = {filename: fetch(endpoint, filename) for endpoint, filename in RESOURCES}

        for list_file, prefix, detail_file in FAN_OUT:
            for category in list_categories(documents[list_file]):
                slug = category.get('slug') if isinstance(category, dict) else None
                if not slug:
                    logger.warning('⚠️  Skipping category without slug in %s', list_file)
                    continue
                if not isinstance(slug, str) or secure_filename(slug) != slug:
                    logger.warning('⚠️  Skipping category with unsafe slug %r in %s', slug, list_file)
                    continue
                fetch(f'{prefix}/{slug}', detail_file(slug))
    finally:
        if own_session:
            session.close()

    return SyncReport(saved=saved, failed=failed)


def main():
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    report = fetch_all_data()
    if report.failed:
        logger.error('\n❌ %d of %d resources failed: %s',
                     len(report.failed), len(report.saved) + len(report.failed), ', '.join(report.failed))
    else:
        logger.info('\n✅ All static data fetched successfully!')
    logger.info('📁 Files saved to: %s', OUTPUT_DIR)
    return 1 if report.failed else 0


if __name__ == '__main__':
    sys.exit(main())
