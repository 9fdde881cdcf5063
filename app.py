"""
The Old Vine Hotel - Website
Public brochure site rendered from static JSON snapshots, plus an admin
panel that manages rooms, content, blog, media and settings through the
hotel Content API.
"""

import os
import logging
import functools
from datetime import datetime
from urllib.parse import quote

import click
from dotenv import load_dotenv
from flask import (
    Flask, render_template, request, redirect, url_for, flash,
    session, send_from_directory, abort, g
)
from pydantic import ValidationError
from werkzeug.utils import secure_filename

import fetch_static_data
from api import ApiClient, ApiError, AuthError, DEFAULT_API_URL, DEFAULT_TIMEOUT, unwrap
from auth import AuthSession
from schemas import (
    AMENITIES_OPTIONS, BED_TYPES, BLOG_CATEGORIES, BLOG_STATUSES, BLOG_STATUS_COLORS, ROOM_TYPES,
    BlogPost, Booking, ContactMessage, MediaFile, PageContent, Room, Settings, describe_errors,
)
from static_data import DEFAULT_STATIC_DATA_DIR, StaticDataStore, find_section, resolve
from translations import SUPPORTED_LANGUAGES, text_direction, translate

load_dotenv()

# ─── Configuration ───────────────────────────────────────────────
app = Flask(__name__)
app.secret_key = os.environ.get('SECRET_KEY', 'oldvine-secret-key-change-in-production')
app.config['API_URL'] = os.environ.get('API_URL', DEFAULT_API_URL)
app.config['API_TIMEOUT'] = int(os.environ.get('API_TIMEOUT', DEFAULT_TIMEOUT))
app.config['STATIC_DATA_DIR'] = os.environ.get('STATIC_DATA_DIR', DEFAULT_STATIC_DATA_DIR)
app.config['DEFAULT_LANGUAGE'] = os.environ.get('DEFAULT_LANGUAGE', 'en')
app.config['HOTEL_NAME'] = os.environ.get('HOTEL_NAME', 'The Old Vine Hotel')
app.config['MAX_UPLOAD_SIZE'] = 10 * 1024 * 1024  # 10MB per image
app.config['MAX_CONTENT_LENGTH'] = 100 * 1024 * 1024

ALLOWED_IMAGE_EXT = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
CONTENT_PAGES = ('home', 'about')

DEFAULT_SEO = {
    'home': {
        'title': 'The Old Vine Hotel - Luxury Accommodation & Premium Hospitality',
        'description': 'Experience luxury and elegance at The Old Vine Hotel.',
        'keywords': ['luxury hotel', 'premium accommodation'],
    },
    'about': {
        'title': 'About Us - The Old Vine Hotel',
        'description': "Learn about The Old Vine Hotel's history and values.",
        'keywords': ['hotel', 'hospitality', 'luxury'],
    },
}

DEFAULT_CONTACT_INFO = {
    'hotel': {
        'name': 'The Old Vine Hotel',
        'phone': '',
        'email': '',
        'address': {'formatted': 'Old Damascus City'},
    }
}

NAV_ITEMS = [
    ('nav.home', 'home'),
    ('nav.about', 'about'),
    ('nav.rooms', 'rooms'),
    ('nav.facilities', 'facilities'),
    ('nav.gallery', 'gallery'),
    ('nav.contact', 'contact'),
]

NEW_ROOM = {
    'name': '', 'type': 'Deluxe', 'roomNumber': '', 'floor': 1, 'size': 0,
    'maxOccupancy': 2, 'bedType': 'King', 'bedCount': 1, 'basePrice': 0,
    'description': '', 'shortDescription': '', 'amenities': [], 'images': [],
    'status': 'Available', 'isActive': True, 'smokingAllowed': False, 'petsAllowed': False,
}

ADMIN_NAV_ITEMS = [
    ('Dashboard', 'admin_dashboard'),
    ('Content', 'admin_content'),
    ('Rooms', 'admin_rooms'),
    ('Bookings', 'admin_bookings'),
    ('Blog', 'admin_blog'),
    ('Media', 'admin_media'),
    ('Settings', 'admin_settings'),
]

# ─── API client & session ────────────────────────────────────────
def get_auth():
    if 'auth' not in g:
        g.auth = AuthSession(session)
    return g.auth

def get_api():
    if 'api' not in g:
        g.api = ApiClient(app.config['API_URL'], token=get_auth().token,
                          timeout=app.config['API_TIMEOUT'])
    return g.api

def get_public_api():
    if 'public_api' not in g:
        g.public_api = ApiClient(app.config['API_URL'], timeout=app.config['API_TIMEOUT'])
    return g.public_api

@app.teardown_appcontext
def close_api(exception):
    for name in ('api', 'public_api'):
        api = g.pop(name, None)
        if api is not None:
            api.close()

def get_store():
    return StaticDataStore(app.config['STATIC_DATA_DIR'])

# ─── Helpers ─────────────────────────────────────────────────────
def get_language():
    lang = session.get('lang', app.config['DEFAULT_LANGUAGE'])
    return lang if lang in SUPPORTED_LANGUAGES else app.config['DEFAULT_LANGUAGE']

def is_default_language():
    return get_language() == app.config['DEFAULT_LANGUAGE']

def t(key, default=None):
    return translate(key, get_language(), default)

def login_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = get_auth()
        auth.verify(get_api())
        if not auth.is_authenticated:
            flash('Please log in to access the admin panel.', 'warning')
            return redirect(url_for('admin_login', next=request.path))
        return f(*args, **kwargs)
    return decorated

def safe_next(target):
    if target and target.startswith('/admin') and not target.startswith('//'):
        return target
    return url_for('admin_dashboard')

def allowed_file(filename, allowed_ext):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_ext

def file_size(storage):
    stream = storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size

def unflatten(pairs):
    """Build a nested document from dotted form names.

    ``sections.0.items.1.title`` becomes ``{'sections': [{'items': [.., {'title': ..}]}]}``.
    """
    root = {}
    for name, value in pairs:
        parts = name.split('.')
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value
    return _listify(root)

def _listify(node):
    if not isinstance(node, dict):
        return node
    items = {key: _listify(value) for key, value in node.items()}
    if items and all(key.isdigit() for key in items):
        return [items[key] for key in sorted(items, key=int)]
    return items

def form_document(form, lists=(), skip=()):
    """Bind a submitted form into a document.

    Checkboxes post a hidden "false" before the checkbox value, so the
    last value of a field wins. Names in ``lists`` keep all their values.
    """
    pairs = []
    for name, values in form.lists():
        if name in skip:
            continue
        pairs.append((name, values if name in lists else values[-1]))
    return unflatten(pairs)

def deep_merge(stored, edited):
    """Apply edited form fields over a stored document.

    Keys the form does not render are kept. Lists of records merge by
    position; the edited list decides the length.
    """
    if isinstance(stored, dict) and isinstance(edited, dict):
        merged = dict(stored)
        for key, value in edited.items():
            merged[key] = deep_merge(stored.get(key), value)
        return merged
    if isinstance(stored, list) and isinstance(edited, list):
        return [deep_merge(stored[i] if i < len(stored) else None, item)
                for i, item in enumerate(edited)]
    return edited

def drop_blank_items(content):
    for section in content.get('sections') or []:
        section['items'] = [item for item in section.get('items') or []
                            if item.get('title') or item.get('description')]
    return content

def flash_validation(exc):
    for message in describe_errors(exc):
        flash(message, 'error')

def find_by_id(items, item_id):
    return next((item for item in items if str(item.get('_id')) == str(item_id)), None)

def parse_each(model, items):
    parsed = []
    for item in items or []:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            app.logger.warning('Skipping malformed %s: %s', model.__name__, e)
    return parsed

def section_view(content, section_id, title_key=None, subtitle_key=None, content_key=None):
    """Section fields resolved against the translation table."""
    static = find_section(content, section_id)
    default_locale = is_default_language()

    def field(name, key):
        return resolve(static.get(name), t(key) if key else '', default_locale)

    return {
        'title': field('title', title_key),
        'subtitle': field('subtitle', subtitle_key),
        'content': field('content', content_key),
        'image': static.get('image'),
        'items': static.get('items') or [],
        'isActive': static.get('isActive', True),
        'found': bool(static),
    }

def seo_for(page, content):
    seo = (content or {}).get('seo') or {}
    defaults = DEFAULT_SEO[page]
    return {
        'title': seo.get('title') or defaults['title'],
        'description': seo.get('description') or defaults['description'],
        'keywords': ', '.join(seo.get('keywords') or defaults['keywords']),
    }

# ─── Context Processors ─────────────────────────────────────────
@app.context_processor
def inject_globals():
    lang = get_language()
    return {
        'current_admin': session.get('admin_profile'),
        'current_year': datetime.now().year,
        'hotel_name': app.config['HOTEL_NAME'],
        'lang': lang,
        'text_dir': text_direction(lang),
        'languages': SUPPORTED_LANGUAGES,
        'nav_items': NAV_ITEMS,
        'admin_nav_items': ADMIN_NAV_ITEMS,
        't': t,
    }

# ═══════════════════════════════════════════════════════════════
# FRONTEND ROUTES
# ═══════════════════════════════════════════════════════════════

@app.route('/')
def home():
    store = get_store()
    content = store.get_home_content()
    categories = store.get_room_categories()

    welcome = section_view(content, 'welcome', 'home.welcomeTitle', 'home.welcomeSubtitle',
                           'home.welcomeDescription')
    hero = (content or {}).get('hero') or {}

    return render_template('frontend/home.html',
                         hero_image=hero.get('backgroundImage') or '/static/images/hero.jpg',
                         welcome=welcome, room_categories=categories[:3],
                         seo=seo_for('home', content))

@app.route('/about')
def about():
    content = get_store().get_about_content()
    hero = (content or {}).get('hero') or {}
    default_locale = is_default_language()

    heritage = section_view(content, 'heritage', 'about.heritageTitle', content_key='about.heritageContent')
    sections = {
        section_id: section_view(content, section_id, f'about.{section_id}Title')
        for section_id in ('mission', 'vision', 'values')
    }

    return render_template('frontend/about.html',
                         hero_title=resolve(hero.get('title'), t('about.heroTitle'), default_locale),
                         hero_subtitle=resolve(hero.get('subtitle'), t('about.heroSubtitle'), default_locale),
                         hero_description=resolve(hero.get('description'), '', default_locale),
                         hero_image=hero.get('backgroundImage') or '/static/images/about-hero.jpg',
                         heritage=heritage, sections=sections,
                         seo=seo_for('about', content))

@app.route('/rooms')
def rooms():
    categories = get_store().get_room_categories()
    return render_template('frontend/rooms.html', categories=categories)

@app.route('/rooms/<slug>')
def room_detail(slug):
    category = get_store().get_room_category(slug)
    if not category:
        return render_template('frontend/unavailable.html', message=t('rooms.notAvailable')), 404
    return render_template('frontend/room_detail.html', category=category)

@app.route('/rooms/category/<slug>')
def room_category_gallery(slug):
    category = get_store().get_room_category(slug)
    if not category:
        return render_template('frontend/unavailable.html', message=t('rooms.notAvailable')), 404
    return render_template('frontend/gallery_category.html', category=category,
                         back_url=url_for('room_detail', slug=slug))

@app.route('/gallery')
def gallery():
    categories = get_store().get_gallery_categories()
    return render_template('frontend/gallery.html', categories=categories)

@app.route('/gallery/<slug>')
def gallery_category(slug):
    category = get_store().get_gallery_category(slug)
    if not category:
        return render_template('frontend/unavailable.html', message=t('gallery.notAvailable')), 404
    return render_template('frontend/gallery_category.html', category=category,
                         back_url=url_for('gallery'))

@app.route('/facilities')
def facilities():
    return render_template('frontend/facilities.html')

@app.route('/booking')
def booking():
    return render_template('frontend/booking.html')

@app.route('/booking/confirmation')
def booking_confirmation():
    return render_template('frontend/booking_confirmation.html')

@app.route('/contact', methods=['GET', 'POST'])
def contact():
    api = get_public_api()
    form = {}
    if request.method == 'POST':
        form = request.form.to_dict()
        try:
            message = ContactMessage.model_validate(form)
        except ValidationError as e:
            flash_validation(e)
        else:
            try:
                api.post('/api/contact', json=message.model_dump(), auth_errors=False)
                flash(t('contact.messageSent'), 'success')
                return redirect(url_for('contact'))
            except ApiError as e:
                flash(e.message or 'Failed to send message', 'error')

    try:
        info = unwrap(api.get('/api/contact/info', auth_errors=False)) or DEFAULT_CONTACT_INFO
    except ApiError:
        info = DEFAULT_CONTACT_INFO
    address = ((info.get('hotel') or {}).get('address') or {}).get('formatted', '')
    return render_template('frontend/contact.html', info=info, form=form,
                         directions_url='https://maps.google.com/?q=' + quote(address))

@app.route('/lang/<code>')
def set_language(code):
    if code in SUPPORTED_LANGUAGES:
        session['lang'] = code
    target = request.referrer
    if not target or not target.startswith(request.host_url):
        target = url_for('home')
    return redirect(target)

@app.route('/static-data/<path:filename>')
def static_data_file(filename):
    if not filename.endswith('.json'):
        abort(404)
    return send_from_directory(app.config['STATIC_DATA_DIR'], filename,
                               mimetype='application/json', max_age=0)

# ═══════════════════════════════════════════════════════════════
# ADMIN ROUTES
# ═══════════════════════════════════════════════════════════════

@app.route('/admin/login', methods=['GET', 'POST'])
def admin_login():
    auth = get_auth()
    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')
        if not username or not password:
            flash('Username and password are required.', 'error')
        else:
            result = auth.login(get_api(), username, password)
            if result['success']:
                admin = auth.admin
                flash('Welcome back, ' + (admin.get('firstName') or admin['username']) + '!', 'success')
                return redirect(safe_next(request.args.get('next')))
            flash(result['message'], 'error')
    elif auth.verify(get_api()):
        return redirect(url_for('admin_dashboard'))
    return render_template('admin/login.html')

@app.route('/admin/logout')
def admin_logout():
    get_auth().logout()
    flash('You have been logged out.', 'info')
    return redirect(url_for('admin_login'))

@app.route('/admin')
@app.route('/admin/dashboard')
@login_required
def admin_dashboard():
    stats, error = None, None
    try:
        stats = unwrap(get_api().get('/api/admin/stats'), 'stats', default={})
    except ApiError as e:
        app.logger.error('Dashboard stats failed: %s', e)
        error = 'Failed to load dashboard statistics'
    return render_template('admin/dashboard.html', stats=stats, error=error)

# ─── Page Content ────────────────────────────────────────────
@app.route('/admin/content', methods=['GET', 'POST'])
@login_required
def admin_content():
    page = request.args.get('page', 'home')
    if page not in CONTENT_PAGES:
        abort(404)
    api = get_api()

    if request.method == 'POST':
        doc = form_document(request.form)
        try:
            PageContent.model_validate(doc)
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/content.html', page=page, content=doc, pages=CONTENT_PAGES)
        try:
            stored = unwrap(api.get(f'/api/content/{page}'), 'content', default={})
            content = PageContent.model_validate(drop_blank_items(deep_merge(stored, doc)))
            api.put(f'/api/content/{page}', json=content.model_dump(exclude_none=True))
            flash('Content saved successfully! Re-run the static data sync to publish it.', 'success')
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/content.html', page=page, content=doc, pages=CONTENT_PAGES)
        except ApiError as e:
            flash(e.message or 'Failed to save content', 'error')
            return render_template('admin/content.html', page=page, content=doc, pages=CONTENT_PAGES)
        return redirect(url_for('admin_content', page=page))

    content = None
    try:
        content = unwrap(api.get(f'/api/content/{page}'), 'content')
    except ApiError as e:
        flash(e.message or 'Failed to load content', 'error')
    return render_template('admin/content.html', page=page, content=content, pages=CONTENT_PAGES)

# ─── Rooms CRUD ──────────────────────────────────────────────
def load_rooms():
    return unwrap(get_api().get('/api/rooms', params={'limit': 100}), 'rooms', default=[])

def room_form_context(room, editing):
    return dict(room=room, editing=editing, room_types=ROOM_TYPES, bed_types=BED_TYPES,
                amenities_options=AMENITIES_OPTIONS)

def bind_room(form):
    doc = form_document(form, lists=('amenities',), skip=('primaryImage',))
    doc.setdefault('amenities', [])
    primary = form.get('primaryImage', type=int)
    for index, image in enumerate(doc.get('images') or []):
        image['isPrimary'] = index == primary
    return doc

@app.route('/admin/rooms')
@login_required
def admin_rooms():
    rooms = []
    try:
        rooms = load_rooms()
    except ApiError as e:
        flash(e.message or 'Failed to load rooms', 'error')
    return render_template('admin/rooms.html', rooms=rooms)

@app.route('/admin/rooms/new', methods=['GET', 'POST'])
@login_required
def admin_room_new():
    if request.method == 'POST':
        doc = bind_room(request.form)
        try:
            room = Room.model_validate(doc)
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/room_form.html', **room_form_context(doc, False))
        try:
            get_api().post('/api/rooms', json=room.model_dump())
        except ApiError as e:
            flash(e.message or 'Failed to save room', 'error')
            return render_template('admin/room_form.html', **room_form_context(doc, False))
        flash(f'Room "{room.name}" created successfully!', 'success')
        return redirect(url_for('admin_rooms'))
    return render_template('admin/room_form.html', **room_form_context(dict(NEW_ROOM), False))

@app.route('/admin/rooms/<room_id>/edit', methods=['GET', 'POST'])
@login_required
def admin_room_edit(room_id):
    if request.method == 'POST':
        doc = bind_room(request.form)
        try:
            Room.model_validate(doc)
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/room_form.html', **room_form_context(doc, True))
        try:
            stored = find_by_id(load_rooms(), room_id)
            if not stored:
                abort(404)
            room = Room.model_validate(deep_merge(stored, doc))
            get_api().put(f'/api/rooms/{room_id}', json=room.model_dump())
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/room_form.html', **room_form_context(doc, True))
        except ApiError as e:
            flash(e.message or 'Failed to save room', 'error')
            return render_template('admin/room_form.html', **room_form_context(doc, True))
        flash('Room updated successfully!', 'success')
        return redirect(url_for('admin_rooms'))

    try:
        room = find_by_id(load_rooms(), room_id)
    except ApiError as e:
        flash(e.message or 'Failed to load rooms', 'error')
        return redirect(url_for('admin_rooms'))
    if not room:
        abort(404)
    return render_template('admin/room_form.html', **room_form_context(room, True))

@app.route('/admin/rooms/<room_id>/delete', methods=['GET', 'POST'])
@login_required
def admin_room_delete(room_id):
    if request.method == 'GET':
        return render_template('admin/confirm_delete.html', title='Delete Room',
                             message='Are you sure you want to delete this room? This action cannot be undone.',
                             cancel_url=url_for('admin_rooms'))
    if request.form.get('confirm') != 'yes':
        flash('Deletion cancelled.', 'info')
        return redirect(url_for('admin_rooms'))
    try:
        get_api().delete(f'/api/rooms/{room_id}')
        flash('Room deleted successfully!', 'success')
    except ApiError as e:
        flash(e.message or 'Failed to delete room', 'error')
    return redirect(url_for('admin_rooms'))

# ─── Bookings ────────────────────────────────────────────────
@app.route('/admin/bookings')
@login_required
def admin_bookings():
    bookings = []
    try:
        bookings = parse_each(Booking, unwrap(get_api().get('/api/bookings'), 'bookings', default=[]))
    except ApiError as e:
        flash(e.message or 'Failed to load bookings', 'error')
    return render_template('admin/bookings.html', bookings=bookings)

# ─── Blog CRUD ───────────────────────────────────────────────
def load_posts():
    return unwrap(get_api().get('/api/blog/admin/all'), 'posts', default=[])

def post_form_context(post, editing):
    return dict(post=post, editing=editing, categories=BLOG_CATEGORIES, statuses=BLOG_STATUSES)

@app.route('/admin/blog')
@login_required
def admin_blog():
    posts = []
    try:
        posts = load_posts()
    except ApiError as e:
        flash(e.message or 'Failed to load blog posts', 'error')
    return render_template('admin/blog.html', posts=posts, status_colors=BLOG_STATUS_COLORS)

@app.route('/admin/blog/new', methods=['GET', 'POST'])
@app.route('/admin/blog/<post_id>/edit', methods=['GET', 'POST'])
@login_required
def admin_post_form(post_id=None):
    editing = post_id is not None
    if request.method == 'POST':
        doc = form_document(request.form)
        try:
            post = BlogPost.model_validate(doc)
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/post_form.html', **post_form_context(doc, editing))
        try:
            if editing:
                stored = find_by_id(load_posts(), post_id)
                if not stored:
                    abort(404)
                post = BlogPost.model_validate(deep_merge(stored, doc))
                get_api().put(f'/api/blog/{post_id}', json=post.model_dump(exclude_none=True))
                flash('Post updated successfully!', 'success')
            else:
                get_api().post('/api/blog', json=post.model_dump(exclude_none=True))
                flash('Post created successfully!', 'success')
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/post_form.html', **post_form_context(doc, editing))
        except ApiError as e:
            flash(e.message or 'Failed to save post', 'error')
            return render_template('admin/post_form.html', **post_form_context(doc, editing))
        return redirect(url_for('admin_blog'))

    post = {'title': '', 'excerpt': '', 'content': '', 'category': 'News', 'status': 'draft', 'tags': []}
    if editing:
        try:
            post = find_by_id(load_posts(), post_id)
        except ApiError as e:
            flash(e.message or 'Failed to load blog posts', 'error')
            return redirect(url_for('admin_blog'))
        if not post:
            abort(404)
    return render_template('admin/post_form.html', **post_form_context(post, editing))

@app.route('/admin/blog/<post_id>/delete', methods=['GET', 'POST'])
@login_required
def admin_post_delete(post_id):
    if request.method == 'GET':
        return render_template('admin/confirm_delete.html', title='Delete Post',
                             message='Are you sure you want to delete this post?',
                             cancel_url=url_for('admin_blog'))
    if request.form.get('confirm') != 'yes':
        flash('Deletion cancelled.', 'info')
        return redirect(url_for('admin_blog'))
    try:
        get_api().delete(f'/api/blog/{post_id}')
        flash('Post deleted successfully!', 'success')
    except ApiError as e:
        flash(e.message or 'Failed to delete post', 'error')
    return redirect(url_for('admin_blog'))

# ─── Media Library ───────────────────────────────────────────
@app.route('/admin/media')
@login_required
def admin_media():
    q = request.args.get('q', '').strip()
    files = []
    try:
        files = parse_each(MediaFile, unwrap(get_api().get('/api/upload/list'), 'files', default=[]))
    except ApiError as e:
        flash(e.message or 'Failed to load media files', 'error')
    if q:
        files = [f for f in files if q.lower() in f.filename.lower()]
    return render_template('admin/media.html', files=files, query=q,
                         allowed_ext=sorted(ALLOWED_IMAGE_EXT))

@app.route('/admin/media/upload', methods=['POST'])
@login_required
def admin_media_upload():
    files = [f for f in request.files.getlist('images') if f and f.filename]
    if not files:
        flash('No file selected.', 'error')
        return redirect(url_for('admin_media'))

    accepted = []
    for file in files:
        if not allowed_file(file.filename, ALLOWED_IMAGE_EXT):
            flash(f'"{file.filename}": file type not allowed.', 'error')
        elif file_size(file) > app.config['MAX_UPLOAD_SIZE']:
            flash(f'"{file.filename}" is larger than 10MB.', 'error')
        else:
            accepted.append(file)

    if accepted:
        upload = [('images', (secure_filename(f.filename), f.stream, f.mimetype)) for f in accepted]
        try:
            payload = get_api().post('/api/upload', files=upload)
            count = len(unwrap(payload, 'files', default=[]))
            flash(f'Successfully uploaded {count} file(s)', 'success')
        except ApiError as e:
            flash(e.message or 'Failed to upload files', 'error')
    return redirect(url_for('admin_media'))

@app.route('/admin/media/<path:filename>/delete', methods=['GET', 'POST'])
@login_required
def admin_media_delete(filename):
    if request.method == 'GET':
        return render_template('admin/confirm_delete.html', title='Delete File',
                             message=f'Are you sure you want to delete "{filename}"?',
                             cancel_url=url_for('admin_media'))
    if request.form.get('confirm') != 'yes':
        flash('Deletion cancelled.', 'info')
        return redirect(url_for('admin_media'))
    try:
        get_api().delete(f'/api/upload/{quote(filename)}')
        flash('File deleted successfully', 'success')
    except ApiError as e:
        flash(e.message or 'Failed to delete file', 'error')
    return redirect(url_for('admin_media'))

# ─── Settings ────────────────────────────────────────────────
@app.route('/admin/settings', methods=['GET', 'POST'])
@login_required
def admin_settings():
    if request.method == 'POST':
        doc = form_document(request.form)
        try:
            Settings.model_validate(doc)
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/settings.html', settings=doc)
        try:
            stored = unwrap(get_api().get('/api/settings'), 'settings', default={})
            settings = Settings.model_validate(deep_merge(stored, doc))
            get_api().put('/api/settings', json=settings.model_dump())
            flash('Settings saved successfully!', 'success')
        except ValidationError as e:
            flash_validation(e)
            return render_template('admin/settings.html', settings=doc)
        except ApiError as e:
            flash(e.message or 'Failed to save settings', 'error')
            return render_template('admin/settings.html', settings=doc)
        return redirect(url_for('admin_settings'))

    settings = None
    try:
        settings = unwrap(get_api().get('/api/settings'), 'settings')
    except ApiError as e:
        flash(e.message or 'Failed to load settings', 'error')
    return render_template('admin/settings.html', settings=settings)

# ─── CLI ─────────────────────────────────────────────────────
@app.cli.command('fetch-static-data')
def fetch_static_data_command():
    """Mirror Content API responses into STATIC_DATA_DIR."""
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    report = fetch_static_data.fetch_all_data(app.config['API_URL'], app.config['STATIC_DATA_DIR'],
                                              timeout=app.config['API_TIMEOUT'])
    click.echo(f"{len(report.saved)} saved, {len(report.failed)} failed -> {app.config['STATIC_DATA_DIR']}")
    if report.failed:
        click.get_current_context().exit(1)

# ─── Error Handlers ──────────────────────────────────────────
@app.errorhandler(AuthError)
def auth_failed(e):
    get_auth().invalidate()
    flash('Your session has expired. Please log in again.', 'warning')
    return redirect(url_for('admin_login'))

@app.errorhandler(404)
def not_found(e):
    return render_template('frontend/404.html'), 404

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
