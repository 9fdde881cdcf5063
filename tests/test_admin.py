import io
import json

import pytest
import responses
from werkzeug.datastructures import MultiDict

from app import deep_merge, form_document, unflatten

from conftest import API_URL, envelope, flashes

ROOM_FORM = {
    'name': 'Garden Room',
    'type': 'Deluxe',
    'roomNumber': '101',
    'floor': '1',
    'size': '28',
    'maxOccupancy': '2',
    'bedType': 'Queen',
    'bedCount': '1',
    'basePrice': '120',
    'shortDescription': 'Overlooks the courtyard',
    'description': 'A quiet room overlooking the vine courtyard.',
    'amenities': ['WiFi', 'AC'],
    'images.0.url': '/images/rooms/garden/01.jpg',
    'images.0.alt': 'Bed',
    'images.1.url': '/images/rooms/garden/02.jpg',
    'images.1.alt': 'View',
    'images.2.url': '',
    'images.2.alt': '',
    'primaryImage': '1',
    'isActive': ['false', 'true'],
    'smokingAllowed': 'false',
    'petsAllowed': 'false',
}


def sent_json(call):
    return json.loads(call.request.body)


# ─── Access ──────────────────────────────────────────────────────
def test_admin_pages_require_login(client, mocked):
    response = client.get('/admin/rooms')
    assert response.status_code == 302
    assert '/admin/login' in response.headers['Location']
    assert len(mocked.calls) == 0


def test_login_stores_session_and_redirects(client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/admin/login',
               json=envelope(token='tok', admin={'username': 'admin'}))

    response = client.post('/admin/login?next=/admin/rooms',
                           data={'username': 'admin', 'password': 'pw'})

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/rooms')
    with client.session_transaction() as sess:
        assert sess['admin_token'] == 'tok'


def test_login_failure_shows_message(client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/admin/login', status=401,
               json={'success': False, 'message': 'Invalid credentials'})
    response = client.post('/admin/login', data={'username': 'admin', 'password': 'bad'})
    assert response.status_code == 200
    assert b'Invalid credentials' in response.data


def test_login_refuses_offsite_next(client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/admin/login',
               json=envelope(token='tok', admin={'username': 'admin'}))
    response = client.post('/admin/login?next=https://evil.example',
                           data={'username': 'admin', 'password': 'pw'})
    location = response.headers['Location']
    assert 'evil.example' not in location
    assert '/admin' in location


def test_expired_token_forces_logout(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms', status=401,
               json={'success': False, 'message': 'Token expired'})

    response = admin_client.get('/admin/rooms')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/login')
    with admin_client.session_transaction() as sess:
        assert 'admin_token' not in sess
        assert 'admin_profile' not in sess


def test_logout(admin_client):
    response = admin_client.get('/admin/logout')
    assert response.status_code == 302
    with admin_client.session_transaction() as sess:
        assert 'admin_token' not in sess


def test_dashboard_shows_stats(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/admin/stats', json=envelope(stats={
        'rooms': {'total': 12, 'available': 9},
        'bookings': {'total': 40, 'active': 5},
    }))
    response = admin_client.get('/admin')
    assert response.status_code == 200
    assert b'12' in response.data
    assert b'9 available' in response.data
    assert b'Welcome back, Layla' in response.data


def test_dashboard_reports_api_failure(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/admin/stats', status=500)
    response = admin_client.get('/admin/dashboard')
    assert response.status_code == 200
    assert b'Failed to load dashboard statistics' in response.data


# ─── Rooms ───────────────────────────────────────────────────────
def test_rooms_list(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[
        {'_id': 'r1', 'name': 'Garden Room', 'type': 'Deluxe', 'roomNumber': '101',
         'basePrice': 120, 'isActive': True, 'images': []},
    ]))
    response = admin_client.get('/admin/rooms')
    assert response.status_code == 200
    assert b'Garden Room' in response.data
    assert b'/admin/rooms/r1/edit' in response.data


def test_create_room_binds_form(admin_client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/rooms', json=envelope(room={'_id': 'r9'}))

    response = admin_client.post('/admin/rooms/new', data=ROOM_FORM)

    assert response.status_code == 302
    assert len(mocked.calls) == 1
    room = sent_json(mocked.calls[0])
    assert room['name'] == 'Garden Room'
    assert room['floor'] == 1
    assert room['basePrice'] == 120
    assert room['amenities'] == ['WiFi', 'AC']
    assert [img['isPrimary'] for img in room['images']] == [False, True]
    assert room['isActive'] is True
    assert room['smokingAllowed'] is False
    assert 'primaryImage' not in room


def test_room_without_primary_choice_gets_first_image(admin_client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/rooms', json=envelope())
    form = dict(ROOM_FORM)
    del form['primaryImage']

    admin_client.post('/admin/rooms/new', data=form)

    images = sent_json(mocked.calls[0])['images']
    assert [img['isPrimary'] for img in images] == [True, False]


@pytest.mark.parametrize('field', ['name', 'roomNumber', 'description', 'shortDescription'])
def test_invalid_room_never_reaches_api(admin_client, mocked, field):
    form = dict(ROOM_FORM, **{field: ''})

    response = admin_client.post('/admin/rooms/new', data=form)

    assert response.status_code == 200
    assert f'{field} is required'.encode() in response.data
    assert len(mocked.calls) == 0


def test_unknown_amenity_is_rejected(admin_client, mocked):
    response = admin_client.post('/admin/rooms/new', data=dict(ROOM_FORM, amenities=['Helipad']))
    assert b'unknown amenities: Helipad' in response.data
    assert len(mocked.calls) == 0


def test_edit_room_loads_from_list_and_puts(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[
        {'_id': 'r1', 'name': 'Garden Room', 'roomNumber': '101', 'type': 'Deluxe', 'bedType': 'King'},
    ]))
    mocked.add(responses.PUT, f'{API_URL}/api/rooms/r1', json=envelope())

    response = admin_client.get('/admin/rooms/r1/edit')
    assert response.status_code == 200
    assert b'value="Garden Room"' in response.data

    response = admin_client.post('/admin/rooms/r1/edit', data=ROOM_FORM)
    assert response.status_code == 302
    assert mocked.calls[-1].request.method == 'PUT'


STORED_ROOM = {
    '_id': 'r1',
    'name': 'Garden Room',
    'roomNumber': '101',
    'type': 'Deluxe',
    'bedType': 'Queen',
    'description': 'A quiet room.',
    'shortDescription': 'Quiet',
    'amenities': ['WiFi', 'Minibar'],
    'features': ['Courtyard view'],
    'category': 'cat-garden',
    'seasonalPricing': [{'season': 'Summer', 'price': 150}],
    'createdAt': '2025-11-02T09:00:00Z',
    'images': [
        {'url': '/images/rooms/garden/01.jpg', 'alt': 'Bed', 'caption': 'King bed', 'isPrimary': True},
        {'url': '/images/rooms/garden/02.jpg', 'alt': 'View', 'caption': 'Vine courtyard'},
    ],
}


def test_edit_room_keeps_fields_the_form_does_not_show(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[STORED_ROOM]))
    mocked.add(responses.PUT, f'{API_URL}/api/rooms/r1', json=envelope())

    response = admin_client.post('/admin/rooms/r1/edit', data=dict(ROOM_FORM, name='Garden Room Deluxe'))

    assert response.status_code == 302
    room = sent_json(mocked.calls[-1])
    assert room['name'] == 'Garden Room Deluxe'
    assert room['features'] == ['Courtyard view']
    assert room['category'] == 'cat-garden'
    assert room['seasonalPricing'] == [{'season': 'Summer', 'price': 150}]
    assert room['createdAt'] == '2025-11-02T09:00:00Z'
    assert room['amenities'] == ['WiFi', 'AC']
    assert [img.get('caption') for img in room['images']] == ['King bed', 'Vine courtyard']
    assert [img['isPrimary'] for img in room['images']] == [False, True]


def test_edit_room_can_clear_all_amenities(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[STORED_ROOM]))
    mocked.add(responses.PUT, f'{API_URL}/api/rooms/r1', json=envelope())
    form = dict(ROOM_FORM)
    del form['amenities']

    admin_client.post('/admin/rooms/r1/edit', data=form)

    assert sent_json(mocked.calls[-1])['amenities'] == []


def test_edit_room_that_disappeared_is_404(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[]))
    response = admin_client.post('/admin/rooms/r1/edit', data=ROOM_FORM)
    assert response.status_code == 404
    assert not [c for c in mocked.calls if c.request.method == 'PUT']


def test_edit_unknown_room_is_404(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/rooms?limit=100', json=envelope(rooms=[]))
    assert admin_client.get('/admin/rooms/missing/edit').status_code == 404


def test_delete_requires_confirmation(admin_client, mocked):
    mocked.add(responses.DELETE, f'{API_URL}/api/rooms/r1', json=envelope())

    response = admin_client.get('/admin/rooms/r1/delete')
    assert response.status_code == 200
    assert b'name="confirm" value="yes"' in response.data
    assert len(mocked.calls) == 0

    response = admin_client.post('/admin/rooms/r1/delete', data={})
    assert response.status_code == 302
    assert len(mocked.calls) == 0

    response = admin_client.post('/admin/rooms/r1/delete', data={'confirm': 'yes'})
    assert response.status_code == 302
    assert len(mocked.calls) == 1
    assert mocked.calls[0].request.method == 'DELETE'
    assert ('success', 'Room deleted successfully!') in flashes(admin_client)


def test_delete_failure_is_flashed(admin_client, mocked):
    mocked.add(responses.DELETE, f'{API_URL}/api/rooms/r1', status=409,
               json={'success': False, 'message': 'Room has active bookings'})
    admin_client.post('/admin/rooms/r1/delete', data={'confirm': 'yes'})
    assert ('error', 'Room has active bookings') in flashes(admin_client)


# ─── Content ─────────────────────────────────────────────────────
def test_content_editor_renders_sections(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/content/about', json=envelope(content={
        'hero': {'title': 'About us'},
        'sections': [{'sectionId': 'heritage', 'title': 'Our Heritage', 'items': []}],
        'seo': {'keywords': ['hotel', 'heritage']},
    }))
    response = admin_client.get('/admin/content?page=about')
    assert response.status_code == 200
    assert b'name="sections.0.sectionId" value="heritage"' in response.data
    assert b'value="hotel, heritage"' in response.data


def test_unknown_content_page_is_404(admin_client, mocked):
    assert admin_client.get('/admin/content?page=blog').status_code == 404


def test_content_save_puts_full_document(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/content/home', json=envelope(content={
        '_id': 'c1',
        'updatedAt': '2026-01-05T10:00:00Z',
        'hero': {'title': 'Old', 'overlayOpacity': 0.4},
        'sections': [
            {'sectionId': 'welcome', 'order': 1, 'items': [{'title': 'Spa', 'icon': 'spa'}]},
            {'sectionId': 'features', 'order': 2},
        ],
    }))
    mocked.add(responses.PUT, f'{API_URL}/api/content/home', json=envelope())
    form = MultiDict([
        ('hero.title', 'Welcome'),
        ('sections.0.sectionId', 'welcome'),
        ('sections.0.title', 'Hello'),
        ('sections.0.isActive', 'false'),
        ('sections.0.items.0.title', 'Spa'),
        ('sections.0.items.0.description', 'Hammam'),
        ('sections.0.items.1.title', ''),
        ('sections.0.items.1.description', ''),
        ('sections.1.sectionId', 'features'),
        ('sections.1.isActive', 'false'),
        ('sections.1.isActive', 'true'),
        ('seo.keywords', 'hotel, old city'),
    ])

    response = admin_client.post('/admin/content?page=home', data=form)

    assert response.status_code == 302
    doc = sent_json(mocked.calls[-1])
    assert doc['hero']['title'] == 'Welcome'
    assert doc['sections'][0]['isActive'] is False
    assert doc['sections'][0]['items'] == [{'title': 'Spa', 'description': 'Hammam', 'icon': 'spa'}]
    assert doc['sections'][1]['isActive'] is True
    assert doc['seo']['keywords'] == ['hotel', 'old city']
    assert doc['updatedAt'] == '2026-01-05T10:00:00Z'
    assert doc['hero']['overlayOpacity'] == 0.4
    assert [s['order'] for s in doc['sections']] == [1, 2]


def test_content_with_duplicate_sections_is_rejected(admin_client, mocked):
    form = MultiDict([('sections.0.sectionId', 'welcome'), ('sections.1.sectionId', 'welcome')])
    response = admin_client.post('/admin/content?page=home', data=form)
    assert b'duplicate sectionId' in response.data
    assert len(mocked.calls) == 0


# ─── Bookings & blog ─────────────────────────────────────────────
def test_bookings_list(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/bookings', json=envelope(bookings=[
        {'bookingNumber': 'OV-1001', 'guest': {'name': 'Sami'}, 'room': {'name': 'Suite'},
         'checkInDate': '2026-05-01T00:00:00Z', 'totalAmount': 300, 'status': 'Confirmed'},
    ]))
    response = admin_client.get('/admin/bookings')
    assert b'OV-1001' in response.data
    assert b'chip success' in response.data
    assert b'2026-05-01' in response.data


def test_create_blog_post(admin_client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/blog', json=envelope())
    response = admin_client.post('/admin/blog/new', data={
        'title': 'Spring in the old city', 'content': '<p>Hello</p>',
        'category': 'Travel Tips', 'status': 'published', 'tags': 'spring, walks',
    })
    assert response.status_code == 302
    post = sent_json(mocked.calls[0])
    assert post['tags'] == ['spring', 'walks']
    assert post['status'] == 'published'


def test_edit_blog_post_keeps_stored_fields(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/blog/admin/all', json=envelope(posts=[{
        '_id': 'p1', 'title': 'Old title', 'content': 'Body', 'slug': 'old-title',
        'author': 'a1', 'views': 42, 'createdAt': '2026-02-01T00:00:00Z',
    }]))
    mocked.add(responses.PUT, f'{API_URL}/api/blog/p1', json=envelope())

    response = admin_client.post('/admin/blog/p1/edit', data={
        'title': 'New title', 'content': 'Body', 'category': 'News', 'status': 'draft', 'tags': '',
    })

    assert response.status_code == 302
    post = sent_json(mocked.calls[-1])
    assert post['title'] == 'New title'
    assert post['slug'] == 'old-title'
    assert post['views'] == 42
    assert post['createdAt'] == '2026-02-01T00:00:00Z'


def test_blog_post_requires_title(admin_client, mocked):
    response = admin_client.post('/admin/blog/new', data={'title': '', 'content': 'x', 'tags': ''})
    assert b'title is required' in response.data
    assert len(mocked.calls) == 0


# ─── Media ───────────────────────────────────────────────────────
def test_media_search_filters_files(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/upload/list', json=envelope(files=[
        {'filename': 'pool.jpg', 'url': '/uploads/pool.jpg', 'size': 2048},
        {'filename': 'lobby.png', 'url': '/uploads/lobby.png', 'size': 1024},
    ]))
    response = admin_client.get('/admin/media?q=POOL')
    assert b'pool.jpg' in response.data
    assert b'lobby.png' not in response.data


def test_upload_sends_only_accepted_files(admin_client, mocked):
    mocked.add(responses.POST, f'{API_URL}/api/upload',
               json=envelope(files=[{'filename': 'courtyard.jpg'}]))

    response = admin_client.post('/admin/media/upload', content_type='multipart/form-data', data={
        'images': [(io.BytesIO(b'jpeg-bytes'), 'courtyard.jpg'), (io.BytesIO(b'text'), 'notes.txt')],
    })

    assert response.status_code == 302
    assert len(mocked.calls) == 1
    body = mocked.calls[0].request.body
    assert b'name="images"; filename="courtyard.jpg"' in body
    assert b'notes.txt' not in body
    messages = flashes(admin_client)
    assert ('error', '"notes.txt": file type not allowed.') in messages
    assert ('success', 'Successfully uploaded 1 file(s)') in messages


def test_oversized_upload_is_rejected(app, admin_client, mocked):
    app.config['MAX_UPLOAD_SIZE'] = 4
    admin_client.post('/admin/media/upload', content_type='multipart/form-data', data={
        'images': [(io.BytesIO(b'more than four bytes'), 'big.png')],
    })
    assert len(mocked.calls) == 0
    assert ('error', '"big.png" is larger than 10MB.') in flashes(admin_client)


def test_delete_media_file(admin_client, mocked):
    mocked.add(responses.DELETE, f'{API_URL}/api/upload/pool.jpg', json=envelope())
    admin_client.post('/admin/media/pool.jpg/delete', data={'confirm': 'yes'})
    assert len(mocked.calls) == 1


# ─── Settings ────────────────────────────────────────────────────
def test_settings_save(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/settings', json=envelope(settings={
        'siteName': 'Old Vine', 'logo': '/images/logo.png',
        'address': {'city': 'Aleppo', 'postalCode': '00000'},
    }))
    mocked.add(responses.PUT, f'{API_URL}/api/settings', json=envelope())
    response = admin_client.post('/admin/settings', data={
        'siteName': 'The Old Vine Hotel',
        'contactEmail': 'stay@oldvine.example',
        'address.city': 'Damascus',
        'bookingSettings.minNights': '1',
        'bookingSettings.maxNights': '14',
    })
    assert response.status_code == 302
    settings = sent_json(mocked.calls[-1])
    assert settings['address']['city'] == 'Damascus'
    assert settings['bookingSettings']['maxNights'] == 14
    assert settings['logo'] == '/images/logo.png'
    assert settings['address']['postalCode'] == '00000'


def test_settings_validation(admin_client, mocked):
    response = admin_client.post('/admin/settings', data={
        'siteName': 'Old Vine',
        'bookingSettings.minNights': '7',
        'bookingSettings.maxNights': '2',
    })
    assert b'maxNights must not be less than minNights' in response.data
    assert len(mocked.calls) == 0


def test_settings_missing(admin_client, mocked):
    mocked.add(responses.GET, f'{API_URL}/api/settings', status=404,
               json={'success': False, 'message': 'Settings not found'})
    response = admin_client.get('/admin/settings')
    assert b'Settings not found' in response.data


# ─── Form binding ────────────────────────────────────────────────
def test_unflatten_builds_nested_lists():
    doc = unflatten([
        ('sections.1.title', 'B'),
        ('sections.0.title', 'A'),
        ('sections.0.items.0.title', 'x'),
        ('seo.title', 'S'),
    ])
    assert doc == {
        'sections': [{'title': 'A', 'items': [{'title': 'x'}]}, {'title': 'B'}],
        'seo': {'title': 'S'},
    }


def test_deep_merge_overlays_form_on_stored_document():
    stored = {
        'name': 'Old', 'createdAt': 't0',
        'address': {'city': 'Aleppo', 'postalCode': '00000'},
        'images': [{'_id': 'i1', 'url': 'a.jpg'}, {'_id': 'i2', 'url': 'b.jpg'}],
        'amenities': ['WiFi', 'TV'],
    }
    edited = {
        'name': 'New',
        'address': {'city': 'Damascus'},
        'images': [{'url': 'a2.jpg'}],
        'amenities': ['AC'],
    }
    assert deep_merge(stored, edited) == {
        'name': 'New', 'createdAt': 't0',
        'address': {'city': 'Damascus', 'postalCode': '00000'},
        'images': [{'_id': 'i1', 'url': 'a2.jpg'}],
        'amenities': ['AC'],
    }
    assert deep_merge(None, {'a': 1}) == {'a': 1}


def test_form_document_last_value_wins():
    form = MultiDict([('flag', 'false'), ('flag', 'true'), ('tags', 'a'), ('tags', 'b'), ('skip', '1')])
    assert form_document(form, lists=('tags',), skip=('skip',)) == {'flag': 'true', 'tags': ['a', 'b']}
