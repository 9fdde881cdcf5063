"""
Admin auth session.
Holds the bearer token and cached admin profile in a persisted mapping
(the Flask session cookie in the app, a plain dict in tests).
"""

import logging

from pydantic import ValidationError

from api import ContentApiException, unwrap
from schemas import AdminProfile, AdminSession

logger = logging.getLogger(__name__)

TOKEN_KEY = 'admin_token'
ADMIN_KEY = 'admin_profile'


class AuthSession:
    def __init__(self, store):
        self.store = store

    @property
    def token(self):
        return self.store.get(TOKEN_KEY)

    @property
    def admin(self):
        return self.store.get(ADMIN_KEY)

    @property
    def is_authenticated(self):
        return bool(self.token and self.admin)

    def _set_admin(self, admin):
        if admin is None:
            self.store.pop(ADMIN_KEY, None)
        else:
            self.store[ADMIN_KEY] = admin

    def verify(self, client):
        """Silently verify a persisted token and load the profile.

        A failure clears only the profile. The token is kept so that a
        transient network error does not force a logout.
        """
        if not self.token or self.admin:
            return self.admin
        client.token = self.token
        try:
            payload = client.get('/api/admin/me', auth_errors=False)
            admin = AdminProfile.model_validate(unwrap(payload, 'admin', default={}))
        except (ContentApiException, ValidationError) as e:
            logger.warning('Token verification failed: %s', e)
            self._set_admin(None)
            return None
        self._set_admin(admin.model_dump(exclude_none=True))
        return self.admin

    def login(self, client, username, password):
        """Exchange credentials for a token. Never raises."""
        try:
            payload = client.post('/api/admin/login', json={'username': username, 'password': password},
                                  auth_errors=False)
            session = AdminSession.model_validate(unwrap(payload, default={}))
        except ContentApiException as e:
            logger.info('Login failed for %s: %s', username, e.message)
            return {'success': False, 'message': e.message or 'Login failed'}
        except ValidationError:
            return {'success': False, 'message': 'Login failed: unexpected response from server'}

        self.store[TOKEN_KEY] = session.token
        self._set_admin(session.admin.model_dump(exclude_none=True))
        client.token = session.token
        return {'success': True}

    def logout(self):
        self.store.pop(TOKEN_KEY, None)
        self._set_admin(None)

    def invalidate(self):
        """Forced logout after the API rejected the token."""
        logger.warning('Clearing admin session after authorization failure')
        self.logout()
