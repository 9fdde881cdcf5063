"""
Content API client.
Thin wrapper around requests that speaks the hotel API's
{success, data, message} envelope and bearer-token auth.
"""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'http://localhost:5080'
DEFAULT_TIMEOUT = 30
AUTH_FAILURE_STATUSES = (401, 403)


# ─── Errors ──────────────────────────────────────────────────────
class ContentApiException(Exception):
    def __init__(self, message, status=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class ApiError(ContentApiException):
    """Network failure or non-2xx response. Shown inline, user may retry."""


class AuthError(ContentApiException):
    """401/403 from the API. Handled globally by forcing a fresh login."""


def error_message(response, fallback):
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get('message'):
        return body['message']
    return fallback


# ─── Client ──────────────────────────────────────────────────────
class ApiClient:
    def __init__(self, base_url=DEFAULT_API_URL, token=None, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def url(self, path):
        return f"{self.base_url}{path}"

    def request(self, method, path, auth_errors=True, **kwargs):
        """Send a request and return the decoded JSON envelope.

        With ``auth_errors`` set, a 401/403 raises AuthError instead of
        ApiError so the caller's ordinary error handling does not swallow it.
        """
        headers = kwargs.pop('headers', {})
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, self.url(path), headers=headers, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error('API %s %s failed: %s', method, path, e)
            raise ApiError(f'Could not reach the server: {e}')

        if response.status_code in AUTH_FAILURE_STATUSES and auth_errors:
            logger.warning('API %s %s rejected credentials (%s)', method, path, response.status_code)
            raise AuthError(error_message(response, 'Your session has expired.'),
                            status=response.status_code)

        if not response.ok:
            logger.error('API %s %s returned %s', method, path, response.status_code)
            raise ApiError(error_message(response, f'Request failed ({response.status_code})'),
                           status=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise ApiError('Invalid response from server', status=response.status_code)

        if isinstance(payload, dict) and payload.get('success') is False:
            raise ApiError(payload.get('message') or 'Request failed',
                           status=response.status_code, payload=payload)
        return payload

    def get(self, path, **kwargs):
        return self.request('GET', path, **kwargs)

    def post(self, path, **kwargs):
        return self.request('POST', path, **kwargs)

    def put(self, path, **kwargs):
        return self.request('PUT', path, **kwargs)

    def delete(self, path, **kwargs):
        return self.request('DELETE', path, **kwargs)

    def close(self):
        self.session.close()


def unwrap(payload, *keys, default=None):
    """Walk ``payload['data'][k1][k2]...``, returning ``default`` on any gap."""
    node = payload.get('data') if isinstance(payload, dict) else None
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
    return default if node is None else node
