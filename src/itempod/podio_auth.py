import logging
import os
from collections import namedtuple
from collections.abc import Mapping
from dataclasses import dataclass
from time import sleep
from typing import Optional

import requests
import requests.exceptions
from requests_oauthlib import OAuth2Session

from itempod.exceptions import AuthenticationError, ConfigurationError

APP_AUTH_TOKEN_URL = 'https://podio.com/oauth/token' # https://developers.podio.com/authentication/app_auth
API_BASE_URL = 'https://api.podio.com'

log = logging.getLogger(__name__)


ITEMPOD_MINIMUM_RATE_LIMIT = os.environ.get('ITEMPOD_MINIMUM_RATE_LIMIT')
if ITEMPOD_MINIMUM_RATE_LIMIT:
    ITEMPOD_MINIMUM_RATE_LIMIT = int(ITEMPOD_MINIMUM_RATE_LIMIT) / 100.0
else:
    # Ten percent is the default
    ITEMPOD_MINIMUM_RATE_LIMIT = 0.1


Credentials = namedtuple('Credentials', ['app_id', 'app_token', 'client_id', 'client_secret'])

_REQUIRED_FIELDS = (
    ('app_id', 'an'),
    ('app_token', 'an'),
    ('client_id', 'a'),
    ('client_secret', 'a'),
)


def make_credentials(credentials):
    """
    Validate a credentials record and turn it into a :class:`Credentials` tuple.
    :param credentials: a mapping (or Credentials) with app_id, app_token, client_id and client_secret
    :return: Credentials
    :raises ConfigurationError: if one of the four fields is missing
    """
    if isinstance(credentials, Credentials):
        credentials = credentials._asdict()
    if not isinstance(credentials, Mapping):
        raise ConfigurationError('Credentials must be a mapping, got %r' % type(credentials).__name__)
    for field, article in _REQUIRED_FIELDS:
        if credentials.get(field) is None:
            raise ConfigurationError('You must specify %s %s' % (article, field))
    return Credentials(*(credentials[field] for field, _ in _REQUIRED_FIELDS))


@dataclass
class AuthSession:
    """The access token Podio handed out and when it did so."""
    access_token: Optional[str] = None
    expires_in: int = 0
    issued_at: float = 0.0

    def is_valid(self, now: float) -> bool:
        if not self.access_token:
            return False
        return self.expires_in > (now - self.issued_at)

    def update(self, token: dict, now: float):
        self.access_token = token['access_token']
        self.expires_in = int(token.get('expires_in', 0))
        self.issued_at = now

    def as_token(self) -> dict:
        return {
            'access_token': self.access_token,
            'token_type': 'OAuth2',
            'expires_in': self.expires_in,
        }


class PodioOAuth2Session(OAuth2Session):
    """
    A requests session that sends the token the way Podio wants it, i.e.
    ``Authorization: OAuth2 <access_token>`` instead of a Bearer header.
    """
    def __init__(self, client_id=None, token=None, enable_robustness=False, **kwargs):
        super(PodioOAuth2Session, self).__init__(client_id=client_id, token=token, **kwargs)
        self.enable_robustness = enable_robustness

    def request(self, method, url, data=None, headers=None, withhold_token=False,
                client_id=None, client_secret=None, **kwargs):
        if not withhold_token and self.access_token:
            headers = dict(headers or {})
            headers['Authorization'] = 'OAuth2 %s' % self.access_token
        # oauthlib would add a Bearer header, the OAuth2 header is already in place.
        withhold_token = True

        # the usual way of doing requests
        if not self.enable_robustness:
            return super(PodioOAuth2Session, self) \
                .request(method, url,
                         data=data, headers=headers, withhold_token=withhold_token,
                         client_id=client_id, client_secret=client_secret, **kwargs)

        # robust way that retries connection errors and server errors
        retry_counter = 5
        while True:
            try:
                response = super(PodioOAuth2Session, self)\
                    .request(method, url,
                             data=data, headers=headers, withhold_token=withhold_token,
                             client_id=client_id, client_secret=client_secret, **kwargs)
            except requests.exceptions.ConnectionError:
                log.warning('ConnectionError while trying to access the Podio API.')
                retry_counter -= 1
                if retry_counter < 1:
                    raise
                sleep(3.0)
                continue

            # all retries have been used up. Return the response regardless of the status code.
            if retry_counter < 1:
                return response

            if response.status_code < 400:
                limit = response.headers.get('X-Rate-Limit-Limit')
                remaining = response.headers.get('X-Rate-Limit-Remaining')
                if remaining and limit and int(remaining) / int(limit) < ITEMPOD_MINIMUM_RATE_LIMIT:
                    log.warning('X-Rate-Limit-Remaining is less than %d percent (%s of %s left).',
                                ITEMPOD_MINIMUM_RATE_LIMIT * 100, remaining, limit)
                return response

            if 400 <= response.status_code < 500:
                log.error("HTTP Error happened, status: %s", response.status_code)
                log.error('* method: %s', method)
                log.error('* url: %s', url)
                if kwargs.get('json'):
                    log.error('* json: %r', kwargs['json'])
                log.error('* server response: %r', response.content)
                # Errors like 404 or 403 are most likely our own fault and we return immediately
                return response

            # Most likely, we have encountered a 504 Gateway timeout error.
            retry_counter -= 1
            log.warning('Response from URL "%s" with status code %d. Retrying in 3 seconds ...',
                        url, response.status_code)
            sleep(3.0)


def request_app_token(http, credentials, token_url=APP_AUTH_TOKEN_URL, timeout=None):
    """
    Run the app authentication flow against Podio.
    :param http: the PodioOAuth2Session used for the request
    :param credentials: a Credentials tuple
    :param token_url: the token endpoint
    :param timeout: passed on to requests, None means no timeout
    :return: the decoded token response, it always contains an access_token
    :raises AuthenticationError: if Podio did not hand out an access token
    """
    data = {
        "grant_type": "app",
        "app_id": "%s" % credentials.app_id,
        "app_token": "%s" % credentials.app_token,
        "client_id": "%s" % credentials.client_id,
        "client_secret": "%s" % credentials.client_secret,
    }
    try:
        token_resp = http.post(token_url, data=data, withhold_token=True, timeout=timeout)
    except requests.exceptions.RequestException as err:
        log.error('Could not reach the Podio token endpoint: %s', err)
        raise AuthenticationError(None, str(err)) from err

    try:
        token = token_resp.json()
    except ValueError:
        token = None
    if not isinstance(token, dict) or not token.get('access_token'):
        log.error('App authentication failed for app %s, status: %s',
                  credentials.app_id, token_resp.status_code)
        raise AuthenticationError(token_resp.status_code, token_resp.text)
    try:
        token['expires_in'] = int(token.get('expires_in', 0))
    except (TypeError, ValueError):
        log.error('Podio sent an unusable expires_in for app %s: %r',
                  credentials.app_id, token.get('expires_in'))
        raise AuthenticationError(token_resp.status_code, token_resp.text)
    log.info('Acquired access token for app %s (expires in %s seconds).',
             credentials.app_id, token.get('expires_in'))
    return token
