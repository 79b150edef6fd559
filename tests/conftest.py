import json
from urllib.parse import parse_qs

import pytest
import responses

from itempod import PodioClient

CREDENTIALS = {
    'app_id': 123,
    'app_token': 'apptoken',
    'client_id': 'clientid',
    'client_secret': 'clientsecret',
}
TOKEN_URL = 'https://podio.com/oauth/token'
API_URL = 'https://api.podio.com'


class FakeClock(object):
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def form_body(request):
    body = request.body
    if isinstance(body, bytes):
        body = body.decode('utf-8')
    return {key: values[0] for key, values in parse_qs(body).items()}


def json_body(request):
    return json.loads(request.body)


def token_calls():
    return [call for call in responses.calls if call.request.url == TOKEN_URL]


@pytest.fixture
def credentials():
    return dict(CREDENTIALS)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(credentials, clock):
    podio = PodioClient(credentials, clock=clock)
    yield podio
    podio.close()


@pytest.fixture
def add_token():
    """Register a successful answer of the token endpoint."""
    def add(access_token='token-1', expires_in=28800):
        responses.add(responses.POST, TOKEN_URL, json={
            'access_token': access_token,
            'expires_in': expires_in,
            'token_type': 'bearer',
            'refresh_token': 'refresh',
        }, status=200)
    return add
