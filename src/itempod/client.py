"""
Client for the item endpoints of one Podio app.

Every operation returns a :class:`concurrent.futures.Future` right away and runs
on the client's thread pool: first the app authentication (only when the cached
token is missing or expired), then exactly one call to the item endpoint.

The future resolves to the decoded response or raises a
:class:`~itempod.exceptions.PodioResponseError`. An optional callback is called
exactly once as ``callback(error, result)`` with one of the two set::

    client = PodioClient({'app_id': 123, 'app_token': '...', 'client_id': '...', 'client_secret': '...'})
    item = client.get_item(42).result()

    def done(err, item):
        if err:
            print(err.as_dict())
    client.add_new_item({'title': 'Task A'}, done)
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor

import requests.exceptions

from itempod import podio_auth
from itempod.exceptions import ApiError, AuthenticationError, ConfigurationError, PodioResponseError

log = logging.getLogger(__name__)

MISUSE_MESSAGE = 'itempod must be instantiated with credentials in the form: ' \
                 'itempod.PodioClient(credentials)'


def _attach_callback(future, callback):
    if callback is None:
        return future

    def done(fut):
        err = fut.exception()
        if err is not None:
            callback(err, None)
        else:
            callback(None, fut.result())
    future.add_done_callback(done)
    return future


class PodioClient(object):
    """
    :param credentials: mapping with app_id, app_token, client_id and client_secret
    :param base_url: the Podio API base URL
    :param token_url: the app authentication endpoint
    :param timeout: timeout in seconds for each HTTP request, None waits forever
    :param max_workers: size of the thread pool the operations run on
    :param robust: retry connection errors and server errors (see PodioOAuth2Session)
    :param clock: returns the current time in seconds, used for token expiry
    """

    def __init__(self, credentials, base_url=podio_auth.API_BASE_URL,
                 token_url=podio_auth.APP_AUTH_TOKEN_URL, timeout=None, max_workers=4,
                 robust=False, clock=time.time):
        self.credentials = podio_auth.make_credentials(credentials)
        self.app_id = self.credentials.app_id
        self.base_url = base_url.rstrip('/')
        self.token_url = token_url
        self.timeout = timeout
        self._clock = clock

        self._auth = podio_auth.AuthSession()
        self._auth_lock = threading.Lock()
        self._refreshes_done = 0
        self._last_auth_error = None

        self._http = podio_auth.PodioOAuth2Session(self.credentials.client_id,
                                                   enable_robustness=robust)
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix='itempod')

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self._executor.shutdown(wait=True)
        self._http.close()

    @property
    def auth_session(self):
        return self._auth

    def _ensure_authenticated(self):
        """
        Make sure the cached access token can be used for the next call.

        Only one thread talks to the token endpoint at a time. Threads that were
        waiting while another one refreshed the token get its outcome, so a failed
        refresh is not repeated by everybody who queued up behind it.
        """
        refreshes_seen = self._refreshes_done
        with self._auth_lock:
            err = self._last_auth_error
            if self._refreshes_done != refreshes_seen and err is not None:
                raise AuthenticationError(err.status_code, err.response_raw)
            if self._auth.is_valid(self._clock()):
                log.debug('Reusing access token for app %s.', self.app_id)
                return
            try:
                token = podio_auth.request_app_token(self._http, self.credentials,
                                                     token_url=self.token_url,
                                                     timeout=self.timeout)
            except PodioResponseError as err:
                self._last_auth_error = err
                raise
            finally:
                # only finished refreshes are counted
                self._refreshes_done += 1
            self._last_auth_error = None
            self._auth.update(token, self._clock())
            self._http.token = self._auth.as_token()

    def _call(self, method, path, json=None):
        self._ensure_authenticated()
        url = self.base_url + path
        log.debug('%s %s', method, url)
        try:
            response = self._http.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as err:
            log.error('%s %s failed: %s', method, url, err)
            raise ApiError(None, str(err)) from err

        # Podio answers successful item calls with 200, anything else is an error.
        if response.status_code != 200:
            log.error('%s %s returned status %s', method, url, response.status_code)
            raise ApiError(response.status_code, response.text)
        try:
            return response.json()
        except ValueError:
            return response.text

    def _submit(self, callback, method, path, json=None):
        future = self._executor.submit(self._call, method, path, json)
        return _attach_callback(future, callback)

    def add_new_item(self, item_fields, callback=None):
        """Create an item in the app. See https://developers.podio.com/doc/items/add-new-item-22362"""
        item = {'fields': item_fields}
        return self._submit(callback, 'POST', '/item/app/%s/' % self.app_id, item)

    def get_item(self, item_id, callback=None):
        """Get an item by its item_id. See https://developers.podio.com/doc/items/get-item-22360"""
        return self._submit(callback, 'GET', '/item/%s' % item_id)

    def get_item_by_app_item_id(self, app_item_id, callback=None):
        return self._submit(callback, 'GET', '/app/%s/item/%s' % (self.app_id, app_item_id))

    def filter_items(self, filter_options, callback=None):
        """Filter the items of the app, filter_options is sent to Podio as it is."""
        return self._submit(callback, 'POST', '/item/app/%s/filter/' % self.app_id,
                            filter_options)

    def update_item(self, item_id, item_fields, callback=None):
        item = {'fields': item_fields}
        return self._submit(callback, 'PUT', '/item/%s' % item_id, item)

    addNewItem = add_new_item
    getItem = get_item
    getItemByAppItemId = get_item_by_app_item_id
    filterItems = filter_items
    updateItem = update_item


class UnconfiguredClient(object):
    """
    Stands in for a client that was never given credentials. Every operation
    fails with a ConfigurationError and never touches the network.
    """

    def _refuse(self, callback):
        log.warning(MISUSE_MESSAGE)
        future = Future()
        future.set_exception(ConfigurationError(MISUSE_MESSAGE))
        return _attach_callback(future, callback)

    def add_new_item(self, item_fields, callback=None):
        return self._refuse(callback)

    def get_item(self, item_id, callback=None):
        return self._refuse(callback)

    def get_item_by_app_item_id(self, app_item_id, callback=None):
        return self._refuse(callback)

    def filter_items(self, filter_options, callback=None):
        return self._refuse(callback)

    def update_item(self, item_id, item_fields, callback=None):
        return self._refuse(callback)

    addNewItem = add_new_item
    getItem = get_item
    getItemByAppItemId = get_item_by_app_item_id
    filterItems = filter_items
    updateItem = update_item
