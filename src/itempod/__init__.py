from itempod.client import PodioClient, UnconfiguredClient
from itempod.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    PodioError,
    PodioResponseError,
)
from itempod.podio_auth import AuthSession, Credentials
from itempod.session import create_client, credentials_from_environment

VERSION = '0.1.0'

# Calling the operations on the package instead of on a client only yields guidance.
_unconfigured = UnconfiguredClient()
add_new_item = _unconfigured.add_new_item
get_item = _unconfigured.get_item
get_item_by_app_item_id = _unconfigured.get_item_by_app_item_id
filter_items = _unconfigured.filter_items
update_item = _unconfigured.update_item

__all__ = [
    'ApiError',
    'AuthSession',
    'AuthenticationError',
    'ConfigurationError',
    'Credentials',
    'PodioClient',
    'PodioError',
    'PodioResponseError',
    'UnconfiguredClient',
    'create_client',
    'credentials_from_environment',
]
