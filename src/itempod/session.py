import os
import logging

from itempod.client import PodioClient
from itempod.exceptions import ConfigurationError

log = logging.getLogger(__name__)

ENVIRONMENT_VARIABLES = {
    'app_id': 'PODIO_APP_ID',
    'app_token': 'PODIO_APP_TOKEN',
    'client_id': 'PODIO_CLIENT_ID',
    'client_secret': 'PODIO_CLIENT_SECRET',
}


def credentials_from_environment(environ=None):
    """
    Try to get the app credentials from the environment variables PODIO_APP_ID, PODIO_APP_TOKEN,
    PODIO_CLIENT_ID and PODIO_CLIENT_SECRET.
    :return: a credentials dict or None if one of the variables is not set
    """
    if environ is None:
        environ = os.environ
    try:
        credentials = {field: environ[name] for field, name in ENVIRONMENT_VARIABLES.items()}
    except KeyError as e:
        log.info('Environment variable %s not set.', e.args[0])
        return None
    log.info('Loading Podio app credentials from environment.')
    return credentials


def create_client(credentials=None, robust=False, **kwargs):
    if credentials is None:
        credentials = credentials_from_environment()
    if credentials is None:
        raise ConfigurationError('No credentials given and %s are not all set.'
                                 % ', '.join(ENVIRONMENT_VARIABLES.values()))
    return PodioClient(credentials, robust=robust, **kwargs)
