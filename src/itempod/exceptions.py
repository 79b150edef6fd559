"""
Exception types raised by the itempod client.

Configuration problems are raised synchronously when a client is created.
Everything that goes wrong while talking to Podio is reported as a
:class:`PodioResponseError`, which always carries the HTTP status code and the
raw response body so callers can tell authentication failures from item
endpoint failures.
"""


class PodioError(Exception):
    """Base exception for all itempod errors."""


class ConfigurationError(PodioError, ValueError):
    """Raised when the client is missing required credentials."""


class PodioResponseError(PodioError):
    """An unsuccessful answer from Podio (or no answer at all)."""

    def __init__(self, status_code, response_raw):
        self.status_code = status_code
        self.response_raw = response_raw
        super(PodioResponseError, self).__init__(
            'Podio responded with status %s: %s' % (status_code, response_raw))

    def as_dict(self):
        return {'statusCode': self.status_code, 'responseRaw': self.response_raw}


class AuthenticationError(PodioResponseError):
    """The token endpoint did not hand out an access token."""


class ApiError(PodioResponseError):
    """An item endpoint answered with anything other than 200."""
