"""Error taxonomy shared by all clients.

Every failure that leaves a client is a ClientError subclass, so callers can
catch a single type and map ``kind`` onto an API response.
"""

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    BACKEND_REJECTED = "backend_rejected"
    TRANSPORT = "transport"
    EMBEDDING = "embedding"
    SOURCE = "source"


class ClientError(Exception):
    """Base class for all client errors."""

    kind: ErrorKind = ErrorKind.BACKEND_REJECTED


class ConfigurationError(ClientError, ValueError):
    """Unknown backend type, missing credentials or an invalid config value. Fatal at setup."""

    kind = ErrorKind.CONFIGURATION


class CollectionNotFoundError(ClientError):
    """The backend answered 404 for the addressed collection or resource."""

    kind = ErrorKind.NOT_FOUND


class BackendRejectedError(ClientError):
    """The backend answered with a non-2xx status other than 404.

    Attributes:
        status_code: HTTP status returned by the backend.
        body:        Raw response text, for logging and diagnostics.
    """

    kind = ErrorKind.BACKEND_REJECTED

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BackendUnreachableError(ClientError):
    """Network or timeout failure while talking to a backend."""

    kind = ErrorKind.TRANSPORT


class EmbeddingFailureError(ClientError):
    """The embedding provider failed or returned unusable vectors."""

    kind = ErrorKind.EMBEDDING


class SourceLoadError(ClientError):
    """A loader could not read its content source."""

    kind = ErrorKind.SOURCE


def error_from_response(url: str, response: httpx.Response) -> ClientError:
    """Build the matching ClientError for a non-2xx response.

    Args:
        url (str): The requested URL, used in the message.
        response (httpx.Response): The failed response.

    Returns:
        ClientError: CollectionNotFoundError for 404, BackendRejectedError otherwise.
    """
    message = f"Request to {url} failed with status {response.status_code}"
    if response.status_code == 404:
        return CollectionNotFoundError(message)
    return BackendRejectedError(message, status_code=response.status_code, body=response.text)
