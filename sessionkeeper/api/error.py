import logging
from typing import Mapping, Optional

from fastapi import status

from sessionkeeper.app.errors import AUTHENTICATION_ERRORS, ErrorCode
from sessionkeeper.libs.result import Error

logger = logging.getLogger(__name__)

# The only authentication error a client ever sees
UNAUTHORIZED = Error("UNAUTHORIZED", "Authentication failed")


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(
        self, base_error: Error, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


def unauthorized(error: Error) -> ClientError:
    """Log the real reason and hide it behind the uniform 401."""
    if error.code == ErrorCode.REFRESH_REPLAY:
        logger.error("Authentication failed: %s (%s)", error.code, error.message)
    else:
        logger.warning("Authentication failed: %s (%s)", error.code, error.message)
    return ClientError(UNAUTHORIZED, status_code=status.HTTP_401_UNAUTHORIZED)


def error_to_exception(
    error: Error, status_map: Optional[Mapping[str, int]] = None
) -> Exception:
    """
    Translate a use case error into the exception the handlers render.

    Codes listed in status_map win over the defaults, so a route can report
    SESSION_NOT_FOUND as 404 instead of 401.
    """
    if status_map and error.code in status_map:
        return ClientError(error, status_code=status_map[error.code])
    if error.code in AUTHENTICATION_ERRORS:
        return unauthorized(error)
    if error.code == ErrorCode.FORBIDDEN:
        return ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
    if error.code == ErrorCode.STORE_UNAVAILABLE:
        return ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return ServerError(error)
