"""
Error codes returned by use cases inside ``Error(code, message)``.

The API layer never forwards authentication codes to clients; they are
logged and collapsed into a single unauthorized response.
"""


class ErrorCode:
    # Credential verification
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"

    # Token codec
    TOKEN_MALFORMED = "TOKEN_MALFORMED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Session store checks
    TOKEN_REVOKED = "TOKEN_REVOKED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_TOKEN = "INVALID_TOKEN"
    REFRESH_REPLAY = "REFRESH_REPLAY"

    FORBIDDEN = "FORBIDDEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Persistence
    LIMIT_EVICTION_FAILURE = "LIMIT_EVICTION_FAILURE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


AUTHENTICATION_ERRORS = frozenset(
    {
        ErrorCode.INVALID_CREDENTIALS,
        ErrorCode.ACCOUNT_INACTIVE,
        ErrorCode.TOKEN_MALFORMED,
        ErrorCode.INVALID_SIGNATURE,
        ErrorCode.TOKEN_EXPIRED,
        ErrorCode.TOKEN_REVOKED,
        ErrorCode.SESSION_NOT_FOUND,
        ErrorCode.INVALID_TOKEN,
        ErrorCode.REFRESH_REPLAY,
    }
)
