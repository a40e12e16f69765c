"""
Authentication Use Cases

Login, token refresh, token validation and logout.
"""

from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .validate_token_use_case import ValidateTokenUseCase
from .logout_use_case import LogoutUseCase
from .session_issuer import SessionPolicy, issue_session
from .dtos import LogoutResponse, TokenPair, UserContext

__all__ = [
    # Use Cases
    "LoginUseCase",
    "RefreshTokenUseCase",
    "ValidateTokenUseCase",
    "LogoutUseCase",
    # Session issuance
    "SessionPolicy",
    "issue_session",
    # DTOs
    "LogoutResponse",
    "TokenPair",
    "UserContext",
]
