"""
SessionKeeper Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    inactive = "inactive"


class Role(str, Enum):
    """Closed set of roles carried in the access token"""

    master = "master"
    company_admin = "company_admin"
    admin = "admin"
    manager = "manager"
    driver = "driver"
    helper = "helper"


class RevokedReason(str, Enum):
    """Why a session left the ACTIVE state"""

    logout = "logout"
    session_limit_exceeded = "session_limit_exceeded"
    user_requested_revoke_all = "user_requested_revoke_all"
    refresh_rotation = "refresh_rotation"
    refresh_replay_detected = "refresh_replay_detected"
    admin_revoked = "admin_revoked"


class AuditAction(str, Enum):
    """Lifecycle events handed to the audit sink"""

    login_succeeded = "login_succeeded"
    login_failed = "login_failed"
    logout = "logout"
    session_evicted = "session_evicted"
    session_revoked = "session_revoked"
    sessions_revoked = "sessions_revoked"
    token_refreshed = "token_refreshed"
    refresh_replay_detected = "refresh_replay_detected"
