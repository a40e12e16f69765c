import logging

from sessionkeeper.app.services.credential_verifier import VerifiedIdentity
from sessionkeeper.app.services.events import INotifier, SessionMetadata

logger = logging.getLogger(__name__)


class LoggingNotifier(INotifier):
    """Writes eviction notices to the log instead of contacting the user."""

    async def notify_session_eviction(
        self, user: VerifiedIdentity, new_session: SessionMetadata, evicted_count: int
    ) -> None:
        logger.info(
            "Notify %s: new sign-in from %s (%s) ended %d older session(s)",
            user.email,
            new_session.ip_address or "unknown IP",
            new_session.user_agent or "unknown device",
            evicted_count,
        )
