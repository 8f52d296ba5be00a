"""MediGate entry point: ``python -m medigate.core.main`` or ``medigate``."""

from __future__ import annotations

import asyncio
import logging

from medigate.core.app import create_session
from medigate.core.config.settings import Settings, get_settings
from medigate.domains.care.session import SessionAggregator

logger = logging.getLogger(__name__)


async def _sign_in(session: SessionAggregator, settings: Settings) -> bool:
    if await session.start():
        logger.info("Restored session for %s", session.user.full_name or session.user.email)
        return True

    email = settings.medigate_demo_email
    password = settings.medigate_demo_password
    if not email or not password:
        logger.warning(
            "No session to restore. Set MEDIGATE_DEMO_EMAIL and MEDIGATE_DEMO_PASSWORD to sign in."
        )
        return False
    if not await session.login(email, password):
        logger.error("Sign-in failed for %s", email)
        return False
    logger.info("Signed in as %s", email)
    return True


def _log_summary(session: SessionAggregator) -> None:
    logger.info(
        "%d doctors, %d appointments (%d upcoming), %d medications, "
        "%d health records, %d notifications (%d unread), %d pharmacies, "
        "%d emergency contacts",
        len(session.doctors),
        len(session.appointments),
        len(session.upcoming_appointments()),
        len(session.medications),
        len(session.health_records),
        len(session.notifications),
        session.unread_notification_count,
        len(session.pharmacies),
        len(session.emergency_contacts),
    )


async def _main(settings: Settings) -> int:
    session = create_session(settings=settings)
    try:
        if not await _sign_in(session, settings):
            return 1
        _log_summary(session)
        return 0
    finally:
        await session.close()


def run() -> None:
    """Restore or open a session and log what was loaded."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.medigate_log_level.upper(), logging.INFO))
    raise SystemExit(asyncio.run(_main(settings)))


if __name__ == "__main__":
    run()
