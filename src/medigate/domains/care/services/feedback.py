"""Feedback service: offline-first submission with best-effort sync.

Submissions are written to the local feedback store first; that write
alone decides success. A background task then POSTs the submission to
the optional feedback collector and flips its stored status to
``synced`` when the collector accepts it.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import secrets
import sqlite3
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from medigate.core.api.backend import ApiBackend, ApiRequest
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.core.storage.database import DatabaseError
from medigate.core.storage.feedback_store import FeedbackStore
from medigate.domains.care.models import (
    DeviceInfo,
    FeedbackCategory,
    FeedbackStatus,
    FeedbackSubmission,
)

logger = logging.getLogger(__name__)

THANK_YOU_MESSAGE = "Thank you for your feedback!"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_STORE_ERRORS = (sqlite3.Error, DatabaseError)


class FeedbackValidationError(Exception):
    """Raised by ``FeedbackDraft.from_form`` for unusable form input."""


@dataclass(frozen=True)
class FeedbackDraft:
    """Validated user input for a feedback submission."""

    category: FeedbackCategory
    subject: str
    description: str
    rating: int | None = None
    email: str | None = None

    @classmethod
    def from_form(
        cls,
        category: str | FeedbackCategory,
        subject: str,
        description: str,
        rating: int | None = 0,
        email: str = "",
    ) -> FeedbackDraft:
        """Trim and validate raw form fields. A rating of 0 means no rating.

        Raises:
            FeedbackValidationError: On an empty subject or description, an
                unknown category, an email without ``@`` or a rating outside 1-5.
        """
        subject = (subject or "").strip()
        description = (description or "").strip()
        email = (email or "").strip()

        if not subject:
            raise FeedbackValidationError("Please enter a subject")
        if not description:
            raise FeedbackValidationError("Please describe your feedback")
        try:
            category = FeedbackCategory(category)
        except ValueError:
            raise FeedbackValidationError(f"Unknown feedback category: {category!r}") from None
        if email and "@" not in email:
            raise FeedbackValidationError("Please enter a valid email address")
        if rating and not 1 <= rating <= 5:
            raise FeedbackValidationError("Rating must be between 1 and 5")

        return cls(
            category=category,
            subject=subject,
            description=description,
            rating=rating or None,
            email=email or None,
        )


def new_feedback_id() -> str:
    """``fb_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"fb_{int(time.time() * 1000)}_{suffix}"


def current_device_info() -> DeviceInfo:
    return DeviceInfo(
        platform=platform.system().lower() or "unknown",
        version=platform.release() or "unknown",
        model=platform.machine() or "Unknown",
    )


class FeedbackService:
    """Local feedback history plus background delivery to a collector.

    Args:
        store: Local persistence for submissions.
        sync_backend: Backend for the feedback collector, or None to keep
            feedback local only.
    """

    def __init__(self, store: FeedbackStore, sync_backend: ApiBackend | None = None) -> None:
        self._store = store
        self._sync_backend = sync_backend
        self._pending: set[asyncio.Task] = set()

    async def submit_feedback(self, draft: FeedbackDraft) -> ApiResult:
        submission = FeedbackSubmission(
            id=new_feedback_id(),
            category=draft.category,
            subject=draft.subject,
            description=draft.description,
            rating=draft.rating,
            email=draft.email,
            device_info=current_device_info(),
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            status=FeedbackStatus.PENDING.value,
        )

        try:
            total = self._store.prepend(submission.to_dict())
        except _STORE_ERRORS as exc:
            logger.error("Error saving feedback %s: %s", submission.id, exc)
            return ApiResult.fail(f"Failed to submit feedback: {exc}")
        logger.info("Saved feedback %s locally (%d total)", submission.id, total)

        task = asyncio.ensure_future(self._sync(submission))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return ApiResult.ok({"id": submission.id}, message=THANK_YOU_MESSAGE)

    async def get_feedback_history(self) -> ApiResult:
        """All stored submissions, newest first."""
        try:
            items = self._store.load_all()
        except _STORE_ERRORS as exc:
            return ApiResult.fail(f"Failed to fetch feedback: {exc}")
        history = []
        for item in items:
            try:
                history.append(FeedbackSubmission.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable stored feedback: %s", exc)
        return ApiResult.ok(history)

    async def get_feedback_by_id(self, feedback_id: str) -> ApiResult:
        result = await self.get_feedback_history()
        if not result.success:
            return result
        for submission in result.data:
            if submission.id == feedback_id:
                return ApiResult.ok(submission)
        return ApiResult.fail("Feedback not found")

    async def delete_feedback(self, feedback_id: str) -> ApiResult:
        try:
            self._store.remove(feedback_id)
        except _STORE_ERRORS as exc:
            return ApiResult.fail(f"Failed to delete feedback: {exc}")
        return ApiResult.ok(None, message="Feedback deleted successfully")

    async def clear_all_feedback(self) -> ApiResult:
        try:
            self._store.clear()
        except _STORE_ERRORS as exc:
            return ApiResult.fail(f"Failed to clear feedback: {exc}")
        return ApiResult.ok(None, message="All feedback cleared")

    async def wait_for_sync(self) -> None:
        """Wait for every in-flight background sync to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_sync()
        if self._sync_backend is not None:
            await self._sync_backend.close()

    async def _sync(self, submission: FeedbackSubmission) -> None:
        if self._sync_backend is None:
            logger.info("Feedback sync URL not configured; %s kept locally only", submission.id)
            return

        request = ApiRequest(
            method="POST",
            path=Endpoint.FEEDBACK_SYNC.path,
            body=submission.to_dict(),
            endpoint=Endpoint.FEEDBACK_SYNC,
            headers={"Content-Type": "application/json"},
        )
        try:
            result = await self._sync_backend.send(request)
        except Exception as exc:
            logger.warning("Feedback sync error for %s: %s", submission.id, exc)
            return
        if not result.success:
            logger.warning("Feedback sync failed for %s: %s", submission.id, result.error)
            return

        try:
            self._store.update(submission.id, status=FeedbackStatus.SYNCED.value)
        except _STORE_ERRORS as exc:
            logger.warning("Could not mark feedback %s as synced: %s", submission.id, exc)
            return
        logger.info("Feedback %s synced", submission.id)
