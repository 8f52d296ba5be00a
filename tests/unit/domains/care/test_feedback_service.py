"""Tests for feedback validation, offline persistence and background sync."""

from __future__ import annotations

import asyncio
import re

import pytest

from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.core.storage.database import LocalDatabase
from medigate.core.storage.feedback_store import FeedbackStore
from medigate.domains.care.models import FeedbackCategory, FeedbackStatus
from medigate.domains.care.services.feedback import (
    THANK_YOU_MESSAGE,
    FeedbackDraft,
    FeedbackService,
    FeedbackValidationError,
    new_feedback_id,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _draft(**overrides) -> FeedbackDraft:
    fields = {"category": "bug", "subject": "App crashed", "description": "On the pharmacy tab"}
    fields.update(overrides)
    return FeedbackDraft.from_form(**fields)


def _submit(service: FeedbackService, draft: FeedbackDraft) -> ApiResult:
    async def scenario():
        result = await service.submit_feedback(draft)
        await service.wait_for_sync()
        return result

    return _run(scenario())


class TestDraftValidation:
    def test_fields_trimmed(self):
        draft = FeedbackDraft.from_form("feature", "  Dark mode  ", "\tPlease\n", rating=5, email=" a@b.co ")
        assert draft.subject == "Dark mode"
        assert draft.description == "Please"
        assert draft.email == "a@b.co"
        assert draft.rating == 5
        assert draft.category is FeedbackCategory.FEATURE

    def test_zero_rating_means_none(self):
        assert _draft(rating=0).rating is None
        assert _draft(rating=None).rating is None

    def test_empty_email_means_none(self):
        assert _draft(email="   ").email is None

    @pytest.mark.parametrize(
        "overrides,match",
        [
            ({"subject": "   "}, "subject"),
            ({"description": ""}, "describe"),
            ({"email": "not-an-email"}, "email"),
            ({"rating": 6}, "Rating"),
            ({"rating": -1}, "Rating"),
            ({"category": "praise"}, "category"),
        ],
    )
    def test_invalid_input_rejected(self, overrides, match):
        with pytest.raises(FeedbackValidationError, match=match):
            _draft(**overrides)


class TestSubmit:
    def test_id_format(self):
        assert re.fullmatch(r"fb_\d+_[0-9a-z]{9}", new_feedback_id())

    def test_submit_persists_pending(self, feedback_service: FeedbackService):
        result = _submit(feedback_service, _draft(rating=4))
        assert result.success is True
        assert result.message == THANK_YOU_MESSAGE
        assert re.fullmatch(r"fb_\d+_[0-9a-z]{9}", result.data["id"])

        stored = _run(feedback_service.get_feedback_by_id(result.data["id"])).data
        assert stored.status == FeedbackStatus.PENDING.value
        assert stored.rating == 4
        assert stored.timestamp.endswith("Z")
        assert stored.device_info.platform

    def test_history_newest_first(self, feedback_service: FeedbackService):
        first = _submit(feedback_service, _draft(subject="First")).data["id"]
        second = _submit(feedback_service, _draft(subject="Second")).data["id"]
        history = _run(feedback_service.get_feedback_history()).data
        assert [f.id for f in history] == [second, first]

    def test_storage_failure_is_reported(self):
        db = LocalDatabase(":memory:")
        db.initialize()
        db.close()
        service = FeedbackService(FeedbackStore(db))
        result = _submit(service, _draft())
        assert result.success is False
        assert result.error.startswith("Failed to submit feedback")


class TestSync:
    def test_accepted_sync_marks_synced(self, db: LocalDatabase, fake_backend):
        service = FeedbackService(FeedbackStore(db), sync_backend=fake_backend)
        feedback_id = _submit(service, _draft()).data["id"]

        request = fake_backend.requests[0]
        assert request.method == "POST"
        assert request.path == "/api/feedback"
        assert request.endpoint is Endpoint.FEEDBACK_SYNC
        assert request.body["id"] == feedback_id
        assert request.body["status"] == "pending"

        stored = _run(service.get_feedback_by_id(feedback_id)).data
        assert stored.status == FeedbackStatus.SYNCED.value

    def test_rejected_sync_stays_pending(self, db: LocalDatabase, fake_backend):
        fake_backend.default = ApiResult.fail("Request failed", status_code=503)
        service = FeedbackService(FeedbackStore(db), sync_backend=fake_backend)
        result = _submit(service, _draft())
        assert result.success is True
        stored = _run(service.get_feedback_by_id(result.data["id"])).data
        assert stored.status == FeedbackStatus.PENDING.value

    def test_offline_sync_error_is_swallowed(self, db: LocalDatabase, fake_backend):
        fake_backend.responses[Endpoint.FEEDBACK_SYNC] = ConnectionError("offline")
        service = FeedbackService(FeedbackStore(db), sync_backend=fake_backend)
        result = _submit(service, _draft())
        assert result.success is True
        stored = _run(service.get_feedback_by_id(result.data["id"])).data
        assert stored.status == FeedbackStatus.PENDING.value

    def test_close_closes_sync_backend(self, db: LocalDatabase, fake_backend):
        service = FeedbackService(FeedbackStore(db), sync_backend=fake_backend)
        _run(service.close())
        assert fake_backend.closed is True


class TestManagement:
    def test_get_missing(self, feedback_service: FeedbackService):
        result = _run(feedback_service.get_feedback_by_id("fb_0_missing00"))
        assert result.success is False
        assert result.error == "Feedback not found"

    def test_delete(self, feedback_service: FeedbackService):
        feedback_id = _submit(feedback_service, _draft()).data["id"]
        assert _run(feedback_service.delete_feedback(feedback_id)).success is True
        assert _run(feedback_service.get_feedback_history()).data == []

    def test_clear_all(self, feedback_service: FeedbackService):
        _submit(feedback_service, _draft())
        _submit(feedback_service, _draft())
        result = _run(feedback_service.clear_all_feedback())
        assert result.message == "All feedback cleared"
        assert _run(feedback_service.get_feedback_history()).data == []

    def test_corrupt_entries_skipped(self, feedback_service: FeedbackService, db: LocalDatabase):
        FeedbackStore(db).save_all([{"no": "id"}, {"id": "fb_1_x", "category": "other"}])
        history = _run(feedback_service.get_feedback_history()).data
        assert [f.id for f in history] == ["fb_1_x"]
