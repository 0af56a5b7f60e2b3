import json
import logging
from uuid import uuid4

import pytest
from unittest.mock import AsyncMock

from src.app.services.audit_logger import AuditLogger
from src.domain.entities import AuditEventType


@pytest.mark.asyncio
async def test_log_writes_structured_line(caplog):
    audit = AuditLogger()
    user_id = uuid4()

    with caplog.at_level(logging.INFO, logger="audit"):
        await audit.log(
            AuditEventType.password_reset_requested,
            user_id=user_id,
            email="user@example.com",
            ip="10.0.0.1",
            user_agent="pytest",
            request_id="req_1",
            metadata={"token_id": "abc"},
        )

    records = [r for r in caplog.records if r.name == "audit"]
    assert len(records) == 1
    message = records[0].getMessage()
    assert message.startswith("AUDIT_EVENT ")

    payload = json.loads(message[len("AUDIT_EVENT "):])
    assert payload["event"] == "PasswordResetRequested"
    assert payload["userId"] == str(user_id)
    assert payload["email"] == "user@example.com"
    assert payload["ip"] == "10.0.0.1"
    assert payload["userAgent"] == "pytest"
    assert payload["requestId"] == "req_1"
    assert payload["metadata"] == {"token_id": "abc"}
    assert payload["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_log_persists_through_repository():
    repository = AsyncMock()
    audit = AuditLogger(repository)

    event = await audit.log(AuditEventType.password_reset_failed, metadata={"reason": "x"})

    repository.create.assert_awaited_once_with(event)
    assert event.event == "PasswordResetFailed"
    assert event.event_metadata == {"reason": "x"}


@pytest.mark.asyncio
async def test_disabled_logger_skips_log_line_but_still_persists(caplog):
    repository = AsyncMock()
    audit = AuditLogger(repository, enabled=False)

    with caplog.at_level(logging.INFO, logger="audit"):
        await audit.log(AuditEventType.password_reset_locked)

    assert not [r for r in caplog.records if r.name == "audit"]
    repository.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_metadata_defaults_to_empty_dict():
    event = await AuditLogger().log(AuditEventType.password_reset_succeeded)

    assert event.event_metadata == {}
    assert event.user_id is None
