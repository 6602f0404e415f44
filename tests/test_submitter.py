"""Tests for job creation and its error decoding."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from property_import import ConfigurationError, JobSubmitter, SubmissionError

from conftest import CREATE_URL


def _submit(queue, url: str = "https://example.com/listing/1", user_id: str = "user-1"):
    async def scenario():
        async with queue.client() as client:
            return await JobSubmitter(CREATE_URL, client=client).submit(url, user_id)

    return asyncio.run(scenario())


def test_submit_returns_job_id_and_sends_payload(queue) -> None:
    accepted = _submit(queue, url="  https://example.com/listing/1 ")
    assert accepted.job_id == "job-1"
    assert queue.posts == [{"text": "https://example.com/listing/1", "userId": "user-1"}]


def test_json_message_becomes_error(queue) -> None:
    queue.create_response = httpx.Response(500, json={"message": "boom"})
    with pytest.raises(SubmissionError) as exc_info:
        _submit(queue)
    assert str(exc_info.value) == "boom"
    assert exc_info.value.status_code == 500


def test_error_field_wins_over_message(queue) -> None:
    queue.create_response = httpx.Response(400, json={"error": "Invalid input", "message": "Content must be a non-empty string"})
    with pytest.raises(SubmissionError, match="^Invalid input$"):
        _submit(queue)


def test_raw_text_used_when_body_is_not_json(queue) -> None:
    queue.create_response = httpx.Response(502, content=b"Bad gateway")
    with pytest.raises(SubmissionError, match="^Bad gateway$"):
        _submit(queue)


def test_empty_body_falls_back_to_status_literal(queue) -> None:
    queue.create_response = httpx.Response(500, content=b"")
    with pytest.raises(SubmissionError) as exc_info:
        _submit(queue)
    assert str(exc_info.value) == "HTTP 500"


def test_success_status_other_than_202_is_an_error(queue) -> None:
    queue.create_response = httpx.Response(200, json={"jobId": "job-x"})
    with pytest.raises(SubmissionError):
        _submit(queue)


def test_accepted_without_job_id_is_an_error(queue) -> None:
    queue.create_response = httpx.Response(202, json={"ok": True})
    with pytest.raises(SubmissionError, match="No job ID returned"):
        _submit(queue)


def test_single_attempt_per_call(queue) -> None:
    queue.create_response = httpx.Response(503, json={"error": "busy"})
    with pytest.raises(SubmissionError):
        _submit(queue)
    assert len(queue.posts) == 1


def test_missing_endpoint_fails_before_any_request(queue) -> None:
    async def scenario():
        async with queue.client() as client:
            await JobSubmitter(None, client=client).submit("https://example.com/a", "user-1")

    with pytest.raises(ConfigurationError, match="IMPORT_ENDPOINT"):
        asyncio.run(scenario())
    assert queue.posts == []


@pytest.mark.parametrize("url,user_id", [("   ", "user-1"), ("https://example.com/a", "")])
def test_blank_input_is_rejected(queue, url: str, user_id: str) -> None:
    with pytest.raises(ValueError):
        _submit(queue, url=url, user_id=user_id)
    assert queue.posts == []


def test_network_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await JobSubmitter(CREATE_URL, client=client).submit("https://example.com/a", "user-1")

    with pytest.raises(SubmissionError) as exc_info:
        asyncio.run(scenario())
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
