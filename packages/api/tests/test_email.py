# This project was developed with assistance from AI tools.
"""Tests for the outbound email service."""

import json

import httpx
import pytest

from registry_api.services import email as email_mod
from registry_api.services.email import EmailService, document_type_label
from registry_api.services.errors import DependencyFailure


@pytest.fixture
def captured(monkeypatch):
    """Route EmailService's httpx client through a MockTransport."""
    requests = []
    state = {"status": 200}

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(state["status"], json={"id": "email-1"})

    real_client = httpx.AsyncClient

    def _client(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(_handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(email_mod.httpx, "AsyncClient", _client)
    return requests, state


def _service(api_key="re_test"):
    return EmailService(
        api_key=api_key,
        api_url="https://mail.test/emails",
        sender="Registry <noreply@registry.test>",
    )


def test_document_type_labels():
    assert document_type_label("aadhaar") == "Aadhaar Card"
    assert document_type_label("tenth_certificate") == "10th Certificate"
    assert document_type_label("unknown_kind") == "unknown_kind"


@pytest.mark.asyncio
async def test_rejection_email_payload(captured):
    requests, _ = captured

    sent = await _service().send_rejection_email(
        "rahul@example.com", "aadhaar", "scan.pdf", "Photo <unreadable>", "Rahul Sen",
    )

    assert sent is True
    (request,) = requests
    assert request.headers["authorization"] == "Bearer re_test"
    payload = json.loads(request.content)
    assert payload["to"] == ["rahul@example.com"]
    assert payload["subject"] == "Document Rejection Notice - Aadhaar Card"
    assert "Dear Rahul Sen" in payload["html"]
    assert "Photo &lt;unreadable&gt;" in payload["html"]


@pytest.mark.asyncio
async def test_display_name_falls_back_to_mailbox(captured):
    requests, _ = captured

    await _service().send_rejection_email("priya@example.com", "photo", "p.jpg", "Too dark")

    assert "Dear priya" in json.loads(requests[0].content)["html"]


@pytest.mark.asyncio
async def test_http_error_becomes_dependency_failure(captured):
    _, state = captured
    state["status"] = 500

    with pytest.raises(DependencyFailure):
        await _service().send_rejection_email("a@example.com", "photo", "p.jpg", "Too dark")


@pytest.mark.asyncio
async def test_disabled_service_skips_send(captured):
    requests, _ = captured

    sent = await _service(api_key=None).send_rejection_email(
        "a@example.com", "photo", "p.jpg", "Too dark",
    )

    assert sent is False
    assert requests == []
