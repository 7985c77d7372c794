# This project was developed with assistance from AI tools.
"""HTTP-level tests for the registry API."""

import pytest
from registry_db import DatabaseService, get_db_service
from registry_db.enums import UserRole

from tests.factories import COMPLETE_SECTIONS, PDF_BYTES, VALID_CERTIFICATE_NUMBER, make_user

REASON = "The scan is blurred and the number is unreadable"


async def _upload(api, application_id, belongs_to="owner", doc_type="aadhaar",
                  content_type="application/pdf"):
    return await api.post(
        f"/api/applications/{application_id}/documents",
        files={"file": (f"{belongs_to}-{doc_type}.pdf", PDF_BYTES, content_type)},
        data={"doc_type": doc_type, "belongs_to": belongs_to},
    )


async def _prepared(api, identity, owner):
    """Draft with all sections and required documents, submitted."""
    identity.user = owner
    application = (await api.post("/api/applications/draft")).json()
    await api.patch("/api/applications/me", json=COMPLETE_SECTIONS)
    uploads = [
        ("owner", "aadhaar"), ("owner", "tenth_certificate"),
        ("partner", "aadhaar"), ("partner", "voter_id"), ("joint", "photo"),
    ]
    documents = [(await _upload(api, application["id"], b, t)).json() for b, t in uploads]
    await api.post("/api/applications/me/submit")
    return application, documents


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_root(api):
    resp = await api.get("/")
    assert resp.status_code == 200
    assert "Marriage Registry" in resp.json()["message"]


@pytest.mark.asyncio
async def test_health_reports_database(api, engine):
    from registry_api.main import app

    app.dependency_overrides[get_db_service] = lambda: DatabaseService(engine)
    resp = await api.get("/health/")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok"}


@pytest.mark.asyncio
async def test_missing_application_is_problem_details(api):
    resp = await api.get("/api/applications/me")

    assert resp.status_code == 404
    body = resp.json()
    assert body["title"] == "Not Found"
    assert body["status"] == 404
    assert body["error_code"] == "NotFound"
    assert body["request_id"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(api):
    resp = await api.get("/api/applications/me", headers={"x-request-id": "req-123"})
    assert resp.json()["request_id"] == "req-123"


# ---------------------------------------------------------------------------
# Owner flow
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_owner_draft_progress_and_submit(api):
    created = await api.post("/api/applications/draft")
    assert created.status_code == 200
    application = created.json()
    assert application["status"] == "draft"
    assert application["version"] == 1

    patched = await api.patch(
        "/api/applications/me", json={"owner_details": COMPLETE_SECTIONS["owner_details"]},
    )
    assert patched.json()["progress_percent"] == 20

    progress = (await api.get("/api/applications/me/progress")).json()
    assert progress["step"] == 0
    assert progress["step_label"] == "Owner Details"
    assert len(progress["missing_documents"]) == 5

    submitted = await api.post("/api/applications/me/submit")
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "submitted"
    assert submitted.json()["progress_percent"] == 100

    again = await api.patch("/api/applications/me", json={"declarations": {"consent": True}})
    assert again.status_code == 409
    assert again.json()["error_code"] == "InvalidState"


@pytest.mark.asyncio
async def test_owner_cannot_write_verification_fields(api):
    await api.post("/api/applications/draft")

    resp = await api.patch(
        "/api/applications/me",
        json={"verified": True, "certificate_number": VALID_CERTIFICATE_NUMBER},
    )

    assert resp.status_code == 200
    assert resp.json()["verified"] is False
    assert resp.json()["certificate_number"] is None


@pytest.mark.asyncio
async def test_invalid_aadhaar_is_rejected(api):
    await api.post("/api/applications/draft")

    resp = await api.patch(
        "/api/applications/me", json={"owner_details": {"aadhaar_number": "1234"}},
    )

    assert resp.status_code == 422
    assert resp.json()["title"] == "Unprocessable Entity"


@pytest.mark.asyncio
async def test_reviewer_cannot_use_owner_routes(api, identity, reviewer):
    identity.user = reviewer
    resp = await api.post("/api/applications/draft")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_upload_list_url_delete(api, storage):
    application = (await api.post("/api/applications/draft")).json()

    uploaded = await _upload(api, application["id"])
    assert uploaded.status_code == 201
    document = uploaded.json()
    assert document["status"] == "pending"

    listing = (await api.get(f"/api/applications/{application['id']}/documents")).json()
    assert listing["count"] == 1

    url = (await api.get(f"/api/documents/{document['id']}/url")).json()
    assert url["url"].startswith("https://storage.test/documents/")
    assert url["expires_in"] == 3600

    deleted = await api.delete(f"/api/documents/{document['id']}")
    assert deleted.status_code == 204
    assert storage.blobs == {}
    assert (await api.get(f"/api/documents/{document['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_upload_bad_type_is_422(api, storage):
    application = (await api.post("/api/applications/draft")).json()

    resp = await _upload(api, application["id"], content_type="text/plain")

    assert resp.status_code == 422
    assert resp.json()["error_code"] == "ValidationFailed"


@pytest.mark.asyncio
async def test_other_owner_cannot_read_documents(api, identity, other_owner):
    application = (await api.post("/api/applications/draft")).json()
    document = (await _upload(api, application["id"])).json()

    identity.user = other_owner
    resp = await api.get(f"/api/documents/{document['id']}")

    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Reviewer flow
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_owner_cannot_use_admin_routes(api):
    resp = await api.get("/api/admin/applications")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_reject_replace_approve_cycle(
    api, identity, owner, reviewer, email_service, side_effect_queue,
):
    application, documents = await _prepared(api, identity, owner)
    target = documents[0]

    identity.user = reviewer
    short = await api.post(f"/api/admin/documents/{target['id']}/reject", json={"reason": "bad"})
    assert short.status_code == 422

    rejected = await api.post(
        f"/api/admin/documents/{target['id']}/reject",
        json={"reason": REASON, "notify_by_email": True},
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    await side_effect_queue.drain()
    email_service.send_rejection_email.assert_awaited_once()

    identity.user = owner
    unread = (await api.get("/api/notifications/unread-count")).json()
    assert unread["unread"] == 1
    notes = (await api.get("/api/notifications")).json()["data"]
    assert notes[0]["title"] == "Document Rejected: Groom's Aadhaar Card"

    replaced = await api.post(
        f"/api/documents/{target['id']}/replace",
        files={"file": ("clear.pdf", b"%PDF clear", "application/pdf")},
    )
    assert replaced.status_code == 200
    assert replaced.json()["id"] == target["id"]
    assert replaced.json()["status"] == "pending"
    assert replaced.json()["is_reuploaded"] is True

    assert (await api.post("/api/notifications/read-all")).json() == {"updated": 1}

    identity.user = reviewer
    approved = await api.post(f"/api/admin/documents/{target['id']}/approve")
    assert approved.json()["status"] == "approved"

    audit = (await api.get("/api/admin/audit", params={"resource_type": "document"})).json()
    assert [e["action"] for e in audit["data"]] == [
        "document_approved", "document_replaced", "document_rejected",
    ]


@pytest.mark.asyncio
async def test_review_verify_issue_and_public_lookup(api, identity, owner, reviewer, storage):
    application, _ = await _prepared(api, identity, owner)
    app_id = application["id"]

    identity.user = reviewer
    listing = (await api.get("/api/admin/applications", params={"status": "submitted"})).json()
    assert [a["id"] for a in listing["data"]] == [app_id]

    assert (await api.post(f"/api/admin/applications/{app_id}/review")).json()["status"] == (
        "under_review"
    )
    not_yet = await api.post(
        f"/api/admin/applications/{app_id}/certificate",
        files={"file": ("cert.pdf", PDF_BYTES, "application/pdf")},
    )
    assert not_yet.status_code == 409

    bad = await api.post(
        f"/api/admin/applications/{app_id}/verify",
        json={"certificate_number": "WB-1", "registration_date": "2025-02-01"},
    )
    assert bad.status_code == 422

    verified = await api.post(
        f"/api/admin/applications/{app_id}/verify",
        json={"certificate_number": VALID_CERTIFICATE_NUMBER, "registration_date": "2025-02-01"},
    )
    assert verified.json()["verified"] is True

    issued = await api.post(
        f"/api/admin/applications/{app_id}/certificate",
        files={"file": ("cert.pdf", PDF_BYTES, "application/pdf")},
    )
    assert issued.status_code == 201
    verification_id = issued.json()["verification_id"]

    approved = await api.post(f"/api/admin/applications/{app_id}/approve")
    assert approved.json()["status"] == "approved"
    closed = await api.post(f"/api/admin/applications/{app_id}/reject", json={"reason": REASON})
    assert closed.status_code == 409

    identity.user = make_user(UserRole.USER, "someone-else")
    public = (await api.get(f"/api/public/verify/{verification_id}")).json()
    assert public["certificate_number"] == VALID_CERTIFICATE_NUMBER
    assert public["owner_name"] == "Rahul Sen"

    by_number = await api.get(f"/api/public/certificates/{VALID_CERTIFICATE_NUMBER}")
    assert by_number.json()["verification_id"] == verification_id

    identity.user = owner
    mine = (await api.get("/api/certificates/me")).json()
    assert mine["verification_id"] == verification_id


@pytest.mark.asyncio
async def test_parse_certificate_number_route(api):
    resp = await api.get(f"/api/public/certificate-numbers/{VALID_CERTIFICATE_NUMBER}")

    assert resp.status_code == 200
    assert resp.json() == {
        "prefix": "WB-MSD-BRW",
        "book_number": "I",
        "volume": "1-C/2024",
        "serial": "16/2025",
        "page_number": "21",
    }


@pytest.mark.asyncio
async def test_reviewer_edit_is_audited_and_bumps_version(api, identity, owner, reviewer):
    application = (await api.post("/api/applications/draft")).json()

    identity.user = reviewer
    resp = await api.patch(
        f"/api/admin/applications/{application['id']}",
        json={"owner_details": {"first_name": "Rohit"}},
    )
    assert resp.status_code == 200
    assert resp.json()["version"] == 2

    audit = (await api.get("/api/admin/audit", params={"action": "application_updated"})).json()
    assert audit["pagination"]["total"] == 1
    assert audit["data"][0]["details"] == {"updated_sections": ["owner_details"]}
