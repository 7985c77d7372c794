# This project was developed with assistance from AI tools.
"""Outbound email through a Resend-compatible HTTP API.

Exposes a singleton initialised at app startup via ``init_email_service()``.
Without an API key every send is skipped with a warning.
"""

import html
import logging

import httpx

from ..core.config import Settings
from .errors import DependencyFailure

logger = logging.getLogger(__name__)

DOCUMENT_TYPE_LABELS = {
    "aadhaar": "Aadhaar Card",
    "tenth_certificate": "10th Certificate",
    "voter_id": "Voter ID",
    "id": "ID Document",
    "photo": "Photo",
    "certificate": "Certificate",
    "other": "Other",
}


def document_type_label(doc_type: str) -> str:
    return DOCUMENT_TYPE_LABELS.get(doc_type, doc_type)


def _rejection_html(display_name: str, type_label: str, document_name: str, reason: str) -> str:
    esc = html.escape
    return (
        "<!DOCTYPE html><html><body>"
        "<h2>Document Rejection Notice</h2>"
        f"<p>Dear {esc(display_name)},</p>"
        "<p>We regret to inform you that your uploaded document has been rejected "
        "during the review process.</p>"
        f"<p><strong>Type:</strong> {esc(type_label)}<br>"
        f"<strong>File:</strong> {esc(document_name)}</p>"
        f"<p><strong>Reason for Rejection:</strong></p><p>{esc(reason)}</p>"
        "<p>Please log in to your account and upload a new document that addresses "
        "the issues mentioned above.</p>"
        "<p>This is an automated message. Please do not reply to this email.</p>"
        "</body></html>"
    )


class EmailService:
    """Sends transactional email via httpx."""

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        sender: str,
        timeout: float = 10.0,
    ):
        self._api_key = api_key
        self._api_url = api_url
        self._sender = sender
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def _send(self, recipient: str, subject: str, body_html: str) -> None:
        payload = {
            "from": self._sender,
            "to": [recipient],
            "subject": subject,
            "html": body_html,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DependencyFailure(f"Email delivery to {recipient} failed: {exc}") from exc

    async def send_rejection_email(
        self,
        recipient: str,
        document_type: str,
        document_name: str,
        reason: str,
        display_name: str | None = None,
    ) -> bool:
        """Send a document rejection notice. Returns False when email is disabled."""
        if not self.enabled:
            logger.warning("RESEND_API_KEY not configured; rejection email to %s skipped", recipient)
            return False

        type_label = document_type_label(document_type)
        name = display_name or recipient.split("@")[0]
        await self._send(
            recipient,
            f"Document Rejection Notice - {type_label}",
            _rejection_html(name, type_label, document_name, reason),
        )
        logger.info("Rejection email sent to %s (%s)", recipient, type_label)
        return True


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: EmailService | None = None


def init_email_service(cfg: Settings) -> EmailService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = EmailService(
        api_key=cfg.RESEND_API_KEY,
        api_url=cfg.RESEND_API_URL,
        sender=cfg.EMAIL_FROM,
        timeout=cfg.EMAIL_TIMEOUT_SECONDS,
    )
    if not _service.enabled:
        logger.warning("EmailService initialised without an API key; email is disabled")
    return _service


def get_email_service() -> EmailService:
    if _service is None:
        raise RuntimeError("EmailService not initialised -- call init_email_service() first")
    return _service
