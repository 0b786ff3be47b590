"""
Client for the external email-sending server.

Endpoints used:
- POST /api/send-email        single message (account test sends)
- POST /api/send-bulk-emails  bulk send with optional account rotation
"""

import logging

import httpx

from onehub.config import settings
from onehub.errors import UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "Email server"


class EmailServerClient:
    """Thin JSON client. Pass `client` to reuse a connection or mock transport."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.base_url = (base_url or settings.email_server_url).rstrip("/")
        self.api_key = settings.email_server_api_key if api_key is None else api_key
        self.timeout = timeout or settings.email_server_timeout
        self._client = client

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, headers=self._headers())
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"{SERVICE} {path} returned {e.response.status_code}: {message}")
            raise UpstreamError(SERVICE, message, e.response.status_code) from e
        except httpx.TimeoutException as e:
            logger.error(f"{SERVICE} {path} timed out")
            raise UpstreamError(SERVICE, "Request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{SERVICE} {path} connection error: {e}")
            raise UpstreamError(SERVICE, f"Connection error: {e}") from e
        except ValueError as e:
            raise UpstreamError(SERVICE, "Invalid JSON response") from e

    def send_email(self, to: str, subject: str, body: str, from_address: str | None = None) -> dict:
        payload = {"to": to, "subject": subject, "body": body}
        if from_address:
            payload["from"] = from_address
        return self._post("/api/send-email", payload)

    def send_bulk_emails(
        self,
        emails: list[dict],
        subject: str,
        body: str,
        emails_per_account: int | None = None,
        account_emails: list[str] | None = None,
        recipient_account_map: dict[str, str] | None = None,
        campaign_id: str | None = None,
    ) -> dict:
        """
        Send a bulk campaign.

        Args:
            emails: [{"email": ..., "name": ...}] recipients
            emails_per_account: Rotation size; None disables rotation
            account_emails: Sending mailboxes, in rotation order
            recipient_account_map: Recipient email -> sending mailbox override
            campaign_id: Local campaign id, echoed back by queued servers

        Returns:
            Either a queued ack ({"campaignId": ...}) or a synchronous result
            ({"success", "total", "sent", "failed", "details": [...]})
        """
        payload = {
            "emails": emails,
            "subject": subject,
            "body": body,
            "rotationConfig": {"emailsPerAccount": emails_per_account} if emails_per_account else None,
        }
        if account_emails:
            payload["accountEmails"] = account_emails
        if recipient_account_map:
            payload["recipientAccountMap"] = recipient_account_map
        if campaign_id:
            payload["campaignId"] = campaign_id

        logger.info(f"[{campaign_id}] Sending {len(emails)} emails via {SERVICE}")
        return self._post("/api/send-bulk-emails", payload)


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's {"error": ...} message over the bare status."""
    try:
        data = response.json()
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
    except ValueError:
        pass
    return f"HTTP {response.status_code}"
