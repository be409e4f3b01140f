# detailquote/notifications/mailer.py
"""Quote e-mail delivery through the Resend HTTP API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests
from flask import render_template

from detailquote.errors import NotificationError

RESEND_API_URL = "https://api.resend.com"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteEmail:
    recipient: str
    business_name: str
    customer_name: str
    vehicle_info: str
    total: str
    public_quote_url: str
    valid_until_display: Optional[str] = None
    reply_to: Optional[str] = None

    @property
    def subject(self) -> str:
        return f"Your Quote from {self.business_name}"

    def render_html(self) -> str:
        return render_template("emails/quote.html", email=self)

    def render_text(self) -> str:
        return render_template("emails/quote.txt", email=self)


class QuoteMailer(Protocol):
    def send_quote_email(self, email: QuoteEmail) -> Dict[str, Any]:
        ...


class ResendMailer:
    """Posts quote e-mails to Resend.  Does not retry; the caller decides."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        base_url: str = RESEND_API_URL,
        timeout: int = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        )

    def payload(self, email: QuoteEmail) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "from": self.sender,
            "to": [email.recipient],
            "subject": email.subject,
            "html": email.render_html(),
            "text": email.render_text(),
        }
        if email.reply_to:
            body["reply_to"] = email.reply_to
        return body

    def send_quote_email(self, email: QuoteEmail) -> Dict[str, Any]:
        url = f"{self.base_url}/emails"
        try:
            r = self.session.post(url, json=self.payload(email), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("quote email to %s failed: %s", email.recipient, e)
            raise NotificationError("Failed to send email") from e
        if r.status_code >= 400:
            message = _error_message(r) or "Failed to send email"
            logger.error(
                "quote email to %s rejected status=%s: %s",
                email.recipient,
                r.status_code,
                message,
            )
            raise NotificationError(message)
        logger.info("quote email sent to %s", email.recipient)
        return r.json()


def _error_message(r: requests.Response) -> Optional[str]:
    try:
        data = r.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("message") or data.get("error")
    return None
