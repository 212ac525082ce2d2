import logging
import re
from typing import List, Optional

import requests

from app.config import settings
from app.schemas.orders_schemas import OrderRead
from app.utils.template import render_template

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


class BrevoNotificationSender:
    """Order confirmation emails to the store inbox through the Brevo API."""

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str,
        recipients: List[str],
        currency: str = "TND",
        timeout: float = 10,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.recipients = recipients
        self.currency = currency
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config=settings) -> "BrevoNotificationSender":
        return cls(
            api_key=config.BREVO_API_KEY,
            sender_email=config.MAIL_FROM,
            sender_name=config.STORE_NAME,
            recipients=list(config.ADMIN_EMAILS),
            currency=config.CURRENCY,
        )

    def subject_for(self, order: OrderRead) -> str:
        return (
            f"New order {order.order_number} - {order.customer.city} - "
            f"{order.order_summary.total_price}{self.currency}"
        )

    def render(self, order: OrderRead) -> str:
        return render_template(
            "emails/order_confirmation.html",
            order=order,
            currency=self.currency,
            store_name=self.sender_name,
        )

    def send(self, order: OrderRead) -> bool:
        reply_to = order.customer.email if is_valid_email(order.customer.email) else None
        return self.send_email(self.recipients, self.subject_for(order), self.render(order), reply_to)

    def send_email(self, to: List[str], subject: str, html: str, reply_to: Optional[str] = None) -> bool:
        if not self.api_key:
            logger.warning("BREVO_API_KEY is not configured, email not sent")
            return False

        valid_emails = [e for e in to if is_valid_email(e)]
        if not valid_emails:
            logger.warning(f"No valid emails found: {to}")
            return False

        payload = {
            "sender": {
                "email": self.sender_email,
                "name": self.sender_name,
            },
            "to": [{"email": email} for email in valid_emails],
            "subject": subject,
            "htmlContent": html,
        }
        if reply_to:
            payload["replyTo"] = {"email": reply_to}

        headers = {
            "api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                BREVO_API_URL,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException:
            logger.exception("Brevo email exception")
            return False

        if response.status_code >= 400:
            logger.error(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"Brevo email sent to {valid_emails}")
        return True
