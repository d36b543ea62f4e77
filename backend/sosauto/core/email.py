"""
backend/sosauto/core/email.py

Email Rendering and Delivery

Handles the transactional emails sent by the booking fan-out:
- New booking request (to the provider's owner)
- Booking status change (to the other party)

Templates are rendered with Jinja2 autoescaping so user supplied text
(names, issue descriptions, cancellation reasons) cannot inject markup.
Delivery goes through the SendGrid API client in a worker thread.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, To

from sosauto.core.config import settings
from sosauto.database.enums import BookingStatus

# Logger configuration
logger = logging.getLogger(__name__)

# Jinja2 template environment setup
jinja_env = Environment(
    loader=FileSystemLoader(settings.mail_templates_path),
    autoescape=select_autoescape(["html", "xml"]),
)

DATE_FORMAT = "%A, %d %B %Y"

STATUS_COLORS: dict[BookingStatus, str] = {
    BookingStatus.PENDING: "#71717a",
    BookingStatus.CONFIRMED: "#16a34a",
    BookingStatus.COMPLETED: "#2563eb",
    BookingStatus.CANCELLED: "#dc2626",
}


class OutgoingEmail(BaseModel):
    """A rendered message ready for the transport."""

    to: str
    subject: str
    html: str


class EmailSendError(Exception):
    """Raised when the mail provider rejects a message."""


class EmailSender(Protocol):
    """Anything able to deliver an OutgoingEmail."""

    async def send(self, email: OutgoingEmail) -> None: ...


# ---------------------------------------------------
# Template Rendering
# ---------------------------------------------------
def _render_template(template_name: str, context: dict[str, Any]) -> str:
    """
    Renders an email template using Jinja2 with provided context.
    Args:
        template_name (str): Name of the template file.
        context (dict[str, Any]): Variables to pass to the template.
    Returns:
        str: Rendered HTML content.
    """
    template = jinja_env.get_template(template_name)
    full_context = {
        "year": datetime.now().year,
        "company_name": settings.MAIL_FROM_NAME or settings.APP_NAME,
        "app_name": settings.APP_NAME,
        "base_url": str(settings.BASE_URL).rstrip("/"),
        **context,
    }
    rendered_content = template.render(full_context)
    logger.debug(f"[EMAIL] Rendered template: {template_name}")
    return rendered_content


def format_booking_date(value: datetime) -> str:
    """Formats a booking date as e.g. 'Monday, 20 October 2026'."""
    return value.strftime(DATE_FORMAT)


def render_new_booking_email(
    to_email: str,
    provider_name: str,
    client_name: str,
    client_phone: str,
    booking_date: datetime,
    issue: str,
) -> OutgoingEmail:
    """Builds the email telling a provider about a new booking request."""
    html = _render_template(
        "new_booking.html",
        {
            "provider_name": provider_name,
            "client_name": client_name,
            "client_phone": client_phone or "-",
            "booking_date": format_booking_date(booking_date),
            "issue": issue,
        },
    )
    return OutgoingEmail(
        to=to_email, subject=f"New Booking Request - {settings.APP_NAME}", html=html
    )


def render_booking_status_email(
    to_email: str,
    recipient_name: str,
    counterpart_name: str,
    status: BookingStatus,
    booking_date: datetime,
    cancellation_reason: str | None = None,
) -> OutgoingEmail:
    """Builds the email telling one party that the booking status changed."""
    status_label = status.value.capitalize()
    html = _render_template(
        "booking_status.html",
        {
            "recipient_name": recipient_name,
            "counterpart_name": counterpart_name,
            "status_label": status_label,
            "status_color": STATUS_COLORS.get(status, "#18181b"),
            "booking_date": format_booking_date(booking_date),
            "cancellation_reason": cancellation_reason,
        },
    )
    return OutgoingEmail(
        to=to_email, subject=f"Booking {status_label} - {settings.APP_NAME}", html=html
    )


# ---------------------------------------------------
# SendGrid Transport
# ---------------------------------------------------
class SendGridMailer:
    """
    Sends rendered emails with the SendGrid API.
    The SendGrid client is blocking, so each send runs in a worker thread.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        enabled: bool = True,
    ) -> None:
        self.enabled = enabled and bool(api_key)
        self.from_email = from_email
        self.from_name = from_name
        self.client = SendGridAPIClient(api_key) if self.enabled else None
        if not self.enabled:
            logger.warning("[EMAIL] Email sending disabled or SENDGRID_API_KEY missing.")

    def _send_sync(self, email: OutgoingEmail) -> None:
        message = Mail(
            from_email=From(email=self.from_email, name=self.from_name),
            to_emails=To(email.to),
            subject=email.subject,
            html_content=email.html,
        )
        response = self.client.send(message)  # type: ignore[union-attr]
        if response.status_code >= 300:
            raise EmailSendError(
                f"SendGrid API error: Status={response.status_code}, Body={response.body}"
            )
        logger.info(
            f"[EMAIL] Sent to {email.to} for subject '{email.subject}' with status code {response.status_code}"
        )

    async def send(self, email: OutgoingEmail) -> None:
        if not self.enabled:
            logger.warning(
                f"[EMAIL] Email sending disabled. Skipping send to {email.to} for subject '{email.subject}'"
            )
            return
        await asyncio.to_thread(self._send_sync, email)


def build_mailer() -> SendGridMailer:
    """Creates the application mailer from settings."""
    return SendGridMailer(
        api_key=settings.SENDGRID_API_KEY,
        from_email=str(settings.MAIL_FROM),
        from_name=settings.MAIL_FROM_NAME or settings.APP_NAME,
        enabled=settings.EMAILS_ENABLED,
    )
