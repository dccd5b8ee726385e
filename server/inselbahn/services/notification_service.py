"""Customer email via SMTP: confirmations, cancellations and free-form messages."""

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings
from ..core.database import store_call
from ..core.exceptions import DependencyError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.booking import Booking
from ..models.tour_config import TourType

logger = logging.getLogger(__name__)

SIGNATURE = "Mit freundlichen Grüßen\nIhr Team der Inselbahn Rundfahrten Helgoland"
TOUR_LABELS = {
    TourType.UNTERLAND: "Unterland-Tour",
    TourType.PREMIUM: "Premium-Tour",
}


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    text: str
    kind: str = "custom"


class SmtpEmailSender:
    """
    Sends mail through an SMTP relay with STARTTLS.

    smtplib blocks, so delivery runs in a worker thread. Without host and
    credentials the sender is unconfigured and skips delivery.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or settings

    @property
    def configured(self) -> bool:
        return self.config.smtp_configured

    def _from_address(self) -> str:
        if (self.config.email_from or "").strip():
            return self.config.email_from.strip()
        return f"Inselbahn Helgoland <{self.config.smtp_user}>"

    def _build(self, email: OutgoingEmail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = self._from_address()
        msg["To"] = email.to
        msg.attach(MIMEText(email.text, "plain", "utf-8"))
        body = html.escape(email.text).replace("\n", "<br>")
        msg.attach(MIMEText(
            f"<div style='font-family: Arial, sans-serif; max-width: 600px'>{body}</div>",
            "html",
            "utf-8",
        ))
        return msg

    def _deliver(self, email: OutgoingEmail) -> None:
        msg = self._build(email)
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(self.config.smtp_user, self.config.smtp_password)
            server.sendmail(self._from_address(), [email.to], msg.as_string())

    async def send(self, email: OutgoingEmail) -> bool:
        """
        Deliver one email.

        Returns:
            True if handed to the relay, False if the sender is unconfigured

        Raises:
            DependencyError: If the relay refuses or cannot be reached
        """
        if not self.configured:
            logger.info("SMTP not configured; skipping email", extra={"kind": email.kind, "to": email.to})
            metrics_collector.record_email(email.kind, "skipped")
            return False
        try:
            await asyncio.to_thread(self._deliver, email)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Email delivery failed",
                extra={"kind": email.kind, "to": email.to, "error": str(e)},
                exc_info=True,
            )
            metrics_collector.record_email(email.kind, "failed")
            raise DependencyError(dependency="email transport", operation=f"email.{email.kind}") from e

        metrics_collector.record_email(email.kind, "sent")
        logger.info("Email sent", extra={"kind": email.kind, "to": email.to})
        return True


def _booking_summary(booking: Booking) -> str:
    tour = TOUR_LABELS[TourType(booking.tour_type)]
    return (
        f"Buchungscode: {booking.booking_code}\n"
        f"Tour: {tour}\n"
        f"Datum: {booking.tour_date:%d.%m.%Y}\n"
        f"Uhrzeit: {booking.tour_time:%H:%M}"
    )


class NotificationService:
    """Composes customer emails for bookings."""

    def __init__(self, db: AsyncSession, sender: SmtpEmailSender | None = None, config: Settings | None = None):
        self.db = db
        self.sender = sender or SmtpEmailSender()
        self.config = config or settings

    def has_real_email(self, booking: Booking) -> bool:
        """Walk-in sales carry a placeholder address that nobody reads."""
        email = (booking.customer_email or "").strip()
        return bool(email) and email.lower() != self.config.walk_in_customer_email.lower()

    async def send_booking_confirmation(self, booking: Booking) -> bool:
        """Best-effort confirmation; failures are logged, never raised."""
        if not self.has_real_email(booking):
            return False
        text = (
            f"Sehr geehrte/r {booking.customer_name},\n\n"
            "vielen Dank für Ihre Buchung.\n\n"
            f"{_booking_summary(booking)}\n"
            f"Erwachsene: {booking.adults}, Kinder: {booking.children}, Kleinkinder: {booking.infants}\n"
            f"Gesamtbetrag: {booking.total_amount / 100:.2f} EUR\n\n"
            f"{SIGNATURE}"
        )
        return await self._send_best_effort(OutgoingEmail(
            to=booking.customer_email,
            subject=f"Buchungsbestätigung {booking.booking_code} - Inselbahn Rundfahrten Helgoland",
            text=text,
            kind="confirmation",
        ))

    async def send_cancellation_notice(self, booking: Booking, message: str | None = None) -> bool:
        """Best-effort cancellation notice with an optional personal message."""
        if not self.has_real_email(booking):
            return False
        text = (
            f"Sehr geehrte/r {booking.customer_name},\n\n"
            f"{message or 'Ihre Buchung wurde storniert.'}\n\n"
            f"Stornierte Buchung:\n{_booking_summary(booking)}\n\n"
            "Bei Fragen stehen wir Ihnen gerne zur Verfügung.\n\n"
            f"{SIGNATURE}"
        )
        return await self._send_best_effort(OutgoingEmail(
            to=booking.customer_email,
            subject="Stornierung Ihrer Buchung - Inselbahn Rundfahrten Helgoland",
            text=text,
            kind="cancellation",
        ))

    async def _send_best_effort(self, email: OutgoingEmail) -> bool:
        try:
            return await self.sender.send(email)
        except DependencyError:
            logger.warning("Best-effort email not delivered", extra={"kind": email.kind, "to": email.to})
            return False

    @store_call("notification.send_custom_email")
    async def send_custom_email(self, booking_id: str, subject: str, message: str) -> bool:
        """
        Send a free-form message to the customer of a booking.

        Raises:
            NotFoundError: If the booking does not exist
            ValidationError: If the booking has no usable email address
            DependencyError: If the transport fails
        """
        booking = await self._get_booking(booking_id)
        if not self.has_real_email(booking):
            raise ValidationError(
                detail="The booking has no customer email address",
                errors={"booking_id": booking_id},
            )
        text = (
            f"Sehr geehrte/r {booking.customer_name},\n\n"
            f"{message}\n\n"
            f"Ihre Buchungsdetails:\n{_booking_summary(booking)}\n\n"
            f"{SIGNATURE}"
        )
        return await self.sender.send(OutgoingEmail(
            to=booking.customer_email,
            subject=subject,
            text=text,
            kind="custom",
        ))

    async def _get_booking(self, booking_id: str) -> Booking:
        try:
            key = UUID(booking_id)
        except (TypeError, ValueError):
            raise NotFoundError(resource_type="booking") from None
        result = await self.db.execute(select(Booking).where(Booking.id == key))
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(resource_type="booking")
        return booking
