from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import logging
import os

from fastapi_mail import FastMail, MessageSchema, MessageType, ConnectionConfig
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import Settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates", "email")

env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(["html"]))


def format_address(address: Optional[dict]) -> str:
    if not address:
        return "Not provided"
    parts = [address.get(key) for key in ("address", "city", "state")]
    line = ", ".join(part for part in parts if part)
    if address.get("postal_code"):
        line = f"{line} - {address['postal_code']}" if line else address["postal_code"]
    return line or "Not provided"


class Notifier:
    """
    Email capability used by the OTP flow and order confirmations.

    Implementations only report success or failure; they never raise.
    """

    def __init__(self, settings: Settings):
        self.brand = settings.EMAIL_FROM_NAME
        self.expiry_minutes = settings.OTP_EXPIRY_MINUTES

    def render_otp(self, code: str) -> str:
        return env.get_template("otp_code.html").render(
            brand=self.brand,
            code=code,
            expiry_minutes=self.expiry_minutes,
            year=datetime.utcnow().year,
        )

    def render_order_confirmation(self, account, order, product=None) -> str:
        return env.get_template("order_confirmation.html").render(
            brand=self.brand,
            name=account.name,
            order=order,
            order_date=order.created_at.strftime("%B %d, %Y %H:%M"),
            product_name=product.name if product else "N/A",
            address_line=format_address(order.delivery_address),
            year=datetime.utcnow().year,
        )

    async def deliver(self, to_email: str, subject: str, html: str) -> bool:
        raise NotImplementedError

    async def send_otp(self, to_email: str, code: str) -> bool:
        """Deliver a one-time code. Returns False on any failure."""
        try:
            html = self.render_otp(code)
        except Exception as e:
            logger.error(f"Failed to build OTP email for {to_email}: {str(e)}")
            return False
        return await self.deliver(to_email, f"Your {self.brand} Verification Code", html)

    async def send_order_confirmation(self, account, order, product=None) -> bool:
        try:
            html = self.render_order_confirmation(account, order, product)
        except Exception as e:
            logger.error(f"Failed to build order confirmation for {order.order_id}: {str(e)}")
            return False
        return await self.deliver(account.email, f"Order Confirmation - {order.order_id}", html)


class FastMailNotifier(Notifier):
    """SMTP delivery; tries EMAIL_PORT first, then the other of 587 (STARTTLS) and 465 (SSL)."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.settings = settings

    def _connection_config(self, port: int, ssl: bool) -> ConnectionConfig:
        return ConnectionConfig(
            MAIL_USERNAME=self.settings.EMAIL_HOST_USER,
            MAIL_PASSWORD=self.settings.EMAIL_HOST_PASSWORD,
            MAIL_FROM=self.settings.EMAIL_FROM,
            MAIL_FROM_NAME=self.settings.EMAIL_FROM_NAME,
            MAIL_PORT=port,
            MAIL_SERVER=self.settings.EMAIL_HOST,
            MAIL_STARTTLS=not ssl,
            MAIL_SSL_TLS=ssl,
            USE_CREDENTIALS=True,
            VALIDATE_CERTS=True,
        )

    def _ports(self):
        primary = self.settings.EMAIL_PORT
        fallback = 587 if primary == 465 else 465
        return [(primary, primary == 465), (fallback, fallback == 465)]

    async def deliver(self, to_email: str, subject: str, html: str) -> bool:
        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            body=html,
            subtype=MessageType.html,
        )
        for port, ssl in self._ports():
            try:
                fm = FastMail(self._connection_config(port, ssl=ssl))
                await fm.send_message(message)
                logger.info(f"{subject} email sent to {to_email} via port {port}")
                return True
            except Exception as e:
                logger.warning(f"Failed to send {subject} via port {port}: {str(e)}")
        logger.error(f"❌ Failed to send {subject} email to {to_email} on every port")
        return False


@dataclass
class SentEmail:
    to_email: str
    subject: str
    html: str


class MockNotifier(Notifier):
    """Records rendered emails in memory; the code shows up in the logs only."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.outbox: List[SentEmail] = []
        self.last_codes = {}

    async def deliver(self, to_email: str, subject: str, html: str) -> bool:
        self.outbox.append(SentEmail(to_email=to_email, subject=subject, html=html))
        logger.info(f"📭 [MOCK EMAIL] {subject} -> {to_email}")
        return True

    async def send_otp(self, to_email: str, code: str) -> bool:
        self.last_codes[to_email] = code
        logger.info(f"📭 [MOCK OTP] {to_email}: {code}")
        return await super().send_otp(to_email, code)


def build_notifier(settings: Settings) -> Notifier:
    if settings.USE_MOCK_EMAIL:
        logger.warning("USE_MOCK_EMAIL is enabled: emails are recorded, not sent")
        return MockNotifier(settings)
    return FastMailNotifier(settings)
