"""Email delivery for price drop alerts.

Two backends: SMTP (aiosmtplib) when SMTP_USER and SMTP_PASS are set,
otherwise a console backend that only logs. Sending never raises; callers
get a bool and the tracker treats email as best effort.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Optional

import aiosmtplib
import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from pricewatch.config import settings

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
DEFAULT_FROM = '"PriceWatch" <noreply@pricewatch.local>'


class EmailBackend(ABC):
    """Abstract base class for email backends."""

    @abstractmethod
    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_address: str,
    ) -> bool:
        """Send one message. Returns True on success, False otherwise."""


class ConsoleEmailBackend(EmailBackend):
    """Logs emails instead of sending them. Used when SMTP is not configured."""

    async def send_email(self, to, subject, html_body, text_body, from_address) -> bool:
        logger.info(
            "email_simulated",
            to=to,
            from_address=from_address,
            subject=subject,
            html_length=len(html_body),
        )
        return True


class SMTPEmailBackend(EmailBackend):
    """Sends emails through an SMTP server, with STARTTLS when enabled."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    async def send_email(self, to, subject, html_body, text_body, from_address) -> bool:
        try:
            message = MIMEMultipart("alternative")
            message["From"] = from_address
            message["To"] = to
            message["Subject"] = subject
            message.attach(MIMEText(text_body, "plain"))
            message.attach(MIMEText(html_body, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.use_tls,
            )
            logger.info("email_sent", to=to, subject=subject)
            return True
        except Exception as e:
            logger.error("email_send_failed", to=to, error=str(e))
            return False


def price_drop_subject(product_name: str) -> str:
    return f"🔥 Price Drop Alert: {product_name[:50]}..."


class EmailService:
    """Renders alert templates and hands them to the configured backend."""

    def __init__(self, backend: Optional[EmailBackend] = None):
        self.backend = backend or self._create_backend()
        self.from_address = settings.SMTP_FROM or DEFAULT_FROM
        self.client_url = settings.CLIENT_URL.rstrip("/")
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.logger = logger.bind(service="email_service", backend=type(self.backend).__name__)

    @staticmethod
    def _create_backend() -> EmailBackend:
        if not settings.email_enabled:
            logger.info("smtp_not_configured_using_console")
            return ConsoleEmailBackend()
        return SMTPEmailBackend(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            use_tls=settings.SMTP_USE_TLS,
        )

    async def send(self, to: str, subject: str, html: str) -> bool:
        """Send an HTML email. Never raises."""
        try:
            return await self.backend.send_email(
                to=to,
                subject=subject,
                html_body=html,
                text_body="Please view this email in an HTML-capable email client.",
                from_address=self.from_address,
            )
        except Exception as e:
            self.logger.error("email_backend_error", to=to, error=str(e))
            return False

    def render_price_drop(
        self,
        name: str,
        url: str,
        image_url: Optional[str],
        currency: Optional[str],
        old_price: Decimal,
        new_price: Decimal,
        target_price: Optional[Decimal],
    ) -> str:
        template = self.jinja_env.get_template("price_drop.html")
        return template.render(
            name=name,
            url=url,
            image_url=image_url,
            currency=currency or "EUR",
            old_price=f"{old_price:.2f}",
            new_price=f"{new_price:.2f}",
            savings=f"{old_price - new_price:.2f}",
            target_price=f"{target_price:.2f}" if target_price is not None else None,
            client_url=self.client_url,
        )

    async def send_price_drop(
        self,
        to: str,
        name: str,
        url: str,
        image_url: Optional[str],
        currency: Optional[str],
        old_price: Decimal,
        new_price: Decimal,
        target_price: Optional[Decimal],
    ) -> bool:
        """Render and send the price drop alert for one product."""
        try:
            html = self.render_price_drop(name, url, image_url, currency, old_price, new_price, target_price)
        except Exception as e:
            self.logger.error("email_render_failed", to=to, error=str(e))
            return False
        return await self.send(to, price_drop_subject(name), html)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get the global EmailService singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
