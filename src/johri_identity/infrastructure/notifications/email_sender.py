import asyncio
import logging
import smtplib
import ssl
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from johri_config.settings import Settings
from johri_identity.application.ports import NotificationSender
from johri_identity.domain.user.value_objects import Email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailTemplate:
    subject: str
    text: str
    html: str | None = None

    def render(self, **values: object) -> tuple[str, str | None]:
        html = self.html.format(**values) if self.html else None
        return self.text.format(**values), html


OTP_MAIL = MailTemplate(
    subject="Your verification code - Johri",
    text="""Hello {name},

Your verification code is: {code}

It expires in {minutes} minutes. If you didn't request this, you can safely
ignore this email.

-- Johri
""",
    html="""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: sans-serif; background-color: #faf7f2; padding: 20px;">
  <div style="max-width: 560px; margin: 0 auto; background: #ffffff; padding: 32px;">
    <h2 style="color: #7a5c1e; margin-top: 0;">Johri verification code</h2>
    <p>Hello {name},</p>
    <p>Use this code to continue. It expires in {minutes} minutes.</p>
    <p style="font-size: 30px; letter-spacing: 6px; text-align: center;">
      {code}
    </p>
    <p style="color: #8a8a8a; font-size: 13px;">
      If you didn't request this, you can safely ignore this email.
    </p>
  </div>
</body>
</html>
""",
)

CONFIRMATION_MAIL = MailTemplate(
    subject="Your password was changed - Johri",
    text="""Hello {name},

The password for your Johri account was just changed. If this wasn't you,
contact support immediately.

-- Johri
""",
)


class EmailNotificationSender(NotificationSender):
    """Delivers codes and password-change notices to shop owners by SMTP.

    smtplib blocks, so every delivery is pushed to a worker thread.
    """

    def __init__(self, settings: Settings):
        self._settings = settings

    async def send_code(
        self,
        destination: str,
        code: str,
        display_name: str | None = None,
    ) -> None:
        await self._deliver(
            destination,
            OTP_MAIL,
            name=display_name or "there",
            code=code,
            minutes=self._settings.otp_expiry_minutes,
        )

    async def send_confirmation(
        self,
        destination: str,
        display_name: str | None = None,
    ) -> None:
        await self._deliver(destination, CONFIRMATION_MAIL, name=display_name or "there")

    async def _deliver(
        self,
        destination: str,
        template: MailTemplate,
        **values: object,
    ) -> None:
        masked = Email(destination).masked
        if not self._settings.smtp_enabled:
            logger.warning("SMTP disabled, dropping '%s' to %s", template.subject, masked)
            return

        text, html = template.render(**values)
        message = self._build_message(destination, template.subject, text, html)
        await asyncio.to_thread(self._send, message, masked)

    def _build_message(
        self,
        destination: str,
        subject: str,
        text: str,
        html: str | None,
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        message["To"] = destination
        message.attach(MIMEText(text, "plain"))
        if html:
            message.attach(MIMEText(html, "html"))
        return message

    @contextmanager
    def _connect(self) -> Iterator[smtplib.SMTP]:
        settings = self._settings
        if not settings.smtp_host:
            msg = "SMTP host not configured"
            raise RuntimeError(msg)

        implicit_tls = settings.smtp_use_tls and not settings.smtp_starttls
        if implicit_tls:
            # Usually port 465
            client: smtplib.SMTP = smtplib.SMTP_SSL(
                settings.smtp_host,
                settings.smtp_port,
                context=ssl.create_default_context(),
            )
        else:
            client = smtplib.SMTP(settings.smtp_host, settings.smtp_port)

        with client as server:
            if settings.smtp_starttls and not implicit_tls:
                server.starttls(context=ssl.create_default_context())
            if settings.smtp_user:
                password = (
                    settings.smtp_password.get_secret_value()
                    if settings.smtp_password
                    else ""
                )
                server.login(settings.smtp_user, password)
            yield server

    def _send(self, message: MIMEMultipart, masked: str) -> None:
        try:
            with self._connect() as server:
                server.send_message(message)
        except (OSError, smtplib.SMTPException):
            logger.exception("Failed to send email to %s", masked)
            raise
        logger.info("Email sent to %s", masked)
