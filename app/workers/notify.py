"""Notification worker task — renders and delivers notification emails."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from app.core.config import Settings, get_settings
from app.services.notifier import NotificationEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    to: str
    subject: str
    text: str
    html: str


class SmtpMailer:
    """Blocking SMTP client; call ``send`` from a worker thread."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_ssl = settings.smtp_use_ssl
        self.sender = settings.email_from

    @contextmanager
    def _connection(self) -> Iterator[smtplib.SMTP]:
        if self.use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port)
        else:
            server = smtplib.SMTP(self.host, self.port)
            server.starttls()
        try:
            if self.username:
                server.login(self.username, self.password)
            yield server
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                logger.warning("Error closing SMTP connection", exc_info=True)

    def build_message(self, email: RenderedEmail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.attach(MIMEText(email.text, "plain"))
        msg.attach(MIMEText(email.html, "html"))
        return msg

    def send(self, email: RenderedEmail) -> None:
        msg = self.build_message(email)
        with self._connection() as server:
            server.sendmail(self.sender, [email.to], msg.as_string())


def render(event: NotificationEvent, payload: dict, settings: Settings) -> RenderedEmail:
    """Build the subject and bodies for one notification event."""
    to = payload["to"]
    match event:
        case NotificationEvent.ACCOUNT_VERIFY:
            link = f"{settings.verify_url_base.rstrip('/')}/{payload['token']}"
            subject = "Verify your email"
            text = (
                "Please verify your email address by opening the link below.\n"
                f"{link}\n\nThe link expires in {settings.email_token_expire_minutes} minutes."
            )
            html = (
                "<p>Please verify your email address.</p>"
                f'<p><a href="{escape(link)}">Verify email</a></p>'
            )
        case NotificationEvent.PASSWORD_RESET:
            link = f"{settings.reset_url_base.rstrip('/')}/{payload['token']}"
            subject = "Reset your password"
            text = (
                "A password reset was requested for your account.\n"
                f"{link}\n\nThe link expires in {settings.reset_token_expire_minutes} minutes."
            )
            html = (
                "<p>A password reset was requested for your account.</p>"
                f'<p><a href="{escape(link)}">Choose a new password</a></p>'
            )
        case NotificationEvent.PROJECT_CLOSED:
            project = payload.get("project_name") or "A project"
            manager = payload.get("manager_name") or "its manager"
            subject = f"Project closed: {project}"
            text = f"{project} was closed by {manager}. All of its tasks are now completed."
            html = f"<p><strong>{escape(project)}</strong> was closed by {escape(manager)}.</p>"
        case _:
            raise ValueError(f"Unknown notification event {event!r}")
    return RenderedEmail(to=to, subject=subject, text=text, html=html)


async def send_notification(ctx: dict, event: str, payload: dict) -> dict:
    """ARQ task: deliver one notification email.

    Failures are logged and reported in the job result; they are never
    retried into the request that enqueued them.
    """
    settings = get_settings()
    try:
        email = render(NotificationEvent(event), payload, settings)
    except (KeyError, ValueError):
        logger.exception("Malformed %s notification payload", event)
        return {"error": "bad_payload"}

    mailer: SmtpMailer = ctx.get("mailer") or SmtpMailer(settings)
    try:
        await asyncio.to_thread(mailer.send, email)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to deliver %s email to %s", event, email.to)
        return {"error": "delivery_failed"}

    logger.info("Delivered %s email to %s", event, email.to)
    return {"delivered": email.to}
