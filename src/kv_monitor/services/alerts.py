"""Alert delivery channels."""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Sequence

import httpx
import structlog

from kv_monitor.config import MailConfig, SmtpSettings
from kv_monitor.exceptions import DeliveryError

logger = structlog.get_logger(__name__)


class SmtpAlertSink:
    """Sends alert mails through an SMTP relay.

    smtplib is blocking, so delivery runs in a worker thread with the
    socket timeout from ``MailConfig``. Credentials come from the
    environment (``SmtpSettings``), never from the YAML config.
    """

    def __init__(self, config: MailConfig, credentials: SmtpSettings | None = None) -> None:
        self.config = config
        self.credentials = credentials

    def build_message(self, recipients: Sequence[str], subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(
            self.config.host,
            self.config.port,
            timeout=self.config.timeout_seconds,
        ) as smtp:
            if self.credentials is not None:
                if self.credentials.starttls:
                    smtp.starttls()
                if self.credentials.username:
                    smtp.login(
                        self.credentials.username,
                        self.credentials.password.get_secret_value(),
                    )
            smtp.send_message(message)

    async def notify(self, recipients: Sequence[str], subject: str, body: str) -> None:
        if not recipients:
            return
        message = self.build_message(recipients, subject, body)
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError("mail", str(e)) from e
        logger.info("Alert mail sent", recipients=list(recipients), subject=subject)


class WebhookAlertSink:
    """POSTs the alert body (JSON) to each recipient URL."""

    def __init__(self, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout = timeout
        self._client = client

    async def notify(self, recipients: Sequence[str], subject: str, body: str) -> None:
        if not recipients:
            return
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            for url in recipients:
                try:
                    response = await client.post(
                        url,
                        content=body,
                        headers={"Content-Type": "application/json", "X-Alert-Subject": subject},
                    )
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    raise DeliveryError("webhook", f"{url}: {e}") from e
                logger.info("Alert webhook sent", url=url, status=response.status_code)
        finally:
            if self._client is None:
                await client.aclose()
