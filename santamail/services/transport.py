from __future__ import annotations

import smtplib
import ssl
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from email.message import EmailMessage
from typing import ContextManager, Iterator, Optional, Protocol, TextIO

from loguru import logger

from santamail.core.config import MailSettings


class TransportError(RuntimeError):
    pass


class TransportUnavailableError(TransportError):
    pass


class SendError(TransportError):
    pass


@dataclass(frozen=True)
class OutgoingMessage:
    to: str
    subject: str
    body: str
    subtype: str = "html"


class MailSession(Protocol):
    def send(self, message: OutgoingMessage) -> None:
        ...


class MailTransport(Protocol):
    def dial(self) -> ContextManager[MailSession]:
        ...


def build_email(message: OutgoingMessage, from_address: str) -> EmailMessage:
    email = EmailMessage()
    email["From"] = from_address
    email["To"] = message.to
    email["Subject"] = message.subject
    email.set_content(message.body, subtype=message.subtype)
    return email


class SmtpSession:
    def __init__(self, client: smtplib.SMTP, from_address: str) -> None:
        self._client = client
        self._from_address = from_address

    def send(self, message: OutgoingMessage) -> None:
        try:
            self._client.send_message(build_email(message, self._from_address))
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            raise SendError(f"Failed to send email to {message.to}: {exc}") from exc


class SmtpTransport:
    def __init__(self, settings: MailSettings) -> None:
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        settings = self.settings
        context = ssl.create_default_context()
        if settings.use_ssl:
            client = smtplib.SMTP_SSL(settings.host, settings.port, context=context)
        else:
            client = smtplib.SMTP(settings.host, settings.port)
        try:
            if not settings.use_ssl:
                client.ehlo()
                if client.has_extn("starttls"):
                    client.starttls(context=context)
                    client.ehlo()
            if settings.user:
                client.login(settings.user, settings.password or "")
        except (smtplib.SMTPException, OSError):
            client.close()
            raise
        return client

    @contextmanager
    def dial(self) -> Iterator[SmtpSession]:
        settings = self.settings
        try:
            client = self._connect()
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportUnavailableError(
                f"Could not connect to {settings.host}:{settings.port}: {exc}"
            ) from exc

        logger.bind(host=settings.host, port=settings.port).info("SMTP connection open")
        try:
            yield SmtpSession(client, settings.from_address)
        finally:
            try:
                client.quit()
            except (smtplib.SMTPException, OSError) as exc:
                logger.warning("Failed to close SMTP connection cleanly: {error}", error=str(exc))
                client.close()
            logger.bind(host=settings.host, port=settings.port).info("SMTP connection closed")


class PreviewSession:
    def __init__(self, from_address: str, stream: TextIO) -> None:
        self._from_address = from_address
        self._stream = stream

    def send(self, message: OutgoingMessage) -> None:
        try:
            email = build_email(message, self._from_address)
        except ValueError as exc:
            raise SendError(f"Cannot build email to {message.to!r}: {exc}") from exc
        self._stream.write(email.as_string())
        self._stream.write("\n")


class PreviewTransport:
    """Writes messages to a stream instead of sending them."""

    def __init__(self, from_address: str = "santa@localhost", stream: Optional[TextIO] = None) -> None:
        self.from_address = from_address
        self.stream = stream

    @contextmanager
    def dial(self) -> Iterator[PreviewSession]:
        yield PreviewSession(self.from_address, self.stream or sys.stdout)
