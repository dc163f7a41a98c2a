import io
import smtplib

import pytest

from santamail.core.config import MailSettings
from santamail.services import transport as transport_module
from santamail.services.transport import (
    OutgoingMessage,
    PreviewTransport,
    SendError,
    SmtpTransport,
    TransportUnavailableError,
    build_email,
)


class FakeSMTP:
    instances = []
    refuse_connect = False
    refuse_login = False
    reject = set()

    def __init__(self, host, port, context=None):
        if self.refuse_connect:
            raise ConnectionRefusedError("connection refused")
        self.host = host
        self.port = port
        self.context = context
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def ehlo(self):
        self.calls.append("ehlo")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        if self.refuse_login:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")
        self.calls.append(("login", user, password))

    def send_message(self, message):
        if message["To"] in self.reject:
            raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"no such user")})
        self.sent.append(message)

    def quit(self):
        self.calls.append("quit")

    def close(self):
        self.calls.append("close")


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.refuse_connect = False
    FakeSMTP.refuse_login = False
    FakeSMTP.reject = set()
    monkeypatch.setattr(transport_module.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(transport_module.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def make_settings(port=587, use_ssl=False, user="santa", password="secret"):
    return MailSettings(
        host="smtp.test.org",
        port=port,
        user=user,
        password=password,
        from_address="santa@test.org",
        use_ssl=use_ssl,
    )


MESSAGE = OutgoingMessage(to="a@test.org", subject="Match", body="<p>Hi</p>", subtype="html")


def test_build_email_headers():
    email = build_email(MESSAGE, "santa@test.org")
    assert email["From"] == "santa@test.org"
    assert email["To"] == "a@test.org"
    assert email["Subject"] == "Match"
    assert email.get_content_subtype() == "html"


def test_smtp_session_sends_and_closes(fake_smtp):
    transport = SmtpTransport(make_settings())
    with transport.dial() as session:
        session.send(MESSAGE)

    client = fake_smtp.instances[0]
    assert client.calls == ["ehlo", "starttls", "ehlo", ("login", "santa", "secret"), "quit"]
    assert client.sent[0]["From"] == "santa@test.org"


def test_smtp_without_user_skips_login(fake_smtp):
    transport = SmtpTransport(make_settings(user=None, password=None))
    with transport.dial():
        pass
    assert not any(isinstance(call, tuple) for call in fake_smtp.instances[0].calls)


def test_smtp_ssl_skips_starttls(fake_smtp):
    transport = SmtpTransport(make_settings(port=465, use_ssl=True))
    with transport.dial():
        pass
    client = fake_smtp.instances[0]
    assert "starttls" not in client.calls
    assert client.context is not None


def test_smtp_connect_failure_is_unavailable(fake_smtp):
    fake_smtp.refuse_connect = True
    with pytest.raises(TransportUnavailableError):
        with SmtpTransport(make_settings()).dial():
            pass


def test_smtp_login_failure_is_unavailable(fake_smtp):
    fake_smtp.refuse_login = True
    with pytest.raises(TransportUnavailableError):
        with SmtpTransport(make_settings()).dial():
            pass
    assert fake_smtp.instances[0].calls[-1] == "close"


def test_smtp_rejected_recipient_is_send_error(fake_smtp):
    fake_smtp.reject = {"a@test.org"}
    with SmtpTransport(make_settings()).dial() as session:
        with pytest.raises(SendError):
            session.send(MESSAGE)
    assert fake_smtp.instances[0].calls[-1] == "quit"


def test_preview_transport_writes_messages():
    stream = io.StringIO()
    with PreviewTransport("santa@test.org", stream).dial() as session:
        session.send(MESSAGE)
    output = stream.getvalue()
    assert "To: a@test.org" in output
    assert "Subject: Match" in output


def test_smtp_header_injection_is_send_error(fake_smtp):
    message = OutgoingMessage(to="a@test.org\nBcc: z@test.org", subject="Match", body="Hi")
    with SmtpTransport(make_settings()).dial() as session:
        with pytest.raises(SendError):
            session.send(message)
    assert fake_smtp.instances[0].sent == []


def test_preview_header_injection_is_send_error():
    stream = io.StringIO()
    message = OutgoingMessage(to="a@test.org\nBcc: z@test.org", subject="Match", body="Hi")
    with PreviewTransport("santa@test.org", stream).dial() as session:
        with pytest.raises(SendError):
            session.send(message)
    assert stream.getvalue() == ""
