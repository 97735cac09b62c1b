import json
import logging
import smtplib

import httpx
import pytest

from leave_portal.core.config import Settings
from leave_portal.core.errors import NotificationError
from leave_portal.notifications.email import EmailService
from leave_portal.notifications.messages import EmailMessage

MESSAGE = EmailMessage(
    to="h@x.com",
    subject="HR Processing Required: Leave Request for Ada",
    body_text="Review for HR: https://portal.test/approve_hr.html?token=t",
    body_html='<a href="https://portal.test/approve_hr.html?token=t">Review for HR</a>',
    link="https://portal.test/approve_hr.html?token=t",
)


def _settings(**overrides) -> Settings:
    values = {
        "SMTP_USER": None,
        "SMTP_PASSWORD": None,
        "SENDGRID_API_KEY": None,
        "EMAIL_DRY_RUN": False,
    }
    values.update(overrides)
    return Settings(**values)


async def test_unconfigured_service_logs_instead_of_sending(caplog):
    service = EmailService(_settings())
    assert service.is_configured is False

    with caplog.at_level(logging.WARNING, logger="leave_portal.notifications.email"):
        await service.send(MESSAGE)

    assert "[DRY_RUN]" in caplog.text
    assert MESSAGE.link in caplog.text


async def test_sendgrid_payload():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(202)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        service = EmailService(_settings(SENDGRID_API_KEY="SG.key"), http_client=http_client)
        await service.send(MESSAGE)

    assert captured["url"] == "https://api.sendgrid.com/v3/mail/send"
    assert captured["auth"] == "Bearer SG.key"
    assert captured["body"]["personalizations"] == [{"to": [{"email": "h@x.com"}]}]
    assert captured["body"]["subject"] == MESSAGE.subject
    assert {c["type"] for c in captured["body"]["content"]} == {"text/plain", "text/html"}


async def test_sendgrid_rejection_raises_notification_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, text="bad key"))
    async with httpx.AsyncClient(transport=transport) as http_client:
        service = EmailService(_settings(SENDGRID_API_KEY="SG.key"), http_client=http_client)
        with pytest.raises(NotificationError):
            await service.send(MESSAGE)


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[tuple] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, sender, recipients, body):
        self.calls.append(("sendmail", sender, recipients))


async def test_smtp_delivery(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    service = EmailService(
        _settings(SMTP_HOST="smtp.test", SMTP_PORT=2525, SMTP_USER="mailer", SMTP_PASSWORD="pw")
    )

    await service.send(MESSAGE)

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.test", 2525)
    assert smtp.calls[0] == ("starttls",)
    assert smtp.calls[1] == ("login", "mailer", "pw")
    assert smtp.calls[2][0] == "sendmail"
    assert smtp.calls[2][2] == ["h@x.com"]


async def test_smtp_failure_raises_notification_error(monkeypatch):
    class BrokenSMTP(FakeSMTP):
        def sendmail(self, sender, recipients, body):
            raise smtplib.SMTPRecipientsRefused({recipients[0]: (550, b"no such user")})

    monkeypatch.setattr(smtplib, "SMTP", BrokenSMTP)
    service = EmailService(_settings(SMTP_USER="mailer", SMTP_PASSWORD="pw"))

    with pytest.raises(NotificationError):
        await service.send(MESSAGE)


async def test_dry_run_wins_over_configured_provider(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    service = EmailService(_settings(SMTP_USER="mailer", EMAIL_DRY_RUN=True))

    await service.send(MESSAGE)

    assert FakeSMTP.instances == []
