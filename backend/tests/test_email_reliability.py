from __future__ import annotations

import smtplib
import time
from types import SimpleNamespace

import pytest

from app.services import email as email_service
from app.services.email import EmailDeliveryError

PRIMARY_KEY = "smtp.primary.test:587:committee:committee@example.com"


def _settings(**overrides):
    values = dict(
        smtp_host="smtp.primary.test",
        smtp_port=587,
        smtp_username="committee",
        smtp_password="secret",
        smtp_from_email="committee@example.com",
        smtp_from_name="Scientific Committee",
        smtp_use_tls=True,
        smtp_use_ssl=False,
        smtp_backup_host=None,
        smtp_backup_port=587,
        smtp_backup_username=None,
        smtp_backup_password=None,
        smtp_backup_from_email=None,
        smtp_backup_from_name="Scientific Committee (backup)",
        smtp_backup_use_tls=True,
        smtp_backup_use_ssl=False,
        smtp_retry_attempts=2,
        smtp_retry_backoff_seconds=0.0,
        smtp_rate_limit_cooldown_seconds=600,
        smtp_timeout_seconds=5,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _with_backup(**overrides):
    return _settings(
        smtp_backup_host="smtp.backup.test",
        smtp_backup_username="backup",
        smtp_backup_password="backup-secret",
        smtp_backup_from_email="backup@example.com",
        **overrides,
    )


@pytest.fixture(autouse=True)
def _reset_cooldowns():
    email_service._SMTP_ENDPOINT_COOLDOWN_UNTIL.clear()
    yield
    email_service._SMTP_ENDPOINT_COOLDOWN_UNTIL.clear()


@pytest.fixture()
def smtp_server(monkeypatch):
    """Install a fake SMTP transport; ``failures`` maps host -> list of exceptions to raise in order."""
    state = SimpleNamespace(delivered=[], attempts=[], failures={})

    class RecordingSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host
            self.port = port

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

        def starttls(self, context=None):
            return None

        def login(self, username, password):
            pending = state.failures.get(self.host)
            if pending and isinstance(pending[0], smtplib.SMTPAuthenticationError):
                raise pending.pop(0)

        def send_message(self, message):
            state.attempts.append(self.host)
            pending = state.failures.get(self.host)
            if pending:
                raise pending.pop(0)
            state.delivered.append((self.host, message["From"], message["To"], message["Subject"]))
            return {}

    monkeypatch.setattr(email_service.smtplib, "SMTP", RecordingSMTP)
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", RecordingSMTP)
    return state


def _use(monkeypatch, settings):
    monkeypatch.setattr(email_service, "get_settings", lambda: settings)


def test_invitation_fails_over_to_backup_when_primary_is_rate_limited(monkeypatch, smtp_server):
    _use(monkeypatch, _with_backup())
    smtp_server.failures["smtp.primary.test"] = [smtplib.SMTPDataError(550, b"Daily user sending limit exceeded")]

    email_service.send_email(
        to_email="dr.faculty@example.com",
        subject="Faculty Invitation",
        text_content="You have been invited to speak.",
    )

    assert smtp_server.attempts == ["smtp.primary.test", "smtp.backup.test"]
    host, sender, recipient, subject = smtp_server.delivered[0]
    assert host == "smtp.backup.test"
    assert "backup@example.com" in sender
    assert recipient == "dr.faculty@example.com"
    assert subject == "Faculty Invitation"
    assert email_service._SMTP_ENDPOINT_COOLDOWN_UNTIL[PRIMARY_KEY] > time.time()


def test_dropped_connection_is_retried_on_the_same_endpoint(monkeypatch, smtp_server):
    _use(monkeypatch, _settings())
    smtp_server.failures["smtp.primary.test"] = [smtplib.SMTPServerDisconnected("network drop")]

    email_service.send_email(
        to_email="dr.faculty@example.com",
        subject="Session Updated: Keynote",
        text_content="Please reconfirm.",
    )

    assert smtp_server.attempts == ["smtp.primary.test", "smtp.primary.test"]
    assert len(smtp_server.delivered) == 1


def test_rate_limit_on_every_endpoint_raises(monkeypatch, smtp_server):
    _use(monkeypatch, _with_backup())
    smtp_server.failures["smtp.primary.test"] = [smtplib.SMTPDataError(550, b"sending limit exceeded")]
    smtp_server.failures["smtp.backup.test"] = [smtplib.SMTPDataError(550, b"quota exceeded")]

    with pytest.raises(EmailDeliveryError) as exc_info:
        email_service.send_email(to_email="dr.faculty@example.com", subject="Faculty Invitation", text_content="body")

    assert str(exc_info.value) == "SMTP sender rate limited"
    assert smtp_server.delivered == []


def test_authentication_failure_is_reported(monkeypatch, smtp_server):
    _use(monkeypatch, _settings())
    smtp_server.failures["smtp.primary.test"] = [smtplib.SMTPAuthenticationError(535, b"bad credentials")]

    with pytest.raises(EmailDeliveryError) as exc_info:
        email_service.send_email(to_email="dr.faculty@example.com", subject="Faculty Invitation", text_content="body")

    assert str(exc_info.value) == "SMTP authentication failed"


def test_missing_smtp_host_means_not_configured(monkeypatch, smtp_server):
    _use(monkeypatch, _settings(smtp_host=None))

    with pytest.raises(EmailDeliveryError) as exc_info:
        email_service.send_email(to_email="dr.faculty@example.com", subject="Faculty Invitation", text_content="body")

    assert str(exc_info.value) == "SMTP is not configured"
    assert smtp_server.attempts == []


def test_deliver_email_reports_failure_as_warning(monkeypatch):
    _use(monkeypatch, _settings(smtp_host=None))

    outcome = email_service.deliver_email(
        to_email="dr.faculty@example.com",
        subject="Faculty Invitation",
        text_content="body",
    )

    assert outcome.ok is False
    assert outcome.message == "Email could not be sent: SMTP is not configured"


def test_deliver_email_reports_success(monkeypatch, smtp_server):
    _use(monkeypatch, _settings())

    outcome = email_service.deliver_email(
        to_email="dr.faculty@example.com",
        subject="Faculty Invitation",
        text_content="body",
        html_content="<p>body</p>",
    )

    assert outcome.ok is True
    assert outcome.message == "Email sent to dr.faculty@example.com"


def test_endpoint_in_cooldown_is_skipped(monkeypatch, smtp_server):
    _use(monkeypatch, _with_backup())
    email_service._SMTP_ENDPOINT_COOLDOWN_UNTIL[PRIMARY_KEY] = time.time() + 600

    outcome = email_service.deliver_email(to_email="dr.faculty@example.com", subject="Faculty Invitation", text_content="body")

    assert outcome.ok is True
    assert smtp_server.attempts == ["smtp.backup.test"]


def test_all_endpoints_cooling_down_are_still_tried(monkeypatch, smtp_server):
    _use(monkeypatch, _settings())
    email_service._SMTP_ENDPOINT_COOLDOWN_UNTIL[PRIMARY_KEY] = time.time() + 600

    email_service.send_email(to_email="dr.faculty@example.com", subject="Faculty Invitation", text_content="body")

    assert smtp_server.attempts == ["smtp.primary.test"]
