from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
import logging
import smtplib
import ssl
import time

from app.core.config import get_settings
from app.services.outcomes import DeliveryOutcome

logger = logging.getLogger(__name__)

SMTP_NOT_CONFIGURED = "SMTP is not configured"
SMTP_AUTH_FAILED = "SMTP authentication failed"
SMTP_CONNECTION_FAILED = "SMTP connection failed"
SMTP_RATE_LIMITED = "SMTP sender rate limited"
SMTP_RECIPIENT_REJECTED = "SMTP recipient rejected"
SMTP_SENDER_REJECTED = "SMTP sender rejected"
SMTP_DATA_REJECTED = "SMTP data rejected"
SMTP_UNDELIVERABLE = "Unable to deliver email"


class EmailDeliveryError(RuntimeError):
    pass


@dataclass(frozen=True)
class _SmtpEndpoint:
    host: str
    port: int
    username: str | None
    password: str
    from_email: str
    from_name: str | None
    use_tls: bool
    use_ssl: bool

    @property
    def key(self) -> str:
        return f"{self.host}:{self.port}:{self.username or ''}:{self.from_email}"

    @property
    def sender(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email


class _EndpointFailed(Exception):
    """Stop trying the current endpoint and move on to the next one."""

    def __init__(self, reason: str, cause: Exception) -> None:
        super().__init__(reason)
        self.reason = reason
        self.cause = cause


# Endpoints that recently reported a sending-rate limit are skipped until this time.
_SMTP_ENDPOINT_COOLDOWN_UNTIL: dict[str, float] = {}


def _classify_smtp_data_error(exc: smtplib.SMTPDataError) -> str:
    smtp_error = exc.smtp_error
    if isinstance(smtp_error, bytes):
        message = smtp_error.decode("utf-8", errors="ignore").lower()
    else:
        message = str(smtp_error).lower()

    rate_markers = ("sending limit", "quota", "too many messages", "rate limit")
    if any(marker in message for marker in rate_markers):
        return SMTP_RATE_LIMITED
    if "recipient address rejected" in message or "recipient rejected" in message:
        return SMTP_RECIPIENT_REJECTED
    if "sender address rejected" in message or "sender rejected" in message:
        return SMTP_SENDER_REJECTED
    return SMTP_DATA_REJECTED


def _normalize_password(host: str | None, raw_password: str | None) -> str:
    password = raw_password or ""
    if host and host.lower() == "smtp.gmail.com":
        # Gmail app passwords are displayed in groups separated by spaces.
        return "".join(password.split())
    return password


def _endpoints_from_settings(settings) -> list[_SmtpEndpoint]:
    candidates: list[_SmtpEndpoint] = []
    if settings.smtp_host and settings.smtp_from_email:
        candidates.append(
            _SmtpEndpoint(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=_normalize_password(settings.smtp_host, settings.smtp_password),
                from_email=settings.smtp_from_email,
                from_name=settings.smtp_from_name,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
            )
        )
    backup_from = settings.smtp_backup_from_email or settings.smtp_from_email
    if settings.smtp_backup_host and backup_from:
        candidates.append(
            _SmtpEndpoint(
                host=settings.smtp_backup_host,
                port=settings.smtp_backup_port,
                username=settings.smtp_backup_username,
                password=_normalize_password(settings.smtp_backup_host, settings.smtp_backup_password),
                from_email=backup_from,
                from_name=settings.smtp_backup_from_name or settings.smtp_from_name,
                use_tls=settings.smtp_backup_use_tls,
                use_ssl=settings.smtp_backup_use_ssl,
            )
        )

    endpoints: list[_SmtpEndpoint] = []
    seen: set[str] = set()
    for candidate in candidates:
        if candidate.key not in seen:
            seen.add(candidate.key)
            endpoints.append(candidate)
    if not endpoints:
        raise EmailDeliveryError(SMTP_NOT_CONFIGURED)

    now = time.time()
    active = [endpoint for endpoint in endpoints if _SMTP_ENDPOINT_COOLDOWN_UNTIL.get(endpoint.key, 0.0) <= now]
    # When every endpoint is cooling down, try them anyway rather than fail outright.
    return active or endpoints


def _transport_variants(endpoint: _SmtpEndpoint) -> list[tuple[int, bool, bool]]:
    variants: list[tuple[int, bool, bool]] = [(endpoint.port, endpoint.use_tls, endpoint.use_ssl)]
    if endpoint.host.lower() == "smtp.gmail.com":
        alternate = (587, True, False) if endpoint.use_ssl else (465, False, True)
        if alternate not in variants:
            variants.append(alternate)
    return variants


def _is_connection_issue(exc: Exception) -> bool:
    return isinstance(
        exc,
        (
            smtplib.SMTPConnectError,
            smtplib.SMTPServerDisconnected,
            smtplib.SMTPHeloError,
            OSError,
            TimeoutError,
        ),
    )


def _build_message(endpoint: _SmtpEndpoint, *, to_email: str, subject: str, text_content: str, html_content: str | None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = endpoint.sender
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text_content)
    if html_content:
        message.add_alternative(html_content, subtype="html")
    return message


def _transmit(endpoint: _SmtpEndpoint, message: EmailMessage, *, port: int, use_tls: bool, use_ssl: bool, timeout: int) -> None:
    if use_ssl:
        with smtplib.SMTP_SSL(endpoint.host, port, timeout=timeout) as smtp:
            if endpoint.username:
                smtp.login(endpoint.username, endpoint.password)
            smtp.send_message(message)
        return

    with smtplib.SMTP(endpoint.host, port, timeout=timeout) as smtp:
        if use_tls:
            smtp.starttls(context=ssl.create_default_context())
        if endpoint.username:
            smtp.login(endpoint.username, endpoint.password)
        smtp.send_message(message)


def _send_through_endpoint(endpoint: _SmtpEndpoint, message: EmailMessage, settings) -> tuple[bool, str, Exception | None]:
    """Try every transport variant of one endpoint.

    Returns ``(delivered, last_reason, last_error)``. Raises ``_EndpointFailed`` when
    the endpoint rejected the message in a way retrying will not fix.
    """
    timeout = max(1, settings.smtp_timeout_seconds)
    retry_attempts = max(1, settings.smtp_retry_attempts)
    backoff = max(0.0, settings.smtp_retry_backoff_seconds)
    last_reason = SMTP_UNDELIVERABLE
    last_error: Exception | None = None

    for port, use_tls, use_ssl in _transport_variants(endpoint):
        for attempt in range(1, retry_attempts + 1):
            try:
                _transmit(endpoint, message, port=port, use_tls=use_tls, use_ssl=use_ssl, timeout=timeout)
                return True, "", None
            except smtplib.SMTPAuthenticationError as exc:  # pragma: no cover - transport-specific behavior
                raise _EndpointFailed(SMTP_AUTH_FAILED, exc) from exc
            except smtplib.SMTPDataError as exc:
                reason = _classify_smtp_data_error(exc)
                if reason == SMTP_RATE_LIMITED:
                    cooldown = max(0, settings.smtp_rate_limit_cooldown_seconds)
                    if cooldown:
                        _SMTP_ENDPOINT_COOLDOWN_UNTIL[endpoint.key] = time.time() + cooldown
                raise _EndpointFailed(reason, exc) from exc
            except smtplib.SMTPRecipientsRefused as exc:  # pragma: no cover - transport-specific behavior
                raise _EndpointFailed(SMTP_RECIPIENT_REJECTED, exc) from exc
            except smtplib.SMTPSenderRefused as exc:  # pragma: no cover - transport-specific behavior
                raise _EndpointFailed(SMTP_SENDER_REJECTED, exc) from exc
            except Exception as exc:  # pragma: no cover - transport-specific behavior
                last_error = exc
                if not _is_connection_issue(exc):
                    last_reason = SMTP_UNDELIVERABLE
                    break
                last_reason = SMTP_CONNECTION_FAILED
                if attempt < retry_attempts and backoff > 0:
                    time.sleep(backoff * attempt)
    return False, last_reason, last_error


def send_email(*, to_email: str, subject: str, text_content: str, html_content: str | None = None) -> None:
    settings = get_settings()
    endpoints = _endpoints_from_settings(settings)

    last_reason = SMTP_UNDELIVERABLE
    last_error: Exception | None = None
    for endpoint in endpoints:
        message = _build_message(
            endpoint,
            to_email=to_email,
            subject=subject,
            text_content=text_content,
            html_content=html_content,
        )
        try:
            delivered, reason, error = _send_through_endpoint(endpoint, message, settings)
        except _EndpointFailed as failure:
            logger.warning("SMTP endpoint %s:%s rejected mail: %s", endpoint.host, endpoint.port, failure.reason)
            last_reason, last_error = failure.reason, failure.cause
            continue
        if delivered:
            return
        logger.warning("SMTP endpoint %s:%s unavailable: %s", endpoint.host, endpoint.port, reason)
        last_reason, last_error = reason, error

    raise EmailDeliveryError(last_reason) from last_error


def deliver_email(*, to_email: str, subject: str, text_content: str, html_content: str | None = None) -> DeliveryOutcome:
    """Send an email without letting delivery problems escape to the caller."""
    try:
        send_email(to_email=to_email, subject=subject, text_content=text_content, html_content=html_content)
    except EmailDeliveryError as exc:
        logger.warning("Email %r to %s was not delivered: %s", subject, to_email, exc)
        return DeliveryOutcome.warning(f"Email could not be sent: {exc}")
    return DeliveryOutcome.success(f"Email sent to {to_email}")
