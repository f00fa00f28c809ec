from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import NotificationKind
from .templates import render

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def notify(self, recipients: Sequence[str], kind: NotificationKind, payload: Mapping[str, Any]) -> bool:
        """Deliver one notification. True on success; failures may raise."""

        raise NotImplementedError

    def verify(self) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class SMTPConfig:
    host: str = "localhost"
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    from_address: str = "noreply@timetracker.com"
    timeout: float = 10.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SMTPConfig":
        return cls(
            host=data.get("host") or "localhost",
            port=int(data.get("port") or 587),
            user=data.get("user") or None,
            password=data.get("password") or None,
            use_tls=bool(data.get("use_tls", True)),
            use_ssl=bool(data.get("use_ssl", False)),
            from_address=data.get("from_address") or "noreply@timetracker.com",
            timeout=float(data.get("timeout") or 10.0),
        )


class SMTPEmailSender(EmailSender):
    def __init__(self, config: SMTPConfig):
        self._config = config

    def _connect(self) -> smtplib.SMTP:
        cfg = self._config
        if cfg.use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout)
        else:
            smtp = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)
            if cfg.use_tls:
                smtp.starttls()
        if cfg.user:
            smtp.login(cfg.user, cfg.password or "")
        return smtp

    def notify(self, recipients: Sequence[str], kind: NotificationKind, payload: Mapping[str, Any]) -> bool:
        if not recipients:
            return False

        subject, html = render(kind, payload)
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._config.from_address
        msg["To"] = ", ".join(recipients)
        msg.set_content(f"{subject}\n\nPlease view this message in an HTML-capable email client.")
        msg.add_alternative(html, subtype="html")

        with self._connect() as smtp:
            smtp.send_message(msg)
        logger.info("Sent %s notification to %s", NotificationKind(kind).value, ", ".join(recipients))
        return True

    def verify(self) -> bool:
        try:
            with self._connect() as smtp:
                smtp.noop()
        except (OSError, smtplib.SMTPException):
            logger.exception("Email configuration error")
            return False
        return True


class LoggingEmailSender(EmailSender):
    """Renders and logs notifications instead of sending them."""

    def notify(self, recipients: Sequence[str], kind: NotificationKind, payload: Mapping[str, Any]) -> bool:
        subject, _ = render(kind, payload)
        logger.info("Email disabled; would send %r to %s", subject, ", ".join(recipients))
        return True

    def verify(self) -> bool:
        return True
