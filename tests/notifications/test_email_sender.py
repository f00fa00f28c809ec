from __future__ import annotations

import smtplib

from src.timetracker.timetracker.core.enums import NotificationKind
from src.timetracker.timetracker.notifications.sender import LoggingEmailSender, SMTPConfig, SMTPEmailSender


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.messages.append(msg)

    def noop(self):
        return (250, b"OK")


def test_smtp_sender_builds_html_message(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    sender = SMTPEmailSender(SMTPConfig(host="mail.local", port=2525, user="bot", password="pw", from_address="hr@x.ca"))

    ok = sender.notify(["a@x.ca"], NotificationKind.TIMESHEET_APPROVED, {"total_hours": 40})

    assert ok is True
    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("mail.local", 2525)
    assert smtp.started_tls
    assert smtp.logged_in == ("bot", "pw")
    msg = smtp.messages[0]
    assert msg["Subject"] == "Timesheet Approved"
    assert msg["From"] == "hr@x.ca"
    assert msg["To"] == "a@x.ca"
    assert "40" in msg.get_body(preferencelist=("html",)).get_content()


def test_smtp_sender_skips_empty_recipients(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    assert SMTPEmailSender(SMTPConfig()).notify([], NotificationKind.TIMESHEET_APPROVED, {}) is False
    assert FakeSMTP.instances == []


def test_verify_reports_connection_failure(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(smtplib, "SMTP", refuse)

    assert SMTPEmailSender(SMTPConfig(use_tls=False)).verify() is False


def test_config_from_dict_defaults():
    cfg = SMTPConfig.from_dict({"host": "smtp.x", "port": "465", "use_ssl": True})

    assert cfg.port == 465
    assert cfg.use_ssl is True
    assert cfg.user is None
    assert cfg.from_address == "noreply@timetracker.com"


def test_logging_sender_always_succeeds():
    sender = LoggingEmailSender()

    assert sender.notify(["a@x.ca"], NotificationKind.VACATION_SUBMITTED, {}) is True
    assert sender.verify() is True
