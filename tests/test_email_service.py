import smtplib
from datetime import datetime

from app.services import email_service


def test_booking_request_html_escapes_user_text(monkeypatch):
    sent = {}
    monkeypatch.setattr(
        email_service,
        "_send_email_sync",
        lambda to_email, subject, html: sent.update(to=to_email, subject=subject, html=html),
    )

    email_service.send_booking_request_email(
        to_email="ada@example.com",
        instructor_name="Ada",
        student_name="<script>Sam</script>",
        session_date=datetime(2024, 3, 4, 10, 0),
        slot_time="10:00",
        duration="60 minutes",
        topic="Reentrancy & you",
    )

    assert sent["to"] == "ada@example.com"
    assert "New booking request" in sent["subject"]
    assert "&lt;script&gt;Sam&lt;/script&gt;" in sent["html"]
    assert "Reentrancy &amp; you" in sent["html"]
    assert "Monday, March 04, 2024 at 10:00 (60 minutes)" in sent["html"]


def test_accepted_email_includes_meeting_link(monkeypatch):
    sent = {}
    monkeypatch.setattr(
        email_service, "_send_email_sync", lambda to_email, subject, html: sent.update(html=html)
    )
    email_service.send_booking_accepted_email(
        to_email="sam@example.com",
        student_name="Sam",
        session_date=datetime(2024, 3, 4, 10, 0),
        slot_time="10:00",
        duration="60 minutes",
        meeting_link="https://yourvideomeeting.com/abc12345",
    )
    assert 'href="https://yourvideomeeting.com/abc12345"' in sent["html"]


def test_send_is_skipped_when_smtp_not_configured(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("SMTP should not be used")

    monkeypatch.setattr(smtplib, "SMTP", _fail)
    monkeypatch.setattr(email_service.settings, "smtp_host", "")
    email_service.send_booking_cancelled_email(
        to_email="sam@example.com",
        recipient_name="Sam",
        session_date=datetime(2024, 3, 4, 10, 0),
        slot_time="10:00",
        duration="60 minutes",
        reason="Declined by instructor",
    )
