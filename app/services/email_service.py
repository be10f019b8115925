import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from datetime import datetime

from app.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _session_display(session_date: datetime, slot_time: str, duration: str) -> str:
    return f"{session_date.strftime('%A, %B %d, %Y')} at {slot_time} ({duration})"


def build_booking_email_html(heading: str, greeting: str, rows: list[tuple[str, str]], footer_note: str = "") -> str:
    """Build a simple HTML card. Row values must already be escaped."""
    rows_html = "".join(
        f'<p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">{label}</p>'
        f'<p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{value}</p>'
        for label, value in rows
    )
    note_html = f'<p style="margin:24px 0 0 0;font-size:14px;color:#374151;">{footer_note}</p>' if footer_note else ""
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{heading}</title>
</head>
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background-color:#f3f4f6;">
  <div style="max-width:600px;margin:40px auto;background:#ffffff;border-radius:12px;padding:32px;">
    <h2 style="margin:0 0 8px 0;color:#2563eb;">{heading}</h2>
    <p style="margin:0 0 16px 0;font-size:15px;color:#6b7280;">{greeting}</p>
    {rows_html}
    {note_html}
    <p style="margin:32px 0 0 0;font-size:13px;color:#6b7280;">{settings.site_name} &nbsp;·&nbsp; {settings.contact_email}</p>
  </div>
</body>
</html>
"""


def send_booking_request_email(
    to_email: str,
    instructor_name: str | None,
    student_name: str | None,
    session_date: datetime,
    slot_time: str,
    duration: str,
    topic: str,
    message: str | None = None,
) -> None:
    """Tell the instructor a student has requested a session."""
    rows = [
        ("Student", _html_escape(student_name or "A student")),
        ("When", _session_display(session_date, slot_time, duration)),
        ("Topic", _html_escape(topic)),
    ]
    if message:
        rows.append(("Message", _html_escape(message)))
    html = build_booking_email_html(
        "New Booking Request",
        f"Hi {_html_escape(instructor_name or 'there')}, you have a new session request.",
        rows,
        "Accept or decline it from your bookings dashboard.",
    )
    _send_email_sync(to_email, f"{settings.site_name} – New booking request", html)


def send_booking_confirmed_email(
    to_email: str,
    instructor_name: str | None,
    student_name: str | None,
    session_date: datetime,
    slot_time: str,
    duration: str,
    topic: str,
    meeting_link: str,
) -> None:
    """Tell the instructor an auto-accepted session is already on their calendar."""
    rows = [
        ("Student", _html_escape(student_name or "A student")),
        ("When", _session_display(session_date, slot_time, duration)),
        ("Topic", _html_escape(topic)),
        ("Meeting link", f'<a href="{_html_escape(meeting_link)}">{_html_escape(meeting_link)}</a>'),
    ]
    html = build_booking_email_html(
        "New Session Booked",
        f"Hi {_html_escape(instructor_name or 'there')}, a session was booked and confirmed automatically.",
        rows,
    )
    _send_email_sync(to_email, f"{settings.site_name} – New session booked", html)


def send_booking_accepted_email(
    to_email: str,
    student_name: str | None,
    session_date: datetime,
    slot_time: str,
    duration: str,
    meeting_link: str,
    instructor_message: str | None = None,
) -> None:
    rows = [
        ("When", _session_display(session_date, slot_time, duration)),
        ("Meeting link", f'<a href="{_html_escape(meeting_link)}">{_html_escape(meeting_link)}</a>'),
    ]
    if instructor_message:
        rows.append(("Message from your instructor", _html_escape(instructor_message)))
    html = build_booking_email_html(
        "Booking Confirmation",
        f"Hi {_html_escape(student_name or 'there')}, your session has been confirmed.",
        rows,
    )
    _send_email_sync(to_email, f"{settings.site_name} – Booking confirmed", html)


def send_booking_cancelled_email(
    to_email: str,
    recipient_name: str | None,
    session_date: datetime,
    slot_time: str,
    duration: str,
    reason: str | None = None,
) -> None:
    rows = [("When", _session_display(session_date, slot_time, duration))]
    if reason:
        rows.append(("Reason", _html_escape(reason)))
    html = build_booking_email_html(
        "Booking Cancelled",
        f"Hi {_html_escape(recipient_name or 'there')}, this session will not take place.",
        rows,
    )
    _send_email_sync(to_email, f"{settings.site_name} – Booking cancelled", html)
