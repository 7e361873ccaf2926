# blueprints/reminders/mailer.py
from __future__ import annotations
import logging
import re
import smtplib
from datetime import date
from typing import Optional, Tuple

from flask_mail import Message
from markupsafe import escape

from extensions import mail
from blueprints.core.filters import fmt_long_date
from blueprints.settings.services import ClubSettings

log = logging.getLogger(__name__)

# [Link text](https://example.org)
MD_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

HTML_WRAPPER = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.5; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #EA3323;">Squarehead Reminder</h2>
    <p>{body}</p>
  </div>
</body>
</html>"""


def links_to_html(text: str) -> str:
    return MD_LINK.sub(r'<a href="\2" style="color: #EA3323; text-decoration: underline;">\1</a>', text)


def links_to_text(text: str) -> str:
    return MD_LINK.sub(r"\1: \2", text)


def _display_date(date_label: str) -> str:
    try:
        return fmt_long_date(date.fromisoformat(date_label))
    except ValueError:
        return date_label


class ReminderMailer:
    """Reminder email transport over Flask-Mail."""

    def __init__(self, settings: Optional[ClubSettings] = None):
        self.settings = settings or ClubSettings()

    def render(self, name: str, date_label: str) -> Tuple[str, str, str]:
        values = {
            "{club_name}": self.settings.club_name(),
            "{dance_date}": _display_date(date_label),
            "{member_name}": name,
        }
        subject = self.settings.get("email_template_subject") or "Squarehead Reminder - {club_name} Dance on {dance_date}"
        body = self.settings.get("email_template_body") or "Hello {member_name}, you are scheduled to be a squarehead for {club_name} on {dance_date}."
        for key, val in values.items():
            subject = subject.replace(key, val)
            body = body.replace(key, val)
        html_body = links_to_html(str(escape(body))).replace("\n", "<br>")
        return subject, HTML_WRAPPER.format(body=html_body), links_to_text(body)

    def send_reminder(self, email: str, name: str, date_label: str) -> bool:
        subject, html, text = self.render(name, date_label)
        msg = Message(subject=subject, recipients=[email], body=text, html=html)
        try:
            mail.send(msg)
        except (smtplib.SMTPException, OSError) as ex:
            log.warning("email sending error for %s: %s", email, ex)
            return False
        return True
