## csvwatch/alerts.py

from __future__ import annotations
import os, smtplib, requests
from collections import deque
from email.mime.text import MIMEText
from typing import Deque, Tuple

from .utils import logger


def send_email(subject: str, body: str):
    host = os.getenv("SMTP_HOST"); user = os.getenv("SMTP_USER"); pwd = os.getenv("SMTP_PASS")
    to_addr = os.getenv("ALERT_EMAIL_TO")
    if not all([host, user, pwd, to_addr]):
        return
    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = user
    msg["To"] = to_addr
    with smtplib.SMTP(host) as s:
        s.starttls(); s.login(user, pwd); s.sendmail(user, [to_addr], msg.as_string())


def send_slack(text: str):
    url = os.getenv("SLACK_WEBHOOK_URL")
    if not url: return
    requests.post(url, json={"text": text}, timeout=5)


class FailureReporter:
    """Sink for every caught failure: log, remember, alert.

    A broken alert channel is logged and never raised back to the caller,
    so reporting cannot take down the poll loop or a conversion worker.
    """

    def __init__(self, email: bool = False, slack: bool = False, keep: int = 100):
        self.email = email
        self.slack = slack
        self.recent: Deque[Tuple[str, str]] = deque(maxlen=keep)

    def report(self, source: str, error: BaseException):
        detail = f"{type(error).__name__}: {error}"
        logger.error(f"Failure in {source}: {detail}")
        self.recent.append((source, detail))
        if self.email:
            try:
                send_email("csvwatch failure", f"Source: {source}\nError: {detail}")
            except (OSError, smtplib.SMTPException) as e:
                logger.warning(f"Email alert failed: {e}")
        if self.slack:
            try:
                send_slack(f":rotating_light: csvwatch failure for {source}: {detail}")
            except requests.RequestException as e:
                logger.warning(f"Slack alert failed: {e}")
