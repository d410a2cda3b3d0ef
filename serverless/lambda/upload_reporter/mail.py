"""
SMTP delivery of the HTML report via aiosmtplib.

Credentials come from EMAIL_USERNAME / EMAIL_PASSWORD. deliver() returns
True on success and False on any failure (never raises).
"""
import asyncio
import logging
from email.message import EmailMessage

import aiosmtplib

from upload_reporter import config

logger = logging.getLogger(__name__)


def is_configured():
    username, password = config.mail_credentials()
    return bool(username and password)


def build_message(subject, html, sender, recipient):
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(html, subtype="html")
    return msg


def deliver(subject, html):
    """Send one HTML email to the configured recipient."""
    username, password = config.mail_credentials()
    if not username:
        logger.error("EMAIL_USERNAME is not set, report mail not sent")
        return False
    if not password:
        logger.error("EMAIL_PASSWORD is not set, report mail not sent")
        return False

    sender = config.MAIL_FROM or username
    recipient = config.MAIL_TO or username
    msg = build_message(subject, html, sender, recipient)

    try:
        asyncio.run(aiosmtplib.send(
            msg,
            hostname=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=username,
            password=password,
            use_tls=not config.SMTP_START_TLS,
            start_tls=config.SMTP_START_TLS,
            timeout=config.SMTP_TIMEOUT,
        ))
    except Exception as exc:
        logger.error("SMTP delivery failed (%s -> %s): %s", config.SMTP_HOST, recipient, exc)
        return False

    logger.info("report mail sent to %s", recipient)
    return True
