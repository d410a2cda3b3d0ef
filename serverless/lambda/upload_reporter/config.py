# Settings for the upload reporter Lambda, read once per cold start

import os
import logging


def _get_bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


# ---------- Logging ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------- DynamoDB ----------
# Table holding one item per recorded upload
TABLE = os.environ["TABLE"]
# Every record lives under this single partition key value
RECORD_PARTITION = os.getenv("RECORD_PARTITION", "upload-report")

# ---------- Thumbnails ----------
# Prefix of generated thumbnail keys, also used to skip our own uploads
THUMBNAIL_PREFIX = os.getenv("THUMBNAIL_PREFIX", "thumbnail-")
THUMBNAIL_SIZE = int(os.getenv("THUMBNAIL_SIZE", "128"))

# ---------- Report ----------
# Delete the batch before mailing it instead of after a confirmed send
REPORT_DELETE_BEFORE_SEND = _get_bool("REPORT_DELETE_BEFORE_SEND", "false")
MAIL_SUBJECT = os.getenv("MAIL_SUBJECT", "Daily S3 upload report")
MAIL_FROM = os.getenv("MAIL_FROM", "").strip()
MAIL_TO = os.getenv("MAIL_TO", "").strip()

# ---------- SMTP ----------
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
# STARTTLS on a plain connection; implicit TLS otherwise
SMTP_START_TLS = _get_bool("SMTP_START_TLS", "false")
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "15"))


# Mail credentials are secrets injected separately, so read them per send
def mail_credentials():
    return os.getenv("EMAIL_USERNAME", "").strip(), os.getenv("EMAIL_PASSWORD", "")


def configure_logging():
    root = logging.getLogger()
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    # Outside Lambda there is no preinstalled handler
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")
