import importlib
import sys

import pytest


def setup_min_env(monkeypatch):
    """Set minimal env vars expected by the upload_reporter modules."""
    monkeypatch.setenv("TABLE", "dummy-table")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    for name in (
        "RECORD_PARTITION", "THUMBNAIL_PREFIX", "THUMBNAIL_SIZE",
        "REPORT_DELETE_BEFORE_SEND", "MAIL_SUBJECT", "MAIL_FROM", "MAIL_TO",
        "SMTP_HOST", "SMTP_PORT", "SMTP_START_TLS", "EMAIL_USERNAME", "EMAIL_PASSWORD",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def load(monkeypatch):
    """Import upload_reporter modules fresh so module-level settings see this test's env.

    Adjust the environment with monkeypatch before the first call.
    """
    setup_min_env(monkeypatch)
    for mod in [m for m in sys.modules if m == "upload_reporter" or m.startswith("upload_reporter.")]:
        del sys.modules[mod]

    def _load(name):
        return importlib.import_module(f"upload_reporter.{name}")

    return _load
