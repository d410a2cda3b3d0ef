# report.py
import html
import logging
from dataclasses import dataclass
from typing import Sequence

from upload_reporter import config
from upload_reporter import mail
from upload_reporter.store import RecordStore, StoreError, UploadRecord

logger = logging.getLogger(__name__)

COLUMNS = ("Object Name", "Object Type", "Object Size", "S3 URI")

_HEAD = """<!DOCTYPE html>
<html>
<head>
<style>
table, th, td { border: 1px solid black; border-collapse: collapse; }
th, td { padding: 15px; }
</style>
</head>
<body>
<h1>Daily S3 upload report</h1>
<table>
"""

_TAIL = """</table>
</body>
</html>
"""


def _cells(tag, values):
    return "".join(f"<{tag}>{html.escape(str(v))}</{tag}>" for v in values)


def header_row():
    return f"<tr>{_cells('th', COLUMNS)}</tr>\n"


def render_row(record: UploadRecord) -> str:
    return "<tr>{}</tr>\n".format(_cells("td", (
        record.object_name,
        record.object_type,
        record.object_size,
        record.storage_uri,
    )))


@dataclass(frozen=True)
class ReportContext:
    """Records collected for one report, in query order."""

    records: Sequence[UploadRecord]

    # Each call starts a fresh pass over the records
    def rows(self):
        return (render_row(r) for r in self.records)


def render_report(context: ReportContext) -> str:
    return _HEAD + header_row() + "".join(context.rows()) + _TAIL


def _store():
    return RecordStore.from_env()


def _delete(store, records):
    failed = store.delete_all(records)
    if failed:
        logger.error("%d of %d records could not be deleted, they will be reported again",
                     len(failed), len(records))
    return len(records) - len(failed), len(failed)


def dispatch_report(store=None):
    """Mail every stored record as an HTML table and clear them from the table.

    By default records are deleted only after the mail went out, so a failed
    send leaves them for the next run. With REPORT_DELETE_BEFORE_SEND the
    batch is deleted first and a failed send loses it.
    """
    store = store or _store()
    try:
        records = store.query_all()
    except StoreError as e:
        logger.error("report aborted, cannot read records: %s", e)
        return {"status": "aborted", "count": 0, "deleted": 0, "delete_failures": 0}

    logger.info("building report for %d records", len(records))
    body = render_report(ReportContext(records))

    deleted = failures = 0
    if config.REPORT_DELETE_BEFORE_SEND:
        deleted, failures = _delete(store, records)
        sent = mail.deliver(config.MAIL_SUBJECT, body)
    else:
        sent = mail.deliver(config.MAIL_SUBJECT, body)
        if sent:
            deleted, failures = _delete(store, records)
        else:
            logger.warning("report not sent, keeping %d records for the next run", len(records))

    return {
        "status": "sent" if sent else "not_sent",
        "count": len(records),
        "deleted": deleted,
        "delete_failures": failures,
    }
