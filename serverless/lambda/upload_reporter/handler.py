# Lambda entry point: S3 notifications and the scheduled report share one function

import logging

from upload_reporter import config
from upload_reporter.processor import handle_upload_event
from upload_reporter.report import dispatch_report

config.configure_logging()
logger = logging.getLogger(__name__)


def handler(event, context):
    if not isinstance(event, dict):
        logger.info("non-object event ignored")
        return {"status": "ignored"}

    # S3 notification batch; a malformed one raises and fails the invocation
    if "Records" in event:
        logger.info("storage notification received")
        return handle_upload_event(event)

    # EventBridge schedule
    if "time" in event:
        logger.info("report triggered at %s", event["time"])
        return dispatch_report()

    logger.info("unrecognized event ignored, keys: %s", sorted(event))
    return {"status": "ignored"}
