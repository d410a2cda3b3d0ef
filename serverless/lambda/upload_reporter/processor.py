# processor.py
import json
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from upload_reporter import config
from upload_reporter import thumbnail
from upload_reporter.store import RecordStore, StoreError, UploadRecord

logger = logging.getLogger(__name__)

s3 = boto3.client("s3")

# S3 reports this type for objects uploaded without one
DEFAULT_CONTENT_TYPE = "binary/octet-stream"


class MalformedEventError(ValueError):
    """The payload has a Records list that does not match the S3 event schema."""


@dataclass(frozen=True)
class NotificationRecord:
    event_name: Optional[str]
    bucket: Optional[str]
    key: Optional[str]


def _store():
    return RecordStore.from_env()


def _member(obj, name, where):
    value = obj.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedEventError(f"{where}.{name} must be an object")
    return value


def _string(obj, name, where):
    value = obj.get(name)
    if value is not None and not isinstance(value, str):
        raise MalformedEventError(f"{where}.{name} must be a string")
    return value


def parse_records(event):
    """Parse the Records list of an S3 notification; absent fields become None."""
    records = event.get("Records")
    if not isinstance(records, list):
        raise MalformedEventError("Records must be a list")

    parsed = []
    for i, rec in enumerate(records):
        where = f"Records[{i}]"
        if not isinstance(rec, dict):
            raise MalformedEventError(f"{where} must be an object")
        s3_info = _member(rec, "s3", where)
        bucket = _member(s3_info, "bucket", f"{where}.s3")
        obj = _member(s3_info, "object", f"{where}.s3")
        parsed.append(NotificationRecord(
            event_name=_string(rec, "eventName", where),
            bucket=_string(bucket, "name", f"{where}.s3.bucket"),
            key=_string(obj, "key", f"{where}.s3.object"),
        ))
    return parsed


# Reason a record is not processed, or None when it should be
def skip_reason(rec):
    if not (rec.event_name or "").startswith("ObjectCreated"):
        return "wrong event"
    if not rec.bucket:
        return "no bucket name"
    if not rec.key:
        return "no object key"
    return None


# S3 notifications encode spaces in keys as '+'
def normalize_key(key):
    return key.replace("+", " ")


def is_thumbnail(object_name):
    return object_name.startswith(config.THUMBNAIL_PREFIX)


def thumbnail_key(object_name):
    return config.THUMBNAIL_PREFIX + object_name


def _fetch_metadata(bucket, object_name):
    head = s3.head_object(Bucket=bucket, Key=object_name)
    return head.get("ContentType") or DEFAULT_CONTENT_TYPE, int(head.get("ContentLength", 0))


def _make_thumbnail(bucket, object_name, object_type):
    """Download the image, write its thumbnail back to the bucket, return the key."""
    obj = s3.get_object(Bucket=bucket, Key=object_name)
    body = obj["Body"].read()

    thumb = thumbnail.generate(body, object_type, config.THUMBNAIL_SIZE)

    out_key = thumbnail_key(object_name)
    s3.put_object(
        Bucket=bucket,
        Key=out_key,
        Body=thumb,
        ContentType="image/png",
    )
    return out_key


def handle_upload_event(event, store=None):
    """Record every created object in the batch and thumbnail supported images.

    A failing record is logged and skipped. An object carrying the thumbnail
    prefix stops the rest of the batch so our own uploads never loop.
    """
    records = parse_records(event)
    store = store or _store()
    results = []

    for rec in records:
        reason = skip_reason(rec)
        if reason:
            logger.info("record skipped: %s (%s)", reason, rec.key)
            results.append({"key": rec.key, "status": "skipped", "reason": reason})
            continue

        bucket = rec.bucket
        object_name = normalize_key(rec.key)

        try:
            object_type, object_size = _fetch_metadata(bucket, object_name)
        except (ClientError, BotoCoreError) as e:
            logger.error("cannot read metadata of s3://%s/%s: %s", bucket, object_name, e)
            results.append({"key": object_name, "status": "failed", "reason": "metadata"})
            continue

        record = UploadRecord.for_object(bucket, object_name, object_type, object_size)
        result = {"key": object_name, "status": "recorded", "uri": record.storage_uri}
        results.append(result)
        try:
            store.put(record)
        except StoreError as e:
            logger.error("cannot persist %s: %s", record.storage_uri, e)
            result["persisted"] = False

        logger.info(json.dumps({
            "uri": record.storage_uri,
            "type": object_type,
            "size": object_size,
        }))

        if is_thumbnail(object_name):
            logger.info("thumbnail upload %s, stopping batch", object_name)
            return {"status": "done", "processed": results, "halted": True}

        if not object_type.startswith("image/"):
            continue
        if not thumbnail.is_supported(object_type):
            logger.info("unsupported image type %s for %s", object_type, object_name)
            continue

        try:
            result["thumbnail"] = _make_thumbnail(bucket, object_name, object_type)
            result["status"] = "thumbnailed"
        except (ClientError, BotoCoreError) as e:
            logger.error("thumbnail transfer for %s failed: %s", object_name, e)
        except thumbnail.ThumbnailError as e:
            logger.error("cannot create thumbnail for %s: %s", object_name, e)
        except Exception:
            logger.exception("unexpected thumbnail failure for %s", object_name)

    return {"status": "done", "processed": results}
