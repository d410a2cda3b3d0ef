"""DynamoDB persistence for upload records.

All records share one partition key value and are sorted by their S3 URI, so
a single query returns everything collected since the last report.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from upload_reporter import config

logger = logging.getLogger(__name__)

PK = "pk"
SK = "sk"


class StoreError(Exception):
    """A DynamoDB call failed (transport, throttling or permissions)."""


@dataclass(frozen=True)
class UploadRecord:
    storage_uri: str
    object_name: str
    object_type: str
    object_size: int

    @classmethod
    def for_object(cls, bucket, object_name, object_type, object_size):
        return cls(
            storage_uri=storage_uri(bucket, object_name),
            object_name=object_name,
            object_type=object_type,
            object_size=int(object_size),
        )


def storage_uri(bucket: str, object_name: str) -> str:
    return f"s3://{bucket}/{object_name}"


def to_item(record: UploadRecord, partition: str) -> dict:
    if not record.storage_uri:
        raise ValueError("storage_uri must not be empty")
    return {
        PK: partition,
        SK: record.storage_uri,
        "object_name": record.object_name,
        "object_type": record.object_type,
        "object_size": Decimal(record.object_size),
    }


def from_item(item: dict) -> UploadRecord:
    return UploadRecord(
        storage_uri=item[SK],
        object_name=item.get("object_name", ""),
        object_type=item.get("object_type", ""),
        object_size=int(item.get("object_size", 0)),
    )


class RecordStore:
    def __init__(self, table, partition=None):
        self.table = table
        self.partition = partition or config.RECORD_PARTITION

    @classmethod
    def from_env(cls):
        return cls(boto3.resource("dynamodb").Table(config.TABLE))

    def put(self, record: UploadRecord) -> None:
        """Upsert one record; the same URI overwrites the previous item."""
        try:
            self.table.put_item(Item=to_item(record, self.partition))
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"put {record.storage_uri} failed: {e}") from e

    def query_all(self) -> list:
        """Return every record under the partition, in table order."""
        records = []
        kwargs = {"KeyConditionExpression": Key(PK).eq(self.partition)}
        try:
            while True:
                resp = self.table.query(**kwargs)
                records.extend(from_item(item) for item in resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"query of partition {self.partition} failed: {e}") from e
        return records

    def delete_all(self, records) -> list:
        """Delete records one by one and return the ones that could not be deleted."""
        failed = []
        for record in records:
            try:
                self.table.delete_item(Key={PK: self.partition, SK: record.storage_uri})
            except (ClientError, BotoCoreError) as e:
                logger.error("delete of %s failed: %s", record.storage_uri, e)
                failed.append(record)
        return failed
