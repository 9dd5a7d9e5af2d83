"""
DynamoDB metrics store (production)

Tables (partition key `id`):
    metrics_history: id, record_type="metrics", date, enterprise, organization, team, data, last_update
    seats_history:   id, record_type="seats", date, enterprise, organization, team, seats, total_seats, last_update

Both tables carry a global secondary index `date-index` (partition
`record_type`, sort `date`), so a date range is a single Query with BETWEEN
on the index, paginated through LastEvaluatedKey. Scope filters become a
FilterExpression on the same query.

Conditional puts keep the record with the most recent last_update.
"""

import json
from datetime import date
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from copilot_metrics.core import get_logger
from copilot_metrics.domain.scope import scope_columns, scope_from_columns
from copilot_metrics.domain.seats import Seat, SeatRecord
from copilot_metrics.domain.usage import UsageMetricRecord
from copilot_metrics.errors import MalformedRecordError, StoreQueryError, StoreWriteError
from copilot_metrics.secure_config import StoreConfig
from copilot_metrics.storage.base import MetricsRecord, MetricsStore, QueryFilter, as_iso_date
from copilot_metrics.utils.datetime_utils import format_store_timestamp, parse_store_timestamp
from copilot_metrics.utils.error_handling import log_and_continue

logger = get_logger(__name__)

DATE_INDEX = "date-index"
METRICS_RECORD_TYPE = "metrics"
SEATS_RECORD_TYPE = "seats"


def _filter_expression(filters: QueryFilter | None):
    """AND of equality conditions for the non-empty filter fields (None if empty)."""
    expression = None
    for column, value in (filters or QueryFilter()).conditions().items():
        condition = Attr(column).eq(value)
        expression = condition if expression is None else expression & condition
    return expression


def _is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBMetricsStore(MetricsStore):
    """
    Store backed by two DynamoDB tables.

    Args:
        metrics_table: Name of the usage table
        seats_table: Name of the seats table
        region: AWS region
        endpoint_url: Override endpoint (DynamoDB Local)
        create_tables: Create missing tables on open() (local use)
        resource: Optional pre-built boto3 DynamoDB service resource
    """

    def __init__(
        self,
        metrics_table: str = "metrics_history",
        seats_table: str = "seats_history",
        region: str | None = None,
        endpoint_url: str | None = None,
        create_tables: bool = False,
        resource=None,
    ):
        self.metrics_table_name = metrics_table
        self.seats_table_name = seats_table
        self.region = region
        self.endpoint_url = endpoint_url
        self.create_tables = create_tables
        self._resource = resource
        self._metrics_table = None
        self._seats_table = None

    @classmethod
    def from_config(cls, config: StoreConfig) -> "DynamoDBMetricsStore":
        return cls(
            metrics_table=config.metrics_table,
            seats_table=config.seats_table,
            region=config.aws_region or ("us-east-1" if config.dynamodb_local else None),
            endpoint_url=config.dynamodb_endpoint if config.dynamodb_local else None,
            create_tables=config.dynamodb_local,
        )

    def open(self) -> None:
        if self._resource is None:
            self._resource = boto3.resource("dynamodb", region_name=self.region, endpoint_url=self.endpoint_url)

        if self.create_tables:
            self._ensure_table(self.metrics_table_name)
            self._ensure_table(self.seats_table_name)

        self._metrics_table = self._resource.Table(self.metrics_table_name)
        self._seats_table = self._resource.Table(self.seats_table_name)
        logger.info(f"Opened DynamoDB metrics store ({self.metrics_table_name}, {self.seats_table_name})")

    def close(self) -> None:
        self._metrics_table = None
        self._seats_table = None

    def _ensure_table(self, name: str) -> None:
        """Create `name` with its date index if it does not exist yet."""
        existing = {table.name for table in self._resource.tables.all()}
        if name in existing:
            return

        logger.info(f"Creating DynamoDB table {name}")
        table = self._resource.create_table(
            TableName=name,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "id", "AttributeType": "S"},
                {"AttributeName": "record_type", "AttributeType": "S"},
                {"AttributeName": "date", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": DATE_INDEX,
                    "KeySchema": [
                        {"AttributeName": "record_type", "KeyType": "HASH"},
                        {"AttributeName": "date", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()

    def _table(self, table):
        if table is None:
            raise RuntimeError("Store is not open. Call open() or use the store as a context manager")
        return table

    def upsert(self, record: MetricsRecord) -> None:
        item: dict[str, Any] = {
            "id": record.id,
            "date": record.date,
            "last_update": format_store_timestamp(record.last_update),
        }
        item.update({column: value for column, value in scope_columns(record.scope).items() if value})

        if isinstance(record, UsageMetricRecord):
            table = self._table(self._metrics_table)
            item.update(record_type=METRICS_RECORD_TYPE, data=json.dumps(record.to_dict()))
        elif isinstance(record, SeatRecord):
            table = self._table(self._seats_table)
            item.update(
                record_type=SEATS_RECORD_TYPE,
                seats=json.dumps(record.seats_payload()),
                total_seats=record.total_seats,
            )
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        try:
            table.put_item(
                Item=item,
                ConditionExpression=Attr("id").not_exists() | Attr("last_update").lte(item["last_update"]),
            )
        except ClientError as e:
            if _is_conditional_check_failure(e):
                logger.debug(f"Skipped stale write for {record.id}")
                return
            raise StoreWriteError(f"DynamoDB put failed for {record.id}: {e}", record_id=record.id) from e
        except BotoCoreError as e:
            raise StoreWriteError(f"DynamoDB put failed for {record.id}: {e}", record_id=record.id) from e

    def _query_index(self, table, key_condition, filters: QueryFilter | None) -> list[dict[str, Any]]:
        """Run one index query, following LastEvaluatedKey until exhausted."""
        kwargs: dict[str, Any] = {"IndexName": DATE_INDEX, "KeyConditionExpression": key_condition}
        filter_expression = _filter_expression(filters)
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        try:
            while True:
                response = table.query(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            raise StoreQueryError(f"DynamoDB query failed: {e}") from e
        return items

    def query_by_date_range(
        self, start: date | str, end: date | str, filters: QueryFilter | None = None
    ) -> list[UsageMetricRecord]:
        key_condition = Key("record_type").eq(METRICS_RECORD_TYPE) & Key("date").between(
            as_iso_date(start), as_iso_date(end)
        )
        items = self._query_index(self._table(self._metrics_table), key_condition, filters)

        records = []
        for item in items:
            try:
                scope = scope_from_columns(item.get("enterprise"), item.get("organization"), item.get("team"))
                records.append(
                    UsageMetricRecord.from_dict(json.loads(item["data"]), scope, parse_store_timestamp(item["last_update"]))
                )
            except (ValueError, KeyError) as e:
                log_and_continue(logger, e, context={"record_id": item.get("id")}, error_type="Stored usage record decoding")

        return sorted(records, key=lambda record: (record.date, record.id))

    def query_by_date(self, day: date | str, filters: QueryFilter | None = None) -> SeatRecord | None:
        key_condition = Key("record_type").eq(SEATS_RECORD_TYPE) & Key("date").eq(as_iso_date(day))
        items = self._query_index(self._table(self._seats_table), key_condition, filters)
        if not items:
            return None

        item = max(items, key=lambda candidate: candidate.get("last_update", ""))
        try:
            return SeatRecord(
                date=item["date"],
                scope=scope_from_columns(item.get("enterprise"), item.get("organization"), item.get("team")),
                seats=[Seat.from_dict(entry) for entry in json.loads(item["seats"])],
                last_update=parse_store_timestamp(item["last_update"]),
            )
        except (ValueError, KeyError, MalformedRecordError) as e:
            raise StoreQueryError(f"Stored seat record {item.get('id')} is unreadable: {e}") from e
