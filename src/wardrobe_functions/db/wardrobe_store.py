"""
Wardrobe Store
==============

DynamoDB access for the wardrobe collections.

Tables (names configurable, see AppConfig):
- users                 pk: userId
- clothing_items        pk: itemId, GSI userId-index on userId
- outfits               pk: outfitId, GSI userId-index on userId
- recommendation_logs   pk: logId, GSI userId-index on userId

User records carry two nested maps used here:
- stats:          totalItems (Number), lastItemAdded (ISO-8601 String)
- notifications:  dailyRecommendations (Boolean), ...
"""

import threading
from typing import Any, Dict, List, Optional, Tuple

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from ..config import (
    AppConfig,
    Collection,
    KEY_ATTRIBUTES,
    MAX_TRANSACTION_ITEMS,
    OWNER_ATTRIBUTE,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

# (collection, key) pair identifying one record
RecordRef = Tuple[Collection, Dict[str, Any]]


class WardrobeStore:
    """Collection-scoped reads and writes against DynamoDB."""

    def __init__(self, config: AppConfig, resource=None, client=None):
        self.config = config
        self._resource = resource
        self._client = client
        self._serializer = TypeSerializer()
        self._lock = threading.Lock()
        self._local = threading.local()

    @property
    def resource(self):
        """
        DynamoDB resource for the calling thread.

        boto3 resources and the default session are not thread-safe, so each
        thread gets its own session and resource (the daily dispatch queries
        from pool workers).
        """
        if self._resource is not None:
            return self._resource
        resource = getattr(self._local, "resource", None)
        if resource is None:
            with self._lock:
                session = boto3.session.Session()
                resource = session.resource("dynamodb", region_name=self.config.aws_region)
            self._local.resource = resource
        return resource

    @property
    def client(self):
        """Low-level client, needed for TransactWriteItems. Shared across threads."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = boto3.client("dynamodb", region_name=self.config.aws_region)
        return self._client

    def warm(self) -> None:
        """Build the low-level client and this thread's resource up front."""
        _ = self.client
        _ = self.resource

    def table(self, collection: Collection):
        return self.resource.Table(self.config.table_name(collection))

    def record_ref(self, collection: Collection, item: Dict[str, Any]) -> RecordRef:
        key_attr = KEY_ATTRIBUTES[collection]
        return collection, {key_attr: item[key_attr]}

    # ==================== USER STATS ====================

    def increment_item_count(self, user_id: str, timestamp: str) -> None:
        """
        Atomically bump stats.totalItems by one and stamp stats.lastItemAdded.

        A user record with no stats map gets an empty one first, then the
        increment is applied again.

        Raises ConditionalCheckFailedException when the user does not exist.
        """
        try:
            self._apply_item_increment(user_id, timestamp)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ValidationException":
                raise
            logger.info(f"User {user_id} has no stats map, creating it")
            self._init_stats_map(user_id)
            self._apply_item_increment(user_id, timestamp)
        logger.info(f"Incremented item count for user {user_id}")

    def _apply_item_increment(self, user_id: str, timestamp: str) -> None:
        self.table(Collection.USERS).update_item(
            Key={KEY_ATTRIBUTES[Collection.USERS]: user_id},
            UpdateExpression=(
                "SET #stats.#total = if_not_exists(#stats.#total, :zero) + :one, "
                "#stats.#last = :now"
            ),
            ConditionExpression="attribute_exists(#uid)",
            ExpressionAttributeNames={
                "#uid": KEY_ATTRIBUTES[Collection.USERS],
                "#stats": "stats",
                "#total": "totalItems",
                "#last": "lastItemAdded",
            },
            ExpressionAttributeValues={":zero": 0, ":one": 1, ":now": timestamp},
        )

    def _init_stats_map(self, user_id: str) -> None:
        """Create an empty stats map unless a concurrent writer already did."""
        try:
            self.table(Collection.USERS).update_item(
                Key={KEY_ATTRIBUTES[Collection.USERS]: user_id},
                UpdateExpression="SET #stats = :init",
                ConditionExpression="attribute_exists(#uid) AND attribute_not_exists(#stats)",
                ExpressionAttributeNames={
                    "#uid": KEY_ATTRIBUTES[Collection.USERS],
                    "#stats": "stats",
                },
                ExpressionAttributeValues={":init": {}},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                raise
            # Map already there, or the user is gone; the retried increment decides
            logger.info(f"Stats map init skipped for user {user_id}")

    # ==================== OWNER LOOKUPS ====================

    def find_owned(
        self,
        collection: Collection,
        user_id: str,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Query a collection's owner index for records belonging to user_id.

        With no limit every page is read until the index is exhausted.
        """
        table = self.table(collection)
        query_args = {
            "IndexName": self.config.owner_index,
            "KeyConditionExpression": Key(OWNER_ATTRIBUTE).eq(user_id),
        }
        if limit is not None:
            query_args["Limit"] = limit

        items: List[Dict[str, Any]] = []
        while True:
            response = table.query(**query_args)
            items.extend(response.get("Items", []))

            last_key = response.get("LastEvaluatedKey")
            if not last_key or (limit is not None and len(items) >= limit):
                break
            query_args["ExclusiveStartKey"] = last_key

        if limit is not None:
            items = items[:limit]
        return items

    def users_with_daily_recommendations(self) -> List[Dict[str, Any]]:
        """Scan for users with notifications.dailyRecommendations == true."""
        table = self.table(Collection.USERS)
        scan_args = {
            "FilterExpression": Attr("notifications.dailyRecommendations").eq(True),
        }

        users: List[Dict[str, Any]] = []
        while True:
            response = table.scan(**scan_args)
            users.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_args["ExclusiveStartKey"] = last_key
        return users

    # ==================== WRITES ====================

    def put_recommendation_log(self, log: Dict[str, Any]) -> None:
        self.table(Collection.RECOMMENDATION_LOGS).put_item(Item=log)

    def delete_atomically(self, refs: List[RecordRef]) -> int:
        """
        Delete every referenced record in a single TransactWriteItems call.

        Either all deletes apply or none do. Deleting a missing key is a
        no-op, so repeating a delete succeeds.

        Returns:
            Number of delete actions committed
        """
        if not refs:
            return 0

        if len(refs) > MAX_TRANSACTION_ITEMS:
            logger.warning(
                f"Transaction has {len(refs)} deletes, above the DynamoDB limit "
                f"of {MAX_TRANSACTION_ITEMS}; commit will be rejected"
            )

        transact_items = [
            {
                "Delete": {
                    "TableName": self.config.table_name(collection),
                    "Key": {
                        name: self._serializer.serialize(value)
                        for name, value in key.items()
                    },
                }
            }
            for collection, key in refs
        ]

        self.client.transact_write_items(TransactItems=transact_items)
        logger.info(f"Committed {len(transact_items)} deletes in one transaction")
        return len(transact_items)
