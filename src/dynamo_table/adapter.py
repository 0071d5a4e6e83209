from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .client import DynamoConfig, get_dynamo_client
from .exceptions import HttpError, RemoteFailure
from .expressions import (
    make_filter_attribute_names,
    make_projection,
    merge_attribute_values,
)
from .remote import RemoteTable
from .types import BatchWriteResult, Item, Key, UpdateResult, WriteRequest

logger = logging.getLogger(__name__)

# BatchWriteItem accepts at most 25 requests per call
BATCH_WRITE_LIMIT = 25


class DynamoDB:
    """Table client adapter over the DynamoDB low-level API.

    Every method is a single request/response translation: build params,
    call DynamoDB, return a plain value or raise ``HttpError``. Items and
    keys are passed in wire format and never inspected.

    With ``dev=True`` failures are logged (with the underlying error) at
    WARNING, which reaches stderr even without logging configured. Successful
    batch writes are logged at INFO and only show up once the application
    configures logging. Otherwise the adapter is silent.
    """

    def __init__(
        self,
        config: Optional[DynamoConfig] = None,
        dev: bool = False,
        client=None,
    ) -> None:
        self._remote = RemoteTable(client if client is not None else get_dynamo_client(config))
        self.dev = dev

    @property
    def client(self):
        return self._remote.client

    def _log(self, message: str, exc: Optional[BaseException] = None) -> None:
        if not self.dev:
            return
        if exc is None:
            logger.warning(message)
        else:
            logger.warning("%s: %s", message, exc)

    # ---------- Single item ----------
    def set(self, table: str, item: Item, condition: Optional[str] = None) -> Item:
        """Put ``item`` into ``table``.

        ``condition`` is typically ``attribute_not_exists(<key>)`` to refuse
        overwrites, in which case an existing item yields a 409.
        """
        params: Dict[str, Any] = {"TableName": table, "Item": item}
        if condition:
            params["ConditionExpression"] = condition

        try:
            self._remote.put_item(**params)
            return item
        except RemoteFailure as exc:
            if exc.conditional_check_failed:
                self._log("Item already exists in database")
                raise HttpError("Item already exists in database", 409) from exc
            self._log("Error setting item in database", exc)
            raise HttpError("Error setting item in database", 500) from exc

    def get(self, table: str, keys: Key) -> Item:
        params = {"TableName": table, "Key": keys}
        try:
            res = self._remote.get_item(**params)
        except RemoteFailure as exc:
            self._log("Error getting item from database", exc)
            raise HttpError("Error getting item from database", 500) from exc

        item = res.get("Item")
        if not item:
            self._log("Item not found in database")
            raise HttpError("Item not found in database", 404)
        return item

    def update(
        self,
        table: str,
        keys: Key,
        update_expression: str,
        expression_attribute_names: Optional[Dict[str, str]],
        expression_attribute_values: Optional[Dict[str, Any]],
        condition: Optional[str] = None,
        return_values: str = "ALL_NEW",
    ) -> UpdateResult:
        """Apply ``update_expression`` to the item at ``keys``.

        Returns the raw response; with the default ``ALL_NEW`` its
        ``Attributes`` holds the whole updated item. A failed ``condition``
        (including ``attribute_exists`` on a missing item) yields a 404.
        """
        params: Dict[str, Any] = {
            "TableName": table,
            "Key": keys,
            "UpdateExpression": update_expression,
            "ReturnValues": return_values,
        }
        if expression_attribute_names:
            params["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            params["ExpressionAttributeValues"] = expression_attribute_values
        if condition:
            params["ConditionExpression"] = condition

        try:
            return self._remote.update_item(**params)  # type: ignore[return-value]
        except RemoteFailure as exc:
            if exc.conditional_check_failed:
                self._log("Condition not met for update operation")
                raise HttpError("Condition not met for update operation", 404) from exc
            self._log("Error updating item in database", exc)
            raise HttpError("Error updating item in database", 500) from exc

    def delete(self, table: str, keys: Key, condition: Optional[str] = None) -> Key:
        params: Dict[str, Any] = {"TableName": table, "Key": keys}
        if condition:
            params["ConditionExpression"] = condition

        try:
            self._remote.delete_item(**params)
            return keys
        except RemoteFailure as exc:
            if exc.conditional_check_failed:
                self._log("Condition not met for delete operation")
                raise HttpError("Condition not met for delete operation", 404) from exc
            self._log("Error deleting item from database", exc)
            raise HttpError("Error deleting item from database", 500) from exc

    # ---------- Batch operations ----------
    def batch_get(
        self,
        table: str,
        keys: Sequence[Key],
        projection: Optional[str] = None,
    ) -> List[Item]:
        """Fetch several items by key in one BatchGetItem call.

        ``projection`` is a comma-separated list of attribute names, eg
        ``"id, name"``. Keys with no item are simply absent from the result.
        """
        request: Dict[str, Any] = {"Keys": list(keys)}
        if projection:
            expression, names = make_projection(projection)
            request["ProjectionExpression"] = expression
            request["ExpressionAttributeNames"] = names

        try:
            res = self._remote.batch_get_item(RequestItems={table: request})
        except RemoteFailure as exc:
            self._log("Error getting batch items from database", exc)
            raise HttpError("Error getting batch items from database", 500) from exc

        unprocessed = res.get("UnprocessedKeys", {}).get(table)
        if unprocessed:
            self._log(f"Unprocessed keys: {unprocessed}")
        return res.get("Responses", {}).get(table, [])

    def batch_write(self, table: str, requests: Sequence[WriteRequest]) -> BatchWriteResult:
        """Submit PutRequest/DeleteRequest entries in one BatchWriteItem call.

        Unprocessed items are not retried; they surface as a 500 and the
        caller must resubmit.
        """
        try:
            res = self._remote.batch_write_item(RequestItems={table: list(requests)})
        except RemoteFailure as exc:
            self._log("Error batch writing items in database", exc)
            raise HttpError("Error batch writing items in database", 500) from exc

        unprocessed = res.get("UnprocessedItems", {}).get(table)
        if unprocessed:
            self._log(f"Unprocessed items: {unprocessed}")
            raise HttpError("Items unprocessed during the batch writing", 500)
        if self.dev:
            logger.info("All items processed successfully")
        return res  # type: ignore[return-value]

    # ---------- Query helpers ----------
    def query(
        self,
        table: str,
        condition: str,
        keys: Dict[str, Any],
        filter_expression: Optional[str] = None,
        filter_values: Optional[Dict[str, Any]] = None,
    ) -> List[Item]:
        """Query ``table`` by key condition.

        Parameters
        ----------
        condition: str
            KeyConditionExpression, eg ``id = :id``.
        keys: Dict[str, Any]
            Values for the placeholders in ``condition``.
        filter_expression: Optional[str]
            FilterExpression over non-key attributes, eg ``#name = :name``.
        filter_values: Optional[Dict[str, Any]]
            Values for ``filter_expression``, ignored without it. A ``#attr``
            name placeholder is derived from every ``:attr`` key.
        """
        params: Dict[str, Any] = {
            "TableName": table,
            "KeyConditionExpression": condition,
            "ExpressionAttributeValues": dict(keys),
        }
        if filter_expression:
            params["FilterExpression"] = filter_expression
            if filter_values:
                params["ExpressionAttributeValues"] = merge_attribute_values(keys, filter_values)
                params["ExpressionAttributeNames"] = make_filter_attribute_names(filter_values)

        try:
            res = self._remote.query(**params)
        except RemoteFailure as exc:
            self._log("Error querying item from database", exc)
            raise HttpError("Error querying item from database", 500) from exc
        return res.get("Items", [])

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        condition: str,
        attribute_names: Optional[Dict[str, str]],
        keys: Dict[str, Any],
        filter_expression: Optional[str] = None,
        filter_values: Optional[Dict[str, Any]] = None,
    ) -> List[Item]:
        """Query the secondary index ``index_name`` of ``table``.

        ``attribute_names`` covers the placeholders in ``condition``;
        placeholders derived from ``filter_values`` are merged on top.
        """
        params: Dict[str, Any] = {
            "TableName": table,
            "IndexName": index_name,
            "KeyConditionExpression": condition,
            "ExpressionAttributeValues": dict(keys),
        }
        names = dict(attribute_names or {})
        if filter_expression:
            params["FilterExpression"] = filter_expression
            if filter_values:
                params["ExpressionAttributeValues"] = merge_attribute_values(keys, filter_values)
                names = make_filter_attribute_names(filter_values, base=attribute_names)
        if names:
            params["ExpressionAttributeNames"] = names

        try:
            res = self._remote.query(**params)
        except RemoteFailure as exc:
            self._log("Error querying by GSI", exc)
            status = 400 if exc.conditional_check_failed else 500
            raise HttpError("Error querying by GSI from database", status) from exc
        return res.get("Items", [])

    def scan(
        self,
        table: str,
        filter_expression: Optional[str] = None,
        filter_values: Optional[Dict[str, Any]] = None,
        projection: Optional[str] = None,
    ) -> List[Item]:
        """Scan one page of ``table``, optionally filtered and projected."""
        params: Dict[str, Any] = {"TableName": table}
        names: Dict[str, str] = {}
        if filter_expression:
            params["FilterExpression"] = filter_expression
            if filter_values:
                params["ExpressionAttributeValues"] = dict(filter_values)
                names = make_filter_attribute_names(filter_values)
        if projection:
            expression, projection_names = make_projection(projection)
            params["ProjectionExpression"] = expression
            names.update(projection_names)
        if names:
            params["ExpressionAttributeNames"] = names

        try:
            res = self._remote.scan(**params)
        except RemoteFailure as exc:
            self._log("Error scanning item from database", exc)
            raise HttpError("Error scanning item from database", 500) from exc
        return res.get("Items", [])

    def clear_table(self, table: str, key_attributes: Sequence[str] = ("id",)) -> None:
        """Delete every item returned by a single scan of ``table``.

        Only the first scan page is cleared. ``key_attributes`` names the
        table's primary key attributes (hash, and range if any); a single
        name may be passed as a plain string.
        """
        key_names = [key_attributes] if isinstance(key_attributes, str) else list(key_attributes)
        try:
            res = self._remote.scan(TableName=table)
            requests: List[WriteRequest] = [
                {"DeleteRequest": {"Key": {name: item[name] for name in key_names}}}
                for item in res.get("Items", [])
            ]
            for chunk in _chunk(requests, BATCH_WRITE_LIMIT):
                self.batch_write(table, chunk)
        except (RemoteFailure, HttpError, KeyError) as exc:
            self._log("Error clearing table in database", exc)
            raise HttpError("Error clearing table in database", 500) from exc


def _chunk(seq: List[WriteRequest], size: int) -> Iterable[List[WriteRequest]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]
