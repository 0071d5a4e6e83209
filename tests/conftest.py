from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest  # type: ignore[import]
from botocore.exceptions import ClientError  # type: ignore[import]

from dynamo_table import DynamoDB


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeDynamoClient:
    """In-memory stand-in for the low-level DynamoDB client.

    Understands just enough expression syntax for the tests:
    ``attribute_exists(x)``, ``attribute_not_exists(x)`` and ``a = :v``
    joined by ``AND``; update expressions of the form ``set a = :v, ...``.
    Every table is keyed on ``id``; the ``name-index`` GSI is keyed on ``name``.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, Dict[Tuple[Any, ...], Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.key_attributes: Tuple[str, ...] = ("id",)
        self.indexes: Dict[str, str] = {"name-index": "name"}
        self._fail_next: Optional[str] = None
        self.unprocessed_next = False

    # ---------- test controls ----------
    def fail_next(self, code: str) -> None:
        self._fail_next = code

    def _record(self, operation: str, params: Dict[str, Any]) -> None:
        self.calls.append((operation, copy.deepcopy(params)))
        if self._fail_next:
            code, self._fail_next = self._fail_next, None
            raise _client_error(code, operation)

    def _table(self, name: str) -> Dict[Tuple[Any, ...], Dict[str, Any]]:
        return self.tables.setdefault(name, {})

    def _key(self, key: Dict[str, Any]) -> Tuple[Any, ...]:
        return tuple(key[attr]["S"] for attr in self.key_attributes)

    # ---------- expression evaluation ----------
    @staticmethod
    def _name(token: str, names: Dict[str, str]) -> str:
        token = token.strip()
        return names[token] if token.startswith("#") else token

    def _matches(
        self,
        item: Optional[Dict[str, Any]],
        expression: Optional[str],
        names: Dict[str, str],
        values: Dict[str, Any],
    ) -> bool:
        if not expression:
            return True
        for clause in expression.split(" AND "):
            clause = clause.strip()
            if clause.startswith("attribute_not_exists("):
                attr = self._name(clause[len("attribute_not_exists(") : -1], names)
                if item is not None and attr in item:
                    return False
            elif clause.startswith("attribute_exists("):
                attr = self._name(clause[len("attribute_exists(") : -1], names)
                if item is None or attr not in item:
                    return False
            else:
                left, right = clause.split("=")
                attr = self._name(left, names)
                if item is None or item.get(attr) != values[right.strip()]:
                    return False
        return True

    # ---------- operations ----------
    def put_item(self, **params: Any) -> Dict[str, Any]:
        self._record("put_item", params)
        table = self._table(params["TableName"])
        item = params["Item"]
        key = self._key(item)
        if not self._matches(
            table.get(key),
            params.get("ConditionExpression"),
            params.get("ExpressionAttributeNames", {}),
            params.get("ExpressionAttributeValues", {}),
        ):
            raise _client_error("ConditionalCheckFailedException", "PutItem")
        table[key] = copy.deepcopy(item)
        return {}

    def get_item(self, **params: Any) -> Dict[str, Any]:
        self._record("get_item", params)
        item = self._table(params["TableName"]).get(self._key(params["Key"]))
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def batch_get_item(self, **params: Any) -> Dict[str, Any]:
        self._record("batch_get_item", params)
        responses: Dict[str, List[Dict[str, Any]]] = {}
        for table_name, request in params["RequestItems"].items():
            table = self._table(table_name)
            found = [table[self._key(k)] for k in request["Keys"] if self._key(k) in table]
            names = request.get("ExpressionAttributeNames")
            if names:
                wanted = set(names.values())
                found = [{a: v for a, v in it.items() if a in wanted} for it in found]
            responses[table_name] = copy.deepcopy(found)
        return {"Responses": responses, "UnprocessedKeys": {}}

    def batch_write_item(self, **params: Any) -> Dict[str, Any]:
        self._record("batch_write_item", params)
        if self.unprocessed_next:
            self.unprocessed_next = False
            return {"UnprocessedItems": copy.deepcopy(params["RequestItems"])}
        for table_name, requests in params["RequestItems"].items():
            if not requests:
                raise _client_error("ValidationException", "BatchWriteItem")
            table = self._table(table_name)
            for request in requests:
                if "PutRequest" in request:
                    item = request["PutRequest"]["Item"]
                    table[self._key(item)] = copy.deepcopy(item)
                else:
                    table.pop(self._key(request["DeleteRequest"]["Key"]), None)
        return {"UnprocessedItems": {}}

    def update_item(self, **params: Any) -> Dict[str, Any]:
        self._record("update_item", params)
        table = self._table(params["TableName"])
        key = self._key(params["Key"])
        names = params.get("ExpressionAttributeNames", {})
        values = params.get("ExpressionAttributeValues", {})
        current = table.get(key)
        if not self._matches(current, params.get("ConditionExpression"), names, values):
            raise _client_error("ConditionalCheckFailedException", "UpdateItem")
        updated = copy.deepcopy(current) if current else copy.deepcopy(params["Key"])
        expression = params["UpdateExpression"]
        assert expression.lower().startswith("set ")
        for assignment in expression[4:].split(","):
            left, right = assignment.split("=")
            updated[self._name(left, names)] = values[right.strip()]
        table[key] = updated
        return {"Attributes": copy.deepcopy(updated)}

    def delete_item(self, **params: Any) -> Dict[str, Any]:
        self._record("delete_item", params)
        table = self._table(params["TableName"])
        key = self._key(params["Key"])
        if not self._matches(
            table.get(key),
            params.get("ConditionExpression"),
            params.get("ExpressionAttributeNames", {}),
            params.get("ExpressionAttributeValues", {}),
        ):
            raise _client_error("ConditionalCheckFailedException", "DeleteItem")
        table.pop(key, None)
        return {}

    def query(self, **params: Any) -> Dict[str, Any]:
        self._record("query", params)
        names = params.get("ExpressionAttributeNames", {})
        values = params.get("ExpressionAttributeValues", {})
        items = [
            it
            for it in self._table(params["TableName"]).values()
            if self._matches(it, params["KeyConditionExpression"], names, values)
            and self._matches(it, params.get("FilterExpression"), names, values)
        ]
        index = params.get("IndexName")
        if index is not None:
            items = [it for it in items if self.indexes[index] in it]
        return {"Items": copy.deepcopy(items), "Count": len(items)}

    def scan(self, **params: Any) -> Dict[str, Any]:
        self._record("scan", params)
        names = params.get("ExpressionAttributeNames", {})
        values = params.get("ExpressionAttributeValues", {})
        items = [
            it
            for it in self._table(params["TableName"]).values()
            if self._matches(it, params.get("FilterExpression"), names, values)
        ]
        return {"Items": copy.deepcopy(items), "Count": len(items)}


@pytest.fixture()
def fake_client() -> FakeDynamoClient:
    return FakeDynamoClient()


@pytest.fixture()
def db(fake_client: FakeDynamoClient) -> DynamoDB:
    return DynamoDB(client=fake_client)
