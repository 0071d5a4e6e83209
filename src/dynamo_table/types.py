from __future__ import annotations

from typing import Any, Dict, List, TypedDict

# Wire representation, eg {"S": "John"} or {"N": "42"}
AttributeValue = Dict[str, Any]
Item = Dict[str, AttributeValue]
Key = Dict[str, AttributeValue]


class PutRequest(TypedDict):
    Item: Item


class DeleteRequest(TypedDict):
    Key: Key


class WriteRequest(TypedDict, total=False):
    """One entry of a BatchWriteItem request list."""

    PutRequest: PutRequest
    DeleteRequest: DeleteRequest


class BatchWriteResult(TypedDict, total=False):
    UnprocessedItems: Dict[str, List[WriteRequest]]
    ConsumedCapacity: List[Dict[str, Any]]


class UpdateResult(TypedDict, total=False):
    Attributes: Item
    ConsumedCapacity: Dict[str, Any]
