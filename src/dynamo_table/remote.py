from __future__ import annotations

from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import]

from .exceptions import FailureReason, RemoteFailure

CONDITIONAL_CHECK_FAILED_CODE = "ConditionalCheckFailedException"


def classify_failure(operation: str, exc: Exception) -> RemoteFailure:
    """Build a ``RemoteFailure`` from a botocore exception."""
    code = None
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code")
    reason = (
        FailureReason.CONDITIONAL_CHECK_FAILED
        if code == CONDITIONAL_CHECK_FAILED_CODE
        else FailureReason.OTHER
    )
    return RemoteFailure(operation, reason, code=code, cause=exc)


class RemoteTable:
    """The DynamoDB operations the adapter relies on.

    Each method takes the request params as keyword arguments, in the
    casing the DynamoDB API uses, and returns the raw response dict.
    """

    def __init__(self, client) -> None:
        self._client = client

    @property
    def client(self):
        return self._client

    def _call(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return getattr(self._client, operation)(**params)
        except (BotoCoreError, ClientError) as exc:
            raise classify_failure(operation, exc) from exc
        except Exception as exc:  # noqa: BLE001
            raise RemoteFailure(operation, FailureReason.OTHER, cause=exc) from exc

    def get_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("get_item", params)

    def batch_get_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("batch_get_item", params)

    def put_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("put_item", params)

    def batch_write_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("batch_write_item", params)

    def query(self, **params: Any) -> Dict[str, Any]:
        return self._call("query", params)

    def scan(self, **params: Any) -> Dict[str, Any]:
        return self._call("scan", params)

    def update_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("update_item", params)

    def delete_item(self, **params: Any) -> Dict[str, Any]:
        return self._call("delete_item", params)
