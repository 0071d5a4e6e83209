# pyright: reportMissingTypeStubs=false
"""DynamoDB table client adapter.

Exposes the ``DynamoDB`` adapter, its configuration and error types.
"""
from .adapter import DynamoDB
from .client import DynamoConfig, get_dynamo_client
from .exceptions import FailureReason, HttpError, RemoteFailure
from .remote import RemoteTable

__all__ = [
    "DynamoDB",
    "DynamoConfig",
    "get_dynamo_client",
    "HttpError",
    "RemoteFailure",
    "FailureReason",
    "RemoteTable",
]
