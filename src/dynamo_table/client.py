from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3  # type: ignore[import]
from botocore.config import Config  # type: ignore[import]


@dataclass(frozen=True)
class DynamoConfig:
    """Immutable connection parameters for the DynamoDB client.

    Attributes
    ----------
    region: Optional[str]
        The AWS region; if omitted, will fall back to environment or SDK defaults.
    endpoint_url: Optional[str]
        Override endpoint, eg a local DynamoDB at http://localhost:8000.
    aws_access_key_id, aws_secret_access_key, aws_session_token: Optional[str]
        Explicit credentials. Left to the SDK credential chain when omitted.
    max_attempts: Optional[int]
        Passed through to botocore's retry config. The adapter never retries
        on its own.
    """

    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    max_attempts: Optional[int] = None

    @classmethod
    def from_env(cls) -> "DynamoConfig":
        return cls(
            region=_resolve_region(None),
            endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL") or None,
        )


def _resolve_region(explicit_region: Optional[str]) -> Optional[str]:
    # Prefer explicit, then env, otherwise let boto3 resolve (eg, IAM role default)
    return explicit_region or os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")


def get_dynamo_client(config: Optional[DynamoConfig] = None):
    """Create and return a low-level DynamoDB client.

    Notes
    -----
    The low-level client speaks the typed wire format (``{"S": "value"}``),
    which is what the adapter forwards. Credentials not given in ``config``
    are resolved by boto3 (env, profile, IAM role).
    """
    config = config or DynamoConfig()
    kwargs: Dict[str, Any] = {"region_name": _resolve_region(config.region)}
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    if config.aws_access_key_id and config.aws_secret_access_key:
        kwargs["aws_access_key_id"] = config.aws_access_key_id
        kwargs["aws_secret_access_key"] = config.aws_secret_access_key
        if config.aws_session_token:
            kwargs["aws_session_token"] = config.aws_session_token
    if config.max_attempts is not None:
        kwargs["config"] = Config(retries={"max_attempts": config.max_attempts})
    return boto3.client("dynamodb", **kwargs)
