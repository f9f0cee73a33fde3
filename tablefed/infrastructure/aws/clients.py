"""boto3 client construction and ClientError helpers shared by the AWS adapters.

The adapters use sync boto3 clients via asyncio.to_thread for their async API.
"""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tablefed.domain.exceptions import TransientIOException

_RETRY_CONFIG = Config(retries={"max_attempts": 5, "mode": "standard"})


def create_client(
    service_name: str,
    region: str = "us-east-1",
    endpoint_url: str | None = None,
) -> Any:
    """Create a boto3 client; endpoint_url targets a local emulator when set."""
    extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
    return boto3.client(
        service_name,
        region_name=region,
        config=_RETRY_CONFIG,
        **extra,
    )


def error_code(error: ClientError) -> str:
    """AWS error code of a ClientError (e.g. 'NotFoundException')."""
    return error.response.get("Error", {}).get("Code", "")


def error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", "") or str(error)


def transient(operation: str, error: Exception) -> TransientIOException:
    """Translate a boto error into the domain's retryable I/O failure."""
    if isinstance(error, ClientError):
        return TransientIOException(operation, f"{error_code(error)}: {error_message(error)}")
    return TransientIOException(operation, str(error))


AWS_ERRORS = (ClientError, BotoCoreError)
