from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

import boto3
from botocore.client import BaseClient

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
else:
    S3Client = BaseClient  # type: ignore[misc,assignment]

_LOCALSTACK_DEFAULT = "http://localhost:4566"
_TRUTHY = {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class S3Settings:
    """Where the timetable cache bucket lives.

    ``endpoint_url`` is None for real S3. ``ENDPOINT_URL`` points the cache
    at any S3-compatible server; ``USE_LOCALSTACK`` alone falls back to
    ``LOCALSTACK_ENDPOINT_URL`` (or the LocalStack default port).
    """

    region: str
    endpoint_url: str | None = None

    @classmethod
    def from_env(cls) -> S3Settings:
        endpoint_url = (os.getenv("ENDPOINT_URL") or "").strip() or None
        localstack = (os.getenv("USE_LOCALSTACK") or "").strip().lower() in _TRUTHY
        if endpoint_url is None and localstack:
            endpoint_url = os.getenv("LOCALSTACK_ENDPOINT_URL", _LOCALSTACK_DEFAULT)

        return cls(
            region=os.getenv("AWS_REGION", "eu-west-1"),
            endpoint_url=endpoint_url,
        )


def s3_client(settings: S3Settings | None = None) -> S3Client:
    settings = settings or S3Settings.from_env()
    session = boto3.session.Session(region_name=settings.region)
    return session.client("s3", endpoint_url=settings.endpoint_url)
