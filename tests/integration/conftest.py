from __future__ import annotations

import os
from collections.abc import Iterator
from uuid import uuid4

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.adapters.aws import S3Settings, s3_client

_DEFAULT_ENV = {
    "USE_LOCALSTACK": "true",
    "ENDPOINT_URL": "http://localhost:4566",
    "AWS_REGION": "eu-west-1",
    # LocalStack accepts any credentials but boto3 insists on having some.
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
}


@pytest.fixture(scope="session", autouse=True)
def localstack_env() -> None:
    for name, value in _DEFAULT_ENV.items():
        os.environ.setdefault(name, value)


@pytest.fixture(scope="session")
def require_localstack(localstack_env: None) -> str:
    """Endpoint of a reachable S3 server; skips locally, fails in CI."""

    settings = S3Settings.from_env()
    quick = Config(connect_timeout=1.5, read_timeout=1.5, retries={"max_attempts": 1})
    client = boto3.session.Session(region_name=settings.region).client(
        "s3", endpoint_url=settings.endpoint_url, config=quick
    )
    try:
        client.list_buckets()
    except (BotoCoreError, ClientError) as exc:
        msg = f"S3 endpoint {settings.endpoint_url} not usable: {exc}"
        if os.getenv("CI") or os.getenv("REQUIRE_LOCALSTACK"):
            pytest.fail(msg, pytrace=False)
        pytest.skip(msg)
    return settings.endpoint_url or ""


@pytest.fixture
def timetable_bucket(require_localstack: str) -> Iterator[str]:
    s3 = s3_client()
    bucket = f"raptor-timetables-{uuid4().hex[:8]}"
    s3.create_bucket(
        Bucket=bucket,
        CreateBucketConfiguration={"LocationConstraint": os.environ["AWS_REGION"]},
    )
    yield bucket

    for obj in s3.list_objects_v2(Bucket=bucket).get("Contents", []):
        s3.delete_object(Bucket=bucket, Key=obj["Key"])
    s3.delete_bucket(Bucket=bucket)
