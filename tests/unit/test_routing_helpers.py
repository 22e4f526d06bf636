from __future__ import annotations

from datetime import datetime

import pytest

from src.adapters.aws import S3Settings
from src.app.services.routing_helpers import (
    format_service_time,
    seconds_since_midnight,
    service_datetime_from_seconds,
)


def test_service_datetime_rolls_over_past_midnight() -> None:
    base = datetime(2026, 3, 2, 23, 40, 12)

    assert service_datetime_from_seconds(base, 8 * 3600) == datetime(2026, 3, 2, 8, 0)
    assert service_datetime_from_seconds(base, 25 * 3600 + 60) == datetime(
        2026, 3, 3, 1, 1
    )


def test_seconds_since_midnight() -> None:
    assert seconds_since_midnight(datetime(2026, 3, 2, 8, 1, 2)) == 8 * 3600 + 62


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "00:00:00"),
        (8 * 3600 + 15, "08:00:15"),
        (25 * 3600 + 5 * 60, "25:05:00"),
    ],
)
def test_format_service_time(seconds: int, expected: str) -> None:
    assert format_service_time(seconds) == expected


def test_s3_settings_prefer_explicit_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENDPOINT_URL", "http://localstack:4566")
    monkeypatch.setenv("USE_LOCALSTACK", "true")

    assert S3Settings.from_env().endpoint_url == "http://localstack:4566"


def test_s3_settings_localstack_toggle(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ENDPOINT_URL", raising=False)
    monkeypatch.delenv("LOCALSTACK_ENDPOINT_URL", raising=False)
    monkeypatch.setenv("AWS_REGION", "us-east-2")
    monkeypatch.setenv("USE_LOCALSTACK", "yes")

    assert S3Settings.from_env() == S3Settings(
        region="us-east-2", endpoint_url="http://localhost:4566"
    )

    monkeypatch.setenv("USE_LOCALSTACK", "0")
    assert S3Settings.from_env().endpoint_url is None


def test_blank_endpoint_means_real_s3(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENDPOINT_URL", "  ")
    monkeypatch.delenv("USE_LOCALSTACK", raising=False)

    assert S3Settings.from_env().endpoint_url is None
