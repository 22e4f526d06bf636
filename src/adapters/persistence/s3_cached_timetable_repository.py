from __future__ import annotations

import gzip
import logging
import os
import pickle
from dataclasses import dataclass

from botocore.exceptions import ClientError

from src.adapters.aws import s3_client
from src.app.ports.output import ITimetableRepository
from src.domain.models import Timetable

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(slots=True)
class S3CachedTimetableRepository(ITimetableRepository):
    """Caches built timetables in S3.

    This is an adapter-level decorator around another ITimetableRepository;
    grouping a large feed into pattern routes is far slower than unpickling.

    Env vars:
      - TIMETABLE_BUCKET (required)
      - TIMETABLE_PREFIX (default: timetables)
      - ENDPOINT_URL (preferred for LocalStack)

    Notes:
      - pickle loading is only safe for trusted buckets.
    """

    upstream: ITimetableRepository
    name: str = "default"
    bucket: str | None = None
    prefix: str | None = None

    def _bucket(self) -> str:
        value = self.bucket or os.getenv("TIMETABLE_BUCKET")
        if not value:
            raise RuntimeError("Missing TIMETABLE_BUCKET")
        return value

    def _prefix(self) -> str:
        return (self.prefix or os.getenv("TIMETABLE_PREFIX") or "timetables").strip("/")

    def _key(self) -> str:
        return f"{self._prefix()}/{self.name}.pkl.gz"

    def load_timetable(self) -> Timetable:
        s3 = s3_client()
        bucket = self._bucket()
        key = self._key()

        try:
            obj = s3.get_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code not in _MISSING_KEY_CODES:
                raise
            logger.info("Timetable cache miss at s3://%s/%s", bucket, key)
        else:
            timetable = pickle.loads(gzip.decompress(obj["Body"].read()))
            if isinstance(timetable, Timetable):
                return timetable
            logger.warning("Ignoring non-timetable object at s3://%s/%s", bucket, key)

        timetable = self.upstream.load_timetable()
        payload = gzip.compress(pickle.dumps(timetable))
        s3.put_object(Bucket=bucket, Key=key, Body=payload)
        return timetable
