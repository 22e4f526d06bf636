from .local_gtfs_repository import LocalGtfsRepository, build_timetable
from .s3_cached_timetable_repository import S3CachedTimetableRepository

__all__ = [
    "LocalGtfsRepository",
    "S3CachedTimetableRepository",
    "build_timetable",
]
