import datetime
from pathlib import Path


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to a resource shipped inside the package.

    Args:
        relative_path: Relative path from the package root (e.g., "resources/templates")

    Returns:
        Absolute Path object
    """
    return Path(__file__).parent.absolute() / relative_path


def utc_now() -> datetime.datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime.datetime) -> datetime.datetime:
    """Convert an aware datetime to naive UTC, leave naive ones untouched."""
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
