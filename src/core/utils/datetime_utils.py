from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

EPOCH = datetime(1970, 1, 1, tzinfo=ZoneInfo("UTC"))
ONE_MILLISECOND = timedelta(milliseconds=1)


def get_utc_now() -> datetime:
    """
    Get the current date and time in UTC.

    Returns:
        datetime: The current date and time in UTC with tzinfo set to ZoneInfo("UTC").
    """
    return datetime.now(ZoneInfo("UTC"))


def to_epoch_millis(moment: datetime) -> int:
    """Convert an aware datetime to integer milliseconds since the Unix epoch."""
    # Integer timedelta arithmetic; float timestamps can be off by one ms
    return (moment - EPOCH) // ONE_MILLISECOND


def get_utc_now_millis() -> int:
    """Current time as milliseconds since the Unix epoch. Token expiry uses this unit."""
    return to_epoch_millis(get_utc_now())


def duration_to_millis(duration: timedelta) -> int:
    return duration // ONE_MILLISECOND
