from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local(tz_name: Optional[str] = None) -> datetime:
    if tz_name:
        return now_utc().astimezone(ZoneInfo(tz_name))
    return now_utc().astimezone()


def minute_of_day(t: time) -> int:
    return t.hour * 60 + t.minute

