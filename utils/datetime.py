from datetime import datetime
from typing import Optional

import pytz

IST = pytz.timezone("Asia/Kolkata")
UTC = pytz.utc


def now_utc() -> datetime:
    return datetime.now(UTC)


def parse_datetime(datetime_str: str) -> Optional[datetime]:
    """
    Parses a courier timestamp (IST wall clock in one of the formats couriers
    send) into an aware UTC datetime. Returns None when nothing matches, since
    tracking payloads routinely carry blank or odd timestamps.
    """
    if not datetime_str:
        return None

    date_formats = [
        "%Y-%m-%dT%H:%M:%S.%f%z",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%dT%H:%M:%S",
        "%d-%m-%Y %H:%M:%S",  # With seconds
        "%d-%m-%Y %H:%M",  # Without seconds
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%d %b, %Y, %H:%M",  # ecom scan stages
        "%d-%b-%Y %H:%M",  # bluedart scans
        "%d %B %Y",  # bluedart expected delivery
    ]

    for fmt in date_formats:
        try:
            parsed = datetime.strptime(datetime_str.strip(), fmt)
        except ValueError:
            continue  # Try the next format if this one fails

        if parsed.tzinfo is None:
            parsed = IST.localize(parsed)
        return parsed.astimezone(UTC)

    return None


def from_epoch_millis(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, UTC)
    except (TypeError, ValueError, OverflowError):
        return None
