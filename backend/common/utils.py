# Copyright (c) 2025 Efstratios Goudelis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.


import re
from datetime import UTC, datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# yyyy-MM-dd'T'HH:mm:ss.SSS followed by an offset: Z, +hhmm or +hh:mm
TIMESTAMP_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}(Z|[+-]\d{2}:?\d{2})$"
)


def utc_now() -> datetime:
    """
    Current UTC time truncated to millisecond precision, which is the
    resolution the timestamps are stored with.
    """
    return truncate_to_millis(datetime.now(UTC))


def truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def datetime_to_millis(value: datetime) -> int:
    """
    Converts a datetime into integer milliseconds since the epoch.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def millis_to_datetime(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=int(value))


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parses a timestamp such as 2025-02-25T21:14:05.120+0200 or
    2025-02-25T19:14:05.120Z into an aware datetime.

    Returns None when the string does not follow the format exactly.
    """
    if value is None or not TIMESTAMP_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        return None


def format_timestamp(value: datetime) -> str:
    """
    Formats an aware datetime as yyyy-MM-ddTHH:mm:ss.SSS plus offset, using Z for UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset()
    base = value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}"
    if not offset:
        return base + "Z"
    return base + value.strftime("%z")
