# devca/common/utils.py
import datetime
import hashlib
from typing import List


def utc_now() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def sha1_hex(data: bytes) -> str:
    """Return SHA1(data) as uppercase hex string."""
    return hashlib.sha1(data).hexdigest().upper()


def split_csv(value: str) -> List[str]:
    """Split a comma-separated CLI value, dropping empty segments."""
    return [part for part in value.split(",") if part]
