"""UTC timestamp helpers shared by the score log, prize codes, and snapshots.

All persisted instants use the fixed-width form ``YYYY-MM-DDTHH:MM:SS.sssZ``,
so string order and time order agree.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable

ISO_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z")
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_iso(value: object) -> bool:
    if not isinstance(value, str) or not ISO_PATTERN.fullmatch(value):
        return False
    try:
        parse_iso(value)
    except ValueError:
        return False
    return True


def parse_iso(value: str) -> datetime:
    return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc)


def to_iso(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def truncate_ms(moment: datetime) -> datetime:
    return moment.replace(microsecond=(moment.microsecond // 1000) * 1000)
