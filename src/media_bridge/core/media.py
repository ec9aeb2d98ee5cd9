"""Helpers for preparing a media attachment before delivery."""

from __future__ import annotations

import re
import time
from datetime import datetime, tzinfo

MAX_FILENAME_LENGTH = 64
MAX_CAPTION_LENGTH = 200

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def estimate_size_mb(data: str) -> int:
    """Approximate decoded size of base64 ``data``, rounded to whole MiB.

    Every 4 encoded characters carry 3 bytes. Padding is not subtracted, so the
    result can overshoot by up to two bytes, which never matters at MiB
    granularity.
    """
    return round(len(data) * 3 / 4 / 1024 / 1024)


def sanitize_filename(name: str | None) -> str:
    """Make ``name`` safe to hand to Telegram as an upload file name."""
    if not name:
        return f"media_{int(time.time() * 1000)}.bin"
    return _UNSAFE_FILENAME_CHARS.sub("_", name)[:MAX_FILENAME_LENGTH]


def _format_us_datetime(when: datetime) -> str:
    # e.g. "1/2/2024, 3:04:05 PM"
    hour = when.hour % 12 or 12
    meridiem = "AM" if when.hour < 12 else "PM"
    return (
        f"{when.month}/{when.day}/{when.year}, "
        f"{hour}:{when.minute:02d}:{when.second:02d} {meridiem}"
    )


def build_caption(sender: str, timestamp: int, tz: tzinfo | None = None) -> str:
    """Caption naming the WhatsApp sender and when the message was sent."""
    when = datetime.fromtimestamp(int(timestamp), tz)
    caption = f"Media from WhatsApp:\nFrom: {sender}\nTime: {_format_us_datetime(when)}"
    return caption[:MAX_CAPTION_LENGTH]
