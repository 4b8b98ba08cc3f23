from __future__ import annotations

from datetime import datetime, timezone
from typing import List


def parse_date_string(date_str: str) -> datetime:
    cleaned = date_str.strip()
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Invalid date format '{date_str}'. Use YYYYMMDD or YYYY-MM-DD.")


def format_timespan(seconds: float) -> str:
    if seconds <= 0:
        return "0 days"
    total_days = int(seconds // 86400)
    years, rem_days = divmod(total_days, 365)
    months, days = divmod(rem_days, 30)
    parts: List[str] = []
    if years:
        parts.append(f"{years} year{'s' if years != 1 else ''}")
    if months:
        parts.append(f"{months} month{'s' if months != 1 else ''}")
    if days or not parts:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    return ", ".join(parts)


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return "<1 min"
    if seconds < 3600:
        return f"{round(seconds / 60)} min"
    hours = int(seconds // 3600)
    minutes = round((seconds % 3600) / 60)
    return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"


def format_distance(km: float) -> str:
    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"


def format_clock_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%I:%M %p").lstrip("0")


def isoformat_day(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
