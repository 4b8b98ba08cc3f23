from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
import pycountry

from .config import StatsConfig
from .constants import COUNTRY_ALIASES, UNKNOWN_LABEL
from .geo import haversine_vectorized
from .models import CountryVisit, DatasetMetadata, TimeWindow, TravelStats, Trip, Visit
from .sanitize import trips_in_range

logger = logging.getLogger(__name__)

_KANA = re.compile(r"[ぁ-んァ-ン]")


def filter_visits(
    visits: Sequence[Visit],
    window: TimeWindow,
    metadata: DatasetMetadata,
) -> List[Visit]:
    range_start, range_end = window.to_absolute(metadata)
    return [
        visit
        for visit in visits
        if visit.has_geometry and range_start <= visit.timestamp <= range_end
    ]


def filter_trips(
    trips: Sequence[Trip],
    window: TimeWindow,
    metadata: DatasetMetadata,
) -> List[Trip]:
    range_start, range_end = window.to_absolute(metadata)
    return trips_in_range(trips, range_start, range_end)


def compute_total_distance_km(
    visits: Sequence[Visit],
    config: Optional[StatsConfig] = None,
) -> float:
    """Sum of hops between chronologically consecutive visits.

    Hops across a time gap longer than ``max_gap_seconds`` are data gaps, and
    single hops of ``max_hop_km`` or more are treated as outliers; both are
    left out.
    """
    config = config or StatsConfig()
    ordered = sorted((visit for visit in visits if visit.has_geometry), key=lambda visit: visit.timestamp)
    if len(ordered) < 2:
        return 0.0

    coords = np.array([visit.coordinates[:2] for visit in ordered], dtype=float)
    times = np.array([visit.timestamp for visit in ordered], dtype=float)
    distances = haversine_vectorized(coords[:-1, 1], coords[:-1, 0], coords[1:, 1], coords[1:, 0])
    valid = (np.diff(times) <= config.max_gap_seconds) & (distances < config.max_hop_km)
    return float(distances[valid].sum())


def compute_travel_stats(
    visits: Sequence[Visit],
    window: TimeWindow,
    metadata: DatasetMetadata,
    config: Optional[StatsConfig] = None,
) -> TravelStats:
    filtered = filter_visits(visits, window, metadata)
    if not filtered:
        return TravelStats()
    cities = {visit.city for visit in filtered if visit.city and visit.city != UNKNOWN_LABEL}
    total_minutes = sum(visit.duration_minutes or 0 for visit in filtered)
    return TravelStats(
        places=len(filtered),
        cities=len(cities),
        kilometers=round(compute_total_distance_km(filtered, config)),
        hours=round(total_minutes / 60),
    )


def extract_country(address: Optional[str]) -> Optional[str]:
    """Country name taken from the last comma-separated part of an address."""
    if not address:
        return None
    last = address.split(",")[-1].strip()
    if "United Arab Emirates" in last:
        return "United Arab Emirates"
    if not last or last[0].isdigit():
        return None
    if _KANA.search(last):
        return "Japan"
    if len(last) > 30:
        return None
    return last


def lookup_country(name: str) -> Optional[Tuple[str, str, str]]:
    """``(display name, alpha-2 code, flag)`` for a recognised country, else ``None``."""
    code = COUNTRY_ALIASES.get(name)
    try:
        match = pycountry.countries.get(alpha_2=code) if code else pycountry.countries.lookup(name)
    except LookupError:
        return None
    if match is None:
        return None
    flag = getattr(match, "flag", "")
    return getattr(match, "common_name", match.name), match.alpha_2, flag


def compute_country_stats(
    visits: Sequence[Visit],
    window: TimeWindow,
    metadata: DatasetMetadata,
) -> List[CountryVisit]:
    counts: Dict[str, int] = {}
    days: Dict[str, Set[str]] = {}
    details: Dict[str, Tuple[str, str, str]] = {}
    unresolved: Set[str] = set()

    for visit in filter_visits(visits, window, metadata):
        country = extract_country(visit.address) or visit.country
        if not country or country in unresolved:
            continue
        if country not in details:
            resolved = lookup_country(country)
            if resolved is None:
                unresolved.add(country)
                continue
            details[country] = resolved
        name, code, _ = details[country]
        counts[code] = counts.get(code, 0) + 1
        day = datetime.fromtimestamp(visit.timestamp, tz=timezone.utc).date().isoformat()
        days.setdefault(code, set()).add(day)

    if unresolved:
        logger.debug("Ignored %s unrecognised country names", len(unresolved))

    by_code = {code: (name, flag) for name, code, flag in details.values()}
    result = [
        CountryVisit(name=by_code[code][0], code=code, flag=by_code[code][1], visits=count, days=len(days[code]))
        for code, count in counts.items()
    ]
    result.sort(key=lambda item: (-item.visits, item.name))
    return result


def print_stats(stats: TravelStats, countries: Sequence[CountryVisit]) -> None:
    print("\nTravel Stats")
    print("------------")
    print(f"Places: {stats.places:,}")
    print(f"Cities: {stats.cities}")
    print(f"Distance: {stats.kilometers:,} km")
    print(f"Time at places: {stats.hours:,} hours")
    if countries:
        print(f"\nVisited countries: {len(countries)}")
        for country in countries:
            print(
                f"  {country.flag} {country.name} ({country.code}): "
                f"{country.visits} visit{'s' if country.visits != 1 else ''}, "
                f"{country.days} day{'s' if country.days != 1 else ''}"
            )
