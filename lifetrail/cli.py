from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import GridConfig, ProcessingConfig, StatsConfig
from .constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_MAP_STYLE,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_VISIBLE_LAYERS,
    LAYER_NAMES,
    MAP_STYLES,
    SECONDS_PER_DAY,
)
from .deckbuilder import build_deck_payload
from .io import load_history
from .models import TimeWindow
from .session import Session
from .stats import compute_country_stats, print_stats
from .template.renderer import render_html
from .time_utils import format_clock_time, format_distance, format_duration, format_timespan, isoformat_day, parse_date_string


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build an animated deck.gl explorer from pre-parsed location history."
    )
    parser.add_argument(
        "-d",
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help="Directory holding visits.json, trips.json, arcs.json and metadata.json.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help=f"HTML path for the generated explorer (default: {DEFAULT_OUTPUT_PATH.name}).",
    )
    parser.add_argument(
        "--window",
        type=float,
        nargs=2,
        metavar=("START", "END"),
        default=(0.0, 1.0),
        help="Visible time window as fractions of the dataset span (default: 0 1).",
    )
    parser.add_argument(
        "--day",
        type=str,
        default=None,
        help="Replay a single day (YYYY-MM-DD) as one continuous trail.",
    )
    parser.add_argument(
        "--layers",
        type=str,
        default=",".join(sorted(DEFAULT_VISIBLE_LAYERS)),
        help=f"Comma-separated visible layers out of {', '.join(LAYER_NAMES)}.",
    )
    parser.add_argument(
        "--cell-size",
        type=float,
        default=GridConfig().cell_size,
        help="Density grid cell size in degrees (default: %(default)s).",
    )
    parser.add_argument(
        "--gap-days",
        type=float,
        default=StatsConfig().max_gap_seconds / SECONDS_PER_DAY,
        help="Ignore hops between visits further apart than this many days (default: %(default)s).",
    )
    parser.add_argument(
        "--max-hop-km",
        type=float,
        default=StatsConfig().max_hop_km,
        help="Ignore single hops of this many kilometres or more (default: %(default)s).",
    )
    parser.add_argument(
        "--map-style",
        type=str,
        default=DEFAULT_MAP_STYLE,
        help="Basemap style (Voyager, Positron, Dark Matter) or a custom MapLibre style URL.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Write the render payload as JSON instead of an HTML page.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log processing details.",
    )
    return parser.parse_args(argv)


def normalise_map_style(style: str) -> str:
    style = style.strip()
    if not style:
        return DEFAULT_MAP_STYLE
    if style in MAP_STYLES:
        return style
    title_candidate = style.title()
    if title_candidate in MAP_STYLES:
        return title_candidate
    return style


def parse_layers(raw: str) -> frozenset:
    layers = frozenset(part.strip() for part in raw.split(",") if part.strip())
    unknown = layers - set(LAYER_NAMES)
    if unknown:
        raise SystemExit(f"Unknown layer(s): {', '.join(sorted(unknown))}. Choose from {', '.join(LAYER_NAMES)}.")
    return layers


def build_config(args: argparse.Namespace) -> ProcessingConfig:
    try:
        grid = GridConfig(cell_size=args.cell_size)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    stats = StatsConfig(max_gap_seconds=args.gap_days * SECONDS_PER_DAY, max_hop_km=args.max_hop_km)
    return ProcessingConfig(grid=grid, stats=stats)


def print_day_timeline(session: Session) -> None:
    print("\nDay Replay")
    print("----------")
    for item in session.day_timeline:
        if item.kind == "visit":
            print(f"  {format_clock_time(item.timestamp):>8}  {item.name}")
        else:
            print(f"  {'':>8}  → {format_duration(item.duration)} · {format_distance(item.distance_km)}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        history = load_history(args.data_dir.expanduser())
    except FileNotFoundError as exc:
        raise SystemExit(str(exc)) from exc
    except (ValueError, json.JSONDecodeError) as exc:
        raise SystemExit(f"Could not read location history: {exc}") from exc

    if not history.visits and not history.trips:
        raise SystemExit("No visits or trips found in the supplied data directory.")

    try:
        window = TimeWindow(*args.window)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    session = Session(history, build_config(args))
    session.set_visible_layers(parse_layers(args.layers))
    session.set_window(window)

    metadata = history.metadata
    subtitle = format_timespan(metadata.span)
    if args.day:
        try:
            day = parse_date_string(args.day)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc
        result = session.enter_day_replay(day.timestamp())
        if not result.found:
            hint = f" Closest recorded day: {isoformat_day(result.closest.timestamp)}." if result.closest else ""
            raise SystemExit(f"No visits recorded on {args.day}.{hint}")
        subtitle = f"{args.day} · {len(result.visits)} places"
        print_day_timeline(session)

    payload = build_deck_payload(session)
    view = session.view()
    countries = compute_country_stats(history.visits, session.window, metadata)
    print_stats(view.stats, countries)

    if args.json:
        output_path = args.output or DEFAULT_OUTPUT_PATH.with_suffix(".json")
        content = json.dumps(payload, ensure_ascii=False)
    else:
        output_path = args.output or DEFAULT_OUTPUT_PATH
        content = render_html(
            payload,
            sorted(session.visible_layers),
            countries,
            map_style=normalise_map_style(args.map_style),
            subtitle=subtitle,
        )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    print(f"Saved explorer to {output_path.resolve()}")
