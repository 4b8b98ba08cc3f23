from __future__ import annotations

import html
import json
from string import Template
from typing import Optional, Sequence

from ..constants import MAP_STYLES
from ..models import CountryVisit

HTML_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>$title</title>
    <link rel=\"stylesheet\" href=\"https://unpkg.com/maplibre-gl@2.4.0/dist/maplibre-gl.css\" />
    <style>
      body {
        margin: 0;
        padding: 0;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        background: #05060f;
        color: #e2e8f0;
      }
      #deck-container {
        position: absolute;
        inset: 0;
      }
      .panel {
        position: absolute;
        z-index: 10;
        background: rgba(10, 12, 30, 0.85);
        backdrop-filter: blur(8px);
        border-radius: 12px;
        box-shadow: 0 12px 30px rgba(0, 0, 0, 0.45);
        padding: 14px 18px;
      }
      #header {
        top: 16px;
        left: 16px;
      }
      #header h1 {
        font-size: 1.15rem;
        margin: 0 0 8px 0;
        letter-spacing: 0.02em;
      }
      #header button {
        border: none;
        border-radius: 999px;
        padding: 6px 16px;
        font-weight: 600;
        cursor: pointer;
        background: linear-gradient(135deg, #00d4ff, #ff3ca8);
        color: #05060f;
      }
      #stats {
        bottom: 16px;
        right: 16px;
        display: flex;
        gap: 18px;
      }
      #stats .value {
        display: block;
        font-size: 1.2rem;
        font-weight: 700;
      }
      #stats .label {
        font-size: 0.75rem;
        opacity: 0.7;
        text-transform: uppercase;
      }
      #countries {
        top: 16px;
        right: 16px;
        max-height: 40vh;
        overflow-y: auto;
        font-size: 0.85rem;
      }
      #countries ul {
        list-style: none;
        margin: 0;
        padding: 0;
      }
    </style>
  </head>
  <body>
    <div id=\"header\" class=\"panel\">
      <h1>$title</h1>
      <div>$subtitle</div>
      <button id=\"play-toggle\" type=\"button\">Pause</button>
    </div>
    <div id=\"stats\" class=\"panel\">
$stats_block
    </div>
$countries_block
    <div id=\"deck-container\"></div>
    <script src=\"https://unpkg.com/maplibre-gl@2.4.0/dist/maplibre-gl.js\"></script>
    <script src=\"https://unpkg.com/deck.gl@8.9.27/dist.min.js\"></script>
    <script>
      const payload = ${payload};
      const mapStyle = ${map_style_url};
      const visible = new Set(${visible_layers});

      const state = {
        currentTime: 0,
        playing: true,
        startedAt: null,
        progress: 0,
      };
      const loopMs = payload.timeline.loopSeconds * 1000;
      const budget = payload.timeline.budget;

      const deckgl = new deck.DeckGL({
        container: 'deck-container',
        mapStyle,
        initialViewState: payload.initialViewState,
        controller: true,
        layers: [],
      });

      function buildLayers() {
        const layers = [];
        if (payload.dayPathSegments.length) {
          layers.push(new deck.PathLayer({
            id: 'day-replay-path-bg',
            data: payload.dayPathSegments,
            getPath: d => d.path,
            getColor: d => d.color,
            getWidth: 4,
            widthMinPixels: 3,
            widthMaxPixels: 10,
            capRounded: true,
            jointRounded: true,
          }));
        }
        if (visible.has('hexagon') && payload.grid.length) {
          layers.push(new deck.ColumnLayer({
            id: 'density-columns',
            data: payload.grid,
            diskResolution: 6,
            radius: 600,
            extruded: true,
            pickable: true,
            elevationScale: 200,
            getPosition: d => d.position,
            getElevation: d => d.elevation,
            getFillColor: d => d.color,
          }));
        }
        if (visible.has('arcs') && payload.arcs.length) {
          layers.push(new deck.ArcLayer({
            id: 'arcs-3d',
            data: payload.arcs,
            getSourcePosition: d => d.source,
            getTargetPosition: d => d.target,
            getSourceColor: d => d.color,
            getTargetColor: d => d.color,
            getWidth: d => d.width,
            getHeight: d => d.height,
            greatCircle: true,
          }));
        }
        if ((visible.has('trips') || payload.dayReplay) && payload.trips.length) {
          for (const trail of payload.trailLayers) {
            layers.push(new deck.TripsLayer({
              id: trail.id,
              data: payload.trips,
              getPath: d => d.path,
              getTimestamps: d => d.timestamps,
              getColor: trail.color,
              widthMinPixels: trail.widthMinPixels,
              widthMaxPixels: trail.widthMaxPixels,
              trailLength: trail.trailLength,
              currentTime: state.currentTime,
              capRounded: true,
              jointRounded: true,
            }));
          }
        }
        if (visible.has('visits') && payload.visits.length) {
          layers.push(new deck.ScatterplotLayer({
            id: 'visits',
            data: payload.visits,
            getPosition: d => d.coordinates,
            getFillColor: d => d.color,
            getRadius: d => d.radius,
            radiusMinPixels: 4,
            radiusMaxPixels: 18,
            pickable: true,
            stroked: true,
            getLineColor: [255, 255, 255, 40],
            lineWidthMinPixels: 1,
          }));
        }
        if (!state.playing && !payload.dayReplay && visible.has('trips') && payload.staticPaths.length) {
          layers.push(new deck.PathLayer({
            id: 'trips-static',
            data: payload.staticPaths,
            getPath: d => d.path,
            getColor: payload.staticPathColor,
            widthMinPixels: 2,
            widthMaxPixels: 6,
            capRounded: true,
            jointRounded: true,
          }));
        }
        return layers;
      }

      function frame(ts) {
        if (!state.playing) {
          return;
        }
        if (state.startedAt === null) {
          state.startedAt = ts - state.progress * loopMs;
        }
        state.progress = ((ts - state.startedAt) % loopMs) / loopMs;
        state.currentTime = state.progress * budget;
        deckgl.setProps({ layers: buildLayers() });
        requestAnimationFrame(frame);
      }

      const playToggle = document.getElementById('play-toggle');
      playToggle.addEventListener('click', () => {
        state.playing = !state.playing;
        playToggle.textContent = state.playing ? 'Pause' : 'Play';
        deckgl.setProps({ layers: buildLayers() });
        if (state.playing) {
          state.startedAt = null;
          requestAnimationFrame(frame);
        }
      });

      deckgl.setProps({ layers: buildLayers() });
      requestAnimationFrame(frame);
    </script>
  </body>
</html>
"""
)


def _script_json(value) -> str:
    # "</" inside an inline script would end it early
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def _stat(value: str, label: str) -> str:
    return (
        "      <div>\n"
        f"        <span class=\"value\">{value}</span>\n"
        f"        <span class=\"label\">{label}</span>\n"
        "      </div>"
    )


def render_html(
    payload: dict,
    visible_layers: Sequence[str],
    countries: Sequence[CountryVisit],
    map_style: str,
    subtitle: str,
    title: Optional[str] = None,
) -> str:
    stats = payload["stats"]
    stats_block = "\n".join(
        [
            _stat(f"{stats['places']:,}", "Places"),
            _stat(str(stats["cities"]), "Cities"),
            _stat(f"{stats['kilometers']:,}", "km"),
            _stat(f"{stats['hours']:,}", "Hours"),
        ]
    )

    if countries:
        rows = "\n".join(
            f"        <li>{html.escape(country.flag)} {html.escape(country.name)} · {country.days} day{'s' if country.days != 1 else ''}</li>"
            for country in countries
        )
        countries_block = (
            "    <div id=\"countries\" class=\"panel\">\n"
            f"      <strong>{len(countries)} countries</strong>\n"
            "      <ul>\n"
            f"{rows}\n"
            "      </ul>\n"
            "    </div>"
        )
    else:
        countries_block = ""

    return HTML_TEMPLATE.substitute(
        title=html.escape(title or ("Day Replay" if payload.get("dayReplay") else "An Odyssey")),
        subtitle=html.escape(subtitle),
        payload=_script_json(payload),
        map_style_url=_script_json(MAP_STYLES.get(map_style, map_style)),
        visible_layers=_script_json(sorted(visible_layers)),
        stats_block=stats_block,
        countries_block=countries_block,
    )
