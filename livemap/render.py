"""Render projection of a session snapshot, plus static HTML export with folium."""

import html

import folium

from .config import CONFIG
from .models import SessionState

TRAIL_COLOR = "#22c55e"
ROUTE_COLOR = "#3b82f6"
FALLBACK_ROUTE_COLOR = "#f97316"
DESTINATION_COLOR = "#ef4444"


def render_layers(state: SessionState) -> dict:
    """Project a snapshot onto what the map screen draws.

    Plain JSON-friendly dict; the live view sends it as-is to the browser.
    """
    polylines = []
    if len(state.trail) > 1:
        polylines.append({
            "name": "trail",
            "points": [c.to_list() for c in state.trail],
            "color": TRAIL_COLOR,
            "weight": 3,
            "opacity": 0.7,
            "dashed": False,
        })
    if state.route and state.route.points:
        polylines.append({
            "name": "route",
            "points": [c.to_list() for c in state.route.points],
            "color": FALLBACK_ROUTE_COLOR if state.route.fallback else ROUTE_COLOR,
            "weight": 4,
            "opacity": 0.9,
            "dashed": state.route.fallback,
        })

    markers = []
    if state.current_location:
        markers.append({"name": "me", "point": state.current_location.to_list(),
                        "color": TRAIL_COLOR, "label": "My location"})
    if state.selected_destination:
        markers.append({"name": "destination", "point": state.selected_destination.to_list(),
                        "color": DESTINATION_COLOR, "label": "Destination"})

    route_summary = None
    if state.route:
        route_summary = {
            "distance": state.route.distance,
            "duration": state.route.duration,
            "fallback": state.route.fallback,
        }

    return {
        "center": state.view.center.to_list(),
        "zoom": state.view.zoom,
        "follow_mode": state.follow_mode,
        "polylines": polylines,
        "markers": markers,
        "results": [r.to_dict() for r in state.search_results],
        "searching": state.searching,
        "banner": state.error_text,
        "route": route_summary,
    }


def build_map(state: SessionState) -> folium.Map:
    """Create a folium map showing trail, route and markers of a snapshot"""
    layers = render_layers(state)

    m = folium.Map(
        location=layers["center"],
        zoom_start=layers["zoom"],
        tiles=None,
    )
    folium.TileLayer(
        CONFIG["tile_url"],
        attr="&copy; OpenStreetMap contributors",
        name="OpenStreetMap",
    ).add_to(m)

    for line in layers["polylines"]:
        folium.PolyLine(
            line["points"],
            color=line["color"],
            weight=line["weight"],
            opacity=line["opacity"],
            dash_array="8 6" if line["dashed"] else None,
            tooltip=line["name"].capitalize(),
        ).add_to(m)

    for marker in layers["markers"]:
        if marker["name"] == "me":
            folium.CircleMarker(
                marker["point"],
                radius=9,
                color="#ffffff",
                weight=2,
                fill=True,
                fill_color=marker["color"],
                fill_opacity=0.9,
                popup=marker["label"],
            ).add_to(m)
        else:
            folium.Marker(
                marker["point"],
                popup=marker["label"],
                icon=folium.Icon(color="red", icon="map-marker"),
            ).add_to(m)

    if layers["banner"]:
        banner = html.escape(layers["banner"]).replace("\n", "<br>")
        m.get_root().html.add_child(folium.Element(
            '<div style="position: fixed; left: 10px; right: 10px; bottom: 16px; z-index: 1000; '
            'background: rgba(239,68,68,0.9); color: white; padding: 10px; border-radius: 8px; '
            f'font-size: 12px; text-align: center;">{banner}</div>'
        ))

    return m


def save_html(state: SessionState, path: str) -> str:
    """Write the snapshot map to an HTML file and return the path"""
    build_map(state).save(path)
    return path
