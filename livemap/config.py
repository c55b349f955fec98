"""Configuration settings for LiveMap."""

CONFIG = {
    # Map view
    "initial_center": (23.7808, 90.2794),  # Dhaka
    "initial_zoom": 13,
    "focus_zoom": 16,  # zoom used when jumping to a location or search result
    "follow_mode": True,  # recenter on every new position by default
    # Location stream
    "distance_filter": 5,  # meters - suppress fixes closer than this to the last one
    "gps_poll_interval": 3,  # seconds
    "gps_timeout": 30,  # seconds for a single fix
    "permission_check_timeout": 10,  # seconds
    # Remote lookups
    "request_timeout": 15,  # seconds
    "user_agent": "livemap/1.0",
    "nominatim_url": "https://nominatim.openstreetmap.org/search",
    "search_limit": 5,
    "osrm_url": "https://router.project-osrm.org",
    "osrm_profile": "driving",
    # Presentation
    "tile_url": "https://tile.openstreetmap.org/{z}/{x}/{y}.png",
    "live_view_http_port": 8080,
    "live_view_ws_port": 8765,
    "event_wait": 0.5,  # seconds the run loop blocks waiting for events
    "log_interval": 10,  # seconds between STATE log entries
}
