"""Browser live view for a map session."""

import asyncio
import http.server
import json
import queue
import socketserver
import threading
import time
import webbrowser
from functools import partial
from typing import Callable, Optional

from .config import CONFIG
from .gps import LocationSource
from .models import Location, SessionState
from .render import render_layers


# HTML template for the live view
LIVE_VIEW_HTML = '''<!DOCTYPE html>
<html>
<head>
    <title>LiveMap</title>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; height: 100vh; display: flex; flex-direction: column; }
        header { background: #1e293b; color: white; padding: 12px 20px; display: flex; justify-content: space-between; align-items: center; }
        header h1 { font-size: 18px; font-weight: 600; }
        header button { background: #334155; color: white; border: none; padding: 6px 12px; border-radius: 12px; cursor: pointer; font-size: 12px; }
        header button.on { background: #22c55e; }
        .status-badge { background: #22c55e; padding: 4px 12px; border-radius: 12px; font-size: 12px; }
        .status-badge.disconnected { background: #ef4444; }
        #map { flex: 1; }
        .search-box { position: absolute; top: 64px; left: 60px; right: 10px; max-width: 480px; z-index: 1000; }
        .search-box input { width: 100%; padding: 10px 12px; border-radius: 12px; border: none; box-shadow: 0 2px 8px rgba(0,0,0,0.2); font-size: 14px; }
        .search-box .spinner { position: absolute; right: 12px; top: 10px; font-size: 12px; color: #64748b; display: none; }
        #results { margin-top: 6px; background: white; border-radius: 10px; box-shadow: 0 2px 8px rgba(0,0,0,0.15); max-height: 200px; overflow-y: auto; display: none; }
        #results div { padding: 8px 12px; font-size: 13px; cursor: pointer; border-bottom: 1px solid #e2e8f0; }
        #results div:hover { background: #f1f5f9; }
        #banner { position: absolute; left: 10px; right: 10px; bottom: 16px; z-index: 1000; background: rgba(239,68,68,0.9); color: white; padding: 10px; border-radius: 8px; font-size: 12px; text-align: center; white-space: pre-line; display: none; }
        #route-info { position: absolute; right: 10px; top: 64px; z-index: 1000; background: white; padding: 8px 12px; border-radius: 8px; font-size: 12px; box-shadow: 0 2px 8px rgba(0,0,0,0.15); display: none; }
        #recenter { position: absolute; right: 16px; bottom: 80px; z-index: 1000; width: 44px; height: 44px; border-radius: 50%; border: none; background: #f97316; color: white; font-size: 20px; cursor: pointer; box-shadow: 0 2px 8px rgba(0,0,0,0.3); }
    </style>
</head>
<body>
    <header>
        <h1>LiveMap</h1>
        <div>
            <button id="follow">Follow me</button>
            <span id="connection-status" class="status-badge disconnected">Disconnected</span>
        </div>
    </header>
    <div id="map"></div>
    <div class="search-box">
        <input id="query" type="search" placeholder="Search location (e.g. Dhaka, Gulshan)" />
        <span class="spinner" id="spinner">searching...</span>
        <div id="results"></div>
    </div>
    <div id="route-info"></div>
    <button id="recenter" title="Go to my location">&#9678;</button>
    <div id="banner"></div>
    <script>
        var map = L.map('map').setView([0, 0], 2);
        L.tileLayer('{{TILE_URL}}', {
            attribution: '&copy; OpenStreetMap contributors'
        }).addTo(map);

        var ws = null;
        var overlay = L.layerGroup().addTo(map);
        var lastView = null;

        function send(type, data) {
            if (ws && ws.readyState === WebSocket.OPEN) {
                ws.send(JSON.stringify({type: type, data: data || {}}));
            }
        }

        function connect() {
            ws = new WebSocket('ws://' + window.location.hostname + ':{{WS_PORT}}');

            ws.onopen = function() {
                document.getElementById('connection-status').textContent = 'Connected';
                document.getElementById('connection-status').classList.remove('disconnected');
            };

            ws.onclose = function() {
                document.getElementById('connection-status').textContent = 'Disconnected';
                document.getElementById('connection-status').classList.add('disconnected');
                setTimeout(connect, 2000);
            };

            ws.onmessage = function(event) {
                var msg = JSON.parse(event.data);
                if (msg.type === 'state') {
                    render(msg.data);
                } else if (msg.type === 'log') {
                    console.log(msg.data.message, msg.data.data || '');
                }
            };
        }

        function render(layers) {
            overlay.clearLayers();
            layers.polylines.forEach(function(line) {
                L.polyline(line.points, {
                    color: line.color,
                    weight: line.weight,
                    opacity: line.opacity,
                    dashArray: line.dashed ? '8 6' : null
                }).addTo(overlay);
            });
            layers.markers.forEach(function(marker) {
                L.circleMarker(marker.point, {
                    radius: marker.name === 'me' ? 9 : 11,
                    fillColor: marker.color,
                    color: '#ffffff',
                    weight: 2,
                    fillOpacity: 0.9
                }).addTo(overlay).bindPopup(marker.label);
            });

            // Only move the camera when the session moved it
            var view = JSON.stringify([layers.center, layers.zoom]);
            if (view !== lastView) {
                map.setView(layers.center, layers.zoom);
                lastView = view;
            }

            var follow = document.getElementById('follow');
            follow.textContent = layers.follow_mode ? 'Stop follow' : 'Follow me';
            follow.classList.toggle('on', layers.follow_mode);

            document.getElementById('spinner').style.display = layers.searching ? 'block' : 'none';

            var results = document.getElementById('results');
            results.innerHTML = '';
            layers.results.forEach(function(r, index) {
                var item = document.createElement('div');
                item.textContent = r.name;
                item.onclick = function() { send('select', {index: index}); };
                results.appendChild(item);
            });
            results.style.display = layers.results.length ? 'block' : 'none';

            var banner = document.getElementById('banner');
            banner.textContent = layers.banner || '';
            banner.style.display = layers.banner ? 'block' : 'none';

            var info = document.getElementById('route-info');
            if (layers.route && layers.route.distance) {
                var text = (layers.route.distance / 1000).toFixed(1) + ' km';
                if (layers.route.duration) {
                    text += ', ' + Math.round(layers.route.duration / 60) + ' min';
                }
                if (layers.route.fallback) {
                    text += ' (straight line)';
                }
                info.textContent = text;
                info.style.display = 'block';
            } else {
                info.style.display = 'none';
            }
        }

        document.getElementById('query').addEventListener('keydown', function(e) {
            if (e.key === 'Enter') {
                send('search', {query: e.target.value});
            }
        });
        document.getElementById('follow').onclick = function() { send('follow'); };
        document.getElementById('recenter').onclick = function() { send('recenter'); };

        // Map clicks act as GPS fixes when the session runs with --click
        map.on('click', function(e) {
            send('location', {lat: e.latlng.lat, lon: e.latlng.lng});
        });

        connect();
    </script>
</body>
</html>'''


class LiveViewServer:
    """HTTP and WebSocket server for the browser live view.

    State snapshots are pushed to every connected browser; browser commands
    (search, select, follow, recenter) go to `on_command`, map clicks to the
    location queue read by WebSocketGPS.
    """

    def __init__(self, http_port: Optional[int] = None, ws_port: Optional[int] = None,
                 on_command: Optional[Callable[[str, dict], None]] = None):
        self.http_port = http_port or CONFIG["live_view_http_port"]
        self.ws_port = ws_port or CONFIG["live_view_ws_port"]
        self.on_command = on_command
        self.location_queue: queue.Queue = queue.Queue()
        self.http_thread = None
        self.ws_thread = None
        self.ws_loop = None
        self.connected_clients: set = set()
        self.last_state: Optional[SessionState] = None
        self._last_message: Optional[str] = None
        self._running = False

    def start(self, open_browser: bool = True):
        """Start HTTP and WebSocket servers in background threads"""
        self._running = True

        self.http_thread = threading.Thread(target=self._run_http_server, daemon=True)
        self.http_thread.start()

        self.ws_thread = threading.Thread(target=self._run_ws_server, daemon=True)
        self.ws_thread.start()

        # Give servers time to start
        time.sleep(0.5)

        url = f"http://localhost:{self.http_port}"
        print(f"Live view available at: {url}")
        if open_browser:
            webbrowser.open(url)

    def _run_http_server(self):
        """Run the HTTP server for serving the page"""
        handler = partial(_LiveViewHTTPHandler, self.ws_port)
        with _ReusableTCPServer(("", self.http_port), handler) as httpd:
            httpd.timeout = 0.5
            while self._running:
                httpd.handle_request()

    def _run_ws_server(self):
        """Run the WebSocket server"""
        self.ws_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.ws_loop)

        async def handler(websocket):
            self.connected_clients.add(websocket)
            try:
                if self._last_message:
                    await websocket.send(self._last_message)
                async for message in websocket:
                    try:
                        self.handle_message(json.loads(message))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        print(f"Ignoring bad live view message: {e}")
            finally:
                self.connected_clients.discard(websocket)

        async def main():
            try:
                import websockets
                async with websockets.serve(handler, "localhost", self.ws_port):
                    while self._running:
                        await asyncio.sleep(0.1)
            except OSError as e:
                print(f"WebSocket server error: {e}")

        self.ws_loop.run_until_complete(main())

    def handle_message(self, message: dict):
        """Route one browser message"""
        msg_type = message.get("type")
        data = message.get("data") or {}
        if msg_type == "location":
            self.location_queue.put(Location(
                lat=float(data["lat"]),
                lon=float(data["lon"]),
                accuracy=0,
                timestamp=time.time()
            ))
        elif self.on_command and msg_type in ("search", "select", "follow", "recenter"):
            self.on_command(msg_type, data)

    def _send_message(self, msg_type: str, data: dict):
        """Send a message to all connected WebSocket clients"""
        message = json.dumps({"type": msg_type, "data": data}, default=str)
        if msg_type == "state":
            self._last_message = message
        if not self.connected_clients or not self.ws_loop:
            return

        async def send_to_all():
            for client in list(self.connected_clients):
                try:
                    await client.send(message)
                except Exception:
                    self.connected_clients.discard(client)

        asyncio.run_coroutine_threadsafe(send_to_all(), self.ws_loop)

    def send_state(self, state: SessionState):
        """Push a session snapshot to the browser"""
        self.last_state = state
        self._send_message("state", render_layers(state))

    def send_log(self, message: str, data: Optional[dict] = None):
        self._send_message("log", {"message": message, "data": data})

    def get_clicked_location(self, timeout: float = 30) -> Optional[Location]:
        """Block until user clicks on map, return Location"""
        try:
            return self.location_queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self):
        """Stop the servers"""
        self._running = False


class _ReusableTCPServer(socketserver.TCPServer):
    allow_reuse_address = True


class _LiveViewHTTPHandler(http.server.SimpleHTTPRequestHandler):
    """HTTP handler that serves the live view page"""

    def __init__(self, ws_port: int, *args, **kwargs):
        self.ws_port = ws_port
        super().__init__(*args, **kwargs)

    def do_GET(self):
        if self.path == '/' or self.path == '/index.html':
            self.send_response(200)
            self.send_header('Content-type', 'text/html')
            self.end_headers()
            page = (LIVE_VIEW_HTML
                    .replace('{{WS_PORT}}', str(self.ws_port))
                    .replace('{{TILE_URL}}', CONFIG["tile_url"]))
            self.wfile.write(page.encode())
        else:
            self.send_error(404)

    def log_message(self, format, *args):
        pass  # Suppress HTTP log messages


class WebSocketGPS(LocationSource):
    """Location source fed by map clicks in the live view.

    Between clicks the last clicked position is reported again, so an idle
    map is not a stream error.
    """

    def __init__(self, server: LiveViewServer):
        super().__init__()
        self.server = server

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        location = self.server.get_clicked_location(timeout=timeout)
        if location:
            self.last_location = location
            self.consecutive_failures = 0
            return location
        if self.last_location is None:
            self.consecutive_failures += 1
        return self.last_location

    def get_poll_interval(self) -> float:
        # get_location already blocks until a click arrives
        return 0.1

    def get_status(self) -> str:
        if self.last_location is None:
            return "No location clicked yet (click the map to set location)"
        return "Live view (click map to set location)"
