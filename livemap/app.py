"""Main LiveMap application."""

import time
from typing import Optional

from .config import CONFIG
from .gps import GPS, GPSPlayback, GPSRecorder
from .live_view import LiveViewServer
from .logger import Logger
from .render import save_html
from .session import MapSession


class LiveMap:
    """Wires a location source, the map session and the live view together"""

    def __init__(self, log_path: Optional[str] = None,
                 live_view: bool = True,
                 follow_mode: Optional[bool] = None,
                 html_output: Optional[str] = None,
                 initial_query: Optional[str] = None,
                 open_browser: bool = True):
        self.gps = GPS()
        self.follow_mode = follow_mode
        self.html_output = html_output  # HTML file for the final map
        self.initial_query = initial_query

        # Live view server
        self.live_server: Optional[LiveViewServer] = None
        if live_view:
            self.live_server = LiveViewServer(on_command=self.handle_command)
            self.live_server.start(open_browser=open_browser)

        # Logger with optional callback for the live view
        log_callback = self.live_server.send_log if self.live_server else None
        self.logger = Logger(log_path, callback=log_callback)

        # GPS source (can be swapped for fixed/recording/playback/clicks)
        self.gps_source = self.gps
        self.session: Optional[MapSession] = None

        self.last_log_update = 0
        self.start_time = 0

    def set_gps_source(self, source):
        """Set location source (GPS, FixedGPS, GPSRecorder, GPSPlayback or WebSocketGPS)"""
        self.gps_source = source

    def create_session(self) -> MapSession:
        session = MapSession(self.gps_source, logger=self.logger, follow_mode=self.follow_mode)
        if self.live_server:
            session.add_listener(self.live_server.send_state)
        self.session = session
        return session

    def handle_command(self, command: str, data: dict):
        """Translate a live view command into a session event (WebSocket thread)"""
        if not self.session:
            return
        if command == "search":
            self.session.search(str(data.get("query", "")))
        elif command == "select":
            state = self.live_server.last_state if self.live_server else None
            index = data.get("index")
            # JSON true/false arrive as bool, which is an int subclass
            if isinstance(index, bool) or not isinstance(index, int):
                return
            if state is None or not 0 <= index < len(state.search_results):
                return
            self.session.select_result(state.search_results[index])
        elif command == "follow":
            self.session.toggle_follow(data.get("enabled"))
        elif command == "recenter":
            self.session.recenter()

    def get_state(self) -> dict:
        """Get a compact state summary for logging"""
        state = self.session.snapshot()
        summary = {
            "trail_points": len(state.trail),
            "route_points": len(state.route_geometry),
            "follow_mode": state.follow_mode,
            "gps_status": self.gps_source.get_status() if hasattr(self.gps_source, 'get_status') else "unknown",
        }
        if state.current_location:
            summary["location"] = state.current_location.to_dict()
        if state.selected_destination:
            summary["destination"] = state.selected_destination.to_dict()
        if state.error:
            summary["error"] = state.error.text
        return summary

    def periodic_update(self):
        """Handle periodic status updates"""
        now = time.time()
        if now - self.last_log_update >= CONFIG["log_interval"]:
            self.logger.log("STATE", self.get_state())
            self.last_log_update = now

    def is_playback_finished(self) -> bool:
        """Check if playback is complete and every fix has been delivered"""
        if isinstance(self.gps_source, GPSPlayback):
            return self.gps_source.is_finished() and not self.session.stream_running
        return False

    def run(self):
        """Run the session until interrupted (or until playback ends)"""

        print("\n=== LiveMap ===")
        if isinstance(self.gps_source, GPSPlayback):
            print(f"Playback mode: {self.gps_source.speed}x speed")
        print("Press Ctrl+C to stop")
        print()

        session = self.create_session()
        self.start_time = time.time()

        if session.start():
            location = session.snapshot().current_location
            print(f"Location: {location.lat:.5f}, {location.lon:.5f}")
        else:
            print(f"Location unavailable: {session.snapshot().error_text}")

        if self.initial_query:
            session.search(self.initial_query)

        try:
            while True:
                session.process_pending(timeout=CONFIG["event_wait"])
                self.periodic_update()

                if self.is_playback_finished():
                    session.process_pending()
                    print("\nPlayback finished")
                    self.logger.log("Playback finished")
                    break

                # Nothing more can happen without a stream or a browser
                if not self.live_server and not session.stream_running:
                    session.process_pending()
                    break
        except KeyboardInterrupt:
            print("\nSession interrupted")
            self.logger.log("Session interrupted by user")
        finally:
            final_state = session.snapshot()
            session.dispose()

            # Save GPS recording if applicable
            if isinstance(self.gps_source, GPSRecorder):
                self.gps_source.save()
                self.logger.log("GPS trace saved", self.gps_source.summary())

            if self.html_output:
                save_html(final_state, self.html_output)
                print(f"Map saved to: {self.html_output}")

            summary = {
                "trail_points": len(final_state.trail),
                "destination": final_state.selected_destination.to_dict() if final_state.selected_destination else None,
                "route_points": len(final_state.route_geometry),
                "duration": time.time() - self.start_time,
            }
            self.logger.log("Session summary", summary)

            print("\nSession summary:")
            print(f"  Trail points: {summary['trail_points']}")
            print(f"  Route points: {summary['route_points']}")
            print(f"  Duration: {summary['duration']/60:.1f} minutes")

            if self.live_server:
                self.live_server.stop()
            self.logger.close()
