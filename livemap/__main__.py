#!/usr/bin/env python3
"""
LiveMap - live location, place search and road routes on one map

Usage:
    python -m livemap [options]

Options:
    --lat LAT         Fixed latitude (for testing without GPS)
    --lon LON         Fixed longitude (for testing without GPS)
    --record FILE     Record GPS trace to JSON file for debugging
    --playback FILE   Playback GPS trace from JSON file
    --speed FACTOR    Playback speed multiplier (default: 1.0)
    --click           Use map clicks in the live view as the location source
    --search QUERY    Search for a place once the session has started
    --no-follow       Do not recenter the map on every position update
    --no-live         Run without the browser live view
    --no-browser      Start the live view without opening a browser
    --html FILE       Write the final map to an HTML file
    --log FILE        Log file path (default: livemap_TIMESTAMP.log)
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from .app import LiveMap
from .gps import FixedGPS, GPSPlayback, GPSRecorder
from .live_view import WebSocketGPS


def main():
    parser = argparse.ArgumentParser(
        description="LiveMap - live location, place search and road routes on one map"
    )
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Fixed latitude (for testing without GPS)")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Fixed longitude (for testing without GPS)")
    parser.add_argument("--record", metavar="FILE",
                        help="Record GPS trace to JSON file")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--click", action="store_true",
                        help="Use map clicks in the live view as the location source")
    parser.add_argument("--search", metavar="QUERY",
                        help="Search for a place once the session has started")
    parser.add_argument("--no-follow", action="store_true",
                        help="Do not recenter the map on every position update")
    parser.add_argument("--no-live", action="store_true",
                        help="Run without the browser live view")
    parser.add_argument("--no-browser", action="store_true",
                        help="Start the live view without opening a browser")
    parser.add_argument("--html", metavar="FILE",
                        help="Write the final map to an HTML file")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: livemap_TIMESTAMP.log)")

    args = parser.parse_args()

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")

    if args.click and args.no_live:
        parser.error("--click requires the live view")

    sources = [args.lat is not None, bool(args.playback), args.click]
    if sum(sources) > 1:
        parser.error("--lat/--lon, --playback and --click are mutually exclusive")

    if args.playback and not Path(args.playback).exists():
        print(f"Playback file not found: {args.playback}")
        sys.exit(1)

    # Determine log path
    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"livemap_{timestamp}.log"

    app = LiveMap(
        log_path=log_path,
        live_view=not args.no_live,
        follow_mode=False if args.no_follow else None,
        html_output=args.html,
        initial_query=args.search,
        open_browser=not args.no_browser,
    )

    # Set up location source
    if args.click:
        source = WebSocketGPS(app.live_server)
    elif args.playback:
        source = GPSPlayback(args.playback, args.speed)
    elif args.lat is not None:
        source = FixedGPS(args.lat, args.lon)
    else:
        source = app.gps

    if args.record:
        source = GPSRecorder(source, args.record)
    app.set_gps_source(source)

    app.run()


if __name__ == "__main__":
    main()
