"""
Flight Tracker command line.

Usage:
    python -m flight_tracker track UA123 --duration 60
    python -m flight_tracker details UA123
    python -m flight_tracker airport JFK
    python -m flight_tracker search airport lhr
    python -m flight_tracker notify UA123
    python -m flight_tracker notifications --mark-read <id>

Configuration:
    Copy config.example.py to config.py and edit it to choose the flight data source,
    refresh interval and logging preferences.
"""

import argparse
import json
import logging
import sys
from time import monotonic, sleep

from flight_tracker.errors import FlightDataError, ValidationError
from flight_tracker.services.search import parse_search

LOGGER = logging.getLogger("flight_tracker")


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _flight_rows(flights) -> list:
    return [
        {
            "flight_number": flight.flight_number,
            "airline": flight.airline,
            "route": f"{flight.departure_airport} -> {flight.arrival_airport}",
            "status": flight.status.value,
            "departure_time": flight.to_dict()["departure_time"],
            "gate": flight.gate,
        }
        for flight in flights
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flight_tracker", description="Search and track flights")
    commands = parser.add_subparsers(dest="command", required=True)

    track = commands.add_parser("track", help="Track a flight's live position")
    track.add_argument("flight_number")
    track.add_argument("--duration", type=float, default=None,
                       help="Stop after this many seconds (default: until Ctrl-C)")

    details = commands.add_parser("details", help="Show flight details and connecting flights")
    details.add_argument("flight_number")

    airport = commands.add_parser("airport", help="Show an airport and its flights")
    airport.add_argument("code")

    search = commands.add_parser("search", help="Search by flight number or airport code")
    search.add_argument("kind", choices=["flight", "airport"])
    search.add_argument("query")

    notify = commands.add_parser("notify", help="Ask to be notified about a flight")
    notify.add_argument("flight_number")

    notifications = commands.add_parser("notifications", help="List stored notifications")
    notifications.add_argument("--mark-read", metavar="ID", default=None)
    notifications.add_argument("--clear", action="store_true")
    return parser


def run_track(context, flight_number, duration=None, sleep_fn=None, clock_fn=None) -> int:
    sleep_fn = sleep_fn or sleep
    clock_fn = clock_fn or monotonic
    controller = context.tracking_controller()
    try:
        controller.load_flight(flight_number)
        _print_json(controller.view())
        if not controller.tracking_active:
            LOGGER.info("Flight %s is %s; no live position to track.", controller.flight.flight_number, controller.flight.status.value)
            return 0
        deadline = None if duration is None else clock_fn() + duration
        seen = controller.update_count
        while deadline is None or clock_fn() < deadline:
            sleep_fn(1)
            if controller.update_count != seen:
                seen = controller.update_count
                _print_json(controller.view()["position"])
    except KeyboardInterrupt:
        LOGGER.info("Tracking interrupted.")
    finally:
        controller.close()
    return 0


def run_details(context, flight_number) -> int:
    controller = context.tracking_controller()
    try:
        controller.load_details(flight_number)
        payload = controller.view()
        payload["connecting_flights"] = _flight_rows(controller.connecting_flights)
        _print_json(payload)
    finally:
        controller.close()
    return 0


def run_airport(context, code) -> int:
    controller = context.tracking_controller()
    try:
        flights = controller.load_airport(code)
        airport = controller.departure_airport
        _print_json(
            {
                "airport": {
                    "code": airport.code,
                    "name": airport.name,
                    "city": airport.city,
                    "country": airport.country,
                },
                "region": vars(controller.region),
                "flights": _flight_rows(flights),
            }
        )
    finally:
        controller.close()
    return 0


def run_notify(context, flight_number) -> int:
    controller = context.tracking_controller()
    try:
        controller.load_details(flight_number)
        notification_id = controller.notify_me()
        print(f"You'll receive updates for flight {controller.flight.flight_number} ({notification_id}).")
    finally:
        controller.close()
    return 0


def run_notifications(context, mark_read=None, clear=False) -> int:
    service = context.notification_service
    if clear:
        service.clear()
        print("Notifications cleared.")
        return 0
    if mark_read and not service.mark_read(mark_read):
        LOGGER.warning("No notification with id %s.", mark_read)
        return 1
    _print_json([vars(notification) for notification in service.list_notifications()])
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    from flight_tracker.app import build_app_context, configure_logging
    from flight_tracker.settings import load_settings

    try:
        settings = load_settings()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2
    configure_logging(settings)
    LOGGER.info("Starting Flight Tracker (%s source).", settings.flight_source)
    context = build_app_context(settings)

    try:
        if args.command == "track":
            return run_track(context, args.flight_number, duration=args.duration)
        if args.command == "details":
            return run_details(context, args.flight_number)
        if args.command == "airport":
            return run_airport(context, args.code)
        if args.command == "search":
            query = parse_search(args.kind, args.query)
            context.recent_searches.add(query.query)
            if query.kind == "flight":
                return run_track(context, query.query, duration=0)
            return run_airport(context, query.query)
        if args.command == "notify":
            return run_notify(context, args.flight_number)
        return run_notifications(context, mark_read=args.mark_read, clear=args.clear)
    except ValidationError as exc:
        LOGGER.error("%s", exc)
        return 2
    except FlightDataError as exc:
        LOGGER.error("%s", exc)
        return 1
