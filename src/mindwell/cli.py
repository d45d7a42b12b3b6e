"""CLI entry point for mindwell."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys

from .api_client import ApiClient
from .auth import AuthClient
from .chart import ChartRenderer
from .config import Config
from .credentials import CredentialStore
from .errors import ConcurrencyGuardError, MindWellError, TransportError, ValidationError
from .notify import Notifier
from .tracker import MoodTracker


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(message)s",
        level=level,
        stream=sys.stderr,
    )


def _build_client(config: Config) -> ApiClient:
    return ApiClient(
        base_url=config.api_url,
        credentials=CredentialStore(config.credentials_file),
        timeout=config.tracker.timeout,
        retry_attempts=config.tracker.retry_attempts,
        retry_delay=config.tracker.retry_delay,
        retry_client_errors=config.tracker.retry_client_errors,
    )


def _build_tracker(config: Config, client: ApiClient) -> MoodTracker:
    renderer = ChartRenderer(config.chart_dir, mappings=config.tracker.moods)
    return MoodTracker(
        client,
        config=config.tracker,
        renderer=renderer,
        notifier=Notifier(duration_ms=config.tracker.notification_duration),
    )


def _apply_chart_option(args: argparse.Namespace, config: Config) -> None:
    """Charts are only written when --chart is given."""
    if not args.chart:
        config.chart_dir = None
    elif config.chart_dir is not None:
        config.chart_dir.mkdir(parents=True, exist_ok=True)


def _handle_login(args: argparse.Namespace, config: Config) -> int:
    """Handle login command."""
    client = _build_client(config)
    auth = AuthClient(client, client.credentials)
    password = args.password or getpass.getpass("Password: ")
    try:
        asyncio.run(auth.login(args.email, password))
    except MindWellError as e:
        print(f"Login failed: {e}")
        return 1
    print("Login successful. Credentials saved.")
    return 0


def _handle_register(args: argparse.Namespace, config: Config) -> int:
    """Handle register command."""
    client = _build_client(config)
    auth = AuthClient(client, client.credentials)
    password = args.password or getpass.getpass("Password: ")
    try:
        asyncio.run(
            auth.register(
                args.name,
                args.email,
                password,
                role=args.role,
                admin_code=args.admin_code,
            )
        )
    except MindWellError as e:
        print(f"Registration failed: {e}")
        return 1
    print("Registration successful. Credentials saved.")
    return 0


def _handle_profile(args: argparse.Namespace, config: Config) -> int:
    """Handle profile command."""
    client = _build_client(config)
    auth = AuthClient(client, client.credentials)
    try:
        profile = asyncio.run(auth.profile())
    except MindWellError as e:
        print(f"Could not load profile: {e}")
        return 1
    print(f"{profile.name} <{profile.email}> ({profile.role})")
    return 0


def _handle_moods(args: argparse.Namespace, config: Config) -> int:
    """Handle moods command."""
    for label, attrs in sorted(config.tracker.moods.items(), key=lambda kv: -kv[1].value):
        print(f"{attrs.value}  {attrs.emoji}  {label}")
    return 0


def _handle_log(args: argparse.Namespace, config: Config) -> int:
    """Handle log command."""
    _apply_chart_option(args, config)
    attrs = config.tracker.moods.get(args.mood)
    value = args.value
    if value is None and attrs is not None:
        value = attrs.value

    tracker = _build_tracker(config, _build_client(config))
    try:
        asyncio.run(tracker.log_mood(args.mood, value))
    except (ValidationError, ConcurrencyGuardError) as e:
        print(f"Error: {e}")
        return 1
    except TransportError:
        # Already reported through the tracker's notifier
        return 1
    finally:
        tracker.destroy()
    return 0


def _handle_history(args: argparse.Namespace, config: Config) -> int:
    """Handle history command."""
    _apply_chart_option(args, config)

    tracker = _build_tracker(config, _build_client(config))
    try:
        series = asyncio.run(tracker.fetch_mood_history(force_refresh=args.refresh))
    except MindWellError:
        return 1
    finally:
        tracker.destroy()

    renderer = tracker.renderer
    for label, value in zip(series.labels, series.data_points):
        print(f"{label:<12} {renderer.describe_point(value)}")
    if renderer.mount_point is not None:
        print(f"Chart written to {renderer.mount_point}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mindwell",
        description="Log moods and review your week with the MindWell backend",
    )
    parser.add_argument("--api-url", type=str, default=None, dest="api_url", help="Override backend URL")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command")

    # login subcommand
    login_parser = subparsers.add_parser("login", help="Log in and save credentials")
    login_parser.add_argument("--email", type=str, required=True, help="Account email")
    login_parser.add_argument("--password", type=str, default=None, help="Password (prompted if omitted)")

    # register subcommand
    register_parser = subparsers.add_parser("register", help="Create an account")
    register_parser.add_argument("--name", type=str, required=True, help="Display name")
    register_parser.add_argument("--email", type=str, required=True, help="Account email")
    register_parser.add_argument("--password", type=str, default=None, help="Password (prompted if omitted)")
    register_parser.add_argument(
        "--role", type=str, default="student", choices=["student", "admin"],
        help="Account role (default: student)"
    )
    register_parser.add_argument(
        "--admin-code", type=str, default=None, dest="admin_code",
        help="Admin code, required for --role admin"
    )

    subparsers.add_parser("logout", help="Forget saved credentials")
    subparsers.add_parser("profile", help="Show the logged-in user's profile")
    subparsers.add_parser("moods", help="List the moods that can be logged")

    # log subcommand
    log_parser = subparsers.add_parser("log", help="Log a mood entry")
    log_parser.add_argument("mood", type=str, help="Mood label, e.g. Happy")
    log_parser.add_argument(
        "--value", type=str, default=None,
        help="Mood value 1-5 (default: the mood's own value)"
    )
    log_parser.add_argument("--chart", action="store_true", help="Also write a PNG chart")

    # history subcommand
    history_parser = subparsers.add_parser("history", help="Show the last 7 days")
    history_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")
    history_parser.add_argument("--chart", action="store_true", help="Also write a PNG chart")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _setup_logging(args.verbose)

    overrides = {}
    if args.api_url:
        overrides["api_url"] = args.api_url
    if args.verbose:
        overrides["verbose"] = True
    config = Config.load(overrides)

    if args.command == "login":
        return _handle_login(args, config)
    if args.command == "register":
        return _handle_register(args, config)
    if args.command == "logout":
        AuthClient(_build_client(config), CredentialStore(config.credentials_file)).logout()
        print("Logged out.")
        return 0
    if args.command == "profile":
        return _handle_profile(args, config)
    if args.command == "moods":
        return _handle_moods(args, config)
    if args.command == "log":
        return _handle_log(args, config)
    if args.command == "history":
        return _handle_history(args, config)

    return 1


if __name__ == "__main__":
    sys.exit(main())
