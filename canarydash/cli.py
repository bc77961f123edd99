"""Command-line interface for canarydash."""

import sys
import logging
import argparse
import asyncio
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

from canarydash import __version__
from canarydash.config.loader import load_config, ConfigError
from canarydash.config.validator import validate_config, ValidationError
from canarydash.api.connection_pool import ConnectionPoolManager
from canarydash.api.client import DashboardClient
from canarydash.core.models import Connectivity
from canarydash.ui.event_bus import EventBus
from canarydash.ui.headless_view import HeadlessView
from canarydash.workflow.dashboard import DashboardController


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='canarydash',
        description='Live dashboard for certificate-transparency match alerts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch the backend on localhost:8080 with the terminal UI
  canarydash

  # Point at another backend and poll every 10 seconds
  canarydash --base-url https://canary.example.org --interval 10

  # Show the last 6 hours of matches
  canarydash --time-range 360

  # One-shot load for scripts, writing the first page as HTML
  canarydash --once --export-html matches.html

  # Use custom config file
  canarydash --config /path/to/config.yaml
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml if present)'
    )

    parser.add_argument(
        '--base-url',
        metavar='URL',
        help='Backend base URL. Overrides config.'
    )

    parser.add_argument(
        '--interval',
        type=float,
        metavar='SECONDS',
        help='Seconds between poll cycles. Overrides config.'
    )

    parser.add_argument(
        '--time-range',
        type=int,
        metavar='MINUTES',
        help='Initial match time window in minutes. Overrides config.'
    )

    parser.add_argument(
        '--overlap',
        choices=['skip', 'allow'],
        help='What to do when a fetch is still running at the next cycle. Overrides config.'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Load metrics, matches and performance once, log a summary and exit'
    )

    parser.add_argument(
        '--export-html',
        type=Path,
        metavar='PATH',
        help='After the initial load, write the first page of matches as an HTML fragment'
    )

    parser.add_argument(
        '--ui',
        choices=['textual', 'headless'],
        default='textual',
        help='UI mode: textual (interactive TUI, default) or headless (log output only)'
    )

    return parser


CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'


def _file_handler(log_file: str, level: int) -> logging.Handler:
    log_path = Path(log_file).expanduser()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding='utf-8')
    except OSError as e:
        print(f"Cannot open log file {log_path}: {e}", file=sys.stderr)
        sys.exit(1)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _setup_logging(config: dict, textual_ui=None, event_bus=None) -> None:
    """
    Install root logging handlers.

    The console handler is omitted while the Textual UI owns the terminal;
    the UI's log panel gets an EventLogHandler instead.
    """
    log_cfg = config.get('logging', {})
    level = getattr(logging, str(log_cfg.get('level') or 'INFO').upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if textual_ui is not None and event_bus is not None:
        from canarydash.ui.event_log_handler import create_event_handler
        handlers.append(create_event_handler(event_bus, level=level))
    elif log_cfg.get('console', True):
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(stream)

    if log_cfg.get('file'):
        handlers.append(_file_handler(log_cfg['file'], level))

    for handler in handlers:
        handler.setLevel(level)
    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request at INFO; one line per poll is noise
    for noisy in ('httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _apply_overrides(config: dict, args: argparse.Namespace) -> None:
    if args.base_url:
        config.setdefault('api', {})['base_url'] = args.base_url

    if args.interval is not None:
        config.setdefault('polling', {})['interval_seconds'] = args.interval

    if args.overlap:
        config.setdefault('polling', {})['overlap'] = args.overlap

    if args.time_range is not None:
        config.setdefault('dashboard', {})['default_time_range'] = args.time_range


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for canarydash CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        _apply_overrides(config, args)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        return asyncio.run(run_dashboard(config, args))
    except KeyboardInterrupt:
        print("\nStopped.", file=sys.stderr)
        return 130


def _use_textual(args: argparse.Namespace) -> bool:
    if args.ui != 'textual' or args.once or args.export_html:
        return False
    return sys.stdout.isatty()


async def run_dashboard(config: dict, args: argparse.Namespace) -> int:
    """
    Run the dashboard until quit (async).

    Args:
        config: Loaded configuration
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    pool_manager = ConnectionPoolManager(config)
    http_client = await pool_manager.get_client()
    api_client = DashboardClient(config, client=http_client, connection_pool_manager=pool_manager)

    try:
        if _use_textual(args):
            from canarydash.ui.textual_ui import CanaryDashUI

            event_bus = EventBus()
            textual_ui = CanaryDashUI(config, api_client, event_bus)
            _setup_logging(config, textual_ui=textual_ui, event_bus=event_bus)
            await textual_ui.run_async()
            return 0

        return await _run_headless(config, args, api_client)
    finally:
        await pool_manager.close_client()


async def _run_headless(config: dict, args: argparse.Namespace, api_client: DashboardClient) -> int:
    view = HeadlessView()
    view.start()
    controller = DashboardController(config, api_client, view)

    await controller.initialize()

    if args.export_html:
        try:
            args.export_html.write_text(view.export_html() + "\n", encoding='utf-8')
            logger.info(f"Wrote {len(view.rows)} rows to {args.export_html}")
        except OSError as e:
            logger.error(f"Could not write {args.export_html}: {e}")
            return 1

    if args.once or args.export_html:
        view.log_summary()
        return 0 if controller.state.connectivity is Connectivity.ONLINE else 1

    controller.start_polling()
    try:
        # Runs until cancelled (Ctrl-C)
        await asyncio.Event().wait()
    finally:
        await controller.stop()
    return 0


if __name__ == '__main__':
    sys.exit(main())
