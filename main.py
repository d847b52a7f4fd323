"""
M1 Signal Monitor - Main Entry Point

Usage:
    python main.py --env dev                          # Synthetic candles, config instruments
    python main.py --env prod                         # Live Alpha Vantage quotes
    python main.py --instruments EURUSD,USDJPY --live # Override instruments and source
"""

from __future__ import annotations
import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from rich.console import Console

from config.config_manager import ConfigManager
from src.application.bootstrap import build_monitor, resolve_instruments
from src.domain.exceptions import FatalError
from src.models.signal import SignalType, TradingSignal
from src.utils import StructuredLogger, flush_all_loggers, shutdown_logging
from src.utils.logging_setup import setup_logging_from_config
from src.utils.structured_logger import LogCategory

console = Console()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="M1 trading signal monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --env dev                           # Synthetic candles
  python main.py --env prod                          # Live quotes
  python main.py --instruments EURUSD,GBPUSD --live  # Explicit instruments, live quotes
        """
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        choices=["dev", "prod"],
        help="Environment to run in (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory containing base.yaml and environment overrides (default: config)"
    )

    parser.add_argument(
        "--instruments",
        type=str,
        help="Comma-separated instruments, e.g. EURUSD_OTC,GBPUSD (default: from config)"
    )

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--live",
        dest="live",
        action="store_true",
        default=None,
        help="Use live Alpha Vantage quotes"
    )
    source_group.add_argument(
        "--simulate",
        dest="live",
        action="store_false",
        help="Use synthetic candles"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--no-console",
        action="store_true",
        help="Write logs to files only"
    )

    return parser.parse_args(argv)


def print_signal(sig: TradingSignal) -> None:
    """Render an emitted signal on the terminal."""
    color = "green" if sig.type == SignalType.BUY else "red"
    console.print(
        f"[bold {color}]{sig.type.value}[/] {sig.instrument.display_name} "
        f"@ {sig.price:.5f}  confidence [bold]{sig.confidence}%[/]  "
        f"[dim]{sig.market_condition.value}[/]  expiry {sig.expiry_minutes}m"
    )
    console.print(f"  [dim]{sig.reason}[/]")


async def main_async(args: argparse.Namespace) -> None:
    """Main async entry point."""
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    category_loggers = setup_logging_from_config(
        config.logging,
        env=args.env,
        verbose=args.verbose,
        console=False if args.no_console else None,
    )
    system_structured = StructuredLogger(category_loggers["system"])

    names = args.instruments.split(",") if args.instruments else config.instruments
    instruments = resolve_instruments(n for n in names if n.strip())
    if not instruments:
        raise FatalError("No instruments selected (use --instruments or config 'instruments')")

    monitor = build_monitor(config, on_signal=print_signal, live=args.live)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass  # Windows: KeyboardInterrupt is handled in main()

    system_structured.info(
        LogCategory.SYSTEM,
        "Starting signal monitor",
        {"env": args.env, "instruments": [i.name for i in instruments]},
    )

    try:
        for instrument in instruments:
            await monitor.start(instrument)
            console.print(
                f"Monitoring [bold]{instrument.display_name}[/] "
                f"({len(monitor.get_history(instrument))} candles)"
            )
        await stop_event.wait()
    finally:
        stats = monitor.stats()
        await monitor.stop_all()
        system_structured.info(LogCategory.SYSTEM, "Signal monitor stopped", stats)
        flush_all_loggers()
        shutdown_logging()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("Shutdown requested")
        sys.exit(0)
    except FatalError as e:
        print(f"Fatal error: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
