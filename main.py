"""
Chat commerce assistant entry point.

Runs the offline console demo, a scripted scenario, or the analytics
report over the configured store.

Usage:
    Console mode:  python main.py console
    Scenario:      python main.py scenario order
    Report:        python main.py report --timeframe 7d
"""

import argparse
import asyncio
import sys

from chatcommerce.config import settings


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run())


def _run_scenario(name: str) -> None:
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run_scenario(name))


def _run_report(argv: list[str]) -> None:
    from chatcommerce.analytics.run_report import main as report_main

    report_main(argv)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=f"{settings.agent_name} for {settings.shop.name}")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("console", help="Chat with the assistant in the terminal")
    scenario = sub.add_parser("scenario", help="Auto-play a scripted conversation")
    scenario.add_argument("name", choices=["order", "cancel", "price"])
    sub.add_parser("report", help="Print the conversion analytics report", add_help=False)

    args, rest = parser.parse_known_args(argv)
    if args.command == "console":
        _run_console_mode()
    elif args.command == "scenario":
        _run_scenario(args.name)
    else:
        _run_report(rest)


if __name__ == "__main__":
    main(sys.argv[1:])
