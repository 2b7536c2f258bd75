#!/usr/bin/env python3
"""Call Task Master tools from the command line.

Usage:
    python scripts/reminders_cli.py TOOL ['{"json": "arguments"}'] [--session KEY]
    python scripts/reminders_cli.py --tick [--session KEY]
    python scripts/reminders_cli.py --list

Examples:
    python scripts/reminders_cli.py schedule_reminder '{"reminder": "Pay rent", "time_input": "tomorrow at 9am"}'
    python scripts/reminders_cli.py view_reminders
    python scripts/reminders_cli.py --tick            # Run one notification cycle, printing to the log
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import REMINDER_POLLING_MS, SESSION_KEY, STATE_DB_PATH
from domains.taskmaster import LogTransport, SqliteStateStore, build_tools, dispatch_tool
from domains.taskmaster.reminders import ReminderPoller


async def run_tick(store: SqliteStateStore, session_key: str) -> dict:
    """Run a single poller cycle against the store."""
    poller = ReminderPoller(store, session_key, LogTransport(), REMINDER_POLLING_MS)
    report = await poller.run_cycle()
    return {
        "due": report.due,
        "notified": report.notified,
        "failed": report.failed,
        "rearmed": report.rearmed,
        "removed": report.removed,
        "skipped": report.skipped,
    }


def main():
    parser = argparse.ArgumentParser(description="Call Task Master tools")
    parser.add_argument("tool", nargs="?", help="Tool name, e.g. add_reminder")
    parser.add_argument("arguments", nargs="?", default="{}", help="Tool arguments as a JSON object")
    parser.add_argument("--session", "-s", type=str, default=SESSION_KEY, help="Session key")
    parser.add_argument("--db", type=str, default=STATE_DB_PATH, help="State store path")
    parser.add_argument("--tick", action="store_true", help="Run one reminder notification cycle")
    parser.add_argument("--list", action="store_true", help="List available tools")

    args = parser.parse_args()

    store = SqliteStateStore(args.db)
    store.create_session(args.session)
    tools = build_tools(store, args.session)

    try:
        if args.list:
            for tool in tools:
                print(f"{tool.name:28} {tool.description}")
            return

        if args.tick:
            result = asyncio.run(run_tick(store, args.session))
        elif args.tool:
            try:
                arguments = json.loads(args.arguments)
            except json.JSONDecodeError as e:
                parser.error(f"arguments must be a JSON object: {e}")
            if not isinstance(arguments, dict):
                parser.error("arguments must be a JSON object")
            result = dispatch_tool(tools, args.tool, arguments)
        else:
            parser.error("a tool name, --tick or --list is required")

        print(json.dumps(result, indent=2, ensure_ascii=False))
    finally:
        store.close()


if __name__ == "__main__":
    main()
