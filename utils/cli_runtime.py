"""CLI/runtime bootstrap helpers for the failsim command."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Dict, Optional


def configure_windows_console_utf8() -> None:
    """Best-effort UTF-8 console setup for Windows terminals."""
    if sys.platform != "win32":
        return

    if hasattr(sys.stdout, "reconfigure"):
        stdout: Any = sys.stdout
        stderr: Any = sys.stderr
        stdout.reconfigure(encoding="utf-8")
        stderr.reconfigure(encoding="utf-8")


def color_disabled(no_color_flag: bool, env: Optional[Dict[str, str]] = None) -> bool:
    """True when --no-color was given or NO_COLOR/FAILSIM_NO_COLOR is set."""
    env = os.environ if env is None else env
    if no_color_flag:
        return True
    return any(env.get(name) for name in ("NO_COLOR", "FAILSIM_NO_COLOR"))


def build_failsim_arg_parser() -> argparse.ArgumentParser:
    """Create the failsim CLI parser."""
    parser = argparse.ArgumentParser(
        description="Run write/read workloads against a replica set while killing and restarting its nodes.",
        epilog="Examples:\n"
        "  failsim --connection-string mongodb://localhost:27017,localhost:27018/?replicaSet=rs0\n"
        "  failsim --config config_files/config.json --write-count 50\n"
        "  failsim --show-schedule",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", help="Path to config.json file")
    parser.add_argument("--connection-string", help="Store connection string (overrides config)")
    parser.add_argument("--database", help="Database name (overrides config)")
    parser.add_argument("--collection", help="Collection name (overrides config)")
    parser.add_argument("--write-count", type=int, help="Number of records to write (overrides config)")
    parser.add_argument("--show-schedule", action="store_true", help="Print the failover schedule and exit")
    parser.add_argument(
        "--stop-nodes",
        action="store_true",
        help="Kill nodes started during the run when it ends (default: leave them running).",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colors (also respects NO_COLOR/FAILSIM_NO_COLOR).",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Config keys set on the command line (None means not given)."""
    return {
        'connection_string': args.connection_string,
        'database': args.database,
        'collection': args.collection,
        'write_count': args.write_count,
    }
