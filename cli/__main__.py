#!/usr/bin/env python3
"""
famledger CLI - command-line interface for the family transaction tracker.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    users        Provision authorized family members
    transactions Parse messages and query stored transactions
    chat         Handle a message as the bot would
    cache        Authorization cache administration
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli users add --chat-id 123456 --name Alice --family-id smith
    python -m cli transactions parse "Spent 4.50 on coffee"
    python -m cli chat --chat-id 123456 "Spent 4.50 on coffee"
    python -m cli transactions summary --chat-id 123456 --family
"""

import sys
import argparse
from cli import bot, migrate, transactions, users
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="famledger - family transaction tracking from chat messages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    users.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    bot.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # Migrate commands need db_manager for raw database operations
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
