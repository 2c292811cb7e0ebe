#!/usr/bin/env python3

import sqlite3
import sys
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List all authorized users, grouped by family."""
    users = services.users.find_all()

    if not users:
        logger.info("No authorized users found.")
        return

    logger.info("\nAuthorized users:")
    logger.info("=" * 80)
    for user in sorted(users, key=lambda u: (u.family_id, u.id)):
        logger.info(f"ID: {user.id}")
        logger.info(f"Name: {user.name}")
        logger.info(f"Chat ID: {user.chat_id}")
        logger.info(f"Family: {user.family_id}")
        logger.info("-" * 80)

    logger.info(f"\nTotal users: {len(users)}")


def cmd_add(args, services):
    """Authorize a new chat identity as a family member."""
    try:
        user = services.users.create(args.chat_id, args.name, args.family_id)
    except sqlite3.IntegrityError:
        logger.error(f"Chat ID '{args.chat_id}' is already authorized.")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"\n✓ User authorized with ID: {user.id}")
    logger.info(f"  Name: {user.name}")
    logger.info(f"  Chat ID: {user.chat_id}")
    logger.info(f"  Family: {user.family_id}")
    logger.info("  Running bots pick this up after their cache refreshes (/refresh).")


def setup_parser(subparsers):
    """Setup users subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "users",
        help="Manage authorized users",
        description="Provision and list the family members allowed to use the bot",
    )

    users_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available user commands",
        dest="subcommand",
        required=True,
    )

    # users list
    list_parser = users_subparsers.add_parser("list", help="List authorized users")
    list_parser.set_defaults(func=cmd_list)

    # users add
    add_parser = users_subparsers.add_parser("add", help="Authorize a chat identity")
    add_parser.add_argument("--chat-id", required=True, help="Chat identity")
    add_parser.add_argument("--name", required=True, help="Display name")
    add_parser.add_argument("--family-id", required=True, help="Family identifier")
    add_parser.set_defaults(func=cmd_add)
