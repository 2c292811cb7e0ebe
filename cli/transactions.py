#!/usr/bin/env python3

import sys
from datetime import datetime, timezone
from dateutil.relativedelta import relativedelta
from errors import StoreError, Unauthorized
from logger import get_logger
from models.transaction import SCOPE_FAMILY, SCOPE_SELF
from tools.transactions import net_cash_flow, sorted_summary, totals_by_type

logger = get_logger()


def _scope(args) -> str:
    return SCOPE_FAMILY if args.family else SCOPE_SELF


def cmd_parse(args, services):
    """Run the parser on a message without storing anything.

    Args:
        args: Parsed command-line arguments with text
        services: Services container with the transaction parser
    """
    text = " ".join(args.text)
    transaction = services.parser.parse(text)

    if transaction is None:
        logger.error(f"Could not understand: {text!r}")
        sys.exit(1)

    logger.info(f"Type: {transaction.type}")
    logger.info(f"Amount: {transaction.amount}")
    logger.info(f"Category: {transaction.category}")
    logger.info(f"Description: {transaction.description}")


def cmd_recent(args, services):
    """Show recent transactions for a user or their family.

    Args:
        args: Parsed command-line arguments with chat_id, family and limit
        services: Services container with the transactions service
    """
    try:
        transactions = services.transactions.recent(args.chat_id, _scope(args), args.limit)
    except Unauthorized as e:
        logger.error(str(e))
        sys.exit(1)
    except (StoreError, ValueError) as e:
        logger.error(f"Error fetching transactions: {e}")
        sys.exit(1)

    if not transactions:
        logger.info("No transactions found.")
        return

    for t in transactions:
        logger.info(
            f"{t.created_at:%Y-%m-%d %H:%M}  {t.type:<8} {t.amount:>10.2f}  "
            f"{t.category:<15} {t.description}  ({t.user_name or 'Unknown'})"
        )

    totals = totals_by_type(transactions)
    logger.info("-" * 80)
    logger.info(
        f"Income: {totals['income']:.2f}  Expenses: {totals['expense']:.2f}  "
        f"Savings: {totals['savings']:.2f}  Net: {net_cash_flow(totals):.2f}"
    )


def cmd_summary(args, services):
    """Show category totals for a month.

    Args:
        args: Parsed command-line arguments with chat_id, family, month and months_ago
        services: Services container with the transactions service
    """
    try:
        if args.month:
            # Parse month in format YYYY/MM
            year, month = (int(part) for part in args.month.split("/"))
        else:
            target = datetime.now(timezone.utc) - relativedelta(months=args.months_ago)
            year, month = target.year, target.month
    except ValueError:
        logger.error("Use YYYY/MM format for --month")
        sys.exit(1)

    try:
        summary = services.transactions.monthly_summary(
            args.chat_id, _scope(args), year, month
        )
    except Unauthorized as e:
        logger.error(str(e))
        sys.exit(1)
    except (StoreError, ValueError) as e:
        logger.error(f"Error getting summary: {e}")
        sys.exit(1)

    logger.info(f"Summary for {year}/{month:02d} ({_scope(args)}):")
    if not summary:
        logger.info("No transactions this month.")
        return

    for category, amount in sorted_summary(summary):
        logger.info(f"  {category:<20} {amount:>10.2f}")
    logger.info(f"  {'Total':<20} {sum(summary.values()):>10.2f}")


def cmd_delete_last(args, services):
    """Delete the most recent transaction in scope.

    Args:
        args: Parsed command-line arguments with chat_id and family
        services: Services container with the transactions service
    """
    try:
        deleted = services.transactions.delete_last(args.chat_id, _scope(args))
    except Unauthorized as e:
        logger.error(str(e))
        sys.exit(1)
    except StoreError as e:
        logger.error(f"Error deleting: {e}")
        sys.exit(1)

    if deleted is None:
        logger.info("No transactions to delete.")
        return

    logger.info(
        f"✓ Deleted {deleted.type} {deleted.amount:.2f} "
        f"{deleted.category} ({deleted.description})"
    )


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Parse and query transactions",
        description="Parse messages and query stored transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    # transactions parse
    parse_parser = transactions_subparsers.add_parser(
        "parse", help="Parse a message without storing it"
    )
    parse_parser.add_argument("text", nargs="+", help="Message text")
    parse_parser.set_defaults(func=cmd_parse)

    def add_scope_arguments(sub):
        sub.add_argument("--chat-id", required=True, help="Chat identity of the requester")
        sub.add_argument(
            "--family", action="store_true", help="Include the whole family"
        )

    # transactions recent
    recent_parser = transactions_subparsers.add_parser(
        "recent", help="Show recent transactions"
    )
    add_scope_arguments(recent_parser)
    recent_parser.add_argument(
        "--limit", type=int, default=10, help="Number of transactions (default: 10)"
    )
    recent_parser.set_defaults(func=cmd_recent)

    # transactions summary
    summary_parser = transactions_subparsers.add_parser(
        "summary", help="Show monthly totals by category"
    )
    add_scope_arguments(summary_parser)
    month_group = summary_parser.add_mutually_exclusive_group()
    month_group.add_argument("--month", help="Month in YYYY/MM format")
    month_group.add_argument(
        "--months-ago",
        type=int,
        default=0,
        help="Month relative to the current one (default: 0)",
    )
    summary_parser.set_defaults(func=cmd_summary)

    # transactions delete-last
    delete_parser = transactions_subparsers.add_parser(
        "delete-last", help="Delete the most recent transaction"
    )
    add_scope_arguments(delete_parser)
    delete_parser.set_defaults(func=cmd_delete_last)
