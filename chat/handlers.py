"""Chat message handling.

The chat gateway hands every inbound message to ChatHandler.dispatch as
(chat_id, text) and sends back the returned reply. This is the boundary
where every error is caught: users only ever see the fixed messages below,
while the underlying cause goes to the log.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional
from errors import Unauthorized
from logger import get_logger
from models.transaction import SCOPE_FAMILY, SCOPE_SELF, Transaction
from tools.transactions import net_cash_flow, sorted_summary, totals_by_type

logger = get_logger()

RECENT_LIMIT = 10
FAMILY_RECENT_LIMIT = 15

UNAUTHORIZED_REPLY = (
    "Unauthorized access.\n\n"
    "This bot is for authorized family members only. "
    "Please contact the administrator if you should have access."
)
NOT_AUTHORIZED_REPLY = "You are not authorized."
NOT_UNDERSTOOD_REPLY = (
    "Could not understand. Try:\n" '"Spent 50 at Tesco" or "Salary 2400"'
)
ERROR_REPLY = "Error processing. Please try again."
UNKNOWN_COMMAND_REPLY = "Unknown command. Send /help to see what I can do."
ADMIN_ONLY_REPLY = "This command is only available to administrators."

HELP_TEXT = (
    "Family Expense Tracker\n\n"
    "Just type naturally, for example:\n"
    '- "Spent 50 at Tesco"\n'
    '- "Add 25 for uber"\n'
    '- "Received salary 2400"\n'
    '- "Transferred 300 to savings"\n\n'
    "Commands:\n"
    "/recent - Your recent transactions\n"
    "/family - All family transactions\n"
    "/summary - Your monthly summary\n"
    "/familysummary - Family monthly summary\n"
    "/delete - Delete your last transaction\n"
    "/help - Show this message"
)


def _format_line(index: int, transaction: Transaction, show_user: bool) -> str:
    when = transaction.created_at.date().isoformat() if transaction.created_at else ""
    line = (
        f"{index}. {transaction.type} {transaction.amount:.2f} - {transaction.category}\n"
        f"   {transaction.description}\n"
    )
    if show_user:
        line += f"   by {transaction.user_name or 'Unknown'} ({when})\n"
    else:
        line += f"   {when}\n"
    return line


class ChatHandler:
    """Turns chat messages into replies.

    Args:
        services: Services container.
        clock: Returns the current time; decides which month /summary covers.
    """

    def __init__(self, services, clock: Optional[Callable[[], datetime]] = None):
        self.services = services
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._commands = {
            "start": self.start,
            "help": self.help,
            "recent": self.recent,
            "family": self.family,
            "summary": self.summary,
            "familysummary": self.family_summary,
            "delete": self.delete_last,
            "refresh": self.refresh,
        }

    def dispatch(self, chat_id, text: Optional[str]) -> str:
        """Route a message to a command handler or to transaction parsing.

        Args:
            chat_id: Chat identity of the sender.
            text: Message text.

        Returns:
            The reply to send.
        """
        text = (text or "").strip()
        if not text.startswith("/"):
            return self.handle_message(chat_id, text)

        # "/summary@my_bot" is how group chats address a specific bot
        command = text.split()[0][1:].split("@")[0].lower()
        handler = self._commands.get(command)
        if handler is None:
            return UNKNOWN_COMMAND_REPLY
        return handler(chat_id)

    def handle_message(self, chat_id, text: str) -> str:
        """Record a transaction described in free text."""
        try:
            user = self.services.authorization.authorize(chat_id)
            if user is None:
                return UNAUTHORIZED_REPLY

            transaction = self.services.parser.parse(text)
            if transaction is None:
                return NOT_UNDERSTOOD_REPLY

            stored = self.services.transactions.insert(transaction, chat_id)
        except Unauthorized:
            return NOT_AUTHORIZED_REPLY
        except Exception:
            logger.exception(f"Error handling message from chat ID {chat_id}")
            return ERROR_REPLY

        return (
            f"{stored.type.capitalize()} recorded!\n\n"
            f"Amount: {stored.amount:.2f}\n"
            f"Category: {stored.category}\n"
            f"Description: {stored.description}"
        )

    def start(self, chat_id) -> str:
        logger.info(f"User {chat_id} started the bot")
        return f"{HELP_TEXT}\n\nYour Chat ID: {chat_id}"

    def help(self, chat_id) -> str:
        return HELP_TEXT

    def recent(self, chat_id) -> str:
        """List the user's recent transactions with totals per type."""
        try:
            transactions = self.services.transactions.recent(
                chat_id, SCOPE_SELF, RECENT_LIMIT
            )
        except Unauthorized:
            return NOT_AUTHORIZED_REPLY
        except Exception:
            logger.exception(f"Error fetching transactions for chat ID {chat_id}")
            return "Error fetching transactions."

        if not transactions:
            return "No transactions found."

        lines: List[str] = ["Recent Transactions:\n"]
        for index, transaction in enumerate(transactions, start=1):
            lines.append(_format_line(index, transaction, show_user=False))

        totals = totals_by_type(transactions)
        lines.append("----------------")
        if totals["income"] > 0:
            lines.append(f"Income: {totals['income']:.2f}")
        if totals["expense"] > 0:
            lines.append(f"Expenses: {totals['expense']:.2f}")
        if totals["savings"] > 0:
            lines.append(f"Savings: {totals['savings']:.2f}")
        lines.append(f"Net: {net_cash_flow(totals):.2f}")
        return "\n".join(lines)

    def family(self, chat_id) -> str:
        """List the family's recent transactions with who added them."""
        try:
            transactions = self.services.transactions.recent(
                chat_id, SCOPE_FAMILY, FAMILY_RECENT_LIMIT
            )
        except Unauthorized:
            return NOT_AUTHORIZED_REPLY
        except Exception:
            logger.exception(f"Error fetching family transactions for chat ID {chat_id}")
            return "Error fetching family transactions."

        if not transactions:
            return "No family transactions found."

        lines = ["Recent Family Transactions:\n"]
        for index, transaction in enumerate(transactions, start=1):
            lines.append(_format_line(index, transaction, show_user=True))
        return "\n".join(lines).rstrip()

    def summary(self, chat_id) -> str:
        return self._monthly_summary(chat_id, SCOPE_SELF)

    def family_summary(self, chat_id) -> str:
        return self._monthly_summary(chat_id, SCOPE_FAMILY)

    def _monthly_summary(self, chat_id, scope: str) -> str:
        now = self.clock()
        try:
            summary = self.services.transactions.monthly_summary(
                chat_id, scope, now.year, now.month
            )
        except Unauthorized:
            return NOT_AUTHORIZED_REPLY
        except Exception:
            logger.exception(f"Error getting {scope} summary for chat ID {chat_id}")
            return "Error getting summary."

        title = "Family Monthly Summary" if scope == SCOPE_FAMILY else "Monthly Summary"
        if not summary:
            if scope == SCOPE_FAMILY:
                return "No family transactions this month."
            return "No transactions this month."

        lines = [f"{title} ({now.strftime('%B %Y')}):\n"]
        for category, amount in sorted_summary(summary):
            lines.append(f"{category}: {amount:.2f}")
        lines.append(f"\nTotal: {sum(summary.values()):.2f}")
        return "\n".join(lines)

    def delete_last(self, chat_id) -> str:
        """Delete the user's most recent transaction."""
        try:
            deleted = self.services.transactions.delete_last(chat_id, SCOPE_SELF)
        except Unauthorized:
            return NOT_AUTHORIZED_REPLY
        except Exception:
            logger.exception(f"Error deleting last transaction for chat ID {chat_id}")
            return "Error deleting."

        if deleted is None:
            return "No transactions to delete."

        return (
            "Deleted:\n\n"
            f"{deleted.type} {deleted.amount:.2f}\n"
            f"{deleted.category}\n"
            f"{deleted.description}"
        )

    def refresh(self, chat_id) -> str:
        """Reload the authorized users (administrators only)."""
        if not self.services.is_admin(chat_id):
            logger.info(f"Refresh denied for chat ID {chat_id}")
            return ADMIN_ONLY_REPLY

        count = self.services.authorization.force_refresh()
        return f"Authorized users reloaded ({count} users)."
