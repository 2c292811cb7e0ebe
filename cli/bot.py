#!/usr/bin/env python3

from chat.handlers import ChatHandler


def cmd_send(args, services):
    """Send one message through the chat handler and print the reply.

    Args:
        args: Parsed command-line arguments with chat_id and text
        services: Services container
    """
    handler = ChatHandler(services)
    print(handler.dispatch(args.chat_id, " ".join(args.text)))


def cmd_refresh(args, services):
    """Reload the authorized-user cache and report its size."""
    count = services.authorization.force_refresh()
    print(f"Authorized users loaded: {count}")


def setup_parser(subparsers):
    """Setup chat and cache subcommand parsers.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    chat_parser = subparsers.add_parser(
        "chat",
        help="Send a message as a chat user",
        description="Handle a message exactly as the bot would and print the reply",
    )
    chat_parser.add_argument("--chat-id", required=True, help="Chat identity of the sender")
    chat_parser.add_argument("text", nargs="+", help='Message text, e.g. "Spent 4.50 on coffee" or /summary')
    chat_parser.set_defaults(func=cmd_send)

    cache_parser = subparsers.add_parser(
        "cache",
        help="Authorization cache",
        description="Inspect the authorized-user cache",
    )
    cache_subparsers = cache_parser.add_subparsers(
        title="subcommands",
        description="Available cache commands",
        dest="subcommand",
        required=True,
    )
    refresh_parser = cache_subparsers.add_parser(
        "refresh", help="Reload authorized users from the database"
    )
    refresh_parser.set_defaults(func=cmd_refresh)
