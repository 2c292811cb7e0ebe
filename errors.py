"""Exceptions shared across famledger components."""


class Unauthorized(Exception):
    """Raised when a chat identity is not in the authorized user set."""

    def __init__(self, chat_id: str):
        super().__init__(f"Chat ID {chat_id} is not authorized")
        self.chat_id = chat_id


class StoreError(Exception):
    """Raised when the underlying database operation fails."""


class InferenceError(Exception):
    """Raised when the language model service cannot produce a completion."""
