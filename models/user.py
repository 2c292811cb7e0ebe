"""User model for authorized chat identities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """An authorized family member.

    Attributes:
        id: Unique identifier (auto-generated).
        chat_id: Opaque chat identity the user writes from.
        name: Display name.
        family_id: Identifier shared by every member of the same family.
    """

    id: int
    chat_id: str
    name: str
    family_id: str
