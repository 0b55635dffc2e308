"""Estate membership enums."""

from enum import Enum


class EstateRole(str, Enum):
    """
    Coarse permission tier on an estate, in increasing privilege.

    - VIEWER: read-only, never sees sensitive documents
    - EDITOR: create/update/delete estate records, sees sensitive documents
    - OWNER: everything, plus collaborators, invites and deleting the estate
    """

    VIEWER = "VIEWER"
    EDITOR = "EDITOR"
    OWNER = "OWNER"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]


ROLE_RANK = {
    EstateRole.VIEWER: 1,
    EstateRole.EDITOR: 2,
    EstateRole.OWNER: 3,
}

# Roles that can be granted to a collaborator (OWNER is implied by estate.owner_id)
COLLABORATOR_ROLES = (EstateRole.EDITOR, EstateRole.VIEWER)


class EstateStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class InviteStatus(str, Enum):
    """Lifecycle of a collaborator invite."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
