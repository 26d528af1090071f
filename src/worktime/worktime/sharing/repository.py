from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..users.model import User
from .model import CodeAssignment, Connection, TeamRow


class SharingRepository(Protocol):
    """Storage for sharing codes and connections.

    Uniqueness of ``users.sharing_code`` and of the unordered connection pair is
    enforced by the database; writes that break either raise
    ConstraintViolationError.
    """

    def find_user_by_code(self, code: str) -> Optional[User]:
        raise NotImplementedError

    def set_code_if_absent(self, user_id: int, code: str) -> bool:
        """Store ``code`` only if the user has none yet. False if a code was already set."""

        raise NotImplementedError

    def list_code_holders(self) -> Sequence[CodeAssignment]:
        raise NotImplementedError

    def batch_update_codes(self, assignments: Sequence[CodeAssignment]) -> int:
        """Apply every assignment in one transaction: all or nothing."""

        raise NotImplementedError

    def find_connection(self, user_a: int, user_b: int) -> Optional[Connection]:
        """Connection between the two users in either direction."""

        raise NotImplementedError

    def create_connection(self, *, owner_id: int, viewer_id: int) -> int:
        raise NotImplementedError

    def list_team(self, user_id: int) -> Sequence[TeamRow]:
        raise NotImplementedError
