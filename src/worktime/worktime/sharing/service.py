from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from ..common.locks import KeyedLock
from ..core.constants import MAX_ISSUE_ATTEMPTS
from ..core.exceptions import (
    AlreadyConnectedError,
    CodeNotFoundError,
    ConstraintViolationError,
    GenerationExhaustedError,
    NotFoundError,
    SelfConnectionError,
    ValidationError,
)
from ..users.model import PublicProfile
from ..users.repository import UserRepository
from .codes import CodeGenerator, generate_code, is_well_formed, mask_code, normalize_code
from .model import TeamRow
from .repository import SharingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Team:
    workers: List[TeamRow]
    viewers: List[TeamRow]


class SharingCodeService:
    """Request-time sharing code logic: lazy issuance, redemption, team listing.

    Issuance is serialized per user inside this process; across processes the
    unique index on ``users.sharing_code`` plus the conditional update in
    ``set_code_if_absent`` keep one current code per user.
    """

    def __init__(
        self,
        users: UserRepository,
        sharing: SharingRepository,
        *,
        generate: CodeGenerator = generate_code,
        max_attempts: int = MAX_ISSUE_ATTEMPTS,
    ):
        self._users = users
        self._sharing = sharing
        self._generate = generate
        self._max_attempts = int(max_attempts)
        self._locks = KeyedLock()

    def get_or_create_code(self, user_id: int) -> str:
        user_id = int(user_id)
        with self._locks.hold(user_id):
            user = self._users.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.sharing_code:
                return user.sharing_code

            for attempt in range(1, self._max_attempts + 1):
                code = self._generate()
                if self._sharing.find_user_by_code(code) is not None:
                    logger.debug("Sharing code collision on attempt %d", attempt)
                    continue

                try:
                    assigned = self._sharing.set_code_if_absent(user_id, code)
                except ConstraintViolationError as exc:
                    if not exc.is_duplicate_key:
                        raise
                    # Taken between the lookup and the write.
                    logger.debug("Sharing code rejected by unique index on attempt %d", attempt)
                    continue

                if assigned:
                    logger.info("Issued sharing code %s to user %s", mask_code(code), user_id)
                    return code

                # Another process (or a rotation) set a code first; report that one.
                current = self._users.get_by_id(user_id)
                if not current:
                    raise NotFoundError("User not found")
                if current.sharing_code:
                    return current.sharing_code

        logger.error("Could not issue a sharing code to user %s after %d attempts", user_id, self._max_attempts)
        raise GenerationExhaustedError(f"No free sharing code after {self._max_attempts} attempts")

    def redeem(self, code: str, requesting_user_id: int) -> PublicProfile:
        """Connect the requester (viewer) to the code's owner and return the owner's identity."""

        requesting_user_id = int(requesting_user_id)
        normalized = normalize_code(code)
        if not is_well_formed(normalized):
            raise ValidationError("Sharing code must be 6 letters or digits")

        owner = self._sharing.find_user_by_code(normalized)
        if owner is None:
            raise CodeNotFoundError("Invalid sharing code")

        if owner.user_id == requesting_user_id:
            raise SelfConnectionError("You cannot add yourself")

        if self._sharing.find_connection(owner.user_id, requesting_user_id) is not None:
            raise AlreadyConnectedError("You are already connected with this person")

        try:
            self._sharing.create_connection(owner_id=owner.user_id, viewer_id=requesting_user_id)
        except ConstraintViolationError as exc:
            if not exc.is_duplicate_key:
                raise
            # A concurrent redemption for the same pair won.
            raise AlreadyConnectedError("You are already connected with this person")

        logger.info("User %s can now view user %s", requesting_user_id, owner.user_id)
        return PublicProfile.of(owner)

    def is_connected(self, user_a: int, user_b: int) -> bool:
        return self._sharing.find_connection(int(user_a), int(user_b)) is not None

    def can_view(self, *, viewer_id: int, owner_id: int) -> bool:
        if int(viewer_id) == int(owner_id):
            return True
        conn = self._sharing.find_connection(int(owner_id), int(viewer_id))
        return conn is not None and conn.owner_id == int(owner_id) and conn.viewer_id == int(viewer_id)

    def list_team(self, user_id: int) -> Team:
        rows = self._sharing.list_team(int(user_id))
        return Team(
            workers=[r for r in rows if r.connection.viewer_id == int(user_id)],
            viewers=[r for r in rows if r.connection.owner_id == int(user_id)],
        )
