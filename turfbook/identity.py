"""
Identity of the acting user.

Authentication happens elsewhere; the core only ever receives an Identity
carrying a verified user id and role, and asks it capability questions
instead of comparing role strings.
"""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    PLAYER = 'player'
    TURF_OWNER = 'turf_owner'
    ADMIN = 'admin'


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role = Role.PLAYER

    @classmethod
    def from_member(cls, member) -> 'Identity':
        """Build an identity from an authenticated Member."""
        return cls(user_id=member.id, role=Role(member.role))

    def can_own_turfs(self) -> bool:
        return self.role in (Role.TURF_OWNER, Role.ADMIN)

    def is_owner_of(self, turf) -> bool:
        return turf is not None and turf.owner_id == self.user_id

    def is_organizer_of(self, game) -> bool:
        return game is not None and game.organizer_id == self.user_id

    def __str__(self):
        return f"{self.role.value} (ID: {self.user_id})"
