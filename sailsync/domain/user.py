"""Crew member as seen by the scheduling core"""
from dataclasses import dataclass


ROLE_INSTRUCTOR = "INSTRUCTOR"
ROLE_HELPER = "HELPER"
ROLE_MANAGER = "MANAGER"
ROLE_RESERVE = "RESERVE"

USER_ROLES = [ROLE_INSTRUCTOR, ROLE_HELPER, ROLE_MANAGER, ROLE_RESERVE]


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str = ROLE_HELPER
    is_admin: bool = False
    email: str | None = None
    birth_date: str | None = None  # YYYY-MM-DD, may be malformed in legacy rows

    @property
    def can_command(self) -> bool:
        """Instructors and managers may skipper a boat."""
        return self.role in (ROLE_INSTRUCTOR, ROLE_MANAGER)
