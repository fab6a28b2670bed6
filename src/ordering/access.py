"""Caller identity and the authorization checks the command handlers apply.

Authentication happens upstream; commands only carry the caller's id and
role, and handlers decide whether that caller may touch a record.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.errors import AccessDenied


class Role(Enum):
    USER = "user"
    TECHNICIAN = "technician"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def owns(self, owner_id) -> bool:
        return owner_id is not None and str(owner_id) == str(self.user_id)


def caller_from(command) -> Caller:
    """Build the caller from a command's actor_id / actor_role fields."""
    return Caller(user_id=str(command.actor_id), role=command.actor_role or Role.USER.value)


def require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise AccessDenied("Admin access required")


def require_owner(caller: Caller, owner_id) -> None:
    if not caller.owns(owner_id):
        raise AccessDenied()


def require_owner_or_admin(caller: Caller, owner_id) -> None:
    if not (caller.is_admin or caller.owns(owner_id)):
        raise AccessDenied()
