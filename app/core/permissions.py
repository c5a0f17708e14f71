from typing import Iterable

from fastapi import Depends, HTTPException, status

from app.core.enums import Role, STAFF_ROLES
from app.core.security import get_current_user
from app.models.user import User


class RoleRequired:
    """Dependency that admits only users holding one of the given roles."""

    def __init__(self, roles: Iterable[Role], action: str = "perform this action"):
        self.roles = {Role(r) for r in roles}
        self.action = action

    def __call__(self, user: User = Depends(get_current_user)) -> User:
        try:
            role = Role(user.role)
        except ValueError:
            role = None

        if role not in self.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You do not have permission to {self.action}."
            )
        return user


require_staff = RoleRequired(STAFF_ROLES, "manage forms")
require_admin = RoleRequired([Role.ADMIN], "manage users")
