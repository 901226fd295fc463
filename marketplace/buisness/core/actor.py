from __future__ import annotations

from dataclasses import dataclass

from marketplace.data.core.user import UserRole
from marketplace.buisness.errors import Forbidden


@dataclass(frozen=True)
class Actor:
    """Identity passed explicitly into every business operation"""
    id: int
    role: str

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=UserRole(user.role).value)

    @property
    def is_buyer(self) -> bool:
        return self.role == UserRole.MANUFACTURER.value

    @property
    def is_supplier(self) -> bool:
        return self.role == UserRole.SUPPLIER.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def require_role(self, *roles: str) -> None:
        allowed = {UserRole(role).value for role in roles}
        if self.role not in allowed:
            raise Forbidden(f"Role '{self.role}' may not perform this action")
