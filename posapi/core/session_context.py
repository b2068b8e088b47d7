from dataclasses import dataclass
from typing import Optional

from posapi.models.user import UserRole


@dataclass(frozen=True)
class SessionContext:
    """
    The authenticated actor behind an operation.

    Resolved once per request and handed to every service call that records
    who did something (ledger entries, sales, stock moves, payments).
    """

    user_id: Optional[int]
    name: str
    email: Optional[str] = None
    role: str = UserRole.CASHIER.value
    session_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)

    @classmethod
    def system(cls, name: str = "system") -> "SessionContext":
        """Actor for scripts and background jobs"""
        return cls(user_id=None, name=name, role=UserRole.ADMIN.value)
