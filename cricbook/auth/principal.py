from dataclasses import dataclass

from cricbook.models.user import User, UserRole


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller, resolved once per request and handed to the
    engines explicitly.
    """
    user_id: int
    username: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.id, username=user.username, role=user.role)
