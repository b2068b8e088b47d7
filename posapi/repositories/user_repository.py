from typing import Optional, List
from datetime import datetime

from sqlalchemy.orm import Session

from posapi.models.user import User as UserModel, UserSession
from posapi.schemas.auth import UserResponse
from posapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserResponse]):
    """Staff accounts and their login sessions"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserResponse, db)

    def get_model_by_email(self, email: str) -> Optional[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(UserModel.email == email.lower())
            .first()
        )

    def get_by_email(self, email: str) -> Optional[UserResponse]:
        return self._to_schema(self.get_model_by_email(email))

    def create_user(
        self, email: str, name: str, password_hash: str, role: str
    ) -> Optional[UserResponse]:
        return self.create(
            email=email.lower(),
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=True,
        )

    def list_users(self) -> List[UserResponse]:
        return self._to_schemas(self.db.query(UserModel).order_by(UserModel.name).all())

    def add_session(
        self, session_id: str, user_id: int, expires_at: datetime
    ) -> UserSession:
        session = UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
        self.db.add(session)
        self.db.flush()
        return session

    def get_session(self, session_id: str) -> Optional[UserSession]:
        return self.db.get(UserSession, session_id)
