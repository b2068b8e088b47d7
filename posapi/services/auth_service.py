import secrets
from datetime import datetime, timedelta
from typing import Callable, List

from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import AuthenticationError, ConflictError
from posapi.core.security import create_access_token, decode_access_token, hash_password, verify_password
from posapi.core.session_context import SessionContext
from posapi.repositories.user_repository import UserRepository
from posapi.schemas.auth import LoginRequest, Token, UserCreate, UserResponse
from posapi.utils.timezone_utils import ensure_aware, now_utc
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """Staff login sessions"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.user_repo = UserRepository(db)

    def login(self, request: LoginRequest) -> Token:
        """Check credentials, open a session, return its bearer token"""
        user = self.user_repo.get_model_by_email(request.email)
        if user is None or not verify_password(request.password, user.password_hash):
            logger.warning(f"Failed login for {request.email}")
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("User account is disabled")

        expires_delta = timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        expires_at = self.clock() + expires_delta
        session_id = secrets.token_urlsafe(32)
        try:
            self.user_repo.add_session(session_id, user.id, expires_at)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        token = create_access_token(
            {"sub": str(user.id), "sid": session_id, "role": user.role},
            expires_delta=expires_delta,
            settings=self.settings,
        )
        logger.info(f"User {user.id} logged in (session {session_id[:8]})")
        return Token(access_token=token, expires_at=expires_at)

    def logout(self, context: SessionContext) -> None:
        """Revoke the caller's session; the token stops working immediately"""
        if not context.session_id:
            return
        session = self.user_repo.get_session(context.session_id)
        if session is None or session.revoked_at is not None:
            return
        try:
            session.revoked_at = self.clock()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {context.user_id} logged out")

    def resolve_session(self, token: str) -> SessionContext:
        """Bearer token -> acting user, or AuthenticationError"""
        token_data = decode_access_token(token, settings=self.settings)
        if token_data is None or not token_data.user_id or not token_data.session_id:
            raise AuthenticationError("Invalid or expired token")

        session = self.user_repo.get_session(token_data.session_id)
        if session is None or session.user_id != token_data.user_id:
            raise AuthenticationError("Session not found")
        if session.revoked_at is not None:
            raise AuthenticationError("Session has been logged out")
        if ensure_aware(session.expires_at) <= self.clock():
            raise AuthenticationError("Session expired")

        user = self.user_repo.get_model(token_data.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return SessionContext(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            session_id=session.id,
        )

    def create_user(self, request: UserCreate) -> UserResponse:
        if self.user_repo.get_by_email(request.email) is not None:
            raise ConflictError(
                "Email already registered", details={"email": request.email}
            )
        user = self.user_repo.create_user(
            email=request.email,
            name=request.name,
            password_hash=hash_password(request.password, self.settings.BCRYPT_ROUNDS),
            role=request.role.value,
        )
        logger.info(f"Created user {user.id} ({user.role.value})")
        return user

    def list_users(self) -> List[UserResponse]:
        return self.user_repo.list_users()
