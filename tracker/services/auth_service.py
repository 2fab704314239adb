"""
Authentication Service Module.
Password login that issues the bearer tokens the API expects.
"""
import logging
from typing import Any, Dict

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from tracker.core.security import create_access_token
from tracker.repositories.user_repository import UserRepository
from tracker.utils.hash import verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service for user authentication."""

    @staticmethod
    def login(db: Session, email: str, password: str) -> Dict[str, Any]:
        user = UserRepository(db).get_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"access_token": token, "token_type": "bearer", "role": user.role.value}
