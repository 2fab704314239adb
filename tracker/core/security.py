from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from tracker.db.session import get_db
from tracker.models.user import User, UserRole
from tracker.core.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    if isinstance(data.get("role"), UserRole):
        to_encode["role"] = data["role"].value
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def resolve_user(token: str, db: Session) -> User:
    """Turn a bearer token into an active user or answer 401."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    return resolve_user(token, db)


def require_role(allowed_roles: list[UserRole]):
    """
    Dependency factory that admits only the given roles.

    Usage:
        @router.post("/{project_id}/move")
        def move(current_user: User = Depends(require_mover)):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role(s): {[role.value for role in allowed_roles]}",
            )
        return current_user
    return role_checker


require_mover = require_role(
    [UserRole.ADMIN, UserRole.PROJECT_MANAGER, UserRole.PROJECT_COORDINATOR]
)
require_qa_starter = require_role([UserRole.ADMIN, UserRole.PROJECT_MANAGER, UserRole.QA_TESTER])
require_workflow_admin = require_role([UserRole.ADMIN, UserRole.PROJECT_MANAGER])
