"""
Shared route dependencies.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.core.security import decode_access_token
from splitledger.core.exceptions import UnauthorizedError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user from the bearer token."""
    if credentials is None:
        raise UnauthorizedError("Missing token")

    payload = decode_access_token(credentials.credentials)
    if not payload or payload.get("user_id") is None:
        raise UnauthorizedError("Invalid token")

    user = db.query(User).filter(User.id == payload["user_id"]).first()
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    return user
