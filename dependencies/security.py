import logging
from typing import Optional, Annotated
from fastapi import Depends, Header, HTTPException

from database.db import DataStoreClient, get_store
from schemas.assignments import UserContext
from services.records import load_user_context

logger = logging.getLogger(__name__)

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def bearer_token(authorization: AuthHeader = None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # "Bearer <token>"
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


def get_current_user(
    token: str = Depends(bearer_token),
    store: DataStoreClient = Depends(get_store),
) -> UserContext:
    user = store.get_user(token)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return load_user_context(store, user)


def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    if not user.is_admin:
        logger.info("admin-only request denied for user %s", user.user_id)
        raise HTTPException(status_code=403, detail="Administrator role required")
    return user
