"""Bearer-token security dependencies.

`get_current_token` extracts the bearer token from the request and
validates it against the token store; `get_current_user` resolves the
owning `User`. Both raise `Unauthorized`, which the app renders as a 401
envelope, so they can be used directly inside route dependencies.
"""

from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .database import get_session
from .errors import Unauthorized
from .services import TokenService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> models.AccessToken:
    """Return the live `AccessToken` presented with the request."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return TokenService(db).validate(credentials.credentials)


def get_current_user(
    token: models.AccessToken = Depends(get_current_token),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user."""
    user = repositories.UserRepository(db).get(token.user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user
