"""
Identity provider for routes: the current user id comes from a bearer JWT.
The swap core trusts this id and does no authentication of its own.
"""
import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from skillswap.utils.security import decode_access_token

security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Validate the Authorization header and return the user id (str). 401 if missing or invalid."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthenticated("Not authenticated")
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise _unauthenticated("Invalid or expired token")
    try:
        uuid.UUID(user_id)
    except ValueError:
        raise _unauthenticated("Invalid token subject") from None
    return user_id


# Type alias for dependency injection
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
