"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .jwt_service import decode_access_token, extract_role
from .schemas import AuthenticatedUser, UserRole

security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> AuthenticatedUser:
    """Extract the verified principal from the bearer token.

    No database call is made: the identity provider is the source of truth
    for who the caller is.
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return AuthenticatedUser(
            id=str(payload["sub"]),
            email=payload.get("email"),
            role=UserRole(extract_role(payload)),
        )
    except (KeyError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token payload: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_role(role: UserRole):
    """Dependency factory restricting an endpoint to one marketplace role."""

    async def role_checker(
        current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {role.value}",
            )
        return current_user

    return role_checker


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
TenantUser = Annotated[AuthenticatedUser, Depends(require_role(UserRole.TENANT))]
LandlordUser = Annotated[AuthenticatedUser, Depends(require_role(UserRole.LANDLORD))]
